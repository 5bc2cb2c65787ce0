from __future__ import annotations

from typing import List, Optional, Sequence

from storefront.domain.entities import Address, CartLine
from storefront.domain.checkout import PAYMENT_COD, PAYMENT_ONLINE, RecipientDetails

from .cart_vm import CartVM


class CheckoutVM:
    """Checkout form state: items, address choice, recipient and payment method.

    ``items`` is either the cart or a single buy-now selection; buy-now orders
    leave the cart untouched.
    """

    def __init__(self, cart: Optional[CartVM] = None) -> None:
        self.cart = cart or CartVM()
        self.addresses: List[Address] = []
        self.selected_address_id: Optional[str] = None
        self.payment_method: str = PAYMENT_COD
        self.buy_now: bool = False

        self.for_someone_else: bool = False
        self.recipient_name: str = ""
        self.recipient_phone: str = ""
        self.recipient_address: str = ""
        self.drop_latitude: Optional[float] = None
        self.drop_longitude: Optional[float] = None
        self.drop_confirmed: bool = False
        self.busy: bool = False

    # ------------------------------------------------------------------
    def set_items(self, lines: Sequence[CartLine], *, buy_now: bool = False) -> None:
        self.cart.set_lines(lines)
        self.buy_now = buy_now

    def set_addresses(self, addresses: Sequence[Address]) -> None:
        self.addresses = list(addresses)
        ids = {address.id for address in self.addresses}
        if self.selected_address_id in ids:
            return
        default = next((a for a in self.addresses if a.is_default), None)
        chosen = default or (self.addresses[0] if self.addresses else None)
        self.selected_address_id = chosen.id if chosen else None

    @property
    def selected_address(self) -> Optional[Address]:
        for address in self.addresses:
            if address.id == self.selected_address_id:
                return address
        return None

    def set_payment_method(self, method: str) -> None:
        if method not in (PAYMENT_COD, PAYMENT_ONLINE):
            raise ValueError(f"Unknown payment method: {method}")
        self.payment_method = method

    def set_drop_location(self, latitude: float, longitude: float) -> None:
        """A newly picked point must be confirmed again."""
        self.drop_latitude = latitude
        self.drop_longitude = longitude
        self.drop_confirmed = False

    def confirm_drop_location(self) -> None:
        if self.drop_latitude is not None and self.drop_longitude is not None:
            self.drop_confirmed = True

    def recipient(self) -> Optional[RecipientDetails]:
        if not self.for_someone_else:
            return None
        return RecipientDetails(
            name=self.recipient_name,
            phone=self.recipient_phone,
            address=self.recipient_address,
            latitude=self.drop_latitude,
            longitude=self.drop_longitude,
            confirmed=self.drop_confirmed,
        )

    @property
    def place_label(self) -> str:
        if self.payment_method == PAYMENT_ONLINE:
            return f"Pay {self.cart.summary()['total']}"
        return "Place Order (COD)"

    @property
    def can_place(self) -> bool:
        return not self.busy and not self.cart.is_empty and self.selected_address is not None
