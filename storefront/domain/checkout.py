"""Checkout value objects shared by the checkout form and order placement."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .ports import UseCaseError

PAYMENT_COD = "cod"
PAYMENT_ONLINE = "online"
MIN_PHONE_DIGITS = 10


@dataclass(frozen=True)
class RecipientDetails:
    """Drop details entered when the order is for someone else."""

    name: str = ""
    phone: str = ""
    address: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    confirmed: bool = False

    def validate(self) -> None:
        if not self.name.strip():
            raise UseCaseError("RECIPIENT_INVALID", "Please enter recipient name")
        if len(self.phone.strip()) < MIN_PHONE_DIGITS:
            raise UseCaseError("RECIPIENT_INVALID", "Please enter a valid recipient mobile number")
        if not self.address.strip():
            raise UseCaseError("RECIPIENT_INVALID", "Please enter recipient address")
        if self.latitude is None or self.longitude is None:
            raise UseCaseError("RECIPIENT_INVALID", "Select a drop location on the map")
        if not self.confirmed:
            raise UseCaseError("RECIPIENT_INVALID", "Please confirm the selected location")

    def to_row(self) -> Dict[str, Any]:
        return {
            "is_order_for_someone_else": True,
            "alt_drop_latitude": self.latitude,
            "alt_drop_longitude": self.longitude,
            "recipient_name": self.name.strip(),
            "recipient_phone": self.phone.strip(),
            "recipient_address": self.address.strip(),
        }


@dataclass(frozen=True)
class PaymentConfirmation:
    """Identifiers returned by the payment gateway after a successful charge."""

    order_id: str
    payment_id: str
    signature: str = ""


__all__ = [
    "MIN_PHONE_DIGITS",
    "PAYMENT_COD",
    "PAYMENT_ONLINE",
    "PaymentConfirmation",
    "RecipientDetails",
]
