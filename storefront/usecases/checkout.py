"""Order placement for cash-on-delivery and online payments.

The backend owns stock, payment state and fulfilment. Placing an order is a
sequence of inserts (order, items, delivery request) followed by clearing the
cart; only the order and item inserts are required to succeed.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from storefront.domain.checkout import (
    PAYMENT_COD,
    PAYMENT_ONLINE,
    PaymentConfirmation,
    RecipientDetails,
)
from storefront.domain.entities import Address, CartLine, Order, Session
from storefront.domain.ports import CartPort, FunctionsPort, OrderPort, UseCaseError
from storefront.domain.pricing import cart_subtotal, final_amount, format_inr
from storefront.usecases.error_mapping import map_api_error

LOGGER = logging.getLogger(__name__)

STORE_NAME = "Kash It Ecom"


@dataclass
class PlaceOrder:
    orders: OrderPort
    cart: CartPort
    functions: Optional[FunctionsPort] = None

    def __call__(
        self,
        session: Optional[Session],
        items: Sequence[CartLine],
        address: Optional[Address],
        *,
        payment_method: str = PAYMENT_COD,
        payment: Optional[PaymentConfirmation] = None,
        coupon_code: Optional[str] = None,
        discount: float = 0.0,
        recipient: Optional[RecipientDetails] = None,
        buy_now: bool = False,
    ) -> Order:
        if session is None or not session.user_id:
            raise UseCaseError("AUTH_REQUIRED", "Please login to continue")
        lines: List[CartLine] = [line for line in items if line.quantity > 0]
        if not lines:
            raise UseCaseError("ORDER_EMPTY", "Your cart is empty")
        if address is None:
            raise UseCaseError("ADDRESS_REQUIRED", "Please select a delivery address")
        if payment_method not in (PAYMENT_COD, PAYMENT_ONLINE):
            raise UseCaseError("PAYMENT_METHOD_INVALID", f"Unknown payment method: {payment_method}")
        if payment_method == PAYMENT_ONLINE and payment is None:
            raise UseCaseError("PAYMENT_REQUIRED", "Payment was not completed")
        if recipient is not None:
            recipient.validate()

        subtotal = cart_subtotal(lines)
        discount_amount = min(max(0.0, float(discount or 0.0)), subtotal)
        row: Dict[str, Any] = {
            "user_id": session.user_id,
            "address_id": address.id,
            "subtotal": subtotal,
            "discount_amount": round(discount_amount, 2),
            "final_amount": final_amount(subtotal, discount_amount),
            "coupon_code": coupon_code or None,
            "delivery_status": "pending",
        }
        if payment_method == PAYMENT_COD:
            row.update(payment_status="pending", payment_id="COD")
        else:
            row.update(payment_status="completed", payment_id=payment.payment_id)
        if recipient is not None:
            row.update(recipient.to_row())

        try:
            order = self.orders.create_order(row)
            self.orders.insert_order_items(order.id, [_item_row(line) for line in lines])
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="ORDER_FAILED",
                default_message="Failed to place order",
            ) from exc

        self._create_delivery_request(order, lines, session.user_id)

        if not buy_now:
            try:
                self.cart.clear_cart(session.user_id)
            except Exception as exc:
                raise map_api_error(
                    exc,
                    default_code="CART_CLEAR_FAILED",
                    default_message="Order placed, but the cart could not be cleared.",
                ) from exc

        self._send_confirmation(session, order, lines)
        return order

    def _create_delivery_request(self, order: Order, lines: Sequence[CartLine], user_id: str) -> None:
        vendor_id = next((line.product.vendor_id for line in lines if line.product.vendor_id), None)
        if not vendor_id:
            LOGGER.warning("Order %s has no vendor; skipping delivery request", order.id)
            return
        try:
            self.orders.create_delivery_request(order.id, vendor_id, user_id)
        except Exception as exc:
            LOGGER.warning("Failed to create delivery request for order %s: %s", order.id, exc)

    def _send_confirmation(self, session: Session, order: Order, lines: Sequence[CartLine]) -> None:
        if self.functions is None or not session.email:
            return
        try:
            self.functions.send_order_email(
                session.email,
                f"Order confirmed #{order.short_id}",
                order_confirmation_html(order, lines),
                kind="order_confirmation",
                order_id=order.id,
            )
        except Exception as exc:
            LOGGER.warning("Order confirmation email for %s failed: %s", order.id, exc)


def _item_row(line: CartLine) -> Dict[str, Any]:
    product = line.product
    return {
        "product_id": product.id,
        "snapshot_name": product.name or "Unknown Product",
        "snapshot_price": product.price or 0,
        "quantity": line.quantity or 1,
    }


def order_confirmation_html(order: Order, lines: Sequence[CartLine]) -> str:
    rows = "".join(
        f"<tr><td>{html.escape(line.product.name)}</td><td>{line.quantity}</td>"
        f"<td>{format_inr(line.line_total)}</td></tr>"
        for line in lines
    )
    return (
        f"<h2>Thank you for your order #{order.short_id}</h2>"
        f"<table>{rows}</table>"
        f"<p>Total: {format_inr(order.final_amount)}</p>"
    )


@dataclass
class StartOnlinePayment:
    """Create a gateway order and return the checkout widget options."""

    functions: FunctionsPort
    store_name: str = STORE_NAME

    def __call__(
        self,
        session: Optional[Session],
        amount: float,
        *,
        contact: str = "",
    ) -> Dict[str, Any]:
        if session is None or not session.access_token:
            raise UseCaseError("AUTH_REQUIRED", "Please login to continue")
        if amount is None or amount <= 0:
            raise UseCaseError("AMOUNT_INVALID", "Amount is required and must be greater than 0")
        try:
            gateway_order = self.functions.create_payment_order(amount, currency="INR")
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="PAYMENT_INIT_FAILED",
                default_message="Failed to initiate payment",
            ) from exc
        return {
            "key": gateway_order.key,
            "amount": gateway_order.amount,
            "currency": gateway_order.currency,
            "name": self.store_name,
            "description": f"Order for {format_inr(amount)}",
            "order_id": gateway_order.id,
            "prefill": {
                "name": session.full_name,
                "email": session.email,
                "contact": contact,
            },
        }


__all__ = [
    "PAYMENT_COD",
    "PAYMENT_ONLINE",
    "PaymentConfirmation",
    "PlaceOrder",
    "RecipientDetails",
    "StartOnlinePayment",
    "order_confirmation_html",
]
