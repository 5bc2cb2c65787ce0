"""Status-token labels and badge colors for order and payment displays.

Call context:
    ``OrdersVM``, ``VendorDashboardVM`` and ``DeliveryDashboardVM`` call these
    helpers so every surface shows the same wording for a backend state.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from storefront.domain.order_status import status_color, status_key, status_label


def order_status_label(status: Optional[str]) -> str:
    """Customer-facing label for an order delivery status."""
    return status_label(status)


def order_status_color(status: Optional[str]) -> str:
    return status_color(status)


def request_status_label(status: Optional[str]) -> str:
    """Label for delivery-request tokens, which add partner-side states."""
    key = status_key(status)
    mapping = {
        "rejected_by_partner": "Rejected by Partner",
        "accepted": "Accepted",
        "rejected": "Rejected",
    }
    if key in mapping:
        return mapping[key]
    return status_label(key)


def payment_status_label(status: Optional[str], *, payment_id: Optional[str] = None) -> str:
    key = status_key(status)
    is_cod = (payment_id or "").upper() == "COD"
    if key == "completed":
        return "Paid (COD)" if is_cod else "Paid"
    if key == "failed":
        return "Payment Failed"
    if key == "refunded":
        return "Refunded"
    return "Cash on Delivery" if is_cod else "Payment Pending"


def payment_status_color(status: Optional[str]) -> str:
    key = status_key(status)
    if key == "completed":
        return "green-7"
    if key in {"failed", "refunded"}:
        return "red-6"
    return "orange-7"


def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    return value.astimezone().strftime("%d %b %Y, %I:%M %p")


__all__ = [
    "format_timestamp",
    "order_status_color",
    "order_status_label",
    "payment_status_color",
    "payment_status_label",
    "request_status_label",
]
