"""Domain package exports for value objects and display rules."""

from .entities import (
    Address,
    AddressDraft,
    CartLine,
    Category,
    Coupon,
    DeliveryRequest,
    Order,
    OrderItem,
    PaymentOrder,
    PincodeInfo,
    Product,
    RatingStats,
    Recipient,
    ReverseGeocodeResult,
    Review,
    Session,
)
from .order_status import effective_status, split_orders, status_label
from .pricing import cart_subtotal, final_amount

__all__ = [
    "Address",
    "AddressDraft",
    "CartLine",
    "Category",
    "Coupon",
    "DeliveryRequest",
    "Order",
    "OrderItem",
    "PaymentOrder",
    "PincodeInfo",
    "Product",
    "RatingStats",
    "Recipient",
    "ReverseGeocodeResult",
    "Review",
    "Session",
    "cart_subtotal",
    "effective_status",
    "final_amount",
    "split_orders",
    "status_label",
]
