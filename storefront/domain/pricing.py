"""Cart totals and coupon evaluation shown at checkout."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from .entities import CartLine, Coupon


def _round2(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def cart_subtotal(lines: Iterable[CartLine]) -> float:
    total = 0.0
    for line in lines or ():
        price = line.product.price or 0.0
        quantity = line.quantity or 1
        total += price * quantity
    return _round2(total)


def final_amount(subtotal: float, discount: float) -> float:
    return _round2(max(0.0, float(subtotal) - float(discount or 0.0)))


def to_paise(amount: float) -> int:
    """Convert a rupee amount to integer paise for the payment gateway."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_inr(amount: Optional[float]) -> str:
    value = float(amount or 0.0)
    sign = "-" if value < 0 else ""
    return f"{sign}₹{abs(value):,.2f}"


class CouponRejected(ValueError):
    """Raised when a coupon cannot be applied to the current subtotal."""


@dataclass(frozen=True)
class CouponRule:
    """Checkout-side coupon validation mirroring the promotion rules."""

    coupon: Coupon

    def evaluate(self, subtotal: float, now: Optional[datetime] = None) -> float:
        """Return the discount for ``subtotal`` or raise ``CouponRejected``."""
        coupon = self.coupon
        moment = now or datetime.now(timezone.utc)
        if not coupon.is_active:
            raise CouponRejected("Invalid coupon code")
        if coupon.valid_from and moment < coupon.valid_from:
            raise CouponRejected("Coupon is not yet valid")
        if coupon.valid_until and moment > coupon.valid_until:
            raise CouponRejected("Coupon has expired")
        if coupon.usage_limit and coupon.usage_count >= coupon.usage_limit:
            raise CouponRejected("Coupon usage limit reached")
        if coupon.min_order_amount and subtotal < coupon.min_order_amount:
            raise CouponRejected(
                f"Minimum order amount of ₹{coupon.min_order_amount:g} required"
            )

        if coupon.discount_type == "percentage":
            discount = subtotal * coupon.discount_value / 100.0
            if coupon.max_discount:
                discount = min(discount, coupon.max_discount)
        else:
            discount = coupon.discount_value

        return _round2(min(discount, subtotal))


__all__ = [
    "CouponRejected",
    "CouponRule",
    "cart_subtotal",
    "final_amount",
    "format_inr",
    "to_paise",
]
