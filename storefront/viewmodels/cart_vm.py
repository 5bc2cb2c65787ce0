"""Cart page projection: line rows, totals and coupon state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from storefront.domain.entities import CartLine
from storefront.domain.pricing import cart_subtotal, final_amount, format_inr


@dataclass
class CartRow:
    """Display row for one cart line."""
    product_id: str
    name: str
    image_url: Optional[str]
    unit_price: str
    quantity: int
    line_total: str
    can_increment: bool


class CartVM:
    """Holds cart lines and the applied coupon; totals are derived."""

    def __init__(self) -> None:
        self.lines: List[CartLine] = []
        self.coupon_code: Optional[str] = None
        self.discount: float = 0.0
        self.coupon_input: str = ""
        self.coupon_error: str = ""

    def set_lines(self, lines: Sequence[CartLine]) -> None:
        self.lines = list(lines)
        if self.coupon_code and self.discount > self.subtotal:
            # subtotal shrank below the applied discount
            self.discount = self.subtotal

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def subtotal(self) -> float:
        return cart_subtotal(self.lines)

    @property
    def total(self) -> float:
        return final_amount(self.subtotal, self.discount)

    def apply_coupon(self, code: str, discount: float) -> None:
        self.coupon_code = code
        self.discount = discount
        self.coupon_error = ""

    def coupon_failed(self, message: str) -> None:
        self.clear_coupon()
        self.coupon_error = message

    def clear_coupon(self) -> None:
        self.coupon_code = None
        self.discount = 0.0
        self.coupon_error = ""

    def rows(self) -> List[CartRow]:
        return [
            CartRow(
                product_id=line.product.id,
                name=line.product.name,
                image_url=line.product.image_url,
                unit_price=format_inr(line.product.price),
                quantity=line.quantity,
                line_total=format_inr(line.line_total),
                can_increment=line.quantity < line.product.stock,
            )
            for line in self.lines
        ]

    def summary(self) -> dict:
        return {
            "subtotal": format_inr(self.subtotal),
            "discount": format_inr(self.discount) if self.discount else "",
            "coupon_code": self.coupon_code or "",
            "total": format_inr(self.total),
            "item_count": self.item_count,
        }
