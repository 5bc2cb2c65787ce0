"""Orders page projection with live/history tabs and status timelines.

Call context:
    The web runtime loads ``OrdersOverview`` through ``ListOrders`` and feeds
    it here; polling replaces individual orders via ``replace_order``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from storefront.domain.entities import Order
from storefront.domain.order_status import (
    effective_status,
    is_terminal,
    needs_review,
    split_orders,
    timeline_steps,
)
from storefront.domain.pricing import format_inr

from .status_format import (
    format_timestamp,
    order_status_color,
    order_status_label,
    payment_status_label,
)

VIEWS = ("live", "history")


@dataclass
class TimelineCell:
    label: str
    done: bool
    current: bool


@dataclass
class OrderItemRow:
    name: str
    quantity: int
    price: str
    line_total: str


@dataclass
class OrderRow:
    """Display row for one order card."""
    order_id: str
    short_id: str
    status: str
    status_label: str
    status_color: str
    payment_label: str
    placed_at: str
    subtotal: str
    discount: str
    total: str
    coupon_code: str
    items: List[OrderItemRow] = field(default_factory=list)
    timeline: List[TimelineCell] = field(default_factory=list)
    recipient: str = ""
    show_tracking: bool = False
    can_review: bool = False
    can_remove: bool = False


class OrdersVM:
    def __init__(self) -> None:
        self.view: str = "live"
        self._live: List[Order] = []
        self._history: List[Order] = []

    def set_view(self, view: str) -> None:
        if view not in VIEWS:
            raise ValueError(f"Unknown orders view: {view}")
        self.view = view

    def set_orders(self, live: Sequence[Order], history: Sequence[Order]) -> None:
        self._live = list(live)
        self._history = list(history)

    def replace_order(self, order: Order) -> None:
        """Swap in a freshly polled order and re-split the tabs."""
        merged = [order if o.id == order.id else o for o in self._live + self._history]
        merged.sort(key=_created_key, reverse=True)
        self._live, self._history = split_orders(merged)

    def live_order_ids(self) -> List[str]:
        return [order.id for order in self._live if not is_terminal(effective_status(order))]

    def counts(self) -> Tuple[int, int]:
        return len(self._live), len(self._history)

    def find(self, order_id: str) -> Optional[Order]:
        for order in self._live + self._history:
            if order.id == order_id:
                return order
        return None

    def rows(self) -> List[OrderRow]:
        orders = self._live if self.view == "live" else self._history
        return [self._to_row(order) for order in orders]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _to_row(self, order: Order) -> OrderRow:
        status = effective_status(order)
        recipient = ""
        if order.recipient is not None:
            recipient = f"{order.recipient.name} ({order.recipient.phone}), {order.recipient.address}"
        return OrderRow(
            order_id=order.id,
            short_id=order.short_id,
            status=status,
            status_label=order_status_label(status),
            status_color=order_status_color(status),
            payment_label=payment_status_label(order.payment_status, payment_id=order.payment_id),
            placed_at=format_timestamp(order.created_at),
            subtotal=format_inr(order.subtotal),
            discount=format_inr(order.discount_amount) if order.discount_amount else "",
            total=format_inr(order.final_amount),
            coupon_code=order.coupon_code or "",
            items=[
                OrderItemRow(
                    name=item.name,
                    quantity=item.quantity,
                    price=format_inr(item.price),
                    line_total=format_inr(item.line_total),
                )
                for item in order.items
            ],
            timeline=[
                TimelineCell(label=step.label, done=step.done, current=step.current)
                for step in timeline_steps(status)
            ],
            recipient=recipient,
            show_tracking=status in {"picked_up", "out_for_delivery"},
            can_review=needs_review(order),
            can_remove=is_terminal(status),
        )


def _created_key(order: Order) -> str:
    return order.created_at.isoformat() if order.created_at else ""
