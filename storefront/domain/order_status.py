"""Delivery status vocabulary and display-side classification.

Status transitions are owned by the managed backend. This module only answers
presentation questions: which label to show, which step of the timeline is
current, and whether an order belongs on the live or history tab.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

from .entities import Order

ORDER_STATUSES: Tuple[str, ...] = (
    "pending",
    "approved",
    "assigned",
    "picked_up",
    "out_for_delivery",
    "delivered",
    "cancelled",
)

TIMELINE: Tuple[str, ...] = (
    "pending",
    "approved",
    "assigned",
    "picked_up",
    "out_for_delivery",
    "delivered",
)

TERMINAL_STATUSES = frozenset({"delivered", "cancelled"})
DELETED_STATUSES = frozenset({"deleted", "user_deleted"})
CLOSED_REVIEW_STATUSES = frozenset({"reviewed", "skipped"})

# Partner acceptance lives on the delivery request and shows as "assigned".
_TIMELINE_ALIASES = {"accepted": "assigned"}

STATUS_LABEL = {
    "pending": "Pending",
    "approved": "Approved",
    "assigned": "Assigned",
    "accepted": "Accepted",
    "picked_up": "Picked Up",
    "out_for_delivery": "Out for Delivery",
    "delivered": "Delivered",
    "cancelled": "Cancelled",
    "rejected": "Rejected",
}

STATUS_COLOR = {
    "pending": "yellow-7",
    "approved": "green-5",
    "assigned": "blue-6",
    "accepted": "blue-6",
    "picked_up": "deep-purple-5",
    "out_for_delivery": "purple-6",
    "delivered": "green-7",
    "cancelled": "red-6",
    "rejected": "red-6",
}


def status_key(status: Optional[str]) -> str:
    return (status or "").strip().lower()


def status_label(status: Optional[str]) -> str:
    key = status_key(status)
    if not key:
        return "Pending"
    if key in STATUS_LABEL:
        return STATUS_LABEL[key]
    return key.replace("_", " ").replace("-", " ").title()


def status_color(status: Optional[str]) -> str:
    return STATUS_COLOR.get(status_key(status), "grey-6")


def is_terminal(status: Optional[str]) -> bool:
    return status_key(status) in TERMINAL_STATUSES


OrderLike = Union[Order, Mapping[str, Any]]
_O = TypeVar("_O", Order, Mapping[str, Any])


def effective_status(order: OrderLike) -> str:
    """Prefer the delivery-request status, then the order's own status."""
    if isinstance(order, Order):
        return status_key(order.request_status) or status_key(order.delivery_status) or "pending"
    request = order.get("delivery_requests")
    if isinstance(request, list):
        request = request[0] if request else None
    request_status = request.get("status") if isinstance(request, Mapping) else None
    return status_key(request_status) or status_key(order.get("delivery_status")) or "pending"


def _review_status(order: OrderLike) -> str:
    if isinstance(order, Order):
        return status_key(order.review_status)
    return status_key(order.get("review_status"))


def split_orders(orders: Iterable[_O]) -> Tuple[List[_O], List[_O]]:
    """Split orders into ``(live, history)`` tabs.

    Delivered orders stay live until the customer reviews or skips them so the
    review prompt remains reachable.
    """
    live: List[_O] = []
    history: List[_O] = []
    for order in orders or ():
        status = effective_status(order)
        if status in DELETED_STATUSES:
            continue
        if status == "cancelled":
            history.append(order)
            continue
        if status == "delivered":
            if _review_status(order) in CLOSED_REVIEW_STATUSES:
                history.append(order)
            else:
                live.append(order)
            continue
        live.append(order)
    return live, history


def needs_review(order: OrderLike) -> bool:
    return effective_status(order) == "delivered" and _review_status(order) not in CLOSED_REVIEW_STATUSES


@dataclass(frozen=True)
class TimelineStep:
    status: str
    label: str
    done: bool
    current: bool


def timeline_steps(status: Optional[str]) -> Sequence[TimelineStep]:
    key = status_key(status) or "pending"
    if key == "cancelled":
        return (TimelineStep("cancelled", status_label("cancelled"), done=True, current=True),)
    key = _TIMELINE_ALIASES.get(key, key)
    try:
        position = TIMELINE.index(key)
    except ValueError:
        position = 0
    return tuple(
        TimelineStep(
            status=step,
            label=status_label(step),
            done=index <= position,
            current=index == position,
        )
        for index, step in enumerate(TIMELINE)
    )


__all__ = [
    "ORDER_STATUSES",
    "TimelineStep",
    "effective_status",
    "is_terminal",
    "needs_review",
    "split_orders",
    "status_color",
    "status_key",
    "status_label",
    "timeline_steps",
]
