"""In-app notification feed for vendor and delivery dashboards.

Dashboards poll their delivery requests on a timer. ``diff_delivery_requests``
compares two consecutive snapshots and yields the same notices a push channel
would have delivered.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Literal, Optional

from .entities import DeliveryRequest

NotificationKind = Literal["new_order", "order_update"]
DashboardRole = Literal["vendor", "delivery"]

_VENDOR_UPDATE_STATUSES = frozenset({"approved", "rejected"})


@dataclass(frozen=True)
class Notification:
    id: str
    kind: NotificationKind
    order_id: str
    message: str
    timestamp: datetime
    read: bool = False


def _short(order_id: str) -> str:
    return order_id[:8]


def make_notification(
    kind: NotificationKind,
    order_id: str,
    message: str,
    *,
    now: Optional[datetime] = None,
) -> Notification:
    return Notification(
        id=uuid.uuid4().hex,
        kind=kind,
        order_id=order_id,
        message=message,
        timestamp=now or datetime.now(timezone.utc),
    )


class NotificationFeed:
    """Newest-first notification list with an unread counter."""

    def __init__(self, max_items: int = 50) -> None:
        self.max_items = max_items
        self._items: List[Notification] = []
        self._unread = 0

    @property
    def items(self) -> List[Notification]:
        return list(self._items)

    @property
    def unread_count(self) -> int:
        return self._unread

    def push(self, notification: Notification) -> None:
        self._items.insert(0, notification)
        if not notification.read:
            self._unread += 1
        dropped = self._items[self.max_items :]
        del self._items[self.max_items :]
        self._unread -= sum(1 for item in dropped if not item.read)

    def extend(self, notifications: Iterable[Notification]) -> None:
        for notification in notifications:
            self.push(notification)

    def mark_read(self, notification_id: str) -> None:
        for index, item in enumerate(self._items):
            if item.id != notification_id:
                continue
            if not item.read:
                self._items[index] = replace(item, read=True)
                self._unread = max(0, self._unread - 1)
            return

    def mark_all_read(self) -> None:
        self._items = [replace(item, read=True) for item in self._items]
        self._unread = 0

    def clear(self) -> None:
        self._items = []
        self._unread = 0


def _status_of(request: DeliveryRequest, role: DashboardRole) -> str:
    if role == "delivery":
        return (request.order_status or request.status or "").lower()
    return (request.status or "").lower()


def diff_delivery_requests(
    previous: Optional[Iterable[DeliveryRequest]],
    current: Iterable[DeliveryRequest],
    role: DashboardRole,
    *,
    now: Optional[datetime] = None,
) -> List[Notification]:
    """Derive notifications from two consecutive request snapshots.

    ``previous=None`` marks the first poll, which only establishes a baseline.
    """
    if previous is None:
        return []
    before: Dict[str, DeliveryRequest] = {req.id: req for req in previous}
    notices: List[Notification] = []

    for request in current:
        order_ref = _short(request.order_id)
        prior = before.get(request.id)

        if role == "vendor":
            if prior is None:
                notices.append(
                    make_notification(
                        "new_order",
                        request.order_id,
                        f"New order received! Order #{order_ref}",
                        now=now,
                    )
                )
                continue
            status = _status_of(request, role)
            if status != _status_of(prior, role) and status in _VENDOR_UPDATE_STATUSES:
                notices.append(
                    make_notification(
                        "order_update",
                        request.order_id,
                        f"Order #{order_ref} status updated: {status}",
                        now=now,
                    )
                )
            continue

        request_status = (request.status or "").lower()
        prior_request_status = (prior.status or "").lower() if prior else ""
        if request_status == "assigned" and prior_request_status != "assigned":
            notices.append(
                make_notification(
                    "new_order",
                    request.order_id,
                    f"New delivery assigned! Order #{order_ref}",
                    now=now,
                )
            )
            continue
        if prior is None:
            continue
        status = _status_of(request, role)
        if status != _status_of(prior, role):
            notices.append(
                make_notification(
                    "order_update",
                    request.order_id,
                    f"Order #{order_ref} status: {status}",
                    now=now,
                )
            )

    return notices


__all__ = [
    "Notification",
    "NotificationFeed",
    "diff_delivery_requests",
    "make_notification",
]
