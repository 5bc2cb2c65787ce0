from __future__ import annotations

from dataclasses import dataclass
from typing import List

from storefront.domain.notifications import NotificationFeed

from .status_format import format_timestamp


@dataclass
class NotificationRow:
    notification_id: str
    order_id: str
    message: str
    timestamp: str
    read: bool
    icon: str


class NotificationsVM:
    """Bell badge and dropdown projection of a ``NotificationFeed``."""

    def __init__(self, feed: NotificationFeed) -> None:
        self.feed = feed
        self.open: bool = False

    @property
    def badge(self) -> str:
        count = self.feed.unread_count
        if count <= 0:
            return ""
        return "9+" if count > 9 else str(count)

    @property
    def has_unread(self) -> bool:
        return self.feed.unread_count > 0

    def toggle(self) -> None:
        self.open = not self.open

    def mark_read(self, notification_id: str) -> None:
        self.feed.mark_read(notification_id)

    def mark_all_read(self) -> None:
        self.feed.mark_all_read()

    def clear(self) -> None:
        self.feed.clear()

    def rows(self) -> List[NotificationRow]:
        return [
            NotificationRow(
                notification_id=item.id,
                order_id=item.order_id,
                message=item.message,
                timestamp=format_timestamp(item.timestamp),
                read=item.read,
                icon="shopping_bag" if item.kind == "new_order" else "update",
            )
            for item in self.feed.items
        ]
