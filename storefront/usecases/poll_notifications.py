from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from storefront.domain.entities import DeliveryRequest
from storefront.domain.notifications import (
    DashboardRole,
    Notification,
    NotificationFeed,
    diff_delivery_requests,
)
from storefront.domain.ports import UseCaseError
from storefront.usecases.error_mapping import map_api_error


@dataclass
class PollNotifications:
    """Poll a dashboard's delivery requests and push derived notices.

    The first call only records a baseline snapshot.
    """

    fetch: Callable[[], List[DeliveryRequest]]
    role: DashboardRole
    feed: NotificationFeed = field(default_factory=NotificationFeed)
    _previous: Optional[List[DeliveryRequest]] = field(default=None, init=False, repr=False)

    def __call__(self) -> List[Notification]:
        try:
            current = list(self.fetch())
        except UseCaseError:
            raise
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="NOTIFICATIONS_POLL_FAILED",
                default_message="Could not refresh notifications.",
            ) from exc
        notices = diff_delivery_requests(self._previous, current, self.role)
        self._previous = current
        self.feed.extend(notices)
        return notices

    def reset(self) -> None:
        self._previous = None


__all__ = ["PollNotifications"]
