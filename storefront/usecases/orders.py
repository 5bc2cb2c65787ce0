from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from storefront.domain.entities import Order, Session
from storefront.domain.order_status import effective_status, is_terminal, split_orders
from storefront.domain.ports import OrderPort, ReviewPort, StoragePort, UseCaseError
from storefront.usecases.error_mapping import map_api_error

LOGGER = logging.getLogger(__name__)

CUSTOMER_SCOPE = "customer"


def _user_id(session: Optional[Session]) -> str:
    if session is None or not session.user_id:
        raise UseCaseError("AUTH_REQUIRED", "Please sign in to view your orders.")
    return session.user_id


@dataclass
class OrdersOverview:
    live: List[Order] = field(default_factory=list)
    history: List[Order] = field(default_factory=list)


@dataclass
class ListOrders:
    """Load the customer's orders split into live and history tabs."""

    orders: OrderPort
    storage: StoragePort

    def __call__(self, session: Optional[Session]) -> OrdersOverview:
        user_id = _user_id(session)
        try:
            rows = self.orders.list_orders(user_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="ORDERS_LOAD_FAILED",
                default_message="Could not load your orders.",
            ) from exc
        hidden = set(self.storage.load_hidden_orders(CUSTOMER_SCOPE))
        visible = [order for order in rows if order.id not in hidden]
        live, history = split_orders(visible)
        return OrdersOverview(live=live, history=history)


@dataclass
class HideOrder:
    """Remove a finished order from the customer's history."""

    orders: OrderPort
    storage: StoragePort

    def __call__(self, order: Order) -> None:
        if not is_terminal(effective_status(order)):
            raise UseCaseError(
                "ORDER_NOT_FINISHED",
                "Only delivered or cancelled orders can be removed.",
            )
        try:
            self.orders.user_delete_order(order.id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="ORDER_DELETE_FAILED",
                default_message="Failed to remove order from history",
            ) from exc
        hidden = self.storage.load_hidden_orders(CUSTOMER_SCOPE)
        if order.id not in hidden:
            hidden.append(order.id)
        self.storage.save_hidden_orders(CUSTOMER_SCOPE, hidden)


@dataclass
class PollOrderStatus:
    orders: OrderPort

    def __call__(self, order_id: str) -> Order:
        """Re-read ``order_id`` so the tracking view reflects backend changes."""
        try:
            return self.orders.get_order(order_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="ORDER_POLL_FAILED",
                default_message="Could not refresh order status.",
            ) from exc


@dataclass
class SubmitOrderReview:
    """Store one review per rated item, then close the order's review prompt."""

    orders: OrderPort
    reviews: ReviewPort

    def __call__(
        self,
        session: Optional[Session],
        order: Order,
        ratings: Mapping[str, int],
        comments: Optional[Mapping[str, str]] = None,
    ) -> int:
        user_id = _user_id(session)
        notes = comments or {}
        rows: List[Dict[str, object]] = []
        for item in order.items:
            rating = ratings.get(item.product_id)
            if not rating:
                continue
            if not 1 <= int(rating) <= 5:
                raise UseCaseError("REVIEW_INVALID", "Ratings must be between 1 and 5.")
            rows.append(
                {
                    "product_id": item.product_id,
                    "user_id": user_id,
                    "rating": int(rating),
                    "title": "Order Review",
                    "comment": (notes.get(item.product_id) or "").strip(),
                    "is_verified_purchase": True,
                    "is_approved": True,
                }
            )
        if not rows:
            raise UseCaseError("REVIEW_EMPTY", "Please rate at least one item.")
        try:
            self.reviews.insert_reviews(rows)
            self.orders.set_review_status(order.id, "reviewed")
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="REVIEW_SUBMIT_FAILED",
                default_message="Failed to submit reviews",
            ) from exc
        return len(rows)


@dataclass
class SkipOrderReview:
    orders: OrderPort

    def __call__(self, order: Order) -> None:
        try:
            self.orders.set_review_status(order.id, "skipped")
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="REVIEW_SKIP_FAILED",
                default_message="Failed to update order",
            ) from exc


__all__ = [
    "CUSTOMER_SCOPE",
    "HideOrder",
    "ListOrders",
    "OrdersOverview",
    "PollOrderStatus",
    "SkipOrderReview",
    "SubmitOrderReview",
]
