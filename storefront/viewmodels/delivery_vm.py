from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from storefront.domain.entities import DeliveryRequest
from storefront.domain.geo import format_distance
from storefront.domain.order_status import status_key
from storefront.domain.pricing import format_inr

from .status_format import (
    format_timestamp,
    order_status_color,
    payment_status_color,
    payment_status_label,
    request_status_label,
)

LatLon = Tuple[float, float]


@dataclass
class DeliveryRow:
    """Display row for one job on the delivery partner dashboard."""
    request_id: str
    order_id: str
    short_id: str
    status: str
    status_label: str
    status_color: str
    amount: str
    payment_label: str
    payment_color: str
    distance: str
    created_at: str
    actions: List[str] = field(default_factory=list)


def job_status(request: DeliveryRequest) -> str:
    """Progress past acceptance is written to the order, so prefer it then."""
    request_status = status_key(request.status)
    order_status = status_key(request.order_status)
    if request_status == "accepted" and order_status in {"picked_up", "out_for_delivery", "delivered"}:
        return order_status
    if request_status in {"picked_up", "out_for_delivery", "delivered", "cancelled"}:
        return request_status
    if order_status in {"delivered", "cancelled"}:
        return order_status
    return request_status


def delivery_actions(request: DeliveryRequest) -> List[str]:
    status = job_status(request)
    paid = status_key(request.payment_status) == "completed"
    if status == "assigned":
        return ["accept", "reject"]
    if status == "accepted":
        return ["picked_up"]
    if status == "picked_up":
        return ["out_for_delivery"]
    if status == "out_for_delivery":
        return ["delivered"] if paid else ["payment_received"]
    if status in {"delivered", "cancelled", "rejected_by_partner"}:
        return ["hide"]
    return []


class DeliveryDashboardVM:
    def __init__(self) -> None:
        self.partner_id: Optional[str] = None
        self.current_location: Optional[LatLon] = None
        self.requests: List[DeliveryRequest] = []
        self.busy_ids: set = set()

    def set_requests(self, requests: Sequence[DeliveryRequest]) -> None:
        self.requests = list(requests)

    def set_location(self, latitude: float, longitude: float) -> None:
        self.current_location = (latitude, longitude)

    def mark_busy(self, request_id: str, busy: bool = True) -> None:
        if busy:
            self.busy_ids.add(request_id)
        else:
            self.busy_ids.discard(request_id)

    def find(self, request_id: str) -> Optional[DeliveryRequest]:
        return next((req for req in self.requests if req.id == request_id), None)

    def active_count(self) -> int:
        return sum(
            1 for req in self.requests if job_status(req) in {"accepted", "picked_up", "out_for_delivery"}
        )

    def rows(self) -> List[DeliveryRow]:
        return [self._to_row(req) for req in self.requests]

    def _to_row(self, request: DeliveryRequest) -> DeliveryRow:
        status = job_status(request)
        drop = None
        if request.drop_latitude is not None and request.drop_longitude is not None:
            drop = (request.drop_latitude, request.drop_longitude)
        return DeliveryRow(
            request_id=request.id,
            order_id=request.order_id,
            short_id=request.short_order_id,
            status=status,
            status_label=request_status_label(status),
            status_color=order_status_color(status),
            amount=format_inr(request.final_amount) if request.final_amount is not None else "-",
            payment_label=payment_status_label(request.payment_status, payment_id=request.payment_id),
            payment_color=payment_status_color(request.payment_status),
            distance=format_distance(self.current_location, drop),
            created_at=format_timestamp(request.created_at),
            actions=[] if request.id in self.busy_ids else delivery_actions(request),
        )


__all__ = ["DeliveryDashboardVM", "DeliveryRow", "delivery_actions", "job_status"]
