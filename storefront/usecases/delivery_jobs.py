from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from storefront.domain.entities import DeliveryRequest, Session
from storefront.domain.ports import DeliveryPort, StoragePort, UseCaseError
from storefront.usecases.error_mapping import map_api_error

LOGGER = logging.getLogger(__name__)

DELIVERY_SCOPE = "delivery"
RESPONSE_ACTIONS = ("accepted", "rejected")
# Request-row column stamped when a status is reached.
STATUS_TIMESTAMPS = {"picked_up": "picked_up_at", "delivered": "delivered_at"}


@dataclass
class DeliveryJobs:
    """Delivery partner actions on assigned requests.

    Status writes go to the request row and are mirrored onto the order's
    ``delivery_status`` so customers and vendors see the same progress.
    """

    delivery: DeliveryPort
    storage: StoragePort

    def partner_id(self, session: Optional[Session]) -> str:
        if session is None or not session.user_id:
            raise UseCaseError("AUTH_REQUIRED", "Please sign in as a delivery partner.")
        try:
            partner_id = self.delivery.partner_id_for(session.user_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="PARTNER_LOOKUP_FAILED",
                default_message="Could not load delivery profile.",
            ) from exc
        if not partner_id:
            raise UseCaseError("NOT_A_PARTNER", "No delivery profile is linked to this account.")
        return partner_id

    def list(self, partner_id: str) -> List[DeliveryRequest]:
        try:
            requests = self.delivery.partner_requests(partner_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="DELIVERY_JOBS_FAILED",
                default_message="Could not load delivery jobs.",
            ) from exc
        hidden = set(self.storage.load_hidden_orders(DELIVERY_SCOPE))
        return [req for req in requests if req.order_id not in hidden]

    def respond(self, partner_id: str, request: DeliveryRequest, action: str) -> None:
        if action not in RESPONSE_ACTIONS:
            raise UseCaseError("INVALID_ACTION", f"Unknown response: {action}")
        try:
            self.delivery.record_response(request.id, partner_id, action)
            if action == "accepted":
                self.delivery.update_request_status(
                    request.id,
                    "accepted",
                    order_id=request.order_id,
                    order_status="approved",
                )
            else:
                self.delivery.update_request_status(request.id, "rejected_by_partner")
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="RESPOND_FAILED",
                default_message="Failed to respond",
            ) from exc

    def _advance(self, request: DeliveryRequest, status: str) -> None:
        column = STATUS_TIMESTAMPS.get(status)
        stamps = {column: datetime.now(timezone.utc).isoformat()} if column else None
        try:
            self.delivery.update_request_status(
                request.id,
                status,
                order_id=request.order_id,
                order_status=status,
                timestamps=stamps,
            )
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="STATUS_UPDATE_FAILED",
                default_message="Failed to update status",
            ) from exc

    def mark_picked_up(self, request: DeliveryRequest) -> None:
        self._advance(request, "picked_up")

    def mark_out_for_delivery(
        self,
        partner_id: str,
        request: DeliveryRequest,
        *,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> None:
        self._advance(request, "out_for_delivery")
        if latitude is None or longitude is None:
            return
        try:
            self.delivery.update_location(partner_id, latitude, longitude)
        except Exception as exc:
            LOGGER.warning("Location push for order %s failed: %s", request.order_id, exc)

    def mark_payment_received(self, request: DeliveryRequest) -> Dict[str, Any]:
        try:
            result = self.delivery.mark_payment_received(request.order_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="PAYMENT_MARK_FAILED",
                default_message="Failed to mark payment as received",
            ) from exc
        if str(result.get("payment_status") or "").lower() != "completed":
            LOGGER.error("Payment status was not updated for order %s: %r", request.order_id, result)
            raise UseCaseError(
                "PAYMENT_MARK_FAILED",
                "Payment status was not updated correctly",
            )
        return result

    def mark_delivered(self, request: DeliveryRequest) -> None:
        self._advance(request, "delivered")

    def update_location(self, partner_id: str, latitude: float, longitude: float) -> None:
        try:
            self.delivery.update_location(partner_id, latitude, longitude)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="LOCATION_UPDATE_FAILED",
                default_message="Failed to set location",
            ) from exc

    def hide(self, order_id: str) -> None:
        try:
            self.delivery.delivery_delete_order(order_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="DELIVERY_DELETE_FAILED",
                default_message="Failed to remove order from history",
            ) from exc
        hidden = self.storage.load_hidden_orders(DELIVERY_SCOPE)
        if order_id not in hidden:
            hidden.append(order_id)
        self.storage.save_hidden_orders(DELIVERY_SCOPE, hidden)


__all__ = ["DELIVERY_SCOPE", "DeliveryJobs"]
