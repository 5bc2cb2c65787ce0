"""Order, delivery-request and partner tables plus their lifecycle RPCs.

Lifecycle transitions that need elevated rights (partner assignment, payment
marking, soft deletes) are stored procedures on the backend; this adapter only
invokes them and re-reads the affected rows.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from storefront.domain.entities import DeliveryRequest, Order, VendorProduct
from storefront.domain.ports import DeliveryPort, OrderPort, VendorPort

from .api_errors import ApiClientError, ApiError
from .postgrest import PostgrestClient, eq, in_

LOGGER = logging.getLogger(__name__)

ALT_DROP_FIELDS = (
    "is_order_for_someone_else",
    "alt_drop_latitude",
    "alt_drop_longitude",
    "recipient_name",
    "recipient_phone",
    "recipient_address",
)

ORDER_COLUMNS = "*, order_items(*), delivery_requests(status)"
REQUEST_COLUMNS = (
    "*, orders(delivery_status, final_amount, payment_status, payment_id, "
    "alt_drop_latitude, alt_drop_longitude)"
)
ACTIVE_PARTNER_STATUSES = ("accepted", "picked_up", "out_for_delivery")
VENDOR_PRODUCT_COLUMNS = "id, name, price, stock, unit, is_approved, image_url, main_image_url"


class OrderRestAdapter(OrderPort, VendorPort, DeliveryPort):
    def __init__(self, client: PostgrestClient) -> None:
        self.client = client

    # ---- Customer orders ----
    def create_order(self, row: Mapping[str, Any]) -> Order:
        """Insert an order; retry without recipient fields if the backend rejects them.

        Only a 4xx triggers the second insert. Timeouts and 5xx propagate so
        an order that may already exist is never written twice.
        """
        payload = dict(row)
        try:
            created = self.client.insert("orders", payload)
        except ApiClientError as exc:
            if not any(key in payload for key in ALT_DROP_FIELDS):
                raise
            LOGGER.warning(
                "Order insert with alternate drop fields failed (%s); retrying without them",
                exc,
            )
            base = {key: value for key, value in payload.items() if key not in ALT_DROP_FIELDS}
            created = self.client.insert("orders", base)
        if not created:
            raise ApiError("create_order: backend returned no row", context="insert[orders]")
        return Order.from_row(created[0])

    def insert_order_items(self, order_id: str, items: Sequence[Mapping[str, Any]]) -> None:
        rows = [{**dict(item), "order_id": order_id} for item in items]
        if rows:
            self.client.insert("order_items", rows, returning=False)

    def create_delivery_request(self, order_id: str, vendor_id: str, user_id: str) -> None:
        self.client.insert(
            "delivery_requests",
            {
                "order_id": order_id,
                "vendor_id": vendor_id,
                "user_id": user_id,
                "status": "pending",
            },
            returning=False,
        )

    def list_orders(self, user_id: str) -> List[Order]:
        """The customer's orders, minus those removed from any device."""
        rows = self.client.select(
            "orders",
            columns=ORDER_COLUMNS,
            filters=[eq("user_id", user_id)],
            order="created_at.desc",
        )
        hidden = self.hidden_order_ids(user_id, [row.get("id") for row in rows if row.get("id")])
        return [Order.from_row(row) for row in rows if str(row.get("id")) not in hidden]

    def hidden_order_ids(self, user_id: str, order_ids: Sequence[str]) -> Set[str]:
        if not order_ids:
            return set()
        try:
            rows = self.client.select(
                "order_visibility",
                columns="order_id,is_visible",
                filters=[
                    eq("user_id", user_id),
                    eq("user_type", "customer"),
                    in_("order_id", order_ids),
                ],
            )
        except ApiError as exc:
            LOGGER.warning("Failed to read order visibility for %s: %s", user_id, exc)
            return set()
        return {str(row.get("order_id")) for row in rows if row.get("is_visible") is False}

    def get_order(self, order_id: str) -> Order:
        row = self.client.single("orders", columns=ORDER_COLUMNS, filters=[eq("id", order_id)])
        return Order.from_row(row)

    def set_review_status(self, order_id: str, status: str) -> None:
        self.client.update("orders", {"review_status": status}, filters=[eq("id", order_id)])

    def user_delete_order(self, order_id: str) -> None:
        self.client.rpc("user_delete_order", {"p_order_id": order_id})

    # ---- Vendor side ----
    def vendor_id_for(self, user_id: str) -> Optional[str]:
        row = self.client.maybe_single("vendors", columns="id", filters=[eq("user_id", user_id)])
        return str(row["id"]) if row and row.get("id") else None

    def vendor_requests(self, vendor_id: str) -> List[DeliveryRequest]:
        rows = self.client.select(
            "delivery_requests",
            columns=REQUEST_COLUMNS,
            filters=[eq("vendor_id", vendor_id)],
            order="created_at.desc",
            limit=500,
        )
        return [DeliveryRequest.from_row(row) for row in rows]

    def assign_nearest_partner(self, order_id: str) -> Any:
        """Run the assignment RPC, then point the order at the partner's user."""
        result = self.client.rpc("assign_nearest_partner", {"p_order_id": order_id})
        request = self.client.maybe_single(
            "delivery_requests",
            columns="assigned_partner_id",
            filters=[eq("order_id", order_id)],
        )
        partner_id = (request or {}).get("assigned_partner_id")
        if partner_id:
            partner = self.client.maybe_single(
                "delivery_partners",
                columns="user_id",
                filters=[eq("id", partner_id)],
            )
            partner_user = (partner or {}).get("user_id")
            if partner_user:
                self.client.update(
                    "orders",
                    {"delivery_partner_id": partner_user, "delivery_status": "assigned"},
                    filters=[eq("id", order_id)],
                )
        return result

    def reject_order(self, order_id: str) -> None:
        self.client.rpc("vendor_reject_order", {"p_order_id": order_id})

    def vendor_delete_order(self, order_id: str) -> None:
        self.client.rpc("vendor_delete_order_fixed", {"p_order_id": order_id})

    def create_product(self, row: Mapping[str, Any]) -> Any:
        args = {f"p_{key}": value for key, value in row.items()}
        return self.client.rpc("create_product", args)

    def vendor_products(self, vendor_id: str) -> List[VendorProduct]:
        rows = self.client.select(
            "products",
            columns=VENDOR_PRODUCT_COLUMNS,
            filters=[eq("vendor_id", vendor_id), eq("is_active", True)],
            order="created_at.desc",
        )
        return [VendorProduct.from_row(row) for row in rows]

    def update_stock_price(self, product_id: str, vendor_id: str, stock: int, price: float) -> Dict[str, Any]:
        result = self.client.rpc(
            "vendor_update_product_stock_price",
            {
                "p_product_id": product_id,
                "p_vendor_id": vendor_id,
                "p_new_stock": stock,
                "p_new_price": price,
            },
        )
        if isinstance(result, list):
            result = result[0] if result else None
        return dict(result) if isinstance(result, Mapping) else {}

    def deactivate_product(self, product_id: str, vendor_id: str) -> None:
        self.client.update(
            "products",
            {"is_active": False},
            filters=[eq("id", product_id), eq("vendor_id", vendor_id)],
        )

    def set_main_image(self, product_id: str, vendor_id: str, url: str) -> None:
        self.client.update(
            "products",
            {"main_image_url": url},
            filters=[eq("id", product_id), eq("vendor_id", vendor_id)],
        )

    # ---- Delivery partner side ----
    def partner_id_for(self, user_id: str) -> Optional[str]:
        row = self.client.maybe_single(
            "delivery_partners", columns="id", filters=[eq("user_id", user_id)]
        )
        return str(row["id"]) if row and row.get("id") else None

    def partner_requests(self, partner_id: str) -> List[DeliveryRequest]:
        rows = self.client.select(
            "delivery_requests",
            columns=REQUEST_COLUMNS,
            filters=[eq("assigned_partner_id", partner_id)],
            order="created_at.desc",
        )
        return [DeliveryRequest.from_row(row) for row in rows]

    def record_response(self, request_id: str, partner_id: str, action: str) -> None:
        self.client.insert(
            "delivery_partner_responses",
            {"request_id": request_id, "partner_id": partner_id, "action": action},
            returning=False,
        )

    def update_request_status(
        self,
        request_id: str,
        status: str,
        *,
        order_id: Optional[str] = None,
        order_status: Optional[str] = None,
        timestamps: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Update the request and mirror the status onto the order row."""
        values = {"status": status, **dict(timestamps or {})}
        self.client.update("delivery_requests", values, filters=[eq("id", request_id)])
        if order_id and order_status:
            self.client.update(
                "orders",
                {"delivery_status": order_status},
                filters=[eq("id", order_id)],
            )

    def mark_payment_received(self, order_id: str) -> Dict[str, Any]:
        result = self.client.rpc("delivery_mark_payment_received", {"p_order_id": order_id})
        if isinstance(result, list):
            result = result[0] if result else None
        if not isinstance(result, Mapping):
            raise ApiError(
                "delivery_mark_payment_received: no data returned",
                context="rpc[delivery_mark_payment_received]",
            )
        return dict(result)

    def update_location(self, partner_id: str, latitude: float, longitude: float) -> None:
        self.client.update(
            "delivery_partners",
            {"latitude": latitude, "longitude": longitude},
            filters=[eq("id", partner_id)],
        )
        active = self.client.select(
            "delivery_requests",
            columns="order_id",
            filters=[eq("assigned_partner_id", partner_id), in_("status", ACTIVE_PARTNER_STATUSES)],
        )
        tracking = [
            {
                "order_id": row.get("order_id"),
                "partner_id": partner_id,
                "latitude": latitude,
                "longitude": longitude,
            }
            for row in active
            if row.get("order_id")
        ]
        if not tracking:
            return
        try:
            self.client.insert("delivery_tracking", tracking, returning=False)
        except ApiError as exc:
            LOGGER.warning("Failed to record delivery tracking for partner %s: %s", partner_id, exc)

    def delivery_delete_order(self, order_id: str) -> None:
        self.client.rpc("delivery_delete_order", {"p_order_id": order_id})
