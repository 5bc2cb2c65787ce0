"""Vendor dashboard rows built from the vendor's delivery requests and products.

Call context:
    ``WebRuntime`` loads requests through ``VendorOrders.list`` and renders
    ``VendorRow`` objects; products come from ``VendorProducts.list``.
    Action names map to ``VendorOrders`` methods; the backend decides whether
    an action actually applies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from storefront.domain.entities import DeliveryRequest, ProductPhoto, VendorProduct
from storefront.domain.geo import format_distance
from storefront.domain.order_status import is_terminal, status_key
from storefront.domain.pricing import format_inr

from .status_format import (
    format_timestamp,
    order_status_color,
    payment_status_label,
    request_status_label,
)

LatLon = Tuple[float, float]

_ASSIGNABLE = frozenset({"pending", "approved", "rejected_by_partner"})
_CLOSED = frozenset({"rejected", "delivered", "cancelled"})


@dataclass
class VendorRow:
    request_id: str
    order_id: str
    short_id: str
    status: str
    status_label: str
    status_color: str
    amount: str
    payment_label: str
    distance: str
    created_at: str
    actions: List[str] = field(default_factory=list)


@dataclass
class VendorProductRow:
    product_id: str
    name: str
    price: str
    stock: str
    approval_label: str
    approval_color: str
    image_url: Optional[str]
    price_value: float
    stock_value: int


def vendor_actions(request: DeliveryRequest) -> List[str]:
    status = status_key(request.status)
    if status in _ASSIGNABLE:
        return ["assign", "reject"]
    if status in _CLOSED or is_terminal(request.order_status):
        return ["hide"]
    return []


class VendorDashboardVM:
    """Incoming and past requests plus the product list of the signed-in vendor."""

    def __init__(self, store_location: Optional[LatLon] = None) -> None:
        self.store_location = store_location
        self.vendor_id: Optional[str] = None
        self.requests: List[DeliveryRequest] = []
        self.busy_ids: set = set()
        self.products: List[VendorProduct] = []
        self.photos: List[ProductPhoto] = []
        self.photos_product_id: Optional[str] = None

    def set_requests(self, requests: Sequence[DeliveryRequest]) -> None:
        self.requests = list(requests)

    def set_products(self, products: Sequence[VendorProduct]) -> None:
        self.products = list(products)

    def find_product(self, product_id: str) -> Optional[VendorProduct]:
        return next((product for product in self.products if product.id == product_id), None)

    def set_photos(self, product_id: str, photos: Sequence[ProductPhoto]) -> None:
        self.photos_product_id = product_id
        self.photos = list(photos)

    def find_photo(self, name: str) -> Optional[ProductPhoto]:
        return next((photo for photo in self.photos if photo.name == name), None)

    def product_rows(self) -> List[VendorProductRow]:
        rows = []
        for product in self.products:
            unit = f" / {product.unit}" if product.unit else ""
            rows.append(
                VendorProductRow(
                    product_id=product.id,
                    name=product.name,
                    price=f"{format_inr(product.price)}{unit}",
                    stock=f"{product.stock} in stock" if product.stock else "Out of stock",
                    approval_label="Approved" if product.is_approved else "Pending approval",
                    approval_color="positive" if product.is_approved else "warning",
                    image_url=product.display_image,
                    price_value=product.price,
                    stock_value=product.stock,
                )
            )
        return rows

    def mark_busy(self, request_id: str, busy: bool = True) -> None:
        if busy:
            self.busy_ids.add(request_id)
        else:
            self.busy_ids.discard(request_id)

    def find(self, request_id: str) -> Optional[DeliveryRequest]:
        return next((req for req in self.requests if req.id == request_id), None)

    def pending_count(self) -> int:
        return sum(1 for req in self.requests if status_key(req.status) == "pending")

    def rows(self) -> List[VendorRow]:
        return [self._to_row(req) for req in self.requests]

    def _to_row(self, request: DeliveryRequest) -> VendorRow:
        status = status_key(request.status)
        drop = None
        if request.drop_latitude is not None and request.drop_longitude is not None:
            drop = (request.drop_latitude, request.drop_longitude)
        actions = [] if request.id in self.busy_ids else vendor_actions(request)
        return VendorRow(
            request_id=request.id,
            order_id=request.order_id,
            short_id=request.short_order_id,
            status=status,
            status_label=request_status_label(status),
            status_color=order_status_color(status),
            amount=format_inr(request.final_amount) if request.final_amount is not None else "-",
            payment_label=payment_status_label(request.payment_status, payment_id=request.payment_id),
            distance=format_distance(self.store_location, drop),
            created_at=format_timestamp(request.created_at),
            actions=actions,
        )


__all__ = ["VendorDashboardVM", "VendorProductRow", "VendorRow", "vendor_actions"]
