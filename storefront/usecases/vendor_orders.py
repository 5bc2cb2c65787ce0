"""Vendor dashboard workflows: incoming requests, assignment and products."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import PurePosixPath
import time
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import uuid4

from storefront.adapters.api_errors import ApiError
from storefront.adapters.storage_rest import object_path_from_url
from storefront.domain.entities import DeliveryRequest, ProductPhoto, Session, VendorProduct
from storefront.domain.ports import ProductImagePort, StoragePort, UseCaseError, VendorPort
from storefront.usecases.error_mapping import map_api_error

LOGGER = logging.getLogger(__name__)

VENDOR_SCOPE = "vendor"
MAX_PHOTO_BYTES = 5 * 1024 * 1024
IMAGE_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
}


@dataclass
class VendorOrders:
    """List and act on the delivery requests addressed to one vendor.

    Every action is a backend call; the dashboard reloads afterwards to show
    whatever state the backend settled on.
    """

    vendor: VendorPort
    storage: StoragePort

    def vendor_id(self, session: Optional[Session]) -> str:
        if session is None or not session.user_id:
            raise UseCaseError("AUTH_REQUIRED", "Please sign in as a vendor.")
        try:
            vendor_id = self.vendor.vendor_id_for(session.user_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="VENDOR_LOOKUP_FAILED",
                default_message="Could not load vendor profile.",
            ) from exc
        if not vendor_id:
            raise UseCaseError("NOT_A_VENDOR", "No vendor profile is linked to this account.")
        return vendor_id

    def list(self, vendor_id: str) -> List[DeliveryRequest]:
        try:
            requests = self.vendor.vendor_requests(vendor_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="VENDOR_ORDERS_FAILED",
                default_message="Could not load vendor orders.",
            ) from exc
        hidden = set(self.storage.load_hidden_orders(VENDOR_SCOPE))
        return [req for req in requests if req.order_id not in hidden]

    def assign_nearest(self, order_id: str) -> Any:
        try:
            result = self.vendor.assign_nearest_partner(order_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="ASSIGN_FAILED",
                default_message="Failed to assign partner",
            ) from exc
        LOGGER.info("Assigned nearest partner for order %s", order_id)
        return result

    def reject(self, order_id: str) -> None:
        try:
            self.vendor.reject_order(order_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="REJECT_FAILED",
                default_message="Failed to reject order",
            ) from exc

    def hide(self, order_id: str) -> None:
        try:
            self.vendor.vendor_delete_order(order_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="VENDOR_DELETE_FAILED",
                default_message="Failed to remove order from history",
            ) from exc
        hidden = self.storage.load_hidden_orders(VENDOR_SCOPE)
        if order_id not in hidden:
            hidden.append(order_id)
        self.storage.save_hidden_orders(VENDOR_SCOPE, hidden)


@dataclass
class CreateVendorProduct:
    """Submit a new product for approval through the ``create_product`` procedure."""

    vendor: VendorPort

    def __call__(
        self,
        *,
        name: str,
        price: Any,
        stock: Any = 0,
        category_id: Optional[str] = None,
        description: str = "",
        unit: str = "piece",
        image_url: Optional[str] = None,
        extras: Optional[Dict[str, Any]] = None,
    ) -> Any:
        clean_name = (name or "").strip()
        if not clean_name or price in (None, ""):
            raise UseCaseError("PRODUCT_INVALID", "Name and price are required")
        try:
            price_value = float(price)
        except (TypeError, ValueError):
            raise UseCaseError("PRODUCT_INVALID", "Enter a valid price") from None
        if price_value <= 0:
            raise UseCaseError("PRODUCT_INVALID", "Price must be greater than 0")
        try:
            stock_value = int(stock or 0)
        except (TypeError, ValueError):
            raise UseCaseError("PRODUCT_INVALID", "Enter a valid non-negative stock") from None
        if stock_value < 0:
            raise UseCaseError("PRODUCT_INVALID", "Enter a valid non-negative stock")

        row: Dict[str, Any] = {
            "category_id": category_id or None,
            "name": clean_name,
            "description": description.strip() or None,
            "price": price_value,
            "stock": stock_value,
            "unit": unit.strip() or None,
            "image_url": image_url,
        }
        for key, value in (extras or {}).items():
            row[key] = (value.strip() or None) if isinstance(value, str) else value
        try:
            return self.vendor.create_product(row)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="PRODUCT_CREATE_FAILED",
                default_message="Failed to add product",
            ) from exc


def _non_negative_price(value: Any) -> float:
    try:
        price = float(value)
    except (TypeError, ValueError):
        price = float("nan")
    if not math.isfinite(price) or price < 0:
        raise UseCaseError("PRODUCT_INVALID", "Enter a valid non-negative price")
    return price


def _non_negative_stock(value: Any) -> int:
    try:
        stock = int(str(value if value not in (None, "") else 0).strip())
    except ValueError:
        raise UseCaseError("PRODUCT_INVALID", "Enter a valid non-negative stock") from None
    if stock < 0:
        raise UseCaseError("PRODUCT_INVALID", "Enter a valid non-negative stock")
    return stock


def photo_content_type(filename: str) -> Tuple[str, str]:
    """``(extension, content type)`` for an uploaded photo, or ``UseCaseError``."""
    ext = PurePosixPath(filename or "").suffix.lower().lstrip(".")
    if ext not in IMAGE_TYPES:
        raise UseCaseError("PHOTO_INVALID", "Only JPG, PNG, WEBP or GIF images can be uploaded")
    return ext, IMAGE_TYPES[ext]


@dataclass
class VendorProducts:
    """The vendor's own catalog: stock and price edits, removal and photos.

    Photos live in the product's folder of the image bucket as
    ``main-<ms>.<ext>`` or ``angle-<ms>-<random>.<ext>``; the product row
    only stores the URL chosen as main image.
    """

    vendor: VendorPort
    images: ProductImagePort
    clock: Callable[[], float] = time.time

    def list(self, vendor_id: str) -> List[VendorProduct]:
        try:
            return self.vendor.vendor_products(vendor_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="VENDOR_PRODUCTS_FAILED",
                default_message="Could not load your products.",
            ) from exc

    def update(self, vendor_id: str, product_id: str, *, price: Any, stock: Any) -> None:
        new_price = _non_negative_price(price)
        new_stock = _non_negative_stock(stock)
        try:
            result = self.vendor.update_stock_price(product_id, vendor_id, new_stock, new_price)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="PRODUCT_UPDATE_FAILED",
                default_message="Failed to update",
            ) from exc
        if not (result or {}).get("success"):
            raise UseCaseError("PRODUCT_UPDATE_FAILED", "Update failed")
        LOGGER.info("Vendor %s set product %s to stock=%d price=%.2f", vendor_id, product_id, new_stock, new_price)

    def delete(self, vendor_id: str, product: VendorProduct) -> None:
        """Hide the product from the catalog, then drop its image file if any."""
        try:
            self.vendor.deactivate_product(product.id, vendor_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="PRODUCT_DELETE_FAILED",
                default_message="Failed to delete product",
            ) from exc
        path = object_path_from_url(product.image_url)
        if not path:
            return
        try:
            self.images.remove_images([path])
        except ApiError as exc:
            LOGGER.warning("Product %s removed but its image %s was not: %s", product.id, path, exc)

    def photos(self, product_id: str) -> List[ProductPhoto]:
        try:
            return self.images.list_images(product_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="PHOTOS_FAILED",
                default_message="Could not load photos.",
            ) from exc

    def upload_photo(
        self,
        vendor_id: str,
        product_id: str,
        filename: str,
        content: bytes,
        *,
        main: bool = False,
    ) -> str:
        """Store one photo and return its public URL; a main photo becomes the product image."""
        ext, content_type = photo_content_type(filename)
        if not content:
            raise UseCaseError("PHOTO_INVALID", "The selected file is empty")
        if len(content) > MAX_PHOTO_BYTES:
            raise UseCaseError("PHOTO_INVALID", "Images must be 5 MB or smaller")
        stamp = int(self.clock() * 1000)
        name = f"main-{stamp}.{ext}" if main else f"angle-{stamp}-{uuid4().hex[:8]}.{ext}"
        try:
            url = self.images.upload_image(f"{product_id}/{name}", content, content_type)
            if main:
                self.vendor.set_main_image(product_id, vendor_id, url)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="PHOTO_UPLOAD_FAILED",
                default_message="Upload failed",
            ) from exc
        return url

    def remove_photo(self, product_id: str, name: str) -> None:
        try:
            self.images.remove_images([f"{product_id}/{name}"])
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="PHOTO_DELETE_FAILED",
                default_message="Delete failed",
            ) from exc

    def set_main_photo(self, vendor_id: str, product_id: str, photo: ProductPhoto) -> None:
        try:
            self.vendor.set_main_image(product_id, vendor_id, photo.url)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="PHOTO_UPDATE_FAILED",
                default_message="Failed to set main image",
            ) from exc


__all__ = [
    "CreateVendorProduct",
    "IMAGE_TYPES",
    "MAX_PHOTO_BYTES",
    "VENDOR_SCOPE",
    "VendorOrders",
    "VendorProducts",
    "photo_content_type",
]
