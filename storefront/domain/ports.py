from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from .entities import (
    Address,
    CartLine,
    Category,
    Coupon,
    DeliveryRequest,
    Order,
    PartnerAccount,
    PaymentOrder,
    PincodeInfo,
    PlatformStats,
    Product,
    ProductPhoto,
    RatingStats,
    ReverseGeocodeResult,
    Review,
    Session,
    VendorAccount,
    VendorProduct,
)

ProductId = str
UserId = str
OrderId = str
Row = Dict[str, Any]


# ---- Error model ----
class UseCaseError(Exception):
    """Base class for use case level errors (user-presentable)."""

    def __init__(self, code: str, message: str, meta: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.meta = meta


# ---- Ports (Hexagonal boundaries) ----
class CatalogPort(Protocol):
    """Read-only product catalog."""

    def list_products(
        self,
        *,
        category_id: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = "newest",
        limit: Optional[int] = None,
    ) -> List[Product]: ...
    def get_product(self, product_id: ProductId) -> Product: ...
    def list_categories(self) -> List[Category]: ...
    def best_sellers(self, limit: int = 8) -> List[Product]: ...
    def rating_stats(self, product_id: ProductId) -> RatingStats: ...


class CartPort(Protocol):
    def list_cart(self, user_id: UserId) -> List[CartLine]: ...
    def cart_quantity(self, user_id: UserId, product_id: ProductId) -> int: ...
    def add_to_cart(self, user_id: UserId, product_id: ProductId, quantity: int = 1) -> None: ...
    def set_cart_quantity(self, user_id: UserId, product_id: ProductId, quantity: int) -> None: ...
    def remove_from_cart(self, user_id: UserId, product_id: ProductId) -> None: ...
    def clear_cart(self, user_id: UserId) -> None: ...


class WishlistPort(Protocol):
    def list_wishlist(self, user_id: UserId) -> List[Product]: ...
    def wishlist_contains(self, user_id: UserId, product_id: ProductId) -> bool: ...
    def toggle_wishlist(self, user_id: UserId, product_id: ProductId) -> bool: ...  # True when added


class AddressPort(Protocol):
    def list_addresses(self, user_id: UserId) -> List[Address]: ...
    def create_address(self, user_id: UserId, row: Mapping[str, Any]) -> Address: ...
    def update_address(self, user_id: UserId, address_id: str, row: Mapping[str, Any]) -> Address: ...
    def delete_address(self, user_id: UserId, address_id: str) -> None: ...
    def set_default_address(self, user_id: UserId, address_id: str) -> None: ...


class CouponPort(Protocol):
    def find_coupon(self, code: str) -> Optional[Coupon]: ...
    def increment_coupon_usage(self, coupon: Coupon) -> None: ...


class OrderPort(Protocol):
    """Customer-side order persistence and lifecycle RPCs."""

    def create_order(self, row: Mapping[str, Any]) -> Order: ...
    def insert_order_items(self, order_id: OrderId, items: Sequence[Mapping[str, Any]]) -> None: ...
    def create_delivery_request(self, order_id: OrderId, vendor_id: str, user_id: UserId) -> None: ...
    def list_orders(self, user_id: UserId) -> List[Order]: ...
    def get_order(self, order_id: OrderId) -> Order: ...
    def set_review_status(self, order_id: OrderId, status: str) -> None: ...
    def user_delete_order(self, order_id: OrderId) -> None: ...


class ReviewPort(Protocol):
    def list_reviews(self, product_id: ProductId) -> List[Review]: ...
    def own_review(self, user_id: UserId, product_id: ProductId) -> Optional[Review]: ...
    def has_purchased(self, user_id: UserId, product_id: ProductId) -> bool: ...
    def upsert_review(self, row: Mapping[str, Any]) -> None: ...
    def insert_reviews(self, rows: Sequence[Mapping[str, Any]]) -> None: ...


class VendorPort(Protocol):
    def vendor_id_for(self, user_id: UserId) -> Optional[str]: ...
    def vendor_requests(self, vendor_id: str) -> List[DeliveryRequest]: ...
    def assign_nearest_partner(self, order_id: OrderId) -> Any: ...
    def reject_order(self, order_id: OrderId) -> None: ...
    def vendor_delete_order(self, order_id: OrderId) -> None: ...
    def create_product(self, row: Mapping[str, Any]) -> Any: ...
    def vendor_products(self, vendor_id: str) -> List[VendorProduct]: ...
    def update_stock_price(self, product_id: ProductId, vendor_id: str, stock: int, price: float) -> Row: ...
    def deactivate_product(self, product_id: ProductId, vendor_id: str) -> None: ...
    def set_main_image(self, product_id: ProductId, vendor_id: str, url: str) -> None: ...


class ProductImagePort(Protocol):
    """Public ``product-images`` bucket; paths are ``<folder>/<file name>``."""

    def list_images(self, folder: str) -> List[ProductPhoto]: ...
    def upload_image(self, path: str, content: bytes, content_type: str) -> str: ...  # public URL
    def remove_images(self, paths: Sequence[str]) -> None: ...


class AdminPort(Protocol):
    def platform_stats(self) -> PlatformStats: ...
    def list_vendor_accounts(self) -> List[VendorAccount]: ...
    def update_vendor_flags(self, vendor_id: str, values: Mapping[str, bool]) -> None: ...
    def list_partner_accounts(self) -> List[PartnerAccount]: ...
    def update_partner_flags(self, partner_id: str, values: Mapping[str, bool]) -> None: ...


class DeliveryPort(Protocol):
    def partner_id_for(self, user_id: UserId) -> Optional[str]: ...
    def partner_requests(self, partner_id: str) -> List[DeliveryRequest]: ...
    def record_response(self, request_id: str, partner_id: str, action: str) -> None: ...
    def update_request_status(
        self,
        request_id: str,
        status: str,
        *,
        order_id: Optional[OrderId] = None,
        order_status: Optional[str] = None,
        timestamps: Optional[Mapping[str, str]] = None,
    ) -> None: ...
    def mark_payment_received(self, order_id: OrderId) -> Row: ...  # {"payment_status": ...}
    def update_location(self, partner_id: str, latitude: float, longitude: float) -> None: ...
    def delivery_delete_order(self, order_id: OrderId) -> None: ...


class FunctionsPort(Protocol):
    """Serverless functions hosted next to the database."""

    def create_payment_order(self, amount: float, *, currency: str = "INR") -> PaymentOrder: ...
    def send_otp(self, email: str, full_name: str = "") -> None: ...
    def verify_otp_signup(
        self, email: str, code: str, password: str, *, full_name: str = "", phone: Optional[str] = None
    ) -> Row: ...
    def send_order_email(
        self, to: str, subject: str, html: str, *, kind: str = "order_confirmation", order_id: Optional[str] = None
    ) -> None: ...
    def create_vendor(self, payload: Mapping[str, Any]) -> Row: ...
    def create_delivery_partner(self, payload: Mapping[str, Any]) -> Row: ...


class AuthPort(Protocol):
    def sign_in(self, email: str, password: str) -> Session: ...
    def sign_out(self) -> None: ...
    def current_user(self) -> Row: ...
    def user_roles(self, user_id: UserId) -> List[str]: ...
    def set_access_token(self, token: Optional[str]) -> None: ...


class GeocodingPort(Protocol):
    def lookup_pincode(self, pincode: str) -> Optional[PincodeInfo]: ...
    def reverse_geocode(self, latitude: float, longitude: float) -> Optional[ReverseGeocodeResult]: ...


class StoragePort(Protocol):
    """Persistence for preferences and small client-side state."""

    def save_user_prefs(self, prefs: Dict) -> None: ...
    def load_user_prefs(self) -> Dict: ...
    def save_recently_viewed(self, payload: List[Dict]) -> None: ...
    def load_recently_viewed(self) -> List[Dict]: ...
    def save_hidden_orders(self, scope: str, order_ids: Sequence[str]) -> None: ...
    def load_hidden_orders(self, scope: str) -> List[str]: ...
    def save_session(self, session: Optional[Session]) -> None: ...
    def load_session(self) -> Optional[Session]: ...
    def append_error_log(self, entry: Mapping[str, Any]) -> None: ...
    def load_error_log(self) -> List[Dict]: ...
