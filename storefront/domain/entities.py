"""Domain value objects parsed from managed-backend rows.

Rows arrive as loosely typed JSON objects (PostgREST responses, RPC results,
function payloads). Each ``from_row`` constructor tolerates missing keys and
nested join shapes, so adapters and use cases can pass rows through as-is.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _opt_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def _money(value: Any) -> float:
    try:
        return round(float(value), 2)
    except (TypeError, ValueError):
        return 0.0


def _opt_money(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return round(float(value), 2)
    except (TypeError, ValueError):
        return None


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _opt_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse ISO-8601 timestamps returned by the backend into aware datetimes."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = _text(value)
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _first_mapping(value: Any) -> Mapping[str, Any]:
    """Joined relations come back either as an object or a one-element list."""
    if isinstance(value, Mapping):
        return value
    if isinstance(value, list) and value and isinstance(value[0], Mapping):
        return value[0]
    return {}


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    image_url: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Category":
        return cls(
            id=_text(row.get("id")),
            name=_text(row.get("name")),
            image_url=_opt_text(row.get("image_url")),
            is_active=_bool(row.get("is_active", True)),
        )


@dataclass(frozen=True)
class Product:
    """Catalog product as exposed to the storefront."""

    id: str
    name: str
    price: float
    stock: int = 0
    description: str = ""
    image_url: Optional[str] = None
    category_id: Optional[str] = None
    vendor_id: Optional[str] = None
    average_rating: Optional[float] = None
    review_count: int = 0
    created_at: Optional[datetime] = None

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Product":
        image = row.get("main_image_url") or row.get("image_url")
        if not image:
            images = row.get("images")
            if isinstance(images, list) and images:
                image = images[0]
        return cls(
            id=_text(row.get("id")),
            name=_text(row.get("name")) or "Unknown Product",
            price=_money(row.get("price")),
            stock=max(0, _int(row.get("stock_quantity", row.get("stock")))),
            description=_text(row.get("description")),
            image_url=_opt_text(image),
            category_id=_opt_text(row.get("category_id")),
            vendor_id=_opt_text(row.get("vendor_id")),
            average_rating=_opt_money(row.get("average_rating")),
            review_count=_int(row.get("review_count")),
            created_at=parse_timestamp(row.get("created_at")),
        )

    def to_snapshot(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "image_url": self.image_url,
        }


@dataclass(frozen=True)
class VendorProduct:
    """A product as its vendor manages it, approved or not."""

    id: str
    name: str
    price: float
    stock: int = 0
    unit: str = ""
    is_approved: bool = False
    image_url: Optional[str] = None
    main_image_url: Optional[str] = None

    @property
    def display_image(self) -> Optional[str]:
        return self.main_image_url or self.image_url

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "VendorProduct":
        return cls(
            id=_text(row.get("id")),
            name=_text(row.get("name")) or "Unknown Product",
            price=_money(row.get("price")),
            stock=max(0, _int(row.get("stock", row.get("stock_quantity")))),
            unit=_text(row.get("unit")),
            is_approved=_bool(row.get("is_approved")),
            image_url=_opt_text(row.get("image_url")),
            main_image_url=_opt_text(row.get("main_image_url")),
        )


@dataclass(frozen=True)
class ProductPhoto:
    """One object in a product's folder of the image bucket."""

    name: str
    path: str
    url: str


@dataclass(frozen=True)
class PlatformStats:
    users: int = 0
    products: int = 0
    vendors: int = 0
    orders: int = 0
    delivery_partners: int = 0


@dataclass(frozen=True)
class VendorAccount:
    """Vendor row as listed on the admin dashboard."""

    id: str
    business_name: str
    user_id: Optional[str] = None
    business_address: str = ""
    gstin: str = ""
    is_approved: bool = False
    is_active: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "VendorAccount":
        return cls(
            id=_text(row.get("id")),
            business_name=_text(row.get("business_name")) or "Unnamed vendor",
            user_id=_opt_text(row.get("user_id")),
            business_address=_text(row.get("business_address")),
            gstin=_text(row.get("gstin")),
            is_approved=_bool(row.get("is_approved")),
            is_active=_bool(row.get("is_active")),
        )


@dataclass(frozen=True)
class PartnerAccount:
    """Delivery partner row joined with the partner's profile."""

    id: str
    user_id: Optional[str] = None
    full_name: str = ""
    email: str = ""
    vehicle_type: str = ""
    vehicle_number: str = ""
    is_verified: bool = False
    is_active: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PartnerAccount":
        profile = _first_mapping(row.get("profiles"))
        return cls(
            id=_text(row.get("id")),
            user_id=_opt_text(row.get("user_id")),
            full_name=_text(profile.get("full_name") or row.get("full_name")),
            email=_text(profile.get("email") or row.get("email")),
            vehicle_type=_text(row.get("vehicle_type")),
            vehicle_number=_text(row.get("vehicle_number")),
            is_verified=_bool(row.get("is_verified")),
            is_active=_bool(row.get("is_active")),
        )


@dataclass(frozen=True)
class CartLine:
    """One product/quantity pair in the cart or a buy-now selection."""

    id: str
    product: Product
    quantity: int

    @property
    def line_total(self) -> float:
        return round(self.product.price * self.quantity, 2)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CartLine":
        product_row = _first_mapping(row.get("products") or row.get("product"))
        if not product_row and row.get("product_id"):
            product_row = {"id": row.get("product_id")}
        return cls(
            id=_text(row.get("id")),
            product=Product.from_row(product_row),
            quantity=max(1, _int(row.get("quantity"), 1)),
        )


@dataclass(frozen=True)
class Address:
    id: str
    full_name: str
    phone: str
    address_line1: str
    city: str
    state: str
    pincode: str
    address_line2: str = ""
    landmark: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_default: bool = False

    def one_line(self) -> str:
        parts = [
            self.address_line1,
            self.address_line2,
            self.landmark,
            self.city,
            self.state,
            self.pincode,
        ]
        return ", ".join(part for part in parts if part)

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Address":
        return cls(
            id=_text(row.get("id")),
            full_name=_text(row.get("full_name")),
            phone=_text(row.get("phone")),
            address_line1=_text(row.get("address_line1")),
            address_line2=_text(row.get("address_line2")),
            landmark=_text(row.get("landmark")),
            city=_text(row.get("city")),
            state=_text(row.get("state")),
            pincode=_text(row.get("pincode")),
            latitude=_opt_float(row.get("latitude")),
            longitude=_opt_float(row.get("longitude")),
            is_default=_bool(row.get("is_default")),
        )


@dataclass(frozen=True)
class Coupon:
    id: str
    code: str
    discount_type: str
    discount_value: float
    is_active: bool = True
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    usage_limit: Optional[int] = None
    usage_count: int = 0
    min_order_amount: Optional[float] = None
    max_discount: Optional[float] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Coupon":
        limit = row.get("usage_limit")
        return cls(
            id=_text(row.get("id")),
            code=_text(row.get("code")).upper(),
            discount_type=_text(row.get("discount_type")).lower() or "fixed",
            discount_value=_money(row.get("discount_value")),
            is_active=_bool(row.get("is_active", True)),
            valid_from=parse_timestamp(row.get("valid_from")),
            valid_until=parse_timestamp(row.get("valid_until")),
            usage_limit=_int(limit) if limit not in (None, "") else None,
            usage_count=_int(row.get("usage_count")),
            min_order_amount=_opt_money(row.get("min_order_amount")),
            max_discount=_opt_money(row.get("max_discount")),
        )


@dataclass(frozen=True)
class OrderItem:
    product_id: str
    name: str
    price: float
    quantity: int
    vendor_id: Optional[str] = None

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "OrderItem":
        product = _first_mapping(row.get("products"))
        return cls(
            product_id=_text(row.get("product_id") or product.get("id")),
            name=_text(row.get("snapshot_name") or product.get("name")) or "Unknown Product",
            price=_money(row.get("snapshot_price", product.get("price"))),
            quantity=max(1, _int(row.get("quantity"), 1)),
            vendor_id=_opt_text(product.get("vendor_id")),
        )


@dataclass(frozen=True)
class Recipient:
    """Drop details when an order is placed for someone else."""

    name: str
    phone: str
    address: str
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Order:
    """Customer order joined with its delivery-request status when available."""

    id: str
    user_id: str
    subtotal: float
    discount_amount: float
    final_amount: float
    delivery_status: str = "pending"
    payment_status: str = "pending"
    payment_id: Optional[str] = None
    coupon_code: Optional[str] = None
    address_id: Optional[str] = None
    review_status: Optional[str] = None
    request_status: Optional[str] = None
    delivery_partner_id: Optional[str] = None
    recipient: Optional[Recipient] = None
    items: Tuple[OrderItem, ...] = ()
    created_at: Optional[datetime] = None

    @property
    def short_id(self) -> str:
        return self.id[:8]

    @property
    def is_cod(self) -> bool:
        return (self.payment_id or "").upper() == "COD"

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Order":
        request = _first_mapping(row.get("delivery_requests"))
        recipient = None
        if _bool(row.get("is_order_for_someone_else")):
            lat = _opt_float(row.get("alt_drop_latitude"))
            lon = _opt_float(row.get("alt_drop_longitude"))
            if lat is not None and lon is not None:
                recipient = Recipient(
                    name=_text(row.get("recipient_name")),
                    phone=_text(row.get("recipient_phone")),
                    address=_text(row.get("recipient_address")),
                    latitude=lat,
                    longitude=lon,
                )
        raw_items = row.get("order_items") or []
        items = tuple(
            OrderItem.from_row(item) for item in raw_items if isinstance(item, Mapping)
        )
        return cls(
            id=_text(row.get("id")),
            user_id=_text(row.get("user_id")),
            subtotal=_money(row.get("subtotal")),
            discount_amount=_money(row.get("discount_amount")),
            final_amount=_money(row.get("final_amount")),
            delivery_status=_text(row.get("delivery_status")).lower() or "pending",
            payment_status=_text(row.get("payment_status")).lower() or "pending",
            payment_id=_opt_text(row.get("payment_id")),
            coupon_code=_opt_text(row.get("coupon_code")),
            address_id=_opt_text(row.get("address_id")),
            review_status=_opt_text(row.get("review_status")),
            request_status=_opt_text(request.get("status")),
            delivery_partner_id=_opt_text(row.get("delivery_partner_id")),
            recipient=recipient,
            items=items,
            created_at=parse_timestamp(row.get("created_at")),
        )


@dataclass(frozen=True)
class DeliveryRequest:
    """Vendor/partner-side fulfilment record, one per order."""

    id: str
    order_id: str
    status: str
    vendor_id: Optional[str] = None
    assigned_partner_id: Optional[str] = None
    order_status: Optional[str] = None
    final_amount: Optional[float] = None
    payment_status: Optional[str] = None
    payment_id: Optional[str] = None
    drop_latitude: Optional[float] = None
    drop_longitude: Optional[float] = None
    created_at: Optional[datetime] = None
    picked_up_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    @property
    def short_order_id(self) -> str:
        return self.order_id[:8]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "DeliveryRequest":
        order = _first_mapping(row.get("orders"))
        lat = _opt_float(order.get("alt_drop_latitude", row.get("drop_latitude")))
        lon = _opt_float(order.get("alt_drop_longitude", row.get("drop_longitude")))
        return cls(
            id=_text(row.get("id")),
            order_id=_text(row.get("order_id")),
            status=_text(row.get("status")).lower() or "pending",
            vendor_id=_opt_text(row.get("vendor_id")),
            assigned_partner_id=_opt_text(row.get("assigned_partner_id")),
            order_status=_opt_text(order.get("delivery_status")),
            final_amount=_opt_money(order.get("final_amount")),
            payment_status=_opt_text(order.get("payment_status")),
            payment_id=_opt_text(order.get("payment_id")),
            drop_latitude=lat,
            drop_longitude=lon,
            created_at=parse_timestamp(row.get("created_at")),
            picked_up_at=parse_timestamp(row.get("picked_up_at")),
            delivered_at=parse_timestamp(row.get("delivered_at")),
        )


@dataclass(frozen=True)
class Review:
    id: str
    product_id: str
    user_id: str
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None
    author_name: Optional[str] = None
    is_verified_purchase: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Review":
        profile = _first_mapping(row.get("profiles"))
        return cls(
            id=_text(row.get("id")),
            product_id=_text(row.get("product_id")),
            user_id=_text(row.get("user_id")),
            rating=min(5, max(1, _int(row.get("rating"), 1))),
            title=_opt_text(row.get("title")),
            comment=_opt_text(row.get("comment")),
            author_name=_opt_text(profile.get("full_name")),
            is_verified_purchase=_bool(row.get("is_verified_purchase")),
            created_at=parse_timestamp(row.get("created_at")),
        )


@dataclass(frozen=True)
class RatingStats:
    average_rating: Optional[float]
    review_count: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "RatingStats":
        return cls(
            average_rating=_opt_money(row.get("average_rating")),
            review_count=_int(row.get("review_count")),
        )


@dataclass(frozen=True)
class PaymentOrder:
    """Gateway order created server-side for an online checkout."""

    id: str
    amount: int
    currency: str
    key: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PaymentOrder":
        return cls(
            id=_text(row.get("id")),
            amount=_int(row.get("amount")),
            currency=_text(row.get("currency")) or "INR",
            key=_text(row.get("key")),
        )


@dataclass(frozen=True)
class Session:
    access_token: str
    user_id: str
    email: str = ""
    full_name: str = ""
    refresh_token: Optional[str] = None
    roles: Tuple[str, ...] = ()

    def has_role(self, role: str) -> bool:
        return role in self.roles

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Session":
        user = _first_mapping(row.get("user"))
        metadata = _first_mapping(user.get("user_metadata"))
        roles = row.get("roles") or ()
        return cls(
            access_token=_text(row.get("access_token")),
            refresh_token=_opt_text(row.get("refresh_token")),
            user_id=_text(user.get("id") or row.get("user_id")),
            email=_text(user.get("email") or row.get("email")),
            full_name=_text(metadata.get("full_name") or row.get("full_name")),
            roles=tuple(str(role) for role in roles if role),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "user_id": self.user_id,
            "email": self.email,
            "full_name": self.full_name,
            "roles": list(self.roles),
        }


@dataclass(frozen=True)
class PincodeInfo:
    pincode: str
    city: str
    state: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    district: Optional[str] = None
    area: Optional[str] = None


@dataclass(frozen=True)
class ReverseGeocodeResult:
    display_name: str
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None


@dataclass
class AddressDraft:
    """Editable address form payload before it is persisted."""

    full_name: str = ""
    phone: str = ""
    address_line1: str = ""
    address_line2: str = ""
    landmark: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_default: bool = False
    extras: Dict[str, Any] = field(default_factory=dict)

    def to_row(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "full_name": self.full_name.strip(),
            "phone": self.phone.strip(),
            "address_line1": self.address_line1.strip(),
            "address_line2": self.address_line2.strip() or None,
            "landmark": self.landmark.strip() or None,
            "city": self.city.strip(),
            "state": self.state.strip(),
            "pincode": self.pincode.strip(),
            "is_default": bool(self.is_default),
        }
        if self.latitude is not None and self.longitude is not None:
            row["latitude"] = self.latitude
            row["longitude"] = self.longitude
        row.update(self.extras)
        return row

