from __future__ import annotations

import copy
import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple
from uuid import uuid4

from storefront.domain.entities import (
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
from storefront.domain.geo import haversine_km
from storefront.domain.ports import (
    AddressPort,
    AdminPort,
    AuthPort,
    CartPort,
    CatalogPort,
    CouponPort,
    DeliveryPort,
    FunctionsPort,
    GeocodingPort,
    OrderPort,
    ProductImagePort,
    ReviewPort,
    VendorPort,
    WishlistPort,
)
from storefront.domain.pricing import to_paise

from .api_errors import ApiClientError
from .postgrest import NO_ROWS_CODE

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)
MOCK_OTP_CODE = "123456"
MOCK_STORAGE_URL = "https://mock.local/storage/v1/object/public/product-images"


def _client_error(ctx: str, message: str, *, status: int = 400, code: Optional[str] = None) -> ApiClientError:
    """Shape mock failures like the backend's ``{code, message}`` payloads."""
    return ApiClientError(
        f"{ctx}: {message} (HTTP {status})",
        status=status,
        code=code,
        payload={"code": code, "message": message},
        context=ctx,
    )


def _not_found(table: str, key: str) -> ApiClientError:
    return _client_error(f"single[{table}]", f"no row for {key}", status=406, code=NO_ROWS_CODE)


class InMemoryBackend(
    CatalogPort,
    CartPort,
    WishlistPort,
    AddressPort,
    CouponPort,
    OrderPort,
    ReviewPort,
    VendorPort,
    ProductImagePort,
    AdminPort,
    DeliveryPort,
    FunctionsPort,
    AuthPort,
    GeocodingPort,
):
    """Offline substitute for the managed backend with deterministic responses.

    Stored-procedure behaviour (partner assignment, payment marking, soft
    deletes) is simulated just enough for the demo runtime and tests.
    """

    def __init__(self) -> None:
        self._clock = itertools.count(1)
        self.categories: Dict[str, Dict[str, Any]] = {}
        self.products: Dict[str, Dict[str, Any]] = {}
        self.cart: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.wishlist: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.addresses: Dict[str, Dict[str, Any]] = {}
        self.coupons: Dict[str, Dict[str, Any]] = {}
        self.orders: Dict[str, Dict[str, Any]] = {}
        self.order_items: List[Dict[str, Any]] = []
        self.requests: Dict[str, Dict[str, Any]] = {}
        self.reviews: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.vendors: Dict[str, Dict[str, Any]] = {}
        self.partners: Dict[str, Dict[str, Any]] = {}
        self.images: Dict[str, Dict[str, Any]] = {}
        self.users: Dict[str, Dict[str, Any]] = {}
        self.roles: Dict[str, List[str]] = {}
        self.otp_codes: Dict[str, str] = {}
        self.sent_emails: List[Dict[str, Any]] = []
        self.tracking: List[Dict[str, Any]] = []
        self.responses: List[Dict[str, Any]] = []
        self.pincodes: Dict[str, PincodeInfo] = {}
        self.user_deleted: Set[str] = set()
        self.vendor_deleted: Set[str] = set()
        self.partner_deleted: Set[str] = set()
        self.access_token: Optional[str] = None
        self._payment_seq = itertools.count(1)

    def client_view(self) -> "InMemoryBackend":
        """Same tables and counters, but a sign-in of its own; one per browser."""
        view = copy.copy(self)
        view.access_token = None
        return view

    # ------------------------------------------------------------------
    # Seeding helpers
    # ------------------------------------------------------------------
    def _now(self) -> str:
        return (_EPOCH + timedelta(seconds=next(self._clock))).isoformat()

    def add_category(self, name: str, *, category_id: Optional[str] = None) -> str:
        cid = category_id or f"cat-{len(self.categories) + 1}"
        self.categories[cid] = {"id": cid, "name": name, "is_active": True}
        return cid

    def add_product(
        self,
        name: str,
        price: float,
        *,
        product_id: Optional[str] = None,
        stock: int = 10,
        category_id: Optional[str] = None,
        vendor_id: Optional[str] = None,
        description: str = "",
        image_url: Optional[str] = None,
    ) -> str:
        pid = product_id or f"prod-{len(self.products) + 1}"
        self.products[pid] = {
            "id": pid,
            "name": name,
            "price": price,
            "stock_quantity": stock,
            "category_id": category_id,
            "vendor_id": vendor_id,
            "description": description,
            "image_url": image_url,
            "average_rating": None,
            "review_count": 0,
            "is_active": True,
            "is_approved": True,
            "created_at": self._now(),
        }
        return pid

    def add_coupon(self, code: str, discount_type: str, value: float, **extra: Any) -> str:
        coupon_id = f"coupon-{len(self.coupons) + 1}"
        row = {
            "id": coupon_id,
            "code": code.upper(),
            "discount_type": discount_type,
            "discount_value": value,
            "is_active": True,
            "usage_count": 0,
        }
        row.update(extra)
        self.coupons[row["code"]] = row
        return coupon_id

    def add_user(
        self,
        email: str,
        password: str,
        *,
        full_name: str = "",
        roles: Sequence[str] = (),
        user_id: Optional[str] = None,
    ) -> str:
        uid = user_id or f"user-{len(self.users) + 1}"
        self.users[email.lower()] = {
            "id": uid,
            "email": email.lower(),
            "password": password,
            "full_name": full_name,
        }
        self.roles[uid] = list(roles)
        return uid

    def add_vendor(
        self,
        user_id: str,
        business_name: str,
        *,
        vendor_id: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> str:
        vid = vendor_id or f"vendor-{len(self.vendors) + 1}"
        self.vendors[vid] = {
            "id": vid,
            "user_id": user_id,
            "business_name": business_name,
            "latitude": latitude,
            "longitude": longitude,
            "is_approved": True,
            "is_active": True,
            "created_at": self._now(),
        }
        return vid

    def add_partner(
        self,
        user_id: str,
        *,
        partner_id: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        is_available: bool = True,
    ) -> str:
        pid = partner_id or f"partner-{len(self.partners) + 1}"
        self.partners[pid] = {
            "id": pid,
            "user_id": user_id,
            "latitude": latitude,
            "longitude": longitude,
            "is_available": is_available,
            "is_verified": True,
            "is_active": True,
            "created_at": self._now(),
        }
        return pid

    def seed_demo(self) -> "InMemoryBackend":
        """Populate a small catalog plus one customer, vendor and partner."""
        customer = self.add_user("customer@example.com", "password", full_name="Demo Customer")
        vendor_user = self.add_user(
            "vendor@example.com", "password", full_name="Demo Vendor", roles=("vendor",)
        )
        partner_user = self.add_user(
            "rider@example.com", "password", full_name="Demo Rider", roles=("delivery",)
        )
        vendor = self.add_vendor(vendor_user, "Dal Lake Grocers", latitude=34.0837, longitude=74.7973)
        self.add_partner(partner_user, latitude=34.0900, longitude=74.8000)

        fruits = self.add_category("Fruits & Vegetables")
        dairy = self.add_category("Dairy & Bakery")
        staples = self.add_category("Staples")
        self.add_product("Kashmiri Apples (1 kg)", 180.0, category_id=fruits, vendor_id=vendor, stock=40)
        self.add_product("Fresh Spinach (250 g)", 30.0, category_id=fruits, vendor_id=vendor, stock=25)
        self.add_product("Toned Milk (1 L)", 56.0, category_id=dairy, vendor_id=vendor, stock=60)
        self.add_product("Whole Wheat Bread", 45.0, category_id=dairy, vendor_id=vendor, stock=0)
        self.add_product("Basmati Rice (5 kg)", 620.0, category_id=staples, vendor_id=vendor, stock=12)
        self.add_coupon("WELCOME10", "percentage", 10, max_discount=100, min_order_amount=199)
        self.add_coupon("FLAT50", "fixed", 50, min_order_amount=300)

        self.pincodes["190001"] = PincodeInfo(
            pincode="190001",
            city="Srinagar",
            state="Jammu and Kashmir",
            district="Srinagar",
            area="GPO Srinagar",
            latitude=34.0837,
            longitude=74.7973,
        )
        self.create_address(
            customer,
            {
                "full_name": "Demo Customer",
                "phone": "9876543210",
                "address_line1": "12 Residency Road",
                "city": "Srinagar",
                "state": "Jammu and Kashmir",
                "pincode": "190001",
                "latitude": 34.0750,
                "longitude": 74.8100,
                "is_default": True,
            },
        )
        return self

    # ------------------------------------------------------------------
    # CatalogPort
    # ------------------------------------------------------------------
    def _product_row(self, product_id: str) -> Dict[str, Any]:
        row = self.products.get(product_id)
        if row is None:
            raise _not_found("products", product_id)
        return row

    def list_products(
        self,
        *,
        category_id: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = "newest",
        limit: Optional[int] = None,
    ) -> List[Product]:
        rows = [row for row in self.products.values() if row["is_active"] and row["is_approved"]]
        if category_id:
            rows = [row for row in rows if row.get("category_id") == category_id]
        term = (search or "").strip().lower()
        if term:
            rows = [row for row in rows if term in row["name"].lower()]
        if sort == "price_low":
            rows.sort(key=lambda row: row["price"])
        elif sort == "price_high":
            rows.sort(key=lambda row: row["price"], reverse=True)
        elif sort == "rating":
            rows.sort(key=lambda row: row.get("average_rating") or -1.0, reverse=True)
        elif sort == "popularity":
            rows.sort(key=lambda row: row.get("review_count") or 0, reverse=True)
        else:
            rows.sort(key=lambda row: row["created_at"], reverse=True)
        if limit is not None:
            rows = rows[:limit]
        return [Product.from_row(row) for row in rows]

    def get_product(self, product_id: str) -> Product:
        return Product.from_row(self._product_row(product_id))

    def list_categories(self) -> List[Category]:
        rows = sorted(
            (row for row in self.categories.values() if row["is_active"]),
            key=lambda row: row["name"],
        )
        return [Category.from_row(row) for row in rows]

    def best_sellers(self, limit: int = 8) -> List[Product]:
        sold: Dict[str, int] = {}
        for item in self.order_items:
            order = self.orders.get(item["order_id"], {})
            if order.get("payment_status") != "completed":
                continue
            sold[item["product_id"]] = sold.get(item["product_id"], 0) + int(item["quantity"])
        ranked = sorted(sold.items(), key=lambda pair: pair[1], reverse=True)[:limit]
        return [
            Product.from_row(self.products[pid])
            for pid, _ in ranked
            if pid in self.products and self.products[pid]["is_active"]
        ]

    def rating_stats(self, product_id: str) -> RatingStats:
        return RatingStats.from_row(self.products.get(product_id, {}))

    # ------------------------------------------------------------------
    # CartPort
    # ------------------------------------------------------------------
    def list_cart(self, user_id: str) -> List[CartLine]:
        rows = sorted(
            (row for (uid, _), row in self.cart.items() if uid == user_id),
            key=lambda row: row["created_at"],
        )
        return [
            CartLine.from_row({**row, "products": self.products.get(row["product_id"])})
            for row in rows
        ]

    def cart_quantity(self, user_id: str, product_id: str) -> int:
        row = self.cart.get((user_id, product_id))
        return int(row["quantity"]) if row else 0

    def add_to_cart(self, user_id: str, product_id: str, quantity: int = 1) -> None:
        self._product_row(product_id)
        key = (user_id, product_id)
        if key in self.cart:
            self.cart[key]["quantity"] += quantity
            return
        self.cart[key] = {
            "id": uuid4().hex,
            "user_id": user_id,
            "product_id": product_id,
            "quantity": quantity,
            "created_at": self._now(),
        }

    def set_cart_quantity(self, user_id: str, product_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_from_cart(user_id, product_id)
            return
        row = self.cart.get((user_id, product_id))
        if row is not None:
            row["quantity"] = quantity

    def remove_from_cart(self, user_id: str, product_id: str) -> None:
        self.cart.pop((user_id, product_id), None)

    def clear_cart(self, user_id: str) -> None:
        for key in [key for key in self.cart if key[0] == user_id]:
            del self.cart[key]

    # ------------------------------------------------------------------
    # WishlistPort
    # ------------------------------------------------------------------
    def list_wishlist(self, user_id: str) -> List[Product]:
        rows = sorted(
            (row for (uid, _), row in self.wishlist.items() if uid == user_id),
            key=lambda row: row["created_at"],
            reverse=True,
        )
        return [
            Product.from_row(self.products[row["product_id"]])
            for row in rows
            if row["product_id"] in self.products
        ]

    def wishlist_contains(self, user_id: str, product_id: str) -> bool:
        return (user_id, product_id) in self.wishlist

    def toggle_wishlist(self, user_id: str, product_id: str) -> bool:
        key = (user_id, product_id)
        if key in self.wishlist:
            del self.wishlist[key]
            return False
        self.wishlist[key] = {"product_id": product_id, "created_at": self._now()}
        return True

    # ------------------------------------------------------------------
    # AddressPort
    # ------------------------------------------------------------------
    def list_addresses(self, user_id: str) -> List[Address]:
        rows = [row for row in self.addresses.values() if row["user_id"] == user_id]
        rows.sort(key=lambda row: (not row.get("is_default"), _desc(row["created_at"])))
        return [Address.from_row(row) for row in rows]

    def _clear_default(self, user_id: str) -> None:
        for row in self.addresses.values():
            if row["user_id"] == user_id:
                row["is_default"] = False

    def create_address(self, user_id: str, row: Mapping[str, Any]) -> Address:
        if row.get("is_default"):
            self._clear_default(user_id)
        address_id = f"addr-{len(self.addresses) + 1}"
        stored = {**dict(row), "id": address_id, "user_id": user_id, "created_at": self._now()}
        self.addresses[address_id] = stored
        return Address.from_row(stored)

    def update_address(self, user_id: str, address_id: str, row: Mapping[str, Any]) -> Address:
        stored = self.addresses.get(address_id)
        if stored is None or stored["user_id"] != user_id:
            raise _not_found("addresses", address_id)
        if row.get("is_default"):
            self._clear_default(user_id)
        stored.update({k: v for k, v in row.items() if k not in ("id", "user_id")})
        return Address.from_row(stored)

    def delete_address(self, user_id: str, address_id: str) -> None:
        stored = self.addresses.get(address_id)
        if stored is not None and stored["user_id"] == user_id:
            del self.addresses[address_id]

    def set_default_address(self, user_id: str, address_id: str) -> None:
        stored = self.addresses.get(address_id)
        if stored is None or stored["user_id"] != user_id:
            raise _not_found("addresses", address_id)
        self._clear_default(user_id)
        stored["is_default"] = True

    # ------------------------------------------------------------------
    # CouponPort
    # ------------------------------------------------------------------
    def find_coupon(self, code: str) -> Optional[Coupon]:
        row = self.coupons.get(code.strip().upper())
        if row is None or not row.get("is_active", True):
            return None
        return Coupon.from_row(row)

    def increment_coupon_usage(self, coupon: Coupon) -> None:
        row = self.coupons.get(coupon.code)
        if row is not None:
            row["usage_count"] = int(row.get("usage_count") or 0) + 1

    # ------------------------------------------------------------------
    # OrderPort
    # ------------------------------------------------------------------
    def _order_row(self, order_id: str) -> Dict[str, Any]:
        order = self.orders.get(order_id)
        if order is None:
            raise _not_found("orders", order_id)
        items = []
        for item in self.order_items:
            if item["order_id"] != order_id:
                continue
            product = self.products.get(item["product_id"], {})
            items.append({**item, "products": {"vendor_id": product.get("vendor_id")}})
        request = next(
            (req for req in self.requests.values() if req["order_id"] == order_id), None
        )
        return {
            **order,
            "order_items": items,
            "delivery_requests": [{"status": request["status"]}] if request else [],
        }

    def create_order(self, row: Mapping[str, Any]) -> Order:
        order_id = uuid4().hex
        stored = {**dict(row), "id": order_id, "created_at": self._now()}
        stored.setdefault("delivery_status", "pending")
        stored.setdefault("payment_status", "pending")
        self.orders[order_id] = stored
        return Order.from_row(stored)

    def insert_order_items(self, order_id: str, items: Sequence[Mapping[str, Any]]) -> None:
        for item in items:
            self.order_items.append({**dict(item), "id": uuid4().hex, "order_id": order_id})

    def create_delivery_request(self, order_id: str, vendor_id: str, user_id: str) -> None:
        if any(req["order_id"] == order_id for req in self.requests.values()):
            raise _client_error(
                "insert[delivery_requests]",
                "duplicate key value violates unique constraint",
                status=409,
                code="23505",
            )
        request_id = uuid4().hex
        self.requests[request_id] = {
            "id": request_id,
            "order_id": order_id,
            "vendor_id": vendor_id,
            "user_id": user_id,
            "status": "pending",
            "assigned_partner_id": None,
            "created_at": self._now(),
        }

    def list_orders(self, user_id: str) -> List[Order]:
        rows = [
            self._order_row(order_id)
            for order_id, order in self.orders.items()
            if order.get("user_id") == user_id and order_id not in self.user_deleted
        ]
        rows.sort(key=lambda row: row["created_at"], reverse=True)
        return [Order.from_row(row) for row in rows]

    def get_order(self, order_id: str) -> Order:
        return Order.from_row(self._order_row(order_id))

    def set_review_status(self, order_id: str, status: str) -> None:
        if order_id not in self.orders:
            raise _not_found("orders", order_id)
        self.orders[order_id]["review_status"] = status

    def user_delete_order(self, order_id: str) -> None:
        if order_id not in self.orders:
            raise _not_found("orders", order_id)
        self.user_deleted.add(order_id)

    # ------------------------------------------------------------------
    # ReviewPort
    # ------------------------------------------------------------------
    def _refresh_rating(self, product_id: str) -> None:
        product = self.products.get(product_id)
        if product is None:
            return
        ratings = [
            int(row["rating"])
            for (_, pid), row in self.reviews.items()
            if pid == product_id and row.get("is_approved", True)
        ]
        product["review_count"] = len(ratings)
        product["average_rating"] = round(sum(ratings) / len(ratings), 2) if ratings else None

    def list_reviews(self, product_id: str) -> List[Review]:
        rows = [
            row
            for (_, pid), row in self.reviews.items()
            if pid == product_id and row.get("is_approved", True)
        ]
        rows.sort(key=lambda row: row["created_at"], reverse=True)
        names = {user["id"]: user.get("full_name") for user in self.users.values()}
        return [
            Review.from_row({**row, "profiles": {"full_name": names.get(row["user_id"])}})
            for row in rows
        ]

    def own_review(self, user_id: str, product_id: str) -> Optional[Review]:
        row = self.reviews.get((user_id, product_id))
        return Review.from_row(row) if row else None

    def has_purchased(self, user_id: str, product_id: str) -> bool:
        for item in self.order_items:
            if item["product_id"] != product_id:
                continue
            order = self.orders.get(item["order_id"], {})
            if order.get("user_id") == user_id and order.get("delivery_status") == "delivered":
                return True
        return False

    def upsert_review(self, row: Mapping[str, Any]) -> None:
        key = (str(row["user_id"]), str(row["product_id"]))
        existing = self.reviews.get(key)
        stored = {
            "id": existing["id"] if existing else uuid4().hex,
            "created_at": existing["created_at"] if existing else self._now(),
            "is_approved": True,
            **dict(row),
        }
        self.reviews[key] = stored
        self._refresh_rating(key[1])

    def insert_reviews(self, rows: Sequence[Mapping[str, Any]]) -> None:
        for row in rows:
            key = (str(row["user_id"]), str(row["product_id"]))
            if key in self.reviews:
                raise _client_error(
                    "insert[product_reviews]",
                    "duplicate key value violates unique constraint",
                    status=409,
                    code="23505",
                )
        for row in rows:
            self.upsert_review(row)

    # ------------------------------------------------------------------
    # VendorPort
    # ------------------------------------------------------------------
    def _request_row(self, request: Mapping[str, Any]) -> Dict[str, Any]:
        order = self.orders.get(request["order_id"], {})
        return {
            **dict(request),
            "orders": {
                "delivery_status": order.get("delivery_status"),
                "final_amount": order.get("final_amount"),
                "payment_status": order.get("payment_status"),
                "payment_id": order.get("payment_id"),
                "alt_drop_latitude": order.get("alt_drop_latitude"),
                "alt_drop_longitude": order.get("alt_drop_longitude"),
            },
        }

    def vendor_id_for(self, user_id: str) -> Optional[str]:
        for vendor in self.vendors.values():
            if vendor["user_id"] == user_id:
                return vendor["id"]
        return None

    def vendor_requests(self, vendor_id: str) -> List[DeliveryRequest]:
        rows = [
            self._request_row(req)
            for req in self.requests.values()
            if req["vendor_id"] == vendor_id and req["order_id"] not in self.vendor_deleted
        ]
        rows.sort(key=lambda row: row["created_at"], reverse=True)
        return [DeliveryRequest.from_row(row) for row in rows]

    def _request_for_order(self, order_id: str) -> Dict[str, Any]:
        for req in self.requests.values():
            if req["order_id"] == order_id:
                return req
        raise _not_found("delivery_requests", order_id)

    def assign_nearest_partner(self, order_id: str) -> Any:
        request = self._request_for_order(order_id)
        vendor = self.vendors.get(request["vendor_id"], {})
        origin = None
        if vendor.get("latitude") is not None and vendor.get("longitude") is not None:
            origin = (vendor["latitude"], vendor["longitude"])

        candidates = [
            p for p in self.partners.values() if p.get("is_available", True) and p.get("is_active", True)
        ]
        if not candidates:
            raise _client_error(
                "rpc[assign_nearest_partner]",
                "No available delivery partners",
                code="P0001",
            )

        def distance(partner: Mapping[str, Any]) -> float:
            if origin is None or partner.get("latitude") is None or partner.get("longitude") is None:
                return float("inf")
            return haversine_km(origin, (partner["latitude"], partner["longitude"]))

        partner = min(candidates, key=distance)
        request["assigned_partner_id"] = partner["id"]
        request["status"] = "assigned"
        order = self.orders[order_id]
        order["delivery_status"] = "assigned"
        order["delivery_partner_id"] = partner["user_id"]
        return {"partner_id": partner["id"]}

    def reject_order(self, order_id: str) -> None:
        request = self._request_for_order(order_id)
        request["status"] = "rejected"
        self.orders[order_id]["delivery_status"] = "cancelled"

    def vendor_delete_order(self, order_id: str) -> None:
        self.vendor_deleted.add(order_id)

    def create_product(self, row: Mapping[str, Any]) -> Any:
        vendor_id = self.vendor_id_for(self._current_user_id() or "")
        return self.add_product(
            str(row.get("name") or ""),
            float(row.get("price") or 0.0),
            stock=int(row.get("stock") or 0),
            category_id=row.get("category_id"),
            vendor_id=vendor_id,
            description=str(row.get("description") or ""),
            image_url=row.get("image_url"),
        )

    def _own_product(self, product_id: str, vendor_id: str) -> Optional[Dict[str, Any]]:
        row = self.products.get(product_id)
        if row is None or row.get("vendor_id") != vendor_id:
            return None
        return row

    def vendor_products(self, vendor_id: str) -> List[VendorProduct]:
        rows = [
            row
            for row in self.products.values()
            if row.get("vendor_id") == vendor_id and row["is_active"]
        ]
        rows.sort(key=lambda row: row["created_at"], reverse=True)
        return [VendorProduct.from_row(row) for row in rows]

    def update_stock_price(self, product_id: str, vendor_id: str, stock: int, price: float) -> Dict[str, Any]:
        row = self._own_product(product_id, vendor_id)
        if row is None:
            return {"success": False, "error": "Product not found"}
        row["stock_quantity"] = stock
        row["price"] = price
        return {"success": True}

    def deactivate_product(self, product_id: str, vendor_id: str) -> None:
        row = self._own_product(product_id, vendor_id)
        if row is not None:
            row["is_active"] = False

    def set_main_image(self, product_id: str, vendor_id: str, url: str) -> None:
        row = self._own_product(product_id, vendor_id)
        if row is not None:
            row["main_image_url"] = url

    # ------------------------------------------------------------------
    # ProductImagePort
    # ------------------------------------------------------------------
    def _image_url(self, path: str) -> str:
        return f"{MOCK_STORAGE_URL}/{path}"

    def list_images(self, folder: str) -> List[ProductPhoto]:
        prefix = f"{folder}/"
        entries = [(path, meta) for path, meta in self.images.items() if path.startswith(prefix)]
        entries.sort(key=lambda entry: entry[1]["created_at"], reverse=True)
        return [
            ProductPhoto(name=path[len(prefix):], path=path, url=self._image_url(path))
            for path, _ in entries
        ]

    def upload_image(self, path: str, content: bytes, content_type: str) -> str:
        if path in self.images:
            raise _client_error("storage[upload product-images]", "The resource already exists", status=409)
        self.images[path] = {
            "content_type": content_type,
            "size": len(content),
            "created_at": self._now(),
        }
        return self._image_url(path)

    def remove_images(self, paths: Sequence[str]) -> None:
        for path in paths:
            self.images.pop(path, None)

    # ------------------------------------------------------------------
    # AdminPort
    # ------------------------------------------------------------------
    def platform_stats(self) -> PlatformStats:
        return PlatformStats(
            users=len(self.users),
            products=len(self.products),
            vendors=len(self.vendors),
            orders=len(self.orders),
            delivery_partners=len(self.partners),
        )

    def list_vendor_accounts(self) -> List[VendorAccount]:
        rows = sorted(self.vendors.values(), key=lambda row: row["created_at"], reverse=True)
        return [VendorAccount.from_row(row) for row in rows]

    def update_vendor_flags(self, vendor_id: str, values: Mapping[str, bool]) -> None:
        row = self.vendors.get(vendor_id)
        if row is not None:
            row.update({key: bool(value) for key, value in values.items()})

    def _user_by_id(self, user_id: str) -> Dict[str, Any]:
        return next((user for user in self.users.values() if user["id"] == user_id), {})

    def list_partner_accounts(self) -> List[PartnerAccount]:
        rows = sorted(self.partners.values(), key=lambda row: row["created_at"], reverse=True)
        accounts = []
        for row in rows:
            user = self._user_by_id(row["user_id"])
            profile = {"full_name": user.get("full_name"), "email": user.get("email")}
            accounts.append(PartnerAccount.from_row({**row, "profiles": profile}))
        return accounts

    def update_partner_flags(self, partner_id: str, values: Mapping[str, bool]) -> None:
        row = self.partners.get(partner_id)
        if row is not None:
            row.update({key: bool(value) for key, value in values.items()})

    # ------------------------------------------------------------------
    # DeliveryPort
    # ------------------------------------------------------------------
    def partner_id_for(self, user_id: str) -> Optional[str]:
        for partner in self.partners.values():
            if partner["user_id"] == user_id:
                return partner["id"]
        return None

    def partner_requests(self, partner_id: str) -> List[DeliveryRequest]:
        rows = [
            self._request_row(req)
            for req in self.requests.values()
            if req.get("assigned_partner_id") == partner_id
            and req["order_id"] not in self.partner_deleted
        ]
        rows.sort(key=lambda row: row["created_at"], reverse=True)
        return [DeliveryRequest.from_row(row) for row in rows]

    def record_response(self, request_id: str, partner_id: str, action: str) -> None:
        self.responses.append({"request_id": request_id, "partner_id": partner_id, "action": action})

    def update_request_status(
        self,
        request_id: str,
        status: str,
        *,
        order_id: Optional[str] = None,
        order_status: Optional[str] = None,
        timestamps: Optional[Mapping[str, str]] = None,
    ) -> None:
        request = self.requests.get(request_id)
        if request is None:
            raise _not_found("delivery_requests", request_id)
        request["status"] = status
        request.update(timestamps or {})
        if order_id and order_status and order_id in self.orders:
            self.orders[order_id]["delivery_status"] = order_status

    def mark_payment_received(self, order_id: str) -> Dict[str, Any]:
        order = self.orders.get(order_id)
        if order is None:
            raise _not_found("orders", order_id)
        order["payment_status"] = "completed"
        return {
            "order_id": order_id,
            "payment_status": "completed",
            "payment_id": order.get("payment_id") or "COD",
        }

    def update_location(self, partner_id: str, latitude: float, longitude: float) -> None:
        partner = self.partners.get(partner_id)
        if partner is None:
            raise _not_found("delivery_partners", partner_id)
        partner["latitude"] = latitude
        partner["longitude"] = longitude
        for req in self.requests.values():
            if req.get("assigned_partner_id") == partner_id and req["status"] in (
                "accepted",
                "picked_up",
                "out_for_delivery",
            ):
                self.tracking.append(
                    {
                        "order_id": req["order_id"],
                        "partner_id": partner_id,
                        "latitude": latitude,
                        "longitude": longitude,
                    }
                )

    def delivery_delete_order(self, order_id: str) -> None:
        self.partner_deleted.add(order_id)

    # ------------------------------------------------------------------
    # FunctionsPort
    # ------------------------------------------------------------------
    def create_payment_order(self, amount: float, *, currency: str = "INR") -> PaymentOrder:
        if amount <= 0:
            raise _client_error(
                "function[create-razorpay-order]",
                "Amount is required and must be greater than 0",
            )
        return PaymentOrder(
            id=f"order_mock_{next(self._payment_seq)}",
            amount=to_paise(amount),
            currency=currency,
            key="rzp_test_mockkey",
        )

    def send_otp(self, email: str, full_name: str = "") -> None:
        self.otp_codes[email.strip().lower()] = MOCK_OTP_CODE

    def verify_otp_signup(
        self,
        email: str,
        code: str,
        password: str,
        *,
        full_name: str = "",
        phone: Optional[str] = None,
    ) -> Dict[str, Any]:
        key = email.strip().lower()
        if self.otp_codes.get(key) != code:
            raise _client_error("function[verify-otp-signup]", "Invalid or expired code")
        del self.otp_codes[key]
        existing = self.users.get(key)
        if existing:
            existing["password"] = password
            if full_name:
                existing["full_name"] = full_name
            return {"ok": True, "userId": existing["id"]}
        user_id = self.add_user(key, password, full_name=full_name or "User")
        return {"ok": True, "userId": user_id}

    def send_order_email(
        self,
        to: str,
        subject: str,
        html: str,
        *,
        kind: str = "order_confirmation",
        order_id: Optional[str] = None,
    ) -> None:
        self.sent_emails.append(
            {"to": to, "subject": subject, "html": html, "type": kind, "orderId": order_id}
        )

    def create_vendor(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        email = str(payload.get("email") or "")
        user_id = self.add_user(email, uuid4().hex[:12], roles=("vendor",))
        vendor_id = self.add_vendor(user_id, str(payload.get("business_name") or ""))
        return {
            "ok": True,
            "userId": user_id,
            "vendor_id": vendor_id,
            "message": "Vendor account created successfully",
            "emailed": True,
        }

    def create_delivery_partner(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        email = str(payload.get("email") or "")
        user_id = self.add_user(email, uuid4().hex[:12], roles=("delivery",))
        partner_id = self.add_partner(user_id)
        return {
            "ok": True,
            "userId": user_id,
            "partner_id": partner_id,
            "message": "Delivery partner ready",
            "emailed": True,
        }

    # ------------------------------------------------------------------
    # AuthPort
    # ------------------------------------------------------------------
    def _current_user_id(self) -> Optional[str]:
        if not self.access_token:
            return None
        for user in self.users.values():
            if f"token-{user['id']}" == self.access_token:
                return user["id"]
        return None

    def sign_in(self, email: str, password: str) -> Session:
        user = self.users.get(email.strip().lower())
        if user is None or user["password"] != password:
            raise _client_error("auth[sign_in]", "Invalid login credentials", code="invalid_grant")
        self.access_token = f"token-{user['id']}"
        return Session(
            access_token=self.access_token,
            user_id=user["id"],
            email=user["email"],
            full_name=user.get("full_name") or "",
            roles=tuple(self.roles.get(user["id"], ())),
        )

    def sign_out(self) -> None:
        self.access_token = None

    def current_user(self) -> Dict[str, Any]:
        user_id = self._current_user_id()
        for user in self.users.values():
            if user["id"] == user_id:
                return {
                    "id": user["id"],
                    "email": user["email"],
                    "user_metadata": {"full_name": user.get("full_name")},
                }
        raise _client_error("auth[user]", "invalid JWT", status=401)

    def user_roles(self, user_id: str) -> List[str]:
        return list(self.roles.get(user_id, ()))

    def set_access_token(self, token: Optional[str]) -> None:
        self.access_token = token or None

    # ------------------------------------------------------------------
    # GeocodingPort
    # ------------------------------------------------------------------
    def lookup_pincode(self, pincode: str) -> Optional[PincodeInfo]:
        return self.pincodes.get((pincode or "").strip())

    def reverse_geocode(self, latitude: float, longitude: float) -> Optional[ReverseGeocodeResult]:
        best: Optional[PincodeInfo] = None
        best_km = float("inf")
        for info in self.pincodes.values():
            if info.latitude is None or info.longitude is None:
                continue
            km = haversine_km((latitude, longitude), (info.latitude, info.longitude))
            if km < best_km:
                best, best_km = info, km
        if best is None:
            return None
        return ReverseGeocodeResult(
            display_name=f"{best.area or best.city}, {best.city}, {best.state} {best.pincode}",
            city=best.city,
            state=best.state,
            pincode=best.pincode,
        )


def _desc(stamp: str) -> str:
    # invert ISO timestamps so ascending sorts read newest first
    return "".join(chr(0x10FFFF - ord(ch)) for ch in stamp)
