"""Customer-owned tables: cart, wishlist, addresses, coupons and reviews.

Row-level security on the backend scopes every table to the signed-in user;
the explicit ``user_id`` filters keep queries correct for privileged keys too.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Sequence

from storefront.domain.entities import Address, CartLine, Coupon, Product, Review
from storefront.domain.ports import AddressPort, CartPort, CouponPort, ReviewPort, WishlistPort

from .postgrest import PostgrestClient, eq

LOGGER = logging.getLogger(__name__)


class ShopRestAdapter(CartPort, WishlistPort, AddressPort, CouponPort, ReviewPort):
    def __init__(self, client: PostgrestClient) -> None:
        self.client = client

    # ---- Cart ----
    def list_cart(self, user_id: str) -> List[CartLine]:
        rows = self.client.select(
            "cart_items",
            columns="id, quantity, product_id, products(*)",
            filters=[eq("user_id", user_id)],
            order="created_at.asc",
        )
        return [CartLine.from_row(row) for row in rows]

    def cart_quantity(self, user_id: str, product_id: str) -> int:
        row = self.client.maybe_single(
            "cart_items",
            columns="quantity",
            filters=[eq("user_id", user_id), eq("product_id", product_id)],
        )
        if not row:
            return 0
        try:
            return int(row.get("quantity") or 0)
        except (TypeError, ValueError):
            return 0

    def add_to_cart(self, user_id: str, product_id: str, quantity: int = 1) -> None:
        existing = self.client.maybe_single(
            "cart_items",
            columns="id, quantity",
            filters=[eq("user_id", user_id), eq("product_id", product_id)],
        )
        if existing:
            current = int(existing.get("quantity") or 0)
            self.client.update(
                "cart_items",
                {"quantity": current + quantity},
                filters=[eq("id", existing.get("id"))],
            )
            return
        self.client.insert(
            "cart_items",
            {"user_id": user_id, "product_id": product_id, "quantity": quantity},
            returning=False,
        )

    def set_cart_quantity(self, user_id: str, product_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_from_cart(user_id, product_id)
            return
        self.client.update(
            "cart_items",
            {"quantity": quantity},
            filters=[eq("user_id", user_id), eq("product_id", product_id)],
        )

    def remove_from_cart(self, user_id: str, product_id: str) -> None:
        self.client.delete(
            "cart_items",
            filters=[eq("user_id", user_id), eq("product_id", product_id)],
        )

    def clear_cart(self, user_id: str) -> None:
        self.client.delete("cart_items", filters=[eq("user_id", user_id)])

    # ---- Wishlist ----
    def list_wishlist(self, user_id: str) -> List[Product]:
        rows = self.client.select(
            "wishlist",
            columns="id, product_id, products(*)",
            filters=[eq("user_id", user_id)],
            order="created_at.desc",
        )
        products: List[Product] = []
        for row in rows:
            product = row.get("products")
            if isinstance(product, Mapping):
                products.append(Product.from_row(product))
        return products

    def wishlist_contains(self, user_id: str, product_id: str) -> bool:
        row = self.client.maybe_single(
            "wishlist",
            columns="id",
            filters=[eq("user_id", user_id), eq("product_id", product_id)],
        )
        return row is not None

    def toggle_wishlist(self, user_id: str, product_id: str) -> bool:
        if self.wishlist_contains(user_id, product_id):
            self.client.delete(
                "wishlist",
                filters=[eq("user_id", user_id), eq("product_id", product_id)],
            )
            return False
        self.client.insert(
            "wishlist",
            {"user_id": user_id, "product_id": product_id},
            returning=False,
        )
        return True

    # ---- Addresses ----
    def list_addresses(self, user_id: str) -> List[Address]:
        rows = self.client.select(
            "addresses",
            filters=[eq("user_id", user_id)],
            order="is_default.desc,created_at.desc",
        )
        return [Address.from_row(row) for row in rows]

    def create_address(self, user_id: str, row: Mapping[str, Any]) -> Address:
        payload = dict(row)
        payload["user_id"] = user_id
        if payload.get("is_default"):
            self._clear_default(user_id)
        created = self.client.insert("addresses", payload)
        return Address.from_row(created[0] if created else payload)

    def update_address(self, user_id: str, address_id: str, row: Mapping[str, Any]) -> Address:
        payload = dict(row)
        payload.pop("user_id", None)
        if payload.get("is_default"):
            self._clear_default(user_id)
        updated = self.client.update(
            "addresses",
            payload,
            filters=[eq("id", address_id), eq("user_id", user_id)],
            returning=True,
        )
        return Address.from_row(updated[0] if updated else {"id": address_id, **payload})

    def delete_address(self, user_id: str, address_id: str) -> None:
        self.client.delete("addresses", filters=[eq("id", address_id), eq("user_id", user_id)])

    def set_default_address(self, user_id: str, address_id: str) -> None:
        self._clear_default(user_id)
        self.client.update(
            "addresses",
            {"is_default": True},
            filters=[eq("id", address_id), eq("user_id", user_id)],
        )

    def _clear_default(self, user_id: str) -> None:
        self.client.update(
            "addresses",
            {"is_default": False},
            filters=[eq("user_id", user_id), eq("is_default", True)],
        )

    # ---- Coupons ----
    def find_coupon(self, code: str) -> Optional[Coupon]:
        row = self.client.maybe_single(
            "coupons",
            filters=[eq("code", code.strip().upper()), eq("is_active", True)],
        )
        return Coupon.from_row(row) if row else None

    def increment_coupon_usage(self, coupon: Coupon) -> None:
        self.client.update(
            "coupons",
            {"usage_count": coupon.usage_count + 1},
            filters=[eq("id", coupon.id)],
        )

    # ---- Reviews ----
    def list_reviews(self, product_id: str) -> List[Review]:
        rows = self.client.select(
            "product_reviews",
            columns="*, profiles:user_id(full_name)",
            filters=[eq("product_id", product_id), eq("is_approved", True)],
            order="created_at.desc",
        )
        return [Review.from_row(row) for row in rows]

    def own_review(self, user_id: str, product_id: str) -> Optional[Review]:
        row = self.client.maybe_single(
            "product_reviews",
            filters=[eq("product_id", product_id), eq("user_id", user_id)],
        )
        return Review.from_row(row) if row else None

    def has_purchased(self, user_id: str, product_id: str) -> bool:
        """True when a delivered order of this user contains the product."""
        row = self.client.maybe_single(
            "order_items",
            columns="id, orders!inner(user_id, delivery_status)",
            filters=[
                eq("product_id", product_id),
                eq("orders.user_id", user_id),
                eq("orders.delivery_status", "delivered"),
            ],
        )
        return row is not None

    def upsert_review(self, row: Mapping[str, Any]) -> None:
        self.client.insert(
            "product_reviews",
            dict(row),
            upsert=True,
            on_conflict="user_id,product_id",
            returning=False,
        )

    def insert_reviews(self, rows: Sequence[Mapping[str, Any]]) -> None:
        if not rows:
            return
        self.client.insert("product_reviews", [dict(row) for row in rows], returning=False)
