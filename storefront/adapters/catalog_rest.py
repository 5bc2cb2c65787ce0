from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, List, Optional

from storefront.domain.entities import Category, Product, RatingStats
from storefront.domain.ports import CatalogPort

from .postgrest import PostgrestClient, eq, ilike, in_

LOGGER = logging.getLogger(__name__)

PRODUCT_COLUMNS = "*, vendors(business_name), categories(name)"

SORT_ORDERS: Dict[str, str] = {
    "newest": "created_at.desc",
    "price_low": "price.asc",
    "price_high": "price.desc",
    "rating": "average_rating.desc.nullslast",
    "popularity": "review_count.desc.nullslast",
}

_VISIBLE = (eq("is_approved", True), eq("is_active", True))


class CatalogRestAdapter(CatalogPort):
    """Product and category reads against the backend tables."""

    def __init__(self, client: PostgrestClient) -> None:
        self.client = client

    def list_products(
        self,
        *,
        category_id: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = "newest",
        limit: Optional[int] = None,
    ) -> List[Product]:
        filters = list(_VISIBLE)
        if category_id:
            filters.append(eq("category_id", category_id))
        term = (search or "").strip()
        if term:
            filters.append(ilike("name", f"*{term}*"))
        rows = self.client.select(
            "products",
            columns=PRODUCT_COLUMNS,
            filters=filters,
            order=SORT_ORDERS.get(sort, SORT_ORDERS["newest"]),
            limit=limit,
        )
        return [Product.from_row(row) for row in rows]

    def get_product(self, product_id: str) -> Product:
        row = self.client.single(
            "products",
            columns=PRODUCT_COLUMNS,
            filters=[eq("id", product_id)],
        )
        return Product.from_row(row)

    def list_categories(self) -> List[Category]:
        rows = self.client.select(
            "categories",
            filters=[eq("is_active", True)],
            order="name.asc",
        )
        return [Category.from_row(row) for row in rows]

    def best_sellers(self, limit: int = 8) -> List[Product]:
        """Rank products by units sold on orders whose payment completed."""
        sold = self.client.select(
            "order_items",
            columns="product_id, quantity, orders!inner(payment_status)",
            filters=[eq("orders.payment_status", "completed")],
        )
        counts: Counter = Counter()
        for row in sold:
            product_id = row.get("product_id")
            if not product_id:
                continue
            try:
                counts[str(product_id)] += int(row.get("quantity") or 0)
            except (TypeError, ValueError):
                continue
        ranked = [product_id for product_id, _ in counts.most_common(limit)]
        if not ranked:
            return []

        rows = self.client.select(
            "products",
            columns=PRODUCT_COLUMNS,
            filters=[*_VISIBLE, in_("id", ranked)],
        )
        by_id = {str(row.get("id")): Product.from_row(row) for row in rows}
        return [by_id[product_id] for product_id in ranked if product_id in by_id]

    def rating_stats(self, product_id: str) -> RatingStats:
        row = self.client.maybe_single(
            "products",
            columns="average_rating, review_count",
            filters=[eq("id", product_id)],
        )
        return RatingStats.from_row(row or {})
