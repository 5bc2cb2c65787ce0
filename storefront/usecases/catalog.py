"""Catalog browsing: listings, search, product detail and the home feed."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from storefront.domain.entities import Category, Product, RatingStats
from storefront.domain.ports import CatalogPort, StoragePort, UseCaseError
from storefront.domain.recently_viewed import RecentlyViewedList, ViewedProduct
from storefront.usecases.error_mapping import map_api_error

LOGGER = logging.getLogger(__name__)

SORT_OPTIONS = ("newest", "price_low", "price_high", "rating", "popularity")


@dataclass
class BrowseProducts:
    catalog: CatalogPort

    def __call__(
        self,
        *,
        category_id: Optional[str] = None,
        sort: str = "newest",
        limit: Optional[int] = None,
    ) -> List[Product]:
        if sort not in SORT_OPTIONS:
            raise UseCaseError("INVALID_SORT", f"Unknown sort option: {sort}")
        try:
            return self.catalog.list_products(category_id=category_id or None, sort=sort, limit=limit)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="CATALOG_FAILED",
                default_message="Could not load products.",
            ) from exc


@dataclass
class SearchProducts:
    catalog: CatalogPort

    def __call__(self, query: str, *, sort: str = "newest") -> List[Product]:
        term = (query or "").strip()
        if not term:
            return []
        try:
            return self.catalog.list_products(search=term, sort=sort)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="SEARCH_FAILED",
                default_message="Search failed.",
            ) from exc


@dataclass
class ProductDetail:
    product: Product
    rating: RatingStats
    recently_viewed: List[ViewedProduct] = field(default_factory=list)


@dataclass
class LoadProductDetail:
    """Fetch one product and push it onto the recently viewed list."""

    catalog: CatalogPort
    storage: StoragePort

    def __call__(self, product_id: str) -> ProductDetail:
        if not product_id:
            raise UseCaseError("PRODUCT_NOT_FOUND", "Product not found.")
        try:
            product = self.catalog.get_product(product_id)
            rating = self.catalog.rating_stats(product_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="PRODUCT_LOAD_FAILED",
                default_message="Product not found.",
            ) from exc

        history = RecentlyViewedList.from_payload(self.storage.load_recently_viewed())
        previous = history.excluding(product.id)
        history.add(product)
        try:
            self.storage.save_recently_viewed(history.to_payload())
        except OSError as exc:
            LOGGER.warning("Could not persist recently viewed products: %s", exc)
        return ProductDetail(product=product, rating=rating, recently_viewed=previous)


@dataclass
class HomeFeed:
    best_sellers: List[Product]
    fresh_picks: List[Product]
    categories: List[Category]


@dataclass
class LoadHomeFeed:
    catalog: CatalogPort
    best_seller_count: int = 8
    fresh_pick_count: int = 8

    def __call__(self) -> HomeFeed:
        try:
            categories = self.catalog.list_categories()
            fresh = self.catalog.list_products(sort="newest", limit=self.fresh_pick_count)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="HOME_FEED_FAILED",
                default_message="Could not load the home page.",
            ) from exc

        try:
            best = self.catalog.best_sellers(self.best_seller_count)
        except Exception as exc:
            # Sales aggregation is optional; newest products stand in.
            LOGGER.warning("Best sellers unavailable: %s", exc)
            best = []
        if not best:
            best = list(fresh)
        return HomeFeed(best_sellers=best, fresh_picks=fresh, categories=categories)


__all__ = [
    "BrowseProducts",
    "HomeFeed",
    "LoadHomeFeed",
    "LoadProductDetail",
    "ProductDetail",
    "SearchProducts",
]
