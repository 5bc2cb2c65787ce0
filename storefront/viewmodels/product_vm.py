from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from storefront.domain.entities import Product, RatingStats, Review
from storefront.domain.pricing import format_inr
from storefront.domain.recently_viewed import ViewedProduct

from .status_format import format_timestamp


@dataclass
class ProductCard:
    """Grid tile used on listings, search results and the home feed."""
    product_id: str
    name: str
    price: str
    image_url: Optional[str]
    rating: str
    in_stock: bool


@dataclass
class ReviewRow:
    author: str
    rating: int
    stars: str
    title: str
    comment: str
    verified: bool
    created_at: str


def product_card(product: Product) -> ProductCard:
    return ProductCard(
        product_id=product.id,
        name=product.name,
        price=format_inr(product.price),
        image_url=product.image_url,
        rating=rating_text(product.average_rating, product.review_count),
        in_stock=product.in_stock,
    )


def viewed_card(item: ViewedProduct) -> ProductCard:
    return ProductCard(
        product_id=item.id,
        name=item.name,
        price=format_inr(item.price),
        image_url=item.image_url,
        rating="",
        in_stock=True,
    )


def rating_text(average: Optional[float], count: int) -> str:
    if not count or average is None:
        return "No reviews yet"
    noun = "review" if count == 1 else "reviews"
    return f"{average:.1f} ★ ({count} {noun})"


def stars(rating: int) -> str:
    filled = max(0, min(5, int(rating)))
    return "★" * filled + "☆" * (5 - filled)


class ProductVM:
    """Product detail state: the product, quantity control and reviews."""

    def __init__(self) -> None:
        self.product: Optional[Product] = None
        self.rating = RatingStats(None, 0)
        self.cart_quantity: int = 0
        self.wishlisted: bool = False
        self.reviews: List[Review] = []
        self.can_mark_verified: bool = False
        self.recently_viewed: List[ViewedProduct] = []

    def set_product(self, product: Product, rating: RatingStats) -> None:
        self.product = product
        self.rating = rating

    def set_reviews(self, reviews: Sequence[Review], rating: Optional[RatingStats] = None) -> None:
        self.reviews = list(reviews)
        if rating is not None:
            self.rating = rating

    @property
    def control(self) -> str:
        """Which quantity control to render: ``out_of_stock``, ``add`` or ``stepper``."""
        if self.product is None or not self.product.in_stock:
            return "out_of_stock"
        if self.cart_quantity <= 0:
            return "add"
        return "stepper"

    @property
    def control_label(self) -> str:
        return {"out_of_stock": "Out of Stock", "add": "Add"}.get(self.control, str(self.cart_quantity))

    @property
    def can_increment(self) -> bool:
        return self.product is not None and self.cart_quantity < self.product.stock

    @property
    def stock_hint(self) -> str:
        if self.product is None or not self.product.in_stock:
            return "Out of Stock"
        if self.product.stock <= 5:
            return f"Only {self.product.stock} left"
        return "In Stock"

    def summary(self) -> str:
        return rating_text(self.rating.average_rating, self.rating.review_count)

    def review_rows(self) -> List[ReviewRow]:
        return [
            ReviewRow(
                author=review.author_name or "Anonymous",
                rating=review.rating,
                stars=stars(review.rating),
                title=review.title or "",
                comment=review.comment or "",
                verified=review.is_verified_purchase,
                created_at=format_timestamp(review.created_at),
            )
            for review in self.reviews
        ]
