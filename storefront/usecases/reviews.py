from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from storefront.domain.entities import RatingStats, Review, Session
from storefront.domain.ports import CatalogPort, ReviewPort, UseCaseError
from storefront.usecases.error_mapping import map_api_error


@dataclass
class ProductReviews:
    reviews: List[Review] = field(default_factory=list)
    stats: RatingStats = field(default_factory=lambda: RatingStats(None, 0))
    own_review: Optional[Review] = None
    can_mark_verified: bool = False


@dataclass
class LoadProductReviews:
    reviews: ReviewPort
    catalog: CatalogPort

    def __call__(self, product_id: str, session: Optional[Session] = None) -> ProductReviews:
        try:
            listing = self.reviews.list_reviews(product_id)
            stats = self.catalog.rating_stats(product_id)
            own = None
            purchased = False
            if session is not None:
                own = self.reviews.own_review(session.user_id, product_id)
                purchased = self.reviews.has_purchased(session.user_id, product_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="REVIEWS_LOAD_FAILED",
                default_message="Could not load reviews.",
            ) from exc
        return ProductReviews(
            reviews=listing,
            stats=stats,
            own_review=own,
            can_mark_verified=purchased,
        )


@dataclass
class SubmitProductReview:
    """Create or replace the shopper's review of one product."""

    reviews: ReviewPort

    def __call__(
        self,
        session: Optional[Session],
        product_id: str,
        rating: int,
        *,
        title: str = "",
        comment: str = "",
    ) -> None:
        if session is None or not session.user_id:
            raise UseCaseError("AUTH_REQUIRED", "Please login to submit a review")
        if not 1 <= int(rating) <= 5:
            raise UseCaseError("REVIEW_INVALID", "Ratings must be between 1 and 5.")
        try:
            verified = self.reviews.has_purchased(session.user_id, product_id)
            self.reviews.upsert_review(
                {
                    "product_id": product_id,
                    "user_id": session.user_id,
                    "rating": int(rating),
                    "title": title.strip() or None,
                    "comment": comment.strip() or None,
                    "is_verified_purchase": bool(verified),
                    "is_approved": True,
                }
            )
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="REVIEW_SUBMIT_FAILED",
                default_message="Failed to submit review",
            ) from exc


__all__ = ["LoadProductReviews", "ProductReviews", "SubmitProductReview"]
