from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from storefront.domain.entities import Product, Session
from storefront.domain.ports import UseCaseError, WishlistPort
from storefront.usecases.error_mapping import map_api_error


@dataclass
class ToggleWishlist:
    wishlist: WishlistPort

    def __call__(self, session: Optional[Session], product_id: str) -> bool:
        """Return ``True`` when the product is now on the wishlist."""
        if session is None or not session.user_id:
            raise UseCaseError("AUTH_REQUIRED", "Please sign in to use your wishlist.")
        try:
            return self.wishlist.toggle_wishlist(session.user_id, product_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="WISHLIST_FAILED",
                default_message="Failed to update wishlist",
            ) from exc


@dataclass
class ListWishlist:
    wishlist: WishlistPort

    def __call__(self, session: Optional[Session]) -> List[Product]:
        if session is None:
            return []
        try:
            return self.wishlist.list_wishlist(session.user_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="WISHLIST_FAILED",
                default_message="Could not load your wishlist.",
            ) from exc


__all__ = ["ListWishlist", "ToggleWishlist"]
