from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from storefront.domain.entities import CartLine, Coupon, Session
from storefront.domain.ports import CartPort, CatalogPort, CouponPort, UseCaseError
from storefront.domain.pricing import CouponRejected, CouponRule
from storefront.usecases.error_mapping import map_api_error


def _require_session(session: Optional[Session], action: str) -> Session:
    if session is None or not session.user_id:
        raise UseCaseError("AUTH_REQUIRED", f"Please sign in to {action}.")
    return session


@dataclass
class LoadCart:
    cart: CartPort

    def __call__(self, session: Optional[Session]) -> List[CartLine]:
        if session is None:
            return []
        try:
            return self.cart.list_cart(session.user_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="CART_LOAD_FAILED",
                default_message="Could not load your cart.",
            ) from exc


@dataclass
class AddToCart:
    cart: CartPort
    catalog: CatalogPort

    def __call__(self, session: Optional[Session], product_id: str, quantity: int = 1) -> int:
        """Add ``quantity`` units and return the new cart quantity."""
        user = _require_session(session, "add items to your cart")
        if quantity < 1:
            raise UseCaseError("INVALID_QUANTITY", "Quantity must be at least 1.")
        try:
            product = self.catalog.get_product(product_id)
            current = self.cart.cart_quantity(user.user_id, product_id)
            if not product.in_stock:
                raise UseCaseError("OUT_OF_STOCK", "Out of Stock")
            if current + quantity > product.stock:
                raise UseCaseError("MAX_STOCK", "Maximum stock reached")
            self.cart.add_to_cart(user.user_id, product_id, quantity)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="CART_ADD_FAILED",
                default_message="Failed to add to cart.",
            ) from exc
        return current + quantity


@dataclass
class ChangeCartQuantity:
    cart: CartPort
    catalog: CatalogPort

    def __call__(self, session: Optional[Session], product_id: str, quantity: int) -> int:
        """Set the line to ``quantity``; zero or less removes the line."""
        user = _require_session(session, "update your cart")
        try:
            if quantity <= 0:
                self.cart.remove_from_cart(user.user_id, product_id)
                return 0
            product = self.catalog.get_product(product_id)
            if quantity > product.stock:
                raise UseCaseError("MAX_STOCK", "Maximum stock reached")
            self.cart.set_cart_quantity(user.user_id, product_id, quantity)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="CART_UPDATE_FAILED",
                default_message="Failed to update cart.",
            ) from exc
        return quantity


@dataclass
class ApplyCoupon:
    """Validate a coupon against the subtotal and count its usage."""

    coupons: CouponPort

    def __call__(self, code: str, subtotal: float) -> Tuple[str, float]:
        normalized = (code or "").strip().upper()
        if not normalized:
            raise UseCaseError("COUPON_INVALID", "Please enter a coupon code")
        try:
            coupon: Optional[Coupon] = self.coupons.find_coupon(normalized)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="COUPON_FAILED",
                default_message="Failed to apply coupon",
            ) from exc
        if coupon is None:
            raise UseCaseError("COUPON_INVALID", "Invalid coupon code")

        try:
            discount = CouponRule(coupon).evaluate(subtotal)
        except CouponRejected as exc:
            raise UseCaseError("COUPON_REJECTED", str(exc)) from exc

        try:
            self.coupons.increment_coupon_usage(coupon)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="COUPON_FAILED",
                default_message="Failed to apply coupon",
            ) from exc
        return normalized, discount


__all__ = ["AddToCart", "ApplyCoupon", "ChangeCartQuantity", "LoadCart"]
