from __future__ import annotations

import pytest

from storefront.adapters.api_errors import ApiClientError, ApiServerError, ApiTimeoutError
from storefront.domain.ports import UseCaseError
from storefront.usecases.cart import AddToCart, ApplyCoupon, ChangeCartQuantity, LoadCart
from storefront.usecases.catalog import BrowseProducts, LoadHomeFeed, LoadProductDetail, SearchProducts
from storefront.usecases.error_mapping import map_api_error
from storefront.usecases.wishlist import ListWishlist, ToggleWishlist


def test_add_to_cart_requires_sign_in(backend) -> None:
    with pytest.raises(UseCaseError) as info:
        AddToCart(backend, backend)(None, "prod-1")
    assert info.value.code == "AUTH_REQUIRED"


def test_add_to_cart_accumulates_quantity(backend, customer) -> None:
    add = AddToCart(backend, backend)

    assert add(customer, "prod-1") == 1
    assert add(customer, "prod-1", 2) == 3
    lines = LoadCart(backend)(customer)
    assert [(line.product.id, line.quantity) for line in lines] == [("prod-1", 3)]


def test_add_to_cart_rejects_out_of_stock_and_overflow(backend, customer) -> None:
    add = AddToCart(backend, backend)

    with pytest.raises(UseCaseError) as out:
        add(customer, "prod-4")
    assert (out.value.code, out.value.message) == ("OUT_OF_STOCK", "Out of Stock")

    add(customer, "prod-5", 12)
    with pytest.raises(UseCaseError) as full:
        add(customer, "prod-5")
    assert full.value.message == "Maximum stock reached"
    assert backend.cart_quantity(customer.user_id, "prod-5") == 12


def test_change_quantity_to_zero_removes_line(backend, customer) -> None:
    AddToCart(backend, backend)(customer, "prod-2", 2)
    change = ChangeCartQuantity(backend, backend)

    assert change(customer, "prod-2", 5) == 5
    with pytest.raises(UseCaseError):
        change(customer, "prod-2", 26)
    assert change(customer, "prod-2", 0) == 0
    assert LoadCart(backend)(customer) == []


def test_load_cart_without_session_is_empty(backend) -> None:
    assert LoadCart(backend)(None) == []


def test_apply_coupon_percentage_with_cap(backend) -> None:
    code, discount = ApplyCoupon(backend)(" welcome10 ", 1500)

    assert code == "WELCOME10"
    assert discount == 100
    assert backend.coupons["WELCOME10"]["usage_count"] == 1


@pytest.mark.parametrize(
    "code, subtotal, error",
    [
        ("", 500, "Please enter a coupon code"),
        ("NOPE", 500, "Invalid coupon code"),
        ("FLAT50", 200, "Minimum order amount of ₹300 required"),
    ],
)
def test_apply_coupon_rejections(backend, code, subtotal, error) -> None:
    with pytest.raises(UseCaseError) as info:
        ApplyCoupon(backend)(code, subtotal)
    assert info.value.message == error


def test_browse_products_sorts_and_validates(backend) -> None:
    products = BrowseProducts(backend)(sort="price_high")
    assert products[0].name == "Basmati Rice (5 kg)"

    with pytest.raises(UseCaseError) as info:
        BrowseProducts(backend)(sort="cheapest")
    assert info.value.code == "INVALID_SORT"


def test_search_blank_query_returns_nothing(backend) -> None:
    search = SearchProducts(backend)

    assert search("   ") == []
    assert [p.id for p in search("milk")] == ["prod-3"]


def test_product_detail_tracks_recently_viewed(backend, storage) -> None:
    load = LoadProductDetail(backend, storage)

    first = load("prod-1")
    second = load("prod-2")
    again = load("prod-1")

    assert first.recently_viewed == []
    assert [item.id for item in second.recently_viewed] == ["prod-1"]
    assert [item.id for item in again.recently_viewed] == ["prod-2"]


def test_product_detail_missing_product_is_not_found(backend, storage) -> None:
    with pytest.raises(UseCaseError) as info:
        LoadProductDetail(backend, storage)("prod-404")
    assert info.value.code == "NOT_FOUND"


def test_home_feed_falls_back_to_fresh_picks(backend) -> None:
    feed = LoadHomeFeed(backend, best_seller_count=3, fresh_pick_count=3)()

    assert len(feed.fresh_picks) == 3
    assert feed.best_sellers == feed.fresh_picks
    assert [c.name for c in feed.categories] == ["Dairy & Bakery", "Fruits & Vegetables", "Staples"]


def test_wishlist_toggle_roundtrip(backend, customer) -> None:
    toggle = ToggleWishlist(backend)

    assert toggle(customer, "prod-3") is True
    assert [p.id for p in ListWishlist(backend)(customer)] == ["prod-3"]
    assert toggle(customer, "prod-3") is False
    assert ListWishlist(backend)(customer) == []


@pytest.mark.parametrize(
    "exc, code",
    [
        (ApiTimeoutError("slow"), "REQUEST_TIMEOUT"),
        (ApiClientError("x", status=401), "AUTH_FAILED"),
        (ApiClientError("x", status=409, payload={"message": "dup"}), "CONFLICT"),
        (ApiClientError("x", status=422), "INVALID_PARAMS"),
        (ApiClientError("x", status=400, payload={"message": "bad"}), "REQUEST_FAILED"),
        (ApiServerError("x", status=500), "SERVER_ERROR"),
        (RuntimeError("boom"), "FALLBACK"),
    ],
)
def test_map_api_error_codes(exc, code) -> None:
    assert map_api_error(exc, default_code="FALLBACK").code == code


def test_map_api_error_keeps_use_case_errors() -> None:
    original = UseCaseError("X", "y")
    assert map_api_error(original, default_code="Z") is original
