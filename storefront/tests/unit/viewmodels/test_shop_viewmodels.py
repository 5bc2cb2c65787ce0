from __future__ import annotations

from datetime import datetime, timezone

import pytest

from storefront.domain.checkout import PAYMENT_ONLINE
from storefront.domain.entities import (
    Address,
    CartLine,
    Order,
    OrderItem,
    Product,
    RatingStats,
    Recipient,
    Review,
)
from storefront.viewmodels.cart_vm import CartVM
from storefront.viewmodels.checkout_vm import CheckoutVM
from storefront.viewmodels.orders_vm import OrdersVM
from storefront.viewmodels.product_vm import ProductVM, product_card, rating_text, stars


def _line(product_id: str, price: float, quantity: int, stock: int = 10) -> CartLine:
    product = Product(id=product_id, name=product_id.title(), price=price, stock=stock)
    return CartLine(id=f"line-{product_id}", product=product, quantity=quantity)


def _address(address_id: str, *, default: bool = False) -> Address:
    return Address(
        id=address_id,
        full_name="Asha",
        phone="9876500000",
        address_line1="5 Boulevard",
        city="Srinagar",
        state="Jammu and Kashmir",
        pincode="190001",
        is_default=default,
    )


def _order(order_id: str, status: str, *, review: str = None, minute: int = 0, **extra) -> Order:
    return Order(
        id=order_id,
        user_id="user-1",
        subtotal=200.0,
        discount_amount=0.0,
        final_amount=200.0,
        delivery_status=status,
        review_status=review,
        payment_id="COD",
        items=(OrderItem(product_id="p1", name="Milk", price=50.0, quantity=4),),
        created_at=datetime(2026, 1, 1, 10, minute, tzinfo=timezone.utc),
        **extra,
    )


# ---- cart ----
def test_cart_totals_and_rows() -> None:
    vm = CartVM()
    vm.set_lines([_line("apple", 180, 2), _line("milk", 56, 1, stock=1)])

    assert vm.item_count == 3
    assert vm.subtotal == 416.0
    rows = vm.rows()
    assert rows[0].line_total == "₹360.00"
    assert [row.can_increment for row in rows] == [True, False]


def test_cart_coupon_discount_is_capped_when_cart_shrinks() -> None:
    vm = CartVM()
    vm.set_lines([_line("apple", 180, 2)])
    vm.apply_coupon("FLAT50", 50)
    assert vm.summary()["total"] == "₹310.00"

    vm.set_lines([_line("bread", 30, 1)])
    assert vm.discount == 30.0
    assert vm.total == 0.0

    vm.coupon_failed("Coupon has expired")
    assert (vm.coupon_code, vm.discount, vm.coupon_error) == (None, 0.0, "Coupon has expired")


# ---- checkout ----
def test_checkout_picks_default_address_and_keeps_selection() -> None:
    vm = CheckoutVM()
    vm.set_addresses([_address("a1"), _address("a2", default=True)])
    assert vm.selected_address_id == "a2"

    vm.selected_address_id = "a1"
    vm.set_addresses([_address("a1"), _address("a2", default=True), _address("a3")])
    assert vm.selected_address.id == "a1"

    vm.set_addresses([])
    assert vm.selected_address is None


def test_checkout_drop_location_needs_reconfirmation() -> None:
    vm = CheckoutVM()
    vm.for_someone_else = True
    vm.set_drop_location(34.07, 74.81)
    vm.confirm_drop_location()
    assert vm.recipient().confirmed is True

    vm.set_drop_location(34.08, 74.82)
    assert vm.recipient().confirmed is False
    vm.for_someone_else = False
    assert vm.recipient() is None


def test_checkout_place_label_and_guard() -> None:
    vm = CheckoutVM()
    assert vm.place_label == "Place Order (COD)"
    assert vm.can_place is False

    vm.set_items([_line("apple", 100, 1)], buy_now=True)
    vm.set_addresses([_address("a1")])
    vm.set_payment_method(PAYMENT_ONLINE)
    assert vm.place_label == "Pay ₹100.00"
    assert vm.can_place is True
    with pytest.raises(ValueError):
        vm.set_payment_method("upi")


# ---- orders ----
def test_orders_vm_tabs_and_rows() -> None:
    vm = OrdersVM()
    live = [_order("o-live", "out_for_delivery", minute=2)]
    history = [_order("o-done", "delivered", review="reviewed", minute=1)]
    vm.set_orders(live, history)

    (row,) = vm.rows()
    assert row.status_label == "Out for Delivery"
    assert row.show_tracking is True
    assert row.can_remove is False
    assert [cell.current for cell in row.timeline].index(True) == 4

    vm.set_view("history")
    (done,) = vm.rows()
    assert done.can_remove is True
    assert done.payment_label == "Cash on Delivery"
    with pytest.raises(ValueError):
        vm.set_view("archived")


def test_orders_vm_replace_order_moves_between_tabs() -> None:
    vm = OrdersVM()
    vm.set_orders([_order("o1", "out_for_delivery", minute=1), _order("o2", "pending", minute=2)], [])
    assert vm.live_order_ids() == ["o1", "o2"]

    vm.replace_order(_order("o1", "cancelled", minute=1))

    assert vm.counts() == (1, 1)
    assert vm.live_order_ids() == ["o2"]
    assert vm.find("o1").delivery_status == "cancelled"


def test_orders_vm_delivered_order_waits_for_review() -> None:
    vm = OrdersVM()
    vm.set_orders([_order("o1", "delivered")], [])

    (row,) = vm.rows()
    assert row.can_review is True
    assert vm.live_order_ids() == []


def test_orders_vm_shows_recipient() -> None:
    recipient = Recipient(name="Ravi", phone="9999988888", address="Lal Chowk", latitude=34.0, longitude=74.0)
    vm = OrdersVM()
    vm.set_orders([_order("o1", "pending", recipient=recipient)], [])

    assert vm.rows()[0].recipient == "Ravi (9999988888), Lal Chowk"


# ---- product ----
def test_product_vm_controls() -> None:
    vm = ProductVM()
    assert vm.control == "out_of_stock"

    vm.set_product(Product(id="p1", name="Milk", price=56, stock=3), RatingStats(None, 0))
    assert (vm.control, vm.control_label, vm.stock_hint) == ("add", "Add", "Only 3 left")

    vm.cart_quantity = 3
    assert vm.control == "stepper"
    assert vm.control_label == "3"
    assert vm.can_increment is False


def test_rating_text_and_review_rows() -> None:
    assert rating_text(None, 0) == "No reviews yet"
    assert rating_text(4.5, 1) == "4.5 ★ (1 review)"
    assert rating_text(4.0, 3) == "4.0 ★ (3 reviews)"
    assert stars(3) == "★★★☆☆"

    vm = ProductVM()
    vm.set_reviews([Review(id="r1", product_id="p1", user_id="u1", rating=5, is_verified_purchase=True)])
    (row,) = vm.review_rows()
    assert (row.author, row.stars, row.verified, row.created_at) == ("Anonymous", "★★★★★", True, "-")


def test_product_card_formats_price() -> None:
    card = product_card(Product(id="p1", name="Rice", price=620, stock=0))

    assert card.price == "₹620.00"
    assert card.in_stock is False
    assert card.rating == "No reviews yet"
