"""NiceGUI entrypoint for the storefront web runtime."""

from __future__ import annotations

import argparse
from contextlib import contextmanager
import json
import os
from typing import Any, Callable, Iterator, List, Optional, Sequence
from urllib.parse import quote

from nicegui import app, ui

from storefront.domain.checkout import PAYMENT_COD, PAYMENT_ONLINE, PaymentConfirmation
from storefront.domain.entities import Product
from storefront.domain.ports import UseCaseError
from storefront.usecases.admin_accounts import onboarding_notice
from storefront.usecases.catalog import SORT_OPTIONS
from storefront.utils.logging import configure_root
from storefront.viewmodels.product_vm import ProductCard, product_card, viewed_card
from storefront.web_ui.runtime import RuntimeRegistry, SharedState, WebRuntime
from storefront.web_ui.viewmodels import (
    BROWSER_SETTINGS_KEY,
    STATIC_PAGES,
    WebAddressForm,
    WebProductForm,
    WebReviewForm,
    WebSettingsVM,
    parse_settings_json,
    search_url,
)

SORT_LABELS = {
    "newest": "Newest",
    "price_low": "Price: Low to High",
    "price_high": "Price: High to Low",
    "rating": "Top Rated",
    "popularity": "Most Popular",
}
DEFAULT_MAP_CENTER = (34.0837, 74.7973)
RAZORPAY_SCRIPT = '<script src="https://checkout.razorpay.com/v1/checkout.js"></script>'


def _install_theme() -> None:
    """Install global CSS/theme tokens for the web runtime."""
    ui.add_head_html(
        """
<link rel="preconnect" href="https://fonts.googleapis.com">
<link href="https://fonts.googleapis.com/css2?family=Poppins:wght@400;500;600&display=swap" rel="stylesheet">
<style>
:root {
  --shop-bg: #f6f8f5;
  --shop-card: #ffffff;
  --shop-border: #dfe6dc;
  --shop-accent: #1b8a3c;
  --shop-muted: #5b6b5f;
}
body { font-family: 'Poppins', sans-serif; background: var(--shop-bg); }
.shop-page { max-width: 1200px; margin: 0 auto; padding: 12px; }
.shop-card {
  background: var(--shop-card);
  border: 1px solid var(--shop-border);
  border-radius: 12px;
}
.shop-muted { color: var(--shop-muted); }
.shop-price { font-weight: 600; color: var(--shop-accent); }
</style>
        """
    )


def _notify_error(runtime: WebRuntime, exc: Exception) -> None:
    """Render exceptions as concise NiceGUI toasts."""
    runtime.record_error(exc)
    message = exc.message if isinstance(exc, UseCaseError) else str(exc)
    ui.notify(message, color="negative", close_button="OK")


def _cards_for(products: Sequence[Product]) -> List[ProductCard]:
    return [product_card(product) for product in products]


class PageKit:
    """Page helpers bound to the runtime of the browser being served."""

    def __init__(self, runtime: WebRuntime) -> None:
        self.runtime = runtime

    def invoke(self, action: Callable[[], Any], *refreshers: Callable[[], None]) -> bool:
        try:
            action()
        except Exception as exc:
            _notify_error(self.runtime, exc)
            return False
        for refresh in refreshers:
            refresh()
        return True

    def require_sign_in(self, target: str) -> bool:
        if self.runtime.is_signed_in:
            return True
        ui.notify("Please login to continue", color="warning")
        ui.navigate.to(f"/auth?next={quote(target, safe='/')}")
        return False

    def sign_out(self) -> None:
        if self.invoke(self.runtime.sign_out):
            ui.navigate.to("/")

    @contextmanager
    def frame(self, title: str = "") -> Iterator[None]:
        runtime = self.runtime
        with ui.header().classes("items-center justify-between bg-white text-black shadow-1"):
            with ui.row().classes("items-center q-gutter-sm"):
                ui.link("Kash It", "/").classes("text-h6 text-weight-bold no-underline")
                search = ui.input(placeholder="Search products").props("dense outlined rounded").classes("w-72")
                search.on("keydown.enter", lambda: ui.navigate.to(search_url(str(search.value or ""))))
            with ui.row().classes("items-center q-gutter-sm"):
                pincode = runtime.pincode or "Set pincode"
                ui.button(pincode, icon="place", on_click=lambda: pincode_dialog.open()).props("flat dense")
                ui.button(icon="favorite_border", on_click=lambda: ui.navigate.to("/wishlist")).props("flat round")
                with ui.button(icon="shopping_cart", on_click=lambda: ui.navigate.to("/cart")).props("flat round"):
                    count = runtime.cart_vm.item_count
                    if count:
                        ui.badge(str(count), color="red").props("floating")
                if runtime.is_signed_in:
                    with ui.button(icon="person").props("flat round"):
                        with ui.menu():
                            ui.menu_item("Orders", lambda: ui.navigate.to("/orders"))
                            ui.menu_item("Profile", lambda: ui.navigate.to("/profile"))
                            if runtime.has_role("vendor"):
                                ui.menu_item("Vendor Dashboard", lambda: ui.navigate.to("/vendor"))
                            if runtime.has_role("delivery"):
                                ui.menu_item("Delivery Dashboard", lambda: ui.navigate.to("/delivery"))
                            if runtime.has_role("admin"):
                                ui.menu_item("Admin", lambda: ui.navigate.to("/admin"))
                            ui.menu_item("Sign out", self.sign_out)
                else:
                    ui.button("Login", on_click=lambda: ui.navigate.to("/auth")).props("unelevated color=green-8")

        with ui.dialog() as pincode_dialog, ui.card().classes("q-pa-md"):
            ui.label("Check delivery availability").classes("text-subtitle1")
            pin_input = ui.input("Pincode", value=runtime.pincode).props("outlined dense maxlength=6")
            pin_result = ui.label("").classes("shop-muted")

            def check() -> None:
                try:
                    result = runtime.check_pincode(str(pin_input.value or ""))
                except Exception as exc:
                    _notify_error(runtime, exc)
                    return
                pin_result.text = result.message
                ui.notify(result.message, color="positive" if result.is_serviceable else "warning")

            ui.button("Check", on_click=check).props("unelevated color=green-8")

        with ui.column().classes("shop-page w-full"):
            if title:
                ui.label(title).classes("text-h5 q-mb-sm")
            yield
        with ui.footer().classes("bg-grey-2 text-black justify-center q-gutter-md"):
            for slug, (label, _) in STATIC_PAGES.items():
                ui.link(label, f"/pages/{slug}").classes("text-caption")

    def product_grid(self, cards: Sequence[ProductCard]) -> None:
        if not cards:
            ui.label("No products found.").classes("shop-muted")
            return
        with ui.row().classes("w-full q-gutter-md"):
            for card in cards:
                with ui.card().classes("shop-card w-52 cursor-pointer").on(
                    "click", lambda _, pid=card.product_id: ui.navigate.to(f"/products/{pid}")
                ):
                    if card.image_url:
                        ui.image(card.image_url).classes("h-32")
                    ui.label(card.name).classes("text-subtitle2")
                    ui.label(card.price).classes("shop-price")
                    if card.rating:
                        ui.label(card.rating).classes("text-caption shop-muted")
                    if not card.in_stock:
                        ui.badge("Out of Stock", color="grey")

    def notification_bell(self, vm: Any) -> Callable[[], None]:
        @ui.refreshable
        def render_bell() -> None:
            with ui.button(icon="notifications").props("flat round"):
                if vm.badge:
                    ui.badge(vm.badge, color="red").props("floating")
                with ui.menu():
                    rows = vm.rows()
                    if not rows:
                        ui.menu_item("No notifications")
                    for row in rows:
                        ui.menu_item(
                            f"{'' if row.read else '● '}{row.message} · {row.timestamp}",
                            lambda r=row: (vm.mark_read(r.notification_id), render_bell.refresh()),
                        )
                    if rows:
                        ui.menu_item("Mark all read", lambda: (vm.mark_all_read(), render_bell.refresh()))

        render_bell()
        return render_bell.refresh


def _build_ui(registry: RuntimeRegistry) -> None:
    """Register the NiceGUI pages; each request is served by its browser's runtime."""

    def current() -> PageKit:
        return PageKit(registry.for_client(app.storage.browser["id"], app.storage.user))

    # ------------------------------------------------------------------
    # Catalog pages
    # ------------------------------------------------------------------
    @ui.page("/")
    def home_page() -> None:
        kit = current()
        runtime = kit.runtime
        with kit.frame():
            try:
                feed = runtime.load_home()
            except Exception as exc:
                _notify_error(runtime, exc)
                ui.label(runtime.status_message).classes("shop-muted")
                return
            with ui.row().classes("q-gutter-sm"):
                for category in feed.categories:
                    ui.button(
                        category.name,
                        on_click=lambda _, cid=category.id: ui.navigate.to(f"/products?category={cid}"),
                    ).props("outline rounded")
            ui.label("Best Sellers").classes("text-h6 q-mt-md")
            kit.product_grid(_cards_for(feed.best_sellers))
            ui.label("Fresh Picks").classes("text-h6 q-mt-md")
            kit.product_grid(_cards_for(feed.fresh_picks))

    @ui.page("/products")
    def products_page(category: str = "", sort: str = "newest") -> None:
        kit = current()
        runtime = kit.runtime
        with kit.frame():
            if sort not in SORT_OPTIONS:
                sort = "newest"
            products: List[Product] = []
            try:
                products = runtime.browse(category_id=category or None, sort=sort)
            except Exception as exc:
                _notify_error(runtime, exc)
            with ui.row().classes("w-full items-center justify-between"):
                ui.label(runtime.listing_title).classes("text-h5")
                ui.select(
                    SORT_LABELS,
                    value=sort,
                    label="Sort by",
                    on_change=lambda e: ui.navigate.to(f"/products?category={category}&sort={e.value}"),
                ).props("dense outlined").classes("w-56")
            kit.product_grid(_cards_for(products))

    @ui.page("/search")
    def search_page(q: str = "", sort: str = "newest") -> None:
        kit = current()
        runtime = kit.runtime
        with kit.frame():
            products: List[Product] = []
            try:
                products = runtime.search(q, sort=sort if sort in SORT_OPTIONS else "newest")
            except Exception as exc:
                _notify_error(runtime, exc)
            ui.label(runtime.listing_title).classes("text-h5")
            kit.product_grid(_cards_for(products))

    @ui.page("/products/{product_id}")
    def product_page(product_id: str) -> None:
        kit = current()
        runtime = kit.runtime
        with kit.frame():
            try:
                vm = runtime.open_product(product_id)
            except Exception as exc:
                _notify_error(runtime, exc)
                ui.label("Product not found.").classes("text-h6")
                return
            product = vm.product
            review_state = {"rating": 5, "title": "", "comment": ""}

            @ui.refreshable
            def render_controls() -> None:
                with ui.row().classes("items-center q-gutter-sm"):
                    if vm.control == "out_of_stock":
                        ui.button("Out of Stock").props("disable")
                    elif vm.control == "add":
                        ui.button("Add", on_click=lambda: change(1)).props("unelevated color=green-8")
                    else:
                        ui.button(icon="remove", on_click=lambda: change(vm.cart_quantity - 1)).props("dense")
                        ui.label(vm.control_label).classes("text-subtitle1")
                        add_btn = ui.button(icon="add", on_click=lambda: change(vm.cart_quantity + 1)).props("dense")
                        if not vm.can_increment:
                            add_btn.props("disable")
                    if vm.control != "out_of_stock":
                        ui.button("Buy Now", on_click=buy_now).props("unelevated color=orange-8")
                    ui.button(
                        icon="favorite" if vm.wishlisted else "favorite_border",
                        on_click=toggle_wishlist,
                    ).props("flat round color=red")
                ui.label(vm.stock_hint).classes("text-caption shop-muted")

            @ui.refreshable
            def render_reviews() -> None:
                ui.label(f"Ratings & Reviews: {vm.summary()}").classes("text-h6")
                for row in vm.review_rows():
                    with ui.card().classes("shop-card w-full q-pa-sm"):
                        with ui.row().classes("items-center q-gutter-sm"):
                            ui.label(row.stars)
                            ui.label(row.title).classes("text-weight-medium")
                            if row.verified:
                                ui.badge("Verified Purchase", color="green")
                        ui.label(row.comment)
                        ui.label(f"{row.author} · {row.created_at}").classes("text-caption shop-muted")

            def change(quantity: int) -> None:
                if not kit.require_sign_in(f"/products/{product_id}"):
                    return
                if vm.cart_quantity <= 0:
                    kit.invoke(lambda: runtime.add_to_cart(product_id), render_controls.refresh)
                else:
                    kit.invoke(lambda: runtime.change_quantity(product_id, quantity), render_controls.refresh)

            def toggle_wishlist() -> None:
                if kit.require_sign_in(f"/products/{product_id}"):
                    kit.invoke(lambda: runtime.toggle_wishlist(product_id), render_controls.refresh)

            def buy_now() -> None:
                if kit.require_sign_in(f"/products/{product_id}"):
                    ui.navigate.to(f"/checkout?buy_now={product_id}")

            def submit_review() -> None:
                if not kit.require_sign_in(f"/products/{product_id}"):
                    return
                kit.invoke(
                    lambda: runtime.submit_product_review(
                        int(review_state["rating"]),
                        title=review_state["title"],
                        comment=review_state["comment"],
                    ),
                    render_reviews.refresh,
                )

            with ui.row().classes("w-full q-gutter-lg"):
                if product.image_url:
                    ui.image(product.image_url).classes("w-80 shop-card")
                with ui.column().classes("q-gutter-sm"):
                    ui.label(product.name).classes("text-h5")
                    ui.label(product_card(product).price).classes("text-h6 shop-price")
                    ui.label(product.description).classes("shop-muted")
                    render_controls()

            render_reviews()
            if runtime.is_signed_in:
                with ui.card().classes("shop-card q-pa-md w-full"):
                    ui.label("Write a review").classes("text-subtitle1")
                    ui.rating(value=5, max=5, on_change=lambda e: review_state.__setitem__("rating", e.value))
                    ui.input("Title", on_change=lambda e: review_state.__setitem__("title", str(e.value or "")))
                    ui.textarea("Comment", on_change=lambda e: review_state.__setitem__("comment", str(e.value or "")))
                    if vm.can_mark_verified:
                        ui.label("Your review will be marked as a verified purchase.").classes("text-caption")
                    ui.button("Submit Review", on_click=submit_review).props("unelevated color=green-8")

            viewed = [viewed_card(item) for item in runtime.recently_viewed()]
            if viewed:
                ui.label("Recently Viewed").classes("text-h6 q-mt-md")
                kit.product_grid(viewed)

    # ------------------------------------------------------------------
    # Cart, wishlist and checkout
    # ------------------------------------------------------------------
    @ui.page("/cart")
    def cart_page() -> None:
        kit = current()
        runtime = kit.runtime
        with kit.frame("Your Cart"):
            if not kit.require_sign_in("/cart"):
                return
            kit.invoke(runtime.refresh_cart)
            vm = runtime.cart_vm

            @ui.refreshable
            def render_cart() -> None:
                if vm.is_empty:
                    ui.label("Your cart is empty").classes("text-h6")
                    ui.button("Continue Shopping", on_click=lambda: ui.navigate.to("/products"))
                    return
                for row in vm.rows():
                    with ui.card().classes("shop-card w-full q-pa-sm"):
                        with ui.row().classes("w-full items-center justify-between"):
                            ui.label(row.name).classes("text-subtitle1")
                            ui.label(row.unit_price)
                            with ui.row().classes("items-center"):
                                ui.button(icon="remove", on_click=lambda _, r=row: change(r.product_id, r.quantity - 1)).props("dense")
                                ui.label(str(row.quantity))
                                plus = ui.button(icon="add", on_click=lambda _, r=row: change(r.product_id, r.quantity + 1)).props("dense")
                                if not row.can_increment:
                                    plus.props("disable")
                            ui.label(row.line_total).classes("shop-price")
                            ui.button(icon="delete", on_click=lambda _, r=row: change(r.product_id, 0)).props("flat round")
                summary = vm.summary()
                with ui.card().classes("shop-card q-pa-md"):
                    with ui.row().classes("items-center q-gutter-sm"):
                        code_input = ui.input("Coupon code", value=vm.coupon_code or "").props("dense outlined")
                        ui.button("Apply", on_click=lambda: apply(code_input.value))
                        if vm.coupon_code:
                            ui.button("Remove", on_click=remove_coupon).props("flat")
                    if vm.coupon_error:
                        ui.label(vm.coupon_error).classes("text-negative text-caption")
                    ui.label(f"Subtotal: {summary['subtotal']}")
                    if summary["discount"]:
                        ui.label(f"Discount ({summary['coupon_code']}): -{summary['discount']}").classes("text-positive")
                    ui.label(f"Total: {summary['total']}").classes("text-h6")
                    ui.button("Proceed to Checkout", on_click=lambda: ui.navigate.to("/checkout")).props("unelevated color=green-8")

            def change(product_id: str, quantity: int) -> None:
                kit.invoke(lambda: runtime.change_quantity(product_id, quantity), render_cart.refresh)

            def apply(code: Any) -> None:
                kit.invoke(lambda: runtime.apply_coupon(str(code or "")))
                render_cart.refresh()

            def remove_coupon() -> None:
                runtime.remove_coupon()
                render_cart.refresh()

            render_cart()

    @ui.page("/wishlist")
    def wishlist_page() -> None:
        kit = current()
        runtime = kit.runtime
        with kit.frame("Wishlist"):
            if not kit.require_sign_in("/wishlist"):
                return
            products: List[Product] = []
            try:
                products = runtime.load_wishlist()
            except Exception as exc:
                _notify_error(runtime, exc)
            kit.product_grid(_cards_for(products))

    @ui.page("/checkout")
    async def checkout_page(buy_now: str = "") -> None:
        kit = current()
        runtime = kit.runtime
        ui.add_head_html(RAZORPAY_SCRIPT)
        with kit.frame("Checkout"):
            if not kit.require_sign_in("/checkout"):
                return
            try:
                vm = runtime.prepare_checkout(buy_now or None)
            except Exception as exc:
                _notify_error(runtime, exc)
                return
            if vm.cart.is_empty:
                ui.label("Your cart is empty").classes("text-h6")
                return

            @ui.refreshable
            def render_summary() -> None:
                summary = vm.cart.summary()
                with ui.card().classes("shop-card q-pa-md"):
                    for row in vm.cart.rows():
                        ui.label(f"{row.name} × {row.quantity} = {row.line_total}")
                    if summary["discount"]:
                        ui.label(f"Discount: -{summary['discount']}").classes("text-positive")
                    ui.label(f"Total: {summary['total']}").classes("text-h6")
                    place = ui.button(vm.place_label, on_click=place_order).props("unelevated color=green-8")
                    if not vm.can_place:
                        place.props("disable")

            def on_map_click(event: Any) -> None:
                latlng = (event.args or {}).get("latlng") or {}
                if "lat" not in latlng:
                    return
                vm.set_drop_location(float(latlng["lat"]), float(latlng["lng"]))
                drop_marker.move(vm.drop_latitude, vm.drop_longitude)
                confirm_label.text = "Location selected. Please confirm."

            def confirm_location() -> None:
                vm.confirm_drop_location()
                confirm_label.text = "Location confirmed." if vm.drop_confirmed else "Select a drop location on the map"

            async def place_order() -> None:
                payment: Optional[PaymentConfirmation] = None
                try:
                    if vm.payment_method == PAYMENT_ONLINE:
                        options = runtime.start_online_payment()
                        if not runtime.controller.is_mock:
                            payment = await open_payment_widget(options)
                            if payment is None:
                                ui.notify("Payment cancelled", color="warning")
                                return
                    order = runtime.place_order(payment)
                except Exception as exc:
                    _notify_error(runtime, exc)
                    render_summary.refresh()
                    return
                ui.notify(f"Order placed successfully! #{order.short_id}", color="positive")
                ui.navigate.to("/orders")

            with ui.row().classes("w-full q-gutter-lg items-start"):
                with ui.column().classes("q-gutter-sm"):
                    ui.label("Delivery address").classes("text-subtitle1")
                    if not vm.addresses:
                        ui.label("Add an address in your profile first.").classes("shop-muted")
                        ui.button("Manage addresses", on_click=lambda: ui.navigate.to("/profile"))
                    else:
                        ui.radio(
                            {a.id: f"{a.full_name}: {a.one_line()}" for a in vm.addresses},
                            value=vm.selected_address_id,
                            on_change=lambda e: (setattr(vm, "selected_address_id", e.value), render_summary.refresh()),
                        )
                    ui.label("Payment method").classes("text-subtitle1 q-mt-md")
                    ui.radio(
                        {PAYMENT_COD: "Cash on Delivery", PAYMENT_ONLINE: "Pay Online"},
                        value=vm.payment_method,
                        on_change=lambda e: (vm.set_payment_method(e.value), render_summary.refresh()),
                    ).props("inline")
                    ui.checkbox(
                        "Ordering for someone else?",
                        value=vm.for_someone_else,
                        on_change=lambda e: (setattr(vm, "for_someone_else", bool(e.value)), recipient_box.set_visibility(bool(e.value))),
                    )
                    with ui.column().classes("q-gutter-xs") as recipient_box:
                        ui.input("Recipient name", on_change=lambda e: setattr(vm, "recipient_name", str(e.value or "")))
                        ui.input("Recipient phone", on_change=lambda e: setattr(vm, "recipient_phone", str(e.value or "")))
                        ui.textarea("Recipient address", on_change=lambda e: setattr(vm, "recipient_address", str(e.value or "")))
                        drop_map = ui.leaflet(center=DEFAULT_MAP_CENTER, zoom=13).classes("w-96 h-64")
                        drop_marker = drop_map.marker(latlng=DEFAULT_MAP_CENTER)
                        drop_map.on("map-click", on_map_click)
                        confirm_label = ui.label("Select a drop location on the map").classes("text-caption")
                        ui.button("Confirm location", on_click=confirm_location).props("outline")
                    recipient_box.set_visibility(vm.for_someone_else)
                render_summary()

    async def open_payment_widget(options: dict) -> Optional[PaymentConfirmation]:
        result = await ui.run_javascript(
            f"""
return await new Promise((resolve) => {{
  const opts = {json.dumps(options)};
  opts.handler = (r) => resolve({{
    order_id: r.razorpay_order_id,
    payment_id: r.razorpay_payment_id,
    signature: r.razorpay_signature,
  }});
  opts.modal = {{ ondismiss: () => resolve(null) }};
  new Razorpay(opts).open();
}});
""",
            timeout=600,
        )
        if not isinstance(result, dict) or not result.get("payment_id"):
            return None
        return PaymentConfirmation(
            order_id=str(result.get("order_id") or ""),
            payment_id=str(result["payment_id"]),
            signature=str(result.get("signature") or ""),
        )

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------
    @ui.page("/orders")
    def orders_page() -> None:
        kit = current()
        runtime = kit.runtime
        with kit.frame("My Orders"):
            if not kit.require_sign_in("/orders"):
                return
            vm = runtime.orders_vm
            kit.invoke(runtime.load_orders)
            review_form = WebReviewForm()

            @ui.refreshable
            def render_orders() -> None:
                live, history = vm.counts()
                with ui.tabs(value=vm.view, on_change=lambda e: (vm.set_view(e.value), render_orders.refresh())):
                    ui.tab("live", label=f"Live ({live})")
                    ui.tab("history", label=f"History ({history})")
                rows = vm.rows()
                if not rows:
                    ui.label("No orders here yet.").classes("shop-muted")
                for row in rows:
                    with ui.card().classes("shop-card w-full q-pa-md"):
                        with ui.row().classes("w-full items-center justify-between"):
                            ui.label(f"Order #{row.short_id}").classes("text-subtitle1")
                            ui.badge(row.status_label, color=row.status_color)
                        ui.label(f"{row.placed_at} · {row.payment_label}").classes("text-caption shop-muted")
                        for item in row.items:
                            ui.label(f"{item.name} × {item.quantity}: {item.line_total}")
                        if row.discount:
                            ui.label(f"Discount ({row.coupon_code}): -{row.discount}").classes("text-positive")
                        ui.label(f"Total: {row.total}").classes("text-weight-bold")
                        if row.recipient:
                            ui.label(f"Deliver to: {row.recipient}").classes("text-caption")
                        with ui.stepper().props("flat dense alternative-labels").classes("w-full"):
                            for step in row.timeline:
                                ui.step(step.label).props(f"done={str(step.done).lower()} active-color=green")
                        if row.show_tracking:
                            ui.label("Your rider is on the way.").classes("text-caption text-positive")
                        with ui.row().classes("q-gutter-sm"):
                            ui.button("Receipt", icon="download", on_click=lambda _, oid=row.order_id: download_receipt(oid)).props("flat")
                            if row.can_review:
                                ui.button("Rate Items", on_click=lambda _, oid=row.order_id: open_review(oid)).props("unelevated color=green-8")
                                ui.button("Skip", on_click=lambda _, oid=row.order_id: kit.invoke(lambda: runtime.skip_order_review(oid), render_orders.refresh)).props("flat")
                            if row.can_remove:
                                ui.button("Remove", on_click=lambda _, oid=row.order_id: kit.invoke(lambda: runtime.hide_order(oid), render_orders.refresh)).props("flat color=negative")

            def download_receipt(order_id: str) -> None:
                receipt: dict = {}
                if kit.invoke(lambda: receipt.update(file=runtime.order_receipt(order_id))):
                    filename, content = receipt["file"]
                    ui.download(content, filename=filename)

            with ui.dialog() as review_dialog, ui.card().classes("q-pa-md"):
                review_body = ui.column()

            def open_review(order_id: str) -> None:
                order = vm.find(order_id)
                if order is None:
                    return
                review_form.order_id = order_id
                review_form.ratings.clear()
                review_form.comments.clear()
                review_body.clear()
                with review_body:
                    ui.label("Rate your items").classes("text-subtitle1")
                    for item in order.items:
                        ui.label(item.name)
                        ui.rating(value=0, max=5, on_change=lambda e, pid=item.product_id: review_form.set_rating(pid, e.value or 0))
                        ui.input("Comment", on_change=lambda e, pid=item.product_id: review_form.set_comment(pid, str(e.value or "")))
                    ui.button("Submit", on_click=submit_review).props("unelevated color=green-8")
                review_dialog.open()

            def submit_review() -> None:
                if kit.invoke(lambda: runtime.submit_order_review(review_form), render_orders.refresh):
                    review_dialog.close()
                    ui.notify("Thanks for your feedback!", color="positive")

            def poll() -> None:
                if runtime.poll_live_orders():
                    render_orders.refresh()

            render_orders()
            ui.timer(float(runtime.settings_vm.order_poll_interval_s), poll)

    # ------------------------------------------------------------------
    # Auth and profile
    # ------------------------------------------------------------------
    @ui.page("/auth")
    def auth_page(next: str = "/") -> None:
        kit = current()
        runtime = kit.runtime
        with kit.frame("Welcome"):
            state = {"email": "", "password": "", "full_name": "", "phone": "", "code": "", "otp_sent": False}

            def do_sign_in() -> None:
                if kit.invoke(lambda: runtime.sign_in(state["email"], state["password"])):
                    ui.navigate.to(next or "/")

            def send_code() -> None:
                if kit.invoke(lambda: runtime.send_signup_otp(state["email"], state["full_name"])):
                    state["otp_sent"] = True
                    ui.notify("Verification code sent. Check your email.", color="positive")
                    render_signup.refresh()

            def verify() -> None:
                ok = kit.invoke(
                    lambda: runtime.verify_signup(
                        state["email"],
                        state["code"],
                        state["password"],
                        full_name=state["full_name"],
                        phone=state["phone"],
                    )
                )
                if ok:
                    ui.navigate.to(next or "/")

            def bind(key: str, label: str, **kwargs: Any) -> None:
                ui.input(label, value=state[key], on_change=lambda e: state.__setitem__(key, str(e.value or "")), **kwargs).props("outlined dense").classes("w-80")

            @ui.refreshable
            def render_signup() -> None:
                bind("full_name", "Full name")
                bind("email", "Email")
                bind("phone", "Phone")
                if not state["otp_sent"]:
                    ui.button("Send Code", on_click=send_code).props("unelevated color=green-8")
                    return
                bind("code", "6-digit code")
                bind("password", "Password", password=True)
                ui.button("Verify & Create Account", on_click=verify).props("unelevated color=green-8")

            with ui.tabs() as tabs:
                tab_in = ui.tab("Sign In")
                tab_up = ui.tab("Sign Up")
            with ui.tab_panels(tabs, value=tab_in):
                with ui.tab_panel(tab_in):
                    bind("email", "Email")
                    bind("password", "Password", password=True)
                    ui.button("Sign In", on_click=do_sign_in).props("unelevated color=green-8")
                with ui.tab_panel(tab_up):
                    render_signup()

    @ui.page("/profile")
    async def profile_page() -> None:
        kit = current()
        runtime = kit.runtime
        with kit.frame("Profile"):
            if not kit.require_sign_in("/profile"):
                return
            session = runtime.session
            ui.label(f"{session.full_name or 'Customer'} ({session.email})").classes("text-subtitle1")
            kit.invoke(runtime.load_addresses)
            form = WebAddressForm()
            settings_form = WebSettingsVM.from_settings_vm(runtime.settings_vm)

            @ui.refreshable
            def render_addresses() -> None:
                for address in runtime.addresses:
                    with ui.card().classes("shop-card w-full q-pa-sm"):
                        with ui.row().classes("w-full items-center justify-between"):
                            ui.label(f"{address.full_name} · {address.phone}").classes("text-weight-medium")
                            if address.is_default:
                                ui.badge("Default", color="green")
                        ui.label(address.one_line()).classes("shop-muted")
                        with ui.row().classes("q-gutter-sm"):
                            ui.button("Edit", on_click=lambda _, a=address: open_form(WebAddressForm.from_address(a))).props("flat dense")
                            if not address.is_default:
                                ui.button("Make default", on_click=lambda _, aid=address.id: kit.invoke(lambda: runtime.set_default_address(aid), render_addresses.refresh)).props("flat dense")
                            ui.button("Delete", on_click=lambda _, aid=address.id: kit.invoke(lambda: runtime.delete_address(aid), render_addresses.refresh)).props("flat dense color=negative")
                ui.button("Add Address", on_click=lambda: open_form(WebAddressForm()), icon="add").props("outline")

            with ui.dialog() as address_dialog, ui.card().classes("q-pa-md w-96"):
                address_body = ui.column().classes("w-full")

            @ui.refreshable
            def render_address_form() -> None:
                for key, label in (
                    ("full_name", "Full name"),
                    ("phone", "Phone"),
                    ("address_line1", "Address line 1"),
                    ("address_line2", "Address line 2"),
                    ("landmark", "Landmark"),
                    ("city", "City"),
                    ("state", "State"),
                    ("pincode", "Pincode"),
                ):
                    ui.input(label, value=getattr(form, key), on_change=lambda e, k=key: setattr(form, k, str(e.value or ""))).props("dense outlined").classes("w-full")
                ui.checkbox("Set as default", value=form.is_default, on_change=lambda e: setattr(form, "is_default", bool(e.value)))
                with ui.row().classes("q-gutter-sm"):
                    ui.button("Lookup pincode", on_click=lambda: kit.invoke(lambda: runtime.fill_from_pincode(form), render_address_form.refresh)).props("flat")
                    ui.button("Use my location", on_click=use_my_location).props("flat")
                    ui.button("Save", on_click=save_address).props("unelevated color=green-8")

            def open_form(initial: WebAddressForm) -> None:
                nonlocal form
                form = initial
                address_body.clear()
                with address_body:
                    render_address_form()
                address_dialog.open()

            async def use_my_location() -> None:
                coords = await _browser_location()
                if coords is None:
                    ui.notify("Location permission denied", color="warning")
                    return
                kit.invoke(lambda: runtime.fill_from_location(form, coords[0], coords[1]), render_address_form.refresh)

            def save_address() -> None:
                if kit.invoke(lambda: runtime.save_address(form), render_addresses.refresh):
                    address_dialog.close()

            @ui.refreshable
            def render_error_log() -> None:
                entries = runtime.error_log()
                if not entries:
                    ui.label("No recent errors.").classes("shop-muted")
                for entry in entries:
                    ui.label(f"{entry.get('at', '')} [{entry.get('code', '')}] {entry.get('message', '')}").classes("text-caption")

            async def save_settings() -> None:
                try:
                    payload = settings_form.to_payload()
                    runtime.apply_settings_payload(payload)
                    runtime.save_settings()
                    dumped = json.dumps(runtime.settings_payload(), ensure_ascii=False)
                    await ui.run_javascript(
                        f"localStorage.setItem({json.dumps(BROWSER_SETTINGS_KEY)}, {json.dumps(dumped)});"
                    )
                    ui.notify("Settings saved.", color="positive")
                except Exception as exc:
                    _notify_error(runtime, exc)

            def export_settings() -> None:
                ui.download(
                    json.dumps(runtime.settings_payload(), ensure_ascii=False, indent=2).encode("utf-8"),
                    filename="storefront_settings.json",
                )

            def on_import_settings(event: Any) -> None:
                try:
                    payload = parse_settings_json(event.content.read().decode("utf-8-sig"))
                    runtime.apply_settings_payload(payload)
                    runtime.save_settings()
                    ui.notify("Imported settings JSON.", color="positive")
                except Exception as exc:
                    _notify_error(runtime, exc)

            with ui.tabs() as tabs:
                tab_addresses = ui.tab("Addresses")
                tab_settings = ui.tab("Settings")
                tab_errors = ui.tab("Diagnostics")
            with ui.tab_panels(tabs, value=tab_addresses).classes("w-full"):
                with ui.tab_panel(tab_addresses):
                    render_addresses()
                with ui.tab_panel(tab_settings):
                    with ui.column().classes("q-gutter-sm"):
                        for key, label in (
                            ("backend_url", "Backend URL"),
                            ("anon_key", "Anon key"),
                            ("functions_url", "Functions URL"),
                            ("google_maps_key", "Google Maps key"),
                            ("serviceable_pincodes", "Serviceable pincodes (comma separated)"),
                        ):
                            ui.input(label, value=getattr(settings_form, key), on_change=lambda e, k=key: setattr(settings_form, k, str(e.value or ""))).props("dense outlined").classes("w-96")
                        with ui.row().classes("q-gutter-sm"):
                            ui.number("Request timeout (s)", value=settings_form.request_timeout_s, on_change=lambda e: setattr(settings_form, "request_timeout_s", int(e.value or 10))).props("dense outlined")
                            ui.number("Retries", value=settings_form.retries, on_change=lambda e: setattr(settings_form, "retries", int(e.value or 0))).props("dense outlined")
                            ui.number("Order poll interval (s)", value=settings_form.order_poll_interval_s, on_change=lambda e: setattr(settings_form, "order_poll_interval_s", int(e.value or 15))).props("dense outlined")
                        ui.checkbox("Enable debug logging", value=settings_form.debug_logging, on_change=lambda e: setattr(settings_form, "debug_logging", bool(e.value)))
                        with ui.row().classes("q-gutter-sm"):
                            ui.button("Save", on_click=save_settings, color="primary")
                            ui.button("Export JSON", on_click=export_settings)
                            ui.upload(on_upload=on_import_settings, auto_upload=True, label="Import JSON")
                with ui.tab_panel(tab_errors):
                    render_error_log()

    # ------------------------------------------------------------------
    # Vendor and delivery dashboards
    # ------------------------------------------------------------------
    @ui.page("/vendor")
    def vendor_page() -> None:
        kit = current()
        runtime = kit.runtime
        with kit.frame("Vendor Dashboard"):
            if not kit.require_sign_in("/vendor"):
                return
            if not kit.invoke(runtime.load_vendor_dashboard):
                return
            vm = runtime.vendor_vm
            product_form = WebProductForm()
            action_labels = {"assign": "Assign Nearest Partner", "reject": "Reject", "hide": "Remove"}

            @ui.refreshable
            def render_requests() -> None:
                ui.label(f"Pending orders: {vm.pending_count()}").classes("text-subtitle1")
                for row in vm.rows():
                    with ui.card().classes("shop-card w-full q-pa-sm"):
                        with ui.row().classes("w-full items-center justify-between"):
                            ui.label(f"Order #{row.short_id}").classes("text-weight-medium")
                            ui.badge(row.status_label, color=row.status_color)
                        ui.label(f"{row.amount} · {row.payment_label} · {row.distance} · {row.created_at}").classes("text-caption shop-muted")
                        with ui.row().classes("q-gutter-sm"):
                            for action in row.actions:
                                ui.button(
                                    action_labels[action],
                                    on_click=lambda _, rid=row.request_id, a=action: kit.invoke(lambda: runtime.vendor_action(rid, a), render_requests.refresh),
                                ).props("dense unelevated" if action == "assign" else "dense flat")

            editing = {"product_id": ""}

            @ui.refreshable
            def render_products() -> None:
                rows = vm.product_rows()
                if not rows:
                    ui.label("No products yet.").classes("shop-muted")
                for row in rows:
                    with ui.card().classes("shop-card w-full q-pa-sm"):
                        with ui.row().classes("w-full items-center justify-between"):
                            with ui.row().classes("items-center q-gutter-sm"):
                                if row.image_url:
                                    ui.image(row.image_url).classes("w-16 h-16 rounded-borders")
                                with ui.column().classes("gap-0"):
                                    ui.label(row.name).classes("text-weight-medium")
                                    ui.label(f"{row.price} · {row.stock}").classes("text-caption shop-muted")
                            ui.badge(row.approval_label, color=row.approval_color)
                        with ui.row().classes("q-gutter-sm"):
                            ui.button("Edit", on_click=lambda _, r=row: open_edit(r)).props("dense flat")
                            ui.button("Photos", on_click=lambda _, pid=row.product_id: open_photos(pid)).props("dense flat")
                            ui.button(
                                "Delete",
                                on_click=lambda _, pid=row.product_id: kit.invoke(lambda: runtime.delete_vendor_product(pid), render_products.refresh),
                            ).props("dense flat color=negative")

            def open_edit(row: Any) -> None:
                editing["product_id"] = row.product_id
                edit_title.set_text(row.name)
                price_input.value = f"{row.price_value:.2f}"
                stock_input.value = str(row.stock_value)
                edit_dialog.open()

            def save_edit() -> None:
                if kit.invoke(
                    lambda: runtime.update_vendor_product(editing["product_id"], price_input.value, stock_input.value),
                    render_products.refresh,
                ):
                    edit_dialog.close()
                    ui.notify("Product updated", color="positive")

            with ui.dialog() as edit_dialog, ui.card().classes("q-pa-md"):
                ui.label("Edit Product").classes("text-subtitle1")
                edit_title = ui.label().classes("text-caption shop-muted")
                price_input = ui.input("Price (₹)").props("dense outlined")
                stock_input = ui.input("Stock").props("dense outlined")
                with ui.row().classes("q-gutter-sm"):
                    ui.button("Cancel", on_click=edit_dialog.close).props("flat")
                    ui.button("Save", on_click=save_edit).props("unelevated color=green-8")

            @ui.refreshable
            def render_photos() -> None:
                product_id = vm.photos_product_id
                product = vm.find_product(product_id) if product_id else None
                if product is None:
                    return
                ui.label(f"Photos · {product.name}").classes("text-subtitle1")
                if not vm.photos:
                    ui.label("No photos uploaded yet.").classes("shop-muted")
                with ui.row().classes("q-gutter-sm"):
                    for photo in vm.photos:
                        with ui.column().classes("items-center gap-1"):
                            ui.image(photo.url).classes("w-24 h-24 rounded-borders")
                            if photo.url == product.main_image_url:
                                ui.badge("Main", color="positive")
                            else:
                                ui.button(
                                    "Set main",
                                    on_click=lambda _, n=photo.name: kit.invoke(
                                        lambda: runtime.set_main_product_photo(product_id, n),
                                        render_photos.refresh,
                                        render_products.refresh,
                                    ),
                                ).props("dense flat")
                            ui.button(
                                icon="delete",
                                on_click=lambda _, n=photo.name: kit.invoke(lambda: runtime.remove_product_photo(product_id, n), render_photos.refresh),
                            ).props("dense flat color=negative")

            def open_photos(product_id: str) -> None:
                if kit.invoke(lambda: runtime.load_product_photos(product_id), render_photos.refresh):
                    photo_dialog.open()

            def on_photo_upload(event: Any, main: bool) -> None:
                product_id = vm.photos_product_id
                if product_id is None:
                    return
                if kit.invoke(
                    lambda: runtime.upload_product_photo(product_id, event.name, event.content.read(), main=main),
                    render_photos.refresh,
                    render_products.refresh,
                ):
                    ui.notify("Photo uploaded", color="positive")

            with ui.dialog() as photo_dialog, ui.card().classes("q-pa-md").style("min-width: 420px"):
                render_photos()
                ui.upload(on_upload=lambda e: on_photo_upload(e, True), auto_upload=True, label="Upload main photo").props("accept=image/*")
                ui.upload(on_upload=lambda e: on_photo_upload(e, False), auto_upload=True, multiple=True, label="Add angle photos").props("accept=image/*")

            def add_product() -> None:
                if kit.invoke(lambda: runtime.create_vendor_product(product_form)):
                    ui.notify("Product submitted for approval", color="positive")
                    kit.invoke(runtime.load_vendor_products, render_products.refresh)

            with ui.row().classes("w-full justify-end"):
                refresh_bell = kit.notification_bell(runtime.vendor_notifications)
            with ui.tabs() as tabs:
                tab_orders = ui.tab("Orders")
                tab_products = ui.tab("My Products")
                tab_product = ui.tab("Add Product")
            with ui.tab_panels(tabs, value=tab_orders).classes("w-full"):
                with ui.tab_panel(tab_orders):
                    render_requests()
                with ui.tab_panel(tab_products):
                    kit.invoke(runtime.load_vendor_products)
                    render_products()
                with ui.tab_panel(tab_product):
                    with ui.column().classes("q-gutter-sm"):
                        categories = {c.id: c.name for c in runtime.categories()}
                        ui.input("Name", on_change=lambda e: setattr(product_form, "name", str(e.value or ""))).props("dense outlined")
                        ui.input("Price", on_change=lambda e: setattr(product_form, "price", str(e.value or ""))).props("dense outlined")
                        ui.input("Stock", value="0", on_change=lambda e: setattr(product_form, "stock", str(e.value or "0"))).props("dense outlined")
                        ui.select(categories, label="Category", on_change=lambda e: setattr(product_form, "category_id", e.value)).props("dense outlined").classes("w-64")
                        ui.input("Unit", value="piece", on_change=lambda e: setattr(product_form, "unit", str(e.value or ""))).props("dense outlined")
                        ui.input("Image URL", on_change=lambda e: setattr(product_form, "image_url", str(e.value or ""))).props("dense outlined")
                        ui.input("Brand", on_change=lambda e: setattr(product_form, "brand", str(e.value or ""))).props("dense outlined")
                        ui.input("SKU", on_change=lambda e: setattr(product_form, "sku", str(e.value or ""))).props("dense outlined")
                        ui.textarea("Description", on_change=lambda e: setattr(product_form, "description", str(e.value or "")))
                        ui.button("Submit Product", on_click=add_product).props("unelevated color=green-8")

            def periodic_refresh() -> None:
                if runtime.poll_vendor_notifications():
                    for note in runtime.vendor_feed.items[:3]:
                        ui.notify(note.message, color="info")
                    kit.invoke(runtime.load_vendor_dashboard, render_requests.refresh)
                refresh_bell()

            runtime.poll_vendor_notifications()
            ui.timer(10.0, periodic_refresh)

    @ui.page("/delivery")
    def delivery_page() -> None:
        kit = current()
        runtime = kit.runtime
        with kit.frame("Delivery Dashboard"):
            if not kit.require_sign_in("/delivery"):
                return
            if not kit.invoke(runtime.load_delivery_dashboard):
                return
            vm = runtime.delivery_vm
            action_labels = {
                "accept": "Accept",
                "reject": "Reject",
                "picked_up": "Mark Picked Up",
                "out_for_delivery": "Out for Delivery",
                "payment_received": "Payment Received",
                "delivered": "Mark Delivered",
                "hide": "Remove",
            }

            @ui.refreshable
            def render_jobs() -> None:
                ui.label(f"Active deliveries: {vm.active_count()}").classes("text-subtitle1")
                for row in vm.rows():
                    with ui.card().classes("shop-card w-full q-pa-sm"):
                        with ui.row().classes("w-full items-center justify-between"):
                            ui.label(f"Order #{row.short_id}").classes("text-weight-medium")
                            ui.badge(row.status_label, color=row.status_color)
                        with ui.row().classes("items-center q-gutter-sm"):
                            ui.label(row.amount)
                            ui.badge(row.payment_label, color=row.payment_color)
                            ui.label(f"Drop: {row.distance}").classes("text-caption shop-muted")
                        with ui.row().classes("q-gutter-sm"):
                            for action in row.actions:
                                ui.button(
                                    action_labels[action],
                                    on_click=lambda _, rid=row.request_id, a=action: kit.invoke(lambda: runtime.delivery_action(rid, a), render_jobs.refresh),
                                ).props("dense unelevated" if action != "reject" else "dense flat color=negative")

            async def share_location() -> None:
                coords = await _browser_location()
                if coords is None:
                    ui.notify("Location permission denied", color="warning")
                    return
                if kit.invoke(lambda: runtime.set_partner_location(coords[0], coords[1]), render_jobs.refresh):
                    ui.notify("Location updated", color="positive")

            with ui.row().classes("w-full justify-between items-center"):
                ui.button("Update my location", icon="my_location", on_click=share_location).props("outline")
                refresh_bell = kit.notification_bell(runtime.delivery_notifications)
            render_jobs()

            def periodic_refresh() -> None:
                if runtime.poll_delivery_notifications():
                    for note in runtime.delivery_feed.items[:3]:
                        ui.notify(note.message, color="info")
                    kit.invoke(runtime.load_delivery_dashboard, render_jobs.refresh)
                refresh_bell()

            runtime.poll_delivery_notifications()
            ui.timer(10.0, periodic_refresh)

    @ui.page("/admin")
    def admin_page() -> None:
        kit = current()
        runtime = kit.runtime
        with kit.frame("Admin"):
            if not kit.require_sign_in("/admin"):
                return
            if not runtime.has_role("admin"):
                ui.label("Only admins can view this page.").classes("text-negative")
                return
            vendor = {"email": "", "business_name": "", "full_name": "", "phone": "", "business_address": "", "gstin": ""}
            partner = {"email": "", "full_name": "", "phone": "", "vehicle_type": "", "vehicle_number": ""}

            def form(state: dict) -> None:
                for key in state:
                    ui.input(key.replace("_", " ").title(), on_change=lambda e, k=key: state.__setitem__(k, str(e.value or ""))).props("dense outlined").classes("w-80")

            def create_vendor() -> None:
                fields = {k: v for k, v in vendor.items() if k not in {"email", "business_name"}}
                result: dict = {}
                if kit.invoke(lambda: result.update(runtime.create_vendor_account(vendor["email"], vendor["business_name"], **fields))):
                    ui.notify(onboarding_notice(result, "Vendor account created"), color="positive", close_button="OK", timeout=0)
                    kit.invoke(runtime.load_admin_dashboard, render_dashboard.refresh)

            def create_partner() -> None:
                fields = {k: v for k, v in partner.items() if k != "email"}
                result: dict = {}
                if kit.invoke(lambda: result.update(runtime.create_partner_account(partner["email"], **fields))):
                    ui.notify(onboarding_notice(result, "Delivery partner created"), color="positive", close_button="OK", timeout=0)
                    kit.invoke(runtime.load_admin_dashboard, render_dashboard.refresh)

            def account_list(title: str, rows: list, toggle: Callable[[str, str], Any]) -> None:
                ui.label(title).classes("text-subtitle1 q-mt-md")
                if not rows:
                    ui.label("Nothing here yet.").classes("shop-muted")
                for row in rows:
                    with ui.card().classes("shop-card w-full q-pa-sm"):
                        with ui.row().classes("w-full items-center justify-between"):
                            with ui.column().classes("gap-0"):
                                ui.label(row.title).classes("text-weight-medium")
                                if row.subtitle:
                                    ui.label(row.subtitle).classes("text-caption shop-muted")
                                ui.label(row.status).classes("text-caption")
                            with ui.row().classes("q-gutter-sm"):
                                for flag, label in row.buttons:
                                    ui.button(
                                        label,
                                        on_click=lambda _, aid=row.account_id, f=flag: kit.invoke(lambda: toggle(aid, f), render_dashboard.refresh),
                                    ).props("dense outline")

            @ui.refreshable
            def render_dashboard() -> None:
                vm = runtime.admin_vm
                with ui.row().classes("q-gutter-md"):
                    for label, value in vm.stat_tiles():
                        with ui.card().classes("shop-card q-pa-md items-center"):
                            ui.label(str(value)).classes("text-h5 text-weight-bold")
                            ui.label(label).classes("text-caption shop-muted")
                account_list("Vendors", vm.vendor_rows(), runtime.toggle_vendor_flag)
                account_list("Delivery partners", vm.partner_rows(), runtime.toggle_partner_flag)

            kit.invoke(runtime.load_admin_dashboard)
            with ui.tabs() as tabs:
                tab_overview = ui.tab("Overview")
                tab_onboard = ui.tab("Onboarding")
            with ui.tab_panels(tabs, value=tab_overview).classes("w-full"):
                with ui.tab_panel(tab_overview):
                    render_dashboard()
                with ui.tab_panel(tab_onboard):
                    with ui.row().classes("q-gutter-lg items-start"):
                        with ui.card().classes("shop-card q-pa-md"):
                            ui.label("Create vendor").classes("text-subtitle1")
                            form(vendor)
                            ui.button("Create Vendor", on_click=create_vendor).props("unelevated color=green-8")
                        with ui.card().classes("shop-card q-pa-md"):
                            ui.label("Create delivery partner").classes("text-subtitle1")
                            form(partner)
                            ui.button("Create Partner", on_click=create_partner).props("unelevated color=green-8")

    # ------------------------------------------------------------------
    # Static pages
    # ------------------------------------------------------------------
    @ui.page("/pages/{slug}")
    def static_page(slug: str) -> None:
        kit = current()
        title, paragraphs = STATIC_PAGES.get(slug, ("Page not found", ["The page you requested does not exist."]))
        with kit.frame(title):
            for paragraph in paragraphs:
                ui.markdown(paragraph)


async def _browser_location() -> Optional[tuple]:
    result = await ui.run_javascript(
        """
return await new Promise((resolve) => {
  if (!navigator.geolocation) { resolve(null); return; }
  navigator.geolocation.getCurrentPosition(
    (p) => resolve([p.coords.latitude, p.coords.longitude]),
    () => resolve(null),
    { enableHighAccuracy: true, timeout: 15000 },
  );
});
""",
        timeout=20,
    )
    if not isinstance(result, list) or len(result) != 2:
        return None
    return float(result[0]), float(result[1])


def _parse_args() -> argparse.Namespace:
    """Parse CLI args for web runtime startup."""
    parser = argparse.ArgumentParser(description="Run the storefront NiceGUI web UI.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--reload", action="store_true")
    parser.add_argument("--mock", action="store_true", help="serve from the in-memory demo backend")
    parser.add_argument("--storage-root", default=None)
    parser.add_argument("--smoke-test", action="store_true")
    return parser.parse_args()


def main() -> None:
    """CLI entrypoint for the NiceGUI runtime."""
    args = _parse_args()
    configure_root()
    shared = SharedState(mock=args.mock, storage_root=args.storage_root)
    if args.smoke_test:
        payload = shared.settings_vm.to_dict()
        print("web-smoke-ok", sorted(payload.keys()))
        return
    _install_theme()
    _build_ui(RuntimeRegistry(shared))
    ui.run(
        host=args.host,
        port=args.port,
        title="Kash It",
        reload=args.reload,
        show=False,
        storage_secret=os.environ.get("STOREFRONT_WEB_STORAGE_SECRET", "storefront-web-ui-secret"),
    )


if __name__ in {"__main__", "__mp_main__"}:
    main()
