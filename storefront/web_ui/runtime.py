"""NiceGUI runtime orchestration for the storefront.

This module composes viewmodels and use cases for the web runtime. Pages call
methods here; every backend failure surfaces as ``UseCaseError`` so the page
layer only has to show ``exc.message``.

The server holds one :class:`SharedState` (operator settings and, in mock
mode, the demo backend) and one :class:`WebRuntime` per browser, handed out
by :class:`RuntimeRegistry`. A runtime owns its own controller, so its own
HTTP session and access token, and keeps the shopper's session, cart and
orders apart from every other visitor.
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import datetime, timezone
import logging
import os
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Tuple
from uuid import uuid4
import weakref

from storefront.adapters.backend_mock import InMemoryBackend
from storefront.adapters.storage_browser import BrowserStorage
from storefront.adapters.storage_local import StorageLocal
from storefront.app.controller import AppController
from storefront.domain.checkout import PAYMENT_ONLINE, PaymentConfirmation
from storefront.domain.entities import Address, CartLine, Category, Order, Product, Session, VendorProduct
from storefront.domain.notifications import NotificationFeed
from storefront.domain.ports import UseCaseError
from storefront.domain.serviceability import ServiceabilityResult
from storefront.domain.recently_viewed import ViewedProduct
from storefront.usecases.catalog import HomeFeed
from storefront.usecases.checkout import STORE_NAME
from storefront.usecases.poll_notifications import PollNotifications
from storefront.utils.logging import apply_ui_preferences
from storefront.viewmodels.admin_vm import AdminDashboardVM
from storefront.viewmodels.checkout_vm import CheckoutVM
from storefront.viewmodels.delivery_vm import DeliveryDashboardVM
from storefront.viewmodels.notifications_vm import NotificationsVM
from storefront.viewmodels.orders_vm import OrdersVM
from storefront.viewmodels.product_vm import ProductVM
from storefront.viewmodels.receipt import receipt_filename, receipt_html
from storefront.viewmodels.settings_vm import SettingsVM
from storefront.viewmodels.vendor_vm import VendorDashboardVM
from storefront.web_ui.viewmodels import WebAddressForm, WebProductForm, WebReviewForm


LOGGER = logging.getLogger(__name__)

SETTINGS_PREFS_KEY = "settings"
MAX_CLIENTS = 500


class SharedState:
    """Process-wide state: operator settings, their JSON file and the demo backend."""

    def __init__(self, *, mock: bool = False, storage_root: Optional[str] = None) -> None:
        self.storage = StorageLocal(
            root_dir=storage_root or os.environ.get("STOREFRONT_STORAGE_ROOT") or ".storefront"
        )
        self.settings_vm = SettingsVM(on_save=self._persist_settings)
        self._load_settings_defaults()
        self.backend = InMemoryBackend().seed_demo() if mock else None
        self._runtimes: "weakref.WeakSet[WebRuntime]" = weakref.WeakSet()

    def attach(self, runtime: "WebRuntime") -> None:
        self._runtimes.add(runtime)

    def apply_settings(self, payload: Mapping[str, Any]) -> None:
        """Apply new settings and rewire every live runtime against them."""
        self.settings_vm.apply_dict(payload)
        apply_ui_preferences(self.settings_vm.debug_logging)
        for runtime in list(self._runtimes):
            runtime.rewire()

    def save_settings(self) -> None:
        self.settings_vm.cmd_save()

    def _persist_settings(self, payload: Dict[str, Any]) -> None:
        prefs = self.storage.load_user_prefs()
        prefs[SETTINGS_PREFS_KEY] = payload
        self.storage.save_user_prefs(prefs)

    def _load_settings_defaults(self) -> None:
        try:
            prefs = self.storage.load_user_prefs()
        except Exception as exc:
            LOGGER.warning("Could not load local settings defaults: %s", exc)
            return
        payload = prefs.get(SETTINGS_PREFS_KEY)
        if not isinstance(payload, dict):
            return
        try:
            self.settings_vm.apply_dict(payload)
        except ValueError as exc:
            LOGGER.warning("Could not apply local settings defaults: %s", exc)
            return
        apply_ui_preferences(self.settings_vm.debug_logging)


class RuntimeRegistry:
    """Hands out one ``WebRuntime`` per browser id.

    ``state`` is the browser's persistent mapping (``app.storage.user``), so
    a runtime evicted from the registry is rebuilt signed in on the next
    request from that browser.
    """

    def __init__(self, shared: SharedState, *, max_clients: int = MAX_CLIENTS) -> None:
        self.shared = shared
        self.max_clients = max_clients
        self._by_client: "OrderedDict[str, WebRuntime]" = OrderedDict()

    def for_client(self, client_id: str, state: MutableMapping[str, Any]) -> "WebRuntime":
        runtime = self._by_client.get(client_id)
        if runtime is None:
            runtime = WebRuntime(shared=self.shared, client_state=state)
            self._by_client[client_id] = runtime
            LOGGER.debug("Created runtime for browser %s", client_id)
            while len(self._by_client) > self.max_clients:
                self._by_client.popitem(last=False)
        else:
            self._by_client.move_to_end(client_id)
        return runtime

    def __len__(self) -> int:
        return len(self._by_client)


class WebRuntime:
    """Orchestration state used by NiceGUI pages for one browser.

    Without ``shared`` the runtime builds a private ``SharedState``; without
    ``client_state`` the shopper's state lives in a plain dict and is lost
    with the runtime.
    """

    def __init__(
        self,
        *,
        mock: bool = False,
        storage_root: Optional[str] = None,
        shared: Optional[SharedState] = None,
        client_state: Optional[MutableMapping[str, Any]] = None,
    ) -> None:
        self.status_message = "Ready."
        self.session: Optional[Session] = None
        self.home: Optional[HomeFeed] = None
        self.listing: List[Product] = []
        self.listing_title = "All Products"
        self.wishlist: List[Product] = []
        self.addresses: List[Address] = []
        self.last_payment_options: Dict[str, Any] = {}

        self.shared = shared or SharedState(mock=mock, storage_root=storage_root)
        self.settings_vm = self.shared.settings_vm
        self.storage = BrowserStorage(client_state if client_state is not None else {}, self.shared.storage)
        self.pincode: str = self.storage.load_pincode()

        shared_backend = self.shared.backend
        self.backend = shared_backend.client_view() if shared_backend is not None else None
        self.controller = AppController(self.settings_vm, self.storage, backend=self.backend)

        self.checkout_vm = CheckoutVM()
        self.cart_vm = self.checkout_vm.cart
        self.orders_vm = OrdersVM()
        self.product_vm = ProductVM()
        self.vendor_vm = VendorDashboardVM()
        self.delivery_vm = DeliveryDashboardVM()
        self.admin_vm = AdminDashboardVM()
        self.vendor_feed = NotificationFeed()
        self.delivery_feed = NotificationFeed()
        self.vendor_notifications = NotificationsVM(self.vendor_feed)
        self.delivery_notifications = NotificationsVM(self.delivery_feed)
        self._vendor_poll: Optional[PollNotifications] = None
        self._delivery_poll: Optional[PollNotifications] = None

        self.shared.attach(self)
        self._restore_session()

    # ------------------------------------------------------------------
    # Basic projections
    # ------------------------------------------------------------------
    @property
    def is_signed_in(self) -> bool:
        return self.session is not None

    def has_role(self, role: str) -> bool:
        return self.session is not None and self.session.has_role(role)

    def settings_payload(self) -> Dict[str, Any]:
        return self.settings_vm.to_dict()

    def apply_settings_payload(self, payload: Mapping[str, Any]) -> None:
        self.shared.apply_settings(payload)
        self.status_message = "Settings applied."

    def save_settings(self) -> None:
        self.shared.save_settings()
        self.status_message = "Settings saved."

    def rewire(self) -> None:
        """Rebuild adapters from current settings, keeping this browser signed in."""
        self.controller.reset()
        self.session = None
        self._restore_session()

    def ensure_adapter(self) -> None:
        if not self.controller.ensure_ready():
            raise UseCaseError(
                "NOT_CONFIGURED",
                "Configure the backend URL and anon key in Settings first.",
            )

    def record_error(self, exc: Exception) -> None:
        """Keep the last few failures for the diagnostics panel."""
        entry = {
            "at": datetime.now(timezone.utc).isoformat(),
            "code": getattr(exc, "code", type(exc).__name__),
            "message": getattr(exc, "message", None) or str(exc),
        }
        try:
            self.storage.append_error_log(entry)
        except OSError as err:
            LOGGER.warning("Could not write error log: %s", err)

    def error_log(self) -> List[Dict]:
        return list(reversed(self.storage.load_error_log()))

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------
    def sign_in(self, email: str, password: str) -> Session:
        self.ensure_adapter()
        self.session = self.controller.uc_sign_in(email, password)
        self._reset_dashboards()
        self.refresh_cart()
        self.status_message = f"Signed in as {self.session.email}."
        return self.session

    def sign_out(self) -> None:
        self.ensure_adapter()
        self.controller.uc_sign_out()
        self.session = None
        self.cart_vm.set_lines([])
        self.cart_vm.clear_coupon()
        self.orders_vm.set_orders([], [])
        self.addresses = []
        self.wishlist = []
        self._reset_dashboards()
        self.status_message = "Signed out."

    def send_signup_otp(self, email: str, full_name: str = "") -> str:
        self.ensure_adapter()
        address = self.controller.uc_send_otp(email, full_name)
        self.status_message = f"Verification code sent to {address}."
        return address

    def verify_signup(
        self,
        email: str,
        code: str,
        password: str,
        *,
        full_name: str = "",
        phone: str = "",
    ) -> Session:
        self.ensure_adapter()
        self.controller.uc_verify_otp(email, code, password, full_name=full_name, phone=phone)
        return self.sign_in(email, password)

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------
    def load_home(self) -> HomeFeed:
        self.ensure_adapter()
        self.home = self.controller.uc_home_feed()
        return self.home

    def categories(self) -> List[Category]:
        if self.home is None:
            self.load_home()
        return list(self.home.categories) if self.home else []

    def browse(self, *, category_id: Optional[str] = None, sort: str = "newest") -> List[Product]:
        self.ensure_adapter()
        self.listing = self.controller.uc_browse(category_id=category_id, sort=sort)
        names = {c.id: c.name for c in self.categories()}
        self.listing_title = names.get(category_id or "", "All Products")
        return self.listing

    def search(self, query: str, *, sort: str = "newest") -> List[Product]:
        self.ensure_adapter()
        self.listing = self.controller.uc_search(query, sort=sort)
        self.listing_title = f'Results for "{query.strip()}"' if query.strip() else "Search"
        return self.listing

    def open_product(self, product_id: str) -> ProductVM:
        self.ensure_adapter()
        detail = self.controller.uc_product_detail(product_id)
        vm = self.product_vm
        vm.set_product(detail.product, detail.rating)
        vm.recently_viewed = detail.recently_viewed
        self._load_product_reviews(product_id)
        vm.cart_quantity = 0
        vm.wishlisted = False
        if self.session is not None:
            try:
                vm.cart_quantity = self.controller.cart.cart_quantity(self.session.user_id, product_id)
                vm.wishlisted = self.controller.wishlist.wishlist_contains(self.session.user_id, product_id)
            except Exception as exc:
                LOGGER.warning("Could not load cart/wishlist state for %s: %s", product_id, exc)
        return vm

    def _load_product_reviews(self, product_id: str) -> None:
        result = self.controller.uc_product_reviews(product_id, self.session)
        self.product_vm.set_reviews(result.reviews, result.stats)
        self.product_vm.can_mark_verified = result.can_mark_verified

    def recently_viewed(self) -> List[ViewedProduct]:
        return self.product_vm.recently_viewed

    def submit_product_review(self, rating: int, *, title: str = "", comment: str = "") -> None:
        self.ensure_adapter()
        product = self.product_vm.product
        if product is None:
            raise UseCaseError("PRODUCT_NOT_FOUND", "Product not found.")
        self.controller.uc_submit_review(self.session, product.id, rating, title=title, comment=comment)
        self._load_product_reviews(product.id)
        self.status_message = "Thanks for your review!"

    # ------------------------------------------------------------------
    # Cart and wishlist
    # ------------------------------------------------------------------
    def refresh_cart(self) -> None:
        if not self.controller.ensure_ready():
            return
        self.cart_vm.set_lines(self.controller.uc_load_cart(self.session))

    def add_to_cart(self, product_id: str, quantity: int = 1) -> int:
        self.ensure_adapter()
        new_quantity = self.controller.uc_add_to_cart(self.session, product_id, quantity)
        self._after_cart_change(product_id, new_quantity)
        return new_quantity

    def change_quantity(self, product_id: str, quantity: int) -> int:
        self.ensure_adapter()
        new_quantity = self.controller.uc_change_quantity(self.session, product_id, quantity)
        self._after_cart_change(product_id, new_quantity)
        return new_quantity

    def _after_cart_change(self, product_id: str, quantity: int) -> None:
        self.refresh_cart()
        product = self.product_vm.product
        if product is not None and product.id == product_id:
            self.product_vm.cart_quantity = quantity

    def apply_coupon(self, code: str) -> None:
        self.ensure_adapter()
        try:
            normalized, discount = self.controller.uc_apply_coupon(code, self.cart_vm.subtotal)
        except UseCaseError as exc:
            self.cart_vm.coupon_failed(exc.message)
            raise
        self.cart_vm.apply_coupon(normalized, discount)
        self.status_message = f"Coupon {normalized} applied."

    def remove_coupon(self) -> None:
        self.cart_vm.clear_coupon()

    def toggle_wishlist(self, product_id: str) -> bool:
        self.ensure_adapter()
        added = self.controller.uc_toggle_wishlist(self.session, product_id)
        product = self.product_vm.product
        if product is not None and product.id == product_id:
            self.product_vm.wishlisted = added
        return added

    def load_wishlist(self) -> List[Product]:
        self.ensure_adapter()
        self.wishlist = self.controller.uc_list_wishlist(self.session)
        return self.wishlist

    # ------------------------------------------------------------------
    # Addresses and serviceability
    # ------------------------------------------------------------------
    def load_addresses(self) -> List[Address]:
        self.ensure_adapter()
        self.addresses = self.controller.uc_list_addresses(self.session)
        self.checkout_vm.set_addresses(self.addresses)
        return self.addresses

    def save_address(self, form: WebAddressForm) -> Address:
        self.ensure_adapter()
        address = self.controller.uc_save_address(self.session, form.to_draft(), address_id=form.address_id)
        self.load_addresses()
        self.status_message = "Address saved."
        return address

    def delete_address(self, address_id: str) -> None:
        self.ensure_adapter()
        self.controller.uc_delete_address(self.session, address_id)
        self.load_addresses()

    def set_default_address(self, address_id: str) -> None:
        self.ensure_adapter()
        self.controller.uc_default_address(self.session, address_id)
        self.load_addresses()

    def fill_from_pincode(self, form: WebAddressForm) -> None:
        self.ensure_adapter()
        info = self.controller.uc_lookup_pincode(form.pincode)
        form.city = info.city or form.city
        form.state = info.state or form.state
        if info.latitude is not None and info.longitude is not None:
            form.latitude, form.longitude = info.latitude, info.longitude

    def fill_from_location(self, form: WebAddressForm, latitude: float, longitude: float) -> None:
        self.ensure_adapter()
        result = self.controller.uc_reverse_geocode(latitude, longitude)
        form.latitude, form.longitude = latitude, longitude
        form.city = result.city or form.city
        form.state = result.state or form.state
        form.pincode = result.pincode or form.pincode
        if not form.address_line1:
            form.address_line1 = result.display_name

    def check_pincode(self, pincode: str) -> ServiceabilityResult:
        self.ensure_adapter()
        result = self.controller.uc_serviceability(pincode)
        if result.is_serviceable:
            self.pincode = pincode.strip()
            self.storage.save_pincode(self.pincode)
        return result

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------
    def prepare_checkout(self, buy_now_product_id: Optional[str] = None) -> CheckoutVM:
        self.ensure_adapter()
        if buy_now_product_id:
            product = self.controller.catalog.get_product(buy_now_product_id)
            if not product.in_stock:
                raise UseCaseError("OUT_OF_STOCK", "Out of Stock")
            buy_now_vm = CheckoutVM()
            buy_now_vm.set_items([CartLine(id="buy-now", product=product, quantity=1)], buy_now=True)
            self.checkout_vm = buy_now_vm
        else:
            self.checkout_vm = CheckoutVM(self.cart_vm)
            self.refresh_cart()
            self.checkout_vm.buy_now = False
        self.load_addresses()
        return self.checkout_vm

    def start_online_payment(self, contact: str = "") -> Dict[str, Any]:
        """Create the gateway order and return the checkout widget options."""
        self.ensure_adapter()
        vm = self.checkout_vm
        self.last_payment_options = self.controller.uc_start_payment(
            self.session,
            vm.cart.total,
            contact=contact or (vm.selected_address.phone if vm.selected_address else ""),
        )
        return self.last_payment_options

    def mock_payment(self) -> Optional[PaymentConfirmation]:
        """Mock mode has no payment widget; the gateway order counts as paid."""
        if not self.controller.is_mock:
            return None
        order_id = str(self.last_payment_options.get("order_id") or "")
        return PaymentConfirmation(order_id=order_id, payment_id=f"pay_mock_{uuid4().hex[:10]}")

    def place_order(self, payment: Optional[PaymentConfirmation] = None) -> Order:
        self.ensure_adapter()
        vm = self.checkout_vm
        if vm.payment_method == PAYMENT_ONLINE and payment is None:
            payment = self.mock_payment()
        vm.busy = True
        try:
            order = self.controller.uc_place_order(
                self.session,
                vm.cart.lines,
                vm.selected_address,
                payment_method=vm.payment_method,
                payment=payment,
                coupon_code=vm.cart.coupon_code,
                discount=vm.cart.discount,
                recipient=vm.recipient(),
                buy_now=vm.buy_now,
            )
        finally:
            vm.busy = False
        if not vm.buy_now:
            self.cart_vm.clear_coupon()
        self.refresh_cart()
        self.status_message = f"Order #{order.short_id} placed."
        LOGGER.info("Placed order %s (%s)", order.id, vm.payment_method)
        return order

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------
    def load_orders(self) -> OrdersVM:
        self.ensure_adapter()
        overview = self.controller.uc_list_orders(self.session)
        self.orders_vm.set_orders(overview.live, overview.history)
        return self.orders_vm

    def poll_live_orders(self) -> int:
        """Re-read every live order; returns how many changed status."""
        if self.session is None or not self.controller.ensure_ready():
            return 0
        changed = 0
        for order_id in self.orders_vm.live_order_ids():
            before = self.orders_vm.find(order_id)
            try:
                fresh = self.controller.uc_poll_order(order_id)
            except UseCaseError as exc:
                LOGGER.debug("Polling order %s failed: %s", order_id, exc)
                continue
            if before is None or (fresh.request_status, fresh.delivery_status, fresh.payment_status) != (
                before.request_status,
                before.delivery_status,
                before.payment_status,
            ):
                changed += 1
            self.orders_vm.replace_order(fresh)
        return changed

    def hide_order(self, order_id: str) -> None:
        self.ensure_adapter()
        order = self._require_order(order_id)
        self.controller.uc_hide_order(order)
        self.load_orders()

    def submit_order_review(self, form: WebReviewForm) -> int:
        self.ensure_adapter()
        order = self._require_order(form.order_id)
        count = self.controller.uc_review_order(self.session, order, form.ratings, form.comments)
        self.load_orders()
        self.status_message = "Thanks for rating your order!"
        return count

    def skip_order_review(self, order_id: str) -> None:
        self.ensure_adapter()
        self.controller.uc_skip_review(self._require_order(order_id))
        self.load_orders()

    def order_receipt(self, order_id: str) -> Tuple[str, bytes]:
        """``(file name, HTML bytes)`` of a printable receipt for one order."""
        order = self._require_order(order_id)
        address = next((a for a in self.addresses if a.id == order.address_id), None)
        if address is None and order.address_id and self.session is not None:
            try:
                self.load_addresses()
            except UseCaseError as exc:
                LOGGER.debug("Receipt without address for %s: %s", order_id, exc)
            address = next((a for a in self.addresses if a.id == order.address_id), None)
        document = receipt_html(
            order,
            store_name=STORE_NAME,
            customer_name=self.session.full_name if self.session else "",
            customer_phone=address.phone if address else "",
            address=address,
        )
        return receipt_filename(order), document.encode("utf-8")

    def _require_order(self, order_id: str) -> Order:
        order = self.orders_vm.find(order_id)
        if order is None:
            raise UseCaseError("ORDER_NOT_FOUND", "Order not found.")
        return order

    # ------------------------------------------------------------------
    # Vendor dashboard
    # ------------------------------------------------------------------
    def load_vendor_dashboard(self) -> VendorDashboardVM:
        self.ensure_adapter()
        self.vendor_vm.set_requests(self.controller.uc_vendor_orders.list(self._vendor_id()))
        return self.vendor_vm

    def vendor_action(self, request_id: str, action: str) -> None:
        self.ensure_adapter()
        request = self.vendor_vm.find(request_id)
        if request is None:
            raise UseCaseError("ORDER_NOT_FOUND", "Order not found.")
        uc = self.controller.uc_vendor_orders
        handlers = {
            "assign": uc.assign_nearest,
            "reject": uc.reject,
            "hide": uc.hide,
        }
        if action not in handlers:
            raise UseCaseError("INVALID_ACTION", f"Unknown action: {action}")
        self.vendor_vm.mark_busy(request_id)
        try:
            handlers[action](request.order_id)
        finally:
            self.vendor_vm.mark_busy(request_id, False)
        self.load_vendor_dashboard()

    def create_vendor_product(self, form: WebProductForm) -> Any:
        self.ensure_adapter()
        result = self.controller.uc_vendor_product(**form.to_kwargs())
        self.status_message = "Product submitted for approval."
        return result

    def load_vendor_products(self) -> VendorDashboardVM:
        self.ensure_adapter()
        vendor_id = self._vendor_id()
        self.vendor_vm.set_products(self.controller.uc_vendor_products.list(vendor_id))
        return self.vendor_vm

    def update_vendor_product(self, product_id: str, price: Any, stock: Any) -> None:
        self.ensure_adapter()
        self.controller.uc_vendor_products.update(self._vendor_id(), product_id, price=price, stock=stock)
        self.status_message = "Product updated."
        self.load_vendor_products()

    def delete_vendor_product(self, product_id: str) -> None:
        self.ensure_adapter()
        product = self._require_vendor_product(product_id)
        self.controller.uc_vendor_products.delete(self._vendor_id(), product)
        self.status_message = "Product deleted successfully"
        self.load_vendor_products()

    def load_product_photos(self, product_id: str) -> VendorDashboardVM:
        self.ensure_adapter()
        self._require_vendor_product(product_id)
        self.vendor_vm.set_photos(product_id, self.controller.uc_vendor_products.photos(product_id))
        return self.vendor_vm

    def upload_product_photo(self, product_id: str, filename: str, content: bytes, *, main: bool = False) -> str:
        self.ensure_adapter()
        self._require_vendor_product(product_id)
        url = self.controller.uc_vendor_products.upload_photo(
            self._vendor_id(), product_id, filename, content, main=main
        )
        self.load_product_photos(product_id)
        if main:
            self.load_vendor_products()
        return url

    def remove_product_photo(self, product_id: str, name: str) -> None:
        self.ensure_adapter()
        self.controller.uc_vendor_products.remove_photo(product_id, name)
        self.load_product_photos(product_id)

    def set_main_product_photo(self, product_id: str, name: str) -> None:
        self.ensure_adapter()
        photo = self.vendor_vm.find_photo(name) if self.vendor_vm.photos_product_id == product_id else None
        if photo is None:
            raise UseCaseError("PHOTO_NOT_FOUND", "Photo not found.")
        self.controller.uc_vendor_products.set_main_photo(self._vendor_id(), product_id, photo)
        self.load_vendor_products()

    def _vendor_id(self) -> str:
        if self.vendor_vm.vendor_id is None:
            self.vendor_vm.vendor_id = self.controller.uc_vendor_orders.vendor_id(self.session)
        return self.vendor_vm.vendor_id

    def _require_vendor_product(self, product_id: str) -> VendorProduct:
        product = self.vendor_vm.find_product(product_id)
        if product is None:
            raise UseCaseError("PRODUCT_NOT_FOUND", "Product not found.")
        return product

    def poll_vendor_notifications(self) -> int:
        if self.vendor_vm.vendor_id is None or not self.controller.ensure_ready():
            return 0
        if self._vendor_poll is None:
            vendor_id = self.vendor_vm.vendor_id
            self._vendor_poll = PollNotifications(
                fetch=lambda: self.controller.uc_vendor_orders.list(vendor_id),
                role="vendor",
                feed=self.vendor_feed,
            )
        try:
            return len(self._vendor_poll())
        except UseCaseError as exc:
            LOGGER.debug("Vendor notification poll failed: %s", exc)
            return 0

    # ------------------------------------------------------------------
    # Delivery dashboard
    # ------------------------------------------------------------------
    def load_delivery_dashboard(self) -> DeliveryDashboardVM:
        self.ensure_adapter()
        uc = self.controller.uc_delivery_jobs
        if self.delivery_vm.partner_id is None:
            self.delivery_vm.partner_id = uc.partner_id(self.session)
        self.delivery_vm.set_requests(uc.list(self.delivery_vm.partner_id))
        return self.delivery_vm

    def set_partner_location(self, latitude: float, longitude: float) -> None:
        self.ensure_adapter()
        self.delivery_vm.set_location(latitude, longitude)
        if self.delivery_vm.partner_id:
            self.controller.uc_delivery_jobs.update_location(self.delivery_vm.partner_id, latitude, longitude)

    def delivery_action(self, request_id: str, action: str) -> None:
        self.ensure_adapter()
        request = self.delivery_vm.find(request_id)
        partner_id = self.delivery_vm.partner_id
        if request is None or partner_id is None:
            raise UseCaseError("ORDER_NOT_FOUND", "Order not found.")
        uc = self.controller.uc_delivery_jobs
        location = self.delivery_vm.current_location
        self.delivery_vm.mark_busy(request_id)
        try:
            if action == "accept":
                uc.respond(partner_id, request, "accepted")
            elif action == "reject":
                uc.respond(partner_id, request, "rejected")
            elif action == "picked_up":
                uc.mark_picked_up(request)
            elif action == "out_for_delivery":
                uc.mark_out_for_delivery(
                    partner_id,
                    request,
                    latitude=location[0] if location else None,
                    longitude=location[1] if location else None,
                )
            elif action == "payment_received":
                uc.mark_payment_received(request)
            elif action == "delivered":
                uc.mark_delivered(request)
            elif action == "hide":
                uc.hide(request.order_id)
            else:
                raise UseCaseError("INVALID_ACTION", f"Unknown action: {action}")
        finally:
            self.delivery_vm.mark_busy(request_id, False)
        self.load_delivery_dashboard()

    def poll_delivery_notifications(self) -> int:
        if self.delivery_vm.partner_id is None or not self.controller.ensure_ready():
            return 0
        if self._delivery_poll is None:
            partner_id = self.delivery_vm.partner_id
            self._delivery_poll = PollNotifications(
                fetch=lambda: self.controller.uc_delivery_jobs.list(partner_id),
                role="delivery",
                feed=self.delivery_feed,
            )
        try:
            return len(self._delivery_poll())
        except UseCaseError as exc:
            LOGGER.debug("Delivery notification poll failed: %s", exc)
            return 0

    # ------------------------------------------------------------------
    # Admin dashboard and onboarding
    # ------------------------------------------------------------------
    def create_vendor_account(self, email: str, business_name: str, **fields: str) -> Dict[str, Any]:
        self.ensure_adapter()
        self._require_admin()
        return self.controller.uc_create_vendor(email, business_name, **fields)

    def create_partner_account(self, email: str, **fields: str) -> Dict[str, Any]:
        self.ensure_adapter()
        self._require_admin()
        return self.controller.uc_create_partner(email, **fields)

    def load_admin_dashboard(self) -> AdminDashboardVM:
        self.ensure_adapter()
        self._require_admin()
        uc = self.controller.uc_admin_dashboard
        self.admin_vm.set_stats(uc.stats())
        self.admin_vm.set_vendors(uc.vendors())
        self.admin_vm.set_partners(uc.partners())
        return self.admin_vm

    def toggle_vendor_flag(self, vendor_id: str, flag: str) -> bool:
        self.ensure_adapter()
        self._require_admin()
        vendor = self.admin_vm.find_vendor(vendor_id)
        if vendor is None:
            raise UseCaseError("VENDOR_NOT_FOUND", "Vendor not found.")
        value = self.controller.uc_admin_dashboard.toggle_vendor(vendor, flag)
        self.admin_vm.set_vendors(self.controller.uc_admin_dashboard.vendors())
        return value

    def toggle_partner_flag(self, partner_id: str, flag: str) -> bool:
        self.ensure_adapter()
        self._require_admin()
        partner = self.admin_vm.find_partner(partner_id)
        if partner is None:
            raise UseCaseError("PARTNER_NOT_FOUND", "Delivery partner not found.")
        value = self.controller.uc_admin_dashboard.toggle_partner(partner, flag)
        self.admin_vm.set_partners(self.controller.uc_admin_dashboard.partners())
        return value

    def _require_admin(self) -> None:
        if not self.has_role("admin"):
            raise UseCaseError("ADMIN_REQUIRED", "Only admins can manage accounts.")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _restore_session(self) -> None:
        if not self.controller.ensure_ready():
            return
        try:
            self.session = self.controller.uc_restore_session()
        except UseCaseError as exc:
            LOGGER.warning("Could not restore session: %s", exc)
            self.session = None
        if self.session is not None:
            try:
                self.refresh_cart()
            except UseCaseError as exc:
                LOGGER.warning("Could not load cart: %s", exc)

    def _reset_dashboards(self) -> None:
        self.vendor_vm = VendorDashboardVM()
        self.delivery_vm = DeliveryDashboardVM()
        self.admin_vm = AdminDashboardVM()
        self.vendor_notifications.clear()
        self.delivery_notifications.clear()
        self._vendor_poll = None
        self._delivery_poll = None
