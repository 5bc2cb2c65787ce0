"""Adapter and use-case wiring for the storefront runtime.

This module owns lazy construction of concrete backend adapters and use-case
objects that depend on values in
:class:`storefront.viewmodels.settings_vm.SettingsVM`. It is invoked by the
web runtime before any backend action.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..adapters.admin_rest import AdminRestAdapter
from ..adapters.auth_rest import AuthRestAdapter
from ..adapters.backend_mock import InMemoryBackend
from ..adapters.catalog_rest import CatalogRestAdapter
from ..adapters.functions_rest import FunctionsRestAdapter
from ..adapters.geocoding_http import HttpGeocodingAdapter
from ..adapters.http_client import HttpConfig, RetryingSession
from ..adapters.order_rest import OrderRestAdapter
from ..adapters.postgrest import PostgrestClient
from ..adapters.shop_rest import ShopRestAdapter
from ..adapters.storage_rest import StorageRestAdapter
from ..domain.ports import (
    AddressPort,
    AdminPort,
    AuthPort,
    CartPort,
    CatalogPort,
    CouponPort,
    DeliveryPort,
    FunctionsPort,
    GeocodingPort,
    OrderPort,
    ProductImagePort,
    ReviewPort,
    StoragePort,
    VendorPort,
    WishlistPort,
)
from ..usecases.addresses import (
    CheckServiceability,
    DeleteAddress,
    ListAddresses,
    LookupPincode,
    ReverseGeocode,
    SaveAddress,
    SetDefaultAddress,
)
from ..usecases.admin_accounts import CreateDeliveryPartnerAccount, CreateVendorAccount
from ..usecases.admin_dashboard import AdminDashboard
from ..usecases.auth import RestoreSession, SendSignupOtp, SignIn, SignOut, VerifySignupOtp
from ..usecases.cart import AddToCart, ApplyCoupon, ChangeCartQuantity, LoadCart
from ..usecases.catalog import BrowseProducts, LoadHomeFeed, LoadProductDetail, SearchProducts
from ..usecases.checkout import PlaceOrder, StartOnlinePayment
from ..usecases.delivery_jobs import DeliveryJobs
from ..usecases.orders import (
    HideOrder,
    ListOrders,
    PollOrderStatus,
    SkipOrderReview,
    SubmitOrderReview,
)
from ..usecases.reviews import LoadProductReviews, SubmitProductReview
from ..usecases.vendor_orders import CreateVendorProduct, VendorOrders, VendorProducts
from ..usecases.wishlist import ListWishlist, ToggleWishlist
from ..viewmodels.settings_vm import SettingsVM

LOGGER = logging.getLogger(__name__)


class AppController:
    """Create and cache backend adapters/use-cases from settings state.

    Call chain:
        ``storefront.web_ui.runtime.WebRuntime`` creates one instance per
        browser and calls ``ensure_ready`` before every backend operation.
        Passing ``backend`` (an :class:`InMemoryBackend`) skips HTTP wiring
        and serves every port from the in-memory store.
    """

    def __init__(
        self,
        settings_vm: SettingsVM,
        storage: StoragePort,
        *,
        backend: Optional[InMemoryBackend] = None,
    ) -> None:
        """Initialize controller with settings-backed lazy dependencies.

        Args:
            settings_vm: Settings state with backend URLs, keys and timeouts.
            storage: Per-browser storage for session, history and hidden ids.
            backend: Optional in-memory backend used instead of HTTP adapters.
        """
        self.settings_vm = settings_vm
        self.storage = storage
        self.backend = backend
        self._http: Optional[RetryingSession] = None
        self.catalog: Optional[CatalogPort] = None
        self.cart: Optional[CartPort] = None
        self.wishlist: Optional[WishlistPort] = None
        self.addresses: Optional[AddressPort] = None
        self.coupons: Optional[CouponPort] = None
        self.orders: Optional[OrderPort] = None
        self.reviews: Optional[ReviewPort] = None
        self.vendor: Optional[VendorPort] = None
        self.images: Optional[ProductImagePort] = None
        self.admin: Optional[AdminPort] = None
        self.delivery: Optional[DeliveryPort] = None
        self.functions: Optional[FunctionsPort] = None
        self.auth: Optional[AuthPort] = None
        self.geocoding: Optional[GeocodingPort] = None
        self._clear_usecases()

    @property
    def is_mock(self) -> bool:
        return self.backend is not None

    @property
    def http(self) -> Optional[RetryingSession]:
        """Return the shared transport, or ``None`` in mock mode."""
        return self._http

    def _clear_usecases(self) -> None:
        self.uc_browse: Optional[BrowseProducts] = None
        self.uc_search: Optional[SearchProducts] = None
        self.uc_product_detail: Optional[LoadProductDetail] = None
        self.uc_home_feed: Optional[LoadHomeFeed] = None
        self.uc_load_cart: Optional[LoadCart] = None
        self.uc_add_to_cart: Optional[AddToCart] = None
        self.uc_change_quantity: Optional[ChangeCartQuantity] = None
        self.uc_apply_coupon: Optional[ApplyCoupon] = None
        self.uc_list_addresses: Optional[ListAddresses] = None
        self.uc_save_address: Optional[SaveAddress] = None
        self.uc_delete_address: Optional[DeleteAddress] = None
        self.uc_default_address: Optional[SetDefaultAddress] = None
        self.uc_serviceability: Optional[CheckServiceability] = None
        self.uc_lookup_pincode: Optional[LookupPincode] = None
        self.uc_reverse_geocode: Optional[ReverseGeocode] = None
        self.uc_place_order: Optional[PlaceOrder] = None
        self.uc_start_payment: Optional[StartOnlinePayment] = None
        self.uc_list_orders: Optional[ListOrders] = None
        self.uc_hide_order: Optional[HideOrder] = None
        self.uc_poll_order: Optional[PollOrderStatus] = None
        self.uc_review_order: Optional[SubmitOrderReview] = None
        self.uc_skip_review: Optional[SkipOrderReview] = None
        self.uc_product_reviews: Optional[LoadProductReviews] = None
        self.uc_submit_review: Optional[SubmitProductReview] = None
        self.uc_toggle_wishlist: Optional[ToggleWishlist] = None
        self.uc_list_wishlist: Optional[ListWishlist] = None
        self.uc_vendor_orders: Optional[VendorOrders] = None
        self.uc_vendor_product: Optional[CreateVendorProduct] = None
        self.uc_vendor_products: Optional[VendorProducts] = None
        self.uc_delivery_jobs: Optional[DeliveryJobs] = None
        self.uc_sign_in: Optional[SignIn] = None
        self.uc_restore_session: Optional[RestoreSession] = None
        self.uc_sign_out: Optional[SignOut] = None
        self.uc_send_otp: Optional[SendSignupOtp] = None
        self.uc_verify_otp: Optional[VerifySignupOtp] = None
        self.uc_create_vendor: Optional[CreateVendorAccount] = None
        self.uc_create_partner: Optional[CreateDeliveryPartnerAccount] = None
        self.uc_admin_dashboard: Optional[AdminDashboard] = None

    def reset(self) -> None:
        """Drop cached adapters and use-cases.

        Side Effects:
            The next ``ensure_ready`` call rebuilds everything from current
            settings values. The signed-in token is not carried over.
        """
        self._http = None
        self.catalog = self.cart = self.wishlist = self.addresses = None
        self.coupons = self.orders = self.reviews = None
        self.vendor = self.delivery = self.functions = None
        self.images = self.admin = None
        self.auth = self.geocoding = None
        self._clear_usecases()

    def ensure_ready(self) -> bool:
        """Ensure adapters/use-cases are available for backend operations.

        Returns:
            ``True`` when dependencies are available, ``False`` when the
            backend URL or anon key is missing from settings.
        """
        if self.uc_browse is not None:
            return True
        if self.backend is not None:
            self._wire_mock(self.backend)
        elif not self._wire_http():
            return False
        self._build_usecases()
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _wire_mock(self, backend: InMemoryBackend) -> None:
        self.catalog = self.cart = self.wishlist = self.addresses = backend
        self.coupons = self.orders = self.reviews = backend
        self.vendor = self.delivery = self.functions = backend
        self.images = self.admin = backend
        self.auth = self.geocoding = backend
        LOGGER.info("Using in-memory backend")

    def _wire_http(self) -> bool:
        vm = self.settings_vm
        if not vm.is_configured():
            LOGGER.warning("Backend URL or anon key missing; backend calls are disabled")
            return False
        self._http = RetryingSession(
            vm.anon_key,
            HttpConfig(request_timeout_s=vm.request_timeout_s, retries=vm.retries),
        )
        client = PostgrestClient(self._http, vm.backend_url)
        shop = ShopRestAdapter(client)
        orders = OrderRestAdapter(client)
        self.catalog = CatalogRestAdapter(client)
        self.cart = self.wishlist = self.addresses = self.coupons = self.reviews = shop
        self.orders = self.vendor = self.delivery = orders
        self.images = StorageRestAdapter(self._http, vm.backend_url)
        self.admin = AdminRestAdapter(client)
        self.functions = FunctionsRestAdapter(self._http, vm.functions_url or vm.backend_url)
        self.auth = AuthRestAdapter(self._http, vm.backend_url, client)
        self.geocoding = HttpGeocodingAdapter(
            google_api_key=vm.google_maps_key,
            timeout_s=vm.request_timeout_s,
        )
        LOGGER.info("Wired backend adapters for %s", vm.backend_url)
        return True

    def _build_usecases(self) -> None:
        storage = self.storage
        self.uc_browse = BrowseProducts(self.catalog)
        self.uc_search = SearchProducts(self.catalog)
        self.uc_product_detail = LoadProductDetail(self.catalog, storage)
        self.uc_home_feed = LoadHomeFeed(self.catalog)

        self.uc_load_cart = LoadCart(self.cart)
        self.uc_add_to_cart = AddToCart(self.cart, self.catalog)
        self.uc_change_quantity = ChangeCartQuantity(self.cart, self.catalog)
        self.uc_apply_coupon = ApplyCoupon(self.coupons)

        self.uc_list_addresses = ListAddresses(self.addresses)
        self.uc_save_address = SaveAddress(self.addresses)
        self.uc_delete_address = DeleteAddress(self.addresses)
        self.uc_default_address = SetDefaultAddress(self.addresses)
        self.uc_serviceability = CheckServiceability(set(self.settings_vm.serviceable_pincodes))
        self.uc_lookup_pincode = LookupPincode(self.geocoding)
        self.uc_reverse_geocode = ReverseGeocode(self.geocoding)

        self.uc_place_order = PlaceOrder(self.orders, self.cart, self.functions)
        self.uc_start_payment = StartOnlinePayment(self.functions)
        self.uc_list_orders = ListOrders(self.orders, storage)
        self.uc_hide_order = HideOrder(self.orders, storage)
        self.uc_poll_order = PollOrderStatus(self.orders)
        self.uc_review_order = SubmitOrderReview(self.orders, self.reviews)
        self.uc_skip_review = SkipOrderReview(self.orders)
        self.uc_product_reviews = LoadProductReviews(self.reviews, self.catalog)
        self.uc_submit_review = SubmitProductReview(self.reviews)

        self.uc_toggle_wishlist = ToggleWishlist(self.wishlist)
        self.uc_list_wishlist = ListWishlist(self.wishlist)

        self.uc_vendor_orders = VendorOrders(self.vendor, storage)
        self.uc_vendor_product = CreateVendorProduct(self.vendor)
        self.uc_vendor_products = VendorProducts(self.vendor, self.images)
        self.uc_delivery_jobs = DeliveryJobs(self.delivery, storage)

        self.uc_sign_in = SignIn(self.auth, storage)
        self.uc_restore_session = RestoreSession(self.auth, storage)
        self.uc_sign_out = SignOut(self.auth, storage)
        self.uc_send_otp = SendSignupOtp(self.functions)
        self.uc_verify_otp = VerifySignupOtp(self.functions)
        self.uc_create_vendor = CreateVendorAccount(self.functions)
        self.uc_create_partner = CreateDeliveryPartnerAccount(self.functions)
        self.uc_admin_dashboard = AdminDashboard(self.admin)
