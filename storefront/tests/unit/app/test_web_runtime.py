from __future__ import annotations

import pytest

from storefront.domain.checkout import PAYMENT_ONLINE
from storefront.domain.ports import UseCaseError
from storefront.web_ui.runtime import RuntimeRegistry, SharedState, WebRuntime
from storefront.web_ui.viewmodels import WebAddressForm, WebProductForm, WebReviewForm


@pytest.fixture(autouse=True)
def _no_backend_env(monkeypatch) -> None:
    monkeypatch.delenv("STOREFRONT_BACKEND_URL", raising=False)
    monkeypatch.delenv("STOREFRONT_ANON_KEY", raising=False)


@pytest.fixture
def runtime(tmp_path) -> WebRuntime:
    return WebRuntime(mock=True, storage_root=str(tmp_path))


def _fill_cart(runtime: WebRuntime) -> None:
    runtime.add_to_cart("prod-1", 2)
    runtime.add_to_cart("prod-3")


def test_unconfigured_runtime_refuses_backend_calls(tmp_path) -> None:
    runtime = WebRuntime(storage_root=str(tmp_path))

    assert runtime.session is None
    with pytest.raises(UseCaseError) as info:
        runtime.load_home()
    assert info.value.code == "NOT_CONFIGURED"


def test_catalog_pages(runtime) -> None:
    home = runtime.load_home()
    assert len(home.categories) == 3

    listing = runtime.browse(category_id="cat-3")
    assert [p.id for p in listing] == ["prod-5"]
    assert runtime.listing_title == "Staples"

    runtime.search("  milk ")
    assert runtime.listing_title == 'Results for "milk"'

    vm = runtime.open_product("prod-1")
    assert vm.product.id == "prod-1"
    assert vm.cart_quantity == 0


def test_sign_in_and_cart_controls(runtime) -> None:
    runtime.sign_in("customer@example.com", "password")
    assert runtime.is_signed_in
    assert runtime.has_role("vendor") is False

    runtime.open_product("prod-1")
    assert runtime.add_to_cart("prod-1") == 1
    assert runtime.product_vm.cart_quantity == 1
    assert runtime.change_quantity("prod-1", 3) == 3
    assert runtime.cart_vm.item_count == 3

    assert runtime.toggle_wishlist("prod-1") is True
    assert runtime.product_vm.wishlisted is True
    assert [p.id for p in runtime.load_wishlist()] == ["prod-1"]


def test_failed_coupon_is_reported_on_cart(runtime) -> None:
    runtime.sign_in("customer@example.com", "password")
    runtime.add_to_cart("prod-2")

    with pytest.raises(UseCaseError):
        runtime.apply_coupon("FLAT50")
    assert runtime.cart_vm.coupon_error == "Minimum order amount of ₹300 required"
    assert runtime.cart_vm.discount == 0.0


def test_cod_checkout_and_order_polling(runtime) -> None:
    runtime.sign_in("customer@example.com", "password")
    _fill_cart(runtime)
    runtime.apply_coupon("WELCOME10")

    checkout = runtime.prepare_checkout()
    assert checkout.selected_address.id == "addr-1"
    order = runtime.place_order()

    stored = runtime.backend.orders[order.id]
    assert stored["final_amount"] == 374.4
    assert stored["payment_id"] == "COD"
    assert runtime.cart_vm.lines == []
    assert runtime.cart_vm.coupon_code is None

    runtime.load_orders()
    assert runtime.orders_vm.live_order_ids() == [order.id]
    assert runtime.poll_live_orders() == 0

    runtime.controller.uc_vendor_orders.reject(order.id)
    assert runtime.poll_live_orders() == 1
    assert runtime.orders_vm.counts() == (0, 1)

    runtime.hide_order(order.id)
    assert runtime.orders_vm.counts() == (0, 0)


def test_online_buy_now_uses_mock_payment(runtime) -> None:
    runtime.sign_in("customer@example.com", "password")
    runtime.add_to_cart("prod-1")

    checkout = runtime.prepare_checkout("prod-2")
    checkout.set_payment_method(PAYMENT_ONLINE)
    options = runtime.start_online_payment()
    assert options["amount"] == 3000
    order = runtime.place_order()

    stored = runtime.backend.orders[order.id]
    assert stored["payment_status"] == "completed"
    assert stored["payment_id"].startswith("pay_mock_")
    assert runtime.cart_vm.item_count == 1


def test_buy_now_refuses_out_of_stock(runtime) -> None:
    runtime.sign_in("customer@example.com", "password")

    with pytest.raises(UseCaseError) as info:
        runtime.prepare_checkout("prod-4")
    assert info.value.code == "OUT_OF_STOCK"


def test_vendor_and_delivery_dashboards(runtime) -> None:
    runtime.sign_in("customer@example.com", "password")
    _fill_cart(runtime)
    runtime.prepare_checkout()
    order = runtime.place_order()
    runtime.sign_out()

    runtime.sign_in("vendor@example.com", "password")
    vendor = runtime.load_vendor_dashboard()
    assert vendor.vendor_id == "vendor-1"
    (row,) = vendor.rows()
    assert row.actions == ["assign", "reject"]
    runtime.vendor_action(row.request_id, "assign")
    assert runtime.vendor_vm.rows()[0].actions == []
    with pytest.raises(UseCaseError):
        runtime.vendor_action(row.request_id, "teleport")
    runtime.sign_out()

    runtime.sign_in("rider@example.com", "password")
    delivery = runtime.load_delivery_dashboard()
    assert delivery.partner_id == "partner-1"
    runtime.set_partner_location(34.08, 74.80)
    for action in ("accept", "picked_up", "out_for_delivery", "payment_received", "delivered"):
        runtime.delivery_action(row.request_id, action)

    assert runtime.backend.orders[order.id]["delivery_status"] == "delivered"
    assert runtime.delivery_vm.rows()[0].actions == ["hide"]


def test_order_review_from_form(runtime) -> None:
    runtime.sign_in("customer@example.com", "password")
    _fill_cart(runtime)
    runtime.prepare_checkout()
    order = runtime.place_order()
    runtime.load_orders()

    form = WebReviewForm(order_id=order.id)
    form.set_rating("prod-1", 9)
    form.set_rating("prod-3", 0)
    assert form.ratings == {"prod-1": 5, "prod-3": 0}

    assert runtime.submit_order_review(form) == 1
    assert runtime.backend.orders[order.id]["review_status"] == "reviewed"

    with pytest.raises(UseCaseError) as info:
        runtime.submit_order_review(WebReviewForm(order_id="missing"))
    assert info.value.code == "ORDER_NOT_FOUND"


def test_vendor_notifications_after_new_order(runtime) -> None:
    runtime.sign_in("vendor@example.com", "password")
    runtime.load_vendor_dashboard()
    assert runtime.poll_vendor_notifications() == 0

    controller = runtime.controller
    customer = runtime.backend.sign_in("customer@example.com", "password")
    controller.uc_add_to_cart(customer, "prod-3")
    address = controller.uc_list_addresses(customer)[0]
    controller.uc_place_order(customer, controller.uc_load_cart(customer), address)

    assert runtime.poll_vendor_notifications() == 1
    assert runtime.vendor_notifications.badge == "1"


def test_vendor_product_form(runtime) -> None:
    runtime.sign_in("vendor@example.com", "password")
    form = WebProductForm(name="Kahwa", price="250", stock="4", brand="Valley")

    product_id = runtime.create_vendor_product(form)

    assert runtime.backend.products[product_id]["vendor_id"] == "vendor-1"
    assert runtime.status_message == "Product submitted for approval."


def test_admin_onboarding_requires_admin_role(runtime) -> None:
    runtime.sign_in("customer@example.com", "password")
    with pytest.raises(UseCaseError) as info:
        runtime.create_vendor_account("shop@example.com", "Fresh Mart")
    assert info.value.code == "ADMIN_REQUIRED"

    runtime.backend.add_user("admin@example.com", "password", full_name="Admin", roles=("admin",))
    runtime.sign_in("admin@example.com", "password")
    result = runtime.create_partner_account("rider2@example.com", vehicle_type="bike")
    assert runtime.backend.user_roles(result["userId"]) == ["delivery"]


def test_addresses_from_form(runtime) -> None:
    runtime.sign_in("customer@example.com", "password")
    form = WebAddressForm(full_name="Asha", phone="9876500000", pincode="190001")
    runtime.fill_from_pincode(form)
    assert form.city == "Srinagar"

    form.address_line1 = "5 Boulevard"
    form.is_default = True
    saved = runtime.save_address(form)
    assert runtime.checkout_vm.selected_address_id == saved.id

    runtime.set_default_address("addr-1")
    assert runtime.addresses[0].id == "addr-1"
    runtime.delete_address(saved.id)
    assert [a.id for a in runtime.addresses] == ["addr-1"]


def test_settings_are_persisted(tmp_path) -> None:
    runtime = WebRuntime(mock=True, storage_root=str(tmp_path))
    runtime.apply_settings_payload({"order_poll_interval_s": 30, "serviceable_pincodes": "190001, 190002"})
    runtime.save_settings()

    restarted = WebRuntime(mock=True, storage_root=str(tmp_path))
    assert restarted.settings_payload()["order_poll_interval_s"] == 30
    assert restarted.settings_vm.serviceable_pincodes == ["190001", "190002"]


def test_error_log_newest_first(runtime) -> None:
    runtime.record_error(UseCaseError("FIRST", "first"))
    runtime.record_error(ValueError("second"))

    log = runtime.error_log()
    assert [entry["code"] for entry in log] == ["ValueError", "FIRST"]
    assert log[0]["message"] == "second"


def test_second_browser_does_not_inherit_the_first_shopper(tmp_path) -> None:
    first = WebRuntime(mock=True, storage_root=str(tmp_path))
    first.sign_in("customer@example.com", "password")
    _fill_cart(first)

    second = WebRuntime(mock=True, storage_root=str(tmp_path))

    assert second.session is None
    assert second.cart_vm.item_count == 0


def test_browsers_on_one_server_keep_separate_sessions(tmp_path) -> None:
    registry = RuntimeRegistry(SharedState(mock=True, storage_root=str(tmp_path)))
    shopper = registry.for_client("browser-a", {})
    shopper.sign_in("customer@example.com", "password")
    _fill_cart(shopper)
    shopper.prepare_checkout()
    shopper.place_order()

    visitor = registry.for_client("browser-b", {})

    assert visitor.session is None
    assert visitor.cart_vm.item_count == 0
    with pytest.raises(UseCaseError) as info:
        visitor.load_orders()
    assert info.value.code == "AUTH_REQUIRED"

    visitor.sign_in("vendor@example.com", "password")
    assert shopper.session.email == "customer@example.com"
    assert shopper.backend.access_token == "token-user-1"
    assert len(shopper.load_orders().rows()) == 1
    assert visitor.load_vendor_dashboard().vendor_id == "vendor-1"


def test_registry_reuses_runtime_per_browser_and_evicts_oldest(tmp_path) -> None:
    registry = RuntimeRegistry(SharedState(mock=True, storage_root=str(tmp_path)), max_clients=2)
    state_a: dict = {}
    first = registry.for_client("a", state_a)

    assert registry.for_client("a", state_a) is first
    registry.for_client("b", {})
    registry.for_client("c", {})
    assert len(registry) == 2
    assert registry.for_client("a", state_a) is not first


def test_browser_state_restores_session_and_pincode(tmp_path) -> None:
    shared = SharedState(mock=True, storage_root=str(tmp_path))
    state: dict = {}
    runtime = WebRuntime(shared=shared, client_state=state)
    runtime.sign_in("customer@example.com", "password")
    assert runtime.check_pincode(" 190001 ").is_serviceable is True
    assert runtime.check_pincode("110001").is_serviceable is False

    reopened = WebRuntime(shared=shared, client_state=state)

    assert reopened.pincode == "190001"
    assert reopened.session is not None
    assert reopened.session.user_id == "user-1"
    assert not (tmp_path / "session.json").exists()


def test_settings_change_rewires_every_browser(tmp_path) -> None:
    registry = RuntimeRegistry(SharedState(mock=True, storage_root=str(tmp_path)))
    admin_tab = registry.for_client("a", {})
    shopper = registry.for_client("b", {})
    shopper.sign_in("customer@example.com", "password")

    admin_tab.apply_settings_payload({"order_poll_interval_s": 45})

    assert shopper.settings_vm.order_poll_interval_s == 45
    assert shopper.session is not None
    assert shopper.session.email == "customer@example.com"


def test_vendor_manages_products_and_photos(runtime) -> None:
    runtime.sign_in("vendor@example.com", "password")
    vm = runtime.load_vendor_products()
    assert [p.id for p in vm.products] == ["prod-5", "prod-4", "prod-3", "prod-2", "prod-1"]

    runtime.update_vendor_product("prod-4", "49.5", "12")
    assert runtime.backend.products["prod-4"]["stock_quantity"] == 12
    assert runtime.backend.products["prod-4"]["price"] == 49.5
    with pytest.raises(UseCaseError) as info:
        runtime.update_vendor_product("prod-4", "-1", "12")
    assert info.value.message == "Enter a valid non-negative price"

    main_url = runtime.upload_product_photo("prod-1", "apple.PNG", b"\x89PNG", main=True)
    runtime.upload_product_photo("prod-1", "side.jpg", b"jpeg-bytes")
    assert runtime.backend.products["prod-1"]["main_image_url"] == main_url
    assert runtime.vendor_vm.find_product("prod-1").main_image_url == main_url
    angle = next(photo for photo in runtime.vendor_vm.photos if photo.name.startswith("angle-"))

    runtime.set_main_product_photo("prod-1", angle.name)
    assert runtime.backend.products["prod-1"]["main_image_url"] == angle.url
    runtime.remove_product_photo("prod-1", angle.name)
    assert [photo.url for photo in runtime.vendor_vm.photos] == [main_url]

    runtime.delete_vendor_product("prod-2")
    assert "prod-2" not in [p.id for p in runtime.vendor_vm.products]
    assert "prod-2" not in [p.id for p in runtime.browse()]


def test_admin_dashboard_stats_and_toggles(runtime) -> None:
    runtime.sign_in("customer@example.com", "password")
    with pytest.raises(UseCaseError) as info:
        runtime.load_admin_dashboard()
    assert info.value.code == "ADMIN_REQUIRED"

    runtime.backend.add_user("admin@example.com", "password", full_name="Admin", roles=("admin",))
    runtime.sign_in("admin@example.com", "password")
    vm = runtime.load_admin_dashboard()
    tiles = dict(vm.stat_tiles())
    assert tiles["Total Users"] == 4
    assert tiles["Vendors"] == 1
    assert tiles["Total Products"] == 5

    assert runtime.toggle_vendor_flag("vendor-1", "is_approved") is False
    assert runtime.backend.vendors["vendor-1"]["is_approved"] is False
    assert runtime.admin_vm.vendor_rows()[0].buttons[0] == ("is_approved", "Approve")

    assert runtime.toggle_partner_flag("partner-1", "is_active") is False
    assert runtime.backend.partners["partner-1"]["is_active"] is False
    with pytest.raises(UseCaseError) as info:
        runtime.toggle_partner_flag("partner-9", "is_active")
    assert info.value.code == "PARTNER_NOT_FOUND"


def test_order_receipt_download(runtime) -> None:
    runtime.sign_in("customer@example.com", "password")
    _fill_cart(runtime)
    runtime.prepare_checkout()
    order = runtime.place_order()
    runtime.load_orders()

    filename, content = runtime.order_receipt(order.id)

    assert filename == f"receipt-{order.id[:8]}.html"
    text = content.decode("utf-8")
    assert "Cash on Delivery" in text
    assert "Demo Customer" in text
    assert "12 Residency Road" in text
    assert "9876543210" in text
    with pytest.raises(UseCaseError) as info:
        runtime.order_receipt("missing")
    assert info.value.code == "ORDER_NOT_FOUND"
