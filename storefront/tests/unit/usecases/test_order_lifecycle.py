from __future__ import annotations

import pytest

from storefront.adapters.storage_local import StorageLocal
from storefront.domain.checkout import PAYMENT_ONLINE, PaymentConfirmation, RecipientDetails
from storefront.domain.ports import UseCaseError
from storefront.usecases.addresses import ListAddresses
from storefront.usecases.cart import AddToCart, LoadCart
from storefront.usecases.checkout import PlaceOrder, StartOnlinePayment
from storefront.usecases.delivery_jobs import DeliveryJobs
from storefront.usecases.orders import HideOrder, ListOrders, PollOrderStatus, SkipOrderReview, SubmitOrderReview
from storefront.usecases.vendor_orders import CreateVendorProduct, VendorOrders


def _place(backend, customer, **kwargs):
    AddToCart(backend, backend)(customer, "prod-1", 2)
    AddToCart(backend, backend)(customer, "prod-3")
    lines = LoadCart(backend)(customer)
    address = ListAddresses(backend)(customer)[0]
    return PlaceOrder(backend, backend, backend)(customer, lines, address, **kwargs)


def test_place_cod_order_writes_order_items_and_request(backend, customer) -> None:
    order = _place(backend, customer, coupon_code="WELCOME10", discount=41.6)

    stored = backend.orders[order.id]
    assert stored["subtotal"] == 416.0
    assert stored["final_amount"] == 374.4
    assert stored["payment_id"] == "COD"
    assert stored["payment_status"] == "pending"
    assert len([i for i in backend.order_items if i["order_id"] == order.id]) == 2
    request = next(iter(backend.requests.values()))
    assert (request["order_id"], request["vendor_id"]) == (order.id, "vendor-1")
    assert LoadCart(backend)(customer) == []
    assert backend.sent_emails[0]["orderId"] == order.id


def test_place_order_validation(backend, customer) -> None:
    lines = []
    with pytest.raises(UseCaseError) as empty:
        PlaceOrder(backend, backend)(customer, lines, None)
    assert empty.value.code == "ORDER_EMPTY"

    AddToCart(backend, backend)(customer, "prod-1")
    lines = LoadCart(backend)(customer)
    with pytest.raises(UseCaseError) as no_address:
        PlaceOrder(backend, backend)(customer, lines, None)
    assert no_address.value.code == "ADDRESS_REQUIRED"

    address = ListAddresses(backend)(customer)[0]
    with pytest.raises(UseCaseError) as unpaid:
        PlaceOrder(backend, backend)(customer, lines, address, payment_method=PAYMENT_ONLINE)
    assert unpaid.value.code == "PAYMENT_REQUIRED"


def test_place_order_for_someone_else_requires_confirmed_pin(backend, customer) -> None:
    recipient = RecipientDetails(
        name="Ravi", phone="9999988888", address="Lal Chowk", latitude=34.07, longitude=74.81
    )
    with pytest.raises(UseCaseError) as info:
        _place(backend, customer, recipient=recipient)
    assert info.value.message == "Please confirm the selected location"


def test_online_order_is_marked_paid_and_buy_now_keeps_cart(backend, customer) -> None:
    AddToCart(backend, backend)(customer, "prod-2")
    buy_now = LoadCart(backend)(customer)
    address = ListAddresses(backend)(customer)[0]

    options = StartOnlinePayment(backend)(customer, 30.0, contact="9876543210")
    order = PlaceOrder(backend, backend)(
        customer,
        buy_now,
        address,
        payment_method=PAYMENT_ONLINE,
        payment=PaymentConfirmation(order_id=options["order_id"], payment_id="pay_1"),
        buy_now=True,
    )

    assert options["amount"] == 3000
    assert options["prefill"]["email"] == "customer@example.com"
    assert backend.orders[order.id]["payment_status"] == "completed"
    assert backend.orders[order.id]["payment_id"] == "pay_1"
    assert len(LoadCart(backend)(customer)) == 1


def test_start_online_payment_rejects_zero_amount(backend, customer) -> None:
    with pytest.raises(UseCaseError) as info:
        StartOnlinePayment(backend)(customer, 0)
    assert info.value.code == "AMOUNT_INVALID"


def test_full_fulfilment_flow(backend, storage, customer) -> None:
    order = _place(backend, customer)

    vendor_user = backend.sign_in("vendor@example.com", "password")
    vendor = VendorOrders(backend, storage)
    vendor_id = vendor.vendor_id(vendor_user)
    assert [req.order_id for req in vendor.list(vendor_id)] == [order.id]
    vendor.assign_nearest(order.id)

    rider = backend.sign_in("rider@example.com", "password")
    jobs = DeliveryJobs(backend, storage)
    partner_id = jobs.partner_id(rider)
    (request,) = jobs.list(partner_id)
    assert request.status == "assigned"

    jobs.respond(partner_id, request, "accepted")
    assert backend.orders[order.id]["delivery_status"] == "approved"
    jobs.mark_picked_up(request)
    jobs.mark_out_for_delivery(partner_id, request, latitude=34.08, longitude=74.80)
    assert backend.tracking[-1]["order_id"] == order.id
    assert jobs.mark_payment_received(request)["payment_status"] == "completed"
    jobs.mark_delivered(request)

    overview = ListOrders(backend, storage)(customer)
    assert [o.id for o in overview.live] == [order.id]
    tracked = PollOrderStatus(backend)(order.id)
    assert tracked.request_status == "delivered"

    count = SubmitOrderReview(backend, backend)(customer, tracked, {"prod-1": 5, "prod-3": 0})
    assert count == 1
    assert backend.products["prod-1"]["average_rating"] == 5
    overview = ListOrders(backend, storage)(customer)
    assert [o.id for o in overview.history] == [order.id]

    HideOrder(backend, storage)(PollOrderStatus(backend)(order.id))
    assert ListOrders(backend, storage)(customer).history == []
    assert storage.load_hidden_orders("customer") == [order.id]


def test_pickup_and_delivery_stamp_the_request_row(backend, storage, customer) -> None:
    order = _place(backend, customer)
    VendorOrders(backend, storage).assign_nearest(order.id)
    jobs = DeliveryJobs(backend, storage)
    (request,) = jobs.list("partner-1")
    jobs.respond("partner-1", request, "accepted")
    assert "picked_up_at" not in backend.requests[request.id]

    jobs.mark_picked_up(request)
    row = backend.requests[request.id]
    assert row["status"] == "picked_up"
    assert row["picked_up_at"]
    assert "delivered_at" not in row

    jobs.mark_delivered(request)
    (delivered,) = jobs.list("partner-1")
    assert delivered.status == "delivered"
    assert delivered.picked_up_at is not None
    assert delivered.delivered_at is not None
    assert delivered.delivered_at >= delivered.picked_up_at

def test_hide_order_refuses_live_orders(backend, storage, customer) -> None:
    order = _place(backend, customer)

    with pytest.raises(UseCaseError) as info:
        HideOrder(backend, storage)(PollOrderStatus(backend)(order.id))
    assert info.value.code == "ORDER_NOT_FINISHED"


def test_review_requires_a_rating(backend, customer) -> None:
    order = PollOrderStatus(backend)(_place(backend, customer).id)

    with pytest.raises(UseCaseError) as info:
        SubmitOrderReview(backend, backend)(customer, order, {})
    assert info.value.code == "REVIEW_EMPTY"
    SkipOrderReview(backend)(order)
    assert backend.orders[order.id]["review_status"] == "skipped"


def test_vendor_reject_and_hide(backend, storage, customer) -> None:
    order = _place(backend, customer)
    vendor = VendorOrders(backend, storage)

    vendor.reject(order.id)
    assert backend.orders[order.id]["delivery_status"] == "cancelled"
    vendor.hide(order.id)
    assert vendor.list("vendor-1") == []


def test_assign_without_partners_maps_backend_message(backend, storage, customer) -> None:
    order = _place(backend, customer)
    backend.partners["partner-1"]["is_available"] = False

    with pytest.raises(UseCaseError) as info:
        VendorOrders(backend, storage).assign_nearest(order.id)
    assert "No available delivery partners" in info.value.message


def test_delivery_jobs_reject_unknown_action(backend, storage, customer) -> None:
    order = _place(backend, customer)
    VendorOrders(backend, storage).assign_nearest(order.id)
    jobs = DeliveryJobs(backend, storage)
    (request,) = jobs.list("partner-1")

    with pytest.raises(UseCaseError):
        jobs.respond("partner-1", request, "maybe")
    jobs.respond("partner-1", request, "rejected")
    assert backend.requests[request.id]["status"] == "rejected_by_partner"


def test_non_vendor_has_no_vendor_id(backend, storage, customer) -> None:
    with pytest.raises(UseCaseError) as info:
        VendorOrders(backend, storage).vendor_id(customer)
    assert info.value.code == "NOT_A_VENDOR"


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"name": "", "price": "10"}, "Name and price are required"),
        ({"name": "Tea", "price": "abc"}, "Enter a valid price"),
        ({"name": "Tea", "price": "0"}, "Price must be greater than 0"),
        ({"name": "Tea", "price": "10", "stock": "-1"}, "Enter a valid non-negative stock"),
    ],
)
def test_create_vendor_product_validation(backend, kwargs, message) -> None:
    with pytest.raises(UseCaseError) as info:
        CreateVendorProduct(backend)(**kwargs)
    assert info.value.message == message


def test_create_vendor_product_links_signed_in_vendor(backend, vendor_session) -> None:
    product_id = CreateVendorProduct(backend)(name=" Kahwa Tea ", price="250", stock="5")

    assert backend.products[product_id]["vendor_id"] == "vendor-1"
    assert backend.products[product_id]["name"] == "Kahwa Tea"


def test_removed_order_stays_hidden_on_another_device(backend, storage, customer, tmp_path) -> None:
    order = _place(backend, customer)
    VendorOrders(backend, storage).reject(order.id)
    HideOrder(backend, storage)(PollOrderStatus(backend)(order.id))

    other_device = StorageLocal(str(tmp_path / "other-device"))

    assert other_device.load_hidden_orders("customer") == []
    assert ListOrders(backend, other_device)(customer).history == []
