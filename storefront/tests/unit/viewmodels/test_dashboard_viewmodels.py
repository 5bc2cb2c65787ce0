from __future__ import annotations

import pytest

from storefront.domain.entities import DeliveryRequest, PartnerAccount, PlatformStats, VendorAccount, VendorProduct
from storefront.domain.notifications import NotificationFeed, make_notification
from storefront.viewmodels.admin_vm import AdminDashboardVM
from storefront.viewmodels.delivery_vm import DeliveryDashboardVM, delivery_actions, job_status
from storefront.viewmodels.notifications_vm import NotificationsVM
from storefront.viewmodels.settings_vm import SettingsVM, default_settings_payload
from storefront.viewmodels.status_format import payment_status_label, request_status_label
from storefront.viewmodels.vendor_vm import VendorDashboardVM, vendor_actions


def _request(status: str, *, order_status: str = None, payment: str = "pending", **extra) -> DeliveryRequest:
    return DeliveryRequest(
        id=extra.pop("request_id", "req-1"),
        order_id="order-abcdef12",
        status=status,
        order_status=order_status,
        payment_status=payment,
        payment_id="COD",
        final_amount=374.4,
        **extra,
    )


# ---- vendor ----
@pytest.mark.parametrize(
    "status, order_status, actions",
    [
        ("pending", None, ["assign", "reject"]),
        ("rejected_by_partner", None, ["assign", "reject"]),
        ("assigned", "assigned", []),
        ("accepted", "delivered", ["hide"]),
        ("rejected", "cancelled", ["hide"]),
    ],
)
def test_vendor_actions(status, order_status, actions) -> None:
    assert vendor_actions(_request(status, order_status=order_status)) == actions


def test_vendor_rows_distance_and_busy_state() -> None:
    vm = VendorDashboardVM(store_location=(34.0837, 74.7973))
    vm.set_requests([_request("pending", drop_latitude=34.0837, drop_longitude=74.7973)])

    (row,) = vm.rows()
    assert row.short_id == "order-ab"
    assert row.amount == "₹374.40"
    assert row.distance == "0 m"
    assert vm.pending_count() == 1

    vm.mark_busy("req-1")
    assert vm.rows()[0].actions == []
    vm.mark_busy("req-1", False)
    assert vm.rows()[0].actions == ["assign", "reject"]


# ---- delivery ----
def test_job_status_prefers_order_progress_after_acceptance() -> None:
    assert job_status(_request("accepted", order_status="picked_up")) == "picked_up"
    assert job_status(_request("accepted", order_status="approved")) == "accepted"
    assert job_status(_request("assigned", order_status="cancelled")) == "cancelled"


@pytest.mark.parametrize(
    "status, payment, actions",
    [
        ("assigned", "pending", ["accept", "reject"]),
        ("accepted", "pending", ["picked_up"]),
        ("picked_up", "pending", ["out_for_delivery"]),
        ("out_for_delivery", "pending", ["payment_received"]),
        ("out_for_delivery", "completed", ["delivered"]),
        ("delivered", "completed", ["hide"]),
    ],
)
def test_delivery_actions(status, payment, actions) -> None:
    assert delivery_actions(_request(status, payment=payment)) == actions


def test_delivery_rows_without_location_show_dash() -> None:
    vm = DeliveryDashboardVM()
    vm.set_requests([_request("accepted", order_status="out_for_delivery", drop_latitude=34.0, drop_longitude=74.0)])

    (row,) = vm.rows()
    assert row.distance == "-"
    assert row.status_label == "Out for Delivery"
    assert vm.active_count() == 1

    vm.set_location(34.0, 74.0)
    assert vm.rows()[0].distance == "0 m"


# ---- labels ----
def test_payment_and_request_labels() -> None:
    assert payment_status_label("completed", payment_id="COD") == "Paid (COD)"
    assert payment_status_label("completed", payment_id="pay_1") == "Paid"
    assert payment_status_label("pending", payment_id="pay_1") == "Payment Pending"
    assert request_status_label("rejected_by_partner") == "Rejected by Partner"
    assert request_status_label("out_for_delivery") == "Out for Delivery"


# ---- notifications ----
def test_notifications_badge_caps_at_nine() -> None:
    feed = NotificationFeed()
    vm = NotificationsVM(feed)
    assert vm.badge == ""

    for idx in range(12):
        feed.push(make_notification("new_order", f"order-{idx}", f"New order {idx}"))
    assert vm.badge == "9+"

    newest = vm.rows()[0]
    assert newest.icon == "shopping_bag"
    vm.mark_read(newest.notification_id)
    assert feed.unread_count == 11
    vm.mark_all_read()
    assert vm.has_unread is False
    vm.clear()
    assert vm.rows() == []


# ---- settings ----
def test_settings_apply_dict_coerces_values() -> None:
    vm = SettingsVM()
    vm.apply_dict(
        {
            "backend_url": "https://project.example.co/",
            "anon_key": " anon ",
            "retries": "3",
            "order_poll_interval_s": 20,
            "serviceable_pincodes": "190001; 190002,",
            "debug_logging": "yes",
        }
    )

    assert vm.backend_url == "https://project.example.co"
    assert vm.anon_key == "anon"
    assert vm.retries == 3
    assert vm.order_poll_interval_s == 20
    assert vm.serviceable_pincodes == ["190001", "190002"]
    assert vm.debug_logging is True
    assert vm.is_configured()


@pytest.mark.parametrize(
    "payload",
    [
        {"backend_url": "ftp://nope"},
        {"retries": -1},
        {"request_timeout_s": True},
        {"serviceable_pincodes": ["12"]},
        {"unknown_key": 1},
    ],
)
def test_settings_apply_dict_rejects_bad_values(payload) -> None:
    with pytest.raises(ValueError):
        SettingsVM().apply_dict(payload)


def test_settings_save_requires_anon_key_with_backend() -> None:
    saved = []
    vm = SettingsVM(on_save=saved.append)
    vm.backend_url = "https://project.example.co"
    vm.anon_key = ""

    with pytest.raises(ValueError):
        vm.cmd_save()

    vm.anon_key = "anon"
    vm.cmd_save()
    assert saved[0]["backend_url"] == "https://project.example.co"


def test_default_settings_payload_lists_default_pincode() -> None:
    payload = default_settings_payload()

    assert payload["serviceable_pincodes"] == ["190001"]
    assert payload["retries"] == 2


# ---- vendor products and admin ----
def test_vendor_product_rows_labels() -> None:
    vm = VendorDashboardVM()
    vm.set_products(
        [
            VendorProduct(id="p1", name="Apples", price=180.0, stock=4, unit="kg", is_approved=True,
                          image_url="https://cdn/a.jpg", main_image_url="https://cdn/main.jpg"),
            VendorProduct(id="p2", name="Bread", price=45.0, stock=0),
        ]
    )

    apples, bread = vm.product_rows()
    assert (apples.price, apples.stock, apples.approval_label) == ("₹180.00 / kg", "4 in stock", "Approved")
    assert apples.image_url == "https://cdn/main.jpg"
    assert (bread.price, bread.stock, bread.approval_color) == ("₹45.00", "Out of stock", "warning")
    assert vm.find_product("p2") is not None and vm.find_product("p9") is None


def test_admin_rows_and_toggle_labels() -> None:
    vm = AdminDashboardVM()
    vm.set_stats(PlatformStats(users=4, products=5, vendors=1, orders=2, delivery_partners=1))
    vm.set_vendors(
        [VendorAccount(id="v1", business_name="Green Grocers", business_address="Lal Chowk", gstin="01ABC",
                       is_approved=True, is_active=False)]
    )
    vm.set_partners(
        [PartnerAccount(id="d1", full_name="", email="rider@example.com", vehicle_type="bike",
                        vehicle_number="JK01", is_verified=False, is_active=True)]
    )

    assert vm.stat_tiles()[0] == ("Total Users", 4)
    assert dict(vm.stat_tiles())["Delivery Partners"] == 1
    (vendor,) = vm.vendor_rows()
    assert vendor.subtitle == "Lal Chowk · GSTIN 01ABC"
    assert vendor.status == "Approved: Yes • Active: No"
    assert vendor.buttons == [("is_approved", "Unapprove"), ("is_active", "Activate")]
    (partner,) = vm.partner_rows()
    assert partner.title == "rider@example.com"
    assert partner.subtitle == "rider@example.com · bike JK01"
    assert partner.buttons == [("is_verified", "Verify"), ("is_active", "Deactivate")]
    assert vm.find_partner("d1") is not None
