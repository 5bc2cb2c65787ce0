from __future__ import annotations

import datetime
from datetime import timezone

from functions_api import accounts
from functions_api.otp_store import OtpStore, generate_code


def test_generate_password_has_every_character_class():
    for _ in range(50):
        password = accounts.generate_password()
        assert len(password) == 12
        assert any(c in accounts.LOWERCASE for c in password)
        assert any(c in accounts.UPPERCASE for c in password)
        assert any(c in accounts.DIGITS for c in password)
        assert any(c in accounts.SYMBOLS for c in password)


def test_create_vendor_creates_login_profile_and_role(service, mailer):
    result = accounts.create_vendor(
        service,
        mailer,
        {"email": "Shop@Example.com", "business_name": " Fresh Mart ", "gstin": ""},
        app_url="https://shop.example",
    )

    user = service.find_user_by_email("shop@example.com")
    assert result == {
        "ok": True,
        "userId": user["id"],
        "message": "Vendor account created successfully",
        "emailed": True,
    }
    vendor = service.tables["vendors"][0]
    assert vendor["business_name"] == "Fresh Mart"
    assert vendor["gstin"] is None
    assert vendor["is_approved"] is True
    assert service.has_role(user["id"], "vendor")
    assert service.tables["profiles"][0]["full_name"] == "Fresh Mart"
    assert user["password"] in mailer.sent[0]["text"]


def test_create_vendor_updates_existing_vendor(service, mailer):
    service.upsert("profiles", {"id": "u-1", "email": "shop@example.com"})
    service.insert("vendors", {"user_id": "u-1", "business_name": "Old"})

    result = accounts.create_vendor(
        service,
        mailer,
        {"email": "shop@example.com", "business_name": "New Name"},
        app_url="https://shop.example",
    )

    assert result["message"] == "Vendor updated"
    assert result["emailed"] is False
    assert "password" not in result
    assert service.tables["vendors"][0]["business_name"] == "New Name"
    assert mailer.sent == []


def test_create_delivery_partner_resets_existing_login(service, mailer):
    user_id = service.add_user("rider@example.com")
    service.insert("delivery_partners", {"user_id": user_id, "vehicle_type": "cycle"})

    result = accounts.create_delivery_partner(
        service,
        mailer,
        {"email": "rider@example.com", "vehicle_type": "bike"},
        app_url="https://shop.example",
    )

    assert result == {"ok": True, "userId": user_id, "message": "Delivery partner ready", "emailed": True}
    assert len(service.tables["delivery_partners"]) == 1
    assert service.tables["delivery_partners"][0]["vehicle_type"] == "bike"
    assert service.users[user_id]["password"] in mailer.sent[0]["text"]
    assert service.users[user_id]["user_metadata"]["full_name"] == "Delivery Partner"


def test_generate_code_is_six_digits():
    for _ in range(20):
        code = generate_code()
        assert len(code) == 6 and code.isdigit()


def test_otp_expires_after_ten_minutes(service):
    now = [datetime.datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)]
    store = OtpStore(service, clock=lambda: now[0], code_factory=lambda: "111111")
    store.issue("a@example.com")

    now[0] += datetime.timedelta(minutes=11)

    assert store.consume("a@example.com", "111111") is False


def test_otp_consume_rejects_wrong_code(service):
    store = OtpStore(service, code_factory=lambda: "111111")
    store.issue("a@example.com")

    assert store.consume("a@example.com", "222222") is False
    assert store.consume("A@example.com", "111111") is True
