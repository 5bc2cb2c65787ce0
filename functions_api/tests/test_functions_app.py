from __future__ import annotations

from functions_api import app as app_module
from functions_api import razorpay


def test_health_reports_collaborators(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["smtp"] is True
    assert body["razorpay"] is True


def test_payment_order_requires_bearer_token(client):
    resp = client.post("/create-razorpay-order", json={"amount": 10})

    assert resp.status_code == 401
    assert resp.json()["detail"]["error"] == "Unauthorized"


def test_payment_order_rejects_non_positive_amount(client, service):
    service.add_user("a@example.com", token="tok")

    resp = client.post(
        "/create-razorpay-order",
        json={"amount": 0},
        headers={"Authorization": "Bearer tok"},
    )

    assert resp.status_code == 400
    assert "greater than 0" in resp.json()["detail"]["error"]


def test_payment_order_rejects_bad_key_prefix(client, service, monkeypatch):
    service.add_user("a@example.com", token="tok")
    monkeypatch.setattr(app_module, "RAZORPAY_KEY_ID", "key_abcdefghijk")

    resp = client.post(
        "/create-razorpay-order",
        json={"amount": 10},
        headers={"Authorization": "Bearer tok"},
    )

    assert resp.status_code == 500
    assert resp.json()["detail"]["error"] == "Invalid Razorpay Key ID format"


def test_payment_order_returns_gateway_order_and_key(client, service, monkeypatch):
    service.add_user("a@example.com", token="tok")
    calls = []

    def fake_create_order(key_id, key_secret, amount, **kwargs):
        calls.append((key_id, amount, kwargs["currency"]))
        return {"id": "order_1", "amount": razorpay.to_paise(amount), "currency": "INR"}

    monkeypatch.setattr(razorpay, "create_order", fake_create_order)

    resp = client.post(
        "/functions/v1/create-razorpay-order",
        json={"amount": 249.5},
        headers={"Authorization": "Bearer tok"},
    )

    assert resp.status_code == 200
    assert resp.json() == {
        "id": "order_1",
        "amount": 24950,
        "currency": "INR",
        "key": "rzp_test_abcdef1234",
    }
    assert calls == [("rzp_test_abcdef1234", 249.5, "INR")]


def test_payment_order_passes_gateway_status_through(client, service, monkeypatch):
    service.add_user("a@example.com", token="tok")

    def failing_create_order(*args, **kwargs):
        raise razorpay.RazorpayApiError(401, "Authentication failed", "BAD_REQUEST_ERROR")

    monkeypatch.setattr(razorpay, "create_order", failing_create_order)

    resp = client.post(
        "/create-razorpay-order",
        json={"amount": 10},
        headers={"Authorization": "Bearer tok"},
    )

    assert resp.status_code == 401
    assert resp.json()["detail"]["error"] == "Authentication failed"


def test_send_otp_stores_code_and_mails_it(client, service, mailer):
    resp = client.post("/send-otp", json={"email": " New@Example.com ", "full_name": "Asha"})

    assert resp.status_code == 200
    rows = service.tables["email_otp_codes"]
    assert [(r["email"], r["code"]) for r in rows] == [("new@example.com", "654321")]
    assert mailer.sent[0]["to"] == "new@example.com"
    assert "654321" in mailer.sent[0]["subject"]
    assert mailer.sent[0]["text"].startswith("Hi Asha,")


def test_send_otp_replaces_unused_codes(client, service):
    client.post("/send-otp", json={"email": "a@example.com"})
    client.post("/send-otp", json={"email": "a@example.com"})

    assert len(service.tables["email_otp_codes"]) == 1


def test_send_otp_requires_email_and_smtp(client, mailer):
    assert client.post("/send-otp", json={"email": ""}).status_code == 400

    mailer._configured = False
    resp = client.post("/send-otp", json={"email": "a@example.com"})
    assert resp.status_code == 500
    assert resp.json()["detail"]["error"] == "SMTP not configured"


def test_verify_otp_creates_user_once(client, service):
    client.post("/send-otp", json={"email": "a@example.com"})

    first = client.post(
        "/verify-otp-signup",
        json={"email": "a@example.com", "code": "654321", "password": "hunter22", "full_name": "Asha"},
    )
    second = client.post(
        "/verify-otp-signup",
        json={"email": "a@example.com", "code": "654321", "password": "hunter22"},
    )

    assert first.status_code == 200
    user = service.find_user_by_email("a@example.com")
    assert first.json() == {"ok": True, "userId": user["id"]}
    assert user["password"] == "hunter22"
    assert user["user_metadata"]["full_name"] == "Asha"
    assert second.status_code == 400
    assert second.json()["detail"]["error"] == "Invalid or expired code"


def test_verify_otp_updates_existing_user(client, service):
    user_id = service.add_user("a@example.com")
    service.users[user_id]["user_metadata"] = {"full_name": "Old Name"}
    client.post("/send-otp", json={"email": "a@example.com"})

    resp = client.post(
        "/verify-otp-signup",
        json={"email": "a@example.com", "code": "654321", "password": "newpass1"},
    )

    assert resp.json() == {"ok": True, "userId": user_id}
    assert service.users[user_id]["password"] == "newpass1"
    assert service.users[user_id]["user_metadata"]["full_name"] == "Old Name"


def test_send_order_email_requires_auth_and_fields(client, service, mailer):
    assert client.post("/send-order-email", json={"to": "x@example.com"}).status_code == 401

    service.add_user("a@example.com", token="tok")
    headers = {"Authorization": "Bearer tok"}
    missing = client.post("/send-order-email", json={"to": "x@example.com"}, headers=headers)
    assert missing.status_code == 400

    resp = client.post(
        "/send-order-email",
        json={"to": "x@example.com", "subject": "Order placed", "html": "<p>hi</p>", "orderId": "o1"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert mailer.sent[-1]["html"] == "<p>hi</p>"


def test_create_vendor_is_admin_only(client, service):
    service.add_user("shopper@example.com", token="tok")

    resp = client.post(
        "/create-vendor",
        json={"email": "v@example.com", "business_name": "Fresh Mart"},
        headers={"Authorization": "Bearer tok"},
    )

    assert resp.status_code == 403


def test_create_vendor_validates_required_fields(client, service):
    service.add_user("admin@example.com", token="admin", roles=("admin",))

    resp = client.post(
        "/create-vendor",
        json={"email": "v@example.com"},
        headers={"Authorization": "Bearer admin"},
    )

    assert resp.status_code == 400
    assert resp.json()["detail"]["error"] == "Email and Business Name are required"


def test_create_delivery_partner_returns_password_when_mail_fails(client, service, mailer):
    service.add_user("admin@example.com", token="admin", roles=("admin",))
    mailer.fail = True

    resp = client.post(
        "/create-delivery-partner",
        json={"email": "Rider@Example.com", "full_name": "Ravi", "vehicle_type": "bike"},
        headers={"Authorization": "Bearer admin"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["emailed"] is False
    assert len(body["password"]) == 12
    assert service.has_role(body["userId"], "delivery")
