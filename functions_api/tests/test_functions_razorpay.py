from __future__ import annotations

import pytest

from functions_api import razorpay
from storefront.domain import pricing


class _Response:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    def json(self):
        return self._payload


class _Session:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.response


@pytest.mark.parametrize(
    "key_id, key_secret, error",
    [
        ("", "secret_abcdef1234", "Razorpay credentials not configured"),
        ("rzp_test_1", "short", "Invalid Razorpay credentials format"),
        ("live_abcdefghijk", "secret_abcdef1234", "Invalid Razorpay Key ID format"),
    ],
)
def test_validate_credentials_rejects(key_id, key_secret, error):
    with pytest.raises(razorpay.RazorpayConfigError) as info:
        razorpay.validate_credentials(key_id, key_secret)
    assert info.value.error == error


def test_validate_credentials_accepts_live_key():
    razorpay.validate_credentials("rzp_live_abcdef12", "secret_abcdef1234")


def test_create_order_posts_paise_with_basic_auth():
    session = _Session(_Response(200, {"id": "order_9", "amount": 10050, "currency": "INR"}))

    order = razorpay.create_order(
        " rzp_test_abcdef1234 ",
        "secret_abcdef1234",
        100.5,
        receipt="r-1",
        session=session,
    )

    url, kwargs = session.calls[0]
    assert url == razorpay.ORDERS_URL
    assert kwargs["auth"] == ("rzp_test_abcdef1234", "secret_abcdef1234")
    assert kwargs["json"] == {"amount": 10050, "currency": "INR", "receipt": "r-1", "notes": {}}
    assert order["id"] == "order_9"


def test_create_order_surfaces_gateway_error():
    session = _Session(_Response(400, {"error": {"code": "BAD_REQUEST_ERROR", "description": "amount too low"}}))

    with pytest.raises(razorpay.RazorpayApiError) as info:
        razorpay.create_order("rzp_test_abcdef1234", "secret_abcdef1234", 0.5, session=session)

    assert info.value.status == 400
    assert info.value.description == "amount too low"
    assert info.value.code == "BAD_REQUEST_ERROR"


def test_to_paise_rounds_half_rupees():
    assert razorpay.to_paise(19.999) == 2000
    assert razorpay.to_paise(1) == 100


@pytest.mark.parametrize("amount, paise", [(0.125, 13), (1.005, 101), (2.675, 268), (0.005, 1)])
def test_to_paise_rounds_half_paisa_up_like_checkout(amount, paise):
    assert razorpay.to_paise(amount) == paise
    assert razorpay.to_paise(amount) == pricing.to_paise(amount)
