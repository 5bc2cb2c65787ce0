"""Razorpay Orders API client used by ``/create-razorpay-order``."""

import logging
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Mapping, Optional

import requests

LOGGER = logging.getLogger(__name__)

ORDERS_URL = "https://api.razorpay.com/v1/orders"
KEY_PREFIXES = ("rzp_test_", "rzp_live_")
MIN_CREDENTIAL_LENGTH = 10


class RazorpayConfigError(ValueError):
    def __init__(self, error: str, details: str) -> None:
        super().__init__(error)
        self.error = error
        self.details = details


class RazorpayApiError(RuntimeError):
    def __init__(self, status: int, description: str, code: Optional[str] = None) -> None:
        super().__init__(description)
        self.status = status
        self.description = description
        self.code = code


def validate_credentials(key_id: Optional[str], key_secret: Optional[str]) -> None:
    key_id = (key_id or "").strip()
    key_secret = (key_secret or "").strip()
    if not key_id or not key_secret:
        raise RazorpayConfigError(
            "Razorpay credentials not configured",
            "Set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET",
        )
    if len(key_id) < MIN_CREDENTIAL_LENGTH or len(key_secret) < MIN_CREDENTIAL_LENGTH:
        raise RazorpayConfigError(
            "Invalid Razorpay credentials format",
            "Key ID and Key Secret should be valid strings",
        )
    if not key_id.startswith(KEY_PREFIXES):
        raise RazorpayConfigError(
            "Invalid Razorpay Key ID format",
            'Key ID should start with "rzp_test_" or "rzp_live_"',
        )


def to_paise(amount: float) -> int:
    """Rupees to integer paise, rounding half up like the storefront checkout."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def create_order(
    key_id: str,
    key_secret: str,
    amount: float,
    *,
    currency: str = "INR",
    receipt: Optional[str] = None,
    notes: Optional[Mapping[str, str]] = None,
    session: Optional[requests.Session] = None,
    timeout_s: float = 15.0,
) -> Dict[str, Any]:
    """Create a gateway order for ``amount`` rupees and return the raw order."""
    body = {
        "amount": to_paise(amount),
        "currency": currency,
        "receipt": receipt or f"receipt_{int(time.time() * 1000)}",
        "notes": dict(notes or {}),
    }
    LOGGER.info("Creating Razorpay order amount=%s currency=%s receipt=%s", body["amount"], currency, body["receipt"])
    http = session or requests.Session()
    try:
        resp = http.post(
            ORDERS_URL,
            json=body,
            auth=(key_id.strip(), key_secret.strip()),
            timeout=timeout_s,
        )
    except requests.RequestException as exc:
        raise RazorpayApiError(502, f"Razorpay unreachable: {exc}") from exc
    if resp.status_code >= 400:
        try:
            error = (resp.json() or {}).get("error") or {}
        except ValueError:
            error = {"description": resp.text}
        LOGGER.error("Razorpay API error %s: %s", resp.status_code, error)
        raise RazorpayApiError(
            resp.status_code,
            error.get("description") or "Failed to create Razorpay order",
            error.get("code"),
        )
    order = resp.json()
    LOGGER.info("Razorpay order created: %s", order.get("id"))
    return order
