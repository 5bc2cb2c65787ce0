"""Client for the serverless functions served under ``/functions/v1``."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from storefront.domain.entities import PaymentOrder
from storefront.domain.ports import FunctionsPort

from .api_errors import ApiError, ensure_ok, json_any
from .http_client import RetryingSession

LOGGER = logging.getLogger(__name__)


class FunctionsRestAdapter(FunctionsPort):
    def __init__(self, session: RetryingSession, base_url: str) -> None:
        """``base_url`` is either the backend root or an explicit functions URL."""
        if not base_url:
            raise ValueError("FunctionsRestAdapter requires a base URL")
        base = base_url.rstrip("/")
        if not base.endswith("/functions/v1"):
            base = f"{base}/functions/v1"
        self.session = session
        self.base_url = base

    def invoke(self, name: str, body: Mapping[str, Any]) -> Dict[str, Any]:
        ctx = f"function[{name}]"
        LOGGER.debug("Invoking %s", ctx)
        resp = self.session.post(f"{self.base_url}/{name}", json_body=dict(body))
        ensure_ok(resp, ctx)
        payload = json_any(resp, ctx)
        if payload is None:
            return {}
        if not isinstance(payload, dict):
            raise ApiError(f"{ctx}: expected object response", context=ctx)
        if payload.get("error"):
            raise ApiError(f"{ctx}: {payload['error']}", payload=payload, context=ctx)
        return payload

    def create_payment_order(self, amount: float, *, currency: str = "INR") -> PaymentOrder:
        payload = self.invoke("create-razorpay-order", {"amount": amount, "currency": currency})
        if not payload.get("id"):
            raise ApiError(
                "function[create-razorpay-order]: response did not include an order id",
                payload=payload,
                context="function[create-razorpay-order]",
            )
        return PaymentOrder.from_row(payload)

    def send_otp(self, email: str, full_name: str = "") -> None:
        self.invoke("send-otp", {"email": email, "full_name": full_name or None})

    def verify_otp_signup(
        self,
        email: str,
        code: str,
        password: str,
        *,
        full_name: str = "",
        phone: Optional[str] = None,
    ) -> Dict[str, Any]:
        return self.invoke(
            "verify-otp-signup",
            {
                "email": email,
                "code": code,
                "password": password,
                "full_name": full_name or None,
                "phone": phone,
            },
        )

    def send_order_email(
        self,
        to: str,
        subject: str,
        html: str,
        *,
        kind: str = "order_confirmation",
        order_id: Optional[str] = None,
    ) -> None:
        self.invoke(
            "send-order-email",
            {"to": to, "subject": subject, "html": html, "type": kind, "orderId": order_id},
        )

    def create_vendor(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        return self.invoke("create-vendor", payload)

    def create_delivery_partner(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        return self.invoke("create-delivery-partner", payload)
