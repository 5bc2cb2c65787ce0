"""FastAPI service for the storefront's serverless functions.

Endpoints are served both at the root and under ``/functions/v1`` so the
storefront's functions adapter can point at either.
"""

import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from functions_api import accounts, razorpay
from functions_api.mailer import Mailer, MailerNotConfigured, SmtpSettings
from functions_api.otp_store import OtpStore
from functions_api.service_client import ServiceClient, ServiceError

LOGGER = logging.getLogger(__name__)

SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID", "").strip()
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET", "").strip()
APP_URL = os.getenv("APP_URL", "http://localhost:8080").rstrip("/")


def _split_env(name: str, default: str = "") -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


CORS_ALLOW_ORIGINS = _split_env("CORS_ALLOW_ORIGINS")
CORS_ALLOW_METHODS = _split_env("CORS_ALLOW_METHODS", "POST,OPTIONS,GET")
CORS_ALLOW_HEADERS = _split_env("CORS_ALLOW_HEADERS", "authorization,x-client-info,apikey,content-type")

CLIENT = ServiceClient(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY, SUPABASE_ANON_KEY)
MAILER = Mailer(SmtpSettings.from_env())
OTP_STORE = OtpStore(CLIENT)


# ---------- Request models ----------
class PaymentOrderRequest(BaseModel):
    amount: float = 0
    currency: str = "INR"
    receipt: Optional[str] = None
    notes: Dict[str, str] = Field(default_factory=dict)


class SendOtpRequest(BaseModel):
    email: str = ""
    full_name: Optional[str] = None


class VerifyOtpRequest(BaseModel):
    email: str = ""
    code: str = ""
    password: str = ""
    full_name: Optional[str] = None
    phone: Optional[str] = None


class OrderEmailRequest(BaseModel):
    to: str = ""
    subject: str = ""
    html: str = ""
    type: str = "order_confirmation"
    orderId: Optional[str] = None


class VendorRequest(BaseModel):
    email: str = ""
    business_name: str = ""
    business_description: Optional[str] = None
    business_address: Optional[str] = None
    gstin: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None


class DeliveryPartnerRequest(BaseModel):
    email: str = ""
    full_name: Optional[str] = None
    phone: Optional[str] = None
    vehicle_type: Optional[str] = None
    vehicle_number: Optional[str] = None


# ---------- Helpers ----------
def fail(status: int, error: str, details: Optional[str] = None) -> HTTPException:
    detail: Dict[str, Any] = {"error": error}
    if details:
        detail["details"] = details
    return HTTPException(status, detail)


def require_user(authorization: Optional[str]) -> Dict[str, Any]:
    if not authorization:
        raise fail(401, "Unauthorized", "No authorization header")
    user = CLIENT.get_user(authorization)
    if user is None:
        raise fail(401, "Unauthorized", "User not found")
    return user


def require_admin(authorization: Optional[str]) -> Dict[str, Any]:
    user = require_user(authorization)
    try:
        is_admin = CLIENT.has_role(str(user["id"]), "admin")
    except ServiceError as exc:
        raise fail(500, "Role lookup failed", exc.message) from exc
    if not is_admin:
        raise fail(403, "Forbidden")
    return user


def create_app() -> FastAPI:
    app = FastAPI(title="Storefront Functions", version="0.1.0")
    if CORS_ALLOW_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=CORS_ALLOW_ORIGINS,
            allow_methods=CORS_ALLOW_METHODS,
            allow_headers=CORS_ALLOW_HEADERS,
        )

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {
            "ok": True,
            "backend": CLIENT.configured,
            "smtp": MAILER.configured,
            "razorpay": bool(RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET),
        }

    app.include_router(router)
    app.include_router(router, prefix="/functions/v1")
    return app


router = APIRouter()


# ---------- Payments ----------
@router.post("/create-razorpay-order")
def create_razorpay_order(req: PaymentOrderRequest, authorization: Optional[str] = Header(None)):
    require_user(authorization)
    if req.amount <= 0:
        raise fail(400, "Amount is required and must be greater than 0")
    try:
        razorpay.validate_credentials(RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET)
    except razorpay.RazorpayConfigError as exc:
        LOGGER.error("Razorpay configuration: %s", exc.error)
        raise fail(500, exc.error, exc.details) from exc
    try:
        order = razorpay.create_order(
            RAZORPAY_KEY_ID,
            RAZORPAY_KEY_SECRET,
            req.amount,
            currency=req.currency,
            receipt=req.receipt,
            notes=req.notes,
        )
    except razorpay.RazorpayApiError as exc:
        raise fail(exc.status, exc.description, f"Razorpay API returned {exc.status}") from exc
    return {
        "id": order.get("id"),
        "amount": order.get("amount"),
        "currency": order.get("currency"),
        "key": RAZORPAY_KEY_ID,
    }


# ---------- OTP sign-up ----------
@router.post("/send-otp")
def send_otp(req: SendOtpRequest):
    email = req.email.strip().lower()
    if not email:
        raise fail(400, "Email is required")
    if not MAILER.configured:
        raise fail(500, "SMTP not configured")
    try:
        code = OTP_STORE.issue(email)
    except ServiceError as exc:
        raise fail(400, exc.message) from exc
    greeting = f"Hi {req.full_name or ''}".strip() + ","
    body = "\n".join(
        [
            greeting,
            "",
            f"Your Kash It verification code is {code}.",
            "Enter this code in the app to verify your email.",
            "This code expires in 10 minutes.",
            "",
            "Kash It",
        ]
    )
    try:
        MAILER.send(email, f"Kash It verification code: {code}", body)
    except MailerNotConfigured as exc:
        raise fail(500, str(exc)) from exc
    except OSError as exc:
        LOGGER.error("OTP mail to %s failed: %s", email, exc)
        raise fail(502, "Failed to send verification code", str(exc)) from exc
    return {"ok": True}


@router.post("/verify-otp-signup")
def verify_otp_signup(req: VerifyOtpRequest):
    email = req.email.strip().lower()
    if not email or not req.code or not req.password:
        raise fail(400, "email, code and password are required")
    try:
        if not OTP_STORE.consume(email, req.code):
            raise fail(400, "Invalid or expired code")
        metadata = {"full_name": req.full_name or "User", "phone": req.phone or None}
        existing = CLIENT.find_user_by_email(email)
        if existing:
            if not req.full_name:
                metadata["full_name"] = (existing.get("user_metadata") or {}).get("full_name") or "User"
            CLIENT.update_user(existing["id"], req.password, metadata)
            return {"ok": True, "userId": existing["id"]}
        created = CLIENT.create_user(email, req.password, metadata)
    except ServiceError as exc:
        raise fail(400, exc.message) from exc
    LOGGER.info("Signed up %s", email)
    return {"ok": True, "userId": created.get("id")}


# ---------- Order mail ----------
@router.post("/send-order-email")
def send_order_email(
    req: OrderEmailRequest,
    background: BackgroundTasks,
    authorization: Optional[str] = Header(None),
):
    require_user(authorization)
    if not req.to or not req.subject or not req.html:
        raise fail(400, "Missing required fields: to, subject, html")
    LOGGER.info(
        "Order mail queued to=%s type=%s order=%s html=%d chars",
        req.to,
        req.type,
        req.orderId,
        len(req.html),
    )
    if MAILER.configured:
        background.add_task(MAILER.send_quietly, req.to, req.subject, req.subject, req.html)
    return {"success": True, "message": "Email queued for sending"}


# ---------- Admin onboarding ----------
@router.post("/create-vendor")
def create_vendor(req: VendorRequest, authorization: Optional[str] = Header(None)):
    require_admin(authorization)
    try:
        return accounts.create_vendor(CLIENT, MAILER, req.model_dump(), app_url=APP_URL)
    except accounts.AccountError as exc:
        raise fail(400, str(exc)) from exc
    except ServiceError as exc:
        raise fail(400, exc.message) from exc


@router.post("/create-delivery-partner")
def create_delivery_partner(req: DeliveryPartnerRequest, authorization: Optional[str] = Header(None)):
    require_admin(authorization)
    try:
        return accounts.create_delivery_partner(CLIENT, MAILER, req.model_dump(), app_url=APP_URL)
    except accounts.AccountError as exc:
        raise fail(400, str(exc)) from exc
    except ServiceError as exc:
        raise fail(400, exc.message) from exc


app = create_app()


def main() -> None:
    import argparse

    import uvicorn

    parser = argparse.ArgumentParser(description="Run the storefront functions service.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
