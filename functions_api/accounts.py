"""Admin onboarding of vendor and delivery-partner logins.

Both flows create (or reuse) an auth user with a generated password, make
sure the profile, role and vendor/partner rows exist, and mail the
credentials. When the mail cannot be sent the password is returned to the
admin instead.
"""

import logging
import secrets
from typing import Any, Dict, Mapping, Optional

from functions_api.mailer import Mailer
from functions_api.service_client import ServiceClient, eq

LOGGER = logging.getLogger(__name__)

LOWERCASE = "abcdefghijklmnopqrstuvwxyz"
UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
DIGITS = "0123456789"
SYMBOLS = "!@#$%^&*"
PASSWORD_LENGTH = 12

VENDOR_ROLE = "vendor"
DELIVERY_ROLE = "delivery"


class AccountError(ValueError):
    pass


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    """At least one character from each class, shuffled."""
    rng = secrets.SystemRandom()
    alphabet = LOWERCASE + UPPERCASE + DIGITS + SYMBOLS
    chars = [rng.choice(group) for group in (LOWERCASE, UPPERCASE, DIGITS, SYMBOLS)]
    chars += [rng.choice(alphabet) for _ in range(length - len(chars))]
    rng.shuffle(chars)
    return "".join(chars)


def _clean(value: Any) -> Optional[str]:
    text = str(value or "").strip()
    return text or None


def _ensure_role(client: ServiceClient, user_id: str, role: str) -> None:
    if not client.has_role(user_id, role):
        client.insert("user_roles", {"user_id": user_id, "role": role})


def _ensure_login(
    client: ServiceClient,
    email: str,
    password: str,
    metadata: Mapping[str, Any],
) -> str:
    """Create the auth user, or reset the password of an existing one."""
    existing = client.find_user_by_email(email)
    if existing:
        client.update_user(existing["id"], password, metadata)
        return str(existing["id"])
    return str(client.create_user(email, password, metadata)["id"])


def create_vendor(
    client: ServiceClient,
    mailer: Mailer,
    payload: Mapping[str, Any],
    *,
    app_url: str,
) -> Dict[str, Any]:
    email = (_clean(payload.get("email")) or "").lower()
    business_name = _clean(payload.get("business_name"))
    if not email or not business_name:
        raise AccountError("Email and Business Name are required")
    full_name = _clean(payload.get("full_name")) or business_name
    phone = _clean(payload.get("phone"))
    vendor_fields = {
        "business_name": business_name,
        "business_description": _clean(payload.get("business_description")),
        "business_address": _clean(payload.get("business_address")),
        "gstin": _clean(payload.get("gstin")),
        "is_approved": True,
        "is_active": True,
    }

    profile = client.maybe_single("profiles", {"email": eq(email)}, columns="id, email")
    if profile is not None:
        user_id = str(profile["id"])
        vendor = client.maybe_single("vendors", {"user_id": eq(user_id)}, columns="id")
        if vendor is not None:
            client.update("vendors", {"id": eq(vendor["id"])}, vendor_fields)
            _ensure_role(client, user_id, VENDOR_ROLE)
            LOGGER.info("Vendor %s updated", user_id)
            return {"ok": True, "userId": user_id, "message": "Vendor updated", "emailed": False}
        password = None
    else:
        password = generate_password()
        user_id = str(client.create_user(email, password, {"full_name": full_name, "phone": phone})["id"])
        client.upsert(
            "profiles",
            {"id": user_id, "full_name": full_name, "phone": phone, "email": email, "is_verified": True},
        )

    client.insert("vendors", {"user_id": user_id, **vendor_fields})
    _ensure_role(client, user_id, VENDOR_ROLE)
    LOGGER.info("Vendor created: %s", user_id)

    result: Dict[str, Any] = {
        "ok": True,
        "userId": user_id,
        "message": "Vendor account created successfully",
        "emailed": False,
    }
    if password is None:
        return result
    body = vendor_credentials_text(full_name, email, password, business_name, app_url)
    result["emailed"] = mailer.send_quietly(email, "Welcome to Kash It: your vendor account is ready", body)
    if not result["emailed"]:
        result["password"] = password
    return result


def create_delivery_partner(
    client: ServiceClient,
    mailer: Mailer,
    payload: Mapping[str, Any],
    *,
    app_url: str,
) -> Dict[str, Any]:
    email = (_clean(payload.get("email")) or "").lower()
    if not email:
        raise AccountError("Email is required")
    full_name = _clean(payload.get("full_name")) or "Delivery Partner"
    phone = _clean(payload.get("phone"))
    vehicle_type = _clean(payload.get("vehicle_type"))
    vehicle_number = _clean(payload.get("vehicle_number"))
    password = generate_password()

    user_id = _ensure_login(client, email, password, {"full_name": full_name, "phone": phone})
    client.upsert(
        "profiles",
        {"id": user_id, "full_name": full_name, "phone": phone, "email": email, "is_verified": True},
    )
    partner = client.maybe_single("delivery_partners", {"user_id": eq(user_id)}, columns="id")
    if partner is None:
        client.insert(
            "delivery_partners",
            {
                "user_id": user_id,
                "vehicle_type": vehicle_type,
                "vehicle_number": vehicle_number,
                "is_verified": True,
                "is_active": True,
            },
        )
    else:
        updates = {k: v for k, v in (("vehicle_type", vehicle_type), ("vehicle_number", vehicle_number)) if v}
        if updates:
            client.update("delivery_partners", {"user_id": eq(user_id)}, updates)
    _ensure_role(client, user_id, DELIVERY_ROLE)
    LOGGER.info("Delivery partner ready: %s", user_id)

    result: Dict[str, Any] = {"ok": True, "userId": user_id, "message": "Delivery partner ready"}
    body = partner_credentials_text(full_name, email, password, app_url)
    result["emailed"] = mailer.send_quietly(email, "Kash It delivery partner login credentials", body)
    if not result["emailed"]:
        result["password"] = password
    return result


def vendor_credentials_text(full_name: str, email: str, password: str, business_name: str, app_url: str) -> str:
    return "\n".join(
        [
            f"Dear {full_name},",
            "",
            "Your vendor account has been created.",
            "",
            f"Email (Login ID): {email}",
            f"Password: {password}",
            f"Vendor login: {app_url}/vendor",
            "",
            f"Business name: {business_name}",
            "",
            "Please change your password after the first login.",
            "",
            "Kash It",
        ]
    )


def partner_credentials_text(full_name: str, email: str, password: str, app_url: str) -> str:
    return "\n".join(
        [
            f"Hi {full_name},",
            "",
            "Your delivery partner account has been created by an admin.",
            "",
            f"Login URL: {app_url}/auth",
            f"Email: {email}",
            f"Password: {password}",
            "",
            f"After login, open: {app_url}/delivery",
            "",
            "Kash It",
        ]
    )
