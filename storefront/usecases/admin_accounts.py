"""Admin-only onboarding of vendor and delivery partner accounts.

The functions service generates the password, creates the login and mails
the credentials; the client only validates the form and forwards it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from storefront.domain.ports import FunctionsPort, UseCaseError
from storefront.usecases.auth import normalize_email
from storefront.usecases.error_mapping import map_api_error

LOGGER = logging.getLogger(__name__)


def _clean_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        key: ((value.strip() or None) if isinstance(value, str) else value)
        for key, value in payload.items()
    }


@dataclass
class CreateVendorAccount:
    functions: FunctionsPort

    def __call__(
        self,
        email: str,
        business_name: str,
        *,
        full_name: str = "",
        phone: str = "",
        business_description: str = "",
        business_address: str = "",
        gstin: str = "",
    ) -> Dict[str, Any]:
        if not (email or "").strip() or not (business_name or "").strip():
            raise UseCaseError("VENDOR_INVALID", "Email and Business Name are required")
        payload = _clean_fields(
            {
                "email": normalize_email(email),
                "business_name": business_name,
                "business_description": business_description,
                "business_address": business_address,
                "gstin": gstin,
                "full_name": full_name,
                "phone": phone,
            }
        )
        try:
            result = self.functions.create_vendor(payload)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="VENDOR_CREATE_FAILED",
                default_message="Failed to create vendor account",
            ) from exc
        LOGGER.info("Created vendor account for %s", payload["email"])
        return result


@dataclass
class CreateDeliveryPartnerAccount:
    functions: FunctionsPort

    def __call__(
        self,
        email: str,
        *,
        full_name: str = "",
        phone: str = "",
        vehicle_type: str = "",
        vehicle_number: str = "",
    ) -> Dict[str, Any]:
        payload = _clean_fields(
            {
                "email": normalize_email(email),
                "full_name": full_name,
                "phone": phone,
                "vehicle_type": vehicle_type,
                "vehicle_number": vehicle_number,
            }
        )
        try:
            result = self.functions.create_delivery_partner(payload)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="PARTNER_CREATE_FAILED",
                default_message="Failed to create delivery partner",
            ) from exc
        LOGGER.info("Created delivery partner account for %s", payload["email"])
        return result


def generated_password(result: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Credentials are only returned when the service could not mail them."""
    if not result:
        return None
    value = result.get("password")
    return str(value) if value else None


def onboarding_notice(result: Optional[Mapping[str, Any]], default: str) -> str:
    """Toast text for a finished onboarding call.

    A returned password means the welcome mail failed and the admin has to
    hand the credentials over; it is the only place they are ever shown.
    """
    message = str((result or {}).get("message") or default).rstrip(".")
    password = generated_password(result)
    if password:
        return f"{message}. Email could not be sent; temporary password: {password}"
    if (result or {}).get("emailed"):
        return f"{message}. Credentials emailed."
    return f"{message}."


__all__ = [
    "CreateDeliveryPartnerAccount",
    "CreateVendorAccount",
    "generated_password",
    "onboarding_notice",
]
