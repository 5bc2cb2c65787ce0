"""Pincode validation and delivery-area checks."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import AbstractSet, Any, Literal, Optional

ServiceabilityReason = Literal["serviceable", "invalid", "not_in_service_area"]

# Extend via settings as the service area grows.
DEFAULT_SERVICEABLE_PINCODES = frozenset({"190001"})

_PINCODE_RE = re.compile(r"^[1-9][0-9]{5}$")


@dataclass(frozen=True)
class ServiceabilityResult:
    is_serviceable: bool
    reason: ServiceabilityReason
    message: str


def is_valid_pincode(pincode: str) -> bool:
    return bool(_PINCODE_RE.match(pincode or ""))


def normalize_pincode(value: Any) -> Optional[str]:
    """Strip non-digits; return the 6-digit code or ``None``."""
    if not isinstance(value, str):
        return None
    digits = re.sub(r"\D", "", value)
    if len(digits) != 6:
        return None
    return digits


def check_pincode_serviceability(
    pincode: str,
    serviceable: Optional[AbstractSet[str]] = None,
) -> ServiceabilityResult:
    normalized = (pincode or "").strip()
    area = DEFAULT_SERVICEABLE_PINCODES if serviceable is None else serviceable

    if not normalized:
        return ServiceabilityResult(False, "invalid", "Please enter a 6-digit pincode.")
    if not is_valid_pincode(normalized):
        return ServiceabilityResult(
            False, "invalid", "Please enter a valid 6-digit Indian pincode."
        )
    if normalized not in area:
        return ServiceabilityResult(
            False,
            "not_in_service_area",
            "Sorry, service is not available in your area yet.",
        )
    return ServiceabilityResult(
        True, "serviceable", "Good news! We currently deliver to this pincode."
    )


__all__ = [
    "DEFAULT_SERVICEABLE_PINCODES",
    "ServiceabilityResult",
    "check_pincode_serviceability",
    "is_valid_pincode",
    "normalize_pincode",
]
