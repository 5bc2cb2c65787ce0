"""Admin dashboard: platform counts and vendor/partner account switches."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from storefront.domain.entities import PartnerAccount, PlatformStats, VendorAccount
from storefront.domain.ports import AdminPort, UseCaseError
from storefront.usecases.error_mapping import map_api_error

LOGGER = logging.getLogger(__name__)

VENDOR_TOGGLES = ("is_approved", "is_active")
PARTNER_TOGGLES = ("is_verified", "is_active")


@dataclass
class AdminDashboard:
    """Each toggle writes the opposite of the flag the admin is looking at."""

    admin: AdminPort

    def stats(self) -> PlatformStats:
        try:
            return self.admin.platform_stats()
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="STATS_FAILED",
                default_message="Could not load platform stats.",
            ) from exc

    def vendors(self) -> List[VendorAccount]:
        try:
            return self.admin.list_vendor_accounts()
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="VENDORS_FAILED",
                default_message="Could not load vendors.",
            ) from exc

    def partners(self) -> List[PartnerAccount]:
        try:
            return self.admin.list_partner_accounts()
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="PARTNERS_FAILED",
                default_message="Could not load delivery partners.",
            ) from exc

    def toggle_vendor(self, vendor: VendorAccount, flag: str) -> bool:
        if flag not in VENDOR_TOGGLES:
            raise UseCaseError("INVALID_ACTION", f"Unknown vendor setting: {flag}")
        value = not getattr(vendor, flag)
        try:
            self.admin.update_vendor_flags(vendor.id, {flag: value})
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="VENDOR_UPDATE_FAILED",
                default_message="Failed to update vendor",
            ) from exc
        LOGGER.info("Vendor %s %s=%s", vendor.id, flag, value)
        return value

    def toggle_partner(self, partner: PartnerAccount, flag: str) -> bool:
        if flag not in PARTNER_TOGGLES:
            raise UseCaseError("INVALID_ACTION", f"Unknown partner setting: {flag}")
        value = not getattr(partner, flag)
        try:
            self.admin.update_partner_flags(partner.id, {flag: value})
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="PARTNER_UPDATE_FAILED",
                default_message="Failed to update delivery partner",
            ) from exc
        LOGGER.info("Delivery partner %s %s=%s", partner.id, flag, value)
        return value


__all__ = ["AdminDashboard", "PARTNER_TOGGLES", "VENDOR_TOGGLES"]
