"""Admin dashboard projection: stat tiles and vendor/partner account rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from storefront.domain.entities import PartnerAccount, PlatformStats, VendorAccount

# (flag, label when the flag is set, label when it is not)
VENDOR_BUTTONS = (("is_approved", "Unapprove", "Approve"), ("is_active", "Deactivate", "Activate"))
PARTNER_BUTTONS = (("is_verified", "Unverify", "Verify"), ("is_active", "Deactivate", "Activate"))


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


@dataclass
class AccountRow:
    account_id: str
    title: str
    subtitle: str
    status: str
    buttons: List[Tuple[str, str]] = field(default_factory=list)  # (flag, label)


class AdminDashboardVM:
    def __init__(self) -> None:
        self.stats = PlatformStats()
        self.vendors: List[VendorAccount] = []
        self.partners: List[PartnerAccount] = []

    def set_stats(self, stats: PlatformStats) -> None:
        self.stats = stats

    def set_vendors(self, vendors: Sequence[VendorAccount]) -> None:
        self.vendors = list(vendors)

    def set_partners(self, partners: Sequence[PartnerAccount]) -> None:
        self.partners = list(partners)

    def find_vendor(self, vendor_id: str) -> Optional[VendorAccount]:
        return next((vendor for vendor in self.vendors if vendor.id == vendor_id), None)

    def find_partner(self, partner_id: str) -> Optional[PartnerAccount]:
        return next((partner for partner in self.partners if partner.id == partner_id), None)

    def stat_tiles(self) -> List[Tuple[str, int]]:
        stats = self.stats
        return [
            ("Total Users", stats.users),
            ("Total Products", stats.products),
            ("Vendors", stats.vendors),
            ("Orders", stats.orders),
            ("Delivery Partners", stats.delivery_partners),
        ]

    def vendor_rows(self) -> List[AccountRow]:
        rows = []
        for vendor in self.vendors:
            gstin = f"GSTIN {vendor.gstin}" if vendor.gstin else ""
            subtitle = " · ".join(part for part in (vendor.business_address, gstin) if part)
            rows.append(
                AccountRow(
                    account_id=vendor.id,
                    title=vendor.business_name,
                    subtitle=subtitle,
                    status=f"Approved: {_yes_no(vendor.is_approved)} • Active: {_yes_no(vendor.is_active)}",
                    buttons=[(flag, on if getattr(vendor, flag) else off) for flag, on, off in VENDOR_BUTTONS],
                )
            )
        return rows

    def partner_rows(self) -> List[AccountRow]:
        rows = []
        for partner in self.partners:
            vehicle = " ".join(part for part in (partner.vehicle_type, partner.vehicle_number) if part)
            rows.append(
                AccountRow(
                    account_id=partner.id,
                    title=partner.full_name or partner.email or "Delivery partner",
                    subtitle=" · ".join(part for part in (partner.email, vehicle) if part),
                    status=f"Verified: {_yes_no(partner.is_verified)} • Active: {_yes_no(partner.is_active)}",
                    buttons=[(flag, on if getattr(partner, flag) else off) for flag, on, off in PARTNER_BUTTONS],
                )
            )
        return rows


__all__ = ["AccountRow", "AdminDashboardVM", "PARTNER_BUTTONS", "VENDOR_BUTTONS"]
