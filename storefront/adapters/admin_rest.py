"""Admin dashboard tables: platform counts and vendor/partner account flags.

Row-level security on the backend lets only admins read every vendor and
partner row; for anyone else these calls return empty lists or zero counts.
"""

from __future__ import annotations

from typing import List, Mapping

from storefront.domain.entities import PartnerAccount, PlatformStats, VendorAccount
from storefront.domain.ports import AdminPort

from .postgrest import PostgrestClient, eq

VENDOR_COLUMNS = "id, business_name, business_description, business_address, gstin, is_active, is_approved, user_id"
PARTNER_COLUMNS = (
    "id, user_id, vehicle_type, vehicle_number, is_verified, is_active, "
    "profiles:profiles!inner(full_name, email)"
)
VENDOR_FLAGS = frozenset({"is_approved", "is_active"})
PARTNER_FLAGS = frozenset({"is_verified", "is_active"})


def _flags(values: Mapping[str, bool], allowed: frozenset) -> dict:
    unknown = set(values) - allowed
    if unknown:
        raise ValueError(f"Unsupported account flags: {', '.join(sorted(unknown))}")
    return {key: bool(value) for key, value in values.items()}


class AdminRestAdapter(AdminPort):
    def __init__(self, client: PostgrestClient) -> None:
        self.client = client

    def platform_stats(self) -> PlatformStats:
        return PlatformStats(
            users=self.client.count("profiles"),
            products=self.client.count("products"),
            vendors=self.client.count("vendors"),
            orders=self.client.count("orders"),
            delivery_partners=self.client.count("delivery_partners"),
        )

    def list_vendor_accounts(self) -> List[VendorAccount]:
        rows = self.client.select("vendors", columns=VENDOR_COLUMNS, order="created_at.desc")
        return [VendorAccount.from_row(row) for row in rows]

    def update_vendor_flags(self, vendor_id: str, values: Mapping[str, bool]) -> None:
        self.client.update("vendors", _flags(values, VENDOR_FLAGS), filters=[eq("id", vendor_id)])

    def list_partner_accounts(self) -> List[PartnerAccount]:
        rows = self.client.select("delivery_partners", columns=PARTNER_COLUMNS, order="created_at.desc")
        return [PartnerAccount.from_row(row) for row in rows]

    def update_partner_flags(self, partner_id: str, values: Mapping[str, bool]) -> None:
        self.client.update(
            "delivery_partners",
            _flags(values, PARTNER_FLAGS),
            filters=[eq("id", partner_id)],
        )


__all__ = ["AdminRestAdapter"]
