"""Thin web-facing viewmodels for NiceGUI bindings.

These viewmodels hold browser form state and translate to/from core
viewmodels and domain drafts without adding I/O or orchestration logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import quote

from storefront.domain.entities import Address, AddressDraft
from storefront.viewmodels.settings_vm import SettingsVM


BROWSER_SETTINGS_KEY = "storefront.web.settings.v1"


def _as_int(value: Any, default: int) -> int:
    """Convert mixed values to int with deterministic fallback."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return int(default)


@dataclass
class WebSettingsVM:
    """Browser-editable settings projection for NiceGUI forms."""

    backend_url: str = ""
    anon_key: str = ""
    functions_url: str = ""
    google_maps_key: str = ""
    request_timeout_s: int = 10
    retries: int = 2
    order_poll_interval_s: int = 15
    serviceable_pincodes: str = ""
    debug_logging: bool = False

    @classmethod
    def from_settings_vm(cls, settings_vm: SettingsVM) -> "WebSettingsVM":
        return cls.from_payload(settings_vm.to_dict())

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "WebSettingsVM":
        """Build browser form state from a ``SettingsVM.to_dict`` payload."""
        if not isinstance(payload, Mapping):
            raise ValueError("Settings payload must be a mapping.")
        pincodes = payload.get("serviceable_pincodes") or []
        if isinstance(pincodes, (list, tuple)):
            pincodes = ", ".join(str(code) for code in pincodes)
        return cls(
            backend_url=str(payload.get("backend_url") or ""),
            anon_key=str(payload.get("anon_key") or ""),
            functions_url=str(payload.get("functions_url") or ""),
            google_maps_key=str(payload.get("google_maps_key") or ""),
            request_timeout_s=_as_int(payload.get("request_timeout_s"), 10),
            retries=_as_int(payload.get("retries"), 2),
            order_poll_interval_s=_as_int(payload.get("order_poll_interval_s"), 15),
            serviceable_pincodes=str(pincodes),
            debug_logging=bool(payload.get("debug_logging")),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Serialize form state in the ``SettingsVM.apply_dict`` shape."""
        return {
            "backend_url": str(self.backend_url or "").strip(),
            "anon_key": str(self.anon_key or "").strip(),
            "functions_url": str(self.functions_url or "").strip(),
            "google_maps_key": str(self.google_maps_key or "").strip(),
            "request_timeout_s": _as_int(self.request_timeout_s, 10),
            "retries": _as_int(self.retries, 2),
            "order_poll_interval_s": _as_int(self.order_poll_interval_s, 15),
            "serviceable_pincodes": str(self.serviceable_pincodes or ""),
            "debug_logging": bool(self.debug_logging),
        }


def parse_settings_json(text: str) -> Dict[str, Any]:
    """Parse imported settings JSON into a mapping payload."""
    raw = json.loads(text)
    if not isinstance(raw, dict):
        raise ValueError("Imported settings must be a JSON object.")
    return dict(raw)


def search_url(query: str) -> str:
    """Search page link with the query percent-encoded."""
    text = (query or "").strip()
    return f"/search?q={quote(text, safe='')}"


@dataclass
class WebAddressForm:
    """Form state for the add/edit address dialog."""

    address_id: Optional[str] = None
    full_name: str = ""
    phone: str = ""
    address_line1: str = ""
    address_line2: str = ""
    landmark: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_default: bool = False

    @classmethod
    def from_address(cls, address: Address) -> "WebAddressForm":
        return cls(
            address_id=address.id,
            full_name=address.full_name,
            phone=address.phone,
            address_line1=address.address_line1,
            address_line2=address.address_line2,
            landmark=address.landmark,
            city=address.city,
            state=address.state,
            pincode=address.pincode,
            latitude=address.latitude,
            longitude=address.longitude,
            is_default=address.is_default,
        )

    def to_draft(self) -> AddressDraft:
        return AddressDraft(
            full_name=self.full_name,
            phone=self.phone,
            address_line1=self.address_line1,
            address_line2=self.address_line2,
            landmark=self.landmark,
            city=self.city,
            state=self.state,
            pincode=self.pincode,
            latitude=self.latitude,
            longitude=self.longitude,
            is_default=self.is_default,
        )


@dataclass
class WebProductForm:
    """Vendor "add product" form state."""

    name: str = ""
    price: str = ""
    stock: str = "0"
    category_id: Optional[str] = None
    description: str = ""
    unit: str = "piece"
    image_url: str = ""
    brand: str = ""
    sku: str = ""

    def to_kwargs(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "price": self.price,
            "stock": self.stock,
            "category_id": self.category_id,
            "description": self.description,
            "unit": self.unit,
            "image_url": self.image_url.strip() or None,
            "extras": {"brand": self.brand, "sku": self.sku},
        }


@dataclass
class WebReviewForm:
    """Per-item ratings collected by the order review dialog."""

    order_id: str = ""
    ratings: Dict[str, int] = field(default_factory=dict)
    comments: Dict[str, str] = field(default_factory=dict)

    def set_rating(self, product_id: str, rating: int) -> None:
        self.ratings[product_id] = max(0, min(5, int(rating)))

    def set_comment(self, product_id: str, comment: str) -> None:
        self.comments[product_id] = comment or ""


STATIC_PAGES: Dict[str, Tuple[str, List[str]]] = {
    "about": (
        "About Us",
        [
            "Kash It delivers groceries and daily essentials from neighbourhood stores in minutes.",
            "We partner with local vendors and delivery riders across Srinagar.",
        ],
    ),
    "contact": (
        "Contact",
        ["Email: support@example.com", "Hours: 9 AM to 9 PM, all days."],
    ),
    "privacy-policy": (
        "Privacy Policy",
        ["We store the details needed to deliver your orders and never sell them."],
    ),
    "terms-of-service": (
        "Terms of Service",
        ["Orders are subject to availability and delivery to serviceable pincodes."],
    ),
    "cookie-policy": (
        "Cookie Policy",
        ["Cookies keep you signed in and remember your cart."],
    ),
    "refund-policy": (
        "Refund Policy",
        ["Cancelled online payments are refunded to the original method within 5-7 days."],
    ),
    "internships": (
        "Internships",
        ["We periodically open internships in engineering and operations."],
    ),
    "explore-projects": (
        "IoT Projects",
        ["A showcase of student IoT projects built with our kits."],
    ),
}
