"""Address book workflows and delivery-area lookups for checkout."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, List, Optional

from storefront.domain.entities import Address, AddressDraft, PincodeInfo, ReverseGeocodeResult, Session
from storefront.domain.ports import AddressPort, GeocodingPort, UseCaseError
from storefront.domain.serviceability import (
    DEFAULT_SERVICEABLE_PINCODES,
    ServiceabilityResult,
    check_pincode_serviceability,
    is_valid_pincode,
)
from storefront.usecases.error_mapping import map_api_error


def _user_id(session: Optional[Session]) -> str:
    if session is None or not session.user_id:
        raise UseCaseError("AUTH_REQUIRED", "Please sign in to manage addresses.")
    return session.user_id


def validate_address(draft: AddressDraft) -> None:
    """Raise ``ADDRESS_INVALID`` for the first missing required field."""
    checks = (
        (draft.full_name, "Please enter the recipient name"),
        (draft.address_line1, "Please enter the full address"),
        (draft.city, "Please enter the city"),
        (draft.state, "Please enter the state"),
        (draft.pincode, "Please enter the pincode"),
        (draft.phone, "Please enter the phone number"),
    )
    for value, message in checks:
        if not (value or "").strip():
            raise UseCaseError("ADDRESS_INVALID", message)
    if not is_valid_pincode(draft.pincode.strip()):
        raise UseCaseError("ADDRESS_INVALID", "Please enter a valid 6-digit Indian pincode.")


@dataclass
class ListAddresses:
    addresses: AddressPort

    def __call__(self, session: Optional[Session]) -> List[Address]:
        if session is None:
            return []
        try:
            return self.addresses.list_addresses(session.user_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="ADDRESS_LOAD_FAILED",
                default_message="Could not load addresses.",
            ) from exc


@dataclass
class SaveAddress:
    """Create or update an address; a default address clears the previous default."""

    addresses: AddressPort

    def __call__(
        self,
        session: Optional[Session],
        draft: AddressDraft,
        *,
        address_id: Optional[str] = None,
    ) -> Address:
        user_id = _user_id(session)
        validate_address(draft)
        try:
            if address_id:
                return self.addresses.update_address(user_id, address_id, draft.to_row())
            return self.addresses.create_address(user_id, draft.to_row())
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="ADDRESS_SAVE_FAILED",
                default_message="Failed to save address",
            ) from exc


@dataclass
class DeleteAddress:
    addresses: AddressPort

    def __call__(self, session: Optional[Session], address_id: str) -> None:
        user_id = _user_id(session)
        try:
            self.addresses.delete_address(user_id, address_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="ADDRESS_DELETE_FAILED",
                default_message="Failed to delete address",
            ) from exc


@dataclass
class SetDefaultAddress:
    addresses: AddressPort

    def __call__(self, session: Optional[Session], address_id: str) -> None:
        user_id = _user_id(session)
        try:
            self.addresses.set_default_address(user_id, address_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="ADDRESS_DEFAULT_FAILED",
                default_message="Failed to update default address",
            ) from exc


@dataclass
class CheckServiceability:
    serviceable: AbstractSet[str] = field(default_factory=lambda: set(DEFAULT_SERVICEABLE_PINCODES))

    def __call__(self, pincode: str) -> ServiceabilityResult:
        return check_pincode_serviceability(pincode, self.serviceable)


@dataclass
class LookupPincode:
    geocoding: GeocodingPort

    def __call__(self, pincode: str) -> PincodeInfo:
        code = (pincode or "").strip()
        if not is_valid_pincode(code):
            raise UseCaseError("PINCODE_INVALID", "Please enter a valid 6-digit Indian pincode.")
        try:
            info = self.geocoding.lookup_pincode(code)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="PINCODE_LOOKUP_FAILED",
                default_message="Failed to lookup pincode",
            ) from exc
        if info is None:
            raise UseCaseError("PINCODE_NOT_FOUND", "Could not find location for this pincode")
        return info


@dataclass
class ReverseGeocode:
    geocoding: GeocodingPort

    def __call__(self, latitude: float, longitude: float) -> ReverseGeocodeResult:
        if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
            raise UseCaseError("LOCATION_INVALID", "Invalid map location.")
        try:
            result = self.geocoding.reverse_geocode(latitude, longitude)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="REVERSE_GEOCODE_FAILED",
                default_message="Could not resolve this location.",
            ) from exc
        if result is None:
            raise UseCaseError("LOCATION_NOT_FOUND", "Could not resolve this location.")
        return result


__all__ = [
    "CheckServiceability",
    "DeleteAddress",
    "ListAddresses",
    "LookupPincode",
    "ReverseGeocode",
    "SaveAddress",
    "SetDefaultAddress",
    "validate_address",
]
