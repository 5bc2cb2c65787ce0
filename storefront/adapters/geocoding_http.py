"""HTTP geocoding adapter for pincode lookup and map reverse geocoding.

This adapter implements ``GeocodingPort`` on top of free public services and
returns domain ``PincodeInfo`` / ``ReverseGeocodeResult`` objects. Lookups are
best-effort: network failures and unexpected payloads yield ``None`` so the
address form can fall back to manual entry.

Dependencies:
    - ``requests`` for the India Post, Nominatim and Google Geocoding APIs.

Call context:
    - Invoked by ``LookupPincode`` and ``ReverseGeocode`` use cases.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Tuple

import requests
from requests import exceptions as req_exc

from storefront.domain.entities import PincodeInfo, ReverseGeocodeResult
from storefront.domain.ports import GeocodingPort
from storefront.domain.serviceability import normalize_pincode

LOGGER = logging.getLogger(__name__)

POSTAL_API_URL = "https://api.postalpincode.in/pincode/{pincode}"
NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"
GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

USER_AGENT = "storefront-geocoder/1.0"
CITY_KEYS = ("city", "town", "village", "hamlet", "suburb")


def pick_city(address: Optional[Mapping[str, Any]]) -> Optional[str]:
    if not address:
        return None
    for key in CITY_KEYS:
        value = address.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _google_component(components: Any, *types: str) -> Optional[str]:
    if not isinstance(components, list):
        return None
    for comp in components:
        if not isinstance(comp, Mapping):
            continue
        comp_types = comp.get("types") or []
        if any(t in comp_types for t in types):
            name = comp.get("long_name")
            if isinstance(name, str):
                return name
    return None


class HttpGeocodingAdapter(GeocodingPort):
    def __init__(
        self,
        *,
        google_api_key: Optional[str] = None,
        timeout_s: float = 8.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.google_api_key = (google_api_key or "").strip() or None
        self.timeout_s = timeout_s
        self.session = session or requests.Session()

    def _get_json(self, url: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        try:
            resp = self.session.get(
                url,
                params=params,
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                timeout=self.timeout_s,
            )
        except req_exc.RequestException as exc:
            LOGGER.warning("Geocoding request to %s failed: %s", url, exc)
            return None
        if not resp.ok:
            LOGGER.warning("Geocoding request to %s returned HTTP %s", url, resp.status_code)
            return None
        try:
            return resp.json()
        except ValueError:
            LOGGER.warning("Geocoding response from %s was not JSON", url)
            return None

    # ---- Forward lookups ----
    def geocode(self, query: str) -> Optional[Tuple[float, float]]:
        data = self._get_json(NOMINATIM_SEARCH_URL, {"format": "json", "q": query, "limit": 1})
        if not isinstance(data, list) or not data:
            return None
        first = data[0]
        try:
            return float(first["lat"]), float(first["lon"])
        except (KeyError, TypeError, ValueError):
            return None

    def lookup_pincode(self, pincode: str) -> Optional[PincodeInfo]:
        """Resolve city/state via India Post, then coordinates via Nominatim."""
        code = (pincode or "").strip()
        if len(code) != 6 or not code.isdigit():
            return None

        data = self._get_json(POSTAL_API_URL.format(pincode=code))
        office = None
        if isinstance(data, list) and data and isinstance(data[0], Mapping):
            block = data[0]
            offices = block.get("PostOffice")
            if block.get("Status") == "Success" and isinstance(offices, list) and offices:
                office = offices[0]

        if isinstance(office, Mapping):
            name = str(office.get("Name") or "")
            district = str(office.get("District") or "")
            state = str(office.get("State") or "")
            coords = self.geocode(f"{name}, {district}, {state}, India")
            return PincodeInfo(
                pincode=code,
                city=district or name,
                state=state,
                district=district or None,
                area=name or None,
                latitude=coords[0] if coords else None,
                longitude=coords[1] if coords else None,
            )

        coords = self.geocode(f"{code}, India")
        if coords is None:
            return None
        return PincodeInfo(pincode=code, city="", state="", latitude=coords[0], longitude=coords[1])

    # ---- Reverse lookups ----
    def reverse_geocode(self, latitude: float, longitude: float) -> Optional[ReverseGeocodeResult]:
        """Prefer Google when a key is configured; fall back to Nominatim."""
        if self.google_api_key:
            result = self._reverse_google(latitude, longitude)
            if result is not None:
                return result
        return self._reverse_osm(latitude, longitude)

    def _reverse_google(self, latitude: float, longitude: float) -> Optional[ReverseGeocodeResult]:
        data = self._get_json(
            GOOGLE_GEOCODE_URL,
            {"latlng": f"{latitude},{longitude}", "key": self.google_api_key, "language": "en"},
        )
        if not isinstance(data, Mapping) or data.get("status") != "OK":
            return None
        results = data.get("results")
        if not isinstance(results, list) or not results:
            return None
        first = results[0] if isinstance(results[0], Mapping) else {}
        components = first.get("address_components")
        city = (
            _google_component(components, "locality")
            or _google_component(components, "administrative_area_level_2")
            or _google_component(components, "sublocality", "sublocality_level_1")
        )
        return ReverseGeocodeResult(
            display_name=str(first.get("formatted_address") or ""),
            city=city,
            state=_google_component(components, "administrative_area_level_1"),
            pincode=normalize_pincode(_google_component(components, "postal_code")),
        )

    def _reverse_osm(self, latitude: float, longitude: float) -> Optional[ReverseGeocodeResult]:
        data = self._get_json(
            NOMINATIM_REVERSE_URL,
            {
                "format": "jsonv2",
                "lat": str(latitude),
                "lon": str(longitude),
                "addressdetails": "1",
                "zoom": "18",
            },
        )
        if not isinstance(data, Mapping):
            return None
        address = data.get("address") if isinstance(data.get("address"), Mapping) else None
        state = address.get("state") if address else None
        return ReverseGeocodeResult(
            display_name=str(data.get("display_name") or ""),
            city=pick_city(address),
            state=state if isinstance(state, str) else None,
            pincode=normalize_pincode(address.get("postcode") if address else None),
        )
