from __future__ import annotations

import pytest

from storefront.domain.geo import format_distance, haversine_km
from storefront.domain.serviceability import (
    check_pincode_serviceability,
    is_valid_pincode,
    normalize_pincode,
)


@pytest.mark.parametrize(
    "pincode, reason",
    [
        ("", "invalid"),
        ("012345", "invalid"),
        ("19000", "invalid"),
        ("110001", "not_in_service_area"),
        (" 190001 ", "serviceable"),
    ],
)
def test_check_pincode_serviceability(pincode, reason) -> None:
    result = check_pincode_serviceability(pincode)

    assert result.reason == reason
    assert result.is_serviceable is (reason == "serviceable")


def test_custom_service_area_overrides_default() -> None:
    assert check_pincode_serviceability("110001", {"110001"}).is_serviceable is True
    assert check_pincode_serviceability("190001", set()).is_serviceable is False


def test_pincode_helpers() -> None:
    assert is_valid_pincode("190001") is True
    assert normalize_pincode("190 001") == "190001"
    assert normalize_pincode("1900") is None
    assert normalize_pincode(190001) is None


def test_haversine_and_format_distance() -> None:
    srinagar = (34.0837, 74.7973)
    nearby = (34.0867, 74.7973)

    assert haversine_km(srinagar, srinagar) == 0.0
    assert 0.3 < haversine_km(srinagar, nearby) < 0.4
    assert format_distance(srinagar, nearby) == "334 m"
    assert format_distance(srinagar, (34.1837, 74.7973)) == "11.1 km"
    assert format_distance(None, nearby) == "-"
