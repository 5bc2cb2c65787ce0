from __future__ import annotations

import pytest

from storefront.domain.entities import Address
from storefront.viewmodels.settings_vm import SettingsVM
from storefront.web_ui.viewmodels import (
    STATIC_PAGES,
    WebAddressForm,
    WebProductForm,
    WebSettingsVM,
    parse_settings_json,
    search_url,
)


def test_web_settings_vm_roundtrip() -> None:
    payload = {
        "backend_url": "https://project.example.co",
        "anon_key": "anon",
        "functions_url": "",
        "google_maps_key": "",
        "request_timeout_s": "12",
        "retries": None,
        "order_poll_interval_s": 20,
        "serviceable_pincodes": ["190001", "190002"],
        "debug_logging": True,
    }
    web_vm = WebSettingsVM.from_payload(payload)
    assert web_vm.request_timeout_s == 12
    assert web_vm.retries == 2
    assert web_vm.serviceable_pincodes == "190001, 190002"

    settings_vm = SettingsVM()
    settings_vm.apply_dict(web_vm.to_payload())
    assert settings_vm.backend_url == "https://project.example.co"
    assert settings_vm.serviceable_pincodes == ["190001", "190002"]
    assert WebSettingsVM.from_settings_vm(settings_vm).order_poll_interval_s == 20


def test_parse_settings_json_rejects_non_object() -> None:
    with pytest.raises(ValueError):
        parse_settings_json("[1, 2]")
    assert parse_settings_json('{"retries": 3}') == {"retries": 3}


def test_address_form_roundtrip() -> None:
    address = Address(
        id="addr-9",
        full_name="Asha",
        phone="9876500000",
        address_line1="5 Boulevard",
        city="Srinagar",
        state="Jammu and Kashmir",
        pincode="190001",
        latitude=34.08,
        longitude=74.8,
        is_default=True,
    )
    form = WebAddressForm.from_address(address)
    assert form.address_id == "addr-9"

    draft = form.to_draft()
    assert (draft.city, draft.latitude, draft.is_default) == ("Srinagar", 34.08, True)


def test_product_form_kwargs() -> None:
    kwargs = WebProductForm(name="Tea", price="99", image_url="  ", sku="T-1").to_kwargs()

    assert kwargs["image_url"] is None
    assert kwargs["extras"] == {"brand": "", "sku": "T-1"}
    assert kwargs["unit"] == "piece"


def test_static_pages_have_titles() -> None:
    assert STATIC_PAGES["refund-policy"][0] == "Refund Policy"
    assert all(paragraphs for _, paragraphs in STATIC_PAGES.values())


@pytest.mark.parametrize(
    "query, url",
    [
        ("milk & eggs #2", "/search?q=milk%20%26%20eggs%20%232"),
        ("  bread  ", "/search?q=bread"),
        ("a/b?c=d", "/search?q=a%2Fb%3Fc%3Dd"),
        (None, "/search?q="),
    ],
)
def test_search_url_encodes_query(query, url) -> None:
    assert search_url(query) == url
