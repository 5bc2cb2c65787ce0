from __future__ import annotations

import json
import logging
import types
from typing import Any, Dict, List, Optional

import pytest

from storefront.adapters.admin_rest import AdminRestAdapter
from storefront.adapters.api_errors import ApiClientError
from storefront.adapters.http_client import HttpConfig, RetryingSession
from storefront.adapters.order_rest import OrderRestAdapter
from storefront.adapters.postgrest import PostgrestClient
from storefront.adapters.storage_rest import StorageRestAdapter, object_path_from_url


def _response(status: int, payload: Any = None, headers: Optional[Dict[str, str]] = None) -> types.SimpleNamespace:
    text = "" if payload is None else json.dumps(payload)
    return types.SimpleNamespace(status_code=status, text=text, json=lambda: payload, headers=headers or {})


class _TransportStub:
    def __init__(self, *outcomes: Any) -> None:
        self.outcomes: List[Any] = list(outcomes)
        self.calls: List[Dict[str, Any]] = []

    def request(self, method, url, *, params=None, data=None, headers=None, timeout=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "params": list(params or []),
                "headers": dict(headers or {}),
                "body": json.loads(data) if isinstance(data, str) else data,
            }
        )
        return self.outcomes.pop(0)


def _session(*outcomes: Any):
    session = RetryingSession("anon-key", HttpConfig(request_timeout_s=5, retries=0))
    transport = _TransportStub(*outcomes)
    session.session = transport
    return session, transport


def test_list_images_skips_folder_placeholder() -> None:
    session, transport = _session(
        _response(200, [{"name": "main-1.png"}, {"name": ".empty"}, {"name": "angle-2-ab.jpg"}])
    )
    storage = StorageRestAdapter(session, "https://project.example.co/")

    photos = storage.list_images("prod-1")

    assert [p.name for p in photos] == ["main-1.png", "angle-2-ab.jpg"]
    assert photos[0].url == (
        "https://project.example.co/storage/v1/object/public/product-images/prod-1/main-1.png"
    )
    (call,) = transport.calls
    assert call["url"] == "https://project.example.co/storage/v1/object/list/product-images"
    assert call["body"] == {"prefix": "prod-1", "sortBy": {"column": "created_at", "order": "desc"}}


def test_upload_image_sends_raw_bytes_without_overwrite() -> None:
    session, transport = _session(_response(200, {"Key": "product-images/prod-1/main-1.png"}))
    storage = StorageRestAdapter(session, "https://project.example.co")

    url = storage.upload_image("prod-1/main-1.png", b"\x89PNG", "image/png")

    assert url.endswith("/object/public/product-images/prod-1/main-1.png")
    (call,) = transport.calls
    assert call["method"] == "POST"
    assert call["url"] == "https://project.example.co/storage/v1/object/product-images/prod-1/main-1.png"
    assert call["body"] == b"\x89PNG"
    assert call["headers"]["Content-Type"] == "image/png"
    assert call["headers"]["x-upsert"] == "false"


def test_upload_conflict_raises_client_error() -> None:
    session, _ = _session(_response(409, {"error": "Duplicate", "message": "The resource already exists"}))

    with pytest.raises(ApiClientError) as info:
        StorageRestAdapter(session, "https://project.example.co").upload_image("p/a.png", b"x", "image/png")
    assert info.value.status == 409


def test_remove_images_sends_prefixes_and_skips_empty_list() -> None:
    session, transport = _session(_response(200, []))
    storage = StorageRestAdapter(session, "https://project.example.co")

    storage.remove_images([])
    storage.remove_images(["prod-1/main-1.png"])

    (call,) = transport.calls
    assert (call["method"], call["body"]) == ("DELETE", {"prefixes": ["prod-1/main-1.png"]})


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://x.co/storage/v1/object/public/product-images/prod-1/main%201.png", "prod-1/main 1.png"),
        ("https://cdn.example.com/apple.jpg", None),
        ("https://x.co/storage/v1/object/public/product-images/", None),
        (None, None),
    ],
)
def test_object_path_from_url(url, expected) -> None:
    assert object_path_from_url(url) == expected


def test_vendor_product_calls() -> None:
    session, transport = _session(
        _response(200, [{"id": "p1", "name": "Apples", "price": 180, "stock": 4, "is_approved": True}]),
        _response(200, [{"success": True}]),
        _response(204),
    )
    adapter = OrderRestAdapter(PostgrestClient(session, "http://backend"))

    (product,) = adapter.vendor_products("vendor-1")
    result = adapter.update_stock_price("p1", "vendor-1", 7, 99.5)
    adapter.deactivate_product("p1", "vendor-1")

    assert (product.id, product.stock, product.is_approved) == ("p1", 4, True)
    assert result == {"success": True}
    listing, rpc, deactivate = transport.calls
    assert ("vendor_id", "eq.vendor-1") in listing["params"]
    assert ("is_active", "eq.true") in listing["params"]
    assert rpc["url"] == "http://backend/rest/v1/rpc/vendor_update_product_stock_price"
    assert rpc["body"] == {"p_product_id": "p1", "p_vendor_id": "vendor-1", "p_new_stock": 7, "p_new_price": 99.5}
    assert deactivate["method"] == "PATCH"
    assert deactivate["body"] == {"is_active": False}
    assert deactivate["params"] == [("id", "eq.p1"), ("vendor_id", "eq.vendor-1")]


def test_count_reads_content_range(caplog) -> None:
    session, transport = _session(
        _response(200, headers={"Content-Range": "0-24/57"}),
        _response(200, headers={"Content-Range": "*/*"}),
    )
    client = PostgrestClient(session, "http://backend")

    assert client.count("orders") == 57
    with caplog.at_level(logging.WARNING):
        assert client.count("orders") == 0
    assert "unexpected Content-Range" in caplog.text
    call = transport.calls[0]
    assert call["method"] == "HEAD"
    assert call["headers"]["Prefer"] == "count=exact"


def test_admin_stats_and_flag_updates() -> None:
    counts = [_response(200, headers={"Content-Range": f"0-0/{n}"}) for n in (10, 20, 3, 40, 5)]
    session, transport = _session(*counts, _response(204))
    admin = AdminRestAdapter(PostgrestClient(session, "http://backend"))

    stats = admin.platform_stats()
    admin.update_vendor_flags("vendor-1", {"is_approved": False})

    assert (stats.users, stats.products, stats.vendors, stats.orders, stats.delivery_partners) == (10, 20, 3, 40, 5)
    assert [c["url"].rsplit("/", 1)[1] for c in transport.calls[:5]] == [
        "profiles",
        "products",
        "vendors",
        "orders",
        "delivery_partners",
    ]
    update = transport.calls[5]
    assert (update["body"], update["params"]) == ({"is_approved": False}, [("id", "eq.vendor-1")])

    with pytest.raises(ValueError):
        admin.update_partner_flags("partner-1", {"is_approved": True})


def test_partner_accounts_read_joined_profile() -> None:
    row = {
        "id": "partner-1",
        "user_id": "user-3",
        "vehicle_type": "bike",
        "vehicle_number": "JK01AB1234",
        "is_verified": True,
        "is_active": False,
        "profiles": {"full_name": "Demo Rider", "email": "rider@example.com"},
    }
    session, _ = _session(_response(200, [row]))

    (partner,) = AdminRestAdapter(PostgrestClient(session, "http://backend")).list_partner_accounts()

    assert (partner.full_name, partner.email, partner.is_verified, partner.is_active) == (
        "Demo Rider",
        "rider@example.com",
        True,
        False,
    )
