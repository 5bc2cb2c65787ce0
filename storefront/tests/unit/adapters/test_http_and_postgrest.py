from __future__ import annotations

import json
import types
from typing import Any, Dict, List

import pytest
from requests import exceptions as req_exc

from storefront.adapters.api_errors import ApiClientError, ApiServerError, ApiTimeoutError
from storefront.adapters.http_client import HttpConfig, RetryingSession
from storefront.adapters.postgrest import NO_ROWS_CODE, PostgrestClient, eq, ilike, in_, is_, not_in, or_


def _response(status: int, payload: Any = None) -> types.SimpleNamespace:
    text = "" if payload is None else json.dumps(payload)
    return types.SimpleNamespace(status_code=status, text=text, json=lambda: payload)


class _TransportStub:
    """Stands in for ``requests.Session`` and replays queued outcomes."""

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes: List[Any] = list(outcomes)
        self.calls: List[Dict[str, Any]] = []

    def request(self, method, url, *, params=None, data=None, headers=None, timeout=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "params": params,
                "data": data,
                "headers": dict(headers or {}),
                "timeout": timeout,
            }
        )
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _session(*outcomes: Any, retries: int = 2) -> RetryingSession:
    session = RetryingSession("anon-key", HttpConfig(request_timeout_s=7, retries=retries))
    session.session = _TransportStub(*outcomes)
    return session


def test_headers_use_anon_key_until_signed_in() -> None:
    session = _session(_response(200, []), _response(200, []))

    session.get("http://backend/rest/v1/products")
    session.set_access_token("user-token")
    session.post("http://backend/rest/v1/carts", json_body={"a": 1})

    first, second = session.session.calls
    assert first["headers"]["apikey"] == "anon-key"
    assert first["headers"]["Authorization"] == "Bearer anon-key"
    assert "Content-Type" not in first["headers"]
    assert first["timeout"] == 7
    assert second["headers"]["Authorization"] == "Bearer user-token"
    assert second["headers"]["Content-Type"] == "application/json"
    assert json.loads(second["data"]) == {"a": 1}


def test_request_retries_timeouts_then_succeeds() -> None:
    session = _session(req_exc.Timeout(), req_exc.ConnectionError(), _response(200, []))

    resp = session.get("http://backend/x")

    assert resp.status_code == 200
    assert len(session.session.calls) == 3


def test_request_raises_timeout_error_after_last_attempt() -> None:
    session = _session(req_exc.Timeout(), req_exc.Timeout(), retries=1)

    with pytest.raises(ApiTimeoutError):
        session.get("http://backend/x")
    assert len(session.session.calls) == 2


def test_filter_helpers_render_postgrest_operators() -> None:
    assert eq("is_active", True) == ("is_active", "eq.true")
    assert is_("delivered_at", None) == ("delivered_at", "is.null")
    assert ilike("name", "*milk*") == ("name", "ilike.*milk*")
    assert in_("id", ["a", "b,c"]) == ("id", 'in.(a,"b,c")')
    assert not_in("status", ["cancelled"]) == ("status", "not.in.(cancelled)")
    assert or_("a.eq.1", "b.eq.2") == ("or", "(a.eq.1,b.eq.2)")


def test_select_builds_params_in_order() -> None:
    session = _session(_response(200, [{"id": "p1"}, "junk"]))
    client = PostgrestClient(session, "http://backend/")

    rows = client.select(
        "products",
        columns="id,name",
        filters=[eq("vendor_id", "v1")],
        order="created_at.desc",
        limit=5,
    )

    call = session.session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "http://backend/rest/v1/products"
    assert call["params"] == [
        ("select", "id,name"),
        ("vendor_id", "eq.v1"),
        ("order", "created_at.desc"),
        ("limit", "5"),
    ]
    assert rows == [{"id": "p1"}]


def test_single_raises_no_rows_client_error() -> None:
    client = PostgrestClient(_session(_response(200, [])), "http://backend")

    with pytest.raises(ApiClientError) as info:
        client.single("products", filters=[eq("id", "missing")])

    assert info.value.status == 406
    assert info.value.code == NO_ROWS_CODE


def test_insert_sends_prefer_header_and_upsert_conflict() -> None:
    session = _session(_response(201, [{"id": "w1"}]))
    client = PostgrestClient(session, "http://backend")

    rows = client.insert("wishlist", {"product_id": "p1"}, upsert=True, on_conflict="user_id,product_id")

    call = session.session.calls[0]
    assert call["headers"]["Prefer"] == "return=representation,resolution=merge-duplicates"
    assert ("on_conflict", "user_id,product_id") in call["params"]
    assert rows == [{"id": "w1"}]


def test_update_and_delete_require_filters() -> None:
    client = PostgrestClient(_session(), "http://backend")

    with pytest.raises(ValueError):
        client.update("orders", {"status": "cancelled"}, filters=[])
    with pytest.raises(ValueError):
        client.delete("cart_items", filters=[])


def test_client_errors_carry_code_and_hint() -> None:
    payload = {"code": "23505", "message": "duplicate key", "details": "Key (id) exists"}
    client = PostgrestClient(_session(_response(409, payload)), "http://backend")

    with pytest.raises(ApiClientError) as info:
        client.insert("reviews", {"product_id": "p1"})

    assert info.value.status == 409
    assert info.value.code == "23505"
    assert info.value.hint == "Key (id) exists"
    assert "duplicate key" in str(info.value)


def test_server_errors_raise_server_error() -> None:
    client = PostgrestClient(_session(_response(503, {"message": "down"})), "http://backend")

    with pytest.raises(ApiServerError):
        client.rpc("decrement_stock", {"product_id": "p1"})


def test_no_content_responses_decode_as_empty() -> None:
    session = _session(_response(204))
    client = PostgrestClient(session, "http://backend")

    assert client.update("orders", {"status": "cancelled"}, filters=[eq("id", "o1")]) == []
    assert session.session.calls[0]["method"] == "PATCH"


def test_post_read_timeout_is_not_retried() -> None:
    session = _session(req_exc.ReadTimeout(), _response(201, [{"id": "o1"}]))

    with pytest.raises(ApiTimeoutError):
        session.post("http://backend/rest/v1/orders", json_body={"user_id": "u1"})

    assert len(session.session.calls) == 1


def test_post_connect_failures_are_retried() -> None:
    session = _session(req_exc.ConnectTimeout(), req_exc.ConnectionError(), _response(201, []))

    resp = session.post("http://backend/rest/v1/orders", json_body={"user_id": "u1"})

    assert resp.status_code == 201
    assert len(session.session.calls) == 3


def test_get_read_timeout_is_retried() -> None:
    session = _session(req_exc.ReadTimeout(), _response(200, []))

    assert session.get("http://backend/rest/v1/products").status_code == 200
    assert len(session.session.calls) == 2
