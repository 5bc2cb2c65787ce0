from __future__ import annotations

import json
import types
from typing import Any, Dict, List

import pytest
from requests import exceptions as req_exc

from storefront.adapters.api_errors import ApiClientError, ApiServerError, ApiTimeoutError
from storefront.adapters.http_client import HttpConfig, RetryingSession
from storefront.adapters.order_rest import OrderRestAdapter
from storefront.adapters.postgrest import PostgrestClient


def _response(status: int, payload: Any = None) -> types.SimpleNamespace:
    text = "" if payload is None else json.dumps(payload)
    return types.SimpleNamespace(status_code=status, text=text, json=lambda: payload)


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
                "body": json.loads(data) if isinstance(data, str) else data,
            }
        )
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _adapter(*outcomes: Any):
    session = RetryingSession("anon-key", HttpConfig(request_timeout_s=5, retries=2))
    transport = _TransportStub(*outcomes)
    session.session = transport
    return OrderRestAdapter(PostgrestClient(session, "http://backend")), transport


ORDER_ROW = {
    "user_id": "user-1",
    "subtotal": 100,
    "discount_amount": 0,
    "final_amount": 100,
    "payment_id": "COD",
}
RECIPIENT = {
    "is_order_for_someone_else": True,
    "recipient_name": "Ravi",
    "recipient_phone": "9999988888",
    "recipient_address": "Lal Chowk",
    "alt_drop_latitude": 34.07,
    "alt_drop_longitude": 74.81,
}


def test_create_order_retries_without_recipient_fields_on_client_error() -> None:
    rejected = _response(400, {"code": "PGRST204", "message": "Could not find the 'recipient_name' column"})
    adapter, transport = _adapter(rejected, _response(201, [{"id": "o1", **ORDER_ROW}]))

    order = adapter.create_order({**ORDER_ROW, **RECIPIENT})

    assert order.id == "o1"
    first, second = transport.calls
    assert first["body"]["recipient_name"] == "Ravi"
    assert second["body"] == ORDER_ROW


def test_create_order_without_recipient_fields_reraises_client_error() -> None:
    adapter, transport = _adapter(_response(400, {"message": "bad row"}))

    with pytest.raises(ApiClientError):
        adapter.create_order(ORDER_ROW)
    assert len(transport.calls) == 1


@pytest.mark.parametrize(
    "outcome, error",
    [
        (req_exc.ReadTimeout(), ApiTimeoutError),
        (_response(500, {"message": "boom"}), ApiServerError),
    ],
)
def test_create_order_does_not_reinsert_after_timeout_or_server_error(outcome, error) -> None:
    adapter, transport = _adapter(outcome, _response(201, [{"id": "o2", **ORDER_ROW}]))

    with pytest.raises(error):
        adapter.create_order({**ORDER_ROW, **RECIPIENT})
    assert len(transport.calls) == 1


def test_list_orders_drops_orders_hidden_for_the_customer() -> None:
    orders = [
        {"id": "o1", **ORDER_ROW, "created_at": "2024-05-02T10:00:00Z"},
        {"id": "o2", **ORDER_ROW, "created_at": "2024-05-01T10:00:00Z"},
    ]
    visibility = [{"order_id": "o2", "is_visible": False}, {"order_id": "o1", "is_visible": True}]
    adapter, transport = _adapter(_response(200, orders), _response(200, visibility))

    listed = adapter.list_orders("user-1")

    assert [order.id for order in listed] == ["o1"]
    lookup = transport.calls[1]
    assert lookup["url"] == "http://backend/rest/v1/order_visibility"
    assert ("user_id", "eq.user-1") in lookup["params"]
    assert ("user_type", "eq.customer") in lookup["params"]
    assert ("order_id", "in.(o1,o2)") in lookup["params"]


def test_list_orders_keeps_orders_when_visibility_lookup_fails() -> None:
    orders = [{"id": "o1", **ORDER_ROW}]
    adapter, _ = _adapter(_response(200, orders), _response(403, {"message": "permission denied"}))

    assert [order.id for order in adapter.list_orders("user-1")] == ["o1"]


def test_picked_up_status_writes_timestamp_and_mirrors_order() -> None:
    adapter, transport = _adapter(_response(204), _response(204))

    adapter.update_request_status(
        "r1",
        "picked_up",
        order_id="o1",
        order_status="picked_up",
        timestamps={"picked_up_at": "2024-05-02T10:00:00+00:00"},
    )

    request_patch, order_patch = transport.calls
    assert request_patch["method"] == "PATCH"
    assert request_patch["body"] == {"status": "picked_up", "picked_up_at": "2024-05-02T10:00:00+00:00"}
    assert order_patch["body"] == {"delivery_status": "picked_up"}
