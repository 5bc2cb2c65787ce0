"""Typed adapter errors and payload helpers for the managed backend.

PostgREST reports failures as ``{"code", "message", "details", "hint"}``,
the auth service as ``{"error", "error_description"}`` or ``{"msg"}``, and the
functions service as ``{"error", "details"}`` (FastAPI nests that under
``"detail"``). The helpers below read all of these shapes without raising.
"""

from __future__ import annotations

from typing import Any, Optional

import requests

MESSAGE_KEYS = ("message", "msg", "error_description", "error", "detail")
CODE_KEYS = ("code", "error_code", "error")
HINT_KEYS = ("hint", "details", "error_description", "errors")
SNIPPET_LIMIT = 400


class ApiError(RuntimeError):
    """Base class for REST adapter failures.

    ``context`` names the call that failed, e.g. ``select[products]`` or
    ``function[send-otp]``; it is also the prefix of the message.
    """

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        hint: Optional[str] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.hint = hint
        self.payload = payload
        self.context = context


class ApiClientError(ApiError):
    """HTTP 4xx from the backend (or a PostgREST ``PGRST116`` no-row result)."""


class ApiServerError(ApiError):
    """HTTP 5xx from the backend."""


class ApiTimeoutError(ApiError):
    """The request timed out or never reached the backend."""


def ensure_ok(resp: requests.Response, ctx: str) -> None:
    """Raise the typed error matching a non-2xx response."""
    status = resp.status_code
    if 200 <= status < 300:
        return
    payload = parse_error_payload(resp)
    detail = first_string(payload)
    message = f"{ctx}: {detail} (HTTP {status})" if detail else f"{ctx}: HTTP {status}"
    if 400 <= status < 500:
        error_cls = ApiClientError
    elif 500 <= status < 600:
        error_cls = ApiServerError
    else:
        error_cls = ApiError
    raise error_cls(
        message,
        status=status,
        code=extract_error_code(payload),
        hint=extract_error_hint(payload),
        payload=payload,
        context=ctx,
    )


def json_any(resp: requests.Response, ctx: str) -> Any:
    """Decode a JSON body; empty bodies (``204``) decode as ``None``."""
    body = getattr(resp, "text", "") or ""
    if resp.status_code == 204 or not body.strip():
        return None
    try:
        return resp.json()
    except ValueError as exc:
        raise ApiError(f"{ctx}: invalid JSON response: {body[:SNIPPET_LIMIT]}", context=ctx) from exc


def parse_error_payload(resp: Any) -> Any:
    """JSON error body, else a text snippet, else ``None``."""
    try:
        return resp.json()
    except ValueError:
        text = getattr(resp, "text", "") or ""
        return text[:SNIPPET_LIMIT] or None


def extract_error_code(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    for key in CODE_KEYS:
        value = payload.get(key)
        if value is not None and not isinstance(value, (dict, list)):
            return str(value)
    return None


def extract_error_hint(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        for key in HINT_KEYS:
            text = stringify(payload.get(key))
            if text:
                return text
        return None
    if isinstance(payload, list):
        return stringify(payload)
    if isinstance(payload, str):
        return payload.strip() or None
    return None


def first_string(payload: Any) -> Optional[str]:
    """First human-readable message found in an error payload."""
    if isinstance(payload, str):
        return payload.strip() or None
    if isinstance(payload, dict):
        candidates = [payload.get(key) for key in MESSAGE_KEYS]
    elif isinstance(payload, list):
        candidates = list(payload)
    else:
        return None
    for value in candidates:
        if isinstance(value, (str, list, dict)):
            text = first_string(value)
            if text:
                return text
    return None


def stringify(data: Any, *, limit: int = 200) -> Optional[str]:
    """Flatten hint-like values (strings, lists, small dicts) into one line."""
    if data is None:
        return None
    if isinstance(data, list):
        parts = [text for text in (stringify(item, limit=limit) for item in data) if text][:3]
        text = "; ".join(parts)
    elif isinstance(data, dict):
        pairs = []
        for key, value in list(data.items())[:4]:
            value_text = stringify(value, limit=limit)
            if value_text:
                pairs.append(f"{key}={value_text}")
        text = ", ".join(pairs)
    else:
        text = str(data).strip()
    return text[:limit] or None


__all__ = [
    "ApiClientError",
    "ApiError",
    "ApiServerError",
    "ApiTimeoutError",
    "ensure_ok",
    "extract_error_code",
    "extract_error_hint",
    "first_string",
    "json_any",
    "parse_error_payload",
    "stringify",
]
