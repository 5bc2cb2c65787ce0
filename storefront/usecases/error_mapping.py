"""Translate adapter errors into user-facing UseCaseError instances.

Every use case wraps its port calls with::

    except Exception as exc:
        raise map_api_error(exc, default_code=..., default_message=...) from exc

so pages only ever see ``UseCaseError.code`` and ``UseCaseError.message``.
"""

from __future__ import annotations

from typing import Any, Optional

from storefront.adapters.api_errors import (
    ApiClientError,
    ApiError,
    ApiServerError,
    ApiTimeoutError,
    extract_error_hint,
    first_string,
)
from storefront.adapters.postgrest import NO_ROWS_CODE
from storefront.domain.ports import UseCaseError

# (code, message prefix) for 4xx statuses that need their own wording.
_CLIENT_STATUS: dict = {
    401: ("AUTH_FAILED", "Please sign in again."),
    403: ("AUTH_FAILED", "Please sign in again."),
    409: ("CONFLICT", "Already exists"),
    422: ("INVALID_PARAMS", "Invalid parameters"),
}


def _backend_detail(exc: ApiClientError) -> Optional[str]:
    payload: Any = getattr(exc, "payload", None)
    return first_string(payload) or exc.hint or extract_error_hint(payload)


def _with_detail(base: str, detail: Optional[str]) -> str:
    text = (detail or "").strip()
    if text:
        return f"{base.rstrip('.')}: {text}"
    return base if base.endswith(".") else f"{base}."


def _map_client_error(exc: ApiClientError, default_message: Optional[str]) -> UseCaseError:
    status = exc.status or 0
    if status == 404 or exc.code == NO_ROWS_CODE:
        return UseCaseError("NOT_FOUND", default_message or "Not found.")
    detail = _backend_detail(exc)
    if status in _CLIENT_STATUS:
        code, base = _CLIENT_STATUS[status]
        if code == "AUTH_FAILED":
            return UseCaseError(code, base)
        return UseCaseError(code, _with_detail(base, detail))
    label = f"Request failed (HTTP {status})" if status else "Request failed"
    return UseCaseError("REQUEST_FAILED", _with_detail(label, detail))


def map_api_error(
    exc: Exception,
    *,
    default_code: str,
    default_message: Optional[str] = None,
) -> UseCaseError:
    """Map a port failure to a stable UseCaseError.

    ``exc`` is returned untouched when it already is a ``UseCaseError``.
    Errors that did not come from an adapter use ``default_code`` with
    ``default_message`` (or ``str(exc)``).
    """
    if isinstance(exc, UseCaseError):
        return exc
    if isinstance(exc, ApiTimeoutError):
        return UseCaseError("REQUEST_TIMEOUT", "Request timed out. Check your connection.")
    if isinstance(exc, ApiClientError):
        return _map_client_error(exc, default_message)
    if isinstance(exc, ApiServerError):
        return UseCaseError("SERVER_ERROR", "Server error, please try again.")
    if isinstance(exc, ApiError):
        return UseCaseError("API_ERROR", str(exc))
    return UseCaseError(default_code, default_message or str(exc) or "Unexpected error.")


__all__ = ["map_api_error"]
