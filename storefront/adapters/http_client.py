"""Shared HTTP transport for the managed-backend adapters.

One :class:`RetryingSession` is built by ``AppController`` and handed to the
PostgREST, auth and functions adapters. Signing in stores the user's access
token here, so every adapter switches from the anon key to the user token at
once. Non-2xx responses are returned as-is; ``api_errors.ensure_ok`` decides
what they mean.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import requests
from requests import exceptions as req_exc

from storefront.adapters.api_errors import ApiTimeoutError

LOGGER = logging.getLogger(__name__)

# Read timeouts are retried only for methods that cannot create rows twice;
# writes are retried only when the request never reached the server.
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
_TRANSIENT = (req_exc.Timeout, req_exc.ConnectionError)
_NOT_SENT = (req_exc.ConnectTimeout, req_exc.ConnectionError)


@dataclass
class HttpConfig:
    """Per-call timeout (seconds) and retries after the first attempt."""

    request_timeout_s: int = 10
    retries: int = 2


class RetryingSession:
    """``requests.Session`` with backend auth headers and a retry loop."""

    def __init__(self, anon_key: Optional[str], cfg: HttpConfig) -> None:
        self.session = requests.Session()
        self.anon_key = anon_key
        self.access_token: Optional[str] = None
        self.cfg = cfg

    def set_access_token(self, token: Optional[str]) -> None:
        self.access_token = token or None

    def auth_headers(self) -> Dict[str, str]:
        """``apikey`` plus a bearer for the user, or for the anon key when signed out."""
        headers: Dict[str, str] = {}
        if self.anon_key:
            headers["apikey"] = self.anon_key
        bearer = self.access_token or self.anon_key
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    def request(
        self,
        method: str,
        url: str,
        *,
        params: Any = None,
        json_body: Any = None,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> requests.Response:
        """Send one request, retrying timeouts and dropped connections.

        ``GET``/``HEAD``/``OPTIONS`` are retried on any timeout. Other methods
        are retried only on connect failures; a read timeout on a ``POST``
        may already have written the row, so it is raised at once.

        Raises:
            ApiTimeoutError: the request timed out or failed to connect.
        """
        merged = {"Accept": "application/json", **self.auth_headers()}
        if json_body is not None:
            merged["Content-Type"] = "application/json"
            data = json.dumps(json_body)
        merged.update(headers or {})

        retryable = _TRANSIENT if method.upper() in SAFE_METHODS else _NOT_SENT
        attempts = max(0, self.cfg.retries) + 1
        for attempt in range(1, attempts + 1):
            try:
                return self.session.request(
                    method,
                    url,
                    params=params,
                    data=data,
                    headers=merged,
                    timeout=timeout or self.cfg.request_timeout_s,
                )
            except _TRANSIENT as exc:
                if not isinstance(exc, retryable):
                    LOGGER.warning("%s %s timed out after sending; not retrying", method, url)
                    raise ApiTimeoutError(f"Timeout contacting {url}", context=f"{method} {url}") from exc
                LOGGER.debug("%s %s failed (attempt %d/%d): %s", method, url, attempt, attempts, exc)
        raise ApiTimeoutError(f"Timeout contacting {url}", context=f"{method} {url}")

    def get(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("POST", url, **kwargs)

    def patch(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("PATCH", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("DELETE", url, **kwargs)


__all__ = ["HttpConfig", "RetryingSession"]
