"""Service-role access to the managed backend for the functions service.

Every endpoint of ``functions_api.app`` talks to the backend through one
``ServiceClient``: PostgREST table calls under ``/rest/v1``, the caller check
under ``/auth/v1/user`` and the admin user API under ``/auth/v1/admin``.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

LOGGER = logging.getLogger(__name__)


class ServiceError(RuntimeError):
    """Backend call failed; ``status`` is the HTTP status when one was received."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


def eq(value: Any) -> str:
    return f"eq.{value}"


def is_null() -> str:
    return "is.null"


class ServiceClient:
    def __init__(
        self,
        base_url: str,
        service_key: str,
        anon_key: str = "",
        *,
        timeout_s: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.service_key = service_key or ""
        self.anon_key = anon_key or ""
        self.timeout_s = timeout_s
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.service_key)

    # ------------------------------------------------------------------
    def _service_headers(self, **extra: str) -> Dict[str, str]:
        headers = {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
            "Content-Type": "application/json",
        }
        headers.update(extra)
        return headers

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        if not self.configured:
            raise ServiceError("Server configuration error")
        url = f"{self.base_url}{path}"
        kwargs.setdefault("headers", self._service_headers())
        try:
            resp = self.session.request(method, url, timeout=self.timeout_s, **kwargs)
        except requests.RequestException as exc:
            raise ServiceError(f"{method} {path} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise ServiceError(_error_message(resp), status=resp.status_code)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return None

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------
    def get_user(self, authorization: Optional[str]) -> Optional[Dict[str, Any]]:
        """Resolve the caller's ``Authorization`` header to a user, or ``None``."""
        if not authorization or not self.base_url:
            return None
        headers = {"apikey": self.anon_key or self.service_key, "Authorization": authorization}
        try:
            resp = self.session.get(f"{self.base_url}/auth/v1/user", headers=headers, timeout=self.timeout_s)
        except requests.RequestException as exc:
            LOGGER.warning("User lookup failed: %s", exc)
            return None
        if resp.status_code != 200:
            return None
        payload = resp.json()
        if not isinstance(payload, dict) or not payload.get("id"):
            return None
        return payload

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        payload = self._request("GET", "/auth/v1/admin/users", params={"email": email, "page": 1, "per_page": 50})
        users = payload.get("users") if isinstance(payload, dict) else payload
        for user in users or []:
            if str(user.get("email") or "").lower() == email.lower():
                return user
        return None

    def create_user(self, email: str, password: str, metadata: Mapping[str, Any]) -> Dict[str, Any]:
        payload = self._request(
            "POST",
            "/auth/v1/admin/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": dict(metadata),
            },
        )
        user = payload.get("user", payload) if isinstance(payload, dict) else None
        if not user or not user.get("id"):
            raise ServiceError("Failed to create user")
        return user

    def update_user(self, user_id: str, password: str, metadata: Mapping[str, Any]) -> None:
        self._request(
            "PUT",
            f"/auth/v1/admin/users/{user_id}",
            json={"password": password, "email_confirm": True, "user_metadata": dict(metadata)},
        )

    def has_role(self, user_id: str, role: str) -> bool:
        rows = self.select("user_roles", {"user_id": eq(user_id), "role": eq(role)}, columns="role", limit=1)
        return any(row.get("role") == role for row in rows)

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------
    def select(
        self,
        table: str,
        filters: Mapping[str, str],
        *,
        columns: str = "*",
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = {"select": columns, **filters}
        if limit is not None:
            params["limit"] = str(limit)
        rows = self._request("GET", f"/rest/v1/{table}", params=params)
        return list(rows or [])

    def maybe_single(self, table: str, filters: Mapping[str, str], *, columns: str = "*") -> Optional[Dict[str, Any]]:
        rows = self.select(table, filters, columns=columns, limit=1)
        return rows[0] if rows else None

    def insert(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        rows = self._request(
            "POST",
            f"/rest/v1/{table}",
            json=dict(row),
            headers=self._service_headers(Prefer="return=representation"),
        )
        return rows[0] if rows else {}

    def upsert(self, table: str, row: Mapping[str, Any], *, on_conflict: str = "id") -> None:
        self._request(
            "POST",
            f"/rest/v1/{table}",
            params={"on_conflict": on_conflict},
            json=dict(row),
            headers=self._service_headers(Prefer="resolution=merge-duplicates"),
        )

    def update(self, table: str, filters: Mapping[str, str], values: Mapping[str, Any]) -> None:
        self._request("PATCH", f"/rest/v1/{table}", params=dict(filters), json=dict(values))

    def delete(self, table: str, filters: Mapping[str, str]) -> None:
        self._request("DELETE", f"/rest/v1/{table}", params=dict(filters))


def _error_message(resp: requests.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(payload, dict):
        for key in ("msg", "message", "error_description", "error"):
            if payload.get(key):
                return str(payload[key])
    return f"HTTP {resp.status_code}"
