from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from storefront.domain.entities import Session
from storefront.domain.ports import AuthPort

from .api_errors import ApiError, ensure_ok, json_any
from .http_client import RetryingSession
from .postgrest import PostgrestClient, eq

LOGGER = logging.getLogger(__name__)


class AuthRestAdapter(AuthPort):
    """Password auth against ``/auth/v1`` plus the ``user_roles`` lookup.

    A successful sign-in stores the access token on the shared session so
    every other adapter starts sending it as the bearer token.
    """

    def __init__(self, session: RetryingSession, base_url: str, client: PostgrestClient) -> None:
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.client = client

    def _url(self, path: str) -> str:
        return f"{self.base_url}/auth/v1{path}"

    def sign_in(self, email: str, password: str) -> Session:
        ctx = "auth[sign_in]"
        resp = self.session.post(
            self._url("/token"),
            params={"grant_type": "password"},
            json_body={"email": email, "password": password},
        )
        ensure_ok(resp, ctx)
        payload = json_any(resp, ctx)
        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise ApiError(f"{ctx}: response did not include an access token", context=ctx)
        session = Session.from_row(payload)
        self.session.set_access_token(session.access_token)
        roles = self.user_roles(session.user_id)
        return Session.from_row({**payload, "roles": roles})

    def sign_out(self) -> None:
        ctx = "auth[sign_out]"
        try:
            if self.session.access_token:
                resp = self.session.post(self._url("/logout"))
                ensure_ok(resp, ctx)
        finally:
            self.session.set_access_token(None)

    def current_user(self) -> Dict[str, Any]:
        ctx = "auth[user]"
        resp = self.session.get(self._url("/user"))
        ensure_ok(resp, ctx)
        payload = json_any(resp, ctx)
        return dict(payload) if isinstance(payload, dict) else {}

    def user_roles(self, user_id: str) -> List[str]:
        if not user_id:
            return []
        rows = self.client.select("user_roles", columns="role", filters=[eq("user_id", user_id)])
        return [str(row["role"]) for row in rows if row.get("role")]

    def set_access_token(self, token: Optional[str]) -> None:
        self.session.set_access_token(token)
