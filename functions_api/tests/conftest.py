from __future__ import annotations

import itertools
from typing import Any, Dict, List, Mapping, Optional

import pytest
from fastapi.testclient import TestClient

from functions_api import app as app_module
from functions_api.mailer import Mailer, SmtpSettings
from functions_api.otp_store import OtpStore


def _matches(row: Mapping[str, Any], filters: Mapping[str, str]) -> bool:
    for key, expr in filters.items():
        op, _, value = expr.partition(".")
        current = row.get(key)
        if op == "eq" and str(current) != value:
            return False
        if op == "is" and current is not None:
            return False
        if op == "gt" and (current is None or str(current) <= value):
            return False
    return True


class FakeServiceClient:
    """In-memory stand-in for ``ServiceClient`` keyed by table name."""

    configured = True

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.users: Dict[str, Dict[str, Any]] = {}
        self.tokens: Dict[str, str] = {}
        self._ids = itertools.count(1)

    # auth
    def add_user(self, email: str, *, token: Optional[str] = None, roles: tuple = ()) -> str:
        user_id = f"user-{next(self._ids)}"
        self.users[user_id] = {"id": user_id, "email": email, "password": "", "user_metadata": {}}
        if token:
            self.tokens[f"Bearer {token}"] = user_id
        for role in roles:
            self.insert("user_roles", {"user_id": user_id, "role": role})
        return user_id

    def get_user(self, authorization):
        user_id = self.tokens.get(authorization or "")
        return self.users.get(user_id) if user_id else None

    def find_user_by_email(self, email):
        return next((u for u in self.users.values() if u["email"] == email), None)

    def create_user(self, email, password, metadata):
        user_id = self.add_user(email)
        self.users[user_id].update(password=password, user_metadata=dict(metadata))
        return self.users[user_id]

    def update_user(self, user_id, password, metadata):
        self.users[user_id].update(password=password, user_metadata=dict(metadata))

    def has_role(self, user_id, role):
        return bool(self.select("user_roles", {"user_id": f"eq.{user_id}", "role": f"eq.{role}"}))

    # tables
    def select(self, table, filters, *, columns="*", limit=None):
        rows = [dict(r) for r in self.tables.get(table, []) if _matches(r, filters)]
        return rows[:limit] if limit is not None else rows

    def maybe_single(self, table, filters, *, columns="*"):
        rows = self.select(table, filters, limit=1)
        return rows[0] if rows else None

    def insert(self, table, row):
        stored = {"id": f"{table}-{next(self._ids)}", **dict(row)}
        self.tables.setdefault(table, []).append(stored)
        return dict(stored)

    def upsert(self, table, row, *, on_conflict="id"):
        for existing in self.tables.get(table, []):
            if existing.get(on_conflict) == row.get(on_conflict):
                existing.update(row)
                return
        self.tables.setdefault(table, []).append(dict(row))

    def update(self, table, filters, values):
        for row in self.tables.get(table, []):
            if _matches(row, filters):
                row.update(values)

    def delete(self, table, filters):
        self.tables[table] = [r for r in self.tables.get(table, []) if not _matches(r, filters)]


class RecordingMailer(Mailer):
    def __init__(self, *, configured: bool = True, fail: bool = False) -> None:
        super().__init__(SmtpSettings(username="bot", password="secret", sender_email="bot@example.com"))
        self._configured = configured
        self.fail = fail
        self.sent: List[Dict[str, Any]] = []

    @property
    def configured(self) -> bool:
        return self._configured

    def send(self, to, subject, text, html=None):
        if self.fail:
            raise OSError("smtp down")
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})


@pytest.fixture
def service() -> FakeServiceClient:
    return FakeServiceClient()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def client(monkeypatch, service, mailer) -> TestClient:
    monkeypatch.setattr(app_module, "CLIENT", service)
    monkeypatch.setattr(app_module, "MAILER", mailer)
    monkeypatch.setattr(app_module, "OTP_STORE", OtpStore(service, code_factory=lambda: "654321"))
    monkeypatch.setattr(app_module, "RAZORPAY_KEY_ID", "rzp_test_abcdef1234")
    monkeypatch.setattr(app_module, "RAZORPAY_KEY_SECRET", "secret_abcdef1234")
    return TestClient(app_module.app)
