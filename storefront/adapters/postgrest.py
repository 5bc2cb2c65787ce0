"""Minimal PostgREST client for the managed backend's table and RPC API.

Filters are ``(column, expression)`` pairs such as ``("id", "eq.42")`` and are
sent as repeated query parameters, which is how PostgREST expects them.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from .api_errors import ApiClientError, ensure_ok, json_any
from .http_client import RetryingSession

LOGGER = logging.getLogger(__name__)

Filter = Tuple[str, str]
Row = dict

NO_ROWS_CODE = "PGRST116"


def _literal(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _quoted(value: Any) -> str:
    text = _literal(value)
    if any(ch in text for ch in ',()"'):
        escaped = text.replace('"', '\\"')
        return f'"{escaped}"'
    return text


def eq(column: str, value: Any) -> Filter:
    return (column, f"eq.{_literal(value)}")


def neq(column: str, value: Any) -> Filter:
    return (column, f"neq.{_literal(value)}")


def gt(column: str, value: Any) -> Filter:
    return (column, f"gt.{_literal(value)}")


def in_(column: str, values: Iterable[Any]) -> Filter:
    joined = ",".join(_quoted(value) for value in values)
    return (column, f"in.({joined})")


def not_in(column: str, values: Iterable[Any]) -> Filter:
    joined = ",".join(_quoted(value) for value in values)
    return (column, f"not.in.({joined})")


def ilike(column: str, pattern: str) -> Filter:
    return (column, f"ilike.{pattern}")


def is_(column: str, value: Any) -> Filter:
    return (column, f"is.{_literal(value)}")


def or_(*conditions: str) -> Filter:
    return ("or", f"({','.join(conditions)})")


class PostgrestClient:
    """Thin wrapper that turns table/RPC calls into ``/rest/v1`` requests."""

    def __init__(self, session: RetryingSession, base_url: str) -> None:
        if not base_url:
            raise ValueError("PostgrestClient requires a backend URL")
        self.session = session
        self.base_url = base_url.rstrip("/")

    def _table_url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    @staticmethod
    def _params(
        columns: Optional[str],
        filters: Sequence[Filter],
        *,
        order: Optional[str] = None,
        limit: Optional[int] = None,
        on_conflict: Optional[str] = None,
    ) -> List[Filter]:
        params: List[Filter] = []
        if columns:
            params.append(("select", columns))
        params.extend(filters)
        if order:
            params.append(("order", order))
        if limit is not None:
            params.append(("limit", str(int(limit))))
        if on_conflict:
            params.append(("on_conflict", on_conflict))
        return params

    @staticmethod
    def _rows(payload: Any) -> List[Row]:
        if payload is None:
            return []
        if isinstance(payload, Mapping):
            return [dict(payload)]
        if isinstance(payload, list):
            return [dict(item) for item in payload if isinstance(item, Mapping)]
        return []

    def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Row]:
        ctx = f"select[{table}]"
        resp = self.session.get(
            self._table_url(table),
            params=self._params(columns, filters, order=order, limit=limit),
        )
        ensure_ok(resp, ctx)
        return self._rows(json_any(resp, ctx))

    def maybe_single(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order: Optional[str] = None,
    ) -> Optional[Row]:
        rows = self.select(table, columns=columns, filters=filters, order=order, limit=1)
        return rows[0] if rows else None

    def single(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Filter] = (),
    ) -> Row:
        """Return exactly one row or raise a ``PGRST116`` client error."""
        row = self.maybe_single(table, columns=columns, filters=filters)
        if row is None:
            ctx = f"single[{table}]"
            raise ApiClientError(
                f"{ctx}: JSON object requested, multiple (or no) rows returned",
                status=406,
                code=NO_ROWS_CODE,
                context=ctx,
            )
        return row

    def insert(
        self,
        table: str,
        rows: Any,
        *,
        columns: Optional[str] = None,
        upsert: bool = False,
        on_conflict: Optional[str] = None,
        returning: bool = True,
    ) -> List[Row]:
        ctx = f"insert[{table}]"
        prefer = ["return=representation" if returning else "return=minimal"]
        if upsert:
            prefer.append("resolution=merge-duplicates")
        resp = self.session.post(
            self._table_url(table),
            json_body=rows,
            params=self._params(columns if returning else None, (), on_conflict=on_conflict),
            headers={"Prefer": ",".join(prefer)},
        )
        ensure_ok(resp, ctx)
        return self._rows(json_any(resp, ctx)) if returning else []

    def update(
        self,
        table: str,
        values: Mapping[str, Any],
        *,
        filters: Sequence[Filter],
        returning: bool = False,
    ) -> List[Row]:
        if not filters:
            raise ValueError("update requires at least one filter")
        ctx = f"update[{table}]"
        resp = self.session.patch(
            self._table_url(table),
            json_body=dict(values),
            params=list(filters),
            headers={"Prefer": "return=representation" if returning else "return=minimal"},
        )
        ensure_ok(resp, ctx)
        return self._rows(json_any(resp, ctx)) if returning else []

    def delete(self, table: str, *, filters: Sequence[Filter]) -> None:
        if not filters:
            raise ValueError("delete requires at least one filter")
        ctx = f"delete[{table}]"
        resp = self.session.delete(self._table_url(table), params=list(filters))
        ensure_ok(resp, ctx)

    def count(self, table: str, *, filters: Sequence[Filter] = ()) -> int:
        """Exact row count from the ``Content-Range`` header of a ``HEAD`` request."""
        ctx = f"count[{table}]"
        resp = self.session.request(
            "HEAD",
            self._table_url(table),
            params=self._params("id", filters),
            headers={"Prefer": "count=exact"},
        )
        ensure_ok(resp, ctx)
        content_range = (getattr(resp, "headers", None) or {}).get("Content-Range") or ""
        total = content_range.rpartition("/")[2]
        try:
            return int(total)
        except ValueError:
            LOGGER.warning("%s: unexpected Content-Range %r", ctx, content_range)
            return 0

    def rpc(self, name: str, args: Optional[Mapping[str, Any]] = None) -> Any:
        ctx = f"rpc[{name}]"
        LOGGER.debug("Calling %s", ctx)
        resp = self.session.post(
            f"{self.base_url}/rest/v1/rpc/{name}",
            json_body=dict(args or {}),
        )
        ensure_ok(resp, ctx)
        return json_any(resp, ctx)


__all__ = [
    "Filter",
    "NO_ROWS_CODE",
    "PostgrestClient",
    "eq",
    "gt",
    "ilike",
    "in_",
    "is_",
    "neq",
    "not_in",
    "or_",
]
