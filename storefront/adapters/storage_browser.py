"""Per-browser state for the web server.

Everything tied to one shopper (session token, recently viewed products,
hidden orders, delivery pincode, recent errors) lives in a mapping owned by
that browser, normally NiceGUI's ``app.storage.user``. Only the operator
settings in ``user_prefs`` are read from the process-wide ``StorageLocal``.
Values stored here must stay JSON-serialisable.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Sequence

from storefront.domain.entities import Session
from storefront.domain.ports import StoragePort

from .storage_local import MAX_ERROR_LOG

SESSION_KEY = "session"
RECENTLY_VIEWED_KEY = "recently_viewed"
HIDDEN_ORDERS_KEY = "hidden_orders"
PINCODE_KEY = "pincode"
ERROR_LOG_KEY = "error_log"


class BrowserStorage(StoragePort):
    def __init__(self, state: MutableMapping[str, Any], shared: StoragePort) -> None:
        self.state = state
        self.shared = shared

    # ---- Operator prefs stay process-wide ----
    def save_user_prefs(self, prefs: Dict) -> None:
        self.shared.save_user_prefs(prefs)

    def load_user_prefs(self) -> Dict:
        return self.shared.load_user_prefs()

    # ---- Recently viewed ----
    def save_recently_viewed(self, payload: List[Dict]) -> None:
        self.state[RECENTLY_VIEWED_KEY] = [dict(item) for item in payload]

    def load_recently_viewed(self) -> List[Dict]:
        data = self.state.get(RECENTLY_VIEWED_KEY)
        return [dict(item) for item in data if isinstance(item, Mapping)] if isinstance(data, list) else []

    # ---- Hidden orders ----
    def save_hidden_orders(self, scope: str, order_ids: Sequence[str]) -> None:
        data = self.state.get(HIDDEN_ORDERS_KEY)
        data = dict(data) if isinstance(data, Mapping) else {}
        data[scope] = sorted({str(order_id) for order_id in order_ids if order_id})
        self.state[HIDDEN_ORDERS_KEY] = data

    def load_hidden_orders(self, scope: str) -> List[str]:
        data = self.state.get(HIDDEN_ORDERS_KEY)
        ids = data.get(scope) if isinstance(data, Mapping) else None
        if not isinstance(ids, list):
            return []
        return [str(order_id) for order_id in ids if order_id]

    # ---- Session ----
    def save_session(self, session: Optional[Session]) -> None:
        if session is None:
            self.state.pop(SESSION_KEY, None)
            return
        self.state[SESSION_KEY] = session.to_row()

    def load_session(self) -> Optional[Session]:
        data = self.state.get(SESSION_KEY)
        if not isinstance(data, Mapping) or not data.get("access_token"):
            return None
        return Session.from_row(data)

    # ---- Delivery pincode ----
    def save_pincode(self, pincode: str) -> None:
        self.state[PINCODE_KEY] = pincode

    def load_pincode(self) -> str:
        return str(self.state.get(PINCODE_KEY) or "")

    # ---- Error log (last N entries) ----
    def append_error_log(self, entry: Mapping[str, Any]) -> None:
        entries = self.load_error_log()
        entries.append(dict(entry))
        self.state[ERROR_LOG_KEY] = entries[-MAX_ERROR_LOG:]

    def load_error_log(self) -> List[Dict]:
        data = self.state.get(ERROR_LOG_KEY)
        if not isinstance(data, list):
            return []
        return [dict(item) for item in data if isinstance(item, Mapping)]


__all__ = ["BrowserStorage"]
