from __future__ import annotations
import json, os
from typing import Any, Dict, List, Mapping, Optional, Sequence

from storefront.domain.entities import Session
from storefront.domain.ports import StoragePort

MAX_ERROR_LOG = 10


class StorageLocal(StoragePort):
    """Local filesystem storage for prefs and small client-side state (JSON)."""

    def __init__(self, root_dir: str = ".") -> None:
        self.root = root_dir

    def _path(self, name: str) -> str:
        return os.path.join(self.root, name)

    def _write_json(self, name: str, payload: Any) -> None:
        os.makedirs(self.root, exist_ok=True)
        path = self._path(name)
        tmp = f"{path}.tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        os.replace(tmp, path)

    def _read_json(self, name: str, default: Any) -> Any:
        path = self._path(name)
        if not os.path.exists(path):
            return default
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError):
            # corrupt state files are treated as empty
            return default

    # ---- User prefs (JSON) ----
    def save_user_prefs(self, prefs: Dict) -> None:
        self._write_json("user_prefs.json", prefs)

    def load_user_prefs(self) -> Dict:
        data = self._read_json("user_prefs.json", {})
        return data if isinstance(data, dict) else {}

    # ---- Recently viewed ----
    def save_recently_viewed(self, payload: List[Dict]) -> None:
        self._write_json("recently_viewed.json", list(payload))

    def load_recently_viewed(self) -> List[Dict]:
        data = self._read_json("recently_viewed.json", [])
        return data if isinstance(data, list) else []

    # ---- Hidden orders (per scope: customer, vendor, delivery) ----
    def save_hidden_orders(self, scope: str, order_ids: Sequence[str]) -> None:
        data = self._read_json("hidden_orders.json", {})
        if not isinstance(data, dict):
            data = {}
        data[scope] = sorted({str(order_id) for order_id in order_ids if order_id})
        self._write_json("hidden_orders.json", data)

    def load_hidden_orders(self, scope: str) -> List[str]:
        data = self._read_json("hidden_orders.json", {})
        if not isinstance(data, dict):
            return []
        ids = data.get(scope)
        if not isinstance(ids, list):
            return []
        return [str(order_id) for order_id in ids if order_id]

    # ---- Session ----
    def save_session(self, session: Optional[Session]) -> None:
        if session is None:
            path = self._path("session.json")
            if os.path.exists(path):
                os.remove(path)
            return
        self._write_json("session.json", session.to_row())

    def load_session(self) -> Optional[Session]:
        data = self._read_json("session.json", None)
        if not isinstance(data, dict) or not data.get("access_token"):
            return None
        return Session.from_row(data)

    # ---- Error log (last N entries) ----
    def append_error_log(self, entry: Mapping[str, Any]) -> None:
        entries = self.load_error_log()
        entries.append(dict(entry))
        self._write_json("error_log.json", entries[-MAX_ERROR_LOG:])

    def load_error_log(self) -> List[Dict]:
        data = self._read_json("error_log.json", [])
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]
