from __future__ import annotations

from storefront.adapters.storage_browser import BrowserStorage
from storefront.adapters.storage_local import MAX_ERROR_LOG, StorageLocal
from storefront.domain.entities import Session


def _pair(tmp_path):
    shared = StorageLocal(str(tmp_path / "state"))
    return BrowserStorage({}, shared), BrowserStorage({}, shared), shared


def test_sessions_are_kept_per_browser(tmp_path) -> None:
    first, second, shared = _pair(tmp_path)
    session = Session(access_token="tok", user_id="user-1", email="a@example.com", roles=("vendor",))

    first.save_session(session)

    assert first.load_session() == session
    assert second.load_session() is None
    assert shared.load_session() is None
    first.save_session(None)
    assert first.load_session() is None


def test_hidden_orders_pincode_and_recent_views_stay_in_browser_state(tmp_path) -> None:
    state = {}
    storage = BrowserStorage(state, StorageLocal(str(tmp_path)))

    storage.save_hidden_orders("customer", ["o2", "o1", "o2", ""])
    storage.save_pincode("190001")
    storage.save_recently_viewed([{"id": "prod-1"}])

    assert storage.load_hidden_orders("customer") == ["o1", "o2"]
    assert storage.load_hidden_orders("vendor") == []
    assert storage.load_pincode() == "190001"
    assert storage.load_recently_viewed() == [{"id": "prod-1"}]
    assert state["pincode"] == "190001"


def test_error_log_is_capped(tmp_path) -> None:
    storage = BrowserStorage({}, StorageLocal(str(tmp_path)))

    for index in range(MAX_ERROR_LOG + 5):
        storage.append_error_log({"code": f"E{index}"})

    entries = storage.load_error_log()
    assert len(entries) == MAX_ERROR_LOG
    assert entries[-1] == {"code": f"E{MAX_ERROR_LOG + 4}"}


def test_operator_prefs_are_shared(tmp_path) -> None:
    first, second, _ = _pair(tmp_path)

    first.save_user_prefs({"settings": {"retries": 1}})

    assert second.load_user_prefs() == {"settings": {"retries": 1}}
