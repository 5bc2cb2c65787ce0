from __future__ import annotations

from storefront.domain.entities import Product
from storefront.domain.recently_viewed import RecentlyViewedList


def _product(pid: str) -> Product:
    return Product(id=pid, name=f"Item {pid}", price=10.0, stock=3)


def test_add_moves_product_to_front_without_duplicates() -> None:
    viewed = RecentlyViewedList()
    viewed.add(_product("a"), now=1)
    viewed.add(_product("b"), now=2)
    viewed.add(_product("a"), now=3)

    assert [item.id for item in viewed.items] == ["a", "b"]
    assert viewed.items[0].viewed_at == 3.0


def test_list_is_capped() -> None:
    viewed = RecentlyViewedList(max_items=3)
    for pid in "abcde":
        viewed.add(_product(pid))

    assert [item.id for item in viewed.items] == ["e", "d", "c"]


def test_payload_round_trip_skips_malformed_rows() -> None:
    viewed = RecentlyViewedList()
    viewed.add(_product("a"), now=5)
    payload = viewed.to_payload() + [{"name": "no id"}, "junk", {"id": "x", "price": "bad"}]

    restored = RecentlyViewedList.from_payload(payload)

    assert [item.id for item in restored.items] == ["a"]
    assert RecentlyViewedList.from_payload({"not": "a list"}).items == []
    assert [item.id for item in restored.excluding("a")] == []
