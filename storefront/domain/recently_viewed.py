"""Most-recent-first list of products the shopper opened."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Any, Iterable, List, Optional

from .entities import Product

MAX_ITEMS = 20


@dataclass(frozen=True)
class ViewedProduct:
    id: str
    name: str
    price: float
    viewed_at: float
    image_url: Optional[str] = None


class RecentlyViewedList:
    def __init__(self, items: Iterable[ViewedProduct] = (), *, max_items: int = MAX_ITEMS) -> None:
        self.max_items = max(1, int(max_items))
        self._items: List[ViewedProduct] = list(items)[: self.max_items]

    @property
    def items(self) -> List[ViewedProduct]:
        return list(self._items)

    def add(self, product: Product, *, now: Optional[float] = None) -> None:
        entry = ViewedProduct(
            id=product.id,
            name=product.name,
            price=product.price,
            image_url=product.image_url,
            viewed_at=time.time() if now is None else float(now),
        )
        remaining = [item for item in self._items if item.id != product.id]
        self._items = [entry, *remaining][: self.max_items]

    def clear(self) -> None:
        self._items = []

    def excluding(self, product_id: str) -> List[ViewedProduct]:
        return [item for item in self._items if item.id != product_id]

    def to_payload(self) -> List[dict]:
        return [asdict(item) for item in self._items]

    @classmethod
    def from_payload(cls, payload: Any, *, max_items: int = MAX_ITEMS) -> "RecentlyViewedList":
        """Rebuild from stored JSON; malformed payloads load as empty."""
        if not isinstance(payload, list):
            return cls(max_items=max_items)
        items: List[ViewedProduct] = []
        for raw in payload:
            if not isinstance(raw, dict) or not raw.get("id"):
                continue
            try:
                items.append(
                    ViewedProduct(
                        id=str(raw["id"]),
                        name=str(raw.get("name") or ""),
                        price=float(raw.get("price") or 0.0),
                        image_url=raw.get("image_url") or None,
                        viewed_at=float(raw.get("viewed_at") or 0.0),
                    )
                )
            except (TypeError, ValueError):
                continue
        return cls(items, max_items=max_items)
