"""Process-local record store.

Used when no document store is reachable. Nothing written here survives a
restart and separate worker processes do not share records.
"""

from __future__ import annotations

import copy
import threading
from typing import Any, Dict, Optional, Tuple


class MemoryStore:
    """Dict-backed store with the same (pk, sk) interface as the durable stores."""

    durable = False

    def __init__(self) -> None:
        self._items: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def put_item(self, item: Dict[str, Any]) -> None:
        pk = item.get("pk")
        sk = item.get("sk")
        if not pk or not sk:
            raise ValueError("Item must include 'pk' and 'sk' keys")
        with self._lock:
            self._items[(pk, sk)] = copy.deepcopy(item)

    def get_item(
        self, *, partition_key: str, sort_key: str
    ) -> Optional[Dict[str, Any]]:
        with self._lock:
            item = self._items.get((partition_key, sort_key))
            return copy.deepcopy(item) if item is not None else None

    def delete_item(self, *, partition_key: str, sort_key: str) -> bool:
        with self._lock:
            return self._items.pop((partition_key, sort_key), None) is not None

    def __len__(self) -> int:
        return len(self._items)


__all__ = ["MemoryStore"]
