# smart_form_predictor/core/prediction_cache.py
"""
PredictionCache - bounded key -> prediction store.

Eviction is by insertion order only: when full, the entry that was inserted
first goes, no matter how often it was read. Reads never reorder entries.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100
UNKNOWN_KEY = "unknown"


class PredictionCache:
    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("cache capacity must be at least 1")
        self.capacity = int(capacity)
        self._entries: "OrderedDict[str, Any]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(field_name: Optional[str], serialized_context: str) -> str:
        """'<field>-<serialized bundle>', or a sentinel when there is no field."""
        if not field_name:
            return UNKNOWN_KEY
        return f"{field_name}-{serialized_context}"

    def get(self, key: str) -> Optional[Any]:
        if key in self._entries:
            self.hits += 1
            return self._entries[key]
        self.misses += 1
        return None

    def set(self, key: str, value: Any) -> None:
        if key not in self._entries and len(self._entries) >= self.capacity:
            oldest, _ = self._entries.popitem(last=False)
            logger.debug("[PredictionCache] evicted %s", oldest)
        self._entries[key] = value

    def invalidate_field(self, field_name: str) -> int:
        """Drop every entry cached for `field_name`; returns how many went."""
        prefix = f"{field_name}-"
        stale = [k for k in self._entries if k.startswith(prefix)]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self):
        return list(self._entries.keys())

    def stats(self) -> Dict[str, int]:
        return {"size": len(self._entries), "capacity": self.capacity,
                "hits": self.hits, "misses": self.misses}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
