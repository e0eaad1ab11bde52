"""Per-category result cache with TTLs taken from routing.cache_ttl_sec."""

import threading
import time
from collections.abc import Callable

from search_routing.orchestrators.search.models import SearchResult


def normalize_query(query: str) -> str:
    return " ".join(query.lower().split())


class ResultCache:
    def __init__(self, clock: Callable[[], float] = time.monotonic, max_entries: int = 1024) -> None:
        self._clock = clock
        self._max_entries = max_entries
        self._lock = threading.Lock()
        self._entries: dict[tuple[str, str, str], tuple[float, list[SearchResult]]] = {}

    def get(self, category: str, provider_id: str, query: str) -> list[SearchResult] | None:
        key = (category, provider_id, normalize_query(query))
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, results = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return [r.model_copy() for r in results]

    def put(
        self,
        category: str,
        provider_id: str,
        query: str,
        results: list[SearchResult],
        ttl_sec: float,
    ) -> None:
        if ttl_sec <= 0:
            return
        key = (category, provider_id, normalize_query(query))
        with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_entries:
                # dicts keep insertion order: drop the oldest entry
                self._entries.pop(next(iter(self._entries)))
            self._entries[key] = (self._clock() + ttl_sec, list(results))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
