"""
Bounded LRU cache for enrichment results.

Keyed by (content type, batch key) so a long-lived cache can be shared by
several orchestrator runs without one run's findings leaking into another
content type.
"""

import logging
import threading
from collections import OrderedDict
from typing import Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 256

V = TypeVar("V")


class AnalysisCache(Generic[V]):
    """Thread-safe LRU mapping with a fixed capacity."""

    def __init__(self, max_entries: int = DEFAULT_CACHE_SIZE):
        if max_entries < 0:
            raise ValueError(f"max_entries must be >= 0, got {max_entries}")
        self.max_entries = max_entries
        self._entries: "OrderedDict[Hashable, V]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[V]:
        """Return the cached value and mark it most recently used."""
        with self._lock:
            if key not in self._entries:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return self._entries[key]

    def put(self, key: Hashable, value: V) -> None:
        """Store a value, evicting the least recently used entry when full."""
        if self.max_entries == 0:
            return
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted cache entry {evicted!r}")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
