"""
In-memory TTL cache for aggregated tender batches.

One entry per jurisdiction set.  An entry older than the TTL is treated as
a miss but stays resident until the next ``put`` for that key replaces it.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from providers.models import Tender
import config

logger = logging.getLogger(__name__)

KEY_SEPARATOR = ","


@dataclass(frozen=True)
class CacheEntry:
    key: str
    data: Tuple[Tender, ...]
    timestamp: float


def make_key(codes: Iterable[str]) -> str:
    """Canonical key: lowercase, de-duplicated, sorted, comma-joined."""
    return KEY_SEPARATOR.join(sorted({c.strip().lower() for c in codes}))


class TTLCache:
    """Thread-safe TTL cache with an injectable clock (seconds)."""

    def __init__(
        self,
        ttl_seconds: float = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = config.CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[List[Tender]]:
        """Return the cached batch, or None if absent or stale."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        age = self._clock() - entry.timestamp
        if age >= self.ttl:
            logger.debug("Cache stale for %s (age %.0fs)", key, age)
            return None
        logger.debug("Cache hit for %s (age %.0fs)", key, age)
        return list(entry.data)

    def put(self, key: str, batch: Iterable[Tender]) -> None:
        entry = CacheEntry(key=key, data=tuple(batch), timestamp=self._clock())
        with self._lock:
            self._entries[key] = entry

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one entry, or every entry when no key is given."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
