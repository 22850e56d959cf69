"""
TTL Cache - read-through memoization with per-key expiry and stale fallback.
"""

import time
from dataclasses import dataclass
from threading import Lock
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from src.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry:
    """Cached value with its insertion time and lifetime (seconds)."""

    value: Any
    stored_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.stored_at < self.ttl


class TTLCache:
    """
    Process-local read-through cache.

    A fresh entry is returned without calling the loader. When the loader
    fails and an older entry exists, the stale value is served instead of
    the error. Concurrent loads of one key are not deduplicated; the last
    load to finish wins.
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._entries: Dict[str, CacheEntry] = {}
        self._default_ttl = default_ttl
        self._clock = clock
        self._lock = Lock()

    def _lookup(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def _store(self, key: str, value: Any, ttl: float) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock(), ttl=ttl)

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[T]],
        ttl: Optional[float] = None,
        ttl_for: Optional[Callable[[T], float]] = None,
    ) -> T:
        """
        Return the cached value for key, loading it when missing or expired.

        ttl_for, when given, picks the lifetime from the freshly loaded value
        and overrides ttl.
        """
        entry = self._lookup(key)
        if entry is not None and entry.is_fresh(self._clock()):
            return entry.value

        try:
            value = await loader()
        except Exception as exc:
            if entry is None:
                raise
            logger.warning(
                "Cache refresh failed for %s, serving stale value: %s",
                key,
                exc,
                extra={"cache_key": key},
            )
            return entry.value

        if ttl_for is not None:
            ttl = ttl_for(value)
        self._store(key, value, self._default_ttl if ttl is None else ttl)
        return value

    def invalidate(self, pattern: Optional[str] = None) -> int:
        """
        Drop every key containing pattern; drop everything when pattern is None.

        Returns the number of keys removed.
        """
        with self._lock:
            if pattern is None:
                removed = len(self._entries)
                self._entries.clear()
            else:
                doomed = [key for key in self._entries if pattern in key]
                for key in doomed:
                    del self._entries[key]
                removed = len(doomed)
        if removed:
            logger.debug("Invalidated %d cache keys (pattern=%r)", removed, pattern)
        return removed

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            keys: List[str] = list(self._entries)
        return {"size": len(keys), "keys": keys}
