"""TTL cache for expensive metric snapshots.

Sits in front of the metrics provider and is shared by dashboard reads,
threshold evaluation and report generation. Entries expire lazily: a read
past ``expires_at`` evicts the entry and reports a miss, and ``cleanup()``
sweeps whatever nobody has read since.

Failed fetches are never cached. Concurrent cold reads of one key share a
single in-flight fetch unless ``single_flight`` is disabled.
"""

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Generic, TypeVar

from src.metrics.config import MetricsCacheConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _consume_result(task: asyncio.Future) -> None:
    # A failure nobody awaited any more is still marked retrieved
    if not task.cancelled():
        task.exception()


@dataclass
class CacheEntry(Generic[T]):
    """A cached value and its validity window."""

    data: T
    cached_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class MetricsCache(Generic[T]):
    """Keyed TTL cache with get-or-fetch.

    Keys are edition ids in practice, but any string works. The entry map
    is guarded by a ``threading.Lock`` so the cache can be shared with
    worker threads; the single-flight bookkeeping is per event loop.
    """

    def __init__(
        self,
        config: MetricsCacheConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._config = config or MetricsCacheConfig()
        self._clock = clock or _utcnow
        self._entries: dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()
        self._in_flight: dict[str, asyncio.Future] = {}

    @property
    def default_ttl_seconds(self) -> float:
        return self._config.default_ttl_seconds

    def get(self, key: str) -> T | None:
        """Return the live cached value, evicting it if it has expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(now):
                del self._entries[key]
                logger.debug("Cache entry expired: %s", key)
                return None
            return entry.data

    def get_entry(self, key: str) -> CacheEntry[T] | None:
        """Return the raw entry (including timestamps) if it is still live."""
        if self.get(key) is None:
            return None
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, data: T, ttl_seconds: float | None = None) -> CacheEntry[T]:
        """Store ``data`` under ``key``, overwriting any previous entry."""
        ttl = self._config.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        now = self._clock()
        entry = CacheEntry(data=data, cached_at=now, expires_at=now + timedelta(seconds=ttl))
        with self._lock:
            self._entries[key] = entry
        return entry

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def invalidate(self, key: str) -> bool:
        """Drop ``key``. Returns False if nothing was cached under it."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cleanup(self) -> int:
        """Evict every expired entry.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Cache cleanup removed %d entries", len(expired))
        return len(expired)

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {"size": len(self._entries), "keys": list(self._entries)}

    async def get_or_fetch(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[T]],
        ttl_seconds: float | None = None,
    ) -> T:
        """Return the cached value for ``key`` or fetch, store and return it.

        Args:
            key: Cache key.
            fetcher: Zero-argument coroutine function producing the value.
            ttl_seconds: Lifetime of the stored value (defaults to config).

        Returns:
            Cached or freshly fetched value.

        Raises:
            Whatever ``fetcher`` raises; nothing is cached in that case.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        if not self._config.single_flight:
            logger.debug("Cache miss: %s", key)
            data = await fetcher()
            self.set(key, data, ttl_seconds)
            return data

        pending = self._in_flight.get(key)
        if pending is None:
            logger.debug("Cache miss: %s", key)
            pending = asyncio.ensure_future(self._fetch_and_store(key, fetcher, ttl_seconds))
            pending.add_done_callback(_consume_result)
            self._in_flight[key] = pending
        else:
            logger.debug("Cache miss, joining in-flight fetch: %s", key)
        # Cancelling one caller must not cancel the fetch the others wait on
        return await asyncio.shield(pending)

    async def _fetch_and_store(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[T]],
        ttl_seconds: float | None,
    ) -> T:
        try:
            data = await fetcher()
            self.set(key, data, ttl_seconds)
            return data
        finally:
            self._in_flight.pop(key, None)
