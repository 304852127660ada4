"""
Analytics Cache - In-memory, time-boxed storage for derived views.

Entries are valid for a fixed window after they were computed; after
that a read is treated as a miss and the caller recomputes. Entries are
only removed by clear() or overwritten by the next put(). There is no
size-based eviction, so one cache should serve one user session or one
process with a bounded set of users.

Concurrent misses for the same key are collapsed: get_or_compute()
keeps one in-flight task per key and every waiter shares its result.
"""
import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar
from urllib.parse import quote

from fittrack.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]

DEFAULT_VALIDITY = timedelta(minutes=5)

# quote() always escapes "*"
NONE_PARAM = "*"


def cache_key(user_id: str, kind: str, *params: Any) -> str:
    """
    Build a cache key of the form ``{user_id}:{kind}:{param}:{param}...``.

    Every part is percent-encoded, so a part can never contain the ``:``
    separator or the ``*`` that stands for a None param. ``kind`` names the
    query shape so that two different queries can never produce the same key.
    """
    parts = [quote(str(user_id), safe=""), quote(kind, safe="")]
    parts.extend(NONE_PARAM if p is None else quote(str(p), safe="") for p in params)
    return ":".join(parts)


@dataclass
class CacheEntry(Generic[T]):
    """Stored value plus the time it was computed."""
    value: T
    computed_at: datetime

    def is_valid(self, now: datetime, validity: timedelta) -> bool:
        return now - self.computed_at < validity


class TTLCache(Generic[T]):
    """
    Keyed cache with a fixed validity window.

    Usage:
        cache = TTLCache(validity=timedelta(minutes=5))
        data = await cache.get_or_compute(key, lambda: build(...))
    """

    def __init__(
        self,
        validity: timedelta = DEFAULT_VALIDITY,
        clock: Optional[Clock] = None
    ):
        """
        Args:
            validity: How long an entry stays valid after put()
            clock: Returns "now"; defaults to datetime.now
        """
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._in_flight: Dict[str, asyncio.Task] = {}
        self.validity = validity
        self._clock = clock or datetime.now

    def now(self) -> datetime:
        return self._clock()

    def get(self, key: str) -> Optional[T]:
        """Return the cached value, or None if absent or stale."""
        entry = self._entries.get(key)

        if entry is None:
            return None

        if not entry.is_valid(self.now(), self.validity):
            logger.debug("Cache entry stale", cache_key=key)
            return None

        return entry.value

    def put(self, key: str, value: T) -> None:
        """Store a value, replacing any previous entry for the key."""
        self._entries[key] = CacheEntry(value=value, computed_at=self.now())

    def clear(self) -> None:
        """Drop every entry."""
        count = len(self._entries)
        self._entries.clear()
        logger.info("Analytics cache cleared", entries=count)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[T]],
        is_fresh: Optional[Callable[[T], bool]] = None
    ) -> T:
        """
        Return a valid cached value or compute, store and return a new one.

        While a computation for ``key`` is running, further callers await
        the same task instead of starting their own.

        Args:
            key: Cache key, see cache_key()
            compute: Coroutine factory producing a fresh value
            is_fresh: Extra check on a cached value; False forces a recompute
        """
        cached = self.get(key)
        if cached is not None and (is_fresh is None or is_fresh(cached)):
            logger.debug("Cache hit", cache_key=key)
            return cached

        task = self._in_flight.get(key)
        if task is None:
            logger.debug("Cache miss", cache_key=key)
            task = asyncio.ensure_future(self._compute_and_store(key, compute))
            self._in_flight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            logger.debug("Joining in-flight computation", cache_key=key)

        # shield: a cancelled waiter must not cancel the shared computation
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _compute_and_store(
        self,
        key: str,
        compute: Callable[[], Awaitable[T]]
    ) -> T:
        value = await compute()
        self.put(key, value)
        return value
