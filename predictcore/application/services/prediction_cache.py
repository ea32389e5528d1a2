"""
Application Service - Prediction Cache

Bounded cache of predictions keyed by (feature fingerprint, model version id).

* Least-recently-used eviction once ``max_entries`` is reached.
* Entries expire ``ttl_seconds`` after insertion regardless of access.
* Single-flight: concurrent misses on the same key share one computation.

Both limits are enforced lazily on write and opportunistically on read. The
cache is driven from a single asyncio event loop; every check-then-act
sequence below runs without an intervening ``await``.

Entries that expire or are invalidated with ``retain_history`` move to a
smaller stale table. ``get_or_compute`` never serves from it; ``get_stale``
does, for callers that prefer an old answer to no answer.
"""

from __future__ import annotations

import asyncio
import time
from collections import OrderedDict, deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, Dict, NamedTuple, Optional, Set, Tuple

import structlog

from predictcore.domain.entities.prediction import Prediction
from predictcore.domain.ports.version_references import IVersionReferenceTracker

logger = structlog.get_logger(__name__)

ComputeFn = Callable[[], Awaitable[Prediction]]


class CacheKey(NamedTuple):
    fingerprint: str
    model_version_id: int


@dataclass
class CacheEntry:
    """A cached prediction; never handed out of the cache."""

    value: Prediction
    inserted_at: float
    last_access: float


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    coalesced: int = 0
    evictions: int = 0
    expirations: int = 0
    invalidations: int = 0
    discarded: int = 0
    stale_served: int = 0


class _LeaderCancelled(Exception):
    """Set on an in-flight future whose computing caller was cancelled."""


def _consume_exception(future: asyncio.Future) -> None:
    # marks the exception as retrieved when no waiter was attached
    if not future.cancelled():
        future.exception()


class PredictionCache:
    """LRU + TTL prediction cache with single-flight computation."""

    def __init__(
        self,
        max_entries: int = 1000,
        ttl_seconds: float = 3600.0,
        stale_max_entries: Optional[int] = None,
        references: Optional[IVersionReferenceTracker] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be greater than 0")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self.stale_max_entries = (
            max_entries if stale_max_entries is None else stale_max_entries
        )
        self._references = references
        self._clock = clock

        self._entries: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self._expiry_queue: Deque[Tuple[float, CacheKey]] = deque()
        self._stale: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self._inflight: Dict[CacheKey, asyncio.Future] = {}
        self._invalidated: Set[int] = set()
        self.stats = CacheStats()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not self._is_expired(entry, self._clock())

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    async def get_or_compute(self, key: CacheKey, compute_fn: ComputeFn) -> Prediction:
        """
        Return the cached prediction for ``key`` or compute it exactly once.

        Concurrent callers for a key that is being computed await the
        in-flight result instead of recomputing. A failed computation is
        propagated to every waiter and nothing is stored. If the caller
        running the computation is cancelled, one of the waiters takes it
        over with its own ``compute_fn``.
        """
        while True:
            cached = self.get(key)
            if cached is not None:
                return cached

            pending = self._inflight.get(key)
            if pending is None:
                break
            self.stats.coalesced += 1
            logger.debug("cache.coalesced", fingerprint=key.fingerprint[:12])
            try:
                return await asyncio.shield(pending)
            except _LeaderCancelled:
                logger.debug("cache.leader_cancelled", fingerprint=key.fingerprint[:12])

        self.stats.misses += 1
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        future.add_done_callback(_consume_exception)
        self._inflight[key] = future
        try:
            value = await compute_fn()
        except asyncio.CancelledError:
            future.set_exception(_LeaderCancelled())
            raise
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            self._store(key, value)
            future.set_result(value)
            return value
        finally:
            if self._inflight.get(key) is future:
                del self._inflight[key]

    def get(self, key: CacheKey) -> Optional[Prediction]:
        """Return an unexpired entry and refresh its recency, or None."""
        now = self._clock()
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry, now):
            self._expire(key, entry)
            return None
        entry.last_access = now
        self._entries.move_to_end(key)
        self.stats.hits += 1
        return entry.value

    def get_stale(self, key: CacheKey) -> Optional[Prediction]:
        """Last known prediction for ``key`` even if past its TTL."""
        entry = self._entries.get(key) or self._stale.get(key)
        if entry is None:
            return None
        self.stats.stale_served += 1
        return entry.value

    def invalidate(self, model_version_id: int, *, retain_history: bool = False) -> int:
        """
        Drop every entry computed by ``model_version_id``.

        Computations for that version still in flight are returned to their
        callers but not stored. With ``retain_history`` the dropped entries
        stay reachable through ``get_stale`` for historical comparison.
        """
        self._invalidated.add(model_version_id)
        doomed = [k for k in self._entries if k.model_version_id == model_version_id]
        for key in doomed:
            entry = self._entries.pop(key)
            if retain_history:
                self._archive(key, entry)
            else:
                self._release(key)
        if not retain_history:
            for key in [k for k in self._stale if k.model_version_id == model_version_id]:
                del self._stale[key]
                self._release(key)

        self.stats.invalidations += len(doomed)
        logger.info(
            "cache.invalidated",
            model_version_id=model_version_id,
            entries=len(doomed),
            retain_history=retain_history,
        )
        return len(doomed)

    def revalidate(self, model_version_id: int) -> None:
        """Allow entries for a previously invalidated version to be stored again."""
        self._invalidated.discard(model_version_id)

    def clear(self) -> None:
        for key in list(self._entries) + list(self._stale):
            self._release(key)
        self._entries.clear()
        self._stale.clear()
        self._expiry_queue.clear()

    def snapshot(self) -> Dict[str, int]:
        return {
            "size": len(self._entries),
            "stale_size": len(self._stale),
            "inflight": len(self._inflight),
            "max_entries": self.max_entries,
            **vars(self.stats),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.inserted_at >= self.ttl_seconds

    def _store(self, key: CacheKey, value: Prediction) -> None:
        if key.model_version_id in self._invalidated:
            self.stats.discarded += 1
            logger.debug(
                "cache.store_discarded", model_version_id=key.model_version_id
            )
            return

        now = self._clock()
        self._purge_expired(now)

        previous = self._entries.pop(key, None)
        if previous is not None:
            self._release(key)
        stale = self._stale.pop(key, None)
        if stale is not None:
            self._release(key)

        while len(self._entries) >= self.max_entries:
            evicted_key, _ = self._entries.popitem(last=False)
            self._release(evicted_key)
            self.stats.evictions += 1

        self._entries[key] = CacheEntry(value=value, inserted_at=now, last_access=now)
        self._expiry_queue.append((now, key))
        self._retain(key)

    def _purge_expired(self, now: float) -> None:
        while self._expiry_queue:
            inserted_at, key = self._expiry_queue[0]
            if now - inserted_at < self.ttl_seconds:
                break
            self._expiry_queue.popleft()
            entry = self._entries.get(key)
            # a re-inserted key carries a newer timestamp and stays
            if entry is not None and entry.inserted_at == inserted_at:
                self._expire(key, entry)

    def _expire(self, key: CacheKey, entry: CacheEntry) -> None:
        del self._entries[key]
        self.stats.expirations += 1
        self._archive(key, entry)

    def _archive(self, key: CacheKey, entry: CacheEntry) -> None:
        if self.stale_max_entries <= 0:
            self._release(key)
            return
        if key in self._stale:
            self._release(key)
        self._stale[key] = entry
        self._stale.move_to_end(key)
        while len(self._stale) > self.stale_max_entries:
            old_key, _ = self._stale.popitem(last=False)
            self._release(old_key)

    def _retain(self, key: CacheKey) -> None:
        if self._references is not None:
            self._references.retain(key.model_version_id)

    def _release(self, key: CacheKey) -> None:
        if self._references is not None:
            self._references.release(key.model_version_id)
