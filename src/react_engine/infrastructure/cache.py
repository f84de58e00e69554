"""ToolResultCache -- shared memoization for tool calls.

Thread-safe, namespaced key-value store with per-entry TTL and tags.
Independent engine runs share expensive lookups through it: the first run
to call a tool pays for it, later identical calls are served from here.
Entries can be dropped one at a time, per namespace, or per tag (for
example every entry tagged with one session).

Values are stored and handed out as deep copies so an entry is an
immutable snapshot no matter what callers do with what they receive.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from react_engine.infrastructure.config import CacheConfig

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class CacheEntry:
    """A cached value with its bookkeeping."""

    data: Any
    created_at: float
    expires_at: float
    hits: int = 0
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time cache statistics."""

    total_entries: int
    total_hits: int
    total_misses: int
    hit_rate: float
    memory_usage_estimate: int
    entries_by_namespace: dict[str, int]


class ToolResultCache:
    """Namespaced TTL cache with tag-based invalidation.

    Parameters
    ----------
    config:
        TTL and size limits.
    clock:
        Returns the current time in seconds.  Injectable for tests.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or CacheConfig()
        self._config.validate()
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def _make_key(namespace: str, key: str) -> str:
        return f"{namespace}:{key}"

    # ------------------------------------------------------------------ #
    #  Read / write                                                       #
    # ------------------------------------------------------------------ #

    def get(self, namespace: str, key: str, default: Any = None) -> Any:
        """Return a copy of the cached value, or *default* on a miss."""
        full_key = self._make_key(namespace, key)
        with self._lock:
            entry = self._entries.get(full_key)
            if entry is None:
                self._misses += 1
                return default
            if self._clock() > entry.expires_at:
                del self._entries[full_key]
                self._misses += 1
                return default
            entry.hits += 1
            self._hits += 1
            return copy.deepcopy(entry.data)

    def set(
        self,
        namespace: str,
        key: str,
        data: Any,
        ttl_ms: int | None = None,
        tags: Sequence[str] = (),
    ) -> None:
        """Store a snapshot of *data*.  Last write wins."""
        full_key = self._make_key(namespace, key)
        now = self._clock()
        ttl = self._config.default_ttl_ms if ttl_ms is None else ttl_ms
        entry = CacheEntry(
            data=copy.deepcopy(data),
            created_at=now,
            expires_at=now + ttl / 1000.0,
            tags=tuple(tags),
        )
        with self._lock:
            if full_key not in self._entries and len(self._entries) >= self._config.max_entries:
                self._evict_one(now)
            self._entries[full_key] = entry

    def has(self, namespace: str, key: str) -> bool:
        """Return ``True`` if a live entry exists (does not count as a hit)."""
        full_key = self._make_key(namespace, key)
        with self._lock:
            entry = self._entries.get(full_key)
            if entry is None:
                return False
            if self._clock() > entry.expires_at:
                del self._entries[full_key]
                return False
            return True

    def delete(self, namespace: str, key: str) -> bool:
        """Remove one entry. Returns ``True`` if it existed."""
        with self._lock:
            return self._entries.pop(self._make_key(namespace, key), None) is not None

    async def get_or_compute(
        self,
        namespace: str,
        key: str,
        compute: Callable[[], Awaitable[Any]],
        ttl_ms: int | None = None,
        tags: Sequence[str] = (),
        force_refresh: bool = False,
    ) -> tuple[Any, bool]:
        """Return ``(value, from_cache)``, computing and storing on a miss."""
        if not force_refresh:
            cached = self.get(namespace, key, _MISSING)
            if cached is not _MISSING:
                return cached, True
        data = await compute()
        self.set(namespace, key, data, ttl_ms=ttl_ms, tags=tags)
        return data, False

    # ------------------------------------------------------------------ #
    #  Invalidation                                                        #
    # ------------------------------------------------------------------ #

    def invalidate_namespace(self, namespace: str) -> int:
        """Drop every entry of *namespace*. Returns the number removed."""
        prefix = f"{namespace}:"
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for k in doomed:
                del self._entries[k]
        return len(doomed)

    def invalidate_by_tag(self, tag: str) -> int:
        """Drop every entry carrying *tag*. Returns the number removed."""
        with self._lock:
            doomed = [k for k, e in self._entries.items() if tag in e.tags]
            for k in doomed:
                del self._entries[k]
        return len(doomed)

    def cleanup(self) -> int:
        """Purge expired entries. Returns the number removed."""
        now = self._clock()
        with self._lock:
            doomed = [k for k, e in self._entries.items() if now > e.expires_at]
            for k in doomed:
                del self._entries[k]
        if doomed:
            logger.debug("ToolResultCache: cleaned %d expired entries", len(doomed))
        return len(doomed)

    def clear(self) -> None:
        """Remove all entries and reset statistics."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    # ------------------------------------------------------------------ #
    #  Introspection                                                       #
    # ------------------------------------------------------------------ #

    def stats(self) -> CacheStats:
        with self._lock:
            by_namespace: dict[str, int] = {}
            for full_key in self._entries:
                namespace = full_key.split(":", 1)[0]
                by_namespace[namespace] = by_namespace.get(namespace, 0) + 1
            total = self._hits + self._misses
            return CacheStats(
                total_entries=len(self._entries),
                total_hits=self._hits,
                total_misses=self._misses,
                hit_rate=self._hits / total if total else 0.0,
                memory_usage_estimate=self._estimate_memory(),
                entries_by_namespace=by_namespace,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # ------------------------------------------------------------------ #
    #  Internal helpers (lock held by caller)                              #
    # ------------------------------------------------------------------ #

    def _evict_one(self, now: float) -> None:
        # Lowest (hits - age in minutes) goes first.
        victim = min(
            self._entries,
            key=lambda k: self._entries[k].hits - (now - self._entries[k].created_at) / 60.0,
        )
        del self._entries[victim]
        logger.debug("ToolResultCache: evicted %s", victim)

    def _estimate_memory(self) -> int:
        total = 0
        for entry in self._entries.values():
            total += 100
            try:
                total += len(json.dumps(entry.data, default=str)) * 2
            except (TypeError, ValueError):
                total += 1000
        return total
