"""
Cache key policy and an in-process cache layer.

Cached discovery results are tagged with one tag per configured content type
on the active channel. A content change signal for (channel, content type)
evicts every entry carrying the matching tag, whichever operation stored it.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Iterable, Protocol, TypeVar

from .config import DiscoveryOptions
from .logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

NODE_LIST_OPERATION = "node-list"
DETAILED_LIST_OPERATION = "detailed-list"


def content_change_tag(channel_name: str, content_type_name: str) -> str:
    return f"channel:{channel_name}|contentType:{content_type_name}"


def derive_tags(options: DiscoveryOptions, channel_name: str) -> FrozenSet[str]:
    return frozenset(
        content_change_tag(channel_name, t) for t in options.content_type_names
    )


def cache_key(operation_name: str, tags: Iterable[str]) -> str:
    return f"{operation_name}||" + ";".join(sorted(tags))


class CacheLayer(Protocol):
    async def load_or_compute(
        self,
        operation_key: str,
        compute: Callable[[], Awaitable[T]],
        ttl_minutes: float,
        tags: FrozenSet[str],
    ) -> T:
        ...


@dataclass
class _CacheEntry:
    value: Any
    expires_at: float
    tags: FrozenSet[str]


class InMemoryCache:
    """
    Get-or-compute cache with TTL and tag invalidation.

    - at most one compute runs per key; concurrent callers wait for it
    - a value is stored only once compute has returned, so a failed or
      cancelled compute leaves no entry behind
    - a compute that overlaps an invalidation of one of its tags is returned
      to its caller but not stored
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, _CacheEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._tag_versions: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _get_fresh(self, key: str) -> _CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            self._entries.pop(key, None)
            return None
        return entry

    async def load_or_compute(
        self,
        operation_key: str,
        compute: Callable[[], Awaitable[T]],
        ttl_minutes: float,
        tags: FrozenSet[str],
    ) -> T:
        key = cache_key(operation_key, tags)
        entry = self._get_fresh(key)
        if entry is not None:
            return entry.value

        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        async with lock:
            # another caller may have filled the entry while we waited
            entry = self._get_fresh(key)
            if entry is not None:
                return entry.value

            versions = {t: self._tag_versions.get(t, 0) for t in tags}
            value = await compute()

            if any(self._tag_versions.get(t, 0) != v for t, v in versions.items()):
                logger.debug(f"Skipped storing {operation_key}: invalidated during compute")
                return value

            self._entries[key] = _CacheEntry(
                value=value,
                expires_at=self._clock() + ttl_minutes * 60,
                tags=frozenset(tags),
            )
            return value

    def invalidate(self, tags: Iterable[str]) -> int:
        """Evict every entry sharing at least one of ``tags``. Returns the eviction count."""
        tag_set = frozenset(tags)
        for t in tag_set:
            self._tag_versions[t] = self._tag_versions.get(t, 0) + 1

        stale = [k for k, e in self._entries.items() if e.tags & tag_set]
        for k in stale:
            del self._entries[k]
        if stale:
            logger.info(f"Evicted {len(stale)} cache entries for tags {sorted(tag_set)}")
        return len(stale)

    def notify_content_changed(self, channel_name: str, content_type_name: str) -> int:
        return self.invalidate([content_change_tag(channel_name, content_type_name)])
