from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from placement.policy import is_small_viewport
from placement.types import MapHandle, ViewportSnapshot

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 1000.0
DEFAULT_MAX_ENTRIES = 50
# Small (mobile-sized) viewports change less often; their snapshots live longer.
DEFAULT_SMALL_VIEWPORT_TTL_MS = 5000.0

# Host map events after which cached snapshots may be wrong.
MAP_STATE_EVENTS = ("zoomend", "moveend", "resize")


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class CacheEntry:
    snapshot: ViewportSnapshot
    timestamp_ms: float
    ttl_ms: float = DEFAULT_TTL_MS
    access_count: int = 1
    last_accessed_ms: float = 0.0


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    evictions: int
    size: int


StalePredicate = Callable[[str, CacheEntry, float], bool]


def map_fingerprint(map_handle: MapHandle) -> str:
    """
    Cache key for the current map state: center at 1e-6 deg, zoom, container size in whole pixels.
    """
    center = map_handle.get_center()
    zoom = map_handle.get_zoom()
    size = map_handle.get_size()
    return f"{center.lat:.6f}_{center.lon:.6f}_{zoom}_{size.width:.0f}_{size.height:.0f}"


def snapshot_from_map(map_handle: MapHandle) -> ViewportSnapshot:
    return ViewportSnapshot(
        bounds=map_handle.get_bounds(),
        center=map_handle.get_center(),
        zoom=map_handle.get_zoom(),
        pixel_bounds=map_handle.get_pixel_bounds(),
    )


@dataclass
class ViewportStateCache:
    """
    Memoizes `ViewportSnapshot`s keyed by a quantized map fingerprint.

    Purely a performance layer: a snapshot served from the cache equals the one the map
    would produce right now, as long as the map state behind the fingerprint is unchanged.
    Snapshots of small viewports (see `is_small_viewport`) expire after
    `small_viewport_ttl_ms` instead of `ttl_ms`.

    Not thread-safe; meant to be driven by a single UI/event thread.
    """

    ttl_ms: float = DEFAULT_TTL_MS
    max_entries: int = DEFAULT_MAX_ENTRIES
    small_viewport_ttl_ms: float = DEFAULT_SMALL_VIEWPORT_TTL_MS
    clock: Callable[[], float] = field(default=_monotonic_ms, repr=False)

    _entries: dict[str, CacheEntry] = field(default_factory=dict, repr=False)
    _hits: int = field(default=0, repr=False)
    _misses: int = field(default=0, repr=False)
    _evictions: int = field(default=0, repr=False)

    def get(self, map_handle: MapHandle) -> ViewportSnapshot:
        # Errors from the map handle propagate to the caller.
        key = map_fingerprint(map_handle)
        now = self.clock()

        entry = self._fresh_entry(key, now)
        if entry is not None:
            entry.access_count += 1
            entry.last_accessed_ms = now
            self._hits += 1
            logger.debug("viewport cache hit: %s", key)
            return entry.snapshot

        self._misses += 1
        logger.debug("viewport cache miss: %s", key)
        return self._store(key, snapshot_from_map(map_handle), now)

    def preload(self, map_handle: MapHandle) -> ViewportSnapshot:
        """
        Warm the cache for the map's current state without touching hit/miss counters.

        A still-fresh entry is kept as is.
        """
        key = map_fingerprint(map_handle)
        now = self.clock()
        entry = self._fresh_entry(key, now)
        if entry is not None:
            return entry.snapshot
        logger.debug("viewport cache preload: %s", key)
        return self._store(key, snapshot_from_map(map_handle), now)

    def ttl_for(self, snapshot: ViewportSnapshot) -> float:
        if is_small_viewport(snapshot.container_size):
            return self.small_viewport_ttl_ms
        return self.ttl_ms

    def clear(self, selective: bool = False, is_stale: StalePredicate | None = None) -> int:
        """
        Drop all entries (and reset counters), or with `selective=True` only the stale ones.

        `is_stale(key, entry, now_ms)` decides staleness; the default is "older than the entry's
        TTL".
        Returns the number of entries removed.
        """
        if not selective:
            n = len(self._entries)
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0
            return n

        now = self.clock()
        predicate = is_stale or self._older_than_ttl
        stale = [k for k, e in self._entries.items() if predicate(k, e, now)]
        for k in stale:
            self._evict(k)
        return len(stale)

    def invalidate_on_map_state_change(self, map_handle: MapHandle) -> int:
        """
        Drop every entry that doesn't match the map's current fingerprint.

        Meant for pan/zoom/resize end events.
        """
        current = map_fingerprint(map_handle)
        removed = self.clear(selective=True, is_stale=lambda k, _e, _now: k != current)
        if removed:
            logger.debug("viewport cache invalidated %d entries after map state change", removed)
        return removed

    def bind_map_events(
        self,
        map_handle: MapHandle,
        on: Callable[[str, Callable[..., Any]], Any],
        off: Callable[[str, Callable[..., Any]], Any] | None = None,
    ) -> Callable[[], None]:
        """
        Register `invalidate_on_map_state_change` for the host's zoom/move/resize events.

        `on(event, handler)` / `off(event, handler)` are the host map's listener hooks.
        Returns a function that unregisters the handler again (a no-op without `off`).
        """

        def handler(*_args: Any, **_kwargs: Any) -> int:
            return self.invalidate_on_map_state_change(map_handle)

        for event in MAP_STATE_EVENTS:
            on(event, handler)

        def unbind() -> None:
            if off is None:
                return
            for event in MAP_STATE_EVENTS:
                off(event, handler)

        return unbind

    def stats(self) -> CacheStats:
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            size=len(self._entries),
        )

    def __len__(self) -> int:
        return len(self._entries)

    def _older_than_ttl(self, _key: str, entry: CacheEntry, now: float) -> bool:
        return (now - entry.timestamp_ms) > entry.ttl_ms

    def _fresh_entry(self, key: str, now: float) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is not None and (now - entry.timestamp_ms) < entry.ttl_ms:
            return entry
        return None

    def _store(self, key: str, snapshot: ViewportSnapshot, now: float) -> ViewportSnapshot:
        self._entries[key] = CacheEntry(
            snapshot=snapshot,
            timestamp_ms=now,
            ttl_ms=self.ttl_for(snapshot),
            last_accessed_ms=now,
        )
        self._maintain(now)
        return snapshot

    def _evict(self, key: str) -> None:
        if self._entries.pop(key, None) is not None:
            self._evictions += 1

    def _maintain(self, now: float) -> None:
        # Entries well past their TTL are useless; drop them first.
        for k in [k for k, e in self._entries.items() if (now - e.timestamp_ms) > e.ttl_ms * 2]:
            self._evict(k)

        excess = len(self._entries) - int(self.max_entries)
        if excess > 0:
            lru = sorted(self._entries.items(), key=lambda kv: kv[1].last_accessed_ms)
            for k, _e in lru[:excess]:
                self._evict(k)
