"""Memoisation of voicing searches."""

import json
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from steelchord.copedent import Copedent
from steelchord.notes import Pitch
from steelchord.voicing import Voicing, clone_voicings
from steelchord.voicing_search import as_root, find_voicings

logger = logging.getLogger(__name__)

MODE_INTERVALS = "intervals"
MODE_INTERVALS_COLLAPSED = "intervals+collapse"

CacheKey = tuple[str, str, str, tuple[int, ...], int, str]


@dataclass
class CacheEntry:
    voicings: list[Voicing]
    created: float
    last_accessed: float
    copedent_id: str
    root: str
    mode: str
    hit_count: int = 0


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    total_requests: int
    hit_rate: float
    size: int
    memory_bytes: int

    @property
    def hit_rate_percent(self) -> str:
        return f"{self.hit_rate * 100:.1f}%"


@dataclass(frozen=True)
class UsageRecord:
    key: CacheKey
    root: str
    mode: str
    hit_count: int
    last_accessed: float


class VoicingCache:
    """
    Lock-guarded store of search results.

    Values go in and come out as deep copies, so callers may mutate what they
    receive. Entries never expire on their own; call ``clear_by_copedent``
    after editing a copedent, and ``cleanup`` to bound age and size.
    """

    DEFAULT_MAX_AGE = 30 * 60.0  # seconds since last access
    DEFAULT_MAX_SIZE = 1000

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """
        Args:
            clock: Time source in seconds; injectable for tests.
        """
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def make_key(
        copedent_id: str,
        root: str,
        mode: str,
        intervals: list[int],
        max_per_fret: int,
        full_access: bool,
    ) -> CacheKey:
        """Build the lookup key; the root's octave is ignored."""
        return (
            copedent_id,
            as_root(root).name,
            mode,
            tuple(sorted(intervals)),
            max_per_fret,
            "full" if full_access else "limited",
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: CacheKey) -> list[Voicing] | None:
        """Return a copy of the cached voicings, or None on a miss."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                logger.debug("cache miss %s", key)
                return None
            entry.hit_count += 1
            entry.last_accessed = self._clock()
            self._hits += 1
            logger.debug("cache hit %s (hit #%d)", key, entry.hit_count)
            return clone_voicings(entry.voicings)

    def set(self, key: CacheKey, voicings: list[Voicing]) -> None:
        now = self._clock()
        with self._lock:
            self._entries[key] = CacheEntry(
                voicings=clone_voicings(voicings),
                created=now,
                last_accessed=now,
                copedent_id=key[0],
                root=key[1],
                mode=key[2],
            )

    def get_or_compute(self, key: CacheKey, compute: Callable[[], list[Voicing]]) -> list[Voicing]:
        """Return the cached value for ``key``, computing and storing it on a miss."""
        cached = self.get(key)
        if cached is not None:
            return cached
        voicings = compute()
        self.set(key, voicings)
        return voicings

    def clear_by_copedent(self, copedent_id: str) -> int:
        """Drop every entry computed for ``copedent_id``; returns how many went."""
        with self._lock:
            stale = [k for k, e in self._entries.items() if e.copedent_id == copedent_id]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def clear_by_mode(self, mode: str) -> int:
        with self._lock:
            stale = [k for k, e in self._entries.items() if e.mode == mode]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def clear_all(self) -> int:
        """Empty the cache and reset the statistics; returns the former size."""
        with self._lock:
            size = len(self._entries)
            self._entries.clear()
            self._hits = self._misses = 0
        return size

    def cleanup(self, max_age: float = DEFAULT_MAX_AGE, max_size: int = DEFAULT_MAX_SIZE) -> int:
        """
        Evict entries idle for longer than ``max_age`` seconds, then the least
        recently used ones until at most ``max_size`` remain.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        removed = 0
        with self._lock:
            for key in [k for k, e in self._entries.items() if now - e.last_accessed > max_age]:
                del self._entries[key]
                removed += 1
            overflow = len(self._entries) - max_size
            if overflow > 0:
                oldest = sorted(self._entries.items(), key=lambda item: item[1].last_accessed)[:overflow]
                for key, _ in oldest:
                    del self._entries[key]
                    removed += 1
        if removed:
            logger.debug("cache cleanup removed %d entries", removed)
        return removed

    def stats(self) -> CacheStats:
        with self._lock:
            total = self._hits + self._misses
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                total_requests=total,
                hit_rate=self._hits / total if total else 0.0,
                size=len(self._entries),
                memory_bytes=self._estimate_memory(),
            )

    def most_used(self, limit: int = 10) -> list[UsageRecord]:
        with self._lock:
            ranked = sorted(self._entries.items(), key=lambda item: item[1].hit_count, reverse=True)
            return [
                UsageRecord(key, e.root, e.mode, e.hit_count, e.last_accessed)
                for key, e in ranked[:limit]
            ]

    def _estimate_memory(self) -> int:
        """Rough size: two bytes per character of each key and serialised entry."""
        total = 0
        for key, entry in self._entries.items():
            payload: dict[str, Any] = {
                "voicings": [v.to_dict() for v in entry.voicings],
                "copedentId": entry.copedent_id,
                "root": entry.root,
                "mode": entry.mode,
                "hitCount": entry.hit_count,
            }
            total += len(repr(key)) * 2 + len(json.dumps(payload, ensure_ascii=False)) * 2
        return total


def find_voicings_cached(
    cache: VoicingCache,
    copedent: Copedent,
    root: Pitch | str,
    intervals: list[int],
    max_per_fret: int,
    full_access: bool = True,
    collapse_unisons: bool = False,
) -> list[Voicing]:
    """``find_voicings`` through ``cache``; always returns caller-owned copies."""
    mode = MODE_INTERVALS_COLLAPSED if collapse_unisons else MODE_INTERVALS
    root_pitch = as_root(root)
    key = VoicingCache.make_key(copedent.id, root_pitch.name, mode, intervals, max_per_fret, full_access)
    return cache.get_or_compute(
        key,
        lambda: find_voicings(copedent, root_pitch, intervals, max_per_fret, full_access, collapse_unisons),
    )
