"""In-memory caches for merged playlists and enriched metadata."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from ..models import MovieRecord, Source

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def cache_key(sources: Sequence[Source]) -> str:
    """Return the canonical, order sensitive key for a source list."""

    return json.dumps(
        [{"url": source.url, "name": source.name} for source in sources],
        separators=(",", ":"),
    )


@dataclass(slots=True, frozen=True)
class PlaylistCacheEntry:
    """Merged movies for one source configuration."""

    data: tuple[MovieRecord, ...]
    stored_at: float


class PlaylistCache:
    """TTL cache of merged movie collections keyed by source configuration."""

    def __init__(self, ttl_seconds: float = 600, *, clock: Clock = time.monotonic):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, PlaylistCacheEntry] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, sources: Sequence[Source]) -> list[MovieRecord] | None:
        """Return cached movies when the entry is still within its TTL."""

        key = cache_key(sources)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not self._is_fresh(entry):
            del self._entries[key]
            return None
        return list(entry.data)

    def store(self, sources: Sequence[Source], movies: Sequence[MovieRecord]) -> None:
        """Replace the entry for ``sources`` wholesale and evict expired ones."""

        self.evict_expired()
        self._entries[cache_key(sources)] = PlaylistCacheEntry(
            data=tuple(movies), stored_at=self._clock()
        )

    def evict_expired(self) -> int:
        """Drop entries past their TTL along with their idle build locks."""

        expired = [
            key for key, entry in self._entries.items() if not self._is_fresh(entry)
        ]
        for key in expired:
            del self._entries[key]
        idle = [
            key
            for key, lock in self._locks.items()
            if key not in self._entries and not lock.locked()
        ]
        for key in idle:
            del self._locks[key]
        if expired:
            logger.debug("Evicted %s expired playlist cache entries", len(expired))
        return len(expired)

    async def get_or_build(
        self,
        sources: Sequence[Source],
        builder: Callable[[], Awaitable[Sequence[MovieRecord]]],
    ) -> list[MovieRecord]:
        """Return cached movies, building them at most once per key.

        Concurrent callers that miss on the same key wait for the single
        in-flight build and then read its result.
        """

        cached = self.get(sources)
        if cached is not None:
            return cached

        key = cache_key(sources)
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            cached = self.get(sources)
            if cached is not None:
                return cached
            movies = await builder()
            self.store(sources, movies)
            return list(movies)

    def _is_fresh(self, entry: PlaylistCacheEntry) -> bool:
        return self._clock() - entry.stored_at < self._ttl


class EnrichmentCache:
    """Process-lifetime cache of successfully enriched movies.

    ``max_entries`` of zero keeps every entry; a positive value evicts the
    least recently used movie once the bound is exceeded.
    """

    def __init__(self, max_entries: int = 0) -> None:
        self._max_entries = max_entries
        self._entries: OrderedDict[str, MovieRecord] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, movie_id: object) -> bool:
        return movie_id in self._entries

    def get(self, movie_id: str) -> MovieRecord | None:
        movie = self._entries.get(movie_id)
        if movie is not None:
            self._entries.move_to_end(movie_id)
        return movie

    def set(self, movie: MovieRecord) -> None:
        self._entries[movie.id] = movie
        self._entries.move_to_end(movie.id)
        if self._max_entries and len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted %s from the enrichment cache", evicted)
