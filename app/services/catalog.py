"""Catalog orchestration: cached playlist merging, listing and lookups."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ..config import Settings
from ..models import AddonConfig, MovieRecord, Source
from .cache import PlaylistCache
from .merge import merge_playlists
from .sources import SourceFetcher
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)


def filter_movies(
    movies: Iterable[MovieRecord],
    *,
    search: str | None = None,
    genre: str | None = None,
) -> list[MovieRecord]:
    """Filter by a case-insensitive name substring and exact genre membership."""

    results = list(movies)
    if search:
        needle = search.lower()
        results = [movie for movie in results if needle in movie.name.lower()]
    if genre:
        results = [movie for movie in results if genre in movie.genres]
    return results


def sort_by_year(movies: Iterable[MovieRecord]) -> list[MovieRecord]:
    """Sort newest first; movies without a year count as year zero."""

    return sorted(movies, key=lambda movie: movie.sort_year(), reverse=True)


class AddonService:
    """Serve merged playlist movies to the Stremio routes."""

    def __init__(
        self,
        settings: Settings,
        fetcher: SourceFetcher,
        playlist_cache: PlaylistCache,
        tmdb: TMDBClient,
    ):
        self._settings = settings
        self._fetcher = fetcher
        self._playlist_cache = playlist_cache
        self._tmdb = tmdb

    async def get_movies(self, sources: Sequence[Source]) -> list[MovieRecord]:
        """Return merged movies for ``sources``, served from cache when fresh."""

        return await self._playlist_cache.get_or_build(
            sources, lambda: self._resolve(sources)
        )

    async def _resolve(self, sources: Sequence[Source]) -> list[MovieRecord]:
        results = await self._fetcher.fetch_all(sources)
        movies = merge_playlists(results)
        logger.info("Parsed %s unique movies from sources.", len(movies))
        return movies

    async def catalog_metas(
        self,
        config: AddonConfig,
        *,
        search: str | None = None,
        genre: str | None = None,
    ) -> list[dict[str, object]]:
        """Return catalog previews after filtering, sorting and capping."""

        movies = await self.get_movies(config.sources)
        results = sort_by_year(filter_movies(movies, search=search, genre=genre))
        if not search:
            results = results[: self._settings.catalog_limit]
        return [movie.to_catalog_stub() for movie in results]

    async def find_movie(
        self, sources: Sequence[Source], movie_id: str
    ) -> MovieRecord | None:
        movies = await self.get_movies(sources)
        return next((movie for movie in movies if movie.id == movie_id), None)

    async def get_meta(self, config: AddonConfig, movie_id: str) -> dict[str, object]:
        """Return the enriched meta object, or an empty mapping when unknown."""

        movie = await self.find_movie(config.sources, movie_id)
        if movie is None:
            return {}
        enriched = await self._tmdb.enrich(movie, config.api_key)
        return enriched.to_meta()

    async def get_streams(
        self, config: AddonConfig, movie_id: str
    ) -> list[dict[str, object]]:
        movie = await self.find_movie(config.sources, movie_id)
        if movie is None:
            return []
        return movie.stream_payloads()
