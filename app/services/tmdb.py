"""Utilities for enriching movies with metadata from The Movie Database (TMDB)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from ..models import MovieRecord
from .cache import EnrichmentCache

logger = logging.getLogger(__name__)

POSTER_BASE_URL = "https://image.tmdb.org/t/p/w500"
BACKDROP_BASE_URL = "https://image.tmdb.org/t/p/original"


class EnrichmentError(RuntimeError):
    """Raised when TMDB cannot be queried or returns an unusable response."""


@dataclass(slots=True)
class TMDBSearchResult:
    """Normalized view of a TMDB search result."""

    title: str | None
    overview: str | None
    poster_path: str | None
    backdrop_path: str | None
    release_date: str | None
    vote_average: float | None

    @property
    def year(self) -> str | None:
        if not self.release_date:
            return None
        return self.release_date.split("-", 1)[0] or None

    @property
    def rating(self) -> str | None:
        if self.vote_average is None:
            return None
        return f"{self.vote_average:.1f}"


class TMDBClient:
    """Client responsible for enriching movies through TMDB search."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        cache: EnrichmentCache,
        *,
        default_api_key: str | None = None,
    ):
        self._client = http_client
        self._cache = cache
        self._default_api_key = default_api_key

    async def enrich(self, movie: MovieRecord, api_key: str | None) -> MovieRecord:
        """Return ``movie`` enriched with TMDB metadata when a match exists.

        Only successful lookups are cached. Missing matches and failures
        return the movie unchanged, so the next request tries again.
        """

        resolved_key = api_key or self._default_api_key
        if not resolved_key:
            return movie

        cached = self._cache.get(movie.id)
        if cached is not None:
            return cached

        try:
            result = await self.search_movie(
                movie.clean_name, year=movie.year, api_key=resolved_key
            )
        except EnrichmentError as exc:
            logger.warning("TMDB lookup failed for %s: %s", movie.clean_name, exc)
            return movie

        if result is None:
            logger.debug("TMDB returned no match for %s (%s)", movie.clean_name, movie.year)
            return movie

        enriched = self._apply(movie, result)
        self._cache.set(enriched)
        return enriched

    async def search_movie(
        self, title: str, *, year: str | None, api_key: str
    ) -> TMDBSearchResult | None:
        """Return the top ranked search result for ``title``."""

        params: dict[str, Any] = {"api_key": api_key, "query": title}
        if year:
            params["year"] = year

        try:
            response = await self._client.get("/search/movie", params=params)
        except httpx.HTTPError as exc:
            raise EnrichmentError(str(exc) or exc.__class__.__name__) from exc
        if response.status_code >= 400:
            raise EnrichmentError(f"HTTP {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise EnrichmentError("TMDB returned malformed JSON") from exc

        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list) or not results:
            return None
        best = results[0]
        if not isinstance(best, dict):
            raise EnrichmentError("TMDB returned a malformed search result")

        return TMDBSearchResult(
            title=best.get("title") or None,
            overview=best.get("overview") or None,
            poster_path=best.get("poster_path") or None,
            backdrop_path=best.get("backdrop_path") or None,
            release_date=best.get("release_date") or None,
            vote_average=self._coerce_rating(best.get("vote_average")),
        )

    @staticmethod
    def _apply(movie: MovieRecord, result: TMDBSearchResult) -> MovieRecord:
        # Genres stay as they are: search results only carry genre ids.
        year = result.year or movie.year
        return movie.model_copy(
            update={
                "name": result.title or movie.name,
                "poster": TMDBClient._build_image_url(result.poster_path, POSTER_BASE_URL)
                or movie.poster,
                "background": TMDBClient._build_image_url(
                    result.backdrop_path, BACKDROP_BASE_URL
                )
                or movie.background,
                "description": result.overview or movie.description,
                "year": year,
                "release_info": year,
                "imdb_rating": result.rating,
            }
        )

    @staticmethod
    def _coerce_rating(value: Any) -> float | None:
        if isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _build_image_url(path: str | None, base_url: str) -> str | None:
        if not path:
            return None
        if path.startswith("http"):
            return path
        return f"{base_url}{path}"
