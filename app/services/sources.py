"""Retrieval of remote playlist sources."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

import httpx

from ..config import Settings
from ..models import PlaylistEntry, Source
from .playlist_parser import PlaylistParseError, parse_playlist

logger = logging.getLogger(__name__)


class SourceFetchError(RuntimeError):
    """Raised when a playlist source cannot be downloaded."""

    def __init__(self, source: Source, reason: str):
        super().__init__(f"{source.name or 'Source'} ({source.url}): {reason}")
        self.source = source
        self.reason = reason


class SourceFetcher:
    """Download and parse playlist sources, isolating per-source failures."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._client = http_client
        self._deadline = settings.source_timeout_seconds
        self._semaphore = asyncio.Semaphore(settings.source_concurrency)

    async def fetch(
        self, source: Source, *, deadline: float | None = None
    ) -> list[PlaylistEntry]:
        """Return the entries of ``source``; failures yield an empty list."""

        try:
            content = await self._download(
                source, self._deadline if deadline is None else deadline
            )
            return parse_playlist(content)
        except SourceFetchError as exc:
            logger.warning("Error fetching source %s", exc)
        except PlaylistParseError as exc:
            logger.warning(
                "Error parsing source %s (%s): %s",
                source.name or "Source",
                source.url,
                exc,
            )
        return []

    async def fetch_all(
        self, sources: Sequence[Source], *, deadline: float | None = None
    ) -> list[tuple[Source, list[PlaylistEntry]]]:
        """Fetch every source concurrently, preserving configured order."""

        logger.info("Fetching %s playlists...", len(sources))
        results = await asyncio.gather(
            *(self.fetch(source, deadline=deadline) for source in sources)
        )
        return list(zip(sources, results))

    async def _download(self, source: Source, deadline: float) -> str:
        try:
            async with self._semaphore:
                response = await asyncio.wait_for(
                    self._client.get(source.url, follow_redirects=True),
                    timeout=deadline,
                )
            response.raise_for_status()
        except asyncio.TimeoutError as exc:
            raise SourceFetchError(source, f"timed out after {deadline:g}s") from exc
        except httpx.HTTPStatusError as exc:
            raise SourceFetchError(
                source, f"HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise SourceFetchError(source, str(exc) or exc.__class__.__name__) from exc
        return response.text
