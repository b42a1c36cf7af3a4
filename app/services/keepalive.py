"""Background loop that pings the addon so idle hosting tiers stay awake."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

import httpx

logger = logging.getLogger(__name__)


class KeepAlive:
    """Periodically request a URL until stopped."""

    def __init__(self, http_client: httpx.AsyncClient, url: str, interval_seconds: float):
        self._client = http_client
        self._url = url
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Launch the ping loop; a non-positive interval disables it."""

        if self._interval <= 0 or self._task is not None:
            return
        logger.info("Keep-alive enabled: pinging %s every %ss", self._url, self._interval)
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        """Stop the background ping loop."""

        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def ping(self) -> bool:
        try:
            response = await self._client.get(self._url)
        except httpx.HTTPError as exc:
            logger.debug("Keep-alive ping to %s failed: %s", self._url, exc)
            return False
        return response.is_success

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.ping()
