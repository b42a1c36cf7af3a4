"""Tests for playlist retrieval."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from app.config import Settings
from app.models import Source
from app.services.merge import merge_playlists
from app.services.sources import SourceFetcher

FIRST = Source(url="https://one.example/list.m3u", name="One")
SECOND = Source(url="https://two.example/list.m3u", name="Two")
THIRD = Source(url="https://three.example/list.m3u", name="Three")


def build_settings(**overrides: object) -> Settings:
    return Settings(_env_file=None, **overrides)  # type: ignore[arg-type]


@pytest.mark.anyio("asyncio")
async def test_failed_source_is_skipped_and_others_merge(playlist_body) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "two.example":
            return httpx.Response(500, text="boom")
        if request.url.host == "one.example":
            return httpx.Response(200, text=playlist_body(("Heat (1995)", "http://one/heat")))
        return httpx.Response(200, text=playlist_body(("Arrival (2016)", "http://three/arrival")))

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        fetcher = SourceFetcher(build_settings(), http_client)
        results = await fetcher.fetch_all([FIRST, SECOND, THIRD])

    assert [source for source, _ in results] == [FIRST, SECOND, THIRD]
    assert results[1][1] == []
    movies = merge_playlists(results)
    assert [movie.name for movie in movies] == ["Heat (1995)", "Arrival (2016)"]


@pytest.mark.anyio("asyncio")
async def test_configured_order_wins_over_completion_order(playlist_body) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "one.example":
            await asyncio.sleep(0.05)
            body = playlist_body(("Heat (1995)", "http://one/heat"), logo="http://one/heat.jpg")
        else:
            body = playlist_body(("Heat (1995) 1080p", "http://two/heat"), logo="http://two/heat.jpg")
        return httpx.Response(200, text=body)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        fetcher = SourceFetcher(build_settings(), http_client)
        results = await fetcher.fetch_all([FIRST, SECOND])

    movie = merge_playlists(results)[0]
    assert movie.poster == "http://one/heat.jpg"
    assert [stream.url for stream in movie.streams] == ["http://one/heat", "http://two/heat"]


@pytest.mark.anyio("asyncio")
async def test_malformed_body_yields_no_entries() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        fetcher = SourceFetcher(build_settings(), http_client)
        assert await fetcher.fetch(FIRST) == []


@pytest.mark.anyio("asyncio")
async def test_network_error_yields_no_entries() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        fetcher = SourceFetcher(build_settings(), http_client)
        assert await fetcher.fetch(FIRST) == []


@pytest.mark.anyio("asyncio")
async def test_hung_source_is_cut_off_by_deadline(playlist_body) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "one.example":
            await asyncio.sleep(5)
        return httpx.Response(200, text=playlist_body(("Arrival (2016)", "http://two/arrival")))

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        fetcher = SourceFetcher(build_settings(), http_client)
        results = await fetcher.fetch_all([FIRST, SECOND], deadline=0.05)

    assert results[0][1] == []
    assert [entry.title for entry in results[1][1]] == ["Arrival (2016)"]



@pytest.mark.anyio("asyncio")
async def test_zero_deadline_is_not_replaced_by_default(playlist_body) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.01)
        return httpx.Response(200, text=playlist_body(("Heat (1995)", "http://one/heat")))

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        fetcher = SourceFetcher(build_settings(), http_client)
        assert await fetcher.fetch(FIRST, deadline=0) == []
        assert [entry.title for entry in await fetcher.fetch(FIRST)] == ["Heat (1995)"]
