"""Entry point for the FastAPI-powered Stremio addon."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any
from urllib.parse import unquote

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .config import settings
from .models import AddonConfig, ConfigDecodeError
from .services.cache import EnrichmentCache, PlaylistCache
from .services.catalog import AddonService
from .services.keepalive import KeepAlive
from .services.sources import SourceFetcher
from .services.tmdb import TMDBClient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI

MANIFEST_ID = "community.m3uaddon.multi"
MANIFEST_VERSION = "1.1.0"
CATALOG_ID = "m3u_movies"


@asynccontextmanager
async def lifespan(_: FastAPI):
    exit_stack = AsyncExitStack()
    source_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            timeout=httpx.Timeout(settings.source_timeout_seconds, connect=10.0),
            headers={"User-Agent": f"{settings.app_name} (m3umulti)"},
        )
    )
    tmdb_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.tmdb_api_url),
            timeout=httpx.Timeout(15.0, connect=5.0),
        )
    )
    keep_alive_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(timeout=httpx.Timeout(10.0))
    )

    tmdb = TMDBClient(
        tmdb_client,
        EnrichmentCache(settings.enrichment_cache_size),
        default_api_key=settings.tmdb_api_key,
    )
    addon_service = AddonService(
        settings,
        SourceFetcher(settings, source_client),
        PlaylistCache(settings.playlist_cache_ttl_seconds),
        tmdb,
    )
    keep_alive = KeepAlive(
        keep_alive_client,
        settings.resolved_keep_alive_url,
        settings.keep_alive_interval_seconds,
    )

    app.state.addon_service = addon_service
    await keep_alive.start()

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await keep_alive.stop()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Merged movie catalogs from multiple M3U playlists for Stremio",
        version=MANIFEST_VERSION,
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_addon_service(app: FastAPI) -> AddonService:
    service = getattr(app.state, "addon_service", None)
    if not isinstance(service, AddonService):
        raise RuntimeError("Addon service not initialised")
    return service


def build_manifest() -> dict[str, Any]:
    return {
        "id": MANIFEST_ID,
        "version": MANIFEST_VERSION,
        "name": "M3U Multi-Source",
        "description": (
            "Stream movies from multiple M3U playlists with Auto-Refresh and TMDB."
        ),
        "resources": ["catalog", "stream", "meta"],
        "types": ["movie"],
        "catalogs": [
            {
                "type": "movie",
                "id": CATALOG_ID,
                "name": "M3U Movies",
                "extra": [
                    {"name": "search", "isRequired": False},
                    {"name": "genre", "isRequired": False},
                    {"name": "skip", "isRequired": False},
                ],
            }
        ],
        "idPrefixes": ["m3u_"],
    }


def parse_extra(extra: str | None) -> dict[str, str]:
    """Parse Stremio's ``key=value&key2=value2`` extra path segment."""

    if not extra:
        return {}
    values: dict[str, str] = {}
    for part in extra.split("&"):
        key, _, value = part.partition("=")
        if key:
            values[key] = unquote(value)
    return values


def _decode_config(token: str) -> AddonConfig:
    try:
        return AddonConfig.from_token(token)
    except ConfigDecodeError as exc:
        logger.info("Config decode error: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def register_routes(fastapi_app: FastAPI) -> None:
    async def _catalog_endpoint(
        config_token: str,
        content_type: str,
        extra: str | None = None,
    ) -> JSONResponse:
        config = _decode_config(config_token)
        if content_type != "movie":
            return JSONResponse({"metas": []})
        service = get_addon_service(fastapi_app)
        params = parse_extra(extra)
        metas = await service.catalog_metas(
            config,
            search=params.get("search") or None,
            genre=params.get("genre") or None,
        )
        return JSONResponse({"metas": metas})

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/ping", response_class=PlainTextResponse)
    async def ping() -> str:
        return "pong"

    @fastapi_app.get("/manifest.json")
    async def manifest_without_config() -> PlainTextResponse:
        return PlainTextResponse(
            "Configuration required. Please visit the addon settings page.",
            status_code=400,
        )

    @fastapi_app.get("/{config_token}/manifest.json")
    async def manifest(config_token: str) -> dict[str, Any]:
        _decode_config(config_token)
        return build_manifest()

    @fastapi_app.get("/{config_token}/catalog/{content_type}/{catalog_id}.json")
    async def catalog(
        config_token: str, content_type: str, catalog_id: str
    ) -> JSONResponse:
        return await _catalog_endpoint(config_token, content_type)

    @fastapi_app.get(
        "/{config_token}/catalog/{content_type}/{catalog_id}/{extra}.json"
    )
    async def catalog_with_extra(
        config_token: str, content_type: str, catalog_id: str, extra: str
    ) -> JSONResponse:
        return await _catalog_endpoint(config_token, content_type, extra)

    @fastapi_app.get("/{config_token}/meta/{content_type}/{movie_id}.json")
    async def meta(config_token: str, content_type: str, movie_id: str) -> JSONResponse:
        config = _decode_config(config_token)
        service = get_addon_service(fastapi_app)
        payload = await service.get_meta(config, movie_id)
        return JSONResponse({"meta": payload})

    @fastapi_app.get("/{config_token}/stream/{content_type}/{movie_id}.json")
    async def stream(
        config_token: str, content_type: str, movie_id: str
    ) -> JSONResponse:
        config = _decode_config(config_token)
        service = get_addon_service(fastapi_app)
        streams = await service.get_streams(config, movie_id)
        return JSONResponse({"streams": streams})


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
