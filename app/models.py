"""Pydantic models describing playlist sources, movies and Stremio payloads."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

ContentType = Literal["movie"]


class ConfigDecodeError(ValueError):
    """Raised when the encoded addon configuration cannot be decoded."""


class Source(BaseModel):
    """A named playlist URL supplied by the user."""

    model_config = ConfigDict(frozen=True)

    url: str
    name: str = ""

    @field_validator("url")
    @classmethod
    def _require_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Source URL may not be empty")
        return value

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: object) -> object:
        if value is None:
            return ""
        return value


class AddonConfig(BaseModel):
    """Configuration carried in the first path segment of every addon URL."""

    model_config = ConfigDict(populate_by_name=True)

    sources: list[Source] = Field(min_length=1)
    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("tmdbKey", "apiKey", "api_key"),
    )

    @field_validator("api_key", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value

    @classmethod
    def from_token(cls, token: str) -> "AddonConfig":
        """Decode a base64 encoded JSON configuration."""

        raw = (token or "").strip()
        if not raw:
            raise ConfigDecodeError("Configuration is empty")
        # Accept URL-safe alphabets and missing padding.
        normalized = raw.replace("-", "+").replace("_", "/")
        normalized += "=" * (-len(normalized) % 4)
        try:
            decoded = base64.b64decode(normalized, validate=True).decode("utf-8")
            payload = json.loads(decoded)
        except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ConfigDecodeError("Configuration is not valid base64 JSON") from exc
        if not isinstance(payload, dict):
            raise ConfigDecodeError("Configuration must be a JSON object")
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise ConfigDecodeError(
                f"Configuration is invalid: {exc.error_count()} error(s)"
            ) from exc

    def to_token(self) -> str:
        """Encode the configuration as an unpadded URL-safe path segment."""

        payload: dict[str, Any] = {
            "sources": [source.model_dump() for source in self.sources]
        }
        if self.api_key:
            payload["tmdbKey"] = self.api_key
        encoded = base64.urlsafe_b64encode(json.dumps(payload).encode("utf-8"))
        return encoded.decode("ascii").rstrip("=")


class PlaylistEntry(BaseModel):
    """One ``#EXTINF`` entry of a playlist."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    url: str
    tvg_name: str = ""
    logo: str = ""
    group_title: str = ""

    @property
    def title(self) -> str:
        """Return the title used for grouping, preferring ``tvg-name``."""

        return self.tvg_name or self.name


class StreamEntry(BaseModel):
    """A playable stream for a movie, as advertised to Stremio."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    url: str
    name: str
    behavior_hints: dict[str, bool] = Field(
        default_factory=lambda: {"notWebReady": True},
        serialization_alias="behaviorHints",
    )

    @classmethod
    def from_entry(
        cls, entry: PlaylistEntry, source: Source, quality: str
    ) -> "StreamEntry":
        source_label = source.name or "Source"
        return cls(
            title=f"{quality} - {source_label} \n{entry.group_title}",
            url=entry.url,
            name=source.name or "M3U",
        )

    def to_payload(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)


class MovieRecord(BaseModel):
    """Canonical movie aggregated from every playlist that lists it."""

    id: str
    type: ContentType = "movie"
    name: str
    clean_name: str
    poster: str | None = None
    background: str | None = None
    year: str = ""
    genres: list[str] = Field(default_factory=list)
    streams: list[StreamEntry] = Field(default_factory=list)
    description: str | None = None
    release_info: str | None = None
    imdb_rating: str | None = None

    def sort_year(self) -> int:
        """Return the year as an integer, treating a missing year as zero."""

        try:
            return int(self.year)
        except (TypeError, ValueError):
            return 0

    def to_catalog_stub(self) -> dict[str, object]:
        """Return a Stremio-compatible meta preview for catalog listings."""

        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "poster": self.poster,
            "releaseInfo": self.year,
        }

    def to_meta(self) -> dict[str, object]:
        """Return the full Stremio meta object."""

        meta: dict[str, object] = {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "poster": self.poster,
            "background": self.background,
            "genres": list(self.genres),
            "releaseInfo": self.release_info or self.year,
            "streams": self.stream_payloads(),
        }
        if self.year:
            meta["year"] = self.year
        if self.description:
            meta["description"] = self.description
        if self.imdb_rating:
            meta["imdbRating"] = self.imdb_rating
        return meta

    def stream_payloads(self) -> list[dict[str, object]]:
        return [stream.to_payload() for stream in self.streams]
