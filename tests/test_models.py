import base64
import json

import pytest

from app.models import (
    AddonConfig,
    ConfigDecodeError,
    MovieRecord,
    PlaylistEntry,
    Source,
    StreamEntry,
)


def _encode(payload: object, *, urlsafe: bool = False) -> str:
    raw = json.dumps(payload).encode("utf-8")
    if urlsafe:
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
    return base64.b64encode(raw).decode("ascii")


def test_config_from_token_reads_sources_and_tmdb_key():
    token = _encode(
        {
            "sources": [
                {"url": "https://a.example/list.m3u", "name": "A"},
                {"url": "https://b.example/list.m3u"},
            ],
            "tmdbKey": "secret",
        }
    )

    config = AddonConfig.from_token(token)

    assert config.api_key == "secret"
    assert config.sources == [
        Source(url="https://a.example/list.m3u", name="A"),
        Source(url="https://b.example/list.m3u", name=""),
    ]


def test_config_accepts_urlsafe_tokens_without_padding():
    token = _encode({"sources": [{"url": "https://a.example/?x=1>", "name": "ü"}]}, urlsafe=True)

    config = AddonConfig.from_token(token)

    assert config.sources[0].name == "ü"
    assert config.api_key is None


def test_config_round_trips_through_token():
    config = AddonConfig(sources=[Source(url="https://a.example/x.m3u", name="A")], api_key="k")
    assert AddonConfig.from_token(config.to_token()) == config


@pytest.mark.parametrize(
    "token",
    [
        "",
        "not base64!!",
        base64.b64encode(b"not json").decode(),
        _encode(["a", "list"]),
        _encode({"sources": []}),
        _encode({"sources": [{"url": "   "}]}),
    ],
)
def test_config_from_token_rejects_invalid_payloads(token: str):
    with pytest.raises(ConfigDecodeError):
        AddonConfig.from_token(token)


def test_config_decode_error_is_value_error():
    assert issubclass(ConfigDecodeError, ValueError)


def test_stream_entry_label_and_payload():
    entry = PlaylistEntry(name="Heat", url="http://x/heat.mkv", group_title="Action")

    stream = StreamEntry.from_entry(entry, Source(url="http://x", name=""), "1080p")

    assert stream.to_payload() == {
        "title": "1080p - Source \nAction",
        "url": "http://x/heat.mkv",
        "name": "M3U",
        "behaviorHints": {"notWebReady": True},
    }


def test_playlist_entry_prefers_tvg_name():
    assert PlaylistEntry(name="Shown", tvg_name="Tagged", url="u").title == "Tagged"
    assert PlaylistEntry(name="Shown", url="u").title == "Shown"


def test_movie_record_projections():
    movie = MovieRecord(
        id="m3u_abc",
        name="Heat (1995)",
        clean_name="Heat",
        poster="https://img/heat.jpg",
        background="https://img/heat.jpg",
        year="1995",
        genres=["Action"],
        description="Available in 1080p",
    )

    assert movie.to_catalog_stub() == {
        "id": "m3u_abc",
        "type": "movie",
        "name": "Heat (1995)",
        "poster": "https://img/heat.jpg",
        "releaseInfo": "1995",
    }
    meta = movie.to_meta()
    assert meta["genres"] == ["Action"]
    assert meta["description"] == "Available in 1080p"
    assert meta["releaseInfo"] == "1995"
    assert "imdbRating" not in meta
    assert meta["streams"] == []
    assert movie.sort_year() == 1995
    assert movie.model_copy(update={"year": ""}).sort_year() == 0
