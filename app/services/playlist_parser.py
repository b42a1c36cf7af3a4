"""Parser for extended M3U playlists."""

from __future__ import annotations

import re

from ..models import PlaylistEntry

HEADER = "#EXTM3U"
EXTINF = "#EXTINF"
EXTINF_ATTR_RE = re.compile(r'([\w-]+)="([^"]*)"')


class PlaylistParseError(ValueError):
    """Raised when a playlist body is not an extended M3U document."""


def parse_playlist(content: str) -> list[PlaylistEntry]:
    """Return the entries of an extended M3U playlist.

    Each ``#EXTINF`` line is paired with the next non-comment line, which is
    taken as the stream URL. Other directives (``#EXTGRP``, ``#EXTVLCOPT``...)
    are skipped.
    """

    text = (content or "").lstrip("\ufeff").lstrip()
    if not text.startswith(HEADER):
        raise PlaylistParseError("Playlist is missing the #EXTM3U header")

    entries: list[PlaylistEntry] = []
    current: dict[str, str] | None = None
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(HEADER):
            continue
        if line.startswith(EXTINF):
            current = _parse_extinf(line)
            continue
        if line.startswith("#"):
            continue
        if current is None:
            continue
        entries.append(PlaylistEntry(url=line, **current))
        current = None
    return entries


def _parse_extinf(line: str) -> dict[str, str]:
    header, name = _split_extinf(line)
    attributes = {key.lower(): value for key, value in EXTINF_ATTR_RE.findall(header)}
    return {
        "name": name.strip(),
        "tvg_name": attributes.get("tvg-name", "").strip(),
        "logo": attributes.get("tvg-logo", "").strip(),
        "group_title": attributes.get("group-title", "").strip(),
    }


def _split_extinf(line: str) -> tuple[str, str]:
    # Attribute values may contain commas, so split on the first comma that
    # sits outside a quoted value.
    in_quotes = False
    for index, char in enumerate(line):
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            return line[:index], line[index + 1 :]
    return line, ""
