"""Title helpers used to group playlist entries into movies."""

from __future__ import annotations

import re


MOVIE_ID_PREFIX = "m3u_"

YEAR_RE = re.compile(r"\((\d{4})\)")
PAREN_GROUP_RE = re.compile(r"\([^()]*\)")
BRACKET_QUALITY_RE = re.compile(
    r"\[\s*(?:4k|2160p|1080p|720p|480p)\s*\]", re.IGNORECASE
)
QUALITY_TOKEN_RE = re.compile(r"\b(?:4k|2160p|1080p|720p|480p)\b", re.IGNORECASE)
NON_KEY_CHARS_RE = re.compile(r"[^a-z0-9]")
WHITESPACE_RE = re.compile(r"\s+")

QUALITY_4K = "4K"
QUALITY_1080P = "1080p"
QUALITY_720P = "720p"
QUALITY_SD = "SD"
QUALITY_UNKNOWN = "Unknown"

_QUALITY_MARKERS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("4k", "2160p"), QUALITY_4K),
    (("1080p",), QUALITY_1080P),
    (("720p",), QUALITY_720P),
    (("480p",), QUALITY_SD),
)


def normalize_title(value: str | None) -> str:
    """Return the grouping fragment for ``value``.

    Only ASCII letters and digits survive, so accented characters are dropped
    rather than transliterated.
    """

    if not value:
        return ""
    return NON_KEY_CHARS_RE.sub("", value.lower())


def extract_year(title: str) -> str:
    """Return the first parenthesised four digit year, or an empty string."""

    match = YEAR_RE.search(title or "")
    return match.group(1) if match else ""


def clean_title(title: str) -> str:
    """Strip the year and release annotations from a playlist title.

    The first ``(YYYY)`` group is removed, then at most one further
    parenthesised group. Later parenthesised notes are kept.
    """

    value = YEAR_RE.sub("", title or "", count=1)
    value = PAREN_GROUP_RE.sub("", value, count=1)
    value = BRACKET_QUALITY_RE.sub(" ", value)
    value = QUALITY_TOKEN_RE.sub(" ", value)
    value = WHITESPACE_RE.sub(" ", value)
    return value.strip(" -_.|")


def classify_quality(title: str) -> str:
    """Return the quality label advertised by ``title``; first match wins."""

    lowered = (title or "").lower()
    for markers, label in _QUALITY_MARKERS:
        if any(marker in lowered for marker in markers):
            return label
    return QUALITY_UNKNOWN


def grouping_key(title: str, year: str) -> str:
    """Return the key that collapses duplicate entries into one movie."""

    normalized = normalize_title(title)
    return f"{normalized}|{year}" if year else normalized


def movie_id_for_key(key: str) -> str:
    """Return a stable identifier derived only from the grouping key."""

    return f"{MOVIE_ID_PREFIX}{key.encode('utf-8').hex()}"


def display_name(title: str, year: str) -> str:
    return f"{title} ({year})" if year else title
