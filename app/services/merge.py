"""Fold playlist entries from several sources into canonical movie records."""

from __future__ import annotations

from typing import Iterable, Sequence

from ..models import MovieRecord, PlaylistEntry, Source, StreamEntry
from ..utils import (
    classify_quality,
    clean_title,
    display_name,
    extract_year,
    grouping_key,
    movie_id_for_key,
)

SourceResult = tuple[Source, Sequence[PlaylistEntry]]


def merge_playlists(results: Iterable[SourceResult]) -> list[MovieRecord]:
    """Return one movie per grouping key, in order of first sighting.

    ``results`` must be supplied in configured source order. The first entry
    seen for a key fixes the poster, background, genres and description; any
    later entry with the same key only appends a stream. Duplicate lines are
    not collapsed, so a source listing the same stream twice contributes two
    streams.
    """

    movies: dict[str, MovieRecord] = {}
    for source, entries in results:
        for entry in entries:
            raw_title = entry.title
            year = extract_year(raw_title)
            title = clean_title(raw_title)
            quality = classify_quality(raw_title)
            key = grouping_key(title, year)
            stream = StreamEntry.from_entry(entry, source, quality)

            movie = movies.get(key)
            if movie is not None:
                movie.streams.append(stream)
                continue

            movies[key] = MovieRecord(
                id=movie_id_for_key(key),
                name=display_name(title, year),
                clean_name=title,
                poster=entry.logo or None,
                background=entry.logo or None,
                year=year,
                genres=[entry.group_title] if entry.group_title else [],
                streams=[stream],
                description=f"Available in {quality}",
            )
    return list(movies.values())
