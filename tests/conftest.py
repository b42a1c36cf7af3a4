"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


# Ensure the application package is importable when running tests without an
# editable install. This mirrors the expected runtime layout where ``app`` sits
# at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


def build_playlist(*entries: tuple[str, str], group: str = "Movies", logo: str = "") -> str:
    """Return an extended M3U body for ``(title, url)`` pairs."""

    lines = ["#EXTM3U"]
    for title, url in entries:
        attrs = [f'tvg-name="{title}"', f'group-title="{group}"']
        if logo:
            attrs.append(f'tvg-logo="{logo}"')
        lines.append(f"#EXTINF:-1 {' '.join(attrs)},{title}")
        lines.append(url)
    return "\n".join(lines) + "\n"


@pytest.fixture
def playlist_body():
    """Return the :func:`build_playlist` helper."""

    return build_playlist
