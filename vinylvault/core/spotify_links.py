"""Spotify listen links for a record: search link and parsed direct link."""
import re
from typing import Optional
from urllib.parse import quote

from vinylvault.models.record import Record

SPOTIFY_SEARCH_BASE = "https://open.spotify.com/search/"

_SPOTIFY_URL_REGEX = re.compile(
    r"^https?://(?:open\.)?spotify\.com/(?:intl-[a-z]{2}(?:-[a-z]{2})?/)?(album|playlist)/([a-zA-Z0-9]+)(?:[/?#]|$)",
    re.IGNORECASE,
)


def parse_spotify_url(url: Optional[str]) -> Optional[str]:
    """Return e.g. 'spotify:album:<id>' for an album/playlist web URL, or None."""
    if not url:
        return None
    match = _SPOTIFY_URL_REGEX.match(url.strip())
    if not match:
        return None
    return f"spotify:{match.group(1).lower()}:{match.group(2)}"


def search_url(record: Record) -> str:
    return SPOTIFY_SEARCH_BASE + quote(f"{record.artist} {record.album}".strip(), safe="")


def listen_links(record: Record) -> dict:
    return {
        "search_url": search_url(record),
        "direct_url": record.spotify_url or None,
        "spotify_uri": parse_spotify_url(record.spotify_url),
    }
