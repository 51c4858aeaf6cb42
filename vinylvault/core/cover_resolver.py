"""Cover art lookup: MusicBrainz search, then Cover Art Archive images.

Release-group art is preferred (one image per album regardless of
pressing). Many release groups have no art of their own, so we fall back
to the first release in the group, and finally to a direct release search
for albums whose release-group search matched nothing (compilations,
reissues with different titles).

Every failed, non-2xx or unparseable response counts as "no data" for
that step. A missing cover is a normal outcome, not an error.
"""
import logging
from typing import Any, Awaitable, Callable, List, Optional

import httpx

from vinylvault.config import COVERART_BASE, HTTP_TIMEOUT_SEC, MUSICBRAINZ_BASE, USER_AGENT

logger = logging.getLogger(__name__)

Step = Callable[[str], Awaitable[Optional[str]]]


def _quote_term(value: str) -> str:
    """Quote a value for a Lucene field query."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def build_query(artist: str, album: str) -> str:
    return f"artist:{_quote_term(artist)} AND release:{_quote_term(album)}"


def front_image(data: Optional[dict]) -> Optional[str]:
    """URL of the image flagged `front` in a CAA listing, if any."""
    for image in (data or {}).get("images") or []:
        if isinstance(image, dict) and image.get("front") and image.get("image"):
            return image["image"]
    return None


def first_id(data: Optional[dict], key: str) -> Optional[str]:
    """Id of the first entry of a MusicBrainz result list (`release-groups`, `releases`)."""
    items = (data or {}).get(key) or []
    if items and isinstance(items[0], dict):
        return items[0].get("id")
    return None


class CoverResolver:
    """resolve(artist, album) -> cover URL or None.

    Calls are made one at a time; batch callers add their own delay between
    records.

    Usage:
        async with CoverResolver() as resolver:
            url = await resolver.resolve("Radiohead", "OK Computer")
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        musicbrainz_base: str = MUSICBRAINZ_BASE,
        coverart_base: str = COVERART_BASE,
    ) -> None:
        self._mb = musicbrainz_base.rstrip("/")
        self._caa = coverart_base.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=HTTP_TIMEOUT_SEC,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "CoverResolver":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def resolve(self, artist: str, album: str) -> Optional[str]:
        artist, album = (artist or "").strip(), (album or "").strip()
        if not artist or not album:
            raise ValueError("artist and album are required")
        query = build_query(artist, album)
        steps: List[Step] = [self._from_release_group_search, self._from_release_search]
        for step in steps:
            url = await step(query)
            if url:
                logger.debug("Cover for %s - %s via %s", artist, album, step.__name__)
                return url
        logger.debug("No cover for %s - %s", artist, album)
        return None

    async def _from_release_group_search(self, query: str) -> Optional[str]:
        rgid = first_id(
            await self._get_json(f"{self._mb}/release-group/", params={"query": query, "fmt": "json"}),
            "release-groups",
        )
        if not rgid:
            return None
        url = front_image(await self._get_json(f"{self._caa}/release-group/{rgid}"))
        if url:
            return url
        release_id = first_id(
            await self._get_json(f"{self._mb}/release", params={"release-group": rgid, "fmt": "json"}),
            "releases",
        )
        return await self._release_front(release_id) if release_id else None

    async def _from_release_search(self, query: str) -> Optional[str]:
        release_id = first_id(
            await self._get_json(f"{self._mb}/release/", params={"query": query, "fmt": "json"}),
            "releases",
        )
        return await self._release_front(release_id) if release_id else None

    async def _release_front(self, release_id: str) -> Optional[str]:
        """Canonical /front URL if it exists, else the front image from the release listing."""
        canonical = f"{self._caa}/release/{release_id}/front"
        if await self._exists(canonical):
            return canonical
        return front_image(await self._get_json(f"{self._caa}/release/{release_id}"))

    async def _get_json(self, url: str, params: Optional[dict] = None) -> Optional[dict]:
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.debug("GET %s failed: %s", url, e)
            return None
        if not response.is_success:
            logger.debug("GET %s -> %s", url, response.status_code)
            return None
        try:
            data = response.json()
        except ValueError:
            logger.debug("GET %s returned invalid JSON", url)
            return None
        return data if isinstance(data, dict) else None

    async def _exists(self, url: str) -> bool:
        try:
            response = await self._client.head(url)
        except httpx.HTTPError as e:
            logger.debug("HEAD %s failed: %s", url, e)
            return False
        return response.is_success
