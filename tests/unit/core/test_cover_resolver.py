"""Tests for the MusicBrainz / Cover Art Archive fallback chain."""
from typing import Callable, Dict, Tuple

import httpx
import pytest

from vinylvault.config import USER_AGENT
from vinylvault.core.cover_resolver import CoverResolver, build_query, first_id, front_image

MB = "https://musicbrainz.test/ws/2"
CAA = "https://coverartarchive.test"

Route = Tuple[str, str, str]  # (method, host, path)


class FakeServices:
    """Serves canned MusicBrainz/CAA responses and records every request."""

    def __init__(self, routes: Dict[Route, Callable[[httpx.Request], httpx.Response]]) -> None:
        self.routes = routes
        self.requests: list = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.host, request.url.path))
        if handler is None:
            return httpx.Response(404)
        return handler(request)

    def paths(self) -> list:
        return [f"{r.method} {r.url.host}{r.url.path}" for r in self.requests]


def json_response(data) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(200, json=data)


def status(code: int) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(code)


def resolver_for(services: FakeServices) -> CoverResolver:
    client = httpx.AsyncClient(transport=httpx.MockTransport(services))
    return CoverResolver(client=client, musicbrainz_base=MB, coverart_base=CAA)


RG_SEARCH = ("GET", "musicbrainz.test", "/ws/2/release-group/")
RG_RELEASES = ("GET", "musicbrainz.test", "/ws/2/release")
RELEASE_SEARCH = ("GET", "musicbrainz.test", "/ws/2/release/")
FRONT_IMAGE = "http://coverartarchive.test/release/r-1/111.jpg"


class TestHelpers:
    def test_build_query_quotes_terms(self) -> None:
        assert build_query("Radiohead", "OK Computer") == 'artist:"Radiohead" AND release:"OK Computer"'
        assert build_query('The "Band"', "X") == 'artist:"The \\"Band\\"" AND release:"X"'

    def test_front_image_picks_front_flag(self) -> None:
        data = {"images": [{"front": False, "image": "back.jpg"}, {"front": True, "image": "front.jpg"}]}
        assert front_image(data) == "front.jpg"
        assert front_image({"images": [{"front": False, "image": "back.jpg"}]}) is None
        assert front_image(None) is None

    def test_first_id(self) -> None:
        assert first_id({"releases": [{"id": "a"}, {"id": "b"}]}, "releases") == "a"
        assert first_id({"releases": []}, "releases") is None

    def test_default_client_identifies_with_contact(self) -> None:
        resolver = CoverResolver()
        assert resolver._client.headers["User-Agent"] == USER_AGENT
        assert "(" in USER_AGENT and ")" in USER_AGENT


@pytest.mark.asyncio
async def test_release_group_front_image_wins() -> None:
    services = FakeServices({
        RG_SEARCH: json_response({"release-groups": [{"id": "rg-1"}, {"id": "rg-2"}]}),
        ("GET", "coverartarchive.test", "/release-group/rg-1"): json_response(
            {"images": [{"front": True, "image": "http://coverartarchive.test/release/x/1.jpg"}]}
        ),
    })
    async with resolver_for(services) as resolver:
        url = await resolver.resolve("Radiohead", "OK Computer")

    assert url == "http://coverartarchive.test/release/x/1.jpg"
    assert services.paths() == [
        "GET musicbrainz.test/ws/2/release-group/",
        "GET coverartarchive.test/release-group/rg-1",
    ]
    assert services.requests[0].url.params["query"] == 'artist:"Radiohead" AND release:"OK Computer"'
    assert services.requests[0].url.params["fmt"] == "json"


@pytest.mark.asyncio
async def test_falls_back_to_canonical_front_of_first_release() -> None:
    services = FakeServices({
        RG_SEARCH: json_response({"release-groups": [{"id": "rg-1"}]}),
        ("GET", "coverartarchive.test", "/release-group/rg-1"): status(404),
        RG_RELEASES: json_response({"releases": [{"id": "r-1"}, {"id": "r-2"}]}),
        ("HEAD", "coverartarchive.test", "/release/r-1/front"): status(200),
    })
    async with resolver_for(services) as resolver:
        url = await resolver.resolve("Radiohead", "OK Computer")

    assert url == f"{CAA}/release/r-1/front"
    assert services.requests[2].url.params["release-group"] == "rg-1"


@pytest.mark.asyncio
async def test_uses_release_listing_when_front_probe_fails() -> None:
    services = FakeServices({
        RG_SEARCH: json_response({"release-groups": [{"id": "rg-1"}]}),
        ("GET", "coverartarchive.test", "/release-group/rg-1"): json_response({"images": []}),
        RG_RELEASES: json_response({"releases": [{"id": "r-1"}]}),
        ("HEAD", "coverartarchive.test", "/release/r-1/front"): status(404),
        ("GET", "coverartarchive.test", "/release/r-1"): json_response(
            {"images": [{"front": True, "image": FRONT_IMAGE}]}
        ),
    })
    async with resolver_for(services) as resolver:
        assert await resolver.resolve("Radiohead", "OK Computer") == FRONT_IMAGE


@pytest.mark.asyncio
async def test_direct_release_search_when_no_release_group() -> None:
    services = FakeServices({
        RG_SEARCH: json_response({"release-groups": []}),
        RELEASE_SEARCH: json_response({"releases": [{"id": "r-9"}]}),
        ("HEAD", "coverartarchive.test", "/release/r-9/front"): status(200),
    })
    async with resolver_for(services) as resolver:
        url = await resolver.resolve("Various Artists", "Some Compilation")

    assert url == f"{CAA}/release/r-9/front"
    assert "GET coverartarchive.test/release-group/" not in " ".join(services.paths())


@pytest.mark.asyncio
async def test_direct_release_search_after_release_group_exhausted() -> None:
    services = FakeServices({
        RG_SEARCH: json_response({"release-groups": [{"id": "rg-1"}]}),
        RG_RELEASES: json_response({"releases": []}),
        RELEASE_SEARCH: json_response({"releases": [{"id": "r-1"}]}),
        ("GET", "coverartarchive.test", "/release/r-1"): json_response(
            {"images": [{"front": True, "image": FRONT_IMAGE}]}
        ),
    })
    async with resolver_for(services) as resolver:
        assert await resolver.resolve("Radiohead", "OK Computer") == FRONT_IMAGE


@pytest.mark.asyncio
async def test_no_match_returns_none() -> None:
    services = FakeServices({
        RG_SEARCH: json_response({"release-groups": []}),
        RELEASE_SEARCH: json_response({"releases": []}),
    })
    async with resolver_for(services) as resolver:
        assert await resolver.resolve("Qwxzv Nonsense", "Plorbtastic") is None
    assert len(services.requests) == 2


@pytest.mark.asyncio
async def test_network_errors_degrade_to_none() -> None:
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    async with resolver_for(FakeServices({RG_SEARCH: boom, RELEASE_SEARCH: boom})) as resolver:
        assert await resolver.resolve("Radiohead", "OK Computer") is None


@pytest.mark.asyncio
async def test_invalid_json_and_server_errors_degrade_to_none() -> None:
    services = FakeServices({
        RG_SEARCH: lambda request: httpx.Response(200, content=b"<html>busy</html>"),
        RELEASE_SEARCH: status(503),
    })
    async with resolver_for(services) as resolver:
        assert await resolver.resolve("Radiohead", "OK Computer") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("artist,album", [("", "OK Computer"), ("Radiohead", "   ")])
async def test_blank_input_rejected_before_network(artist, album) -> None:
    services = FakeServices({})
    async with resolver_for(services) as resolver:
        with pytest.raises(ValueError):
            await resolver.resolve(artist, album)
    assert services.requests == []
