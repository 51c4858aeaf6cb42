"""Tests for the hosted (PostgREST) record store backend."""
import json

import httpx
import pytest

from vinylvault.core.record_store import RecordNotFoundError, RecordStoreError
from vinylvault.core.rest_record_store import RestRecordStore

ROW = {
    "id": 7,
    "artist": "Air",
    "album": "Moon Safari",
    "year": 1998,
    "quantity": 2,
    "cover_url": None,
    "musicbrainz_release_id": "ignored",
}


def store_with(handler) -> RestRecordStore:
    client = httpx.Client(
        base_url="https://db.test/rest/v1",
        transport=httpx.MockTransport(handler),
    )
    return RestRecordStore("https://db.test", "anon-key", client=client)


def test_default_client_sends_api_key() -> None:
    store = RestRecordStore("https://db.test/", "anon-key")
    assert store._client.headers["apikey"] == "anon-key"
    assert store._client.headers["Authorization"] == "Bearer anon-key"
    assert str(store._client.base_url) == "https://db.test/rest/v1/"
    store.close()


def test_list_builds_postgrest_query() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[ROW])

    records = store_with(handler).list_records(
        columns=("artist", "album", "cover_url"),
        order_by="created_at",
        descending=True,
        missing_cover=True,
        limit=500,
    )

    params = seen[0].url.params
    assert seen[0].url.path == "/rest/v1/records"
    assert params["select"] == "id,artist,album,cover_url"
    assert params["order"] == "created_at.desc.nullslast"
    assert params["cover_url"] == "is.null"
    assert params["limit"] == "500"
    assert records[0].id == "7"
    assert records[0].quantity == 2


def test_insert_sends_only_writable_fields() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json=[ROW])

    store = store_with(handler)
    events = []
    store.feed.subscribe("records", events.append)
    record = store.insert_record({"id": "x", "artist": "Air", "album": "Moon Safari", "created_at": "now"})

    body = json.loads(seen[0].content)
    assert body == {"artist": "Air", "album": "Moon Safari"}
    assert seen[0].method == "POST"
    assert seen[0].headers["Prefer"] == "return=representation"
    assert record.album == "Moon Safari"
    assert [e.kind for e in events] == ["insert"]


def test_update_targets_id() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[dict(ROW, cover_url="http://img")])

    record = store_with(handler).update_record("7", {"cover_url": "http://img"})
    assert seen[0].method == "PATCH"
    assert seen[0].url.params["id"] == "eq.7"
    assert record.cover_url == "http://img"


def test_update_and_delete_of_missing_row_raise_not_found() -> None:
    store = store_with(lambda request: httpx.Response(200, json=[]))
    with pytest.raises(RecordNotFoundError):
        store.update_record("404", {"notes": "x"})
    with pytest.raises(RecordNotFoundError):
        store.delete_record("404")


def test_get_record() -> None:
    store = store_with(lambda request: httpx.Response(200, json=[ROW]))
    assert store.get_record("7").artist == "Air"
    assert store_with(lambda request: httpx.Response(200, json=[])).get_record("8") is None


def test_http_errors_become_store_errors() -> None:
    store = store_with(lambda request: httpx.Response(401, json={"message": "JWT expired"}))
    with pytest.raises(RecordStoreError, match="401"):
        store.list_records()


def test_connection_errors_become_store_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    with pytest.raises(RecordStoreError):
        store_with(handler).insert_record({"artist": "A", "album": "B"})
