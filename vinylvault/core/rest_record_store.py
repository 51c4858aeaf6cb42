"""Hosted record store backend (Supabase / PostgREST `records` table) over httpx."""
import logging
from typing import Any, List, Optional, Sequence

import httpx

from vinylvault.config import HTTP_TIMEOUT_SEC
from vinylvault.core.change_feed import ChangeFeed
from vinylvault.core.record_store import (
    RecordNotFoundError,
    RecordStore,
    RecordStoreError,
    writable,
)
from vinylvault.models.record import Record

logger = logging.getLogger(__name__)


class RestRecordStore(RecordStore):
    """Reads and point writes against `<base_url>/rest/v1/<table>`.

    Timestamps are maintained by the database. Change events are published
    for writes made through this process only.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        feed: Optional[ChangeFeed] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        super().__init__(feed)
        self._client = client or httpx.Client(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
            timeout=HTTP_TIMEOUT_SEC,
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, params: dict[str, str], **kwargs: Any) -> List[dict]:
        try:
            response = self._client.request(method, f"/{self.table}", params=params, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            detail = e.response.text[:200]
            raise RecordStoreError(
                f"{method} {self.table} failed ({e.response.status_code}): {detail}"
            ) from e
        except httpx.HTTPError as e:
            raise RecordStoreError(f"{method} {self.table} failed: {e}") from e
        if response.status_code == 204 or not response.content:
            return []
        try:
            data = response.json()
        except ValueError as e:
            raise RecordStoreError(f"{method} {self.table}: invalid JSON response") from e
        return data if isinstance(data, list) else [data]

    def list_records(
        self,
        *,
        columns: Optional[Sequence[str]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        missing_cover: bool = False,
        limit: Optional[int] = None,
    ) -> List[Record]:
        select = ",".join(dict.fromkeys(["id", *columns])) if columns else "*"
        params = {"select": select}
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}.nullslast"
        if missing_cover:
            params["cover_url"] = "is.null"
        if limit is not None:
            params["limit"] = str(limit)
        out = []
        for row in self._request("GET", params):
            try:
                out.append(Record.from_dict(row))
            except (KeyError, TypeError):
                logger.warning("Skipping malformed record row: %r", row)
        return out

    def get_record(self, record_id: str) -> Optional[Record]:
        rows = self._request("GET", {"select": "*", "id": f"eq.{record_id}"})
        return Record.from_dict(rows[0]) if rows else None

    def insert_record(self, fields: dict[str, Any]) -> Record:
        rows = self._request(
            "POST",
            {"select": "*"},
            json=writable(fields),
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise RecordStoreError("Insert returned no row")
        record = Record.from_dict(rows[0])
        self._notify("insert", record.id)
        return record

    def update_record(self, record_id: str, fields: dict[str, Any]) -> Record:
        rows = self._request(
            "PATCH",
            {"id": f"eq.{record_id}", "select": "*"},
            json=writable(fields),
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise RecordNotFoundError(record_id)
        self._notify("update", record_id)
        return Record.from_dict(rows[0])

    def delete_record(self, record_id: str) -> None:
        rows = self._request(
            "DELETE",
            {"id": f"eq.{record_id}", "select": "id"},
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise RecordNotFoundError(record_id)
        self._notify("delete", record_id)
