"""Record store interface and the local JSON backend."""
import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

from vinylvault.config import RECORDS_TABLE
from vinylvault.core.change_feed import ChangeEvent, ChangeFeed
from vinylvault.models.record import WRITABLE_FIELDS, Record

logger = logging.getLogger(__name__)


class RecordStoreError(Exception):
    """Read or write against the record store failed."""


class RecordNotFoundError(RecordStoreError):
    def __init__(self, record_id: str) -> None:
        super().__init__(f"Record not found: {record_id}")
        self.record_id = record_id


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def writable(fields: dict[str, Any]) -> dict[str, Any]:
    """Drop id, timestamps and unknown keys from a write payload."""
    return {k: v for k, v in fields.items() if k in WRITABLE_FIELDS}


class RecordStore:
    """Source of truth for records. Every successful write is published on `feed`."""

    table = RECORDS_TABLE

    def __init__(self, feed: Optional[ChangeFeed] = None) -> None:
        self.feed = feed or ChangeFeed()

    def list_records(
        self,
        *,
        columns: Optional[Sequence[str]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        missing_cover: bool = False,
        limit: Optional[int] = None,
    ) -> List[Record]:
        raise NotImplementedError

    def get_record(self, record_id: str) -> Optional[Record]:
        raise NotImplementedError

    def insert_record(self, fields: dict[str, Any]) -> Record:
        raise NotImplementedError

    def update_record(self, record_id: str, fields: dict[str, Any]) -> Record:
        raise NotImplementedError

    def delete_record(self, record_id: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def _notify(self, kind: str, record_id: Optional[str]) -> None:
        self.feed.publish(ChangeEvent(table=self.table, kind=kind, record_id=record_id))


def _project(row: dict[str, Any], columns: Optional[Sequence[str]]) -> dict[str, Any]:
    if not columns:
        return row
    keep = set(columns) | {"id"}
    return {k: v for k, v in row.items() if k in keep}


def order_rows(rows: Iterable[dict[str, Any]], order_by: str, descending: bool) -> List[dict[str, Any]]:
    """Order rows by a column; rows without a value go last either way."""
    rows = list(rows)
    present = [r for r in rows if r.get(order_by) is not None]
    missing = [r for r in rows if r.get(order_by) is None]
    present.sort(key=lambda r: r[order_by], reverse=descending)
    return present + missing


class JsonRecordStore(RecordStore):
    """Records persisted to a single JSON file ({"records": [...]})."""

    def __init__(self, path: Path, feed: Optional[ChangeFeed] = None) -> None:
        super().__init__(feed)
        self._path = Path(path)
        self._lock = threading.RLock()

    def _load_rows(self) -> List[dict[str, Any]]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text())
        except json.JSONDecodeError as e:
            raise RecordStoreError(f"Corrupt record file {self._path}: {e}") from e
        except OSError as e:
            raise RecordStoreError(f"Cannot read {self._path}: {e}") from e
        rows = data.get("records", []) if isinstance(data, dict) else []
        return [r for r in rows if isinstance(r, dict) and r.get("id")]

    def _save_rows(self, rows: List[dict[str, Any]]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(json.dumps({"records": rows}, indent=2))
            tmp.replace(self._path)
        except OSError as e:
            raise RecordStoreError(f"Cannot write {self._path}: {e}") from e

    def list_records(
        self,
        *,
        columns: Optional[Sequence[str]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        missing_cover: bool = False,
        limit: Optional[int] = None,
    ) -> List[Record]:
        with self._lock:
            rows = self._load_rows()
        if missing_cover:
            rows = [r for r in rows if r.get("cover_url") is None]
        if order_by:
            rows = order_rows(rows, order_by, descending)
        if limit is not None:
            rows = rows[:limit]
        out = []
        for row in rows:
            try:
                out.append(Record.from_dict(_project(row, columns)))
            except (KeyError, TypeError):
                logger.warning("Skipping malformed record row: %r", row.get("id"))
        return out

    def get_record(self, record_id: str) -> Optional[Record]:
        with self._lock:
            for row in self._load_rows():
                if str(row["id"]) == record_id:
                    return Record.from_dict(row)
        return None

    def insert_record(self, fields: dict[str, Any]) -> Record:
        stamp = now_iso()
        row = Record(id=str(uuid.uuid4())).to_dict()
        row.update(writable(fields))
        row["created_at"] = stamp
        row["updated_at"] = stamp
        with self._lock:
            rows = self._load_rows()
            rows.append(row)
            self._save_rows(rows)
        self._notify("insert", row["id"])
        return Record.from_dict(row)

    def update_record(self, record_id: str, fields: dict[str, Any]) -> Record:
        with self._lock:
            rows = self._load_rows()
            for row in rows:
                if str(row["id"]) == record_id:
                    row.update(writable(fields))
                    row["updated_at"] = now_iso()
                    self._save_rows(rows)
                    updated = Record.from_dict(row)
                    break
            else:
                raise RecordNotFoundError(record_id)
        self._notify("update", record_id)
        return updated

    def delete_record(self, record_id: str) -> None:
        with self._lock:
            rows = self._load_rows()
            kept = [r for r in rows if str(r["id"]) != record_id]
            if len(kept) == len(rows):
                raise RecordNotFoundError(record_id)
            self._save_rows(kept)
        self._notify("delete", record_id)
