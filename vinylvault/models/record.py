"""Record entity and its dict (store row) conversion."""
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

# Fields the admin form may write; id and timestamps belong to the store
WRITABLE_FIELDS = (
    "artist",
    "album",
    "year",
    "quantity",
    "cost_cents",
    "format",
    "genre",
    "notes",
    "is_special",
    "is_favorite",
    "spotify_url",
    "cover_url",
)


@dataclass
class Record:
    """One catalog entry. quantity weights every aggregate."""
    id: str
    artist: str = ""
    album: str = ""
    year: Optional[int] = None
    quantity: int = 1
    cost_cents: Optional[int] = None
    format: Optional[str] = None
    genre: Optional[str] = None
    notes: Optional[str] = None
    is_special: bool = False
    is_favorite: bool = False
    spotify_url: Optional[str] = None
    cover_url: Optional[str] = None
    created_at: Optional[str] = None  # ISO 8601
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, row: dict[str, Any]) -> "Record":
        """Build from a store row, ignoring unknown columns (e.g. musicbrainz_release_id)."""
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in row.items() if k in known}
        if "id" not in data:
            raise KeyError("id")
        data["id"] = str(data["id"])
        data["artist"] = data.get("artist") or ""
        data["album"] = data.get("album") or ""
        data["quantity"] = _as_int(data.get("quantity"), default=1)
        data["is_special"] = bool(data.get("is_special"))
        data["is_favorite"] = bool(data.get("is_favorite"))
        return cls(**data)

    def to_dict(self, include_cost: bool = True) -> dict[str, Any]:
        d = asdict(self)
        if not include_cost:
            d.pop("cost_cents", None)
        return d


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def numeric_year(record: Record) -> Optional[int]:
    """Year as int, or None when missing or not numeric."""
    if record.year is None or isinstance(record.year, bool):
        return None
    try:
        return int(record.year)
    except (TypeError, ValueError):
        return None


_TIMESTAMP = TypeAdapter(datetime)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Store timestamp as an aware datetime (naive values taken as UTC), None when unparseable."""
    if not value:
        return None
    try:
        dt = _TIMESTAMP.validate_python(str(value))
    except ValidationError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
