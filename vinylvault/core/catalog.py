"""Catalog view pipeline: filter, sort, keep the selected record stable.

Shared by the public catalog and the admin list so both order and filter
records the same way.
"""
from typing import Iterable, List, Mapping, Optional, Sequence
from urllib.parse import urlencode

from vinylvault.models.controls import (
    DEFAULT_SORT,
    LEGACY_SORT_ALIASES,
    CatalogControls,
    CatalogResult,
    SortKey,
)
from vinylvault.models.record import Record, numeric_year, parse_timestamp


def matches_query(record: Record, query: str) -> bool:
    """Case-insensitive substring match on artist, album, year and notes."""
    q = query.strip().lower()
    if not q:
        return True
    year = "" if record.year is None else str(record.year)
    return (
        q in (record.artist or "").lower()
        or q in (record.album or "").lower()
        or q in year.lower()
        or q in (record.notes or "").lower()
    )


def passes(record: Record, controls: CatalogControls) -> bool:
    if not matches_query(record, controls.query):
        return False
    if controls.show_favorites_only and not record.is_favorite:
        return False
    if controls.show_special_only and not record.is_special:
        return False
    if controls.format and record.format != controls.format:
        return False
    return True


def filter_records(records: Iterable[Record], controls: CatalogControls) -> List[Record]:
    return [r for r in records if passes(r, controls)]


def _artist_key(record: Record) -> tuple:
    artist, album = record.artist or "", record.album or ""
    return (artist.casefold(), artist, album.casefold(), album)


def _timestamp(value: Optional[str]) -> float:
    dt = parse_timestamp(value)
    return dt.timestamp() if dt else 0.0


def recency(record: Record) -> float:
    """Latest of created_at / updated_at as epoch seconds, 0 when neither is set."""
    return max(_timestamp(record.created_at), _timestamp(record.updated_at))


def sort_records(records: Iterable[Record], sort: SortKey) -> List[Record]:
    items = list(records)
    if sort == SortKey.ARTIST_ASC:
        return sorted(items, key=_artist_key)
    if sort == SortKey.ARTIST_DESC:
        # Exact reverse of ascending, tie-breaks included
        return list(reversed(sorted(items, key=_artist_key)))
    if sort == SortKey.YEAR_ASC:
        return sorted(items, key=lambda r: (numeric_year(r) is None, numeric_year(r) or 0))
    if sort == SortKey.YEAR_DESC:
        return sorted(items, key=lambda r: (numeric_year(r) is None, -(numeric_year(r) or 0)))
    if sort == SortKey.RECENT:
        return sorted(items, key=recency, reverse=True)
    raise ValueError(f"Unknown sort key: {sort!r}")


def select_record(items: Sequence[Record], selected_id: Optional[str]) -> Optional[Record]:
    """Keep the selected record if still listed, else fall back to the first one."""
    if selected_id is not None:
        for record in items:
            if record.id == selected_id:
                return record
    return items[0] if items else None


def run_catalog(
    records: Iterable[Record],
    controls: CatalogControls,
    selected_id: Optional[str] = None,
) -> CatalogResult:
    items = sort_records(filter_records(records, controls), controls.sort)
    return CatalogResult(items=items, selected=select_record(items, selected_id))


class CatalogView:
    """Holds the selection across control or data changes for one viewer."""

    def __init__(self, records: Iterable[Record] = (), controls: Optional[CatalogControls] = None) -> None:
        self._records = list(records)
        self._controls = controls or CatalogControls()
        self._selected_id: Optional[str] = None
        self._result = self._recompute()

    @property
    def items(self) -> List[Record]:
        return self._result.items

    @property
    def selected(self) -> Optional[Record]:
        return self._result.selected

    @property
    def controls(self) -> CatalogControls:
        return self._controls

    def set_controls(self, controls: CatalogControls) -> CatalogResult:
        self._controls = controls
        self._result = self._recompute()
        return self._result

    def set_records(self, records: Iterable[Record]) -> CatalogResult:
        self._records = list(records)
        self._result = self._recompute()
        return self._result

    def select(self, record_id: str) -> Optional[Record]:
        """Select a listed record by id. Unlisted ids leave the selection unchanged."""
        for record in self._result.items:
            if record.id == record_id:
                self._selected_id = record_id
                self._result.selected = record
                return record
        return self._result.selected

    def _recompute(self) -> CatalogResult:
        result = run_catalog(self._records, self._controls, self._selected_id)
        self._selected_id = result.selected.id if result.selected else None
        return result


def distinct_formats(records: Iterable[Record]) -> List[str]:
    """Sorted non-empty formats for the format dropdown."""
    return sorted({(r.format or "").strip() for r in records} - {""}, key=str.casefold)


def parse_sort(raw: Optional[str]) -> SortKey:
    """Accept current keys and legacy aliases; anything else is artist-asc."""
    if not raw:
        return DEFAULT_SORT
    if raw in LEGACY_SORT_ALIASES:
        return LEGACY_SORT_ALIASES[raw]
    try:
        return SortKey(raw)
    except ValueError:
        return DEFAULT_SORT


def controls_from_params(params: Mapping[str, str]) -> CatalogControls:
    return CatalogControls(
        query=params.get("q") or "",
        sort=parse_sort(params.get("sort")),
        format=params.get("format") or "",
        show_favorites_only=params.get("favs") == "1",
        show_special_only=params.get("special") == "1",
    )


def controls_to_params(controls: CatalogControls) -> dict:
    """Address-bar form of the controls; defaults are left out."""
    params = {}
    if controls.query:
        params["q"] = controls.query
    if controls.sort != DEFAULT_SORT:
        params["sort"] = controls.sort.value
    if controls.format:
        params["format"] = controls.format
    if controls.show_favorites_only:
        params["favs"] = "1"
    if controls.show_special_only:
        params["special"] = "1"
    return params


def encode_controls(controls: CatalogControls) -> str:
    return urlencode(controls_to_params(controls))
