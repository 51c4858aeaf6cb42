"""Catalog view controls and the selected-record state."""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from vinylvault.models.record import Record


class SortKey(str, Enum):
    ARTIST_ASC = "artist-asc"
    ARTIST_DESC = "artist-desc"
    YEAR_ASC = "year-asc"
    YEAR_DESC = "year-desc"
    RECENT = "recent"


DEFAULT_SORT = SortKey.ARTIST_ASC

# Old links used bare 'artist' / 'year'
LEGACY_SORT_ALIASES = {
    "artist": SortKey.ARTIST_ASC,
    "year": SortKey.YEAR_ASC,
}


@dataclass(frozen=True)
class CatalogControls:
    """User-supplied filter and sort settings for the catalog view."""
    query: str = ""
    sort: SortKey = DEFAULT_SORT
    format: str = ""
    show_favorites_only: bool = False
    show_special_only: bool = False


@dataclass
class CatalogResult:
    """Filtered/sorted records plus the record shown in the large preview."""
    items: List[Record]
    selected: Optional[Record]
