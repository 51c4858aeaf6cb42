"""Dashboard aggregation over a record snapshot, and the live snapshot service."""
import logging
import math
import threading
import time
from collections import defaultdict
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional

from vinylvault.config import DASHBOARD_LIMIT, DASHBOARD_MAX_AGE_SEC
from vinylvault.core.change_feed import ChangeEvent
from vinylvault.core.record_store import RecordStore
from vinylvault.core.session import ANONYMOUS, Session
from vinylvault.models.dashboard import (
    DashboardStats,
    Insights,
    MonthCount,
    NamedCount,
    Spend,
    YearCount,
)
from vinylvault.models.record import Record, numeric_year, parse_timestamp

logger = logging.getLogger(__name__)

TOP_ARTISTS = 10
TOP_GENRES = 12
TRAILING_MONTHS = 12
UNKNOWN = "Unknown"

DASHBOARD_COLUMNS = (
    "id", "artist", "album", "year", "quantity", "format", "genre",
    "is_special", "is_favorite", "created_at", "updated_at",
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _grouped(records: Iterable[Record], key) -> List[NamedCount]:
    """Sum quantity per key, largest first (ties keep first-seen order)."""
    totals: Dict[str, int] = {}
    for r in records:
        k = key(r)
        totals[k] = totals.get(k, 0) + r.quantity
    return sorted((NamedCount(name, count) for name, count in totals.items()), key=lambda c: -c.count)


def _label(value: Optional[str]) -> str:
    return (value or "").strip() or UNKNOWN


def top_artists(records: Iterable[Record], limit: int = TOP_ARTISTS) -> List[NamedCount]:
    return _grouped(records, lambda r: r.artist)[:limit]


def year_distribution(records: Iterable[Record]) -> List[YearCount]:
    totals: Dict[int, int] = defaultdict(int)
    for r in records:
        year = numeric_year(r)
        if year is not None:
            totals[year] += r.quantity
    return [YearCount(year, totals[year]) for year in sorted(totals)]


def format_distribution(records: Iterable[Record]) -> List[NamedCount]:
    return _grouped(records, lambda r: _label(r.format))


def genre_distribution(records: List[Record], limit: int = TOP_GENRES) -> Optional[List[NamedCount]]:
    """None unless at least one record has a genre."""
    if not any((r.genre or "").strip() for r in records):
        return None
    return _grouped(records, lambda r: _label(r.genre))[:limit]


def _created_month(record: Record) -> Optional[str]:
    dt = parse_timestamp(record.created_at)
    if dt is None:
        return None
    dt = dt.astimezone(timezone.utc)
    return f"{dt.year:04d}-{dt.month:02d}"


def trailing_months(now: datetime, count: int = TRAILING_MONTHS) -> List[str]:
    """`count` YYYY-MM keys ending at now's month, oldest first."""
    out = []
    year, month = now.year, now.month
    for _ in range(count):
        out.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(out))


def monthly_additions(records: Iterable[Record], now: Optional[datetime] = None) -> List[MonthCount]:
    now = now or datetime.now(timezone.utc)
    totals: Dict[str, int] = defaultdict(int)
    for r in records:
        key = _created_month(r)
        if key:
            totals[key] += r.quantity
    return [MonthCount(month, totals.get(month, 0)) for month in trailing_months(now)]


def weighted_average_year(records: Iterable[Record]) -> Optional[int]:
    weighted = units = 0
    for r in records:
        year = numeric_year(r)
        if year is not None:
            weighted += year * r.quantity
            units += r.quantity
    if units == 0:
        return None
    return _round_half_up(weighted / units)


def _money(cents: Decimal) -> str:
    return str((cents / 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def compute_spend(records: Iterable[Record], total_units: int) -> Spend:
    total_cents = sum(
        (Decimal(r.cost_cents) * max(1, r.quantity) for r in records if r.cost_cents is not None),
        Decimal(0),
    )
    return Spend(total=_money(total_cents), average=_money(total_cents / max(1, total_units)))


def compute_stats(
    records: Iterable[Record],
    session: Session = ANONYMOUS,
    now: Optional[datetime] = None,
) -> DashboardStats:
    records = list(records)
    total_units = sum(r.quantity for r in records)
    artists = top_artists(records)
    years = year_distribution(records)
    stats = DashboardStats(
        total_units=total_units,
        unique_artists=len({r.artist for r in records}),
        favorite_count=sum(1 for r in records if r.is_favorite),
        special_count=sum(1 for r in records if r.is_special),
        top_artists=artists,
        years=years,
        formats=format_distribution(records),
        monthly_additions=monthly_additions(records, now),
        genres=genre_distribution(records),
        insights=Insights(
            top_artist=artists[0].name if artists else None,
            oldest_year=years[0].year if years else None,
            newest_year=years[-1].year if years else None,
            average_year=weighted_average_year(records),
        ),
    )
    if session.privileged:
        stats.spend = compute_spend(records, total_units)
    return stats


class DashboardService:
    """Keeps a record snapshot fresh.

    The snapshot is dropped on any change event from the store, and re-pulled
    once it is older than `max_age_sec` so writes made outside this process still show up.
    """

    def __init__(
        self,
        store: RecordStore,
        limit: int = DASHBOARD_LIMIT,
        max_age_sec: float = DASHBOARD_MAX_AGE_SEC,
        clock=time.monotonic,
    ) -> None:
        self._store = store
        self._limit = limit
        self._max_age_sec = max_age_sec
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot: Optional[List[Record]] = None
        self._pulled_at = 0.0
        self._token: Optional[int] = None

    def start(self) -> None:
        if self._token is None:
            self._token = self._store.feed.subscribe(self._store.table, self._on_change)

    def stop(self) -> None:
        if self._token is not None:
            self._store.feed.unsubscribe(self._token)
            self._token = None

    def _on_change(self, event: ChangeEvent) -> None:
        logger.debug("Dashboard snapshot stale after %s %s", event.kind, event.record_id)
        with self._lock:
            self._snapshot = None

    def snapshot(self, include_cost: bool = False) -> List[Record]:
        """Current records; cost data is only fetched for privileged callers."""
        if include_cost:
            return self._store.list_records(order_by="created_at", descending=True, limit=self._limit)
        with self._lock:
            now = self._clock()
            if self._snapshot is None or now - self._pulled_at >= self._max_age_sec:
                self._snapshot = self._store.list_records(
                    columns=DASHBOARD_COLUMNS,
                    order_by="created_at",
                    descending=True,
                    limit=self._limit,
                )
                self._pulled_at = now
            return self._snapshot

    def stats(self, session: Session = ANONYMOUS, now: Optional[datetime] = None) -> DashboardStats:
        return compute_stats(self.snapshot(include_cost=session.privileged), session, now)
