"""Dashboard statistics."""
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class NamedCount:
    name: str
    count: int


@dataclass
class YearCount:
    year: int
    count: int


@dataclass
class MonthCount:
    month: str  # "YYYY-MM"
    count: int


@dataclass
class Spend:
    """Admin-only spend, in major currency units with two decimals."""
    total: str
    average: str


@dataclass
class Insights:
    top_artist: Optional[str]
    oldest_year: Optional[int]
    newest_year: Optional[int]
    average_year: Optional[int]


@dataclass
class DashboardStats:
    total_units: int
    unique_artists: int
    favorite_count: int
    special_count: int
    top_artists: list[NamedCount] = field(default_factory=list)
    years: list[YearCount] = field(default_factory=list)
    formats: list[NamedCount] = field(default_factory=list)
    monthly_additions: list[MonthCount] = field(default_factory=list)
    genres: Optional[list[NamedCount]] = None  # None when no record has a genre
    insights: Optional[Insights] = None
    spend: Optional[Spend] = None
