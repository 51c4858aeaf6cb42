"""Data models for records, catalog controls, and dashboard statistics."""
from vinylvault.models.controls import CatalogControls, CatalogResult, SortKey
from vinylvault.models.dashboard import DashboardStats
from vinylvault.models.record import Record

__all__ = [
    "CatalogControls",
    "CatalogResult",
    "DashboardStats",
    "Record",
    "SortKey",
]
