"""Core services: record store, catalog pipeline, dashboard, cover lookup."""
from vinylvault.core.cover_resolver import CoverResolver
from vinylvault.core.dashboard import DashboardService
from vinylvault.core.record_store import JsonRecordStore, RecordStore

__all__ = ["CoverResolver", "DashboardService", "JsonRecordStore", "RecordStore"]
