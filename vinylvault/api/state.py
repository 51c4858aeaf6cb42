"""Shared application state and caller session (injected into routes)."""
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException

from vinylvault.config import (
    ADMIN_EMAILS,
    ADMIN_TOKEN,
    RECORDS_PATH,
    SUPABASE_KEY,
    SUPABASE_URL,
)
from vinylvault.core.cover_cache import CoverCache
from vinylvault.core.cover_resolver import CoverResolver
from vinylvault.core.dashboard import DashboardService
from vinylvault.core.record_store import JsonRecordStore, RecordStore
from vinylvault.core.rest_record_store import RestRecordStore
from vinylvault.core.session import Session, session_from_credentials

logger = logging.getLogger(__name__)


def create_store() -> RecordStore:
    """Hosted store when SUPABASE_URL/SUPABASE_KEY are set, else the local JSON file."""
    if SUPABASE_URL and SUPABASE_KEY:
        logger.info("Using hosted record store at %s", SUPABASE_URL)
        return RestRecordStore(SUPABASE_URL, SUPABASE_KEY)
    logger.info("Using local record store %s", RECORDS_PATH)
    return JsonRecordStore(RECORDS_PATH)


class AppState:
    def __init__(
        self,
        store: Optional[RecordStore] = None,
        resolver: Optional[CoverResolver] = None,
        cover_cache: Optional[CoverCache] = None,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._dashboard: Optional[DashboardService] = None
        self.cover_cache = cover_cache or CoverCache()

    @property
    def store(self) -> RecordStore:
        if self._store is None:
            self._store = create_store()
        return self._store

    @property
    def dashboard(self) -> DashboardService:
        if self._dashboard is None:
            self._dashboard = DashboardService(self.store)
            self._dashboard.start()
        return self._dashboard

    @property
    def resolver(self) -> CoverResolver:
        if self._resolver is None:
            self._resolver = CoverResolver()
        return self._resolver

    async def aclose(self) -> None:
        if self._dashboard is not None:
            self._dashboard.stop()
        if self._resolver is not None:
            await self._resolver.aclose()
        if self._store is not None:
            self._store.close()


_state = AppState()


def get_state() -> AppState:
    return _state


def get_session(
    authorization: Optional[str] = Header(default=None),
    x_admin_email: Optional[str] = Header(default=None),
) -> Session:
    """Session from `Authorization: Bearer <token>` and `X-Admin-Email`."""
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    return session_from_credentials(token, x_admin_email, ADMIN_TOKEN, ADMIN_EMAILS)


def require_admin(session: Session = Depends(get_session)) -> Session:
    if not session.privileged:
        raise HTTPException(status_code=401, detail="Admin sign-in required")
    return session
