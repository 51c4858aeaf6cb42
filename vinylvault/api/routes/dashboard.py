"""Dashboard statistics (spend only for admin sessions)."""
import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from vinylvault.api.state import AppState, get_session, get_state
from vinylvault.core.record_store import RecordStoreError
from vinylvault.core.session import Session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def get_dashboard(
    state: AppState = Depends(get_state),
    session: Session = Depends(get_session),
):
    try:
        stats = state.dashboard.stats(session)
    except RecordStoreError as e:
        logger.error("Loading dashboard failed: %s", e)
        raise HTTPException(status_code=502, detail="Failed to load records")
    data = asdict(stats)
    if stats.spend is None:
        data.pop("spend")
    return data
