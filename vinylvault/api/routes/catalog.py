"""Public catalog: search, filter, sort and the selected preview record."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from vinylvault.api.routes.records import record_to_dict
from vinylvault.api.state import AppState, get_session, get_state
from vinylvault.core.catalog import controls_from_params, distinct_formats, encode_controls, run_catalog
from vinylvault.core.record_store import RecordStoreError
from vinylvault.core.session import Session

logger = logging.getLogger(__name__)

router = APIRouter()

PUBLIC_COLUMNS = (
    "id", "artist", "album", "year", "quantity", "format", "genre", "notes",
    "is_special", "is_favorite", "cover_url", "spotify_url", "created_at", "updated_at",
)


@router.get("")
def get_catalog(
    request: Request,
    selected: Optional[str] = None,
    state: AppState = Depends(get_state),
    session: Session = Depends(get_session),
):
    """Catalog view for the controls in the query string (q, sort, format, favs, special)."""
    controls = controls_from_params(request.query_params)
    columns = None if session.privileged else PUBLIC_COLUMNS
    try:
        records = state.store.list_records(columns=columns, order_by="artist")
    except RecordStoreError as e:
        logger.error("Loading catalog failed: %s", e)
        raise HTTPException(status_code=502, detail="Failed to load records")
    result = run_catalog(records, controls, selected_id=selected)
    include_cost = session.privileged
    return {
        "items": [record_to_dict(r, include_cost) for r in result.items],
        "selected": record_to_dict(result.selected, include_cost) if result.selected else None,
        "formats": distinct_formats(records),
        "total_units": sum(r.quantity for r in records),
        "controls": {
            "query": controls.query,
            "sort": controls.sort.value,
            "format": controls.format,
            "show_favorites_only": controls.show_favorites_only,
            "show_special_only": controls.show_special_only,
        },
        "query_string": encode_controls(controls),
    }
