"""Admin record CRUD: insert, partial update, delete (privileged session required)."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field, field_validator

from vinylvault.api.state import AppState, get_state, require_admin
from vinylvault.core.record_store import RecordNotFoundError, RecordStoreError
from vinylvault.core.session import Session
from vinylvault.core.spotify_links import listen_links
from vinylvault.models.record import Record

logger = logging.getLogger(__name__)

router = APIRouter()

_OPTIONAL_TEXT = ("format", "genre", "notes", "spotify_url", "cover_url")


class _RecordFields(BaseModel):
    year: Optional[int] = Field(default=None, ge=0)
    cost_cents: Optional[int] = Field(default=None, ge=0)
    format: Optional[str] = None
    genre: Optional[str] = None
    notes: Optional[str] = None
    spotify_url: Optional[str] = None
    cover_url: Optional[str] = None

    @field_validator(*_OPTIONAL_TEXT)
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class CreateRecordBody(_RecordFields):
    artist: str = Field(min_length=1)
    album: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)
    is_special: bool = False
    is_favorite: bool = False

    @field_validator("artist", "album", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class UpdateRecordBody(_RecordFields):
    artist: Optional[str] = Field(default=None, min_length=1)
    album: Optional[str] = Field(default=None, min_length=1)
    quantity: Optional[int] = Field(default=None, ge=1)
    is_special: Optional[bool] = None
    is_favorite: Optional[bool] = None

    @field_validator("artist", "album", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


def record_to_dict(record: Record, include_cost: bool) -> dict:
    d = record.to_dict(include_cost=include_cost)
    d["links"] = listen_links(record)
    return d


@router.get("/")
def list_records(
    state: AppState = Depends(get_state),
    session: Session = Depends(require_admin),
):
    """All records, most recently updated first."""
    try:
        records = state.store.list_records(order_by="updated_at", descending=True)
    except RecordStoreError as e:
        logger.error("Loading records failed: %s", e)
        raise HTTPException(status_code=502, detail=f"Failed to load records: {e}")
    return [record_to_dict(r, include_cost=True) for r in records]


@router.get("/{record_id}")
def get_record(
    record_id: str,
    state: AppState = Depends(get_state),
    session: Session = Depends(require_admin),
):
    try:
        record = state.store.get_record(record_id)
    except RecordStoreError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if record is None:
        raise HTTPException(status_code=404, detail="Record not found")
    return record_to_dict(record, include_cost=True)


@router.post("/", status_code=201)
def create_record(
    body: CreateRecordBody,
    state: AppState = Depends(get_state),
    session: Session = Depends(require_admin),
):
    """Insert a record; the store assigns id and timestamps."""
    try:
        record = state.store.insert_record(body.model_dump())
    except RecordStoreError as e:
        logger.error("Insert failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
    logger.info("Created %s - %s (%s) by %s", record.artist, record.album, record.id, session.email)
    return record_to_dict(record, include_cost=True)


@router.patch("/{record_id}")
def update_record(
    record_id: str,
    body: UpdateRecordBody,
    state: AppState = Depends(get_state),
    session: Session = Depends(require_admin),
):
    """Update only the fields present in the body."""
    fields = body.model_dump(exclude_unset=True)
    # artist/album/quantity/flags are never nulled out
    for key in ("artist", "album", "quantity", "is_special", "is_favorite"):
        if key in fields and fields[key] is None:
            del fields[key]
    try:
        record = state.store.update_record(record_id, fields)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Record not found")
    except RecordStoreError as e:
        logger.error("Update of %s failed: %s", record_id, e)
        raise HTTPException(status_code=502, detail=str(e))
    return record_to_dict(record, include_cost=True)


@router.delete("/{record_id}", status_code=204)
def delete_record(
    record_id: str,
    state: AppState = Depends(get_state),
    session: Session = Depends(require_admin),
):
    try:
        state.store.delete_record(record_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Record not found")
    except RecordStoreError as e:
        logger.error("Delete of %s failed: %s", record_id, e)
        raise HTTPException(status_code=502, detail=str(e))
    logger.info("Deleted %s by %s", record_id, session.email)
    return Response(status_code=204)
