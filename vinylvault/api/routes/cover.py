"""Cover lookup for the admin form: GET /api/cover?artist=&album= -> {image}."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from vinylvault.api.state import AppState, get_state

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def get_cover(
    artist: Optional[str] = None,
    album: Optional[str] = None,
    state: AppState = Depends(get_state),
):
    """Never fails: any lookup problem answers {"image": null}."""
    artist = (artist or "").strip()
    album = (album or "").strip()
    if not artist or not album:
        return JSONResponse({"image": None, "error": "Please enter artist and album first."}, status_code=400)

    cached, image = state.cover_cache.get(artist, album)
    if not cached:
        try:
            image = await state.resolver.resolve(artist, album)
        except Exception:
            logger.exception("Cover lookup failed for %s - %s", artist, album)
            return JSONResponse({"image": None})
        state.cover_cache.put(artist, album, image)

    ttl = state.cover_cache.hit_ttl_sec if image else state.cover_cache.miss_ttl_sec
    return JSONResponse({"image": image}, headers={"Cache-Control": f"s-maxage={int(ttl)}"})
