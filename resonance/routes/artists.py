"""
Artist routes for the Resonance Lab song API
"""

from typing import List

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from resonance.cache import ARTISTS_LIST_KEY, TTLCache
from resonance.config import get_cache, get_service
from resonance.models import ArtistSummary
from resonance.service import SongService

router = APIRouter()


@router.get("/api/artists", response_model=List[ArtistSummary], tags=["Artists"])
async def list_artists(
    service: SongService = Depends(get_service),
    cache: TTLCache = Depends(get_cache),
):
    """Artists with at least one saved song, with their song counts"""
    cached = cache.get(ARTISTS_LIST_KEY)
    if cached is not None:
        return cached

    artists = await run_in_threadpool(service.list_artists)
    cache.set(ARTISTS_LIST_KEY, artists)
    return artists
