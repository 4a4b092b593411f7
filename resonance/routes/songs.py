"""
Song library routes for the Resonance Lab song API
"""

from typing import List

from fastapi import APIRouter, Depends, Path, Response
from starlette.concurrency import run_in_threadpool

from resonance.cache import ARTISTS_LIST_KEY, SONGS_LIST_KEY, TTLCache
from resonance.config import get_cache, get_service
from resonance.models import DownloadRequest, SavedSong, SongDetail
from resonance.service import SongService

router = APIRouter()


@router.get("/api/songs", response_model=List[SavedSong], tags=["Songs"])
async def list_songs(
    service: SongService = Depends(get_service),
    cache: TTLCache = Depends(get_cache),
):
    """Saved songs ordered by artist, then title"""
    cached = cache.get(SONGS_LIST_KEY)
    if cached is not None:
        return cached

    songs = await run_in_threadpool(service.list_songs)
    cache.set(SONGS_LIST_KEY, songs)
    return songs


@router.get(
    "/api/songs/{artist}/{song}",
    response_model=SongDetail,
    response_model_exclude_none=True,
    tags=["Songs"],
)
async def get_song(
    artist: str = Path(..., description="Artist slug"),
    song: str = Path(..., description="Song slug"),
    service: SongService = Depends(get_service),
):
    """
    Get a saved song with its chords/tab HTML and song.json, when present
    """
    return await run_in_threadpool(service.get_song, artist, song)


@router.post(
    "/api/songs",
    response_model=SongDetail,
    response_model_exclude_none=True,
    tags=["Songs"],
)
async def download_song(
    request: DownloadRequest,
    service: SongService = Depends(get_service),
    cache: TTLCache = Depends(get_cache),
):
    """
    Download chords (and a tab, if any) for a song and save them

    - **artist**, **title**: required
    - **chordId**, **tabId**: Ultimate Guitar ids; the best ranked hit is used when omitted
    """
    try:
        return await run_in_threadpool(service.download, request)
    finally:
        # Files may be on disk even when a later step failed.
        cache.invalidate(SONGS_LIST_KEY, ARTISTS_LIST_KEY)


@router.delete("/api/songs/{artist}/{song}", status_code=204, tags=["Songs"])
async def delete_song(
    artist: str = Path(..., description="Artist slug"),
    song: str = Path(..., description="Song slug"),
    service: SongService = Depends(get_service),
    cache: TTLCache = Depends(get_cache),
):
    """Delete a saved song, and its artist folder if it becomes empty"""
    try:
        await run_in_threadpool(service.delete, artist, song)
    finally:
        cache.invalidate(SONGS_LIST_KEY, ARTISTS_LIST_KEY)
    return Response(status_code=204)
