"""
Search routes for the Resonance Lab song API
"""

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from resonance.config import get_service
from resonance.models import SearchQuery, SearchResponse
from resonance.service import SongService

router = APIRouter()


@router.post("/api/search", response_model=SearchResponse, tags=["Search"])
async def search_tabs(query: SearchQuery, service: SongService = Depends(get_service)):
    """
    Search Ultimate Guitar for chords and tabs

    - **title**: Song title (required)
    - **artist**: Only keep hits by this artist (optional, case-insensitive)

    Each list is ranked by rating weighted with the log of the vote count.
    """
    # Upstream calls are blocking (requests); run in threadpool.
    return await run_in_threadpool(service.search, query.artist, query.title)
