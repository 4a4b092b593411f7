"""
Pydantic models for the Resonance Lab song API
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake case in Python, camelCase on the wire"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SavedSong(CamelModel):
    """Summary of a song stored on disk"""
    artist: str
    artist_slug: str
    title: str
    song_slug: str
    key: str = ""
    has_chords: bool = False
    has_tab: bool = False
    updated_at: Optional[datetime] = None


class SongDetail(CamelModel):
    """Stored song with its file payloads"""
    summary: SavedSong
    chords_html: Optional[str] = None
    tab_html: Optional[str] = None
    song_json: Optional[Any] = None


class ArtistSummary(CamelModel):
    artist: str
    artist_slug: str
    song_count: int


class SearchQuery(CamelModel):
    artist: str = ""
    title: str = ""


class SearchResult(CamelModel):
    """One ranked search hit"""
    id: int
    title: str
    artist: str
    rating: float
    votes: int
    score: float
    type: str


class SearchResponse(CamelModel):
    """Search hits grouped by type"""
    query: SearchQuery
    chords: List[SearchResult]
    tabs: List[SearchResult]


class DownloadRequest(CamelModel):
    """Fetch and store chords/tab for a song. Ids are looked up when omitted."""
    artist: str = ""
    title: str = ""
    chord_id: Optional[int] = None
    tab_id: Optional[int] = None


class HealthResponse(BaseModel):
    status: str
    version: str
    message: str


class ErrorResponse(BaseModel):
    """Model for error responses"""
    error: str
