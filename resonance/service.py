"""
Song library backed by a directory tree::

    <songs_dir>/<artist_slug>/<song_slug>/{chords.html, tab.html, song.json}

Any subset of the three files may be present. All methods block on disk,
network or subprocess I/O; async callers should run them in a threadpool.
"""

from __future__ import annotations

import contextlib
import json
import shutil
from datetime import datetime, timezone
from itertools import groupby
from pathlib import Path
from typing import List, Optional, Tuple, Union

from resonance.config import Config
from resonance.exceptions import InvalidRequestError, SongNotFoundError, UpstreamError
from resonance.logging import get_logger
from resonance.models import (
    ArtistSummary,
    DownloadRequest,
    SavedSong,
    SearchQuery,
    SearchResponse,
    SearchResult,
    SongDetail,
)
from resonance.songify import Songify
from resonance.ultimate_guitar import TabType, UltimateGuitarClient, render_tab_html
from resonance.utils import popularity_score, slugify, unsanitize_name

logger = get_logger(__name__)

CHORDS_FILE = "chords.html"
TAB_FILE = "tab.html"
SONG_JSON_FILE = "song.json"


class SongService:
    def __init__(
        self,
        songs_dir: Union[str, Path],
        client: Optional[UltimateGuitarClient] = None,
        songify: Optional[Songify] = None,
    ):
        self.songs_dir = Path(songs_dir).resolve()
        self.songs_dir.mkdir(parents=True, exist_ok=True)
        self.client = client if client is not None else UltimateGuitarClient()
        self.songify = songify

    @classmethod
    def from_config(cls, songs_dir: Optional[Union[str, Path]] = None) -> "SongService":
        resolved = Path(songs_dir or Config.SONGS_DIR).resolve()
        songify = Songify.discover(resolved, Config.SONGIFY_SCRIPT)
        if songify is None:
            logger.info("songify script not found, song.json will not be generated")
        return cls(resolved, songify=songify)

    def song_path(self, artist_slug: str, song_slug: str) -> Path:
        for part in (artist_slug, song_slug):
            if not part or part in (".", "..") or "/" in part or "\\" in part:
                raise SongNotFoundError(artist_slug, song_slug)
        return self.songs_dir / artist_slug / song_slug

    # Reading

    def list_songs(self) -> List[SavedSong]:
        """All saved songs, ordered by artist then title."""
        songs = []
        for artist_dir in self.songs_dir.iterdir():
            if not artist_dir.is_dir():
                continue
            for song_dir in artist_dir.iterdir():
                if not song_dir.is_dir():
                    continue
                try:
                    songs.append(self.read_summary(artist_dir.name, song_dir.name))
                except SongNotFoundError:
                    # removed while listing
                    continue
        songs.sort(key=lambda s: (s.artist, s.title))
        return songs

    def list_artists(self) -> List[ArtistSummary]:
        songs = sorted(self.list_songs(), key=lambda s: s.artist_slug)
        artists = []
        for artist_slug, group in groupby(songs, key=lambda s: s.artist_slug):
            group = list(group)
            artists.append(
                ArtistSummary(artist=group[0].artist, artist_slug=artist_slug, song_count=len(group))
            )
        artists.sort(key=lambda a: a.artist)
        return artists

    def read_summary(self, artist_slug: str, song_slug: str) -> SavedSong:
        base_path = self.song_path(artist_slug, song_slug)
        if not base_path.is_dir():
            raise SongNotFoundError(artist_slug, song_slug)

        summary = SavedSong(
            artist=unsanitize_name(artist_slug),
            artist_slug=artist_slug,
            title=unsanitize_name(song_slug),
            song_slug=song_slug,
        )
        mtimes = []

        chords_path = base_path / CHORDS_FILE
        if chords_path.is_file():
            summary.has_chords = True
            mtimes.append(chords_path.stat().st_mtime)

        tab_path = base_path / TAB_FILE
        if tab_path.is_file():
            summary.has_tab = True
            mtimes.append(tab_path.stat().st_mtime)

        song_json_path = base_path / SONG_JSON_FILE
        if song_json_path.is_file():
            mtimes.append(song_json_path.stat().st_mtime)
            payload = _read_json(song_json_path)
            if isinstance(payload, dict):
                for field in ("title", "artist", "key"):
                    value = payload.get(field)
                    if isinstance(value, str) and value:
                        setattr(summary, field, value)

        if mtimes:
            summary.updated_at = datetime.fromtimestamp(max(mtimes), tz=timezone.utc)
        return summary

    def get_song(self, artist_slug: str, song_slug: str) -> SongDetail:
        summary = self.read_summary(artist_slug, song_slug)
        base_path = self.song_path(artist_slug, song_slug)
        return SongDetail(
            summary=summary,
            chords_html=_read_text(base_path / CHORDS_FILE),
            tab_html=_read_text(base_path / TAB_FILE),
            song_json=_read_json(base_path / SONG_JSON_FILE),
        )

    # Searching

    def search(self, artist: str, title: str) -> SearchResponse:
        artist = (artist or "").strip()
        title = (title or "").strip()
        if not title:
            raise InvalidRequestError("title is required for search")

        return SearchResponse(
            query=SearchQuery(artist=artist, title=title),
            chords=self.search_by_type(artist, title, TabType.CHORDS),
            tabs=self.search_by_type(artist, title, TabType.TABS),
        )

    def search_by_type(self, artist: str, title: str, tab_type: TabType) -> List[SearchResult]:
        """Hits of one type, best first. Filters by artist when one is given."""
        matches = []
        for hit in self.client.search(title, tab_type):
            if artist and hit.artist_name.casefold() != artist.casefold():
                continue
            matches.append(
                SearchResult(
                    id=hit.id,
                    title=hit.song_name,
                    artist=hit.artist_name,
                    rating=hit.rating,
                    votes=hit.votes,
                    score=popularity_score(hit.rating, hit.votes),
                    type=hit.type,
                )
            )
        matches.sort(key=lambda m: (m.score, m.rating), reverse=True)
        return matches

    def find_best(self, artist: str, title: str, tab_type: TabType) -> SearchResult:
        results = self.search_by_type(artist, title, tab_type)
        if not results:
            raise UpstreamError(f"no {tab_type.label.lower()} results for {artist} - {title}")
        return results[0]

    # Writing

    def download(self, request: DownloadRequest) -> SongDetail:
        """Fetch chords (and a tab when one exists) and store them under the song's slugs."""
        artist = request.artist.strip()
        title = request.title.strip()
        if not artist or not title:
            raise InvalidRequestError("both artist and title are required")

        chord_id, tab_id = self.resolve_tab_ids(artist, title, request)

        artist_slug = slugify(artist)
        song_slug = slugify(title)
        base_path = self.song_path(artist_slug, song_slug)
        base_path.mkdir(parents=True, exist_ok=True)

        if chord_id:
            chords_path = self.fetch_and_write(chord_id, base_path / CHORDS_FILE)
            if self.songify is not None:
                self.songify.run(chords_path)
        if tab_id:
            self.fetch_and_write(tab_id, base_path / TAB_FILE)

        logger.info(f"downloaded {artist_slug}/{song_slug} chords={chord_id} tab={tab_id}")
        return self.get_song(artist_slug, song_slug)

    def resolve_tab_ids(self, artist: str, title: str, request: DownloadRequest) -> Tuple[int, int]:
        chord_id = request.chord_id or self.find_best(artist, title, TabType.CHORDS).id

        tab_id = request.tab_id or 0
        if not tab_id:
            try:
                tab_id = self.find_best(artist, title, TabType.TABS).id
            except UpstreamError as e:
                # A missing tab is fine, chords alone are enough.
                logger.info(f"no tab for {artist} - {title}: {e}")
        return chord_id, tab_id

    def fetch_and_write(self, tab_id: int, dest: Path) -> Path:
        tab = self.client.get_tab(tab_id)
        dest.write_text(render_tab_html(tab), encoding="utf-8")
        return dest

    def delete(self, artist_slug: str, song_slug: str) -> None:
        """Remove a song, and its artist folder if that leaves it empty."""
        base_path = self.song_path(artist_slug, song_slug)
        if not base_path.exists():
            raise SongNotFoundError(artist_slug, song_slug)

        shutil.rmtree(base_path)

        # Another request may have removed the folder or added a song to it.
        artist_path = base_path.parent
        with contextlib.suppress(OSError):
            if not any(artist_path.iterdir()):
                artist_path.rmdir()
        logger.info(f"deleted {artist_slug}/{song_slug}")


def _read_text(path: Path) -> Optional[str]:
    if not path.is_file():
        return None
    return path.read_text(encoding="utf-8") or None


def _read_json(path: Path) -> Optional[object]:
    if not path.is_file():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except ValueError:
        logger.warning(f"ignoring invalid JSON in {path}")
        return None
