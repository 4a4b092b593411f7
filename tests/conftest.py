"""Shared pytest fixtures for the Resonance Lab API test suite."""
from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from resonance import create_app
from resonance.cache import TTLCache
from resonance.exceptions import UpstreamError
from resonance.ratelimit import RateLimiter
from resonance.service import SongService
from resonance.ultimate_guitar import TabDocument, TabHit, TabType


class FakeClock:
    """Manually advanced replacement for time.monotonic."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUltimateGuitar:
    """Stands in for UltimateGuitarClient; records what was asked of it."""

    def __init__(self, hits: dict | None = None, tabs: dict | None = None) -> None:
        self.hits = hits or {}
        self.tabs = tabs or {}
        self.searches: list = []
        self.fetched: list = []

    def search(self, title: str, tab_type: TabType, page: int = 1) -> list:
        self.searches.append((title, tab_type))
        return list(self.hits.get(tab_type, []))

    def get_tab(self, tab_id: int) -> TabDocument:
        self.fetched.append(tab_id)
        try:
            return self.tabs[tab_id]
        except KeyError:
            raise UpstreamError(f"fetch tab {tab_id} failed with status 404") from None


QUEEN_CHORDS = TabDocument(
    id=1001,
    song_name="Bohemian Rhapsody",
    artist_name="Queen",
    type="Chords",
    content="[tab][ch]Bb6[/ch]\nIs this the real life?[/tab]",
    tonality="Bb",
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream() -> FakeUltimateGuitar:
    return FakeUltimateGuitar(
        hits={
            TabType.CHORDS: [
                TabHit(id=1001, song_name="Bohemian Rhapsody", artist_name="Queen",
                       type="Chords", rating=4.8, votes=900),
            ],
        },
        tabs={1001: QUEEN_CHORDS},
    )


@pytest.fixture
def songs_dir(tmp_path: Path) -> Path:
    path = tmp_path / "songs"
    path.mkdir()
    return path


@pytest.fixture
def service(songs_dir: Path, upstream: FakeUltimateGuitar) -> SongService:
    return SongService(songs_dir, client=upstream)  # type: ignore[arg-type]


@pytest.fixture
def client(service: SongService):  # type: ignore[no-untyped-def]
    app = create_app(
        service=service,
        cache=TTLCache(ttl_seconds=60),
        limiter=RateLimiter(limit=1000, window_seconds=60),
        timeout_seconds=5,
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_song(songs_dir: Path):  # type: ignore[no-untyped-def]
    """Create a song folder; keyword names map to files (chords, tab, song_json)."""

    def _make(artist_slug: str, song_slug: str, **files: str) -> Path:
        names = {"chords": "chords.html", "tab": "tab.html", "song_json": "song.json"}
        base = songs_dir / artist_slug / song_slug
        base.mkdir(parents=True)
        for key, content in files.items():
            (base / names[key]).write_text(content, encoding="utf-8")
        return base

    return _make
