"""
Client for the Ultimate Guitar mobile API and the HTML renderer for its tabs.
"""

from __future__ import annotations

import hashlib
import html
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, List, Optional

import requests

from resonance.config import Config
from resonance.exceptions import UpstreamError
from resonance.logging import get_logger
from resonance.utils import get_http_session

logger = get_logger(__name__)

BASE_URL = "https://api.ultimate-guitar.com/api/v1"
USER_AGENT = "UGT_ANDROID/4.11.1 (Pixel; 8.1.0)"


class TabType(IntEnum):
    VIDEO = 100
    TABS = 200
    CHORDS = 300
    BASS = 400
    PRO = 500
    UKULELE = 800

    @property
    def label(self) -> str:
        return _TAB_TYPE_LABELS[self]


_TAB_TYPE_LABELS = {
    TabType.VIDEO: "Video",
    TabType.TABS: "Tabs",
    TabType.CHORDS: "Chords",
    TabType.BASS: "Bass",
    TabType.PRO: "Official",
    TabType.UKULELE: "Ukulele",
}


@dataclass(frozen=True)
class TabHit:
    """One row of a search result page"""
    id: int
    song_name: str
    artist_name: str
    type: str
    rating: float
    votes: int


@dataclass(frozen=True)
class TabDocument:
    """A full tab as returned by /tab/info"""
    id: int
    song_name: str
    artist_name: str
    type: str
    content: str
    tonality: str = ""
    capo: int = 0
    tuning: str = ""


class UltimateGuitarClient:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: str = BASE_URL,
        timeout: float = Config.UPSTREAM_TIMEOUT_SECONDS,
        device_id: Optional[str] = None,
    ):
        self.session = session or get_http_session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.device_id = device_id or secrets.token_hex(8)

    def _headers(self) -> Dict[str, str]:
        # The API key is derived from the device id and the current UTC hour.
        now = datetime.now(timezone.utc)
        stamp = f"{now:%Y-%m-%d}:{now.hour}"
        api_key = hashlib.md5(f"{self.device_id}{stamp}createLog()".encode()).hexdigest()
        return {
            "Accept": "application/json",
            "Accept-Charset": "utf-8",
            "User-Agent": USER_AGENT,
            "X-UG-CLIENT-ID": self.device_id,
            "X-UG-API-KEY": api_key,
        }

    def _get(self, path: str, params: Dict[str, Any]) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return self.session.get(url, params=params, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamError(f"request to {path} failed: {e}") from e

    def search(self, title: str, tab_type: TabType, page: int = 1) -> List[TabHit]:
        """Search tabs of one type by song title."""
        response = self._get("/tab/search", {"title": title, "type[]": int(tab_type), "page": page})
        # The API answers 404 when a search has no hits.
        if response.status_code == 404:
            return []
        if not response.ok:
            raise UpstreamError(f"search {tab_type.label.lower()} failed with status {response.status_code}")

        hits = []
        for item in response.json().get("tabs") or []:
            try:
                hits.append(
                    TabHit(
                        id=int(item["id"]),
                        song_name=str(item.get("song_name") or ""),
                        artist_name=str(item.get("artist_name") or ""),
                        type=str(item.get("type") or tab_type.label),
                        rating=float(item.get("rating") or 0.0),
                        votes=int(item.get("votes") or 0),
                    )
                )
            except (KeyError, TypeError, ValueError):
                logger.debug(f"skipping malformed search hit: {item!r}")
        return hits

    def get_tab(self, tab_id: int) -> TabDocument:
        response = self._get("/tab/info", {"tab_id": tab_id, "tab_access_type": "public"})
        if not response.ok:
            raise UpstreamError(f"fetch tab {tab_id} failed with status {response.status_code}")

        data = response.json()
        tuning = data.get("tuning") or ""
        if isinstance(tuning, dict):
            tuning = tuning.get("value") or tuning.get("name") or ""
        return TabDocument(
            id=int(data.get("id") or tab_id),
            song_name=str(data.get("song_name") or ""),
            artist_name=str(data.get("artist_name") or ""),
            type=str(data.get("type") or ""),
            content=str(data.get("content") or ""),
            tonality=str(data.get("tonality_name") or ""),
            capo=int(data.get("capo") or 0),
            tuning=str(tuning),
        )


_CHORD_MARKUP = re.compile(r"\[ch\](.*?)\[/ch\]", re.DOTALL)
_TAB_MARKUP = re.compile(r"\[/?tab\]")


def render_tab_html(tab: TabDocument) -> str:
    """Render a tab as a standalone HTML page with chords wrapped in spans."""
    if not tab.content:
        raise UpstreamError(f"tab {tab.id} has no content")

    body = html.escape(_TAB_MARKUP.sub("", tab.content.replace("\r\n", "\n")))
    # escape() leaves the [ch] brackets alone, so chords can be marked up afterwards
    body = _CHORD_MARKUP.sub(r'<span class="chord">\1</span>', body)

    heading = f"{html.escape(tab.song_name)} - {html.escape(tab.artist_name)}"
    meta = []
    if tab.tonality:
        meta.append(f"<li>Key: {html.escape(tab.tonality)}</li>")
    if tab.capo:
        meta.append(f"<li>Capo: {tab.capo}</li>")
    if tab.tuning:
        meta.append(f"<li>Tuning: {html.escape(tab.tuning)}</li>")

    return (
        "<!DOCTYPE html>\n"
        "<html>\n<head>\n<meta charset=\"utf-8\">\n"
        f"<title>{heading}</title>\n"
        "</head>\n<body>\n"
        f"<h1>{heading}</h1>\n"
        f"<ul class=\"meta\">{''.join(meta)}</ul>\n"
        f"<pre class=\"tab\" data-tab-id=\"{tab.id}\">{body}</pre>\n"
        "</body>\n</html>\n"
    )
