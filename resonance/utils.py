"""Utility functions shared by the song service, the upstream client and the CLI."""

from __future__ import annotations

import math
import re

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


DEFAULT_SLUG = "song"

_HTTP_SESSION: requests.Session | None = None
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")
_UNDERSCORE_RUNS = re.compile(r"_{2,}")


def get_http_session() -> requests.Session:
    """Shared requests session with connection pooling + light retries."""
    global _HTTP_SESSION
    if _HTTP_SESSION is not None:
        return _HTTP_SESSION

    session = requests.Session()
    retry = Retry(
        total=2,
        connect=2,
        read=2,
        backoff_factor=0.2,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET",),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(pool_connections=10, pool_maxsize=10, max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    _HTTP_SESSION = session
    return session


def slugify(name: str) -> str:
    """Turn a display name into a folder name, e.g. ``"Foo  Bar!"`` -> ``"Foo_Bar"``."""
    slug = _UNSAFE_CHARS.sub("_", "_".join(name.split()))
    slug = _UNDERSCORE_RUNS.sub("_", slug).strip("_")
    return slug or DEFAULT_SLUG


def unsanitize_name(slug: str) -> str:
    """Readable label from a slug. Lossy: ``unsanitize_name(slugify(x))`` need not be ``x``."""
    return " ".join(word.capitalize() for word in slug.replace("_", " ").split())


def popularity_score(rating: float, votes: int) -> float:
    """Rank search hits by rating weighted with the log of the vote count."""
    if votes > 0:
        return rating * math.log(votes)
    return rating
