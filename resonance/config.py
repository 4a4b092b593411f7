"""
Configuration for the Resonance Lab song API
"""

import os
from pathlib import Path
from typing import TYPE_CHECKING, List

from fastapi import Request

if TYPE_CHECKING:
    from resonance.cache import TTLCache
    from resonance.service import SongService


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return default
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration"""

    # API settings
    TITLE = "Resonance Lab API"
    DESCRIPTION = "Search, download and manage guitar chords and tabs"
    VERSION = "1.0.0"
    HEALTH_MESSAGE = "Resonance Lab API is rockin'!"
    DOCS_URL = "/docs"
    REDOC_URL = "/redoc"

    # CORS settings
    ALLOW_ORIGINS = _env_list(
        "CORS_ORIGINS",
        [
            "https://resonance-lab.vercel.app",
            "https://www.resonance-lab.vercel.app",
            "http://localhost:3000",
            "http://localhost:3001",
        ],
    )
    ALLOW_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    ALLOW_HEADERS = ["Content-Type", "Accept", "Accept-Language", "Content-Language", "Range"]
    EXPOSE_HEADERS = ["Content-Length", "Content-Type"]
    CORS_MAX_AGE = 86400

    # Pipeline settings
    CACHE_TTL_SECONDS = float(os.getenv("CACHE_TTL_SECONDS", "300"))
    RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "100"))
    RATE_LIMIT_WINDOW_SECONDS = float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
    REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))

    # Storage and upstream
    SONGS_DIR = Path(os.getenv("SONGS_DIR", os.path.join("..", "songs")))
    SONGIFY_SCRIPT = os.getenv("SONGIFY_SCRIPT", "")
    UPSTREAM_TIMEOUT_SECONDS = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "10"))

    # Server settings
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "8080"))
    RELOAD = _env_bool("RELOAD", False)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def get_service(request: Request) -> "SongService":
    """Song service bound to the running app"""
    return request.app.state.service


def get_cache(request: Request) -> "TTLCache":
    """Listing cache bound to the running app"""
    return request.app.state.cache
