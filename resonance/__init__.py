"""
Resonance Lab song API package
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from resonance.cache import TTLCache
from resonance.config import Config
from resonance.exceptions import (
    InvalidRequestError,
    ResonanceError,
    SongifyError,
    SongNotFoundError,
    UpstreamError,
)
from resonance.logging import get_logger
from resonance.middleware import install_pipeline
from resonance.models import ErrorResponse
from resonance.ratelimit import RateLimiter
from resonance.routes.artists import router as artists_router
from resonance.routes.root import router as root_router
from resonance.routes.search import router as search_router
from resonance.routes.songs import router as songs_router
from resonance.scheduler import SweepScheduler
from resonance.service import SongService

logger = get_logger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def create_app(
    service: Optional[SongService] = None,
    cache: Optional[TTLCache] = None,
    limiter: Optional[RateLimiter] = None,
    timeout_seconds: Optional[float] = None,
) -> FastAPI:
    """Create and configure FastAPI application"""

    # TTLCache and RateLimiter define __len__, so an empty one is falsy.
    if service is None:
        service = SongService.from_config()
    if cache is None:
        cache = TTLCache(ttl_seconds=Config.CACHE_TTL_SECONDS)
    if limiter is None:
        limiter = RateLimiter(Config.RATE_LIMIT_REQUESTS, Config.RATE_LIMIT_WINDOW_SECONDS)
    sweeps = SweepScheduler(cache, limiter)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeps.start()
        logger.info(f"Serving songs from {service.songs_dir}")
        try:
            yield
        finally:
            sweeps.stop()

    app = FastAPI(
        title=Config.TITLE,
        description=Config.DESCRIPTION,
        version=Config.VERSION,
        docs_url=Config.DOCS_URL,
        redoc_url=Config.REDOC_URL,
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.cache = cache
    app.state.limiter = limiter
    app.state.sweeps = sweeps

    install_pipeline(
        app,
        limiter=limiter,
        timeout_seconds=timeout_seconds if timeout_seconds is not None else Config.REQUEST_TIMEOUT_SECONDS,
    )

    # Include routers
    app.include_router(root_router)
    app.include_router(songs_router)
    app.include_router(artists_router)
    app.include_router(search_router)

    # Exception handlers
    @app.exception_handler(InvalidRequestError)
    @app.exception_handler(UpstreamError)
    @app.exception_handler(SongifyError)
    async def bad_request_handler(request, exc):
        # Only search and download reach upstream or songify, and both report failures as 400.
        logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
        return _error(400, str(exc))

    @app.exception_handler(SongNotFoundError)
    async def not_found_handler(request, exc):
        return _error(404, "Resource not found")

    @app.exception_handler(ResonanceError)
    @app.exception_handler(OSError)
    async def internal_error_handler(request, exc):
        logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
        return _error(500, "An error occurred")

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request, exc):
        return _error(400, "invalid request body")

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):
        """Custom HTTP exception handler"""
        return _error(exc.status_code, str(exc.detail))

    return app
