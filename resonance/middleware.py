"""
Request pipeline for the song API.

Outermost to innermost:

    CORS -> recovery -> rate limit -> timeout -> access log -> router

``install_pipeline`` adds them to an app in that order. Starlette wraps the
app with the most recently added middleware last, so they are added
innermost first.
"""

import asyncio
import time
from typing import Callable, Iterable, Optional

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from resonance.config import Config
from resonance.logging import get_logger
from resonance.ratelimit import RateLimiter, client_key

logger = get_logger(__name__)


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """Reflects allow-listed origins and answers every preflight with 204.

    Requests without an Origin header (curl, server-side fetches) get ``*``.
    Unknown origins get no Access-Control-Allow-Origin at all.
    """

    def __init__(
        self,
        app: ASGIApp,
        allow_origins: Iterable[str] = (),
        allow_methods: Iterable[str] = (),
        allow_headers: Iterable[str] = (),
        expose_headers: Iterable[str] = (),
        max_age: int = 600,
    ):
        super().__init__(app)
        self.allow_origins = frozenset(allow_origins)
        self.headers = {
            "Access-Control-Allow-Headers": ", ".join(allow_headers),
            "Access-Control-Allow-Methods": ", ".join(allow_methods),
            "Access-Control-Max-Age": str(max_age),
            "Access-Control-Expose-Headers": ", ".join(expose_headers),
        }

    def allowed_origin(self, origin: Optional[str]) -> Optional[str]:
        if not origin:
            return "*"
        if origin in self.allow_origins:
            return origin
        return None

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "OPTIONS":
            response = Response(status_code=204)
        else:
            response = await call_next(request)

        origin = self.allowed_origin(request.headers.get("origin"))
        if origin is not None:
            response.headers["Access-Control-Allow-Origin"] = origin
            if origin != "*":
                response.headers["Vary"] = "Origin"
        response.headers.update(self.headers)
        return response


class RecoveryMiddleware(BaseHTTPMiddleware):
    """Turns anything that escapes the inner layers into a JSON 500."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception:
            logger.exception(f"unhandled error on {request.method} {request.url.path}")
            return JSONResponse(status_code=500, content={"error": "Internal server error"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, limiter: RateLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        key = client_key(request)
        if not self.limiter.admit(key):
            logger.warning(f"rate limit exceeded for {key}")
            return PlainTextResponse("Rate limit exceeded", status_code=429)
        return await call_next(request)


class TimeoutMiddleware:
    """Bounds how long the inner app may take to start its response.

    The inner app runs as its own task. If the deadline passes before the
    response has started, the task is cancelled and a 504 is sent instead;
    anything the task tries to send afterwards is dropped. Async handlers stop
    at their next await. Sync handlers already running in the threadpool
    cannot be interrupted and finish in the background with their result
    discarded.

    Once a response has started streaming it is allowed to finish.
    """

    def __init__(self, app: ASGIApp, timeout_seconds: float):
        self.app = app
        self.timeout_seconds = timeout_seconds

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = False
        timed_out = False

        async def guarded_send(message: Message) -> None:
            nonlocal started
            if timed_out:
                return
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        task = asyncio.ensure_future(self.app(scope, receive, guarded_send))
        try:
            done, _ = await asyncio.wait({task}, timeout=self.timeout_seconds)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task in done or started:
            await task
            return

        timed_out = True
        task.cancel()
        task.add_done_callback(_log_late_failure)
        logger.warning(f"request timed out after {self.timeout_seconds}s: {scope.get('method')} {scope.get('path')}")
        response = PlainTextResponse("Gateway timeout", status_code=504)
        await response(scope, receive, send)


def _log_late_failure(task: "asyncio.Future[None]") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"timed out handler failed after its response was abandoned: {exc!r}")


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            status = response.status_code if response is not None else "ERROR"
            logger.info(
                f"{request.method} {request.url.path} {status} {duration_ms}ms",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": status,
                    "duration_ms": duration_ms,
                    "client": client_key(request),
                },
            )


def install_pipeline(app: FastAPI, limiter: RateLimiter, timeout_seconds: float) -> None:
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(TimeoutMiddleware, timeout_seconds=timeout_seconds)
    app.add_middleware(RateLimitMiddleware, limiter=limiter)
    app.add_middleware(RecoveryMiddleware)
    app.add_middleware(
        CORSHeadersMiddleware,
        allow_origins=Config.ALLOW_ORIGINS,
        allow_methods=Config.ALLOW_METHODS,
        allow_headers=Config.ALLOW_HEADERS,
        expose_headers=Config.EXPOSE_HEADERS,
        max_age=Config.CORS_MAX_AGE,
    )
