"""HTTP API exposing the current fee statistics."""

import hmac
import math
import threading
import time
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Deque, Dict, Optional, Tuple

from fastapi import FastAPI, Query, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .constants import DEFAULT_RATE_LIMIT, DEFAULT_RATE_MAX_TRACKED_KEYS, DEFAULT_RATE_WINDOW_SECS
from .logging import get_logger
from .store import StatsStore

logger = get_logger(__name__)

API_PREFIX = "/api"

ACCESS_DENIED = {"error": "Access denied!"}
INVALID_REQUEST = {"error": "Invalid request!"}
NOT_AVAILABLE = {"error": "This resource is not available."}
TOO_MANY_REQUESTS = {"error": "Too many requests from this IP, please try again in a minute."}

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class SlidingWindowRateLimiter:
    """In-memory per-client limiter over a rolling time window."""

    def __init__(
        self,
        limit: int = DEFAULT_RATE_LIMIT,
        window_secs: float = DEFAULT_RATE_WINDOW_SECS,
        clock: Callable[[], float] = time.monotonic,
        max_tracked_keys: int = DEFAULT_RATE_MAX_TRACKED_KEYS,
    ):
        """
        Initialize rate limiter.

        Args:
            limit: Maximum number of requests allowed in the window
            window_secs: Window length in seconds
            clock: Monotonic time source
            max_tracked_keys: Client count above which idle clients are swept
        """
        self.limit = limit
        self.window_secs = window_secs
        self.max_tracked_keys = max_tracked_keys
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def _sweep(self, cutoff: float) -> None:
        """Drop clients whose newest hit has left the window."""
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in idle:
            del self._hits[key]

    def hit(self, key: str) -> Tuple[bool, int, int]:
        """
        Record a request from ``key``.

        Returns:
            Tuple of (allowed, remaining, seconds_until_reset)
        """
        with self._lock:
            now = self._clock()
            cutoff = now - self.window_secs
            if len(self._hits) >= self.max_tracked_keys:
                self._sweep(cutoff)

            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= cutoff:
                hits.popleft()

            if len(hits) >= self.limit:
                reset = math.ceil(hits[0] + self.window_secs - now)
                return False, 0, reset

            hits.append(now)
            reset = math.ceil(hits[0] + self.window_secs - now)
            return True, self.limit - len(hits), reset


def _is_api_path(path: str) -> bool:
    return path == API_PREFIX or path.startswith(API_PREFIX + "/")


def _token_matches(token: Optional[str], access_token: str) -> bool:
    if not token or not access_token:
        return False
    return hmac.compare_digest(token.encode("utf-8"), access_token.encode("utf-8"))


def create_app(
    store: StatsStore,
    access_token: str,
    rate_limit: int = DEFAULT_RATE_LIMIT,
    rate_window_secs: float = DEFAULT_RATE_WINDOW_SECS,
    limiter: Optional[SlidingWindowRateLimiter] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        store: Store holding the snapshot served by getFeeStats
        access_token: Secret the ``token`` query parameter must equal
        rate_limit: Requests allowed per client address per window on /api
        rate_window_secs: Rate limit window in seconds
        limiter: Pre-built limiter (overrides rate_limit/rate_window_secs)

    Returns:
        Configured application
    """
    if not access_token:
        logger.warning("No access token configured; every /api request will be denied")

    app = FastAPI(title="feewindow", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.store = store
    app.state.limiter = limiter or SlidingWindowRateLimiter(rate_limit, rate_window_secs)

    @app.middleware("http")
    async def rate_limit_api(request: Request, call_next):
        if not _is_api_path(request.url.path):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        allowed, remaining, reset = app.state.limiter.hit(client_ip)
        headers = {
            "RateLimit-Limit": str(app.state.limiter.limit),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(reset),
        }
        if not allowed:
            logger.warning(f"Rate limit exceeded for {client_ip}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=TOO_MANY_REQUESTS,
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=NOT_AVAILABLE)
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.api_route(API_PREFIX, methods=["GET", "HEAD"])
    async def api(token: Optional[str] = Query(None), get: Optional[str] = Query(None)):
        if not _token_matches(token, access_token):
            logger.debug("Rejected /api request with invalid token")
            return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content=ACCESS_DENIED)

        if get == "getFeeStats":
            return {
                "timeStamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
                "data": app.state.store.current().to_dict(),
            }

        # Unknown operations answer 200 with an error body
        return INVALID_REQUEST

    @app.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
    async def not_available(path: str):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=NOT_AVAILABLE)

    return app
