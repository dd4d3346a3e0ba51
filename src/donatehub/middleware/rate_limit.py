"""Redis-backed fixed-window rate limiting middleware."""

import time
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from donatehub.redis_client import get_redis
from donatehub.responses import error_body

logger = structlog.get_logger()

# Probes are never throttled.
_EXEMPT_PATHS = frozenset({"/health", "/ready", "/version"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Limit requests per client IP and window using Redis counters.

    When Redis is disabled or not initialized the limiter steps aside.
    """

    def __init__(self, app: ASGIApp, requests_per_window: int = 100, window_seconds: int = 60) -> None:
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds

    def _key(self, request: Request) -> str:
        client_ip = request.client.host if request.client else "unknown"
        window = int(time.time()) // self.window_seconds
        return f"donatehub:ratelimit:{client_ip}:{window}"

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Count the request; answer 429 once the window budget is spent."""
        if request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        try:
            redis = get_redis()
        except RuntimeError:
            return await call_next(request)

        rate_key = self._key(request)
        pipe = redis.pipeline()
        pipe.incr(rate_key)
        pipe.expire(rate_key, self.window_seconds + 1)
        results: list[Any] = await pipe.execute()

        current_count = int(results[0])
        remaining = max(0, self.requests_per_window - current_count)

        if current_count > self.requests_per_window:
            logger.warning("rate_limit_exceeded", key=rate_key, count=current_count)
            return JSONResponse(
                status_code=429,
                content=error_body("Rate limit exceeded. Try again later.", 429),
                headers={
                    "Retry-After": str(self.window_seconds),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Limit": str(self.requests_per_window),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Limit"] = str(self.requests_per_window)
        return response
