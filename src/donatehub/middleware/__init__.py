"""Middleware registration."""

from fastapi import FastAPI

from donatehub.config import Settings
from donatehub.middleware.cors import setup_cors
from donatehub.middleware.error_handler import setup_error_handlers
from donatehub.middleware.logging import setup_logging
from donatehub.middleware.rate_limit import RateLimitMiddleware
from donatehub.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware.

    Starlette runs middleware in reverse-add order, so CORS goes last to stay
    outermost and decorate 429 responses from the rate limiter too.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
