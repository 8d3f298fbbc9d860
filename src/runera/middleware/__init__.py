"""Middleware registration."""

from fastapi import FastAPI

from runera.config import Settings
from runera.middleware.cors import setup_cors
from runera.middleware.error_handler import setup_error_handlers
from runera.middleware.logging import setup_logging
from runera.middleware.rate_limit import RateLimitMiddleware
from runera.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware.

    Starlette runs middleware in reverse-add order, so CORS is added last to
    wrap 429 responses produced by the rate limiter.
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
