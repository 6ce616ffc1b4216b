"""Middleware registration."""

from fastapi import FastAPI

from reefsync.config import Settings
from reefsync.middleware.cors import setup_cors
from reefsync.middleware.error_handler import setup_error_handlers
from reefsync.middleware.logging import setup_logging
from reefsync.middleware.rate_limit import RateLimitMiddleware
from reefsync.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register handlers and middleware.

    Starlette runs middleware in reverse-add order, so CORS is added last to
    wrap 429 responses from the rate limiter, and the request id is bound
    before the rate limiter logs anything.
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
