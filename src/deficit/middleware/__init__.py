"""Middleware registration."""

from fastapi import FastAPI

from deficit.admin_auth.guard import AdminSessionMiddleware
from deficit.config import Settings
from deficit.middleware.cors import setup_cors
from deficit.middleware.error_handler import setup_error_handlers
from deficit.middleware.logging import setup_logging
from deficit.middleware.request_id import RequestIdMiddleware
from deficit.pricing.middleware import PricingCookieMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette runs middleware in reverse-add order (last added = outermost).
    The session guard sits innermost so its 401/redirect responses still get a
    request id and CORS headers; CORS is outermost and answers preflights
    before the guard sees them.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(AdminSessionMiddleware)
    app.add_middleware(PricingCookieMiddleware)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)  # added last, so outermost
