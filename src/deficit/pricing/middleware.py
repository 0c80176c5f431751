"""Attach the ``pricing`` cookie to landing page responses."""

from __future__ import annotations

import json
from urllib.parse import quote

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from deficit.config import get_settings
from deficit.pricing.table import pricing_payload

PRICING_COOKIE = "pricing"
_LANDING_PATH = "/"


def request_country(request: Request) -> str:
    """Country code supplied by the edge, defaulting when absent (local dev, non-edge deploys)."""
    settings = get_settings()
    country = request.headers.get(settings.country_header, "").strip().upper()
    return country or settings.default_country


class PricingCookieMiddleware(BaseHTTPMiddleware):
    """Set a client-readable pricing cookie on ``GET /``."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        if request.url.path != _LANDING_PATH or request.method != "GET":
            return response

        settings = get_settings()
        response.set_cookie(
            PRICING_COOKIE,
            # URL-encoded like any JS-set cookie; the page reads it with decodeURIComponent.
            quote(json.dumps(pricing_payload(request_country(request)), ensure_ascii=False), safe=""),
            max_age=settings.pricing_cookie_max_age,
            httponly=False,
            secure=settings.is_production,
            samesite="lax",
        )
        return response
