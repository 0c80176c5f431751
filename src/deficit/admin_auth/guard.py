"""Session guard for admin pages and the admin API."""

from __future__ import annotations

import jwt
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse, RedirectResponse, Response

from deficit.admin_auth.session import AdminIdentity, verify_session_token
from deficit.config import get_settings
from deficit.errors import Unauthorized

LOGIN_PAGE = "/admin/login"
_PAGE_PREFIX = "/admin"
_API_PREFIX = "/api/admin"
_AUTH_API_PREFIX = "/api/admin/auth/"


def _is_page(path: str) -> bool:
    return path == _PAGE_PREFIX or path.startswith(_PAGE_PREFIX + "/")


def _is_api(path: str) -> bool:
    return path == _API_PREFIX or path.startswith(_API_PREFIX + "/")


def is_public_path(path: str) -> bool:
    """Paths that never require a session: the login page and the auth endpoints."""
    return path == LOGIN_PAGE or path.startswith(_AUTH_API_PREFIX)


def read_session(request: Request) -> AdminIdentity | None:
    """Return the admin named by the session cookie, or None if absent/invalid."""
    token = request.cookies.get(get_settings().admin_cookie_name)
    if not token:
        return None
    try:
        return verify_session_token(token)
    except jwt.InvalidTokenError:
        return None


class AdminSessionMiddleware(BaseHTTPMiddleware):
    """Reject unauthenticated access to ``/admin`` pages (redirect) and ``/api/admin`` (401)."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        protected = _is_page(path) or _is_api(path)
        if not protected or request.method == "OPTIONS" or is_public_path(path):
            return await call_next(request)

        admin = read_session(request)
        if admin is None:
            if _is_api(path):
                exc = Unauthorized()
                return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})
            return RedirectResponse(LOGIN_PAGE, status_code=303)

        request.state.admin = admin
        return await call_next(request)


async def require_admin(request: Request) -> AdminIdentity:
    """FastAPI dependency: the admin attached by the guard (or read from the cookie)."""
    admin = getattr(request.state, "admin", None) or read_session(request)
    if admin is None:
        raise Unauthorized()
    return admin
