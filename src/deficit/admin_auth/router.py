"""Admin authentication router: all /api/admin/auth/* endpoints (unguarded)."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from deficit.admin_auth.guard import read_session
from deficit.admin_auth.login_limiter import client_ip
from deficit.admin_auth.password import PasswordTooShortError
from deficit.admin_auth.schemas import LoginRequest, SessionCheckResponse, SetupRequest, SetupResponse
from deficit.admin_auth.service import authenticate_admin, create_admin
from deficit.admin_auth.session import create_session_token
from deficit.config import get_settings
from deficit.database import get_session
from deficit.errors import BadRequest, Forbidden
from deficit.redis_client import get_redis

logger = structlog.get_logger()

router = APIRouter(prefix="/api/admin/auth", tags=["Admin Auth"])


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_session),
    redis: Redis = Depends(get_redis),  # type: ignore[assignment]
) -> JSONResponse:
    """Check credentials, then set the httpOnly session cookie."""
    settings = get_settings()
    ip = client_ip(request)

    admin = await authenticate_admin(db, redis, ip, body.email or "", body.password or "")
    await db.commit()

    token = create_session_token(admin.id, admin.email)
    response = JSONResponse({"success": True})
    response.set_cookie(
        settings.admin_cookie_name,
        token,
        max_age=settings.admin_session_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )
    return response


@router.post("/logout")
async def logout() -> JSONResponse:
    """Drop the session cookie."""
    settings = get_settings()
    response = JSONResponse({"success": True})
    response.delete_cookie(settings.admin_cookie_name, path="/")
    return response


@router.get("/check", response_model=SessionCheckResponse)
async def check(request: Request) -> JSONResponse:
    """Report whether the caller holds a valid session."""
    admin = read_session(request)
    if admin is None:
        return JSONResponse({"authenticated": False}, status_code=401)
    return JSONResponse({"authenticated": True, "email": admin.email})


@router.post("/setup", response_model=SetupResponse)
async def setup(
    body: SetupRequest,
    db: AsyncSession = Depends(get_session),
    x_setup_key: str | None = Header(None),
) -> SetupResponse:
    """Create an admin account. Disabled unless explicitly enabled in settings."""
    settings = get_settings()
    if not settings.admin_setup_enabled:
        msg = "Setup endpoint is disabled"
        raise Forbidden(msg)
    if settings.admin_setup_key and x_setup_key != settings.admin_setup_key:
        msg = "Invalid setup key"
        raise Forbidden(msg)
    if not body.email or not body.password:
        msg = "Email and password are required"
        raise BadRequest(msg)

    try:
        admin = await create_admin(db, body.email, body.password)
    except PasswordTooShortError as e:
        raise BadRequest(str(e)) from e
    await db.commit()
    return SetupResponse(id=admin.id, email=admin.email)
