"""
HS256 session tokens for the admin dashboard.

The token is the whole session: it names the admin (id + email) and expires
after ``admin_session_days``. Verification is signature-only; no database
lookup happens on the request path.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from deficit.config import get_settings

SESSION_TOKEN_TYPE = "admin_session"


@dataclass(frozen=True)
class AdminIdentity:
    id: str
    email: str


def create_session_token(admin_id: str, email: str, *, now: datetime | None = None) -> str:
    """
    Create a signed admin session token.

    Args:
        admin_id: The admin user's database ID.
        email: The admin's email (shown in the dashboard header).
        now: Issue time override, for tests.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    issued = now or datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "admin_id": admin_id,
        "email": email,
        "iat": issued,
        "exp": issued + timedelta(days=settings.admin_session_days),
        "type": SESSION_TOKEN_TYPE,
    }
    return jwt.encode(payload, settings.admin_jwt_secret, algorithm=settings.admin_jwt_algorithm)


def verify_session_token(token: str) -> AdminIdentity:
    """
    Verify a session token and return the admin it names.

    Raises:
        jwt.InvalidTokenError: If the token is malformed, expired, forged, or not a session token.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.admin_jwt_secret,
            algorithms=[settings.admin_jwt_algorithm],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        msg = "Session has expired"
        raise jwt.InvalidTokenError(msg) from None

    if payload.get("type") != SESSION_TOKEN_TYPE:
        msg = f"Expected token type '{SESSION_TOKEN_TYPE}', got '{payload.get('type')}'"
        raise jwt.InvalidTokenError(msg)
    if not payload.get("admin_id") or not payload.get("email"):
        msg = "Session token is missing the admin identity"
        raise jwt.InvalidTokenError(msg)

    return AdminIdentity(id=str(payload["admin_id"]), email=str(payload["email"]))
