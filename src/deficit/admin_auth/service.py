"""
Admin account service.

Handles admin lookup, credential checks with per-IP throttling, and the
one-off bootstrap of the first admin account.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from deficit.admin_auth.login_limiter import clear_attempts, is_rate_limited, record_failed_attempt
from deficit.admin_auth.password import (
    check_needs_rehash,
    hash_password,
    validate_password_length,
    verify_password,
)
from deficit.config import get_settings
from deficit.db.models import AdminUser
from deficit.errors import BadRequest, Duplicate, RateLimited, Unauthorized

logger = structlog.get_logger()


async def get_admin_by_email(db: AsyncSession, email: str) -> AdminUser | None:
    result = await db.execute(select(AdminUser).where(AdminUser.email == email.lower().strip()))
    return result.scalar_one_or_none()


async def authenticate_admin(
    db: AsyncSession,
    redis: Redis,
    ip: str,
    email: str,
    password: str,
) -> AdminUser:
    """
    Check admin credentials for a login attempt from ``ip``.

    The throttle is consulted before the credentials, so a locked-out IP is
    refused even with the right password.

    Raises:
        RateLimited: If the IP has exhausted its failed attempts.
        BadRequest: If email or password is empty (checked after the throttle).
        Unauthorized: If the email is unknown or the password is wrong.
    """
    if await is_rate_limited(redis, ip):
        logger.warning("admin_login_rate_limited", ip=ip)
        msg = "Too many login attempts. Please try again later."
        raise RateLimited(msg)

    if not email or not password:
        msg = "Email and password are required"
        raise BadRequest(msg)

    admin = await get_admin_by_email(db, email)
    if admin is None or not verify_password(password, admin.password_hash):
        attempts = await record_failed_attempt(redis, ip)
        logger.info("admin_login_failed", ip=ip, attempts=attempts)
        msg = "Invalid credentials"
        raise Unauthorized(msg)

    await clear_attempts(redis, ip)

    admin.last_login_at = datetime.now(timezone.utc)
    if check_needs_rehash(admin.password_hash):
        admin.password_hash = hash_password(password)
        logger.info("admin_password_rehashed", admin_id=admin.id)
    await db.flush()

    logger.info("admin_login_succeeded", admin_id=admin.id)
    return admin


async def create_admin(db: AsyncSession, email: str, password: str) -> AdminUser:
    """
    Create a dashboard admin.

    Raises:
        PasswordTooShortError: If the password is below the minimum length.
        Duplicate: If an admin with this email already exists.
    """
    settings = get_settings()
    validate_password_length(password, settings.password_min_length)

    normalized = email.lower().strip()
    if await get_admin_by_email(db, normalized) is not None:
        msg = "Admin user already exists"
        raise Duplicate(msg)

    admin = AdminUser(email=normalized, password_hash=hash_password(password))
    db.add(admin)
    await db.flush()
    logger.info("admin_created", admin_id=admin.id)
    return admin
