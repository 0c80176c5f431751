"""Failed-login throttling per client IP, kept in Redis.

A counter per IP is incremented on each failed attempt and its TTL is pushed
out to the full window every time, so the lock lifts only after
``admin_login_window_minutes`` without a failure. Because the counter lives in
Redis it is shared by every app instance and survives restarts.
"""

from __future__ import annotations

from redis.asyncio import Redis
from starlette.requests import Request

from deficit.config import get_settings

_KEY = "admin_login_attempts:{ip}"


def client_ip(request: Request) -> str:
    """Best-effort client IP: first X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def is_rate_limited(redis: Redis, ip: str) -> bool:
    """True once the IP has used up its failures for the current window."""
    settings = get_settings()
    count_str = await redis.get(_KEY.format(ip=ip))
    if count_str is None:
        return False
    return int(count_str) >= settings.admin_login_max_attempts


async def record_failed_attempt(redis: Redis, ip: str) -> int:
    """Increment the failure counter and restart the window. Returns the new count."""
    settings = get_settings()
    key = _KEY.format(ip=ip)
    pipe = redis.pipeline()
    pipe.incr(key)
    pipe.expire(key, settings.admin_login_window_minutes * 60)
    results = await pipe.execute()
    return int(results[0])


async def clear_attempts(redis: Redis, ip: str) -> None:
    """Forget failures after a successful login."""
    await redis.delete(_KEY.format(ip=ip))
