"""Shared Redis client.

Redis only holds short-lived counters (admin login attempts), so every app
instance sees the same throttle state. Nothing here is durable.
"""

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from deficit.config import Settings

logger = structlog.get_logger()

_pool: redis.Redis | None = None


async def init_redis(settings: Settings) -> None:
    """Create the client. Connections open lazily on the first command."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        settings.redis_url,
        decode_responses=True,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
    )
    logger.info("redis_configured", max_connections=settings.redis_max_connections)


async def close_redis() -> None:
    global _pool  # noqa: PLW0603
    if _pool is not None:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """FastAPI dependency for the shared client."""
    if _pool is None:
        msg = "Redis client is not initialised; the app lifespan has not run"
        raise RuntimeError(msg)
    return _pool


async def redis_healthy() -> bool:
    """PING the server. False when the client is missing or unreachable."""
    if _pool is None:
        return False
    try:
        return bool(await _pool.ping())
    except RedisError as exc:
        logger.warning("redis_ping_failed", error=str(exc))
        return False
