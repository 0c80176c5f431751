"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from deficit.admin_auth.router import router as admin_auth_router
from deficit.config import DEFAULT_ADMIN_JWT_SECRET, get_settings
from deficit.dashboard.router import router as dashboard_router
from deficit.database import close_db, init_db
from deficit.food_logs.router import router as food_logs_router
from deficit.health.router import router as health_router
from deficit.middleware import setup_middleware
from deficit.notifications.router import router as notifications_router
from deficit.redis_client import close_redis, init_redis
from deficit.refresh_tokens.router import router as refresh_tokens_router
from deficit.usage_records.router import router as usage_records_router
from deficit.users.router import router as users_router
from deficit.waitlist.router import admin_router as waitlist_admin_router
from deficit.waitlist.router import public_router as waitlist_public_router
from deficit.web.pages import STATIC_DIR
from deficit.web.pages import admin_router as admin_pages_router
from deficit.web.pages import public_router as public_pages_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    if settings.is_production and settings.admin_jwt_secret == DEFAULT_ADMIN_JWT_SECRET:
        logger.warning("admin_jwt_secret_is_default", environment=settings.environment)

    await init_db(settings.database_url, pool_size=settings.db_pool_size, max_overflow=settings.db_max_overflow)
    await init_redis(settings)
    logger.info("app_started", version=settings.app_version, environment=settings.environment)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Deficit Web",
        description="Landing page, waitlist and admin dashboard for the Deficit calorie tracker",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router)
    app.include_router(admin_auth_router)
    app.include_router(users_router)
    app.include_router(food_logs_router)
    app.include_router(usage_records_router)
    app.include_router(refresh_tokens_router)
    app.include_router(notifications_router)
    app.include_router(dashboard_router)
    app.include_router(waitlist_admin_router)
    app.include_router(waitlist_public_router)
    app.include_router(public_pages_router)
    app.include_router(admin_pages_router)
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    return app


app = create_app()
