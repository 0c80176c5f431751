"""CORS for the admin API (dashboard origins only)."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from deficit.config import Settings


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow credentialed requests from the configured dashboard origins."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Setup-Key"],
        expose_headers=["X-Request-Id"],
    )
