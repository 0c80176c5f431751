"""HTTP client for the mobile backend's broadcast endpoints.

Push delivery (APNs) lives in the backend; this side only asks it to start or
cancel a campaign and relays its answer.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from deficit.config import get_settings
from deficit.errors import AppError, UpstreamFailure

logger = structlog.get_logger()


class BroadcastBackend:
    """Proxy for ``POST {base_url}/api/admin/broadcasts/{id}/{send|cancel}``."""

    def __init__(
        self,
        base_url: str,
        admin_secret: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.admin_secret = admin_secret
        self.timeout = timeout
        self.transport = transport

    async def send(self, campaign_id: str) -> dict[str, Any]:
        return await self._post(campaign_id, "send")

    async def cancel(self, campaign_id: str) -> dict[str, Any]:
        return await self._post(campaign_id, "cancel")

    async def _post(self, campaign_id: str, action: str) -> dict[str, Any]:
        if not self.admin_secret:
            msg = "ADMIN_SECRET not configured"
            raise AppError(msg, status_code=500)

        url = f"{self.base_url}/api/admin/broadcasts/{campaign_id}/{action}"
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(
                    url,
                    headers={
                        "Content-Type": "application/json",
                        "X-Admin-Secret": self.admin_secret,
                    },
                )
        except httpx.HTTPError as e:
            logger.warning("broadcast_backend_unreachable", campaign_id=campaign_id, action=action, error=str(e))
            msg = f"Failed to {action} campaign"
            raise UpstreamFailure(msg) from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.is_error:
            message = payload.get("message") if isinstance(payload, dict) else None
            logger.warning(
                "broadcast_backend_error",
                campaign_id=campaign_id,
                action=action,
                status=response.status_code,
            )
            raise UpstreamFailure(message or f"Failed to {action} campaign", status_code=response.status_code)

        return payload if isinstance(payload, dict) else {"result": payload}


def get_broadcast_backend() -> BroadcastBackend:
    """FastAPI dependency; tests override it with a mock-transport backend."""
    settings = get_settings()
    return BroadcastBackend(
        settings.backend_api_url,
        settings.backend_admin_secret,
        timeout=settings.backend_timeout_seconds,
    )
