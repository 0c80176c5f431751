"""Request/response schemas for admin authentication endpoints."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr


class LoginRequest(BaseModel):
    """Admin login. Fields are optional so a missing one yields 400, not 422."""

    email: str | None = None
    password: str | None = None


class SetupRequest(BaseModel):
    email: EmailStr | None = None
    password: str | None = None


class SessionCheckResponse(BaseModel):
    authenticated: bool
    email: str | None = None


class SetupResponse(BaseModel):
    success: bool = True
    id: str
    email: str
