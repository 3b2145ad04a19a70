"""Schemas for authentication/session endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class SessionUserPayload(BaseModel):
    """Lightweight description of an authenticated user."""

    id: str
    username: str
    email: str
    name: str


class SessionStatusResponse(BaseModel):
    """Response payload returned for active session lookups."""

    token: str
    user: SessionUserPayload
    created_at: Optional[str] = None


class LoginRequestPayload(BaseModel):
    """Incoming payload for the login endpoint."""

    login: str = Field(description="Email address or username")
    password: str


class RegistrationRequestPayload(BaseModel):
    """Payload for creating an account with a password."""

    email: str
    password: str = Field(min_length=8)
    name: Optional[str] = None
    username: Optional[str] = None
