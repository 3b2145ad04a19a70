"""Pydantic request and response models for the REST endpoints."""

from .auth import (
    LoginRequestPayload,
    RegistrationRequestPayload,
    SessionStatusResponse,
    SessionUserPayload,
)

__all__ = [
    "LoginRequestPayload",
    "RegistrationRequestPayload",
    "SessionStatusResponse",
    "SessionUserPayload",
]
