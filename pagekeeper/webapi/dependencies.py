"""Dependency wiring for the FastAPI application."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache

from fastapi import Depends, Header, Query

from .. import config_manager as cfg
from .. import logging_manager as log_mgr
from ..services import (
    HighlightService,
    IntegrationService,
    LabelService,
    LibraryItemService,
    SavePageService,
    UserService,
)
from ..user_management import AuthService, PgSessionManager

logger = log_mgr.logger


@dataclass(frozen=True)
class RequestUserContext:
    """Identity resolved from the request's session token."""

    user_id: str | None
    username: str | None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


ANONYMOUS = RequestUserContext(user_id=None, username=None)


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip() or None
    return authorization.strip() or None


@lru_cache
def get_user_service() -> UserService:
    return UserService()


@lru_cache
def get_auth_service() -> AuthService:
    settings = cfg.get_settings()
    ttl = timedelta(hours=settings.session_ttl_hours) if settings.session_ttl_hours > 0 else None
    return AuthService(user_service=get_user_service(), session_manager=PgSessionManager(ttl=ttl))


@lru_cache
def get_label_service() -> LabelService:
    return LabelService()


@lru_cache
def get_library_item_service() -> LibraryItemService:
    return LibraryItemService()


@lru_cache
def get_highlight_service() -> HighlightService:
    return HighlightService(label_service=get_label_service())


@lru_cache
def get_save_page_service() -> SavePageService:
    return SavePageService(label_service=get_label_service())


@lru_cache
def get_integration_service() -> IntegrationService:
    return IntegrationService(
        save_page_service=get_save_page_service(),
        library_item_service=get_library_item_service(),
    )


def get_request_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
    access_token: str | None = Query(default=None, alias="access_token"),
    auth_service: AuthService = Depends(get_auth_service),
) -> RequestUserContext:
    """Resolve the request user identity from the session token."""

    token = _extract_bearer_token(authorization)
    if not token:
        token = (access_token or "").strip() or None
    if not token:
        return ANONYMOUS

    record = auth_service.authenticate(token)
    if record is None:
        logger.debug(
            "Rejected unknown session token",
            extra={"event": "auth.token.rejected"},
        )
        return ANONYMOUS
    return RequestUserContext(user_id=record.id, username=record.username)


__all__ = [
    "ANONYMOUS",
    "RequestUserContext",
    "get_auth_service",
    "get_highlight_service",
    "get_integration_service",
    "get_label_service",
    "get_library_item_service",
    "get_request_user",
    "get_save_page_service",
    "get_user_service",
]
