"""Authentication endpoints for the FastAPI backend."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException, status

from .. import logging_manager as log_mgr
from ..services.errors import AlreadyExistsError, BadRequestError
from ..services.records import UserEntry
from ..user_management import AuthService
from .dependencies import _extract_bearer_token, get_auth_service
from .schemas import (
    LoginRequestPayload,
    RegistrationRequestPayload,
    SessionStatusResponse,
    SessionUserPayload,
)

router = APIRouter()
logger = log_mgr.get_logger().getChild("webapi.auth")


def _require_token(authorization: str | None) -> str:
    token = _extract_bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing session token")
    return token


def _build_session_response(
    token: str,
    user: UserEntry,
    auth_service: AuthService,
) -> SessionStatusResponse:
    session_data = auth_service.session_manager.get_session(token) or {}
    return SessionStatusResponse(
        token=token,
        user=SessionUserPayload(
            id=user.id,
            username=user.username,
            email=user.email,
            name=user.name,
        ),
        created_at=session_data.get("created_at") or None,
    )


@router.post("/login", response_model=SessionStatusResponse)
def login(
    payload: LoginRequestPayload,
    user_agent: str | None = Header(default=None, alias="User-Agent"),
    auth_service: AuthService = Depends(get_auth_service),
) -> SessionStatusResponse:
    try:
        token = auth_service.login(payload.login, payload.password, user_agent=user_agent)
    except ValueError as exc:  # Invalid credentials
        logger.info("Login rejected", extra={"event": "auth.login.rejected"})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    user = auth_service.authenticate(token)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session token")
    logger.info("User logged in", extra={"event": "auth.login", "user_id": user.id})
    return _build_session_response(token, user, auth_service)


@router.post("/register", response_model=SessionStatusResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegistrationRequestPayload,
    user_agent: str | None = Header(default=None, alias="User-Agent"),
    auth_service: AuthService = Depends(get_auth_service),
) -> SessionStatusResponse:
    try:
        user = auth_service.user_service.create_user(
            payload.email,
            payload.name or "",
            username=payload.username,
            password=payload.password,
        )
    except AlreadyExistsError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except BadRequestError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    token = auth_service.issue_token(user.id, user_agent=user_agent)
    return _build_session_response(token, user, auth_service)


@router.get("/session", response_model=SessionStatusResponse)
def session_status(
    authorization: str | None = Header(default=None, alias="Authorization"),
    auth_service: AuthService = Depends(get_auth_service),
) -> SessionStatusResponse:
    token = _require_token(authorization)
    user = auth_service.authenticate(token)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session token")
    return _build_session_response(token, user, auth_service)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    authorization: str | None = Header(default=None, alias="Authorization"),
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    token = _require_token(authorization)
    auth_service.logout(token)
