"""PostgreSQL-backed session manager."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from uuid import uuid4

from sqlalchemy import delete, select

from .. import logging_manager as log_mgr
from ..database.engine import get_db_session
from ..database.models import SessionModel, UserModel

_log = log_mgr.get_logger().getChild("user_management.sessions")


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PgSessionManager:
    """Manage session tokens in the database."""

    def __init__(self, *, ttl: Optional[timedelta] = None) -> None:
        self._ttl = ttl

    def create_session(self, user_id: str, *, user_agent: Optional[str] = None) -> str:
        token = uuid4().hex
        now = datetime.now(timezone.utc)
        with get_db_session() as session:
            user = session.get(UserModel, user_id)
            if user is None:
                raise KeyError(f"User '{user_id}' not found")

            session.add(
                SessionModel(
                    token=token,
                    user_id=user.id,
                    created_at=now,
                    last_active_at=now,
                    expires_at=now + self._ttl if self._ttl else None,
                    user_agent=user_agent,
                )
            )
        _log.debug("Session created", extra={"event": "sessions.create", "user_id": user_id})
        return token

    def get_session(self, token: str) -> Optional[Dict[str, str]]:
        with get_db_session() as session:
            model = session.execute(
                select(SessionModel).where(SessionModel.token == token)
            ).scalar_one_or_none()
            if model is None:
                return None
            if model.expires_at is not None and _as_aware(model.expires_at) <= datetime.now(timezone.utc):
                session.delete(model)
                return None
            model.last_active_at = datetime.now(timezone.utc)
            return {
                "user_id": model.user_id,
                "created_at": model.created_at.isoformat() if model.created_at else "",
            }

    def get_user_id(self, token: str) -> Optional[str]:
        data = self.get_session(token)
        if data:
            return data.get("user_id")
        return None

    def delete_session(self, token: str) -> bool:
        with get_db_session() as session:
            model = session.execute(
                select(SessionModel).where(SessionModel.token == token)
            ).scalar_one_or_none()
            if model is None:
                return False
            session.delete(model)
            return True

    def clear_sessions_for_user(self, user_id: str) -> int:
        with get_db_session() as session:
            result = session.execute(
                delete(SessionModel).where(SessionModel.user_id == user_id)
            )
            return result.rowcount
