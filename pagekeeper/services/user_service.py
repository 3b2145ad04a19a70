"""PostgreSQL-backed user accounts with bcrypt password hashing."""

from __future__ import annotations

import re
from typing import Optional

import bcrypt
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError

from .. import logging_manager as log_mgr
from ..database.engine import get_db_session
from ..database.models import UserModel
from .errors import AlreadyExistsError, BadRequestError
from .records import UserEntry, user_entry

logger = log_mgr.get_logger().getChild("services.users")

_USERNAME_PATTERN = re.compile(r"[^a-z0-9_]+")


def _derive_username(email: str) -> str:
    local_part = email.split("@", 1)[0].lower()
    return _USERNAME_PATTERN.sub("_", local_part).strip("_") or "user"


class UserService:
    """Create, look up and remove user accounts."""

    def create_user(
        self,
        email: str,
        name: str = "",
        *,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> UserEntry:
        email = (email or "").strip().lower()
        if "@" not in email:
            raise BadRequestError(f"Invalid email address: {email!r}")
        username = (username or _derive_username(email)).strip().lower()

        with get_db_session() as session:
            existing = session.execute(
                select(UserModel).where(
                    or_(UserModel.email == email, UserModel.username == username)
                )
            ).scalars().first()
            if existing is not None:
                raise AlreadyExistsError(f"User '{email}' already exists")

            model = UserModel(
                email=email,
                name=name or username,
                username=username,
                password_hash=self._hash_password(password) if password else None,
            )
            session.add(model)
            try:
                session.flush()
            except IntegrityError as exc:
                raise AlreadyExistsError(f"User '{email}' already exists") from exc
            entry = user_entry(model)

        logger.info("User created", extra={"event": "users.create", "user_id": entry.id})
        return entry

    def find_user(self, user_id: str) -> Optional[UserEntry]:
        with get_db_session() as session:
            model = session.get(UserModel, user_id)
            return user_entry(model) if model is not None else None

    def find_user_by_login(self, login: str) -> Optional[UserEntry]:
        """Resolve a user by email or username (case-insensitive)."""

        candidate = (login or "").strip().lower()
        if not candidate:
            return None
        with get_db_session() as session:
            model = session.execute(
                select(UserModel).where(
                    or_(
                        func.lower(UserModel.email) == candidate,
                        func.lower(UserModel.username) == candidate,
                    )
                )
            ).scalars().first()
            return user_entry(model) if model is not None else None

    def verify_credentials(self, login: str, password: str) -> Optional[UserEntry]:
        candidate = (login or "").strip().lower()
        with get_db_session() as session:
            model = session.execute(
                select(UserModel).where(
                    or_(
                        func.lower(UserModel.email) == candidate,
                        func.lower(UserModel.username) == candidate,
                    )
                )
            ).scalars().first()
            if model is None or not model.password_hash or model.status != "ACTIVE":
                return None
            if not self._verify_password(password, model.password_hash):
                return None
            return user_entry(model)

    def delete_user(self, user_id: str) -> bool:
        """Remove a user and, through cascades, everything they own."""

        with get_db_session() as session:
            result = session.execute(delete(UserModel).where(UserModel.id == user_id))
            deleted = result.rowcount > 0

        if deleted:
            logger.info("User deleted", extra={"event": "users.delete", "user_id": user_id})
        return deleted

    @staticmethod
    def _hash_password(password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

    @staticmethod
    def _verify_password(password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False


__all__ = ["UserService"]
