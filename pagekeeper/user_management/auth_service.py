"""Authentication utilities built on top of the user service."""
from __future__ import annotations

from typing import Optional

from ..services.records import UserEntry
from ..services.user_service import UserService
from .session_manager import PgSessionManager


class AuthService:
    """Coordinate authentication and session tokens."""

    def __init__(
        self,
        user_service: Optional[UserService] = None,
        session_manager: Optional[PgSessionManager] = None,
    ) -> None:
        self._user_service = user_service or UserService()
        self._session_manager = session_manager or PgSessionManager()

    def login(self, login: str, password: str, *, user_agent: Optional[str] = None) -> str:
        """Validate user credentials and create a session token."""
        user = self._user_service.verify_credentials(login, password)
        if user is None:
            raise ValueError("Invalid username or password")
        return self._session_manager.create_session(user.id, user_agent=user_agent)

    def issue_token(self, user_id: str, *, user_agent: Optional[str] = None) -> str:
        """Create a session for an already-identified user."""
        return self._session_manager.create_session(user_id, user_agent=user_agent)

    def logout(self, session_token: str) -> bool:
        """Terminate a session token if present."""
        return self._session_manager.delete_session(session_token)

    def authenticate(self, session_token: str) -> Optional[UserEntry]:
        """Resolve a session token into the associated user."""
        user_id = self._session_manager.get_user_id(session_token)
        if not user_id:
            return None
        user = self._user_service.find_user(user_id)
        if user is None or user.status != "ACTIVE":
            return None
        return user

    @property
    def session_manager(self) -> PgSessionManager:
        return self._session_manager

    @property
    def user_service(self) -> UserService:
        return self._user_service
