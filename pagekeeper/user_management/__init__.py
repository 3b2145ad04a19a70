"""User management utilities for pagekeeper."""
from .auth_service import AuthService
from .session_manager import PgSessionManager

__all__ = [
    "AuthService",
    "PgSessionManager",
]
