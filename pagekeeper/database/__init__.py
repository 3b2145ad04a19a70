"""SQLAlchemy database layer for pagekeeper.

Provides the shared engine, session factory, and declarative base
used by all services.
"""

from .base import Base
from .engine import auth_session, dispose_engine, get_db_session, get_engine, init_db, lock_user

__all__ = ["Base", "auth_session", "get_engine", "get_db_session", "dispose_engine", "init_db", "lock_user"]
