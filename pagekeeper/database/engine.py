"""SQLAlchemy engine singleton and session helpers."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import Engine, create_engine, event, select, text, update
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from .. import config_manager as cfg
from .. import logging_manager as log_mgr

logger = log_mgr.get_logger().getChild("database")

USER_ID_SETTING = "pagekeeper.user_id"

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def get_database_url() -> str:
    return cfg.get_database_url()


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        url = make_url(get_database_url())
        if url.get_backend_name() == "sqlite":
            _engine = create_engine(
                url,
                connect_args={"check_same_thread": False},
                echo=False,
            )
            event.listen(_engine, "connect", _enable_sqlite_foreign_keys)
        else:
            _engine = create_engine(
                url,
                pool_size=10,
                max_overflow=5,
                pool_pre_ping=True,
                pool_recycle=3600,
                echo=False,
            )
        logger.debug(
            "Database engine created",
            extra={"event": "database.engine.created", "dialect": url.get_backend_name()},
        )
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(),
            expire_on_commit=False,
        )
    return _session_factory


@contextmanager
def get_db_session() -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""
    factory = get_session_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def auth_session(user_id: str) -> Iterator[Session]:
    """Provide a transaction bound to ``user_id``.

    On PostgreSQL the id is exposed to row-level security policies through a
    transaction-local setting; every dialect also records it in
    ``session.info``.
    """
    if not user_id:
        raise ValueError("user_id is required for an authorized transaction")

    with get_db_session() as session:
        session.info["user_id"] = user_id
        if session.get_bind().dialect.name == "postgresql":
            session.execute(
                text("SELECT set_config(:name, :value, true)"),
                {"name": USER_ID_SETTING, "value": user_id},
            )
        yield session


def lock_user(session: Session, user_id: str) -> None:
    """Serialize writers that keep per-user ordering, such as label positions.

    PostgreSQL takes a row lock on the user. Other dialects start the write
    transaction with a no-op update so later reads happen under the lock.
    """
    from .models import UserModel

    if session.get_bind().dialect.name == "postgresql":
        session.execute(
            select(UserModel.id).where(UserModel.id == user_id).with_for_update()
        )
    else:
        session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(updated_at=UserModel.updated_at)
            .execution_options(synchronize_session=False)
        )


def init_db() -> None:
    """Create every table registered on the declarative base."""
    from . import models  # noqa: F401  (registers the mappers)
    from .base import Base

    Base.metadata.create_all(get_engine())


def dispose_engine() -> None:
    """Dispose the global engine and clear the factory."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
