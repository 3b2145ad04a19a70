import os
from pathlib import Path
from typing import Iterator

import pytest

# Keep test runs from writing rotating log files into the repository.
os.environ.setdefault("PAGEKEEPER_LOG_DIR", "")

from pagekeeper.config_manager import reload_settings  # noqa: E402
from pagekeeper.database import dispose_engine, init_db  # noqa: E402
from pagekeeper.services import UserService  # noqa: E402
from pagekeeper.services.records import UserEntry  # noqa: E402


@pytest.fixture(autouse=True)
def sqlite_database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    """Point every test at a fresh SQLite database under *tmp_path*."""

    url = f"sqlite:///{tmp_path / 'pagekeeper.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setenv("CLIENT_URL", "https://reader.example")
    reload_settings()
    dispose_engine()
    init_db()
    yield url
    dispose_engine()
    monkeypatch.undo()
    reload_settings()


@pytest.fixture
def user() -> UserEntry:
    return UserService().create_user("reader@example.com", "Reader", password="correct-horse")


@pytest.fixture
def other_user() -> UserEntry:
    return UserService().create_user("someone@example.com", "Someone")
