"""
Shared pytest fixtures and configuration for all tests.
"""

import os
import shutil
import subprocess
from collections.abc import AsyncGenerator, Generator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest
from psycopg import Connection  # type: ignore[import]
from pytest_postgresql.executor import PostgreSQLExecutor  # type: ignore[import]
from sqlalchemy.ext.asyncio import AsyncSession

from alembic import command
from alembic.config import Config
from bookgraph.dbmodels import Authors, Books

PROJECT_DIR = Path(__file__).parent.parent


def _postgres_available() -> bool:
    """pytest-postgresql needs the server binaries (pg_ctl) to start a cluster."""
    if shutil.which("pg_ctl"):
        return True
    pg_config = shutil.which("pg_config")
    if not pg_config:
        return False
    try:
        bindir = subprocess.check_output([pg_config, "--bindir"], text=True).strip()
    except (OSError, subprocess.CalledProcessError):
        return False
    return (Path(bindir) / "pg_ctl").exists()


def _dsn(postgresql: Connection[Any]) -> str:
    info = postgresql.info
    return (
        f"postgresql://{info.user}:{getattr(info, 'password', '')}"
        f"@{info.host}:{info.port}/{info.dbname}"
    )


@pytest.fixture(scope="function", autouse=False)
def alembic_migrate(
    postgresql_proc: PostgreSQLExecutor, postgresql: Connection[Any]
) -> Generator[None, None, None]:
    """Run Alembic upgrade to head against the pytest-postgresql instance."""
    os.environ["BOOKGRAPH_DATABASE_URL"] = _dsn(postgresql)
    cfg = Config(str(PROJECT_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_DIR / "alembic"))
    command.upgrade(cfg, "head")
    yield
    command.downgrade(cfg, "base")


@pytest.fixture(scope="function")
def test_database(
    postgresql: Connection[Any],
) -> Generator[tuple[str, str], None, None]:
    """Return the DSN for the running pytest-postgresql database."""
    yield _dsn(postgresql), postgresql.info.dbname


@pytest.fixture(scope="function")
def reset_shared_db_connections(test_database: tuple[str, str]) -> Generator[None, None, None]:
    """Point the shared connection pool at the test database."""
    from bookgraph.database.connection import init_database, reset_database

    dsn, _ = test_database

    reset_database()
    init_database(dsn, force_reinit=True)

    yield

    reset_database()


@pytest.fixture
def mock_session() -> AsyncMock:
    """A stand-in AsyncSession; repositories are patched so it is never queried."""
    return AsyncMock(spec=AsyncSession)


@pytest.fixture
def session_factory(mock_session: AsyncMock):
    """Session factory handing out ``mock_session``, counting how often it is opened."""

    @asynccontextmanager
    async def factory() -> AsyncGenerator[AsyncMock, None]:
        factory.opened += 1
        yield mock_session

    factory.opened = 0
    return factory


def _make_author(author_id: int, name: str | None = None, email: str | None = None) -> Authors:
    return Authors(
        id=author_id,
        name=name or f"Author {author_id}",
        email=email or f"author{author_id}@example.com",
        created_at=datetime(2024, 1, 1, tzinfo=UTC),
    )


def _make_book(
    book_id: int,
    author_id: int,
    title: str | None = None,
    isbn: str | None = None,
    published_year: int | None = None,
) -> Books:
    return Books(
        id=book_id,
        title=title or f"Book {book_id}",
        isbn=isbn,
        published_year=published_year,
        author_id=author_id,
        created_at=datetime(2024, 1, 2, tzinfo=UTC),
    )


@pytest.fixture
def make_author():
    """Factory for detached Authors rows."""
    return _make_author


@pytest.fixture
def make_book():
    """Factory for detached Books rows."""
    return _make_book


@pytest.fixture(autouse=True)
def reset_environment() -> Generator[None, None, None]:
    """Reset environment variables for each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)


# Test markers
def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line(  # type: ignore[reportUnknownMemberType]
        "markers", "requires_db: mark test as requiring database connection"
    )
    config.addinivalue_line("markers", "slow: mark test as slow running")  # type: ignore[reportUnknownMemberType]
    config.addinivalue_line("markers", "integration: mark test as integration test")  # type: ignore[reportUnknownMemberType]
    config.addinivalue_line("markers", "unit: mark test as unit test")  # type: ignore[reportUnknownMemberType]


def pytest_collection_modifyitems(config: Any, items: list[pytest.Item]) -> None:
    """Skip database tests when no PostgreSQL server binaries are installed."""
    if _postgres_available():
        return
    skip_db = pytest.mark.skip(reason="PostgreSQL server binaries (pg_ctl) not found")
    for item in items:
        if "requires_db" in item.keywords:
            item.add_marker(skip_db)
