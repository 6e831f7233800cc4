"""Pytest fixtures for backend tests."""

import os

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

# Set environment before any rulehub imports to avoid using the production DB
os.environ["RULEHUB_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RULEHUB_RATE_LIMIT_ENABLED"] = "false"


@pytest_asyncio.fixture(scope="function")
async def test_db(tmp_path):
    """Create a fresh test database for each test.

    Creates a file-based SQLite database with all tables and patches the
    session factory the repositories read from, restoring it afterwards.
    """
    from rulehub.database import Base
    import rulehub.database as db_module

    original_factory = db_module.async_session_factory
    original_engine = db_module.engine

    db_path = tmp_path / "test.db"
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        connect_args={"check_same_thread": False},
        echo=False,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    test_factory = async_sessionmaker(test_engine, expire_on_commit=False)

    db_module.async_session_factory = test_factory
    db_module.engine = test_engine

    yield test_factory

    db_module.async_session_factory = original_factory
    db_module.engine = original_engine

    await test_engine.dispose()


def pytest_configure(config):
    """Register the asyncio marker."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )
