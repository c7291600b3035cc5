"""Shared fixtures.

The environment is pinned before the application is imported: the
module-level engine points at an unused in-memory database and each
test builds its own SQLite file.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["OBRAS_API_KEY"] = "test-api-key"
os.environ["DEBUG"] = "false"

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession  # noqa: E402

from factories import FakeRenderer, FakeStorage, prepare_database  # noqa: E402
from obras.infrastructure.database import (  # noqa: E402
    create_engine_from_url,
    create_session_factory,
)


@pytest.fixture
def database_url(tmp_path) -> str:
    """URL of a fresh SQLite file for this test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'obras.db'}"


@pytest.fixture
async def engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_engine_from_url(database_url)
    await prepare_database(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """One session per test, playing the role of the request transaction."""
    factory = create_session_factory(engine)
    async with factory() as session:
        yield session


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def failing_renderer() -> FakeRenderer:
    return FakeRenderer(fail=True)


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()
