"""Shared fixtures for API tests.

API tests are synchronous: the app runs inside TestClient's own event
loop, so the database is prepared with asyncio.run beforehand.
"""

import asyncio
from collections.abc import AsyncGenerator, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from factories import FakeRenderer, FakeStorage, prepare_database
from obras.api.dependencies import get_renderer, get_storage
from obras.infrastructure.config import settings
from obras.infrastructure.database import (
    create_engine_from_url,
    create_session_factory,
    get_session,
)
from obras.main import app


@pytest.fixture
def api_engine(database_url: str) -> Generator[AsyncEngine, None, None]:
    engine = create_engine_from_url(database_url)
    asyncio.run(prepare_database(engine))
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture
def override_dependencies(
    api_engine: AsyncEngine,
    renderer: FakeRenderer,
    storage: FakeStorage,
) -> Generator[None, None, None]:
    """Point the app at the test database and fake document services."""
    factory = create_session_factory(api_engine)

    async def test_session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def test_renderer() -> AsyncGenerator[FakeRenderer, None]:
        yield renderer

    async def test_storage() -> AsyncGenerator[FakeStorage, None]:
        yield storage

    app.dependency_overrides[get_session] = test_session
    app.dependency_overrides[get_renderer] = test_renderer
    app.dependency_overrides[get_storage] = test_storage
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client(override_dependencies: None) -> TestClient:
    """Create test client without authentication."""
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Get authentication headers."""
    return {"Authorization": f"Bearer {settings.obras_api_key}", "X-Actor-Id": "7"}


@pytest.fixture
def auth_client(override_dependencies: None, auth_headers: dict[str, str]) -> TestClient:
    """Create test client with valid API key authentication."""
    return TestClient(app, headers=auth_headers)


@pytest.fixture
def created_work_order(auth_client: TestClient) -> dict:
    """A DRAFT WITH_BUDGET work order created through the API."""
    response = auth_client.post(
        "/work-orders",
        json={
            "kind": "MINOR_SERVICE",
            "title": "Repair storefront",
            "client_id": 1,
            "request_date": "2026-03-02",
        },
    )
    assert response.status_code == 201
    return response.json()
