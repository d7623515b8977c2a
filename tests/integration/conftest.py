"""Integration test fixtures: the FastAPI app over the test database."""

from collections.abc import AsyncGenerator
from uuid import UUID

import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from workforce_engine.api.app import create_app
from workforce_engine.api.dependencies import get_db_session


@pytest_asyncio.fixture
async def app(session_factory: async_sessionmaker[AsyncSession]) -> FastAPI:
    """Application wired to the per-test in-memory database."""
    application = create_app()

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db_session] = override_db_session
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for integration tests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def headers(org_id: UUID, employee_id: UUID | None = None) -> dict[str, str]:
    """Identity headers normally set by the auth layer."""
    result = {"X-Org-ID": str(org_id)}
    if employee_id is not None:
        result["X-Employee-ID"] = str(employee_id)
    return result
