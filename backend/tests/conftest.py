"""
Pytest fixtures for backend testing.
Provides isolated settings, stores and test clients.
"""

from collections.abc import AsyncGenerator, Iterator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from alucbam.core.config import get_settings
from alucbam.core.security import Principal
from alucbam.core.tasks import PersistenceDispatcher
from alucbam.db.store import InMemoryDocumentStore
from alucbam.main import create_application
from alucbam.modules.emissions.catalog import EmissionFactorCatalog
from alucbam.modules.emissions.router import get_catalog

USER_ID = "user-123"


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop ALUCBAM_* overrides from the environment and reset cached settings."""
    monkeypatch.delenv("ALUCBAM_ENVIRONMENT", raising=False)
    monkeypatch.delenv("ALUCBAM_PERSISTENCE_BACKEND", raising=False)
    monkeypatch.delenv("ALUCBAM_EMISSION_FACTOR_PATH", raising=False)
    monkeypatch.delenv("ALUCBAM_SUPPLIER_STRICT_SEQUENCING", raising=False)
    get_settings.cache_clear()
    get_catalog.cache_clear()
    yield
    get_settings.cache_clear()
    get_catalog.cache_clear()


@pytest.fixture()
def catalog() -> EmissionFactorCatalog:
    return EmissionFactorCatalog()


@pytest.fixture()
def principal() -> Principal:
    return Principal(subject=USER_ID, email="analyst@example.com")


@pytest.fixture()
def auth_headers() -> dict[str, str]:
    return {"X-User-Id": USER_ID, "X-User-Email": "analyst@example.com"}


@pytest.fixture()
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture()
def dispatcher() -> PersistenceDispatcher:
    return PersistenceDispatcher()


@pytest.fixture()
def app(store: InMemoryDocumentStore, dispatcher: PersistenceDispatcher) -> FastAPI:
    application = create_application()
    application.state.store = store
    application.state.dispatcher = dispatcher
    return application


@pytest_asyncio.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app without running its lifespan."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
