"""Shared pytest fixtures for store, service and API tests."""

import datetime
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from shortlinks.config import Settings
from shortlinks.dependencies import get_link_store
from shortlinks.link_service import LinkService
from shortlinks.main import app
from shortlinks.store import LinkStore


def as_utc(value: datetime.datetime) -> datetime.datetime:
    """SQLite hands timestamps back without tzinfo; they are stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.UTC)
    return value


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'shortlinks.db'}")


@pytest_asyncio.fixture(scope="function")
async def store(settings: Settings) -> AsyncGenerator[LinkStore, None]:
    link_store = LinkStore.from_settings(settings)
    await link_store.init()
    yield link_store
    await link_store.close()


@pytest.fixture
def service(store: LinkStore, settings: Settings) -> LinkService:
    return LinkService(store, settings=settings)


@pytest_asyncio.fixture(scope="function")
async def client(store: LinkStore) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_link_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
