"""Shared pytest fixtures for Forkchat tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from forkchat.db.connection import Database
from forkchat.generation.service import GenerationService
from forkchat.main import app
from forkchat.settings.router import get_settings_service
from forkchat.settings.service import SettingsService
from forkchat.trees.router import get_generation_service, get_tree_service
from forkchat.trees.service import TreeService


@pytest.fixture
async def db():
    """In-memory database for tests."""
    database = await Database.connect(":memory:")
    yield database
    await database.close()


@pytest.fixture
async def tree_service(db):
    return TreeService(db)


@pytest.fixture
async def settings_service(db):
    return SettingsService(db)


@pytest.fixture
async def client(tree_service, settings_service):
    """Async test client with in-memory DB wired into the app."""
    gen_service = GenerationService(tree_service, settings_service)
    app.dependency_overrides[get_tree_service] = lambda: tree_service
    app.dependency_overrides[get_settings_service] = lambda: settings_service
    app.dependency_overrides[get_generation_service] = lambda: gen_service
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()
