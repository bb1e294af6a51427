"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from config import Config
from shortlinks.clicks import ClickRecorder
from shortlinks.common.logging_config import setup_logging
from shortlinks.database.models import ClickEvent
from shortlinks.database.sqlite import SQLiteLinkStore
from shortlinks.service import LinkService
from shortlinks.slugs import SlugGenerator
from web_app import create_management_app, create_redirect_app


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def database_url(tmp_path) -> str:
    """SQLite URL of a fresh database file."""
    return f"sqlite:///{tmp_path / 'links.db'}"


@pytest.fixture
async def store(database_url, logger) -> AsyncGenerator[SQLiteLinkStore, None]:
    """Create an initialized test store."""
    store = SQLiteLinkStore(database_url, pool_max_size=5, logger=logger)
    await store.initialize(create_tables=True)

    yield store

    await store.close()


@pytest.fixture
def slug_generator(logger):
    """Create slug generator."""
    return SlugGenerator(length=4, max_attempts=100, logger=logger)


@pytest.fixture
def service(store, slug_generator, logger) -> LinkService:
    """Create service instance."""
    return LinkService(store=store, slug_generator=slug_generator, logger=logger)


@pytest.fixture
def config(database_url) -> Config:
    """Test configuration."""
    return Config(database_url=database_url, forward_url="https://sho.rt/")


@pytest.fixture
async def api_client(service, config):
    """HTTP client for the management API."""
    app = create_management_app(service, config)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
async def redirect_client(service, config):
    """HTTP client for the redirect listener."""
    app = create_redirect_app(service, config)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]


class NullAddressRecorder(ClickRecorder):
    """Writes a click that violates the NOT NULL constraint on the address."""

    async def record(self, uow, slug, client_ip, client_browser, link_expires_at):
        click = ClickEvent(slug, datetime.now(timezone.utc), None, client_browser or "", link_expires_at)
        await uow.insert_click(click)
        return click


@pytest.fixture
def null_address_recorder():
    """Click recorder whose insert always fails a table constraint."""
    return NullAddressRecorder()
