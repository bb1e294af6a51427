"""PostgreSQL store tests.

Run only when SHORTLINKS_TEST_POSTGRES_URL points at a disposable database.
"""

import asyncio
import os
from datetime import datetime, timedelta, timezone

import pytest

from shortlinks.database.postgres import PostgresLinkStore
from shortlinks.errors import SlugConflictError
from shortlinks.resolver import RequestMetadata, Resolver

POSTGRES_URL = os.getenv("SHORTLINKS_TEST_POSTGRES_URL")

pytestmark = pytest.mark.skipif(not POSTGRES_URL, reason="SHORTLINKS_TEST_POSTGRES_URL not set")


@pytest.fixture
async def pg_store(logger):
    store = PostgresLinkStore(POSTGRES_URL, logger=logger)
    await store.initialize(create_tables=True)
    async with store._get_connection() as conn:
        await conn.execute("DELETE FROM link_click_tracking")
        await conn.execute("DELETE FROM links")

    yield store

    await store.close()


class TestPostgresLinkStore:
    """Same contract as the SQLite store."""

    async def test_create_conflict_and_cascade(self, pg_store):
        await pg_store.create_link("pg1", "https://example.com")
        with pytest.raises(SlugConflictError):
            await pg_store.create_link("pg1", "https://other.example")

        await Resolver(pg_store).resolve("pg1", RequestMetadata("192.0.2.1", "pytest"))
        assert (await pg_store.get_link("pg1")).clicks == 1

        assert await pg_store.delete_link("pg1") is True
        assert await pg_store.list_clicks("pg1") == []

    async def test_concurrent_resolutions(self, pg_store):
        await pg_store.create_link("pg2", "https://example.com")
        resolver = Resolver(pg_store)

        await asyncio.gather(*[resolver.resolve("pg2") for _ in range(20)])

        assert (await pg_store.get_link("pg2")).clicks == 20

    async def test_sweep(self, pg_store):
        now = datetime.now(timezone.utc)
        await pg_store.create_link("pg3", "https://example.com", expires_at=now - timedelta(seconds=1))
        await pg_store.create_link("pg4", "https://example.com")

        assert await pg_store.delete_expired_links(now) == 1
        assert await pg_store.get_link("pg3") is None
        assert await pg_store.get_link("pg4") is not None
