"""Tests for the SQLite link store."""

import asyncio
import os
from datetime import datetime, timedelta, timezone

import pytest

from shortlinks.database import PostgresLinkStore, SQLiteLinkStore, create_store
from shortlinks.database.models import ClickEvent
from shortlinks.database.sqlite import from_db_timestamp, to_db_timestamp
from shortlinks.errors import SlugConflictError, StorageError


def _click(slug, when=None, expires_at=None):
    return ClickEvent(
        slug=slug,
        datetime=when or datetime.now(timezone.utc),
        client_ip_address="127.0.0.1",
        client_browser="pytest",
        expires_at=expires_at,
    )


async def _add_click(store, slug, **kwargs):
    async with store.transaction() as uow:
        await uow.insert_click(_click(slug, **kwargs))


class TestTimestamps:
    """Test timestamp storage format."""

    def test_round_trip(self):
        value = datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc)
        assert from_db_timestamp(to_db_timestamp(value)) == value

    def test_naive_treated_as_utc(self):
        assert to_db_timestamp(datetime(2024, 1, 1)) == "2024-01-01 00:00:00.000000"

    def test_other_timezone_converted(self):
        value = datetime(2024, 1, 1, 5, tzinfo=timezone(timedelta(hours=5)))
        assert to_db_timestamp(value) == "2024-01-01 00:00:00.000000"

    def test_none(self):
        assert to_db_timestamp(None) is None
        assert from_db_timestamp(None) is None


class TestCreateStore:
    """Test store selection from URL."""

    def test_sqlite(self, tmp_path):
        store = create_store(f"sqlite:///{tmp_path / 'x.db'}")
        assert isinstance(store, SQLiteLinkStore)
        assert store.path == str(tmp_path / "x.db")

    def test_postgres(self):
        store = create_store("postgresql://user:pw@db:5433/links")
        assert isinstance(store, PostgresLinkStore)
        assert (store.host, store.port, store.database, store.user) == ("db", 5433, "links", "user")

    def test_unsupported(self):
        with pytest.raises(ValueError):
            create_store("mysql://localhost/links")

    def test_memory_forces_single_connection(self):
        store = create_store("sqlite:///:memory:", pool_max_size=5)
        assert store.pool_max_size == 1


class TestSQLiteLinkStore:
    """Test link store operations."""

    async def test_initialize_creates_directory(self, tmp_path, logger):
        path = tmp_path / "nested" / "dir" / "links.db"
        store = SQLiteLinkStore(f"sqlite:///{path}", logger=logger)
        try:
            await store.initialize()
            assert os.path.isdir(path.parent)
            assert await store.health_check()
        finally:
            await store.close()

    async def test_create_and_get(self, store):
        expires_at = datetime.now(timezone.utc) + timedelta(hours=1)
        link = await store.create_link("abcd", "https://example.com", expires_at)

        assert link.slug == "abcd"
        assert link.clicks == 0

        fetched = await store.get_link("abcd")
        assert fetched.target_url == "https://example.com"
        assert fetched.expires_at == expires_at
        assert fetched.created_at == link.created_at
        assert fetched.updated_at == link.created_at

    async def test_get_missing(self, store):
        assert await store.get_link("nope") is None
        assert not await store.slug_exists("nope")

    async def test_duplicate_slug_conflicts_without_change(self, store):
        await store.create_link("dup1", "https://first.example")

        with pytest.raises(SlugConflictError):
            await store.create_link("dup1", "https://second.example")

        link = await store.get_link("dup1")
        assert link.target_url == "https://first.example"

    async def test_list_links_includes_zero_clicks(self, store):
        await store.create_link("aaaa", "https://a.example")
        await store.create_link("bbbb", "https://b.example")
        await _add_click(store, "aaaa")
        await _add_click(store, "aaaa")

        links = {link.slug: link for link in await store.list_links()}

        assert links["aaaa"].clicks == 2
        assert links["bbbb"].clicks == 0

    async def test_delete_cascades_to_clicks(self, store):
        await store.create_link("gone", "https://example.com")
        await _add_click(store, "gone")

        assert await store.delete_link("gone")

        assert await store.get_link("gone") is None
        assert await store.list_clicks("gone") == []

    async def test_recreated_slug_starts_without_clicks(self, store):
        await store.create_link("again", "https://old.example")
        await _add_click(store, "again")
        await store.delete_link("again")

        await store.create_link("again", "https://new.example")

        assert (await store.get_link("again")).clicks == 0

    async def test_delete_missing(self, store):
        assert not await store.delete_link("missing")

    async def test_list_clicks_ordered(self, store):
        await store.create_link("ord1", "https://example.com")
        now = datetime.now(timezone.utc)
        await _add_click(store, "ord1", when=now + timedelta(seconds=2))
        await _add_click(store, "ord1", when=now)

        clicks = await store.list_clicks("ord1")

        assert [c.datetime for c in clicks] == [now, now + timedelta(seconds=2)]
        assert clicks[0].client_ip_address == "127.0.0.1"
        assert clicks[0].client_browser == "pytest"

    async def test_transaction_abort_rolls_back(self, store):
        await store.create_link("roll", "https://example.com")

        async with store.transaction() as uow:
            await uow.insert_click(_click("roll"))
            uow.abort()

        assert await store.list_clicks("roll") == []

    async def test_transaction_exception_rolls_back(self, store):
        await store.create_link("boom", "https://example.com")

        with pytest.raises(RuntimeError):
            async with store.transaction() as uow:
                await uow.insert_click(_click("boom"))
                raise RuntimeError("fail after insert")

        assert await store.list_clicks("boom") == []
        # Connection went back to the pool in a usable state
        await _add_click(store, "boom")
        assert len(await store.list_clicks("boom")) == 1

    async def test_pool_recovers_from_cancelled_units_of_work(self, tmp_path, logger):
        store = SQLiteLinkStore(
            f"sqlite:///{tmp_path / 'cancel.db'}",
            pool_max_size=2,
            connection_timeout_seconds=5,
            logger=logger,
        )
        await store.initialize()
        await store.create_link("stop", "https://example.com")

        async def hold_transaction(entered):
            async with store.transaction() as uow:
                await uow.insert_click(_click("stop"))
                entered.set()
                await asyncio.Event().wait()

        try:
            # More cancellations than the pool has connections
            for _ in range(store.pool_max_size * 2):
                entered = asyncio.Event()
                task = asyncio.create_task(hold_transaction(entered))
                await entered.wait()
                task.cancel()
                with pytest.raises(asyncio.CancelledError):
                    await task

            assert await asyncio.wait_for(store.list_clicks("stop"), timeout=2) == []
            await asyncio.wait_for(_add_click(store, "stop"), timeout=2)
            assert (await store.get_link("stop")).clicks == 1
        finally:
            await store.close()

    async def test_engine_pool_sized_from_settings(self, tmp_path, logger):
        store = SQLiteLinkStore(f"sqlite:///{tmp_path / 'sized.db'}", pool_max_size=3, logger=logger)
        try:
            assert store.engine.pool.size() == 3
        finally:
            await store.close()

    async def test_delete_expired(self, store):
        now = datetime.now(timezone.utc)
        await store.create_link("old1", "https://example.com", now - timedelta(seconds=1))
        await store.create_link("new1", "https://example.com", now + timedelta(hours=1))
        await store.create_link("ever", "https://example.com", None)
        await _add_click(store, "old1", expires_at=now - timedelta(seconds=1))
        await _add_click(store, "ever")

        assert await store.delete_expired_links(now) == 1
        assert await store.delete_expired_clicks(now) == 1

        remaining = {link.slug for link in await store.list_links()}
        assert remaining == {"new1", "ever"}
        assert len(await store.list_clicks("ever")) == 1

    async def test_storage_error_without_tables(self, tmp_path, logger):
        store = SQLiteLinkStore(f"sqlite:///{tmp_path / 'empty.db'}", logger=logger)
        try:
            await store.initialize(create_tables=False)
            with pytest.raises(StorageError):
                await store.get_link("abcd")
        finally:
            await store.close()
