"""SQLite implementation of the link store.

Connections are pooled by a SQLAlchemy async engine on the aiosqlite driver.
The driver's implicit transaction handling is switched off so that every
transaction is opened by an explicit ``BEGIN``: deferred for reads,
``BEGIN IMMEDIATE`` for writes and units of work.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, List, Mapping, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import URL
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool, StaticPool

from ..errors import SlugConflictError, StorageError
from .base import LinkStoreBase, UnitOfWork
from .models import ClickEvent, Link

# Fixed-width UTC text so that comparisons in SQL are lexical
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

# Execution option read by the "begin" listener
BEGIN_MODE_OPTION = "shortlinks_begin_mode"

LINK_SELECT_SQL = """
    SELECT l.slug, l.target_url, l.created_at, l.updated_at, l.expires_at,
           COUNT(c.id) AS clicks
    FROM links l
    LEFT JOIN link_click_tracking c ON l.slug = c.slug
"""

CREATE_TABLES_SQL = [
    """
    CREATE TABLE IF NOT EXISTS links (
        slug TEXT PRIMARY KEY NOT NULL,
        target_url TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        expires_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS link_click_tracking (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        slug TEXT NOT NULL,
        datetime TEXT NOT NULL,
        client_ip_address TEXT NOT NULL,
        client_browser TEXT NOT NULL,
        expires_at TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_link_click_tracking_slug ON link_click_tracking (slug)",
    "CREATE INDEX IF NOT EXISTS idx_links_expires_at ON links (expires_at)",
]


def to_db_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def from_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def _row_to_link(row: Mapping[str, Any]) -> Link:
    return Link(
        slug=row["slug"],
        target_url=row["target_url"],
        created_at=from_db_timestamp(row["created_at"]),
        updated_at=from_db_timestamp(row["updated_at"]),
        expires_at=from_db_timestamp(row["expires_at"]),
        clicks=row["clicks"] or 0,
    )


def _row_to_click(row: Mapping[str, Any]) -> ClickEvent:
    return ClickEvent(
        slug=row["slug"],
        datetime=from_db_timestamp(row["datetime"]),
        client_ip_address=row["client_ip_address"],
        client_browser=row["client_browser"],
        expires_at=from_db_timestamp(row["expires_at"]),
    )


class SQLiteUnitOfWork(UnitOfWork):
    """Unit of work bound to one connection holding the write lock."""

    def __init__(self, conn: AsyncConnection):
        super().__init__()
        self.conn = conn

    async def get_link(self, slug: str) -> Optional[Link]:
        result = await self.conn.execute(
            text(LINK_SELECT_SQL + " WHERE l.slug = :slug GROUP BY l.slug"),
            {"slug": slug},
        )
        row = result.mappings().first()
        return _row_to_link(row) if row else None

    async def insert_click(self, click: ClickEvent) -> None:
        await self.conn.execute(
            text(
                """
                INSERT INTO link_click_tracking
                    (slug, datetime, client_ip_address, client_browser, expires_at)
                VALUES (:slug, :datetime, :client_ip_address, :client_browser, :expires_at)
                """
            ),
            {
                "slug": click.slug,
                "datetime": to_db_timestamp(click.datetime),
                "client_ip_address": click.client_ip_address,
                "client_browser": click.client_browser,
                "expires_at": to_db_timestamp(click.expires_at),
            },
        )


class SQLiteLinkStore(LinkStoreBase):
    """Embedded SQLite link store."""

    def __init__(
        self,
        db_config: str,
        pool_max_size: int = 5,
        connection_timeout_seconds: int = 30,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize SQLite store.

        Args:
            db_config: Connection string (sqlite:///relative/path.db,
                sqlite:////absolute/path.db) or a plain file path
            pool_max_size: Maximum number of open connections
            connection_timeout_seconds: Busy and pool wait timeout in seconds
            logger: Optional logger instance
        """
        super().__init__(db_config)

        self.logger = logger or logging.getLogger(__name__)
        self.path = self._parse_connection_string(db_config)
        self.pool_max_size = pool_max_size
        self.connection_timeout_seconds = connection_timeout_seconds

        if self.path == ":memory:" and pool_max_size != 1:
            # Each in-memory connection is its own database
            self.logger.warning("In-memory SQLite store, forcing pool size 1")
            self.pool_max_size = 1

        self.engine = self._create_engine()

    @staticmethod
    def _parse_connection_string(db_config: str) -> str:
        for prefix in ("sqlite+aiosqlite:///", "sqlite:///", "sqlite://"):
            if db_config.startswith(prefix):
                return db_config[len(prefix):]
        return db_config

    def _create_engine(self) -> AsyncEngine:
        url = URL.create("sqlite+aiosqlite", database=self.path)
        connect_args = {"timeout": self.connection_timeout_seconds}

        if self.path == ":memory:":
            engine = create_async_engine(url, connect_args=connect_args, poolclass=StaticPool)
        else:
            engine = create_async_engine(
                url,
                connect_args=connect_args,
                poolclass=AsyncAdaptedQueuePool,
                pool_size=self.pool_max_size,
                max_overflow=0,
                pool_timeout=self.connection_timeout_seconds,
            )

        busy_timeout_ms = int(self.connection_timeout_seconds * 1000)

        @event.listens_for(engine.sync_engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            # Transactions are opened by the "begin" listener below
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute(f"PRAGMA busy_timeout={busy_timeout_ms}")
            cursor.close()

        @event.listens_for(engine.sync_engine, "begin")
        def _on_begin(conn):
            mode = conn.get_execution_options().get(BEGIN_MODE_OPTION, "DEFERRED")
            conn.exec_driver_sql(f"BEGIN {mode}")

        return engine

    @asynccontextmanager
    async def _get_connection(self) -> AsyncIterator[AsyncConnection]:
        """Check out a pooled connection, translating driver errors."""
        try:
            async with self.engine.connect() as conn:
                yield conn
        except SQLAlchemyError as e:
            self.logger.error(f"SQLite error: {e}")
            raise StorageError(str(e)) from e

    @asynccontextmanager
    async def _write(self) -> AsyncIterator[AsyncConnection]:
        """Connection inside a ``BEGIN IMMEDIATE`` transaction, committed on exit."""
        async with self._get_connection() as conn:
            await conn.execution_options(**{BEGIN_MODE_OPTION: "IMMEDIATE"})
            async with conn.begin():
                yield conn

    async def initialize(self, create_tables: bool = True) -> None:
        if self.path != ":memory:":
            directory = os.path.dirname(os.path.abspath(self.path))
            os.makedirs(directory, exist_ok=True)

        if not create_tables:
            self.logger.debug("Table creation disabled")
            return

        self.logger.info(f"Creating tables if not exists in {self.path}")
        async with self._write() as conn:
            for statement in CREATE_TABLES_SQL:
                await conn.execute(text(statement))

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SQLiteUnitOfWork]:
        async with self._get_connection() as conn:
            # IMMEDIATE takes the write lock up front so no other writer can
            # delete the row between lookup and insert
            await conn.execution_options(**{BEGIN_MODE_OPTION: "IMMEDIATE"})
            trans = await conn.begin()
            uow = SQLiteUnitOfWork(conn)
            try:
                yield uow
            except BaseException:
                await trans.rollback()
                raise

            if uow.aborted:
                await trans.rollback()
            else:
                await trans.commit()

    async def create_link(
        self,
        slug: str,
        target_url: str,
        expires_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
    ) -> Link:
        created_at = created_at or datetime.now(timezone.utc)

        async with self._get_connection() as conn:
            await conn.execution_options(**{BEGIN_MODE_OPTION: "IMMEDIATE"})
            try:
                async with conn.begin():
                    await conn.execute(
                        text(
                            """
                            INSERT INTO links (slug, target_url, created_at, updated_at, expires_at)
                            VALUES (:slug, :target_url, :created_at, :created_at, :expires_at)
                            """
                        ),
                        {
                            "slug": slug,
                            "target_url": target_url,
                            "created_at": to_db_timestamp(created_at),
                            "expires_at": to_db_timestamp(expires_at),
                        },
                    )
            except IntegrityError as e:
                self.logger.warning(f"Slug already exists: {slug}")
                raise SlugConflictError(slug) from e

        self.logger.debug(f"Inserted link: {slug} -> {target_url}")
        # Round-trip through the stored representation
        return Link(
            slug=slug,
            target_url=target_url,
            created_at=from_db_timestamp(to_db_timestamp(created_at)),
            updated_at=from_db_timestamp(to_db_timestamp(created_at)),
            expires_at=from_db_timestamp(to_db_timestamp(expires_at)),
            clicks=0,
        )

    async def get_link(self, slug: str) -> Optional[Link]:
        async with self._get_connection() as conn:
            result = await conn.execute(
                text(LINK_SELECT_SQL + " WHERE l.slug = :slug GROUP BY l.slug"),
                {"slug": slug},
            )
            row = result.mappings().first()
        return _row_to_link(row) if row else None

    async def slug_exists(self, slug: str) -> bool:
        async with self._get_connection() as conn:
            result = await conn.execute(
                text("SELECT 1 FROM links WHERE slug = :slug LIMIT 1"), {"slug": slug}
            )
            return result.first() is not None

    async def list_links(self) -> List[Link]:
        async with self._get_connection() as conn:
            result = await conn.execute(
                text(LINK_SELECT_SQL + " GROUP BY l.slug ORDER BY l.created_at, l.slug")
            )
            rows = result.mappings().all()
        return [_row_to_link(row) for row in rows]

    async def delete_link(self, slug: str) -> bool:
        async with self.transaction() as uow:
            result = await uow.conn.execute(
                text("DELETE FROM links WHERE slug = :slug"), {"slug": slug}
            )
            if result.rowcount == 0:
                uow.abort()
                return False
            await uow.conn.execute(
                text("DELETE FROM link_click_tracking WHERE slug = :slug"), {"slug": slug}
            )
        return True

    async def list_clicks(self, slug: str) -> List[ClickEvent]:
        async with self._get_connection() as conn:
            result = await conn.execute(
                text(
                    """
                    SELECT slug, datetime, client_ip_address, client_browser, expires_at
                    FROM link_click_tracking
                    WHERE slug = :slug
                    ORDER BY datetime, id
                    """
                ),
                {"slug": slug},
            )
            rows = result.mappings().all()
        return [_row_to_click(row) for row in rows]

    async def delete_expired_links(self, now: datetime) -> int:
        async with self._write() as conn:
            result = await conn.execute(
                text("DELETE FROM links WHERE expires_at IS NOT NULL AND expires_at < :now"),
                {"now": to_db_timestamp(now)},
            )
            return result.rowcount

    async def delete_expired_clicks(self, now: datetime) -> int:
        async with self._write() as conn:
            result = await conn.execute(
                text(
                    "DELETE FROM link_click_tracking "
                    "WHERE expires_at IS NOT NULL AND expires_at < :now"
                ),
                {"now": to_db_timestamp(now)},
            )
            return result.rowcount

    async def health_check(self) -> bool:
        try:
            async with self._get_connection() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except StorageError as e:
            self.logger.error(f"Health check failed: {e}")
            return False

    async def close(self) -> None:
        """Dispose of the engine's pooled connections."""
        await self.engine.dispose()
        self.logger.debug(f"Closed SQLite engine for {self.path}")
