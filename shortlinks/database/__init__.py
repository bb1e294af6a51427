"""Database layer for the link engine."""

import logging
from typing import Optional

from .base import LinkStoreBase, UnitOfWork
from .models import ClickEvent, Link
from .postgres import PostgresLinkStore
from .sqlite import SQLiteLinkStore


def create_store(
    database_url: str,
    pool_max_size: int = 5,
    connection_timeout_seconds: int = 30,
    logger: Optional[logging.Logger] = None,
) -> LinkStoreBase:
    """Build the store matching the URL scheme of ``database_url``."""
    if database_url.startswith(("postgres://", "postgresql://")):
        store_class = PostgresLinkStore
    elif database_url.startswith("sqlite:") or "://" not in database_url:
        store_class = SQLiteLinkStore
    else:
        raise ValueError(f"Unsupported database URL: {database_url}")

    return store_class(
        database_url,
        pool_max_size=pool_max_size,
        connection_timeout_seconds=connection_timeout_seconds,
        logger=logger,
    )


__all__ = [
    "LinkStoreBase",
    "UnitOfWork",
    "Link",
    "ClickEvent",
    "SQLiteLinkStore",
    "PostgresLinkStore",
    "create_store",
]
