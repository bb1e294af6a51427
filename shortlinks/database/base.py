"""Abstract base classes for link store implementations."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import AsyncContextManager, List, Optional

from .models import ClickEvent, Link


class UnitOfWork(ABC):
    """Reads and writes that commit or roll back together.

    Obtained from ``LinkStoreBase.transaction()``. Leaving the context normally
    commits; raising inside it, or calling ``abort()``, rolls back.
    """

    def __init__(self):
        self.aborted = False

    def abort(self) -> None:
        """Discard everything done in this unit of work on exit."""
        self.aborted = True

    @abstractmethod
    async def get_link(self, slug: str) -> Optional[Link]:
        """Look up a link inside the unit of work.

        The row stays protected against concurrent deletion until the unit of
        work ends.
        """
        pass

    @abstractmethod
    async def insert_click(self, click: ClickEvent) -> None:
        """Append a click event row."""
        pass


class LinkStoreBase(ABC):
    """Abstract base class for link store operations."""

    def __init__(self, db_config: str):
        """Initialize store.

        Args:
            db_config: Database connection string
        """
        self.db_config = db_config

    @abstractmethod
    async def initialize(self, create_tables: bool = True) -> None:
        """Open the pool and optionally create missing tables."""
        pass

    @abstractmethod
    async def create_link(
        self,
        slug: str,
        target_url: str,
        expires_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
    ) -> Link:
        """Insert a new link.

        Raises:
            SlugConflictError: If the slug already exists
        """
        pass

    @abstractmethod
    async def get_link(self, slug: str) -> Optional[Link]:
        """Get a link with its aggregated click count, or None."""
        pass

    @abstractmethod
    async def slug_exists(self, slug: str) -> bool:
        """Check if a slug is taken."""
        pass

    @abstractmethod
    async def list_links(self) -> List[Link]:
        """List all links with aggregated click counts (zero included)."""
        pass

    @abstractmethod
    async def delete_link(self, slug: str) -> bool:
        """Delete a link and its click history.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def list_clicks(self, slug: str) -> List[ClickEvent]:
        """List click events for a slug ordered by time."""
        pass

    @abstractmethod
    def transaction(self) -> AsyncContextManager[UnitOfWork]:
        """Async context manager yielding a ``UnitOfWork``."""
        pass

    @abstractmethod
    async def delete_expired_links(self, now: datetime) -> int:
        """Delete links whose expiry is before ``now``. Returns row count."""
        pass

    @abstractmethod
    async def delete_expired_clicks(self, now: datetime) -> int:
        """Delete click events whose expiry is before ``now``. Returns row count."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close store connections."""
        pass


