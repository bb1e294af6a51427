"""Business logic service for link management and resolution."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from .clicks import ClickRecorder
from .common.validators import is_valid_expiry, is_valid_slug, is_valid_url
from .database.base import LinkStoreBase
from .database.models import ClickEvent, Link
from .errors import (
    LinkNotFoundError,
    LinkValidationError,
    SlugConflictError,
    SlugGenerationExhaustedError,
)
from .resolver import RequestMetadata, Resolver
from .slugs import SlugGenerator


class LinkService:
    """Service layer for link management and redirects."""

    def __init__(
        self,
        store: LinkStoreBase,
        slug_generator: Optional[SlugGenerator] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize link service.

        Args:
            store: Link store instance
            slug_generator: Optional slug generator
            logger: Optional logger
        """
        self.store = store
        self.logger = logger or logging.getLogger(__name__)
        self.generator = slug_generator or SlugGenerator(logger=self.logger)
        self.resolver = Resolver(store, ClickRecorder(logger=self.logger), logger=self.logger)

    async def create_link(
        self,
        target_url: str,
        slug: Optional[str] = None,
        expires_in_secs: Optional[int] = None,
    ) -> Link:
        """Create a new link.

        Args:
            target_url: Destination of the redirect
            slug: Optional slug, generated when empty
            expires_in_secs: Optional lifetime, turned into an absolute expiry now

        Returns:
            The stored link

        Raises:
            LinkValidationError: If the URL, slug or expiry is malformed
            SlugConflictError: If a supplied slug already exists
            SlugGenerationExhaustedError: If no free slug could be generated
        """
        is_valid, error = is_valid_url(target_url)
        if not is_valid:
            raise LinkValidationError(f"Invalid URL: {error}")

        is_valid, error = is_valid_expiry(expires_in_secs)
        if not is_valid:
            raise LinkValidationError(f"Invalid expiry: {error}")

        # Only an absent slug is generated; anything else is validated as given
        if slug:
            is_valid, error = is_valid_slug(slug)
            if not is_valid:
                raise LinkValidationError(f"Invalid slug: {error}")

        created_at = datetime.now(timezone.utc)
        expires_at = None
        if expires_in_secs is not None:
            expires_at = created_at + timedelta(seconds=expires_in_secs)

        if slug:
            link = await self.store.create_link(slug, target_url, expires_at, created_at)
        else:
            link = await self._create_with_generated_slug(target_url, expires_at, created_at)

        self.logger.info(f"Created link: {link.slug} -> {target_url}")
        return link

    async def _create_with_generated_slug(
        self,
        target_url: str,
        expires_at: Optional[datetime],
        created_at: datetime,
    ) -> Link:
        # A concurrent create may take the slug between the existence check
        # and the insert; draw again in that case
        for _ in range(self.generator.max_attempts):
            slug = await self.generator.generate_unique(self.store)
            try:
                return await self.store.create_link(slug, target_url, expires_at, created_at)
            except SlugConflictError:
                self.logger.warning(f"Generated slug {slug} was taken concurrently, retrying")

        raise SlugGenerationExhaustedError(self.generator.max_attempts, self.generator.length)

    async def get_link(self, slug: str) -> Link:
        """Get a link with its click count.

        Raises:
            LinkNotFoundError: If the slug does not exist
        """
        link = await self.store.get_link(slug)
        if link is None:
            raise LinkNotFoundError(slug)
        return link

    async def list_links(self) -> List[Link]:
        """List all links with aggregated click counts."""
        return await self.store.list_links()

    async def delete_link(self, slug: str) -> None:
        """Delete a link and its click history.

        Raises:
            LinkNotFoundError: If the slug does not exist
        """
        if not await self.store.delete_link(slug):
            raise LinkNotFoundError(slug)
        self.logger.info(f"Deleted link: {slug}")

    async def list_clicks(self, slug: str) -> List[ClickEvent]:
        """List click events recorded for a link.

        Raises:
            LinkNotFoundError: If the slug does not exist
        """
        if not await self.store.slug_exists(slug):
            raise LinkNotFoundError(slug)
        return await self.store.list_clicks(slug)

    async def resolve(self, slug: str, metadata: Optional[RequestMetadata] = None) -> Optional[str]:
        """Resolve a slug to its target URL and record the click."""
        return await self.resolver.resolve(slug, metadata)

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check.

        Returns:
            Dictionary with health status
        """
        db_healthy = await self.store.health_check()
        return {
            "database": db_healthy,
            "overall": db_healthy,
        }

    async def close(self) -> None:
        """Close store connections."""
        await self.store.close()
