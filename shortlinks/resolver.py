"""Slug resolution with click tracking."""

import logging
from dataclasses import dataclass
from typing import Optional

from .clicks import ClickRecorder
from .database.base import LinkStoreBase


@dataclass
class RequestMetadata:
    """Requester details captured with each click."""

    client_ip: Optional[str] = None
    client_browser: Optional[str] = None


class Resolver:
    """Resolve slugs to target URLs, recording a click per hit.

    Lookup and click insert run in one unit of work: either the redirect is
    served and its click is stored, or the caller gets an error.
    """

    def __init__(
        self,
        store: LinkStoreBase,
        recorder: Optional[ClickRecorder] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.recorder = recorder or ClickRecorder(logger=logger)
        self.logger = logger or logging.getLogger(__name__)

    async def resolve(self, slug: str, metadata: Optional[RequestMetadata] = None) -> Optional[str]:
        """Resolve ``slug``.

        Args:
            slug: The slug from the request path
            metadata: Requester details for the click event

        Returns:
            The target URL, or None if the slug is unknown

        Raises:
            StorageError: If the lookup or the click insert fails
        """
        metadata = metadata or RequestMetadata()

        async with self.store.transaction() as uow:
            link = await uow.get_link(slug)
            if link is None:
                uow.abort()
                self.logger.info(f"Slug not found: {slug}")
                return None

            await self.recorder.record(
                uow,
                slug=link.slug,
                client_ip=metadata.client_ip,
                client_browser=metadata.client_browser,
                link_expires_at=link.expires_at,
            )

        self.logger.debug(f"Resolved {slug} -> {link.target_url}")
        return link.target_url
