"""Click recording."""

import logging
from datetime import datetime, timezone
from typing import Optional

from .database.base import UnitOfWork
from .database.models import ClickEvent

UNKNOWN_CLIENT_IP = "unknown"


class ClickRecorder:
    """Append one click event per resolved redirect."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    async def record(
        self,
        uow: UnitOfWork,
        slug: str,
        client_ip: Optional[str],
        client_browser: Optional[str],
        link_expires_at: Optional[datetime],
    ) -> ClickEvent:
        """Insert a click event inside ``uow``.

        Errors propagate so the caller's unit of work rolls back.

        Args:
            uow: The unit of work that looked the link up
            slug: Slug that was resolved
            client_ip: Remote address, ``"unknown"`` when missing
            client_browser: User-Agent header, ``""`` when missing
            link_expires_at: Expiry of the link at click time

        Returns:
            The recorded event
        """
        click = ClickEvent(
            slug=slug,
            datetime=datetime.now(timezone.utc),
            client_ip_address=client_ip or UNKNOWN_CLIENT_IP,
            client_browser=client_browser or "",
            expires_at=link_expires_at,
        )
        await uow.insert_click(click)
        self.logger.debug(f"Recorded click for {slug} from {click.client_ip_address}")
        return click
