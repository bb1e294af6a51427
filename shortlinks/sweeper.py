"""Background deletion of expired links and click history."""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .database.base import LinkStoreBase

DEFAULT_SWEEP_INTERVAL_SECONDS = 3600


@dataclass
class SweepResult:
    """Rows deleted by one sweep cycle."""

    links_deleted: int
    clicks_deleted: int
    swept_at: datetime


class ExpirySweeper:
    """Periodically prune expired links and click events.

    Cycles never overlap: the loop and any manual ``run_once`` call share one
    lock. A failed cycle is logged and the next one runs on schedule.
    """

    IDLE = "idle"
    SWEEPING = "sweeping"

    def __init__(
        self,
        store: LinkStoreBase,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.interval_seconds = interval_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.state = self.IDLE
        self.last_result: Optional[SweepResult] = None
        self._task: Optional[asyncio.Task] = None
        self._cycle_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self, now: Optional[datetime] = None) -> SweepResult:
        """Run one sweep cycle.

        Args:
            now: Deletion horizon (current UTC time if not given)

        Returns:
            Counts of deleted links and click events
        """
        async with self._cycle_lock:
            now = now or datetime.now(timezone.utc)
            self.state = self.SWEEPING
            try:
                links_deleted = await self.store.delete_expired_links(now)
                clicks_deleted = await self.store.delete_expired_clicks(now)
            finally:
                self.state = self.IDLE

        self.last_result = SweepResult(links_deleted, clicks_deleted, now)
        if links_deleted or clicks_deleted:
            self.logger.info(
                f"Sweep removed {links_deleted} expired links and {clicks_deleted} click events"
            )
        else:
            self.logger.debug("Sweep found nothing to remove")
        return self.last_result

    async def _run(self) -> None:
        self.logger.info(f"Expiry sweeper started (interval {self.interval_seconds}s)")
        while True:
            try:
                await self.run_once()
            except Exception:
                self.logger.exception("Expiry sweep failed, retrying next cycle")
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        """Start the sweep loop on the running event loop."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="expiry-sweeper")

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        self.logger.info("Expiry sweeper stopped")
