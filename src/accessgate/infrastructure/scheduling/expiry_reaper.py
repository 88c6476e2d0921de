"""Expiry reaper - periodically deletes expired direct grants."""

import asyncio
import logging

from accessgate.application.services.direct_grant_store import DirectGrantStore

logger = logging.getLogger(__name__)


class ExpiryReaper:
    """Background task calling ``DirectGrantStore.revoke_expired`` on an interval.

    Cleanup only: the resolver already ignores expired grants at read time,
    so a missed or failed sweep never changes a decision.
    """

    def __init__(self, store: DirectGrantStore, interval_seconds: float = 300.0) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._store = store
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        """Sweep once. Returns the number of grants removed."""
        return await self._store.revoke_expired()

    async def start(self) -> None:
        """Start the background loop (no-op if already running)."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="expiry-reaper")
        logger.info("Expiry reaper started (interval %.0fs)", self._interval)

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Expiry reaper stopped")

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Expired grant sweep failed; retrying in %.0fs", self._interval)
            await asyncio.sleep(self._interval)
