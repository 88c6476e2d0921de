"""Lifespan middleware - opens the pool and runs the expiry reaper."""

from typing import Any

from psycopg_pool import AsyncConnectionPool

from accessgate.infrastructure.scheduling.expiry_reaper import ExpiryReaper


class LifespanMiddleware:
    """Opens the connection pool and starts the reaper on startup; reverses on shutdown."""

    def __init__(self, pool: AsyncConnectionPool, reaper: ExpiryReaper | None = None) -> None:
        self._pool = pool
        self._reaper = reaper

    async def process_startup(
        self, scope: dict[str, Any], event: dict[str, Any]
    ) -> None:
        """Open pool, then start sweeping expired grants."""
        await self._pool.open()
        if self._reaper:
            await self._reaper.start()

    async def process_shutdown(
        self, scope: dict[str, Any], event: dict[str, Any]
    ) -> None:
        """Stop the reaper before the pool goes away."""
        if self._reaper:
            await self._reaper.stop()
        await self._pool.close()
