"""
Eviction Sweeper

Background task that periodically drops expired entries from the proxy
cache, independent of request traffic.
"""

import asyncio
import logging
from typing import Optional

from .cache_manager import ProxyCacheStore

logger = logging.getLogger(__name__)


class EvictionSweeper:
    """Runs ProxyCacheStore.sweep() every `interval_seconds`."""

    def __init__(self, cache: ProxyCacheStore, interval_seconds: float = 600.0):
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> int:
        """Sweep now. Returns the number of entries removed."""
        removed = self.cache.sweep(self.cache.now(), self.cache.ttl_seconds)
        if removed:
            logger.info(f"[Sweeper] Cleaned up {removed} expired entries")
        return removed

    async def start(self):
        """Start the periodic sweep task."""
        if not self.running:
            self._task = asyncio.create_task(self._sweep_loop())
            logger.info(f"[Sweeper] Started (every {self.interval_seconds:g}s)")

    async def stop(self):
        """Cancel the sweep task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("[Sweeper] Stopped")

    async def _sweep_loop(self):
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.run_once()
