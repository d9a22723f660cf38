import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, List, Optional

from longpoll.models.models import ClientRegistry

logger = logging.getLogger(__name__)


class Janitor:
    """Periodically evicts clients that have not polled within `client_timeout`.

    `sleep` is injectable so tests can drive ticks without waiting on the
    wall clock.
    """

    def __init__(
        self,
        registry: ClientRegistry,
        interval: float,
        client_timeout: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.registry = registry
        self.interval = interval
        self.client_timeout = timedelta(seconds=client_timeout)
        self._sleep = sleep
        self.task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done()

    async def sweep(self, now: Optional[datetime] = None) -> List[str]:
        evicted = await self.registry.evict_idle(self.client_timeout, now)
        for client_id in evicted:
            logger.info("Cleaned up inactive client: %s", client_id)
        if evicted:
            logger.info("Active clients remaining: %d", len(self.registry))
        return evicted

    async def run(self):
        while True:
            await self._sleep(self.interval)
            await self.sweep()

    def start(self) -> asyncio.Task:
        if not self.running:
            self.task = asyncio.create_task(self.run())
            logger.info("Janitor started (interval=%ss, client_timeout=%s)", self.interval, self.client_timeout)
        return self.task

    # graceful cleanup
    async def stop(self):
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None
            logger.info("Janitor stopped")
