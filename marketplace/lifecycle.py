"""
Shutdown handling for the listings service.

uvicorn turns SIGINT/SIGTERM into the application's lifespan shutdown, which
calls ``Lifecycle.shutdown``: wait (bounded) for requests still talking to
MongoDB, then close the client.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from enum import Enum

from marketplace.database.mongo import MongoStore

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    RUNNING = "running"
    CLOSING = "closing"
    TERMINATED = "terminated"


class RequestTracker:
    """Counts HTTP requests that are still being handled."""

    def __init__(self):
        self.active = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @asynccontextmanager
    async def track(self):
        self.active += 1
        self._idle.clear()
        try:
            yield
        finally:
            self.active -= 1
            if self.active == 0:
                self._idle.set()

    async def drain(self, timeout: float) -> bool:
        """Wait until no request is active. False if ``timeout`` ran out first."""
        try:
            await asyncio.wait_for(self._idle.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True


class Lifecycle:
    def __init__(self, store: MongoStore, tracker: RequestTracker, drain_timeout: float):
        self.store = store
        self.tracker = tracker
        self.drain_timeout = drain_timeout
        self.state = LifecycleState.RUNNING

    async def shutdown(self):
        if self.state is not LifecycleState.RUNNING:
            return
        self.state = LifecycleState.CLOSING

        logger.info("Closing MongoDB connection...")
        if not await self.tracker.drain(self.drain_timeout):
            logger.warning(
                "%s request(s) still running after %ss; closing anyway",
                self.tracker.active,
                self.drain_timeout,
            )
        await self.store.close()

        self.state = LifecycleState.TERMINATED
        logger.info("MongoDB connection closed.")
