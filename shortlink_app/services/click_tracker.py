"""
Fire-and-forget click counting.

On a cache hit the redirect must not wait for the durable store, so the
click increment runs as a detached asyncio task. The tracker holds a
reference to every in-flight task (the event loop only keeps weak ones),
logs failures, and can be drained on shutdown.
"""

import asyncio
import logging
from typing import Set

from shortlink_app.storage.strategies import LinkStoreStrategy

logger = logging.getLogger(__name__)


class ClickTracker:
    """Schedules click increments without making the caller wait"""

    def __init__(self, store: LinkStoreStrategy):
        self.store = store
        self._pending: Set[asyncio.Task] = set()

    def record_click(self, link_id: str) -> asyncio.Task:
        """Schedule an increment on the running loop and return immediately"""
        task = asyncio.get_running_loop().create_task(
            self.store.increment_clicks(link_id),
            name=f"click:{link_id}",
        )
        self._pending.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("Click increment %s was cancelled", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Click increment %s failed: %s", task.get_name(), exc)
        elif task.result() is None:
            logger.debug("Click increment %s found no record", task.get_name())

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every in-flight increment (used on shutdown and in tests)"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
