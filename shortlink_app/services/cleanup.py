"""
Expired Link Cleanup

Deletes every link whose lifetime has elapsed, once a day at a fixed UTC
wall-clock time. Runs independently of request traffic, either as a
background task inside the web app or as its own process.

A failed sweep is logged and skipped; the next daily run is the only retry.
"""

import argparse
import asyncio
import logging
import signal
import sys
from datetime import datetime, time, timedelta
from typing import Callable, Optional

from shortlink_app.clock import utc_now
from shortlink_app.config import settings
from shortlink_app.exceptions import StoreUnavailableError
from shortlink_app.storage.strategies import LinkStoreStrategy

logger = logging.getLogger(__name__)


class CleanupScheduler:
    """
    Daily sweep of expired links.

    Features:
    - Anchored to a fixed time of day (UTC), not to process start
    - Interruptible sleep, so stop() takes effect immediately
    - Never crashes the host process on a failed run
    """

    def __init__(
        self,
        store: LinkStoreStrategy,
        run_at: time = time(hour=3, minute=0),
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize scheduler with dependencies.

        Args:
            store: Durable link store to sweep
            run_at: Time of day (UTC) of each run
            clock: Returns the current time (timezone-aware)
        """
        self.store = store
        self.run_at = run_at
        self.clock = clock
        self.running = False
        self.last_run_at: Optional[datetime] = None
        self.last_removed: Optional[int] = None
        self._stop_event: Optional[asyncio.Event] = None

    def next_run_after(self, now: datetime) -> datetime:
        """First anchor time strictly after now"""
        candidate = now.replace(
            hour=self.run_at.hour,
            minute=self.run_at.minute,
            second=0,
            microsecond=0,
        )
        if candidate <= now:
            candidate += timedelta(days=1)
        return candidate

    async def run_once(self) -> Optional[int]:
        """
        Delete expired links now.

        Returns:
            Number of links removed, or None if the store was unavailable
        """
        now = self.clock()
        try:
            removed = await self.store.delete_expired(now)
        except StoreUnavailableError as e:
            logger.error("Expired link cleanup failed: %s", e)
            return None

        self.last_run_at = now
        self.last_removed = removed
        logger.info("Expired link cleanup removed %d link(s)", removed)
        return removed

    async def start(self):
        """Run the sweep every day at run_at until stop() is called"""
        self.running = True
        self._stop_event = asyncio.Event()
        logger.info("Cleanup scheduler started (daily at %s UTC)", self.run_at.strftime("%H:%M"))

        while self.running:
            next_run = self.next_run_after(self.clock())
            delay = max(0.0, (next_run - self.clock()).total_seconds())
            logger.debug("Next cleanup at %s", next_run.isoformat())

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
                break  # stop requested
            except asyncio.TimeoutError:
                pass

            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Unexpected error during cleanup run")

        self.running = False
        logger.info("Cleanup scheduler stopped")

    def stop(self):
        """Stop the scheduler"""
        self.running = False
        if self._stop_event is not None:
            self._stop_event.set()

    def _signal_handler(self, signum, frame):
        """Handle signals for graceful shutdown"""
        logger.info("Received signal %s. Shutting down gracefully...", signum)
        self.stop()


async def main(argv=None):
    """
    Standalone entry point.

    Usage:
        python -m shortlink_app.services.cleanup          # daily loop
        python -m shortlink_app.services.cleanup --once   # single sweep
    """
    parser = argparse.ArgumentParser(description="Delete expired short links")
    parser.add_argument("--once", action="store_true", help="Run one sweep and exit")
    args = parser.parse_args(argv)

    from shortlink_app.logging_config import setup_logging
    from shortlink_app.storage.factory import LinkStoreBackend, LinkStoreFactory

    setup_logging(level=settings.log_level, json_format=settings.log_json)
    store = LinkStoreFactory.create(LinkStoreBackend(settings.store_backend))
    scheduler = CleanupScheduler(
        store=store,
        run_at=time(hour=settings.cleanup_hour, minute=settings.cleanup_minute),
    )

    if args.once:
        removed = await scheduler.run_once()
        return 0 if removed is not None else 1

    signal.signal(signal.SIGINT, scheduler._signal_handler)
    signal.signal(signal.SIGTERM, scheduler._signal_handler)
    await scheduler.start()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
