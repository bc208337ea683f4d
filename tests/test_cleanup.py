"""
Tests for the daily sweep of expired links.
"""
import asyncio
from datetime import datetime, time, timedelta, timezone

from shortlink_app.exceptions import StoreUnavailableError
from shortlink_app.models.link import LinkRecord
from shortlink_app.services.cleanup import CleanupScheduler


def make_record(link_id, created_at, expires_at):
    return LinkRecord(
        id=link_id,
        original_url=f"https://example.com/{link_id}",
        short_url=f"http://sho.rt/{link_id}",
        created_at=created_at,
        expires_at=expires_at,
    )


class TestRunOnce:

    def test_removes_past_and_present_only(self, store, clock):
        """expires_at <= now is removed; future and permanent links stay"""
        now = clock.now
        for record in [
            make_record("past001", now - timedelta(days=2), now - timedelta(hours=1)),
            make_record("now0001", now - timedelta(days=1), now),
            make_record("futr001", now, now + timedelta(seconds=1)),
            make_record("perm001", now, None),
        ]:
            asyncio.run(store.insert(record))

        scheduler = CleanupScheduler(store=store, clock=clock)
        removed = asyncio.run(scheduler.run_once())

        assert removed == 2
        assert asyncio.run(store.get_by_id("past001")) is None
        assert asyncio.run(store.get_by_id("now0001")) is None
        assert asyncio.run(store.get_by_id("futr001")) is not None
        assert asyncio.run(store.get_by_id("perm001")) is not None
        assert scheduler.last_removed == 2
        assert scheduler.last_run_at == now

    def test_empty_store(self, store, clock):
        assert asyncio.run(CleanupScheduler(store=store, clock=clock).run_once()) == 0

    def test_store_failure_is_logged_not_raised(self, store, clock, caplog):
        async def broken(now):
            raise StoreUnavailableError("database down")
        store.delete_expired = broken

        scheduler = CleanupScheduler(store=store, clock=clock)
        result = asyncio.run(scheduler.run_once())

        assert result is None
        assert scheduler.last_run_at is None
        assert "cleanup failed" in caplog.text


class TestSchedule:

    def test_next_run_later_today(self):
        scheduler = CleanupScheduler(store=None, run_at=time(3, 0))
        now = datetime(2024, 1, 1, 1, 30, tzinfo=timezone.utc)
        assert scheduler.next_run_after(now) == datetime(2024, 1, 1, 3, 0, tzinfo=timezone.utc)

    def test_next_run_tomorrow_when_anchor_passed(self):
        scheduler = CleanupScheduler(store=None, run_at=time(3, 0))
        now = datetime(2024, 1, 1, 3, 0, tzinfo=timezone.utc)
        assert scheduler.next_run_after(now) == datetime(2024, 1, 2, 3, 0, tzinfo=timezone.utc)

    def test_runs_are_24_hours_apart(self):
        scheduler = CleanupScheduler(store=None, run_at=time(23, 45))
        first = scheduler.next_run_after(datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc))
        second = scheduler.next_run_after(first)
        assert second - first == timedelta(hours=24)


class TestLoop:
    """The daily loop, with the anchor moments away"""

    def test_loop_runs_at_anchor_and_stops(self, store, clock):
        clock.now = datetime(2024, 1, 1, 2, 59, 59, 950000, tzinfo=timezone.utc)
        asyncio.run(store.insert(
            make_record("old0001", clock.now - timedelta(days=1), clock.now - timedelta(hours=1))
        ))
        sweep = store.delete_expired
        sweeps = []

        async def sweep_then_move_clock(now):
            sweeps.append(now)
            clock.now = datetime(2024, 1, 1, 3, 0, 1, tzinfo=timezone.utc)
            return await sweep(now)
        store.delete_expired = sweep_then_move_clock

        scheduler = CleanupScheduler(store=store, run_at=time(3, 0), clock=clock)

        async def run():
            task = asyncio.create_task(scheduler.start())
            for _ in range(100):
                await asyncio.sleep(0.01)
                if sweeps:
                    break
            scheduler.stop()
            await asyncio.wait_for(task, timeout=1)

        asyncio.run(run())

        assert len(sweeps) == 1
        assert scheduler.last_removed == 1
        assert scheduler.running is False

    def test_unexpected_error_does_not_kill_loop(self, store, clock, caplog):
        clock.now = datetime(2024, 1, 1, 2, 59, 59, 950000, tzinfo=timezone.utc)
        calls = []

        async def flaky(now):
            calls.append(now)
            clock.now = datetime(2024, 1, 1, 3, 0, 1, tzinfo=timezone.utc)
            raise RuntimeError("boom")
        store.delete_expired = flaky
        scheduler = CleanupScheduler(store=store, run_at=time(3, 0), clock=clock)

        async def run():
            task = asyncio.create_task(scheduler.start())
            for _ in range(100):
                await asyncio.sleep(0.01)
                if calls:
                    break
            await asyncio.sleep(0.01)
            still_running = not task.done()
            scheduler.stop()
            await asyncio.wait_for(task, timeout=1)
            return still_running

        assert asyncio.run(run()) is True
        assert len(calls) == 1
        assert "Unexpected error during cleanup run" in caplog.text
