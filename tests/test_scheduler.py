"""Tests for the periodic job scheduler."""

from __future__ import annotations

import asyncio
import time

import pytest

from monitoring.scheduler import Scheduler


class TestScheduler:
    def test_new_job_runs_immediately_once_per_interval(self, settings):
        runs = []

        async def job():
            runs.append(time.time())

        async def scenario():
            scheduler = Scheduler(settings.monitoring, tick_interval=0.01)
            scheduler.register_job("tick", 60, job)
            await scheduler.start()
            await asyncio.sleep(0.1)
            await scheduler.stop()
            return scheduler.get_job_stats()

        stats = asyncio.run(scenario())
        assert len(runs) == 1
        assert stats[0]["name"] == "tick"
        assert stats[0]["run_count"] == 1
        assert stats[0]["error_count"] == 0

    def test_failures_are_counted_not_raised(self, settings):
        healthy = []

        async def broken():
            raise RuntimeError("boom")

        async def fine():
            healthy.append(1)

        async def scenario():
            scheduler = Scheduler(settings.monitoring, tick_interval=0.01)
            scheduler.register_job("broken", 60, broken)
            scheduler.register_job("fine", 60, fine)
            await scheduler.start()
            await asyncio.sleep(0.1)
            running = scheduler.is_running
            await scheduler.stop()
            return scheduler, running

        scheduler, running = asyncio.run(scenario())
        assert running is True
        assert scheduler.get_job("broken").error_count == 1
        assert healthy == [1]

    def test_slow_job_overlaps_next_run(self, settings):
        started = []

        async def scenario():
            release = asyncio.Event()

            async def slow():
                started.append(1)
                await release.wait()

            scheduler = Scheduler(settings.monitoring, tick_interval=0.01)
            scheduler.register_job("slow", 10, slow)

            now = time.time()
            assert scheduler.run_pending(now) == 1
            assert scheduler.run_pending(now + 1) == 0
            assert scheduler.run_pending(now + 10) == 1
            await asyncio.sleep(0.01)
            running = scheduler.get_job("slow").running

            release.set()
            await scheduler.stop()
            return running

        assert asyncio.run(scenario()) == 2
        assert len(started) == 2

    def test_disabled_job_is_not_launched(self, settings):
        async def job():
            pass

        async def scenario():
            scheduler = Scheduler(settings.monitoring)
            scheduler.register_job("off", 5, job, enabled=False)
            launched = scheduler.run_pending()
            scheduler.get_job("off").enabled = True
            return launched, scheduler.run_pending()

        assert asyncio.run(scenario()) == (0, 1)

    def test_interval_must_be_positive(self, settings):
        async def job():
            pass

        with pytest.raises(ValueError):
            Scheduler(settings.monitoring).register_job("bad", 0, job)
