"""Tests for the monitoring engine."""

from __future__ import annotations

import asyncio

import httpx

from database.manager import PingLogRepository
from exceptions import DatabaseQueryError
from monitoring.alerts import Notifier
from monitoring.monitor import CycleReport, MonitoringEngine
from monitoring.probe import HTTPProber


class Upstream:
    """Programmable fake HTTP server for the prober."""

    def __init__(self, status: int = 200, delay: float = 0.0):
        self.status = status
        self.delay = delay
        self.requests = []
        self.active = 0
        self.max_active = 0

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            return httpx.Response(self.status)
        finally:
            self.active -= 1


def build_engine(settings, store, notifier, upstream) -> MonitoringEngine:
    prober = HTTPProber(settings.monitoring, transport=httpx.MockTransport(upstream))
    return MonitoringEngine(store, notifier=notifier, prober=prober, settings=settings)


class TestRunCycle:
    def test_malformed_record_is_skipped(self, settings, open_store, notifier, make_check):
        upstream = Upstream(200)

        async def scenario():
            async with open_store() as store:
                await store.create("checks", "a" * 20, make_check("a" * 20))
                await store.create("checks", "b" * 20, make_check("b" * 20, protocol="gopher"))
                await store.create("checks", "c" * 20, make_check("c" * 20))
                engine = build_engine(settings, store, notifier, upstream)
                try:
                    return await engine.run_cycle()
                finally:
                    await engine.prober.close()

        report = asyncio.run(scenario())
        assert report == CycleReport(listed=3, probed=2, skipped=1, failed=0)
        assert len(upstream.requests) == 2

    def test_record_without_timeout_is_skipped(self, settings, open_store, notifier, make_check):
        upstream = Upstream(200)
        broken = make_check("t" * 20)
        del broken["timeoutSeconds"]

        async def scenario():
            async with open_store() as store:
                await store.create("checks", "a" * 20, make_check("a" * 20))
                await store.create("checks", broken["id"], broken)
                await store.create("checks", "c" * 20, make_check("c" * 20))
                engine = build_engine(settings, store, notifier, upstream)
                try:
                    report = await engine.run_cycle()
                finally:
                    await engine.prober.close()
                return report, await store.read("checks", broken["id"])

        report, untouched = asyncio.run(scenario())
        assert report == CycleReport(listed=3, probed=2, skipped=1, failed=0)
        assert sorted(r.url.host for r in upstream.requests) == [
            "a" * 20 + ".example.com",
            "c" * 20 + ".example.com",
        ]
        assert untouched == broken

    def test_empty_collection(self, settings, open_store, notifier):
        async def scenario():
            async with open_store() as store:
                engine = build_engine(settings, store, notifier, Upstream())
                try:
                    return await engine.run_cycle()
                finally:
                    await engine.prober.close()

        assert asyncio.run(scenario()) == CycleReport()

    def test_listing_failure_skips_cycle(self, settings, notifier):
        settings.monitoring.record_ping_logs = False

        class BrokenStore:
            db = None

            async def list(self, collection):
                raise DatabaseQueryError("database is locked", operation="list")

        async def scenario():
            engine = build_engine(settings, BrokenStore(), notifier, Upstream())
            try:
                return await engine.run_cycle()
            finally:
                await engine.prober.close()

        assert asyncio.run(scenario()) == CycleReport()

    def test_end_to_end_transitions(self, settings, open_store, notifier, make_check):
        upstream = Upstream(200)
        key = "e" * 20

        async def scenario():
            async with open_store() as store:
                await store.create("checks", key, make_check(key, label="landing page"))
                engine = build_engine(settings, store, notifier, upstream)
                snapshots = []
                try:
                    # first probe: establishes state, never alerts
                    await engine.run_cycle()
                    snapshots.append(await store.read("checks", key))

                    # server starts failing: up -> down alerts
                    upstream.status = 500
                    await engine.run_cycle()
                    snapshots.append(await store.read("checks", key))

                    # still failing: no repeated alert
                    await engine.run_cycle()
                    snapshots.append(await store.read("checks", key))

                    history = await PingLogRepository(store.db).recent(key)
                finally:
                    await engine.prober.close()
                return snapshots, history

        snapshots, history = asyncio.run(scenario())

        assert [s["state"] for s in snapshots] == ["up", "down", "down"]
        assert all(isinstance(s["lastChecked"], int) for s in snapshots)
        assert snapshots[0]["lastChecked"] <= snapshots[1]["lastChecked"] <= snapshots[2]["lastChecked"]
        assert snapshots[2]["label"] == "landing page"

        assert len(notifier.notified) == 1
        alerted = notifier.notified[0]
        assert alerted.state == "down"
        assert alerted.owner_ref == "0412345678"

        assert [h.alert for h in history] == [False, True, False]
        assert [h.response_code for h in history] == [500, 500, 200]

    def test_overlapping_cycles_serialize_per_check(self, settings, open_store, notifier, make_check):
        upstream = Upstream(200, delay=0.1)
        key = "o" * 20

        async def scenario():
            async with open_store() as store:
                await store.create("checks", key, make_check(key))
                engine = build_engine(settings, store, notifier, upstream)
                try:
                    reports = await asyncio.gather(engine.run_cycle(), engine.run_cycle())
                    final = await store.read("checks", key)
                finally:
                    await engine.prober.close()
                return reports, final

        reports, final = asyncio.run(scenario())
        assert [r.probed for r in reports] == [1, 1]
        assert upstream.max_active == 1
        assert final["state"] == "up"
        assert notifier.notified == []


class TestLifecycle:
    def test_start_runs_first_cycle_immediately(self, settings, open_store, notifier, make_check):
        upstream = Upstream(200)

        async def scenario():
            async with open_store() as store:
                await store.create("checks", "s" * 20, make_check("s" * 20))
                engine = build_engine(settings, store, notifier, upstream)
                await engine.start()
                try:
                    for _ in range(100):
                        if upstream.requests and engine.in_flight_checks == 0:
                            break
                        await asyncio.sleep(0.05)
                    stats = engine.get_stats()
                finally:
                    await engine.stop()
                return stats, engine.is_running

        stats, running = asyncio.run(scenario())
        assert len(upstream.requests) == 1
        assert running is False
        assert {job["name"] for job in stats["jobs"]} == {"check_cycle", "health_heartbeat"}


class RecordingChannel:
    name = "recording"

    def __init__(self):
        self.messages = []

    async def deliver(self, destination, message):
        self.messages.append((destination, message))

    async def close(self):
        pass


class TestRecoveryScenario:
    def test_down_check_recovering_alerts_once(self, settings, open_store, make_check):
        t0 = 1_700_000_000_000
        key = "abc" + "d" * 17
        channel = RecordingChannel()

        async def scenario():
            async with open_store() as store:
                await store.create("checks", key, make_check(
                    key,
                    url="example.com/health",
                    successCodes=[200],
                    timeoutSeconds=2,
                    state="down",
                    lastChecked=t0,
                ))
                engine = build_engine(settings, store, Notifier([channel]), Upstream(200))
                try:
                    report = await engine.run_cycle()
                finally:
                    await engine.prober.close()
                return report, await store.read("checks", key)

        report, persisted = asyncio.run(scenario())

        assert report.probed == 1
        assert persisted["state"] == "up"
        assert persisted["lastChecked"] > t0
        assert channel.messages == [(
            "0412345678",
            "Alert: Your check for GET http://example.com/health is currently up",
        )]
