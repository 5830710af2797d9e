"""Tests for the probe executor."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from monitoring.check import CheckRecord
from monitoring.probe import HTTPProber, Outcome, ProbeContext, ProbeError


def make_record(**overrides) -> CheckRecord:
    fields = dict(
        id="c" * 20,
        owner_ref="0412345678",
        protocol="http",
        url="example.com/health?deep=1",
        method="post",
        success_codes=(200,),
        timeout_seconds=1,
    )
    fields.update(overrides)
    return CheckRecord(**fields)


def probe_with(settings, handler, record=None) -> Outcome:
    async def scenario():
        prober = HTTPProber(settings.monitoring, transport=httpx.MockTransport(handler))
        try:
            return await prober.probe(record or make_record())
        finally:
            await prober.close()

    return asyncio.run(scenario())


class TestOutcome:
    def test_requires_exactly_one_field(self):
        with pytest.raises(ValueError):
            Outcome()
        with pytest.raises(ValueError):
            Outcome(response_code=200, error=ProbeError("timeout"))

    def test_describe(self):
        assert Outcome.responded(204).describe() == "HTTP 204"
        assert Outcome.timed_out().describe() == "timeout"
        assert Outcome.transport_error("refused").describe() == "transport: refused"


class TestProbeContext:
    def test_only_first_resolution_wins(self):
        async def scenario():
            ctx = ProbeContext("abc")
            assert ctx.resolve(Outcome.responded(200)) is True
            assert ctx.resolve(Outcome.timed_out()) is False
            assert ctx.resolve(Outcome.transport_error("late")) is False
            assert ctx.resolved
            return await ctx.wait()

        assert asyncio.run(scenario()) == Outcome.responded(200)


class TestHTTPProber:
    def test_response_status_is_the_outcome(self, settings):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(503)

        outcome = probe_with(settings, handler)
        assert outcome == Outcome.responded(503)

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "http://example.com/health?deep=1"
        assert request.headers["User-Agent"] == settings.monitoring.user_agent

    def test_redirects_are_not_followed(self, settings):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(301, headers={"Location": "http://elsewhere.example.com/"})

        assert probe_with(settings, handler) == Outcome.responded(301)
        assert len(calls) == 1

    def test_transport_error(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        outcome = probe_with(settings, handler)
        assert outcome.response_code is None
        assert outcome.error == ProbeError("transport", "connection refused")

    def test_httpx_timeout_maps_to_timeout(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        assert probe_with(settings, handler) == Outcome.timed_out()

    def test_timer_fires_when_server_is_slow(self, settings):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200)

        async def scenario():
            prober = HTTPProber(settings.monitoring, transport=httpx.MockTransport(handler))
            loop = asyncio.get_running_loop()
            started = loop.time()
            try:
                outcome = await prober.probe(make_record(timeout_seconds=1))
            finally:
                await prober.close()
            return outcome, loop.time() - started, prober.in_flight

        outcome, elapsed, in_flight = asyncio.run(scenario())
        assert outcome == Outcome.timed_out()
        assert elapsed < 3
        assert in_flight == 0

    def test_response_racing_the_timer_yields_one_outcome(self, settings):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1)
            return httpx.Response(200)

        async def scenario():
            prober = HTTPProber(settings.monitoring, transport=httpx.MockTransport(handler))
            records = [make_record(id=f"{i:020d}", timeout_seconds=1) for i in range(20)]
            try:
                outcomes = await asyncio.gather(*(prober.probe(r) for r in records))
            finally:
                await prober.close()
            return outcomes, prober.in_flight

        outcomes, in_flight = asyncio.run(scenario())
        assert len(outcomes) == 20
        for outcome in outcomes:
            assert outcome in (Outcome.timed_out(), Outcome.responded(200))
        assert in_flight == 0

    def test_method_is_upper_cased(self, settings):
        methods = []

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            return httpx.Response(200)

        probe_with(settings, handler, make_record(method="delete", protocol="https"))
        assert methods == ["DELETE"]
