"""
============================================================================
UPTIME WORKERS - PROBE EXECUTOR
============================================================================
Issues exactly one HTTP request per check and turns whatever happens
first (a response, a transport failure or the check's timeout) into a
single ``Outcome``.

Architecture
------------
HTTPProber.probe(record)
├── ProbeContext        ← owns one future; the first resolve() wins
├── _send()             ← request task: response / transport error
└── _on_timeout()       ← loop.call_later timer: timeout

Once the context is resolved the request task is cancelled and the
timer disarmed.  Anything that fires afterwards is logged and dropped.
No retries, no redirects, the response body is never read.
============================================================================
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

import httpx

from config.constants import ProbeErrorKind
from config.settings import MonitoringSettings, get_settings
from monitoring.check import CheckRecord
from utils.logger import get_logger


logger = get_logger("Probe")


# ============================================================================
# OUTCOME VALUE OBJECTS
# ============================================================================

@dataclass(frozen=True)
class ProbeError:
    kind: str
    detail: Optional[str] = None


@dataclass(frozen=True)
class Outcome:
    """
    Terminal result of one probe: either a status code or an error,
    never both and never neither.
    """

    response_code: Optional[int] = None
    error: Optional[ProbeError] = None

    def __post_init__(self):
        if (self.response_code is None) == (self.error is None):
            raise ValueError("Outcome needs exactly one of response_code or error")

    @classmethod
    def responded(cls, status_code: int) -> "Outcome":
        return cls(response_code=status_code)

    @classmethod
    def transport_error(cls, detail: Optional[str] = None) -> "Outcome":
        return cls(error=ProbeError(ProbeErrorKind.TRANSPORT.value, detail))

    @classmethod
    def timed_out(cls) -> "Outcome":
        return cls(error=ProbeError(ProbeErrorKind.TIMEOUT.value))

    def describe(self) -> str:
        if self.error is None:
            return f"HTTP {self.response_code}"
        if self.error.detail:
            return f"{self.error.kind}: {self.error.detail}"
        return self.error.kind


# ============================================================================
# PROBE CONTEXT
# ============================================================================

class ProbeContext:
    """
    Per-probe single-resolution slot.

    Every terminal event calls ``resolve``; only the first call sets the
    outcome and returns True.
    """

    def __init__(self, check_id: str):
        self.check_id = check_id
        self._future: asyncio.Future = asyncio.get_running_loop().create_future()

    @property
    def resolved(self) -> bool:
        return self._future.done()

    def resolve(self, outcome: Outcome) -> bool:
        if self._future.done():
            logger.debug(
                f"[Probe] Late event for check {self.check_id} dropped: {outcome.describe()}"
            )
            return False
        self._future.set_result(outcome)
        return True

    async def wait(self) -> Outcome:
        return await self._future


# ============================================================================
# HTTP PROBER
# ============================================================================

class HTTPProber:
    """
    Probes checks over a shared ``httpx.AsyncClient``.

    The client's connection pool is sized to the engine's concurrency
    bound, so a full cycle never opens more sockets than it runs probes.
    """

    def __init__(
        self,
        settings: Optional[MonitoringSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings().monitoring
        limit = self.settings.max_concurrent_probes

        self._client = httpx.AsyncClient(
            follow_redirects=False,
            headers={"User-Agent": self.settings.user_agent},
            limits=httpx.Limits(max_connections=limit, max_keepalive_connections=limit),
            transport=transport,
        )
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def probe(self, record: CheckRecord) -> Outcome:
        """
        Execute one probe of *record*.

        Never raises for network conditions: every failure mode is an
        ``Outcome`` carrying a ``ProbeError``.
        """
        loop = asyncio.get_running_loop()
        ctx = ProbeContext(record.id)

        self._in_flight += 1
        request_task = asyncio.create_task(self._send(ctx, record))
        timer = loop.call_later(record.timeout_seconds, self._on_timeout, ctx)

        try:
            outcome = await ctx.wait()
        finally:
            timer.cancel()
            if not request_task.done():
                request_task.cancel()
            await asyncio.gather(request_task, return_exceptions=True)
            self._in_flight -= 1

        logger.debug(f"[Probe] {record.method.upper()} {record.target} -> {outcome.describe()}")
        return outcome

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("[Probe] HTTP client closed")

    # ------------------------------------------------------------------
    # TERMINAL EVENTS
    # ------------------------------------------------------------------

    @staticmethod
    def _on_timeout(ctx: ProbeContext) -> None:
        ctx.resolve(Outcome.timed_out())

    async def _send(self, ctx: ProbeContext, record: CheckRecord) -> None:
        try:
            request = self._client.build_request(
                record.method.upper(),
                httpx.URL(record.target),
                timeout=httpx.Timeout(record.timeout_seconds),
            )
            response = await self._client.send(request, stream=True)
        except httpx.TimeoutException:
            ctx.resolve(Outcome.timed_out())
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            ctx.resolve(Outcome.transport_error(str(e) or type(e).__name__))
        except Exception as e:
            logger.error(f"[Probe] Unexpected error probing {record.target}: {e}")
            ctx.resolve(Outcome.transport_error(f"{type(e).__name__}: {e}"))
        else:
            try:
                ctx.resolve(Outcome.responded(response.status_code))
            finally:
                await response.aclose()
