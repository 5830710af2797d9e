"""
============================================================================
UPTIME WORKERS - MONITORING ENGINE
============================================================================
The heart of the workers.  Every cycle lists the ``checks`` collection,
then runs each check through read → validate → probe → reconcile in its
own task.

Architecture
------------
MonitoringEngine          ← top-level orchestrator, owns the fan-out bound
├── run_cycle()           ← lists keys, fans out via asyncio.gather
├── _run_guarded()        ← per-check lock + concurrency semaphore
└── _process()            ← one check's pipeline
    ├── RecordStore.read
    ├── CheckValidator    ← invalid records are skipped
    ├── HTTPProber        ← single Outcome per probe
    └── OutcomeReconciler ← persist, ping log, notify

The engine drives itself through the Scheduler: ``check_cycle`` runs at
start-up and every MONITOR_CHECK_INTERVAL seconds, ``health_heartbeat``
logs liveness.  Cycles are never awaited by the scheduler, so two cycles
can overlap; the per-check lock makes the second one wait for the first
and re-read the record it just persisted.
============================================================================
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional

from config.constants import Collections
from config.settings import Settings, get_settings
from database.manager import PingLogRepository, RecordStore
from exceptions import DatabaseNotFoundError, UptimeException, ValidationException
from monitoring.alerts import Notifier
from monitoring.probe import HTTPProber
from monitoring.reconciler import OutcomeReconciler
from monitoring.scheduler import Scheduler
from utils.helpers import KeyedLock
from utils.logger import get_logger, log_execution_time
from utils.validators import CheckValidator


logger = get_logger("MonitoringEngine")

PROBED = "probed"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass(frozen=True)
class CycleReport:
    listed: int = 0
    probed: int = 0
    skipped: int = 0
    failed: int = 0


# ============================================================================
# MONITORING ENGINE
# ============================================================================

class MonitoringEngine:
    """
    Periodic check executor.

    Lifecycle
    ---------
    1.  ``await engine.start()``   - registers the jobs, starts the scheduler
    2.  ``await engine.stop()``    - stops the scheduler, closes the prober

    ``run_cycle()`` can also be awaited directly for a single pass.
    """

    def __init__(
        self,
        store: RecordStore,
        notifier: Optional[Notifier] = None,
        prober: Optional[HTTPProber] = None,
        scheduler: Optional[Scheduler] = None,
        ping_logs: Optional[PingLogRepository] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Parameters
        ----------
        store : RecordStore
            Source of check documents and target of write-backs.
        notifier : Notifier | None
            Alert fan-out.  Defaults to a log-only notifier.
        prober : HTTPProber | None
            Probe executor; one is built from settings when omitted.
        scheduler : Scheduler | None
            Periodic runner; one is built from settings when omitted.
        ping_logs : PingLogRepository | None
            Probe history sink.  Built on the store's database when
            MONITOR_RECORD_PING_LOGS is on.
        """
        self.settings = settings or get_settings()
        monitoring = self.settings.monitoring

        self.store = store
        self.notifier = notifier or Notifier()
        self.prober = prober or HTTPProber(monitoring)
        self.scheduler = scheduler or Scheduler(monitoring)

        if ping_logs is None and monitoring.record_ping_logs:
            ping_logs = PingLogRepository(store.db)
        self.reconciler = OutcomeReconciler(store, self.notifier, ping_logs)
        self.validator = CheckValidator(monitoring.min_timeout, monitoring.max_timeout)

        # --- concurrency control ---
        self._semaphore = asyncio.Semaphore(monitoring.max_concurrent_probes)
        self._keyed_lock: Optional[KeyedLock] = (
            KeyedLock() if monitoring.serialize_per_check else None
        )

        # --- lifecycle ---
        self._running = False
        self._in_flight = 0
        self._cycles = 0
        self._last_report: Optional[CycleReport] = None

        logger.info(
            f"[Engine] Created: max_concurrent={monitoring.max_concurrent_probes}, "
            f"check_interval={monitoring.check_interval}s, "
            f"serialize_per_check={monitoring.serialize_per_check}"
        )

    # ------------------------------------------------------------------
    # PUBLIC API
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Register the periodic jobs and start the scheduler."""
        if self._running:
            logger.warning("[Engine] Already running")
            return

        monitoring = self.settings.monitoring
        self.scheduler.register_job(
            "check_cycle",
            interval_seconds=monitoring.check_interval,
            coroutine_factory=self.run_cycle,
        )
        self.scheduler.register_job(
            "health_heartbeat",
            interval_seconds=monitoring.heartbeat_interval,
            coroutine_factory=self.heartbeat,
        )

        self._running = True
        await self.scheduler.start()
        logger.info("[Engine] Started")

    async def stop(self) -> None:
        """Stop scheduling cycles and release the probe client."""
        self._running = False
        await self.scheduler.stop()
        await self.prober.close()
        logger.info("[Engine] Stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def in_flight_checks(self) -> int:
        return self._in_flight

    @log_execution_time
    async def run_cycle(self) -> CycleReport:
        """
        One pass over the ``checks`` collection.

        A listing failure or an empty collection skips the cycle.  Each
        key is then processed independently; a failure for one key never
        affects another.
        """
        self._cycles += 1

        try:
            keys = await self.store.list(Collections.CHECKS)
        except UptimeException as e:
            logger.error(f"[Engine] Could not list checks, cycle skipped: {e.log_format()}")
            return self._finish(CycleReport())

        if not keys:
            logger.info("[Engine] No checks to process")
            return self._finish(CycleReport())

        logger.debug(f"[Engine] Cycle #{self._cycles} processing {len(keys)} check(s)")

        results = await asyncio.gather(
            *(self._run_guarded(key) for key in keys),
            return_exceptions=True,
        )

        counts = {PROBED: 0, SKIPPED: 0, FAILED: 0}
        for key, result in zip(keys, results):
            if isinstance(result, BaseException):
                logger.error(f"[Engine] Check {key} raised: {result!r}")
                counts[FAILED] += 1
            else:
                counts[result] += 1

        report = CycleReport(
            listed=len(keys),
            probed=counts[PROBED],
            skipped=counts[SKIPPED],
            failed=counts[FAILED],
        )
        logger.info(
            f"[Engine] Cycle #{self._cycles} done: listed={report.listed} "
            f"probed={report.probed} skipped={report.skipped} failed={report.failed}"
        )
        return self._finish(report)

    async def heartbeat(self) -> None:
        """Log liveness, store connectivity and in-flight probes."""
        db_ok = await self.store.db.check_connection()
        logger.info(
            f"[Engine] Heartbeat: running={self._running} "
            f"database={'ok' if db_ok else 'unreachable'} "
            f"in_flight={self._in_flight} cycles={self._cycles}"
        )

    def get_stats(self) -> Dict[str, Any]:
        """Return current state of the engine for diagnostics."""
        return {
            "is_running": self._running,
            "in_flight": self._in_flight,
            "cycles": self._cycles,
            "last_report": self._last_report,
            "jobs": self.scheduler.get_job_stats(),
            "notifier": self.notifier.get_stats(),
        }

    # ------------------------------------------------------------------
    # GUARDED SINGLE CHECK
    # ------------------------------------------------------------------

    async def _run_guarded(self, key: str) -> str:
        """
        Hold the per-check lock (when enabled) around the whole pipeline,
        and a semaphore slot only while actually working.
        """
        if self._keyed_lock is None:
            return await self._run_bounded(key)

        async with self._keyed_lock.acquire(key):
            return await self._run_bounded(key)

    async def _run_bounded(self, key: str) -> str:
        async with self._semaphore:
            self._in_flight += 1
            try:
                return await self._process(key)
            finally:
                self._in_flight -= 1

    # ------------------------------------------------------------------
    # SINGLE CHECK PIPELINE
    # ------------------------------------------------------------------

    async def _process(self, key: str) -> str:
        try:
            data = await self.store.read(Collections.CHECKS, key)
        except DatabaseNotFoundError:
            logger.warning(f"[Engine] Check {key} disappeared before it could be read")
            return SKIPPED
        except UptimeException as e:
            logger.error(f"[Engine] Could not read check {key}: {e.log_format()}")
            return FAILED

        try:
            record = self.validator.validate(data)
        except ValidationException as e:
            logger.warning(f"[Engine] Check {key} is malformed, skipped: {e.log_format()}")
            return SKIPPED

        outcome = await self.prober.probe(record)
        await self.reconciler.apply(record, outcome, key=key)
        return PROBED

    def _finish(self, report: CycleReport) -> CycleReport:
        self._last_report = report
        return report
