"""
============================================================================
UPTIME WORKERS - BACKGROUND TASK SCHEDULER
============================================================================
A lightweight, asyncio-native periodic job runner.  All jobs run as
coroutines in the same event loop (single process, no broker).

The main loop wakes every ``tick_interval`` seconds and launches each
due job as a fire-and-forget task, then immediately advances the job's
``next_run``.  A job that outlives its interval therefore overlaps with
its next run.  Job failures are counted and logged, never propagated.

Jobs are registered by their owners; the monitoring engine registers
``check_cycle`` and ``health_heartbeat``.
============================================================================
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set

from config.settings import MonitoringSettings, get_settings
from utils.logger import get_logger


logger = get_logger("Scheduler")


# ============================================================================
# JOB DEFINITION
# ============================================================================

@dataclass
class ScheduledJob:
    """
    Describes a single periodic background job.

    Attributes
    ----------
    name : str
        Human-readable identifier (used in logs).
    interval_seconds : float
        How often the job runs.
    coroutine_factory : Callable
        An async callable (no arguments) that performs the work.
    enabled : bool
        Can be toggled at runtime.
    last_run : Optional[float]
        Epoch timestamp of the last successful execution.
    next_run : float
        Epoch timestamp when the job should next execute.
    run_count : int
        Total number of successful executions since startup.
    error_count : int
        Total number of failed executions since startup.
    """
    name: str
    interval_seconds: float
    coroutine_factory: Callable
    enabled: bool = True
    last_run: Optional[float] = None
    next_run: float = field(default_factory=time.time)
    run_count: int = 0
    error_count: int = 0
    running: int = 0


# ============================================================================
# SCHEDULER
# ============================================================================

class Scheduler:
    """
    Asyncio-based periodic job scheduler.

    Usage
    -----
        scheduler = Scheduler()
        scheduler.register_job("my_job", 300, my_async_func)
        await scheduler.start()
        # ... later ...
        await scheduler.stop()
    """

    def __init__(
        self,
        settings: Optional[MonitoringSettings] = None,
        tick_interval: Optional[float] = None,
    ):
        self.settings = settings or get_settings().monitoring

        self._jobs: Dict[str, ScheduledJob] = {}
        self._running = False
        self._loop_task: Optional[asyncio.Task] = None
        self._job_tasks: Set[asyncio.Task] = set()
        self._tick_interval = tick_interval or self.settings.tick_interval

    # ------------------------------------------------------------------
    # JOB REGISTRATION
    # ------------------------------------------------------------------

    def register_job(
        self,
        name: str,
        interval_seconds: float,
        coroutine_factory: Callable,
        enabled: bool = True,
    ) -> None:
        """
        Register a new periodic job.  It is due immediately.

        Parameters
        ----------
        name : str
            Unique job name.
        interval_seconds : float
            Period in seconds.
        coroutine_factory : Callable
            An async callable that takes no arguments.
        enabled : bool
            Whether the job starts enabled.
        """
        if interval_seconds <= 0:
            raise ValueError(f"Job '{name}' needs a positive interval")
        if name in self._jobs:
            logger.warning(f"[Scheduler] Job '{name}' already registered, overwriting")

        self._jobs[name] = ScheduledJob(
            name=name,
            interval_seconds=interval_seconds,
            coroutine_factory=coroutine_factory,
            enabled=enabled,
            next_run=time.time(),  # run immediately on first tick
        )
        logger.debug(f"[Scheduler] Registered job '{name}' (interval={interval_seconds}s)")

    def get_job(self, name: str) -> Optional[ScheduledJob]:
        return self._jobs.get(name)

    # ------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the scheduler loop."""
        if self._running:
            logger.warning("[Scheduler] Already running")
            return
        self._running = True
        self._loop_task = asyncio.create_task(self._main_loop())
        logger.info(f"[Scheduler] Started with {len(self._jobs)} job(s)")

    async def stop(self) -> None:
        """Stop the scheduler loop and cancel jobs still running."""
        self._running = False
        if self._loop_task:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        pending = list(self._job_tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        logger.info("[Scheduler] Stopped")

    # ------------------------------------------------------------------
    # MAIN LOOP
    # ------------------------------------------------------------------

    async def _main_loop(self) -> None:
        """
        Wake up every _tick_interval seconds.  For each enabled job whose
        next_run time has arrived, launch it as a background task.
        """
        logger.info("[Scheduler] Main loop started")

        while self._running:
            self.run_pending()

            try:
                await asyncio.sleep(self._tick_interval)
            except asyncio.CancelledError:
                break

        logger.info("[Scheduler] Main loop exited")

    def run_pending(self, now: Optional[float] = None) -> int:
        """
        Launch every due job without awaiting it.

        Returns:
            Number of jobs launched
        """
        now = time.time() if now is None else now
        launched = 0

        for job in list(self._jobs.values()):
            if job.enabled and now >= job.next_run:
                task = asyncio.create_task(self._execute_job(job))
                self._job_tasks.add(task)
                task.add_done_callback(self._job_tasks.discard)
                # Advance next_run immediately so we don't re-trigger
                job.next_run = now + job.interval_seconds
                launched += 1

        return launched

    # ------------------------------------------------------------------
    # JOB EXECUTION
    # ------------------------------------------------------------------

    async def _execute_job(self, job: ScheduledJob) -> None:
        """
        Run a single job, capture timing and errors.
        """
        start_time = time.time()
        job.running += 1
        try:
            logger.debug(f"[Scheduler] Running job '{job.name}'")
            await job.coroutine_factory()
            elapsed = time.time() - start_time
            job.run_count += 1
            job.last_run = time.time()
            logger.debug(
                f"[Scheduler] Job '{job.name}' completed in {elapsed:.2f}s "
                f"(run #{job.run_count})"
            )
        except Exception as e:
            job.error_count += 1
            elapsed = time.time() - start_time
            logger.exception(
                f"[Scheduler] Job '{job.name}' FAILED after {elapsed:.2f}s: {e}"
            )
        finally:
            job.running -= 1

    # ------------------------------------------------------------------
    # DIAGNOSTICS
    # ------------------------------------------------------------------

    def get_job_stats(self) -> List[Dict[str, Any]]:
        """Return status of all registered jobs."""
        stats = []
        for job in self._jobs.values():
            stats.append({
                "name": job.name,
                "interval_seconds": job.interval_seconds,
                "enabled": job.enabled,
                "running": job.running,
                "run_count": job.run_count,
                "error_count": job.error_count,
                "last_run": (
                    datetime.fromtimestamp(job.last_run).isoformat()
                    if job.last_run else None
                ),
                "next_run": (
                    datetime.fromtimestamp(job.next_run).isoformat()
                    if job.next_run else None
                ),
            })
        return stats
