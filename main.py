"""
============================================================================
UPTIME WORKERS - MAIN APPLICATION
============================================================================
Process entry point for the background check workers.

Startup Order
-------------
1.  Load settings & configure logging
2.  Initialize DatabaseManager (create tables if needed)
3.  Build the Notifier from the enabled alert channels
4.  Wire up MonitoringEngine (store + notifier + prober + scheduler)
5.  Start the engine: the first check cycle runs immediately

Shutdown Order (reverse)
-------------------------
On SIGINT or SIGTERM:
    stop monitoring engine (scheduler, probe client) →
    close notifier channels → close DB → exit
============================================================================
"""

import asyncio
import signal
import sys
from typing import Optional

from aiogram.utils.token import TokenValidationError

from config.settings import Settings, get_settings
from database.connection import DatabaseManager
from database.manager import RecordStore
from exceptions import DatabaseException, InitializationError, UptimeException
from monitoring.alerts import Notifier
from monitoring.monitor import MonitoringEngine
from utils.logger import get_logger, setup_logging


logger = get_logger("Main")


# ============================================================================
# APPLICATION CLASS
# ============================================================================

class UptimeWorkersApplication:
    """
    Top-level application orchestrator.

    Owns every subsystem and is the single place that knows the startup /
    shutdown order.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

        # --- subsystems (populated during startup) ---
        self.db_manager: Optional[DatabaseManager] = None
        self.store: Optional[RecordStore] = None
        self.notifier: Optional[Notifier] = None
        self.monitoring_engine: Optional[MonitoringEngine] = None

        # --- lifecycle ---
        self._is_running = False
        self._stop_event = asyncio.Event()

    # ==================================================================
    # PHASE 1 - DATABASE
    # ==================================================================

    async def _init_database(self) -> None:
        """
        Initialize the database manager and verify connectivity.

        Raises:
            InitializationError: if the engine cannot be created or the
                connectivity check fails
        """
        logger.info("── Phase 1: Database ─────────────────────────────")
        self.db_manager = DatabaseManager(self.settings.database)
        try:
            await self.db_manager.initialize()
        except DatabaseException as e:
            raise InitializationError(
                "Database init failed", component="database", cause=e
            ) from e

        if not await self.db_manager.check_connection():
            raise InitializationError(
                "Database connection check failed", component="database"
            )

        self.store = RecordStore(self.db_manager)
        logger.info(f"  ✓ Connected to {self.settings.database.type.value}")

    # ==================================================================
    # PHASE 2 - MONITORING
    # ==================================================================

    async def _init_monitoring(self) -> None:
        """Wire up the Notifier and the MonitoringEngine."""
        logger.info("── Phase 2: Monitoring ───────────────────────────")
        try:
            self.notifier = Notifier.from_settings(self.settings.alerts)
        except (UptimeException, TokenValidationError) as e:
            raise InitializationError(
                "Notifier init failed", component="notifier", cause=e
            ) from e

        self.monitoring_engine = MonitoringEngine(
            store=self.store,
            notifier=self.notifier,
            settings=self.settings,
        )
        logger.info("  ✓ Notifier and MonitoringEngine created")

    # ==================================================================
    # FULL STARTUP SEQUENCE
    # ==================================================================

    async def startup(self) -> bool:
        """
        Execute the complete startup sequence.
        Returns False (and logs errors) if any phase fails.
        """
        logger.info("=" * 74)
        logger.info(f"  STARTING {self.settings.app_name} v{self.settings.app_version}")
        logger.info("=" * 74)

        try:
            await self._init_database()
            await self._init_monitoring()
        except InitializationError as e:
            logger.error(f"  ✗ {e.log_format()}")
            return False

        await self.monitoring_engine.start()
        self._is_running = True

        monitoring = self.settings.monitoring
        logger.info("=" * 74)
        logger.info("  ✓ ALL SYSTEMS OPERATIONAL")
        logger.info(
            f"  Monitoring: {monitoring.max_concurrent_probes} concurrent, "
            f"every {monitoring.check_interval}s"
        )
        logger.info("=" * 74)
        return True

    # ==================================================================
    # SHUTDOWN SEQUENCE
    # ==================================================================

    async def shutdown(self) -> None:
        """
        Graceful shutdown in reverse order.
        Each step is wrapped in try/except so a failure in one subsystem
        doesn't prevent the others from cleaning up.
        """
        logger.info("  SHUTTING DOWN …")
        self._is_running = False

        # 1. Stop monitoring engine (scheduler + probe client)
        if self.monitoring_engine:
            try:
                await self.monitoring_engine.stop()
                logger.info("  ✓ MonitoringEngine stopped")
            except Exception as e:
                logger.error(f"  ✗ MonitoringEngine stop error: {e}")

        # 2. Close notifier channels
        if self.notifier:
            try:
                await self.notifier.close()
                logger.info("  ✓ Notifier closed")
            except Exception as e:
                logger.error(f"  ✗ Notifier close error: {e}")

        # 3. Close database connections
        if self.db_manager:
            try:
                await self.db_manager.close()
                logger.info("  ✓ Database connections closed")
            except Exception as e:
                logger.error(f"  ✗ Database close error: {e}")

        logger.info("  ✓ SHUTDOWN COMPLETE")

    # ==================================================================
    # RUN
    # ==================================================================

    def request_stop(self) -> None:
        self._stop_event.set()

    async def run(self) -> None:
        """Block until a stop is requested."""
        await self._stop_event.wait()


# ============================================================================
# SIGNAL HANDLER SETUP
# ============================================================================

def _install_signal_handlers(app: UptimeWorkersApplication) -> None:
    """
    Install SIGTERM / SIGINT handlers so the workers shut down gracefully
    even when killed by the OS.
    """
    loop = asyncio.get_running_loop()

    def _handle_signal(sig: signal.Signals) -> None:
        logger.info(f"  ⚡ {sig.name} received - initiating graceful shutdown…")
        app.request_stop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _handle_signal, sig)
        except (NotImplementedError, RuntimeError):
            # Not supported on Windows; KeyboardInterrupt still applies
            pass


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

async def main() -> int:
    """
    Async main - creates the app, starts it, and runs until shutdown.
    """
    setup_logging()

    app = UptimeWorkersApplication()
    _install_signal_handlers(app)

    try:
        if not await app.startup():
            logger.error("  ✗ Startup failed - exiting")
            return 1
        await app.run()
        return 0
    finally:
        await app.shutdown()


def cli() -> None:
    """Console script entry point (``uptime-workers``)."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    cli()
