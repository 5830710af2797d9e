"""
============================================================================
UPTIME WORKERS - LOGGING UTILITY
============================================================================
loguru-based logging: console sink, rotating file sink (plain text or
JSON lines) and a separate error file.  Components obtain a named logger
with ``get_logger("Component")``.
============================================================================
"""

import asyncio
import sys
import time
from functools import wraps
from typing import Optional

from loguru import logger

from config.settings import Settings, get_settings


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]}:{function}:{line} - {message}"


# ============================================================================
# LOGGER CONFIGURATION
# ============================================================================

def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure loguru sinks from the logging settings.
    Safe to call more than once; previous sinks are replaced.
    """
    settings = settings or get_settings()
    log_settings = settings.logging

    logger.remove()
    logger.configure(extra={"name": settings.app_name})

    log_level = log_settings.level.value

    # Console Handler
    if log_settings.to_console:
        logger.add(
            sys.stdout,
            format=CONSOLE_FORMAT,
            level=log_level,
            colorize=log_settings.colorize,
            backtrace=True,
            diagnose=settings.debug,
        )

    # File Handler
    if log_settings.to_file:
        log_settings.logs_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_settings.file_path,
            format=FILE_FORMAT,
            level=log_level,
            rotation=log_settings.file_rotation,
            retention=log_settings.file_retention,
            compression="zip",
            serialize=log_settings.serialize,
            enqueue=True,
            backtrace=True,
            diagnose=settings.debug,
        )

        # Error log file (separate file for errors)
        logger.add(
            log_settings.logs_dir / "errors.log",
            format=FILE_FORMAT,
            level="ERROR",
            rotation="1 day",
            retention="7 days",
            compression="zip",
            enqueue=True,
            backtrace=True,
            diagnose=settings.debug,
        )

    logger.info("Logging system initialized")
    logger.info(f"Log level: {log_level}")
    logger.info(f"Console logging: {log_settings.to_console}")
    logger.info(f"File logging: {log_settings.to_file}")


def get_logger(name: Optional[str] = None):
    """
    Get logger instance with optional name.

    Args:
        name: Logger name (usually the component name)

    Returns:
        Logger instance
    """
    if name:
        return logger.bind(name=name)
    return logger


# ============================================================================
# LOG DECORATORS
# ============================================================================

def log_execution_time(func):
    """
    Decorator to log how long a coroutine (or plain function) ran.
    """
    timing_logger = get_logger("Performance")

    @wraps(func)
    async def async_wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            result = await func(*args, **kwargs)
            execution_time = time.perf_counter() - start_time
            timing_logger.debug(
                f"Function {func.__name__} executed in {execution_time:.4f} seconds"
            )
            return result
        except Exception as e:
            execution_time = time.perf_counter() - start_time
            timing_logger.error(
                f"Function {func.__name__} failed after {execution_time:.4f} seconds: {e}"
            )
            raise

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
            execution_time = time.perf_counter() - start_time
            timing_logger.debug(
                f"Function {func.__name__} executed in {execution_time:.4f} seconds"
            )
            return result
        except Exception as e:
            execution_time = time.perf_counter() - start_time
            timing_logger.error(
                f"Function {func.__name__} failed after {execution_time:.4f} seconds: {e}"
            )
            raise

    if asyncio.iscoroutinefunction(func):
        return async_wrapper
    return sync_wrapper


# ============================================================================
# SPECIALIZED LOGGERS
# ============================================================================

class MonitorLogger:
    """
    Specialized logger for probe outcomes and state transitions.
    """

    def __init__(self):
        self.logger = get_logger("Monitor")

    def log_outcome(self, check_id: str, target: str, state: str, detail: str) -> None:
        """Log one reconciled probe."""
        if state == "up":
            self.logger.info(f"Check {check_id} ({target}) is up - {detail}")
        else:
            self.logger.warning(f"Check {check_id} ({target}) is down - {detail}")

    def log_transition(self, check_id: str, target: str, old_state: str, new_state: str) -> None:
        """Log a state flip that warrants an alert."""
        self.logger.warning(
            f"State change for check {check_id} ({target}): {old_state} -> {new_state}"
        )

    def log_first_probe(self, check_id: str, target: str, state: str) -> None:
        """Log the very first probe of a check (never alerts)."""
        self.logger.info(f"First probe of check {check_id} ({target}) established state {state}")
