"""Shared test fixtures."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Tuple

import pytest

from config.settings import (
    AlertSettings,
    DatabaseSettings,
    LoggingSettings,
    MonitoringSettings,
    Settings,
)
from database.connection import DatabaseManager
from database.manager import RecordStore


def check_doc(check_id: str = "a" * 20, **overrides: Any) -> Dict[str, Any]:
    """A valid ``checks`` document, as the CRUD surface would store it."""
    doc = {
        "id": check_id,
        "userPhone": "0412345678",
        "protocol": "http",
        "url": f"{check_id}.example.com/health",
        "method": "get",
        "successCodes": [200, 201],
        "timeoutSeconds": 3,
        "state": "down",
        "lastChecked": None,
    }
    doc.update(overrides)
    return doc


class RecordingNotifier:
    """Stands in for Notifier; remembers every alerted record."""

    def __init__(self, result: bool = True):
        self.result = result
        self.notified: List[Any] = []
        self.sent: List[Tuple[str, str]] = []

    async def notify(self, record) -> bool:
        self.notified.append(record)
        return self.result

    async def send(self, destination: str, message: str) -> bool:
        self.sent.append((destination, message))
        return self.result

    async def close(self) -> None:
        pass

    def get_stats(self) -> dict:
        return {"notified": len(self.notified)}


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        environment="testing",
        database=DatabaseSettings(sqlite_path=tmp_path / "uptime.db"),
        monitoring=MonitoringSettings(
            check_interval=60,
            tick_interval=0.01,
            max_concurrent_probes=5,
        ),
        alerts=AlertSettings(sms_enabled=False, telegram_enabled=False),
        logging=LoggingSettings(to_file=False, file_path=tmp_path / "logs" / "workers.log"),
    )


@pytest.fixture
def open_store(settings):
    """
    Factory for a RecordStore on a fresh SQLite file.  Use inside the
    coroutine passed to ``asyncio.run`` so the engine lives on one loop.
    """

    @asynccontextmanager
    async def _open():
        db = DatabaseManager(settings.database)
        await db.initialize()
        try:
            yield RecordStore(db)
        finally:
            await db.close()

    return _open


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_check():
    return check_doc
