"""
Database Package for Uptime Workers

Provides the async engine manager, the ORM models and the record store
repositories built on SQLAlchemy.
"""

from database.connection import DatabaseManager

from database.models import (
    Base,
    Record,
    PingLog,
)

from database.manager import (
    BaseRepository,
    RecordStore,
    PingLogRepository,
)

__all__ = [
    # Connection
    "DatabaseManager",

    # Models
    "Base",
    "Record",
    "PingLog",

    # Repositories
    "BaseRepository",
    "RecordStore",
    "PingLogRepository",
]
