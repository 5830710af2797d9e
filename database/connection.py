"""
============================================================================
UPTIME WORKERS - DATABASE CONNECTION
============================================================================
Owns the SQLAlchemy async engine and the session factory used by the
record store.  SQLite is driven through aiosqlite, PostgreSQL through
asyncpg.
============================================================================
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from config.settings import DatabaseSettings, get_settings
from database.models import Base
from exceptions import DatabaseConnectionError, DatabaseQueryError
from utils.logger import get_logger


logger = get_logger("Database")


# ============================================================================
# DATABASE MANAGER CLASS
# ============================================================================

class DatabaseManager:
    """
    Database manager handling the engine lifecycle and sessions.

    Usage
    -----
        db = DatabaseManager()
        await db.initialize()
        async with db.session() as session:
            ...
        await db.close()
    """

    def __init__(self, settings: Optional[DatabaseSettings] = None):
        """
        Initialize database manager.

        Args:
            settings: Database settings section (defaults to the global one)
        """
        self.settings = settings or get_settings().database
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None
        self._is_initialized = False
        self._lock = asyncio.Lock()

        self.database_url = self.settings.url
        logger.info(f"[Database] Manager created for {self._mask_password(self.database_url)}")

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    @staticmethod
    def _mask_password(url: str) -> str:
        """
        Mask password in database URL for logging.

        Args:
            url: Database URL

        Returns:
            Masked URL
        """
        if "://" not in url:
            return url

        protocol, rest = url.split("://", 1)
        if "@" not in rest:
            return url

        credentials, host_part = rest.split("@", 1)
        if ":" in credentials:
            user, _ = credentials.split(":", 1)
            return f"{protocol}://{user}:****@{host_part}"

        return url

    def _get_engine_kwargs(self) -> Dict[str, Any]:
        """
        Get engine configuration kwargs based on settings.

        Returns:
            Dictionary of engine configuration options
        """
        kwargs: Dict[str, Any] = {"echo": self.settings.echo}

        # NullPool for SQLite, the default async queue pool for others
        if self.database_url.startswith("sqlite"):
            kwargs["poolclass"] = NullPool
        else:
            kwargs["pool_size"] = self.settings.pool_size
            kwargs["max_overflow"] = self.settings.max_overflow
            kwargs["pool_timeout"] = self.settings.pool_timeout
            kwargs["pool_recycle"] = self.settings.pool_recycle
            kwargs["pool_pre_ping"] = True

        return kwargs

    async def initialize(self) -> None:
        """
        Initialize database engine and session factory.
        Creates all tables if they don't exist.

        Raises:
            DatabaseConnectionError: If the engine cannot reach the database
        """
        async with self._lock:
            if self._is_initialized:
                logger.warning("[Database] Already initialized")
                return

            try:
                self.engine = create_async_engine(self.database_url, **self._get_engine_kwargs())
                self._register_event_listeners()

                self.session_factory = async_sessionmaker(
                    self.engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                    autoflush=False,
                )

                await self.create_tables()

                self._is_initialized = True
                logger.info("[Database] Initialized successfully")

            except (SQLAlchemyError, OSError) as e:
                logger.error(f"[Database] Failed to initialize: {e}")
                if self.engine is not None:
                    await self.engine.dispose()
                    self.engine = None
                raise DatabaseConnectionError(
                    f"Failed to initialize database: {e}",
                    url=self._mask_password(self.database_url),
                    cause=e,
                ) from e

    def _register_event_listeners(self) -> None:
        """Register SQLAlchemy event listeners for connection management."""

        @event.listens_for(self.engine.sync_engine, "connect")
        def receive_connect(dbapi_conn, connection_record):
            logger.debug("[Database] New connection established")

    async def create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("[Database] Tables created")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide a transactional scope for database operations.

        The session is committed on success and rolled back on failure.
        SQLAlchemy errors surface as ``DatabaseQueryError``.

        Yields:
            AsyncSession instance
        """
        if not self._is_initialized:
            await self.initialize()

        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"[Database] Session error: {e}")
            raise DatabaseQueryError(str(e), cause=e) from e
        except BaseException:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def check_connection(self) -> bool:
        """
        Check if database connection is alive.

        Returns:
            True if connection is alive, False otherwise
        """
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except (DatabaseConnectionError, DatabaseQueryError) as e:
            logger.error(f"[Database] Connection check failed: {e}")
            return False

    async def close(self) -> None:
        """
        Close database connections and cleanup resources.
        """
        async with self._lock:
            if self.engine:
                await self.engine.dispose()
                self.engine = None
                logger.info("[Database] Connections closed")
            self.session_factory = None
            self._is_initialized = False
