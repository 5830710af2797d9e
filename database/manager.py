"""
============================================================================
UPTIME WORKERS - RECORD STORE
============================================================================
Repositories on top of ``DatabaseManager``:

    RecordStore        - collection/key CRUD over JSON documents
    PingLogRepository  - per-check probe history
============================================================================
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from config.constants import Collections, Limits
from database.connection import DatabaseManager
from database.models import PingLog, Record, utcnow
from exceptions import (
    DatabaseDuplicateError,
    DatabaseNotFoundError,
    InvalidFormatError,
)
from utils.helpers import StringHelper
from utils.logger import get_logger


# ============================================================================
# DATABASE REPOSITORY BASE CLASS
# ============================================================================

class BaseRepository:
    """
    Base repository class for database operations.
    """

    def __init__(self, db_manager: DatabaseManager):
        """
        Initialize repository.

        Args:
            db_manager: DatabaseManager instance
        """
        self.db = db_manager
        self.logger = get_logger(self.__class__.__name__)

    async def count(self, model_class, *criteria) -> int:
        async with self.db.session() as session:
            result = await session.execute(
                select(func.count(model_class.id)).where(*criteria)
            )
            return result.scalar() or 0


# ============================================================================
# RECORD STORE
# ============================================================================

class RecordStore(BaseRepository):
    """
    Collection/key document store.

    Every operation validates the collection name first; unknown names
    raise ``InvalidFormatError``.  Failing statements surface as
    ``DatabaseQueryError`` from ``DatabaseManager.session``.
    """

    @staticmethod
    def _check_collection(collection: str) -> None:
        if collection not in Collections.ALL:
            raise InvalidFormatError(
                f"Unknown collection '{collection}'",
                field="collection",
                expected_format=" | ".join(sorted(Collections.ALL)),
                value=collection,
            )

    @staticmethod
    def _check_key(key: str) -> None:
        if not isinstance(key, str) or not key.strip():
            raise InvalidFormatError(
                "Record key must be a non-empty string",
                field="key",
                expected_format="non-empty string",
                value=key,
            )

    @staticmethod
    def _check_data(data: Dict[str, Any]) -> None:
        if not isinstance(data, dict):
            raise InvalidFormatError(
                "Record data must be a JSON object",
                field="data",
                expected_format="object",
                value=data,
            )

    @staticmethod
    async def _get(session, collection: str, key: str) -> Optional[Record]:
        result = await session.execute(
            select(Record).where(Record.collection == collection, Record.key == key)
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------ #
    #  PUBLIC API                                                         #
    # ------------------------------------------------------------------ #

    async def create(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        """
        Store a new document.

        Raises:
            DatabaseDuplicateError: If the key already exists in the collection
        """
        self._check_collection(collection)
        self._check_key(key)
        self._check_data(data)

        async with self.db.session() as session:
            if await self._get(session, collection, key) is not None:
                raise DatabaseDuplicateError(collection=collection, key=key)

            session.add(Record(collection=collection, key=key, data=dict(data)))
            try:
                await session.flush()
            except IntegrityError as e:
                raise DatabaseDuplicateError(collection=collection, key=key, cause=e) from e

        self.logger.debug(f"[Store] Created {collection}/{key}")

    async def read(self, collection: str, key: str) -> Dict[str, Any]:
        """
        Fetch a document.

        Raises:
            DatabaseNotFoundError: If the key does not exist
        """
        self._check_collection(collection)
        self._check_key(key)

        async with self.db.session() as session:
            record = await self._get(session, collection, key)
            if record is None:
                raise DatabaseNotFoundError(collection=collection, key=key)
            return dict(record.data)

    async def update(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        """
        Replace an existing document.

        Raises:
            DatabaseNotFoundError: If the key does not exist
        """
        self._check_collection(collection)
        self._check_key(key)
        self._check_data(data)

        async with self.db.session() as session:
            record = await self._get(session, collection, key)
            if record is None:
                raise DatabaseNotFoundError(collection=collection, key=key)
            record.data = dict(data)

        self.logger.debug(f"[Store] Updated {collection}/{key}")

    async def delete(self, collection: str, key: str) -> None:
        """
        Remove a document.

        Raises:
            DatabaseNotFoundError: If the key does not exist
        """
        self._check_collection(collection)
        self._check_key(key)

        async with self.db.session() as session:
            result = await session.execute(
                delete(Record).where(Record.collection == collection, Record.key == key)
            )
            if result.rowcount == 0:
                raise DatabaseNotFoundError(collection=collection, key=key)

        self.logger.debug(f"[Store] Deleted {collection}/{key}")

    async def list(self, collection: str) -> List[str]:
        """Keys of every document in the collection, oldest first."""
        self._check_collection(collection)

        async with self.db.session() as session:
            result = await session.execute(
                select(Record.key)
                .where(Record.collection == collection)
                .order_by(Record.id)
            )
            return list(result.scalars().all())

    async def exists(self, collection: str, key: str) -> bool:
        self._check_collection(collection)
        return await self.count(Record, Record.collection == collection, Record.key == key) > 0


# ============================================================================
# PING LOG REPOSITORY
# ============================================================================

class PingLogRepository(BaseRepository):
    """Append-only probe history."""

    async def append(
        self,
        check_id: str,
        state: str,
        alert: bool,
        response_code: Optional[int] = None,
        error_kind: Optional[str] = None,
        error_detail: Optional[str] = None,
        checked_at: Optional[datetime] = None,
    ) -> None:
        if error_detail:
            error_detail = StringHelper.truncate(error_detail, Limits.ERROR_DETAIL_MAX_LENGTH)

        async with self.db.session() as session:
            session.add(PingLog(
                check_id=check_id,
                state=state,
                alert=alert,
                response_code=response_code,
                error_kind=error_kind,
                error_detail=error_detail,
                checked_at=checked_at or utcnow(),
            ))

    async def recent(self, check_id: str, limit: int = 20) -> List[PingLog]:
        """Latest entries for a check, newest first."""
        async with self.db.session() as session:
            result = await session.execute(
                select(PingLog)
                .where(PingLog.check_id == check_id)
                .order_by(PingLog.checked_at.desc(), PingLog.id.desc())
                .limit(limit)
            )
            return list(result.scalars().all())
