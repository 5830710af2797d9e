"""
============================================================================
UPTIME WORKERS - DATABASE MODELS
============================================================================
SQLAlchemy ORM models backing the record store.

``records`` holds every collection (users, tokens, checks) as JSON
documents addressed by (collection, key).  ``ping_logs`` keeps one row
per reconciled probe.
============================================================================
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base


# ============================================================================
# BASE MODEL CONFIGURATION
# ============================================================================

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """
    Mixin to add created_at and updated_at timestamps to models.
    """
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    )


# ============================================================================
# RECORD MODEL
# ============================================================================

class Record(Base, TimestampMixin):
    """
    One JSON document of a collection.
    """
    __tablename__ = "records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String(32), nullable=False)
    key = Column(String(255), nullable=False)
    data = Column(JSON, nullable=False, default=dict)

    __table_args__ = (
        UniqueConstraint("collection", "key", name="uq_record_collection_key"),
        Index("idx_record_collection", "collection"),
    )

    def __repr__(self) -> str:
        return f"<Record(collection={self.collection}, key={self.key})>"


# ============================================================================
# PING LOG MODEL
# ============================================================================

class PingLog(Base):
    """
    History of reconciled probes.
    """
    __tablename__ = "ping_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    check_id = Column(String(255), nullable=False)

    state = Column(String(8), nullable=False)
    alert = Column(Boolean, nullable=False, default=False)

    # Response Details
    response_code = Column(Integer, nullable=True)

    # Error Information
    error_kind = Column(String(16), nullable=True)
    error_detail = Column(Text, nullable=True)

    checked_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_ping_log_check_time", "check_id", "checked_at"),
    )

    def __repr__(self) -> str:
        return f"<PingLog(check_id={self.check_id}, state={self.state})>"
