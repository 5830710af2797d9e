"""
Database Exception Classes for Uptime Workers

Specialized exceptions raised by the record store: connection
issues, failed queries, missing and duplicate records.
"""

from __future__ import annotations

from typing import Any, Optional

from exceptions.base import UptimeException


class DatabaseException(UptimeException):
    """
    Base Database Exception

    Parent class for all record store exceptions.
    """

    default_error_code = 2000
    default_recoverable = True

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        key: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize database exception.

        Args:
            message: Error message
            collection: The record collection involved
            key: The record key involved
            **kwargs: Additional arguments
        """
        super().__init__(message, **kwargs)

        if collection:
            self.details["collection"] = collection

        if key:
            self.details["key"] = key


class DatabaseConnectionError(DatabaseException):
    """
    Database Connection Error

    Raised when the engine cannot be created or reached.
    """

    default_error_code = 2001
    default_recoverable = False

    def __init__(
        self,
        message: str = "Unable to connect to database",
        url: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        if url:
            self.details["url"] = url


class DatabaseQueryError(DatabaseException):
    """
    Database Query Error

    Raised when a statement fails to execute.
    """

    default_error_code = 2002

    def __init__(
        self,
        message: str = "Database query failed",
        operation: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        if operation:
            self.details["operation"] = operation


class DatabaseNotFoundError(DatabaseException):
    """
    Database Not Found Error

    Raised by read/update/delete when the record does not exist.
    """

    default_error_code = 2003

    def __init__(
        self,
        message: str = "Record not found",
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)


class DatabaseDuplicateError(DatabaseException):
    """
    Database Duplicate Error

    Raised by create when the key is already taken.
    """

    default_error_code = 2004

    def __init__(
        self,
        message: str = "Record already exists",
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)
