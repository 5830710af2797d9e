"""
Exceptions Package for Uptime Workers

Provides the exception hierarchy used by the record store, the check
validator and the notifier.
"""

from exceptions.base import (
    UptimeException,
    InitializationError,
)

from exceptions.database import (
    DatabaseException,
    DatabaseConnectionError,
    DatabaseQueryError,
    DatabaseNotFoundError,
    DatabaseDuplicateError,
)

from exceptions.validation import (
    ValidationException,
    MissingFieldError,
    InvalidFormatError,
    MultipleValidationErrors,
)

from exceptions.monitoring import (
    MonitoringException,
    NotificationError,
    NotificationDeliveryError,
)

__all__ = [
    # Base exceptions
    "UptimeException",
    "InitializationError",

    # Database exceptions
    "DatabaseException",
    "DatabaseConnectionError",
    "DatabaseQueryError",
    "DatabaseNotFoundError",
    "DatabaseDuplicateError",

    # Validation exceptions
    "ValidationException",
    "MissingFieldError",
    "InvalidFormatError",
    "MultipleValidationErrors",

    # Monitoring exceptions
    "MonitoringException",
    "NotificationError",
    "NotificationDeliveryError",
]
