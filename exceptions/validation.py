"""
Validation Exception Classes for Uptime Workers

Raised when a persisted check document does not have the structural
shape the workers need before probing it.
"""

from __future__ import annotations

from typing import Any, List, Optional

from exceptions.base import UptimeException


class ValidationException(UptimeException):
    """
    Base Validation Exception

    Parent class for all validation-related exceptions.
    """

    default_error_code = 3000
    default_recoverable = True

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize validation exception.

        Args:
            message: Error message
            field: The field that failed validation
            value: The invalid value (sanitized)
            **kwargs: Additional arguments
        """
        super().__init__(message, **kwargs)

        if field:
            self.details["field"] = field

        if value is not None:
            self.details["value"] = self._sanitize_value(value)

    @staticmethod
    def _sanitize_value(value: Any) -> str:
        """Truncate the value so it can be logged safely."""
        str_value = str(value)

        if len(str_value) > 100:
            str_value = str_value[:100] + "..."

        return str_value

    @property
    def field(self) -> Optional[str]:
        return self.details.get("field")


class MissingFieldError(ValidationException):
    """
    Missing Field Error

    Raised when a required field is absent or null.
    """

    default_error_code = 3004

    def __init__(
        self,
        message: str = "Required field is missing",
        field: str = "unknown",
        **kwargs: Any
    ) -> None:
        super().__init__(message, field=field, **kwargs)


class InvalidFormatError(ValidationException):
    """
    Invalid Format Error

    Raised when a field is present but has the wrong type or range.
    """

    default_error_code = 3006

    def __init__(
        self,
        message: str = "Invalid format",
        field: Optional[str] = None,
        expected_format: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, field=field, **kwargs)

        if expected_format:
            self.details["expected_format"] = expected_format


class MultipleValidationErrors(ValidationException):
    """
    Multiple Validation Errors

    Container for every field error found in one document.
    """

    default_error_code = 3100

    def __init__(
        self,
        message: str = "Multiple validation errors occurred",
        errors: Optional[List[ValidationException]] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        self.errors: List[ValidationException] = list(errors or [])
        self._sync_details()

    def _sync_details(self) -> None:
        self.details["error_count"] = len(self.errors)
        self.details["fields"] = [
            e.details.get("field", "unknown") for e in self.errors
        ]

    def add_error(self, error: ValidationException) -> None:
        """Add an error to the collection."""
        self.errors.append(error)
        self._sync_details()

    @property
    def fields(self) -> List[str]:
        return list(self.details["fields"])

    def __len__(self) -> int:
        return len(self.errors)

    def __bool__(self) -> bool:
        return len(self.errors) > 0
