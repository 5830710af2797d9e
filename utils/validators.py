"""
============================================================================
UPTIME WORKERS - VALIDATORS UTILITY
============================================================================
Structural validation of check documents read from the record store.
A document that fails here is skipped for the cycle; it never reaches
the probe executor.
============================================================================
"""

from typing import Any, Dict, List, Optional, Tuple

from config.constants import CheckFields, CheckState, HTTPMethods, Limits, Protocol
from exceptions import (
    InvalidFormatError,
    MissingFieldError,
    MultipleValidationErrors,
    ValidationException,
)
from monitoring.check import CheckRecord


# ============================================================================
# FIELD VALIDATORS
# ============================================================================

class DataValidator:
    """
    Primitive checks shared by the record validators.
    """

    @staticmethod
    def is_non_empty_string(value: Any) -> bool:
        return isinstance(value, str) and len(value.strip()) > 0

    @staticmethod
    def is_whole_number(value: Any) -> bool:
        """True for ints (and integral floats), never for bools."""
        if isinstance(value, bool):
            return False
        if isinstance(value, int):
            return True
        return isinstance(value, float) and value.is_integer()

    @staticmethod
    def to_status_code(value: Any) -> Optional[int]:
        """
        Coerce a status code given as an int or a numeric string.

        Returns:
            The integer code, or None if the value is not a usable code
        """
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            code = value
        elif isinstance(value, str) and value.strip().isdigit():
            code = int(value.strip())
        else:
            return None

        if Limits.MIN_STATUS_CODE <= code <= Limits.MAX_STATUS_CODE:
            return code
        return None


# ============================================================================
# CHECK VALIDATOR
# ============================================================================

class CheckValidator:
    """
    Turns a raw ``checks`` document into a ``CheckRecord``.

    Every required field is examined and all failures are reported
    together in one ``MultipleValidationErrors``.  ``state`` and
    ``lastChecked`` are normalised rather than rejected.
    """

    def __init__(
        self,
        min_timeout: int = Limits.MIN_TIMEOUT_SECONDS,
        max_timeout: int = Limits.MAX_TIMEOUT_SECONDS,
    ):
        self.min_timeout = min_timeout
        self.max_timeout = max_timeout

    def validate(self, data: Any) -> CheckRecord:
        """
        Validate a check document.

        Args:
            data: Decoded JSON document

        Returns:
            CheckRecord

        Raises:
            InvalidFormatError: If the document is not an object
            MultipleValidationErrors: If any required field is invalid
        """
        if not isinstance(data, dict):
            raise InvalidFormatError(
                "Check document must be an object",
                expected_format="object",
                value=data,
            )

        errors = MultipleValidationErrors("Check document failed validation")

        check_id = self._validate_string(data, CheckFields.ID, errors)
        owner_ref = self._validate_string(data, CheckFields.OWNER, errors)
        url = self._validate_string(data, CheckFields.URL, errors)
        protocol = self._validate_choice(data, CheckFields.PROTOCOL, Protocol.values(), errors)
        method = self._validate_choice(data, CheckFields.METHOD, HTTPMethods.values(), errors)
        success_codes = self._validate_success_codes(data, errors)
        timeout_seconds = self._validate_timeout(data, errors)

        if errors:
            raise errors

        return CheckRecord(
            id=check_id.strip(),
            owner_ref=owner_ref.strip(),
            protocol=protocol,
            url=url.strip(),
            method=method,
            success_codes=success_codes,
            timeout_seconds=timeout_seconds,
            state=self.normalize_state(data.get(CheckFields.STATE)),
            last_checked=self.normalize_last_checked(data.get(CheckFields.LAST_CHECKED)),
            extras=CheckRecord.extras_of(data),
        )

    def is_valid(self, data: Any) -> bool:
        try:
            self.validate(data)
        except ValidationException:
            return False
        return True

    # ------------------------------------------------------------------ #
    #  NORMALISATION                                                      #
    # ------------------------------------------------------------------ #

    @staticmethod
    def normalize_state(value: Any) -> str:
        if isinstance(value, str) and value in CheckState.values():
            return value
        return CheckState.DOWN.value

    @staticmethod
    def normalize_last_checked(value: Any) -> Optional[int]:
        if DataValidator.is_whole_number(value) and value > 0:
            return int(value)
        return None

    # ------------------------------------------------------------------ #
    #  FIELD RULES                                                        #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _present(data: Dict[str, Any], name: str, errors: MultipleValidationErrors) -> bool:
        if data.get(name) is None:
            errors.add_error(MissingFieldError(f"Field '{name}' is required", field=name))
            return False
        return True

    def _validate_string(
        self,
        data: Dict[str, Any],
        name: str,
        errors: MultipleValidationErrors,
    ) -> Optional[str]:
        if not self._present(data, name, errors):
            return None
        value = data[name]
        if not DataValidator.is_non_empty_string(value):
            errors.add_error(InvalidFormatError(
                f"Field '{name}' must be a non-empty string",
                field=name,
                expected_format="non-empty string",
                value=value,
            ))
            return None
        return value

    def _validate_choice(
        self,
        data: Dict[str, Any],
        name: str,
        choices,
        errors: MultipleValidationErrors,
    ) -> Optional[str]:
        if not self._present(data, name, errors):
            return None
        value = data[name]
        if not isinstance(value, str) or value not in choices:
            errors.add_error(InvalidFormatError(
                f"Field '{name}' must be one of {sorted(choices)}",
                field=name,
                expected_format=" | ".join(sorted(choices)),
                value=value,
            ))
            return None
        return value

    def _validate_success_codes(
        self,
        data: Dict[str, Any],
        errors: MultipleValidationErrors,
    ) -> Optional[Tuple[int, ...]]:
        name = CheckFields.SUCCESS_CODES
        if not self._present(data, name, errors):
            return None
        value = data[name]
        if not isinstance(value, list) or not value:
            errors.add_error(InvalidFormatError(
                f"Field '{name}' must be a non-empty array",
                field=name,
                expected_format="non-empty array of status codes",
                value=value,
            ))
            return None

        codes: List[int] = []
        for item in value:
            code = DataValidator.to_status_code(item)
            if code is None:
                errors.add_error(InvalidFormatError(
                    f"Field '{name}' contains an invalid status code",
                    field=name,
                    expected_format="integer status code",
                    value=item,
                ))
                return None
            if code not in codes:
                codes.append(code)
        return tuple(codes)

    def _validate_timeout(
        self,
        data: Dict[str, Any],
        errors: MultipleValidationErrors,
    ) -> Optional[int]:
        name = CheckFields.TIMEOUT_SECONDS
        if not self._present(data, name, errors):
            return None
        value = data[name]
        if (
            not DataValidator.is_whole_number(value)
            or not self.min_timeout <= value <= self.max_timeout
        ):
            errors.add_error(InvalidFormatError(
                f"Field '{name}' must be a whole number between "
                f"{self.min_timeout} and {self.max_timeout}",
                field=name,
                expected_format=f"integer in [{self.min_timeout}, {self.max_timeout}]",
                value=value,
            ))
            return None
        return int(value)
