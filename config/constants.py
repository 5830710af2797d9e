"""
Constants Module for Uptime Workers

Contains enumerations, collection names, limits and message templates
shared by the record store, the probe executor and the notifier.
"""

from __future__ import annotations

from enum import Enum
from typing import Final, FrozenSet


class CheckState(str, Enum):
    """
    Check State Enumeration

    A check is ``down`` until a completed probe cycle proves otherwise.
    """

    UP = "up"
    DOWN = "down"

    @classmethod
    def values(cls) -> FrozenSet[str]:
        return frozenset(member.value for member in cls)


class Protocol(str, Enum):
    """Protocols a check may be probed over."""

    HTTP = "http"
    HTTPS = "https"

    @classmethod
    def values(cls) -> FrozenSet[str]:
        return frozenset(member.value for member in cls)


class HTTPMethods(str, Enum):
    """HTTP methods a check may use (stored lower-case)."""

    GET = "get"
    POST = "post"
    PUT = "put"
    DELETE = "delete"

    @classmethod
    def values(cls) -> FrozenSet[str]:
        return frozenset(member.value for member in cls)


class ProbeErrorKind(str, Enum):
    """Kinds of probe failure carried by an Outcome."""

    TRANSPORT = "transport"
    TIMEOUT = "timeout"


class Collections:
    """
    Record store collection names.

    The workers only ever touch ``CHECKS``; the other collections belong
    to the request-handling surface.
    """

    USERS: Final[str] = "users"
    TOKENS: Final[str] = "tokens"
    CHECKS: Final[str] = "checks"

    ALL: Final[FrozenSet[str]] = frozenset({USERS, TOKENS, CHECKS})


class CheckFields:
    """JSON keys of a persisted check document."""

    ID: Final[str] = "id"
    OWNER: Final[str] = "userPhone"
    PROTOCOL: Final[str] = "protocol"
    URL: Final[str] = "url"
    METHOD: Final[str] = "method"
    SUCCESS_CODES: Final[str] = "successCodes"
    TIMEOUT_SECONDS: Final[str] = "timeoutSeconds"
    STATE: Final[str] = "state"
    LAST_CHECKED: Final[str] = "lastChecked"

    REQUIRED: Final[tuple] = (
        ID, OWNER, URL, PROTOCOL, METHOD, SUCCESS_CODES, TIMEOUT_SECONDS,
    )


class Limits:
    """Hard limits used by validation and alert delivery."""

    CHECK_ID_LENGTH: Final[int] = 20
    PHONE_LENGTH: Final[int] = 10
    MIN_TIMEOUT_SECONDS: Final[int] = 1
    MAX_TIMEOUT_SECONDS: Final[int] = 5
    MIN_STATUS_CODE: Final[int] = 100
    MAX_STATUS_CODE: Final[int] = 599
    SMS_MAX_LENGTH: Final[int] = 1600
    ERROR_DETAIL_MAX_LENGTH: Final[int] = 200


class Defaults:
    """Default values for the scheduler and probe executor."""

    CHECK_INTERVAL_SECONDS: Final[int] = 60
    HEARTBEAT_INTERVAL_SECONDS: Final[int] = 600
    MAX_CONCURRENT_PROBES: Final[int] = 50
    USER_AGENT: Final[str] = "UptimeWorkers/1.0"


class MessageTemplates:
    """Human-readable message templates."""

    ALERT: Final[str] = (
        "Alert: Your check for {method} {protocol}://{url} is currently {state}"
    )


TWILIO_MESSAGES_URL: Final[str] = (
    "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"
)
