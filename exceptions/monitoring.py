"""
Monitoring Exception Classes for Uptime Workers

A failed probe is not an exception: it is a valid ``down`` outcome.
These classes cover the engine itself and alert delivery.
"""

from __future__ import annotations

from typing import Any, Optional

from exceptions.base import UptimeException


class MonitoringException(UptimeException):
    """
    Base Monitoring Exception

    Parent class for failures of the check engine.
    """

    default_error_code = 4000

    def __init__(
        self,
        message: str,
        check_id: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        if check_id:
            self.details["check_id"] = check_id


class NotificationError(MonitoringException):
    """
    Notification Error

    Raised by a channel that refuses to deliver (bad destination,
    bad message).
    """

    default_error_code = 4100

    def __init__(
        self,
        message: str = "Alert could not be delivered",
        channel: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        if channel:
            self.details["channel"] = channel


class NotificationDeliveryError(NotificationError):
    """
    Notification Delivery Error

    Raised when the upstream provider rejects or fails the request.
    """

    default_error_code = 4101

    def __init__(
        self,
        message: str = "Alert provider rejected the request",
        status_code: Optional[int] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        if status_code is not None:
            self.details["status_code"] = status_code
