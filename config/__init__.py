"""
Configuration Package for Uptime Workers

This package contains all configuration-related modules including:
- Settings management with environment variable support
- Constants and enums used throughout the workers
"""

from config.settings import (
    Settings,
    DatabaseSettings,
    MonitoringSettings,
    AlertSettings,
    LoggingSettings,
    get_settings,
)

from config.constants import (
    CheckState,
    Protocol,
    HTTPMethods,
    ProbeErrorKind,
    Collections,
    CheckFields,
    Limits,
    Defaults,
    MessageTemplates,
)

__all__ = [
    # Settings
    "Settings",
    "DatabaseSettings",
    "MonitoringSettings",
    "AlertSettings",
    "LoggingSettings",
    "get_settings",

    # Constants
    "CheckState",
    "Protocol",
    "HTTPMethods",
    "ProbeErrorKind",
    "Collections",
    "CheckFields",
    "Limits",
    "Defaults",
    "MessageTemplates",
]
