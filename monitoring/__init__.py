"""
============================================================================
UPTIME WORKERS - MONITORING PACKAGE
============================================================================
Runtime check execution:
    • CheckRecord        - validated check document
    • HTTPProber         - one request per check, single Outcome
    • OutcomeReconciler  - state, alert decision, persistence
    • Notifier           - SMS / Telegram alert fan-out
    • Scheduler          - periodic background job runner

``MonitoringEngine`` lives in ``monitoring.monitor``; it depends on
``utils.validators``, which itself imports ``monitoring.check``, so it is
not re-exported here.
============================================================================
"""

from monitoring.check import CheckRecord
from monitoring.probe import HTTPProber, Outcome, ProbeContext, ProbeError
from monitoring.alerts import Notifier, SmsChannel, TelegramChannel, format_alert_message
from monitoring.reconciler import (
    OutcomeReconciler,
    Reconciliation,
    compute_state,
    reconcile,
    should_alert,
)
from monitoring.scheduler import Scheduler, ScheduledJob

__all__ = [
    # Check model
    "CheckRecord",

    # Probe
    "HTTPProber",
    "Outcome",
    "ProbeContext",
    "ProbeError",

    # Alerts
    "Notifier",
    "SmsChannel",
    "TelegramChannel",
    "format_alert_message",

    # Reconciler
    "OutcomeReconciler",
    "Reconciliation",
    "compute_state",
    "reconcile",
    "should_alert",

    # Scheduler
    "Scheduler",
    "ScheduledJob",
]
