"""
============================================================================
UPTIME WORKERS - OUTCOME RECONCILER
============================================================================
Turns a probe ``Outcome`` into the check's new state, decides whether the
owner must be alerted, persists the updated record and appends the probe
to the ping log.

The decision part (``compute_state``, ``should_alert``, ``reconcile``) is
pure; ``OutcomeReconciler.apply`` performs the side effects.
============================================================================
"""

from dataclasses import dataclass, replace
from typing import Optional

from config.constants import CheckState, Collections
from database.manager import PingLogRepository, RecordStore
from exceptions import UptimeException
from monitoring.alerts import Notifier
from monitoring.check import CheckRecord
from monitoring.probe import Outcome
from utils.helpers import TimeHelper
from utils.logger import MonitorLogger, get_logger


logger = get_logger("Reconciler")


@dataclass(frozen=True)
class Reconciliation:
    new_state: str
    should_alert: bool
    updated: CheckRecord
    persisted: bool = False
    notified: bool = False


def compute_state(record: CheckRecord, outcome: Outcome) -> str:
    if outcome.error is None and outcome.response_code in record.success_codes:
        return CheckState.UP.value
    return CheckState.DOWN.value


def should_alert(record: CheckRecord, new_state: str) -> bool:
    """A first probe never alerts; afterwards only a change of state does."""
    return record.last_checked is not None and record.state != new_state


def reconcile(record: CheckRecord, outcome: Outcome, now_ms: int) -> Reconciliation:
    new_state = compute_state(record, outcome)
    return Reconciliation(
        new_state=new_state,
        should_alert=should_alert(record, new_state),
        updated=record.with_outcome(new_state, now_ms),
    )


# ============================================================================
# RECONCILER
# ============================================================================

class OutcomeReconciler:
    """
    Applies reconciliations against the record store.

    Parameters
    ----------
    store : RecordStore
        Where the updated check document is written back.
    notifier : Notifier
        Receives the updated record when an alert is warranted.
    ping_logs : PingLogRepository | None
        Optional history sink; failures there are logged and ignored.
    """

    def __init__(
        self,
        store: RecordStore,
        notifier: Notifier,
        ping_logs: Optional[PingLogRepository] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.ping_logs = ping_logs
        self._monitor_log = MonitorLogger()

    async def apply(
        self,
        record: CheckRecord,
        outcome: Outcome,
        key: Optional[str] = None,
    ) -> Reconciliation:
        """
        Persist the outcome of one probe and alert if the state flipped.

        *key* is the store key the record was read from; it defaults to
        the record id.  The ping log row is written once the update has
        been attempted, so its ``alert`` flag is only set for a transition
        that was actually persisted.
        """
        result = reconcile(record, outcome, TimeHelper.now_ms())
        updated = result.updated

        if record.never_checked:
            self._monitor_log.log_first_probe(record.id, record.target, result.new_state)
        else:
            self._monitor_log.log_outcome(record.id, record.target, result.new_state, outcome.describe())
        if result.should_alert:
            self._monitor_log.log_transition(record.id, record.target, record.state, result.new_state)

        try:
            await self.store.update(Collections.CHECKS, key or record.id, updated.to_dict())
        except UptimeException as e:
            logger.error(f"[Reconciler] Could not persist check {record.id}: {e.log_format()}")
            await self._append_ping_log(result, outcome, alert=False)
            return result

        await self._append_ping_log(result, outcome, alert=result.should_alert)

        notified = False
        if result.should_alert:
            notified = await self.notifier.notify(updated)

        return replace(result, persisted=True, notified=notified)

    async def _append_ping_log(self, result: Reconciliation, outcome: Outcome, alert: bool) -> None:
        if self.ping_logs is None:
            return
        try:
            await self.ping_logs.append(
                check_id=result.updated.id,
                state=result.new_state,
                alert=alert,
                response_code=outcome.response_code,
                error_kind=outcome.error.kind if outcome.error else None,
                error_detail=outcome.error.detail if outcome.error else None,
            )
        except UptimeException as e:
            logger.warning(f"[Reconciler] Ping log for check {result.updated.id} not written: {e}")
