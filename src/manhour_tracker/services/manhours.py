"""Man-hour START/STOP handling against the shared event log."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from manhour_tracker.domain.models import FindingStatus
from manhour_tracker.domain.results import (
    StartResult,
    StopRequest,
    StopResult,
    Transition,
    UnknownFinding,
)
from manhour_tracker.domain.sessions import ActiveSession, LogEvent
from manhour_tracker.services import policy
from manhour_tracker.services.derivation import (
    active_sessions,
    sessions_for_employee,
)
from manhour_tracker.services.work_orders import WorkOrderBoard, WorkOrderService

_logger = logging.getLogger(__name__)


class EventLogRepository(Protocol):
    """Persistence interface for the append-only man-hour log."""

    def list_events(self, work_order_id: str) -> list[LogEvent]:
        """Return every event of a work order in insertion order."""

    def append_event(self, work_order_id: str, event: LogEvent) -> None:
        """Append one event; raise when the store rejects it."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ManHourService:
    """Runs the start and stop policies against a fresh read of the log.

    Each operation reads the log right before deciding and appends at most
    one event. Serializing concurrent appends per (finding, employee) is the
    store's job.
    """

    event_log: EventLogRepository
    work_orders: WorkOrderService
    clock: Callable[[], datetime] = _utcnow

    def start(  # noqa: PLR0913
        self,
        work_order_id: str,
        finding_id: str,
        employee_id: str,
        task_code: str,
        confirmed: bool = False,
    ) -> StartResult:
        """Start a session, or report why it needs attention first."""
        if not self._is_known(work_order_id, finding_id):
            return UnknownFinding(finding_id)
        log = self.event_log.list_events(work_order_id)
        transition = policy.request_start(
            log, finding_id, employee_id, task_code, self.clock(), confirmed
        )
        self._commit(work_order_id, finding_id, transition)
        return transition.result

    def request_stop(self, work_order_id: str, finding_id: str) -> StopRequest:
        """Return the stop candidates on a finding."""
        if not self._is_known(work_order_id, finding_id):
            return UnknownFinding(finding_id)
        log = self.event_log.list_events(work_order_id)
        return policy.request_stop(log, finding_id)

    def stop(self, work_order_id: str, finding_id: str, employee_id: str) -> StopResult:
        """Stop a worker; the last worker is asked for a final status."""
        if not self._is_known(work_order_id, finding_id):
            return UnknownFinding(finding_id)
        log = self.event_log.list_events(work_order_id)
        transition = policy.resolve_stop(log, finding_id, employee_id, self.clock())
        self._commit(work_order_id, finding_id, transition)
        return transition.result

    def finalize(  # noqa: PLR0913
        self,
        work_order_id: str,
        finding_id: str,
        employee_id: str,
        final_status: FindingStatus | str,
        evidence: bytes | None = None,
    ) -> StopResult:
        """Stop the last worker and apply the chosen final status."""
        if not self._is_known(work_order_id, finding_id):
            return UnknownFinding(finding_id)
        log = self.event_log.list_events(work_order_id)
        transition = policy.finalize_stop(
            log, finding_id, employee_id, final_status, evidence, self.clock()
        )
        self._commit(work_order_id, finding_id, transition)
        return transition.result

    def active_sessions(
        self, work_order_id: str, finding_id: str
    ) -> tuple[ActiveSession, ...]:
        """Return the open sessions on a finding."""
        return active_sessions(self.event_log.list_events(work_order_id), finding_id)

    def employee_sessions(
        self, work_order_id: str, employee_id: str
    ) -> tuple[ActiveSession, ...]:
        """Return the open sessions an employee holds on a work order."""
        return sessions_for_employee(
            self.event_log.list_events(work_order_id), employee_id
        )

    def board(self, work_order_id: str) -> WorkOrderBoard | None:
        """Return the board view of a work order, if it exists."""
        catalog = self.work_orders.get_catalog(work_order_id)
        if catalog is None:
            return None
        log = self.event_log.list_events(work_order_id)
        return self.work_orders.build_board(catalog, log, self.clock())

    def _is_known(self, work_order_id: str, finding_id: str) -> bool:
        catalog = self.work_orders.get_catalog(work_order_id)
        return catalog is not None and catalog.get_finding(finding_id) is not None

    def _commit(
        self, work_order_id: str, finding_id: str, transition: Transition
    ) -> None:
        event = transition.appended
        if event is None:
            return
        # Status first: a failed status write must leave the session open.
        if transition.finding_status is not None:
            self.work_orders.update_finding_status(
                work_order_id, finding_id, transition.finding_status
            )
        self.event_log.append_event(work_order_id, event)
        _logger.info(
            "Man-hour %s appended: work_order=%s finding=%s employee=%s task=%s",
            event.action,
            work_order_id,
            event.finding_id,
            event.employee_id,
            event.task_code,
        )
