"""Start conflict policy and stop finalization state machine.

Every function takes a log snapshot and returns a result; the ones that may
write return a ``Transition`` carrying the log with at most one new event.
"""

from collections.abc import Iterable
from datetime import datetime

from manhour_tracker.domain.models import FINAL_STATUSES, FindingStatus
from manhour_tracker.domain.results import (
    AlreadyActive,
    Conflict,
    EvidenceRequired,
    Finalized,
    InvalidRequest,
    NoActiveSessions,
    NotActive,
    PassThrough,
    Proceed,
    RequiresFinalStatus,
    SelectCandidate,
    SingleCandidate,
    StartDecision,
    Started,
    StopRequest,
    Transition,
)
from manhour_tracker.domain.sessions import (
    ActiveSession,
    LogAction,
    LogEvent,
    StopOutcome,
)
from manhour_tracker.services.derivation import active_sessions
from manhour_tracker.services.timers import elapsed_seconds


def evaluate_start(
    log: Iterable[LogEvent], finding_id: str, employee_id: str, task_code: str
) -> StartDecision:
    """Decide whether a START may be appended right away."""
    if not employee_id.strip() or not task_code.strip():
        return InvalidRequest("Employee ID and task code are required.")
    sessions = active_sessions(log, finding_id)
    for session in sessions:
        if session.employee_id == employee_id:
            return AlreadyActive(session)
    if sessions:
        return Conflict(sessions)
    return Proceed()


def request_start(  # noqa: PLR0913
    log: Iterable[LogEvent],
    finding_id: str,
    employee_id: str,
    task_code: str,
    now: datetime,
    confirmed: bool = False,
) -> Transition:
    """Apply the conflict policy and append a START when allowed."""
    snapshot = tuple(log)
    decision = evaluate_start(snapshot, finding_id, employee_id, task_code)
    if isinstance(decision, Conflict) and confirmed:
        joined = True
    elif isinstance(decision, Proceed):
        joined = False
    else:
        return Transition(result=decision, log=snapshot)

    event = LogEvent(
        finding_id=finding_id,
        employee_id=employee_id.strip(),
        task_code=task_code.strip(),
        action=LogAction.START,
        timestamp=now,
    )
    return Transition(
        result=Started(event=event, joined=joined),
        log=(*snapshot, event),
        appended=event,
    )


def request_stop(log: Iterable[LogEvent], finding_id: str) -> StopRequest:
    """Return who could be stopped on a finding."""
    sessions = active_sessions(log, finding_id)
    if not sessions:
        return NoActiveSessions()
    if len(sessions) == 1:
        return SingleCandidate(sessions[0])
    return SelectCandidate(sessions)


def resolve_stop(
    log: Iterable[LogEvent], finding_id: str, employee_id: str, now: datetime
) -> Transition:
    """Stop a worker, or ask for a final status when they are the last one."""
    snapshot = tuple(log)
    employee_id = employee_id.strip()
    session, others = _split_sessions(snapshot, finding_id, employee_id)
    if session is None:
        return Transition(result=NotActive(employee_id), log=snapshot)
    if others:
        return _pass_through(snapshot, session, now)
    return Transition(result=RequiresFinalStatus(session), log=snapshot)


def finalize_stop(  # noqa: PLR0913
    log: Iterable[LogEvent],
    finding_id: str,
    employee_id: str,
    final_status: FindingStatus | str,
    evidence: bytes | None,
    now: datetime,
) -> Transition:
    """Stop the last worker and move the finding to its final status."""
    snapshot = tuple(log)
    employee_id = employee_id.strip()
    session, others = _split_sessions(snapshot, finding_id, employee_id)
    if session is None:
        return Transition(result=NotActive(employee_id), log=snapshot)
    status = _parse_final_status(final_status)
    if status is None:
        allowed = ", ".join(FINAL_STATUSES)
        return Transition(
            result=InvalidRequest(f"Final status must be one of: {allowed}."),
            log=snapshot,
        )
    if others:
        # Someone joined since the prompt; the finding stays in progress.
        return _pass_through(snapshot, session, now)
    if status == FindingStatus.CLOSED and not evidence:
        return Transition(result=EvidenceRequired(session), log=snapshot)

    outcome = StopOutcome(
        status=status,
        duration_seconds=elapsed_seconds(session.start_time, now),
        evidence_present=bool(evidence),
    )
    event = _stop_event(session, outcome, now, evidence or None)
    return Transition(
        result=Finalized(outcome=outcome, event=event),
        log=(*snapshot, event),
        appended=event,
        finding_status=status,
    )


def _split_sessions(
    log: tuple[LogEvent, ...], finding_id: str, employee_id: str
) -> tuple[ActiveSession | None, tuple[ActiveSession, ...]]:
    sessions = active_sessions(log, finding_id)
    mine = None
    others = []
    for session in sessions:
        if session.employee_id == employee_id:
            mine = session
        else:
            others.append(session)
    return mine, tuple(others)


def _pass_through(
    log: tuple[LogEvent, ...], session: ActiveSession, now: datetime
) -> Transition:
    outcome = StopOutcome(
        status=FindingStatus.IN_PROGRESS,
        duration_seconds=elapsed_seconds(session.start_time, now),
        evidence_present=False,
    )
    event = _stop_event(session, outcome, now, None)
    return Transition(
        result=PassThrough(outcome=outcome, event=event),
        log=(*log, event),
        appended=event,
    )


def _stop_event(
    session: ActiveSession,
    outcome: StopOutcome,
    now: datetime,
    evidence: bytes | None,
) -> LogEvent:
    return LogEvent(
        finding_id=session.finding_id,
        employee_id=session.employee_id,
        task_code=session.task_code,
        action=LogAction.STOP,
        timestamp=now,
        status=outcome.status,
        duration_seconds=outcome.duration_seconds,
        evidence=evidence,
    )


def _parse_final_status(value: FindingStatus | str) -> FindingStatus | None:
    try:
        status = FindingStatus(str(value).strip().upper())
    except ValueError:
        return None
    return status if status in FINAL_STATUSES else None
