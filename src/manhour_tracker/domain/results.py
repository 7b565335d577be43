"""Result variants returned by the man-hour policies.

Policy and confirmation outcomes are values, not exceptions: callers branch
on the variant type. Only store failures are raised.
"""

from dataclasses import dataclass

from manhour_tracker.domain.models import FINAL_STATUSES, FindingStatus
from manhour_tracker.domain.sessions import (
    ActiveSession,
    EventLog,
    LogEvent,
    StopOutcome,
)


@dataclass(frozen=True)
class InvalidRequest:
    """The request was rejected before touching the log."""

    reason: str


@dataclass(frozen=True)
class UnknownFinding:
    """The finding does not exist on the work order."""

    finding_id: str


@dataclass(frozen=True)
class Proceed:
    """No one is active on the finding; the START may be appended."""


@dataclass(frozen=True)
class AlreadyActive:
    """The employee already holds an open session on the finding."""

    session: ActiveSession


@dataclass(frozen=True)
class Conflict:
    """Other employees are active; the START needs explicit confirmation."""

    active_others: tuple[ActiveSession, ...]


@dataclass(frozen=True)
class Started:
    """A START event was appended."""

    event: LogEvent
    joined: bool = False


@dataclass(frozen=True)
class NoActiveSessions:
    """Nothing to stop on the finding."""


@dataclass(frozen=True)
class SingleCandidate:
    """Exactly one open session; it is the implicit stop target."""

    session: ActiveSession


@dataclass(frozen=True)
class SelectCandidate:
    """Several open sessions; the employee to stop must be chosen."""

    sessions: tuple[ActiveSession, ...]


@dataclass(frozen=True)
class NotActive:
    """The employee has no open session on the finding."""

    employee_id: str


@dataclass(frozen=True)
class PassThrough:
    """Other workers remain active; the STOP leaves the finding status alone."""

    outcome: StopOutcome
    event: LogEvent


@dataclass(frozen=True)
class RequiresFinalStatus:
    """The last active worker is stopping; a final status must be chosen."""

    session: ActiveSession
    allowed_statuses: tuple[FindingStatus, ...] = FINAL_STATUSES


@dataclass(frozen=True)
class EvidenceRequired:
    """Closing the finding needs a non-empty evidence attachment."""

    session: ActiveSession


@dataclass(frozen=True)
class Finalized:
    """The last worker stopped and the finding moved to a final status."""

    outcome: StopOutcome
    event: LogEvent


StartDecision = InvalidRequest | Proceed | AlreadyActive | Conflict
StartResult = InvalidRequest | UnknownFinding | AlreadyActive | Conflict | Started
StopRequest = UnknownFinding | NoActiveSessions | SingleCandidate | SelectCandidate
StopResult = (
    InvalidRequest
    | UnknownFinding
    | NotActive
    | PassThrough
    | RequiresFinalStatus
    | EvidenceRequired
    | Finalized
)


@dataclass(frozen=True)
class Transition:
    """A policy result with the log it leaves behind.

    ``log`` is the input log plus at most one appended event. When
    ``finding_status`` is set, the finding must move to that status.
    """

    result: StartResult | StopResult
    log: EventLog
    appended: LogEvent | None = None
    finding_status: FindingStatus | None = None
