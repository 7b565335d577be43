"""Domain models for man-hour log events and derived sessions."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from manhour_tracker.domain.models import FindingStatus


class LogAction(StrEnum):
    """Action recorded by a log event."""

    START = "START"
    STOP = "STOP"


@dataclass(frozen=True)
class LogEvent:
    """Immutable START/STOP record in the man-hour log."""

    finding_id: str
    employee_id: str
    task_code: str
    action: LogAction
    timestamp: datetime
    status: FindingStatus | None = None
    duration_seconds: int | None = None
    evidence: bytes | None = None


EventLog = tuple[LogEvent, ...]


@dataclass(frozen=True)
class ActiveSession:
    """An open session derived from the log; never persisted."""

    finding_id: str
    employee_id: str
    task_code: str
    start_time: datetime


@dataclass(frozen=True)
class StopOutcome:
    """Payload recorded with a STOP event."""

    status: FindingStatus
    duration_seconds: int
    evidence_present: bool


@dataclass(frozen=True)
class LiveTimer:
    """Elapsed time of an open session for display."""

    employee_id: str
    task_code: str
    start_time: datetime
    elapsed_seconds: int
    display: str
