"""Elapsed-time computation for open and stopped sessions."""

import math
from collections.abc import Iterable
from datetime import datetime

from manhour_tracker.domain.sessions import LiveTimer, LogEvent
from manhour_tracker.services.derivation import active_sessions

SECONDS_PER_HOUR = 3600
SECONDS_PER_MINUTE = 60


def elapsed_seconds(start_time: datetime, reference: datetime) -> int:
    """Return whole seconds from start to reference, never negative."""
    seconds = math.floor((reference - start_time).total_seconds())
    return max(seconds, 0)


def format_elapsed(seconds: int) -> str:
    """Format seconds as HH:MM:SS."""
    seconds = max(seconds, 0)
    hours, remainder = divmod(seconds, SECONDS_PER_HOUR)
    minutes, secs = divmod(remainder, SECONDS_PER_MINUTE)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def live_timers(
    log: Iterable[LogEvent], finding_id: str, now: datetime
) -> list[LiveTimer]:
    """Return a timer row for every open session on a finding."""
    timers = []
    for session in active_sessions(log, finding_id):
        elapsed = elapsed_seconds(session.start_time, now)
        timers.append(
            LiveTimer(
                employee_id=session.employee_id,
                task_code=session.task_code,
                start_time=session.start_time,
                elapsed_seconds=elapsed,
                display=format_elapsed(elapsed),
            )
        )
    return timers
