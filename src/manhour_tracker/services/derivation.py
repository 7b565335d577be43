"""Derive open man-hour sessions from the event log."""

from collections.abc import Iterable

from manhour_tracker.domain.sessions import ActiveSession, LogAction, LogEvent


def active_sessions(
    log: Iterable[LogEvent], finding_id: str
) -> tuple[ActiveSession, ...]:
    """Return the open sessions on a finding, in the order they were opened."""
    events = [event for event in log if event.finding_id == finding_id]
    return tuple(_fold(events).values())


def active_sessions_by_finding(
    log: Iterable[LogEvent],
) -> dict[str, tuple[ActiveSession, ...]]:
    """Return open sessions grouped by finding; idle findings are omitted."""
    grouped: dict[str, list[LogEvent]] = {}
    for event in log:
        grouped.setdefault(event.finding_id, []).append(event)
    result = {}
    for finding_id, events in grouped.items():
        sessions = tuple(_fold(events).values())
        if sessions:
            result[finding_id] = sessions
    return result


def sessions_for_employee(
    log: Iterable[LogEvent], employee_id: str
) -> tuple[ActiveSession, ...]:
    """Return every open session an employee holds, across findings."""
    return tuple(
        session
        for sessions in active_sessions_by_finding(log).values()
        for session in sessions
        if session.employee_id == employee_id
    )


def finding_log(
    log: Iterable[LogEvent], finding_id: str, newest_first: bool = True
) -> list[LogEvent]:
    """Return the events of one finding in timestamp order."""
    events = _ordered([event for event in log if event.finding_id == finding_id])
    if newest_first:
        events.reverse()
    return events


def _ordered(events: list[LogEvent]) -> list[LogEvent]:
    # sorted() is stable, so equal timestamps keep log insertion order.
    return sorted(events, key=lambda event: event.timestamp)


def _fold(events: list[LogEvent]) -> dict[str, ActiveSession]:
    open_sessions: dict[str, ActiveSession] = {}
    for event in _ordered(events):
        if event.action == LogAction.START:
            open_sessions.pop(event.employee_id, None)
            open_sessions[event.employee_id] = ActiveSession(
                finding_id=event.finding_id,
                employee_id=event.employee_id,
                task_code=event.task_code,
                start_time=event.timestamp,
            )
        elif event.action == LogAction.STOP:
            # A STOP without an open START is ignored.
            open_sessions.pop(event.employee_id, None)
    return open_sessions
