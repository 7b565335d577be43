"""Supabase-backed man-hour event log."""

import base64
from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from manhour_tracker.domain.models import FindingStatus
from manhour_tracker.domain.sessions import LogAction, LogEvent
from manhour_tracker.services.manhours import EventLogRepository

_COLUMNS = (
    "id, finding_no, employee_id, task_code, action, logged_at, "
    "status, duration_seconds, evidence_base64"
)


@dataclass
class SupabaseEventLogRepository(EventLogRepository):
    """Supabase implementation for the append-only man-hour log."""

    client: Client

    def list_events(self, work_order_id: str) -> list[LogEvent]:
        """Return events in timestamp order; row id breaks ties."""
        response = (
            self.client.table("manhour_logs")
            .select(_COLUMNS)
            .eq("work_order_id", work_order_id)
            .order("logged_at", desc=False)
            .order("id", desc=False)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def append_event(self, work_order_id: str, event: LogEvent) -> None:
        """Insert one log row."""
        response = (
            self.client.table("manhour_logs")
            .insert(
                {
                    "work_order_id": work_order_id,
                    "finding_no": event.finding_id,
                    "employee_id": event.employee_id,
                    "task_code": event.task_code,
                    "action": str(event.action),
                    "logged_at": event.timestamp.isoformat(),
                    "status": str(event.status) if event.status else None,
                    "duration_seconds": event.duration_seconds,
                    "evidence_base64": (
                        base64.b64encode(event.evidence).decode("ascii")
                        if event.evidence
                        else None
                    ),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to append man-hour event")


def _parse_row(row: dict[str, object]) -> LogEvent:
    status_raw = row.get("status")
    duration_raw = row.get("duration_seconds")
    evidence_raw = row.get("evidence_base64")
    return LogEvent(
        finding_id=str(row["finding_no"]),
        employee_id=str(row["employee_id"]),
        task_code=str(row.get("task_code") or ""),
        action=LogAction(str(row["action"]).upper()),
        timestamp=_parse_timestamp(str(row["logged_at"])),
        status=FindingStatus(str(status_raw)) if status_raw else None,
        duration_seconds=int(duration_raw) if duration_raw is not None else None,
        evidence=(
            base64.b64decode(evidence_raw)
            if isinstance(evidence_raw, str) and evidence_raw
            else None
        ),
    )


def _parse_timestamp(raw: str) -> datetime:
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
