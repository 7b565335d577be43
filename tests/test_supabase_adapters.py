"""Tests for Supabase adapter implementations."""

import base64
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from manhour_tracker.adapters.supabase_event_log_repository import (
    SupabaseEventLogRepository,
)
from manhour_tracker.adapters.supabase_work_order_repository import (
    SupabaseWorkOrderRepository,
)
from manhour_tracker.domain.models import FindingStatus
from manhour_tracker.domain.sessions import LogAction, LogEvent


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "update": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    orderings: list[str] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, column: str, desc: bool = False) -> "FakeTable":
        self.orderings.append(column)
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def test_event_log_repository_lists_events() -> None:
    client = FakeSupabaseClient()
    table = client.table("manhour_logs")
    table.queue(
        "select",
        [
            {
                "id": 1,
                "finding_no": "1",
                "employee_id": "E1",
                "task_code": "MNT",
                "action": "START",
                "logged_at": "2024-05-01T10:00:00+00:00",
                "status": None,
                "duration_seconds": None,
                "evidence_base64": None,
            },
            {
                "id": 2,
                "finding_no": "1",
                "employee_id": "E1",
                "task_code": "MNT",
                "action": "stop",
                "logged_at": "2024-05-01T10:01:30",
                "status": "CLOSED",
                "duration_seconds": 90,
                "evidence_base64": base64.b64encode(b"img").decode(),
            },
        ],
    )

    repository = SupabaseEventLogRepository(client)
    events = repository.list_events("WO-1")

    assert ("work_order_id", "WO-1") in table.last_filters
    assert table.orderings == ["logged_at", "id"]
    assert [e.action for e in events] == [LogAction.START, LogAction.STOP]
    assert events[1].timestamp == datetime(2024, 5, 1, 10, 1, 30, tzinfo=UTC)
    assert events[1].status == FindingStatus.CLOSED
    assert events[1].duration_seconds == 90
    assert events[1].evidence == b"img"


def test_event_log_repository_appends_event() -> None:
    client = FakeSupabaseClient()
    table = client.table("manhour_logs")
    table.queue("insert", [{"id": 3}])

    repository = SupabaseEventLogRepository(client)
    repository.append_event(
        "WO-1",
        LogEvent(
            finding_id="1",
            employee_id="E1",
            task_code="MNT",
            action=LogAction.STOP,
            timestamp=datetime(2024, 5, 1, 10, 0, tzinfo=UTC),
            status=FindingStatus.CLOSED,
            duration_seconds=60,
            evidence=b"img",
        ),
    )

    assert isinstance(table.last_payload, dict)
    assert table.last_payload["action"] == "STOP"
    assert table.last_payload["status"] == "CLOSED"
    assert table.last_payload["evidence_base64"] == base64.b64encode(b"img").decode()


def test_event_log_repository_raises_when_insert_fails() -> None:
    client = FakeSupabaseClient()

    repository = SupabaseEventLogRepository(client)

    with pytest.raises(RuntimeError):
        repository.append_event(
            "WO-1",
            LogEvent(
                finding_id="1",
                employee_id="E1",
                task_code="MNT",
                action=LogAction.START,
                timestamp=datetime(2024, 5, 1, 10, 0, tzinfo=UTC),
            ),
        )


def test_work_order_repository_builds_catalog() -> None:
    client = FakeSupabaseClient()
    client.table("work_orders").queue(
        "select",
        [
            {
                "id": "WO-1",
                "wo_no": "WO-2024-001",
                "registration": "PK-ABC",
                "customer": "Example Air",
                "description": "C-check",
                "part_number": "PN-100",
                "serial_number": "SN-200",
            }
        ],
    )
    client.table("findings").queue(
        "select",
        [
            {
                "finding_no": 1,
                "description": "Corrosion",
                "action_given": "Blend",
                "image_url": None,
                "status": None,
            },
            {
                "finding_no": 2,
                "description": "Brake",
                "action_given": "Replace",
                "image_url": "https://example.com/brake.jpg",
                "status": "ON_HOLD",
            },
        ],
    )
    client.table("materials").queue(
        "select",
        [
            {
                "finding_no": 2,
                "part_number": "BRK-1",
                "description": "Brake assembly",
                "quantity": "1",
                "unit": "EA",
                "availability": "Available",
            }
        ],
    )

    repository = SupabaseWorkOrderRepository(client)
    catalog = repository.get_catalog("WO-1")

    assert catalog is not None
    assert catalog.info.registration == "PK-ABC"
    assert [f.status for f in catalog.findings] == [
        FindingStatus.OPEN,
        FindingStatus.ON_HOLD,
    ]
    assert catalog.materials_for("2")[0].quantity == 1.0


def test_work_order_repository_unknown_work_order() -> None:
    client = FakeSupabaseClient()

    repository = SupabaseWorkOrderRepository(client)

    assert repository.get_catalog("missing") is None


def test_work_order_repository_updates_status() -> None:
    client = FakeSupabaseClient()
    table = client.table("findings")
    table.queue("update", [{"finding_no": "1", "status": "CLOSED"}])

    repository = SupabaseWorkOrderRepository(client)
    repository.update_finding_status("WO-1", "1", FindingStatus.CLOSED)

    assert table.last_payload == {"status": "CLOSED"}
    assert ("finding_no", "1") in table.last_filters

    with pytest.raises(RuntimeError):
        repository.update_finding_status("WO-1", "missing", FindingStatus.CLOSED)
