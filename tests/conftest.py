"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

import pytest

from manhour_tracker.config import Settings
from manhour_tracker.containers import AppContainer
from manhour_tracker.domain.models import (
    Finding,
    FindingStatus,
    Material,
    WorkOrderCatalog,
    WorkOrderInfo,
)
from manhour_tracker.domain.sessions import LogEvent
from manhour_tracker.services.cache import InMemoryCache
from manhour_tracker.services.manhours import EventLogRepository, ManHourService
from manhour_tracker.services.work_orders import (
    WorkOrderRepository,
    WorkOrderService,
)


@dataclass
class InMemoryEventLogRepository(EventLogRepository):
    """In-memory append-only log for tests."""

    events: dict[str, list[LogEvent]] = field(default_factory=dict)

    def list_events(self, work_order_id: str) -> list[LogEvent]:
        return list(self.events.get(work_order_id, []))

    def append_event(self, work_order_id: str, event: LogEvent) -> None:
        self.events.setdefault(work_order_id, []).append(event)


@dataclass
class InMemoryWorkOrderRepository(WorkOrderRepository):
    """In-memory work-order catalog for tests."""

    catalogs: dict[str, WorkOrderCatalog] = field(default_factory=dict)
    status_updates: list[tuple[str, str, FindingStatus]] = field(default_factory=list)
    reads: int = 0
    failing_status_updates: int = 0

    def get_catalog(self, work_order_id: str) -> WorkOrderCatalog | None:
        self.reads += 1
        return self.catalogs.get(work_order_id)

    def update_finding_status(
        self, work_order_id: str, finding_id: str, status: FindingStatus
    ) -> None:
        if self.failing_status_updates:
            self.failing_status_updates -= 1
            raise RuntimeError("Failed to update finding status")
        catalog = self.catalogs[work_order_id]
        self.catalogs[work_order_id] = WorkOrderCatalog(
            info=catalog.info,
            findings=[
                replace(finding, status=status)
                if finding.finding_id == finding_id
                else finding
                for finding in catalog.findings
            ],
            materials=catalog.materials,
        )
        self.status_updates.append((work_order_id, finding_id, status))


@dataclass
class FakeClock:
    """Clock returning a controllable instant."""

    now: datetime = field(
        default_factory=lambda: datetime(2024, 5, 1, 10, 0, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now = self.now + timedelta(seconds=seconds)


def sample_catalog() -> WorkOrderCatalog:
    return WorkOrderCatalog(
        info=WorkOrderInfo(
            work_order_id="WO-1",
            work_order_no="WO-2024-001",
            registration="PK-ABC",
            customer="Example Air",
            description="C-check",
            part_number="PN-100",
            serial_number="SN-200",
        ),
        findings=[
            Finding(
                finding_id="1",
                description="Corrosion on aft bulkhead",
                action_given="Blend and treat",
            ),
            Finding(
                finding_id="2",
                description="Worn brake unit",
                action_given="Replace brake",
                status=FindingStatus.IN_PROGRESS,
            ),
        ],
        materials=[
            Material(
                part_number="BRK-1",
                finding_id="2",
                description="Brake assembly",
                quantity=1,
                unit="EA",
                availability="Available",
            ),
            Material(
                part_number="SEAL-9",
                finding_id="2",
                description="Sealant",
                quantity=2,
                unit="TU",
                availability="Not Available",
            ),
        ],
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def event_log() -> InMemoryEventLogRepository:
    return InMemoryEventLogRepository()


@pytest.fixture
def work_order_repository() -> InMemoryWorkOrderRepository:
    return InMemoryWorkOrderRepository(catalogs={"WO-1": sample_catalog()})


@pytest.fixture
def work_order_service(
    work_order_repository: InMemoryWorkOrderRepository,
) -> WorkOrderService:
    return WorkOrderService(
        repository=work_order_repository,
        cache=InMemoryCache(),
        cache_ttl_seconds=30,
    )


@pytest.fixture
def manhour_service(
    event_log: InMemoryEventLogRepository,
    work_order_service: WorkOrderService,
    clock: FakeClock,
) -> ManHourService:
    return ManHourService(
        event_log=event_log,
        work_orders=work_order_service,
        clock=clock,
    )


@pytest.fixture
def container(
    settings: Settings,
    work_order_service: WorkOrderService,
    manhour_service: ManHourService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        work_order_service=work_order_service,
        manhour_service=manhour_service,
        close_resources=close_resources,
    )
