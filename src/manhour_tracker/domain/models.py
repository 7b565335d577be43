"""Domain models for work orders, findings and materials."""

from dataclasses import dataclass, field
from enum import StrEnum


class FindingStatus(StrEnum):
    """Lifecycle status of a finding."""

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    ON_HOLD = "ON_HOLD"
    CLOSED = "CLOSED"


FINAL_STATUSES = (
    FindingStatus.IN_PROGRESS,
    FindingStatus.ON_HOLD,
    FindingStatus.CLOSED,
)


@dataclass(frozen=True)
class Finding:
    """A maintenance discrepancy recorded against a work order."""

    finding_id: str
    description: str
    action_given: str
    image_url: str | None = None
    status: FindingStatus = FindingStatus.OPEN


@dataclass(frozen=True)
class Material:
    """A material line required by a finding."""

    part_number: str
    finding_id: str
    description: str
    quantity: float
    unit: str
    availability: str

    @property
    def is_available(self) -> bool:
        return self.availability.strip().lower() == "available"


@dataclass(frozen=True)
class WorkOrderInfo:
    """Header information for a work order."""

    work_order_id: str
    work_order_no: str
    registration: str | None = None
    customer: str | None = None
    description: str | None = None
    part_number: str | None = None
    serial_number: str | None = None


@dataclass(frozen=True)
class WorkOrderCatalog:
    """Read-only snapshot of a work order's findings and materials."""

    info: WorkOrderInfo
    findings: list[Finding] = field(default_factory=list)
    materials: list[Material] = field(default_factory=list)

    def get_finding(self, finding_id: str) -> Finding | None:
        """Return the finding with the given id, if present."""
        for finding in self.findings:
            if finding.finding_id == finding_id:
                return finding
        return None

    def materials_for(self, finding_id: str) -> list[Material]:
        """Return the materials attached to a finding."""
        return [m for m in self.materials if m.finding_id == finding_id]
