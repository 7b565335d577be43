"""Work-order catalog access and board assembly."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from manhour_tracker.domain.models import (
    Finding,
    FindingStatus,
    Material,
    WorkOrderCatalog,
    WorkOrderInfo,
)
from manhour_tracker.domain.sessions import LiveTimer, LogEvent
from manhour_tracker.services.cache import Cache
from manhour_tracker.services.derivation import finding_log
from manhour_tracker.services.timers import live_timers

_logger = logging.getLogger(__name__)


class WorkOrderRepository(Protocol):
    """Persistence interface for the work-order catalog."""

    def get_catalog(self, work_order_id: str) -> WorkOrderCatalog | None:
        """Return the findings and materials of a work order, if present."""

    def update_finding_status(
        self, work_order_id: str, finding_id: str, status: FindingStatus
    ) -> None:
        """Persist a new lifecycle status for a finding."""


@dataclass(frozen=True)
class FindingBoard:
    """Everything shown for one finding card."""

    finding: Finding
    materials: list[Material]
    log: list[LogEvent]
    timers: list[LiveTimer]


@dataclass(frozen=True)
class WorkOrderBoard:
    """Work-order header with its finding cards."""

    info: WorkOrderInfo
    findings: list[FindingBoard]


@dataclass
class WorkOrderService:
    """Service for reading catalogs and applying finding status changes."""

    repository: WorkOrderRepository
    cache: Cache
    cache_ttl_seconds: int = 30

    def get_catalog(self, work_order_id: str) -> WorkOrderCatalog | None:
        """Return the catalog for a work order, served from cache when fresh."""
        cache_key = _cache_key(work_order_id)
        cached = self.cache.get(cache_key)
        if isinstance(cached, WorkOrderCatalog):
            return cached
        catalog = self.repository.get_catalog(work_order_id)
        if catalog is not None:
            self.cache.set(cache_key, catalog, self.cache_ttl_seconds)
        return catalog

    def update_finding_status(
        self, work_order_id: str, finding_id: str, status: FindingStatus
    ) -> None:
        """Persist a finding status and drop the cached catalog."""
        self.repository.update_finding_status(work_order_id, finding_id, status)
        self.cache.delete(_cache_key(work_order_id))
        _logger.info(
            "Finding status updated: work_order=%s finding=%s status=%s",
            work_order_id,
            finding_id,
            status,
        )

    def build_board(
        self, catalog: WorkOrderCatalog, log: list[LogEvent], now: datetime
    ) -> WorkOrderBoard:
        """Combine a catalog with the current log into a board view."""
        findings = [
            FindingBoard(
                finding=finding,
                materials=catalog.materials_for(finding.finding_id),
                log=finding_log(log, finding.finding_id),
                timers=live_timers(log, finding.finding_id, now),
            )
            for finding in catalog.findings
        ]
        return WorkOrderBoard(info=catalog.info, findings=findings)


def _cache_key(work_order_id: str) -> str:
    return f"catalog:{work_order_id}"
