"""Supabase-backed work-order catalog."""

from dataclasses import dataclass

from supabase import Client

from manhour_tracker.domain.models import (
    Finding,
    FindingStatus,
    Material,
    WorkOrderCatalog,
    WorkOrderInfo,
)
from manhour_tracker.services.work_orders import WorkOrderRepository


@dataclass
class SupabaseWorkOrderRepository(WorkOrderRepository):
    """Supabase implementation for work orders, findings and materials."""

    client: Client

    def get_catalog(self, work_order_id: str) -> WorkOrderCatalog | None:
        """Return the catalog for a work order, if present."""
        response = (
            self.client.table("work_orders")
            .select(
                "id, wo_no, registration, customer, description, "
                "part_number, serial_number"
            )
            .eq("id", work_order_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        info = _parse_info(response.data[0])

        findings_response = (
            self.client.table("findings")
            .select("finding_no, description, action_given, image_url, status")
            .eq("work_order_id", work_order_id)
            .order("finding_no", desc=False)
            .execute()
        )
        materials_response = (
            self.client.table("materials")
            .select(
                "finding_no, part_number, description, quantity, unit, availability"
            )
            .eq("work_order_id", work_order_id)
            .execute()
        )
        return WorkOrderCatalog(
            info=info,
            findings=[_parse_finding(row) for row in findings_response.data or []],
            materials=[_parse_material(row) for row in materials_response.data or []],
        )

    def update_finding_status(
        self, work_order_id: str, finding_id: str, status: FindingStatus
    ) -> None:
        """Update a finding's lifecycle status."""
        response = (
            self.client.table("findings")
            .update({"status": str(status)})
            .eq("work_order_id", work_order_id)
            .eq("finding_no", finding_id)
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update finding status")


def _parse_info(row: dict[str, object]) -> WorkOrderInfo:
    return WorkOrderInfo(
        work_order_id=str(row["id"]),
        work_order_no=str(row.get("wo_no") or row["id"]),
        registration=row.get("registration"),
        customer=row.get("customer"),
        description=row.get("description"),
        part_number=row.get("part_number"),
        serial_number=row.get("serial_number"),
    )


def _parse_finding(row: dict[str, object]) -> Finding:
    status_raw = row.get("status")
    return Finding(
        finding_id=str(row["finding_no"]),
        description=str(row.get("description") or ""),
        action_given=str(row.get("action_given") or ""),
        image_url=row.get("image_url"),
        status=FindingStatus(str(status_raw)) if status_raw else FindingStatus.OPEN,
    )


def _parse_material(row: dict[str, object]) -> Material:
    return Material(
        part_number=str(row.get("part_number") or ""),
        finding_id=str(row["finding_no"]),
        description=str(row.get("description") or ""),
        quantity=float(row.get("quantity") or 0),
        unit=str(row.get("unit") or ""),
        availability=str(row.get("availability") or ""),
    )
