"""Pydantic models for man-hour API requests."""

from pydantic import BaseModel


class StartRequest(BaseModel):
    """Body of a START request."""

    employee_id: str = ""
    task_code: str = ""
    confirm: bool = False


class FinalizeRequest(BaseModel):
    """Body of a last-worker finalization."""

    employee_id: str
    final_status: str
    evidence_base64: str | None = None
