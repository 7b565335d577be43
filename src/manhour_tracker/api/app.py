"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from dataclasses import fields, is_dataclass

from fastapi import FastAPI, HTTPException, Request, status

from manhour_tracker.api.models import FinalizeRequest, StartRequest
from manhour_tracker.app_logging import configure_logging
from manhour_tracker.containers import AppContainer
from manhour_tracker.domain.models import Finding, Material, WorkOrderInfo
from manhour_tracker.domain.sessions import (
    ActiveSession,
    LiveTimer,
    LogEvent,
    StopOutcome,
)
from manhour_tracker.services.work_orders import FindingBoard, WorkOrderBoard

_STORE_ERROR = "Man-hour store unavailable. Please retry."


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @contextmanager
    def store_errors(message: str, **extra: object) -> Iterator[None]:
        try:
            yield
        except Exception as exc:
            logger.exception(message, extra=extra)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=_STORE_ERROR
            ) from exc

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/work-orders/{work_order_id}")
    async def work_order_board(
        work_order_id: str, request: Request
    ) -> dict[str, object]:
        """Return the work order with findings, materials, logs and timers."""
        state_container: AppContainer = request.app.state.container
        with store_errors("Failed to load work order", work_order_id=work_order_id):
            board = state_container.manhour_service.board(work_order_id)
        if board is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return _serialize_board(board)

    @app.get("/work-orders/{work_order_id}/findings/{finding_id}/sessions")
    async def finding_sessions(
        work_order_id: str, finding_id: str, request: Request
    ) -> dict[str, object]:
        """Return the open sessions on a finding."""
        state_container: AppContainer = request.app.state.container
        with store_errors("Failed to read sessions", work_order_id=work_order_id):
            sessions = state_container.manhour_service.active_sessions(
                work_order_id, finding_id
            )
        return {"sessions": [_serialize_session(s) for s in sessions]}

    @app.get("/work-orders/{work_order_id}/employees/{employee_id}/sessions")
    async def employee_sessions(
        work_order_id: str, employee_id: str, request: Request
    ) -> dict[str, object]:
        """Return the open sessions an employee holds on a work order."""
        state_container: AppContainer = request.app.state.container
        with store_errors("Failed to read sessions", work_order_id=work_order_id):
            sessions = state_container.manhour_service.employee_sessions(
                work_order_id, employee_id
            )
        return {"sessions": [_serialize_session(s) for s in sessions]}

    @app.post("/work-orders/{work_order_id}/findings/{finding_id}/start")
    async def start_manhour(
        work_order_id: str, finding_id: str, body: StartRequest, request: Request
    ) -> dict[str, object]:
        """Start a session, or return the conflict that needs confirmation."""
        state_container: AppContainer = request.app.state.container
        with store_errors("Failed to start man-hour", work_order_id=work_order_id):
            result = state_container.manhour_service.start(
                work_order_id,
                finding_id,
                body.employee_id,
                body.task_code,
                confirmed=body.confirm,
            )
        return _serialize_result(result)

    @app.post("/work-orders/{work_order_id}/findings/{finding_id}/stop")
    async def stop_candidates(
        work_order_id: str, finding_id: str, request: Request
    ) -> dict[str, object]:
        """Return who can be stopped on a finding."""
        state_container: AppContainer = request.app.state.container
        with store_errors("Failed to read sessions", work_order_id=work_order_id):
            result = state_container.manhour_service.request_stop(
                work_order_id, finding_id
            )
        return _serialize_result(result)

    @app.post("/work-orders/{work_order_id}/findings/{finding_id}/stop/{employee_id}")
    async def stop_manhour(
        work_order_id: str, finding_id: str, employee_id: str, request: Request
    ) -> dict[str, object]:
        """Stop a worker; the last worker gets a final-status prompt."""
        state_container: AppContainer = request.app.state.container
        with store_errors("Failed to stop man-hour", work_order_id=work_order_id):
            result = state_container.manhour_service.stop(
                work_order_id, finding_id, employee_id
            )
        return _serialize_result(result)

    @app.post("/work-orders/{work_order_id}/findings/{finding_id}/finalize")
    async def finalize_manhour(
        work_order_id: str, finding_id: str, body: FinalizeRequest, request: Request
    ) -> dict[str, object]:
        """Stop the last worker with a final status and optional evidence."""
        state_container: AppContainer = request.app.state.container
        evidence = _decode_evidence(body.evidence_base64)
        with store_errors("Failed to finalize man-hour", work_order_id=work_order_id):
            result = state_container.manhour_service.finalize(
                work_order_id,
                finding_id,
                body.employee_id,
                body.final_status,
                evidence,
            )
        return _serialize_result(result)

    return app


def _decode_evidence(raw: str | None) -> bytes | None:
    """Decode base64 evidence; a data URL prefix is accepted."""
    if not raw:
        return None
    try:
        if raw.startswith("data:"):
            _, comma, raw = raw.partition(",")
            if not comma:
                raise ValueError("data URL without payload")
        return base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Evidence must be base64 encoded.",
        ) from exc


def _serialize_result(result: object) -> dict[str, object]:
    """Serialize a result variant as {"result": <name>, ...fields}."""
    payload: dict[str, object] = {"result": type(result).__name__}
    if is_dataclass(result):
        for item in fields(result):
            payload[item.name] = _serialize_value(getattr(result, item.name))
    return payload


def _serialize_value(value: object) -> object:
    if isinstance(value, ActiveSession):
        return _serialize_session(value)
    if isinstance(value, LogEvent):
        return _serialize_event(value)
    if isinstance(value, StopOutcome):
        return {
            "status": str(value.status),
            "duration_seconds": value.duration_seconds,
            "evidence_present": value.evidence_present,
        }
    if isinstance(value, tuple | list):
        return [_serialize_value(item) for item in value]
    if isinstance(value, str):
        return str(value)
    return value


def _serialize_session(session: ActiveSession) -> dict[str, object]:
    return {
        "finding_id": session.finding_id,
        "employee_id": session.employee_id,
        "task_code": session.task_code,
        "start_time": session.start_time.isoformat(),
    }


def _serialize_event(event: LogEvent) -> dict[str, object]:
    return {
        "finding_id": event.finding_id,
        "employee_id": event.employee_id,
        "task_code": event.task_code,
        "action": str(event.action),
        "timestamp": event.timestamp.isoformat(),
        "status": str(event.status) if event.status else None,
        "duration_seconds": event.duration_seconds,
        "evidence_present": bool(event.evidence),
    }


def _serialize_timer(timer: LiveTimer) -> dict[str, object]:
    return {
        "employee_id": timer.employee_id,
        "task_code": timer.task_code,
        "start_time": timer.start_time.isoformat(),
        "elapsed_seconds": timer.elapsed_seconds,
        "display": timer.display,
    }


def _serialize_info(info: WorkOrderInfo) -> dict[str, object]:
    return {
        "work_order_id": info.work_order_id,
        "work_order_no": info.work_order_no,
        "registration": info.registration,
        "customer": info.customer,
        "description": info.description,
        "part_number": info.part_number,
        "serial_number": info.serial_number,
    }


def _serialize_finding(finding: Finding) -> dict[str, object]:
    return {
        "finding_id": finding.finding_id,
        "description": finding.description,
        "action_given": finding.action_given,
        "image_url": finding.image_url,
        "status": str(finding.status),
    }


def _serialize_material(material: Material) -> dict[str, object]:
    return {
        "part_number": material.part_number,
        "description": material.description,
        "quantity": material.quantity,
        "unit": material.unit,
        "availability": material.availability,
        "is_available": material.is_available,
    }


def _serialize_finding_board(card: FindingBoard) -> dict[str, object]:
    return {
        **_serialize_finding(card.finding),
        "materials": [_serialize_material(m) for m in card.materials],
        "log": [_serialize_event(event) for event in card.log],
        "timers": [_serialize_timer(timer) for timer in card.timers],
    }


def _serialize_board(board: WorkOrderBoard) -> dict[str, object]:
    return {
        "info": _serialize_info(board.info),
        "findings": [_serialize_finding_board(card) for card in board.findings],
    }
