"""HTTP routes for the Scene Editor service."""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request

from engines.common.error_envelope import error_response, raise_for_error, raise_for_result
from engines.scene_editor.editor.session import EditorSession
from engines.scene_editor.errors import OperationResult, SceneEditorError
from engines.scene_editor.modes.machine import EditorMode, ModeTransitionResult
from engines.scene_editor.reflection.models import SerializedDocument
from engines.scene_editor.service.schemas import (
    CheckpointRequest,
    CheckpointResponse,
    DocumentPayload,
    SessionStatus,
    SnapshotSummary,
    ValidationReport,
)
from engines.scene_editor.state.snapshots import SnapshotKind

logger = logging.getLogger(__name__)

router = APIRouter()


def get_session(request: Request) -> EditorSession:
    return request.app.state.session


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/session", response_model=SessionStatus)
def session_status(session: EditorSession = Depends(get_session)) -> SessionStatus:
    return SessionStatus(**session.status())


@router.post("/session/mode/{target}", response_model=ModeTransitionResult)
async def request_mode(target: str, session: EditorSession = Depends(get_session)) -> ModeTransitionResult:
    try:
        mode = EditorMode(target)
    except ValueError:
        error_response(
            code="scene_editor.unknown_mode",
            message=f"Unknown editor mode: {target}",
            status_code=400,
            resource_kind="session",
            details={"allowed": [m.value for m in EditorMode]},
        )
    result = await session.request_mode(mode)
    raise_for_result(result, status_code=409, resource_kind="session")
    return result


@router.post("/session/undo", response_model=OperationResult)
def undo(session: EditorSession = Depends(get_session)) -> OperationResult:
    result = session.undo()
    raise_for_result(result, status_code=409, resource_kind="session")
    return result


@router.post("/session/redo", response_model=OperationResult)
def redo(session: EditorSession = Depends(get_session)) -> OperationResult:
    result = session.redo()
    raise_for_result(result, status_code=409, resource_kind="session")
    return result


@router.get("/session/snapshots", response_model=List[SnapshotSummary])
def list_snapshots(
    kind: Optional[SnapshotKind] = None, session: EditorSession = Depends(get_session)
) -> List[SnapshotSummary]:
    return [SnapshotSummary.from_snapshot(s) for s in session.snapshots.list_snapshots(kind)]


@router.post("/session/checkpoint", response_model=CheckpointResponse)
def create_checkpoint(body: CheckpointRequest, session: EditorSession = Depends(get_session)) -> CheckpointResponse:
    return CheckpointResponse(snapshot_id=session.checkpoint(body.name))


@router.get("/session/document", response_model=SerializedDocument)
def current_document(session: EditorSession = Depends(get_session)) -> SerializedDocument:
    return session.document()


@router.post("/documents/validate", response_model=ValidationReport)
def validate_document(payload: DocumentPayload, session: EditorSession = Depends(get_session)) -> ValidationReport:
    try:
        result = session.serializer.deserialize_document(payload)
    except SceneEditorError as exc:
        logger.info("Rejected scene document: %s", exc)
        return ValidationReport(valid=False, errors=[str(exc)])
    node_count = session.serializer.serialize(result.root).count_nodes()
    result.root.destroy()
    return ValidationReport(valid=not result.errors, node_count=node_count, errors=[str(e) for e in result.errors])


@router.post("/session/checkpoint/{snapshot_id}/restore", response_model=ValidationReport)
def restore_checkpoint(snapshot_id: str, session: EditorSession = Depends(get_session)) -> ValidationReport:
    try:
        result = session.restore_checkpoint(snapshot_id)
    except SceneEditorError as exc:
        raise_for_error(exc, resource_kind="snapshot")
    return ValidationReport(
        valid=not result.errors, node_count=result.root.count_nodes(), errors=[str(e) for e in result.errors]
    )
