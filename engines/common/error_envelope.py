"""Canonical error envelope for scene editor HTTP responses.

Standardized structure:
{
  "error": {
    "code": "string",
    "message": "string",
    "http_status": 400,
    "resource_kind": "string | null",
    "details": {}
  }
}
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException
from pydantic import BaseModel, Field

from engines.scene_editor.errors import (
    DocumentFormatError,
    HierarchyError,
    InvalidTransitionError,
    OperationResult,
    PropertyAssignmentError,
    SceneEditorError,
    SnapshotNotFoundError,
    TransitionConflictError,
    UnknownTypeError,
)

# Checked in order; first match wins.
_STATUS_BY_ERROR = (
    (SnapshotNotFoundError, 404),
    (TransitionConflictError, 409),
    (InvalidTransitionError, 409),
    (DocumentFormatError, 422),
    (UnknownTypeError, 422),
    (PropertyAssignmentError, 422),
    (HierarchyError, 400),
)


class ErrorDetail(BaseModel):
    code: str
    message: str
    http_status: int
    resource_kind: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorEnvelope(BaseModel):
    """Top-level error envelope returned by scene editor endpoints."""
    error: ErrorDetail


def build_error_envelope(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ErrorEnvelope:
    """Construct an ErrorEnvelope (without raising)."""
    return ErrorEnvelope(
        error=ErrorDetail(
            code=code,
            message=message,
            http_status=status_code,
            resource_kind=resource_kind,
            details=details or {},
        )
    )


def error_response(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> HTTPException:
    """Construct and raise a standardized error response.

    Args:
        code: Machine-readable error code (e.g., "scene_editor.hierarchy")
        message: Human-readable error message
        status_code: HTTP status code (default 400)
        resource_kind: The resource type (session, snapshot, document)
        details: Additional context dict
    """
    envelope = build_error_envelope(
        code=code,
        message=message,
        status_code=status_code,
        resource_kind=resource_kind,
        details=details,
    )
    raise HTTPException(status_code=status_code, detail=envelope.model_dump())


def status_for(exc: Exception) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500 if not isinstance(exc, SceneEditorError) else 400


def raise_for_error(exc: SceneEditorError, resource_kind: Optional[str] = None) -> HTTPException:
    """Raise the envelope for a scene editor exception."""
    return error_response(
        code=exc.code,
        message=str(exc),
        status_code=status_for(exc),
        resource_kind=resource_kind,
    )


def raise_for_result(result: OperationResult, status_code: int = 409, resource_kind: Optional[str] = None) -> None:
    """Raise the envelope for a failed OperationResult; no-op on success."""
    if result.success:
        return
    error_response(
        code=result.error_code or "scene_editor.error",
        message=result.message,
        status_code=status_code,
        resource_kind=resource_kind,
        details=result.model_dump(exclude={"success", "message", "error_code"}, mode="json"),
    )
