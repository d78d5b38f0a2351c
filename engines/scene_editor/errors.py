"""Error taxonomy and operation results for the Scene Editor engine."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class SceneEditorError(Exception):
    """Base class for all scene editor failures."""

    code = "scene_editor.error"


class UnknownTypeError(SceneEditorError):
    code = "scene_editor.unknown_type"

    def __init__(self, type_tag: str, node_id: Optional[str] = None) -> None:
        self.type_tag = type_tag
        self.node_id = node_id
        where = f" (node {node_id})" if node_id else ""
        super().__init__(f"No constructor registered for type '{type_tag}'{where}")


class PropertyAssignmentError(SceneEditorError):
    code = "scene_editor.property_assignment"

    def __init__(self, node_id: str, property_name: str, reason: str) -> None:
        self.node_id = node_id
        self.property_name = property_name
        super().__init__(f"Failed to assign '{property_name}' on node {node_id}: {reason}")


class TransitionConflictError(SceneEditorError):
    code = "scene_editor.transition_conflict"


class TransitionStepError(SceneEditorError):
    code = "scene_editor.transition_step"

    def __init__(self, step: str, reason: str) -> None:
        self.step = step
        super().__init__(f"Transition step '{step}' failed: {reason}")


class InvalidTransitionError(SceneEditorError):
    code = "scene_editor.invalid_transition"


class UndoRedoExecutionError(SceneEditorError):
    code = "scene_editor.undo_redo_execution"

    def __init__(self, operation_name: str, direction: str, reason: str) -> None:
        self.operation_name = operation_name
        self.direction = direction
        super().__init__(f"{direction} of '{operation_name}' failed: {reason}")


class HierarchyError(SceneEditorError):
    code = "scene_editor.hierarchy"


class SnapshotNotFoundError(SceneEditorError, KeyError):
    code = "scene_editor.snapshot_not_found"

    def __str__(self) -> str:
        return Exception.__str__(self)


class DocumentFormatError(SceneEditorError):
    code = "scene_editor.document_format"


class OperationResult(BaseModel):
    """Explicit success/failure returned across editor boundaries."""

    success: bool
    message: str = ""
    error_code: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, message: str = "", **extra) -> "OperationResult":
        return cls(success=True, message=message, **extra)

    @classmethod
    def fail(cls, exc: Exception, message: Optional[str] = None, **extra) -> "OperationResult":
        return cls(
            success=False,
            message=message or str(exc),
            error_code=getattr(exc, "code", "scene_editor.error"),
            error=str(exc),
            **extra,
        )


__all__ = [
    "SceneEditorError",
    "UnknownTypeError",
    "PropertyAssignmentError",
    "TransitionConflictError",
    "TransitionStepError",
    "InvalidTransitionError",
    "UndoRedoExecutionError",
    "HierarchyError",
    "SnapshotNotFoundError",
    "DocumentFormatError",
    "OperationResult",
]
