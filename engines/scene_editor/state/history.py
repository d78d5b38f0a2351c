"""Editor History Engine: diagnostic change log and undo/redo stacks."""
from __future__ import annotations

import copy
import logging
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, List, Optional

from pydantic import BaseModel

from engines.config import editor_settings
from engines.scene_editor.core.events import EventEmitter
from engines.scene_editor.errors import OperationResult, UndoRedoExecutionError

logger = logging.getLogger(__name__)


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class ChangeKind(str, Enum):
    PROPERTY = "property"
    HIERARCHY = "hierarchy"
    COMPONENT = "component"
    SCRIPT = "script"


class ChangeRecord(BaseModel):
    id: str
    kind: ChangeKind
    target_node_id: str
    description: str
    old_value: Any = None
    new_value: Any = None
    timestamp: float
    undoable: bool = True


class ChangeLog(EventEmitter):
    """Append-only, bounded log of edits. Diagnostic only: it never drives undo."""

    def __init__(self, capacity: Optional[int] = None) -> None:
        super().__init__()
        if capacity is None:
            capacity = editor_settings.get_settings().max_change_records
        self._capacity = max(1, capacity)
        self._records: Deque[ChangeRecord] = deque()
        self.tracking_enabled = True

    def record(
        self,
        kind: ChangeKind,
        target_node_id: str,
        description: str,
        old_value: Any = None,
        new_value: Any = None,
        undoable: bool = True,
    ) -> str:
        if not self.tracking_enabled:
            return ""
        record = ChangeRecord(
            id=_new_id("change"),
            kind=ChangeKind(kind),
            target_node_id=target_node_id,
            description=description,
            old_value=copy.deepcopy(old_value),
            new_value=copy.deepcopy(new_value),
            timestamp=time.time(),
            undoable=undoable,
        )
        self._records.append(record)
        while len(self._records) > self._capacity:
            self._records.popleft()
        self.emit("state_changed", record)
        return record.id

    def history(self, node_id: Optional[str] = None, kind: Optional[ChangeKind] = None) -> List[ChangeRecord]:
        """Newest first, optionally filtered by node and kind."""
        records = [
            r for r in self._records
            if (node_id is None or r.target_node_id == node_id) and (kind is None or r.kind == kind)
        ]
        records.reverse()
        return records

    def set_capacity(self, capacity: int) -> None:
        self._capacity = max(1, capacity)
        while len(self._records) > self._capacity:
            self._records.popleft()

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


@dataclass
class UndoOperation:
    name: str
    execute: Callable[[], Any]
    undo: Callable[[], Any]
    id: str = field(default_factory=lambda: _new_id("op"))
    timestamp: float = field(default_factory=time.time)


class HistoryStats(BaseModel):
    undo_depth: int
    redo_depth: int
    max_depth: int


class HistoryStack(EventEmitter):
    """Manages undo/redo stacks.

    Pushing records an operation that has already been applied; it does not
    execute it. A failed undo/redo closure leaves both stacks exactly as they
    were before the attempt.
    """

    def __init__(self, max_depth: Optional[int] = None) -> None:
        super().__init__()
        if max_depth is None:
            max_depth = editor_settings.get_settings().max_undo_steps
        self.max_depth = max(1, max_depth)
        self.undo_stack: List[UndoOperation] = []
        self.redo_stack: List[UndoOperation] = []

    def push(self, name: str, execute: Callable[[], Any], undo: Callable[[], Any]) -> str:
        operation = UndoOperation(name=name, execute=execute, undo=undo)
        self.undo_stack.append(operation)
        self.redo_stack.clear()  # a fresh edit invalidates the undone future
        if len(self.undo_stack) > self.max_depth:
            self.undo_stack.pop(0)
        return operation.id

    def push_and_execute(self, name: str, execute: Callable[[], Any], undo: Callable[[], Any]) -> OperationResult:
        try:
            execute()
        except Exception as exc:
            err = UndoRedoExecutionError(name, "execute", str(exc))
            logger.warning("%s", err)
            return OperationResult.fail(err)
        self.push(name, execute, undo)
        return OperationResult.ok(f"Applied '{name}'")

    def undo(self) -> OperationResult:
        if not self.undo_stack:
            return OperationResult(success=False, message="Nothing to undo")
        operation = self.undo_stack.pop()
        try:
            operation.undo()
        except Exception as exc:
            self.undo_stack.append(operation)
            err = UndoRedoExecutionError(operation.name, "undo", str(exc))
            logger.warning("%s", err)
            return OperationResult.fail(err)
        self.redo_stack.append(operation)
        self.emit("undo_performed", operation)
        return OperationResult.ok(f"Undid '{operation.name}'")

    def redo(self) -> OperationResult:
        if not self.redo_stack:
            return OperationResult(success=False, message="Nothing to redo")
        operation = self.redo_stack.pop()
        try:
            operation.execute()
        except Exception as exc:
            self.redo_stack.append(operation)
            err = UndoRedoExecutionError(operation.name, "redo", str(exc))
            logger.warning("%s", err)
            return OperationResult.fail(err)
        self.undo_stack.append(operation)
        self.emit("redo_performed", operation)
        return OperationResult.ok(f"Redid '{operation.name}'")

    def can_undo(self) -> bool:
        return len(self.undo_stack) > 0

    def can_redo(self) -> bool:
        return len(self.redo_stack) > 0

    def undo_names(self) -> List[str]:
        return [op.name for op in reversed(self.undo_stack)]

    def redo_names(self) -> List[str]:
        return [op.name for op in reversed(self.redo_stack)]

    def clear(self) -> None:
        self.undo_stack.clear()
        self.redo_stack.clear()

    def set_max_depth(self, max_depth: int) -> None:
        self.max_depth = max(1, max_depth)
        while len(self.undo_stack) > self.max_depth:
            self.undo_stack.pop(0)

    def statistics(self) -> HistoryStats:
        return HistoryStats(
            undo_depth=len(self.undo_stack),
            redo_depth=len(self.redo_stack),
            max_depth=self.max_depth,
        )


__all__ = [
    "ChangeKind",
    "ChangeRecord",
    "ChangeLog",
    "UndoOperation",
    "HistoryStats",
    "HistoryStack",
]
