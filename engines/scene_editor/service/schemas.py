"""Service-layer schemas for the Scene Editor HTTP surface."""
from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from engines.scene_editor.state.snapshots import Snapshot, SnapshotKind


class SessionStatus(BaseModel):
    mode: str
    switching: bool
    scene: str
    scene_id: str
    node_count: int
    can_undo: bool
    can_redo: bool
    undo_depth: int
    redo_depth: int
    snapshot_count: int


class SnapshotSummary(BaseModel):
    id: str
    name: str
    kind: SnapshotKind
    timestamp: float
    node_count: int
    byte_size: int
    checksum: str

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "SnapshotSummary":
        return cls(
            id=snapshot.id,
            name=snapshot.name,
            kind=snapshot.kind,
            timestamp=snapshot.timestamp,
            node_count=snapshot.metadata.node_count,
            byte_size=snapshot.metadata.byte_size,
            checksum=snapshot.metadata.checksum,
        )


class CheckpointRequest(BaseModel):
    name: str = Field(min_length=1)


class CheckpointResponse(BaseModel):
    snapshot_id: str


class ValidationReport(BaseModel):
    valid: bool
    node_count: int = 0
    errors: List[str] = Field(default_factory=list)


DocumentPayload = Dict[str, Any]
