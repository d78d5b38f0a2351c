"""Snapshot Store: named, immutable copies of serialized documents."""
from __future__ import annotations

import hashlib
import itertools
import logging
import time
import uuid
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from engines.config import editor_settings
from engines.scene_editor.errors import SnapshotNotFoundError
from engines.scene_editor.reflection.models import SerializedDocument
from engines.scene_editor.reflection.serializer import DocumentData, coerce_document
from engines.scene_editor.state.diff import Difference, detect_differences

logger = logging.getLogger(__name__)


class SnapshotKind(str, Enum):
    EDITOR = "editor"
    RUNTIME = "runtime"
    CHECKPOINT = "checkpoint"


class SnapshotMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    node_count: int
    byte_size: int
    checksum: str
    description: str = ""


class Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    timestamp: float
    sequence: int
    kind: SnapshotKind
    document: SerializedDocument
    metadata: SnapshotMetadata


class SnapshotStoreStats(BaseModel):
    snapshots: int
    capacity: int
    total_bytes: int
    current_editor_id: Optional[str] = None
    current_runtime_id: Optional[str] = None


class SnapshotStore:
    """Owns snapshots; evicts oldest-first once ``capacity`` is exceeded.

    Every hand-off is a fresh deep copy: ``create`` copies the caller's
    document in and ``restore`` copies it out.
    """

    def __init__(self, capacity: Optional[int] = None) -> None:
        if capacity is None:
            capacity = editor_settings.get_settings().max_snapshots
        self._capacity = max(1, capacity)
        self._snapshots: Dict[str, Snapshot] = {}
        self._sequence = itertools.count()
        self._current: Dict[SnapshotKind, Optional[str]] = {
            SnapshotKind.EDITOR: None,
            SnapshotKind.RUNTIME: None,
        }

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def current_editor_id(self) -> Optional[str]:
        return self._current[SnapshotKind.EDITOR]

    @property
    def current_runtime_id(self) -> Optional[str]:
        return self._current[SnapshotKind.RUNTIME]

    def __len__(self) -> int:
        return len(self._snapshots)

    def __contains__(self, snapshot_id: str) -> bool:
        return snapshot_id in self._snapshots

    def create(self, name: str, document: DocumentData, kind: SnapshotKind = SnapshotKind.EDITOR) -> str:
        kind = SnapshotKind(kind)
        doc = coerce_document(document).model_copy(deep=True)
        payload = doc.to_json_bytes()
        snapshot = Snapshot(
            id=uuid.uuid4().hex,
            name=name,
            timestamp=time.time(),
            sequence=next(self._sequence),
            kind=kind,
            document=doc,
            metadata=SnapshotMetadata(
                node_count=doc.root.count_nodes(),
                byte_size=len(payload),
                checksum=hashlib.sha256(payload).hexdigest()[:16],
                description=f"{kind.value} snapshot: {name}",
            ),
        )
        self._snapshots[snapshot.id] = snapshot
        if kind in self._current:
            self._current[kind] = snapshot.id
        logger.info("Created %s snapshot %s (%s, %d nodes)", kind.value, snapshot.id, name, snapshot.metadata.node_count)
        self._enforce_capacity()
        return snapshot.id

    def restore(self, snapshot_id: str) -> SerializedDocument:
        return self._get(snapshot_id).document.model_copy(deep=True)

    def get_info(self, snapshot_id: str) -> Optional[Snapshot]:
        snapshot = self._snapshots.get(snapshot_id)
        return snapshot.model_copy(deep=True) if snapshot is not None else None

    def list_snapshots(self, kind: Optional[SnapshotKind] = None) -> List[Snapshot]:
        """Newest first."""
        items = [s for s in self._snapshots.values() if kind is None or s.kind == kind]
        items.sort(key=lambda s: (s.timestamp, s.sequence), reverse=True)
        return [s.model_copy(deep=True) for s in items]

    def delete(self, snapshot_id: str) -> bool:
        if self._snapshots.pop(snapshot_id, None) is None:
            return False
        for kind, current in self._current.items():
            if current == snapshot_id:
                self._current[kind] = None
        return True

    def evict_oldest(self) -> Optional[str]:
        if not self._snapshots:
            return None
        oldest = min(self._snapshots.values(), key=lambda s: (s.timestamp, s.sequence))
        self.delete(oldest.id)
        logger.info("Evicted snapshot %s (%s)", oldest.id, oldest.name)
        return oldest.id

    def set_capacity(self, capacity: int) -> None:
        self._capacity = max(1, capacity)
        self._enforce_capacity()

    def compare(self, first_id: str, second_id: str) -> List[Difference]:
        return detect_differences(self._get(first_id).document, self._get(second_id).document)

    def statistics(self) -> SnapshotStoreStats:
        return SnapshotStoreStats(
            snapshots=len(self._snapshots),
            capacity=self._capacity,
            total_bytes=sum(s.metadata.byte_size for s in self._snapshots.values()),
            current_editor_id=self.current_editor_id,
            current_runtime_id=self.current_runtime_id,
        )

    def clear(self) -> None:
        self._snapshots.clear()
        for kind in self._current:
            self._current[kind] = None

    def _get(self, snapshot_id: str) -> Snapshot:
        snapshot = self._snapshots.get(snapshot_id)
        if snapshot is None:
            raise SnapshotNotFoundError(f"Snapshot not found: {snapshot_id}")
        return snapshot

    def _enforce_capacity(self) -> None:
        while len(self._snapshots) > self._capacity:
            self.evict_oldest()


__all__ = ["SnapshotKind", "SnapshotMetadata", "Snapshot", "SnapshotStoreStats", "SnapshotStore"]
