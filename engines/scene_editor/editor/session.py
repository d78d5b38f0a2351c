"""Editor session: one authored scene plus its history, snapshots and modes.

Edits go through commands that resolve their target by id against the
active scene at call time, so an undo step recorded before a Play round
trip still applies to the rebuilt editor tree. The undo stack is set aside
while in Play/Pause and restored on return to Editor.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional

from engines.config import editor_settings
from engines.scene_editor.core.node import Node
from engines.scene_editor.core.nodes import Scene
from engines.scene_editor.errors import (
    HierarchyError,
    InvalidTransitionError,
    OperationResult,
    PropertyAssignmentError,
)
from engines.scene_editor.modes.boundaries import RendererBoundary, ResourceLoader, SimulationSystems
from engines.scene_editor.modes.machine import EditorMode, ModeStateMachine, ModeTransitionResult
from engines.scene_editor.reflection.codec import decode_value, encode_value
from engines.scene_editor.reflection.context import ReflectionContext, build_default_context
from engines.scene_editor.reflection.models import SerializedDocument
from engines.scene_editor.reflection.serializer import (
    DeserializationResult,
    DocumentData,
    ReflectionSerializer,
    UnknownTypePolicy,
)
from engines.scene_editor.state.history import ChangeKind, ChangeLog, HistoryStack
from engines.scene_editor.state.snapshots import SnapshotKind, SnapshotStore
from engines.scene_editor.store.files import DocumentFileStore

logger = logging.getLogger(__name__)


class EditorSession:
    def __init__(
        self,
        scene: Optional[Node] = None,
        context: Optional[ReflectionContext] = None,
        renderer: Optional[RendererBoundary] = None,
        simulation: Optional[SimulationSystems] = None,
        resource_loader: Optional[ResourceLoader] = None,
        file_store: Optional[DocumentFileStore] = None,
        unknown_type_policy: UnknownTypePolicy = UnknownTypePolicy.SKIP,
    ) -> None:
        settings = editor_settings.get_settings()
        self.context = context or build_default_context()
        self.serializer = ReflectionSerializer(self.context, unknown_type_policy)
        self.snapshots = SnapshotStore(settings.max_snapshots)
        self.changes = ChangeLog(settings.max_change_records)
        self.history = HistoryStack(settings.max_undo_steps)
        self.files = file_store or DocumentFileStore(settings.document_dir)
        self._stashed_history: Optional[HistoryStack] = None
        self.modes = ModeStateMachine(
            self.serializer,
            self.snapshots,
            renderer=renderer,
            simulation=simulation,
            resource_loader=resource_loader,
            history_limit=settings.max_mode_history,
        )
        self.modes.on("mode_changed", self._on_mode_changed)
        self.modes.set_editor_scene(scene if scene is not None else Scene("Scene"))

    # --- state ---

    @property
    def mode(self) -> EditorMode:
        return self.modes.mode

    @property
    def scene(self) -> Node:
        """The tree edits currently apply to (authored in Editor, runtime otherwise)."""
        return self.modes.active_scene

    def find_node(self, node_id: str) -> Optional[Node]:
        return self.scene.find_by_id(node_id)

    def _require(self, node_id: str) -> Node:
        node = self.find_node(node_id)
        if node is None:
            raise HierarchyError(f"No node with id {node_id} in the active scene")
        return node

    def status(self) -> Dict[str, Any]:
        history = self.history.statistics()
        return {
            "mode": self.mode.value,
            "switching": self.modes.is_switching,
            "scene": self.scene.name,
            "scene_id": self.scene.id,
            "node_count": self.scene.count_nodes(),
            "can_undo": self.history.can_undo(),
            "can_redo": self.history.can_redo(),
            "undo_depth": history.undo_depth,
            "redo_depth": history.redo_depth,
            "snapshot_count": len(self.snapshots),
        }

    # --- edit commands ---

    def set_property(self, node_id: str, name: str, value: Any) -> OperationResult:
        node = self.find_node(node_id)
        if node is None:
            return OperationResult.fail(HierarchyError(f"No node with id {node_id} in the active scene"))
        descriptor = self.context.registry.describe(type(node), name)
        if descriptor is None:
            return OperationResult.fail(
                PropertyAssignmentError(node_id, name, f"not a registered property of {type(node).__name__}")
            )
        try:
            new_value = decode_value(encode_value(value, descriptor.type), descriptor.type, descriptor.value_type)
        except (TypeError, ValueError) as exc:
            err = PropertyAssignmentError(node_id, name, str(exc))
            logger.warning("%s", err)
            return OperationResult.fail(err)
        old_value = copy.deepcopy(descriptor.read(node))

        def apply() -> None:
            descriptor.write(self._require(node_id), copy.deepcopy(new_value))

        def revert() -> None:
            descriptor.write(self._require(node_id), copy.deepcopy(old_value))

        result = self.history.push_and_execute(f"Set {name}", apply, revert)
        if result.success:
            self.changes.record(
                ChangeKind.PROPERTY,
                node_id,
                f"Set {name} on {node.name}",
                old_value=encode_value(old_value, descriptor.type),
                new_value=encode_value(new_value, descriptor.type),
            )
        return result

    def add_node(self, parent_id: str, node: Node, index: Optional[int] = None) -> OperationResult:
        data = self.serializer.serialize(node)
        pending = [node]

        def apply() -> None:
            parent = self._require(parent_id)
            # First run attaches the caller's node; redo rebuilds it from its serialized form.
            child = pending.pop() if pending else self.serializer.deserialize(data)
            if index is None:
                parent.add_child(child)
            else:
                parent.insert_child(index, child)

        def revert() -> None:
            self._require(data.id).destroy()

        result = self.history.push_and_execute(f"Add {node.name}", apply, revert)
        if result.success:
            self.changes.record(
                ChangeKind.HIERARCHY, node.id, f"Added {node.name} under {parent_id}", new_value=parent_id
            )
        return result

    def remove_node(self, node_id: str) -> OperationResult:
        node = self.find_node(node_id)
        if node is None or node.parent is None:
            return OperationResult.fail(HierarchyError(f"Node {node_id} is missing or is the scene root"))
        data = self.serializer.serialize(node)
        parent_id = node.parent.id
        index = node.index_in_parent

        def apply() -> None:
            self._require(node_id).destroy()

        def revert() -> None:
            self._require(parent_id).insert_child(index, self.serializer.deserialize(data))

        result = self.history.push_and_execute(f"Remove {node.name}", apply, revert)
        if result.success:
            self.changes.record(
                ChangeKind.HIERARCHY, node_id, f"Removed {data.name}", old_value=parent_id
            )
        return result

    def move_node(self, node_id: str, new_parent_id: str, index: Optional[int] = None) -> OperationResult:
        node = self.find_node(node_id)
        if node is None or node.parent is None:
            return OperationResult.fail(HierarchyError(f"Node {node_id} is missing or is the scene root"))
        old_parent_id = node.parent.id
        old_index = node.index_in_parent

        def apply() -> None:
            self._require(node_id).reparent(self._require(new_parent_id), index)

        def revert() -> None:
            self._require(node_id).reparent(self._require(old_parent_id), old_index)

        result = self.history.push_and_execute(f"Move {node.name}", apply, revert)
        if result.success:
            self.changes.record(
                ChangeKind.HIERARCHY,
                node_id,
                f"Moved {node.name}",
                old_value=old_parent_id,
                new_value=new_parent_id,
            )
        return result

    def rename_node(self, node_id: str, name: str) -> OperationResult:
        node = self.find_node(node_id)
        if node is None:
            return OperationResult.fail(HierarchyError(f"No node with id {node_id} in the active scene"))
        old_name = node.name

        def apply() -> None:
            self._require(node_id).name = name

        def revert() -> None:
            self._require(node_id).name = old_name

        result = self.history.push_and_execute(f"Rename {old_name}", apply, revert)
        if result.success:
            self.changes.record(ChangeKind.PROPERTY, node_id, "Renamed node", old_value=old_name, new_value=name)
        return result

    def undo(self) -> OperationResult:
        return self.history.undo()

    def redo(self) -> OperationResult:
        return self.history.redo()

    # --- modes ---

    async def play(self) -> ModeTransitionResult:
        return await self.modes.request(EditorMode.PLAY)

    async def pause(self) -> ModeTransitionResult:
        return await self.modes.request(EditorMode.PAUSE)

    async def stop(self) -> ModeTransitionResult:
        return await self.modes.request(EditorMode.EDITOR)

    async def request_mode(self, target: EditorMode) -> ModeTransitionResult:
        return await self.modes.request(target)

    def _on_mode_changed(self, from_mode: EditorMode, to_mode: EditorMode) -> None:
        if from_mode is EditorMode.EDITOR and to_mode is EditorMode.PLAY:
            self._stashed_history = self.history
            self.history = HistoryStack(self._stashed_history.max_depth)
        elif to_mode is EditorMode.EDITOR and self._stashed_history is not None:
            self.history = self._stashed_history
            self._stashed_history = None

    # --- documents ---

    def document(self, name: Optional[str] = None) -> SerializedDocument:
        return self.serializer.serialize_document(self.scene, name=name)

    def checkpoint(self, name: str) -> str:
        snapshot_id = self.snapshots.create(name, self.document(), SnapshotKind.CHECKPOINT)
        logger.info("Checkpoint %s created (%s)", name, snapshot_id)
        return snapshot_id

    def load_document(self, document: DocumentData) -> DeserializationResult:
        """Replace the authored scene. Editor mode only; clears undo history."""
        if self.mode is not EditorMode.EDITOR or self.modes.is_switching:
            raise InvalidTransitionError("Documents can only be loaded in Editor mode")
        result = self.serializer.deserialize_document(document)
        previous = self.modes.editor_scene
        self.modes.set_editor_scene(result.root)
        if previous is not None and previous is not result.root:
            previous.destroy()
        self.history.clear()
        return result

    def restore_checkpoint(self, snapshot_id: str) -> DeserializationResult:
        return self.load_document(self.snapshots.restore(snapshot_id))

    def save(self, filename: str) -> str:
        path = self.files.save_document(filename, self.serializer.serialize_document(self.modes.editor_scene))
        return str(path)

    def load(self, filename: str) -> DeserializationResult:
        return self.load_document(self.files.load_document(filename))

    def list_saved(self) -> List[str]:
        return self.files.list_documents()


__all__ = ["EditorSession"]
