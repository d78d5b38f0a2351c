"""Mode State Machine: Editor / Play / Pause.

Entering Play serializes the authored scene into an ``editor`` snapshot and
builds the runtime scene from that snapshot, so the two trees share no
objects. Returning to Editor throws the runtime scene away and rebuilds the
authored scene from the snapshot; nothing done during Play flows back.

Each transition is a sequential pipeline of named steps. A single in-flight
guard rejects overlapping requests; there is no queueing and no cancellation.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections import deque
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Tuple

from pydantic import BaseModel

from engines.config import editor_settings
from engines.scene_editor.core.events import EventEmitter
from engines.scene_editor.core.node import Node
from engines.scene_editor.core.nodes import MeshInstance3D, Scene
from engines.scene_editor.errors import (
    InvalidTransitionError,
    OperationResult,
    SceneEditorError,
    SnapshotNotFoundError,
    TransitionConflictError,
    TransitionStepError,
)
from engines.scene_editor.modes.boundaries import (
    InMemoryRenderer,
    InMemorySimulation,
    RendererBoundary,
    ResourceLoader,
    SimulationSystems,
)
from engines.scene_editor.reflection.models import SerializedDocument
from engines.scene_editor.reflection.serializer import ReflectionSerializer
from engines.scene_editor.state.snapshots import Snapshot, SnapshotKind, SnapshotStore

logger = logging.getLogger(__name__)


class EditorMode(str, Enum):
    EDITOR = "editor"
    PLAY = "play"
    PAUSE = "pause"


ALLOWED_TRANSITIONS = {
    (EditorMode.EDITOR, EditorMode.PLAY),
    (EditorMode.PLAY, EditorMode.EDITOR),
    (EditorMode.PLAY, EditorMode.PAUSE),
    (EditorMode.PAUSE, EditorMode.PLAY),
}


class ModeChangeEvent(BaseModel):
    from_mode: EditorMode
    to_mode: EditorMode
    timestamp: float
    success: bool
    error: Optional[str] = None


class ModeTransitionResult(OperationResult):
    from_mode: EditorMode
    to_mode: EditorMode


class ModeStateMachine(EventEmitter):
    """Events: ``mode_change_started(from, to)``, ``mode_changed(from, to)``,
    ``mode_change_failed(from, to, error)``, ``editor_state_saved(snapshot_id)``,
    ``editor_state_restored(snapshot_id)``."""

    def __init__(
        self,
        serializer: ReflectionSerializer,
        snapshots: SnapshotStore,
        renderer: Optional[RendererBoundary] = None,
        simulation: Optional[SimulationSystems] = None,
        resource_loader: Optional[ResourceLoader] = None,
        history_limit: Optional[int] = None,
    ) -> None:
        super().__init__()
        self._serializer = serializer
        self._snapshots = snapshots
        self._renderer = renderer or InMemoryRenderer()
        self._simulation = simulation or InMemorySimulation()
        self._loader = resource_loader
        self._mode = EditorMode.EDITOR
        self._switching = False
        self._editor_scene: Optional[Node] = None
        self._runtime_scene: Optional[Node] = None
        self._editor_snapshot_id: Optional[str] = None
        self._rollback_document: Optional[SerializedDocument] = None
        limit = history_limit
        if limit is None:
            limit = editor_settings.get_settings().max_mode_history
        self._history: Deque[ModeChangeEvent] = deque(maxlen=max(1, limit))
        self._pipelines: Dict[Tuple[EditorMode, EditorMode], Callable[[], Awaitable[None]]] = {
            (EditorMode.EDITOR, EditorMode.PLAY): self._enter_play,
            (EditorMode.PLAY, EditorMode.EDITOR): self._enter_editor,
            (EditorMode.PLAY, EditorMode.PAUSE): self._enter_pause,
            (EditorMode.PAUSE, EditorMode.PLAY): self._resume_play,
        }

    # --- state ---

    @property
    def mode(self) -> EditorMode:
        return self._mode

    @property
    def is_switching(self) -> bool:
        return self._switching

    @property
    def editor_scene(self) -> Optional[Node]:
        return self._editor_scene

    @property
    def runtime_scene(self) -> Optional[Node]:
        return self._runtime_scene

    @property
    def active_scene(self) -> Optional[Node]:
        """The tree currently driving the renderer."""
        if self._mode is EditorMode.EDITOR:
            return self._editor_scene
        return self._runtime_scene

    @property
    def renderer(self) -> RendererBoundary:
        return self._renderer

    @property
    def simulation(self) -> SimulationSystems:
        return self._simulation

    def set_editor_scene(self, scene: Node) -> None:
        if self._mode is not EditorMode.EDITOR or self._switching:
            raise InvalidTransitionError("The authored scene can only be replaced in Editor mode")
        self._editor_scene = scene
        self._activate(scene)
        logger.info("Editor scene set to %s", scene.name)

    def mode_history(self) -> List[ModeChangeEvent]:
        return [event.model_copy() for event in self._history]

    def editor_snapshot_info(self) -> Optional[Snapshot]:
        if self._editor_snapshot_id is None:
            return None
        return self._snapshots.get_info(self._editor_snapshot_id)

    # --- requests ---

    def can_transition(self, target: EditorMode) -> bool:
        return (self._mode, EditorMode(target)) in ALLOWED_TRANSITIONS

    async def switch_to_play(self) -> ModeTransitionResult:
        return await self.request(EditorMode.PLAY)

    async def switch_to_editor(self) -> ModeTransitionResult:
        return await self.request(EditorMode.EDITOR)

    async def switch_to_pause(self) -> ModeTransitionResult:
        return await self.request(EditorMode.PAUSE)

    async def request(self, target: EditorMode) -> ModeTransitionResult:
        target = EditorMode(target)
        from_mode = self._mode
        if self._switching:
            err = TransitionConflictError(
                f"Cannot switch to {target.value}: a transition is already in progress"
            )
            logger.warning("%s", err)
            return ModeTransitionResult.fail(err, from_mode=from_mode, to_mode=target)
        if target is from_mode:
            logger.warning("Already in %s mode", target.value)
            return ModeTransitionResult.ok(f"Already in {target.value} mode", from_mode=from_mode, to_mode=target)
        if not self.can_transition(target):
            err = InvalidTransitionError(f"Transition {from_mode.value} -> {target.value} is not allowed")
            logger.warning("%s", err)
            return ModeTransitionResult.fail(err, from_mode=from_mode, to_mode=target)
        pipeline = self._pipelines[(from_mode, target)]

        self._switching = True
        logger.info("Mode switch started: %s -> %s", from_mode.value, target.value)
        self.emit("mode_change_started", from_mode, target)
        try:
            await pipeline()
            self._mode = target
        except SceneEditorError as exc:
            return self._fail(from_mode, target, exc)
        except Exception as exc:
            return self._fail(from_mode, target, TransitionStepError("unexpected", str(exc)))
        finally:
            self._switching = False

        self._record(from_mode, target, True)
        self.emit("mode_changed", from_mode, target)
        logger.info("Mode switch complete: %s -> %s", from_mode.value, target.value)
        return ModeTransitionResult.ok(
            f"Switched from {from_mode.value} to {target.value}", from_mode=from_mode, to_mode=target
        )

    def _fail(self, from_mode: EditorMode, target: EditorMode, exc: SceneEditorError) -> ModeTransitionResult:
        self._record(from_mode, target, False, str(exc))
        self.emit("mode_change_failed", from_mode, target, str(exc))
        logger.error("Mode switch failed: %s -> %s: %s", from_mode.value, target.value, exc)
        return ModeTransitionResult.fail(exc, from_mode=from_mode, to_mode=target)

    def _record(self, from_mode: EditorMode, to_mode: EditorMode, success: bool, error: Optional[str] = None) -> None:
        self._history.append(
            ModeChangeEvent(from_mode=from_mode, to_mode=to_mode, timestamp=time.time(), success=success, error=error)
        )

    # --- pipelines ---

    async def _step(self, name: str, action: Callable[[], Any]) -> Any:
        try:
            result = action()
            if inspect.isawaitable(result):
                result = await result
            return result
        except TransitionStepError:
            raise
        except Exception as exc:
            raise TransitionStepError(name, str(exc)) from exc

    async def _enter_play(self) -> None:
        editor_scene = self._editor_scene
        if editor_scene is None:
            raise TransitionStepError("snapshot_editor", "no editor scene is set")

        document = await self._step("snapshot_editor", lambda: self._serializer.serialize_document(editor_scene))
        snapshot_id = await self._step(
            "snapshot_editor",
            lambda: self._snapshots.create(f"{editor_scene.name}_editor", document, SnapshotKind.EDITOR),
        )
        runtime: Optional[Node] = None
        started = False
        try:
            build = await self._step(
                "build_runtime", lambda: self._serializer.build(self._snapshots.restore(snapshot_id).root)
            )
            runtime = build.root
            await self._step("load_resources", lambda: self._load_resources(runtime))
            await asyncio.sleep(0)
            build.run_activations()
            await self._step("activate_runtime", lambda: self._activate(runtime))
            await self._step("start_simulation", lambda: self._simulation.start(runtime))
            started = True
        except SceneEditorError:
            if started:
                self._simulation.stop()
            if runtime is not None:
                runtime.destroy()
            self._snapshots.delete(snapshot_id)
            self._activate(editor_scene)
            raise

        self._runtime_scene = runtime
        self._editor_snapshot_id = snapshot_id
        self._rollback_document = document.model_copy(deep=True)
        self.emit("editor_state_saved", snapshot_id)

    async def _enter_editor(self) -> None:
        await self._step("stop_simulation", self._simulation.stop)
        try:
            document = self._rollback_source()
            build = await self._step("restore_editor", lambda: self._serializer.build(document.root))
            await asyncio.sleep(0)
            build.run_activations()
        except SceneEditorError:
            # Runtime scene is still intact; keep playing it.
            if self._runtime_scene is not None:
                self._simulation.start(self._runtime_scene)
            raise

        restored = build.root
        runtime = self._runtime_scene
        try:
            await self._step("activate_editor", lambda: self._activate(restored))
        except SceneEditorError:
            restored.destroy()
            if runtime is not None:
                self._activate(runtime)
                self._simulation.start(runtime)
            raise

        # Nothing is discarded until the restored tree is live.
        if runtime is not None:
            runtime.destroy()
            self._runtime_scene = None
        previous = self._editor_scene
        self._editor_scene = restored
        if previous is not None and previous is not restored:
            previous.destroy()
        self._rollback_document = None
        self.emit("editor_state_restored", self._editor_snapshot_id)

    async def _enter_pause(self) -> None:
        await self._step("pause_simulation", self._simulation.pause)

    async def _resume_play(self) -> None:
        await self._step("resume_simulation", self._simulation.resume)

    def _rollback_source(self) -> SerializedDocument:
        if self._editor_snapshot_id is not None:
            try:
                return self._snapshots.restore(self._editor_snapshot_id)
            except SnapshotNotFoundError:
                logger.warning("Editor snapshot %s was evicted; using pinned copy", self._editor_snapshot_id)
        if self._rollback_document is None:
            raise TransitionStepError("restore_editor", "no editor snapshot to restore")
        return self._rollback_document.model_copy(deep=True)

    async def _load_resources(self, root: Node) -> None:
        if self._loader is None:
            return
        for node in root.walk():
            if isinstance(node, MeshInstance3D) and node.get_mesh_path():
                node.mesh_handle = await self._loader.load(node.get_mesh_path())

    def _activate(self, root: Optional[Node]) -> None:
        self._renderer.set_scene(root)
        camera = root.current_camera if isinstance(root, Scene) else None
        self._renderer.set_current_camera(camera)


__all__ = [
    "EditorMode",
    "ALLOWED_TRANSITIONS",
    "ModeChangeEvent",
    "ModeTransitionResult",
    "ModeStateMachine",
]
