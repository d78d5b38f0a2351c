"""Tests for the Editor / Play / Pause mode state machine."""
import asyncio
from unittest.mock import MagicMock

from engines.scene_editor.core.geometry import Vector3
from engines.scene_editor.core.nodes import Camera3D, MeshInstance3D, Node3D, Scene
from engines.scene_editor.modes.boundaries import InMemoryRenderer, InMemoryResourceLoader, InMemorySimulation
from engines.scene_editor.modes.machine import EditorMode, ModeStateMachine
from engines.scene_editor.reflection.context import build_default_context
from engines.scene_editor.reflection.serializer import ReflectionSerializer
from engines.scene_editor.state.diff import documents_equal
from engines.scene_editor.state.snapshots import SnapshotKind, SnapshotStore


def _scene() -> Scene:
    scene = Scene("Level")
    box = Node3D("Box")
    box.position = Vector3(x=1)
    camera = Camera3D("Cam")
    mesh = MeshInstance3D("Mesh")
    mesh.set_mesh_path("meshes/cube.glb")
    scene.add_child(box)
    scene.add_child(camera)
    scene.add_child(mesh)
    camera.make_current()
    return scene


def _machine(**kwargs) -> ModeStateMachine:
    machine = ModeStateMachine(
        ReflectionSerializer(build_default_context()),
        kwargs.pop("snapshots", SnapshotStore(capacity=10)),
        history_limit=10,
        **kwargs,
    )
    machine.set_editor_scene(_scene())
    return machine


def test_play_runs_an_isolated_copy():
    machine = _machine()
    editor_scene = machine.editor_scene
    editor_box = editor_scene.find_child("Box")

    result = asyncio.run(machine.request(EditorMode.PLAY))

    assert result.success
    assert result.from_mode is EditorMode.EDITOR and result.to_mode is EditorMode.PLAY
    assert machine.mode is EditorMode.PLAY
    runtime = machine.runtime_scene
    runtime_box = runtime.find_by_id(editor_box.id)
    assert runtime is not editor_scene
    assert runtime_box is not editor_box
    assert machine.active_scene is runtime
    assert machine.renderer.get_current_scene_handle() is runtime
    assert machine.simulation.state == "running"

    runtime_box.position = Vector3(x=50)
    assert editor_box.position == Vector3(x=1)


def test_stop_discards_runtime_and_restores_editor_state():
    machine = _machine()
    box_id = machine.editor_scene.find_child("Box").id

    asyncio.run(machine.request(EditorMode.PLAY))
    runtime = machine.runtime_scene
    runtime.find_by_id(box_id).position = Vector3(x=50)
    runtime.add_child(Node3D("SpawnedAtRuntime"))

    result = asyncio.run(machine.request(EditorMode.EDITOR))

    assert result.success
    assert machine.mode is EditorMode.EDITOR
    assert runtime.is_destroyed
    assert machine.runtime_scene is None
    restored = machine.editor_scene
    assert restored.find_by_id(box_id).position == Vector3(x=1)
    assert restored.find_child("SpawnedAtRuntime") is None
    assert machine.simulation.state == "stopped"
    assert machine.renderer.get_current_scene_handle() is restored


def test_editor_snapshot_is_recorded():
    store = SnapshotStore(capacity=10)
    machine = _machine(snapshots=store)
    saved = []
    machine.on("editor_state_saved", saved.append)

    asyncio.run(machine.request(EditorMode.PLAY))

    info = machine.editor_snapshot_info()
    assert info is not None
    assert info.kind is SnapshotKind.EDITOR
    assert saved == [info.id]
    assert store.current_editor_id == info.id


def test_current_camera_follows_active_tree():
    renderer = InMemoryRenderer()
    machine = _machine(renderer=renderer)
    editor_camera = machine.editor_scene.current_camera
    assert renderer.current_camera is editor_camera

    asyncio.run(machine.request(EditorMode.PLAY))

    runtime_camera = machine.runtime_scene.current_camera
    assert runtime_camera is not editor_camera
    assert runtime_camera.id == editor_camera.id
    assert renderer.current_camera is runtime_camera


def test_resources_are_loaded_for_runtime_only():
    loader = InMemoryResourceLoader({"meshes/cube.glb": "cube-handle"})
    machine = _machine(resource_loader=loader)

    asyncio.run(machine.request(EditorMode.PLAY))

    assert loader.loaded == ["meshes/cube.glb"]
    assert machine.runtime_scene.find_child("Mesh").mesh_handle == "cube-handle"
    assert machine.editor_scene.find_child("Mesh").mesh_handle is None


def test_overlapping_requests_are_rejected():
    class SlowLoader:
        def __init__(self):
            self.started = asyncio.Event()
            self.release = asyncio.Event()

        async def load(self, path):
            self.started.set()
            await self.release.wait()
            return {"path": path}

    async def run():
        loader = SlowLoader()
        machine = _machine(resource_loader=loader)
        first = asyncio.create_task(machine.request(EditorMode.PLAY))
        await loader.started.wait()

        assert machine.is_switching
        second = await machine.request(EditorMode.PLAY)
        third = await machine.request(EditorMode.EDITOR)

        loader.release.set()
        return machine, await first, second, third

    machine, first, second, third = asyncio.run(run())

    assert first.success
    assert not second.success and not third.success
    assert second.error_code == "scene_editor.transition_conflict"
    assert machine.mode is EditorMode.PLAY
    assert not machine.is_switching
    assert len(machine.mode_history()) == 1


def test_pause_and_resume():
    machine = _machine()

    async def run():
        assert (await machine.request(EditorMode.PLAY)).success
        assert (await machine.request(EditorMode.PAUSE)).success
        assert machine.simulation.state == "paused"

        blocked = await machine.request(EditorMode.EDITOR)
        assert not blocked.success
        assert blocked.error_code == "scene_editor.invalid_transition"
        assert machine.mode is EditorMode.PAUSE

        assert (await machine.request(EditorMode.PLAY)).success
        assert machine.simulation.state == "running"
        assert (await machine.request(EditorMode.EDITOR)).success

    asyncio.run(run())
    assert machine.simulation.signals == ["start", "pause", "resume", "stop"]
    assert [(e.from_mode, e.to_mode) for e in machine.mode_history()] == [
        (EditorMode.EDITOR, EditorMode.PLAY),
        (EditorMode.PLAY, EditorMode.PAUSE),
        (EditorMode.PAUSE, EditorMode.PLAY),
        (EditorMode.PLAY, EditorMode.EDITOR),
    ]


def test_editor_to_pause_is_invalid():
    machine = _machine()
    result = asyncio.run(machine.request(EditorMode.PAUSE))
    assert not result.success
    assert machine.mode is EditorMode.EDITOR
    assert machine.mode_history() == []


def test_same_mode_request_is_a_no_op():
    machine = _machine()
    result = asyncio.run(machine.request(EditorMode.EDITOR))
    assert result.success
    assert "Already" in result.message
    assert machine.mode_history() == []


def test_failed_start_rolls_back_to_editor():
    class BrokenSimulation(InMemorySimulation):
        def start(self, root):
            raise RuntimeError("physics failed to boot")

    store = SnapshotStore(capacity=10)
    renderer = InMemoryRenderer()
    machine = _machine(snapshots=store, renderer=renderer, simulation=BrokenSimulation())
    editor_scene = machine.editor_scene
    failures = []
    machine.on("mode_change_failed", lambda f, t, err: failures.append((f, t, err)))

    result = asyncio.run(machine.request(EditorMode.PLAY))

    assert not result.success
    assert result.error_code == "scene_editor.transition_step"
    assert "start_simulation" in result.error
    assert machine.mode is EditorMode.EDITOR
    assert machine.editor_scene is editor_scene
    assert machine.runtime_scene is None
    assert renderer.get_current_scene_handle() is editor_scene
    assert len(store) == 0
    assert len(failures) == 1
    history = machine.mode_history()
    assert len(history) == 1 and not history[0].success


def test_stop_uses_pinned_copy_when_snapshot_evicted():
    store = SnapshotStore(capacity=10)
    machine = _machine(snapshots=store)
    box_id = machine.editor_scene.find_child("Box").id

    asyncio.run(machine.request(EditorMode.PLAY))
    store.clear()
    result = asyncio.run(machine.request(EditorMode.EDITOR))

    assert result.success
    assert machine.editor_scene.find_by_id(box_id).position == Vector3(x=1)


def test_mode_events_are_emitted():
    machine = _machine()
    events = []
    machine.on("mode_change_started", lambda f, t: events.append(("started", f, t)))
    machine.on("mode_changed", lambda f, t: events.append(("changed", f, t)))

    asyncio.run(machine.switch_to_play())

    assert events == [
        ("started", EditorMode.EDITOR, EditorMode.PLAY),
        ("changed", EditorMode.EDITOR, EditorMode.PLAY),
    ]


def test_renderer_receives_each_active_tree():
    renderer = MagicMock()
    machine = _machine(renderer=renderer)
    editor_scene = machine.editor_scene

    asyncio.run(machine.request(EditorMode.PLAY))
    runtime = machine.runtime_scene
    asyncio.run(machine.request(EditorMode.EDITOR))

    scenes = [c.args[0] for c in renderer.set_scene.call_args_list]
    assert scenes == [editor_scene, runtime, machine.editor_scene]
    assert renderer.set_current_camera.call_count == 3


def test_nothing_done_during_play_reaches_the_authored_scene():
    machine = _machine()
    serializer = ReflectionSerializer(build_default_context())
    before = serializer.serialize(machine.editor_scene)

    asyncio.run(machine.request(EditorMode.PLAY))
    runtime = machine.runtime_scene
    box = runtime.find_child("Box")
    box.position = Vector3(x=9, y=9, z=9)
    box.name = "RenamedBox"
    runtime.add_child(Node3D("Spawned"))
    runtime.find_child("Mesh").destroy()
    assert not documents_equal(before, serializer.serialize(runtime))

    result = asyncio.run(machine.request(EditorMode.EDITOR))

    assert result.success
    assert documents_equal(before, serializer.serialize(machine.editor_scene))


def test_failed_restore_keeps_playing_the_runtime_scene():
    machine = _machine()
    asyncio.run(machine.request(EditorMode.PLAY))
    runtime = machine.runtime_scene
    editor_scene = machine.editor_scene
    machine._serializer.build = MagicMock(side_effect=RuntimeError("corrupt snapshot"))

    result = asyncio.run(machine.request(EditorMode.EDITOR))

    assert not result.success
    assert result.error_code == "scene_editor.transition_step"
    assert "restore_editor" in result.error
    assert machine.mode is EditorMode.PLAY
    assert machine.runtime_scene is runtime
    assert not runtime.is_destroyed
    assert machine.editor_scene is editor_scene
    assert machine.simulation.state == "running"
    assert machine.simulation.signals == ["start", "stop", "start"]


def test_failed_editor_activation_keeps_both_trees():
    class FlakyRenderer(InMemoryRenderer):
        fail_next = False

        def set_scene(self, root):
            if self.fail_next:
                self.fail_next = False
                raise RuntimeError("surface lost")
            super().set_scene(root)

    renderer = FlakyRenderer()
    machine = _machine(renderer=renderer)
    editor_scene = machine.editor_scene
    asyncio.run(machine.request(EditorMode.PLAY))
    runtime = machine.runtime_scene

    renderer.fail_next = True
    result = asyncio.run(machine.request(EditorMode.EDITOR))

    assert not result.success
    assert result.error_code == "scene_editor.transition_step"
    assert "activate_editor" in result.error
    assert machine.mode is EditorMode.PLAY
    assert machine.runtime_scene is runtime
    assert not runtime.is_destroyed
    assert machine.editor_scene is editor_scene
    assert not editor_scene.is_destroyed
    assert renderer.get_current_scene_handle() is runtime
    assert machine.simulation.state == "running"

    retry = asyncio.run(machine.request(EditorMode.EDITOR))

    assert retry.success
    assert machine.mode is EditorMode.EDITOR
    assert runtime.is_destroyed
    assert renderer.get_current_scene_handle() is machine.editor_scene


def test_can_transition_follows_the_allowed_table():
    machine = _machine()
    assert machine.can_transition(EditorMode.PLAY)
    assert not machine.can_transition(EditorMode.PAUSE)
    assert not machine.can_transition(EditorMode.EDITOR)

    asyncio.run(machine.request(EditorMode.PLAY))

    assert machine.can_transition(EditorMode.PAUSE)
    assert machine.can_transition(EditorMode.EDITOR)


def test_zero_history_limit_keeps_one_event():
    machine = ModeStateMachine(
        ReflectionSerializer(build_default_context()), SnapshotStore(capacity=10), history_limit=0
    )
    machine.set_editor_scene(_scene())

    asyncio.run(machine.request(EditorMode.PLAY))
    asyncio.run(machine.request(EditorMode.EDITOR))

    assert [e.to_mode for e in machine.mode_history()] == [EditorMode.EDITOR]
