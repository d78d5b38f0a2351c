"""Built-in node types of the authored scene."""
from __future__ import annotations

from typing import Any, Optional

from engines.scene_editor.core.geometry import Color, Vector3
from engines.scene_editor.core.node import Node
from engines.scene_editor.errors import HierarchyError


class Scene(Node):
    """Tree root; tracks which camera is current for this scene."""

    def __init__(self, name: str = "") -> None:
        super().__init__(name)
        self._current_camera_id: Optional[str] = None

    @property
    def current_camera_id(self) -> Optional[str]:
        return self._current_camera_id

    @property
    def current_camera(self) -> Optional["Camera3D"]:
        if self._current_camera_id is None:
            return None
        node = self.find_by_id(self._current_camera_id)
        return node if isinstance(node, Camera3D) else None

    def set_current_camera(self, camera: Optional["Camera3D"]) -> None:
        self._current_camera_id = camera.id if camera is not None else None


class Node3D(Node):
    def __init__(self, name: str = "") -> None:
        super().__init__(name)
        self.position = Vector3.zero()
        self.rotation = Vector3.zero()
        self.scale = Vector3.one()
        self.visible = True


class MeshInstance3D(Node3D):
    """Mesh reference. The mesh path round-trips as an opaque string; the
    loaded handle is runtime-only and never serialized."""

    def __init__(self, name: str = "") -> None:
        super().__init__(name)
        self.cast_shadow = False
        self.receive_shadow = False
        self.material_type = "standard"
        self._mesh_path = ""
        self.mesh_handle: Any = None

    def get_mesh_path(self) -> str:
        return self._mesh_path

    def set_mesh_path(self, path: str) -> None:
        if path != self._mesh_path:
            self.mesh_handle = None
        self._mesh_path = path or ""


class Camera3D(Node3D):
    def __init__(self, name: str = "") -> None:
        super().__init__(name)
        self._fov = 75.0
        self.near = 0.1
        self.far = 1000.0
        self.projection_mode = "perspective"
        self.clear_color = Color.black()
        self.clear_flags = 0

    @property
    def fov(self) -> float:
        return self._fov

    @fov.setter
    def fov(self, value: float) -> None:
        self._fov = max(1.0, min(179.0, float(value)))

    def _scene(self) -> Optional[Scene]:
        root = self.root
        return root if isinstance(root, Scene) else None

    def is_current(self) -> bool:
        scene = self._scene()
        return scene is not None and scene.current_camera_id == self.id

    def make_current(self) -> None:
        scene = self._scene()
        if scene is None:
            raise HierarchyError(f"Camera '{self.name}' is not attached to a scene")
        scene.set_current_camera(self)

    def clear_current(self) -> None:
        scene = self._scene()
        if scene is not None and scene.current_camera_id == self.id:
            scene.set_current_camera(None)

    def set_as_current(self, value: bool) -> None:
        if value:
            self.make_current()
        else:
            self.clear_current()


class DirectionalLight3D(Node3D):
    def __init__(self, name: str = "") -> None:
        super().__init__(name)
        self.color = Color.white()
        self.intensity = 1.0
        self.enabled = True
        self.cast_shadow = False
        self.shadow_map_size = 2048
        self.shadow_bias = -0.0001
        self.shadow_radius = 1.0


class AnimationPlayer(Node):
    def __init__(self, name: str = "") -> None:
        super().__init__(name)
        self.autoplay = ""
        self.speed = 1.0
        self._current_animation = ""

    def get_current_animation(self) -> str:
        return self._current_animation

    def set_current_animation(self, name: str) -> None:
        self._current_animation = name or ""


__all__ = [
    "Scene",
    "Node3D",
    "MeshInstance3D",
    "Camera3D",
    "DirectionalLight3D",
    "AnimationPlayer",
]
