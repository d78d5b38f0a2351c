"""External collaborators of the mode state machine: renderer, live
simulation systems and resource loading."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from engines.scene_editor.core.node import Node


class RendererBoundary(Protocol):
    def set_scene(self, root: Optional[Node]) -> None: ...
    def get_current_scene_handle(self) -> Optional[Node]: ...
    def set_current_camera(self, camera: Optional[Node]) -> None: ...


class SimulationSystems(Protocol):
    def start(self, root: Node) -> None: ...
    def stop(self) -> None: ...
    def pause(self) -> None: ...
    def resume(self) -> None: ...


class ResourceLoader(Protocol):
    async def load(self, path: str) -> Any: ...


class InMemoryRenderer:
    def __init__(self) -> None:
        self._scene: Optional[Node] = None
        self._camera: Optional[Node] = None
        self.scene_history: List[Optional[str]] = []

    def set_scene(self, root: Optional[Node]) -> None:
        self._scene = root
        self.scene_history.append(root.id if root is not None else None)

    def get_current_scene_handle(self) -> Optional[Node]:
        return self._scene

    def set_current_camera(self, camera: Optional[Node]) -> None:
        self._camera = camera

    @property
    def current_camera(self) -> Optional[Node]:
        return self._camera


class InMemorySimulation:
    """Tracks the start/stop/pause signals it receives."""

    def __init__(self) -> None:
        self.state = "stopped"
        self.root: Optional[Node] = None
        self.signals: List[str] = []

    def start(self, root: Node) -> None:
        self.root = root
        self.state = "running"
        self.signals.append("start")

    def stop(self) -> None:
        self.root = None
        self.state = "stopped"
        self.signals.append("stop")

    def pause(self) -> None:
        self.state = "paused"
        self.signals.append("pause")

    def resume(self) -> None:
        self.state = "running"
        self.signals.append("resume")


class InMemoryResourceLoader:
    """Returns pre-seeded handles; unknown paths resolve to a handle dict."""

    def __init__(self, handles: Optional[Dict[str, Any]] = None) -> None:
        self._handles = dict(handles or {})
        self.loaded: List[str] = []

    async def load(self, path: str) -> Any:
        self.loaded.append(path)
        return self._handles.get(path, {"path": path})


__all__ = [
    "RendererBoundary",
    "SimulationSystems",
    "ResourceLoader",
    "InMemoryRenderer",
    "InMemorySimulation",
    "InMemoryResourceLoader",
]
