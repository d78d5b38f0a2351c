"""Property and type registrations for the built-in node types."""
from __future__ import annotations

from engines.scene_editor.core.geometry import Color, Vector3
from engines.scene_editor.core.node import Node
from engines.scene_editor.core.nodes import (
    AnimationPlayer,
    Camera3D,
    DirectionalLight3D,
    MeshInstance3D,
    Node3D,
    Scene,
)
from engines.scene_editor.reflection.registry import PropertyDescriptor as P
from engines.scene_editor.reflection.registry import PropertyRegistry, PropertyType as T
from engines.scene_editor.reflection.type_directory import TypeDirectory

ACTIVATION_MAKE_CURRENT = "make_current"

BUILTIN_TYPES = {
    "Node": Node,
    "Scene": Scene,
    "Node3D": Node3D,
    "MeshInstance3D": MeshInstance3D,
    "Camera3D": Camera3D,
    "DirectionalLight3D": DirectionalLight3D,
    "AnimationPlayer": AnimationPlayer,
}

# Minimum property sets each built-in type must expose.
REQUIRED_PROPERTIES = {
    Node3D: ("position", "rotation", "scale", "visible"),
    Camera3D: ("fov", "near", "far"),
    DirectionalLight3D: ("color", "intensity", "enabled"),
}


def register_builtin_properties(registry: PropertyRegistry) -> None:
    registry.register_many(Node, [
        P("processMode", T.NUMBER, default_value=0, attribute="process_mode"),
        P("processPriority", T.NUMBER, default_value=0, attribute="process_priority"),
    ])
    registry.register_many(Node3D, [
        P("position", T.VECTOR3, default_value=Vector3.zero()),
        P("rotation", T.VECTOR3, default_value=Vector3.zero()),
        P("scale", T.VECTOR3, default_value=Vector3.one()),
        P("visible", T.BOOLEAN, default_value=True),
    ])
    registry.register_many(MeshInstance3D, [
        P("castShadow", T.BOOLEAN, default_value=False, attribute="cast_shadow"),
        P("receiveShadow", T.BOOLEAN, default_value=False, attribute="receive_shadow"),
        P("materialType", T.STRING, default_value="standard", attribute="material_type"),
        P(
            "meshPath", T.STRING, default_value="",
            getter=lambda node: node.get_mesh_path(),
            setter=lambda node, value: node.set_mesh_path(value),
        ),
    ])
    registry.register_many(Camera3D, [
        P("fov", T.NUMBER, default_value=75.0),
        P("near", T.NUMBER, default_value=0.1),
        P("far", T.NUMBER, default_value=1000.0),
        P("projectionMode", T.STRING, default_value="perspective", attribute="projection_mode"),
        P("clearColor", T.COLOR, default_value=Color.black(), attribute="clear_color"),
        P("clearFlags", T.NUMBER, default_value=0, attribute="clear_flags"),
        P(
            "isCurrent", T.BOOLEAN, default_value=False,
            getter=lambda camera: camera.is_current(),
            setter=lambda camera, value: camera.set_as_current(value),
            activation_kind=ACTIVATION_MAKE_CURRENT,
            activate=lambda camera, value: camera.set_as_current(value),
        ),
    ])
    registry.register_many(DirectionalLight3D, [
        P("color", T.COLOR, default_value=Color.white()),
        P("intensity", T.NUMBER, default_value=1.0),
        P("enabled", T.BOOLEAN, default_value=True),
        P("castShadow", T.BOOLEAN, default_value=False, attribute="cast_shadow"),
        P("shadowMapSize", T.NUMBER, default_value=2048, attribute="shadow_map_size"),
        P("shadowBias", T.NUMBER, default_value=-0.0001, attribute="shadow_bias"),
        P("shadowRadius", T.NUMBER, default_value=1.0, attribute="shadow_radius"),
    ])
    registry.register_many(AnimationPlayer, [
        P("autoplay", T.STRING, default_value=""),
        P("speed", T.NUMBER, default_value=1.0),
        P(
            "currentAnimation", T.STRING, default_value="",
            getter=lambda player: player.get_current_animation(),
            setter=lambda player, value: player.set_current_animation(value),
        ),
    ])


def register_builtin_types(directory: TypeDirectory) -> None:
    for tag, constructor in BUILTIN_TYPES.items():
        directory.register_type(tag, constructor)


def validate_builtin_registration(registry: PropertyRegistry) -> list:
    """Return human-readable issues for built-ins missing required properties."""
    issues = []
    for node_type, names in REQUIRED_PROPERTIES.items():
        for name in registry.validate_required(node_type, names):
            issues.append(f"{node_type.__name__} is missing required property: {name}")
    return issues


__all__ = [
    "ACTIVATION_MAKE_CURRENT",
    "BUILTIN_TYPES",
    "register_builtin_properties",
    "register_builtin_types",
    "validate_builtin_registration",
]
