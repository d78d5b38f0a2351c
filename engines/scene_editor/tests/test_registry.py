"""Tests for the property registry, type directory and value codec."""
import pytest

from engines.scene_editor.core.geometry import Color, Vector3
from engines.scene_editor.core.node import Node
from engines.scene_editor.core.nodes import Camera3D, MeshInstance3D, Node3D
from engines.scene_editor.reflection.builtins import validate_builtin_registration
from engines.scene_editor.reflection.codec import decode_value, encode_value, is_default
from engines.scene_editor.reflection.context import ReflectionContext, build_default_context
from engines.scene_editor.reflection.registry import PropertyDescriptor, PropertyRegistry, PropertyType
from engines.scene_editor.reflection.type_directory import TypeDirectory


def test_resolve_includes_inherited_properties_base_first():
    registry = build_default_context().registry
    names = list(registry.resolve(MeshInstance3D))

    assert names[:2] == ["processMode", "processPriority"]
    assert "position" in names
    assert "meshPath" in names
    assert names.index("position") < names.index("meshPath")


def test_derived_registration_overrides_base():
    registry = PropertyRegistry()
    registry.register(Node, PropertyDescriptor("label", PropertyType.STRING, default_value="base"))
    registry.register(Node3D, PropertyDescriptor("label", PropertyType.STRING, default_value="derived"))

    assert registry.describe(Node, "label").default_value == "base"
    assert registry.describe(Node3D, "label").default_value == "derived"
    assert registry.describe(Camera3D, "label").default_value == "derived"


def test_registration_invalidates_resolved_cache():
    registry = PropertyRegistry()
    registry.register(Node, PropertyDescriptor("a", PropertyType.NUMBER))
    assert list(registry.resolve(Node3D)) == ["a"]

    registry.register(Node, PropertyDescriptor("b", PropertyType.NUMBER))
    assert list(registry.resolve(Node3D)) == ["a", "b"]


def test_serializable_only_filters_descriptors():
    registry = PropertyRegistry()
    registry.register_many(Node, [
        PropertyDescriptor("kept", PropertyType.STRING),
        PropertyDescriptor("runtime", PropertyType.STRING, serializable=False),
    ])
    assert list(registry.resolve(Node, serializable_only=True)) == ["kept"]
    assert registry.has_property(Node, "runtime")


def test_builtins_expose_required_properties():
    registry = build_default_context().registry
    assert validate_builtin_registration(registry) == []
    assert registry.validate_required(Node, ["position"]) == ["position"]


def test_contexts_do_not_share_registrations():
    first = build_default_context()
    second = build_default_context()

    class Marker(Node):
        pass

    first.register_node_type("Marker", Marker, [PropertyDescriptor("tag", PropertyType.STRING)])

    assert "Marker" in first.directory
    assert "Marker" not in second.directory
    assert not second.registry.has_property(Marker, "tag")


def test_type_directory_tags():
    directory = TypeDirectory()
    directory.register_type("Cam", Camera3D)

    assert directory.lookup("Cam") is Camera3D
    assert directory.lookup("Missing") is None
    assert directory.tag_for(Camera3D) == "Cam"
    assert directory.tag_for(Node3D) == "Node3D"
    with pytest.raises(ValueError):
        directory.register_type("", Node)


def test_empty_context_has_no_types():
    ctx = ReflectionContext()
    assert ctx.directory.tags() == []
    assert ctx.registry.registered_types() == []


def test_vector_and_color_encoding():
    assert encode_value(Vector3(x=1, y=2, z=3), PropertyType.VECTOR3) == {"x": 1.0, "y": 2.0, "z": 3.0}
    assert encode_value([0.5, 0.5, 0.5], PropertyType.COLOR) == {"r": 0.5, "g": 0.5, "b": 0.5, "a": 1.0}
    assert decode_value({"r": 1, "g": 0, "b": 0}, PropertyType.COLOR) == Color(r=1, g=0, b=0, a=1)
    assert decode_value({"x": 1, "y": 2, "z": 3}, PropertyType.VECTOR3) == Vector3(x=1, y=2, z=3)


def test_decode_rejects_mismatched_primitives():
    with pytest.raises(TypeError):
        decode_value("yes", PropertyType.BOOLEAN)
    with pytest.raises(TypeError):
        decode_value(True, PropertyType.NUMBER)
    with pytest.raises(TypeError):
        decode_value(3, PropertyType.STRING)
    with pytest.raises(ValueError):
        decode_value({"x": 1}, PropertyType.VECTOR3)


def test_object_values_use_model_validation():
    decoded = decode_value({"x": 4}, PropertyType.OBJECT, Vector3)
    assert decoded == Vector3(x=4)
    assert encode_value(decoded, PropertyType.OBJECT) == {"x": 4.0, "y": 0.0, "z": 0.0}


def test_default_comparison_is_exact():
    position = PropertyDescriptor("position", PropertyType.VECTOR3, default_value=Vector3.zero())
    assert is_default(Vector3.zero(), position)
    assert not is_default(Vector3(x=1e-9), position)

    flag = PropertyDescriptor("flag", PropertyType.BOOLEAN, default_value=False)
    assert is_default(False, flag)
    assert not is_default(0, flag)

    count = PropertyDescriptor("count", PropertyType.NUMBER)
    assert is_default(0, count)
    assert not is_default(False, count)


def test_color_without_default_is_never_omitted():
    tint = PropertyDescriptor("tint", PropertyType.COLOR)
    assert not is_default(Color.black(), tint)
    declared = PropertyDescriptor("tint", PropertyType.COLOR, default_value=Color.white())
    assert is_default(Color.white(), declared)


def test_object_without_default_omits_empty_collections():
    tags = PropertyDescriptor("tags", PropertyType.OBJECT)
    assert is_default([], tags)
    assert not is_default(["a"], tags)
