"""Tests for the live node tree (ownership, reparenting, lifecycle)."""
import gc

import pytest

from engines.scene_editor.core.geometry import Vector3
from engines.scene_editor.core.node import Node
from engines.scene_editor.core.nodes import Camera3D, MeshInstance3D, Node3D, Scene
from engines.scene_editor.errors import HierarchyError


def test_add_child_sets_parent_and_order():
    root = Node("Root")
    a = Node("A")
    b = Node("B")
    root.add_child(a)
    root.insert_child(0, b)

    assert root.children == (b, a)
    assert a.parent is root
    assert a.index_in_parent == 1
    assert a.get_path() == "/Root/A"
    assert root.count_nodes() == 3


def test_parent_reference_is_weak():
    parent = Node("Parent")
    child = Node("Child")
    parent.add_child(child)

    del parent
    gc.collect()
    assert child.parent is None


def test_reparent_moves_node():
    root = Node("Root")
    left = Node("Left")
    right = Node("Right")
    leaf = Node("Leaf")
    for n in (left, right):
        root.add_child(n)
    left.add_child(leaf)

    leaf.reparent(right)

    assert leaf.parent is right
    assert left.children == ()
    assert right.children == (leaf,)


def test_attaching_owned_child_requires_reparent():
    a = Node("A")
    b = Node("B")
    child = Node("Child")
    a.add_child(child)
    with pytest.raises(HierarchyError):
        b.add_child(child)


def test_cycles_are_rejected():
    root = Node("Root")
    child = Node("Child")
    root.add_child(child)
    with pytest.raises(HierarchyError):
        child.add_child(root)
    with pytest.raises(HierarchyError):
        root.add_child(root)


def test_destroy_releases_subtree():
    root = Node("Root")
    branch = Node("Branch")
    leaf = Node("Leaf")
    root.add_child(branch)
    branch.add_child(leaf)

    branch.destroy()

    assert root.children == ()
    assert branch.is_destroyed and leaf.is_destroyed
    assert leaf.parent is None
    with pytest.raises(HierarchyError):
        root.add_child(branch)


def test_lookup_by_id_and_name():
    scene = Scene("Level")
    group = Node3D("Group")
    cube = MeshInstance3D("Cube")
    scene.add_child(group)
    group.add_child(cube)

    assert scene.find_by_id(cube.id) is cube
    assert scene.find_child("Cube") is cube
    assert scene.find_child("Cube", recursive=False) is None
    assert [n.name for n in scene.walk()] == ["Level", "Group", "Cube"]


def test_camera_current_requires_scene():
    camera = Camera3D("Cam")
    with pytest.raises(HierarchyError):
        camera.make_current()

    scene = Scene("Level")
    scene.add_child(camera)
    camera.make_current()
    assert camera.is_current()
    assert scene.current_camera is camera

    camera.set_as_current(False)
    assert scene.current_camera is None


def test_camera_fov_is_clamped():
    camera = Camera3D()
    camera.fov = 500
    assert camera.fov == 179.0
    camera.fov = 0
    assert camera.fov == 1.0


def test_mesh_path_change_drops_loaded_handle():
    mesh = MeshInstance3D()
    mesh.set_mesh_path("meshes/a.glb")
    mesh.mesh_handle = object()
    mesh.set_mesh_path("meshes/a.glb")
    assert mesh.mesh_handle is not None
    mesh.set_mesh_path("meshes/b.glb")
    assert mesh.mesh_handle is None


def test_node3d_defaults():
    node = Node3D()
    assert node.position == Vector3.zero()
    assert node.scale == Vector3.one()
    assert node.visible is True
    assert node.name == "Node3D"
