"""Tests for the filesystem document store."""
import pytest

from engines.scene_editor.core.nodes import Node3D, Scene
from engines.scene_editor.errors import DocumentFormatError
from engines.scene_editor.reflection.context import build_default_context
from engines.scene_editor.reflection.serializer import ReflectionSerializer
from engines.scene_editor.store.files import DocumentFileStore


def _document():
    scene = Scene("Level")
    scene.add_child(Node3D("Box"))
    return ReflectionSerializer(build_default_context()).serialize_document(scene)


def test_save_and_load_document(tmp_path):
    store = DocumentFileStore(tmp_path / "docs")
    document = _document()

    path = store.save_document("level", document)

    assert path == tmp_path / "docs" / "level.json"
    assert store.exists("level")
    assert store.load_document("level") == document
    assert store.list_documents() == ["level"]


def test_names_cannot_escape_base_dir(tmp_path):
    store = DocumentFileStore(tmp_path)
    path = store.write_bytes("../outside/doc", b"{}")
    assert path.parent == tmp_path


def test_missing_and_corrupt_documents(tmp_path):
    store = DocumentFileStore(tmp_path)
    with pytest.raises(FileNotFoundError):
        store.load_document("nope")

    store.write_bytes("broken", b"{not json")
    with pytest.raises(DocumentFormatError):
        store.load_document("broken")

    store.write_bytes("wrong-shape", b'{"version": "3.0.0"}')
    with pytest.raises(DocumentFormatError):
        store.load_document("wrong-shape")


def test_listing_empty_store(tmp_path):
    assert DocumentFileStore(tmp_path / "absent").list_documents() == []
