"""Live scene tree element.

A node owns its children through its child list and keeps only a weak
reference to its parent, so the parent/child cycle never holds a second
strong reference. Reparenting is a move: a node is listed under exactly
one parent at a time.
"""
from __future__ import annotations

import uuid
import weakref
from typing import Iterator, List, Optional, Tuple

from engines.scene_editor.errors import HierarchyError


def new_node_id() -> str:
    return uuid.uuid4().hex


class Node:
    def __init__(self, name: str = "") -> None:
        self.name = name or type(self).__name__
        self._id = new_node_id()
        self._parent_ref: Optional[weakref.ReferenceType] = None
        self._children: List[Node] = []
        self._destroyed = False
        self.process_mode = 0
        self.process_priority = 0

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} id={self._id}>"

    # --- identity ---

    @property
    def id(self) -> str:
        return self._id

    def assign_id(self, node_id: str) -> None:
        """Overwrite the generated id (used when restoring from a document)."""
        if not node_id:
            raise ValueError("node_id must be a non-empty string")
        self._id = node_id

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    # --- hierarchy ---

    @property
    def parent(self) -> Optional[Node]:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def children(self) -> Tuple[Node, ...]:
        return tuple(self._children)

    @property
    def root(self) -> Node:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    @property
    def index_in_parent(self) -> int:
        parent = self.parent
        if parent is None:
            return -1
        return parent._children.index(self)

    def child_count(self) -> int:
        return len(self._children)

    def get_child(self, index: int) -> Optional[Node]:
        if 0 <= index < len(self._children):
            return self._children[index]
        return None

    def is_ancestor_of(self, other: Node) -> bool:
        node = other.parent
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    def add_child(self, child: Node) -> None:
        self.insert_child(len(self._children), child)

    def insert_child(self, index: int, child: Node) -> None:
        self._check_attachable(child)
        if child.parent is not None:
            raise HierarchyError(
                f"Node '{child.name}' already has a parent '{child.parent.name}'; use reparent() to move it"
            )
        index = max(0, min(index, len(self._children)))
        self._children.insert(index, child)
        child._parent_ref = weakref.ref(self)

    def remove_child(self, child: Node) -> None:
        try:
            index = self._children.index(child)
        except ValueError:
            raise HierarchyError(f"Node '{child.name}' is not a child of '{self.name}'") from None
        self._children.pop(index)
        child._parent_ref = None

    def reparent(self, new_parent: Node, index: Optional[int] = None) -> None:
        """Move this node under ``new_parent``; detaches from the current parent first."""
        new_parent._check_attachable(self)
        old_parent = self.parent
        if old_parent is not None:
            old_parent.remove_child(self)
        if index is None:
            new_parent.add_child(self)
        else:
            new_parent.insert_child(index, self)

    def _check_attachable(self, child: Node) -> None:
        if child is self:
            raise HierarchyError(f"Node '{self.name}' cannot be its own child")
        if child.is_ancestor_of(self):
            raise HierarchyError(f"Attaching '{child.name}' under '{self.name}' would create a cycle")
        if child._destroyed or self._destroyed:
            raise HierarchyError("Cannot attach destroyed nodes")

    # --- lookup ---

    def walk(self) -> Iterator[Node]:
        """Pre-order traversal including this node."""
        yield self
        for child in self._children:
            yield from child.walk()

    def find_child(self, name: str, recursive: bool = True) -> Optional[Node]:
        for child in self._children:
            if child.name == name:
                return child
        if recursive:
            for child in self._children:
                found = child.find_child(name, recursive=True)
                if found is not None:
                    return found
        return None

    def find_by_id(self, node_id: str) -> Optional[Node]:
        for node in self.walk():
            if node._id == node_id:
                return node
        return None

    def get_path(self) -> str:
        parts = []
        node: Optional[Node] = self
        while node is not None:
            parts.append(node.name)
            node = node.parent
        return "/" + "/".join(reversed(parts))

    def count_nodes(self) -> int:
        return sum(1 for _ in self.walk())

    # --- lifecycle ---

    def destroy(self) -> None:
        """Detach from the parent and release the whole subtree."""
        if self._destroyed:
            return
        parent = self.parent
        if parent is not None:
            parent.remove_child(self)
        for child in list(self._children):
            self.remove_child(child)
            child.destroy()
        self._destroyed = True


__all__ = ["Node", "new_node_id"]
