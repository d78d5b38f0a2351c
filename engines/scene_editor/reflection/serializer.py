"""Reflection Serializer: live node trees to versioned documents and back.

Serialization reads each node's resolved descriptors, drops values equal to
their default and recurses into children in order. It never mutates the tree
and never mints ids.

Deserialization resolves constructors through the Type Directory, restores
ids directly, decodes properties by their registered type and attaches
children with the tree's own ``add_child``. Properties whose restore needs a
fully attached tree (e.g. "this camera is current") are queued as deferred
activations and run once the build completes, in discovery order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Callable, List, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError

from engines.scene_editor.core.node import Node
from engines.scene_editor.errors import (
    DocumentFormatError,
    PropertyAssignmentError,
    SceneEditorError,
    UnknownTypeError,
)
from engines.scene_editor.reflection.codec import decode_value, encode_value, is_default
from engines.scene_editor.reflection.context import ReflectionContext
from engines.scene_editor.reflection.models import (
    DOCUMENT_VERSION,
    DocumentMetadata,
    SerializedDocument,
    SerializedNode,
    now_ms,
)
from engines.scene_editor.state.diff import detect_differences

logger = logging.getLogger(__name__)

NodeData = Union[SerializedNode, Mapping[str, Any]]
DocumentData = Union[SerializedDocument, Mapping[str, Any]]


class UnknownTypePolicy(str, Enum):
    SKIP = "skip"  # drop the subtree, log and record the error
    FALLBACK = "fallback"  # substitute a base Node
    RAISE = "raise"


@dataclass
class DeferredActivation:
    node: Node
    kind: str
    action: Callable[[], None]


@dataclass
class DeserializationResult:
    root: Node
    activations: List[DeferredActivation] = field(default_factory=list)
    errors: List[SceneEditorError] = field(default_factory=list)

    def run_activations(self) -> None:
        """Run queued activations in discovery order; failures are recorded, not raised."""
        pending, self.activations = self.activations, []
        for activation in pending:
            try:
                activation.action()
            except Exception as exc:
                err = PropertyAssignmentError(activation.node.id, activation.kind, str(exc))
                logger.warning("Deferred activation failed: %s", err)
                self.errors.append(err)


class SerializationStats(BaseModel):
    node_count: int
    total_properties: int
    type_tags: List[str]
    byte_size: int


class RoundTripReport(BaseModel):
    success: bool
    issues: List[str]
    stats: Optional[SerializationStats] = None


def _coerce_node(data: NodeData) -> SerializedNode:
    if isinstance(data, SerializedNode):
        return data
    try:
        return SerializedNode.model_validate(data)
    except ValidationError as exc:
        raise DocumentFormatError(f"Invalid serialized node: {exc}") from exc


def coerce_document(data: DocumentData) -> SerializedDocument:
    if isinstance(data, SerializedDocument):
        return data
    try:
        return SerializedDocument.model_validate(data)
    except ValidationError as exc:
        raise DocumentFormatError(f"Invalid scene document: {exc}") from exc


class ReflectionSerializer:
    def __init__(
        self,
        context: ReflectionContext,
        unknown_type_policy: UnknownTypePolicy = UnknownTypePolicy.SKIP,
    ) -> None:
        self._context = context
        self._policy = unknown_type_policy

    @property
    def context(self) -> ReflectionContext:
        return self._context

    # --- serialize ---

    def serialize(self, node: Node) -> SerializedNode:
        descriptors = self._context.registry.resolve(type(node), serializable_only=True)
        properties = {}
        for name, descriptor in descriptors.items():
            try:
                value = descriptor.read(node)
            except Exception as exc:
                logger.warning("Skipping unreadable property %s on %s: %s", name, node.id, exc)
                continue
            if is_default(value, descriptor):
                continue
            properties[name] = encode_value(value, descriptor.type)
        return SerializedNode(
            type=self._context.directory.tag_for(type(node)),
            name=node.name,
            id=node.id,
            properties=properties,
            children=[self.serialize(child) for child in node.children],
        )

    def serialize_document(
        self,
        root: Node,
        name: Optional[str] = None,
        created: Optional[int] = None,
    ) -> SerializedDocument:
        serialized = self.serialize(root)
        stamp = now_ms()
        document = SerializedDocument(
            version=DOCUMENT_VERSION,
            metadata=DocumentMetadata(name=name or root.name, created=created or stamp, modified=stamp),
            root=serialized,
        )
        logger.debug("Serialized scene %s (%d nodes)", document.metadata.name, serialized.count_nodes())
        return document

    # --- deserialize ---

    def build(self, data: NodeData, policy: Optional[UnknownTypePolicy] = None) -> DeserializationResult:
        """Build the tree without running deferred activations."""
        policy = policy or self._policy
        serialized = _coerce_node(data)
        pending: List[DeferredActivation] = []
        errors: List[SceneEditorError] = []
        constructor = self._resolve_constructor(serialized, policy)
        if constructor is None:
            # The root cannot be skipped.
            raise UnknownTypeError(serialized.type, serialized.id)
        root = self._build_node(serialized, constructor, policy, pending, errors)
        return DeserializationResult(root=root, activations=pending, errors=errors)

    def deserialize(self, data: NodeData, policy: Optional[UnknownTypePolicy] = None) -> Node:
        result = self.build(data, policy)
        result.run_activations()
        return result.root

    def deserialize_document(
        self, document: DocumentData, policy: Optional[UnknownTypePolicy] = None
    ) -> DeserializationResult:
        doc = coerce_document(document)
        if doc.version.split(".")[0] != DOCUMENT_VERSION.split(".")[0]:
            logger.warning("Document version %s differs from %s", doc.version, DOCUMENT_VERSION)
        result = self.build(doc.root, policy)
        result.run_activations()
        return result

    def _resolve_constructor(self, data: SerializedNode, policy: UnknownTypePolicy) -> Optional[type]:
        constructor = self._context.directory.lookup(data.type)
        if constructor is not None:
            return constructor
        if policy is UnknownTypePolicy.FALLBACK:
            logger.warning("Unknown node type %s; substituting Node", data.type)
            return Node
        if policy is UnknownTypePolicy.RAISE:
            raise UnknownTypeError(data.type, data.id)
        return None

    def _build_node(
        self,
        data: SerializedNode,
        constructor: type,
        policy: UnknownTypePolicy,
        pending: List[DeferredActivation],
        errors: List[SceneEditorError],
    ) -> Node:
        node = constructor(data.name)
        # Constructors substitute a type name for an empty one; restore it exactly.
        node.name = data.name
        node.assign_id(data.id)
        self._restore_properties(node, data, pending, errors)

        for child_data in data.children:
            child_constructor = self._resolve_constructor(child_data, policy)
            if child_constructor is None:
                err = UnknownTypeError(child_data.type, child_data.id)
                logger.warning("Skipping child %r of %s: %s", child_data.name, node.id, err)
                errors.append(err)
                continue
            child = self._build_node(child_data, child_constructor, policy, pending, errors)
            node.add_child(child)
        return node

    def _restore_properties(
        self,
        node: Node,
        data: SerializedNode,
        pending: List[DeferredActivation],
        errors: List[SceneEditorError],
    ) -> None:
        descriptors = self._context.registry.resolve(type(node))
        for name, raw in data.properties.items():
            descriptor = descriptors.get(name)
            if descriptor is None:
                err = PropertyAssignmentError(node.id, name, f"not a registered property of {data.type}")
                logger.warning("%s", err)
                errors.append(err)
                continue
            try:
                value = decode_value(raw, descriptor.type, descriptor.value_type)
                if descriptor.is_deferred:
                    pending.append(
                        DeferredActivation(
                            node=node,
                            kind=descriptor.activation_kind or name,
                            action=partial(descriptor.activate, node, value),
                        )
                    )
                else:
                    descriptor.write(node, value)
            except Exception as exc:
                err = PropertyAssignmentError(node.id, name, str(exc))
                logger.warning("%s", err)
                errors.append(err)

    # --- diagnostics ---

    def collect_stats(self, root: Node) -> SerializationStats:
        node_count = 0
        total_properties = 0
        tags = set()
        for node in root.walk():
            node_count += 1
            tags.add(self._context.directory.tag_for(type(node)))
            total_properties += len(self._context.registry.resolve(type(node), serializable_only=True))
        byte_size = len(self.serialize_document(root).to_json_bytes())
        return SerializationStats(
            node_count=node_count,
            total_properties=total_properties,
            type_tags=sorted(tags),
            byte_size=byte_size,
        )

    def validate_round_trip(self, root: Node) -> RoundTripReport:
        """Serialize, rebuild and re-serialize ``root``; report any structural drift."""
        issues: List[str] = []
        try:
            first = self.serialize(root)
            result = self.build(first, UnknownTypePolicy.RAISE)
            result.run_activations()
            issues.extend(str(err) for err in result.errors)
            second = self.serialize(result.root)
            result.root.destroy()
            for diff in detect_differences(first, second):
                issues.append(f"{diff.kind} at {diff.path or '<root>'}: {diff.old_value!r} -> {diff.new_value!r}")
        except SceneEditorError as exc:
            issues.append(str(exc))
            return RoundTripReport(success=False, issues=issues)
        return RoundTripReport(success=not issues, issues=issues, stats=self.collect_stats(root))


__all__ = [
    "UnknownTypePolicy",
    "DeferredActivation",
    "DeserializationResult",
    "SerializationStats",
    "RoundTripReport",
    "ReflectionSerializer",
    "coerce_document",
]
