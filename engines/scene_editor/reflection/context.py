"""Reflection context: the registries a serializer runs against.

Registries are constructed explicitly and passed in, so independent editor
instances (and tests) never share mutable registration state.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from engines.scene_editor.reflection.builtins import register_builtin_properties, register_builtin_types
from engines.scene_editor.reflection.registry import PropertyRegistry
from engines.scene_editor.reflection.type_directory import TypeDirectory


@dataclass
class ReflectionContext:
    registry: PropertyRegistry = field(default_factory=PropertyRegistry)
    directory: TypeDirectory = field(default_factory=TypeDirectory)

    def register_node_type(self, tag: str, node_type: type, descriptors=()) -> None:
        self.directory.register_type(tag, node_type)
        self.registry.register_many(node_type, descriptors)


def build_default_context() -> ReflectionContext:
    ctx = ReflectionContext()
    register_builtin_properties(ctx.registry)
    register_builtin_types(ctx.directory)
    return ctx


__all__ = ["ReflectionContext", "build_default_context"]
