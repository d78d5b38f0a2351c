"""Property Registry: per-type serializable property descriptors with inheritance."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class PropertyType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    VECTOR3 = "vector3"
    COLOR = "color"
    OBJECT = "object"


class _NoDefault:
    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT: Any = _NoDefault()


@dataclass(frozen=True)
class PropertyDescriptor:
    """One serializable field of a node type.

    ``name`` is the key used in documents. Values are read and written through
    ``getter``/``setter`` when given, otherwise directly on ``attribute``
    (which defaults to ``name``). ``activate`` marks a property whose restore
    must wait until the whole tree is attached; the serializer queues it as a
    deferred activation of kind ``activation_kind`` instead of calling the
    setter mid-build.
    """

    name: str
    type: PropertyType
    serializable: bool = True
    default_value: Any = NO_DEFAULT
    attribute: Optional[str] = None
    getter: Optional[Callable[[Any], Any]] = None
    setter: Optional[Callable[[Any, Any], None]] = None
    value_type: Optional[type] = None
    activation_kind: Optional[str] = None
    activate: Optional[Callable[[Any, Any], None]] = None

    @property
    def has_default(self) -> bool:
        return self.default_value is not NO_DEFAULT

    @property
    def is_deferred(self) -> bool:
        return self.activate is not None

    @property
    def field_name(self) -> str:
        return self.attribute or self.name

    def read(self, instance: Any) -> Any:
        if self.getter is not None:
            return self.getter(instance)
        return getattr(instance, self.field_name)

    def write(self, instance: Any, value: Any) -> None:
        if self.setter is not None:
            self.setter(instance, value)
        else:
            setattr(instance, self.field_name, value)


class PropertyRegistry:
    """Table of descriptors keyed by concrete type.

    Registration is idempotent: re-registering a name on the same type
    overwrites it in place.
    """

    def __init__(self) -> None:
        self._table: Dict[type, Dict[str, PropertyDescriptor]] = {}
        self._resolved: Dict[type, Dict[str, PropertyDescriptor]] = {}

    def register(self, node_type: type, descriptor: PropertyDescriptor) -> None:
        own = self._table.setdefault(node_type, {})
        if descriptor.name in own:
            logger.debug("Overwriting property %s.%s", node_type.__name__, descriptor.name)
        own[descriptor.name] = descriptor
        self._resolved.clear()

    def register_many(self, node_type: type, descriptors: Iterable[PropertyDescriptor]) -> None:
        for descriptor in descriptors:
            self.register(node_type, descriptor)

    def resolve(self, node_type: type, serializable_only: bool = False) -> Dict[str, PropertyDescriptor]:
        """Inherited + own descriptors, most-base first; derived entries win on name collision."""
        resolved = self._resolved.get(node_type)
        if resolved is None:
            resolved = {}
            for klass in reversed(node_type.__mro__):
                own = self._table.get(klass)
                if own:
                    resolved.update(own)
            self._resolved[node_type] = resolved
        if serializable_only:
            return {name: d for name, d in resolved.items() if d.serializable}
        return dict(resolved)

    def has_property(self, node_type: type, name: str) -> bool:
        return name in self.resolve(node_type)

    def describe(self, node_type: type, name: str) -> Optional[PropertyDescriptor]:
        return self.resolve(node_type).get(name)

    def registered_types(self) -> List[type]:
        return list(self._table.keys())

    def validate_required(self, node_type: type, names: Iterable[str]) -> List[str]:
        """Return the required property names missing from ``node_type``."""
        resolved = self.resolve(node_type)
        return [name for name in names if name not in resolved]


__all__ = ["PropertyType", "PropertyDescriptor", "PropertyRegistry", "NO_DEFAULT"]
