"""Value Codec: typed property values to and from plain data."""
from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from pydantic import BaseModel

from engines.scene_editor.core.geometry import Color, Vector3
from engines.scene_editor.reflection.registry import NO_DEFAULT, PropertyDescriptor, PropertyType


def _components(value: Any, keys: Sequence[str], defaults: Mapping[str, float]) -> dict:
    if isinstance(value, BaseModel):
        value = value.model_dump()
    if isinstance(value, Mapping):
        out = {}
        for key in keys:
            raw = value.get(key, defaults.get(key))
            if raw is None:
                raise ValueError(f"missing component '{key}'")
            out[key] = float(raw)
        return out
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        items = list(value)
        if len(items) < len(keys) - len(defaults) or len(items) > len(keys):
            raise ValueError(f"expected {len(keys)} components, got {len(items)}")
        out = {key: float(items[i]) if i < len(items) else float(defaults[key]) for i, key in enumerate(keys)}
        return out
    raise TypeError(f"cannot read components {keys} from {type(value).__name__}")


_VECTOR_KEYS = ("x", "y", "z")
_COLOR_KEYS = ("r", "g", "b", "a")
_COLOR_DEFAULTS = {"a": 1.0}


def encode_value(value: Any, prop_type: PropertyType) -> Any:
    if value is None:
        return None
    if prop_type is PropertyType.VECTOR3:
        return _components(value, _VECTOR_KEYS, {})
    if prop_type is PropertyType.COLOR:
        return _components(value, _COLOR_KEYS, _COLOR_DEFAULTS)
    if prop_type is PropertyType.OBJECT:
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json")
        to_dict = getattr(value, "to_dict", None)
        if callable(to_dict):
            return to_dict()
        return copy.deepcopy(value)
    return value


def decode_value(data: Any, prop_type: PropertyType, value_type: Optional[type] = None) -> Any:
    if data is None:
        return None
    if prop_type is PropertyType.VECTOR3:
        return Vector3(**_components(data, _VECTOR_KEYS, {}))
    if prop_type is PropertyType.COLOR:
        return Color(**_components(data, _COLOR_KEYS, _COLOR_DEFAULTS))
    if prop_type is PropertyType.NUMBER:
        if isinstance(data, bool) or not isinstance(data, (int, float)):
            raise TypeError(f"expected a number, got {type(data).__name__}")
        return data
    if prop_type is PropertyType.BOOLEAN:
        if not isinstance(data, bool):
            raise TypeError(f"expected a boolean, got {type(data).__name__}")
        return data
    if prop_type is PropertyType.STRING:
        if not isinstance(data, str):
            raise TypeError(f"expected a string, got {type(data).__name__}")
        return data
    if value_type is not None:
        if hasattr(value_type, "model_validate"):
            return value_type.model_validate(data)
        from_dict = getattr(value_type, "from_dict", None)
        if callable(from_dict):
            return from_dict(data)
    return copy.deepcopy(data)


def canonical_zero(prop_type: PropertyType) -> Any:
    """Structural zero per type. Colors have none: a color is only omitted
    when its descriptor declares a default."""
    if prop_type is PropertyType.STRING:
        return ""
    if prop_type is PropertyType.NUMBER:
        return 0
    if prop_type is PropertyType.BOOLEAN:
        return False
    if prop_type is PropertyType.VECTOR3:
        return Vector3.zero()
    if prop_type is PropertyType.OBJECT:
        return []
    return NO_DEFAULT


def is_default(value: Any, descriptor: PropertyDescriptor) -> bool:
    """Exact comparison against the declared default or the canonical zero."""
    if value is None:
        return True
    prop_type = descriptor.type
    target = descriptor.default_value if descriptor.has_default else canonical_zero(prop_type)
    if target is NO_DEFAULT:
        return False
    if prop_type in (PropertyType.VECTOR3, PropertyType.COLOR):
        try:
            return encode_value(value, prop_type) == encode_value(target, prop_type)
        except (TypeError, ValueError):
            return False
    if prop_type is PropertyType.BOOLEAN:
        return isinstance(value, bool) and value == target
    if prop_type is PropertyType.NUMBER:
        return not isinstance(value, bool) and value == target
    if prop_type is PropertyType.OBJECT:
        if not descriptor.has_default:
            return isinstance(value, (list, tuple, dict)) and len(value) == 0
        return encode_value(value, prop_type) == encode_value(target, prop_type)
    return value == target


__all__ = ["encode_value", "decode_value", "is_default", "canonical_zero"]
