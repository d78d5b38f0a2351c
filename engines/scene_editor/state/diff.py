"""Structural differences between plain-data documents."""
from __future__ import annotations

from typing import Any, List, NamedTuple

from pydantic import BaseModel

_MISSING = object()


class Difference(NamedTuple):
    path: str
    old_value: Any
    new_value: Any
    kind: str  # added | removed | value_change | type_change


def _plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


def detect_differences(old: Any, new: Any) -> List[Difference]:
    differences: List[Difference] = []
    _walk(_plain(old), _plain(new), "", differences)
    return differences


def documents_equal(old: Any, new: Any) -> bool:
    return _plain(old) == _plain(new)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _join(path: str, key: Any) -> str:
    return f"{path}.{key}" if path else str(key)


def _walk(old: Any, new: Any, path: str, out: List[Difference]) -> None:
    if old == new and type(old) is type(new):
        return
    if isinstance(old, dict) and isinstance(new, dict):
        for key in list(old.keys()) + [k for k in new.keys() if k not in old]:
            child_path = _join(path, key)
            old_value = old.get(key, _MISSING)
            new_value = new.get(key, _MISSING)
            if old_value is _MISSING:
                out.append(Difference(child_path, None, new_value, "added"))
            elif new_value is _MISSING:
                out.append(Difference(child_path, old_value, None, "removed"))
            else:
                _walk(old_value, new_value, child_path, out)
        return
    if isinstance(old, list) and isinstance(new, list):
        for index in range(max(len(old), len(new))):
            child_path = _join(path, index)
            if index >= len(old):
                out.append(Difference(child_path, None, new[index], "added"))
            elif index >= len(new):
                out.append(Difference(child_path, old[index], None, "removed"))
            else:
                _walk(old[index], new[index], child_path, out)
        return
    if type(old) is not type(new) and not (_is_number(old) and _is_number(new)):
        out.append(Difference(path, old, new, "type_change"))
        return
    if old != new:
        out.append(Difference(path, old, new, "value_change"))


__all__ = ["Difference", "detect_differences", "documents_equal"]
