"""Type Directory: document type tags to node constructors."""
from __future__ import annotations

from typing import Dict, List, Optional


class TypeDirectory:
    def __init__(self) -> None:
        self._by_tag: Dict[str, type] = {}
        self._by_type: Dict[type, str] = {}

    def register_type(self, tag: str, constructor: type) -> None:
        if not tag:
            raise ValueError("type tag must be non-empty")
        previous = self._by_tag.get(tag)
        if previous is not None and self._by_type.get(previous) == tag:
            del self._by_type[previous]
        self._by_tag[tag] = constructor
        self._by_type[constructor] = tag

    def lookup(self, tag: str) -> Optional[type]:
        return self._by_tag.get(tag)

    def tag_for(self, node_type: type) -> str:
        """Registered tag for ``node_type``; unregistered types use the class name."""
        return self._by_type.get(node_type, node_type.__name__)

    def tags(self) -> List[str]:
        return list(self._by_tag.keys())

    def __contains__(self, tag: str) -> bool:
        return tag in self._by_tag


__all__ = ["TypeDirectory"]
