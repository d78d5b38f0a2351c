"""Serialized document models (pure data, no back-references)."""
from __future__ import annotations

import json
import time
from typing import Any, Dict, List

from pydantic import BaseModel, Field

DOCUMENT_VERSION = "3.0.0"


def now_ms() -> int:
    return int(time.time() * 1000)


class SerializedNode(BaseModel):
    type: str
    name: str
    id: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    children: List[SerializedNode] = Field(default_factory=list)

    def count_nodes(self) -> int:
        return 1 + sum(child.count_nodes() for child in self.children)


class DocumentMetadata(BaseModel):
    name: str
    created: int = Field(default_factory=now_ms)
    modified: int = Field(default_factory=now_ms)


class SerializedDocument(BaseModel):
    version: str = DOCUMENT_VERSION
    metadata: DocumentMetadata
    root: SerializedNode

    def to_plain(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    def to_json_bytes(self) -> bytes:
        return json.dumps(self.to_plain(), sort_keys=True, separators=(",", ":")).encode("utf-8")


SerializedNode.model_rebuild()


__all__ = ["DOCUMENT_VERSION", "SerializedNode", "DocumentMetadata", "SerializedDocument", "now_ms"]
