"""Filesystem-backed document store (byte-level read/write boundary).

Path structure:
  {base_dir}/{document name}.json
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

from engines.config import editor_settings
from engines.scene_editor.errors import DocumentFormatError
from engines.scene_editor.reflection.models import SerializedDocument
from engines.scene_editor.reflection.serializer import coerce_document

logger = logging.getLogger(__name__)


class DocumentFileStore:
    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        self._base_dir = Path(base_dir or editor_settings.get_settings().document_dir)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _path(self, name: str) -> Path:
        safe_name = name.replace("/", "_").replace("\\", "_").replace("..", "_")
        if not safe_name.endswith(".json"):
            safe_name = f"{safe_name}.json"
        return self._base_dir / safe_name

    def write_bytes(self, name: str, data: bytes) -> Path:
        path = self._path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    def read_bytes(self, name: str) -> bytes:
        path = self._path(name)
        if not path.exists():
            raise FileNotFoundError(f"Document not found: {path}")
        return path.read_bytes()

    def exists(self, name: str) -> bool:
        return self._path(name).exists()

    def save_document(self, name: str, document: SerializedDocument) -> Path:
        payload = json.dumps(document.to_plain(), indent=2).encode("utf-8")
        path = self.write_bytes(name, payload)
        logger.info("Saved scene document %s to %s", document.metadata.name, path)
        return path

    def load_document(self, name: str) -> SerializedDocument:
        raw = self.read_bytes(name)
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DocumentFormatError(f"Document {name} is not valid JSON: {exc}") from exc
        return coerce_document(data)

    def list_documents(self) -> List[str]:
        if not self._base_dir.exists():
            return []
        return sorted(p.stem for p in self._base_dir.glob("*.json"))


__all__ = ["DocumentFileStore"]
