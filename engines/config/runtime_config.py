"""Runtime configuration helpers for engines."""
from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_ENV = "dev"
DEFAULT_MAX_SNAPSHOTS = 50
DEFAULT_MAX_UNDO_STEPS = 100
DEFAULT_MAX_CHANGE_RECORDS = 1000
DEFAULT_MAX_MODE_HISTORY = 100
DEFAULT_DOCUMENT_DIR = "var/scene_documents"


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def _get_positive_int(name: str, default: int) -> int:
    raw = _get_env(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r; using %d", name, raw, default)
        return default
    return max(1, value)


def get_env() -> str:
    return _get_env("ENV") or _get_env("APP_ENV") or DEFAULT_ENV


def is_dev_env() -> bool:
    env = get_env().lower()
    return env in {"dev", "local"}


def get_max_snapshots() -> int:
    return _get_positive_int("SCENE_EDITOR_MAX_SNAPSHOTS", DEFAULT_MAX_SNAPSHOTS)


def get_max_undo_steps() -> int:
    return _get_positive_int("SCENE_EDITOR_MAX_UNDO_STEPS", DEFAULT_MAX_UNDO_STEPS)


def get_max_change_records() -> int:
    return _get_positive_int("SCENE_EDITOR_MAX_CHANGE_RECORDS", DEFAULT_MAX_CHANGE_RECORDS)


def get_max_mode_history() -> int:
    return _get_positive_int("SCENE_EDITOR_MAX_MODE_HISTORY", DEFAULT_MAX_MODE_HISTORY)


def get_document_dir() -> str:
    return _get_env("SCENE_EDITOR_DOCUMENT_DIR") or DEFAULT_DOCUMENT_DIR


@lru_cache(maxsize=1)
def config_snapshot() -> dict:
    """Return a cached snapshot of relevant env-driven config."""
    return {
        "env": get_env(),
        "max_snapshots": get_max_snapshots(),
        "max_undo_steps": get_max_undo_steps(),
        "max_change_records": get_max_change_records(),
        "max_mode_history": get_max_mode_history(),
        "document_dir": get_document_dir(),
    }
