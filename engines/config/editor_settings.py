"""Typed scene editor settings built from the runtime config snapshot."""
from __future__ import annotations

from dataclasses import dataclass

from engines.config import runtime_config


@dataclass
class Settings:
    env: str
    max_snapshots: int
    max_undo_steps: int
    max_change_records: int
    max_mode_history: int
    document_dir: str


def get_settings() -> Settings:
    cfg = runtime_config.config_snapshot()
    return Settings(
        env=cfg["env"],
        max_snapshots=cfg["max_snapshots"],
        max_undo_steps=cfg["max_undo_steps"],
        max_change_records=cfg["max_change_records"],
        max_mode_history=cfg["max_mode_history"],
        document_dir=cfg["document_dir"],
    )
