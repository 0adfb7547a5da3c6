"""Configuration loading and strict validation for avm_ledger."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field


class StrictModel(BaseModel):
    """Base model that rejects unknown keys."""

    model_config = ConfigDict(extra="forbid")


class CheckpointConfig(StrictModel):
    directory: str = "checkpoints"
    balances_file_name: str = "balances.bin"
    block_reason_file_name: str = "block_reason.bin"


class DashboardConfig(StrictModel):
    host: str = "127.0.0.1"
    port: int = Field(default=9100, ge=1, le=65535)
    jsonl_file: str = "logs/latest/events.jsonl"


class LoggingConfig(StrictModel):
    logs_dir: str = "logs"
    event_file_name: str = "events.jsonl"
    recent_event_limit: int = Field(default=500, ge=0)


class AppConfig(StrictModel):
    checkpoint: CheckpointConfig = Field(default_factory=CheckpointConfig)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: str | Path = "config/config.yaml") -> AppConfig:
    """Load and strictly validate YAML config."""
    path = Path(config_path)
    with path.open("r", encoding="utf-8") as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}
    return AppConfig.model_validate(raw)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load default config once and cache it."""
    return load_config()
