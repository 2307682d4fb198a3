"""
Runtime configuration.

Defaults live on the Settings model. A YAML file can override any of them:

    draw_offer_timeout_s: 30
    disconnect_grace_s: 30
    ai_time_budget_ms: 3000
    default_difficulty: medium
    archive_url: sqlite:///games.db
    log_level: INFO
    host: 0.0.0.0
    port: 8000
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from src.core.shared_types import Difficulty

CONFIG_ENV_VAR = "CHESS_COORDINATOR_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/config.yaml")


class Settings(BaseModel):
    draw_offer_timeout_s: float = Field(default=30.0, gt=0)
    disconnect_grace_s: float = Field(default=30.0, gt=0)
    ai_time_budget_ms: int = Field(default=3000, gt=0)
    default_difficulty: Difficulty = Difficulty.MEDIUM
    archive_url: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None
    host: str = "127.0.0.1"
    port: int = Field(default=8000, gt=0, lt=65536)


def load_settings(path: Optional[Path | str] = None) -> Settings:
    """Read settings from YAML. Missing file -> defaults."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)
    config_path = Path(path)
    if not config_path.exists():
        return Settings()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}
    return Settings.model_validate(raw)
