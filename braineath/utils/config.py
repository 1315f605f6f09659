"""Configuration management for Braineath."""

import os
from pathlib import Path

from pydantic import BaseModel

_DEFAULT_DATA_DIR = Path(os.getenv("BRAINEATH_DATA_DIR", str(Path.home() / ".braineath")))


class Config(BaseModel):
    """Application configuration."""

    # Paths
    data_dir: Path = _DEFAULT_DATA_DIR
    db_path: Path = _DEFAULT_DATA_DIR / "braineath.db"

    # Suffix for a store moved aside before a confirmed reset
    backup_suffix: str = ".bak"

    # Record every committed change in the change_history table
    history_enabled: bool = True

    # Bounds of every 0-10 rating scale
    scale_min: int = 0
    scale_max: int = 10

    # Listing and statistics
    recent_limit: int = 30
    week_days: int = 7


# Global config instance
config = Config()
