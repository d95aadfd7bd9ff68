"""Configuration management."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel

ROOT_DIR = Path(__file__).parent.parent


class Config(BaseModel):
    """Application configuration."""

    store_path: Path = ROOT_DIR / "data" / "jobflow.sqlite"
    profile_path: Path = ROOT_DIR / "config" / "profile.yaml"
    log_level: str = "INFO"
    display_locale: str = "fr-CH"
    urgent_days: int = 7
    analysis_url: Optional[str] = None
    analysis_timeout: float = 30
    gmail_query_days: int = 7


_config: Optional[Config] = None


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from YAML file."""
    global _config

    if _config is not None:
        return _config

    if config_path is None:
        config_path = ROOT_DIR / "config" / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}. "
            "Copy config/config.yaml.example to config/config.yaml and fill in your settings."
        )

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    _config = Config(**data)
    return _config


def get_config() -> Config:
    """Get the loaded configuration."""
    if _config is None:
        return load_config()
    return _config


def reset_config() -> None:
    """Forget the cached configuration."""
    global _config
    _config = None
