from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEFAULT_CONFIG_PATH = Path("config.toml")
ENV_PREFIX = "DOCGEO_"


@dataclass(frozen=True, slots=True)
class Settings:
    """Process settings sourced from environment variables."""

    config_path: Path = DEFAULT_CONFIG_PATH


def _read_settings() -> Settings:
    config_env = os.getenv(f"{ENV_PREFIX}CONFIG_PATH")
    config_path = Path(config_env) if config_env else DEFAULT_CONFIG_PATH
    return Settings(config_path=config_path)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return _read_settings()


__all__ = ["DEFAULT_CONFIG_PATH", "ENV_PREFIX", "Settings", "get_settings"]
