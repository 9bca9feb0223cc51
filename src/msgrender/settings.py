"""Runtime configuration for msgrender.

All user-editable settings (cache size, logging) live in a single JSON file
so they can be tweaked without touching Python. The file path defaults to
config.json at the project root and can be overridden with MSGRENDER_CONFIG,
which may also come from a .env file.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from msgrender.core.cache import DEFAULT_CAPACITY
from msgrender.core.config import CacheConfig

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

DEFAULT_CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")
CONFIG_ENV_VAR = "MSGRENDER_CONFIG"


@dataclass(frozen=True)
class Settings:
    """Parsed configuration handed to the application layer."""

    cache: CacheConfig = field(default_factory=CacheConfig)
    # Passed straight to configure_logging.
    logging: dict = field(default_factory=dict)
    # SQLite message store; None keeps renders in memory only.
    db_path: Optional[str] = None
    config_path: Optional[str] = None

    @property
    def base_dir(self) -> str:
        """Directory that relative paths in the config are resolved against."""

        if self.config_path:
            return os.path.dirname(os.path.abspath(self.config_path))
        return PROJECT_ROOT


def _load_json_config(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"Config file must hold a JSON object: {path}")
    return data


def _resolve_path(path: Optional[str]) -> tuple[str, bool]:
    """Return (path, explicit); explicit paths must exist."""

    if path:
        return path, True
    load_dotenv()
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return env_path, True
    return DEFAULT_CONFIG_PATH, False


def load_settings(path: Optional[str] = None) -> Settings:
    """Load settings from JSON, falling back to defaults when no file is configured."""

    resolved, explicit = _resolve_path(path)
    if not os.path.exists(resolved):
        if explicit:
            raise FileNotFoundError(f"Config file not found: {resolved}")
        return Settings()

    config = _load_json_config(resolved)

    # Cache size bounds memory; every entry is one rendered message.
    _cache = config.get("cache", {})
    capacity = int(_cache.get("capacity", DEFAULT_CAPACITY))
    if capacity < 1:
        raise ValueError(f"cache.capacity must be positive, got {capacity}")

    db_path = (config.get("store") or {}).get("path") or None
    if db_path and not os.path.isabs(db_path):
        db_path = os.path.join(os.path.dirname(os.path.abspath(resolved)), db_path)

    return Settings(
        cache=CacheConfig(capacity=capacity),
        logging=config.get("logging", {}) or {},
        db_path=db_path,
        config_path=resolved,
    )
