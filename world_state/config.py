"""Engine configuration (database, cache, pipeline toggles, logging).

Resolution order, later wins:
  1. built-in defaults (the Settings model)
  2. a JSON config file, merged section by section
  3. environment variables (``.env`` is loaded first via python-dotenv)

Environment overrides:
  WORLD_STATE_DB_PATH        database.path
  WORLD_STATE_CACHE_ENABLED  cache.enabled
  WORLD_STATE_CACHE_SIZE     cache.size
  WORLD_STATE_CACHE_TTL      cache.ttl_seconds
  WORLD_STATE_AUTO_APPLY     pipeline.auto_apply
  WORLD_STATE_STRICT_MODE    pipeline.strict_mode
  WORLD_STATE_LOG_LEVEL      logging.level

Settings are plain values handed to constructors; nothing reads them from a
global.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("data") / "world_state.db"

_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "WORLD_STATE_DB_PATH": ("database", "path"),
    "WORLD_STATE_CACHE_ENABLED": ("cache", "enabled"),
    "WORLD_STATE_CACHE_SIZE": ("cache", "size"),
    "WORLD_STATE_CACHE_TTL": ("cache", "ttl_seconds"),
    "WORLD_STATE_AUTO_APPLY": ("pipeline", "auto_apply"),
    "WORLD_STATE_STRICT_MODE": ("pipeline", "strict_mode"),
    "WORLD_STATE_LOG_LEVEL": ("logging", "level"),
}


class DatabaseSettings(BaseModel):
    path: str = str(DEFAULT_DB_PATH)
    verbose: bool = False  # trace every SQL statement at debug level


class CacheSettings(BaseModel):
    enabled: bool = True
    size: int = Field(default=100, ge=1)
    ttl_seconds: float = Field(default=60.0, gt=0)


class PipelineSettings(BaseModel):
    auto_apply: bool = True
    strict_mode: bool = True


class ValidationSettings(BaseModel):
    log_validations: bool = True


class LoggingSettings(BaseModel):
    level: str = "INFO"


class Settings(BaseModel):
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    validation: ValidationSettings = Field(default_factory=ValidationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(config_path: Path | None = None, *, env_file: Path | None = None) -> Settings:
    """Build Settings from defaults, an optional JSON file and the environment."""
    load_dotenv(env_file)

    data: dict[str, Any] = Settings().model_dump()
    if config_path is not None and config_path.is_file():
        stored = json.loads(config_path.read_text())
        for section, values in stored.items():
            if section in data and isinstance(values, dict):
                data[section].update(values)
            else:
                logger.warning("Ignoring unknown config section %r in %s", section, config_path)

    for var, (section, key) in _ENV_OVERRIDES.items():
        value = os.getenv(var)
        if value is not None and value != "":
            data[section][key] = value

    # pydantic coerces "true"/"0"/"120" from the environment
    return Settings.model_validate(data)
