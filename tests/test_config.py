"""Tests for settings resolution: defaults, JSON file, environment, .env."""

import json
import os

import pytest
from pydantic import ValidationError

from world_state.config import DEFAULT_DB_PATH, load_settings

ENV_VARS = [
    "WORLD_STATE_DB_PATH",
    "WORLD_STATE_CACHE_ENABLED",
    "WORLD_STATE_CACHE_SIZE",
    "WORLD_STATE_CACHE_TTL",
    "WORLD_STATE_AUTO_APPLY",
    "WORLD_STATE_STRICT_MODE",
    "WORLD_STATE_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    yield
    # load_dotenv writes straight into os.environ; monkeypatch restores the originals after this
    for var in ENV_VARS:
        os.environ.pop(var, None)


def test_defaults(tmp_path):
    settings = load_settings(tmp_path / "missing.json", env_file=tmp_path / "missing.env")
    assert settings.database.path == str(DEFAULT_DB_PATH)
    assert settings.cache.enabled is True
    assert settings.cache.size == 100
    assert settings.cache.ttl_seconds == 60
    assert settings.pipeline.auto_apply is True
    assert settings.pipeline.strict_mode is True
    assert settings.validation.log_validations is True
    assert settings.logging.level == "INFO"


def test_json_file_merges_by_section(tmp_path):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"cache": {"size": 5}, "pipeline": {"strict_mode": False}}))
    settings = load_settings(config, env_file=tmp_path / "missing.env")
    assert settings.cache.size == 5
    assert settings.cache.ttl_seconds == 60
    assert settings.pipeline.strict_mode is False
    assert settings.pipeline.auto_apply is True


def test_unknown_section_is_ignored(tmp_path, caplog):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"weather": {"rain": True}}))
    settings = load_settings(config, env_file=tmp_path / "missing.env")
    assert not hasattr(settings, "weather")
    assert "weather" in caplog.text


def test_environment_overrides_file(tmp_path, monkeypatch):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"cache": {"size": 5, "enabled": True}}))
    monkeypatch.setenv("WORLD_STATE_CACHE_SIZE", "42")
    monkeypatch.setenv("WORLD_STATE_CACHE_ENABLED", "false")
    monkeypatch.setenv("WORLD_STATE_CACHE_TTL", "2.5")
    monkeypatch.setenv("WORLD_STATE_DB_PATH", ":memory:")
    settings = load_settings(config, env_file=tmp_path / "missing.env")
    assert settings.cache.size == 42
    assert settings.cache.enabled is False
    assert settings.cache.ttl_seconds == 2.5
    assert settings.database.path == ":memory:"


def test_dotenv_file_is_loaded(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("WORLD_STATE_AUTO_APPLY=0\nWORLD_STATE_LOG_LEVEL=DEBUG\n")
    settings = load_settings(None, env_file=env_file)
    assert settings.pipeline.auto_apply is False
    assert settings.logging.level == "DEBUG"


def test_invalid_values_rejected(tmp_path, monkeypatch):
    monkeypatch.setenv("WORLD_STATE_CACHE_SIZE", "0")
    with pytest.raises(ValidationError):
        load_settings(None, env_file=tmp_path / "missing.env")
