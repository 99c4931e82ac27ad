"""Tests for build_engine wiring and the backend engine holder."""

import pytest

from backend import engine as engine_module
from world_state import Settings, StoreError, build_engine


def test_components_share_one_repository(engine):
    assert engine.repository.store is engine.store
    assert engine.repository.cache is engine.cache
    assert engine.orchestrator.repository is engine.repository
    assert engine.orchestrator.validator is engine.validator
    assert engine.orchestrator.extractor is engine.extractor


def test_settings_reach_components():
    settings = Settings.model_validate({
        "database": {"path": ":memory:"},
        "cache": {"enabled": False, "size": 7, "ttl_seconds": 5},
        "pipeline": {"auto_apply": False, "strict_mode": False},
        "validation": {"log_validations": False},
    })
    e = build_engine(settings)
    try:
        assert e.store.path == ":memory:"
        assert (e.cache.enabled, e.cache.max_size, e.cache.ttl) == (False, 7, 5)
        assert (e.orchestrator.auto_apply, e.orchestrator.strict_mode) == (False, False)
        assert e.validator.log_validations is False
    finally:
        e.close()


def test_engine_end_to_end(engine):
    engine.repository.create_character({"id": "bob", "name": "Bob", "affection": 20})
    engine.orchestrator.process_message("bob", "好感度增加了10点")
    assert engine.repository.get_character("bob").affection == 30


def test_set_engine_replaces_and_closes_previous():
    settings = Settings.model_validate({"database": {"path": ":memory:"}})
    first = engine_module.set_engine(build_engine(settings))
    second = engine_module.set_engine(build_engine(settings))
    assert engine_module.get_engine() is second
    with pytest.raises(StoreError):
        first.store.count("characters")
