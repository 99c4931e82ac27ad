import os

# backend.app builds a default engine at import time; keep it off disk
os.environ.setdefault("WORLD_STATE_DB_PATH", ":memory:")

import pytest

from world_state import Settings, build_engine
from world_state.cache import StateCache
from world_state.extraction import StateExtractor
from world_state.orchestrator import StateOrchestrator
from world_state.repository import StateRepository
from world_state.store import SQLiteStore
from world_state.validation import StateValidator


class FakeClock:
    """Manually advanced time source for cache tests."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    """Fresh in-memory store per test."""
    s = SQLiteStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def repo(store):
    return StateRepository(store, StateCache())


@pytest.fixture
def validator(repo):
    return StateValidator(repo)


@pytest.fixture
def extractor(repo):
    return StateExtractor(repo)


@pytest.fixture
def orchestrator(repo, validator, extractor):
    return StateOrchestrator(repo, validator, extractor)


@pytest.fixture
def engine():
    """Fully wired in-memory engine, as build_engine() produces it."""
    settings = Settings.model_validate({"database": {"path": ":memory:"}})
    e = build_engine(settings)
    yield e
    e.close()


@pytest.fixture
def alice(repo):
    """Character at affection 50, neutral, nowhere in particular."""
    return repo.create_character({"id": "alice", "name": "Alice", "affection": 50})
