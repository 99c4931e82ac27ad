"""World state engine: store, cache, repository, validation, extraction and
the orchestrator that ties them together.

build_engine() wires every component from a Settings object; components can
also be constructed by hand for tests or embedding.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from world_state.cache import StateCache
from world_state.config import Settings, load_settings
from world_state.errors import (
    ConstraintViolationError,
    NotFoundError,
    StoreError,
    TransactionError,
    WorldStateError,
)
from world_state.extraction import StateExtractor
from world_state.orchestrator import StateOrchestrator
from world_state.repository import StateRepository
from world_state.store import SQLiteStore
from world_state.validation import StateValidator

__all__ = [
    "ConstraintViolationError",
    "Engine",
    "NotFoundError",
    "SQLiteStore",
    "Settings",
    "StateCache",
    "StateExtractor",
    "StateOrchestrator",
    "StateRepository",
    "StateValidator",
    "StoreError",
    "TransactionError",
    "WorldStateError",
    "build_engine",
    "load_settings",
]


@dataclass
class Engine:
    store: SQLiteStore
    cache: StateCache
    repository: StateRepository
    validator: StateValidator
    extractor: StateExtractor
    orchestrator: StateOrchestrator

    def close(self) -> None:
        self.repository.close()
        self.store.close()


def build_engine(settings: Settings | None = None, *, logger: logging.Logger | None = None) -> Engine:
    """Construct and wire every component. ``database.path`` may be ":memory:"."""
    settings = settings or Settings()
    store = SQLiteStore(settings.database.path, verbose=settings.database.verbose, logger=logger)
    cache = StateCache(
        ttl=settings.cache.ttl_seconds,
        max_size=settings.cache.size,
        enabled=settings.cache.enabled,
        logger=logger,
    )
    repository = StateRepository(store, cache, logger=logger)
    validator = StateValidator(
        repository, log_validations=settings.validation.log_validations, logger=logger
    )
    extractor = StateExtractor(repository, logger=logger)
    orchestrator = StateOrchestrator(
        repository,
        validator,
        extractor,
        auto_apply=settings.pipeline.auto_apply,
        strict_mode=settings.pipeline.strict_mode,
        logger=logger,
    )
    return Engine(store, cache, repository, validator, extractor, orchestrator)
