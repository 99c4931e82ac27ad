"""Exception hierarchy shared by every layer.

    WorldStateError
      ├── StoreError                 storage failed (SQL error, bad filter, ...)
      │     ├── ConstraintViolationError   a CHECK / FOREIGN KEY / UNIQUE rule fired
      │     └── TransactionError           transaction misuse (nesting)
      └── NotFoundError              a referenced character / location / snapshot is missing

Validation problems are not exceptions: they come back as ValidationIssue
objects inside a ValidationResult.
"""

from __future__ import annotations


class WorldStateError(RuntimeError):
    """Base class for all errors raised by world_state."""


class StoreError(WorldStateError):
    """Raised when the persistent store cannot complete an operation."""


class ConstraintViolationError(StoreError):
    """Raised when a storage-level constraint rejects a write."""


class TransactionError(StoreError):
    """Raised when a transaction is opened while another is active."""


class NotFoundError(WorldStateError, LookupError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id
