"""Helpers shared by the route modules."""

from fastapi import HTTPException

from backend.engine import get_engine
from world_state.models import Character, ValidationResult


def raise_if_invalid(result: ValidationResult) -> None:
    """422 with the validator's issues when the check did not pass."""
    if not result.passed:
        raise HTTPException(422, {
            "errors": [e.model_dump() for e in result.errors],
            "warnings": [w.model_dump() for w in result.warnings],
        })


def require_character(character_id: str) -> Character:
    character = get_engine().repository.get_character(character_id)
    if character is None:
        raise HTTPException(404, "Character not found")
    return character
