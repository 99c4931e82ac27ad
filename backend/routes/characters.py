"""Character CRUD endpoints."""

from fastapi import APIRouter, HTTPException

from backend.engine import get_engine
from world_state.errors import ConstraintViolationError

from .common import raise_if_invalid, require_character
from .models import CreateCharacter, UpdateCharacter

router = APIRouter()


@router.get("/characters")
async def list_characters():
    """List all characters, by name."""
    return get_engine().repository.list_characters()


@router.post("/characters", status_code=201)
async def create_character(body: CreateCharacter):
    """Create a character. Supplying an id that already exists is a 409."""
    data = body.model_dump(exclude_none=True)
    try:
        return get_engine().repository.create_character(data)
    except ConstraintViolationError as exc:
        raise HTTPException(409, str(exc)) from exc


@router.get("/characters/{character_id}")
async def get_character(character_id: str):
    return require_character(character_id)


@router.patch("/characters/{character_id}")
async def update_character(character_id: str, body: UpdateCharacter):
    """Validate and apply a partial update. Warnings come back alongside the character."""
    engine = get_engine()
    require_character(character_id)
    updates = body.model_dump(exclude_unset=True)
    result = engine.validator.validate_character_update(character_id, updates)
    raise_if_invalid(result)
    try:
        engine.repository.update_character(character_id, updates)
    except ConstraintViolationError as exc:
        raise HTTPException(409, str(exc)) from exc
    return {
        "character": engine.repository.get_character(character_id),
        "warnings": [w.model_dump() for w in result.warnings],
    }


@router.delete("/characters/{character_id}")
async def delete_character(character_id: str):
    """Remove a character together with its inventory and memories."""
    if not get_engine().repository.delete_character(character_id):
        raise HTTPException(404, "Character not found")
    return {"ok": True}
