"""Character memory endpoints."""

from fastapi import APIRouter

from backend.engine import get_engine

from .common import require_character
from .models import AddMemory

router = APIRouter()


@router.get("/characters/{character_id}/memories")
async def list_memories(character_id: str, min_importance: int | None = None, limit: int | None = None):
    """Most important first."""
    require_character(character_id)
    return get_engine().repository.get_memories(character_id, min_importance=min_importance, limit=limit)


@router.post("/characters/{character_id}/memories", status_code=201)
async def add_memory(character_id: str, body: AddMemory):
    require_character(character_id)
    return get_engine().repository.add_memory(character_id, body.model_dump(exclude_none=True))
