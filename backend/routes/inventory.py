"""Inventory endpoints: per-character listing, adding, editing and removing items."""

from fastapi import APIRouter, HTTPException

from backend.engine import get_engine

from .common import raise_if_invalid, require_character
from .models import AddInventoryItem, UpdateInventoryItem

router = APIRouter()


@router.get("/characters/{character_id}/inventory")
async def list_inventory(character_id: str, item_type: str | None = None, equipped: bool | None = None):
    require_character(character_id)
    return get_engine().repository.get_inventory(character_id, item_type=item_type, equipped=equipped)


@router.post("/characters/{character_id}/inventory", status_code=201)
async def add_item(character_id: str, body: AddInventoryItem):
    """Validate and add an item. Equip-slot conflicts are reported as warnings."""
    engine = get_engine()
    require_character(character_id)
    item = body.model_dump(exclude_none=True)
    result = engine.validator.validate_inventory_item(character_id, item)
    raise_if_invalid(result)
    stored = engine.repository.add_inventory_item(character_id, item)
    return {"item": stored, "warnings": [w.model_dump() for w in result.warnings]}


@router.patch("/inventory/{item_id}")
async def update_item(item_id: str, body: UpdateInventoryItem):
    """Validate the item as it would look after the update, then write it."""
    engine = get_engine()
    existing = engine.repository.get_inventory_item(item_id)
    if existing is None:
        raise HTTPException(404, "Inventory item not found")
    updates = body.model_dump(exclude_unset=True)
    merged = {**existing.model_dump(), **updates}
    result = engine.validator.validate_inventory_item(existing.character_id, merged)
    raise_if_invalid(result)
    engine.repository.update_inventory_item(item_id, updates)
    return {
        "item": engine.repository.get_inventory_item(item_id),
        "warnings": [w.model_dump() for w in result.warnings],
    }


@router.delete("/inventory/{item_id}")
async def delete_item(item_id: str):
    if not get_engine().repository.delete_inventory_item(item_id):
        raise HTTPException(404, "Inventory item not found")
    return {"ok": True}
