"""Location endpoints."""

from fastapi import APIRouter, HTTPException

from backend.engine import get_engine
from world_state.errors import ConstraintViolationError

from .models import CreateLocation

router = APIRouter()


@router.get("/locations")
async def list_locations(type: str | None = None):
    return get_engine().repository.list_locations(location_type=type)


@router.post("/locations", status_code=201)
async def create_location(body: CreateLocation):
    """Create a location. An unknown parent_location or duplicate id is a 409."""
    try:
        return get_engine().repository.create_location(body.model_dump(exclude_none=True))
    except ConstraintViolationError as exc:
        raise HTTPException(409, str(exc)) from exc


@router.get("/locations/{location_id}")
async def get_location(location_id: str):
    location = get_engine().repository.get_location(location_id)
    if location is None:
        raise HTTPException(404, "Location not found")
    return location
