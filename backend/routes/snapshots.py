"""Snapshot endpoints: capture and roll back the whole world state."""

from fastapi import APIRouter, HTTPException

from backend.engine import get_engine
from world_state.errors import NotFoundError

from .models import CreateSnapshot

router = APIRouter()


@router.get("/snapshots")
async def list_snapshots(limit: int = 10):
    """Newest first."""
    return get_engine().repository.list_snapshots(limit=limit)


@router.post("/snapshots", status_code=201)
async def create_snapshot(body: CreateSnapshot):
    return get_engine().repository.create_snapshot(body.description)


@router.post("/snapshots/{snapshot_id}/restore")
async def restore_snapshot(snapshot_id: str):
    try:
        get_engine().repository.restore_snapshot(snapshot_id)
    except NotFoundError as exc:
        raise HTTPException(404, str(exc)) from exc
    return {"ok": True}
