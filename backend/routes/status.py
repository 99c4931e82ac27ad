"""Health check, engine statistics and validation audit endpoints."""

from fastapi import APIRouter

from backend.engine import get_engine

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/stats")
async def stats():
    """Row counts, cache counters and recent validation outcomes."""
    return get_engine().orchestrator.stats()


@router.get("/validation/stats")
async def validation_stats(validation_type: str | None = None, limit: int = 100):
    return get_engine().validator.get_validation_stats(validation_type=validation_type, limit=limit)
