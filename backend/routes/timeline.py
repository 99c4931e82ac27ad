"""Timeline endpoints."""

from fastapi import APIRouter

from backend.engine import get_engine

from .common import raise_if_invalid
from .models import AddTimelineEvent

router = APIRouter()


@router.get("/timeline")
async def get_timeline(
    start_time: int | None = None,
    end_time: int | None = None,
    event_type: str | None = None,
    min_importance: int | None = None,
    limit: int | None = None,
    order: str = "ASC",
):
    """Events in time order (ascending by default), optionally filtered."""
    return get_engine().repository.get_timeline(
        start_time=start_time,
        end_time=end_time,
        event_type=event_type,
        min_importance=min_importance,
        limit=limit,
        order=order,
    )


@router.post("/timeline", status_code=201)
async def add_event(body: AddTimelineEvent):
    engine = get_engine()
    event = body.model_dump(exclude_none=True)
    result = engine.validator.validate_timeline_event(event)
    raise_if_invalid(result)
    stored = engine.repository.add_timeline_event(event)
    return {"event": stored, "warnings": [w.model_dump() for w in result.warnings]}
