"""Narrative message processing: extract, validate and apply state changes."""

from fastapi import APIRouter

from backend.engine import get_engine

from .common import require_character
from .models import MessageBody

router = APIRouter()


@router.post("/characters/{character_id}/messages")
async def process_message(character_id: str, body: MessageBody):
    """Run one message through the pipeline. With dry_run nothing is written."""
    require_character(character_id)
    return get_engine().orchestrator.process_message(character_id, body.message, dry_run=body.dry_run)
