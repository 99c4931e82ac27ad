"""FastAPI API endpoints under /api.

Endpoint groups: status (health, stats, validation audit), characters,
inventory, memories, locations, timeline, snapshots, and messages (the
extract/validate/apply pipeline). Per-character resources are nested under
/api/characters/{character_id}/.
"""

from fastapi import APIRouter

from .characters import router as characters_router
from .inventory import router as inventory_router
from .locations import router as locations_router
from .memories import router as memories_router
from .messages import router as messages_router
from .snapshots import router as snapshots_router
from .status import router as status_router
from .timeline import router as timeline_router

router = APIRouter()
router.include_router(status_router)
router.include_router(characters_router)
router.include_router(inventory_router)
router.include_router(memories_router)
router.include_router(locations_router)
router.include_router(timeline_router)
router.include_router(snapshots_router)
router.include_router(messages_router)
