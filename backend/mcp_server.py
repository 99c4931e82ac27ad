"""FastMCP server exposing the world state engine as MCP tools.

Tools:
  - get_character_state(character_id)          : character, inventory and top memories
  - process_message(character_id, message, dry_run)  : extract/validate/apply one message
  - create_snapshot(description)               : capture the whole world state
  - restore_snapshot(snapshot_id)              : roll back to a snapshot
  - list_snapshots(limit)                      : newest snapshots first

The engine comes from backend.engine; tests swap in an in-memory one with
engine.set_engine().

Usage:
    python -m backend.mcp_server
"""

from mcp.server.fastmcp import FastMCP

from backend import engine

mcp = FastMCP("world-state")


@mcp.tool()
def get_character_state(character_id: str) -> dict:
    """Return a character with its inventory and its five most important memories."""
    repo = engine.get_engine().repository
    character = repo.get_character(character_id)
    if character is None:
        return {"found": False, "character_id": character_id}
    return {
        "found": True,
        "character": character.model_dump(),
        "inventory": [i.model_dump() for i in repo.get_inventory(character_id)],
        "memories": [m.model_dump() for m in repo.get_memories(character_id, limit=5)],
    }


@mcp.tool()
def process_message(character_id: str, message: str, dry_run: bool = False) -> dict:
    """Extract state changes from narrative text, validate them and apply the ones that pass."""
    result = engine.get_engine().orchestrator.process_message(character_id, message, dry_run=dry_run)
    return result.model_dump()


@mcp.tool()
def create_snapshot(description: str = "") -> dict:
    """Capture the current world state. Returns the snapshot's metadata."""
    return engine.get_engine().repository.create_snapshot(description).model_dump()


@mcp.tool()
def restore_snapshot(snapshot_id: str) -> dict:
    """Replace the world state with a snapshot. Fails if the snapshot does not exist."""
    engine.get_engine().repository.restore_snapshot(snapshot_id)
    return {"ok": True, "snapshot_id": snapshot_id}


@mcp.tool()
def list_snapshots(limit: int = 10) -> dict:
    """List snapshot metadata, newest first."""
    snapshots = engine.get_engine().repository.list_snapshots(limit=limit)
    return {"snapshots": [s.model_dump() for s in snapshots]}


if __name__ == "__main__":
    engine.init_engine()
    mcp.run()
