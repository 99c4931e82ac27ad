"""MCP tool tests using the FastMCP in-process test client.

Each test gets a fresh in-memory engine with Alice (affection 50) in it.
"""

import json

import pytest
from mcp.shared.memory import create_connected_server_and_client_session

import backend.mcp_server as mcp_server
from backend import engine as engine_module
from world_state import Settings, build_engine


@pytest.fixture(autouse=True)
def fresh_engine():
    settings = Settings.model_validate({"database": {"path": ":memory:"}})
    e = engine_module.set_engine(build_engine(settings))
    e.repository.create_character({"id": "alice", "name": "Alice", "affection": 50})
    return e


async def _call(name: str, arguments: dict) -> dict:
    async with create_connected_server_and_client_session(mcp_server.mcp) as client:
        result = await client.call_tool(name, arguments)
    assert not result.isError, result.content
    return json.loads(result.content[0].text)


async def test_get_character_state(fresh_engine):
    fresh_engine.repository.add_inventory_item("alice", {"item_name": "apple", "quantity": 2})
    fresh_engine.repository.add_memory("alice", {"content": "met the bard", "importance": 4})

    state = await _call("get_character_state", {"character_id": "alice"})

    assert state["found"] is True
    assert state["character"]["affection"] == 50
    assert [i["item_name"] for i in state["inventory"]] == ["apple"]
    assert [m["content"] for m in state["memories"]] == ["met the bard"]


async def test_get_missing_character():
    state = await _call("get_character_state", {"character_id": "ghost"})
    assert state == {"found": False, "character_id": "ghost"}


async def test_process_message_applies(fresh_engine):
    result = await _call("process_message", {"character_id": "alice", "message": "好感度增加了10点"})

    assert result["extracted"]["affection"]["new_value"] == 60
    assert [u["type"] for u in result["updates"]] == ["affection"]
    assert fresh_engine.repository.get_character("alice").affection == 60


async def test_process_message_dry_run(fresh_engine):
    result = await _call(
        "process_message", {"character_id": "alice", "message": "好感度增加了10点", "dry_run": True}
    )

    assert result["updates"][0]["applied"] is False
    assert fresh_engine.repository.get_character("alice").affection == 50


async def test_snapshot_round_trip(fresh_engine):
    snapshot = await _call("create_snapshot", {"description": "before the fight"})
    fresh_engine.repository.update_character("alice", {"affection": 10})

    listed = await _call("list_snapshots", {})
    assert [s["id"] for s in listed["snapshots"]] == [snapshot["id"]]
    assert listed["snapshots"][0]["description"] == "before the fight"

    restored = await _call("restore_snapshot", {"snapshot_id": snapshot["id"]})
    assert restored == {"ok": True, "snapshot_id": snapshot["id"]}
    assert fresh_engine.repository.get_character("alice").affection == 50


async def test_restore_unknown_snapshot_is_an_error():
    async with create_connected_server_and_client_session(mcp_server.mcp) as client:
        result = await client.call_tool("restore_snapshot", {"snapshot_id": "nope"})
    assert result.isError
