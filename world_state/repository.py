"""Typed access to world state, built on the store and the cache.

Five entity families plus snapshots:

    characters   create / get / update / delete / list      (cached by id)
    timeline     add / query by time range, type, importance
    locations    create / get / find by name / update / list (cached by id)
    inventory    add / list per character / update / delete (cached per character)
    memories     add / list per character
    snapshots    create / restore / list

Structured fields (personality, metadata, tags, participants, connected_to,
properties) are JSON text in the store; this layer serialises on the way in
and parses on the way out, so callers only ever see models.

Every write invalidates the matching cache entry immediately. restore_snapshot
replaces all five state tables in one transaction and then clears the whole
cache.

Validation and extraction read through here but never write; only the
orchestrator (and direct API callers) mutate state.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

from world_state.cache import StateCache
from world_state.errors import NotFoundError
from world_state.log import timed
from world_state.models import (
    Character,
    Connection,
    InventoryItem,
    Location,
    Memory,
    SnapshotInfo,
    TimelineEvent,
    ValidationLogEntry,
)
from world_state.store import STATE_TABLES, SQLiteStore, now_ms


def _dumps(value: Any) -> str | None:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def _loads(text: str | None, default: Any) -> Any:
    if text is None or text == "":
        return default
    return json.loads(text)


class StateRepository:
    """Category-specific CRUD over a SQLiteStore.

    Args:
        store:  The backing store. Not closed by close(); the owner of the
                store closes it.
        cache:  Optional cache; a disabled one is used when omitted.
        logger: Logger to use instead of the module logger.
    """

    def __init__(
        self,
        store: SQLiteStore,
        cache: StateCache | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._cache = cache if cache is not None else StateCache(enabled=False)
        self._log = logger if logger is not None else logging.getLogger(__name__)

    @property
    def store(self) -> SQLiteStore:
        return self._store

    @property
    def cache(self) -> StateCache:
        return self._cache

    # ------------------------------------------------------------------
    # Row → model
    # ------------------------------------------------------------------

    @staticmethod
    def _character(row: dict[str, Any]) -> Character:
        return Character.model_validate({
            **row,
            "personality": _loads(row.get("personality"), None),
            "metadata": _loads(row.get("metadata"), {}),
        })

    @staticmethod
    def _location(row: dict[str, Any]) -> Location:
        return Location.model_validate({
            **row,
            "connected_to": _loads(row.get("connected_to"), None),
            "metadata": _loads(row.get("metadata"), {}),
        })

    @staticmethod
    def _item(row: dict[str, Any]) -> InventoryItem:
        return InventoryItem.model_validate({
            **row,
            "equipped": bool(row.get("equipped")),
            "properties": _loads(row.get("properties"), {}),
        })

    @staticmethod
    def _memory(row: dict[str, Any]) -> Memory:
        return Memory.model_validate({
            **row,
            "tags": _loads(row.get("tags"), []),
            "metadata": _loads(row.get("metadata"), {}),
        })

    @staticmethod
    def _event(row: dict[str, Any]) -> TimelineEvent:
        return TimelineEvent.model_validate({
            **row,
            "participants": _loads(row.get("participants"), []),
            "metadata": _loads(row.get("metadata"), {}),
        })

    # ------------------------------------------------------------------
    # Characters
    # ------------------------------------------------------------------

    def create_character(self, data: dict[str, Any]) -> Character:
        record = {
            "id": data.get("id") or str(uuid.uuid4()),
            "name": data.get("name"),
            "affection": data.get("affection", 0),
            "emotion": data.get("emotion") or "neutral",
            "personality": _dumps(data.get("personality")),
            "current_location": data.get("current_location"),
            "metadata": _dumps(data.get("metadata")),
        }
        character_id = self._store.insert("characters", record)
        self._cache.invalidate("character", character_id)
        self._log.info("Character created id=%s name=%s", character_id, record["name"])
        return self._character(self._store.get("characters", {"id": character_id}))

    def get_character(self, character_id: str) -> Character | None:
        with timed(self._log, "get_character"):
            cached = self._cache.get("character", character_id)
            if cached is not None:
                return cached.model_copy(deep=True)
            row = self._store.get("characters", {"id": character_id})
            if row is None:
                return None
            character = self._character(row)
            self._cache.put("character", character_id, character)
            return character.model_copy(deep=True)

    def list_characters(self) -> list[Character]:
        return [self._character(r) for r in self._store.get_all("characters", order_by="name")]

    def update_character(self, character_id: str, updates: dict[str, Any]) -> int:
        """Write the given fields; returns the number of rows changed (0 or 1)."""
        data = {k: v for k, v in updates.items() if k not in ("id", "created_at", "updated_at")}
        for key in ("personality", "metadata"):
            if key in data:
                data[key] = _dumps(data[key])
        if not data:
            return 0
        try:
            changed = self._store.update("characters", {"id": character_id}, data)
        finally:
            self._cache.invalidate("character", character_id)
        self._log.info("Character updated id=%s fields=%s", character_id, sorted(data))
        return changed

    def delete_character(self, character_id: str) -> int:
        """Delete a character; its inventory and memories go with it."""
        try:
            changed = self._store.delete("characters", {"id": character_id})
        finally:
            self._cache.invalidate("character", character_id)
            self._cache.invalidate("inventory", character_id)
        self._log.info("Character deleted id=%s", character_id)
        return changed

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------

    def add_timeline_event(self, event: dict[str, Any]) -> TimelineEvent:
        """Append an event. timestamp defaults to now, importance to 1."""
        timestamp = event.get("timestamp")
        importance = event.get("importance")
        record = {
            "id": event.get("id") or str(uuid.uuid4()),
            "timestamp": now_ms() if timestamp is None else timestamp,
            "event_type": event.get("event_type"),
            "description": event.get("description"),
            "participants": _dumps(event.get("participants")),
            "location": event.get("location"),
            "importance": 1 if importance is None else importance,
            "metadata": _dumps(event.get("metadata")),
        }
        event_id = self._store.insert("timeline", record)
        self._log.info("Timeline event added id=%s type=%s", event_id, record["event_type"])
        return self._event(self._store.get("timeline", {"id": event_id}))

    def get_timeline(
        self,
        *,
        start_time: int | None = None,
        end_time: int | None = None,
        event_type: str | None = None,
        min_importance: int | None = None,
        limit: int | None = None,
        order: str = "ASC",
    ) -> list[TimelineEvent]:
        where: dict[str, Any] = {}
        span: dict[str, int] = {}
        if start_time is not None:
            span["gte"] = start_time
        if end_time is not None:
            span["lte"] = end_time
        if span:
            where["timestamp"] = span
        if event_type:
            where["event_type"] = event_type
        if min_importance is not None:
            where["importance"] = {"gte": min_importance}
        rows = self._store.get_all("timeline", where, order_by="timestamp", order=order, limit=limit)
        return [self._event(r) for r in rows]

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------

    @staticmethod
    def _connections(value: Any) -> str | None:
        if value is None:
            return None
        return _dumps([Connection.model_validate(c).model_dump() for c in value])

    def create_location(self, data: dict[str, Any]) -> Location:
        record = {
            "id": data.get("id") or str(uuid.uuid4()),
            "name": data.get("name"),
            "type": data.get("type"),
            "parent_location": data.get("parent_location"),
            "connected_to": self._connections(data.get("connected_to")),
            "description": data.get("description"),
            "metadata": _dumps(data.get("metadata")),
        }
        location_id = self._store.insert("locations", record)
        self._cache.invalidate("location", location_id)
        self._log.info("Location created id=%s name=%s", location_id, record["name"])
        return self._location(self._store.get("locations", {"id": location_id}))

    def get_location(self, location_id: str) -> Location | None:
        cached = self._cache.get("location", location_id)
        if cached is not None:
            return cached.model_copy(deep=True)
        row = self._store.get("locations", {"id": location_id})
        if row is None:
            return None
        location = self._location(row)
        self._cache.put("location", location_id, location)
        return location.model_copy(deep=True)

    def find_location_by_name(self, name: str) -> Location | None:
        row = self._store.get("locations", {"name": name})
        return self._location(row) if row else None

    def list_locations(self, *, location_type: str | None = None) -> list[Location]:
        where = {"type": location_type} if location_type else None
        return [self._location(r) for r in self._store.get_all("locations", where, order_by="name")]

    def update_location(self, location_id: str, updates: dict[str, Any]) -> int:
        data = {k: v for k, v in updates.items() if k not in ("id", "created_at", "updated_at")}
        if "connected_to" in data:
            data["connected_to"] = self._connections(data["connected_to"])
        if "metadata" in data:
            data["metadata"] = _dumps(data["metadata"])
        if not data:
            return 0
        try:
            changed = self._store.update("locations", {"id": location_id}, data)
        finally:
            self._cache.invalidate("location", location_id)
        self._log.info("Location updated id=%s fields=%s", location_id, sorted(data))
        return changed

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def add_inventory_item(self, character_id: str, item: dict[str, Any]) -> InventoryItem:
        quantity = item.get("quantity")
        record = {
            "id": item.get("id") or str(uuid.uuid4()),
            "character_id": character_id,
            "item_name": item.get("item_name"),
            "item_type": item.get("item_type"),
            "quantity": 1 if quantity is None else quantity,
            "equipped": 1 if item.get("equipped") else 0,
            "properties": _dumps(item.get("properties")),
        }
        try:
            item_id = self._store.insert("inventory", record)
        finally:
            self._cache.invalidate("inventory", character_id)
        self._log.info("Inventory item added character=%s item=%s", character_id, record["item_name"])
        return self._item(self._store.get("inventory", {"id": item_id}))

    def get_inventory_item(self, item_id: str) -> InventoryItem | None:
        row = self._store.get("inventory", {"id": item_id})
        return self._item(row) if row else None

    def get_inventory(
        self,
        character_id: str,
        *,
        item_type: str | None = None,
        equipped: bool | None = None,
    ) -> list[InventoryItem]:
        """List a character's items, optionally filtered by type / equipped flag.

        Only the unfiltered list is cached.
        """
        unfiltered = item_type is None and equipped is None
        if unfiltered:
            cached = self._cache.get("inventory", character_id)
            if cached is not None:
                return [i.model_copy(deep=True) for i in cached]

        where: dict[str, Any] = {"character_id": character_id}
        if item_type is not None:
            where["item_type"] = item_type
        if equipped is not None:
            where["equipped"] = 1 if equipped else 0
        items = [self._item(r) for r in self._store.get_all("inventory", where, order_by="rowid")]

        if unfiltered:
            self._cache.put("inventory", character_id, items)
            return [i.model_copy(deep=True) for i in items]
        return items

    def update_inventory_item(self, item_id: str, updates: dict[str, Any]) -> int:
        existing = self._store.get("inventory", {"id": item_id})
        if existing is None:
            return 0
        data = {k: v for k, v in updates.items() if k not in ("id", "character_id", "created_at", "updated_at")}
        if "properties" in data:
            data["properties"] = _dumps(data["properties"])
        if "equipped" in data:
            data["equipped"] = 1 if data["equipped"] else 0
        if not data:
            return 0
        try:
            changed = self._store.update("inventory", {"id": item_id}, data)
        finally:
            self._cache.invalidate("inventory", existing["character_id"])
        self._log.info("Inventory item updated id=%s", item_id)
        return changed

    def delete_inventory_item(self, item_id: str) -> int:
        existing = self._store.get("inventory", {"id": item_id})
        if existing is None:
            return 0
        try:
            changed = self._store.delete("inventory", {"id": item_id})
        finally:
            self._cache.invalidate("inventory", existing["character_id"])
        self._log.info("Inventory item deleted id=%s", item_id)
        return changed

    # ------------------------------------------------------------------
    # Memories
    # ------------------------------------------------------------------

    def add_memory(self, character_id: str, memory: dict[str, Any]) -> Memory:
        importance = memory.get("importance")
        timestamp = memory.get("timestamp")
        record = {
            "id": memory.get("id") or str(uuid.uuid4()),
            "character_id": character_id,
            "content": memory.get("content"),
            "importance": 1 if importance is None else importance,
            "timestamp": now_ms() if timestamp is None else timestamp,
            "tags": _dumps(memory.get("tags")),
            "metadata": _dumps(memory.get("metadata")),
        }
        memory_id = self._store.insert("memories", record)
        self._log.info("Memory added character=%s importance=%s", character_id, record["importance"])
        return self._memory(self._store.get("memories", {"id": memory_id}))

    def get_memories(
        self,
        character_id: str,
        *,
        min_importance: int | None = None,
        limit: int | None = None,
        order_by: str = "importance",
        order: str = "DESC",
    ) -> list[Memory]:
        where: dict[str, Any] = {"character_id": character_id}
        if min_importance is not None:
            where["importance"] = {"gte": min_importance}
        rows = self._store.get_all("memories", where, order_by=order_by, order=order, limit=limit)
        return [self._memory(r) for r in rows]

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def create_snapshot(self, description: str = "") -> SnapshotInfo:
        """Dump all five state tables into one new snapshot row."""
        with timed(self._log, "create_snapshot"), self._store.transaction():
            state = {table: self._store.get_all(table, order_by="id") for table in STATE_TABLES}
            snapshot_id = self._store.insert("state_snapshots", {
                "snapshot_time": now_ms(),
                "state_data": json.dumps(state, ensure_ascii=False),
                "description": description,
            })
        rows = sum(len(v) for v in state.values())
        self._log.info("Snapshot created id=%s rows=%d description=%r", snapshot_id, rows, description)
        return self._snapshot_info(self._store.get("state_snapshots", {"id": snapshot_id}))

    def get_snapshot_data(self, snapshot_id: str) -> dict[str, list[dict[str, Any]]]:
        row = self._store.get("state_snapshots", {"id": snapshot_id})
        if row is None:
            raise NotFoundError("Snapshot", snapshot_id)
        return json.loads(row["state_data"])

    def restore_snapshot(self, snapshot_id: str) -> None:
        """Replace all state tables with the snapshot's rows, atomically.

        Ids and created_at / updated_at stamps are restored verbatim. On any
        error nothing is applied and the error propagates.
        """
        state = self.get_snapshot_data(snapshot_id)
        with timed(self._log, "restore_snapshot"), self._store.transaction():
            # parent/child rows may come back in any order
            self._store.raw("PRAGMA defer_foreign_keys = ON")
            for table in STATE_TABLES:
                self._store.raw(f"DELETE FROM {table}")
            for table in STATE_TABLES:
                for row in state.get(table, []):
                    self._store.insert(table, row, stamp=False)
        self.clear_cache()
        self._log.info("Snapshot restored id=%s", snapshot_id)

    def list_snapshots(self, limit: int = 10) -> list[SnapshotInfo]:
        rows = self._store.get_all("state_snapshots", order_by="snapshot_time", order="DESC", limit=limit)
        return [self._snapshot_info(r) for r in rows]

    @staticmethod
    def _snapshot_info(row: dict[str, Any]) -> SnapshotInfo:
        return SnapshotInfo(
            id=row["id"],
            snapshot_time=row["snapshot_time"],
            description=row.get("description") or "",
            created_at=row.get("created_at"),
        )

    # ------------------------------------------------------------------
    # Validation audit log
    # ------------------------------------------------------------------

    def append_validation_log(self, validation_type: str, passed: bool, details: dict[str, Any]) -> str:
        return self._store.insert("validation_logs", {
            "timestamp": now_ms(),
            "validation_type": validation_type,
            "passed": 1 if passed else 0,
            "details": _dumps(details),
        })

    def get_validation_logs(
        self, *, validation_type: str | None = None, limit: int = 100
    ) -> list[ValidationLogEntry]:
        where = {"validation_type": validation_type} if validation_type else None
        rows = self._store.get_all("validation_logs", where, order_by="timestamp", order="DESC", limit=limit)
        return [
            ValidationLogEntry(
                id=r["id"],
                timestamp=r["timestamp"],
                validation_type=r["validation_type"],
                passed=bool(r["passed"]),
                details=_loads(r.get("details"), {}),
            )
            for r in rows
        ]

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def clear_cache(self) -> None:
        self._cache.clear()

    def stats(self) -> dict[str, Any]:
        return {"database": self._store.stats(), "cache": self._cache.stats()}

    def close(self) -> None:
        self.clear_cache()
        self._log.info("Repository closed")
