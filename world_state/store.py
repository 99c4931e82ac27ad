"""SQLite-backed record store.

Generic CRUD over a fixed set of named tables. Rows go in and come out as
plain dicts; structured fields are JSON text by the time they reach this
layer (the repository serialises them).

Tables:
    characters, timeline, locations, inventory, memories   mutable world state
    state_snapshots                                         full JSON dumps of the five above
    validation_logs                                         append-only audit trail

Every row carries created_at / updated_at in epoch milliseconds. insert()
stamps both (unless stamp=False, which snapshot restore uses to keep original
stamps); update() re-stamps updated_at.

Filters (the ``where`` argument) map column → value for equality, or
column → {op: value} with op in gt, gte, lt, lte, like, in. A None value
matches NULL.

transaction() is a context manager: everything inside commits together or
not at all. It does not nest. Any SQL error inside it rolls the transaction
back immediately; the error propagates.
"""

from __future__ import annotations

import logging
import re
import sqlite3
import threading
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from world_state.errors import ConstraintViolationError, StoreError, TransactionError
from world_state.log import timed

STATE_TABLES: tuple[str, ...] = ("characters", "timeline", "locations", "inventory", "memories")
TABLES: tuple[str, ...] = STATE_TABLES + ("state_snapshots", "validation_logs")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_OPERATORS = {"gt": ">", "gte": ">=", "lt": "<", "lte": "<=", "like": "LIKE"}

SCHEMA = """
CREATE TABLE IF NOT EXISTS characters (
  id TEXT PRIMARY KEY,
  name TEXT NOT NULL,
  affection INTEGER DEFAULT 0 CHECK(affection >= 0 AND affection <= 100),
  emotion TEXT DEFAULT 'neutral',
  personality TEXT,
  current_location TEXT,
  metadata TEXT,
  created_at INTEGER NOT NULL,
  updated_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_characters_name ON characters(name);
CREATE INDEX IF NOT EXISTS idx_characters_location ON characters(current_location);

CREATE TABLE IF NOT EXISTS timeline (
  id TEXT PRIMARY KEY,
  timestamp INTEGER NOT NULL,
  event_type TEXT NOT NULL,
  description TEXT NOT NULL,
  participants TEXT,
  location TEXT,
  importance INTEGER DEFAULT 1 CHECK(importance >= 1 AND importance <= 5),
  metadata TEXT,
  created_at INTEGER NOT NULL,
  updated_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_timeline_timestamp ON timeline(timestamp);
CREATE INDEX IF NOT EXISTS idx_timeline_type ON timeline(event_type);

CREATE TABLE IF NOT EXISTS locations (
  id TEXT PRIMARY KEY,
  name TEXT NOT NULL UNIQUE,
  type TEXT,
  parent_location TEXT,
  connected_to TEXT,
  description TEXT,
  metadata TEXT,
  created_at INTEGER NOT NULL,
  updated_at INTEGER NOT NULL,
  FOREIGN KEY (parent_location) REFERENCES locations(id)
);
CREATE INDEX IF NOT EXISTS idx_locations_type ON locations(type);

CREATE TABLE IF NOT EXISTS inventory (
  id TEXT PRIMARY KEY,
  character_id TEXT NOT NULL,
  item_name TEXT NOT NULL,
  item_type TEXT,
  quantity INTEGER DEFAULT 1 CHECK(quantity >= 0),
  equipped INTEGER DEFAULT 0,
  properties TEXT,
  created_at INTEGER NOT NULL,
  updated_at INTEGER NOT NULL,
  FOREIGN KEY (character_id) REFERENCES characters(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_inventory_character ON inventory(character_id);

CREATE TABLE IF NOT EXISTS memories (
  id TEXT PRIMARY KEY,
  character_id TEXT NOT NULL,
  content TEXT NOT NULL,
  importance INTEGER DEFAULT 1 CHECK(importance >= 1 AND importance <= 5),
  timestamp INTEGER NOT NULL,
  tags TEXT,
  metadata TEXT,
  created_at INTEGER NOT NULL,
  updated_at INTEGER NOT NULL,
  FOREIGN KEY (character_id) REFERENCES characters(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_memories_character ON memories(character_id);

CREATE TABLE IF NOT EXISTS state_snapshots (
  id TEXT PRIMARY KEY,
  snapshot_time INTEGER NOT NULL,
  state_data TEXT NOT NULL,
  description TEXT,
  created_at INTEGER NOT NULL,
  updated_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_snapshots_time ON state_snapshots(snapshot_time DESC);

CREATE TABLE IF NOT EXISTS validation_logs (
  id TEXT PRIMARY KEY,
  timestamp INTEGER NOT NULL,
  validation_type TEXT NOT NULL,
  passed INTEGER NOT NULL,
  details TEXT,
  created_at INTEGER NOT NULL,
  updated_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_validation_logs_time ON validation_logs(timestamp DESC);
"""


def now_ms() -> int:
    return int(time.time() * 1000)


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise StoreError(f"Invalid column name: {name!r}")
    return name


def _check_table(table: str) -> str:
    if table not in TABLES:
        raise StoreError(f"Unknown table: {table!r}")
    return table


def build_where(where: dict[str, Any]) -> tuple[str, list[Any]]:
    """Translate a filter dict into (clause, params). Empty filter → ("", [])."""
    conditions: list[str] = []
    params: list[Any] = []
    for column, value in where.items():
        column = _check_identifier(column)
        if isinstance(value, dict):
            for op, operand in value.items():
                if op in _OPERATORS:
                    conditions.append(f"{column} {_OPERATORS[op]} ?")
                    params.append(operand)
                elif op == "in":
                    values = list(operand)
                    if not values:
                        conditions.append("0")
                        continue
                    placeholders = ", ".join("?" for _ in values)
                    conditions.append(f"{column} IN ({placeholders})")
                    params.extend(values)
                else:
                    raise StoreError(f"Unknown operator: {op!r}")
        elif value is None:
            conditions.append(f"{column} IS NULL")
        else:
            conditions.append(f"{column} = ?")
            params.append(value)
    return " AND ".join(conditions), params


class SQLiteStore:
    """Single-connection SQLite store.

    Args:
        path:    Database file, or ":memory:" (the default) for an ephemeral store.
        verbose: Log every SQL statement at debug level.
        logger:  Logger to use instead of the module logger.
    """

    def __init__(
        self,
        path: str | Path = ":memory:",
        *,
        verbose: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self._log = logger if logger is not None else logging.getLogger(__name__)
        self._path = str(path)
        if self._path != ":memory:":
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)

        # Autocommit mode: transaction() issues BEGIN/COMMIT itself.
        self._conn = sqlite3.connect(self._path, isolation_level=None, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._in_transaction = False
        self._aborted = False
        self._closed = False

        if verbose:
            self._conn.set_trace_callback(lambda sql: self._log.debug("SQL %s", sql))

        self._conn.execute("PRAGMA foreign_keys = ON")
        if self._path != ":memory:":
            self._conn.execute("PRAGMA journal_mode = WAL")
        self._conn.executescript(SCHEMA)
        self._log.info("Store opened at %s", self._path)

    @property
    def path(self) -> str:
        return self._path

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _execute(self, sql: str, params: list[Any] | tuple[Any, ...] = ()) -> sqlite3.Cursor:
        with self._lock:
            if self._in_transaction and self._aborted:
                raise TransactionError("Transaction already aborted by an earlier error")
            try:
                return self._conn.execute(sql, params)
            except sqlite3.IntegrityError as e:
                self._abort()
                raise ConstraintViolationError(str(e)) from e
            except sqlite3.Error as e:
                self._abort()
                raise StoreError(str(e)) from e

    def _abort(self) -> None:
        if self._in_transaction and not self._aborted:
            self._conn.execute("ROLLBACK")
            self._aborted = True
            self._log.warning("Transaction rolled back after a store error")

    @contextmanager
    def transaction(self) -> Iterator[SQLiteStore]:
        """Run a block atomically. Raises TransactionError when nested."""
        with self._lock:
            if self._in_transaction:
                raise TransactionError("Transactions cannot be nested")
            with timed(self._log, "transaction"):
                self._conn.execute("BEGIN")
                self._in_transaction = True
                self._aborted = False
                try:
                    yield self
                    if self._aborted:
                        raise TransactionError("Transaction was aborted and cannot commit")
                    try:
                        self._conn.execute("COMMIT")
                    except sqlite3.IntegrityError as e:
                        # deferred foreign keys are checked at commit
                        raise ConstraintViolationError(str(e)) from e
                except BaseException:
                    if not self._aborted:
                        self._conn.execute("ROLLBACK")
                    self._log.warning("Transaction failed, changes rolled back")
                    raise
                finally:
                    self._in_transaction = False
                    self._aborted = False

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def get(self, table: str, where: dict[str, Any] | None = None) -> dict[str, Any] | None:
        rows = self.get_all(table, where, limit=1)
        return rows[0] if rows else None

    def get_all(
        self,
        table: str,
        where: dict[str, Any] | None = None,
        *,
        order_by: str | None = None,
        order: str = "ASC",
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]:
        sql = f"SELECT * FROM {_check_table(table)}"
        clause, params = build_where(where or {})
        if clause:
            sql += f" WHERE {clause}"
        if order_by:
            direction = order.upper()
            if direction not in ("ASC", "DESC"):
                raise StoreError(f"Invalid sort order: {order!r}")
            sql += f" ORDER BY {_check_identifier(order_by)} {direction}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))
            if offset:
                sql += " OFFSET ?"
                params.append(int(offset))
        with timed(self._log, f"select from {table}"):
            return [dict(row) for row in self._execute(sql, params).fetchall()]

    def insert(self, table: str, data: dict[str, Any], *, stamp: bool = True) -> str:
        """Insert one row and return its id (generated when absent)."""
        record = dict(data)
        if not record.get("id"):
            record["id"] = str(uuid.uuid4())
        now = now_ms()
        if stamp:
            record["created_at"] = now
            record["updated_at"] = now
        else:
            record.setdefault("created_at", now)
            record.setdefault("updated_at", now)

        columns = [_check_identifier(c) for c in record]
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {_check_table(table)} ({', '.join(columns)}) VALUES ({placeholders})"
        self._execute(sql, [record[c] for c in columns])
        self._log.debug("Inserted %s into %s", record["id"], table)
        return record["id"]

    def update(self, table: str, where: dict[str, Any], data: dict[str, Any]) -> int:
        """Update matching rows; returns the number of rows changed."""
        if not where:
            raise StoreError("update() requires a filter")
        values = dict(data)
        values["updated_at"] = now_ms()
        set_clause = ", ".join(f"{_check_identifier(c)} = ?" for c in values)
        clause, params = build_where(where)
        sql = f"UPDATE {_check_table(table)} SET {set_clause} WHERE {clause}"
        changed = self._execute(sql, [*values.values(), *params]).rowcount
        self._log.debug("Updated %d row(s) in %s", changed, table)
        return changed

    def delete(self, table: str, where: dict[str, Any]) -> int:
        """Delete matching rows; returns the number of rows removed."""
        if not where:
            raise StoreError("delete() requires a filter")
        clause, params = build_where(where)
        changed = self._execute(f"DELETE FROM {_check_table(table)} WHERE {clause}", params).rowcount
        self._log.debug("Deleted %d row(s) from %s", changed, table)
        return changed

    def raw(self, sql: str, params: list[Any] | tuple[Any, ...] = ()) -> list[dict[str, Any]] | int:
        """Escape hatch for ad-hoc statements.

        Queries (SELECT / PRAGMA / WITH) return their rows; anything else
        returns the changed-row count.
        """
        cursor = self._execute(sql, params)
        if sql.lstrip().upper().startswith(("SELECT", "PRAGMA", "WITH")):
            return [dict(row) for row in cursor.fetchall()]
        return cursor.rowcount

    def count(self, table: str) -> int:
        row = self._execute(f"SELECT COUNT(*) AS n FROM {_check_table(table)}").fetchone()
        return int(row["n"])

    def stats(self) -> dict[str, Any]:
        tables = {t: self.count(t) for t in TABLES}
        size_kb = None
        if self._path != ":memory:" and Path(self._path).is_file():
            size_kb = round(Path(self._path).stat().st_size / 1024, 2)
        return {
            "tables": tables,
            "total_records": sum(tables.values()),
            "db_path": self._path,
            "db_size_kb": size_kb,
        }

    def close(self) -> None:
        with self._lock:
            if not self._closed:
                self._conn.close()
                self._closed = True
                self._log.info("Store closed")
