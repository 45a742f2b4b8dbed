"""Remote store port and its SQLite implementation.

The remote store is authoritative but may be unavailable. Every row carries
a ``user_id`` and every query filters on it; that column is the only
isolation boundary between users. All operations are coroutines; the SQLite
implementation runs its blocking calls in a worker thread.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

logger = logging.getLogger(__name__)

AUTH_REQUIRED = "DB_AUTH_REQUIRED"
CONNECTION_ERROR = "DB_CONNECTION_ERROR"
QUERY_ERROR = "DB_QUERY_ERROR"
NOT_FOUND = "NOT_FOUND"

RECORDS_TABLE = "daily_records"
TASKS_TABLE = "tasks"
ENTRIES_TABLE = "journal_entries"

COLUMNS: dict[str, tuple[str, ...]] = {
    RECORDS_TABLE: (
        "id", "date", "journal", "mood", "is_sealed", "completion_rate",
        "created_at", "sealed_at", "user_id",
    ),
    TASKS_TABLE: (
        "id", "record_id", "description", "completed", "priority", "tags",
        "sort_order", "created_at", "completed_at", "user_id",
    ),
    ENTRIES_TABLE: (
        "id", "record_id", "content", "mood", "created_at", "user_id",
    ),
}

_BOOL_COLUMNS = {"is_sealed", "completed"}
_JSON_COLUMNS = {"tags"}

_SCHEMA = """
CREATE TABLE IF NOT EXISTS daily_records (
    id TEXT NOT NULL,
    date TEXT NOT NULL,
    journal TEXT DEFAULT '',
    mood TEXT,
    is_sealed INTEGER DEFAULT 0,
    completion_rate INTEGER DEFAULT 0,
    created_at TEXT,
    sealed_at TEXT,
    user_id TEXT NOT NULL,
    PRIMARY KEY (user_id, id)
);
CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    record_id TEXT NOT NULL,
    description TEXT NOT NULL,
    completed INTEGER DEFAULT 0,
    priority TEXT DEFAULT 'medium',
    tags TEXT DEFAULT '[]',
    sort_order INTEGER DEFAULT 0,
    created_at TEXT,
    completed_at TEXT,
    user_id TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_tasks_record ON tasks(user_id, record_id);
CREATE TABLE IF NOT EXISTS journal_entries (
    id TEXT PRIMARY KEY,
    record_id TEXT NOT NULL,
    content TEXT NOT NULL,
    mood TEXT,
    created_at TEXT,
    user_id TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_entries_record ON journal_entries(user_id, record_id);
"""


class RemoteStoreError(Exception):
    """Remote store failure carrying one of the DB_* codes."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class RemoteStore:
    """Interface of the authoritative, user-scoped remote store."""

    async def get_current_user_id(self) -> str | None:
        raise NotImplementedError

    async def upsert_record(self, row: dict[str, Any]) -> None:
        raise NotImplementedError

    async def upsert_children(self, table: str, rows: list[dict[str, Any]], conflict_key: str = "id") -> None:
        raise NotImplementedError

    async def delete_children_not_in(self, table: str, record_id: str, user_id: str, keep_ids: list[str]) -> None:
        raise NotImplementedError

    async def select_record(self, record_id: str, user_id: str) -> dict[str, Any] | None:
        raise NotImplementedError

    async def select_children(
        self, table: str, record_id: str, user_id: str, order_by: str, descending: bool = False
    ) -> list[dict[str, Any]]:
        raise NotImplementedError

    async def select_sealed_records(self, user_id: str) -> list[dict[str, Any]]:
        raise NotImplementedError


def _check_table(table: str) -> tuple[str, ...]:
    if table not in COLUMNS:
        raise RemoteStoreError(QUERY_ERROR, f"Unknown table: {table}")
    return COLUMNS[table]


def _encode(row: dict[str, Any], columns: tuple[str, ...]) -> list[Any]:
    values = []
    for col in columns:
        value = row.get(col)
        if col in _BOOL_COLUMNS:
            value = 1 if value else 0
        elif col in _JSON_COLUMNS:
            value = json.dumps(value if value is not None else [], ensure_ascii=False)
        values.append(value)
    return values


def _decode(row: sqlite3.Row) -> dict[str, Any]:
    d = dict(row)
    for col in _BOOL_COLUMNS & d.keys():
        d[col] = bool(d[col])
    for col in _JSON_COLUMNS & d.keys():
        d[col] = json.loads(d[col]) if d[col] else []
    return d


class SqliteRemoteStore(RemoteStore):
    """Remote store backed by a SQLite database file.

    Each call opens its own connection inside a worker thread, so one store
    can be shared by coroutines without sharing a connection across threads.
    """

    def __init__(self, db_path: Path, user_id: str | None = None) -> None:
        self.db_path = Path(db_path)
        self.user_id = user_id

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Yields a connection, commits on clean exit, rolls back on error, always closes."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path, timeout=30.0)
        except (sqlite3.Error, OSError) as e:
            raise RemoteStoreError(CONNECTION_ERROR, f"Cannot open remote store: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            conn.executescript(_SCHEMA)
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RemoteStoreError(QUERY_ERROR, str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    async def get_current_user_id(self) -> str | None:
        return self.user_id

    # ── writes ────────────────────────────────────────────────

    def _upsert(self, table: str, rows: list[dict[str, Any]], conflict_cols: tuple[str, ...]) -> None:
        columns = _check_table(table)
        for col in conflict_cols:
            if col not in columns:
                raise RemoteStoreError(QUERY_ERROR, f"Unknown conflict column: {col}")
        updates = ", ".join(f"{c} = excluded.{c}" for c in columns if c not in conflict_cols)
        sql = (
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)}) "
            f"ON CONFLICT ({', '.join(conflict_cols)}) DO UPDATE SET {updates} "
            f"WHERE {table}.user_id = excluded.user_id"
        )
        with self._connect() as conn:
            conn.executemany(sql, [_encode(r, columns) for r in rows])

    async def upsert_record(self, row: dict[str, Any]) -> None:
        await asyncio.to_thread(self._upsert, RECORDS_TABLE, [row], ("user_id", "id"))

    async def upsert_children(self, table: str, rows: list[dict[str, Any]], conflict_key: str = "id") -> None:
        if not rows:
            return
        await asyncio.to_thread(self._upsert, table, rows, (conflict_key,))

    def _delete_not_in(self, table: str, record_id: str, user_id: str, keep_ids: list[str]) -> int:
        _check_table(table)
        sql = f"DELETE FROM {table} WHERE record_id = ? AND user_id = ?"
        params: list[Any] = [record_id, user_id]
        if keep_ids:
            sql += f" AND id NOT IN ({', '.join('?' for _ in keep_ids)})"
            params.extend(keep_ids)
        with self._connect() as conn:
            return conn.execute(sql, params).rowcount

    async def delete_children_not_in(self, table: str, record_id: str, user_id: str, keep_ids: list[str]) -> None:
        removed = await asyncio.to_thread(self._delete_not_in, table, record_id, user_id, list(keep_ids))
        if removed:
            logger.debug("Removed %d orphan row(s) from %s for %s", removed, table, record_id)

    # ── reads ─────────────────────────────────────────────────

    def _select_record(self, record_id: str, user_id: str) -> dict[str, Any] | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT * FROM {RECORDS_TABLE} WHERE id = ? AND user_id = ?",
                (record_id, user_id),
            ).fetchone()
        return _decode(row) if row else None

    async def select_record(self, record_id: str, user_id: str) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._select_record, record_id, user_id)

    def _select_children(
        self, table: str, record_id: str, user_id: str, order_by: str, descending: bool
    ) -> list[dict[str, Any]]:
        columns = _check_table(table)
        if order_by not in columns:
            raise RemoteStoreError(QUERY_ERROR, f"Unknown order column: {order_by}")
        direction = "DESC" if descending else "ASC"
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM {table} WHERE record_id = ? AND user_id = ? "
                f"ORDER BY {order_by} {direction}, rowid ASC",
                (record_id, user_id),
            ).fetchall()
        return [_decode(r) for r in rows]

    async def select_children(
        self, table: str, record_id: str, user_id: str, order_by: str, descending: bool = False
    ) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._select_children, table, record_id, user_id, order_by, descending)

    def _select_sealed(self, user_id: str) -> list[dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM {RECORDS_TABLE} WHERE is_sealed = 1 AND user_id = ? ORDER BY date DESC",
                (user_id,),
            ).fetchall()
        return [_decode(r) for r in rows]

    async def select_sealed_records(self, user_id: str) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._select_sealed, user_id)
