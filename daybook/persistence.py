"""Dual-write persistence: local cache first, remote store second.

Write policy: the local cache is written synchronously and is what the
caller's success depends on; the remote write is dispatched afterwards and
its failures are only logged. Read policy: the remote record wins whenever
the remote store can produce one (``prefer_remote_on_read``), otherwise the
local cache is used.

Child rows (tasks, journal entries) are reconciled in two phases: upsert
every current row, then delete the remote rows that are no longer present.
Never the reverse, so a concurrent reader never sees a record with no
children mid-write.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Coroutine

from daybook import cache as cache_mod
from daybook import remote as remote_mod
from daybook.cache import CacheError, FileCache, daily_key
from daybook.models import DailyRecord, JournalEntry, Task
from daybook.remote import (
    ENTRIES_TABLE,
    TASKS_TABLE,
    RemoteStore,
    RemoteStoreError,
    SqliteRemoteStore,
)
from daybook.workspace import cache_dir, load_settings, remote_db_path, workspace_root

logger = logging.getLogger(__name__)

NOT_FOUND = "NOT_FOUND"


def _fail(code: str, message: str) -> dict[str, Any]:
    return {"ok": False, "error": code, "message": message}


def prefer_remote_on_read(remote_result: dict[str, Any], local_result: dict[str, Any]) -> dict[str, Any]:
    """Pick the result a read should return.

    The remote record wins when there is one. Otherwise the local result is
    used as-is: a record, NOT_FOUND, or a local cache error.
    """
    if remote_result.get("ok"):
        return {**remote_result, "source": "remote"}
    if local_result.get("ok"):
        return {**local_result, "source": "local"}
    return local_result


async def reconcile_children(
    remote: RemoteStore,
    table: str,
    record_id: str,
    user_id: str,
    rows: list[dict[str, Any]],
) -> None:
    """Make the remote children of *record_id* in *table* equal *rows*.

    Phase 1 upserts every current row by id. Phase 2 then deletes rows of
    this record whose id is not in the current set. Phase 2 only starts once
    phase 1 has completed.
    """
    # Phase 1: upsert
    if rows:
        await remote.upsert_children(table, rows, conflict_key="id")
    # Phase 2: delete orphans
    await remote.delete_children_not_in(table, record_id, user_id, [r["id"] for r in rows])


class Persistence:
    """Coordinates the local cache and the remote store for daily records."""

    def __init__(self, cache: FileCache, remote: RemoteStore | None = None) -> None:
        self.cache = cache
        self.remote = remote
        self._pending: set[asyncio.Task[Any]] = set()

    # ── local ─────────────────────────────────────────────────

    def save_local(self, record: DailyRecord) -> dict[str, Any]:
        try:
            self.cache.set(daily_key(record.id), record.to_dict())
        except CacheError as e:
            logger.warning("Local save of %s failed: %s", record.id, e.message)
            return _fail(e.code, e.message)
        return {"ok": True, "id": record.id}

    def load(self, day: str) -> dict[str, Any]:
        """Load a record from the local cache only."""
        try:
            data = self.cache.get(daily_key(day))
        except CacheError as e:
            logger.warning("Local load of %s failed: %s", day, e.message)
            return _fail(e.code, e.message)
        if data is None:
            return _fail(NOT_FOUND, f"No record for {day}")
        return {"ok": True, "record": DailyRecord.from_dict(data)}

    # ── dual write ────────────────────────────────────────────

    def save(self, record: DailyRecord) -> dict[str, Any]:
        """Write locally now, then push to the remote store in the background.

        The result reflects the local write only. Inside a running event loop
        the remote write is scheduled as a task; without one it runs to
        completion before this returns.
        """
        result = self.save_local(record)
        if not result["ok"]:
            return result
        if self.remote is not None:
            # Snapshot: later in-memory mutations belong to later writes.
            snapshot = DailyRecord.from_dict(record.to_dict())
            self._dispatch(self._push_remote(snapshot))
        return result

    def _dispatch(self, coro: Coroutine[Any, Any, Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(coro)
            return
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _push_remote(self, record: DailyRecord) -> None:
        try:
            result = await self.save_remote(record)
        except Exception:
            logger.exception("Remote save of %s raised", record.id)
            return
        if result["ok"]:
            logger.debug("Remote save of %s succeeded", record.id)
        else:
            logger.warning("Remote save of %s failed: %s", record.id, result["error"])

    async def flush(self) -> None:
        """Wait for every outstanding remote write."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
            self._pending.difference_update([t for t in list(self._pending) if t.done()])

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def _user_id(self) -> str | None:
        if self.remote is None:
            return None
        return await self.remote.get_current_user_id()

    async def save_remote(self, record: DailyRecord) -> dict[str, Any]:
        """Write the record row, then reconcile tasks and journal entries."""
        if self.remote is None:
            return _fail(remote_mod.CONNECTION_ERROR, "Remote store not configured")
        user_id = await self._user_id()
        if not user_id:
            return _fail(remote_mod.AUTH_REQUIRED, "Sign-in required")

        try:
            await self.remote.upsert_record(record.to_row(user_id))
            await reconcile_children(
                self.remote, TASKS_TABLE, record.id, user_id,
                [t.to_row(record.id, user_id) for t in record.tasks],
            )
            await reconcile_children(
                self.remote, ENTRIES_TABLE, record.id, user_id,
                [e.to_row(record.id, user_id) for e in record.journal_entries],
            )
        except RemoteStoreError as e:
            logger.error("Remote save of %s failed: %s", record.id, e.message)
            return _fail(e.code, e.message)
        return {"ok": True, "id": record.id}

    # ── remote read ───────────────────────────────────────────

    async def load_remote(self, day: str) -> dict[str, Any]:
        if self.remote is None:
            return _fail(remote_mod.CONNECTION_ERROR, "Remote store not configured")
        user_id = await self._user_id()
        if not user_id:
            return _fail(remote_mod.AUTH_REQUIRED, "Sign-in required")

        try:
            row = await self.remote.select_record(day, user_id)
            if row is None:
                return _fail(NOT_FOUND, f"No remote record for {day}")
            task_rows = await self.remote.select_children(TASKS_TABLE, day, user_id, "sort_order")
            entry_rows = await self.remote.select_children(
                ENTRIES_TABLE, day, user_id, "created_at"
            )
        except RemoteStoreError as e:
            logger.error("Remote load of %s failed: %s", day, e.message)
            return _fail(e.code, e.message)

        record = DailyRecord.from_row(
            row,
            tasks=[Task.from_row(r) for r in task_rows],
            journal_entries=[JournalEntry.from_row(r) for r in entry_rows],
        )
        return {"ok": True, "record": record}

    async def load_async(self, day: str) -> dict[str, Any]:
        """Remote first; a remote hit also refreshes the local cache."""
        remote_result = await self.load_remote(day)
        if not remote_result["ok"] and remote_result["error"] != NOT_FOUND:
            logger.warning("Falling back to local cache for %s (%s)", day, remote_result["error"])
        local_result = self.load(day) if not remote_result["ok"] else {"ok": False, "error": NOT_FOUND}
        result = prefer_remote_on_read(remote_result, local_result)
        if result.get("source") == "remote":
            self.save_local(result["record"])
        return result

    async def load_archive_async(self) -> dict[str, Any]:
        """All sealed records, newest first; local cache when the remote fails."""
        remote_result = await self._load_remote_archive()
        if remote_result["ok"]:
            return {**remote_result, "source": "remote"}
        logger.warning("Loading archive from local cache (%s)", remote_result["error"])
        return {**self._load_local_archive(), "source": "local"}

    async def _load_remote_archive(self) -> dict[str, Any]:
        if self.remote is None:
            return _fail(remote_mod.CONNECTION_ERROR, "Remote store not configured")
        user_id = await self._user_id()
        if not user_id:
            return _fail(remote_mod.AUTH_REQUIRED, "Sign-in required")
        try:
            rows = await self.remote.select_sealed_records(user_id)
            records = []
            for row in rows:
                task_rows = await self.remote.select_children(TASKS_TABLE, row["id"], user_id, "sort_order")
                entry_rows = await self.remote.select_children(
                    ENTRIES_TABLE, row["id"], user_id, "created_at"
                )
                records.append(DailyRecord.from_row(
                    row,
                    tasks=[Task.from_row(r) for r in task_rows],
                    journal_entries=[JournalEntry.from_row(r) for r in entry_rows],
                ))
        except RemoteStoreError as e:
            logger.error("Remote archive load failed: %s", e.message)
            return _fail(e.code, e.message)
        return {"ok": True, "records": records}

    def _load_local_archive(self) -> dict[str, Any]:
        records = []
        for key in self.cache.keys(cache_mod.DAILY_PREFIX):
            try:
                data = self.cache.get(key)
            except CacheError as e:
                logger.warning("Skipping unreadable cache entry %s: %s", key, e.message)
                continue
            if data:
                record = DailyRecord.from_dict(data)
                if record.is_sealed:
                    records.append(record)
        records.sort(key=lambda r: r.date, reverse=True)
        return {"ok": True, "records": records}


def open_persistence(root: Path | None = None, user_id: str | None = None) -> Persistence:
    """Build a Persistence from the workspace settings."""
    if root is None:
        root = workspace_root()
    settings = load_settings(root)
    file_cache = FileCache(cache_dir(root), quota_bytes=settings.cache_quota_bytes)
    remote = SqliteRemoteStore(remote_db_path(root), user_id=user_id or settings.user_id)
    return Persistence(file_cache, remote)
