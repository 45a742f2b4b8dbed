"""Per-user session context holding the current daily record.

Lifecycle: ``load_date`` initialises the record for a date, ``change_date``
replaces it, ``clear`` drops it on logout. Every successful mutation is
autosaved through the session's Persistence unless a load is in progress,
and the result of that save is kept in ``last_save``.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from daybook import journal as journal_ops
from daybook import tasks as task_ops
from daybook.metrics import can_seal, completion_rate, record_mood, update_completion_rate
from daybook.migration import migrate_legacy_journal
from daybook.models import DailyRecord, JournalEntry
from daybook.persistence import Persistence
from daybook.seal import seal_record, unseal_record

logger = logging.getLogger(__name__)


class DaySession:
    def __init__(self, persistence: Persistence, today: str | None = None) -> None:
        self.persistence = persistence
        self.today = today
        self.record: DailyRecord | None = None
        self.is_loading = False
        # Result of the most recent autosave; None until one has run
        self.last_save: dict[str, Any] | None = None
        # Held by callers across change_date and the operation that follows
        self.lock = threading.Lock()

    # ── lifecycle ─────────────────────────────────────────────

    def load_date(self, day: str) -> DailyRecord:
        """Load *day* from the local cache, or start an empty record."""
        self.today = day
        result = self.persistence.load(day)
        if result["ok"]:
            self._set_loaded(result["record"])
        else:
            if result["error"] != "NOT_FOUND":
                logger.warning("Starting %s empty: %s", day, result["error"])
            self.record = DailyRecord.empty(day)
        return self.record

    async def load_date_async(self, day: str) -> DailyRecord:
        """Remote-first load. Saves are suppressed until it finishes."""
        self.today = day
        self.is_loading = True
        self.record = DailyRecord.empty(day)
        loaded = None
        try:
            result = await self.persistence.load_async(day)
            if result["ok"]:
                loaded = result["record"]
        finally:
            self.is_loading = False
        if loaded is not None:
            self._set_loaded(loaded)
        return self.record

    def _set_loaded(self, record: DailyRecord) -> None:
        """Make *record* current, writing it back if the legacy journal was migrated.

        The write-back keeps the synthesized entry id stable across loads.
        It applies to sealed records too: it is storage, not an edit.
        """
        migrated = migrate_legacy_journal(record)
        self.record = migrated
        if migrated is not record:
            logger.info("Migrated legacy journal of %s", migrated.id)
            self.last_save = self.save()

    def change_date(self, day: str) -> DailyRecord:
        if self.today == day and self.record is not None:
            return self.record
        return self.load_date(day)

    def clear(self) -> None:
        self.record = None
        self.today = None
        self.is_loading = False

    def ensure_record(self) -> DailyRecord:
        if self.record is None:
            if self.today is None:
                raise ValueError("No date loaded; call load_date first.")
            self.record = DailyRecord.empty(self.today)
        return self.record

    def save(self) -> dict[str, Any]:
        if self.record is None:
            return {"ok": False, "error": "NOT_FOUND", "message": "No record loaded"}
        if self.is_loading:
            return {"ok": False, "error": "LOADING", "message": "Load in progress"}
        return self.persistence.save(self.record)

    def _changed(self, ok: Any) -> Any:
        """Autosave after a successful op. The save result lands in ``last_save``."""
        if ok:
            self.last_save = self.save()
        return ok

    @property
    def save_failed(self) -> bool:
        """True when the last autosave could not write the local cache."""
        result = self.last_save
        return result is not None and not result["ok"] and result["error"] != "LOADING"

    # ── read-only views ───────────────────────────────────────

    @property
    def is_sealed(self) -> bool:
        return self.record.is_sealed if self.record else False

    @property
    def task_count(self) -> int:
        return len(self.record.tasks) if self.record else 0

    @property
    def completed_count(self) -> int:
        return sum(1 for t in self.record.tasks if t.completed) if self.record else 0

    @property
    def completion_rate(self) -> int:
        return completion_rate(self.record.tasks) if self.record else 0

    @property
    def can_seal(self) -> bool:
        return can_seal(self.record) if self.record else False

    @property
    def overall_mood(self) -> str | None:
        return record_mood(self.record) if self.record else None

    @property
    def sorted_entries(self) -> list[JournalEntry]:
        if self.record is None:
            return []
        return journal_ops.sort_by_time_descending(self.record.journal_entries)

    # ── tasks ─────────────────────────────────────────────────

    def add_task(self, description: str, priority: str = "medium", tags: list[str] | None = None) -> str | None:
        return self._changed(task_ops.add_task(self.ensure_record(), description, priority, tags))

    def remove_task(self, task_id: str) -> bool:
        return self._changed(task_ops.remove_task(self.ensure_record(), task_id))

    def toggle_task(self, task_id: str) -> bool:
        return self._changed(task_ops.toggle_task(self.ensure_record(), task_id))

    def reorder_tasks(self, new_sequence: list[str]) -> bool:
        return self._changed(task_ops.reorder_tasks(self.ensure_record(), new_sequence))

    def batch_toggle(self, updates: list[dict[str, Any]]) -> int:
        return self._changed(task_ops.batch_toggle(self.ensure_record(), updates))

    # ── journal ───────────────────────────────────────────────

    def add_entry(self, content: str, mood: str | None = None) -> JournalEntry | None:
        return self._changed(journal_ops.add_entry(self.ensure_record(), content, mood))

    def edit_entry(self, entry_id: str, content: str) -> bool:
        return self._changed(journal_ops.edit_entry(self.ensure_record(), entry_id, content))

    def delete_entry(self, entry_id: str) -> bool:
        return self._changed(journal_ops.delete_entry(self.ensure_record(), entry_id))

    def update_journal(self, text: str) -> bool:
        return self._changed(journal_ops.update_journal(self.ensure_record(), text))

    def update_mood(self, mood: str | None) -> bool:
        return self._changed(journal_ops.update_mood(self.ensure_record(), mood))

    # ── seal ──────────────────────────────────────────────────

    def seal_day(self) -> bool:
        """Seal the current record if it is eligible."""
        record = self.record
        if record is None or not can_seal(record):
            return False
        sealed = seal_record(record)
        if sealed is None:
            return False
        update_completion_rate(sealed)
        self.record = sealed
        return self._changed(True)

    def unseal_day(self) -> bool:
        if self.record is None:
            return False
        opened = unseal_record(self.record)
        if opened is None:
            return False
        self.record = opened
        return self._changed(True)

    def load_and_unseal(self, record: DailyRecord) -> bool:
        """Reopen a sealed historical record and make it current."""
        opened = unseal_record(record)
        if opened is None:
            return False
        self.record = opened
        self.today = opened.date
        return self._changed(True)
