"""One-shot upgrade of the legacy single-field journal to journal entries."""

from __future__ import annotations

from dataclasses import replace

from daybook.models import DailyRecord, JournalEntry, new_id


def migrate_legacy_journal(record: DailyRecord) -> DailyRecord:
    """Turn a non-blank legacy ``journal`` into the record's only entry.

    Returns a new record when a migration happens and the input unchanged
    otherwise. Running it twice is a no-op because the second pass sees a
    non-empty ``journal_entries``.
    """
    if not record.needs_migration:
        return record

    entry = JournalEntry(
        id=new_id(),
        content=record.journal,
        mood=record.mood,
        created_at=record.created_at,
    )
    return replace(record, journal_entries=[entry])
