"""Journal entry collection operations on a daily record."""

from __future__ import annotations

from daybook.content import is_valid_content
from daybook.metrics import overall_mood
from daybook.models import MOODS, DailyRecord, JournalEntry, new_id, now_iso, parse_ts
from daybook.seal import is_mutable

__all__ = [
    "add_entry",
    "edit_entry",
    "delete_entry",
    "find_entry",
    "sort_by_time_descending",
    "overall_mood",
    "update_journal",
    "update_mood",
]


def find_entry(record: DailyRecord, entry_id: str) -> JournalEntry | None:
    for e in record.journal_entries:
        if e.id == entry_id:
            return e
    return None


def add_entry(record: DailyRecord, content: str, mood: str | None = None) -> JournalEntry | None:
    """Append a timestamped entry. Returns the new entry, or None if rejected."""
    if not is_mutable(record):
        return None
    if not is_valid_content(content):
        return None
    if mood is not None and mood not in MOODS:
        return None

    entry = JournalEntry(
        id=new_id(),
        content=content.strip(),
        mood=mood,
        created_at=now_iso(),
    )
    record.journal_entries.append(entry)
    return entry


def edit_entry(record: DailyRecord, entry_id: str, content: str) -> bool:
    """Replace an entry's content; id, mood and created_at are kept."""
    if not is_mutable(record):
        return False
    if not is_valid_content(content):
        return False
    entry = find_entry(record, entry_id)
    if entry is None:
        return False
    entry.content = content.strip()
    return True


def delete_entry(record: DailyRecord, entry_id: str) -> bool:
    if not is_mutable(record):
        return False
    for i, e in enumerate(record.journal_entries):
        if e.id == entry_id:
            record.journal_entries.pop(i)
            return True
    return False


def sort_by_time_descending(entries: list[JournalEntry]) -> list[JournalEntry]:
    """Newest first; equal timestamps keep their relative order."""
    return sorted(entries, key=lambda e: parse_ts(e.created_at), reverse=True)


# ── Legacy single-field journal ───────────────────────────────


def update_journal(record: DailyRecord, text: str) -> bool:
    if not is_mutable(record):
        return False
    record.journal = text
    return True


def update_mood(record: DailyRecord, mood: str | None) -> bool:
    if not is_mutable(record):
        return False
    if mood is not None and mood not in MOODS:
        return False
    record.mood = mood
    return True
