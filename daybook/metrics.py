"""Derived metrics for a daily record: completion rate, mood, seal eligibility."""

from __future__ import annotations

from daybook.models import DailyRecord, JournalEntry, Task, parse_ts

MIN_JOURNAL_LENGTH = 50


def completion_rate(tasks: list[Task]) -> int:
    """Percentage of completed tasks, 0-100, rounding halves up. 0 if empty."""
    total = len(tasks)
    if total == 0:
        return 0
    done = sum(1 for t in tasks if t.completed)
    # floor(100 * done / total + 0.5) in integer arithmetic
    return (200 * done + total) // (2 * total)


def update_completion_rate(record: DailyRecord) -> int:
    record.completion_rate = completion_rate(record.tasks)
    return record.completion_rate


def overall_mood(entries: list[JournalEntry]) -> str | None:
    """Mood of the most recent entry that has one, or None."""
    ascending = sorted(entries, key=lambda e: parse_ts(e.created_at))
    for entry in reversed(ascending):
        if entry.mood is not None:
            return entry.mood
    return None


def record_mood(record: DailyRecord) -> str | None:
    """Overall mood from journal entries, falling back to the legacy field."""
    if record.journal_entries:
        return overall_mood(record.journal_entries)
    return record.mood


def can_seal(record: DailyRecord) -> bool:
    """Whether the day has enough in it to be sealed.

    With tasks: all done, or a legacy journal of MIN_JOURNAL_LENGTH chars,
    or at least one journal entry. Without tasks: any legacy journal text,
    a legacy mood, or at least one journal entry.
    """
    if record.is_sealed:
        return False

    has_entries = len(record.journal_entries) > 0
    if record.tasks:
        all_done = all(t.completed for t in record.tasks)
        return all_done or len(record.journal) >= MIN_JOURNAL_LENGTH or has_entries
    return bool(record.journal.strip()) or record.mood is not None or has_entries
