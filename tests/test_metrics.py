"""Tests for daybook/metrics.py and daybook/migration.py."""

from daybook.metrics import (
    MIN_JOURNAL_LENGTH,
    can_seal,
    completion_rate,
    record_mood,
    update_completion_rate,
)
from daybook.migration import migrate_legacy_journal
from daybook.models import DailyRecord, JournalEntry, Task


def _tasks(*done: bool) -> list[Task]:
    return [Task(id=f"t{i}", description=f"task {i}", completed=d, order=i) for i, d in enumerate(done)]


def _record(**kwargs) -> DailyRecord:
    kwargs.setdefault("created_at", "2026-03-01T07:00:00+00:00")
    return DailyRecord(id="2026-03-01", date="2026-03-01", **kwargs)


# ── Completion rate ───────────────────────────────────────────


def test_completion_rate_empty():
    assert completion_rate([]) == 0


def test_completion_rate_values():
    assert completion_rate(_tasks(True)) == 100
    assert completion_rate(_tasks(False, False)) == 0
    assert completion_rate(_tasks(True, False)) == 50
    assert completion_rate(_tasks(True, False, False)) == 33
    assert completion_rate(_tasks(True, True, False)) == 67


def test_completion_rate_rounds_half_up():
    # 1/8 = 12.5%
    assert completion_rate(_tasks(True, *[False] * 7)) == 13
    # 5/8 = 62.5%
    assert completion_rate(_tasks(*[True] * 5, False, False, False)) == 63


def test_update_completion_rate_writes_record():
    rec = _record(tasks=_tasks(True, False, False, False))
    assert update_completion_rate(rec) == 25
    assert rec.completion_rate == 25


# ── Mood ──────────────────────────────────────────────────────


def test_record_mood_prefers_entries():
    rec = _record(
        mood="sad",
        journal_entries=[JournalEntry(id="e", content="x", mood="excited", created_at="2026-03-01T09:00:00+00:00")],
    )
    assert record_mood(rec) == "excited"


def test_record_mood_falls_back_to_legacy():
    assert record_mood(_record(mood="neutral")) == "neutral"


def test_record_mood_entries_without_mood():
    rec = _record(
        mood="sad",
        journal_entries=[JournalEntry(id="e", content="x", created_at="2026-03-01T09:00:00+00:00")],
    )
    assert record_mood(rec) is None


# ── Seal eligibility ──────────────────────────────────────────


def test_can_seal_all_tasks_done():
    assert can_seal(_record(tasks=_tasks(True, True)))


def test_cannot_seal_open_tasks_without_writing():
    assert not can_seal(_record(tasks=_tasks(True, False)))


def test_can_seal_open_tasks_with_long_journal():
    assert can_seal(_record(tasks=_tasks(False), journal="x" * MIN_JOURNAL_LENGTH))
    assert not can_seal(_record(tasks=_tasks(False), journal="x" * (MIN_JOURNAL_LENGTH - 1)))


def test_can_seal_open_tasks_with_entry():
    entry = JournalEntry(id="e", content="short", created_at="2026-03-01T09:00:00+00:00")
    assert can_seal(_record(tasks=_tasks(False), journal_entries=[entry]))


def test_mood_alone_not_enough_with_tasks():
    assert not can_seal(_record(tasks=_tasks(False), mood="happy"))


def test_can_seal_without_tasks():
    assert not can_seal(_record())
    assert not can_seal(_record(journal="   "))
    assert can_seal(_record(journal="short"))
    assert can_seal(_record(mood="tired"))
    entry = JournalEntry(id="e", content="x", created_at="2026-03-01T09:00:00+00:00")
    assert can_seal(_record(journal_entries=[entry]))


def test_cannot_seal_sealed_record():
    assert not can_seal(_record(tasks=_tasks(True), is_sealed=True))


# ── Legacy journal migration ──────────────────────────────────


def test_migrate_legacy_journal():
    rec = _record(journal="hello", mood="happy")
    migrated = migrate_legacy_journal(rec)
    assert len(migrated.journal_entries) == 1
    entry = migrated.journal_entries[0]
    assert entry.content == "hello"
    assert entry.mood == "happy"
    assert entry.created_at == "2026-03-01T07:00:00+00:00"
    assert entry.id


def test_migrate_is_idempotent():
    once = migrate_legacy_journal(_record(journal="hello"))
    twice = migrate_legacy_journal(once)
    assert twice == once


def test_migrate_keeps_legacy_fields():
    migrated = migrate_legacy_journal(_record(journal="hello", mood="sad"))
    assert migrated.journal == "hello"
    assert migrated.mood == "sad"


def test_migrate_skips_blank_journal():
    rec = _record(journal="  \n ")
    assert migrate_legacy_journal(rec) is rec


def test_migrate_skips_record_with_entries():
    entry = JournalEntry(id="e", content="new style", created_at="2026-03-01T09:00:00+00:00")
    rec = _record(journal="old style", journal_entries=[entry])
    assert migrate_legacy_journal(rec) is rec
