"""Tests for daybook/journal.py: journal entry collection."""

from unittest.mock import patch

from daybook.journal import (
    add_entry,
    delete_entry,
    edit_entry,
    find_entry,
    overall_mood,
    sort_by_time_descending,
    update_journal,
    update_mood,
)
from daybook.models import DailyRecord, JournalEntry
from daybook.seal import seal_record


def _record() -> DailyRecord:
    return DailyRecord.empty("2026-03-01", created_at="2026-03-01T00:00:00+00:00")


def _entry(eid: str, created_at: str, mood: str | None = None) -> JournalEntry:
    return JournalEntry(id=eid, content=f"entry {eid}", mood=mood, created_at=created_at)


def test_add_entry_trims_and_stamps():
    rec = _record()
    with patch("daybook.journal.now_iso", return_value="2026-03-01T09:30:00+00:00"):
        entry = add_entry(rec, "  <p>Morning pages</p>  ", "happy")
    assert entry is not None
    assert entry.content == "<p>Morning pages</p>"
    assert entry.mood == "happy"
    assert entry.created_at == "2026-03-01T09:30:00+00:00"
    assert rec.journal_entries == [entry]


def test_add_entry_without_mood():
    rec = _record()
    assert add_entry(rec, "Just text").mood is None


def test_add_entry_rejects_empty_content():
    rec = _record()
    assert add_entry(rec, "   ") is None
    assert add_entry(rec, "<p><br></p>") is None
    assert rec.journal_entries == []


def test_add_entry_rejects_unknown_mood():
    rec = _record()
    assert add_entry(rec, "text", "furious") is None


def test_edit_entry_preserves_identity():
    rec = _record()
    entry = add_entry(rec, "first draft", "sad")
    created = entry.created_at
    assert edit_entry(rec, entry.id, "  second draft ")
    edited = find_entry(rec, entry.id)
    assert edited.content == "second draft"
    assert edited.mood == "sad"
    assert edited.created_at == created


def test_edit_entry_rejects_invalid_content():
    rec = _record()
    entry = add_entry(rec, "keep me")
    assert not edit_entry(rec, entry.id, "")
    assert find_entry(rec, entry.id).content == "keep me"


def test_edit_unknown_entry():
    rec = _record()
    assert not edit_entry(rec, "missing", "text")


def test_delete_entry():
    rec = _record()
    a = add_entry(rec, "a")
    b = add_entry(rec, "b")
    assert delete_entry(rec, a.id)
    assert [e.id for e in rec.journal_entries] == [b.id]
    assert not delete_entry(rec, a.id)


def test_sort_by_time_descending_is_stable_and_pure():
    entries = [
        _entry("a", "2026-03-01T08:00:00+00:00"),
        _entry("b", "2026-03-01T10:00:00+00:00"),
        _entry("c", "2026-03-01T08:00:00+00:00"),
        _entry("d", "2026-03-01T09:00:00+00:00"),
    ]
    original = list(entries)
    result = sort_by_time_descending(entries)
    assert [e.id for e in result] == ["b", "d", "a", "c"]
    assert entries == original


def test_overall_mood_latest_with_mood():
    entries = [
        _entry("a", "2026-03-01T08:00:00+00:00", "happy"),
        _entry("b", "2026-03-01T12:00:00+00:00", None),
        _entry("c", "2026-03-01T10:00:00+00:00", "tired"),
    ]
    assert overall_mood(entries) == "tired"


def test_overall_mood_none():
    assert overall_mood([]) is None
    assert overall_mood([_entry("a", "2026-03-01T08:00:00+00:00")]) is None


def test_update_legacy_fields():
    rec = _record()
    assert update_journal(rec, "free text")
    assert update_mood(rec, "neutral")
    assert (rec.journal, rec.mood) == ("free text", "neutral")
    assert not update_mood(rec, "bogus")
    assert update_mood(rec, None)
    assert rec.mood is None


def test_sealed_record_refuses_every_journal_operation():
    rec = _record()
    entry = add_entry(rec, "written before sealing", "happy")
    sealed = seal_record(rec)
    before = sealed.to_dict()

    assert add_entry(sealed, "late thought") is None
    assert not edit_entry(sealed, entry.id, "rewrite history")
    assert not delete_entry(sealed, entry.id)
    assert not update_journal(sealed, "legacy")
    assert not update_mood(sealed, "sad")
    assert sealed.to_dict() == before
