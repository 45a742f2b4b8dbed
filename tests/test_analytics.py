"""Tests for daybook/analytics.py: archive statistics and search."""

from daybook.analytics import (
    completion_trend,
    compute_statistics,
    consecutive_days,
    cumulative_task_count,
    mood_distribution,
    search_records,
    sorted_archive,
    tag_stats,
)
from daybook.models import DailyRecord, JournalEntry, SearchQuery, Task


def _day(
    day: str,
    done: tuple[bool, ...] = (),
    tags: tuple[list[str], ...] = (),
    moods: tuple[str | None, ...] = (),
    mood: str | None = None,
    journal: str = "",
    descriptions: tuple[str, ...] = (),
) -> DailyRecord:
    tasks = [
        Task(
            id=f"{day}-t{i}",
            description=descriptions[i] if i < len(descriptions) else f"task {i}",
            completed=d,
            tags=tags[i] if i < len(tags) else [],
            order=i,
        )
        for i, d in enumerate(done)
    ]
    entries = [
        JournalEntry(id=f"{day}-e{i}", content=f"entry {i}", mood=m, created_at=f"{day}T{10 + i}:00:00+00:00")
        for i, m in enumerate(moods)
    ]
    total = len(tasks)
    rate = (200 * sum(done) + total) // (2 * total) if total else 0
    return DailyRecord(
        id=day, date=day, tasks=tasks, journal=journal, journal_entries=entries,
        mood=mood, is_sealed=True, completion_rate=rate,
    )


# ── Statistics ────────────────────────────────────────────────


def test_mood_distribution_prefers_entries():
    records = [
        _day("2026-03-01", moods=("happy", "happy", None), mood="sad"),
        _day("2026-03-02", mood="sad"),
        _day("2026-03-03", moods=("tired",)),
    ]
    assert mood_distribution(records) == [
        {"mood": "happy", "count": 2},
        {"mood": "sad", "count": 1},
        {"mood": "tired", "count": 1},
    ]


def test_mood_distribution_empty():
    assert mood_distribution([]) == []
    assert mood_distribution([_day("2026-03-01")]) == []


def test_completion_trend_last_days_in_order():
    records = [_day(f"2026-03-{d:02d}", done=(d % 2 == 0,)) for d in range(10, 0, -1)]
    trend = completion_trend(records, days=3)
    assert trend == [
        {"date": "2026-03-08", "rate": 100},
        {"date": "2026-03-09", "rate": 0},
        {"date": "2026-03-10", "rate": 100},
    ]


def test_completion_trend_fewer_records_than_days():
    assert len(completion_trend([_day("2026-03-01")], days=7)) == 1


def test_cumulative_task_count():
    records = [_day("2026-03-01", done=(True, False)), _day("2026-03-02", done=(True, True, False))]
    assert cumulative_task_count(records) == (5, 3)


def test_tag_stats_sorted_by_total():
    records = [
        _day("2026-03-01", done=(True, False), tags=(["work"], ["home", "work"])),
        _day("2026-03-02", done=(True,), tags=(["home"],)),
        _day("2026-03-03", done=(False,), tags=(["work"],)),
    ]
    assert tag_stats(records) == [
        {"tag": "work", "total": 3, "completed": 1},
        {"tag": "home", "total": 2, "completed": 1},
    ]


def test_consecutive_days_run_ending_today():
    records = [_day("2026-03-10"), _day("2026-03-09"), _day("2026-03-08"), _day("2026-03-05")]
    assert consecutive_days(records, "2026-03-10") == 3


def test_consecutive_days_run_ending_yesterday():
    records = [_day("2026-03-09"), _day("2026-03-08")]
    assert consecutive_days(records, "2026-03-10") == 2


def test_consecutive_days_broken_streak():
    assert consecutive_days([_day("2026-03-07")], "2026-03-10") == 0


def test_consecutive_days_empty():
    assert consecutive_days([], "2026-03-10") == 0


def test_compute_statistics():
    records = [
        _day("2026-03-09", done=(True, False), tags=(["work"], []), moods=("happy",)),
        _day("2026-03-10", done=(True,), mood="neutral"),
    ]
    stats = compute_statistics(records, "2026-03-10").to_dict()
    assert stats["totalTasks"] == 3
    assert stats["completedTasks"] == 2
    assert stats["consecutiveDays"] == 2
    assert stats["completionTrend"] == [{"date": "2026-03-09", "rate": 50}, {"date": "2026-03-10", "rate": 100}]
    assert stats["moodDistribution"] == [{"mood": "happy", "count": 1}, {"mood": "neutral", "count": 1}]
    assert stats["tagStats"] == [{"tag": "work", "total": 1, "completed": 1}]


# ── Search ────────────────────────────────────────────────────


def _archive() -> list[DailyRecord]:
    return [
        _day("2026-03-01", done=(True,), tags=(["gym"],), descriptions=("Leg day",), moods=("tired",)),
        _day("2026-03-02", journal="Read a novel about the sea", mood="happy"),
        _day("2026-03-03", done=(False,), tags=(["work"],), descriptions=("Quarterly report",), moods=("sad", "happy")),
    ]


def test_search_no_criteria_returns_all():
    assert len(search_records(_archive(), SearchQuery())) == 3


def test_search_date_range_inclusive():
    result = search_records(_archive(), SearchQuery(start_date="2026-03-02", end_date="2026-03-03"))
    assert [r.date for r in result] == ["2026-03-02", "2026-03-03"]


def test_search_by_mood_uses_overall_mood():
    assert [r.date for r in search_records(_archive(), SearchQuery(mood="happy"))] == ["2026-03-02", "2026-03-03"]
    assert [r.date for r in search_records(_archive(), SearchQuery(mood="sad"))] == []


def test_search_keyword_case_insensitive():
    assert [r.date for r in search_records(_archive(), SearchQuery(keyword="NOVEL"))] == ["2026-03-02"]
    assert [r.date for r in search_records(_archive(), SearchQuery(keyword="report"))] == ["2026-03-03"]
    assert [r.date for r in search_records(_archive(), SearchQuery(keyword="entry 1"))] == ["2026-03-03"]


def test_search_blank_keyword_ignored():
    assert len(search_records(_archive(), SearchQuery(keyword="   "))) == 3


def test_search_any_tag():
    result = search_records(_archive(), SearchQuery(tags=["gym", "travel"]))
    assert [r.date for r in result] == ["2026-03-01"]


def test_sorted_archive_newest_first():
    assert [r.date for r in sorted_archive(_archive())] == ["2026-03-03", "2026-03-02", "2026-03-01"]
