"""Archive analytics for DayBook.

Computes statistics over a set of daily records (normally the sealed
archive) and filters the archive by date range, mood, keyword and tags.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, timedelta
from typing import Any

from daybook.metrics import record_mood
from daybook.models import MOODS, DailyRecord, SearchQuery, Statistics


# ── Statistics ────────────────────────────────────────────────


def mood_distribution(records: list[DailyRecord]) -> list[dict[str, Any]]:
    """Count moods across records.

    Entry moods are counted when a record has journal entries; otherwise the
    legacy record mood is counted. Zero counts are omitted.
    """
    counts: Counter[str] = Counter()
    for rec in records:
        if rec.journal_entries:
            counts.update(e.mood for e in rec.journal_entries if e.mood)
        elif rec.mood:
            counts[rec.mood] += 1
    return [{"mood": m, "count": counts[m]} for m in MOODS if counts[m] > 0]


def completion_trend(records: list[DailyRecord], days: int = 7) -> list[dict[str, Any]]:
    """The last *days* records in date order, with their completion rate."""
    ordered = sorted(records, key=lambda r: r.date)
    recent = ordered[-days:] if days > 0 else []
    return [{"date": r.date, "rate": r.completion_rate} for r in recent]


def cumulative_task_count(records: list[DailyRecord]) -> tuple[int, int]:
    """(total, completed) task counts across all records."""
    total = 0
    completed = 0
    for rec in records:
        total += len(rec.tasks)
        completed += sum(1 for t in rec.tasks if t.completed)
    return total, completed


def tag_stats(records: list[DailyRecord]) -> list[dict[str, Any]]:
    totals: dict[str, int] = {}
    done: dict[str, int] = {}
    for rec in records:
        for task in rec.tasks:
            for tag in task.tags:
                totals[tag] = totals.get(tag, 0) + 1
                if task.completed:
                    done[tag] = done.get(tag, 0) + 1
    stats = [{"tag": t, "total": n, "completed": done.get(t, 0)} for t, n in totals.items()]
    stats.sort(key=lambda s: s["total"], reverse=True)
    return stats


def consecutive_days(records: list[DailyRecord], today: str) -> int:
    """Length of the run of consecutive dates ending at the latest record.

    Returns 0 when the latest record is older than yesterday.
    """
    dates = sorted({date.fromisoformat(r.date) for r in records if r.date}, reverse=True)
    if not dates:
        return 0
    if (date.fromisoformat(today) - dates[0]).days > 1:
        return 0

    streak = 1
    for newer, older in zip(dates, dates[1:]):
        if newer - older == timedelta(days=1):
            streak += 1
        else:
            break
    return streak


def compute_statistics(records: list[DailyRecord], today: str) -> Statistics:
    total, completed = cumulative_task_count(records)
    return Statistics(
        total_tasks=total,
        completed_tasks=completed,
        consecutive_days=consecutive_days(records, today),
        completion_trend=completion_trend(records, 30),
        mood_distribution=mood_distribution(records),
        tag_stats=tag_stats(records),
    )


# ── Search ────────────────────────────────────────────────────


def _matches_keyword(rec: DailyRecord, keyword: str) -> bool:
    if keyword in rec.journal.lower():
        return True
    if any(keyword in e.content.lower() for e in rec.journal_entries):
        return True
    return any(keyword in t.description.lower() for t in rec.tasks)


def search_records(records: list[DailyRecord], query: SearchQuery) -> list[DailyRecord]:
    """Filter records by every criterion set on *query*; order is preserved."""
    keyword = query.keyword.strip().lower()
    wanted_tags = set(query.tags)
    results = []
    for rec in records:
        if query.start_date and rec.date < query.start_date:
            continue
        if query.end_date and rec.date > query.end_date:
            continue
        if query.mood and record_mood(rec) != query.mood:
            continue
        if keyword and not _matches_keyword(rec, keyword):
            continue
        if wanted_tags and not wanted_tags & {tag for t in rec.tasks for tag in t.tags}:
            continue
        results.append(rec)
    return results


def sorted_archive(records: list[DailyRecord]) -> list[DailyRecord]:
    """Records newest first."""
    return sorted(records, key=lambda r: r.date, reverse=True)
