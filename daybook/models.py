"""Typed dataclasses for the DayBook data model.

All models use from_dict/to_dict for JSON serialization (local cache).
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.

Records, tasks and journal entries also map to the remote row shapes via
from_row/to_row. Rows use snake_case and always carry the owning user_id.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


PRIORITIES = ("high", "medium", "low")
MOODS = ("happy", "neutral", "sad", "excited", "tired")


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with microseconds."""
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


def parse_ts(value: str) -> datetime:
    """Parse an ISO timestamp for ordering; naive values are taken as UTC."""
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _mood_or_none(value: Any) -> str | None:
    return value if value in MOODS else None


def _tags_from(value: Any) -> list[str]:
    if isinstance(value, str):
        # Remote rows store tags as a JSON array
        try:
            value = json.loads(value) if value else []
        except ValueError:
            return []
    if not isinstance(value, list):
        return []
    return [str(t) for t in value]


# ── Settings ──────────────────────────────────────────────────


@dataclass
class Settings:
    timezone: str = "UTC"
    user_id: str | None = None
    cache_quota_bytes: int = 5 * 1024 * 1024
    remote_db: str = "remote.db"

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        user_id = d.get("user_id")
        return cls(
            timezone=str(d.get("timezone", "UTC")),
            user_id=str(user_id) if user_id else None,
            cache_quota_bytes=int(d.get("cache_quota_bytes", 5 * 1024 * 1024)),
            remote_db=str(d.get("remote_db", "remote.db")),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "timezone": self.timezone,
            "cache_quota_bytes": self.cache_quota_bytes,
            "remote_db": self.remote_db,
        }
        if self.user_id:
            d["user_id"] = self.user_id
        return d


# ── Tasks ─────────────────────────────────────────────────────


@dataclass
class Task:
    id: str = ""
    description: str = ""
    completed: bool = False
    priority: str = "medium"  # high, medium, low
    tags: list[str] = field(default_factory=list)
    order: int = 0
    created_at: str = ""
    completed_at: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Task:
        priority = d.get("priority", "medium")
        return cls(
            id=str(d.get("id", "")),
            description=str(d.get("description", "")),
            completed=bool(d.get("completed", False)),
            priority=priority if priority in PRIORITIES else "medium",
            tags=_tags_from(d.get("tags")),
            order=int(d.get("order", 0) or 0),
            created_at=str(d.get("createdAt", "")),
            completed_at=d.get("completedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "completed": self.completed,
            "priority": self.priority,
            "tags": list(self.tags),
            "order": self.order,
            "createdAt": self.created_at,
            "completedAt": self.completed_at,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Task:
        priority = row.get("priority", "medium")
        return cls(
            id=str(row["id"]),
            description=str(row.get("description", "")),
            completed=bool(row.get("completed", False)),
            priority=priority if priority in PRIORITIES else "medium",
            tags=_tags_from(row.get("tags")),
            order=int(row.get("sort_order", 0) or 0),
            created_at=str(row.get("created_at", "")),
            completed_at=row.get("completed_at"),
        )

    def to_row(self, record_id: str, user_id: str) -> dict[str, Any]:
        return {
            "id": self.id,
            "record_id": record_id,
            "description": self.description,
            "completed": self.completed,
            "priority": self.priority,
            "tags": list(self.tags),
            "sort_order": self.order,
            "created_at": self.created_at,
            "completed_at": self.completed_at,
            "user_id": user_id,
        }


# ── Journal ───────────────────────────────────────────────────


@dataclass
class JournalEntry:
    id: str = ""
    content: str = ""
    mood: str | None = None  # happy, neutral, sad, excited, tired
    created_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> JournalEntry:
        return cls(
            id=str(d.get("id", "")),
            content=str(d.get("content", "")),
            mood=_mood_or_none(d.get("mood")),
            created_at=str(d.get("createdAt", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "mood": self.mood,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> JournalEntry:
        return cls(
            id=str(row["id"]),
            content=str(row.get("content", "")),
            mood=_mood_or_none(row.get("mood")),
            created_at=str(row.get("created_at", "")),
        )

    def to_row(self, record_id: str, user_id: str) -> dict[str, Any]:
        return {
            "id": self.id,
            "record_id": record_id,
            "content": self.content,
            "mood": self.mood,
            "created_at": self.created_at,
            "user_id": user_id,
        }


# ── Daily record ──────────────────────────────────────────────


@dataclass
class DailyRecord:
    """One calendar day: tasks, journal entries, mood and seal state.

    ``journal`` and ``mood`` are the deprecated single-field shape kept for
    migration; ``journal_entries`` is the current shape.
    """

    id: str = ""
    date: str = ""
    tasks: list[Task] = field(default_factory=list)
    journal: str = ""
    journal_entries: list[JournalEntry] = field(default_factory=list)
    mood: str | None = None
    is_sealed: bool = False
    completion_rate: int = 0
    created_at: str = ""
    sealed_at: str | None = None

    @classmethod
    def empty(cls, day: str, created_at: str | None = None) -> DailyRecord:
        return cls(id=day, date=day, created_at=created_at or now_iso())

    @property
    def needs_migration(self) -> bool:
        """True while the day still uses only the legacy free-text journal."""
        return not self.journal_entries and bool(self.journal.strip())

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DailyRecord:
        if not d or not isinstance(d, dict):
            return cls()
        day = str(d.get("date") or d.get("id", ""))
        return cls(
            id=day,
            date=day,
            tasks=[Task.from_dict(t) for t in (d.get("tasks") or [])],
            journal=str(d.get("journal") or ""),
            journal_entries=[JournalEntry.from_dict(e) for e in (d.get("journalEntries") or [])],
            mood=_mood_or_none(d.get("mood")),
            is_sealed=bool(d.get("isSealed", False)),
            completion_rate=int(d.get("completionRate", 0) or 0),
            created_at=str(d.get("createdAt", "")),
            sealed_at=d.get("sealedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "tasks": [t.to_dict() for t in self.tasks],
            "journal": self.journal,
            "journalEntries": [e.to_dict() for e in self.journal_entries],
            "mood": self.mood,
            "isSealed": self.is_sealed,
            "completionRate": self.completion_rate,
            "createdAt": self.created_at,
            "sealedAt": self.sealed_at,
        }

    @classmethod
    def from_row(
        cls,
        row: dict[str, Any],
        tasks: list[Task] | None = None,
        journal_entries: list[JournalEntry] | None = None,
    ) -> DailyRecord:
        return cls(
            id=str(row["id"]),
            date=str(row.get("date") or row["id"]),
            tasks=list(tasks or []),
            journal=str(row.get("journal") or ""),
            journal_entries=list(journal_entries or []),
            mood=_mood_or_none(row.get("mood")),
            is_sealed=bool(row.get("is_sealed", False)),
            completion_rate=int(row.get("completion_rate", 0) or 0),
            created_at=str(row.get("created_at", "")),
            sealed_at=row.get("sealed_at"),
        )

    def to_row(self, user_id: str) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "journal": self.journal,
            "mood": self.mood,
            "is_sealed": self.is_sealed,
            "completion_rate": self.completion_rate,
            "created_at": self.created_at,
            "sealed_at": self.sealed_at,
            "user_id": user_id,
        }


# ── Archive analytics ─────────────────────────────────────────


@dataclass
class SearchQuery:
    start_date: str | None = None
    end_date: str | None = None
    mood: str | None = None
    keyword: str = ""
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SearchQuery:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            start_date=d.get("startDate"),
            end_date=d.get("endDate"),
            mood=_mood_or_none(d.get("mood")),
            keyword=str(d.get("keyword", "") or ""),
            tags=_tags_from(d.get("tags")),
        )


@dataclass
class Statistics:
    total_tasks: int = 0
    completed_tasks: int = 0
    consecutive_days: int = 0
    completion_trend: list[dict[str, Any]] = field(default_factory=list)
    mood_distribution: list[dict[str, Any]] = field(default_factory=list)
    tag_stats: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalTasks": self.total_tasks,
            "completedTasks": self.completed_tasks,
            "consecutiveDays": self.consecutive_days,
            "completionTrend": self.completion_trend,
            "moodDistribution": self.mood_distribution,
            "tagStats": self.tag_stats,
        }
