"""Task collection operations on a daily record.

Every mutation is refused (None/False/0, record untouched) once the record is
sealed, and recomputes the record's completion rate when it succeeds.
"""

from __future__ import annotations

from collections import Counter
from typing import Any

from daybook.content import is_valid_content
from daybook.metrics import update_completion_rate
from daybook.models import PRIORITIES, DailyRecord, Task, new_id, now_iso
from daybook.seal import is_mutable


def find_task(record: DailyRecord, task_id: str) -> Task | None:
    """Find a task by ID in the record."""
    for t in record.tasks:
        if t.id == task_id:
            return t
    return None


def _rerank(record: DailyRecord) -> None:
    for i, t in enumerate(record.tasks):
        t.order = i


def add_task(
    record: DailyRecord,
    description: str,
    priority: str = "medium",
    tags: list[str] | None = None,
) -> str | None:
    """Append a new open task. Returns its id, or None if rejected."""
    if not is_mutable(record):
        return None
    if not is_valid_content(description):
        return None
    if priority not in PRIORITIES:
        return None

    task = Task(
        id=new_id(),
        description=description.strip(),
        completed=False,
        priority=priority,
        tags=[str(t) for t in (tags or [])],
        order=len(record.tasks),
        created_at=now_iso(),
        completed_at=None,
    )
    record.tasks.append(task)
    update_completion_rate(record)
    return task.id


def remove_task(record: DailyRecord, task_id: str) -> bool:
    if not is_mutable(record):
        return False
    for i, t in enumerate(record.tasks):
        if t.id == task_id:
            record.tasks.pop(i)
            _rerank(record)
            update_completion_rate(record)
            return True
    return False


def toggle_task(record: DailyRecord, task_id: str) -> bool:
    """Flip completion; completed_at is stamped on the way to done, cleared back."""
    if not is_mutable(record):
        return False
    task = find_task(record, task_id)
    if task is None:
        return False
    task.completed = not task.completed
    task.completed_at = now_iso() if task.completed else None
    update_completion_rate(record)
    return True


def reorder_tasks(record: DailyRecord, new_sequence: list[str]) -> bool:
    """Rearrange tasks to follow *new_sequence*, a permutation of current ids.

    Fails without effect on a size mismatch, a duplicated id, or any id
    added or missing.
    """
    if not is_mutable(record):
        return False
    if Counter(new_sequence) != Counter(t.id for t in record.tasks):
        return False

    by_id = {t.id: t for t in record.tasks}
    record.tasks = [by_id[task_id] for task_id in new_sequence]
    _rerank(record)
    update_completion_rate(record)
    return True


def batch_toggle(record: DailyRecord, updates: list[dict[str, Any]]) -> int:
    """Set completion for many tasks in one pass. Returns how many changed.

    Unknown ids and items without a ``completed`` value are skipped. All
    updated tasks share one timestamp and the rate is recomputed once.
    """
    if not is_mutable(record):
        return 0

    now = now_iso()
    updated = 0
    for update in updates:
        task = find_task(record, str(update.get("id", "")))
        if task is None or update.get("completed") is None:
            continue
        task.completed = bool(update["completed"])
        task.completed_at = now if task.completed else None
        updated += 1

    if updated:
        update_completion_rate(record)
    return updated
