from __future__ import annotations

import asyncio
import logging
import os
import secrets
import threading
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Iterator

from fastapi import Body, Depends, FastAPI, HTTPException, Query, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from daybook import (
    DaySession,
    SearchQuery,
    compute_statistics,
    find_entry,
    find_task,
    is_valid_content,
    open_persistence,
    search_records,
    sorted_archive,
    today_str,
    workspace_root,
)
from daybook.cache import QUOTA_EXCEEDED

logger = logging.getLogger(__name__)

app = FastAPI(title="DayBook", version="0.1.0")

security = HTTPBasic(auto_error=False)

# (workspace root, username) -> DaySession
app.state.sessions = {}
_sessions_lock = threading.Lock()


# ── Auth ──────────────────────────────────────────────────────


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("DAYBOOK_USERNAME", "")
    expected_password = os.environ.get("DAYBOOK_PASSWORD", "")

    if credentials is None:
        if not expected_username or not expected_password:
            return "guest"
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    if not expected_username or not expected_password:
        return "guest"

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


# ── Session helpers ───────────────────────────────────────────


def _get_session(username: str) -> DaySession:
    root: Path = workspace_root()
    key = (str(root), username)
    with _sessions_lock:
        session = app.state.sessions.get(key)
        if session is None:
            # Guests write under the user_id from settings.yaml, if any
            user_id = None if username == "guest" else username
            session = DaySession(open_persistence(root, user_id=user_id))
            app.state.sessions[key] = session
            logger.info("Opened session for %s under %s", username, root)
    return session


@contextmanager
def _session_for(day: str, username: str) -> Iterator[DaySession]:
    """The user's session switched to *day*, held exclusively until the block exits."""
    _check_date(day)
    session = _get_session(username)
    with session.lock:
        session.change_date(day)
        yield session


def _check_date(day: str) -> None:
    try:
        date.fromisoformat(day)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date: {day}")


def _reject_if_sealed(session: DaySession) -> None:
    if session.is_sealed:
        raise HTTPException(status_code=409, detail=f"Day {session.today} is sealed")


def _check_saved(session: DaySession) -> None:
    """Raise when the last autosave did not reach the local cache."""
    if not session.save_failed:
        return
    result = session.last_save
    code = 507 if result["error"] == QUOTA_EXCEEDED else 500
    raise HTTPException(status_code=code, detail=f"{result['error']}: {result['message']}")


def _day_payload(session: DaySession) -> dict[str, Any]:
    record = session.ensure_record()
    return {
        "record": record.to_dict(),
        "entries": [e.to_dict() for e in session.sorted_entries],
        "taskCount": session.task_count,
        "completedCount": session.completed_count,
        "completionRate": session.completion_rate,
        "overallMood": session.overall_mood,
        "canSeal": session.can_seal,
    }


# ── Day ───────────────────────────────────────────────────────


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/api/day/{day}")
async def api_get_day(day: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Load a day remote-first and return it with its derived values."""
    _check_date(day)
    session = _get_session(username)
    await asyncio.to_thread(session.lock.acquire)
    try:
        await session.load_date_async(day)
        # A migrated legacy day was written back; let the remote copy land too
        await session.persistence.flush()
        return _day_payload(session)
    finally:
        session.lock.release()


# ── Tasks ─────────────────────────────────────────────────────


@app.post("/api/day/{day}/tasks")
def api_add_task(day: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    tags = payload.get("tags", [])
    if tags is None:
        tags = []
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise HTTPException(status_code=400, detail="tags must be a list of strings")
    with _session_for(day, username) as session:
        _reject_if_sealed(session)
        task_id = session.add_task(
            str(payload.get("description", "")),
            priority=payload.get("priority", "medium"),
            tags=tags,
        )
        if task_id is None:
            raise HTTPException(status_code=400, detail="Invalid task")
        _check_saved(session)
        return {"ok": True, "taskId": task_id, **_day_payload(session)}


@app.delete("/api/day/{day}/tasks/{task_id}")
def api_remove_task(day: str, task_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    with _session_for(day, username) as session:
        _reject_if_sealed(session)
        if not session.remove_task(task_id):
            raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
        _check_saved(session)
        return {"ok": True, **_day_payload(session)}


@app.post("/api/day/{day}/tasks/{task_id}/toggle")
def api_toggle_task(day: str, task_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    with _session_for(day, username) as session:
        _reject_if_sealed(session)
        if not session.toggle_task(task_id):
            raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
        _check_saved(session)
        task = find_task(session.ensure_record(), task_id)
        return {"ok": True, "task": task.to_dict() if task else None, **_day_payload(session)}


@app.put("/api/day/{day}/tasks/order")
def api_reorder_tasks(day: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    with _session_for(day, username) as session:
        _reject_if_sealed(session)
        ids = payload.get("ids")
        if not isinstance(ids, list) or not session.reorder_tasks([str(i) for i in ids]):
            raise HTTPException(status_code=400, detail="ids must be a permutation of the day's task ids")
        _check_saved(session)
        return {"ok": True, **_day_payload(session)}


@app.post("/api/day/{day}/tasks/batch")
def api_batch_toggle(day: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    with _session_for(day, username) as session:
        _reject_if_sealed(session)
        updates = payload.get("updates")
        if not isinstance(updates, list):
            raise HTTPException(status_code=400, detail="Missing updates")
        updated = session.batch_toggle([u for u in updates if isinstance(u, dict)])
        if updated:
            _check_saved(session)
        return {"ok": True, "updated": updated, **_day_payload(session)}


# ── Journal entries ───────────────────────────────────────────


@app.post("/api/day/{day}/entries")
def api_add_entry(day: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    with _session_for(day, username) as session:
        _reject_if_sealed(session)
        entry = session.add_entry(payload.get("content", ""), mood=payload.get("mood"))
        if entry is None:
            raise HTTPException(status_code=400, detail="Invalid entry")
        _check_saved(session)
        return {"ok": True, "entry": entry.to_dict(), **_day_payload(session)}


@app.put("/api/day/{day}/entries/{entry_id}")
def api_edit_entry(day: str, entry_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    with _session_for(day, username) as session:
        _reject_if_sealed(session)
        if find_entry(session.ensure_record(), entry_id) is None:
            raise HTTPException(status_code=404, detail=f"Entry not found: {entry_id}")
        content = payload.get("content", "")
        if not is_valid_content(content) or not session.edit_entry(entry_id, content):
            raise HTTPException(status_code=400, detail="Invalid entry content")
        _check_saved(session)
        return {"ok": True, **_day_payload(session)}


@app.delete("/api/day/{day}/entries/{entry_id}")
def api_delete_entry(day: str, entry_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    with _session_for(day, username) as session:
        _reject_if_sealed(session)
        if not session.delete_entry(entry_id):
            raise HTTPException(status_code=404, detail=f"Entry not found: {entry_id}")
        _check_saved(session)
        return {"ok": True, **_day_payload(session)}


# ── Seal ──────────────────────────────────────────────────────


@app.post("/api/day/{day}/seal")
def api_seal_day(day: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    with _session_for(day, username) as session:
        if not session.seal_day():
            raise HTTPException(status_code=409, detail=f"Day {day} cannot be sealed")
        _check_saved(session)
        return {"ok": True, **_day_payload(session)}


@app.post("/api/day/{day}/unseal")
def api_unseal_day(day: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    with _session_for(day, username) as session:
        if not session.unseal_day():
            raise HTTPException(status_code=409, detail=f"Day {day} is not sealed")
        _check_saved(session)
        return {"ok": True, **_day_payload(session)}



# ── Archive ───────────────────────────────────────────────────


@app.get("/api/archive")
async def api_archive(
    start_date: str | None = None,
    end_date: str | None = None,
    mood: str | None = None,
    keyword: str = "",
    tag: list[str] | None = Query(default=None),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Sealed days, newest first, filtered by the query parameters."""
    session = _get_session(username)
    result = await session.persistence.load_archive_async()
    query = SearchQuery.from_dict({
        "startDate": start_date,
        "endDate": end_date,
        "mood": mood,
        "keyword": keyword,
        "tags": tag or [],
    })
    records = sorted_archive(search_records(result["records"], query))
    return {"records": [r.to_dict() for r in records], "source": result["source"]}


@app.get("/api/stats")
async def api_stats(username: str = Depends(get_current_user)) -> dict[str, Any]:
    session = _get_session(username)
    result = await session.persistence.load_archive_async()
    return compute_statistics(result["records"], today_str()).to_dict()
