"""Workspace root, settings, timezone and path helpers for DayBook."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from daybook.fileio import read_yaml, write_yaml_atomic
from daybook.models import Settings


def workspace_root() -> Path:
    """Get the workspace root directory (holds settings.yaml, cache/ and the remote db)."""
    return Path(
        os.environ.get("DAYBOOK_ROOT", str(Path.home() / "daybook"))
    ).expanduser().resolve()


def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "settings.yaml"


def load_settings(root: Path | None = None) -> Settings:
    """Load settings.yaml into a Settings model; defaults if missing."""
    return Settings.from_dict(read_yaml(settings_path(root)))


def save_settings(settings: Settings, root: Path | None = None) -> None:
    write_yaml_atomic(settings_path(root), settings.to_dict())


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get user's timezone from settings.yaml, defaulting to UTC."""
    try:
        return ZoneInfo(load_settings(root).timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def today_str(root: Path | None = None) -> str:
    """Get today's date string (YYYY-MM-DD) in user's timezone."""
    tz = get_user_timezone(root)
    return datetime.now(tz).date().isoformat()


def now_local(root: Path | None = None) -> datetime:
    """Get current datetime in user's timezone."""
    tz = get_user_timezone(root)
    return datetime.now(tz)


# ── Path helpers ──────────────────────────────────────────────

def cache_dir(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "cache"


def remote_db_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / load_settings(root).remote_db
