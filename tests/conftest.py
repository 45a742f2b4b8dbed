"""Shared test fixtures for DayBook tests."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
import yaml


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with settings and one cached day."""
    root = tmp_path / "workspace"
    (root / "cache").mkdir(parents=True)

    settings = {
        "timezone": "UTC",
        "user_id": "user-a",
        "cache_quota_bytes": 1024 * 1024,
        "remote_db": "remote.db",
    }
    (root / "settings.yaml").write_text(
        yaml.dump(settings, default_flow_style=False), encoding="utf-8"
    )

    # A sealed day from before journal entries existed
    legacy_day = {
        "id": "2026-02-10",
        "date": "2026-02-10",
        "tasks": [
            {
                "id": "t-paper",
                "description": "Finish paper draft",
                "completed": True,
                "priority": "high",
                "tags": ["work"],
                "order": 0,
                "createdAt": "2026-02-10T08:00:00+00:00",
                "completedAt": "2026-02-10T17:00:00+00:00",
            },
            {
                "id": "t-run",
                "description": "Evening run",
                "completed": False,
                "priority": "low",
                "tags": ["health"],
                "order": 1,
                "createdAt": "2026-02-10T08:05:00+00:00",
                "completedAt": None,
            },
        ],
        "journal": "Long day at the desk. The draft is finally done.",
        "journalEntries": [],
        "mood": "tired",
        "isSealed": True,
        "completionRate": 50,
        "createdAt": "2026-02-10T08:00:00+00:00",
        "sealedAt": "2026-02-10T22:00:00+00:00",
    }
    (root / "cache" / "daily_2026-02-10.json").write_text(
        json.dumps(legacy_day, indent=2), encoding="utf-8"
    )

    # Set env var
    os.environ["DAYBOOK_ROOT"] = str(root)
    yield root
    # Cleanup
    if "DAYBOOK_ROOT" in os.environ:
        del os.environ["DAYBOOK_ROOT"]
