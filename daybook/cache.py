"""Local cache: one JSON file per key under the workspace cache directory.

Fast and always available, possibly stale. Writes go through the atomic
writer so a crash never leaves a half-written value behind. A byte quota
models the storage capacity limit.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from daybook.fileio import dump_json, read_json, write_json_atomic


QUOTA_EXCEEDED = "STORAGE_QUOTA"
READ_ERROR = "STORAGE_READ_ERROR"
WRITE_ERROR = "STORAGE_WRITE_ERROR"
PARSE_ERROR = "STORAGE_PARSE_ERROR"
NOT_FOUND = "NOT_FOUND"

DAILY_PREFIX = "daily_"

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class CacheError(Exception):
    """Local cache failure carrying one of the STORAGE_* codes."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def daily_key(day: str) -> str:
    return f"{DAILY_PREFIX}{day}"


class FileCache:
    """Key-value cache stored as ``<directory>/<key>.json``."""

    def __init__(self, directory: Path, quota_bytes: int | None = None) -> None:
        self.directory = Path(directory)
        self.quota_bytes = quota_bytes

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise CacheError(WRITE_ERROR, f"Invalid cache key: {key!r}")
        return self.directory / f"{key}.json"

    def used_bytes(self, exclude: str | None = None) -> int:
        if not self.directory.exists():
            return 0
        total = 0
        for p in self.directory.glob("*.json"):
            if exclude is not None and p.name == f"{exclude}.json":
                continue
            total += p.stat().st_size
        return total

    def get(self, key: str) -> dict[str, Any] | list[Any] | None:
        """Return the stored value, or None if the key is absent."""
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return read_json(path)
        except json.JSONDecodeError as e:
            raise CacheError(PARSE_ERROR, f"Corrupt cache entry {key}: {e}") from e
        except OSError as e:
            raise CacheError(READ_ERROR, f"Cannot read cache entry {key}: {e}") from e

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        payload = dump_json(value)
        if self.quota_bytes is not None:
            needed = self.used_bytes(exclude=key) + len(payload.encode("utf-8"))
            if needed > self.quota_bytes:
                raise CacheError(
                    QUOTA_EXCEEDED,
                    f"Cache quota exceeded ({needed} > {self.quota_bytes} bytes)",
                )
        try:
            write_json_atomic(path, value)
        except OSError as e:
            raise CacheError(WRITE_ERROR, f"Cannot write cache entry {key}: {e}") from e

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise CacheError(WRITE_ERROR, f"Cannot remove cache entry {key}: {e}") from e

    def keys(self, prefix: str = "") -> list[str]:
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob(f"{prefix}*.json"))
