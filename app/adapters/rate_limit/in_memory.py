"""In-memory rate limit store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: FastAPI runs sync dependencies in a thread pool, so the
  read-reset-increment sequence is done under a lock.
- Entries are never evicted on their own; call ``sweep`` periodically.
"""

from __future__ import annotations

import threading
from dataclasses import replace

from app.adapters.rate_limit.base import AbstractRateLimitStore, RateLimitEntry


class InMemoryRateLimitStore(AbstractRateLimitStore):
    """Dict-backed counter store guarded by a re-entrant lock."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._entries: dict[str, RateLimitEntry] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> RateLimitEntry | None:
        with self._lock:
            entry = self._entries.get(key)
            return replace(entry) if entry is not None else None

    def increment(self, key: str, *, window_seconds: int, now: float) -> RateLimitEntry:
        if not key:
            raise ValueError("key must be a non-empty string")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.is_expired(now):
                entry = RateLimitEntry(key=key, count=0, window_reset_at=now + window_seconds)
                self._entries[key] = entry
            entry.count += 1
            return replace(entry)

    def sweep(self, now: float) -> int:
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
