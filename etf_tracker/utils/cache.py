"""TTL caches for price lookups.

Both caches share the same tiny interface, ``get(key) -> value | None`` and
``set(key, value)``, so the price adapter can be handed either one.
"""

import hashlib
import json
import threading
import time
from pathlib import Path
from typing import Any, Callable

from etf_tracker.config import Paths, SETTINGS


def _ttl_for(category: str, default_hours: float = 1.0) -> float:
    ttl_config = SETTINGS.get("cache", {}).get("ttl_hours", {})
    return float(ttl_config.get(category, default_hours)) * 3600


class MemoryCache:
    """In-process cache with per-entry expiry."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    @classmethod
    def for_category(cls, category: str) -> "MemoryCache":
        return cls(_ttl_for(category))

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at > self.ttl_seconds:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        """Store *value*; expired entries are swept on every write."""
        now = self._clock()
        with self._lock:
            self._drop_stale(now)
            self._entries[key] = (now, value)

    def _drop_stale(self, now: float) -> int:
        # Caller holds the lock
        stale = [k for k, (ts, _) in self._entries.items() if now - ts > self.ttl_seconds]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def evict_expired(self) -> int:
        """Drop every expired entry, returning how many were removed."""
        with self._lock:
            return self._drop_stale(self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class DataCache:
    """File-based JSON cache with TTL support."""

    def __init__(self, category: str = "general", ttl_seconds: float | None = None,
                 cache_dir: Path | None = None):
        self.cache_dir = (cache_dir or Paths.DATA_CACHE) / category
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else _ttl_for(category, 24)

    def _key_path(self, key: str) -> Path:
        hashed = hashlib.md5(key.encode()).hexdigest()
        return self.cache_dir / f"{hashed}.json"

    def get(self, key: str) -> Any | None:
        """Retrieve cached JSON data if not expired."""
        path = self._key_path(key)
        if not path.exists():
            return None
        if time.time() - path.stat().st_mtime > self.ttl_seconds:
            path.unlink(missing_ok=True)
            return None
        try:
            with open(path) as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError):
            path.unlink(missing_ok=True)
            return None

    def set(self, key: str, data: Any) -> None:
        """Store JSON data in cache."""
        path = self._key_path(key)
        with open(path, "w") as f:
            json.dump(data, f)
