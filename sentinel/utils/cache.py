# sentinel/utils/cache.py
"""
Key-value stores backing the TTL caches (score, creator, bytecode) plus the
watchlist and usage stats.

Entries are plain JSON-able dicts. TTL entries carry an absolute
``expires_at`` (epoch ms); ``delete_expired`` range-deletes every entry whose
deadline is in the past. Concurrent writers to one key are last-write-wins.
"""
from __future__ import annotations

import copy
import json
import os
from typing import Any, Dict, Optional

from sentinel.utils.logs import get_logger

log = get_logger("sentinel.cache")


class MemoryStore:
    """In-process store. Values are deep-copied in and out so callers never share state."""

    def __init__(self):
        self._data: Dict[str, Dict[str, Any]] = {}

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self._data.get(key)
        return copy.deepcopy(entry) if entry is not None else None

    async def put(self, key: str, entry: Dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(entry)
        self._persist()

    async def delete(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._persist()

    async def delete_expired(self, now_ms: int) -> int:
        """Delete every entry with ``expires_at < now_ms``. Entries without a deadline are kept."""
        stale = [
            k for k, v in self._data.items()
            if isinstance(v.get("expires_at"), (int, float)) and v["expires_at"] < now_ms
        ]
        for k in stale:
            del self._data[k]
        if stale:
            self._persist()
        return len(stale)

    def __len__(self) -> int:
        return len(self._data)

    def _persist(self) -> None:
        pass


class JsonFileStore(MemoryStore):
    """MemoryStore persisted to a JSON file after every write."""

    def __init__(self, path: str):
        super().__init__()
        self.path = path
        self._load()

    def _load(self) -> None:
        try:
            if os.path.exists(self.path):
                with open(self.path, "r") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    self._data = data
        except (json.JSONDecodeError, OSError) as e:
            log.warning(f"Cache file load error ({self.path}): {e}")
            self._data = {}

    def _persist(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self._data, f)


def open_store(path: Optional[str] = None) -> MemoryStore:
    """JsonFileStore when a path is given (or SENTINEL_CACHE_FILE is set), else MemoryStore."""
    path = path or os.getenv("SENTINEL_CACHE_FILE", "").strip()
    if path:
        log.info(f"Using JSON cache file: {path}")
        return JsonFileStore(path)
    return MemoryStore()
