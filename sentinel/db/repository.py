# sentinel/db/repository.py
"""
Shared TTL logic for the keyed caches.

Entries are stored as ``{"value": <json>, "expires_at": <epoch ms>}`` under
``"<namespace>:<lower-cased key>"``. A read past the deadline is a miss. Store
failures never escape: reads degrade to a miss and writes to a no-op.
"""
from __future__ import annotations

from typing import Any, Callable, Optional

from sentinel.utils.clock import now_ms
from sentinel.utils.logs import get_logger

log = get_logger("sentinel.db")


class TTLRepository:
    def __init__(self, store, namespace: str, ttl_ms: int, clock: Callable[[], int] = now_ms):
        self.store = store
        self.namespace = namespace
        self.ttl_ms = int(ttl_ms)
        self.clock = clock

    def key(self, raw: str) -> str:
        return f"{self.namespace}:{raw.lower()}"

    async def _read(self, raw_key: str, evict: bool) -> Optional[Any]:
        key = self.key(raw_key)
        try:
            entry = await self.store.get(key)
            if not entry:
                return None
            if self.clock() > entry.get("expires_at", 0):
                if evict:
                    await self.store.delete(key)
                return None
            return entry.get("value")
        except Exception as e:
            log.error(f"[{self.namespace}] cache read failed for {key}: {e}")
            return None

    async def get(self, raw_key: str) -> Optional[Any]:
        """Value if present and fresh; an expired entry is evicted and reported absent."""
        return await self._read(raw_key, evict=True)

    async def peek(self, raw_key: str) -> Optional[Any]:
        """Like get(), but never writes to the store."""
        return await self._read(raw_key, evict=False)

    async def set(self, raw_key: str, value: Any) -> None:
        key = self.key(raw_key)
        try:
            await self.store.put(key, {"value": value, "expires_at": self.clock() + self.ttl_ms})
        except Exception as e:
            log.error(f"[{self.namespace}] cache write failed for {key}: {e}")

    async def clear_expired(self) -> int:
        try:
            removed = await self.store.delete_expired(self.clock())
            if removed:
                log.debug(f"[{self.namespace}] cleared {removed} expired entries")
            return removed
        except Exception as e:
            log.error(f"[{self.namespace}] clearing expired entries failed: {e}")
            return 0
