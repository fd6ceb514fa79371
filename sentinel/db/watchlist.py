# sentinel/db/watchlist.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from sentinel.utils.clock import now_ms
from sentinel.utils.logs import get_logger

log = get_logger("sentinel.watchlist")

WATCHLIST_KEY = "watchlist"


class Watchlist:
    """
    Token addresses the monitor follows. Stored as one dict under a single key:
    ``{address: {"address", "label", "creator", "added_at"}}``. The optional
    creator lets the monitor score the token and attribute creator dumps.

    Writes re-raise store failures so the caller can report them; reads degrade
    to an empty list.
    """

    def __init__(self, store, clock=now_ms):
        self.store = store
        self.clock = clock

    async def _load(self) -> Dict[str, Dict[str, Any]]:
        entry = await self.store.get(WATCHLIST_KEY)
        return dict((entry or {}).get("items") or {})

    async def _save(self, items: Dict[str, Dict[str, Any]]) -> None:
        await self.store.put(WATCHLIST_KEY, {"items": items})

    async def add(self, address: str, label: Optional[str] = None,
                  creator: Optional[str] = None) -> Dict[str, Any]:
        key = address.lower()
        try:
            items = await self._load()
            items[key] = {
                "address": key,
                "label": label,
                "creator": creator.lower() if creator else None,
                "added_at": self.clock(),
            }
            await self._save(items)
            return items[key]
        except Exception as e:
            log.error(f"Failed to add {key} to watchlist: {e}")
            raise

    async def remove(self, address: str) -> bool:
        key = address.lower()
        try:
            items = await self._load()
            if items.pop(key, None) is None:
                return False
            await self._save(items)
            return True
        except Exception as e:
            log.error(f"Failed to remove {key} from watchlist: {e}")
            raise

    async def list(self) -> List[Dict[str, Any]]:
        """Newest first."""
        try:
            items = await self._load()
        except Exception as e:
            log.error(f"Failed to read watchlist: {e}")
            return []
        return sorted(items.values(), key=lambda it: it.get("added_at", 0), reverse=True)

    async def get(self, address: str) -> Optional[Dict[str, Any]]:
        try:
            return (await self._load()).get(address.lower())
        except Exception as e:
            log.error(f"Failed to read watchlist entry {address}: {e}")
            return None

    async def addresses(self) -> List[str]:
        return [it["address"] for it in await self.list()]

    async def is_watched(self, address: str) -> bool:
        try:
            return address.lower() in await self._load()
        except Exception as e:
            log.error(f"Failed to check watchlist: {e}")
            return False

    async def update_label(self, address: str, label: str) -> bool:
        key = address.lower()
        try:
            items = await self._load()
            if key not in items:
                return False
            items[key]["label"] = label
            await self._save(items)
            return True
        except Exception as e:
            log.error(f"Failed to update label for {key}: {e}")
            raise
