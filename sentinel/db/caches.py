# sentinel/db/caches.py
from __future__ import annotations

from typing import Optional

from sentinel.constants import BYTECODE_CACHE_TTL_MS, CREATOR_CACHE_TTL_MS, SCORE_CACHE_TTL_MS
from sentinel.core.models import CreatorData, FullScore
from sentinel.db.repository import TTLRepository
from sentinel.utils.clock import now_ms
from sentinel.utils.logs import get_logger

log = get_logger("sentinel.db")


class ScoreCache(TTLRepository):
    """Full scores keyed by token address, 60s TTL."""

    def __init__(self, store, ttl_ms: int = SCORE_CACHE_TTL_MS, clock=now_ms):
        super().__init__(store, "score", ttl_ms, clock)

    @staticmethod
    def _decode(raw) -> Optional[FullScore]:
        if raw is None:
            return None
        try:
            return FullScore.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            log.warning(f"[score] dropping malformed cache entry: {e}")
            return None

    async def get_score(self, token: str) -> Optional[FullScore]:
        return self._decode(await self.get(token))

    async def peek_score(self, token: str) -> Optional[FullScore]:
        return self._decode(await self.peek(token))

    async def set_score(self, token: str, score: FullScore) -> None:
        await self.set(token, score.to_dict())


class CreatorCache(TTLRepository):
    """Creator wallet facts keyed by creator address, 24h TTL."""

    def __init__(self, store, ttl_ms: int = CREATOR_CACHE_TTL_MS, clock=now_ms):
        super().__init__(store, "creator", ttl_ms, clock)

    async def get_creator(self, creator: str) -> Optional[CreatorData]:
        raw = await self.get(creator)
        if raw is None:
            return None
        try:
            return CreatorData.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            log.warning(f"[creator] dropping malformed cache entry: {e}")
            return None

    async def set_creator(self, creator: str, data: CreatorData) -> None:
        await self.set(creator, data.to_dict())


class BytecodeCache(TTLRepository):
    """Deployed bytecode (hex) keyed by contract address, 7d TTL."""

    def __init__(self, store, ttl_ms: int = BYTECODE_CACHE_TTL_MS, clock=now_ms):
        super().__init__(store, "bytecode", ttl_ms, clock)

    async def get_code(self, address: str) -> Optional[str]:
        raw = await self.get(address)
        return raw if isinstance(raw, str) else None

    async def set_code(self, address: str, code: str) -> None:
        await self.set(address, code)
