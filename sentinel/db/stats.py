# sentinel/db/stats.py
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict

from sentinel.utils.clock import now_ms, utc_date
from sentinel.utils.logs import get_logger

log = get_logger("sentinel.stats")

STATS_KEY = "daily_stats"


@dataclass
class DailyStats:
    tokens_scanned_today: int
    rugs_detected: int
    last_scan_timestamp: int
    current_date: str  # YYYY-MM-DD (UTC)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class UsageStats:
    """Per-day counters. A new UTC date starts from zero."""

    def __init__(self, store, clock: Callable[[], int] = now_ms, today: Callable[[], str] = utc_date):
        self.store = store
        self.clock = clock
        self.today = today

    def _fresh(self) -> DailyStats:
        return DailyStats(0, 0, 0, self.today())

    async def _load(self) -> DailyStats:
        try:
            raw = await self.store.get(STATS_KEY)
            if not raw:
                return self._fresh()
            stats = DailyStats(
                tokens_scanned_today=int(raw.get("tokens_scanned_today", 0)),
                rugs_detected=int(raw.get("rugs_detected", 0)),
                last_scan_timestamp=int(raw.get("last_scan_timestamp", 0)),
                current_date=str(raw.get("current_date", "")),
            )
        except Exception as e:
            log.error(f"Failed to load stats: {e}")
            return self._fresh()
        if stats.current_date != self.today():
            return self._fresh()
        return stats

    async def _save(self, stats: DailyStats) -> None:
        try:
            await self.store.put(STATS_KEY, stats.to_dict())
        except Exception as e:
            log.error(f"Failed to save stats: {e}")

    async def increment_tokens_scanned(self, count: int = 1) -> None:
        stats = await self._load()
        stats.tokens_scanned_today += count
        stats.last_scan_timestamp = self.clock()
        await self._save(stats)

    async def increment_rugs_detected(self, count: int = 1) -> None:
        stats = await self._load()
        stats.rugs_detected += count
        await self._save(stats)

    async def get_stats(self) -> DailyStats:
        return await self._load()
