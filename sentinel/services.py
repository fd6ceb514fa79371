# sentinel/services.py
# Process-wide collaborators, built once at startup and passed to every scorer.
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from sentinel.api.dexscreener import fetch_dexscreener_data
from sentinel.chains import DEFAULT_CHAIN, get_chain_config, get_w3_for_chain
from sentinel.constants import CACHE_SWEEP_INTERVAL_S
from sentinel.core.models import DexPair
from sentinel.db.caches import BytecodeCache, CreatorCache, ScoreCache
from sentinel.db.stats import UsageStats
from sentinel.db.watchlist import Watchlist
from sentinel.rpc.client import ChainClient
from sentinel.utils.cache import open_store
from sentinel.utils.logs import get_logger

log = get_logger("sentinel.services")

MarketFetcher = Callable[[str], Awaitable[Optional[DexPair]]]


@dataclass
class Services:
    client: ChainClient
    score_cache: ScoreCache
    creator_cache: CreatorCache
    bytecode_cache: BytecodeCache
    watchlist: Watchlist
    stats: UsageStats
    fetch_market_data: MarketFetcher
    chain_key: str = DEFAULT_CHAIN


def build_services(chain_key: str = DEFAULT_CHAIN, cache_path: Optional[str] = None) -> Services:
    cfg = get_chain_config(chain_key)
    store = open_store(cache_path)
    dex_chain = cfg["dexscreener_id"]

    async def _market(token: str) -> Optional[DexPair]:
        return await fetch_dexscreener_data(token, dex_chain)

    return Services(
        client=ChainClient(get_w3_for_chain(chain_key)),
        score_cache=ScoreCache(store),
        creator_cache=CreatorCache(store),
        bytecode_cache=BytecodeCache(store),
        watchlist=Watchlist(store),
        stats=UsageStats(store),
        fetch_market_data=_market,
        chain_key=chain_key,
    )


async def clear_expired_caches(services: Services) -> int:
    """Range-delete expired score, creator and bytecode entries."""
    removed = 0
    for cache in (services.score_cache, services.creator_cache, services.bytecode_cache):
        removed += await cache.clear_expired()
    return removed


async def sweep_caches_forever(services: Services, interval: float = CACHE_SWEEP_INTERVAL_S) -> None:
    """Run clear_expired_caches every ``interval`` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        removed = await clear_expired_caches(services)
        if removed:
            log.info(f"Swept {removed} expired cache entries")
