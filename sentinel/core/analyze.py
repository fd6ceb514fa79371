# sentinel/core/analyze.py
from __future__ import annotations

import asyncio
import os
from typing import List, Optional

from sentinel.core.models import CategoryScore, FullScore, Tier
from sentinel.core.score import compute_composite_score, get_tier
from sentinel.scoring.base import CATEGORY_ORDER
from sentinel.scoring.contract_safety import score_contract_safety
from sentinel.scoring.creator_trust import score_creator_trust
from sentinel.scoring.holder_health import score_holder_health
from sentinel.scoring.liquidity import score_liquidity
from sentinel.scoring.market_activity import score_market_activity
from sentinel.scoring.social import score_social
from sentinel.utils.clock import now_ms
from sentinel.utils.logs import get_logger

log = get_logger("sentinel.analyze")

DEFAULT_SCORER_TIMEOUT = 20.0


def scorer_timeout() -> float:
    try:
        return float(os.getenv("SCORER_TIMEOUT", DEFAULT_SCORER_TIMEOUT))
    except ValueError:
        return DEFAULT_SCORER_TIMEOUT


def zero_score(token: str, creator: str) -> FullScore:
    return FullScore(
        token_address=token,
        creator_address=creator,
        score=0,
        tier=Tier.DANGER,
        categories=[],
        timestamp=now_ms(),
        phase="full",
    )


async def _bounded(name: str, coro, timeout: float) -> Optional[CategoryScore]:
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except asyncio.TimeoutError:
        log.warning(f"[{name}] scorer timed out after {timeout}s, excluded")
    except Exception as e:
        log.error(f"[{name}] scorer failed, excluded: {e}")
    return None


async def compute_full_score(
    services,
    token: str,
    creator: Optional[str] = None,
    pool: Optional[str] = None,
    market_cap_usd: Optional[float] = None,
    use_cache: bool = True,
) -> FullScore:
    """
    Six-category score for one token. Never raises.

    Cached results (60s) are returned as-is. Creator Trust runs only when a creator
    distinct from the token is known. On-chain scorers run concurrently, each under
    SCORER_TIMEOUT; one that fails or times out is dropped and its weight
    redistributed. Market Activity is computed last from the DexScreener pair.
    """
    creator_addr = creator or token
    log.info(f"compute_full_score start token={token} creator={creator_addr}")

    try:
        # 1) Cache
        if use_cache:
            cached = await services.score_cache.get_score(token)
            if cached is not None:
                log.debug(f"score cache hit: {token}")
                return cached

        # 2) Market data + pool discovery
        pair = await services.fetch_market_data(token)
        effective_pool = pool or (pair.pair_address if pair and pair.pair_address else None)
        log.debug(f"pool={effective_pool} (hint={pool}, dex={pair.pair_address if pair else None})")

        # 3) On-chain scorers
        timeout = scorer_timeout()
        client = services.client
        jobs = []
        if creator and creator.lower() != token.lower():
            jobs.append(("creator", score_creator_trust(client, token, creator, services.creator_cache)))
        else:
            log.debug("creator unknown or equal to token, skipping Creator Trust")
        jobs.append(("holders", score_holder_health(client, token)))
        jobs.append(("contract", score_contract_safety(client, token, effective_pool, services.bytecode_cache)))
        jobs.append(("liquidity", score_liquidity(client, token, effective_pool)))
        jobs.append(("social", score_social(client, token)))

        results = await asyncio.gather(*[_bounded(name, coro, timeout) for name, coro in jobs])
        categories: List[CategoryScore] = [c for c in results if c is not None]

        # 4) Market Activity (sync, no I/O)
        categories.append(score_market_activity(pair, market_cap_usd))

        if not categories:
            return zero_score(token, creator_addr)

        categories.sort(key=lambda c: CATEGORY_ORDER.index(c.name))

        # 5) Composite
        composite = compute_composite_score(categories)
        result = FullScore(
            token_address=token,
            creator_address=creator_addr,
            score=composite,
            tier=get_tier(composite),
            categories=categories,
            timestamp=now_ms(),
            phase="full",
        )

        # 6) Cache
        await services.score_cache.set_score(token, result)
        log.info(f"compute_full_score done token={token} score={composite} tier={result.tier.value}")
        return result
    except Exception as e:
        log.error(f"Error computing full score for {token}: {e}")
        return zero_score(token, creator_addr)
