# sentinel/scoring/quick.py
from __future__ import annotations

import asyncio
from typing import Optional

from sentinel.core import signals as sig
from sentinel.core.models import QuickScore
from sentinel.core.score import get_tier
from sentinel.utils.clock import now_ms
from sentinel.utils.logs import get_logger

log = get_logger("sentinel.scoring.quick")

# Share of supply assumed when the token does not answer ERC-20 reads
UNKNOWN_HOLDINGS_PCT = 50.0


async def compute_quick_score(client, token: str, creator: Optional[str] = None) -> QuickScore:
    """
    Two-signal preview: creator activity (tx count) and how much supply the creator holds.

    Never cached and never raises. When no creator is known the token address stands in.
    """
    creator = creator or token

    try:
        tx_count = int(await client.get_transaction_count(creator))
    except Exception as e:
        log.warning(f"tx count failed for {creator}: {e}")
        tx_count = 0

    holder_pct = UNKNOWN_HOLDINGS_PCT
    try:
        balance, supply = await asyncio.gather(
            client.read_contract(token, "balanceOf", [creator]),
            client.read_contract(token, "totalSupply"),
            return_exceptions=True,
        )
        for res in (balance, supply):
            if isinstance(res, BaseException):
                raise res
        supply = int(supply)
        holder_pct = sig.supply_pct(int(balance), supply) if supply > 0 else 100.0
    except Exception as e:
        log.debug(f"{token} is not answering ERC-20 reads: {e}")

    score = sig.quick_creator_age_points(tx_count) + sig.quick_concentration_points(holder_pct)
    return QuickScore(
        token_address=token,
        score=score,
        tier=get_tier(score),
        creator_tx_count=tx_count,
        top_holder_pct=round(holder_pct, 2),
        timestamp=now_ms(),
    )
