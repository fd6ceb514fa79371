# sentinel/scoring/social.py
from __future__ import annotations

import asyncio

from sentinel.core.models import CategoryScore, SignalResult
from sentinel.scoring.base import SOCIAL_SIGNALS, build_category, guarded_category


@guarded_category(SOCIAL_SIGNALS)
async def score_social(client, token: str) -> CategoryScore:
    # Social links live on the launch platform's token page, not on chain.
    links = SignalResult("Social Links", 0, 5, "Social links not checked (requires UI context)")

    name, symbol = await asyncio.gather(
        client.read_contract(token, "name"),
        client.read_contract(token, "symbol"),
        return_exceptions=True,
    )
    has_name = not isinstance(name, BaseException) and bool(name)
    has_symbol = not isinstance(symbol, BaseException) and bool(symbol)

    if has_name and has_symbol:
        metadata = SignalResult("Token Metadata", 5, 5, "Token has name and symbol")
    elif has_name or has_symbol:
        metadata = SignalResult("Token Metadata", 3, 5, "Partial metadata found")
    else:
        metadata = SignalResult("Token Metadata", 0, 5, "No metadata found")

    return build_category(SOCIAL_SIGNALS, [links, metadata])
