# sentinel/scoring/creator_trust.py
from __future__ import annotations

import asyncio

from sentinel.constants import WEI_PER_ETH
from sentinel.core import signals as sig
from sentinel.core.models import CategoryScore, CreatorData, SignalResult
from sentinel.scoring.base import CREATOR_TRUST, build_category, guarded_category, settled
from sentinel.utils.clock import now_ms
from sentinel.utils.logs import get_logger

log = get_logger("sentinel.scoring.creator")

DAY_MS = 24 * 60 * 60 * 1000
# No cheap RPC answers "first transaction of this wallet"; age is assumed to be 30 days.
ASSUMED_WALLET_AGE_MS = 30 * DAY_MS


async def load_creator_data(client, creator: str, cache=None) -> CreatorData:
    if cache is not None:
        cached = await cache.get_creator(creator)
        if cached is not None:
            log.debug(f"creator cache hit: {creator}")
            return cached

    tx_count, balance, _block = await asyncio.gather(
        client.get_transaction_count(creator),
        client.get_balance(creator),
        client.get_block_number(),
        return_exceptions=True,
    )
    data = CreatorData(
        tx_count=settled(tx_count, "creator tx count") or 0,
        first_tx_timestamp=now_ms() - ASSUMED_WALLET_AGE_MS,
        balance=settled(balance, "creator balance") or 0,
    )
    if cache is not None:
        await cache.set_creator(creator, data)
    return data


@guarded_category(CREATOR_TRUST)
async def score_creator_trust(client, token: str, creator: str, cache=None) -> CategoryScore:
    """Wallet age, tx history, share of supply still held, and ETH on hand."""
    data = await load_creator_data(client, creator, cache)
    results = []

    age_days = max(0, (now_ms() - data.first_tx_timestamp) // DAY_MS)
    results.append(SignalResult("Wallet Age", sig.wallet_age_points(age_days), 10, f"{age_days} days old"))

    results.append(SignalResult(
        "Transaction History", sig.tx_history_points(data.tx_count), 5, f"{data.tx_count} transactions",
    ))

    balance, supply = await asyncio.gather(
        client.read_contract(token, "balanceOf", [creator]),
        client.read_contract(token, "totalSupply"),
        return_exceptions=True,
    )
    balance = settled(balance, "creator token balance")
    supply = settled(supply, "total supply")
    holdings_pct = sig.supply_pct(int(balance or 0), int(supply if supply is not None else 1))
    results.append(SignalResult(
        "Creator Holdings", sig.creator_holdings_points(holdings_pct), 0, f"{holdings_pct:.2f}% of supply",
    ))

    eth = data.balance / WEI_PER_ETH
    results.append(SignalResult("Funding Source", sig.funding_points(eth), 0, f"{eth:.4f} ETH balance"))

    return build_category(CREATOR_TRUST, results)

