# sentinel/rpc/holders.py
from __future__ import annotations

import asyncio
from typing import List

from sentinel.constants import HOLDER_LOOKBACK_BLOCKS, TOP_HOLDER_LIMIT, TRANSFER_EVENT_TOPIC, ZERO_ADDRESS
from sentinel.core.models import HolderInfo
from sentinel.utils.addr import topic_to_address
from sentinel.utils.logs import get_logger

log = get_logger("sentinel.holders")

# Cap on concurrent balanceOf reads
BALANCE_CONCURRENCY = 16


async def fetch_top_holders(client, token: str, limit: int = TOP_HOLDER_LIMIT) -> List[HolderInfo]:
    """
    Largest current holders among every recipient seen in recent Transfer logs.

    Recipients come from the last HOLDER_LOOKBACK_BLOCKS blocks, so a wallet that
    has not received tokens in that window is invisible. Returns [] on any failure.
    """
    try:
        current = await client.get_block_number()
        from_block = max(0, current - HOLDER_LOOKBACK_BLOCKS)
        logs = await client.get_logs(token, TRANSFER_EVENT_TOPIC, from_block, current)
        log.debug(f"{token}: {len(logs)} Transfer logs in blocks {from_block}..{current}")

        recipients = []
        for entry in logs:
            topics = entry["topics"]
            if len(topics) < 3:
                continue
            recipients.append(topic_to_address(topics[2]))
        holders = [a for a in dict.fromkeys(recipients) if a != ZERO_ADDRESS]
        if not holders:
            return []

        sem = asyncio.Semaphore(BALANCE_CONCURRENCY)

        async def _balance(addr: str) -> int:
            async with sem:
                return int(await client.read_contract(token, "balanceOf", [addr]))

        balances = await asyncio.gather(*[_balance(a) for a in holders], return_exceptions=True)
        supply = int(await client.read_contract(token, "totalSupply"))

        out: List[HolderInfo] = []
        for addr, bal in zip(holders, balances):
            if isinstance(bal, BaseException):
                log.debug(f"balanceOf({addr}) failed: {bal}")
                continue
            if bal <= 0:
                continue
            pct = (bal * 10000 // supply) / 100 if supply > 0 else 0.0
            out.append(HolderInfo(address=addr, balance=bal, percentage=pct))

        out.sort(key=lambda h: h.balance, reverse=True)
        return out[:limit]
    except Exception as e:
        log.error(f"Error fetching token holders for {token}: {e}")
        return []
