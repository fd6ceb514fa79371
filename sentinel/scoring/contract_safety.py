# sentinel/scoring/contract_safety.py
from __future__ import annotations

import asyncio
from typing import Optional

from sentinel.constants import ACTIVITY_LOOKBACK_BLOCKS, TRANSFER_EVENT_TOPIC
from sentinel.core import signals as sig
from sentinel.core.models import CategoryScore, SignalResult
from sentinel.rpc.bytecode import code_size, get_contract_code, is_erc20_standard
from sentinel.rpc.honeypot import detect_honeypot
from sentinel.scoring.base import CONTRACT_SAFETY, build_category, guarded_category, settled


async def count_recent_transfers(client, token: str) -> int:
    current = await client.get_block_number()
    from_block = max(0, current - ACTIVITY_LOOKBACK_BLOCKS)
    logs = await client.get_logs(token, TRANSFER_EVENT_TOPIC, from_block, current)
    return len(logs)


def _tax_detail(tax: float) -> str:
    if tax > 20:
        return f"High tax: {tax:g}%"
    if tax > 10:
        return f"Moderate tax: {tax:g}%"
    if tax > 5:
        return f"Low tax: {tax:g}%"
    return f"{tax:g}% tax"


@guarded_category(CONTRACT_SAFETY)
async def score_contract_safety(client, token: str, pool: Optional[str] = None, bytecode_cache=None) -> CategoryScore:
    honeypot, code, standard, transfers = await asyncio.gather(
        detect_honeypot(client, token, pool),
        get_contract_code(client, token, bytecode_cache),
        is_erc20_standard(client, token),
        count_recent_transfers(client, token),
        return_exceptions=True,
    )
    honeypot = settled(honeypot, "honeypot simulation")
    code = settled(code, "bytecode fetch")
    standard = settled(standard, "ERC-20 check")
    transfers = settled(transfers, "transfer activity")

    results = []
    if honeypot is not None:
        results.append(SignalResult(
            "Honeypot Detection", sig.honeypot_points(honeypot.is_honeypot), 0, honeypot.detail,
        ))
        results.append(SignalResult(
            "Transfer Tax", sig.transfer_tax_points(honeypot.tax_percent), 0, _tax_detail(honeypot.tax_percent),
        ))
    else:
        results.append(SignalResult("Honeypot Detection", 0, 0, "Not checked"))
        results.append(SignalResult("Transfer Tax", 0, 0, "No tax detected"))

    results.append(SignalResult(
        "ERC-20 Standard", 5 if standard else 0, 5,
        "Implements ERC-20" if standard else "Non-standard interface",
    ))

    if code:
        results.append(SignalResult("Contract Deployed", 5, 5, f"Contract deployed ({code_size(code)} bytes)"))
    else:
        results.append(SignalResult("Contract Deployed", 0, 5, "No bytecode found"))

    if transfers is not None:
        results.append(SignalResult(
            "Contract Activity", sig.activity_points(transfers), 5, f"{transfers} recent transfers",
        ))
    else:
        results.append(SignalResult("Contract Activity", 0, 5, "No activity data"))

    return build_category(CONTRACT_SAFETY, results)
