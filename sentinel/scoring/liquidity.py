# sentinel/scoring/liquidity.py
from __future__ import annotations

import asyncio
from typing import Optional

from sentinel.constants import WEI_PER_ETH
from sentinel.core import signals as sig
from sentinel.core.models import CategoryScore, SignalResult
from sentinel.rpc.bytecode import code_size
from sentinel.scoring.base import LIQUIDITY_SIGNALS, build_category, guarded_category, settled


async def _pool_tx_count(client, pool: str) -> Optional[int]:
    """Nonce of the pool contract, or None when the pool address has no code."""
    code = await client.get_bytecode(pool)
    if not code:
        return None
    return await client.get_transaction_count(pool)


async def _with_pool(client, token: str, pool: str):
    pool_balance, pool_txs, token_balance = await asyncio.gather(
        client.get_balance(pool),
        _pool_tx_count(client, pool),
        client.get_balance(token),
        return_exceptions=True,
    )

    results = []
    if isinstance(pool_balance, BaseException):
        settled(pool_balance, "pool balance")
        results.append(SignalResult("Pool Liquidity", 0, 5, "Pool balance unavailable"))
    else:
        eth = pool_balance / WEI_PER_ETH
        results.append(SignalResult("Pool Liquidity", sig.pool_eth_points(eth), 5, f"{eth:.4f} ETH in pool"))

    if isinstance(pool_txs, BaseException):
        settled(pool_txs, "pool activity")
        results.append(SignalResult("Curve Age", 0, 5, "Pool check failed"))
    elif pool_txs is None:
        results.append(SignalResult("Curve Age", 0, 5, "Age unknown"))
    else:
        results.append(SignalResult("Curve Age", sig.pool_tx_points(pool_txs), 5, f"{pool_txs} pool transactions"))

    if isinstance(token_balance, BaseException):
        settled(token_balance, "token contract balance")
        results.append(SignalResult("Activity Level", 0, 5, "Contract balance unavailable"))
    else:
        eth = token_balance / WEI_PER_ETH
        results.append(SignalResult(
            "Activity Level", sig.contract_eth_points(eth), 5, f"{eth:.4f} ETH in contract",
        ))
    return results


async def _without_pool(client, token: str):
    supply, code, balance = await asyncio.gather(
        client.read_contract(token, "totalSupply"),
        client.get_bytecode(token),
        client.get_balance(token),
        return_exceptions=True,
    )
    supply = settled(supply, "total supply")
    code = settled(code, "bytecode")
    balance = settled(balance, "token contract balance")

    results = []
    if supply is None:
        results.append(SignalResult("Token Supply", 0, 5, "Supply unknown"))
    else:
        whole = int(supply) / WEI_PER_ETH
        points = sig.supply_points(whole)
        shown = f"{whole:,.0f}" if whole >= 1 else f"{whole:g}"
        if points == 5:
            detail = f"Supply: {shown}"
        elif points == 3:
            detail = f"Large supply: {shown}"
        elif points == 1:
            detail = f"Very large supply: {shown}"
        else:
            detail = "Supply unknown"
        results.append(SignalResult("Token Supply", points, 5, detail))

    if code:
        size = code_size(code)
        results.append(SignalResult("Code Complexity", sig.code_size_points(size), 5, f"Contract: {size} bytes"))
    else:
        results.append(SignalResult("Code Complexity", 0, 5, "No bytecode"))

    if balance is None:
        results.append(SignalResult("Contract Balance", 0, 5, "0 ETH in contract"))
    else:
        eth = balance / WEI_PER_ETH
        results.append(SignalResult(
            "Contract Balance", sig.contract_eth_points(eth), 5, f"{eth:.6f} ETH in contract",
        ))
    return results


@guarded_category(LIQUIDITY_SIGNALS)
async def score_liquidity(client, token: str, pool: Optional[str] = None) -> CategoryScore:
    """Pool depth when a pool is known, token-contract facts otherwise."""
    if pool:
        results = await _with_pool(client, token, pool)
    else:
        results = await _without_pool(client, token)
    return build_category(LIQUIDITY_SIGNALS, results)
