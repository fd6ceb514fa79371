# sentinel/api/dexscreener.py
from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, List, Optional

from sentinel.core.models import DexPair
from sentinel.utils.logs import get_logger
from sentinel.utils.ratelimit import http_get_json

log = get_logger("sentinel.dexscreener")

DEXSCREENER_TOKENS_URL = "https://api.dexscreener.com/latest/dex/tokens/{address}"


def _num(val: Any, default: float = 0.0) -> float:
    try:
        return float(val) if val is not None else default
    except (TypeError, ValueError):
        return default


def pair_from_api(raw: Dict[str, Any]) -> DexPair:
    txns = ((raw.get("txns") or {}).get("h24") or {})
    fdv = raw.get("fdv")
    price = raw.get("priceUsd")
    return DexPair(
        chain_id=str(raw.get("chainId") or ""),
        pair_address=str(raw.get("pairAddress") or ""),
        base_symbol=str((raw.get("baseToken") or {}).get("symbol") or ""),
        price_usd=_num(price) if price is not None else None,
        volume_h24=_num((raw.get("volume") or {}).get("h24")),
        liquidity_usd=_num((raw.get("liquidity") or {}).get("usd")),
        fdv=_num(fdv) if fdv is not None else None,
        buys_h24=int(_num(txns.get("buys"))),
        sells_h24=int(_num(txns.get("sells"))),
        price_change_h24=_num((raw.get("priceChange") or {}).get("h24")),
    )


def select_best_pair(pairs: List[Dict[str, Any]], chain_id: str = "base") -> Optional[Dict[str, Any]]:
    """Highest liquidity.usd, preferring pairs on ``chain_id`` when any exist."""
    if not pairs:
        return None
    on_chain = [p for p in pairs if p.get("chainId") == chain_id]
    candidates = on_chain or pairs
    return max(candidates, key=lambda p: _num((p.get("liquidity") or {}).get("usd")))


def _qps() -> Optional[float]:
    raw = os.getenv("DEXSCREENER_QPS", "").strip()
    try:
        return float(raw) if raw else None
    except ValueError:
        return None


async def fetch_dexscreener_data(token: str, chain_id: str = "base") -> Optional[DexPair]:
    """Best pair for ``token`` or None when unlisted or on any failure."""
    url = DEXSCREENER_TOKENS_URL.format(address=token)
    try:
        data = await asyncio.to_thread(http_get_json, "dexscreener", url, None, _qps())
        pairs = (data or {}).get("pairs") or []
        best = select_best_pair(pairs, chain_id)
        if best is None:
            log.debug(f"{token}: not listed on DexScreener")
            return None
        pair = pair_from_api(best)
        log.debug(f"{token}: pair {pair.pair_address} liq=${pair.liquidity_usd:,.0f}")
        return pair
    except Exception as e:
        log.error(f"DexScreener fetch failed for {token}: {e}")
        return None
