# sentinel/scoring/market_activity.py
from __future__ import annotations

from typing import Optional

from sentinel.core import signals as sig
from sentinel.core.models import CategoryScore, DexPair, SignalResult
from sentinel.scoring.base import MARKET_ACTIVITY, build_category, empty_category


def format_usd(n: float) -> str:
    """Compact K/M/B formatting."""
    if n >= 1_000_000_000:
        return f"{n / 1_000_000_000:.1f}B"
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 1_000:
        return f"{n / 1_000:.1f}K"
    return f"{n:.0f}"


def _from_page(market_cap_usd: Optional[float]) -> CategoryScore:
    if market_cap_usd is None or not market_cap_usd > 0:
        return empty_category(
            MARKET_ACTIVITY,
            SignalResult("Market Data", 0, MARKET_ACTIVITY.max_points, "No market data available"),
        )
    points = sig.page_market_cap_points(market_cap_usd)
    return build_category(MARKET_ACTIVITY, [
        SignalResult(
            "Market Cap (from page)", points, MARKET_ACTIVITY.max_points,
            f"${format_usd(market_cap_usd)} market cap",
        ),
    ])


def score_market_activity(pair: Optional[DexPair], market_cap_usd: Optional[float] = None) -> CategoryScore:
    """
    Market signals from a DexScreener pair. No I/O happens here.

    Without a pair, a market cap scraped from the launch page is scored on a log
    scale; without either, the category reports no data.
    """
    if pair is None:
        return _from_page(market_cap_usd)

    fdv = pair.fdv or 0
    vol = pair.volume_h24
    liq = pair.liquidity_usd
    txns = pair.buys_h24 + pair.sells_h24
    change = pair.price_change_h24

    results = [
        SignalResult(
            "Market Cap", sig.market_cap_points(fdv), 8,
            f"${format_usd(fdv)} FDV" if fdv > 0 else "No market cap data",
        ),
        SignalResult(
            "24h Volume", sig.volume_points(vol), 7,
            f"${format_usd(vol)} volume" if vol > 0 else "No volume",
        ),
        SignalResult(
            "Liquidity", sig.liquidity_usd_points(liq), 5,
            f"${format_usd(liq)} liquidity" if liq > 0 else "No liquidity",
        ),
        SignalResult(
            "24h Transactions", sig.txn_count_points(txns), 5,
            f"{pair.buys_h24} buys / {pair.sells_h24} sells",
        ),
        SignalResult(
            "Price Stability", sig.price_stability_points(change), 5,
            f"{'+' if change >= 0 else ''}{change:.1f}% (24h)",
        ),
    ]
    return build_category(MARKET_ACTIVITY, results)
