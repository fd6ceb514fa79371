# sentinel/core/signals.py
"""
Point ladders for individual signals.

Every function is pure and total: any numeric input maps to a point value.
Bands are checked top-down; the first matching band wins.
"""
from __future__ import annotations

import math
from typing import List, Sequence, Tuple

from sentinel.constants import QUICK_SCORE_WEIGHTS
from sentinel.core.score import round_half_up

Ladder = Sequence[Tuple[float, float]]


def _at_least(value: float, ladder: Ladder, default: float = 0) -> float:
    for floor, points in ladder:
        if value >= floor:
            return points
    return default


def _below(value: float, ladder: Ladder, default: float = 0) -> float:
    for ceiling, points in ladder:
        if value < ceiling:
            return points
    return default


def _positive(value: float, ladder: Ladder) -> float:
    """Like _at_least, but any positive value scores at least the last band's points."""
    if value <= 0:
        return 0
    return _at_least(value, ladder[:-1], default=ladder[-1][1])


# ---------- Creator Trust ----------

def wallet_age_points(days: float) -> float:
    return _at_least(days, ((365, 10), (180, 8), (90, 6), (30, 4), (7, 2)))


def tx_history_points(tx_count: int) -> float:
    return _at_least(tx_count, ((500, 5), (200, 4), (50, 3), (20, 2), (5, 1)))


def creator_holdings_points(pct: float) -> float:
    return _at_least(pct, ((50, -6), (30, -4), (20, -2), (10, -1)))


def funding_points(balance_eth: float) -> float:
    # dust-funded deployer wallets are a common throwaway pattern
    return _below(balance_eth, ((0.001, -8), (0.01, -4), (0.1, -2)))


# ---------- Holder Health ----------

def top_holder_points(pct: float) -> float:
    return _below(pct, ((10, 8), (20, 6), (35, 4), (50, 2)))


def top10_points(pct: float) -> float:
    return _below(pct, ((40, 7), (60, 5), (80, 3), (95, 1)))


def holder_count_points(n: int) -> float:
    return _at_least(n, ((10, 5), (7, 4), (5, 3), (3, 2), (1, 1)))


def similar_balance_count(percentages: Sequence[float]) -> int:
    """How many of the top-5 holder percentages sit within 10% of their mean."""
    top5: List[float] = list(percentages[:5])
    if not top5:
        return 0
    mean = sum(top5) / len(top5)
    if mean <= 0:
        return 0
    return sum(1 for p in top5 if abs(p - mean) / mean < 0.1)


def sybil_points(percentages: Sequence[float]) -> float:
    if len(percentages) < 3:
        return 0
    similar = similar_balance_count(percentages)
    if similar >= 4:
        return -5
    if similar == 3:
        return -2
    return 0


# ---------- Contract Safety ----------

def honeypot_points(is_honeypot: bool) -> float:
    return -12 if is_honeypot else 0


def transfer_tax_points(tax_pct: float) -> float:
    if tax_pct > 20:
        return -3
    if tax_pct > 10:
        return -2
    if tax_pct > 5:
        return -1
    return 0


def activity_points(transfers: int) -> float:
    return _at_least(transfers, ((200, 5), (100, 4), (30, 3), (10, 2), (1, 1)))


# ---------- Liquidity Signals ----------

def pool_eth_points(eth: float) -> float:
    return _at_least(eth, ((10, 5), (5, 4), (1, 3), (0.5, 2), (0.1, 1)))


def pool_tx_points(tx_count: int) -> float:
    return _at_least(tx_count, ((1000, 5), (500, 4), (100, 3), (50, 2), (10, 1)))


def contract_eth_points(eth: float) -> float:
    return _at_least(eth, ((1, 5), (0.5, 4), (0.1, 3), (0.01, 2), (0.001, 1)))


def supply_points(whole_tokens: float) -> float:
    if whole_tokens <= 0:
        return 0
    if whole_tokens <= 1e9:
        return 5
    if whole_tokens <= 1e11:
        return 3
    return 1


def code_size_points(size_bytes: int) -> float:
    return _positive(size_bytes, ((5000, 5), (3000, 4), (1000, 3), (500, 2), (0, 1)))


# ---------- Market Activity ----------

def market_cap_points(usd: float) -> float:
    return _positive(usd, (
        (1_000_000, 8), (500_000, 7), (100_000, 6), (50_000, 5),
        (10_000, 4), (5_000, 3), (1_000, 2), (0, 1),
    ))


def volume_points(usd: float) -> float:
    return _positive(usd, (
        (100_000, 7), (50_000, 6), (10_000, 5), (5_000, 4), (1_000, 3), (100, 2), (0, 1),
    ))


def liquidity_usd_points(usd: float) -> float:
    return _positive(usd, ((50_000, 5), (10_000, 4), (5_000, 3), (1_000, 2), (0, 1)))


def txn_count_points(n: int) -> float:
    return _positive(n, ((500, 5), (200, 4), (50, 3), (10, 2), (0, 1)))


def price_stability_points(change_pct: float) -> float:
    move = abs(change_pct)
    if move <= 10:
        return 5
    if move <= 25:
        return 4
    if move <= 50:
        return 3
    if move <= 75:
        return 2
    # beyond 75%: a pump still scores something, a dump scores nothing
    return 1 if change_pct > 0 else 0


def page_market_cap_points(usd: float) -> int:
    """Continuous 0..30 on a log scale; $1M and above saturates."""
    if math.isnan(usd):
        return 0
    if math.isinf(usd):
        return 30 if usd > 0 else 0
    return min(30, round_half_up(math.log10(max(1.0, usd)) / 6 * 30))


# ---------- Quick score ----------

def quick_creator_age_points(tx_count: int) -> int:
    if tx_count >= 200:
        return QUICK_SCORE_WEIGHTS["creator_age"]
    if tx_count < 5:
        return 10
    return round_half_up(10 + (tx_count - 5) / 195 * 40)


def quick_concentration_points(pct: float) -> int:
    if pct >= 80:
        return 5
    if pct <= 10:
        return QUICK_SCORE_WEIGHTS["holder_concentration"]
    return round_half_up(50 - (pct - 10) / 70 * 45)


def supply_pct(balance: int, supply: int) -> float:
    """Share of supply in percent with two decimals, using integer basis points."""
    if supply <= 0:
        return 0.0
    return (int(balance) * 10000 // int(supply)) / 100
