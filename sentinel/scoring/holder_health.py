# sentinel/scoring/holder_health.py
from __future__ import annotations

from sentinel.core import signals as sig
from sentinel.core.models import CategoryScore, SignalResult
from sentinel.rpc.holders import fetch_top_holders
from sentinel.scoring.base import HOLDER_HEALTH, build_category, empty_category, guarded_category


@guarded_category(HOLDER_HEALTH)
async def score_holder_health(client, token: str) -> CategoryScore:
    holders = await fetch_top_holders(client, token, 10)
    if not holders:
        return empty_category(
            HOLDER_HEALTH,
            SignalResult("Data Availability", 0, HOLDER_HEALTH.max_points, "No holder data available"),
        )

    pcts = [h.percentage for h in holders]
    top_pct = pcts[0] or 100.0
    top10_pct = sum(pcts)
    sybil = sig.sybil_points(pcts)

    results = [
        SignalResult(
            "Top Holder Concentration", sig.top_holder_points(top_pct), 8,
            f"{top_pct:.2f}% held by largest wallet",
        ),
        SignalResult(
            "Top 10 Distribution", sig.top10_points(top10_pct), 7,
            f"{top10_pct:.2f}% held by top 10",
        ),
        SignalResult(
            "Holder Count", sig.holder_count_points(len(holders)), 5,
            f"{len(holders)} unique holders detected",
        ),
        SignalResult(
            "Sybil Detection", sybil, 0,
            "Suspicious similar balances detected" if sybil < 0 else "No sybil pattern detected",
        ),
    ]
    return build_category(HOLDER_HEALTH, results)
