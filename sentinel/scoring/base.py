# sentinel/scoring/base.py
"""
Category declarations and the shared catch-and-degrade wrapper.

A scorer decorated with ``guarded_category(SPEC)`` always returns a
CategoryScore: any exception becomes the zero-weighted DANGER result with a
single ``Error`` signal.
"""
from __future__ import annotations

import functools

from sentinel.core.score import CategorySpec, build_category, empty_category, error_category
from sentinel.utils.logs import get_logger

log = get_logger("sentinel.scoring")

CREATOR_TRUST = CategorySpec("Creator Trust", 0.30, max_points=15, min_points=-14)
HOLDER_HEALTH = CategorySpec("Holder Health", 0.20, max_points=20, min_points=-5)
CONTRACT_SAFETY = CategorySpec("Contract Safety", 0.15, max_points=15, min_points=-15)
LIQUIDITY_SIGNALS = CategorySpec("Liquidity Signals", 0.10, max_points=15)
SOCIAL_SIGNALS = CategorySpec("Social Signals", 0.05, max_points=10)
MARKET_ACTIVITY = CategorySpec("Market Activity", 0.30, max_points=30)

CATEGORY_ORDER = [
    CREATOR_TRUST.name,
    HOLDER_HEALTH.name,
    CONTRACT_SAFETY.name,
    LIQUIDITY_SIGNALS.name,
    SOCIAL_SIGNALS.name,
    MARKET_ACTIVITY.name,
]


def guarded_category(spec: CategorySpec):
    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            try:
                return await fn(*args, **kwargs)
            except Exception as e:
                log.error(f"Error scoring {spec.name.lower()}: {e}")
                return error_category(spec, e)
        return wrapper
    return decorator


def settled(result, label: str):
    """Unwrap one asyncio.gather(return_exceptions=True) slot; None when it failed."""
    if isinstance(result, BaseException):
        log.warning(f"{label} failed: {result}")
        return None
    return result


__all__ = [
    "CategorySpec",
    "build_category",
    "empty_category",
    "guarded_category",
    "settled",
    "CATEGORY_ORDER",
    "CREATOR_TRUST",
    "HOLDER_HEALTH",
    "CONTRACT_SAFETY",
    "LIQUIDITY_SIGNALS",
    "SOCIAL_SIGNALS",
    "MARKET_ACTIVITY",
]
