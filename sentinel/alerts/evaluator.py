# sentinel/alerts/evaluator.py
"""
Turns a single Transfer into at most one alert.

Creator dumps (creator sends >= 20% of supply) outrank whale exits (any sender,
>= 5% of supply). All arithmetic is on raw integer amounts.
"""
from __future__ import annotations

from typing import Optional, Union

from sentinel.constants import CREATOR_DUMP_BPS, WHALE_EXIT_BPS
from sentinel.core.models import AlertSeverity, AlertType, TokenAlert, TransferEvent
from sentinel.utils.addr import same_address
from sentinel.utils.clock import now_ms
from sentinel.utils.logs import get_logger

log = get_logger("sentinel.alerts")

Amount = Union[int, str]


def to_int(amount: Amount) -> int:
    """Raw token amount from an int, a decimal string, or a 0x-hex string."""
    if isinstance(amount, int):
        return amount
    s = str(amount).strip()
    return int(s, 16) if s.lower().startswith("0x") else int(s)


def _bps(value: int, supply: int) -> int:
    return value * 10000 // supply


def _alert(kind: AlertType, severity: AlertSeverity, token: str, title: str, message: str) -> TokenAlert:
    ts = now_ms()
    slug = kind.value.lower().replace("_", "-")
    return TokenAlert(
        id=f"{slug}-{token}-{ts}",
        type=kind,
        severity=severity,
        token_address=token,
        title=title,
        message=message,
        timestamp=ts,
    )


async def check_creator_dump(score_cache, event: TransferEvent, value: int, supply: int) -> Optional[TokenAlert]:
    try:
        cached = await score_cache.peek_score(event.token_address)
        if cached is None:
            return None
        if not same_address(event.from_address, cached.creator_address):
            return None
        bps = _bps(value, supply)
        if bps < CREATOR_DUMP_BPS:
            return None
        return _alert(
            AlertType.CREATOR_DUMP, AlertSeverity.CRITICAL, event.token_address,
            "Creator Dumping!", f"Creator sold {bps / 100:.1f}% of total supply",
        )
    except Exception as e:
        log.error(f"Creator dump check failed: {e}")
        return None


def check_whale_exit(event: TransferEvent, value: int, supply: int) -> Optional[TokenAlert]:
    bps = _bps(value, supply)
    if bps < WHALE_EXIT_BPS:
        return None
    return _alert(
        AlertType.WHALE_EXIT, AlertSeverity.HIGH, event.token_address,
        "Large Holder Selling", f"Wallet sold {bps / 100:.1f}% of total supply",
    )


async def evaluate_transfer_event(score_cache, event: TransferEvent, total_supply: Amount) -> Optional[TokenAlert]:
    """Alert for this transfer, or None. Never raises."""
    try:
        value = to_int(event.value)
        supply = to_int(total_supply)
        if value <= 0 or supply <= 0:
            return None

        dump = await check_creator_dump(score_cache, event, value, supply)
        if dump is not None:
            return dump
        return check_whale_exit(event, value, supply)
    except Exception as e:
        log.error(f"Transfer evaluation failed for {event.token_address}: {e}")
        return None
