# sentinel/core/models.py
"""
Data model for scores and alerts.

Everything here is produced once and never mutated afterwards; ``to_dict``
gives the JSON shape used by the caches, the CLI and the HTTP API.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Tier(str, Enum):
    """Ordinal risk bucket: SAFE >= 80, CAUTION >= 60, RISKY >= 40, DANGER below."""
    SAFE = "SAFE"
    CAUTION = "CAUTION"
    RISKY = "RISKY"
    DANGER = "DANGER"


class AlertType(str, Enum):
    CREATOR_DUMP = "CREATOR_DUMP"
    WHALE_EXIT = "WHALE_EXIT"
    SCORE_DROP = "SCORE_DROP"
    HONEYPOT_DETECTED = "HONEYPOT_DETECTED"


class AlertSeverity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AlertSeverity.CRITICAL: 3,
    AlertSeverity.HIGH: 2,
    AlertSeverity.MEDIUM: 1,
    AlertSeverity.INFO: 0,
}


@dataclass(frozen=True)
class SignalResult:
    name: str
    points: float
    max_points: float  # 0 for penalty-only signals
    detail: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "points": self.points,
            "max_points": self.max_points,
            "detail": self.detail,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SignalResult":
        return cls(d["name"], d["points"], d["max_points"], d["detail"])


@dataclass(frozen=True)
class CategoryScore:
    name: str
    weight: float
    raw_score: float
    max_score: float
    weighted_score: float
    tier: Tier
    signals: List[SignalResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "weight": self.weight,
            "raw_score": self.raw_score,
            "max_score": self.max_score,
            "weighted_score": self.weighted_score,
            "tier": self.tier.value,
            "signals": [s.to_dict() for s in self.signals],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CategoryScore":
        return cls(
            name=d["name"],
            weight=d["weight"],
            raw_score=d["raw_score"],
            max_score=d["max_score"],
            weighted_score=d["weighted_score"],
            tier=Tier(d["tier"]),
            signals=[SignalResult.from_dict(s) for s in d.get("signals", [])],
        )


@dataclass(frozen=True)
class FullScore:
    token_address: str
    creator_address: str
    score: int
    tier: Tier
    categories: List[CategoryScore]
    timestamp: int
    phase: str = "full"  # "quick" | "full"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token_address": self.token_address,
            "creator_address": self.creator_address,
            "score": self.score,
            "tier": self.tier.value,
            "categories": [c.to_dict() for c in self.categories],
            "timestamp": self.timestamp,
            "phase": self.phase,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FullScore":
        return cls(
            token_address=d["token_address"],
            creator_address=d["creator_address"],
            score=int(d["score"]),
            tier=Tier(d["tier"]),
            categories=[CategoryScore.from_dict(c) for c in d.get("categories", [])],
            timestamp=int(d["timestamp"]),
            phase=d.get("phase", "full"),
        )


@dataclass(frozen=True)
class QuickScore:
    token_address: str
    score: int
    tier: Tier
    creator_tx_count: int
    top_holder_pct: float
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token_address": self.token_address,
            "score": self.score,
            "tier": self.tier.value,
            "creator_tx_count": self.creator_tx_count,
            "top_holder_pct": self.top_holder_pct,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class TokenAlert:
    id: str
    type: AlertType
    severity: AlertSeverity
    token_address: str
    title: str
    message: str
    timestamp: int
    token_name: Optional[str] = None
    old_score: Optional[int] = None
    new_score: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "token_address": self.token_address,
            "title": self.title,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        for key in ("token_name", "old_score", "new_score"):
            val = getattr(self, key)
            if val is not None:
                out[key] = val
        return out


@dataclass(frozen=True)
class TransferEvent:
    """One ERC-20 Transfer log. ``value`` is the raw (undecimalized) amount."""
    token_address: str
    from_address: str
    to_address: str
    value: int
    block_number: Optional[int] = None


@dataclass(frozen=True)
class HolderInfo:
    address: str
    balance: int
    percentage: float  # 0-100


@dataclass(frozen=True)
class HoneypotResult:
    is_honeypot: bool
    tax_percent: float  # 0-100
    detail: str


@dataclass(frozen=True)
class CreatorData:
    tx_count: int
    first_tx_timestamp: int  # epoch ms
    balance: int  # wei

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tx_count": self.tx_count,
            "first_tx_timestamp": self.first_tx_timestamp,
            "balance": self.balance,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CreatorData":
        return cls(int(d["tx_count"]), int(d["first_tx_timestamp"]), int(d["balance"]))


@dataclass(frozen=True)
class DexPair:
    """Best-liquidity trading pair as reported by DexScreener."""
    chain_id: str
    pair_address: str
    base_symbol: str
    price_usd: Optional[float]
    volume_h24: float
    liquidity_usd: float
    fdv: Optional[float]
    buys_h24: int
    sells_h24: int
    price_change_h24: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chain_id": self.chain_id,
            "pair_address": self.pair_address,
            "base_symbol": self.base_symbol,
            "price_usd": self.price_usd,
            "volume_h24": self.volume_h24,
            "liquidity_usd": self.liquidity_usd,
            "fdv": self.fdv,
            "buys_h24": self.buys_h24,
            "sells_h24": self.sells_h24,
            "price_change_h24": self.price_change_h24,
        }
