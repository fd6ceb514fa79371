# tests/conftest.py
"""
Shared fixtures: an in-memory chain double, stores and a Services bundle.
"""
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from sentinel.core.models import CategoryScore, DexPair, FullScore, SignalResult, Tier
from sentinel.db.caches import BytecodeCache, CreatorCache, ScoreCache
from sentinel.db.stats import UsageStats
from sentinel.db.watchlist import Watchlist
from sentinel.rpc.client import ContractReadError
from sentinel.services import Services
from sentinel.utils.cache import MemoryStore

TOKEN = "0x" + "aa" * 20
CREATOR = "0x" + "cc" * 20
POOL = "0x" + "bb" * 20
WHALE = "0x" + "dd" * 20
ONE_ETH = 10 ** 18


def topic(address: str) -> str:
    return "0x" + address[2:].lower().rjust(64, "0")


def transfer_log(from_addr: str, to_addr: str, value: int, token: str = TOKEN, block: int = 1) -> Dict[str, Any]:
    return {
        "address": token,
        "topics": [
            "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef",
            topic(from_addr),
            topic(to_addr),
        ],
        "data": "0x" + format(value, "x").rjust(64, "0"),
        "blockNumber": block,
    }


def _maybe_raise(value):
    if isinstance(value, BaseException):
        raise value
    return value


class FakeChain:
    """
    Dict-backed stand-in for ChainClient. Any configured value that is an
    exception instance is raised instead of returned.
    """

    def __init__(self):
        self.block_number: Any = 1_000_000
        self.tx_counts: Dict[str, Any] = {}
        self.eth_balances: Dict[str, Any] = {}
        self.token_balances: Dict[str, Any] = {}
        self.total_supply: Any = 1000 * ONE_ETH
        self.name: Any = "Meme"
        self.symbol: Any = "MEME"
        self.logs: Any = []
        self.bytecode: Dict[str, Any] = {}
        self.call_results: List[Any] = []
        self.calls: List[Dict[str, Any]] = []

    async def get_transaction_count(self, address: str) -> int:
        return _maybe_raise(self.tx_counts.get(address.lower(), 0))

    async def get_balance(self, address: str) -> int:
        return _maybe_raise(self.eth_balances.get(address.lower(), 0))

    async def get_block_number(self) -> int:
        return _maybe_raise(self.block_number)

    async def read_contract(self, address: str, fn_name: str, args=()):
        if fn_name == "balanceOf":
            return _maybe_raise(self.token_balances.get(str(args[0]).lower(), 0))
        if fn_name == "totalSupply":
            return _maybe_raise(self.total_supply)
        if fn_name == "name":
            return _maybe_raise(self.name)
        if fn_name == "symbol":
            return _maybe_raise(self.symbol)
        raise ContractReadError(f"{fn_name} not supported")

    async def call(self, to, data, from_address=None, state_override=None):
        self.calls.append({"to": to, "data": data, "from": from_address, "state_override": state_override})
        result = self.call_results.pop(0) if self.call_results else b""
        return _maybe_raise(result)

    async def get_logs(self, address, topic_, from_block, to_block):
        return _maybe_raise(self.logs)

    async def get_bytecode(self, address: str) -> Optional[str]:
        return _maybe_raise(self.bytecode.get(address.lower()))


@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    """Mutable epoch-ms clock: call it to read, set ``clock.now`` to move it."""
    class _Clock:
        now = 1_700_000_000_000

        def __call__(self):
            return self.now

    return _Clock()


@pytest.fixture
def services(chain, store):
    return Services(
        client=chain,
        score_cache=ScoreCache(store),
        creator_cache=CreatorCache(store),
        bytecode_cache=BytecodeCache(store),
        watchlist=Watchlist(store),
        stats=UsageStats(store),
        fetch_market_data=AsyncMock(return_value=None),
    )


@pytest.fixture
def sample_pair():
    return DexPair(
        chain_id="base",
        pair_address=POOL,
        base_symbol="MEME",
        price_usd=0.0012,
        volume_h24=60_000,
        liquidity_usd=12_000,
        fdv=250_000,
        buys_h24=150,
        sells_h24=90,
        price_change_h24=-12.5,
    )


def make_full_score(token: str = TOKEN, creator: str = CREATOR, score: int = 72, timestamp: int = 1) -> FullScore:
    cat = CategoryScore(
        name="Market Activity",
        weight=0.3,
        raw_score=21,
        max_score=30,
        weighted_score=21.0,
        tier=Tier.CAUTION,
        signals=[SignalResult("Market Cap", 6, 8, "$250.0K FDV")],
    )
    return FullScore(token, creator, score, Tier.CAUTION, [cat], timestamp, "full")
