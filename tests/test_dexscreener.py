# tests/test_dexscreener.py
from unittest.mock import patch

import pytest

from sentinel.api import dexscreener
from sentinel.api.dexscreener import fetch_dexscreener_data, pair_from_api, select_best_pair

from conftest import TOKEN

PAIRS = [
    {"chainId": "ethereum", "pairAddress": "0xeth", "liquidity": {"usd": 900_000}},
    {"chainId": "base", "pairAddress": "0xsmall", "liquidity": {"usd": 1_000}},
    {
        "chainId": "base",
        "pairAddress": "0xbig",
        "baseToken": {"symbol": "MEME"},
        "priceUsd": "0.0042",
        "volume": {"h24": 12345.6},
        "liquidity": {"usd": 50_000},
        "fdv": 420000,
        "txns": {"h24": {"buys": 10, "sells": 4}},
        "priceChange": {"h24": -3.2},
    },
    {"chainId": "base", "pairAddress": "0xnoliq"},
]


@pytest.mark.unit
class TestDexScreener:
    def test_prefers_chain_then_liquidity(self):
        assert select_best_pair(PAIRS, "base")["pairAddress"] == "0xbig"

    def test_falls_back_to_any_chain(self):
        assert select_best_pair(PAIRS, "arbitrum")["pairAddress"] == "0xeth"

    def test_empty(self):
        assert select_best_pair([], "base") is None

    def test_pair_from_api(self):
        pair = pair_from_api(PAIRS[2])
        assert pair.pair_address == "0xbig"
        assert pair.price_usd == pytest.approx(0.0042)
        assert pair.fdv == 420000
        assert pair.buys_h24 == 10 and pair.sells_h24 == 4
        assert pair.price_change_h24 == pytest.approx(-3.2)

    def test_pair_from_sparse_api(self):
        pair = pair_from_api({"chainId": "base", "pairAddress": "0xnoliq"})
        assert pair.fdv is None
        assert pair.liquidity_usd == 0
        assert pair.buys_h24 == 0

    @pytest.mark.asyncio
    async def test_fetch(self):
        with patch.object(dexscreener, "http_get_json", return_value={"pairs": PAIRS}) as get:
            pair = await fetch_dexscreener_data(TOKEN, "base")
        assert pair.pair_address == "0xbig"
        assert get.call_args.args[1].endswith(f"/latest/dex/tokens/{TOKEN}")

    @pytest.mark.asyncio
    async def test_unlisted(self):
        with patch.object(dexscreener, "http_get_json", return_value={"pairs": None}):
            assert await fetch_dexscreener_data(TOKEN) is None
        with patch.object(dexscreener, "http_get_json", return_value=None):
            assert await fetch_dexscreener_data(TOKEN) is None

    @pytest.mark.asyncio
    async def test_failure_is_none(self):
        with patch.object(dexscreener, "http_get_json", side_effect=RuntimeError("429 from dexscreener")):
            assert await fetch_dexscreener_data(TOKEN) is None
