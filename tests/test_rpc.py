# tests/test_rpc.py
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from web3.exceptions import ContractLogicError

from sentinel.db.caches import BytecodeCache
from sentinel.rpc.bytecode import code_size, get_contract_code, is_erc20_standard
from sentinel.rpc.client import ChainClient, ContractReadError
from sentinel.rpc.holders import fetch_top_holders
from sentinel.rpc.honeypot import SIM_AMOUNT, TEST_WALLET, detect_honeypot, encode_transfer

from conftest import CREATOR, ONE_ETH, POOL, TOKEN, WHALE, transfer_log

ZERO = "0x" + "00" * 20


@pytest.mark.unit
class TestHoneypot:
    def test_encode_transfer(self):
        data = encode_transfer(TEST_WALLET, SIM_AMOUNT)
        assert data.startswith("0xa9059cbb")
        assert len(data) == 10 + 128
        assert data[10:74] == "0" * 63 + "1"
        assert int(data[74:], 16) == SIM_AMOUNT

    @pytest.mark.asyncio
    async def test_no_pool(self, chain):
        res = await detect_honeypot(chain, TOKEN, None)
        assert not res.is_honeypot
        assert res.tax_percent == 0
        assert res.detail == "No liquidity pool found for simulation"
        assert chain.calls == []

    @pytest.mark.asyncio
    async def test_both_legs_pass(self, chain):
        res = await detect_honeypot(chain, TOKEN, POOL)
        assert not res.is_honeypot
        assert res.detail == "Buy/sell simulation passed"
        buy, sell = chain.calls
        assert buy["from"] == POOL and buy["state_override"] is None
        assert sell["from"] == TEST_WALLET
        assert sell["state_override"] == {TEST_WALLET: {"balance": SIM_AMOUNT}}

    @pytest.mark.asyncio
    async def test_buy_revert_is_honeypot(self, chain):
        chain.call_results = [ContractReadError("execution reverted")]
        res = await detect_honeypot(chain, TOKEN, POOL)
        assert res.is_honeypot
        assert res.tax_percent == 100
        assert len(chain.calls) == 1

    @pytest.mark.asyncio
    async def test_sell_revert_is_honeypot(self, chain):
        chain.call_results = [b"", ContractReadError("execution reverted")]
        res = await detect_honeypot(chain, TOKEN, POOL)
        assert res.is_honeypot
        assert "cannot sell" in res.detail

    @pytest.mark.asyncio
    async def test_transport_error_is_safe(self, chain):
        chain.call_results = [TimeoutError("RPC eth_call timed out after 10.0s")]
        res = await detect_honeypot(chain, TOKEN, POOL)
        assert not res.is_honeypot
        assert res.detail.startswith("Simulation error: RPC eth_call timed out")


@pytest.mark.unit
class TestHolders:
    @pytest.mark.asyncio
    async def test_top_holders_sorted_and_deduped(self, chain):
        chain.logs = [
            transfer_log(ZERO, CREATOR, 600 * ONE_ETH),
            transfer_log(CREATOR, WHALE, 100 * ONE_ETH),
            transfer_log(CREATOR, POOL, 200 * ONE_ETH),
            transfer_log(CREATOR, WHALE, 50 * ONE_ETH),
            transfer_log(CREATOR, ZERO, 1),
        ]
        chain.token_balances = {CREATOR: 300 * ONE_ETH, WHALE: 150 * ONE_ETH, POOL: 200 * ONE_ETH}
        holders = await fetch_top_holders(chain, TOKEN)
        assert [h.address for h in holders] == [CREATOR, POOL, WHALE]
        assert [h.percentage for h in holders] == [30.0, 20.0, 15.0]

    @pytest.mark.asyncio
    async def test_zero_balances_and_failed_reads_are_skipped(self, chain):
        chain.logs = [transfer_log(CREATOR, WHALE, 1), transfer_log(WHALE, POOL, 1)]
        chain.token_balances = {WHALE: 0, POOL: ContractReadError("boom")}
        assert await fetch_top_holders(chain, TOKEN) == []

    @pytest.mark.asyncio
    async def test_limit(self, chain):
        addrs = ["0x" + format(i, "040x") for i in range(1, 16)]
        chain.logs = [transfer_log(CREATOR, a, 1) for a in addrs]
        chain.token_balances = {a: i * ONE_ETH for i, a in enumerate(addrs, start=1)}
        holders = await fetch_top_holders(chain, TOKEN, limit=10)
        assert len(holders) == 10
        assert holders[0].address == addrs[-1]

    @pytest.mark.asyncio
    async def test_errors_return_empty(self, chain):
        chain.logs = ValueError("query returned more than 10000 results")
        assert await fetch_top_holders(chain, TOKEN) == []


@pytest.mark.unit
class TestBytecode:
    def test_code_size(self):
        assert code_size("0x6080") == 2
        assert code_size(None) == 0

    @pytest.mark.asyncio
    async def test_cached_after_first_fetch(self, chain, store):
        cache = BytecodeCache(store)
        chain.bytecode = {TOKEN: "0x6080604052"}
        assert await get_contract_code(chain, TOKEN, cache) == "0x6080604052"
        chain.bytecode = {}
        assert await get_contract_code(chain, TOKEN, cache) == "0x6080604052"

    @pytest.mark.asyncio
    async def test_eoa_and_errors(self, chain):
        assert await get_contract_code(chain, CREATOR) is None
        chain.bytecode = {TOKEN: RuntimeError("rpc down")}
        assert await get_contract_code(chain, TOKEN) is None

    @pytest.mark.asyncio
    async def test_erc20_detection(self, chain):
        assert await is_erc20_standard(chain, TOKEN)
        chain.name = ContractReadError("no name()")
        assert await is_erc20_standard(chain, TOKEN)
        chain.total_supply = ContractReadError("no totalSupply()")
        assert not await is_erc20_standard(chain, TOKEN)


def _w3():
    w3 = MagicMock()
    w3.eth.get_transaction_count = AsyncMock(return_value=7)
    w3.eth.get_balance = AsyncMock(return_value=ONE_ETH)
    w3.eth.get_code = AsyncMock(return_value=b"")
    w3.eth.call = AsyncMock(return_value=b"\x01")
    return w3


@pytest.mark.unit
class TestChainClient:
    @pytest.mark.asyncio
    async def test_passthrough(self):
        client = ChainClient(_w3(), timeout=1)
        assert await client.get_transaction_count(CREATOR) == 7
        assert await client.get_balance(CREATOR) == ONE_ETH
        assert await client.get_bytecode(TOKEN) is None

    @pytest.mark.asyncio
    async def test_bytecode_hex(self):
        w3 = _w3()
        w3.eth.get_code = AsyncMock(return_value=bytes.fromhex("6080"))
        assert await ChainClient(w3, timeout=1).get_bytecode(TOKEN) == "0x6080"

    @pytest.mark.asyncio
    async def test_timeout(self):
        async def hang(*_):
            await asyncio.sleep(5)

        w3 = _w3()
        w3.eth.get_balance = hang
        with pytest.raises(TimeoutError, match="get_balance timed out"):
            await ChainClient(w3, timeout=0.01).get_balance(CREATOR)

    @pytest.mark.asyncio
    async def test_revert_maps_to_contract_read_error(self):
        w3 = _w3()
        fn = MagicMock()
        fn.call = AsyncMock(side_effect=ContractLogicError("execution reverted"))
        w3.eth.contract.return_value.functions.totalSupply.return_value = fn
        with pytest.raises(ContractReadError):
            await ChainClient(w3, timeout=1).read_contract(TOKEN, "totalSupply")

    @pytest.mark.asyncio
    async def test_eth_call_revert(self):
        w3 = _w3()
        w3.eth.call = AsyncMock(side_effect=ContractLogicError("execution reverted"))
        with pytest.raises(ContractReadError):
            await ChainClient(w3, timeout=1).call(TOKEN, "0xa9059cbb", from_address=POOL)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fn_name", ["mint", "decimals"])
    async def test_unknown_function_rejected(self, fn_name):
        with pytest.raises(ValueError):
            await ChainClient(_w3(), timeout=1).read_contract(TOKEN, fn_name)
