# sentinel/rpc/client.py
# Thin async JSON-RPC facade over AsyncWeb3. Every call is bounded by RPC_CALL_TIMEOUT.
from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, List, Optional, Sequence

from web3 import AsyncWeb3, Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from sentinel.utils.logs import get_logger

log = get_logger("sentinel.rpc")

DEFAULT_CALL_TIMEOUT = 10.0

# Minimal ERC-20 read surface
ERC20_ABI: List[Dict[str, Any]] = [
    {"name": "balanceOf", "type": "function", "stateMutability": "view",
     "inputs": [{"name": "account", "type": "address"}],
     "outputs": [{"name": "", "type": "uint256"}]},
    {"name": "totalSupply", "type": "function", "stateMutability": "view",
     "inputs": [], "outputs": [{"name": "", "type": "uint256"}]},
    {"name": "name", "type": "function", "stateMutability": "view",
     "inputs": [], "outputs": [{"name": "", "type": "string"}]},
    {"name": "symbol", "type": "function", "stateMutability": "view",
     "inputs": [], "outputs": [{"name": "", "type": "string"}]},
]
ERC20_FUNCTIONS = frozenset(item["name"] for item in ERC20_ABI)


class ContractReadError(Exception):
    """A contract call reverted or returned nothing decodable."""


def _cs(address: str) -> str:
    return Web3.to_checksum_address(address)


def _coerce_arg(arg: Any) -> Any:
    if isinstance(arg, str) and arg.startswith("0x") and len(arg) == 42:
        return _cs(arg)
    return arg


def call_timeout_from_env() -> float:
    try:
        return float(os.getenv("RPC_CALL_TIMEOUT", DEFAULT_CALL_TIMEOUT))
    except ValueError:
        return DEFAULT_CALL_TIMEOUT


class ChainClient:
    def __init__(self, w3: AsyncWeb3, timeout: Optional[float] = None):
        self.w3 = w3
        self.timeout = call_timeout_from_env() if timeout is None else float(timeout)

    async def _run(self, label: str, awaitable):
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError:
            log.warning(f"{label} timed out after {self.timeout}s")
            raise TimeoutError(f"RPC {label} timed out after {self.timeout}s") from None

    async def get_transaction_count(self, address: str) -> int:
        return int(await self._run("get_transaction_count", self.w3.eth.get_transaction_count(_cs(address))))

    async def get_balance(self, address: str) -> int:
        return int(await self._run("get_balance", self.w3.eth.get_balance(_cs(address))))

    async def get_block_number(self) -> int:
        return int(await self._run("block_number", self.w3.eth.block_number))

    async def read_contract(self, address: str, fn_name: str, args: Sequence[Any] = ()) -> Any:
        if fn_name not in ERC20_FUNCTIONS:
            raise ValueError(f"Unsupported contract function: {fn_name}")
        contract = self.w3.eth.contract(address=_cs(address), abi=ERC20_ABI)
        fn = getattr(contract.functions, fn_name)(*[_coerce_arg(a) for a in args])
        try:
            return await self._run(f"{fn_name}()", fn.call())
        except (ContractLogicError, BadFunctionCallOutput) as e:
            raise ContractReadError(f"{fn_name}() failed on {address}: {e}") from e

    async def call(
        self,
        to: str,
        data: str,
        from_address: Optional[str] = None,
        state_override: Optional[Dict[str, Dict[str, Any]]] = None,
    ) -> bytes:
        tx: Dict[str, Any] = {"to": _cs(to), "data": data}
        if from_address:
            tx["from"] = _cs(from_address)
        override = None
        if state_override:
            override = {_cs(addr): fields for addr, fields in state_override.items()}
        try:
            return await self._run("eth_call", self.w3.eth.call(tx, "latest", override))
        except ContractLogicError as e:
            raise ContractReadError(f"eth_call reverted on {to}: {e}") from e

    async def get_logs(self, address: str, topic: str, from_block: int, to_block: int) -> List[Any]:
        params = {
            "address": _cs(address),
            "topics": [topic],
            "fromBlock": int(from_block),
            "toBlock": int(to_block),
        }
        return list(await self._run("get_logs", self.w3.eth.get_logs(params)))

    async def get_bytecode(self, address: str) -> Optional[str]:
        """Deployed code as 0x-hex, or None for an EOA / empty account."""
        code = await self._run("get_code", self.w3.eth.get_code(_cs(address)))
        if not code:
            return None
        hex_code = Web3.to_hex(code)
        return None if hex_code in ("0x", "0x0") else hex_code
