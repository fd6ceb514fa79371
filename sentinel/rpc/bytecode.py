# sentinel/rpc/bytecode.py
from __future__ import annotations

import asyncio
from typing import Optional

from sentinel.utils.logs import get_logger

log = get_logger("sentinel.bytecode")

PROBE_ACCOUNT = "0x0000000000000000000000000000000000000001"


async def get_contract_code(client, address: str, cache=None) -> Optional[str]:
    """Deployed bytecode (cached 7 days when a BytecodeCache is given), or None for non-contracts."""
    try:
        if cache is not None:
            cached = await cache.get_code(address)
            if cached:
                return cached

        code = await client.get_bytecode(address)
        if not code or code == "0x":
            return None

        if cache is not None:
            await cache.set_code(address, code)
        return code
    except Exception as e:
        log.error(f"Error fetching contract code for {address}: {e}")
        return None


def code_size(code: Optional[str]) -> int:
    """Byte length of a 0x-hex code string."""
    if not code:
        return 0
    body = code[2:] if code.startswith("0x") else code
    return len(body) // 2


async def is_erc20_standard(client, address: str) -> bool:
    """True when balanceOf and totalSupply both answer; name() is read but optional."""
    balance, supply, _name = await asyncio.gather(
        client.read_contract(address, "balanceOf", [PROBE_ACCOUNT]),
        client.read_contract(address, "totalSupply"),
        client.read_contract(address, "name"),
        return_exceptions=True,
    )
    ok = not isinstance(balance, BaseException) and not isinstance(supply, BaseException)
    if not ok:
        log.debug(f"{address} does not answer the ERC-20 read surface")
    return ok
