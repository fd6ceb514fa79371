# sentinel/rpc/honeypot.py
from __future__ import annotations

from typing import Optional

from sentinel.core.models import HoneypotResult
from sentinel.rpc.client import ContractReadError
from sentinel.utils.logs import get_logger

log = get_logger("sentinel.honeypot")

# Arbitrary non-contract account used as the simulated buyer
TEST_WALLET = "0x0000000000000000000000000000000000000001"
SIM_AMOUNT = 10 ** 18  # 1 token at 18 decimals

TRANSFER_SELECTOR = "0xa9059cbb"  # transfer(address,uint256)


def encode_transfer(to: str, amount: int) -> str:
    """ABI-encode transfer(to, amount) calldata."""
    addr = to.lower().replace("0x", "").rjust(64, "0")
    value = format(int(amount), "x").rjust(64, "0")
    return TRANSFER_SELECTOR + addr + value


async def detect_honeypot(client, token: str, pool: Optional[str]) -> HoneypotResult:
    """
    Simulate a buy (pool -> test wallet) and a sell (test wallet -> pool) with eth_call.

    A reverting leg means the token cannot be traded freely. Anything else that goes
    wrong yields a non-honeypot result so a flaky RPC never flags a token.
    Tax is not measured: passing both legs reports 0%.
    """
    if not pool:
        return HoneypotResult(False, 0, "No liquidity pool found for simulation")

    try:
        try:
            log.debug(f"buy leg: {pool} -> {TEST_WALLET} on {token}")
            await client.call(token, encode_transfer(TEST_WALLET, SIM_AMOUNT), from_address=pool)
        except ContractReadError as e:
            log.info(f"Buy simulation reverted for {token}: {e}")
            return HoneypotResult(True, 100, "Transfer simulation failed - likely honeypot")

        try:
            log.debug(f"sell leg: {TEST_WALLET} -> {pool} on {token}")
            await client.call(
                token,
                encode_transfer(pool, SIM_AMOUNT),
                from_address=TEST_WALLET,
                state_override={TEST_WALLET: {"balance": SIM_AMOUNT}},
            )
        except ContractReadError as e:
            log.info(f"Sell simulation reverted for {token}: {e}")
            return HoneypotResult(True, 100, "Sell simulation failed - cannot sell tokens")

        return HoneypotResult(False, 0, "Buy/sell simulation passed")
    except Exception as e:
        log.warning(f"Honeypot simulation error for {token}: {e}")
        return HoneypotResult(False, 0, f"Simulation error: {str(e) or type(e).__name__}")
