# sentinel/chains.py
# Purpose: Chain config + AsyncWeb3 factory (Web3 v7). Base is the launch-platform chain.

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from web3 import AsyncHTTPProvider, AsyncWeb3

from sentinel.utils.logs import get_logger

log = get_logger("sentinel.chains")

ALCHEMY_RPC_TEMPLATE = "https://{network}.g.alchemy.com/v2/{key}"
ALCHEMY_WS_TEMPLATE = "wss://{network}.g.alchemy.com/v2/{key}"

CHAINS: Dict[str, Dict[str, Any]] = {
    "base": {
        "name": "base",
        "chainid": 8453,
        "dexscreener_id": "base",
        "rpc_env": "WEB3_PROVIDER_BASE",
        "ws_env": "WEB3_WS_PROVIDER_BASE",
        "alchemy_network": "base-mainnet",
        "public_rpc": "https://mainnet.base.org",
    },
    "eth": {
        "name": "eth",
        "chainid": 1,
        "dexscreener_id": "ethereum",
        "rpc_env": "WEB3_PROVIDER_ETH",
        "ws_env": "WEB3_WS_PROVIDER_ETH",
        "alchemy_network": "eth-mainnet",
        "public_rpc": "https://ethereum-rpc.publicnode.com",
    },
}

DEFAULT_CHAIN = "base"


def get_chain_config(chain_key: str) -> Dict[str, Any]:
    if chain_key not in CHAINS:
        raise ValueError(f"Unknown chain: {chain_key}")
    return CHAINS[chain_key]


def _clean(url: Optional[str]) -> str:
    url = (url or "").strip().rstrip("\r")
    return "" if url in {"https://", "http://", "wss://", "ws://"} else url


def resolve_rpc_url(chain_key: str) -> str:
    """Explicit RPC env var, then Alchemy (if keyed), then the chain's public RPC."""
    cfg = get_chain_config(chain_key)
    rpc = _clean(os.getenv(cfg["rpc_env"]))
    if rpc:
        return rpc

    key = _clean(os.getenv("ALCHEMY_API_KEY"))
    if key:
        return ALCHEMY_RPC_TEMPLATE.format(network=cfg["alchemy_network"], key=key)

    log.info(f"Using public RPC for {chain_key}: {cfg['public_rpc']}")
    return cfg["public_rpc"]


def resolve_ws_url(chain_key: str) -> str:
    cfg = get_chain_config(chain_key)
    ws = _clean(os.getenv(cfg["ws_env"]))
    if ws:
        return ws

    key = _clean(os.getenv("ALCHEMY_API_KEY"))
    if key:
        return ALCHEMY_WS_TEMPLATE.format(network=cfg["alchemy_network"], key=key)

    raise ValueError(f"Missing websocket URL for {chain_key}. Set {cfg['ws_env']} or ALCHEMY_API_KEY in .env")


def get_w3_for_chain(chain_key: str) -> AsyncWeb3:
    rpc = resolve_rpc_url(chain_key)
    log.debug(f"AsyncHTTPProvider -> {rpc}")
    timeout = float(os.getenv("RPC_HTTP_TIMEOUT", "30"))
    return AsyncWeb3(AsyncHTTPProvider(rpc, request_kwargs={"timeout": timeout}))


__all__ = [
    "CHAINS",
    "DEFAULT_CHAIN",
    "get_chain_config",
    "resolve_rpc_url",
    "resolve_ws_url",
    "get_w3_for_chain",
]
