# sentinel/utils/addr.py
from typing import Union

from web3 import Web3


def normalize_evm_address(raw: str) -> str:
    """Strictly validate & checksum an EVM address."""
    s = (raw or "").strip()
    if "..." in s:
        raise ValueError("Ellipses ('...') are not allowed. Provide the full 42-char 0x address.")
    if not s.startswith("0x") or len(s) != 42:
        raise ValueError("Invalid address: must be 0x-prefixed and 42 characters long (0x + 40 hex).")
    try:
        return Web3.to_checksum_address(s)
    except Exception:
        raise ValueError("Invalid address: not a valid hex string.")


def same_address(a: str | None, b: str | None) -> bool:
    """Case-insensitive address equality; None never matches."""
    if not a or not b:
        return False
    return a.lower() == b.lower()


def topic_to_address(topic: Union[bytes, str]) -> str:
    """Last 20 bytes of a 32-byte indexed topic, as a lower-case 0x address."""
    if isinstance(topic, (bytes, bytearray)):
        return "0x" + bytes(topic)[-20:].hex()
    s = topic[2:] if topic.startswith("0x") else topic
    return "0x" + s[-40:].lower()


def hex_to_int(data: Union[bytes, str]) -> int:
    if isinstance(data, (bytes, bytearray)):
        return int.from_bytes(bytes(data), "big") if data else 0
    s = data[2:] if data.startswith("0x") else data
    return int(s, 16) if s else 0
