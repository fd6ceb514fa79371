# sentinel/constants.py
# Fixed scoring/alerting constants shared by every scorer and cache.

# Tier cutoffs (score >= cutoff). Anything below RISKY is DANGER.
TIER_THRESHOLDS = {
    "SAFE": 80,
    "CAUTION": 60,
    "RISKY": 40,
    "DANGER": 0,
}

# Quick scorer: two signals, each capped at 50
QUICK_SCORE_WEIGHTS = {
    "creator_age": 50,
    "holder_concentration": 50,
}

# Cache TTLs (milliseconds)
SCORE_CACHE_TTL_MS = 60 * 1000
CREATOR_CACHE_TTL_MS = 24 * 60 * 60 * 1000
BYTECODE_CACHE_TTL_MS = 7 * 24 * 60 * 60 * 1000

# How often long-running processes sweep expired cache entries (seconds)
CACHE_SWEEP_INTERVAL_S = 300.0

# keccak256("Transfer(address,address,uint256)")
TRANSFER_EVENT_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Log lookback windows (blocks). ~200k blocks is ~4.5 days on Base.
HOLDER_LOOKBACK_BLOCKS = 200_000
ACTIVITY_LOOKBACK_BLOCKS = 10_000
TOP_HOLDER_LIMIT = 10

# Alert thresholds in basis points of total supply
CREATOR_DUMP_BPS = 2000  # 20%
WHALE_EXIT_BPS = 500     # 5%

WEI_PER_ETH = 10 ** 18
