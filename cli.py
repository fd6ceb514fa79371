# cli.py
import argparse
import asyncio
import json
import sys

from dotenv import load_dotenv

from sentinel.chains import CHAINS, DEFAULT_CHAIN
from sentinel.core.analyze import compute_full_score
from sentinel.scoring.quick import compute_quick_score
from sentinel.services import build_services
from sentinel.utils.addr import normalize_evm_address
from sentinel.utils.logs import get_logger, setup_logging

load_dotenv()
log = get_logger("sentinel.cli")

TIER_BADGE = {
    "SAFE": "✅ SAFE",
    "CAUTION": "⚠️  CAUTION",
    "RISKY": "🟠 RISKY",
    "DANGER": "❗ DANGER",
}


def print_full(result: dict) -> None:
    print(f"Token:   {result['token_address']}")
    print(f"Creator: {result['creator_address']}")
    for cat in result["categories"]:
        print(f"\n🔹 {cat['name']} ({cat['weight'] * 100:.0f}%) -> {cat['tier']}"
              f"  raw {cat['raw_score']:g}/{cat['max_score']:g}")
        for s in cat["signals"]:
            cap = f"/{s['max_points']:g}" if s["max_points"] else ""
            print(f"    {s['name']:<26} {s['points']:>4g}{cap:<4} {s['detail']}")
    if not result["categories"]:
        print("ℹ️ No category could be scored.")
    print(f"\n🧮 Final Score: {result['score']}/100")
    print(TIER_BADGE.get(result["tier"], f"❓ Unknown tier: {result['tier']}"))


def print_quick(result: dict) -> None:
    print(f"Token: {result['token_address']}")
    print(f"🔹 Creator tx count: {result['creator_tx_count']}")
    print(f"🔹 Creator share of supply: {result['top_holder_pct']:.2f}%")
    print(f"\n🧮 Quick Score: {result['score']}/100")
    print(TIER_BADGE.get(result["tier"], f"❓ Unknown tier: {result['tier']}"))


async def run(args) -> dict:
    token = normalize_evm_address(args.address)
    creator = normalize_evm_address(args.creator) if args.creator else None
    pool = normalize_evm_address(args.pool) if args.pool else None

    services = build_services(args.chain)
    if args.quick:
        result = await compute_quick_score(services.client, token, creator)
    else:
        result = await compute_full_score(
            services, token, creator=creator, pool=pool,
            market_cap_usd=args.market_cap, use_cache=not args.fresh,
        )
    await services.stats.increment_tokens_scanned()
    return result.to_dict()


def main():
    p = argparse.ArgumentParser(description="Rug Sentinel CLI")
    p.add_argument("--chain", default=DEFAULT_CHAIN, choices=sorted(CHAINS), help="Chain to use")
    p.add_argument("--address", required=True, help="ERC-20 token address")
    p.add_argument("--creator", help="Creator (deployer) wallet address")
    p.add_argument("--pool", help="Liquidity pool / bonding curve address")
    p.add_argument("--market-cap", type=float, help="Market cap in USD shown on the launch page")
    p.add_argument("--quick", action="store_true", help="Two-signal quick score only")
    p.add_argument("--fresh", action="store_true", help="Ignore the score cache")
    p.add_argument("--json", action="store_true", help="Print JSON only")
    args = p.parse_args()

    setup_logging("WARNING" if args.json else None)
    log.debug(f"Args -> {vars(args)}")

    try:
        result = asyncio.run(run(args))
    except ValueError as ve:
        print(f"❌ {ve}", file=sys.stderr)
        sys.exit(2)

    if args.json:
        print(json.dumps(result, indent=2, default=str))
    elif args.quick:
        print_quick(result)
    else:
        print_full(result)


if __name__ == "__main__":
    main()
