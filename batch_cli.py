# batch_cli.py
import argparse
import asyncio
import csv
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from sentinel.chains import CHAINS, DEFAULT_CHAIN
from sentinel.core.analyze import compute_full_score
from sentinel.scoring.quick import compute_quick_score
from sentinel.services import build_services
from sentinel.utils.addr import normalize_evm_address
from sentinel.utils.logs import get_logger, setup_logging
from sentinel.utils.ratelimit import set_default_qps

load_dotenv()
log = get_logger("sentinel.batch")

FIELDNAMES = ["address", "score", "tier", "phase", "creator_trust", "holder_health",
              "contract_safety", "liquidity_signals", "social_signals", "market_activity", "error"]


def load_addresses(path: str) -> list:
    """One address per line; blank lines and '#' comments are skipped."""
    p = Path(path)
    if not p.exists():
        print(f"❌ Input file not found: {path}", file=sys.stderr)
        sys.exit(1)
    addrs = []
    with p.open() as f:
        for line in f:
            s = line.strip()
            if not s or s.startswith("#"):
                continue
            addrs.append(s)
    log.info(f"Loaded {len(addrs)} addresses from {path}")
    return addrs


def flatten_result(res: dict) -> dict:
    row = {k: "" for k in FIELDNAMES}
    row.update({
        "address": res.get("token_address", ""),
        "score": res.get("score", ""),
        "tier": res.get("tier", ""),
        "phase": res.get("phase", "quick"),
    })
    for cat in res.get("categories") or []:
        key = cat["name"].lower().replace(" ", "_")
        if key in row:
            row[key] = f"{cat['weighted_score']:.2f}"
    return row


async def scan(args, addresses):
    services = build_services(args.chain)
    sem = asyncio.Semaphore(max(1, args.concurrency))

    async def work(raw: str):
        try:
            token = normalize_evm_address(raw)
        except ValueError as ve:
            log.warning(f"Skipping {raw}: {ve}")
            return {**{k: "" for k in FIELDNAMES}, "address": raw, "error": str(ve)}, {"address": raw, "error": str(ve)}
        async with sem:
            if args.quick:
                res = (await compute_quick_score(services.client, token)).to_dict()
            else:
                res = (await compute_full_score(services, token, use_cache=not args.fresh)).to_dict()
        log.info(f"{token} -> score={res['score']} tier={res['tier']}")
        return flatten_result(res), res

    results = await asyncio.gather(*[work(a) for a in addresses])
    scanned = sum(1 for row, _ in results if not row["error"])
    await services.stats.increment_tokens_scanned(scanned)
    return results


def main():
    ap = argparse.ArgumentParser(description="Rug Sentinel - Batch Scanner")
    ap.add_argument("--chain", default=DEFAULT_CHAIN, choices=sorted(CHAINS), help="Chain to scan")
    ap.add_argument("--infile", required=True, help="Path to text file with one address per line")
    ap.add_argument("--out-csv", default="batch_scan.csv", help="CSV output path")
    ap.add_argument("--out-json", default="batch_scan.json", help="JSON output path")
    ap.add_argument("--concurrency", type=int, default=2, help="Parallel scans")
    ap.add_argument("--dexscreener-qps", type=float, default=4.0, help="Max req/s to DexScreener")
    ap.add_argument("--quick", action="store_true", help="Quick scores only")
    ap.add_argument("--fresh", action="store_true", help="Ignore the score cache")
    args = ap.parse_args()

    setup_logging()
    set_default_qps(args.dexscreener_qps)

    addresses = load_addresses(args.infile)
    log.info(f"Scanning {len(addresses)} addresses on {args.chain} with concurrency={args.concurrency}")
    results = asyncio.run(scan(args, addresses))

    with open(args.out_csv, "w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=FIELDNAMES)
        w.writeheader()
        w.writerows(row for row, _ in results)
    log.info(f"Wrote CSV -> {args.out_csv}")

    with open(args.out_json, "w") as f:
        json.dump([res for _, res in results], f, indent=2)
    log.info(f"Wrote JSON -> {args.out_json}")

    print("✅ Done. CSV →", args.out_csv, " JSON →", args.out_json)


if __name__ == "__main__":
    main()
