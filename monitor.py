# monitor.py
import argparse
import asyncio
import signal
from typing import Optional, Tuple

from dotenv import load_dotenv

from sentinel.alerts.monitor import TransferMonitor, log_alert_sink
from sentinel.chains import CHAINS, DEFAULT_CHAIN, resolve_ws_url
from sentinel.services import build_services, sweep_caches_forever
from sentinel.utils.addr import normalize_evm_address
from sentinel.utils.logs import get_logger, setup_logging

load_dotenv()
log = get_logger("sentinel.monitor")


def parse_token_arg(raw: str) -> Tuple[str, Optional[str]]:
    """``TOKEN`` or ``TOKEN:CREATOR``; both must be full 0x addresses."""
    token, _, creator = raw.partition(":")
    return normalize_evm_address(token), normalize_evm_address(creator) if creator else None


async def run(args) -> None:
    services = build_services(args.chain)
    for token, creator in (parse_token_arg(a) for a in args.token):
        await services.watchlist.add(token, creator=creator)
    watched = await services.watchlist.addresses()

    monitor = TransferMonitor(resolve_ws_url(args.chain), services, log_alert_sink, watched)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, monitor.stop)
        except NotImplementedError:
            pass  # Windows

    log.info(f"Monitoring {len(watched)} tokens on {args.chain}")
    sweeper = asyncio.create_task(sweep_caches_forever(services))
    try:
        await monitor.run()
    finally:
        sweeper.cancel()
        await asyncio.gather(sweeper, return_exceptions=True)


def main():
    ap = argparse.ArgumentParser(description="Rug Sentinel - live Transfer monitor")
    ap.add_argument("--chain", default=DEFAULT_CHAIN, choices=sorted(CHAINS))
    ap.add_argument("--token", action="append", default=[],
                    help="TOKEN or TOKEN:CREATOR to watch (repeatable); added to the watchlist. "
                         "With a creator, creator dumps can be reported.")
    args = ap.parse_args()

    setup_logging()
    try:
        asyncio.run(run(args))
    except ValueError as ve:
        ap.error(str(ve))


if __name__ == "__main__":
    main()
