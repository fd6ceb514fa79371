# sentinel/alerts/monitor.py
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set

from web3 import AsyncWeb3, WebSocketProvider

from sentinel.alerts.evaluator import evaluate_transfer_event
from sentinel.constants import TRANSFER_EVENT_TOPIC
from sentinel.core.analyze import compute_full_score
from sentinel.core.models import TokenAlert, TransferEvent
from sentinel.utils.addr import hex_to_int, topic_to_address
from sentinel.utils.logs import get_logger

log = get_logger("sentinel.monitor")

RECONNECT_BASE_S = 1.0
RECONNECT_MAX_S = 30.0

AlertSink = Callable[[TokenAlert], Awaitable[None]]


def reconnect_delay(attempt: int) -> float:
    """1s, 2s, 4s ... capped at 30s."""
    return min(RECONNECT_BASE_S * (2 ** attempt), RECONNECT_MAX_S)


def decode_transfer_log(entry: Dict[str, Any]) -> Optional[TransferEvent]:
    """Transfer(from, to, value): topics[1]=from, topics[2]=to, data=value."""
    topics = entry.get("topics") or []
    if len(topics) < 3:
        return None
    block = entry.get("blockNumber")
    if isinstance(block, str):
        block = hex_to_int(block)
    return TransferEvent(
        token_address=str(entry.get("address") or "").lower(),
        from_address=topic_to_address(topics[1]),
        to_address=topic_to_address(topics[2]),
        value=hex_to_int(entry.get("data") or "0x"),
        block_number=block,
    )


async def log_alert_sink(alert: TokenAlert) -> None:
    log.warning(f"[{alert.severity.value.upper()}] {alert.title} {alert.token_address}: {alert.message}")


class TransferMonitor:
    """
    Live Transfer subscription for a set of tokens.

    Each matching log is decoded, evaluated against the score cache and any alert
    is handed to ``sink`` without waiting for it. When the cache holds no score
    for the token and the watchlist knows its creator, the token is re-scored
    first so creator dumps can be attributed. The connection is re-opened with
    exponential backoff after any failure.
    """

    def __init__(self, ws_url: str, services, sink: AlertSink = log_alert_sink,
                 tokens: Iterable[str] = (), provider_factory=WebSocketProvider):
        self.ws_url = ws_url
        self.services = services
        self.sink = sink
        self.provider_factory = provider_factory
        self.tokens: List[str] = list(dict.fromkeys(t.lower() for t in tokens))
        self._attempts = 0
        self._running = False
        self._changed = asyncio.Event()
        self._pending: Set[asyncio.Task] = set()
        self._refreshing: Dict[str, asyncio.Task] = {}

    def update_tokens(self, tokens: Iterable[str]) -> None:
        """Replace the watched set; the live subscription is re-created with the new filter."""
        self.tokens = list(dict.fromkeys(t.lower() for t in tokens))
        log.info(f"Watching {len(self.tokens)} tokens")
        self._changed.set()

    def stop(self) -> None:
        self._running = False
        self._changed.set()

    async def run(self) -> None:
        self._running = True
        while self._running:
            if not self.tokens:
                log.info("No tokens to watch, waiting for update_tokens()")
                await self._changed.wait()
                self._changed.clear()
                continue

            session = asyncio.create_task(self._session(list(self.tokens)))
            changed = asyncio.create_task(self._changed.wait())
            done, _ = await asyncio.wait({session, changed}, return_when=asyncio.FIRST_COMPLETED)

            if changed in done:
                session.cancel()
                await asyncio.gather(session, return_exceptions=True)
                self._changed.clear()
                self._attempts = 0
                continue

            changed.cancel()
            err = session.exception()
            if err is not None:
                log.error(f"WebSocket session failed: {err}")
            else:
                log.info("WebSocket subscription ended")

            delay = reconnect_delay(self._attempts)
            self._attempts += 1
            log.info(f"Reconnecting in {delay:.0f}s (attempt {self._attempts})")
            try:
                await asyncio.wait_for(self._changed.wait(), timeout=delay)
                self._changed.clear()
            except asyncio.TimeoutError:
                pass

        await asyncio.gather(*self._pending, return_exceptions=True)
        log.info("Monitor stopped")

    async def _session(self, tokens: List[str]) -> None:
        async with AsyncWeb3(self.provider_factory(self.ws_url)) as w3:
            sub_id = await w3.eth.subscribe("logs", {
                "address": [AsyncWeb3.to_checksum_address(t) for t in tokens],
                "topics": [TRANSFER_EVENT_TOPIC],
            })
            self._attempts = 0
            log.info(f"Subscribed {sub_id} for {len(tokens)} tokens")
            async for payload in w3.socket.process_subscriptions():
                entry = payload.get("result") if isinstance(payload, dict) else None
                if entry:
                    await self.handle_log(entry)

    async def ensure_score(self, token: str) -> None:
        """Re-score a watched token with a known creator when its cached score is gone."""
        if await self.services.score_cache.peek_score(token) is not None:
            return
        entry = await self.services.watchlist.get(token)
        creator = (entry or {}).get("creator")
        if not creator:
            return
        # one refresh per token; concurrent transfers wait on the same task
        task = self._refreshing.get(token)
        if task is None:
            log.info(f"Refreshing score for {token} (creator {creator})")
            task = asyncio.create_task(compute_full_score(self.services, token, creator))
            self._refreshing[token] = task
            task.add_done_callback(lambda _t, key=token: self._refreshing.pop(key, None))
        await asyncio.shield(task)

    async def handle_log(self, entry: Dict[str, Any]) -> Optional[TokenAlert]:
        """Decode and evaluate one log; failures are logged, never raised."""
        try:
            event = decode_transfer_log(entry)
            if event is None:
                return None
            supply = await self.services.client.read_contract(event.token_address, "totalSupply")
            await self.ensure_score(event.token_address)
            alert = await evaluate_transfer_event(self.services.score_cache, event, int(supply))
        except Exception as e:
            log.error(f"Failed to process transfer event: {e}")
            return None

        if alert is not None:
            await self.services.stats.increment_rugs_detected()
            task = asyncio.create_task(self._deliver(alert))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        return alert

    async def _deliver(self, alert: TokenAlert) -> None:
        try:
            await self.sink(alert)
        except Exception as e:
            log.error(f"Alert sink failed for {alert.id}: {e}")
