# sentinel/utils/ratelimit.py
import random
import threading
import time
from collections import deque
from typing import Any, Dict, Optional

import requests

from sentinel.utils.logs import get_logger

log = get_logger("sentinel.http")

# Default QPS (requests per second) for market-data APIs (DexScreener allows ~5/s).
DEFAULT_QPS = 4.0

RETRY_STATUSES = (429, 500, 502, 503, 504)
MAX_ATTEMPTS = 4

# One limiter per "host key" (e.g. 'dexscreener')
_LIMITERS: Dict[str, "RateLimiter"] = {}
_LOCK = threading.Lock()


class RateLimiter:
    """Sliding one-second window. Blocks the calling thread until a slot frees up."""

    def __init__(self, max_per_sec: float):
        self.max_per_sec = max(0.1, float(max_per_sec))
        self.window: deque = deque()
        self.lock = threading.Lock()

    def _drop_old(self, now: float) -> None:
        while self.window and now - self.window[0] > 1.0:
            self.window.popleft()

    def wait(self) -> None:
        with self.lock:
            now = time.monotonic()
            self._drop_old(now)
            if len(self.window) >= self.max_per_sec:
                sleep_for = 1.0 - (now - self.window[0]) + 0.001
                if sleep_for > 0:
                    time.sleep(sleep_for)
                self._drop_old(time.monotonic())
            self.window.append(time.monotonic())


def get_limiter(host_key: str, max_qps: Optional[float] = None) -> RateLimiter:
    with _LOCK:
        qps = DEFAULT_QPS if max_qps is None else float(max_qps)
        lim = _LIMITERS.get(host_key)
        if lim is None or lim.max_per_sec != max(0.1, qps):
            lim = RateLimiter(qps)
            _LIMITERS[host_key] = lim
        return lim


def http_get_json(
    host_key: str,
    url: str,
    params: Optional[dict] = None,
    max_qps: Optional[float] = None,
    timeout: float = 15,
) -> Any:
    """
    GET with per-host rate limiting + retries (429/5xx and transport errors, jittered backoff).
    Returns the decoded JSON body, or None on 404. Other failures raise after the last attempt.
    """
    lim = get_limiter(host_key, max_qps)
    backoff = 0.5
    last_error: Optional[Exception] = None

    for attempt in range(1, MAX_ATTEMPTS + 1):
        lim.wait()
        try:
            resp = requests.get(url, params=params, timeout=timeout)
            if resp.status_code == 404:
                return None
            if resp.status_code in RETRY_STATUSES:
                last_error = requests.HTTPError(f"{resp.status_code} from {host_key}", response=resp)
                log.debug(f"{host_key} attempt {attempt}: HTTP {resp.status_code}, retrying")
            else:
                resp.raise_for_status()
                return resp.json()
        except requests.HTTPError:
            raise
        except requests.RequestException as e:
            last_error = e
            log.debug(f"{host_key} attempt {attempt}: {e}")

        if attempt < MAX_ATTEMPTS:
            time.sleep(backoff + random.uniform(0, 0.2))
            backoff = min(backoff * 2, 4.0)

    raise last_error or RuntimeError(f"{host_key}: request failed")


def set_default_qps(qps: float) -> None:
    global DEFAULT_QPS
    DEFAULT_QPS = max(0.1, float(qps))
