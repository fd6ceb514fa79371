# sentinel/utils/clock.py
import time
from datetime import datetime, timezone


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


def utc_date() -> str:
    """Today's date (UTC) as YYYY-MM-DD."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")
