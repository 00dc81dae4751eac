"""
Time utilities for trade timestamps.

Caller-supplied trade timestamps are authoritative; acceptance time is only
used when the caller did not supply one.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current wall-clock time as UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(ts: datetime) -> datetime:
    """Attach UTC to naive timestamps and convert aware ones to UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def get_trade_time(trade_ts: Optional[datetime] = None) -> datetime:
    """
    Get the effective trade time.

    Args:
        trade_ts: Optional timestamp supplied with the trade

    Returns:
        The supplied timestamp normalized to UTC, or acceptance time
    """
    if trade_ts is not None:
        return ensure_utc(trade_ts)

    return utc_now()


def parse_trade_time(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp.

    A trailing ``Z`` is accepted as UTC.

    Raises:
        ValueError: If the string is not a valid ISO-8601 timestamp
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def format_trade_time(ts: datetime) -> str:
    """Format a trade timestamp as ISO-8601."""
    return ts.isoformat()
