"""UTC day normalization for forecast row keys.

All timestamps are epoch milliseconds. A normalized timestamp is the UTC
midnight of its calendar day, independent of the host timezone.
"""

import time
from datetime import UTC, datetime

DAY_IN_MILLIS = 24 * 60 * 60 * 1000


def now_millis() -> int:
    return time.time_ns() // 1_000_000


def normalize(timestamp_ms: int) -> int:
    """Truncate an instant to the UTC midnight of the same day.

    Floor division keeps pre-epoch instants on the earlier boundary.
    """
    return (int(timestamp_ms) // DAY_IN_MILLIS) * DAY_IN_MILLIS


def today(now_ms: int | None = None) -> int:
    if now_ms is None:
        now_ms = now_millis()
    return normalize(now_ms)


def is_normalized(timestamp_ms: int) -> bool:
    return timestamp_ms == normalize(timestamp_ms)


def to_date_string(timestamp_ms: int) -> str:
    """Format as YYYY-MM-DD in UTC."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC).strftime("%Y-%m-%d")


def from_date_string(value: str) -> int:
    """Parse YYYY-MM-DD (UTC) or a raw millisecond string into a normalized day."""
    value = value.strip()
    if value.lstrip("-").isdigit():
        return normalize(int(value))
    dt = datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=UTC)
    return normalize(int(dt.timestamp()) * 1000)
