"""
DateTime utilities for audit bookkeeping and the ``_ts`` wire field.
"""
from datetime import datetime, timezone
from typing import Union


def utc_now() -> datetime:
    """
    Get the current UTC time with timezone awareness.

    Returns:
        datetime: Current UTC time with timezone info
    """
    return datetime.now(timezone.utc)


def timestamp_to_utc(timestamp: Union[int, float]) -> datetime:
    """
    Convert Unix timestamp to UTC datetime.

    Args:
        timestamp: Unix timestamp (seconds since epoch)

    Returns:
        datetime: UTC datetime with timezone info
    """
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def utc_to_epoch_seconds(dt: datetime) -> int:
    """
    Convert datetime to whole seconds since the Unix epoch.

    Args:
        dt: Datetime to convert (naive values are taken as UTC)

    Returns:
        int: Unix timestamp truncated to seconds
    """
    if dt.tzinfo is None:
        # Assume naive datetime is UTC
        dt = dt.replace(tzinfo=timezone.utc)

    return int(dt.timestamp())


def epoch_seconds_now() -> int:
    """Current time as whole seconds since the Unix epoch."""
    return utc_to_epoch_seconds(utc_now())
