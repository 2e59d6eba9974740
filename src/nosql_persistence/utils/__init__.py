"""Utility helpers for nosql-persistence."""

from .datetime import (
    utc_now,
    timestamp_to_utc,
    utc_to_epoch_seconds,
    epoch_seconds_now,
)

__all__ = [
    "utc_now",
    "timestamp_to_utc",
    "utc_to_epoch_seconds",
    "epoch_seconds_now",
]

from .json_pointer import (
    MISSING,
    escape_segment,
    unescape_segment,
    join_pointer,
    split_pointer,
    resolve_pointer,
)

__all__ += [
    "MISSING",
    "escape_segment",
    "unescape_segment",
    "join_pointer",
    "split_pointer",
    "resolve_pointer",
]
