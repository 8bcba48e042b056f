"""Time utilities (UTC now, epoch conversion for cutoffs and bucket keys)."""
from __future__ import annotations
import time
from datetime import datetime, timezone

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def epoch_now() -> float:
    return time.time()

def to_epoch_seconds(value: datetime | int | float) -> float:
    """Convert a datetime or numeric timestamp to epoch seconds.

    Naive datetimes are interpreted as UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Expected datetime or epoch seconds, got {type(value).__name__}")
    return float(value)

__all__ = ["utc_now", "epoch_now", "to_epoch_seconds"]
