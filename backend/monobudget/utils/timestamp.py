"""Timestamp conversion utilities."""
from datetime import datetime, timezone


def from_epoch_seconds(seconds: int) -> datetime:
    """Unix time to an aware UTC datetime."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def to_epoch_seconds(dt: datetime) -> int:
    """
    Aware (or naive, assumed UTC) datetime to Unix time.

    Args:
        dt: datetime object

    Returns:
        Whole seconds since the epoch
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
