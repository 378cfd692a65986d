"""Utility functions for s3sync."""

from datetime import datetime, timezone
from typing import Union

# =============================================================================
# Constants for sync operations
# =============================================================================

# URL scheme identifying an S3 address
S3_SCHEME: str = "s3"

# Number of concurrent downloads
DEFAULT_WORKERS: int = 8

# Number of listed objects the remote producer may buffer ahead of the consumer
DEFAULT_REMOTE_QUEUE_SIZE: int = 50000

# Seconds a remote file may be newer than the local copy and still count as synced
DEFAULT_MTIME_TOLERANCE: float = 0.0


# =============================================================================
# Timestamp utilities
# =============================================================================


def to_utc(value: Union[datetime, float, int]) -> datetime:
    """Normalize a timestamp to a timezone-aware UTC datetime.

    Args:
        value: Unix timestamp, naive datetime (assumed UTC) or aware datetime

    Returns:
        datetime in UTC

    Examples:
        >>> to_utc(0)
        datetime.datetime(1970, 1, 1, 0, 0, tzinfo=datetime.timezone.utc)
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return datetime.fromtimestamp(value, tz=timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format a datetime for display in local time."""
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"
