"""Utility functions for pymoveit."""

from datetime import datetime
from typing import Optional

# =============================================================================
# Constants for sync operations
# =============================================================================

# Worker threads for watcher-driven actions
DEFAULT_MAX_WORKERS: int = 4

# Hidden temporary files used for atomic downloads
PARTIAL_PREFIX: str = ".pymoveit-"
PARTIAL_SUFFIX: str = ".part"


# =============================================================================
# Timestamp parsing utilities
# =============================================================================


def parse_iso_timestamp(timestamp_str: Optional[str]) -> Optional[datetime]:
    """Parse an ISO format timestamp from the MOVEit API.

    Args:
        timestamp_str: ISO format timestamp string (e.g., "2025-01-15T10:30:00Z")

    Returns:
        datetime object in local time or None if parsing fails
    """
    if not timestamp_str:
        return None

    # The 'Z' suffix indicates UTC time
    if timestamp_str.endswith("Z"):
        timestamp_str = timestamp_str[:-1] + "+00:00"

    try:
        dt = datetime.fromisoformat(timestamp_str)
    except ValueError:
        return None

    if dt.tzinfo is not None:
        return datetime.fromtimestamp(dt.timestamp())
    return dt


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB")
    """
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.0:
            if unit == "B":
                return f"{int(size)} {unit}"
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} TB"


# =============================================================================
# Filename utilities
# =============================================================================


def is_partial_download(name: str) -> bool:
    """Check whether a filename is one of our in-progress download files."""
    return name.startswith(PARTIAL_PREFIX) and name.endswith(PARTIAL_SUFFIX)


def is_safe_filename(name: str) -> bool:
    """Check that a remote filename maps to a single entry in a flat directory.

    Rejects empty names, path separators and relative path components so a
    remote listing can never direct a write outside the monitored directory.
    """
    if not name or name in (".", ".."):
        return False
    if "/" in name or "\\" in name or "\x00" in name:
        return False
    return not is_partial_download(name)
