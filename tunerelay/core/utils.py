"""
Shared utility functions for the relay.

Contains helpers used across modules: transient file naming,
timestamps and log-safe string handling.
"""

import time
import uuid
from datetime import datetime, timezone


def generate_upload_name() -> str:
    """
    Generate a unique name for a transient upload.

    The name is derived from the current time in milliseconds. A short
    random suffix keeps two uploads received in the same millisecond
    from sharing a file.

    Returns:
        A file name in format 'blob-<millis>-<hex>'
    """
    return f"blob-{get_unix_timestamp_ms()}-{uuid.uuid4().hex[:8]}"


def get_timestamp() -> str:
    """
    Get current UTC timestamp in ISO format.

    Returns:
        ISO-formatted UTC timestamp string
    """
    return datetime.now(timezone.utc).isoformat()


def get_unix_timestamp_ms() -> int:
    """Current Unix time in whole milliseconds."""
    return int(time.time() * 1000)


def truncate_string(s: str, max_length: int = 100) -> str:
    """
    Truncate a string to a maximum length for logging.

    Args:
        s: String to truncate
        max_length: Maximum allowed length

    Returns:
        Original string if short enough, otherwise truncated with ellipsis
    """
    if len(s) <= max_length:
        return s
    return s[:max_length - 3] + "..."
