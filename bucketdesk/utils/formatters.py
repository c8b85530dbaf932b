"""
Formatting utilities for display and conversion.
"""
from datetime import datetime, timezone
from typing import Optional


def format_iso_timestamp(value: Optional[datetime]) -> Optional[str]:
    """
    Format an S3 LastModified datetime as a UTC ISO string with milliseconds.

    Args:
        value: Timezone-aware (or naive UTC) datetime, or None

    Returns:
        String like "2024-05-01T12:30:00.000Z", or None when no value is given
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc_value = value.astimezone(timezone.utc)
    return utc_value.strftime('%Y-%m-%dT%H:%M:%S.') + f"{utc_value.microsecond // 1000:03d}Z"


def parse_iso_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO date or datetime string into an aware UTC datetime.

    Date-only strings are taken as midnight UTC. Returns None for empty or
    unparseable input.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        dt = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_size_kb(size_bytes: Optional[int]) -> str:
    """Format a byte count as kilobytes with one decimal, or '?' when unknown."""
    if size_bytes is None:
        return '?'
    return f"{size_bytes / 1024:.1f} KB"


def format_folder_label(folder_path: Optional[str]) -> str:
    """
    Human label for a folder prefix.

    Examples:
        "reports/2024/" -> "reports/2024"
        "" or None -> "root"
    """
    if not folder_path:
        return 'root'
    label = folder_path[:-1] if folder_path.endswith('/') else folder_path
    return label or 'root'


def basename_from_key(key: str) -> str:
    """Return the last path segment of an S3 key (the key itself if it has none)."""
    return key.split('/')[-1] or key
