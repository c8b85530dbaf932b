"""
Validation utilities for request bodies and S3 keys.
"""
from typing import Any, List, Optional


class ValidationError(Exception):
    """Validation error exception."""
    pass


MAX_S3_KEY_BYTES = 1024


def clean_text(value: Any) -> str:
    """
    Return a stripped string for a request field, or '' when absent.

    Non-string values (numbers, lists, objects) count as absent so that a
    malformed body fails validation instead of reaching the SDK.
    """
    if not isinstance(value, str):
        return ''
    return value.strip()


def require_fields(message: str, *values: Any) -> List[str]:
    """
    Strip every value and raise if any of them is blank.

    Args:
        message: Error message returned to the client
        *values: Raw request values

    Returns:
        The stripped values, in order

    Raises:
        ValidationError if any value is blank
    """
    cleaned = [clean_text(value) for value in values]
    if not all(cleaned):
        raise ValidationError(message)
    return cleaned


def validate_s3_key(s3_key: str) -> bool:
    """
    Validate S3 key format.

    Args:
        s3_key: S3 key to validate

    Returns:
        True if valid

    Raises:
        ValidationError if invalid
    """
    if not s3_key:
        raise ValidationError("S3 key cannot be empty")

    if len(s3_key.encode('utf-8')) > MAX_S3_KEY_BYTES:
        raise ValidationError(f"S3 key exceeds maximum length ({MAX_S3_KEY_BYTES} bytes)")

    return True


def normalize_folder_key(key: str) -> str:
    """Ensure a folder key ends with exactly the trailing delimiter S3 folders use."""
    folder_key = clean_text(key)
    if not folder_key.endswith('/'):
        folder_key += '/'
    return folder_key


def ensure_string_list(value: Any) -> List[str]:
    """Keep only the non-blank strings of a list-valued field."""
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def ensure_dict_list(value: Any) -> List[dict]:
    """Keep only the object entries of a list-valued field."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def optional_text(value: Any) -> Optional[str]:
    cleaned = clean_text(value)
    return cleaned or None
