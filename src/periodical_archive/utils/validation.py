"""Validation and type coercion helpers.

Used for configuration values and for the loosely typed JSON records
returned by the archive server.
"""

import logging
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)


def validate_positive_int(
    value: Union[int, str],
    min_value: int = 1,
    max_value: Optional[int] = None,
    strict: bool = False
) -> bool:
    """Validate positive integer within optional range.

    Args:
        value: Value to validate (int or string)
        min_value: Minimum allowed value (default 1)
        max_value: Maximum allowed value (None for unlimited)
        strict: If True, raises ValueError on failure

    Returns:
        True if valid, False otherwise

    Examples:
        >>> validate_positive_int(10, min_value=1, max_value=100)
        True

        >>> validate_positive_int(-5)
        False
    """
    try:
        if isinstance(value, bool):
            raise TypeError("booleans are not integers")
        int_val = int(value)

        if int_val < min_value:
            msg = f"Value must be >= {min_value}, got {int_val}"
            if strict:
                raise ValueError(msg)
            logger.warning(msg)
            return False

        if max_value is not None and int_val > max_value:
            msg = f"Value must be <= {max_value}, got {int_val}"
            if strict:
                raise ValueError(msg)
            logger.warning(msg)
            return False

        return True

    except (ValueError, TypeError) as e:
        msg = f"Invalid integer: {value} ({e})"
        if strict:
            raise ValueError(msg)
        logger.warning(msg)
        return False


def ensure_string(value: Any, default: str = "") -> str:
    """Ensure value is a string.

    Examples:
        >>> ensure_string(123)
        '123'

        >>> ensure_string(None)
        ''
    """
    if value is None:
        return default
    if isinstance(value, str):
        return value
    return str(value)


def ensure_optional_string(value: Any) -> Optional[str]:
    """Return a stripped string, or None for missing and blank values."""
    if value is None:
        return None
    text = ensure_string(value).strip()
    return text or None


def ensure_int(value: Any, default: int = 0) -> int:
    """Ensure value is an integer.

    Examples:
        >>> ensure_int("456")
        456

        >>> ensure_int("invalid")
        0
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def ensure_dict(value: Any) -> Dict:
    """Ensure value is a dictionary, returning an empty one otherwise."""
    if isinstance(value, dict):
        return value
    return {}
