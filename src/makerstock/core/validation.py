"""
Input validation utilities for makerstock.

Write operations validate their arguments here before any request is sent,
so a bad quantity or a blank user id never reaches the backend.
"""

import re
from typing import Any

from makerstock.core.exceptions import ValidationError

# Leading integer of a spreadsheet cell, e.g. "12", " 7 pcs", "-3"
_LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")

# Maximum response size (10 MB)
MAX_RESPONSE_SIZE = 10 * 1024 * 1024


def validate_not_empty(value: str | None, field_name: str) -> str:
    """Ensure a required string field has content.

    Args:
        value: The raw value.
        field_name: Human-readable field name used in the error message.

    Returns:
        The value with surrounding whitespace removed.

    Raises:
        ValidationError: If the value is missing or only whitespace.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field_name, repr(value), f"{field_name} is required.")
    return value.strip()


def validate_positive_int(value: Any, field_name: str) -> int:
    """Ensure a value is a whole number greater than zero.

    Integral floats such as ``3.0`` are accepted; booleans are not.

    Args:
        value: The raw value.
        field_name: Human-readable field name used in the error message.

    Returns:
        The value as an int.

    Raises:
        ValidationError: If the value is not a positive integer.
    """
    reason = f"{field_name} must be a positive integer."

    if isinstance(value, bool):
        raise ValidationError(field_name, repr(value), reason)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(field_name, repr(value), reason)
        value = int(value)
    if not isinstance(value, int) or value < 1:
        raise ValidationError(field_name, repr(value), reason)

    return value


def parse_stock_cell(cell: str | None) -> int:
    """Parse the stock column of a spreadsheet row.

    Reads the leading integer of the cell. Blank or non-numeric cells
    count as zero, as do negative values.
    """
    if not cell:
        return 0
    match = _LEADING_INT_PATTERN.match(cell)
    if not match:
        return 0
    return max(0, int(match.group(1)))


def validate_response_size(
    content_length: int | None,
    max_size: int = MAX_RESPONSE_SIZE,
) -> None:
    """Validate that a response size is within acceptable limits.

    Args:
        content_length: The Content-Length header value (may be None).
        max_size: Maximum allowed response size in bytes.

    Raises:
        ValidationError: If the response is too large.
    """
    if content_length is not None and content_length > max_size:
        size_mb = content_length / (1024 * 1024)
        max_mb = max_size / (1024 * 1024)
        raise ValidationError(
            "response_size",
            f"{size_mb:.1f} MB",
            f"Response exceeds maximum size of {max_mb:.0f} MB",
        )
