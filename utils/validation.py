"""
Input validation utilities for schedule data and API inputs.
"""

import re
from typing import Optional


def validate_clock_string(value: str) -> bool:
    """
    Validate a wall-clock "HH:MM" string.

    Args:
        value: Time string

    Returns:
        True if valid, False otherwise
    """
    if not value or not isinstance(value, str):
        return False

    return bool(re.match(r"^([01]\d|2[0-3]):[0-5]\d$", value.strip()))


def validate_date_string(value: str) -> bool:
    """Validate a "YYYY-MM-DD" string (format only)."""
    if not value or not isinstance(value, str):
        return False

    return bool(re.match(r"^\d{4}-\d{2}-\d{2}$", value.strip()))


def sanitize_text(text: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Sanitize free text such as leave reasons and break labels.

    Args:
        text: Input text
        max_length: Optional maximum length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    # Remove control characters except newlines and tabs
    sanitized = re.sub(r'[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]', '', str(text))
    sanitized = sanitized.strip()

    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized
