"""
Data sanitizers for logging.

Spreadsheet credentials must never reach the logs and client spreadsheet ids
are only logged partially.
"""

import re
from typing import Any

from structlog.types import EventDict, WrappedLogger

# Field names that carry credentials
SENSITIVE_PATTERNS = [
    r"password",
    r"secret",
    r"token",
    r"api_key",
    r"apikey",
    r"authorization",
    r"credential",
    r"private_key",
]

# Fields that should be partially masked
PARTIAL_MASK_FIELDS = {
    "source_id": lambda v: _mask_source_id(v),
    "spreadsheet_id": lambda v: _mask_source_id(v),
    "cache_key": lambda v: _mask_cache_key(v),
    "email": lambda v: _mask_email(v),
    "url": lambda v: _mask_url(v),
}


class MaskingProcessor:
    """
    Structlog processor that masks sensitive data in log events.
    """

    def __call__(
        self,
        logger: WrappedLogger,
        name: str,
        event_dict: EventDict,
    ) -> EventDict:
        """Process log event and mask sensitive data."""
        return sanitize_for_log(event_dict)


def sanitize_for_log(data: dict[str, Any]) -> dict[str, Any]:
    """
    Sanitize a dictionary for logging.

    Args:
        data: Dictionary to sanitize

    Returns:
        Sanitized dictionary with masked sensitive data
    """
    sanitized = {}

    for key, value in data.items():
        if _is_sensitive_field(key):
            sanitized[key] = "***REDACTED***"
        elif key in PARTIAL_MASK_FIELDS:
            if value is not None:
                sanitized[key] = PARTIAL_MASK_FIELDS[key](str(value))
            else:
                sanitized[key] = None
        elif isinstance(value, dict):
            sanitized[key] = sanitize_for_log(value)
        elif isinstance(value, list):
            sanitized[key] = [
                sanitize_for_log(item) if isinstance(item, dict) else item for item in value
            ]
        else:
            sanitized[key] = value

    return sanitized


def mask_sensitive_data(data_type: str, value: str) -> str:
    """
    Mask sensitive data according to its type.

    Args:
        data_type: Type of data to mask
        value: Value to mask

    Returns:
        Masked value
    """
    if not value:
        return "***"

    maskers = {
        "source_id": _mask_source_id,
        "spreadsheet_id": _mask_source_id,
        "cache_key": _mask_cache_key,
        "email": _mask_email,
        "url": _mask_url,
    }

    masker = maskers.get(data_type, lambda v: "***MASKED***")
    return masker(value)


def _is_sensitive_field(field_name: str) -> bool:
    """Check if a field name indicates sensitive data."""
    field_lower = field_name.lower()
    return any(re.search(pattern, field_lower) for pattern in SENSITIVE_PATTERNS)


def _mask_source_id(value: str) -> str:
    """Mask spreadsheet id keeping prefix and suffix."""
    if len(value) <= 8:
        return "***"
    return f"{value[:4]}***{value[-4:]}"


def _mask_cache_key(value: str) -> str:
    """Mask the spreadsheet id of a "<source_id>:<sheet_name>" cache key."""
    source_id, separator, sheet_name = value.partition(":")
    return f"{_mask_source_id(source_id)}{separator}{sheet_name}"


def _mask_email(value: str) -> str:
    """Mask email keeping domain."""
    if "@" in value:
        local, domain = value.rsplit("@", 1)
        if len(local) > 2:
            return f"{local[0]}***@{domain}"
        return f"***@{domain}"
    return "***"


def _mask_url(value: str) -> str:
    """Drop query strings, which may carry API keys."""
    return value.split("?", 1)[0]
