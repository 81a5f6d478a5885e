"""
MetricHub Structured Logging.

This module provides structured logging capabilities with:
- Credential redaction and spreadsheet id masking
- Request and correlation ID management
- Source (client spreadsheet) context tracking
"""

from .factory import configure_logging, get_logger
from .sanitizers import mask_sensitive_data, sanitize_for_log
from .context import (
    with_request_context,
    with_source_context,
    source_context,
    bind_request_context,
    clear_request_context,
    get_correlation_id,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "mask_sensitive_data",
    "sanitize_for_log",
    "with_request_context",
    "with_source_context",
    "source_context",
    "bind_request_context",
    "clear_request_context",
    "get_correlation_id",
]
