"""Presentation formatting for metric values (pt-BR)."""

import math
from typing import Optional

from metrichub.domain.metrics.keys import MetricFormat

EMPTY_VALUE = "—"


def format_number_br(value: float, decimals: int = 0) -> str:
    """Format with "." thousands and "," decimal separators."""
    formatted = f"{abs(value):,.{decimals}f}"
    formatted = formatted.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"-{formatted}" if value < 0 and formatted.strip("0.,") else formatted


def format_currency_br(value: float) -> str:
    """Format a BRL amount, e.g. 1234.5 -> "R$ 1.234,50"."""
    body = format_number_br(abs(value), decimals=2)
    if value < 0 and round(abs(value), 2) > 0:
        return f"-R$ {body}"
    return f"R$ {body}"


def format_percentage(value: float) -> str:
    return f"{value:.2f}%"


def format_multiplier(value: float) -> str:
    return f"{value:.2f}x"


def format_metric_value(value: Optional[float], fmt: MetricFormat) -> str:
    """
    Format a metric value for display.

    Args:
        value: Metric value, None when unavailable
        fmt: Display format of the metric

    Returns:
        Formatted string, or an em dash when there is no value
    """
    if value is None or not math.isfinite(value):
        return EMPTY_VALUE

    if fmt == MetricFormat.CURRENCY:
        return format_currency_br(value)
    if fmt == MetricFormat.PERCENTAGE:
        return format_percentage(value)
    if fmt == MetricFormat.MULTIPLIER:
        return format_multiplier(value)
    return format_number_br(round(value))
