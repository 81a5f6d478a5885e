"""
Trend Comparator - period-over-period change for the same metric set.

A metric missing from either period is compared as 0. Percent change is 0
when the previous value is not positive, and a change under 5% either way is
reported as stable.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from metrichub.domain.metrics.calculator import DerivedMetricSet

STABLE_BAND_PCT = 5.0

# Metrics shown on the period comparison dashboard
TRACKED_METRICS = (
    "investimento",
    "impressoes",
    "cliques",
    "vendas",
    "valorTotal",
    "cpm",
    "ctr",
    "cpc",
    "cpa",
    "roi",
    "roas",
    "conversionRate",
)

MetricValues = Union[DerivedMetricSet, Mapping[str, Any]]


class TrendDirection(Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class TrendResult:
    """Change of one metric between two periods."""

    metric_key: str
    current_value: float
    previous_value: float
    absolute_change: float
    percent_change: float
    direction: TrendDirection

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current_value,
            "previous": self.previous_value,
            "change": self.absolute_change,
            "percent_change": self.percent_change,
            "direction": self.direction.value,
        }


def compare_values(metric_key: str, current: Optional[float], previous: Optional[float]) -> TrendResult:
    """
    Compare one metric across two periods.

    Args:
        metric_key: Metric name the result is reported under
        current: Current period value (None counts as 0)
        previous: Previous period value (None counts as 0)

    Returns:
        TrendResult
    """
    current_value = float(current or 0.0)
    previous_value = float(previous or 0.0)
    change = current_value - previous_value
    percent_change = change / previous_value * 100 if previous_value > 0 else 0.0

    if abs(percent_change) < STABLE_BAND_PCT:
        direction = TrendDirection.STABLE
    elif change > 0:
        direction = TrendDirection.UP
    else:
        direction = TrendDirection.DOWN

    return TrendResult(
        metric_key=metric_key,
        current_value=current_value,
        previous_value=previous_value,
        absolute_change=change,
        percent_change=percent_change,
        direction=direction,
    )


def compare_metrics(
    current: MetricValues,
    previous: MetricValues,
    metrics: Optional[Iterable[str]] = None,
) -> Dict[str, TrendResult]:
    """
    Compare two periods metric by metric.

    Args:
        current: Current period (DerivedMetricSet or name -> value mapping)
        previous: Previous period
        metrics: Metric names to compare; defaults to every name present in
            either period, current period first

    Returns:
        Mapping metric name -> TrendResult
    """
    current_values = _as_mapping(current)
    previous_values = _as_mapping(previous)

    if metrics is None:
        metrics = dict.fromkeys([*current_values, *previous_values])

    return {
        name: compare_values(name, _number(current_values.get(name)), _number(previous_values.get(name)))
        for name in metrics
    }


def _as_mapping(values: MetricValues) -> Mapping[str, Any]:
    if isinstance(values, DerivedMetricSet):
        return values.as_dict()
    return values


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value) if math.isfinite(value) else 0.0
