"""
Threshold Classifier - green/yellow/red status for derived metrics.

Thresholds are direction-aware: cost metrics (CPM, CPC, CPL, CPA) are better
when lower, rate and return metrics when higher. The defaults live in a single
table; operators override any subset per call.

Policy: a metric without a registered threshold classifies as green. Newly
introduced metrics therefore never raise false alarms, at the cost of not
flagging them until a threshold is configured.
"""

import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from metrichub.domain.errors import InvalidMetricValueError, InvalidThresholdError


class PerformanceStatus(Enum):
    """Three-level performance status."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"

    @property
    def color(self) -> str:
        return _STATUS_COLORS[self]


_STATUS_COLORS = {
    PerformanceStatus.GREEN: "#10B981",
    PerformanceStatus.YELLOW: "#F59E0B",
    PerformanceStatus.RED: "#EF4444",
}


@dataclass(frozen=True)
class Threshold:
    """
    Classification bounds for one metric.

    With higher_is_better, values >= green_bound are green and values >=
    yellow_bound yellow; otherwise values <= green_bound are green and values
    <= yellow_bound yellow. Everything else is red.
    """

    metric_key: str
    green_bound: float
    yellow_bound: float
    higher_is_better: bool

    def __post_init__(self) -> None:
        if not (math.isfinite(self.green_bound) and math.isfinite(self.yellow_bound)):
            raise InvalidThresholdError(self.metric_key, "bounds must be finite")
        if self.higher_is_better and self.green_bound < self.yellow_bound:
            raise InvalidThresholdError(
                self.metric_key, "green bound must be >= yellow bound when higher is better"
            )
        if not self.higher_is_better and self.green_bound > self.yellow_bound:
            raise InvalidThresholdError(
                self.metric_key, "green bound must be <= yellow bound when lower is better"
            )

    @classmethod
    def from_dict(cls, metric_key: str, data: Mapping[str, Any]) -> "Threshold":
        """Build from operator configuration ({green, yellow, higher_is_better})."""
        try:
            green = data["green"] if "green" in data else data["green_bound"]
            yellow = data["yellow"] if "yellow" in data else data["yellow_bound"]
            higher = data.get("higher_is_better", data.get("higherIsBetter"))
        except KeyError as e:
            raise InvalidThresholdError(metric_key, f"missing {e.args[0]}") from None
        if higher is None:
            raise InvalidThresholdError(metric_key, "missing higher_is_better")
        try:
            return cls(metric_key, float(green), float(yellow), bool(higher))
        except (TypeError, ValueError):
            raise InvalidThresholdError(metric_key, "bounds must be numbers") from None

    def classify(self, value: float) -> PerformanceStatus:
        if self.higher_is_better:
            if value >= self.green_bound:
                return PerformanceStatus.GREEN
            if value >= self.yellow_bound:
                return PerformanceStatus.YELLOW
            return PerformanceStatus.RED

        if value <= self.green_bound:
            return PerformanceStatus.GREEN
        if value <= self.yellow_bound:
            return PerformanceStatus.YELLOW
        return PerformanceStatus.RED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric_key": self.metric_key,
            "green": self.green_bound,
            "yellow": self.yellow_bound,
            "higher_is_better": self.higher_is_better,
        }


DEFAULT_THRESHOLDS: Mapping[str, Threshold] = MappingProxyType({
    "cpm": Threshold("cpm", 15, 25, higher_is_better=False),
    "ctr": Threshold("ctr", 1.5, 0.8, higher_is_better=True),
    "cpc": Threshold("cpc", 1.5, 3, higher_is_better=False),
    "cpl": Threshold("cpl", 20, 50, higher_is_better=False),
    "cpa": Threshold("cpa", 100, 200, higher_is_better=False),
    "roi": Threshold("roi", 100, 50, higher_is_better=True),
    "roas": Threshold("roas", 3, 2, higher_is_better=True),
    "checkoutRate": Threshold("checkoutRate", 30, 15, higher_is_better=True),
    "conversionRate": Threshold("conversionRate", 3, 1.5, higher_is_better=True),
    "loadingRate": Threshold("loadingRate", 85, 70, higher_is_better=True),
})

ThresholdOverrides = Mapping[str, Union[Threshold, Mapping[str, Any]]]


def classify(
    metric_key: str,
    value: float,
    thresholds: Optional[Mapping[str, Threshold]] = None,
) -> PerformanceStatus:
    """
    Classify a metric value.

    Args:
        metric_key: Derived metric name (e.g. "cpm", "checkoutRate")
        value: Finite metric value
        thresholds: Threshold table; defaults to DEFAULT_THRESHOLDS

    Returns:
        PerformanceStatus; GREEN when the metric has no threshold

    Raises:
        InvalidMetricValueError: If value is NaN or infinite
    """
    if value is None or not math.isfinite(value):
        raise InvalidMetricValueError(metric_key, value)

    table = DEFAULT_THRESHOLDS if thresholds is None else thresholds
    threshold = table.get(metric_key)
    if threshold is None:
        return PerformanceStatus.GREEN
    return threshold.classify(value)


class ThresholdTable:
    """Default thresholds with an operator override layer."""

    def __init__(self, thresholds: Optional[Mapping[str, Threshold]] = None) -> None:
        base = DEFAULT_THRESHOLDS if thresholds is None else thresholds
        self._thresholds = MappingProxyType(dict(base))

    def merge(self, overrides: Optional[ThresholdOverrides]) -> "ThresholdTable":
        """Return a new table with a partial map of overrides laid over this one."""
        if not overrides:
            return self
        merged = dict(self._thresholds)
        for metric_key, override in overrides.items():
            if isinstance(override, Threshold):
                merged[metric_key] = override
            else:
                merged[metric_key] = Threshold.from_dict(metric_key, override)
        return ThresholdTable(merged)

    def classify(self, metric_key: str, value: float) -> PerformanceStatus:
        return classify(metric_key, value, self._thresholds)

    def classify_all(self, metrics: Mapping[str, float]) -> Dict[str, PerformanceStatus]:
        """Classify every metric of the table that is present in metrics."""
        return {
            metric_key: self.classify(metric_key, metrics[metric_key])
            for metric_key in self._thresholds
            if metric_key in metrics
        }

    def get(self, metric_key: str) -> Optional[Threshold]:
        return self._thresholds.get(metric_key)

    def as_dict(self) -> Dict[str, Threshold]:
        return dict(self._thresholds)

    def __contains__(self, metric_key: object) -> bool:
        return metric_key in self._thresholds

    def __len__(self) -> int:
        return len(self._thresholds)
