"""Metrics domain module.

Metric normalization and marketing-funnel analytics: value parsing, alias
resolution, derived ratios, threshold classification, funnel and trends.
"""

from .aliases import (
    DEFAULT_ALIASES,
    DEFAULT_ALIAS_TABLE_VERSION,
    AliasRegistry,
    AliasResolver,
    UnmatchedHeaderCollector,
    normalize_header,
)
from .calculator import (
    BaseCounters,
    DerivedMetricSet,
    calculate,
    calculate_frame,
    safe_divide,
)
from .engine import CanonicalMetric, IngestionResult, MetricsEngine
from .formatting import format_currency_br, format_metric_value
from .funnel import FUNNEL_STAGES, FunnelStage, FunnelStageDefinition, build_funnel
from .keys import DerivedMetric, MetricFormat, MetricKey, metric_format, metric_label
from .thresholds import (
    DEFAULT_THRESHOLDS,
    PerformanceStatus,
    Threshold,
    ThresholdTable,
    classify,
)
from .trend import (
    TRACKED_METRICS,
    TrendDirection,
    TrendResult,
    compare_metrics,
    compare_values,
)
from .values import parse_cell, parse_currency_br, parse_date_br, parse_number, parse_percentage

__all__ = [
    # Vocabulary
    "MetricKey",
    "MetricFormat",
    "DerivedMetric",
    "metric_format",
    "metric_label",
    # Value Parser
    "parse_number",
    "parse_currency_br",
    "parse_percentage",
    "parse_date_br",
    "parse_cell",
    "format_currency_br",
    "format_metric_value",
    # Alias Resolver
    "AliasRegistry",
    "AliasResolver",
    "UnmatchedHeaderCollector",
    "DEFAULT_ALIASES",
    "DEFAULT_ALIAS_TABLE_VERSION",
    "normalize_header",
    # Calculator
    "BaseCounters",
    "DerivedMetricSet",
    "calculate",
    "calculate_frame",
    "safe_divide",
    # Thresholds
    "DEFAULT_THRESHOLDS",
    "PerformanceStatus",
    "Threshold",
    "ThresholdTable",
    "classify",
    # Funnel
    "FUNNEL_STAGES",
    "FunnelStage",
    "FunnelStageDefinition",
    "build_funnel",
    # Trend
    "TRACKED_METRICS",
    "TrendDirection",
    "TrendResult",
    "compare_metrics",
    "compare_values",
    # Engine
    "CanonicalMetric",
    "IngestionResult",
    "MetricsEngine",
]
