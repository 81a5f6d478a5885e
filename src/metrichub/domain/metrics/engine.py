"""
Metrics Engine - one ingestion pass over a spreadsheet snapshot.

rows (header row + data rows) -> canonical metrics of the last row ->
derived metrics -> statuses, funnel and the trend against the row before it.
The engine never fetches, retries or caches; it works on whatever snapshot it
is given.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from metrichub.domain.errors import InsufficientRowsError
from metrichub.domain.metrics.aliases import AliasResolver
from metrichub.domain.metrics.calculator import BaseCounters, DerivedMetricSet, calculate
from metrichub.domain.metrics.formatting import format_metric_value
from metrichub.domain.metrics.funnel import FunnelStage, build_funnel
from metrichub.domain.metrics.keys import MetricFormat, MetricKey
from metrichub.domain.metrics.thresholds import PerformanceStatus, ThresholdOverrides, ThresholdTable
from metrichub.domain.metrics.trend import TRACKED_METRICS, TrendResult, compare_metrics, compare_values
from metrichub.domain.metrics.values import is_date_like, parse_cell, parse_date_br

logger = logging.getLogger(__name__)

Cell = Union[str, int, float, None]


@dataclass(frozen=True)
class CanonicalMetric:
    """
    One column of the current row, resolved against the alias registry.

    When recognized is False, key is the original header text and the value
    never feeds derived metrics.
    """

    key: Union[MetricKey, str]
    raw_header: str
    recognized: bool
    raw_value: Cell
    parsed_value: Optional[float]
    date_value: Optional[str] = None

    @property
    def key_name(self) -> str:
        return self.key.value if isinstance(self.key, MetricKey) else self.key

    @property
    def label(self) -> str:
        return self.key.label if isinstance(self.key, MetricKey) else self.raw_header

    @property
    def formatted_value(self) -> str:
        if self.date_value is not None:
            return self.date_value
        fmt = self.key.format if isinstance(self.key, MetricKey) else MetricFormat.NUMBER
        return format_metric_value(self.parsed_value, fmt)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric_key": self.key_name,
            "original_name": self.raw_header,
            "label": self.label,
            "recognized": self.recognized,
            "value": self.raw_value,
            "parsed_value": self.parsed_value,
            "date_value": self.date_value,
            "formatted_value": self.formatted_value,
        }


@dataclass(frozen=True)
class IngestionResult:
    """Everything a dashboard needs from one snapshot."""

    metrics: List[CanonicalMetric]
    unrecognized_headers: List[str]
    derived: DerivedMetricSet
    statuses: Dict[str, PerformanceStatus]
    funnel: List[FunnelStage]
    trend: Optional[Dict[str, TrendResult]] = None
    column_trends: Optional[Dict[str, TrendResult]] = None
    total_rows: int = 0

    @property
    def recognized_count(self) -> int:
        return sum(1 for metric in self.metrics if metric.recognized)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metrics": [metric.to_dict() for metric in self.metrics],
            "unrecognized_headers": list(self.unrecognized_headers),
            "derived": self.derived.as_dict(),
            "statuses": {name: status.value for name, status in self.statuses.items()},
            "funnel": [stage.to_dict() for stage in self.funnel],
            "trend": _trend_dict(self.trend),
            "column_trends": _trend_dict(self.column_trends),
            "total_rows": self.total_rows,
        }


class MetricsEngine:
    """Stateless ingestion pipeline; the resolver's collector is the only shared state."""

    def __init__(
        self,
        resolver: AliasResolver,
        thresholds: Optional[ThresholdTable] = None,
        expected_rates: Optional[Mapping[str, float]] = None,
    ) -> None:
        self.resolver = resolver
        self.thresholds = thresholds if thresholds is not None else ThresholdTable()
        self.expected_rates = dict(expected_rates or {})

    def canonical_metrics(self, headers: Sequence[Cell], row: Sequence[Cell]) -> List[CanonicalMetric]:
        """
        Resolve one data row against the header row.

        Short rows are padded with "". Columns with a blank header are skipped.
        Date cells keep parsed_value None and expose the ISO date instead.

        Args:
            headers: Header row
            row: Data row

        Returns:
            One CanonicalMetric per non-blank header, in column order
        """
        metrics: List[CanonicalMetric] = []
        for index, header in enumerate(headers):
            header_text = "" if header is None else str(header)
            if not header_text.strip():
                continue

            raw_value = row[index] if index < len(row) else ""
            key = self.resolver.resolve(header_text)

            date_value = parse_date_br(raw_value) if is_date_like(raw_value) else None
            parsed_value = None if date_value is not None else parse_cell(raw_value)

            metrics.append(CanonicalMetric(
                key=key if key is not None else header_text,
                raw_header=header_text,
                recognized=key is not None,
                raw_value=raw_value,
                parsed_value=parsed_value,
                date_value=date_value,
            ))
        return metrics

    def process(
        self,
        rows: Sequence[Sequence[Cell]],
        threshold_overrides: Optional[ThresholdOverrides] = None,
    ) -> IngestionResult:
        """
        Run the full pipeline over a sheet snapshot.

        The last row is the current period; the row before it, when there is
        one, is the previous period for trends.

        Args:
            rows: Header row followed by data rows
            threshold_overrides: Partial threshold map applied for this call

        Returns:
            IngestionResult

        Raises:
            InsufficientRowsError: If there is no data row
            InvalidThresholdError: If an override is malformed
        """
        if len(rows) < 2:
            raise InsufficientRowsError(len(rows))

        headers = rows[0]
        metrics = self.canonical_metrics(headers, rows[-1])
        derived = calculate(BaseCounters.from_canonical(_first_wins(metrics)))

        thresholds = self.thresholds.merge(threshold_overrides)
        statuses = thresholds.classify_all(derived.as_dict())
        funnel = build_funnel(derived, self.expected_rates)

        trend = None
        column_trends = None
        if len(rows) > 2:
            previous_metrics = self.canonical_metrics(headers, rows[-2])
            previous_derived = calculate(BaseCounters.from_canonical(_first_wins(previous_metrics)))
            trend = compare_metrics(derived, previous_derived, TRACKED_METRICS)
            column_trends = _column_trends(metrics, previous_metrics)

        unrecognized = list(dict.fromkeys(
            metric.raw_header for metric in metrics if not metric.recognized
        ))

        logger.debug(
            f"Processed snapshot: {len(rows)} rows, {sum(1 for metric in metrics if metric.recognized)} "
            f"recognized, {len(unrecognized)} unrecognized"
        )

        return IngestionResult(
            metrics=metrics,
            unrecognized_headers=unrecognized,
            derived=derived,
            statuses=statuses,
            funnel=funnel,
            trend=trend,
            column_trends=column_trends,
            total_rows=len(rows),
        )


def _first_wins(metrics: Sequence[CanonicalMetric]) -> Dict[MetricKey, Optional[float]]:
    """Canonical row of parsed values; a repeated key keeps its first column."""
    canonical: Dict[MetricKey, Optional[float]] = {}
    for metric in metrics:
        if metric.recognized and metric.key not in canonical:
            canonical[metric.key] = metric.parsed_value
    return canonical


def _column_trends(
    current: Sequence[CanonicalMetric],
    previous: Sequence[CanonicalMetric],
) -> Dict[str, TrendResult]:
    """Per recognized column trend; columns without a value in both rows are skipped."""
    trends: Dict[str, TrendResult] = {}
    for metric, before in zip(current, previous):
        if not metric.recognized or metric.key_name in trends:
            continue
        if metric.parsed_value is None or before.parsed_value is None:
            continue
        trends[metric.key_name] = compare_values(metric.key_name, metric.parsed_value, before.parsed_value)
    return trends


def _trend_dict(trend: Optional[Dict[str, TrendResult]]) -> Optional[Dict[str, Dict[str, Any]]]:
    if trend is None:
        return None
    return {name: result.to_dict() for name, result in trend.items()}
