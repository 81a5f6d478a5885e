"""
Funnel Aggregator - the five-stage marketing funnel.

criativo (impressions) -> publico (clicks) -> pagina (page views) ->
checkout (checkouts) -> conversao (sales). Each stage carries its volume, bar
height relative to the widest stage, the drop from the stage before it and a
status based on the stage's expected conversion rate.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from metrichub.domain.metrics.calculator import DerivedMetricSet
from metrichub.domain.metrics.thresholds import PerformanceStatus


@dataclass(frozen=True)
class FunnelStageDefinition:
    """Static description of a funnel stage."""

    key: str
    label: str
    description: str
    primary_metric: str
    metrics: Tuple[str, ...]
    color: str
    expected_rate: Optional[float] = None


FUNNEL_STAGES: Tuple[FunnelStageDefinition, ...] = (
    FunnelStageDefinition(
        key="criativo",
        label="Criativo",
        description="Impressões e alcance do anúncio",
        primary_metric="impressoes",
        metrics=("impressoes", "cpm"),
        color="#3B82F6",
    ),
    FunnelStageDefinition(
        key="publico",
        label="Público",
        description="Cliques e interesse gerado",
        primary_metric="cliques",
        metrics=("cliques", "ctr", "cpc"),
        color="#8B5CF6",
        expected_rate=1.5,
    ),
    FunnelStageDefinition(
        key="pagina",
        label="Página",
        description="Visualizações e carregamento",
        primary_metric="pageViews",
        metrics=("pageViews", "loadingRate"),
        color="#F59E0B",
        expected_rate=85,
    ),
    FunnelStageDefinition(
        key="checkout",
        label="Checkout",
        description="Início do processo de compra",
        primary_metric="checkouts",
        metrics=("checkouts", "checkoutRate"),
        color="#F97316",
        expected_rate=30,
    ),
    FunnelStageDefinition(
        key="conversao",
        label="Conversão",
        description="Vendas concluídas",
        primary_metric="vendas",
        metrics=("vendas", "conversionRate", "roi", "roas"),
        color="#10B981",
        expected_rate=50,
    ),
)


@dataclass(frozen=True)
class FunnelStage:
    """Computed funnel stage."""

    key: str
    label: str
    order_index: int
    value_at_stage: float
    relative_height_pct: float
    drop_rate_pct: Optional[float]
    status: PerformanceStatus
    metrics: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "order_index": self.order_index,
            "value": self.value_at_stage,
            "relative_height_pct": self.relative_height_pct,
            "drop_rate_pct": self.drop_rate_pct,
            "status": self.status.value,
            "metrics": dict(self.metrics),
        }


def stage_status(value: float, previous: float, expected_rate: float) -> PerformanceStatus:
    """Status of a stage from its conversion against the previous stage."""
    if previous <= 0:
        return PerformanceStatus.GREEN

    conversion = value / previous * 100
    if conversion >= expected_rate:
        return PerformanceStatus.GREEN
    if conversion >= expected_rate / 2:
        return PerformanceStatus.YELLOW
    return PerformanceStatus.RED


def build_funnel(
    metrics: Union[DerivedMetricSet, Mapping[str, float]],
    expected_rates: Optional[Mapping[str, float]] = None,
) -> List[FunnelStage]:
    """
    Arrange the funnel stages for a derived metric set.

    Args:
        metrics: DerivedMetricSet or a mapping keyed by payload names
        expected_rates: Partial stage key -> expected conversion (%) overrides

    Returns:
        Stages ordered by order_index
    """
    values_by_name = metrics.as_dict() if isinstance(metrics, DerivedMetricSet) else dict(metrics)
    rates = dict(expected_rates or {})

    values = [_value(values_by_name, stage.primary_metric) for stage in FUNNEL_STAGES]
    widest = max([*values, 1.0])

    stages: List[FunnelStage] = []
    for index, definition in enumerate(FUNNEL_STAGES):
        value = values[index]
        if index == 0:
            drop_rate = None
            status = PerformanceStatus.GREEN
        else:
            previous = values[index - 1]
            drop_rate = (previous - value) / previous * 100 if previous > 0 else 0.0
            expected = rates.get(definition.key, definition.expected_rate)
            status = stage_status(value, previous, expected if expected is not None else 50.0)

        stages.append(FunnelStage(
            key=definition.key,
            label=definition.label,
            order_index=index,
            value_at_stage=value,
            relative_height_pct=value / widest * 100,
            drop_rate_pct=drop_rate,
            status=status,
            metrics={name: _value(values_by_name, name) for name in definition.metrics},
        ))

    return stages


def _value(values: Mapping[str, Any], name: str) -> float:
    value = values.get(name)
    return float(value) if value is not None else 0.0
