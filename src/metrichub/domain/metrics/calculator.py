"""
Metric Calculator - derives funnel ratios from canonical base counters.

Every ratio goes through safe division: a denominator <= 0 yields 0, so no
NaN or infinity ever reaches threshold classification or trend math.
"""

import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional, Union

import numpy as np
import pandas as pd

from metrichub.domain.metrics.keys import MetricKey
from metrichub.domain.metrics.values import parse_cell

# Base counter field -> canonical key it is read from
CANONICAL_SOURCES = {
    "investimento": MetricKey.INVESTIMENTO,
    "impressoes": MetricKey.IMPRESSOES,
    "cliques": MetricKey.CLIQUES,
    "page_views": MetricKey.VISITAS_PAGINA,
    "checkouts": MetricKey.CHECKOUTS,
    "vendas": MetricKey.VENDAS,
    "leads": MetricKey.LEADS,
    "valor_total": MetricKey.FATURAMENTO,
}

# snake_case attribute -> camelCase payload name
_PAYLOAD_NAMES = {
    "page_views": "pageViews",
    "valor_total": "valorTotal",
    "checkout_rate": "checkoutRate",
    "conversion_rate": "conversionRate",
    "loading_rate": "loadingRate",
    "ticket_medio": "ticketMedio",
}
_ATTRIBUTE_NAMES = {payload: attr for attr, payload in _PAYLOAD_NAMES.items()}


def safe_divide(
    numerator: float, denominator: float, fallback: float = 0.0, scale: float = 1.0
) -> float:
    """
    Divide and scale, returning fallback when the denominator is not positive
    or the scaled result is not finite.
    """
    if denominator is None or not denominator > 0:
        return fallback
    result = numerator / denominator * scale
    return result if math.isfinite(result) else fallback


@dataclass(frozen=True)
class BaseCounters:
    """Raw traffic counters for one period. Missing counters are 0."""

    investimento: float = 0.0
    impressoes: float = 0.0
    cliques: float = 0.0
    page_views: float = 0.0
    checkouts: float = 0.0
    vendas: float = 0.0
    leads: float = 0.0
    valor_total: float = 0.0

    def __post_init__(self) -> None:
        for counter in fields(self):
            value = getattr(self, counter.name)
            numeric = parse_cell(value)
            object.__setattr__(self, counter.name, numeric if numeric is not None else 0.0)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BaseCounters":
        """Build from a payload using snake_case or camelCase names; unknown keys are ignored."""
        names = {counter.name for counter in fields(cls)}
        values = {}
        for name, value in data.items():
            attr = _ATTRIBUTE_NAMES.get(name, name)
            if attr in names:
                values[attr] = value
        return cls(**values)

    @classmethod
    def from_canonical(cls, row: Mapping[Union[MetricKey, str], Any]) -> "BaseCounters":
        """Build from a canonical row (MetricKey -> cell); unrecognized entries never contribute."""
        values = {}
        for attr, key in CANONICAL_SOURCES.items():
            if key in row:
                values[attr] = row[key]
        return cls(**values)


@dataclass(frozen=True)
class DerivedMetricSet:
    """Base counters plus the ratios derived from them."""

    base: BaseCounters
    cpm: float
    ctr: float
    cpc: float
    cpl: float
    cpa: float
    roi: float
    roas: float
    checkout_rate: float
    conversion_rate: float
    loading_rate: float
    ticket_medio: float

    def as_dict(self) -> Dict[str, float]:
        """Flat payload keyed by dashboard names (base counters first)."""
        payload: Dict[str, float] = {}
        for name, value in asdict(self.base).items():
            payload[_PAYLOAD_NAMES.get(name, name)] = value
        for counter in fields(self):
            if counter.name == "base":
                continue
            payload[_PAYLOAD_NAMES.get(counter.name, counter.name)] = getattr(self, counter.name)
        return payload

    def get(self, name: str, default: Optional[float] = None) -> Optional[float]:
        return self.as_dict().get(name, default)

    def __getitem__(self, name: str) -> float:
        return self.as_dict()[name]


def calculate(base: Union[BaseCounters, Mapping[str, Any]]) -> DerivedMetricSet:
    """
    Derive the standard funnel ratios.

    Args:
        base: Base counters (or a mapping accepted by BaseCounters.from_mapping)

    Returns:
        DerivedMetricSet; every value is finite
    """
    if not isinstance(base, BaseCounters):
        base = BaseCounters.from_mapping(base)

    inv = base.investimento
    return DerivedMetricSet(
        base=base,
        cpm=safe_divide(inv, base.impressoes, scale=1000),
        ctr=safe_divide(base.cliques, base.impressoes, scale=100),
        cpc=safe_divide(inv, base.cliques),
        cpl=safe_divide(inv, base.leads),
        cpa=safe_divide(inv, base.vendas),
        roi=safe_divide(base.valor_total - inv, inv, scale=100),
        roas=safe_divide(base.valor_total, inv),
        checkout_rate=safe_divide(base.checkouts, base.page_views, scale=100),
        conversion_rate=safe_divide(base.vendas, base.cliques, scale=100),
        loading_rate=safe_divide(base.page_views, base.cliques, scale=100),
        ticket_medio=safe_divide(base.valor_total, base.vendas),
    )


def _safe_ratio(numerator: pd.Series, denominator: pd.Series, scale: float = 1.0) -> pd.Series:
    """Vectorised safe division; non-positive denominators and non-finite results yield 0."""
    result = numerator.divide(denominator.where(denominator > 0)) * scale
    return result.replace([np.inf, -np.inf], np.nan).fillna(0.0)


def calculate_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Derive ratios for a frame of periods (one row per period).

    Columns may use snake_case or camelCase counter names; missing columns
    are treated as 0. Cell strings are parsed with parse_cell.

    Args:
        frame: Period rows with base counter columns

    Returns:
        New frame with the base counters and derived metrics (payload names)
    """
    renamed = frame.rename(columns=_ATTRIBUTE_NAMES)
    counters = pd.DataFrame(index=frame.index)
    for counter in fields(BaseCounters):
        if counter.name in renamed.columns:
            column = renamed[counter.name].map(parse_cell).astype(float)
            counters[counter.name] = column.fillna(0.0)
        else:
            counters[counter.name] = 0.0

    inv = counters["investimento"]
    result = pd.DataFrame(index=frame.index)
    for name in counters.columns:
        result[_PAYLOAD_NAMES.get(name, name)] = counters[name]

    result["cpm"] = _safe_ratio(inv, counters["impressoes"], scale=1000)
    result["ctr"] = _safe_ratio(counters["cliques"], counters["impressoes"], scale=100)
    result["cpc"] = _safe_ratio(inv, counters["cliques"])
    result["cpl"] = _safe_ratio(inv, counters["leads"])
    result["cpa"] = _safe_ratio(inv, counters["vendas"])
    result["roi"] = _safe_ratio(counters["valor_total"] - inv, inv, scale=100)
    result["roas"] = _safe_ratio(counters["valor_total"], inv)
    result["checkoutRate"] = _safe_ratio(counters["checkouts"], counters["page_views"], scale=100)
    result["conversionRate"] = _safe_ratio(counters["vendas"], counters["cliques"], scale=100)
    result["loadingRate"] = _safe_ratio(counters["page_views"], counters["cliques"], scale=100)
    result["ticketMedio"] = _safe_ratio(counters["valor_total"], counters["vendas"])
    return result
