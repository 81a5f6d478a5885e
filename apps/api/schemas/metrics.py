"""Pydantic models for Metrics API endpoints."""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# Request Models
class ThresholdModel(BaseModel):
    """Threshold bounds for one metric."""
    green: float = Field(..., description="Bound of the green band")
    yellow: float = Field(..., description="Bound of the yellow band")
    higher_is_better: bool = Field(..., description="Direction of the metric")

    model_config = ConfigDict(
        json_schema_extra={"example": {"green": 12, "yellow": 20, "higher_is_better": False}}
    )


class IngestSheetRequestModel(BaseModel):
    """Request model for ingesting a spreadsheet tab."""
    sheet_name: Optional[str] = Field(None, description="Tab name (defaults to Dashboard)", max_length=100)
    refresh: bool = Field(False, description="Bypass the result cache")
    thresholds: Optional[Dict[str, ThresholdModel]] = Field(None, description="Per-call threshold overrides")


class BaseCountersModel(BaseModel):
    """Base traffic counters for one period."""
    investimento: float = Field(0, ge=0, description="Ad spend (BRL)")
    impressoes: float = Field(0, ge=0)
    cliques: float = Field(0, ge=0)
    page_views: float = Field(0, ge=0, alias="pageViews")
    checkouts: float = Field(0, ge=0)
    vendas: float = Field(0, ge=0)
    leads: float = Field(0, ge=0)
    valor_total: float = Field(0, ge=0, alias="valorTotal", description="Revenue (BRL)")

    model_config = ConfigDict(populate_by_name=True)


class CalculateRequestModel(BaseCountersModel):
    """Request model for computing metrics from counters."""
    previous: Optional[BaseCountersModel] = Field(None, description="Previous period, enables trend")
    thresholds: Optional[Dict[str, ThresholdModel]] = Field(None, description="Per-call threshold overrides")
    expected_rates: Optional[Dict[str, float]] = Field(
        None, description="Expected conversion (%) per funnel stage key"
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "investimento": 1000,
                "impressoes": 100000,
                "cliques": 1000,
                "pageViews": 850,
                "checkouts": 200,
                "vendas": 20,
                "valorTotal": 5000,
            }
        },
    )


# Response Models
class CanonicalMetricModel(BaseModel):
    """One resolved spreadsheet column."""
    metric_key: str
    original_name: str
    label: str
    recognized: bool
    value: Union[str, float, int, None] = None
    parsed_value: Optional[float] = None
    date_value: Optional[str] = None
    formatted_value: str


class FunnelStageModel(BaseModel):
    """Computed funnel stage."""
    key: str
    label: str
    order_index: int
    value: float
    relative_height_pct: float
    drop_rate_pct: Optional[float] = None
    status: str
    metrics: Dict[str, float]


class TrendModel(BaseModel):
    """Period-over-period change of one metric."""
    current: float
    previous: float
    change: float
    percent_change: float
    direction: str


class IngestResponseModel(BaseModel):
    """Response model for spreadsheet ingestion."""
    success: bool = True
    sheet_name: str
    from_cache: bool
    metrics: List[CanonicalMetricModel]
    unrecognized_headers: List[str]
    derived: Dict[str, float]
    statuses: Dict[str, str]
    funnel: List[FunnelStageModel]
    trend: Optional[Dict[str, TrendModel]] = None
    column_trends: Optional[Dict[str, TrendModel]] = None
    total_rows: int


class CalculateResponseModel(BaseModel):
    """Response model for metric calculation."""
    success: bool = True
    derived: Dict[str, float]
    formatted: Dict[str, str]
    statuses: Dict[str, str]
    funnel: List[FunnelStageModel]
    trend: Optional[Dict[str, TrendModel]] = None


class ThresholdsResponseModel(BaseModel):
    """Response model for the effective threshold table."""
    success: bool = True
    thresholds: Dict[str, ThresholdModel]


class UnmatchedHeadersResponseModel(BaseModel):
    """Response model for headers awaiting an alias."""
    success: bool = True
    headers: List[str]
    count: int
    dropped: int
    max_size: int


class ClearUnmatchedResponseModel(BaseModel):
    success: bool = True
    cleared: int


class ErrorResponseModel(BaseModel):
    """Error envelope."""
    success: bool = False
    error: str
    code: str
    request_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
