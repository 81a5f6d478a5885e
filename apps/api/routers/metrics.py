"""Metrics endpoints for the MetricHub API.

This module provides REST endpoints for metric operations:
- POST /metrics/sheets/{source_id} - Ingest a spreadsheet tab
- POST /metrics/calculate - Derive metrics from base counters
- GET /metrics/thresholds - Effective threshold table
- GET /metrics/unmatched-headers - Headers awaiting an alias
- DELETE /metrics/unmatched-headers - Reset the unmatched header registry

Application errors are rendered by the app's error envelope handler.
"""

from fastapi import APIRouter, Depends, Path, status

from metrichub.application.use_cases.ingest_metrics import IngestMetricsRequest, IngestMetricsUseCase
from metrichub.domain.metrics.aliases import UnmatchedHeaderCollector
from metrichub.domain.metrics.calculator import BaseCounters, calculate
from metrichub.domain.metrics.formatting import format_metric_value
from metrichub.domain.metrics.funnel import build_funnel
from metrichub.domain.metrics.keys import metric_format
from metrichub.domain.metrics.thresholds import ThresholdTable
from metrichub.domain.metrics.trend import TRACKED_METRICS, compare_metrics
from metrichub.shared.logging import get_logger
from metrichub.shared.logging.context import get_correlation_id

from apps.api.dependencies import get_ingest_use_case, get_threshold_table, get_unmatched_collector
from apps.api.schemas.metrics import (
    CalculateRequestModel, CalculateResponseModel,
    ClearUnmatchedResponseModel, ErrorResponseModel,
    IngestResponseModel, IngestSheetRequestModel,
    ThresholdsResponseModel, UnmatchedHeadersResponseModel,
)

logger = get_logger("apps.api.metrics")
router = APIRouter()


@router.post(
    "/sheets/{source_id}",
    response_model=IngestResponseModel,
    summary="Ingest a spreadsheet tab",
    description="Read the tab, resolve its headers and compute derived metrics, statuses, funnel and trend",
    responses={
        422: {"model": ErrorResponseModel, "description": "Not enough data or invalid overrides"},
        502: {"model": ErrorResponseModel, "description": "Spreadsheet could not be read"},
    }
)
def ingest_sheet(
    ingest_request: IngestSheetRequestModel,
    source_id: str = Path(..., min_length=1, max_length=200, description="Spreadsheet id"),
    use_case: IngestMetricsUseCase = Depends(get_ingest_use_case),
):
    """Ingest a spreadsheet tab."""
    overrides = {
        metric: bounds.model_dump()
        for metric, bounds in (ingest_request.thresholds or {}).items()
    }
    response = use_case.execute(IngestMetricsRequest(
        source_id=source_id,
        sheet_name=ingest_request.sheet_name,
        force_refresh=ingest_request.refresh,
        threshold_overrides=overrides,
    ))
    return {"success": True, **response.to_dict()}


@router.post(
    "/calculate",
    response_model=CalculateResponseModel,
    summary="Calculate derived metrics",
    description="Derive ratios, statuses and funnel from base counters; trend when a previous period is given",
    responses={
        422: {"model": ErrorResponseModel, "description": "Invalid counters or overrides"},
    }
)
def calculate_metrics(
    calculate_request: CalculateRequestModel,
    thresholds: ThresholdTable = Depends(get_threshold_table),
):
    """Calculate derived metrics for one period."""
    counters = calculate_request.model_dump(
        include={"investimento", "impressoes", "cliques", "page_views", "checkouts", "vendas", "leads", "valor_total"}
    )
    derived = calculate(BaseCounters(**counters))

    table = thresholds.merge({
        metric: bounds.model_dump()
        for metric, bounds in (calculate_request.thresholds or {}).items()
    })
    payload = derived.as_dict()

    trend = None
    if calculate_request.previous is not None:
        previous = calculate(BaseCounters(**calculate_request.previous.model_dump()))
        trend = {
            name: result.to_dict()
            for name, result in compare_metrics(derived, previous, TRACKED_METRICS).items()
        }

    logger.info(
        "metrics_calculated",
        has_previous=calculate_request.previous is not None,
        threshold_overrides=sorted(calculate_request.thresholds or {}),
        correlation_id=get_correlation_id(),
    )

    return {
        "success": True,
        "derived": payload,
        "formatted": {name: format_metric_value(value, metric_format(name)) for name, value in payload.items()},
        "statuses": {name: level.value for name, level in table.classify_all(payload).items()},
        "funnel": [stage.to_dict() for stage in build_funnel(derived, calculate_request.expected_rates)],
        "trend": trend,
    }


@router.get(
    "/thresholds",
    response_model=ThresholdsResponseModel,
    summary="Effective threshold table",
)
def list_thresholds(thresholds: ThresholdTable = Depends(get_threshold_table)):
    """Return the threshold table applied when a call brings no overrides."""
    return {
        "success": True,
        "thresholds": {
            metric: {
                "green": threshold.green_bound,
                "yellow": threshold.yellow_bound,
                "higher_is_better": threshold.higher_is_better,
            }
            for metric, threshold in thresholds.as_dict().items()
        },
    }


@router.get(
    "/unmatched-headers",
    response_model=UnmatchedHeadersResponseModel,
    summary="Headers awaiting an alias",
)
def list_unmatched_headers(collector: UnmatchedHeaderCollector = Depends(get_unmatched_collector)):
    """List headers seen in ingested sheets that did not resolve to a metric."""
    headers = collector.snapshot()
    return {
        "success": True,
        "headers": headers,
        "count": len(headers),
        "dropped": collector.dropped,
        "max_size": collector.max_size,
    }


@router.delete(
    "/unmatched-headers",
    response_model=ClearUnmatchedResponseModel,
    status_code=status.HTTP_200_OK,
    summary="Reset the unmatched header registry",
)
def clear_unmatched_headers(collector: UnmatchedHeaderCollector = Depends(get_unmatched_collector)):
    """Clear the unmatched header registry."""
    cleared = len(collector)
    collector.clear()

    logger.info(
        "unmatched_headers_cleared",
        cleared=cleared,
        correlation_id=get_correlation_id(),
    )
    return {"success": True, "cleared": cleared}
