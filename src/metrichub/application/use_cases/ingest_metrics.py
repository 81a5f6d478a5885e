"""Ingest metrics use case for MetricHub."""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from metrichub.application.config import Config
from metrichub.application.errors import InsufficientDataError, SheetFetchError, ValidationError
from metrichub.application.ports import IngestionCache, SheetSource
from metrichub.domain.errors import DomainError, InsufficientRowsError, InvalidThresholdError
from metrichub.domain.metrics.engine import IngestionResult, MetricsEngine
from metrichub.shared.logging import get_logger
from metrichub.shared.logging.context import get_correlation_id, source_context


@dataclass(frozen=True)
class IngestMetricsRequest:
    """Request DTO for metric ingestion."""
    source_id: str
    sheet_name: Optional[str] = None
    force_refresh: bool = False
    threshold_overrides: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class IngestMetricsResponse:
    """Response DTO for metric ingestion."""
    source_id: str
    sheet_name: str
    result: IngestionResult
    from_cache: bool

    def to_dict(self) -> Dict[str, Any]:
        payload = self.result.to_dict()
        payload["sheet_name"] = self.sheet_name
        payload["from_cache"] = self.from_cache
        return payload


class IngestMetricsUseCase:
    """Fetch a sheet snapshot and run it through the metrics engine."""

    def __init__(
        self,
        sheet_source: SheetSource,
        engine: MetricsEngine,
        cache: IngestionCache,
        config: Config,
    ) -> None:
        """
        Initialize use case with dependencies.

        Args:
            sheet_source: Upstream spreadsheet reader
            engine: Metrics engine (owns the alias resolver)
            cache: Short-lived result cache
            config: Application configuration
        """
        self._sheet_source = sheet_source
        self._engine = engine
        self._cache = cache
        self._config = config
        self._logger = get_logger("application.ingest_metrics")

    @staticmethod
    def cache_key(source_id: str, sheet_name: str) -> str:
        return f"{source_id}:{sheet_name}"

    def execute(self, request: IngestMetricsRequest) -> IngestMetricsResponse:
        """
        Execute metric ingestion.

        Args:
            request: Ingestion request

        Returns:
            Ingestion response

        Raises:
            ValidationError: If the request or a threshold override is invalid
            SheetFetchError: If the spreadsheet cannot be read
            InsufficientDataError: If the sheet has no data row
        """
        start = time.time()
        correlation_id = get_correlation_id()

        if not request.source_id or not request.source_id.strip():
            raise ValidationError("source_id", "must not be empty")

        sheet_name = request.sheet_name or self._config.DEFAULT_SHEET_NAME
        key = self.cache_key(request.source_id, sheet_name)
        use_cache = not request.force_refresh and not request.threshold_overrides

        with source_context(request.source_id):
            self._logger.info(
                "metrics_ingestion_started",
                source_id=request.source_id,
                sheet_name=sheet_name,
                force_refresh=request.force_refresh,
                has_threshold_overrides=bool(request.threshold_overrides),
                correlation_id=correlation_id,
            )

            if use_cache:
                cached = self._cache.get(key)
                if cached is not None:
                    self._logger.info(
                        "metrics_ingestion_cache_hit",
                        source_id=request.source_id,
                        sheet_name=sheet_name,
                        duration_ms=(time.time() - start) * 1000,
                        correlation_id=correlation_id,
                    )
                    return IngestMetricsResponse(request.source_id, sheet_name, cached, from_cache=True)
            elif request.force_refresh:
                self._cache.invalidate(key)

            try:
                rows = self._sheet_source.fetch_values(request.source_id, sheet_name)
                result = self._engine.process(rows, request.threshold_overrides or None)
            except SheetFetchError as e:
                self._log_failure(request, sheet_name, e, start, correlation_id)
                raise
            except InsufficientRowsError as e:
                self._log_failure(request, sheet_name, e, start, correlation_id)
                raise InsufficientDataError(request.source_id, e.rows) from e
            except InvalidThresholdError as e:
                self._log_failure(request, sheet_name, e, start, correlation_id)
                raise ValidationError(f"thresholds.{e.metric_key}", e.reason) from e
            except DomainError as e:
                self._log_failure(request, sheet_name, e, start, correlation_id)
                raise ValidationError("sheet", e.message) from e

            if use_cache or request.force_refresh:
                self._cache.set(key, result, self._config.METRICS_CACHE_TTL_SECONDS)

            self._logger.info(
                "metrics_ingestion_completed",
                source_id=request.source_id,
                sheet_name=sheet_name,
                total_rows=result.total_rows,
                recognized_count=result.recognized_count,
                unrecognized_count=len(result.unrecognized_headers),
                has_trend=result.trend is not None,
                duration_ms=(time.time() - start) * 1000,
                correlation_id=correlation_id,
            )

        return IngestMetricsResponse(request.source_id, sheet_name, result, from_cache=False)

    def _log_failure(
        self,
        request: IngestMetricsRequest,
        sheet_name: str,
        error: Exception,
        start: float,
        correlation_id: Optional[str],
    ) -> None:
        self._logger.warning(
            "metrics_ingestion_failed",
            source_id=request.source_id,
            sheet_name=sheet_name,
            error=str(error),
            error_type=error.__class__.__name__,
            duration_ms=(time.time() - start) * 1000,
            correlation_id=correlation_id,
        )
