"""
Application bootstrap and dependency injection configuration.
This is the composition root where all dependencies are wired together.
"""

from typing import Optional

import httpx

from metrichub.application.config import Config, get_config
from metrichub.application.ports import IngestionCache, SheetSource
from metrichub.application.use_cases.ingest_metrics import IngestMetricsUseCase
from metrichub.domain.metrics.aliases import AliasRegistry, AliasResolver, UnmatchedHeaderCollector
from metrichub.domain.metrics.engine import MetricsEngine
from metrichub.domain.metrics.thresholds import ThresholdTable
from metrichub.infrastructure.adapters.cache.result_cache import InMemoryResultCache
from metrichub.infrastructure.config.env_settings import EnvSettingsProvider
from metrichub.infrastructure.config.yaml_loader import load_alias_registry, load_threshold_table
from metrichub.infrastructure.sheets.google_sheets_source import GoogleSheetsConfig, GoogleSheetsSource
from metrichub.shared.logging import configure_logging


def bootstrap_config() -> Config:
    """
    Bootstrap application configuration from the environment.

    Returns:
        Configured Config instance
    """
    return get_config(EnvSettingsProvider())


def configure_logging_from(config: Config) -> None:
    configure_logging(
        environment=config.ENVIRONMENT.value,
        log_level=config.LOG_LEVEL,
        json_logs=config.json_logs,
    )


def build_alias_registry(config: Config) -> AliasRegistry:
    """Built-in alias table, extended by the operator table when configured."""
    registry = AliasRegistry.default()
    if config.ALIAS_TABLE_PATH:
        registry = load_alias_registry(config.ALIAS_TABLE_PATH, base=registry)
    return registry


def build_threshold_table(config: Config) -> ThresholdTable:
    """Default thresholds with the operator overrides merged in when configured."""
    if config.THRESHOLDS_PATH:
        return load_threshold_table(config.THRESHOLDS_PATH)
    return ThresholdTable()


def build_engine(
    config: Config,
    collector: Optional[UnmatchedHeaderCollector] = None,
) -> MetricsEngine:
    resolver = AliasResolver(
        build_alias_registry(config),
        collector or UnmatchedHeaderCollector(config.UNMATCHED_HEADERS_MAX),
    )
    return MetricsEngine(resolver, thresholds=build_threshold_table(config))


def build_sheet_source(config: Config, transport: Optional[httpx.BaseTransport] = None) -> GoogleSheetsSource:
    return GoogleSheetsSource(
        GoogleSheetsConfig(
            api_key=config.GOOGLE_SHEETS_API_KEY,
            access_token=config.GOOGLE_SHEETS_ACCESS_TOKEN,
            value_range=config.SHEET_RANGE,
            timeout_seconds=config.GOOGLE_SHEETS_TIMEOUT_SECONDS,
            retries=config.GOOGLE_SHEETS_RETRIES,
        ),
        transport=transport,
    )


def build_ingest_use_case(
    config: Config,
    sheet_source: Optional[SheetSource] = None,
    cache: Optional[IngestionCache] = None,
    engine: Optional[MetricsEngine] = None,
) -> IngestMetricsUseCase:
    """
    Wire the ingestion use case.

    Any collaborator can be passed in; the rest are built from config.

    Args:
        config: Application configuration
        sheet_source: Spreadsheet reader (Google Sheets by default)
        cache: Result cache (in-memory TTL cache by default)
        engine: Metrics engine (built from the alias and threshold tables by default)

    Returns:
        IngestMetricsUseCase
    """
    return IngestMetricsUseCase(
        sheet_source=sheet_source or build_sheet_source(config),
        engine=engine or build_engine(config),
        cache=cache or InMemoryResultCache(config.METRICS_CACHE_TTL_SECONDS),
        config=config,
    )
