"""Dependency providers for the MetricHub API.

The container is built once per process from the environment. Tests replace
providers through app.dependency_overrides.
"""

from dataclasses import dataclass
from typing import Optional

from metrichub.application.config import Config
from metrichub.application.use_cases.ingest_metrics import IngestMetricsUseCase
from metrichub.domain.metrics.aliases import UnmatchedHeaderCollector
from metrichub.domain.metrics.engine import MetricsEngine
from metrichub.domain.metrics.thresholds import ThresholdTable
from metrichub.infrastructure.bootstrap import bootstrap_config, build_engine, build_ingest_use_case


@dataclass
class ApiContainer:
    """Process-wide collaborators shared by the routes."""

    config: Config
    collector: UnmatchedHeaderCollector
    engine: MetricsEngine
    ingest_use_case: IngestMetricsUseCase

    @property
    def threshold_table(self) -> ThresholdTable:
        return self.engine.thresholds

    @classmethod
    def build(cls, config: Config) -> "ApiContainer":
        collector = UnmatchedHeaderCollector(config.UNMATCHED_HEADERS_MAX)
        engine = build_engine(config, collector)
        return cls(
            config=config,
            collector=collector,
            engine=engine,
            ingest_use_case=build_ingest_use_case(config, engine=engine),
        )


_container: Optional[ApiContainer] = None


def get_container() -> ApiContainer:
    global _container
    if _container is None:
        _container = ApiContainer.build(bootstrap_config())
    return _container


def get_ingest_use_case() -> IngestMetricsUseCase:
    """Get IngestMetricsUseCase instance with dependencies."""
    return get_container().ingest_use_case


def get_unmatched_collector() -> UnmatchedHeaderCollector:
    """Get the process-wide unmatched header collector."""
    return get_container().collector


def get_threshold_table() -> ThresholdTable:
    """Get the effective threshold table (defaults plus operator overrides)."""
    return get_container().threshold_table
