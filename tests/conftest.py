"""Test configuration and shared fixtures."""

import logging

import pytest
import structlog

from metrichub.application.config import Config
from metrichub.domain.metrics.aliases import AliasRegistry, AliasResolver, UnmatchedHeaderCollector
from metrichub.domain.metrics.calculator import BaseCounters
from metrichub.domain.metrics.engine import MetricsEngine
from metrichub.shared.logging.factory import QUIET_LOGGERS

from tests.fakes import DictSettingsProvider, FakeClock, FakeSheetSource


@pytest.fixture
def source_id() -> str:
    """Valid spreadsheet id for tests."""
    return "1AbCdEfGhIjKlMnOpQrStUvWxYz0123456789"


@pytest.fixture
def sheet_rows() -> list:
    """Sheet snapshot with a header row and two periods."""
    return [
        ["Data", "Valor usado (BRL)", "Impressões", "Cliques no link", "Visualizações da página de destino",
         "Checkouts iniciados", "Compras", "Receita", "Observações"],
        ["01/09/2024", "R$ 800,00", "80000", "900", "700", "150", "16", "R$ 3.200,00", "campanha A"],
        ["01/10/2024", "R$ 1.000,00", "100000", "1000", "850", "200", "20", "R$ 5.000,00", "campanha B"],
    ]


@pytest.fixture
def base_counters() -> BaseCounters:
    """Reference counters for one period."""
    return BaseCounters(
        investimento=1000,
        impressoes=100000,
        cliques=1000,
        page_views=850,
        checkouts=200,
        vendas=20,
        valor_total=5000,
    )


@pytest.fixture
def registry() -> AliasRegistry:
    return AliasRegistry.default()


@pytest.fixture
def collector() -> UnmatchedHeaderCollector:
    return UnmatchedHeaderCollector(max_size=50)


@pytest.fixture
def resolver(registry, collector) -> AliasResolver:
    return AliasResolver(registry, collector)


@pytest.fixture
def engine(resolver) -> MetricsEngine:
    return MetricsEngine(resolver)


@pytest.fixture
def settings() -> DictSettingsProvider:
    return DictSettingsProvider({"ENVIRONMENT": "test"})


@pytest.fixture
def config(settings) -> Config:
    return Config(settings)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sheet_source(source_id, sheet_rows) -> FakeSheetSource:
    return FakeSheetSource({(source_id, "Dashboard"): sheet_rows})


@pytest.fixture
def restore_logging():
    """Undo configure_logging side effects after the test."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    quiet_levels = {name: logging.getLogger(name).level for name in QUIET_LOGGERS}
    yield
    structlog.reset_defaults()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
    for name, quiet_level in quiet_levels.items():
        logging.getLogger(name).setLevel(quiet_level)
