"""Test the ingestion pipeline over sheet snapshots."""

import pytest

from metrichub.domain.errors import InsufficientRowsError, InvalidThresholdError
from metrichub.domain.metrics.engine import MetricsEngine
from metrichub.domain.metrics.thresholds import PerformanceStatus, Threshold, ThresholdTable
from metrichub.domain.metrics.trend import TRACKED_METRICS, TrendDirection


class TestCanonicalMetrics:
    """Test column resolution of a single row."""

    def test_resolves_columns_in_order(self, engine, sheet_rows):
        metrics = engine.canonical_metrics(sheet_rows[0], sheet_rows[2])

        assert [metric.key_name for metric in metrics] == [
            "Data", "investimento", "impressoes", "cliques", "visitas_pagina",
            "checkouts", "vendas", "faturamento", "Observações",
        ]
        assert metrics[1].parsed_value == pytest.approx(1000.0)
        assert metrics[1].formatted_value == "R$ 1.000,00"
        assert metrics[1].label == "Investimento"

    def test_date_cell(self, engine, sheet_rows):
        date_metric = engine.canonical_metrics(sheet_rows[0], sheet_rows[2])[0]

        assert date_metric.recognized is False
        assert date_metric.parsed_value is None
        assert date_metric.date_value == "2024-10-01"
        assert date_metric.formatted_value == "2024-10-01"

    def test_unrecognized_column_keeps_header(self, engine, sheet_rows):
        notes = engine.canonical_metrics(sheet_rows[0], sheet_rows[2])[-1]

        assert notes.key == "Observações"
        assert notes.label == "Observações"
        assert notes.raw_value == "campanha B"
        assert notes.parsed_value is None

    def test_short_row_is_padded(self, engine):
        metrics = engine.canonical_metrics(["Gasto", "Cliques", "Vendas"], ["R$ 10,00"])

        assert [metric.raw_value for metric in metrics] == ["R$ 10,00", "", ""]
        assert metrics[2].parsed_value is None
        assert metrics[2].formatted_value == "—"

    def test_blank_headers_are_skipped(self, engine, collector):
        metrics = engine.canonical_metrics(["Gasto", "", None, "  "], ["1", "2", "3", "4"])

        assert len(metrics) == 1
        assert len(collector) == 0

    def test_to_dict(self, engine, sheet_rows):
        payload = engine.canonical_metrics(sheet_rows[0], sheet_rows[2])[2].to_dict()

        assert payload == {
            "metric_key": "impressoes",
            "original_name": "Impressões",
            "label": "Impressões",
            "recognized": True,
            "value": "100000",
            "parsed_value": 100000.0,
            "date_value": None,
            "formatted_value": "100.000",
        }


class TestProcess:
    """Test a full ingestion pass."""

    def test_derives_current_period_from_last_row(self, engine, sheet_rows):
        result = engine.process(sheet_rows)

        assert result.derived.cpm == pytest.approx(10.0)
        assert result.derived.roas == pytest.approx(5.0)
        assert result.derived.ticket_medio == pytest.approx(250.0)
        assert result.total_rows == 3
        assert result.recognized_count == 7

    def test_statuses(self, engine, sheet_rows):
        statuses = engine.process(sheet_rows).statuses

        assert statuses["cpm"] == PerformanceStatus.GREEN
        assert statuses["ctr"] == PerformanceStatus.YELLOW
        assert statuses["roas"] == PerformanceStatus.GREEN
        assert statuses["checkoutRate"] == PerformanceStatus.YELLOW

    def test_funnel(self, engine, sheet_rows):
        funnel = engine.process(sheet_rows).funnel

        assert [stage.value_at_stage for stage in funnel] == [100000, 1000, 850, 200, 20]
        assert funnel[1].drop_rate_pct == pytest.approx(99.0)

    def test_unrecognized_headers(self, engine, collector, sheet_rows):
        result = engine.process(sheet_rows)

        assert result.unrecognized_headers == ["Data", "Observações"]
        assert collector.snapshot() == ["Data", "Observações"]

    def test_trend_against_previous_row(self, engine, sheet_rows):
        result = engine.process(sheet_rows)

        assert list(result.trend) == list(TRACKED_METRICS)
        assert result.trend["investimento"].previous_value == pytest.approx(800.0)
        assert result.trend["investimento"].percent_change == pytest.approx(25.0)
        assert result.trend["roas"].direction == TrendDirection.UP

    def test_column_trends(self, engine, sheet_rows):
        column_trends = engine.process(sheet_rows).column_trends

        assert "Data" not in column_trends
        assert "Observações" not in column_trends
        assert column_trends["impressoes"].percent_change == pytest.approx(25.0)
        assert column_trends["faturamento"].current_value == pytest.approx(5000.0)

    def test_single_period_has_no_trend(self, engine, sheet_rows):
        result = engine.process(sheet_rows[:2])

        assert result.trend is None
        assert result.column_trends is None
        assert result.derived.investimento == pytest.approx(800.0)

    @pytest.mark.parametrize("rows", [[], [["Gasto", "Cliques"]]])
    def test_requires_header_and_data_row(self, engine, rows):
        with pytest.raises(InsufficientRowsError):
            engine.process(rows)

    def test_duplicate_columns_first_wins(self, engine):
        result = engine.process([
            ["spend", "Gasto", "Impressões"],
            ["100", "999", "1000"],
        ])

        assert result.derived.investimento == 100.0
        assert result.derived.cpm == pytest.approx(100.0)

    def test_unrecognized_columns_never_feed_derived_metrics(self, engine):
        result = engine.process([
            ["Gasto", "Vendas extras"],
            ["100", "50"],
        ])

        assert result.derived.vendas == 0.0
        assert result.derived.cpa == 0.0

    def test_oversized_cell_does_not_break_classification(self, engine):
        result = engine.process([
            ["Valor usado (BRL)", "Impressões"],
            ["9" * 306, "1"],
        ])

        assert result.derived.investimento > 1e305
        assert result.derived.cpm == 0.0
        assert result.statuses["cpm"] == PerformanceStatus.GREEN

    def test_threshold_overrides(self, engine, sheet_rows):
        result = engine.process(
            sheet_rows, threshold_overrides={"cpm": {"green": 5, "yellow": 8, "higher_is_better": False}}
        )

        assert result.statuses["cpm"] == PerformanceStatus.RED
        assert engine.thresholds.classify("cpm", 10) == PerformanceStatus.GREEN

    def test_invalid_override(self, engine, sheet_rows):
        with pytest.raises(InvalidThresholdError):
            engine.process(sheet_rows, threshold_overrides={"cpm": {"green": 5}})

    def test_engine_thresholds_and_expected_rates(self, resolver, sheet_rows):
        engine = MetricsEngine(
            resolver,
            thresholds=ThresholdTable({"roas": Threshold("roas", 10, 6, True)}),
            expected_rates={"conversao": 5},
        )

        result = engine.process(sheet_rows)

        assert result.statuses == {"roas": PerformanceStatus.RED}
        assert result.funnel[4].status == PerformanceStatus.GREEN

    def test_to_dict(self, engine, sheet_rows):
        payload = engine.process(sheet_rows).to_dict()

        assert payload["derived"]["pageViews"] == 850.0
        assert payload["statuses"]["cpm"] == "green"
        assert payload["trend"]["roas"]["direction"] == "up"
        assert payload["funnel"][0]["key"] == "criativo"
        assert payload["metrics"][0]["date_value"] == "2024-10-01"
        assert payload["total_rows"] == 3

    def test_does_not_share_state_between_calls(self, engine, sheet_rows):
        first = engine.process(sheet_rows)
        second = engine.process(sheet_rows)

        assert first.to_dict() == second.to_dict()
