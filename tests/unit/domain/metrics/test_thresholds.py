"""Test threshold classification."""

import math

import pytest
from hypothesis import given, strategies as st

from metrichub.domain.errors import InvalidMetricValueError, InvalidThresholdError
from metrichub.domain.metrics.thresholds import (
    DEFAULT_THRESHOLDS,
    PerformanceStatus,
    Threshold,
    ThresholdTable,
    classify,
)


class TestThreshold:
    """Test bound validation and direction."""

    @pytest.mark.parametrize("value,expected", [
        (10, PerformanceStatus.GREEN),
        (15, PerformanceStatus.GREEN),
        (20, PerformanceStatus.YELLOW),
        (25, PerformanceStatus.YELLOW),
        (30, PerformanceStatus.RED),
    ])
    def test_lower_is_better(self, value, expected):
        assert classify("cpm", value) == expected

    @pytest.mark.parametrize("value,expected", [
        (2.0, PerformanceStatus.GREEN),
        (1.5, PerformanceStatus.GREEN),
        (1.0, PerformanceStatus.YELLOW),
        (0.5, PerformanceStatus.RED),
    ])
    def test_higher_is_better(self, value, expected):
        assert classify("ctr", value) == expected

    def test_rejects_unordered_bounds(self):
        with pytest.raises(InvalidThresholdError):
            Threshold("cpm", green_bound=30, yellow_bound=10, higher_is_better=False)
        with pytest.raises(InvalidThresholdError):
            Threshold("ctr", green_bound=0.5, yellow_bound=1.0, higher_is_better=True)

    def test_rejects_non_finite_bounds(self):
        with pytest.raises(InvalidThresholdError):
            Threshold("cpm", green_bound=math.nan, yellow_bound=10, higher_is_better=False)

    def test_from_dict(self):
        threshold = Threshold.from_dict("cpm", {"green": "12", "yellow": 20, "higherIsBetter": False})

        assert threshold == Threshold("cpm", 12.0, 20.0, False)

    @pytest.mark.parametrize("data", [
        {"green": 12, "higher_is_better": False},
        {"green": 12, "yellow": 20},
        {"green": "a lot", "yellow": 20, "higher_is_better": False},
    ])
    def test_from_dict_rejects_incomplete_config(self, data):
        with pytest.raises(InvalidThresholdError) as exc_info:
            Threshold.from_dict("cpm", data)

        assert exc_info.value.metric_key == "cpm"

    def test_status_color(self):
        assert PerformanceStatus.RED.color == "#EF4444"


class TestClassify:
    """Test classification policy."""

    def test_metric_without_threshold_is_green(self):
        assert classify("frequencia", 999) == PerformanceStatus.GREEN

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf, None])
    def test_non_finite_value_is_rejected(self, value):
        with pytest.raises(InvalidMetricValueError):
            classify("cpm", value)

    @given(st.sampled_from(sorted(DEFAULT_THRESHOLDS)), st.floats(allow_nan=False, allow_infinity=False))
    def test_every_finite_value_classifies(self, metric_key, value):
        assert classify(metric_key, value) in PerformanceStatus

    @given(st.floats(min_value=-1e6, max_value=1e6), st.floats(min_value=0, max_value=1e6))
    def test_lower_is_better_is_monotonic(self, value, delta):
        """A higher cost never classifies better."""
        order = [PerformanceStatus.GREEN, PerformanceStatus.YELLOW, PerformanceStatus.RED]

        assert order.index(classify("cpm", value)) <= order.index(classify("cpm", value + delta))


class TestThresholdTable:
    """Test defaults with overrides."""

    def test_defaults(self):
        table = ThresholdTable()

        assert len(table) == len(DEFAULT_THRESHOLDS)
        assert "cpm" in table

    def test_merge_overrides_subset(self):
        table = ThresholdTable()

        merged = table.merge({"cpm": {"green": 8, "yellow": 12, "higher_is_better": False}})

        assert merged.classify("cpm", 10) == PerformanceStatus.YELLOW
        assert table.classify("cpm", 10) == PerformanceStatus.GREEN
        assert merged.get("ctr") == table.get("ctr")

    def test_merge_without_overrides_returns_same_table(self):
        table = ThresholdTable()

        assert table.merge(None) is table
        assert table.merge({}) is table

    def test_merge_accepts_threshold_instances(self):
        merged = ThresholdTable().merge({"frequencia": Threshold("frequencia", 2, 4, False)})

        assert merged.classify("frequencia", 5) == PerformanceStatus.RED

    def test_merge_rejects_invalid_override(self):
        with pytest.raises(InvalidThresholdError):
            ThresholdTable().merge({"cpm": {"green": 30, "yellow": 10, "higher_is_better": False}})

    def test_classify_all_only_present_metrics(self):
        statuses = ThresholdTable().classify_all({"cpm": 30, "roas": 5, "frequencia": 2})

        assert statuses == {"cpm": PerformanceStatus.RED, "roas": PerformanceStatus.GREEN}
