"""Test derived metric calculation."""

import math

import pandas as pd
import pytest
from hypothesis import given, strategies as st

from metrichub.domain.metrics.calculator import BaseCounters, calculate, calculate_frame, safe_divide
from metrichub.domain.metrics.keys import MetricKey

DERIVED_NAMES = [
    "cpm", "ctr", "cpc", "cpl", "cpa", "roi", "roas",
    "checkoutRate", "conversionRate", "loadingRate", "ticketMedio",
]

counts = st.integers(min_value=0, max_value=10**9)
huge = st.floats(min_value=0, max_value=1e308, allow_nan=False, allow_infinity=False)


class TestSafeDivide:

    @pytest.mark.parametrize("numerator,denominator,expected", [
        (10, 2, 5.0),
        (10, 0, 0.0),
        (10, -5, 0.0),
        (0, 0, 0.0),
        (10, None, 0.0),
    ])
    def test_safe_divide(self, numerator, denominator, expected):
        assert safe_divide(numerator, denominator) == expected

    def test_custom_fallback(self):
        assert safe_divide(1, 0, fallback=-1.0) == -1.0

    def test_scale_is_applied(self):
        assert safe_divide(1, 4, scale=100) == 25.0

    def test_scaled_overflow_yields_fallback(self):
        assert safe_divide(1e306, 1, scale=1000) == 0.0


class TestBaseCounters:
    """Test base counter coercion."""

    def test_missing_counters_are_zero(self):
        counters = BaseCounters(investimento=100)

        assert counters.impressoes == 0.0
        assert counters.valor_total == 0.0

    def test_cells_are_parsed(self):
        counters = BaseCounters(investimento="R$ 1.234,50", cliques="1000", vendas=None, leads="—")

        assert counters.investimento == pytest.approx(1234.5)
        assert counters.cliques == 1000.0
        assert counters.vendas == 0.0
        assert counters.leads == 0.0

    def test_is_immutable(self, base_counters):
        with pytest.raises(AttributeError):
            base_counters.investimento = 1

    def test_from_mapping_accepts_camel_case(self):
        counters = BaseCounters.from_mapping({"pageViews": 850, "valorTotal": 5000, "unknown": 1})

        assert counters.page_views == 850.0
        assert counters.valor_total == 5000.0

    def test_from_canonical_ignores_unrecognized_entries(self):
        row = {
            MetricKey.INVESTIMENTO: "R$ 10,00",
            MetricKey.VISITAS_PAGINA: "85",
            MetricKey.FATURAMENTO: "R$ 50,00",
            "vendas": "999",
            "Observações": "x",
        }

        counters = BaseCounters.from_canonical(row)

        assert counters.investimento == pytest.approx(10.0)
        assert counters.page_views == 85.0
        assert counters.valor_total == pytest.approx(50.0)
        assert counters.vendas == 0.0


class TestCalculate:
    """Test the derived ratios."""

    def test_reference_period(self, base_counters):
        derived = calculate(base_counters)

        assert derived.cpm == pytest.approx(10.0)
        assert derived.ctr == pytest.approx(1.0)
        assert derived.cpc == pytest.approx(1.0)
        assert derived.cpa == pytest.approx(50.0)
        assert derived.roi == pytest.approx(400.0)
        assert derived.roas == pytest.approx(5.0)
        assert derived.checkout_rate == pytest.approx(200 / 850 * 100)
        assert derived.conversion_rate == pytest.approx(2.0)
        assert derived.loading_rate == pytest.approx(85.0)
        assert derived.ticket_medio == pytest.approx(250.0)
        assert derived.cpl == 0.0

    def test_all_zero_counters_yield_zero(self):
        """Zero denominators never produce NaN or infinity."""
        derived = calculate(BaseCounters())

        for name in DERIVED_NAMES:
            assert derived[name] == 0.0

    def test_accepts_mapping(self):
        derived = calculate({"investimento": 100, "impressoes": 10000, "valorTotal": 300})

        assert derived.cpm == pytest.approx(10.0)
        assert derived.roas == pytest.approx(3.0)

    def test_roi_is_negative_on_loss(self):
        derived = calculate(BaseCounters(investimento=1000, valor_total=500))

        assert derived.roi == pytest.approx(-50.0)

    def test_payload_names(self, base_counters):
        payload = calculate(base_counters).as_dict()

        assert list(payload)[:8] == [
            "investimento", "impressoes", "cliques", "pageViews",
            "checkouts", "vendas", "leads", "valorTotal",
        ]
        assert set(DERIVED_NAMES) <= set(payload)
        assert payload["pageViews"] == 850.0

    def test_get_returns_default_for_unknown_name(self, base_counters):
        derived = calculate(base_counters)

        assert derived.get("roas") == pytest.approx(5.0)
        assert derived.get("frequencia") is None
        with pytest.raises(KeyError):
            derived["frequencia"]

    @given(counts, counts, counts, counts, counts, counts, counts, counts)
    def test_derived_values_are_always_finite(
        self, investimento, impressoes, cliques, page_views, checkouts, vendas, leads, valor_total
    ):
        derived = calculate(BaseCounters(
            investimento=investimento,
            impressoes=impressoes,
            cliques=cliques,
            page_views=page_views,
            checkouts=checkouts,
            vendas=vendas,
            leads=leads,
            valor_total=valor_total,
        ))

        for name in DERIVED_NAMES:
            assert math.isfinite(derived[name])

    @given(huge, huge, huge, huge, huge, huge, huge, huge)
    def test_derived_values_stay_finite_near_float_max(
        self, investimento, impressoes, cliques, page_views, checkouts, vendas, leads, valor_total
    ):
        derived = calculate(BaseCounters(
            investimento=investimento,
            impressoes=impressoes,
            cliques=cliques,
            page_views=page_views,
            checkouts=checkouts,
            vendas=vendas,
            leads=leads,
            valor_total=valor_total,
        ))

        for name in DERIVED_NAMES:
            assert math.isfinite(derived[name])

    def test_scaled_overflow_yields_zero(self):
        derived = calculate(BaseCounters(investimento=1e306, impressoes=1, cliques=1e307))

        assert derived.cpm == 0.0
        assert derived.ctr == 0.0
        assert derived.cpc == pytest.approx(1e306 / 1e307)

    @given(counts, counts)
    def test_zero_denominator_yields_zero(self, investimento, valor_total):
        derived = calculate(BaseCounters(investimento=investimento, valor_total=valor_total))

        assert derived.cpm == 0.0
        assert derived.cpa == 0.0
        assert derived.ticket_medio == 0.0


class TestCalculateFrame:
    """Test vectorised calculation over periods."""

    def test_matches_scalar_calculation(self, base_counters):
        frame = pd.DataFrame([{
            "investimento": 1000,
            "impressoes": 100000,
            "cliques": 1000,
            "pageViews": 850,
            "checkouts": 200,
            "vendas": 20,
            "valorTotal": 5000,
        }])

        result = calculate_frame(frame)
        expected = calculate(base_counters).as_dict()

        for name, value in expected.items():
            assert result.loc[0, name] == pytest.approx(value)

    def test_parses_cells_and_defaults_missing(self):
        frame = pd.DataFrame({
            "investimento": ["R$ 1.000,00", "0"],
            "impressoes": [100000, 0],
            "valorTotal": ["R$ 5.000,00", "—"],
        })

        result = calculate_frame(frame)

        assert result["cpm"].tolist() == pytest.approx([10.0, 0.0])
        assert result["roas"].tolist() == pytest.approx([5.0, 0.0])
        assert result["cliques"].tolist() == [0.0, 0.0]
        assert not result.isna().any().any()

    def test_scaled_overflow_yields_zero(self):
        frame = pd.DataFrame({"investimento": [1e306, 1000.0], "impressoes": [1.0, 100000.0]})

        result = calculate_frame(frame)

        assert result["cpm"].tolist() == pytest.approx([0.0, 10.0])
        assert all(math.isfinite(value) for value in result[DERIVED_NAMES].to_numpy().ravel())
