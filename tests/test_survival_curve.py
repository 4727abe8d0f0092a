"""
Tests for cir_cds_option.survival_curve.
"""
from datetime import date, timedelta

import numpy as np
import pytest

from cir_cds_option.errors import InvalidParameterError
from cir_cds_option.survival_curve import (
    SurvivalCurve, build_survival_curve, enforce_monotone,
)


EXERCISE = date(2025, 1, 15)
MATURITY = date(2029, 1, 15)


def _build(model, x, evaluation_date):
    return build_survival_curve(model, x, EXERCISE, MATURITY, evaluation_date)


class TestEnforceMonotone:

    def test_clamps_to_predecessor(self):
        np.testing.assert_allclose(enforce_monotone([1.0, 0.9, 0.95, 0.8, 0.85, 0.85]),
                                   [1.0, 0.9, 0.9, 0.8, 0.8, 0.8])

    def test_leaves_monotone_input(self):
        probs = [1.0, 0.99, 0.97]
        np.testing.assert_array_equal(enforce_monotone(probs), probs)


class TestBuildSurvivalCurve:

    def test_anchor(self, model, evaluation_date):
        curve = _build(model, 0.05, evaluation_date)
        assert curve.reference_date == EXERCISE
        assert curve.probabilities[0] == 1.0
        assert curve.survival_probability(EXERCISE) == 1.0

    def test_quarterly_nodes(self, model, evaluation_date):
        curve = _build(model, 0.05, evaluation_date)
        # 1461 days / 360 * 4 = 16.23 -> 17 subdivisions, plus the anchor;
        # node spacing is dt * 365 calendar days
        assert len(curve.dates) == 18
        gaps = np.diff([d.toordinal() for d in curve.dates])
        assert gaps.min() >= 86 and gaps.max() <= 89

    def test_nodes_are_model_bond_prices(self, model, evaluation_date):
        curve = _build(model, 0.05, evaluation_date)
        t = (EXERCISE - evaluation_date).days / 360.0
        T = (MATURITY - evaluation_date).days / 360.0
        dt = (T - t) / 17
        assert curve.probabilities[4] == pytest.approx(model.discount_bond(t, t + 4 * dt, 0.05))

    @pytest.mark.parametrize("x", [-0.5, -0.05, 0.0, 1e-10, 0.05, 0.5, 5.0, 50.0])
    def test_non_increasing_for_any_intensity(self, model, evaluation_date, x):
        curve = _build(model, x, evaluation_date)
        assert curve.probabilities[0] == 1.0
        assert np.all(np.diff(curve.probabilities) <= 0.0)
        assert np.all((curve.probabilities >= 0.0) & (curve.probabilities <= 1.0))

    def test_negative_intensity_is_flattened(self, model, evaluation_date):
        curve = _build(model, -0.5, evaluation_date)
        assert np.all(curve.probabilities == 1.0)

    def test_single_subdivision_minimum(self, model, evaluation_date):
        curve = build_survival_curve(model, 0.05, EXERCISE, EXERCISE + timedelta(days=10),
                                     evaluation_date)
        assert len(curve.dates) == 2

    def test_maturity_before_exercise(self, model, evaluation_date):
        with pytest.raises(InvalidParameterError):
            build_survival_curve(model, 0.05, EXERCISE, EXERCISE, evaluation_date)


class TestSurvivalCurve:

    @pytest.fixture
    def curve(self):
        return SurvivalCurve(
            dates=[date(2025, 1, 1), date(2025, 7, 1), date(2026, 1, 1)],
            probabilities=[1.0, 0.98, 0.95],
        )

    def test_linear_interpolation(self, curve):
        mid = date(2025, 4, 1)
        t = (mid - date(2025, 1, 1)).days
        T = (date(2025, 7, 1) - date(2025, 1, 1)).days
        assert curve.survival_probability(mid) == pytest.approx(1.0 - 0.02 * t / T)

    def test_extrapolation(self, curve):
        later = curve.survival_probability(date(2026, 7, 1))
        assert later < 0.95
        assert later >= 0.0

    def test_extrapolation_holds_last_hazard(self, curve):
        last_segment = (date(2026, 1, 1) - date(2025, 7, 1)).days
        beyond = (date(2027, 1, 1) - date(2026, 1, 1)).days
        expected = 0.95 * (0.95 / 0.98) ** (beyond / last_segment)
        assert curve.survival_probability(date(2027, 1, 1)) == pytest.approx(expected)
        assert curve.survival_probability(date(2100, 1, 1)) > 0.0

    def test_extrapolation_after_certain_default(self):
        curve = SurvivalCurve([date(2025, 1, 1), date(2026, 1, 1)], [1.0, 0.0])
        assert curve.survival_probability(date(2027, 1, 1)) == 0.0

    def test_extrapolation_without_default_risk(self):
        curve = SurvivalCurve([date(2025, 1, 1), date(2026, 1, 1)], [1.0, 1.0])
        assert curve.survival_probability(date(2030, 1, 1)) == 1.0

    def test_no_extrapolation(self):
        curve = SurvivalCurve([date(2025, 1, 1), date(2026, 1, 1)], [1.0, 0.9], extrapolate=False)
        with pytest.raises(InvalidParameterError):
            curve.survival_probability(date(2027, 1, 1))

    def test_before_reference(self, curve):
        with pytest.raises(InvalidParameterError):
            curve.survival_probability(date(2024, 12, 31))

    def test_default_probability(self, curve):
        assert curve.default_probability(date(2025, 1, 1), date(2026, 1, 1)) == pytest.approx(0.05)

    @pytest.mark.parametrize("dates,probs", [
        ([date(2025, 1, 1), date(2025, 1, 1)], [1.0, 0.9]),
        ([date(2025, 1, 1), date(2026, 1, 1)], [1.0, 1.1]),
        ([date(2025, 1, 1), date(2026, 1, 1)], [0.9, 0.95]),
        ([date(2025, 1, 1)], [1.0, 0.9]),
    ])
    def test_invalid(self, dates, probs):
        with pytest.raises(InvalidParameterError):
            SurvivalCurve(dates, probs)

    def test_from_model(self, model, evaluation_date):
        curve = SurvivalCurve.from_model(model, evaluation_date, date(2030, 1, 15))
        assert curve.probabilities[0] == 1.0
        assert np.all(np.diff(curve.probabilities) < 0.0)
        one_year = evaluation_date + timedelta(days=360)
        assert curve.survival_probability(one_year) == pytest.approx(
            model.discount_bond(0.0, 1.0, model.x0), rel=1e-4)
