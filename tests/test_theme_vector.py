"""Tests for theme vector inference and arithmetic."""

import pytest
from pydantic import ValidationError

from decision_engine.core.schemas_analysis import THEME_AXES, ThemeVector
from decision_engine.core.seeding import hash_to_unit, seeded_value
from decision_engine.core.theme_vector import (
    average_theme_vectors,
    blend_theme_vectors,
    cosine_similarity,
    dominant_theme,
    infer_decision_theme_vector,
    theme_fit_score,
)


def _vector(*values):
    return ThemeVector(**dict(zip(THEME_AXES, values)))


class TestInferDecisionThemeVector:
    def test_keywords_and_structure_boost_axes(self, launch_brief):
        themes = infer_decision_theme_vector(launch_brief)

        assert themes.risk == pytest.approx(0.59)
        assert themes.urgency == pytest.approx(0.75)
        assert themes.opportunity == pytest.approx(0.61)
        assert themes.uncertainty == pytest.approx(0.53)
        assert themes.resources == pytest.approx(0.69)
        assert themes.stakeholder_impact == pytest.approx(0.66)

    def test_sparse_brief_stays_near_base(self, minimal_brief):
        themes = infer_decision_theme_vector(minimal_brief)

        assert themes.risk == pytest.approx(0.43)
        assert themes.urgency == pytest.approx(0.32)
        assert themes.opportunity == pytest.approx(0.42)
        assert themes.uncertainty == pytest.approx(0.35)
        assert themes.resources == pytest.approx(0.44)
        assert themes.stakeholder_impact == pytest.approx(0.5)

    def test_low_tolerance_raises_risk(self, minimal_brief):
        cautious = minimal_brief.model_copy(update={"risk_tolerance": "low"})
        bold = minimal_brief.model_copy(update={"risk_tolerance": "high"})

        assert infer_decision_theme_vector(cautious).risk > infer_decision_theme_vector(bold).risk

    def test_inference_is_deterministic(self, launch_brief):
        assert infer_decision_theme_vector(launch_brief) == infer_decision_theme_vector(launch_brief)


class TestThemeVector:
    def test_axes_are_clamped_and_rounded(self):
        themes = ThemeVector(
            risk=1.7, urgency=-0.2, opportunity=0.12345, uncertainty=0.5, resources=0.5,
            stakeholder_impact=float("nan"),
        )

        assert themes.risk == 1.0
        assert themes.urgency == 0.0
        assert themes.opportunity == 0.123
        assert themes.stakeholder_impact == 0.0

    @pytest.mark.parametrize("bad", [None, "high", [0.5]])
    def test_non_numeric_axis_is_a_validation_error(self, bad):
        with pytest.raises(ValidationError) as exc_info:
            _vector(bad, 0.5, 0.5, 0.5, 0.5, 0.5)

        assert exc_info.value.errors()[0]["loc"] == ("risk",)

    def test_blend_is_symmetric_at_half(self):
        a = _vector(0.1, 0.9, 0.333, 0.7, 0.2, 0.55)
        b = _vector(0.8, 0.3, 0.667, 0.1, 0.9, 0.45)

        assert blend_theme_vectors(a, b) == blend_theme_vectors(b, a)

    def test_blend_weight_extremes(self):
        a = _vector(0.1, 0.2, 0.3, 0.4, 0.5, 0.6)
        b = _vector(0.9, 0.8, 0.7, 0.6, 0.5, 0.4)

        assert blend_theme_vectors(a, b, 0.0) == a
        assert blend_theme_vectors(a, b, 1.0) == b

    def test_average_of_empty_list_is_neutral(self):
        assert average_theme_vectors([]).as_tuple() == (0.5,) * 6

    def test_cosine_similarity(self):
        a = _vector(0.1, 0.2, 0.3, 0.4, 0.5, 0.6)
        zero = _vector(0, 0, 0, 0, 0, 0)

        assert cosine_similarity(a, a) == pytest.approx(1.0)
        assert cosine_similarity(a, zero) == 0.0

    def test_dominant_theme_ties_resolve_to_first_axis(self):
        assert dominant_theme(_vector(0.5, 0.5, 0.5, 0.5, 0.5, 0.5)) == "risk"
        assert dominant_theme(_vector(0.1, 0.2, 0.9, 0.4, 0.9, 0.6)) == "opportunity"


class TestThemeFitScore:
    def test_fit_is_weighted_average(self):
        weights = _vector(1, 0, 0, 0, 0, 1)
        themes = _vector(0.8, 0.1, 0.1, 0.1, 0.1, 0.4)

        assert theme_fit_score(weights, themes) == pytest.approx(0.6)

    def test_fit_is_in_unit_range_and_zero_weights_are_safe(self, launch_brief):
        themes = infer_decision_theme_vector(launch_brief)

        assert 0.0 <= theme_fit_score(themes, themes) <= 1.0
        assert theme_fit_score(_vector(0, 0, 0, 0, 0, 0), themes) == 0.0


class TestSeeding:
    def test_hash_to_unit_is_stable_and_salted(self):
        assert hash_to_unit("seed", "a") == hash_to_unit("seed", "a")
        assert hash_to_unit("seed", "a") != hash_to_unit("seed", "b")
        assert 0.0 <= hash_to_unit("seed", "a") <= 1.0

    def test_seeded_value_respects_bounds(self):
        for salt in ("x", "y", "z", "w"):
            assert -0.07 <= seeded_value("seed", salt, -0.07, 0.07) <= 0.07
