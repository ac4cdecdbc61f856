"""Tests for the framework catalog and fit ranking."""

import pytest

from decision_engine.core.exceptions import UnknownFrameworkError
from decision_engine.core.framework_fit import rank_framework_fits
from decision_engine.core.framework_registry import (
    DEEP_FRAMEWORK_IDS,
    deep_framework_count,
    get_framework_definition,
    is_deep_framework,
    list_framework_definitions,
)
from decision_engine.core.theme_vector import infer_decision_theme_vector


class TestFrameworkRegistry:
    def test_catalog_has_fifty_unique_frameworks(self):
        frameworks = list_framework_definitions()

        assert len(frameworks) == 50
        assert len({f.id for f in frameworks}) == 50

    def test_twelve_deep_frameworks(self):
        assert deep_framework_count() == 12
        assert all(get_framework_definition(fid).deep_supported for fid in DEEP_FRAMEWORK_IDS)
        assert is_deep_framework("swot_analysis")
        assert not is_deep_framework("johari_window")

    def test_unknown_framework_raises(self):
        with pytest.raises(UnknownFrameworkError) as exc_info:
            get_framework_definition("tarot_reading")

        assert exc_info.value.status_code == 400
        assert exc_info.value.details == {"framework_id": "tarot_reading"}

    def test_prompt_template_names_framework(self):
        framework = get_framework_definition("bcg_matrix")

        assert framework.name in framework.prompt_template


class TestRankFrameworkFits:
    def test_ranking_covers_catalog_sorted_descending(self, launch_brief):
        fits = rank_framework_fits(launch_brief)

        assert len(fits) == 50
        assert [fit.rank for fit in fits] == list(range(1, 51))
        scores = [fit.fit_score for fit in fits]
        assert scores == sorted(scores, reverse=True)
        assert all(0.0 <= score <= 1.0 for score in scores)

    def test_ranking_is_deterministic(self, launch_brief):
        assert rank_framework_fits(launch_brief) == rank_framework_fits(launch_brief)

    def test_limit_and_precomputed_themes(self, launch_brief):
        themes = infer_decision_theme_vector(launch_brief)

        top = rank_framework_fits(launch_brief, themes, limit=5)

        assert len(top) == 5
        assert top == rank_framework_fits(launch_brief)[:5]

