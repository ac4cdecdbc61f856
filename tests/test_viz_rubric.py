"""Tests for visualization builders, rubric validation and repair."""

import copy

import pytest

from decision_engine.core.exceptions import UnknownFrameworkError, VisualizationContractViolation
from decision_engine.core.framework_registry import DEEP_FRAMEWORK_IDS, get_framework_definition
from decision_engine.core.schemas_analysis import DecisionBrief
from decision_engine.core.schemas_viz import DEEP_VIZ_TYPES, VIZ_SCHEMA_VERSION
from decision_engine.core.theme_vector import infer_decision_theme_vector
from decision_engine.core.viz_builders import build_canonical_visualization, build_theme_fit_radar
from decision_engine.core.viz_rubric import (
    assert_valid_visualization,
    repair,
    repair_visualization,
    validate_framework_viz,
)

SWAPPED_EISENHOWER = {"do": "eliminate", "schedule": "delegate", "delegate": "schedule", "eliminate": "do"}


def _cautious_brief():
    return DecisionBrief(
        title="Vendor migration",
        decision_statement="Should we migrate billing to a new vendor before renewal?",
        context="Compliance audit is due and the current vendor contract renews in June.",
        alternatives=["Migrate now", "Renew for one year"],
        constraints=["SOC2 controls must stay in place"],
        risk_tolerance="low",
    )


def _canonical(framework_id, brief):
    return build_canonical_visualization(framework_id, brief, infer_decision_theme_vector(brief))


def _with_data(viz, mutate):
    data = copy.deepcopy(viz.data)
    mutate(data)
    return viz.model_copy(update={"data": data})


def _swap_eisenhower(data):
    for point in data["points"]:
        point["quadrant"] = SWAPPED_EISENHOWER[point["quadrant"]]


def _question_threats(data):
    data["threats"] = ["What if competitors respond first?"]


def _blank_labels(data):
    data["quadrants"] = {
        "top_left": "A",
        "top_right": "B",
        "bottom_left": "C",
        "bottom_right": "D",
    }


def _reverse_factors(data):
    data["factors"] = list(reversed(data["factors"]))


def _reverse_phases(data):
    data["phases"] = list(reversed(data["phases"]))


def _misplace_chasm(data):
    data["chasm_after"] = "Innovators"


def _unordered_percentiles(data):
    data["p10"], data["p50"], data["p90"] = 0.9, 0.5, 0.1


def _drop_third_order(data):
    for horizon in data["horizons"]:
        horizon["third_order"] = None


def _incoherent_notes(data):
    for option in data["options"]:
        option["note"] = "No comment"


def _wrong_recommendation(data):
    data["recommended_mode"] = "Negotiating"


def _untestable_assumptions(data):
    for loop in data["loops"]:
        loop["root_assumption"] = "Customers like us"


MALFORMATIONS = {
    "eisenhower_matrix": ("quadrant-rule", _swap_eisenhower),
    "swot_analysis": ("threat-not-question", _question_threats),
    "bcg_matrix": ("quadrant-labels", _blank_labels),
    "project_portfolio_matrix": ("quadrant-labels", _blank_labels),
    "pareto_principle": ("descending-contributions", _reverse_factors),
    "hype_cycle": ("phase-order", _reverse_phases),
    "chasm_diffusion_model": ("chasm-boundary", _misplace_chasm),
    "monte_carlo_simulation": ("percentile-order", _unordered_percentiles),
    "consequences_model": ("third-order-presence", _drop_third_order),
    "crossroads_model": ("note-coherence", _incoherent_notes),
    "conflict_resolution_model": ("recommended-mode", _wrong_recommendation),
    "double_loop_learning": ("assumption-testability", _untestable_assumptions),
}


class TestCanonicalVisualizations:
    @pytest.mark.parametrize("framework_id", DEEP_FRAMEWORK_IDS)
    def test_canonical_payload_passes_rubric(self, framework_id, launch_brief, minimal_brief):
        for brief in (launch_brief, minimal_brief, _cautious_brief()):
            viz = _canonical(framework_id, brief)

            validation = validate_framework_viz(framework_id, viz)

            assert validation.ok, validation.issues
            assert validation.canonical
            assert viz.type == DEEP_VIZ_TYPES[framework_id]
            assert viz.viz_schema_version == VIZ_SCHEMA_VERSION
            assert all(criterion.passed for criterion in validation.rubric.criteria)

    @pytest.mark.parametrize("framework_id", DEEP_FRAMEWORK_IDS)
    def test_canonical_payload_is_deterministic(self, framework_id, launch_brief):
        assert _canonical(framework_id, launch_brief) == _canonical(framework_id, launch_brief)

    def test_non_deep_framework_has_no_canonical_builder(self, launch_brief):
        assert _canonical("johari_window", launch_brief) is None

    def test_theme_fit_radar(self, launch_brief):
        framework = get_framework_definition("johari_window")

        viz = build_theme_fit_radar(framework, infer_decision_theme_vector(launch_brief))

        assert viz.type == "radar"
        assert validate_framework_viz("johari_window", viz).ok


class TestRubricRejections:
    @pytest.mark.parametrize("framework_id", DEEP_FRAMEWORK_IDS)
    def test_malformed_payload_fails_named_criterion(self, framework_id, launch_brief):
        criterion_id, mutate = MALFORMATIONS[framework_id]
        viz = _with_data(_canonical(framework_id, launch_brief), mutate)

        validation = validate_framework_viz(framework_id, viz)

        assert not validation.ok
        failed = {c.id for c in validation.rubric.criteria if not c.passed}
        assert criterion_id in failed
        assert any(issue.startswith(f"[{criterion_id}]") for issue in validation.issues)

    def test_missing_payload(self):
        validation = validate_framework_viz("swot_analysis", None)

        assert not validation.ok
        assert validation.issues == ["Missing visualization payload for swot_analysis."]

    def test_wrong_type_and_version(self, launch_brief):
        viz = _canonical("swot_analysis", launch_brief).model_copy(
            update={"type": "bar", "viz_schema_version": 1}
        )

        validation = validate_framework_viz("swot_analysis", viz)

        assert not validation.ok
        assert 'Expected viz type "swot" for swot_analysis, received "bar".' in validation.issues
        assert "Expected vizSchemaVersion=2 for swot_analysis." in validation.issues

    def test_schema_violation(self, launch_brief):
        viz = _with_data(_canonical("swot_analysis", launch_brief), lambda d: d.update(extra="x"))

        validation = validate_framework_viz("swot_analysis", viz)

        assert not validation.ok
        assert validation.rubric is None
        assert "does not match its schema" in validation.issues[0]

    def test_payload_of_another_framework(self, launch_brief):
        viz = _canonical("pareto_principle", launch_brief).model_copy(update={"type": "swot"})

        validation = validate_framework_viz("swot_analysis", viz)

        assert not validation.ok
        assert 'Payload kind "pareto_principle" does not match swot_analysis.' in validation.issues

    def test_non_deep_framework_is_always_accepted(self):
        validation = validate_framework_viz("johari_window", None)

        assert validation.ok
        assert not validation.canonical


class TestRepair:
    def test_assert_raises_contract_violation(self, launch_brief):
        viz = _with_data(_canonical("chasm_diffusion_model", launch_brief), _misplace_chasm)

        with pytest.raises(VisualizationContractViolation) as exc_info:
            assert_valid_visualization("chasm_diffusion_model", viz)

        assert exc_info.value.framework_id == "chasm_diffusion_model"
        assert exc_info.value.issues

    def test_repair_visualization_regenerates_with_warning(self, launch_brief):
        themes = infer_decision_theme_vector(launch_brief)
        broken = _with_data(_canonical("chasm_diffusion_model", launch_brief), _misplace_chasm)

        viz, warning = repair_visualization(
            "chasm_diffusion_model", "Chasm / Diffusion Model", broken, launch_brief, themes
        )

        assert viz == _canonical("chasm_diffusion_model", launch_brief)
        assert warning.startswith(
            "Chasm / Diffusion Model (chasm_diffusion_model) visualization payload was "
            "regenerated to canonical schema:"
        )

    def test_repair_visualization_keeps_valid_payload(self, launch_brief):
        themes = infer_decision_theme_vector(launch_brief)
        viz = _canonical("bcg_matrix", launch_brief)

        assert repair_visualization("bcg_matrix", "BCG", viz, launch_brief, themes) == (viz, None)

    def test_repair_rejects_non_deep_framework(self, launch_brief):
        with pytest.raises(UnknownFrameworkError):
            repair("johari_window", launch_brief, infer_decision_theme_vector(launch_brief))
