"""Visualization contract validation and repair.

Every deep framework has a rubric: a small set of weighted criteria, each
scored in [0, 1] against its own pass floor. A payload is valid when it has
the expected chart type and schema version, parses as its tagged variant,
passes every criterion and reaches the overall pass threshold. Invalid
payloads are replaced by the canonical builder output, never rejected.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, ValidationError

from decision_engine.core.exceptions import UnknownFrameworkError, VisualizationContractViolation
from decision_engine.core.framework_registry import is_deep_framework
from decision_engine.core.logging import get_logger
from decision_engine.core.schemas_analysis import DecisionBrief, ThemeVector
from decision_engine.core.schemas_viz import (
    DEEP_VIZ_ADAPTER,
    DEEP_VIZ_TYPES,
    VIZ_SCHEMA_VERSION,
    BcgVizData,
    ChasmVizData,
    ConflictResolutionVizData,
    ConsequencesVizData,
    CrossroadsVizData,
    DoubleLoopVizData,
    EisenhowerVizData,
    HypeCycleVizData,
    MonteCarloVizData,
    ParetoVizData,
    ProjectPortfolioVizData,
    SwotVizData,
    VisualizationSpec,
)
from decision_engine.core.seeding import clamp, round3
from decision_engine.core.viz_builders import (
    CHASM_SEGMENTS,
    CHASM_SHARES,
    CONSEQUENCE_HORIZONS,
    HYPE_PHASES,
    MANDATORY_MARKERS,
    bcg_quadrant,
    build_canonical_visualization,
    crossroads_note,
    eisenhower_quadrant,
    hype_curve_y,
    hype_phase_at,
    portfolio_quadrant,
)

logger = get_logger(__name__)

RUBRIC_VERSION = 1
PASS_THRESHOLD = 0.85
DEFAULT_PASS_FLOOR = 0.85

INTERNAL_MARKERS = (
    "internal", "team", "support", "process", "capacity", "headcount", "resource", "budget",
    "workflow", "implementation", "system", "training", "quality", "soc2", "audit",
    "compliance", "control",
)  # fmt: skip

EXTERNAL_MARKERS = (
    "external", "market", "customer", "enterprise", "partner", "competitor", "regulatory",
    "legal", "segment", "adoption", "reputation", "churn", "trust", "demand", "industry",
)  # fmt: skip

QUESTION_PREFIXES = ("what ", "how ", "which ", "who ", "when ", "where ", "is ", "are ", "can ")

CONFLICT_MODES = ("Competing", "Collaborating", "Compromising", "Avoiding", "Accommodating")


class RubricCriterion(BaseModel):
    id: str
    label: str
    weight: float
    score: float = Field(..., ge=0, le=1)
    passed: bool
    issue: str | None = None
    remediation: str | None = None


class RubricReport(BaseModel):
    framework_id: str
    rubric_version: int = RUBRIC_VERSION
    score: float
    pass_threshold: float = PASS_THRESHOLD
    passed: bool
    criteria: list[RubricCriterion]
    remediation_plan: list[str] = Field(default_factory=list)


class VizValidation(BaseModel):
    ok: bool
    canonical: bool
    issues: list[str] = Field(default_factory=list)
    rubric: RubricReport | None = None


def _criterion(
    criterion_id: str,
    label: str,
    weight: float,
    score: float,
    issue: str,
    remediation: str,
    pass_floor: float = DEFAULT_PASS_FLOOR,
) -> RubricCriterion:
    value = round3(clamp(score))
    passed = value >= pass_floor
    return RubricCriterion(
        id=criterion_id,
        label=label,
        weight=weight,
        score=value,
        passed=passed,
        issue=None if passed else issue,
        remediation=None if passed else remediation,
    )


def _share(hits: int, total: int, empty: float = 1.0) -> float:
    return hits / total if total else empty


def _includes_any(text: str, fragments: tuple[str, ...] | list[str]) -> bool:
    lowered = text.lower()
    return any(fragment in lowered for fragment in fragments)


# =============================================================================
# Per-framework criteria
# =============================================================================


def _score_eisenhower(data: EisenhowerVizData) -> list[RubricCriterion]:
    points = data.points
    misplaced = sum(
        1 for p in points if p.quadrant != eisenhower_quadrant(p.urgency, p.importance)
    )

    consistent = 0
    for quadrant in data.quadrants:
        bucket = sum(1 for p in points if p.quadrant == quadrant.id)
        if quadrant.count == bucket and quadrant.count == len(quadrant.items):
            consistent += 1

    mandatory = [p for p in points if _includes_any(p.label, MANDATORY_MARKERS)]
    protected = sum(1 for p in mandatory if p.quadrant in ("do", "schedule"))

    return [
        _criterion(
            "quadrant-rule",
            "Quadrants follow urgency/importance thresholds",
            0.4,
            1 - _share(misplaced, len(points), 0.0),
            f"{misplaced} point(s) sit outside the quadrant implied by urgency and importance.",
            "Recompute each quadrant from urgency and importance with a 0.5 threshold.",
        ),
        _criterion(
            "quadrant-counts",
            "Quadrant counts match plotted points",
            0.3,
            consistent / max(len(data.quadrants), 1),
            "Quadrant counts or item lists disagree with the plotted points.",
            "Rebuild quadrant summaries from the point list.",
        ),
        _criterion(
            "mandatory-not-delegated",
            "Mandatory items are never delegated or dropped",
            0.3,
            _share(protected, len(mandatory)),
            "Mandatory or compliance items were delegated or eliminated.",
            "Raise importance of mandatory items so they land in Do First or Schedule.",
        ),
    ]


def _is_question_like(text: str) -> bool:
    lowered = text.strip().lower()
    return lowered.endswith("?") or lowered.startswith(QUESTION_PREFIXES)


def _score_swot(data: SwotVizData) -> list[RubricCriterion]:
    sections = [data.strengths, data.weaknesses, data.opportunities, data.threats]
    internal = data.strengths + data.weaknesses
    external = data.opportunities + data.threats
    internal_alignment = _share(sum(1 for i in internal if _includes_any(i, INTERNAL_MARKERS)), len(internal), 0.0)
    external_alignment = _share(sum(1 for i in external if _includes_any(i, EXTERNAL_MARKERS)), len(external), 0.0)

    all_items = [item.strip().lower() for section in sections for item in section]

    return [
        _criterion(
            "section-population",
            "All four sections are populated",
            0.2,
            sum(1 for s in sections if s) / 4,
            "One or more SWOT sections are empty.",
            "Populate every SWOT section with at least one item.",
        ),
        _criterion(
            "internal-vs-external",
            "Strengths/weaknesses are internal, opportunities/threats external",
            0.4,
            (internal_alignment + external_alignment) / 2,
            "SWOT items mix internal and external factors across sections.",
            "Keep strengths and weaknesses internal, opportunities and threats external.",
        ),
        _criterion(
            "threat-not-question",
            "Threats are stated as risks, not questions",
            0.2,
            _share(sum(1 for t in data.threats if not _is_question_like(t)), len(data.threats), 0.0),
            "Some threats are phrased as open questions.",
            "Rewrite threats as concrete external risks.",
        ),
        _criterion(
            "cross-quadrant-dedup",
            "No item repeats across sections",
            0.2,
            _share(len(set(all_items)), len(all_items), 0.0),
            "The same item appears more than once across SWOT sections.",
            "Remove duplicated items so each factor lives in one section.",
        ),
    ]


def _score_bcg(data: BcgVizData) -> list[RubricCriterion]:
    labels = data.quadrants
    label_checks = [
        "star" in labels.top_left.lower(),
        "question" in labels.top_right.lower(),
        "cash" in labels.bottom_left.lower(),
        "dog" in labels.bottom_right.lower(),
    ]
    points = data.points
    matching = sum(1 for p in points if p.quadrant == bcg_quadrant(p.share, p.growth))
    distinct = len({p.quadrant for p in points})

    return [
        _criterion(
            "quadrant-labels",
            "Quadrant labels follow the growth-share layout",
            0.3,
            sum(label_checks) / 4,
            "Quadrant labels do not match Stars, Question Marks, Cash Cows and Dogs.",
            "Label quadrants Stars, Question Marks, Cash Cows and Dogs.",
        ),
        _criterion(
            "point-quadrant-rule",
            "Points sit in the quadrant implied by share and growth",
            0.5,
            _share(matching, len(points), 0.0),
            f"{len(points) - matching} point(s) are misclassified for their share and growth.",
            "Recompute point quadrants from share and growth with a 0.5 threshold.",
        ),
        _criterion(
            "quadrant-spread",
            "Units spread across quadrants",
            0.2,
            1.0 if distinct >= 2 else 0.5,
            "All units fall in a single quadrant.",
            "Check whether the options really differ in share and growth.",
            pass_floor=0.5,
        ),
    ]


def _score_project_portfolio(data: ProjectPortfolioVizData) -> list[RubricCriterion]:
    labels = data.quadrants
    label_checks = [
        _includes_any(labels.top_left, ["high value", "low risk"]),
        _includes_any(labels.top_right, ["high value", "high risk"]),
        _includes_any(labels.bottom_left, ["low value", "low risk"]),
        _includes_any(labels.bottom_right, ["low value", "high risk"]),
    ]
    points = data.points
    matching = sum(
        1 for p in points if p.quadrant.lower() == portfolio_quadrant(p.value, p.risk).lower()
    )
    outliers = sum(1 for p in points if p.risk >= 0.75 and p.probability >= 0.8)

    return [
        _criterion(
            "quadrant-labels",
            "Quadrant labels describe value and risk",
            0.35,
            sum(label_checks) / 4,
            "Quadrant labels do not describe value and risk combinations.",
            "Label quadrants by High/Low Value and High/Low Risk.",
        ),
        _criterion(
            "point-quadrant-rule",
            "Points sit in the quadrant implied by value and risk",
            0.4,
            _share(matching, len(points), 0.0),
            f"{len(points) - matching} project(s) carry the wrong quadrant label.",
            "Recompute project quadrants from value and risk with a 0.5 threshold.",
        ),
        _criterion(
            "probability-coherence",
            "High-risk projects do not claim high success probability",
            0.25,
            1 - _share(outliers, len(points), 0.0),
            f"{outliers} high-risk project(s) report a success probability of 0.8 or more.",
            "Lower success probability for projects with risk at or above 0.75.",
        ),
    ]


def _score_pareto(data: ParetoVizData) -> list[RubricCriterion]:
    factors = data.factors
    pairs = max(len(factors) - 1, 1)
    out_of_order = sum(
        1
        for left, right in zip(factors, factors[1:])
        if right.contribution > left.contribution + 1e-9
    )

    tail = factors[-1].cumulative
    tail_score = max(0.0, 1 - abs(1 - tail) / 0.15)
    monotonic = all(
        right.cumulative >= left.cumulative - 1e-9 for left, right in zip(factors, factors[1:])
    )

    vital_score = 0.4
    for index, factor in enumerate(factors):
        if factor.cumulative >= data.threshold:
            ratio = (index + 1) / len(factors)
            vital_score = 1.0 if ratio <= 0.4 else max(0.4, 1 - (ratio - 0.4) / 0.6)
            break

    return [
        _criterion(
            "descending-contributions",
            "Contributions are sorted descending",
            0.35,
            1 - out_of_order / pairs,
            "Factor contributions are not sorted from largest to smallest.",
            "Sort factors by contribution, largest first.",
        ),
        _criterion(
            "cumulative-integrity",
            "Cumulative line is monotonic and closes at 100%",
            0.35,
            (tail_score + (1.0 if monotonic else 0.0)) / 2,
            f"Cumulative line ends at {round(tail * 100)}% or decreases between factors.",
            "Recompute cumulative shares as a running sum that ends at 1.0.",
        ),
        _criterion(
            "vital-few",
            "A vital few factors cross the threshold",
            0.3,
            vital_score,
            "Too many factors are needed to reach the Pareto threshold.",
            "Focus the chart on the few factors that carry most of the impact.",
        ),
    ]


def _score_hype_cycle(data: HypeCycleVizData) -> list[RubricCriterion]:
    expected_names = [name.lower() for name, _, _ in HYPE_PHASES]
    actual_names = [phase.phase.strip().lower() for phase in data.phases[: len(expected_names)]]
    in_order = sum(1 for e, a in zip(expected_names, actual_names) if e == a)

    curve = [(p.phase, p.x, p.y) for p in data.phases]
    expected_phase = hype_phase_at(data.current.x, curve)
    phase_score = 1.0 if expected_phase.lower() == data.current.phase.strip().lower() else 0.45

    distance = abs(hype_curve_y(data.current.x, curve) - data.current.y)

    return [
        _criterion(
            "phase-order",
            "Phases follow the canonical cycle order",
            0.4,
            in_order / len(expected_names),
            "Hype cycle phases are missing or out of order.",
            "List the five canonical phases from Innovation Trigger to Plateau of Productivity.",
        ),
        _criterion(
            "current-phase",
            "Current position is labelled with its phase",
            0.3,
            phase_score,
            f'Current position belongs to "{expected_phase}", not "{data.current.phase}".',
            "Derive the current phase from the x position on the curve.",
        ),
        _criterion(
            "on-curve",
            "Current position lies on the curve",
            0.3,
            max(0.0, 1 - distance / 0.25),
            "Current position is drawn away from the hype curve.",
            "Interpolate the current y value from the neighbouring phases.",
        ),
    ]


def _score_chasm(data: ChasmVizData) -> list[RubricCriterion]:
    segments = data.segments
    names = [s.segment.strip().lower() for s in segments]
    in_order = sum(1 for e, a in zip(CHASM_SEGMENTS, names) if e.lower() == a)

    distribution_score = 0.0
    if len(segments) == len(CHASM_SHARES):
        total = sum(s.adoption for s in segments)
        if total > 0:
            distance = sum(
                abs(s.adoption / total - expected) for s, expected in zip(segments, CHASM_SHARES)
            )
            distribution_score = max(0.0, 1 - distance / 1.2)

    return [
        _criterion(
            "segment-order",
            "Adopter segments follow diffusion order",
            0.3,
            in_order / len(CHASM_SEGMENTS),
            "Adopter segments are missing or out of order.",
            "List Innovators, Early Adopters, Early Majority, Late Majority and Laggards in order.",
        ),
        _criterion(
            "adoption-distribution",
            "Adoption shares resemble the diffusion curve",
            0.45,
            distribution_score,
            "Adoption shares diverge from the diffusion distribution.",
            "Distribute adoption close to 2.5/13.5/34/34/16 percent.",
        ),
        _criterion(
            "chasm-boundary",
            "Chasm sits after Early Adopters",
            0.25,
            1.0 if data.chasm_after.strip().lower() == "early adopters" else 0.0,
            f'Chasm is placed after "{data.chasm_after}".',
            "Place the chasm between Early Adopters and Early Majority.",
        ),
    ]


def _score_monte_carlo(data: MonteCarloVizData) -> list[RubricCriterion]:
    bins = data.bins
    contiguity = 0.0
    if len(bins) >= 2:
        violations = 0
        if abs(bins[0].bin_start) > 0.05:
            violations += 1
        if abs(bins[-1].bin_end - 1) > 0.05:
            violations += 1
        violations += sum(
            1 for left, right in zip(bins, bins[1:]) if abs(left.bin_end - right.bin_start) > 1e-6
        )
        contiguity = max(0.0, 1 - violations / (len(bins) + 1))

    counted = sum(b.count for b in bins)
    has_metadata = data.metadata is not None

    return [
        _criterion(
            "bin-contiguity",
            "Bins cover [0, 1] without gaps",
            0.3,
            contiguity,
            "Histogram bins leave gaps or do not span the full outcome range.",
            "Use adjacent bins from 0 to 1.",
        ),
        _criterion(
            "percentile-order",
            "Percentiles are ordered",
            0.3,
            1.0 if data.p10 <= data.p50 <= data.p90 else 0.0,
            "Percentiles are not ordered p10 <= p50 <= p90.",
            "Recompute percentiles from the simulated distribution.",
        ),
        _criterion(
            "count-total",
            "Bin counts add up to the trial total",
            0.25,
            max(0.0, 1 - abs(counted - data.total) / data.total),
            f"Bin counts sum to {counted} instead of {data.total}.",
            "Allocate every trial to exactly one bin.",
        ),
        _criterion(
            "simulation-metadata",
            "Simulation metadata is present",
            0.15,
            1.0 if has_metadata else 0.4,
            "Simulation metadata (trials, distribution, correlation mode) is missing.",
            "Attach trial count, distribution and correlation mode.",
        ),
    ]


def _score_consequences(data: ConsequencesVizData) -> list[RubricCriterion]:
    horizons = data.horizons
    names = [h.horizon.strip().lower() for h in horizons]
    in_order = sum(1 for e, a in zip(CONSEQUENCE_HORIZONS, names) if e.lower() == a)

    thirds = [h.third_order if h.third_order is not None else h.indirect * 0.65 for h in horizons]
    violations = 0
    for k in range(len(horizons) - 1):
        if horizons[k + 1].direct > horizons[k].direct + 1e-9:
            violations += 1
        if horizons[k + 1].indirect < horizons[k].indirect - 1e-9:
            violations += 1
        if thirds[k + 1] < thirds[k] - 1e-9:
            violations += 1
    pattern_score = 1 - violations / max(3 * (len(horizons) - 1), 1)

    present = sum(1 for h in horizons if h.third_order is not None)

    deltas = [
        abs(h.direct - h.indirect - 0.5 * third - h.net) for h, third in zip(horizons, thirds)
    ]
    mean_delta = sum(deltas) / len(deltas)

    return [
        _criterion(
            "horizon-order",
            "Horizons run from immediate to one year",
            0.2,
            in_order / len(CONSEQUENCE_HORIZONS),
            "Horizons are missing or out of order.",
            "Use Immediate, 30 Days, 90 Days and 1 Year in order.",
        ),
        _criterion(
            "order-pattern",
            "Direct effects fade while indirect effects compound",
            0.35,
            pattern_score,
            "Direct effects grow or indirect effects shrink over time.",
            "Keep direct effects non-increasing and indirect effects non-decreasing.",
        ),
        _criterion(
            "third-order-presence",
            "Third-order effects are estimated",
            0.25,
            _share(present, len(horizons), 0.0),
            "Third-order effects are missing for some horizons.",
            "Estimate third-order effects for every horizon.",
        ),
        _criterion(
            "net-consistency",
            "Net impact matches its components",
            0.2,
            max(0.0, 1 - mean_delta / 0.35),
            "Net impact is inconsistent with direct, indirect and third-order effects.",
            "Compute net as direct - indirect - 0.5 * third order.",
        ),
    ]


def _score_crossroads(data: CrossroadsVizData) -> list[RubricCriterion]:
    options = data.options
    by_reversibility = [o.option for o in sorted(options, key=lambda o: o.reversibility)]
    by_size = [o.option for o in sorted(options, key=lambda o: o.size)]

    keywords_by_note = {
        "advance": ("advance", "go", "gate"),
        "prove": ("proof", "feasibility", "experiment", "validate"),
        "viable": ("viable", "controlled", "pilot", "experiment"),
    }
    coherent = 0
    for option in options:
        if option.feasibility >= 0.6 and option.desirability >= 0.6:
            expected = keywords_by_note["advance"]
        elif option.feasibility < 0.45:
            expected = keywords_by_note["prove"]
        else:
            expected = keywords_by_note["viable"]
        if _includes_any(option.note, expected):
            coherent += 1

    return [
        _criterion(
            "option-count",
            "At least two options are compared",
            0.25,
            1.0 if len(options) >= 2 else 0.0,
            "Fewer than two options are mapped.",
            "Compare at least two options.",
        ),
        _criterion(
            "bubble-tracks-reversibility",
            "Bubble size tracks reversibility",
            0.35,
            1.0 if by_reversibility == by_size else 0.0,
            "Bubble sizes do not follow option reversibility.",
            "Scale bubble size monotonically with reversibility.",
        ),
        _criterion(
            "note-coherence",
            "Notes match feasibility and desirability",
            0.4,
            _share(coherent, len(options), 0.0),
            "Option notes contradict their feasibility and desirability.",
            f'Use notes such as "{crossroads_note(0.7, 0.7)}" for strong options '
            "and feasibility proofs for weak ones.",
        ),
    ]


def _score_conflict_resolution(data: ConflictResolutionVizData) -> list[RubricCriterion]:
    present = {m.mode.strip().lower() for m in data.modes}
    covered = sum(1 for mode in CONFLICT_MODES if mode.lower() in present)

    ranked = sorted(data.modes, key=lambda m: m.suitability, reverse=True)
    recommended_ok = ranked[0].mode.strip().lower() == data.recommended_mode.strip().lower()

    rules = {
        "competing": lambda a, c: a >= 0.6 and c < 0.4,
        "collaborating": lambda a, c: a >= 0.6 and c >= 0.6,
        "avoiding": lambda a, c: a < 0.4 and c < 0.4,
        "accommodating": lambda a, c: a < 0.4 and c >= 0.6,
    }
    placed = sum(
        1
        for m in data.modes
        if rules.get(m.mode.strip().lower(), lambda a, c: True)(m.assertiveness, m.cooperativeness)
    )

    return [
        _criterion(
            "mode-set",
            "All five conflict modes are present",
            0.35,
            covered / len(CONFLICT_MODES),
            "One or more TKI conflict modes are missing.",
            "Include Competing, Collaborating, Compromising, Avoiding and Accommodating.",
        ),
        _criterion(
            "recommended-mode",
            "Recommended mode has the highest suitability",
            0.35,
            1.0 if recommended_ok else 0.0,
            f'Recommended mode "{data.recommended_mode}" is not the most suitable one.',
            "Recommend the mode with the highest suitability.",
        ),
        _criterion(
            "mode-coordinates",
            "Modes sit at their assertiveness/cooperativeness position",
            0.3,
            placed / len(data.modes),
            "Some modes are plotted outside their TKI region.",
            "Place each mode in its assertiveness and cooperativeness region.",
        ),
    ]


def _is_testable(text: str) -> bool:
    lowered = f" {text.lower()} "
    if " if " in lowered and " then " in lowered:
        return True
    return _includes_any(lowered, ("measure", "within", "threshold"))


def _score_double_loop(data: DoubleLoopVizData) -> list[RubricCriterion]:
    loops = data.loops
    complete = sum(
        1
        for loop in loops
        if all(
            value.strip()
            for value in (loop.behavior, loop.outcome, loop.single_loop_fix, loop.root_assumption)
        )
    )
    testable = sum(1 for loop in loops if _is_testable(loop.root_assumption))
    distinct = sum(
        1
        for loop in loops
        if loop.single_loop_fix.strip().lower() != loop.root_assumption.strip().lower()
        and loop.single_loop_fix.strip().lower() != loop.behavior.strip().lower()
    )

    return [
        _criterion(
            "loop-completeness",
            "Every loop names behavior, outcome, fix and assumption",
            0.3,
            _share(complete, len(loops), 0.0),
            "Some learning loops are incomplete.",
            "Fill behavior, outcome, single-loop fix and root assumption for every loop.",
        ),
        _criterion(
            "assumption-testability",
            "Root assumptions are testable",
            0.45,
            _share(testable, len(loops), 0.0),
            "Root assumptions are not phrased as testable hypotheses.",
            'Phrase root assumptions as "if ... then ..." with a measurable signal.',
        ),
        _criterion(
            "fix-distinct",
            "Single-loop fixes differ from the behavior and the assumption",
            0.25,
            _share(distinct, len(loops), 0.0),
            "Single-loop fixes restate the behavior or the assumption.",
            "Describe a concrete process fix distinct from the root assumption.",
        ),
    ]


RUBRICS = {
    "eisenhower_matrix": _score_eisenhower,
    "swot_analysis": _score_swot,
    "bcg_matrix": _score_bcg,
    "project_portfolio_matrix": _score_project_portfolio,
    "pareto_principle": _score_pareto,
    "hype_cycle": _score_hype_cycle,
    "chasm_diffusion_model": _score_chasm,
    "monte_carlo_simulation": _score_monte_carlo,
    "consequences_model": _score_consequences,
    "crossroads_model": _score_crossroads,
    "conflict_resolution_model": _score_conflict_resolution,
    "double_loop_learning": _score_double_loop,
}


# =============================================================================
# Public API
# =============================================================================


def score_representation(framework_id: str, data: BaseModel) -> RubricReport:
    """Score a parsed deep payload against its framework rubric."""
    criteria = RUBRICS[framework_id](data)
    total_weight = sum(c.weight for c in criteria) or 1.0
    score = round3(clamp(sum(c.score * c.weight for c in criteria) / total_weight))
    return RubricReport(
        framework_id=framework_id,
        score=score,
        passed=score >= PASS_THRESHOLD,
        criteria=criteria,
        remediation_plan=[c.remediation for c in criteria if c.remediation],
    )


def _parse_payload(framework_id: str, data) -> BaseModel:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    if isinstance(data, dict) and "kind" not in data:
        data = {"kind": framework_id, **data}
    return DEEP_VIZ_ADAPTER.validate_python(data)


def validate_framework_viz(framework_id: str, viz: VisualizationSpec | None) -> VizValidation:
    """
    Check a visualization against its framework contract.

    Non-deep frameworks have no contract and are always accepted.

    Args:
        framework_id: Catalog id of the framework
        viz: Visualization to check

    Returns:
        VizValidation with ok, canonical flag, issues and rubric report
    """
    if not is_deep_framework(framework_id):
        return VizValidation(ok=True, canonical=False)

    if viz is None:
        return VizValidation(
            ok=False, canonical=True, issues=[f"Missing visualization payload for {framework_id}."]
        )

    issues: list[str] = []
    expected_type = DEEP_VIZ_TYPES[framework_id]
    if viz.type != expected_type:
        issues.append(
            f'Expected viz type "{expected_type}" for {framework_id}, received "{viz.type}".'
        )
    if viz.viz_schema_version != VIZ_SCHEMA_VERSION:
        issues.append(f"Expected vizSchemaVersion={VIZ_SCHEMA_VERSION} for {framework_id}.")

    try:
        payload = _parse_payload(framework_id, viz.data)
    except ValidationError as e:
        issues.append(
            f"Visualization data for {framework_id} does not match its schema "
            f"({e.error_count()} error(s))."
        )
        return VizValidation(ok=False, canonical=True, issues=issues)

    if payload.kind != framework_id:
        issues.append(f'Payload kind "{payload.kind}" does not match {framework_id}.')
        return VizValidation(ok=False, canonical=True, issues=issues)

    report = score_representation(framework_id, payload)
    issues.extend(f"[{c.id}] {c.issue}" for c in report.criteria if not c.passed and c.issue)
    if not report.passed:
        issues.append(
            f"Rubric score {round(report.score * 100)}% is below threshold "
            f"{round(PASS_THRESHOLD * 100)}% for {framework_id}."
        )

    return VizValidation(ok=not issues, canonical=True, issues=issues, rubric=report)


def assert_valid_visualization(framework_id: str, viz: VisualizationSpec | None) -> VizValidation:
    """Validate and raise VisualizationContractViolation when the payload fails."""
    validation = validate_framework_viz(framework_id, viz)
    if not validation.ok:
        raise VisualizationContractViolation(framework_id, validation.issues)
    return validation


def repair(framework_id: str, brief: DecisionBrief, themes: ThemeVector) -> VisualizationSpec:
    """Regenerate the canonical payload for a deep framework from scratch."""
    viz = build_canonical_visualization(framework_id, brief, themes)
    if viz is None:
        raise UnknownFrameworkError(
            f"No canonical visualization for non-deep framework {framework_id}",
            details={"framework_id": framework_id},
        )
    return viz


def repair_visualization(
    framework_id: str,
    framework_name: str,
    viz: VisualizationSpec | None,
    brief: DecisionBrief,
    themes: ThemeVector,
) -> tuple[VisualizationSpec | None, str | None]:
    """
    Validate a visualization and regenerate it canonically when it fails.

    Returns:
        (visualization, warning); warning is None when the input was accepted
    """
    try:
        assert_valid_visualization(framework_id, viz)
        return viz, None
    except VisualizationContractViolation as e:
        logger.warning(e.message, extra={"framework_id": framework_id})
        warning = (
            f"{framework_name} ({framework_id}) visualization payload was regenerated to "
            f"canonical schema: {' '.join(e.issues)}"
        )
    return repair(framework_id, brief, themes), warning
