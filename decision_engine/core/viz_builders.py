"""Canonical visualization builders for deep frameworks.

One pure function per framework derives chart data from the brief and the
decision theme vector. Builders are the single source of truth for deep-tier
charts: generated payloads are always replaced by these, and a payload that
fails its rubric is regenerated here from scratch.
"""

import math
from collections.abc import Callable

from decision_engine.core.schemas_analysis import THEME_AXES, DecisionBrief, FrameworkDefinition, ThemeVector
from decision_engine.core.schemas_viz import (
    VIZ_SCHEMA_VERSION,
    BcgPoint,
    BcgVizData,
    ChasmSegment,
    ChasmVizData,
    ConflictMode,
    ConflictResolutionVizData,
    ConsequenceHorizon,
    ConsequenceLink,
    ConsequencesVizData,
    CrossroadsOption,
    CrossroadsVizData,
    DoubleLoopVizData,
    EisenhowerPoint,
    EisenhowerQuadrantSummary,
    EisenhowerVizData,
    HistogramBin,
    HypeCurrentPoint,
    HypeCycleVizData,
    HypePhasePoint,
    LearningLoop,
    MonteCarloVizData,
    ParetoFactor,
    ParetoVizData,
    PortfolioPoint,
    ProjectPortfolioVizData,
    QuadrantLabels,
    SimulationMetadata,
    SwotVizData,
    VisualizationSpec,
)
from decision_engine.core.scoring import (
    aggressiveness,
    constraint_penalty,
    deadline_pressure,
    dedupe,
    keyword_score,
    normalize_contributions,
    rank_weight,
    resource_pressure,
    token_overlap,
)
from decision_engine.core.seeding import bounded, clamp, round3

HYPE_PHASES: tuple[tuple[str, float, float], ...] = (
    ("Innovation Trigger", 0.1, 0.32),
    ("Peak of Inflated Expectations", 0.3, 0.95),
    ("Trough of Disillusionment", 0.55, 0.2),
    ("Slope of Enlightenment", 0.76, 0.58),
    ("Plateau of Productivity", 0.92, 0.72),
)

CHASM_SEGMENTS = ("Innovators", "Early Adopters", "Early Majority", "Late Majority", "Laggards")
CHASM_SHARES = (0.025, 0.135, 0.34, 0.34, 0.16)

CONSEQUENCE_HORIZONS = ("Immediate", "30 Days", "90 Days", "1 Year")

MANDATORY_MARKERS = (
    "soc2", "audit", "compliance", "mandatory", "critical", "security", "regulatory", "legal",
)  # fmt: skip

BCG_QUADRANT_LABELS = QuadrantLabels(
    top_left="Stars",
    top_right="Question Marks",
    bottom_left="Cash Cows",
    bottom_right="Dogs",
)

PORTFOLIO_QUADRANT_LABELS = QuadrantLabels(
    top_left="High Value, Low Risk",
    top_right="High Value, High Risk",
    bottom_left="Low Value, Low Risk",
    bottom_right="Low Value, High Risk",
)

PARETO_DECAY = 0.18
MONTE_CARLO_TRIALS = 360
MONTE_CARLO_BINS = 10


# =============================================================================
# Shared helpers
# =============================================================================


def pick_options(brief: DecisionBrief, max_items: int) -> list[str]:
    """Candidate labels from alternatives, steps, constraints and questions."""
    candidates = dedupe(
        brief.alternatives + brief.execution_steps + brief.constraints + brief.open_questions
    )
    if not candidates:
        return ["Path A", "Path B", "Path C"][:max_items]
    return candidates[:max_items]


def _pad(values: list[str], minimum: int, fillers: list[str]) -> list[str]:
    padded = dedupe(values)
    for filler in fillers:
        if len(padded) >= minimum:
            break
        if filler.lower() not in {v.lower() for v in padded}:
            padded.append(filler)
    return padded


def eisenhower_quadrant(urgency: float, importance: float) -> str:
    if urgency >= 0.5 and importance >= 0.5:
        return "do"
    if urgency < 0.5 and importance >= 0.5:
        return "schedule"
    if urgency >= 0.5:
        return "delegate"
    return "eliminate"


def bcg_quadrant(share: float, growth: float) -> str:
    if share < 0.5 and growth >= 0.5:
        return "question_marks"
    if share >= 0.5 and growth >= 0.5:
        return "stars"
    if share < 0.5:
        return "dogs"
    return "cash_cows"


def portfolio_quadrant(value: float, risk: float) -> str:
    value_label = "High Value" if value >= 0.5 else "Low Value"
    risk_label = "High Risk" if risk >= 0.5 else "Low Risk"
    return f"{value_label}, {risk_label}"


def hype_phase_at(x: float, phases: list[tuple[str, float, float]] | tuple = HYPE_PHASES) -> str:
    """Phase owning position x: the first phase whose right neighbour lies at or past x."""
    for index in range(len(phases) - 1):
        if x <= phases[index + 1][1]:
            return phases[index][0]
    return phases[-1][0]


def hype_curve_y(x: float, phases: list[tuple[str, float, float]] | tuple = HYPE_PHASES) -> float:
    """Linear interpolation of the curve at x; the last phase's y outside the segments."""
    for index in range(len(phases) - 1):
        _, left_x, left_y = phases[index]
        _, right_x, right_y = phases[index + 1]
        if left_x <= x <= right_x:
            ratio = (x - left_x) / max(right_x - left_x, 1e-9)
            return left_y + ratio * (right_y - left_y)
    return phases[-1][2]


def _spec(
    viz_type: str,
    title: str,
    data,
    x_label: str | None = None,
    y_label: str | None = None,
) -> VisualizationSpec:
    return VisualizationSpec(
        type=viz_type,
        title=title,
        x_label=x_label,
        y_label=y_label,
        viz_schema_version=VIZ_SCHEMA_VERSION,
        data=data.model_dump(),
    )


# =============================================================================
# Builders
# =============================================================================


def build_eisenhower(brief: DecisionBrief, themes: ThemeVector) -> VisualizationSpec:
    tasks = pick_options(brief, 8)
    success_corpus = " ".join(brief.success_criteria)
    constraints_corpus = " ".join(brief.constraints)
    questions_corpus = " ".join(brief.open_questions)
    deadline_signal = deadline_pressure(brief)

    points: list[EisenhowerPoint] = []
    for task in tasks:
        urgency = bounded(
            0.35 * deadline_signal
            + 0.25 * token_overlap(task, constraints_corpus)
            + 0.2 * token_overlap(task, questions_corpus)
            + 0.2 * themes.urgency
        )
        importance = bounded(
            0.35 * token_overlap(task, success_corpus)
            + 0.2 * token_overlap(task, brief.decision_statement)
            + 0.25 * themes.opportunity
            + 0.2 * themes.stakeholder_impact
        )
        # Compliance gates are never deprioritized
        if any(marker in task.lower() for marker in MANDATORY_MARKERS):
            importance = max(importance, 0.6)

        points.append(
            EisenhowerPoint(
                label=task,
                urgency=urgency,
                importance=importance,
                quadrant=eisenhower_quadrant(urgency, importance),
            )
        )

    labels = {"do": "Do First", "schedule": "Schedule", "delegate": "Delegate", "eliminate": "Don't Do"}
    quadrants = []
    for quadrant_id, label in labels.items():
        items = [p.label for p in points if p.quadrant == quadrant_id]
        quadrants.append(
            EisenhowerQuadrantSummary(id=quadrant_id, label=label, count=len(items), items=items)
        )

    data = EisenhowerVizData(quadrants=quadrants, points=points)
    return _spec("quadrant", "Eisenhower Prioritization", data, "Urgency", "Importance")


def build_swot(brief: DecisionBrief, themes: ThemeVector) -> VisualizationSpec:
    # Strengths and weaknesses read as internal factors, opportunities and threats as external
    strengths = dedupe(
        [f"Internal strength: {c}" for c in brief.success_criteria]
        + [f"Internal execution capacity for {a}" for a in brief.alternatives[:2]]
    )[:5]
    weaknesses = dedupe(
        [f"Internal constraint: {c}" for c in brief.constraints]
        + [f"Internal assumption risk: {a}" for a in brief.assumptions[:2]]
    )[:5]
    opportunities = dedupe(
        [f"Market opportunity via {s}" for s in brief.execution_steps]
        + [f"Market leverage from {a}" for a in brief.alternatives]
    )[:5]
    threats = dedupe(
        [f"External risk: {q.rstrip('?').strip()} stays unresolved" for q in brief.open_questions]
        + [f"External failure mode: {c}" for c in brief.constraints[:2]]
    )[:5]

    data = SwotVizData(
        strengths=strengths or ["Internal strength: no explicit strengths captured yet"],
        weaknesses=weaknesses or ["Internal weakness: no explicit weaknesses captured yet"],
        opportunities=opportunities or ["Market opportunity: no explicit opportunities captured yet"],
        threats=threats or ["External risk: no explicit threats captured yet"],
    )
    return _spec("swot", "SWOT Analysis", data)


def build_bcg(brief: DecisionBrief, themes: ThemeVector) -> VisualizationSpec:
    options = pick_options(brief, 4)
    success_corpus = " ".join(brief.success_criteria)
    constraint_corpus = " ".join(brief.constraints)
    penalty = constraint_penalty(brief)

    points = []
    for index, option in enumerate(options):
        opportunity_fit = token_overlap(option, success_corpus)
        risk_drag = token_overlap(option, constraint_corpus)
        share = bounded(
            0.22
            + 0.35 * opportunity_fit
            + 0.18 * (1 - penalty)
            + 0.15 * (1 - risk_drag)
            + 0.1 * rank_weight(index, len(options))
        )
        growth = bounded(
            0.2
            + 0.4 * themes.opportunity
            + 0.2 * opportunity_fit
            + 0.1 * keyword_score(option, ["expand", "launch", "new", "growth", "scale"])
            + 0.1 * (1 - themes.uncertainty)
        )
        points.append(
            BcgPoint(
                id=f"bcg-{index + 1}",
                label=option,
                share=share,
                growth=growth,
                size=round(28 + (share * 0.45 + growth * 0.55) * 64, 1),
                quadrant=bcg_quadrant(share, growth),
            )
        )

    data = BcgVizData(quadrants=BCG_QUADRANT_LABELS, points=points)
    return _spec("scatter", "BCG Growth-Share Matrix", data, "Relative Market Share", "Market Growth")


def build_project_portfolio(brief: DecisionBrief, themes: ThemeVector) -> VisualizationSpec:
    projects = pick_options(brief, 6)
    success_corpus = f"{brief.decision_statement} {' '.join(brief.success_criteria)}"
    risk_corpus = f"{' '.join(brief.constraints)} {' '.join(brief.open_questions)}"
    steps_corpus = " ".join(brief.execution_steps)

    points = []
    for index, project in enumerate(projects):
        value = bounded(
            0.2
            + 0.35 * token_overlap(project, success_corpus)
            + 0.2 * themes.opportunity
            + 0.15 * themes.stakeholder_impact
            + 0.1 * rank_weight(index, len(projects))
        )
        risk = bounded(
            0.18
            + 0.35 * token_overlap(project, risk_corpus)
            + 0.25 * themes.risk
            + 0.22 * themes.uncertainty
        )
        probability = bounded(
            0.2
            + 0.38 * (1 - risk)
            + 0.22 * themes.resources
            + 0.12 * token_overlap(project, steps_corpus)
            + 0.08 * (1 - themes.uncertainty)
        )
        if risk >= 0.75:
            probability = min(probability, 0.75)

        points.append(
            PortfolioPoint(
                id=f"portfolio-{index + 1}",
                label=project,
                risk=risk,
                value=value,
                probability=probability,
                size=round(22 + (value * 0.55 + probability * 0.45) * 72, 1),
                quadrant=portfolio_quadrant(value, risk),
            )
        )

    data = ProjectPortfolioVizData(quadrants=PORTFOLIO_QUADRANT_LABELS, points=points)
    return _spec("scatter", "Project Portfolio Matrix", data, "Risk", "Strategic Value")


def build_pareto(brief: DecisionBrief, themes: ThemeVector) -> VisualizationSpec:
    factors = _pad(
        pick_options(brief, 8),
        3,
        brief.success_criteria + ["Execution focus", "Stakeholder alignment", "Residual effort"],
    )[:8]
    success_corpus = f"{brief.decision_statement} {' '.join(brief.success_criteria)}"
    constraint_corpus = " ".join(brief.constraints)

    signals = []
    for index, factor in enumerate(factors):
        signal = (
            0.18
            + 0.45 * token_overlap(factor, success_corpus)
            + 0.18 * token_overlap(factor, constraint_corpus)
            + 0.1 * themes.opportunity
            + 0.09 * rank_weight(index, len(factors))
        )
        detail = brief.execution_steps[index] if index < len(brief.execution_steps) else factor
        signals.append((factor, signal, detail))

    # Strongest signals first, then a steep decay so a vital few carry the total
    signals.sort(key=lambda row: row[1], reverse=True)
    rows = [
        (label, signal * PARETO_DECAY**rank, detail)
        for rank, (label, signal, detail) in enumerate(signals)
    ]

    data = ParetoVizData(
        factors=[ParetoFactor(**row) for row in normalize_contributions(rows)],
        threshold=0.8,
    )
    return _spec("bar", "Pareto Impact Curve", data, "Factors", "Contribution")


def build_hype_cycle(brief: DecisionBrief, themes: ThemeVector) -> VisualizationSpec:
    first_x = HYPE_PHASES[0][1]
    last_x = HYPE_PHASES[-1][1]
    current_x = round3(
        clamp(
            0.16
            + 0.36 * themes.opportunity
            + 0.18 * themes.uncertainty
            + 0.12 * deadline_pressure(brief)
            - 0.1 * themes.resources
            + 0.06 * themes.risk,
            first_x,
            last_x,
        )
    )

    data = HypeCycleVizData(
        phases=[HypePhasePoint(phase=p, x=x, y=y) for p, x, y in HYPE_PHASES],
        current=HypeCurrentPoint(
            label=brief.alternatives[0] if brief.alternatives else brief.title,
            x=current_x,
            y=bounded(hype_curve_y(current_x)),
            phase=hype_phase_at(current_x),
        ),
    )
    return _spec("line", "Hype Cycle Positioning", data, "Maturity", "Expectations")


def build_chasm(brief: DecisionBrief, themes: ThemeVector) -> VisualizationSpec:
    readiness = clamp(
        0.24
        + 0.28 * themes.opportunity
        + 0.18 * themes.resources
        - 0.16 * themes.uncertainty
        - 0.1 * themes.risk
        + 0.14 * deadline_pressure(brief)
    )
    # Ready markets pull share toward early segments; at most a 5% relative tilt
    tilt = 0.1 * (readiness - 0.5)
    raw = [
        share * (1 + tilt if index < 2 else 1 - tilt)
        for index, share in enumerate(CHASM_SHARES)
    ]
    total = sum(raw)

    data = ChasmVizData(
        segments=[
            ChasmSegment(segment=segment, adoption=round3(value / total))
            for segment, value in zip(CHASM_SEGMENTS, raw)
        ],
        chasm_after="Early Adopters",
        gap=bounded(0.08 + 0.3 * (1 - readiness)),
    )
    return _spec("bar", "Diffusion / Chasm Adoption", data, "Adopter Segment", "Adoption Share")


def build_monte_carlo(brief: DecisionBrief, themes: ThemeVector) -> VisualizationSpec:
    mean = bounded(
        0.22
        + 0.34 * themes.opportunity
        + 0.2 * resource_pressure(brief, themes)
        + 0.14 * (1 - themes.risk)
        + 0.1 * (1 - themes.uncertainty)
    )
    sigma = clamp(0.08 + 0.18 * themes.uncertainty + 0.1 * themes.risk, 0.06, 0.32)

    densities = [
        math.exp(-(((index + 0.5) / MONTE_CARLO_BINS - mean) ** 2) / (2 * sigma * sigma))
        for index in range(MONTE_CARLO_BINS)
    ]
    density_total = max(sum(densities), 1e-9)
    raw_counts = [d / density_total * MONTE_CARLO_TRIALS for d in densities]
    counts = [math.floor(c) for c in raw_counts]

    # Largest remainder keeps the total exact
    remaining = MONTE_CARLO_TRIALS - sum(counts)
    by_fraction = sorted(
        range(MONTE_CARLO_BINS), key=lambda i: raw_counts[i] - counts[i], reverse=True
    )
    for index in by_fraction[:remaining]:
        counts[index] += 1

    data = MonteCarloVizData(
        bins=[
            HistogramBin(
                bin_start=round(index / MONTE_CARLO_BINS, 2),
                bin_end=round((index + 1) / MONTE_CARLO_BINS, 2),
                count=count,
            )
            for index, count in enumerate(counts)
        ],
        total=MONTE_CARLO_TRIALS,
        p10=bounded(mean - 1.2816 * sigma),
        p50=mean,
        p90=bounded(mean + 1.2816 * sigma),
        metadata=SimulationMetadata(
            trials=MONTE_CARLO_TRIALS,
            distribution="truncated gaussian",
            correlation_mode="independent",
        ),
    )
    return _spec("histogram", "Monte Carlo Outcome Distribution", data, "Outcome Probability", "Frequency")


def build_consequences(brief: DecisionBrief, themes: ThemeVector) -> VisualizationSpec:
    urgency = deadline_pressure(brief)
    direct = [bounded(0.32 + 0.24 * urgency + 0.22 * themes.risk + 0.14 * themes.urgency)]
    indirect = [bounded(0.18 + 0.16 * themes.stakeholder_impact + 0.1 * themes.uncertainty)]
    for _ in CONSEQUENCE_HORIZONS[1:]:
        # First-order effects taper while second-order effects compound
        direct.append(min(direct[-1], bounded(direct[-1] * 0.86 + 0.06 * themes.opportunity)))
        indirect.append(
            max(indirect[-1], bounded(indirect[-1] * 1.15 + 0.05 * themes.stakeholder_impact))
        )
    third_ratio = 0.45 + 0.2 * themes.uncertainty

    horizons = []
    for label, d, i in zip(CONSEQUENCE_HORIZONS, direct, indirect):
        third = bounded(i * third_ratio)
        horizons.append(
            ConsequenceHorizon(
                horizon=label,
                direct=d,
                indirect=i,
                third_order=third,
                net=round3(clamp(d - i - 0.5 * third, -1.0, 1.0)),
            )
        )

    links = [
        ConsequenceLink(
            source=CONSEQUENCE_HORIZONS[k],
            target=CONSEQUENCE_HORIZONS[k + 1],
            weight=bounded((indirect[k] + indirect[k + 1]) / 2),
        )
        for k in range(len(CONSEQUENCE_HORIZONS) - 1)
    ]

    data = ConsequencesVizData(horizons=horizons, links=links)
    return _spec("timeline", "Consequences Over Time", data, "Horizon", "Impact Magnitude")


def crossroads_note(feasibility: float, desirability: float) -> str:
    if feasibility >= 0.6 and desirability >= 0.6:
        return "Advance with clear gates"
    if feasibility < 0.45:
        return "Needs feasibility proof first"
    return "Viable with controlled experiment"


def build_crossroads(brief: DecisionBrief, themes: ThemeVector) -> VisualizationSpec:
    options = _pad(pick_options(brief, 4), 2, ["Path A", "Path B"])
    success_corpus = f"{brief.decision_statement} {' '.join(brief.success_criteria)}"
    constraints_corpus = " ".join(brief.constraints)

    rows = []
    for option in options:
        aggressive = aggressiveness(option)
        feasibility = bounded(
            0.26
            + 0.32 * themes.resources
            + 0.18 * (1 - token_overlap(option, constraints_corpus))
            + 0.14 * (1 - themes.risk)
            + 0.1 * (1 - aggressive)
        )
        desirability = bounded(
            0.24
            + 0.34 * token_overlap(option, success_corpus)
            + 0.22 * themes.opportunity
            + 0.12 * themes.stakeholder_impact
            + 0.08 * aggressive
        )
        reversibility = bounded(
            0.22
            + 0.34 * (1 - aggressive)
            + 0.16 * keyword_score(option, ["pilot", "phase", "trial", "option"])
            + 0.14 * (1 - themes.risk)
            + 0.14 * (1 - themes.uncertainty)
        )
        rows.append(
            CrossroadsOption(
                option=option,
                feasibility=feasibility,
                desirability=desirability,
                reversibility=reversibility,
                # Bubble size is a strictly monotone function of reversibility
                size=round3(28 + reversibility * 68),
                note=crossroads_note(feasibility, desirability),
            )
        )

    data = CrossroadsVizData(options=rows)
    return _spec("scatter", "Crossroads Option Map", data, "Feasibility", "Desirability")


def build_conflict_resolution(brief: DecisionBrief, themes: ThemeVector) -> VisualizationSpec:
    urgency = deadline_pressure(brief)
    collaboration_bias = bounded(0.3 + 0.35 * themes.stakeholder_impact + 0.2 * (1 - urgency))
    compromise_bias = bounded(0.25 + 0.3 * urgency + 0.2 * themes.resources)
    assertiveness_bias = bounded(0.25 + 0.28 * themes.urgency + 0.2 * (1 - themes.uncertainty))

    modes = [
        ConflictMode(
            mode="Competing",
            assertiveness=0.88,
            cooperativeness=0.2,
            suitability=bounded(
                0.35 * assertiveness_bias + 0.28 * urgency + 0.12 * (1 - collaboration_bias)
            ),
        ),
        ConflictMode(
            mode="Collaborating",
            assertiveness=0.82,
            cooperativeness=0.9,
            suitability=bounded(
                0.4 * collaboration_bias
                + 0.2 * themes.stakeholder_impact
                + 0.15 * (1 - themes.risk)
            ),
        ),
        ConflictMode(
            mode="Compromising",
            assertiveness=0.6,
            cooperativeness=0.62,
            suitability=bounded(0.38 * compromise_bias + 0.2 * themes.resources + 0.14 * urgency),
        ),
        ConflictMode(
            mode="Avoiding",
            assertiveness=0.18,
            cooperativeness=0.2,
            suitability=bounded(
                0.32 * themes.uncertainty + 0.16 * (1 - urgency) + 0.14 * themes.risk
            ),
        ),
        ConflictMode(
            mode="Accommodating",
            assertiveness=0.22,
            cooperativeness=0.85,
            suitability=bounded(0.3 * themes.stakeholder_impact + 0.2 * (1 - assertiveness_bias)),
        ),
    ]

    data = ConflictResolutionVizData(
        modes=modes,
        recommended_mode=max(modes, key=lambda m: m.suitability).mode,
    )
    return _spec("scatter", "Conflict Mode Map (TKI)", data, "Assertiveness", "Cooperativeness")


def build_double_loop(brief: DecisionBrief, themes: ThemeVector) -> VisualizationSpec:
    behaviors = pick_options(brief, 5)
    assumptions = brief.assumptions or ["Execution assumptions are stable"]
    outcomes = brief.success_criteria or ["Maintain measurable progress"]
    tension_corpus = f"{' '.join(brief.open_questions)} {' '.join(brief.constraints)}"

    loops = []
    for index, behavior in enumerate(behaviors):
        assumption = assumptions[index % len(assumptions)].rstrip(".")
        outcome = outcomes[index % len(outcomes)].rstrip(".")
        loops.append(
            LearningLoop(
                behavior=behavior,
                outcome=outcome,
                single_loop_fix=f"Tune process around: {behavior}",
                root_assumption=(
                    f"If {assumption} holds, then {outcome} should be measurable "
                    "within the next milestone"
                ),
                leverage=bounded(
                    0.24
                    + 0.32 * token_overlap(behavior, tension_corpus)
                    + 0.2 * themes.risk
                    + 0.16 * themes.uncertainty
                    + 0.08 * rank_weight(index, len(behaviors))
                ),
            )
        )

    data = DoubleLoopVizData(loops=loops)
    return _spec("list", "Double-Loop Learning Trace", data)


CANONICAL_BUILDERS: dict[str, Callable[[DecisionBrief, ThemeVector], VisualizationSpec]] = {
    "eisenhower_matrix": build_eisenhower,
    "swot_analysis": build_swot,
    "bcg_matrix": build_bcg,
    "project_portfolio_matrix": build_project_portfolio,
    "pareto_principle": build_pareto,
    "hype_cycle": build_hype_cycle,
    "chasm_diffusion_model": build_chasm,
    "monte_carlo_simulation": build_monte_carlo,
    "consequences_model": build_consequences,
    "crossroads_model": build_crossroads,
    "conflict_resolution_model": build_conflict_resolution,
    "double_loop_learning": build_double_loop,
}


def build_canonical_visualization(
    framework_id: str, brief: DecisionBrief, themes: ThemeVector
) -> VisualizationSpec | None:
    """Canonical chart for a deep framework, or None for any other framework."""
    builder = CANONICAL_BUILDERS.get(framework_id)
    if builder is None:
        return None
    return builder(brief, themes)


def build_theme_fit_radar(framework: FrameworkDefinition, decision_themes: ThemeVector) -> VisualizationSpec:
    """Radar of the mean of framework weight and decision value per axis."""
    return VisualizationSpec(
        type="radar",
        title=f"{framework.name} Theme Fit",
        viz_schema_version=VIZ_SCHEMA_VERSION,
        data=[
            {
                "axis": axis,
                "value": round3(
                    (framework.theme_weights.axis(axis) + decision_themes.axis(axis)) / 2
                ),
            }
            for axis in THEME_AXES
        ],
    )
