"""Deterministic framework analysis used when no generation backend is involved.

Deep frameworks read their numbers off the canonical visualization so the text
and the chart always agree. Every other framework gets a generic theme-fit
reading. Nothing here touches a global random source: the only variation comes
from ``seeded_value`` on the analysis seed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decision_engine.core.schemas_analysis import (
    THEME_AXES,
    DecisionBrief,
    FrameworkDefinition,
    ThemeVector,
)
from decision_engine.core.schemas_viz import (
    DEEP_VIZ_ADAPTER,
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
from decision_engine.core.seeding import seeded_value
from decision_engine.core.theme_vector import blend_theme_vectors
from decision_engine.core.viz_builders import build_canonical_visualization, build_theme_fit_radar


@dataclass
class HeuristicContext:
    brief: DecisionBrief
    framework: FrameworkDefinition
    decision_themes: ThemeVector
    fit_score: float
    seed: str


@dataclass
class HeuristicParts:
    insights: list[str]
    actions: list[str]
    risks: list[str]
    assumptions: list[str]
    viz_payload: VisualizationSpec
    themes: ThemeVector | None = None


def fallback_assumptions(brief: DecisionBrief) -> list[str]:
    return [
        f"Stakeholder alignment remains feasible across {len(brief.stakeholders)} stakeholders.",
        "Resource constraints can be managed with phased execution.",
    ]


def _pct(value: float) -> int:
    return round(value * 100)


# =============================================================================
# Generic path
# =============================================================================


def generic_parts(ctx: HeuristicContext) -> HeuristicParts:
    name = ctx.framework.name
    weights = ctx.framework.theme_weights
    top_axes = sorted(THEME_AXES, key=lambda axis: weights.axis(axis), reverse=True)[:2]
    strong_fit = ctx.fit_score > 0.7
    step_count = max(2, min(5, len(ctx.brief.execution_steps)))

    return HeuristicParts(
        insights=[
            f"{name} shows {_pct(ctx.fit_score)}% applicability for this decision context.",
            f"Primary influence themes: {' and '.join(top_axes)}.",
            "This model is most useful during "
            + ("initial prioritization and planning." if strong_fit else "secondary validation and stress-testing."),
        ],
        actions=[
            f"Run a focused {name} pass on the top {step_count} execution steps.",
            "Convert framework observations into one measurable checkpoint.",
            "Revisit this model after the first execution milestone.",
        ],
        risks=[
            f"{name} may overemphasize {'its strongest theme' if strong_fit else 'secondary factors'}.",
            "Model output quality depends on the fidelity of assumptions in the brief.",
            "Single-framework use can hide contradictory insights from adjacent models.",
        ],
        assumptions=fallback_assumptions(ctx.brief),
        viz_payload=build_theme_fit_radar(ctx.framework, ctx.decision_themes),
        themes=blend_theme_vectors(
            weights, ctx.decision_themes, seeded_value(ctx.seed, "themeBlend", 0.35, 0.65)
        ),
    )


# =============================================================================
# Deep frameworks
# =============================================================================

DeepTexts = tuple[list[str], list[str], list[str]]


def _eisenhower(data: EisenhowerVizData) -> DeepTexts:
    counts = {q.id: q.count for q in data.quadrants}
    return (
        [
            f"{counts['do']} tasks are both urgent and important and belong in the current sprint.",
            f"{counts['eliminate']} tasks are low leverage and candidates for elimination.",
            "Timeboxing urgent but less important work prevents strategic drift.",
        ],
        [
            "Assign an owner to every Do First task.",
            "Schedule important but less urgent tasks into named milestones.",
            "Drop or defer low-impact work from current scope.",
        ],
        [
            "Urgency bias can pull focus away from strategic tasks.",
            "Delegated tasks stall without explicit accountability.",
            "Quadrant assignments go stale unless revisited each milestone.",
        ],
    )


def _swot(data: SwotVizData) -> DeepTexts:
    return (
        [
            f"{len(data.strengths)} strengths line up with the stated success criteria.",
            "Weaknesses are mostly constraint driven and can be mitigated through sequencing.",
            f"Threat profile concentrates on {len(data.threats)} unresolved external factors.",
        ],
        [
            "Turn each weakness into one mitigation with an owner and a date.",
            "Prioritize opportunities that map directly to measurable success criteria.",
            "Track the top threats as explicit risk register items.",
        ],
        [
            "Overstating strengths can hide structural weaknesses.",
            "Threats may materialize faster than mitigation planning cycles.",
            "Opportunity assessments can be biased by internal optimism.",
        ],
    )


def _bcg(data: BcgVizData) -> DeepTexts:
    stars = [p.label for p in data.points if p.quadrant == "stars"]
    dogs = [p.label for p in data.points if p.quadrant == "dogs"]
    return (
        [
            f"{len(stars)} option(s) currently read as stars with both share and growth.",
            "Cash cow options can fund the higher growth bets during execution.",
            f"{len(dogs)} low-share, low-growth option(s) are candidates for early exit.",
        ],
        [
            "Shift resources toward high-growth options with durable share potential.",
            "Set explicit guardrails before continuing investment in dog options.",
            "Pair each high-growth bet with one stable value stream.",
        ],
        [
            "Growth assumptions may be inflated without external validation.",
            "Market share can lag despite strong internal execution.",
            "Exiting low-share options early can remove future optionality.",
        ],
    )


def _project_portfolio(data: ProjectPortfolioVizData) -> DeepTexts:
    points = data.points
    high_value = sum(1 for p in points if p.value >= 0.5)
    return (
        [
            f"{high_value} of {len(points)} projects score as high value.",
            "Balance high-value, high-risk projects with lower risk quick wins.",
            "The current mix supports a staggered delivery rhythm.",
        ],
        [
            "Rank projects by value against success probability before scheduling.",
            "Put high-risk, high-value projects behind readiness gates.",
            "Add a monthly portfolio review checkpoint.",
        ],
        [
            "Too many concurrent projects dilute execution quality.",
            "Risk scores drift without recalibration after milestones.",
            "Stakeholder pressure may bias sequencing decisions.",
        ],
    )


def _pareto(data: ParetoVizData) -> DeepTexts:
    factors = data.factors
    vital = next(
        (i + 1 for i, f in enumerate(factors) if f.cumulative >= data.threshold),
        len(factors),
    )
    return (
        [
            f"{vital} of {len(factors)} factors carry {_pct(data.threshold)}% of the expected impact.",
            f"{factors[0].label} is the single largest contributor.",
            "Long-tail work should follow the high-leverage wins.",
        ],
        [
            "Protect resources for the vital few factors.",
            "Move low-contribution tasks to the backlog or automate them.",
            "Re-estimate contributions after each iteration.",
        ],
        [
            "Wrong contribution estimates misallocate resources.",
            "Overfocusing on the top factors can hide dependencies.",
            "Cumulative impact flattens if the top factors stall.",
        ],
    )


def _hype_cycle(data: HypeCycleVizData) -> DeepTexts:
    current = data.current
    return (
        [
            f"{current.label} currently sits in the {current.phase} phase.",
            "Expectation management should be explicit in stakeholder communication.",
            "Milestones should favour evidence over narrative momentum.",
        ],
        [
            "Define evidence gates for moving to the next phase.",
            "Set realistic adoption milestones for the next quarter.",
            "Track the gap between expectation and delivered value in reviews.",
        ],
        [
            "Hype can distort resource allocation and timelines.",
            "Trough transitions can trigger unnecessary pivots.",
            "Plateau assumptions may ignore adjacent disruption.",
        ],
    )


def _chasm(data: ChasmVizData) -> DeepTexts:
    return (
        [
            f"The adoption gap after {data.chasm_after} is estimated at {_pct(data.gap)}%.",
            "Proof requirements differ sharply between segments.",
            "Traction with early adopters should precede scale commitments.",
        ],
        [
            "Design one bridge strategy aimed at the early majority.",
            "Document proof points that reduce perceived switching risk.",
            "Match onboarding depth to segment readiness.",
        ],
        [
            "Crossing assumptions may be optimistic without reference users.",
            "Blending segments blurs the proposition.",
            "Optimizing for laggards can stall momentum.",
        ],
    )


def _monte_carlo(data: MonteCarloVizData) -> DeepTexts:
    return (
        [
            f"P50 outcome estimate: {_pct(data.p50)}%.",
            f"P10 downside boundary: {_pct(data.p10)}%; P90 upside: {_pct(data.p90)}%.",
            "The spread between P10 and P90 shows how robust the decision is under uncertainty.",
        ],
        [
            "Define contingency actions for the bottom 10% scenario.",
            "Plan on the median scenario and use P90 for stretch targets.",
            "Refresh simulation inputs after each major milestone.",
        ],
        [
            "Output quality is bounded by assumption quality.",
            "Correlated risks are underrepresented when inputs are simulated independently.",
            "Confidence in the central estimate can mask tail risk.",
        ],
    )


def _consequences(data: ConsequencesVizData) -> DeepTexts:
    horizons = data.horizons
    return (
        [
            f"Net impact moves from {horizons[0].net} immediately to {horizons[-1].net} at one year.",
            "Indirect effects compound over time and need active governance.",
            "Early mitigation investment improves long-horizon outcomes.",
        ],
        [
            "Attach a mitigation owner to each horizon with negative net impact.",
            "Review impact forecasts at the 30 and 90 day checkpoints.",
            "Escalate adverse trends before annual planning.",
        ],
        [
            "Delayed side effects are easy to underweight in the initial narrative.",
            "Consequence estimates drift without fresh evidence.",
            "Positive bias may suppress contingency planning.",
        ],
    )


def _crossroads(data: CrossroadsVizData) -> DeepTexts:
    best = max(data.options, key=lambda o: o.feasibility + o.desirability)
    return (
        [
            f"{best.option} combines the strongest feasibility and desirability.",
            "Highly desirable options still need to pass feasibility gates.",
            "Reversible experiments reduce regret under uncertainty.",
        ],
        [
            "Advance the top two options to a short experiment design.",
            "Set kill criteria for low-feasibility branches.",
            "Rescore options when new evidence arrives.",
        ],
        [
            "Keeping too many options active prolongs decision paralysis.",
            "Feasibility assumptions can break under resource constraints.",
            "Stakeholder preference can bias scoring.",
        ],
    )


def _conflict_resolution(data: ConflictResolutionVizData) -> DeepTexts:
    return (
        [
            f"{data.recommended_mode} is the most suitable conflict mode for this decision.",
            "Resolution momentum depends on shared success criteria and transparency.",
            "Escalation risk falls when tradeoffs are explicit and measurable.",
        ],
        [
            "Run bilateral sessions with the least aligned stakeholders first.",
            "Document non-negotiables and acceptable compromise ranges.",
            "Track alignment after each facilitation step.",
        ],
        [
            "Ignoring low-alignment influencers can drag implementation.",
            "Short-term compromise can leave long-term ambiguity.",
            "Without neutral facilitation positions may harden.",
        ],
    )


def _double_loop(data: DoubleLoopVizData) -> DeepTexts:
    top = max(data.loops, key=lambda loop: loop.leverage)
    return (
        [
            f"Highest leverage loop: {top.behavior}.",
            "Single-loop fixes improve efficiency but may not stop recurring failures.",
            "Correcting governing assumptions creates stronger long-term learning.",
        ],
        [
            "Tag recurring incidents with the assumption they challenge.",
            "Run retrospectives that question governing beliefs explicitly.",
            "Update high-leverage assumptions before the next iteration.",
        ],
        [
            "Teams default to surface fixes under delivery pressure.",
            "Challenging assumptions can temporarily blur ownership.",
            "Learning gains decay between cycles without tracking.",
        ],
    )


DEEP_TEXTS: dict[str, Callable[..., DeepTexts]] = {
    "eisenhower_matrix": _eisenhower,
    "swot_analysis": _swot,
    "bcg_matrix": _bcg,
    "project_portfolio_matrix": _project_portfolio,
    "pareto_principle": _pareto,
    "hype_cycle": _hype_cycle,
    "chasm_diffusion_model": _chasm,
    "monte_carlo_simulation": _monte_carlo,
    "consequences_model": _consequences,
    "crossroads_model": _crossroads,
    "conflict_resolution_model": _conflict_resolution,
    "double_loop_learning": _double_loop,
}


def build_heuristic_parts(ctx: HeuristicContext) -> HeuristicParts:
    """Deterministic insights, actions, risks, assumptions and chart for a framework."""
    texts = DEEP_TEXTS.get(ctx.framework.id)
    if not ctx.framework.deep_supported or texts is None:
        return generic_parts(ctx)

    viz = build_canonical_visualization(ctx.framework.id, ctx.brief, ctx.decision_themes)
    insights, actions, risks = texts(DEEP_VIZ_ADAPTER.validate_python(viz.data))
    return HeuristicParts(
        insights=insights,
        actions=actions,
        risks=risks,
        assumptions=fallback_assumptions(ctx.brief),
        viz_payload=viz,
    )
