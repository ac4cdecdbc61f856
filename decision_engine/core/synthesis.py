"""Synthesis of a completed run into a ranked summary and one recommendation."""

from decision_engine.core.schemas_analysis import (
    Contradiction,
    DecisionBrief,
    DecisionRecommendation,
    FrameworkResult,
    OptionScore,
    PropagatedMap,
    SynthesisSummary,
    ThemeVector,
    TopFramework,
)
from decision_engine.core.scoring import aggressiveness, dedupe
from decision_engine.core.seeding import clamp, hash_to_unit, round3
from decision_engine.core.theme_vector import average_theme_vectors, dominant_theme

TOP_FRAMEWORK_LIMIT = 5
CONTRADICTION_LIMIT = 6
RECOMMENDED_ACTION_LIMIT = 10
MAX_OPTIONS = 8
DEFAULT_AVERAGE_CONFIDENCE = 0.58

ARCHETYPE_OPTIONS = ["Conservative rollout", "Phased pilot", "Full-scale commitment"]

CHECKPOINTS = [
    "Re-score top frameworks after first execution milestone.",
    "Track conflict edges with highest weight in weekly review.",
    "Update assumptions and rerun analysis when constraints change.",
]


def composite_score(result: FrameworkResult) -> float:
    return result.applicability_score * 0.6 + result.confidence * 0.4


def derive_options(brief: DecisionBrief) -> list[str]:
    """Brief alternatives when at least two are stated, else three archetypes."""
    options = [option.strip() for option in brief.alternatives if option.strip()]
    if len(options) >= 2:
        return options[:MAX_OPTIONS]
    return list(ARCHETYPE_OPTIONS)


def _risk_fit(risk_tolerance: str, aggression: float) -> float:
    if risk_tolerance == "low":
        return 1 - aggression * 0.9
    if risk_tolerance == "high":
        return clamp(aggression * 1.05)
    return 1 - abs(aggression - 0.6)


def _option_rationale(option: str, risk_tolerance: str) -> str:
    if risk_tolerance == "low":
        return f"{option} controls downside while maintaining execution momentum."
    if risk_tolerance == "high":
        return f"{option} maximizes upside potential with higher volatility tolerance."
    return f"{option} balances upside with manageable execution risk."


def score_option(
    brief: DecisionBrief,
    option: str,
    index: int,
    themes: ThemeVector,
    average_confidence: float,
) -> OptionScore:
    aggression = aggressiveness(option)
    seed = hash_to_unit(f"{brief.title}:{option}", f"option-{index}")
    optionality = clamp(1 - aggression * 0.7 + seed * 0.3)

    risk_fit = _risk_fit(brief.risk_tolerance, aggression)
    opportunity_fit = clamp(themes.opportunity * (0.45 + aggression * 0.65))
    resource_fit = clamp((1 - aggression * 0.5) * (0.45 + themes.resources * 0.55))
    uncertainty_penalty = themes.uncertainty * (0.3 + aggression * 0.55)
    stakeholder_fit = clamp(themes.stakeholder_impact * (0.65 + optionality * 0.35))

    score = clamp(
        0.3 * risk_fit
        + 0.22 * opportunity_fit
        + 0.18 * resource_fit
        + 0.2 * stakeholder_fit
        + 0.1 * optionality
        - 0.2 * uncertainty_penalty
    )
    confidence = clamp(
        average_confidence * 0.7 + (1 - abs(score - 0.62)) * 0.2 + seed * 0.1
    )

    return OptionScore(
        option=option,
        score=round3(score),
        confidence=round3(confidence),
        rationale=_option_rationale(option, brief.risk_tolerance),
    )


def build_decision_recommendation(
    brief: DecisionBrief,
    results: list[FrameworkResult],
    recommended_actions: list[str],
) -> DecisionRecommendation:
    themes = average_theme_vectors([result.themes for result in results])
    average_confidence = (
        sum(result.confidence for result in results) / len(results)
        if results
        else DEFAULT_AVERAGE_CONFIDENCE
    )

    option_scores = [
        score_option(brief, option, index, themes, average_confidence)
        for index, option in enumerate(derive_options(brief))
    ]
    option_scores.sort(key=lambda option: option.score, reverse=True)

    best = option_scores[0]
    second = option_scores[1] if len(option_scores) > 1 else best
    score_gap = clamp(best.score - second.score)
    uncertainty_axis = dominant_theme(themes)

    supporters = sorted(
        results, key=lambda result: result.applicability_score * result.confidence, reverse=True
    )[:3]
    support = ", ".join(result.framework_name for result in supporters) or "no frameworks"

    return DecisionRecommendation(
        recommended_option=best.option,
        confidence=round3(clamp(best.confidence * 0.65 + score_gap * 0.35)),
        rationale=(
            f"{best.option} is currently the strongest choice based on score fit "
            f"({round(best.score * 100)}%) and support from {support}. "
            f"Runner-up is {second.option} at {round(second.score * 100)}%; "
            f"{uncertainty_axis} carries the highest uncertainty impact."
        ),
        tradeoffs=[
            f"{second.option} remains a viable backup at {round(second.score * 100)}% score fit.",
            f"Highest uncertainty impact is currently in {uncertainty_axis}; monitor that metric early.",
            "If risk tolerance changes, re-run analysis to rebalance option scoring.",
        ],
        next_actions=recommended_actions[:3],
        option_scores=option_scores,
    )


def build_synthesis_summary(
    brief: DecisionBrief,
    results: list[FrameworkResult],
    propagated_map: PropagatedMap,
    warnings: list[str] | None = None,
) -> SynthesisSummary:
    """
    Summarize a run's results and graph.

    Args:
        brief: Decision brief of the run
        results: All framework results of the run
        propagated_map: Graph built from the same results
        warnings: Recovery and fallback warnings collected during analysis

    Returns:
        SynthesisSummary with top frameworks, contradictions, actions,
        checkpoints, the decision recommendation and deduplicated warnings
    """
    ranked = sorted(results, key=composite_score, reverse=True)[:TOP_FRAMEWORK_LIMIT]

    contradictions = [
        Contradiction(
            source_framework_id=edge.source,
            target_framework_id=edge.target,
            reason=edge.rationale,
        )
        for edge in propagated_map.conflicts[:CONTRADICTION_LIMIT]
    ]

    recommended_actions = dedupe([action for result in ranked for action in result.actions])[
        :RECOMMENDED_ACTION_LIMIT
    ]

    return SynthesisSummary(
        top_frameworks=[
            TopFramework(
                framework_id=result.framework_id,
                framework_name=result.framework_name,
                composite_score=round3(composite_score(result)),
                reason=f"High fit on {dominant_theme(result.themes)} with strong confidence.",
            )
            for result in ranked
        ],
        contradictions=contradictions,
        recommended_actions=recommended_actions,
        checkpoints=list(CHECKPOINTS),
        decision_recommendation=build_decision_recommendation(brief, results, recommended_actions),
        warnings=dedupe(warnings or []),
    )
