"""Rank catalog frameworks by how well they fit a decision brief."""

from decision_engine.core.framework_registry import list_framework_definitions
from decision_engine.core.schemas_analysis import DecisionBrief, FrameworkFit, ThemeVector
from decision_engine.core.seeding import round3
from decision_engine.core.theme_vector import infer_decision_theme_vector, theme_fit_score


def rank_framework_fits(
    brief: DecisionBrief,
    decision_themes: ThemeVector | None = None,
    limit: int | None = None,
) -> list[FrameworkFit]:
    """
    Rank every catalog framework by fit score, descending.

    Ties keep catalog order (the sort is stable).

    Args:
        brief: Decision brief to profile
        decision_themes: Precomputed theme vector; inferred from the brief if omitted
        limit: Optional cap on the number of rows returned

    Returns:
        Ranked fit rows, rank starting at 1
    """
    themes = decision_themes or infer_decision_theme_vector(brief)
    scored = [
        (framework, theme_fit_score(framework.theme_weights, themes))
        for framework in list_framework_definitions()
    ]
    scored.sort(key=lambda pair: pair[1], reverse=True)

    if limit is not None:
        scored = scored[:limit]

    return [
        FrameworkFit(
            rank=index + 1,
            framework_id=framework.id,
            framework_name=framework.name,
            category=framework.category,
            deep_supported=framework.deep_supported,
            fit_score=round3(score),
        )
        for index, (framework, score) in enumerate(scored)
    ]
