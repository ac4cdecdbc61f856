"""API endpoints for the framework catalog."""

from fastapi import APIRouter, HTTPException, Query

from decision_engine.core.framework_fit import rank_framework_fits
from decision_engine.core.framework_registry import list_framework_definitions
from decision_engine.core.logging import get_logger
from decision_engine.core.schemas_analysis import DecisionBrief, FrameworkDefinition, FrameworkFit
from decision_engine.core.theme_vector import infer_decision_theme_vector

logger = get_logger(__name__)

router = APIRouter()


@router.get("")
async def list_frameworks(
    deep_only: bool = Query(False, description="Only frameworks with deep analysis support"),
) -> list[FrameworkDefinition]:
    """List catalog frameworks in catalog order."""
    frameworks = list_framework_definitions()
    if deep_only:
        frameworks = [framework for framework in frameworks if framework.deep_supported]
    return frameworks


@router.post("/fit")
async def rank_frameworks(
    brief: DecisionBrief,
    limit: int | None = Query(None, description="Maximum rows to return", ge=1),
) -> dict:
    """
    Rank catalog frameworks by fit to a decision brief.

    Args:
        brief: Decision brief to profile
        limit: Optional cap on returned rows

    Returns:
        Dict with the inferred theme vector and ranked fits

    Raises:
        HTTPException 500: If ranking fails
    """
    try:
        themes = infer_decision_theme_vector(brief)
        fits: list[FrameworkFit] = rank_framework_fits(brief, themes, limit=limit)
        return {"themes": themes.model_dump(), "fits": [fit.model_dump() for fit in fits]}

    except Exception:
        logger.exception(f"Failed to rank frameworks for brief {brief.title!r}")
        raise HTTPException(status_code=500, detail="Failed to rank frameworks")
