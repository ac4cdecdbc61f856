"""API endpoints for decision briefs."""

from fastapi import APIRouter, HTTPException

from decision_engine.core.logging import get_logger
from decision_engine.core.schemas_analysis import DecisionBrief
from decision_engine.services.run_controller import get_run_controller

logger = get_logger(__name__)

router = APIRouter()


@router.post("/{decision_id}/briefs")
async def save_decision_brief(decision_id: str, brief: DecisionBrief) -> dict:
    """
    Store a new brief version; runs always analyze the latest version.

    Args:
        decision_id: Decision id
        brief: Refined decision brief

    Returns:
        Dict with decision_id and the stored version

    Raises:
        HTTPException 500: If database error
    """
    try:
        version = await get_run_controller().store.save_brief(decision_id, brief)
        return {"decision_id": decision_id, "version": version}

    except Exception:
        logger.exception(f"Failed to save brief for decision {decision_id}")
        raise HTTPException(status_code=500, detail="Failed to save decision brief")
