"""API endpoints for analysis runs."""

from fastapi import APIRouter, HTTPException

from decision_engine.api.errors import http_error
from decision_engine.core.exceptions import AnalysisError
from decision_engine.core.logging import get_logger
from decision_engine.core.schemas_analysis import CreateRunRequest, RunResults, RunSnapshot
from decision_engine.services.run_controller import get_run_controller

logger = get_logger(__name__)

router = APIRouter()


@router.post("")
async def start_analysis_run(request: CreateRunRequest) -> dict:
    """
    Create an analysis run and start it in the background.

    Args:
        request: Decision id, optional framework ids and provider preference

    Returns:
        Dict with run_id, status, provider and model

    Raises:
        HTTPException 400: Unknown framework id
        HTTPException 503: No healthy backend for the preference
        HTTPException 500: If run creation fails
    """
    try:
        controller = get_run_controller()
        run = await controller.create_run(
            request.decision_id, request.framework_ids, request.provider_preference
        )
        controller.enqueue_run(run.id)

        return {
            "run_id": run.id,
            "status": run.status,
            "provider": run.provider,
            "model": run.model,
        }

    except AnalysisError as e:
        logger.warning(f"Rejected analysis run for decision {request.decision_id}: {e.message}")
        raise http_error(e)
    except Exception:
        logger.exception(f"Failed to start analysis run for decision {request.decision_id}")
        raise HTTPException(status_code=500, detail="Failed to start analysis run")


@router.get("/{run_id}")
async def get_run_status(run_id: str) -> RunSnapshot:
    """
    Get run status and progress.

    Raises:
        HTTPException 404: If run not found
        HTTPException 500: If database error
    """
    try:
        return await get_run_controller().get_run_snapshot(run_id)

    except AnalysisError as e:
        raise http_error(e)
    except Exception:
        logger.exception(f"Failed to get run {run_id}")
        raise HTTPException(status_code=500, detail="Failed to retrieve run status")


@router.get("/{run_id}/results")
async def get_run_results(run_id: str) -> RunResults:
    """
    Get a run's brief, framework results, propagated map and synthesis.

    Results are returned for runs in any state; map and synthesis are
    present once the run is complete.

    Raises:
        HTTPException 404: If run not found
        HTTPException 500: If database error
    """
    try:
        return await get_run_controller().get_run_results(run_id)

    except AnalysisError as e:
        raise http_error(e)
    except Exception:
        logger.exception(f"Failed to get results for run {run_id}")
        raise HTTPException(status_code=500, detail="Failed to retrieve run results")
