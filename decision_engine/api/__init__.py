"""API router for v1 endpoints."""

from fastapi import APIRouter

from decision_engine.api import decisions, frameworks, runs

router = APIRouter()

# Framework catalog and fit ranking
router.include_router(frameworks.router, prefix="/frameworks", tags=["frameworks"])

# Decision briefs
router.include_router(decisions.router, prefix="/decisions", tags=["decisions"])

# Analysis runs
router.include_router(runs.router, prefix="/runs", tags=["runs"])
