"""Pytest configuration and fixtures."""

import os

import pytest

# Settings are read at import time by loggers; set env before collection
os.environ["SUPABASE_URL"] = "https://test.supabase.co"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
os.environ["ENGINE_ENV"] = "test"
os.environ.pop("ANTHROPIC_API_KEY", None)


@pytest.fixture(autouse=True)
def clear_cached_singletons():
    """Drop cached settings and controller between tests."""
    from decision_engine.core.config import get_settings
    from decision_engine.services.run_controller import get_run_controller

    get_settings.cache_clear()
    get_run_controller.cache_clear()
    yield
    get_settings.cache_clear()
    get_run_controller.cache_clear()


@pytest.fixture
def launch_brief():
    from decision_engine.core.schemas_analysis import DecisionBrief

    return DecisionBrief(
        title="Launch the self-serve analytics tier",
        decision_statement="Decide whether to launch a self-serve analytics tier this quarter.",
        context=(
            "Revenue growth has slowed and competitors shipped self-serve tiers. "
            "The platform team is at capacity and the budget is limited. "
            "Market demand is uncertain and churn risk is rising."
        ),
        alternatives=["Full launch", "Phased pilot with two customers", "Delay until next year"],
        constraints=["Budget capped at 250k", "Two engineers available", "Must not disrupt enterprise SLAs"],
        deadline="End of Q3",
        stakeholders=["Product", "Sales", "Platform engineering", "Finance"],
        success_criteria=["20 paying teams in 90 days", "No SLA regressions"],
        risk_tolerance="medium",
        budget="250k",
        assumptions=["Self-serve buyers convert without sales calls"],
        open_questions=["Which pricing tier should anchor the offer?"],
        execution_steps=["Define pricing", "Build onboarding flow", "Run beta", "Launch"],
    )


@pytest.fixture
def minimal_brief():
    from decision_engine.core.schemas_analysis import DecisionBrief

    return DecisionBrief(
        title="Office move",
        decision_statement="Should we move to a smaller office?",
        context="Lease ends next spring and the team mostly works remotely.",
    )
