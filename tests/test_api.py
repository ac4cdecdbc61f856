"""Tests for the v1 API endpoints via FastAPI TestClient with a mocked controller."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from decision_engine.core.exceptions import (
    ProviderUnavailableError,
    RunNotFoundError,
    UnknownFrameworkError,
)
from decision_engine.core.schemas_analysis import AnalysisRun, RunResults, RunSnapshot
from decision_engine.main import app

RUN_ID = "run-1"
DECISION_ID = "decision-1"


def _mock_controller():
    controller = MagicMock()
    controller.create_run = AsyncMock(
        return_value=AnalysisRun(
            id=RUN_ID,
            decision_id=DECISION_ID,
            framework_ids=["swot_analysis"],
            provider="hosted",
            model="claude-test",
        )
    )
    controller.enqueue_run.return_value = True
    controller.get_run_snapshot = AsyncMock(
        return_value=RunSnapshot(
            run_id=RUN_ID,
            decision_id=DECISION_ID,
            status="analyzing",
            provider="hosted",
            model="claude-test",
            framework_count=4,
            completed_framework_count=1,
        )
    )
    controller.store.save_brief = AsyncMock(return_value=2)
    return controller


@pytest.fixture
def client():
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def controller():
    controller = _mock_controller()
    with (
        patch("decision_engine.api.runs.get_run_controller", return_value=controller),
        patch("decision_engine.api.decisions.get_run_controller", return_value=controller),
    ):
        yield controller


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


class TestFrameworkEndpoints:
    def test_lists_full_catalog(self, client):
        response = client.get("/v1/frameworks")

        assert response.status_code == 200
        frameworks = response.json()
        assert len(frameworks) == 50
        assert frameworks[0]["id"] == "eisenhower_matrix"

    def test_lists_deep_frameworks(self, client):
        response = client.get("/v1/frameworks", params={"deep_only": "true"})

        assert response.status_code == 200
        frameworks = response.json()
        assert len(frameworks) == 12
        assert all(framework["deep_supported"] for framework in frameworks)

    def test_ranks_fits_for_brief(self, client, launch_brief):
        response = client.post(
            "/v1/frameworks/fit", params={"limit": 5}, json=launch_brief.model_dump(mode="json")
        )

        assert response.status_code == 200
        data = response.json()
        assert set(data["themes"]) == {
            "risk",
            "urgency",
            "opportunity",
            "uncertainty",
            "resources",
            "stakeholder_impact",
        }
        assert [fit["rank"] for fit in data["fits"]] == [1, 2, 3, 4, 5]
        scores = [fit["fit_score"] for fit in data["fits"]]
        assert scores == sorted(scores, reverse=True)

    def test_rejects_invalid_brief(self, client):
        response = client.post("/v1/frameworks/fit", json={"title": "x"})

        assert response.status_code == 422


class TestDecisionEndpoints:
    def test_saves_brief_version(self, client, controller, launch_brief):
        response = client.post(
            f"/v1/decisions/{DECISION_ID}/briefs", json=launch_brief.model_dump(mode="json")
        )

        assert response.status_code == 200
        assert response.json() == {"decision_id": DECISION_ID, "version": 2}
        controller.store.save_brief.assert_awaited_once_with(DECISION_ID, launch_brief)


class TestRunEndpoints:
    def test_start_run_creates_and_enqueues(self, client, controller):
        response = client.post(
            "/v1/runs",
            json={"decision_id": DECISION_ID, "framework_ids": ["swot_analysis"], "provider_preference": "hosted"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "run_id": RUN_ID,
            "status": "queued",
            "provider": "hosted",
            "model": "claude-test",
        }
        controller.create_run.assert_awaited_once_with(DECISION_ID, ["swot_analysis"], "hosted")
        controller.enqueue_run.assert_called_once_with(RUN_ID)

    def test_unavailable_provider_maps_to_503(self, client, controller):
        controller.create_run.side_effect = ProviderUnavailableError(
            "Local provider requested, but Ollama is unavailable.",
            details={"preference": "local", "provider": "local", "model": "llama3.1:8b"},
        )

        response = client.post(
            "/v1/runs", json={"decision_id": DECISION_ID, "provider_preference": "local"}
        )

        assert response.status_code == 503
        detail = response.json()["detail"]
        assert detail["code"] == "provider_unavailable"
        assert detail["details"]["model"] == "llama3.1:8b"
        controller.enqueue_run.assert_not_called()

    def test_unknown_framework_maps_to_400(self, client, controller):
        controller.create_run.side_effect = UnknownFrameworkError("Unknown framework: astrology")

        response = client.post(
            "/v1/runs", json={"decision_id": DECISION_ID, "framework_ids": ["astrology"]}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "Unknown framework: astrology"

    def test_unexpected_error_maps_to_500(self, client, controller):
        controller.create_run.side_effect = RuntimeError("database down")

        response = client.post("/v1/runs", json={"decision_id": DECISION_ID})

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to start analysis run"

    def test_invalid_preference_is_rejected(self, client, controller):
        response = client.post(
            "/v1/runs", json={"decision_id": DECISION_ID, "provider_preference": "cloud"}
        )

        assert response.status_code == 422
        controller.create_run.assert_not_called()

    def test_get_run_status(self, client, controller):
        response = client.get(f"/v1/runs/{RUN_ID}")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "analyzing"
        assert data["completed_framework_count"] == 1
        assert data["framework_count"] == 4

    def test_missing_run_maps_to_404(self, client, controller):
        controller.get_run_snapshot.side_effect = RunNotFoundError("Analysis run missing not found")

        response = client.get("/v1/runs/missing")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "run_not_found"

    def test_get_run_results(self, client, controller):
        controller.get_run_results = AsyncMock(
            return_value=RunResults(run=controller.get_run_snapshot.return_value)
        )

        response = client.get(f"/v1/runs/{RUN_ID}/results")

        assert response.status_code == 200
        data = response.json()
        assert data["run"]["run_id"] == RUN_ID
        assert data["results"] == []
        assert data["synthesis"] is None
