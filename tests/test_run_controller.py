"""Tests for the run controller and its worker pool."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from decision_engine.core.config import Settings
from decision_engine.core.exceptions import (
    IncompleteRunError,
    MissingBriefError,
    ModelOutputInvalidError,
    ProviderUnavailableError,
    RunNotFoundError,
    UnknownFrameworkError,
)
from decision_engine.core.framework_registry import DEEP_FRAMEWORK_IDS
from decision_engine.core.llm_backends import AnthropicBackend
from decision_engine.core.provider_resolver import ProviderResolver
from decision_engine.services.run_controller import RunController, RunRegistry, worker_count
from tests.fakes.fake_backend import DEFAULT_OUTPUT, ScriptedBackend
from tests.fakes.fake_store import InMemoryAnalysisStore

DECISION_ID = "decision-1"
MIXED_FRAMEWORKS = ["swot_analysis", "johari_window", "pareto_principle", "team_model"]


class _DroppingAnalyzer:
    """Analyzer double that loses the result of one framework."""

    def __init__(self, inner, dropped_framework_id):
        self.inner = inner
        self.dropped_framework_id = dropped_framework_id

    async def analyze(self, framework_id, *args, **kwargs):
        if framework_id == self.dropped_framework_id:
            return None
        return await self.inner.analyze(framework_id, *args, **kwargs)


def _anthropic_returning(payload):
    client = MagicMock()
    client.messages.create = AsyncMock(
        return_value=SimpleNamespace(content=[SimpleNamespace(type="tool_use", input=payload)])
    )
    return AnthropicBackend(api_key="sk-test", model="claude-test", client=client)


def _controller(local=None, hosted=None, concurrency=4, scope="deep_only"):
    store = InMemoryAnalysisStore()
    resolver = ProviderResolver(
        local=local or ScriptedBackend(name="local", model="llama-test"),
        hosted=hosted or ScriptedBackend(name="hosted", model="claude-test"),
        auto_priority="hosted_first",
    )
    settings = Settings(ANALYSIS_MAX_CONCURRENCY=concurrency, ANALYSIS_LLM_SCOPE=scope)
    return RunController(store, resolver, settings=settings), store, resolver


class TestRunRegistry:
    def test_try_begin_is_exclusive(self):
        registry = RunRegistry()

        assert registry.try_begin_exclusive("run-1")
        assert not registry.try_begin_exclusive("run-1")
        assert "run-1" in registry

        registry.finish("run-1")

        assert "run-1" not in registry
        assert registry.try_begin_exclusive("run-1")

    @pytest.mark.parametrize(
        "requested,count,expected", [(4, 12, 4), (4, 2, 2), (4, 0, 1), (40, 50, 16)]
    )
    def test_worker_count(self, requested, count, expected):
        assert worker_count(requested, count) == expected


class TestCreateRun:
    @pytest.mark.asyncio
    async def test_defaults_to_full_catalog_and_resolves_provider(self):
        controller, _, _ = _controller()

        run = await controller.create_run(DECISION_ID)

        assert len(run.framework_ids) == 50
        assert run.status == "queued"
        assert run.provider == "hosted"
        assert run.model == "claude-test"

    @pytest.mark.asyncio
    async def test_deduplicates_requested_frameworks(self):
        controller, _, _ = _controller()

        run = await controller.create_run(DECISION_ID, ["swot_analysis", "swot_analysis", "bcg_matrix"])

        assert run.framework_ids == ["swot_analysis", "bcg_matrix"]

    @pytest.mark.asyncio
    async def test_unknown_framework_is_rejected(self):
        controller, store, _ = _controller()

        with pytest.raises(UnknownFrameworkError):
            await controller.create_run(DECISION_ID, ["swot_analysis", "astrology"])

        assert store.runs == {}

    @pytest.mark.asyncio
    async def test_unavailable_preference_fails_fast(self):
        controller, store, _ = _controller(local=ScriptedBackend(name="local", healthy=False))

        with pytest.raises(ProviderUnavailableError):
            await controller.create_run(DECISION_ID, provider_preference="local")

        assert store.runs == {}

    @pytest.mark.asyncio
    async def test_scope_none_skips_resolution(self):
        controller, _, _ = _controller(
            local=ScriptedBackend(name="local", healthy=False),
            hosted=ScriptedBackend(name="hosted", healthy=False),
            scope="none",
        )

        run = await controller.create_run(DECISION_ID, ["swot_analysis"])

        assert run.provider is None


class TestProcessRun:
    @pytest.mark.asyncio
    async def test_generation_concurrency_is_capped(self, launch_brief):
        hosted = ScriptedBackend(name="hosted", model="claude-test", delay=0.01)
        controller, store, _ = _controller(hosted=hosted, concurrency=3)
        await store.save_brief(DECISION_ID, launch_brief)
        run = await controller.create_run(DECISION_ID, list(DEEP_FRAMEWORK_IDS))

        await controller.process_run(run.id)

        assert len(hosted.calls) == 12
        assert hosted.peak_in_flight == 3
        assert store.status_history[run.id] == ["queued", "analyzing", "synthesizing", "complete"]

    @pytest.mark.asyncio
    async def test_run_completes_with_results_map_and_synthesis(self, launch_brief):
        controller, store, _ = _controller()
        await store.save_brief(DECISION_ID, launch_brief)
        run = await controller.create_run(DECISION_ID, MIXED_FRAMEWORKS)

        await controller.process_run(run.id)

        results = await controller.get_run_results(run.id)
        assert results.run.status == "complete"
        assert results.run.completed_framework_count == 4
        assert results.run.started_at is not None
        assert results.run.ended_at is not None
        assert [r.framework_id for r in results.results] == MIXED_FRAMEWORKS
        assert results.brief == launch_brief
        assert len(results.propagated_map.nodes) == 4
        assert results.synthesis.warnings == []
        assert len(store.edges[run.id]) == len(results.propagated_map.edges)
        assert store.finalize_calls == 1

    @pytest.mark.asyncio
    async def test_generation_failures_complete_with_warnings(self, launch_brief):
        hosted = ScriptedBackend(name="hosted", error=ModelOutputInvalidError("invalid output"))
        controller, store, _ = _controller(hosted=hosted)
        await store.save_brief(DECISION_ID, launch_brief)
        run = await controller.create_run(DECISION_ID, MIXED_FRAMEWORKS, "hosted")

        await controller.process_run(run.id)

        results = await controller.get_run_results(run.id)
        assert results.run.status == "complete"
        assert all(r.generation.mode == "fallback" for r in results.results)
        assert results.synthesis.warnings == [
            "SWOT Analysis (swot_analysis) fell back to deterministic analysis: invalid output",
            "Pareto Principle (pareto_principle) fell back to deterministic analysis: invalid output",
        ]

    @pytest.mark.asyncio
    async def test_unresolvable_auto_run_proceeds_deterministically(self, launch_brief):
        local = ScriptedBackend(name="local", healthy=False)
        hosted = ScriptedBackend(name="hosted", healthy=False)
        controller, store, _ = _controller(local=local, hosted=hosted)
        await store.save_brief(DECISION_ID, launch_brief)
        run = await store.create_run(DECISION_ID, ["swot_analysis", "bcg_matrix"], "auto")

        await controller.process_run(run.id)

        snapshot = await controller.get_run_snapshot(run.id)
        results = await controller.get_run_results(run.id)
        assert snapshot.status == "complete"
        assert hosted.calls == [] and local.calls == []
        assert results.synthesis.warnings[0].startswith("Generation unavailable")

    @pytest.mark.asyncio
    async def test_missing_result_raises(self, launch_brief):
        controller, store, _ = _controller()
        controller.analyzer = _DroppingAnalyzer(controller.analyzer, "bcg_matrix")
        await store.save_brief(DECISION_ID, launch_brief)
        run = await controller.create_run(DECISION_ID, ["swot_analysis", "bcg_matrix"])

        with pytest.raises(IncompleteRunError):
            await controller.process_run(run.id)

        assert store.status_history[run.id] == ["queued", "analyzing"]

    @pytest.mark.asyncio
    async def test_missing_brief_raises(self):
        controller, _, _ = _controller()
        run = await controller.create_run(DECISION_ID, ["swot_analysis"])

        with pytest.raises(MissingBriefError):
            await controller.process_run(run.id)

    @pytest.mark.asyncio
    async def test_unknown_run_raises(self):
        controller, _, _ = _controller()

        with pytest.raises(RunNotFoundError):
            await controller.get_run_snapshot("missing")


class TestEnqueueRun:
    @pytest.mark.asyncio
    async def test_missing_brief_marks_run_failed(self):
        controller, store, _ = _controller()
        run = await controller.create_run(DECISION_ID, ["swot_analysis"])

        assert controller.enqueue_run(run.id)
        await controller.wait_for_run(run.id)

        snapshot = await controller.get_run_snapshot(run.id)
        assert snapshot.status == "failed"
        assert snapshot.error == "Decision brief not found. Run refinement first."
        assert snapshot.ended_at is not None
        assert run.id not in controller.registry

    @pytest.mark.asyncio
    async def test_unexpected_error_marks_run_failed(self, launch_brief):
        hosted = ScriptedBackend(name="hosted", error=RuntimeError("boom"))
        controller, store, _ = _controller(hosted=hosted)
        await store.save_brief(DECISION_ID, launch_brief)
        run = await controller.create_run(DECISION_ID, ["swot_analysis"])

        controller.enqueue_run(run.id)
        await controller.wait_for_run(run.id)

        snapshot = await controller.get_run_snapshot(run.id)
        assert snapshot.status == "failed"
        assert snapshot.error == "boom"

    @pytest.mark.asyncio
    async def test_enqueue_is_idempotent_while_in_flight(self, launch_brief):
        hosted = ScriptedBackend(name="hosted", delay=0.01)
        controller, store, _ = _controller(hosted=hosted)
        await store.save_brief(DECISION_ID, launch_brief)
        run = await controller.create_run(DECISION_ID, ["swot_analysis", "bcg_matrix"])

        assert controller.enqueue_run(run.id) is True
        assert controller.enqueue_run(run.id) is False
        await controller.wait_for_run(run.id)

        assert store.finalize_calls == 1
        assert len(hosted.calls) == 2
        assert len(controller.registry) == 0
        assert (await controller.get_run_snapshot(run.id)).status == "complete"

    @pytest.mark.asyncio
    async def test_wait_for_unknown_run_returns(self):
        controller, _, _ = _controller()

        await controller.wait_for_run("never-enqueued")

    @pytest.mark.asyncio
    async def test_failed_run_is_not_reprocessed(self, launch_brief):
        controller, store, _ = _controller()
        run = await controller.create_run(DECISION_ID, ["swot_analysis"])
        controller.enqueue_run(run.id)
        await controller.wait_for_run(run.id)

        await store.save_brief(DECISION_ID, launch_brief)
        assert controller.enqueue_run(run.id) is True
        await controller.wait_for_run(run.id)

        snapshot = await controller.get_run_snapshot(run.id)
        assert snapshot.status == "failed"
        assert store.status_history[run.id] == ["queued", "failed"]
        assert store.finalize_calls == 0

    @pytest.mark.asyncio
    async def test_complete_run_is_not_reprocessed(self, launch_brief):
        controller, store, _ = _controller()
        await store.save_brief(DECISION_ID, launch_brief)
        run = await controller.create_run(DECISION_ID, ["swot_analysis"])
        await controller.process_run(run.id)

        await controller.process_run(run.id)

        assert store.finalize_calls == 1
        assert store.status_history[run.id] == ["queued", "analyzing", "synthesizing", "complete"]

    @pytest.mark.asyncio
    async def test_missing_result_marks_run_failed(self, launch_brief):
        controller, store, _ = _controller()
        controller.analyzer = _DroppingAnalyzer(controller.analyzer, "bcg_matrix")
        await store.save_brief(DECISION_ID, launch_brief)
        run = await controller.create_run(DECISION_ID, ["swot_analysis", "bcg_matrix"])

        controller.enqueue_run(run.id)
        await controller.wait_for_run(run.id)

        snapshot = await controller.get_run_snapshot(run.id)
        assert snapshot.status == "failed"
        assert snapshot.error == "Analysis run completed with missing framework results."
        assert store.finalize_calls == 0

    @pytest.mark.asyncio
    async def test_null_theme_axis_falls_back_and_completes(self, launch_brief):
        payload = {**DEFAULT_OUTPUT, "themes": {**DEFAULT_OUTPUT["themes"], "risk": None}}
        hosted = _anthropic_returning(payload)
        controller, store, _ = _controller(hosted=hosted)
        await store.save_brief(DECISION_ID, launch_brief)
        run = await controller.create_run(DECISION_ID, ["swot_analysis"], "hosted")

        controller.enqueue_run(run.id)
        await controller.wait_for_run(run.id)

        results = await controller.get_run_results(run.id)
        assert results.run.status == "complete"
        assert results.results[0].generation.mode == "fallback"
        assert results.synthesis.warnings[0].startswith(
            "SWOT Analysis (swot_analysis) fell back to deterministic analysis:"
        )
