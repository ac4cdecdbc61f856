"""Analysis run controller.

Drives a run through ``queued -> analyzing -> synthesizing -> complete``
(terminal ``failed``). Frameworks are analyzed by a bounded pool of workers
that claim the next framework index from a shared counter; each result is
persisted as soon as it exists so pollers can watch progress.

Usage:
    from decision_engine.services.run_controller import get_run_controller

    controller = get_run_controller()
    run = await controller.create_run(decision_id)
    controller.enqueue_run(run.id)
"""

from __future__ import annotations

import asyncio
import logging
from functools import lru_cache

from decision_engine.chains.analyze_framework import FrameworkAnalyzer
from decision_engine.core.config import MAX_ANALYSIS_CONCURRENCY, Settings, get_settings
from decision_engine.core.exceptions import (
    AnalysisError,
    IncompleteRunError,
    MissingBriefError,
    ProviderUnavailableError,
)
from decision_engine.core.framework_registry import (
    get_framework_definition,
    list_framework_definitions,
)
from decision_engine.core.logging import get_logger, log_with_context
from decision_engine.core.propagation import build_propagated_map
from decision_engine.core.provider_resolver import ProviderResolver, ResolvedProvider
from decision_engine.core.schemas_analysis import (
    TERMINAL_STATUSES,
    AnalysisRun,
    FrameworkResult,
    RunResults,
    RunSnapshot,
)
from decision_engine.core.synthesis import build_synthesis_summary
from decision_engine.core.theme_vector import infer_decision_theme_vector
from decision_engine.db.analysis_store import AnalysisStore, SupabaseAnalysisStore, require_run

logger = get_logger(__name__)


class RunRegistry:
    """In-flight runs of this process, keyed by run id."""

    def __init__(self):
        self._active: dict[str, asyncio.Task | None] = {}

    def try_begin_exclusive(self, run_id: str) -> bool:
        """Claim a run; False when it is already in flight."""
        if run_id in self._active:
            return False
        self._active[run_id] = None
        return True

    def attach(self, run_id: str, task: asyncio.Task) -> None:
        self._active[run_id] = task

    def get(self, run_id: str) -> asyncio.Task | None:
        return self._active.get(run_id)

    def finish(self, run_id: str) -> None:
        self._active.pop(run_id, None)

    def __contains__(self, run_id: str) -> bool:
        return run_id in self._active

    def __len__(self) -> int:
        return len(self._active)


def worker_count(requested: int, framework_count: int) -> int:
    return max(1, min(requested, MAX_ANALYSIS_CONCURRENCY, framework_count))


def _failure_message(error: Exception) -> str:
    if isinstance(error, AnalysisError):
        return error.message
    return str(error) or "Unknown analysis failure"


class RunController:
    """Creates, executes and reports analysis runs."""

    def __init__(
        self,
        store: AnalysisStore,
        resolver: ProviderResolver,
        analyzer: FrameworkAnalyzer | None = None,
        settings: Settings | None = None,
        registry: RunRegistry | None = None,
    ):
        self.store = store
        self.resolver = resolver
        self.settings = settings or get_settings()
        self.analyzer = analyzer or FrameworkAnalyzer(resolver, self.settings)
        self.registry = registry or RunRegistry()

    # =========================================================================
    # Creation and scheduling
    # =========================================================================

    async def create_run(
        self,
        decision_id: str,
        framework_ids: list[str] | None = None,
        provider_preference: str = "auto",
    ) -> AnalysisRun:
        """
        Validate a request and insert a queued run.

        The provider is resolved up front so a request for an unavailable
        backend fails immediately instead of producing a failed run.

        Args:
            decision_id: Decision whose latest brief will be analyzed
            framework_ids: Frameworks to analyze; the full catalog when omitted
            provider_preference: local, hosted or auto

        Returns:
            The queued run

        Raises:
            UnknownFrameworkError: A framework id is not in the catalog
            ProviderUnavailableError: No healthy backend for the preference
        """
        if framework_ids:
            ids = list(dict.fromkeys(framework_ids))
            for framework_id in ids:
                get_framework_definition(framework_id)
        else:
            ids = [framework.id for framework in list_framework_definitions()]

        provider = model = None
        if self.settings.ANALYSIS_LLM_SCOPE != "none":
            resolved = await self.resolver.resolve(provider_preference)
            provider, model = resolved.provider, resolved.model

        return await self.store.create_run(
            decision_id=decision_id,
            framework_ids=ids,
            provider_preference=provider_preference,
            provider=provider,
            model=model,
        )

    def enqueue_run(self, run_id: str) -> bool:
        """
        Schedule a run in the background. Idempotent while the run is in flight.

        Returns:
            True if a task was started, False if the run was already in flight
        """
        if not self.registry.try_begin_exclusive(run_id):
            logger.info(f"Run {run_id} already in flight", extra={"run_id": run_id})
            return False

        task = asyncio.create_task(self._run_to_completion(run_id))
        self.registry.attach(run_id, task)
        return True

    async def wait_for_run(self, run_id: str) -> None:
        """Wait for an in-flight run's task to settle; returns at once otherwise."""
        task = self.registry.get(run_id)
        if task is not None:
            await task

    async def _run_to_completion(self, run_id: str) -> None:
        try:
            await self.process_run(run_id)
        except Exception as e:
            message = _failure_message(e)
            logger.exception(f"Run {run_id} failed: {message}", extra={"run_id": run_id})
            try:
                await self.store.update_run_status(run_id, "failed", error=message)
            except Exception:
                logger.exception(f"Failed to mark run {run_id} as failed", extra={"run_id": run_id})
        finally:
            self.registry.finish(run_id)

    # =========================================================================
    # Execution
    # =========================================================================

    async def _resolve_generator(self, run: AnalysisRun) -> tuple[ResolvedProvider | None, str | None]:
        if self.settings.ANALYSIS_LLM_SCOPE == "none":
            return None, None

        if run.provider in ("local", "hosted"):
            return self.resolver.backend_for(run.provider), None

        try:
            return await self.resolver.resolve(run.provider_preference), None
        except ProviderUnavailableError as e:
            warning = f"Generation unavailable, all frameworks analyzed deterministically: {e.message}"
            logger.warning(warning, extra={"run_id": run.id})
            return None, warning

    async def process_run(self, run_id: str) -> None:
        """
        Execute a run end to end.

        Runs already complete or failed are left untouched; a failed run is
        terminal and a new run must be created to retry.

        Exceptions propagate; ``enqueue_run`` turns them into a failed run.

        Raises:
            RunNotFoundError: Run does not exist
            MissingBriefError: The run's decision has no brief
            IncompleteRunError: A framework result is missing after the pool drains
        """
        run = await require_run(self.store, run_id)
        if run.status in TERMINAL_STATUSES:
            logger.warning(
                f"Run {run_id} is already {run.status}; not reprocessing", extra={"run_id": run_id}
            )
            return

        brief = await self.store.get_brief_for_run(run)
        generator, resolve_warning = await self._resolve_generator(run)

        await self.store.update_run_status(
            run_id,
            "analyzing",
            provider=generator.provider if generator else run.provider,
            model=generator.model if generator else run.model,
        )

        framework_ids = run.framework_ids
        decision_themes = infer_decision_theme_vector(brief)
        results: list[FrameworkResult | None] = [None] * len(framework_ids)
        workers = worker_count(self.settings.ANALYSIS_MAX_CONCURRENCY, len(framework_ids))
        next_index = 0

        log_with_context(
            logger,
            logging.INFO,
            f"Analyzing {len(framework_ids)} frameworks with {workers} workers",
            run_id=run_id,
            provider=generator.provider if generator else "deterministic",
            scope=self.settings.ANALYSIS_LLM_SCOPE,
        )

        async def worker() -> None:
            nonlocal next_index
            while True:
                index = next_index
                next_index += 1
                if index >= len(framework_ids):
                    return

                framework_id = framework_ids[index]
                result = await self.analyzer.analyze(
                    framework_id,
                    brief,
                    decision_themes,
                    generator,
                    preference=run.provider_preference,
                )
                results[index] = result
                await self.store.upsert_framework_result(run_id, framework_id, result)

        await asyncio.gather(*(worker() for _ in range(workers)))

        if any(result is None for result in results):
            raise IncompleteRunError(
                "Analysis run completed with missing framework results.",
                details={"run_id": run_id},
            )
        completed: list[FrameworkResult] = [result for result in results if result is not None]

        warnings = [resolve_warning] if resolve_warning else []
        warnings.extend(r.generation.warning for r in completed if r.generation.warning)

        await self.store.update_run_status(run_id, "synthesizing")
        propagated_map = build_propagated_map(completed)
        synthesis = build_synthesis_summary(brief, completed, propagated_map, warnings)
        await self.store.finalize_run(run_id, propagated_map, synthesis)

        log_with_context(
            logger,
            logging.INFO,
            f"Run {run_id} complete",
            run_id=run_id,
            edges=len(propagated_map.edges),
            warnings=len(synthesis.warnings),
            recommended=synthesis.decision_recommendation.recommended_option,
        )

    # =========================================================================
    # Read models
    # =========================================================================

    async def get_run_snapshot(self, run_id: str) -> RunSnapshot:
        """
        Poll-friendly run status.

        Raises:
            RunNotFoundError: Run does not exist
        """
        run = await require_run(self.store, run_id)
        completed = await self.store.count_framework_results(run_id)
        return RunSnapshot(
            run_id=run.id,
            decision_id=run.decision_id,
            status=run.status,
            provider=run.provider,
            model=run.model,
            error=run.error,
            started_at=run.started_at,
            ended_at=run.ended_at,
            framework_count=len(run.framework_ids),
            completed_framework_count=completed,
        )

    async def get_run_results(self, run_id: str) -> RunResults:
        """Snapshot plus brief, results in request order, map and synthesis."""
        run = await require_run(self.store, run_id)
        snapshot = await self.get_run_snapshot(run_id)

        try:
            brief = await self.store.get_brief_for_run(run)
        except MissingBriefError:
            brief = None

        order = {framework_id: i for i, framework_id in enumerate(run.framework_ids)}
        results = await self.store.list_framework_results(run_id)
        results.sort(key=lambda result: order.get(result.framework_id, len(order)))

        return RunResults(
            run=snapshot,
            brief=brief,
            results=results,
            propagated_map=run.propagated_map,
            synthesis=run.synthesis,
        )


@lru_cache(maxsize=1)
def get_run_controller() -> RunController:
    """Process-wide controller on the Supabase store and configured backends."""
    settings = get_settings()
    return RunController(
        store=SupabaseAnalysisStore(),
        resolver=ProviderResolver.from_settings(settings),
        settings=settings,
    )
