"""Analysis run persistence.

The run controller talks to an ``AnalysisStore``. ``SupabaseAnalysisStore``
keeps runs in ``analysis_runs``, versioned briefs in ``decision_briefs``,
one row per (run, framework) in ``framework_results`` and graph edges in
``map_edges``. Supabase calls are blocking, so each one runs in a worker
thread to keep the event loop free for the framework workers.
"""

import asyncio
from datetime import datetime, timezone  # noqa: UP035
from typing import Any, Protocol
from uuid import uuid4

from decision_engine.core.exceptions import MissingBriefError, RunNotFoundError
from decision_engine.core.logging import get_logger
from decision_engine.core.schemas_analysis import (
    AnalysisRun,
    DecisionBrief,
    FrameworkResult,
    PropagatedMap,
    SynthesisSummary,
)
from decision_engine.db.supabase_client import get_supabase

logger = get_logger(__name__)

FINALIZE_FUNCTION = "finalize_analysis_run"


def _utc_now_iso() -> str:
    """Get current UTC time as ISO string."""
    return datetime.now(timezone.utc).isoformat()  # noqa: UP017


class AnalysisStore(Protocol):
    """Persistence operations used by the run controller."""

    async def create_run(
        self,
        decision_id: str,
        framework_ids: list[str],
        provider_preference: str,
        provider: str | None = None,
        model: str | None = None,
    ) -> AnalysisRun: ...

    async def get_run(self, run_id: str) -> AnalysisRun | None: ...

    async def save_brief(self, decision_id: str, brief: DecisionBrief) -> int: ...

    async def get_brief_for_run(self, run: AnalysisRun) -> DecisionBrief: ...

    async def update_run_status(self, run_id: str, status: str, **fields: Any) -> None: ...

    async def upsert_framework_result(
        self, run_id: str, framework_id: str, result: FrameworkResult
    ) -> None: ...

    async def list_framework_results(self, run_id: str) -> list[FrameworkResult]: ...

    async def count_framework_results(self, run_id: str) -> int: ...

    async def finalize_run(
        self, run_id: str, propagated_map: PropagatedMap, synthesis: SynthesisSummary
    ) -> None: ...


def status_fields(status: str, error: str | None = None) -> dict[str, Any]:
    """Column updates implied by a status transition."""
    fields: dict[str, Any] = {"status": status, "error": error}
    if status == "analyzing":
        fields["started_at"] = _utc_now_iso()
    if status in ("complete", "failed"):
        fields["ended_at"] = _utc_now_iso()
    return fields


def edge_rows(run_id: str, propagated_map: PropagatedMap) -> list[dict[str, Any]]:
    return [
        {
            "run_id": run_id,
            "source_framework_id": edge.source,
            "target_framework_id": edge.target,
            "relation_type": edge.relation_type,
            "weight": edge.weight,
            "rationale": edge.rationale,
        }
        for edge in propagated_map.edges
    ]


# =============================================================================
# Supabase implementation
# =============================================================================


class SupabaseAnalysisStore:
    """AnalysisStore backed by Supabase tables."""

    def __init__(self, client=None):
        self._client = client

    @property
    def supabase(self):
        return self._client or get_supabase()

    # -------------------------------------------------------------------------
    # Runs
    # -------------------------------------------------------------------------

    async def create_run(
        self,
        decision_id: str,
        framework_ids: list[str],
        provider_preference: str,
        provider: str | None = None,
        model: str | None = None,
    ) -> AnalysisRun:
        """
        Insert a queued analysis run.

        Args:
            decision_id: Decision whose latest brief will be analyzed
            framework_ids: Frameworks to analyze, in order
            provider_preference: local, hosted or auto
            provider: Backend resolved at creation time, if any
            model: Model resolved at creation time, if any

        Returns:
            The created run

        Raises:
            Exception: If database operation fails
        """

        def _insert() -> AnalysisRun:
            response = (
                self.supabase.table("analysis_runs")
                .insert(
                    {
                        "id": str(uuid4()),
                        "decision_id": decision_id,
                        "framework_ids": framework_ids,
                        "provider_preference": provider_preference,
                        "provider": provider,
                        "model": model,
                        "status": "queued",
                        "created_at": _utc_now_iso(),
                    }
                )
                .execute()
            )
            if not response.data:
                raise ValueError("No data returned from create_run")
            return AnalysisRun.model_validate(response.data[0])

        try:
            run = await asyncio.to_thread(_insert)
            logger.info(
                f"Created analysis run for decision {decision_id} "
                f"with {len(framework_ids)} frameworks",
                extra={"run_id": run.id},
            )
            return run
        except Exception as e:
            logger.error(f"Failed to create analysis run: {e}")
            raise

    async def get_run(self, run_id: str) -> AnalysisRun | None:
        def _select() -> AnalysisRun | None:
            response = (
                self.supabase.table("analysis_runs").select("*").eq("id", run_id).execute()
            )
            if not response.data:
                return None
            return AnalysisRun.model_validate(response.data[0])

        try:
            return await asyncio.to_thread(_select)
        except Exception as e:
            logger.error(f"Failed to get analysis run: {e}", extra={"run_id": run_id})
            raise

    async def update_run_status(self, run_id: str, status: str, **fields: Any) -> None:
        """
        Transition a run and write any extra columns in the same update.

        Args:
            run_id: Run id
            status: New status
            **fields: Extra columns (error, provider, model)

        Raises:
            Exception: If database operation fails
        """
        payload = status_fields(status, fields.pop("error", None))
        payload.update(fields)

        def _update() -> None:
            self.supabase.table("analysis_runs").update(payload).eq("id", run_id).execute()

        try:
            await asyncio.to_thread(_update)
            logger.info(f"Run {run_id} is {status}", extra={"run_id": run_id})
        except Exception as e:
            logger.error(f"Failed to update run status: {e}", extra={"run_id": run_id})
            raise

    async def finalize_run(
        self, run_id: str, propagated_map: PropagatedMap, synthesis: SynthesisSummary
    ) -> None:
        """
        Replace the run's graph edges and complete it in one transaction.

        The ``finalize_analysis_run`` Postgres function deletes existing edges,
        inserts the new ones and sets map, synthesis, status and ended_at.

        Raises:
            Exception: If database operation fails
        """
        params = {
            "p_run_id": run_id,
            "p_edges": edge_rows(run_id, propagated_map),
            "p_propagated_map": propagated_map.model_dump(mode="json"),
            "p_synthesis": synthesis.model_dump(mode="json"),
            "p_ended_at": _utc_now_iso(),
        }

        def _finalize() -> None:
            self.supabase.rpc(FINALIZE_FUNCTION, params).execute()

        try:
            await asyncio.to_thread(_finalize)
            logger.info(
                f"Finalized run {run_id} with {len(propagated_map.edges)} edges",
                extra={"run_id": run_id},
            )
        except Exception as e:
            logger.error(f"Failed to finalize run: {e}", extra={"run_id": run_id})
            raise

    # -------------------------------------------------------------------------
    # Briefs
    # -------------------------------------------------------------------------

    async def save_brief(self, decision_id: str, brief: DecisionBrief) -> int:
        """
        Store a new brief version for a decision.

        Returns:
            The version number written
        """

        def _insert() -> int:
            latest = (
                self.supabase.table("decision_briefs")
                .select("version")
                .eq("decision_id", decision_id)
                .order("version", desc=True)
                .limit(1)
                .execute()
            )
            version = (latest.data[0]["version"] + 1) if latest.data else 1
            self.supabase.table("decision_briefs").insert(
                {
                    "decision_id": decision_id,
                    "version": version,
                    "brief_json": brief.model_dump(mode="json"),
                }
            ).execute()
            return version

        try:
            return await asyncio.to_thread(_insert)
        except Exception as e:
            logger.error(f"Failed to save brief for decision {decision_id}: {e}")
            raise

    async def get_brief_for_run(self, run: AnalysisRun) -> DecisionBrief:
        """
        Latest brief version of the run's decision.

        Raises:
            MissingBriefError: The decision has no brief
        """

        def _select() -> dict[str, Any] | None:
            response = (
                self.supabase.table("decision_briefs")
                .select("brief_json")
                .eq("decision_id", run.decision_id)
                .order("version", desc=True)
                .limit(1)
                .execute()
            )
            return response.data[0] if response.data else None

        row = await asyncio.to_thread(_select)
        if row is None:
            raise MissingBriefError(
                "Decision brief not found. Run refinement first.",
                details={"decision_id": run.decision_id},
            )
        return DecisionBrief.model_validate(row["brief_json"])

    # -------------------------------------------------------------------------
    # Framework results
    # -------------------------------------------------------------------------

    async def upsert_framework_result(
        self, run_id: str, framework_id: str, result: FrameworkResult
    ) -> None:
        row = {
            "run_id": run_id,
            "framework_id": framework_id,
            "result_json": result.model_dump(mode="json"),
            "applicability_score": result.applicability_score,
            "confidence": result.confidence,
        }

        def _upsert() -> None:
            self.supabase.table("framework_results").upsert(
                row, on_conflict="run_id,framework_id"
            ).execute()

        try:
            await asyncio.to_thread(_upsert)
        except Exception as e:
            logger.error(
                f"Failed to store framework result: {e}",
                extra={"run_id": run_id, "framework_id": framework_id},
            )
            raise

    async def list_framework_results(self, run_id: str) -> list[FrameworkResult]:
        def _select() -> list[dict[str, Any]]:
            response = (
                self.supabase.table("framework_results")
                .select("result_json")
                .eq("run_id", run_id)
                .execute()
            )
            return response.data or []

        rows = await asyncio.to_thread(_select)
        return [FrameworkResult.model_validate(row["result_json"]) for row in rows]

    async def count_framework_results(self, run_id: str) -> int:
        def _count() -> int:
            response = (
                self.supabase.table("framework_results")
                .select("id", count="exact")
                .eq("run_id", run_id)
                .execute()
            )
            return response.count or 0

        return await asyncio.to_thread(_count)


async def require_run(store: AnalysisStore, run_id: str) -> AnalysisRun:
    """Fetch a run or raise RunNotFoundError."""
    run = await store.get_run(run_id)
    if run is None:
        raise RunNotFoundError(f"Analysis run {run_id} not found", details={"run_id": run_id})
    return run
