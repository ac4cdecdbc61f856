"""Framework analysis chain.

Produces one FrameworkResult per (run, framework). Frameworks in generation
scope are analyzed by the run's backend with forced structured output; model
scores are tempered with the theme fit prior. Generation failures never escape
this module: they fail over to the alternate backend (auto preference only)
and finally to the seeded deterministic analysis, leaving a warning behind.

Usage:
    from decision_engine.chains.analyze_framework import FrameworkAnalyzer

    analyzer = FrameworkAnalyzer(resolver)
    result = await analyzer.analyze("swot_analysis", brief, themes, generator)
"""

from __future__ import annotations

import json

from decision_engine.core.config import Settings, get_settings
from decision_engine.core.exceptions import GENERATION_ERRORS, AnalysisError
from decision_engine.core.framework_heuristics import HeuristicContext, build_heuristic_parts
from decision_engine.core.framework_registry import get_framework_definition
from decision_engine.core.llm_backends import GenerationRequest
from decision_engine.core.logging import get_logger
from decision_engine.core.provider_resolver import ProviderResolver, ResolvedProvider
from decision_engine.core.schemas_analysis import (
    DecisionBrief,
    FrameworkAnalysisOutput,
    FrameworkDefinition,
    FrameworkResult,
    GenerationMetadata,
    ThemeVector,
)
from decision_engine.core.seeding import analysis_seed, clamp, round3, seeded_value
from decision_engine.core.theme_vector import blend_theme_vectors, normalize_theme_vector, theme_fit_score
from decision_engine.core.viz_builders import build_canonical_visualization, build_theme_fit_radar
from decision_engine.core.viz_rubric import repair_visualization

logger = get_logger(__name__)

MAX_WARNING_LENGTH = 800
ANALYSIS_TOOL_NAME = "submit_framework_analysis"
ANALYSIS_TEMPERATURE = 0.15
ANALYSIS_MAX_TOKENS = 1600

SYSTEM_PROMPT = "\n".join(
    [
        "You are a senior decision-analysis specialist.",
        "Given a framework definition and a decision brief, return strict JSON matching the schema.",
        "Keep outputs concise, specific, and execution-oriented.",
        "Scores must be in [0,1].",
        "Charts for deep frameworks are rebuilt in code; put your strongest effort into insights, actions and risks.",
        "Keep list sizes minimal to preserve reliability: insights=3, actions=3, risks=2, assumptions=2.",
        "Keep each sentence under 180 characters.",
    ]
)


def truncate_warning(text: str) -> str:
    if len(text) <= MAX_WARNING_LENGTH:
        return text
    return text[: MAX_WARNING_LENGTH - 3].rstrip() + "..."


def _reason(error: Exception) -> str:
    return error.message if isinstance(error, AnalysisError) else str(error)


def compact_brief_for_prompt(brief: DecisionBrief) -> dict:
    return {
        "title": brief.title,
        "decision_statement": brief.decision_statement,
        "context": brief.context[:1400],
        "alternatives": brief.alternatives[:6],
        "constraints": brief.constraints[:8],
        "deadline": brief.deadline,
        "stakeholders": brief.stakeholders[:8],
        "success_criteria": brief.success_criteria[:8],
        "risk_tolerance": brief.risk_tolerance,
        "budget": brief.budget,
        "time_limit": brief.time_limit,
        "assumptions": brief.assumptions[:6],
        "open_questions": brief.open_questions[:6],
        "execution_steps": brief.execution_steps[:8],
    }


def build_user_prompt(
    framework: FrameworkDefinition, brief: DecisionBrief, decision_themes: ThemeVector
) -> str:
    return "\n".join(
        [
            f"Framework: {framework.name} ({framework.id})",
            f"Framework category: {framework.category}",
            f"Framework description: {framework.description}",
            f"Framework instructions: {framework.prompt_template}",
            f"Framework deep supported: {str(framework.deep_supported).lower()}",
            f"Framework theme weights: {json.dumps(framework.theme_weights.model_dump())}",
            f"Decision themes: {json.dumps(decision_themes.model_dump())}",
            f"Decision brief compact: {json.dumps(compact_brief_for_prompt(brief))}",
            "Visualization data should include at most 6 points/items.",
            "Return JSON only.",
        ]
    )


# =============================================================================
# Deterministic path
# =============================================================================


def analyze_framework_simulation(
    framework_id: str,
    brief: DecisionBrief,
    decision_themes: ThemeVector,
    provider: str | None = None,
    model: str | None = None,
    warning: str | None = None,
) -> FrameworkResult:
    """
    Seeded deterministic analysis; identical inputs give identical results.

    Args:
        framework_id: Catalog id
        brief: Decision brief
        decision_themes: Theme vector inferred from the brief
        provider: Backend the run was resolved to, recorded for traceability
        model: Model the run was resolved to
        warning: Reason the deterministic path was taken, if it was a fallback

    Returns:
        FrameworkResult with generation mode ``fallback``
    """
    framework = get_framework_definition(framework_id)
    seed = analysis_seed(framework_id, brief.title, brief.decision_statement)
    fit_score = theme_fit_score(framework.theme_weights, decision_themes)

    parts = build_heuristic_parts(
        HeuristicContext(
            brief=brief,
            framework=framework,
            decision_themes=decision_themes,
            fit_score=fit_score,
            seed=seed,
        )
    )

    confidence = clamp(
        (0.68 if framework.deep_supported else 0.56)
        + fit_score * 0.22
        + seeded_value(seed, "confidence", -0.07, 0.07)
    )
    themes = parts.themes or blend_theme_vectors(framework.theme_weights, decision_themes, 0.5)

    return FrameworkResult(
        framework_id=framework_id,
        framework_name=framework.name,
        applicability_score=round3(fit_score),
        confidence=round3(confidence),
        insights=parts.insights,
        actions=parts.actions,
        risks=parts.risks,
        assumptions=parts.assumptions,
        themes=normalize_theme_vector(themes),
        viz_payload=parts.viz_payload,
        deep_supported=framework.deep_supported,
        generation=GenerationMetadata(
            mode="fallback",
            provider=provider or "simulation",
            model=model,
            warning=truncate_warning(warning) if warning else None,
        ),
    )


def enforce_visualization_integrity(
    result: FrameworkResult, brief: DecisionBrief, decision_themes: ThemeVector
) -> tuple[FrameworkResult, str | None]:
    """Validate a deep framework's chart and swap in the canonical one if it fails."""
    if not result.deep_supported:
        return result, None

    viz, warning = repair_visualization(
        result.framework_id, result.framework_name, result.viz_payload, brief, decision_themes
    )
    if warning is None:
        return result, None

    combined = f"{result.generation.warning} {warning}" if result.generation.warning else warning
    repaired = result.model_copy(
        update={
            "viz_payload": viz,
            "generation": result.generation.model_copy(
                update={"warning": truncate_warning(combined)}
            ),
        }
    )
    return repaired, warning


# =============================================================================
# Analyzer
# =============================================================================


class FrameworkAnalyzer:
    """Runs one framework through generation, failover and fallback."""

    def __init__(self, resolver: ProviderResolver, settings: Settings | None = None):
        self.resolver = resolver
        self.settings = settings or get_settings()

    def uses_generation(self, framework: FrameworkDefinition) -> bool:
        scope = self.settings.ANALYSIS_LLM_SCOPE
        if scope == "none":
            return False
        if scope == "all":
            return True
        return framework.deep_supported

    async def analyze(
        self,
        framework_id: str,
        brief: DecisionBrief,
        decision_themes: ThemeVector,
        generator: ResolvedProvider | None,
        preference: str = "auto",
    ) -> FrameworkResult:
        """
        Analyze one framework for a run.

        Generation errors are absorbed here; any other exception propagates.

        Args:
            framework_id: Catalog id
            brief: Decision brief
            decision_themes: Theme vector inferred from the brief
            generator: Backend resolved for the run, or None for deterministic mode
            preference: The run's provider preference; failover only applies to auto

        Returns:
            FrameworkResult; its generation.warning records any recovery or fallback
        """
        framework = get_framework_definition(framework_id)

        if generator is None or not self.uses_generation(framework):
            result = analyze_framework_simulation(framework_id, brief, decision_themes)
        else:
            result = await self._analyze_with_failover(
                framework, brief, decision_themes, generator, preference
            )

        result, _ = enforce_visualization_integrity(result, brief, decision_themes)
        return result

    async def _analyze_with_failover(
        self,
        framework: FrameworkDefinition,
        brief: DecisionBrief,
        decision_themes: ThemeVector,
        generator: ResolvedProvider,
        preference: str,
    ) -> FrameworkResult:
        try:
            return await self.analyze_with_generation(framework, brief, decision_themes, generator)
        except GENERATION_ERRORS as e:
            primary_reason = _reason(e)

        logger.warning(
            f"Generation failed on {generator.provider} for {framework.id}: {primary_reason}",
            extra={"framework_id": framework.id},
        )

        alternate_reason: str | None = None
        if preference == "auto":
            try:
                alternate = await self.resolver.resolve(
                    self.resolver.alternate_preference(generator.provider)
                )
                if alternate.provider != generator.provider:
                    recovered = await self.analyze_with_generation(
                        framework, brief, decision_themes, alternate
                    )
                    warning = (
                        f"{framework.name} ({framework.id}) recovered on {alternate.provider} "
                        f"after {generator.provider} failure: {primary_reason}"
                    )
                    logger.info(warning, extra={"framework_id": framework.id})
                    return recovered.model_copy(
                        update={
                            "generation": recovered.generation.model_copy(
                                update={"warning": truncate_warning(warning)}
                            )
                        }
                    )
            except GENERATION_ERRORS as e:
                alternate_reason = _reason(e)

        if alternate_reason:
            warning = (
                f"{framework.name} ({framework.id}) fell back to deterministic analysis after "
                f"{generator.provider} failure ({primary_reason}) and failover failure "
                f"({alternate_reason})."
            )
        else:
            warning = (
                f"{framework.name} ({framework.id}) fell back to deterministic analysis: "
                f"{primary_reason}"
            )

        return analyze_framework_simulation(
            framework.id,
            brief,
            decision_themes,
            provider=generator.provider,
            model=generator.model,
            warning=warning,
        )

    async def analyze_with_generation(
        self,
        framework: FrameworkDefinition,
        brief: DecisionBrief,
        decision_themes: ThemeVector,
        generator: ResolvedProvider,
    ) -> FrameworkResult:
        """Generation-backed analysis; raises generation errors to the caller."""
        request = GenerationRequest(
            system_prompt=SYSTEM_PROMPT,
            user_prompt=build_user_prompt(framework, brief, decision_themes),
            schema_name=ANALYSIS_TOOL_NAME,
            temperature=ANALYSIS_TEMPERATURE,
            max_tokens=ANALYSIS_MAX_TOKENS,
        )
        generated = await generator.backend.generate_structured(request, FrameworkAnalysisOutput)

        fit_score = theme_fit_score(framework.theme_weights, decision_themes)
        viz = build_canonical_visualization(framework.id, brief, decision_themes)
        if viz is None:
            viz = generated.viz_payload or build_theme_fit_radar(framework, decision_themes)

        return FrameworkResult(
            framework_id=framework.id,
            framework_name=framework.name,
            applicability_score=round3(clamp(generated.applicability_score * 0.8 + fit_score * 0.2)),
            confidence=round3(clamp(generated.confidence * 0.85 + fit_score * 0.15)),
            insights=generated.insights,
            actions=generated.actions,
            risks=generated.risks,
            assumptions=generated.assumptions,
            themes=normalize_theme_vector(generated.themes),
            viz_payload=viz,
            deep_supported=framework.deep_supported,
            generation=GenerationMetadata(
                mode="generated", provider=generator.provider, model=generator.model
            ),
        )
