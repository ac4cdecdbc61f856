"""Pydantic schemas for decision briefs, framework results and run read models."""

from __future__ import annotations

import math
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from decision_engine.core.schemas_viz import VisualizationSpec

RiskTolerance = Literal["low", "medium", "high"]
ProviderPreference = Literal["local", "hosted", "auto"]
ResolvedProviderName = Literal["local", "hosted"]
RunStatus = Literal["queued", "analyzing", "synthesizing", "complete", "failed"]
GenerationMode = Literal["generated", "fallback"]
RelationType = Literal["consensus", "conflict", "related"]
FrameworkMaturity = Literal["core", "exploratory"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"complete", "failed"})

THEME_AXES: tuple[str, ...] = (
    "risk",
    "urgency",
    "opportunity",
    "uncertainty",
    "resources",
    "stakeholder_impact",
)


# =============================================================================
# Theme vector
# =============================================================================


class ThemeVector(BaseModel):
    """Six-axis profile of a decision or of a framework's sensitivity.

    Every axis is clamped to [0, 1] and rounded to 3 decimals on construction,
    so an instance can never hold an out-of-range or partially defined axis.
    """

    model_config = ConfigDict(frozen=True)

    risk: float = Field(..., ge=0, le=1, description="Downside exposure")
    urgency: float = Field(..., ge=0, le=1, description="Time pressure")
    opportunity: float = Field(..., ge=0, le=1, description="Upside potential")
    uncertainty: float = Field(..., ge=0, le=1, description="Unknowns and estimates")
    resources: float = Field(..., ge=0, le=1, description="Budget and capacity pressure")
    stakeholder_impact: float = Field(..., ge=0, le=1, description="Breadth of affected parties")

    @field_validator(*THEME_AXES, mode="before")
    @classmethod
    def clamp_axis(cls, v: Any) -> float:
        try:
            value = float(v)
        except (TypeError, ValueError) as e:
            raise ValueError(f"axis must be numeric, got {v!r}") from e
        if math.isnan(value):
            return 0.0
        return round(min(1.0, max(0.0, value)), 3)

    def axis(self, name: str) -> float:
        return getattr(self, name)

    def as_tuple(self) -> tuple[float, ...]:
        return tuple(getattr(self, axis) for axis in THEME_AXES)


# =============================================================================
# Decision brief
# =============================================================================


class DecisionBrief(BaseModel):
    """Structured decision brief produced upstream by the refinement step."""

    title: str = Field(..., min_length=1, max_length=180)
    decision_statement: str = Field(..., min_length=10, max_length=5000)
    context: str = Field(..., min_length=10, max_length=5000)
    alternatives: list[str] = Field(default_factory=list, max_length=12)
    constraints: list[str] = Field(default_factory=list, max_length=20)
    deadline: str | None = Field(default=None, max_length=120)
    stakeholders: list[str] = Field(default_factory=list, max_length=30)
    success_criteria: list[str] = Field(default_factory=list, max_length=20)
    risk_tolerance: RiskTolerance = "medium"
    budget: str | None = Field(default=None, max_length=200)
    time_limit: str | None = Field(default=None, max_length=200)
    assumptions: list[str] = Field(default_factory=list, max_length=20)
    open_questions: list[str] = Field(default_factory=list, max_length=20)
    execution_steps: list[str] = Field(default_factory=list, max_length=30)

    @field_validator(
        "alternatives",
        "constraints",
        "stakeholders",
        "success_criteria",
        "assumptions",
        "open_questions",
        "execution_steps",
    )
    @classmethod
    def drop_blank_items(cls, v: list[str]) -> list[str]:
        return [item.strip() for item in v if item and item.strip()]

    @field_validator("deadline", "budget", "time_limit")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


# =============================================================================
# Framework catalog and results
# =============================================================================


class FrameworkDefinition(BaseModel):
    """Static catalog entry."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: str
    maturity: FrameworkMaturity
    description: str
    theme_weights: ThemeVector
    deep_supported: bool = False
    prompt_template: str = ""


class FrameworkFit(BaseModel):
    """One row of the fit ranking for a brief."""

    rank: int
    framework_id: str
    framework_name: str
    category: str
    deep_supported: bool
    fit_score: float


class GenerationMetadata(BaseModel):
    mode: GenerationMode
    provider: str | None = None
    model: str | None = None
    warning: str | None = Field(default=None, max_length=800)


class FrameworkResult(BaseModel):
    """Outcome of analyzing one framework within a run."""

    model_config = ConfigDict(frozen=True)

    framework_id: str
    framework_name: str
    applicability_score: float = Field(..., ge=0, le=1)
    confidence: float = Field(..., ge=0, le=1)
    insights: list[str] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    assumptions: list[str] = Field(default_factory=list)
    themes: ThemeVector
    viz_payload: VisualizationSpec
    deep_supported: bool
    generation: GenerationMetadata


class FrameworkAnalysisOutput(BaseModel):
    """Structured output requested from a generation backend."""

    applicability_score: float = Field(..., ge=0, le=1, description="How well the framework applies")
    confidence: float = Field(..., ge=0, le=1, description="Confidence in the analysis")
    insights: list[str] = Field(..., min_length=3, max_length=8)
    actions: list[str] = Field(..., min_length=3, max_length=8)
    risks: list[str] = Field(..., min_length=2, max_length=8)
    assumptions: list[str] = Field(..., min_length=2, max_length=8)
    themes: ThemeVector
    viz_payload: VisualizationSpec | None = Field(
        default=None, description="Optional chart payload; deep frameworks ignore it"
    )

    @field_validator("insights", "actions", "risks", "assumptions")
    @classmethod
    def non_empty_items(cls, v: list[str]) -> list[str]:
        cleaned = [item.strip() for item in v]
        if any(not item for item in cleaned):
            raise ValueError("list items must be non-empty strings")
        if any(len(item) > 400 for item in cleaned):
            raise ValueError("list items must be at most 400 characters")
        return cleaned


# =============================================================================
# Propagated map
# =============================================================================


class MapNode(BaseModel):
    id: str
    label: str
    category: str
    deep_supported: bool
    applicability_score: float
    confidence: float
    themes: ThemeVector


class MapEdge(BaseModel):
    source: str
    target: str
    relation_type: RelationType
    weight: float = Field(..., ge=0, le=1)
    rationale: str


class MapCluster(BaseModel):
    category: str
    framework_ids: list[str]


class PropagatedMap(BaseModel):
    nodes: list[MapNode] = Field(default_factory=list)
    edges: list[MapEdge] = Field(default_factory=list)
    clusters: list[MapCluster] = Field(default_factory=list)
    consensus: list[MapEdge] = Field(default_factory=list)
    conflicts: list[MapEdge] = Field(default_factory=list)


# =============================================================================
# Synthesis
# =============================================================================


class TopFramework(BaseModel):
    framework_id: str
    framework_name: str
    composite_score: float
    reason: str


class Contradiction(BaseModel):
    source_framework_id: str
    target_framework_id: str
    reason: str


class OptionScore(BaseModel):
    option: str
    score: float
    confidence: float
    rationale: str


class DecisionRecommendation(BaseModel):
    recommended_option: str
    confidence: float
    rationale: str
    tradeoffs: list[str]
    next_actions: list[str]
    option_scores: list[OptionScore]


class SynthesisSummary(BaseModel):
    top_frameworks: list[TopFramework]
    contradictions: list[Contradiction]
    recommended_actions: list[str]
    checkpoints: list[str]
    decision_recommendation: DecisionRecommendation
    warnings: list[str] = Field(default_factory=list)


# =============================================================================
# Runs
# =============================================================================


class AnalysisRun(BaseModel):
    """Run record as persisted by the store."""

    id: str
    decision_id: str
    framework_ids: list[str] = Field(default_factory=list)
    provider_preference: ProviderPreference = "auto"
    provider: str | None = None
    model: str | None = None
    status: RunStatus = "queued"
    error: str | None = None
    created_at: str | None = None
    started_at: str | None = None
    ended_at: str | None = None
    propagated_map: PropagatedMap | None = None
    synthesis: SynthesisSummary | None = None


class RunSnapshot(BaseModel):
    """Poll-friendly read model of a run."""

    run_id: str
    decision_id: str
    status: RunStatus
    provider: str | None = None
    model: str | None = None
    error: str | None = None
    started_at: str | None = None
    ended_at: str | None = None
    framework_count: int
    completed_framework_count: int


class RunResults(BaseModel):
    """Full results read model of a run."""

    run: RunSnapshot
    brief: DecisionBrief | None = None
    results: list[FrameworkResult] = Field(default_factory=list)
    propagated_map: PropagatedMap | None = None
    synthesis: SynthesisSummary | None = None


class CreateRunRequest(BaseModel):
    decision_id: str = Field(..., min_length=1, description="Decision whose latest brief is analyzed")
    framework_ids: list[str] | None = Field(
        default=None, description="Frameworks to analyze; defaults to the full catalog"
    )
    provider_preference: ProviderPreference = Field(
        default="auto", description="Generation backend preference"
    )
