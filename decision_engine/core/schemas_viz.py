"""Visualization payload schemas.

Deep frameworks carry one variant of a closed tagged union (discriminated on
``kind``, which equals the framework id). Every other framework carries a free
form payload, usually a radar chart of theme fit.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

VIZ_SCHEMA_VERSION = 2

VizType = Literal[
    "quadrant",
    "swot",
    "scatter",
    "line",
    "bar",
    "histogram",
    "timeline",
    "tree",
    "network",
    "radar",
    "list",
]

Unit = Annotated[float, Field(ge=0, le=1)]
Label = Annotated[str, Field(min_length=1)]
EisenhowerQuadrant = Literal["do", "schedule", "delegate", "eliminate"]
BcgQuadrant = Literal["question_marks", "stars", "dogs", "cash_cows"]


class _StrictPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")


class VisualizationSpec(BaseModel):
    """Chart payload attached to a framework result."""

    type: VizType
    title: str = Field(..., min_length=1)
    subtitle: str | None = None
    x_label: str | None = None
    y_label: str | None = None
    viz_schema_version: int | None = None
    data: Any = None


# =============================================================================
# Eisenhower
# =============================================================================


class EisenhowerQuadrantSummary(_StrictPayload):
    id: EisenhowerQuadrant
    label: Label
    count: int = Field(..., ge=0)
    items: list[Label]


class EisenhowerPoint(_StrictPayload):
    label: Label
    urgency: Unit
    importance: Unit
    quadrant: EisenhowerQuadrant


class EisenhowerVizData(_StrictPayload):
    kind: Literal["eisenhower_matrix"] = "eisenhower_matrix"
    quadrants: list[EisenhowerQuadrantSummary] = Field(..., min_length=4, max_length=4)
    points: list[EisenhowerPoint]


# =============================================================================
# SWOT
# =============================================================================


class SwotVizData(_StrictPayload):
    kind: Literal["swot_analysis"] = "swot_analysis"
    strengths: list[Label] = Field(..., min_length=1)
    weaknesses: list[Label] = Field(..., min_length=1)
    opportunities: list[Label] = Field(..., min_length=1)
    threats: list[Label] = Field(..., min_length=1)


# =============================================================================
# 2x2 portfolio matrices
# =============================================================================


class QuadrantLabels(_StrictPayload):
    top_left: Label
    top_right: Label
    bottom_left: Label
    bottom_right: Label


class BcgPoint(_StrictPayload):
    id: Label
    label: Label
    share: Unit
    growth: Unit
    size: float = Field(..., gt=0)
    quadrant: BcgQuadrant


class BcgVizData(_StrictPayload):
    kind: Literal["bcg_matrix"] = "bcg_matrix"
    quadrants: QuadrantLabels
    points: list[BcgPoint]


class PortfolioPoint(_StrictPayload):
    id: Label
    label: Label
    risk: Unit
    value: Unit
    probability: Unit
    size: float = Field(..., gt=0)
    quadrant: Label


class ProjectPortfolioVizData(_StrictPayload):
    kind: Literal["project_portfolio_matrix"] = "project_portfolio_matrix"
    quadrants: QuadrantLabels
    points: list[PortfolioPoint]


# =============================================================================
# Pareto / hype / chasm
# =============================================================================


class ParetoFactor(_StrictPayload):
    label: Label
    contribution: Unit
    cumulative: Unit
    detail: Label | None = None


class ParetoVizData(_StrictPayload):
    kind: Literal["pareto_principle"] = "pareto_principle"
    factors: list[ParetoFactor] = Field(..., min_length=1)
    threshold: Unit


class HypePhasePoint(_StrictPayload):
    phase: Label
    x: Unit
    y: Unit


class HypeCurrentPoint(_StrictPayload):
    label: Label
    x: Unit
    y: Unit
    phase: Label


class HypeCycleVizData(_StrictPayload):
    kind: Literal["hype_cycle"] = "hype_cycle"
    phases: list[HypePhasePoint] = Field(..., min_length=5)
    current: HypeCurrentPoint


class ChasmSegment(_StrictPayload):
    segment: Label
    adoption: Unit


class ChasmVizData(_StrictPayload):
    kind: Literal["chasm_diffusion_model"] = "chasm_diffusion_model"
    segments: list[ChasmSegment] = Field(..., min_length=5)
    chasm_after: Label
    gap: Unit


# =============================================================================
# Monte Carlo / consequences
# =============================================================================


class HistogramBin(_StrictPayload):
    bin_start: Unit
    bin_end: Unit
    count: int = Field(..., ge=0)


class SimulationMetadata(_StrictPayload):
    trials: int = Field(..., gt=0)
    distribution: Label
    correlation_mode: Label


class MonteCarloVizData(_StrictPayload):
    kind: Literal["monte_carlo_simulation"] = "monte_carlo_simulation"
    bins: list[HistogramBin] = Field(..., min_length=6)
    total: int = Field(..., gt=0)
    p10: Unit
    p50: Unit
    p90: Unit
    metadata: SimulationMetadata | None = None


class ConsequenceHorizon(_StrictPayload):
    horizon: Label
    direct: Unit
    indirect: Unit
    third_order: Unit | None = None
    net: float = Field(..., ge=-1, le=1)


class ConsequenceLink(_StrictPayload):
    source: Label
    target: Label
    weight: Unit


class ConsequencesVizData(_StrictPayload):
    kind: Literal["consequences_model"] = "consequences_model"
    horizons: list[ConsequenceHorizon] = Field(..., min_length=4)
    links: list[ConsequenceLink]


# =============================================================================
# Crossroads / conflict / double loop
# =============================================================================


class CrossroadsOption(_StrictPayload):
    option: Label
    feasibility: Unit
    desirability: Unit
    reversibility: Unit
    size: float = Field(..., gt=0)
    note: Label


class CrossroadsVizData(_StrictPayload):
    kind: Literal["crossroads_model"] = "crossroads_model"
    options: list[CrossroadsOption] = Field(..., min_length=2)


class ConflictMode(_StrictPayload):
    mode: Label
    assertiveness: Unit
    cooperativeness: Unit
    suitability: Unit


class ConflictResolutionVizData(_StrictPayload):
    kind: Literal["conflict_resolution_model"] = "conflict_resolution_model"
    modes: list[ConflictMode] = Field(..., min_length=5, max_length=5)
    recommended_mode: Label


class LearningLoop(_StrictPayload):
    behavior: Label
    outcome: Label
    single_loop_fix: Label
    root_assumption: Label
    leverage: Unit


class DoubleLoopVizData(_StrictPayload):
    kind: Literal["double_loop_learning"] = "double_loop_learning"
    loops: list[LearningLoop] = Field(..., min_length=1)


DeepVizData = Annotated[
    Union[
        EisenhowerVizData,
        SwotVizData,
        BcgVizData,
        ProjectPortfolioVizData,
        ParetoVizData,
        HypeCycleVizData,
        ChasmVizData,
        MonteCarloVizData,
        ConsequencesVizData,
        CrossroadsVizData,
        ConflictResolutionVizData,
        DoubleLoopVizData,
    ],
    Field(discriminator="kind"),
]

DEEP_VIZ_ADAPTER: TypeAdapter[Any] = TypeAdapter(DeepVizData)

# Expected chart type per deep framework
DEEP_VIZ_TYPES: dict[str, str] = {
    "eisenhower_matrix": "quadrant",
    "swot_analysis": "swot",
    "bcg_matrix": "scatter",
    "project_portfolio_matrix": "scatter",
    "pareto_principle": "bar",
    "hype_cycle": "line",
    "chasm_diffusion_model": "bar",
    "monte_carlo_simulation": "histogram",
    "consequences_model": "timeline",
    "crossroads_model": "scatter",
    "conflict_resolution_model": "scatter",
    "double_loop_learning": "list",
}
