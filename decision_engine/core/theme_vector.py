"""Theme vector inference and arithmetic.

A decision brief is profiled on six axes (risk, urgency, opportunity,
uncertainty, resources, stakeholder impact). Each axis starts from a base
constant, gains a fixed boost when axis keywords appear anywhere in the
statement or context, and gains structural boosts from the brief's shape
(deadline, budget, list lengths). Every axis is clamped and rounded
independently.
"""

import math

from decision_engine.core.schemas_analysis import THEME_AXES, DecisionBrief, ThemeVector
from decision_engine.core.seeding import clamp, round3

KEYWORD_BOOST = 0.15

THEME_KEYWORDS: dict[str, tuple[str, ...]] = {
    "urgency": ("urgent", "deadline", "asap", "immediately", "launch"),
    "risk": ("risk", "failure", "compliance", "legal", "security", "loss"),
    "opportunity": ("growth", "expand", "market", "innovation", "upside"),
    "uncertainty": ("unknown", "uncertain", "estimate", "assume", "hypothesis"),
    "resources": ("budget", "cost", "capacity", "headcount", "resource"),
    "stakeholder_impact": ("stakeholder", "team", "customer", "partner", "board"),
}

RISK_TOLERANCE_BOOST = {"low": 0.2, "medium": 0.08, "high": -0.08}


def _keyword_boost(text: str, axis: str) -> float:
    return KEYWORD_BOOST if any(word in text for word in THEME_KEYWORDS[axis]) else 0.0


def infer_decision_theme_vector(brief: DecisionBrief) -> ThemeVector:
    """Profile a decision brief on the six theme axes."""
    text = f"{brief.decision_statement} {brief.context}".lower()

    risk = (
        0.35
        + _keyword_boost(text, "risk")
        + RISK_TOLERANCE_BOOST[brief.risk_tolerance]
        + 0.01 * len(brief.assumptions)
    )
    urgency = (
        0.32
        + (0.2 if brief.deadline else 0.0)
        + _keyword_boost(text, "urgency")
        + 0.02 * min(len(brief.execution_steps), 10)
    )
    opportunity = (
        0.42 + _keyword_boost(text, "opportunity") + 0.02 * min(len(brief.success_criteria), 10)
    )
    uncertainty = (
        0.35 + _keyword_boost(text, "uncertainty") + 0.03 * min(len(brief.open_questions), 10)
    )
    resources = (
        0.35
        + (0.15 if brief.budget else 0.05)
        + (0.1 if brief.time_limit else 0.04)
        + _keyword_boost(text, "resources")
    )
    stakeholder_impact = (
        0.35
        + 0.04 * min(len(brief.stakeholders), 10)
        + _keyword_boost(text, "stakeholder_impact")
    )

    return ThemeVector(
        risk=risk,
        urgency=urgency,
        opportunity=opportunity,
        uncertainty=uncertainty,
        resources=resources,
        stakeholder_impact=stakeholder_impact,
    )


def normalize_theme_vector(values: ThemeVector | dict[str, float]) -> ThemeVector:
    if isinstance(values, ThemeVector):
        values = values.model_dump()
    return ThemeVector(**{axis: round3(clamp(float(values[axis]))) for axis in THEME_AXES})


def blend_theme_vectors(base: ThemeVector, modifier: ThemeVector, weight: float = 0.5) -> ThemeVector:
    """Weighted linear interpolation ``base * (1 - weight) + modifier * weight``.

    At weight 0.5 the operands of each axis are ordered before averaging, so
    ``blend(a, b) == blend(b, a)`` exactly, not just up to float rounding.
    """
    w = clamp(weight)
    blended: dict[str, float] = {}
    for axis in THEME_AXES:
        a = base.axis(axis)
        b = modifier.axis(axis)
        if w == 0.5:
            lo, hi = sorted((a, b))
            blended[axis] = lo + (hi - lo) * 0.5
        else:
            blended[axis] = a * (1 - w) + b * w
    return normalize_theme_vector(blended)


def average_theme_vectors(vectors: list[ThemeVector]) -> ThemeVector:
    """Axis-wise mean; neutral 0.5 profile for an empty list."""
    if not vectors:
        return ThemeVector(**{axis: 0.5 for axis in THEME_AXES})
    return ThemeVector(
        **{axis: sum(v.axis(axis) for v in vectors) / len(vectors) for axis in THEME_AXES}
    )


def cosine_similarity(a: ThemeVector, b: ThemeVector) -> float:
    """Cosine similarity over the six axes; 0 when either vector is all zeros."""
    va = a.as_tuple()
    vb = b.as_tuple()
    dot = sum(x * y for x, y in zip(va, vb))
    mag_a = math.sqrt(sum(x * x for x in va))
    mag_b = math.sqrt(sum(y * y for y in vb))
    if mag_a == 0 or mag_b == 0:
        return 0.0
    return clamp(dot / (mag_a * mag_b))


def dominant_theme(themes: ThemeVector) -> str:
    """Axis with the highest value; ties resolve to the earliest axis."""
    best = THEME_AXES[0]
    for axis in THEME_AXES[1:]:
        if themes.axis(axis) > themes.axis(best):
            best = axis
    return best


def theme_fit_score(weights: ThemeVector, decision_themes: ThemeVector) -> float:
    """Weighted average of decision axes, weighted by the framework's sensitivities."""
    weighted = 0.0
    total = 0.0
    for axis in THEME_AXES:
        w = weights.axis(axis)
        weighted += w * decision_themes.axis(axis)
        total += w
    return clamp(weighted / max(total, 1e-6))
