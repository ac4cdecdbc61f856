"""Text and brief heuristics shared by the visualization builders and synthesis."""

import re

from decision_engine.core.schemas_analysis import DecisionBrief, ThemeVector
from decision_engine.core.seeding import clamp, round3

STOP_WORDS = frozenset(
    {
        "the", "and", "for", "with", "that", "this", "from", "into", "your", "their",
        "have", "will", "should", "could", "would", "about", "after", "before", "while",
        "under", "over", "across", "than", "then", "also", "each", "per", "via",
    }
)  # fmt: skip

DEADLINE_KEYWORDS = (
    "today", "tomorrow", "week", "month", "quarter", "q1", "q2", "q3", "q4", "year",
)  # fmt: skip

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


def tokenize(value: str) -> list[str]:
    return [
        token
        for token in _TOKEN_SPLIT.split(value.lower())
        if len(token) >= 3 and token not in STOP_WORDS
    ]


def token_overlap(left: str, right: str) -> float:
    """Share of the smaller token set that also appears in the other."""
    a = set(tokenize(left))
    b = set(tokenize(right))
    if not a or not b:
        return 0.0
    return clamp(len(a & b) / max(min(len(a), len(b)), 1))


def keyword_score(value: str, keywords: tuple[str, ...] | list[str]) -> float:
    source = value.lower()
    hits = sum(1 for keyword in keywords if keyword.lower() in source)
    return clamp(hits / max(len(keywords), 1))


def rank_weight(index: int, total: int) -> float:
    """1.0 for the first item, decaying linearly to 0.0 for the last."""
    if total <= 1:
        return 1.0
    return clamp(1 - index / max(total - 1, 1))


def deadline_pressure(brief: DecisionBrief) -> float:
    if not brief.deadline:
        return 0.45
    return clamp(0.55 + keyword_score(brief.deadline, DEADLINE_KEYWORDS) * 0.35)


def constraint_penalty(brief: DecisionBrief) -> float:
    return clamp(len(brief.constraints) / 12)


def resource_pressure(brief: DecisionBrief, themes: ThemeVector) -> float:
    budget_signal = 0.22 if brief.budget else 0.08
    time_signal = 0.2 if brief.time_limit else 0.1
    return clamp(0.42 * themes.resources + budget_signal + time_signal)


# Ordered (keywords, aggressiveness) policy; first match wins, else the default.
# Keyword matching is a replaceable heuristic, kept in one place so callers can
# swap it for a locale-aware classifier.
AGGRESSIVENESS_POLICY: list[tuple[tuple[str, ...], float]] = [
    (("full", "aggressive", "all-in", "commit"), 0.88),
    (("pilot", "phase", "incremental", "trial"), 0.45),
    (("conservative", "safe", "delay"), 0.28),
]
DEFAULT_AGGRESSIVENESS = 0.62


def aggressiveness(option: str, policy: list[tuple[tuple[str, ...], float]] | None = None) -> float:
    """Aggressiveness of an option label in [0, 1] by keyword policy."""
    normalized = option.lower()
    for keywords, score in policy or AGGRESSIVENESS_POLICY:
        if any(keyword in normalized for keyword in keywords):
            return score
    return DEFAULT_AGGRESSIVENESS


def dedupe(values: list[str]) -> list[str]:
    """Case-insensitive de-duplication preserving first occurrence order."""
    seen: set[str] = set()
    unique: list[str] = []
    for value in values:
        normalized = value.strip()
        if not normalized:
            continue
        key = normalized.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(normalized)
    return unique


def normalize_contributions(raw: list[tuple[str, float, str | None]]) -> list[dict]:
    """Normalize (label, value, detail) rows into descending contribution shares.

    Cumulative values are monotonic and the last one is forced to 1.0 so the
    Pareto line always closes at 100% despite per-row rounding.
    """
    safe = [(label, max(value, 0.0001), detail) for label, value, detail in raw]
    total = sum(value for _, value, _ in safe) or 1.0
    rows = sorted(
        ((label, value / total, detail) for label, value, detail in safe),
        key=lambda row: row[1],
        reverse=True,
    )

    factors = []
    cumulative = 0.0
    for index, (label, share, detail) in enumerate(rows):
        cumulative = clamp(cumulative + share)
        factors.append(
            {
                "label": label,
                "contribution": round3(share),
                "cumulative": 1.0 if index == len(rows) - 1 else round3(cumulative),
                "detail": detail,
            }
        )
    return factors
