"""Deterministic numeric helpers.

All pseudo-random values in the deterministic analysis path come from
``hash_to_unit``; the process-global ``random`` module is never used, so the
same inputs always produce the same outputs.
"""

import hashlib
import math

_UINT32_MAX = 0xFFFFFFFF


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    """Clamp to [lo, hi]; NaN collapses to ``lo``."""
    if math.isnan(value):
        return lo
    return min(hi, max(lo, value))


def round3(value: float) -> float:
    return round(value, 3)


def bounded(value: float) -> float:
    """Clamp to [0, 1] and round to 3 decimals."""
    return round3(clamp(value))


def hash_to_unit(seed: str, salt: str) -> float:
    """Map (seed, salt) to a float in [0, 1] via the first 32 bits of SHA-256."""
    digest = hashlib.sha256(f"{seed}:{salt}".encode("utf-8")).hexdigest()
    return int(digest[:8], 16) / _UINT32_MAX


def seeded_value(seed: str, salt: str, lo: float = 0.0, hi: float = 1.0) -> float:
    """Deterministic value in [lo, hi] for (seed, salt)."""
    return lo + hash_to_unit(seed, salt) * (hi - lo)


def analysis_seed(framework_id: str, title: str, decision_statement: str) -> str:
    return f"{framework_id}:{title}:{decision_statement}"
