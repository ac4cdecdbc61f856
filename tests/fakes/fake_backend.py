"""Scripted generation backend that records call concurrency."""

import asyncio
from typing import Any

from decision_engine.core.llm_backends import GenerationRequest

DEFAULT_OUTPUT: dict[str, Any] = {
    "applicability_score": 0.74,
    "confidence": 0.7,
    "insights": [
        "Demand signals are strongest in mid-market teams.",
        "Onboarding friction is the main conversion risk.",
        "Pricing clarity drives early adoption.",
    ],
    "actions": [
        "Run a two-customer pilot before committing the full budget.",
        "Instrument onboarding drop-off from day one.",
        "Set a go/no-go review at the 60 day mark.",
    ],
    "risks": [
        "Platform team capacity may slip enterprise commitments.",
        "Self-serve pricing may cannibalize sales-led deals.",
    ],
    "assumptions": [
        "Buyers convert without sales calls.",
        "Support load stays within current staffing.",
    ],
    "themes": {
        "risk": 0.55,
        "urgency": 0.6,
        "opportunity": 0.72,
        "uncertainty": 0.5,
        "resources": 0.58,
        "stakeholder_impact": 0.62,
    },
}


class ScriptedBackend:
    """GenerationBackend test double.

    Returns ``output`` (validated into the requested model) after ``delay``
    seconds, or raises ``error`` when set. Tracks the peak number of calls in
    flight at once.
    """

    def __init__(
        self,
        name: str = "hosted",
        model: str = "scripted-model",
        healthy: bool = True,
        output: dict[str, Any] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ):
        self.name = name
        self.model = model
        self.healthy = healthy
        self.output = output or DEFAULT_OUTPUT
        self.error = error
        self.delay = delay
        self.calls: list[GenerationRequest] = []
        self.in_flight = 0
        self.peak_in_flight = 0

    async def is_healthy(self) -> bool:
        return self.healthy

    async def generate_structured(self, request: GenerationRequest, output_model):
        self.calls.append(request)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if self.error is not None:
                raise self.error
            return output_model.model_validate(self.output)
        finally:
            self.in_flight -= 1
