"""Select a healthy generation backend for a provider preference."""

from __future__ import annotations

from dataclasses import dataclass

from decision_engine.core.config import Settings, get_settings
from decision_engine.core.exceptions import ProviderUnavailableError
from decision_engine.core.llm_backends import (
    OLLAMA_UNAVAILABLE_MESSAGE,
    AnthropicBackend,
    GenerationBackend,
    OllamaBackend,
)
from decision_engine.core.logging import get_logger
from decision_engine.core.schemas_analysis import ResolvedProviderName

logger = get_logger(__name__)


@dataclass
class ResolvedProvider:
    """A concrete backend chosen for a run."""

    provider: ResolvedProviderName
    model: str
    backend: GenerationBackend


class ProviderResolver:
    """Resolves local/hosted/auto preferences onto the configured backends."""

    def __init__(
        self,
        local: GenerationBackend,
        hosted: GenerationBackend,
        auto_priority: str = "local_first",
    ):
        self.backends: dict[str, GenerationBackend] = {"local": local, "hosted": hosted}
        self.auto_priority = auto_priority

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ProviderResolver:
        settings = settings or get_settings()
        return cls(
            local=OllamaBackend(settings.OLLAMA_BASE_URL, settings.OLLAMA_MODEL),
            hosted=AnthropicBackend(settings.ANTHROPIC_API_KEY, settings.ANTHROPIC_MODEL),
            auto_priority=settings.LLM_AUTO_PRIORITY,
        )

    @property
    def auto_order(self) -> tuple[str, str]:
        return ("hosted", "local") if self.auto_priority == "hosted_first" else ("local", "hosted")

    def backend_for(self, provider: str) -> ResolvedProvider:
        """Resolved provider for a concrete backend name, without a health check."""
        backend = self.backends.get(provider)
        if backend is None:
            raise ProviderUnavailableError(
                f"Unknown provider: {provider}", details={"provider": provider}
            )
        return ResolvedProvider(provider=provider, model=backend.model, backend=backend)

    @staticmethod
    def alternate_preference(provider: str) -> str:
        return "hosted" if provider == "local" else "local"

    async def resolve(self, preference: str) -> ResolvedProvider:
        """
        Resolve a preference onto a healthy backend.

        Args:
            preference: local, hosted or auto

        Returns:
            ResolvedProvider for the first healthy backend

        Raises:
            ProviderUnavailableError: No healthy backend for the preference
        """
        if preference in ("local", "hosted"):
            resolved = self.backend_for(preference)
            if await resolved.backend.is_healthy():
                return resolved
            raise ProviderUnavailableError(
                self._unavailable_message(preference),
                details={
                    "preference": preference,
                    "provider": preference,
                    "model": resolved.model,
                },
            )

        attempted = []
        for provider in self.auto_order:
            resolved = self.backend_for(provider)
            attempted.append(f"{provider} ({resolved.model})")
            if await resolved.backend.is_healthy():
                logger.info(f"Auto preference resolved to {provider} ({resolved.model})")
                return resolved

        raise ProviderUnavailableError(
            f"No healthy generation provider available (attempted {' and '.join(attempted)}). "
            "Configure ANTHROPIC_API_KEY or run Ollama locally.",
            details={"preference": preference, "attempted": list(self.auto_order)},
        )

    @staticmethod
    def _unavailable_message(provider: str) -> str:
        if provider == "local":
            return f"Local provider requested, but {OLLAMA_UNAVAILABLE_MESSAGE}"
        return (
            "Hosted provider requested, but Anthropic is unavailable. "
            "Check API key and model configuration."
        )
