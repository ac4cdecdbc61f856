"""Tests for provider resolution."""

import pytest

from decision_engine.core.config import Settings
from decision_engine.core.exceptions import ProviderUnavailableError
from decision_engine.core.llm_backends import AnthropicBackend, OllamaBackend
from decision_engine.core.provider_resolver import ProviderResolver
from tests.fakes.fake_backend import ScriptedBackend


def _resolver(local_healthy=True, hosted_healthy=True, priority="local_first"):
    return ProviderResolver(
        local=ScriptedBackend(name="local", model="llama-test", healthy=local_healthy),
        hosted=ScriptedBackend(name="hosted", model="claude-test", healthy=hosted_healthy),
        auto_priority=priority,
    )


class TestResolve:
    @pytest.mark.asyncio
    async def test_explicit_preference(self):
        resolved = await _resolver().resolve("hosted")

        assert resolved.provider == "hosted"
        assert resolved.model == "claude-test"

    @pytest.mark.asyncio
    async def test_explicit_preference_unhealthy_never_substitutes(self):
        with pytest.raises(ProviderUnavailableError) as exc_info:
            await _resolver(local_healthy=False).resolve("local")

        assert exc_info.value.message.startswith("Local provider requested, but Ollama is unavailable.")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_hosted_unavailable_message(self):
        with pytest.raises(ProviderUnavailableError) as exc_info:
            await _resolver(hosted_healthy=False).resolve("hosted")

        assert exc_info.value.message == (
            "Hosted provider requested, but Anthropic is unavailable. "
            "Check API key and model configuration."
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "priority,local_healthy,hosted_healthy,expected",
        [
            ("local_first", True, True, "local"),
            ("hosted_first", True, True, "hosted"),
            ("local_first", False, True, "hosted"),
            ("hosted_first", True, False, "local"),
        ],
    )
    async def test_auto_follows_priority_and_health(
        self, priority, local_healthy, hosted_healthy, expected
    ):
        resolver = _resolver(local_healthy, hosted_healthy, priority)

        resolved = await resolver.resolve("auto")

        assert resolved.provider == expected

    @pytest.mark.asyncio
    async def test_auto_with_nothing_healthy(self):
        with pytest.raises(ProviderUnavailableError) as exc_info:
            await _resolver(False, False).resolve("auto")

        assert exc_info.value.message == (
            "No healthy generation provider available (attempted local (llama-test) and "
            "hosted (claude-test)). Configure ANTHROPIC_API_KEY or run Ollama locally."
        )
        assert exc_info.value.details["attempted"] == ["local", "hosted"]


class TestResolverHelpers:
    def test_backend_for_unknown_provider(self):
        with pytest.raises(ProviderUnavailableError):
            _resolver().backend_for("mainframe")

    def test_alternate_preference(self):
        assert ProviderResolver.alternate_preference("local") == "hosted"
        assert ProviderResolver.alternate_preference("hosted") == "local"

    def test_from_settings_builds_real_backends(self):
        settings = Settings(
            ANTHROPIC_API_KEY="sk-test",
            ANTHROPIC_MODEL="claude-test",
            OLLAMA_MODEL="llama-test",
            LLM_AUTO_PRIORITY="hosted_first",
        )

        resolver = ProviderResolver.from_settings(settings)

        assert isinstance(resolver.backends["hosted"], AnthropicBackend)
        assert isinstance(resolver.backends["local"], OllamaBackend)
        assert resolver.auto_order == ("hosted", "local")
        assert resolver.backend_for("local").model == "llama-test"
