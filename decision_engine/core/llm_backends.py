"""Generation backends for structured framework analysis.

Two interchangeable backends produce schema-conforming JSON: a hosted one
(Anthropic, forced tool_use) and a local one (Ollama, JSON-schema format).
Both make one primary attempt and, when the output fails validation, one
strict retry at temperature 0 that quotes the failure reason. Transport
failures are mapped onto the analysis error taxonomy so callers can fail over
without knowing which backend they talked to.
"""

from __future__ import annotations

import asyncio
import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

import httpx
from anthropic import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AsyncAnthropic,
)
from pydantic import BaseModel, ValidationError

from decision_engine.core.config import get_settings
from decision_engine.core.exceptions import (
    ModelOutputInvalidError,
    ModelTimeoutError,
    ProviderUnavailableError,
)
from decision_engine.core.llm import parse_llm_json_dict
from decision_engine.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

ANTHROPIC_MIN_TIMEOUT_SECONDS = 40.0
ANTHROPIC_RETRY_TIMEOUT_SECONDS = 45.0
ANTHROPIC_MS_PER_TOKEN = 50
OLLAMA_MS_PER_TOKEN = 45

_UNAVAILABLE_PATTERN = re.compile(r"auth|401|403|rate|quota|429", re.IGNORECASE)

OLLAMA_UNAVAILABLE_MESSAGE = "Ollama is unavailable. Start Ollama and ensure the model is pulled."


@dataclass
class GenerationRequest:
    """One structured generation call."""

    system_prompt: str
    user_prompt: str
    schema_name: str
    temperature: float = 0.2
    max_tokens: int = 1600


class GenerationBackend(Protocol):
    name: str
    model: str

    async def is_healthy(self) -> bool: ...

    async def generate_structured(self, request: GenerationRequest, output_model: type[T]) -> T: ...


def generation_timeout(max_tokens: int, ms_per_token: int, floor_seconds: float) -> float:
    """Per-call deadline scaled by token budget, bounded to [floor, configured max]."""
    settings = get_settings()
    return max(floor_seconds, min(settings.LLM_MAX_TIMEOUT_SECONDS, max_tokens * ms_per_token / 1000))


def _failure_reason(error: Exception) -> str:
    if isinstance(error, ValidationError):
        first = error.errors()[0] if error.error_count() else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        return f"{error.error_count()} validation error(s); first at {location or 'root'}: {first.get('msg', '')}"[:300]
    return str(error)[:300]


def _strict_retry_prompt(user_prompt: str, reason: str) -> str:
    return (
        f"{user_prompt}\n\n"
        "Previous output failed structured parsing.\n"
        f"Failure reason: {reason}\n"
        "Retry now and return only JSON that matches the schema exactly."
    )


class _StructuredBackend(ABC):
    """Primary attempt plus one strict retry, shared by both backends."""

    name = ""
    model = ""
    strict_system_prompt = ""

    @abstractmethod
    async def _complete(
        self,
        request: GenerationRequest,
        schema: dict[str, Any],
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        timeout: float,
    ) -> dict[str, Any]:
        """One raw completion, parsed to a dict; transport failures mapped to the taxonomy."""

    @abstractmethod
    def _primary_timeout(self, max_tokens: int) -> float:
        """Deadline for the first attempt."""

    def _retry_timeout(self, max_tokens: int) -> float:
        return self._primary_timeout(max_tokens)

    async def generate_structured(self, request: GenerationRequest, output_model: type[T]) -> T:
        """
        Generate output validated against ``output_model``.

        Raises:
            ModelOutputInvalidError: Output failed validation on both attempts
            ModelTimeoutError: An attempt exceeded its deadline
            ProviderUnavailableError: Backend refused or could not be reached
        """
        schema = output_model.model_json_schema()

        try:
            raw = await self._complete(
                request,
                schema,
                request.system_prompt,
                request.user_prompt,
                request.temperature,
                self._primary_timeout(request.max_tokens),
            )
            return output_model.model_validate(raw)
        except (ValidationError, json.JSONDecodeError) as e:
            first_reason = _failure_reason(e)

        logger.warning(
            f"{self.name} output failed validation, retrying strictly: {first_reason}",
            extra={"provider": self.name, "model": self.model},
        )

        try:
            raw = await self._complete(
                request,
                schema,
                self.strict_system_prompt,
                _strict_retry_prompt(request.user_prompt, first_reason),
                0.0,
                self._retry_timeout(request.max_tokens),
            )
            return output_model.model_validate(raw)
        except (ValidationError, json.JSONDecodeError) as e:
            reason = _failure_reason(e)
            raise ModelOutputInvalidError(
                f"{self.name} output failed schema validation after strict retry: {reason}",
                details={
                    "provider": self.name,
                    "model": self.model,
                    "reason": reason,
                    "first_failure_reason": first_reason,
                },
            ) from e


# =============================================================================
# Hosted backend (Anthropic)
# =============================================================================


class AnthropicBackend(_StructuredBackend):
    """Hosted backend; structured output through a forced tool call."""

    name = "hosted"
    strict_system_prompt = (
        "You are a strict structured-output engine. "
        "Call the provided tool exactly once with input that satisfies its schema. "
        "Return valid JSON only."
    )

    def __init__(self, api_key: str | None, model: str, client: AsyncAnthropic | None = None):
        self.api_key = api_key
        self.model = model
        self._client = client

    @property
    def client(self) -> AsyncAnthropic:
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def is_healthy(self) -> bool:
        return bool(self.api_key)

    def _primary_timeout(self, max_tokens: int) -> float:
        return generation_timeout(max_tokens, ANTHROPIC_MS_PER_TOKEN, ANTHROPIC_MIN_TIMEOUT_SECONDS)

    def _retry_timeout(self, max_tokens: int) -> float:
        return ANTHROPIC_RETRY_TIMEOUT_SECONDS

    async def _complete(
        self,
        request: GenerationRequest,
        schema: dict[str, Any],
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        timeout: float,
    ) -> dict[str, Any]:
        if not self.api_key:
            raise ProviderUnavailableError(
                "Hosted provider is not configured (missing ANTHROPIC_API_KEY)",
                details={"provider": self.name},
            )

        tool = {
            "name": request.schema_name,
            "description": "Submit the structured analysis.",
            "input_schema": schema,
        }

        try:
            response = await asyncio.wait_for(
                self.client.messages.create(
                    model=self.model,
                    max_tokens=request.max_tokens,
                    system=f"{system_prompt}\nReturn valid JSON only.",
                    messages=[{"role": "user", "content": user_prompt}],
                    temperature=temperature,
                    tools=[tool],
                    tool_choice={"type": "tool", "name": request.schema_name},
                ),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, APITimeoutError) as e:
            raise ModelTimeoutError(
                f"Hosted generation timed out after {timeout:.0f}s",
                details={"provider": self.name, "model": self.model, "timeout_seconds": timeout},
            ) from e
        except APIConnectionError as e:
            raise ProviderUnavailableError(
                f"Hosted provider unreachable: {e}", details={"provider": self.name}
            ) from e
        except APIStatusError as e:
            refused = e.status_code in (401, 403, 429) or bool(_UNAVAILABLE_PATTERN.search(str(e)))
            verb = "refused" if refused else "failed"
            raise ProviderUnavailableError(
                f"Hosted provider {verb} the request: {e}",
                details={"provider": self.name, "status_code": e.status_code, "refused": refused},
            ) from e
        except APIError as e:
            raise ProviderUnavailableError(
                f"Hosted provider returned an unusable response: {e}",
                details={"provider": self.name, "reason": type(e).__name__},
            ) from e

        for block in response.content:
            if block.type == "tool_use":
                return block.input

        # No tool_use block; fall back to any JSON in the text
        for block in response.content:
            if hasattr(block, "text"):
                return parse_llm_json_dict(block.text)
        raise json.JSONDecodeError("No tool_use or text block in response", "", 0)


# =============================================================================
# Local backend (Ollama)
# =============================================================================


class OllamaBackend(_StructuredBackend):
    """Local backend; structured output through Ollama's JSON-schema format."""

    name = "local"
    strict_system_prompt = "You are a strict JSON generator."

    def __init__(self, base_url: str, model: str, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=self._transport)

    async def is_healthy(self) -> bool:
        """True when the server answers and has at least one model pulled."""
        settings = get_settings()
        try:
            async with self._client(settings.LLM_HEALTH_TIMEOUT_SECONDS) as client:
                resp = await client.get("/api/tags")
                resp.raise_for_status()
                models = resp.json().get("models") or []
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Ollama health probe failed: {e}")
            return False
        return len(models) > 0

    def _primary_timeout(self, max_tokens: int) -> float:
        settings = get_settings()
        return generation_timeout(max_tokens, OLLAMA_MS_PER_TOKEN, settings.LLM_MIN_TIMEOUT_SECONDS)

    async def _complete(
        self,
        request: GenerationRequest,
        schema: dict[str, Any],
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        timeout: float,
    ) -> dict[str, Any]:
        system = (
            f"{system_prompt}\n"
            "Return ONLY valid JSON with no markdown or commentary.\n"
            "Follow this JSON Schema exactly:\n"
            f"{json.dumps(schema)}"
        )
        payload = {
            "model": self.model,
            "stream": False,
            "format": schema,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user_prompt},
            ],
            "options": {"temperature": temperature, "num_predict": request.max_tokens},
        }

        try:
            async with self._client(timeout) as client:
                resp = await asyncio.wait_for(client.post("/api/chat", json=payload), timeout=timeout)
                resp.raise_for_status()
        except (asyncio.TimeoutError, httpx.ReadTimeout, httpx.WriteTimeout, httpx.PoolTimeout) as e:
            raise ModelTimeoutError(
                f"Local generation timed out after {timeout:.0f}s",
                details={"provider": self.name, "model": self.model, "timeout_seconds": timeout},
            ) from e
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            raise ProviderUnavailableError(
                OLLAMA_UNAVAILABLE_MESSAGE, details={"provider": self.name, "reason": str(e)}
            ) from e
        except httpx.HTTPStatusError as e:
            raise ProviderUnavailableError(
                OLLAMA_UNAVAILABLE_MESSAGE,
                details={"provider": self.name, "status_code": e.response.status_code},
            ) from e
        except httpx.TransportError as e:
            raise ProviderUnavailableError(
                f"Local provider connection failed: {type(e).__name__}",
                details={"provider": self.name, "reason": str(e)},
            ) from e

        body = resp.json()
        message = body.get("message") if isinstance(body, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        return parse_llm_json_dict(content or "")
