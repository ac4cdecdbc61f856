"""Configuration management for the Decision Engine."""

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass

# Hard ceiling on per-run worker count, regardless of configuration
MAX_ANALYSIS_CONCURRENCY = 16


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # Environment
    ENGINE_ENV: str = Field(default="dev", description="Environment: dev, test, prod")

    # Hosted generation backend (Anthropic)
    ANTHROPIC_API_KEY: str | None = Field(default=None, description="Anthropic API key")
    ANTHROPIC_MODEL: str = Field(
        default="claude-sonnet-4-5", description="Anthropic model for deep framework analysis"
    )

    # Local generation backend (Ollama)
    OLLAMA_BASE_URL: str = Field(
        default="http://localhost:11434", description="Base URL of the local Ollama server"
    )
    OLLAMA_MODEL: str = Field(default="llama3.2", description="Ollama model name")

    # Provider resolution
    LLM_AUTO_PRIORITY: Literal["local_first", "hosted_first"] = Field(
        default="local_first", description="Probe order used when the preference is auto"
    )
    LLM_HEALTH_TIMEOUT_SECONDS: float = Field(
        default=3.5, description="Timeout for backend health probes"
    )
    LLM_MIN_TIMEOUT_SECONDS: float = Field(
        default=30.0, description="Lower bound for a single generation call"
    )
    LLM_MAX_TIMEOUT_SECONDS: float = Field(
        default=90.0, description="Upper bound for a single generation call"
    )

    # Analysis run configuration
    ANALYSIS_MAX_CONCURRENCY: int = Field(
        default=4,
        ge=1,
        le=MAX_ANALYSIS_CONCURRENCY,
        description="Concurrent framework workers per run",
    )
    ANALYSIS_LLM_SCOPE: Literal["deep_only", "all", "none"] = Field(
        default="deep_only",
        description="Which frameworks use the generation backend (none forces deterministic mode)",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance loaded from environment
    """
    return Settings()
