"""
Application settings with Pydantic validation.
Supports .env file and environment variable overrides.

Supported LLM providers:
    - anthropic  (Claude)
    - google     (Gemini)
    - openai     (GPT)
    - ollama     (local open-source models)

Per-analyst routing uses the analyst identity values as keys
("balanced", "growth", "macro_risk"):

    ANALYST_MODELS={"growth": "google:gemini-2.0-flash"}
    ANALYST_SECONDARY_MODELS={"growth": "openai:gpt-4o-mini"}
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMProvider(str, Enum):
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    OPENAI = "openai"
    OLLAMA = "ollama"


class ConsensusWeighting(str, Enum):
    EQUAL = "equal"
    CONFIDENCE = "confidence"


class Settings(BaseSettings):
    """Global application settings loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- LLM Provider ---
    llm_provider: LLMProvider = Field(
        default=LLMProvider.ANTHROPIC,
        description="Default LLM backend for analysts without an explicit route",
    )

    anthropic_api_key: str | None = Field(default=None, description="Anthropic API key")
    anthropic_model: str = Field(default="claude-sonnet-4-20250514")

    google_api_key: str | None = Field(default=None, description="Google AI API key")
    google_model: str = Field(default="gemini-2.0-flash")

    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o-mini")

    ollama_base_url: str = Field(default="http://localhost:11434", description="Ollama server URL")
    ollama_model: str = Field(default="llama3.1:8b")

    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="LLM temperature (global default)")
    max_tokens_per_agent: int = Field(default=1500, ge=256, description="Token budget per analyst call")

    # --- Debate ---
    max_rounds: int = Field(default=4, ge=1, le=20, description="Rounds per debate session")
    analyst_timeout_seconds: float = Field(
        default=60.0, gt=0.0,
        description="Upper bound for a single analyst model call before the fallback takes over",
    )
    analyst_models: dict[str, str] = Field(
        default_factory=dict,
        description="Primary model per analyst identity, 'provider:model_name'",
    )
    analyst_secondary_models: dict[str, str] = Field(
        default_factory=dict,
        description="Model tried after the primary fails, before the rule-based fallback",
    )
    analyst_temperatures: dict[str, float] = Field(
        default_factory=dict,
        description="Per-analyst temperature overrides (see orchestrator/temperature.py)",
    )

    # --- Validation / consensus ---
    validation_seed: int | None = Field(
        default=None,
        description="Seed for the random source used when repairing prices and dates",
    )
    consensus_weighting: ConsensusWeighting = Field(
        default=ConsensusWeighting.EQUAL,
        description="equal = arithmetic mean, confidence = score-weighted mean",
    )

    # --- Sessions ---
    session_idle_ttl_seconds: float = Field(
        default=6 * 3600, ge=0.0,
        description="Idle age used by SessionStore.evict_idle() when no explicit age is passed",
    )

    # --- Application ---
    log_level: str = Field(default="INFO", description="Logging level")

    def get_model_for(self, provider: LLMProvider) -> str:
        """Return the default model identifier for a provider."""
        model_map = {
            LLMProvider.ANTHROPIC: self.anthropic_model,
            LLMProvider.GOOGLE: self.google_model,
            LLMProvider.OPENAI: self.openai_model,
            LLMProvider.OLLAMA: self.ollama_model,
        }
        return model_map[provider]

    def has_credentials(self, provider: LLMProvider) -> bool:
        if provider == LLMProvider.OLLAMA:
            return True
        key_map = {
            LLMProvider.ANTHROPIC: self.anthropic_api_key,
            LLMProvider.GOOGLE: self.google_api_key,
            LLMProvider.OPENAI: self.openai_api_key,
        }
        return bool(key_map[provider])

    def resolve_provider(self) -> LLMProvider:
        """Return the effective provider, falling back to Ollama if no API keys configured.

        Logic:
            1. If the selected provider has credentials → use it.
            2. Otherwise scan for any hosted provider with a key.
            3. If no API keys at all → Ollama (local).
        """
        if self.has_credentials(self.llm_provider):
            return self.llm_provider

        for provider in (LLMProvider.ANTHROPIC, LLMProvider.GOOGLE, LLMProvider.OPENAI):
            if self.has_credentials(provider):
                return provider

        return LLMProvider.OLLAMA


# Singleton instance
settings = Settings()
