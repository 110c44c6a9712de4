"""
Provider model factories.

Every provider returns a plain ``callable(prompt, *, temperature=None) -> str``.
Analyst adapters only ever see that callable, so switching an analyst from
one backend to another is a settings change.

Provider SDKs are imported lazily; only the ones actually routed to need
to be installed.
"""

from __future__ import annotations

import logging
import os
from typing import Callable

from config.settings import LLMProvider, settings

logger = logging.getLogger(__name__)

ModelFn = Callable[..., str]


class ModelUnavailable(RuntimeError):
    """Raised when a provider cannot be used (missing SDK, key or local model)."""


# ---------------------------------------------------------------------------
# Provider-specific model factories
# ---------------------------------------------------------------------------

def _create_anthropic_model(model_name: str | None = None) -> ModelFn:
    """Create a Claude (Anthropic) callable."""
    try:
        from anthropic import Anthropic
    except ImportError as exc:
        raise ModelUnavailable("anthropic package not installed. Run: pip install -e '.[anthropic]'") from exc

    api_key = settings.anthropic_api_key or os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        raise ModelUnavailable("ANTHROPIC_API_KEY is not set")

    client = Anthropic(api_key=api_key)
    model = model_name or settings.anthropic_model

    def call(prompt: str, *, temperature: float | None = None) -> str:
        response = client.messages.create(
            model=model,
            max_tokens=settings.max_tokens_per_agent,
            temperature=temperature if temperature is not None else settings.temperature,
            messages=[{"role": "user", "content": prompt}],
        )
        return response.content[0].text

    return call


def _create_google_model(model_name: str | None = None) -> ModelFn:
    """Create a Gemini (Google) callable."""
    try:
        from google import genai
    except ImportError as exc:
        raise ModelUnavailable("google-genai package not installed. Run: pip install -e '.[google]'") from exc

    api_key = settings.google_api_key or os.environ.get("GOOGLE_API_KEY")
    if not api_key:
        raise ModelUnavailable("GOOGLE_API_KEY is not set")

    client = genai.Client(api_key=api_key)
    model = model_name or settings.google_model

    def call(prompt: str, *, temperature: float | None = None) -> str:
        response = client.models.generate_content(
            model=model,
            contents=prompt,
            config={
                "temperature": temperature if temperature is not None else settings.temperature,
                "max_output_tokens": settings.max_tokens_per_agent,
            },
        )
        return response.text

    return call


def _create_openai_model(model_name: str | None = None) -> ModelFn:
    """Create an OpenAI callable."""
    try:
        from openai import OpenAI
    except ImportError as exc:
        raise ModelUnavailable("openai package not installed. Run: pip install -e '.[openai]'") from exc

    api_key = settings.openai_api_key or os.environ.get("OPENAI_API_KEY")
    if not api_key:
        raise ModelUnavailable("OPENAI_API_KEY is not set")

    client = OpenAI(api_key=api_key)
    model = model_name or settings.openai_model

    def call(prompt: str, *, temperature: float | None = None) -> str:
        response = client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature if temperature is not None else settings.temperature,
            max_tokens=settings.max_tokens_per_agent,
        )
        return response.choices[0].message.content or ""

    return call


def _create_ollama_model(model_name: str | None = None) -> ModelFn:
    """Create an Ollama (local) callable for open-source models."""
    try:
        import ollama as ollama_lib
    except ImportError as exc:
        raise ModelUnavailable(
            "ollama package not installed. Run: pip install -e '.[ollama]'\n"
            "Also ensure Ollama is running: ollama serve"
        ) from exc

    model = model_name or settings.ollama_model
    client = ollama_lib.Client(host=settings.ollama_base_url)

    try:
        client.show(model)
    except Exception as exc:
        raise ModelUnavailable(
            f"Ollama model '{model}' not available at {settings.ollama_base_url}. "
            f"Pull it first: ollama pull {model}"
        ) from exc

    def call(prompt: str, *, temperature: float | None = None) -> str:
        response = client.chat(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            format="json",
            options={
                "temperature": temperature if temperature is not None else settings.temperature,
                "num_predict": settings.max_tokens_per_agent,
            },
        )
        return response["message"]["content"]

    return call


PROVIDER_FACTORIES: dict[LLMProvider, Callable[..., ModelFn]] = {
    LLMProvider.ANTHROPIC: _create_anthropic_model,
    LLMProvider.GOOGLE: _create_google_model,
    LLMProvider.OPENAI: _create_openai_model,
    LLMProvider.OLLAMA: _create_ollama_model,
}


def create_model(
    provider: LLMProvider | None = None,
    model_name: str | None = None,
) -> ModelFn:
    """
    Create the LLM callable for the given provider.

    Args:
        provider: Which LLM backend to use (defaults to settings.resolve_provider())
        model_name: Specific model to use (overrides the provider default)

    Raises:
        ModelUnavailable: the SDK, credentials or local model are missing.
    """
    provider = LLMProvider(provider) if provider else settings.resolve_provider()
    factory = PROVIDER_FACTORIES.get(provider)
    if not factory:
        raise ValueError(f"Unknown provider: {provider}")

    model_fn = factory(model_name=model_name)
    logger.info(f"Created {provider.value} model {model_name or settings.get_model_for(provider)}")
    return model_fn
