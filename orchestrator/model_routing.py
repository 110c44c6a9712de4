"""
Per-analyst model routing.

Each analyst identity can be served by a different backend:

    Analyst      Primary                     Secondary
    -----------  --------------------------  --------------------------
    balanced     ANALYST_MODELS["balanced"]  ANALYST_SECONDARY_MODELS[...]
    growth       ANALYST_MODELS["growth"]    ...
    macro_risk   ANALYST_MODELS[...]         ...

Users configure via .env:

    ANALYST_MODELS={"growth": "google:gemini-2.0-flash",
                    "macro_risk": "openai:gpt-4o-mini"}

Value format is "provider:model_name". If no colon, uses the default
provider. Analysts without a primary route use the default provider's
default model.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from agents.base import AnalystIdentity
from config.settings import LLMProvider, settings

logger = logging.getLogger(__name__)


def parse_model_spec(spec: str) -> tuple[str | None, str]:
    """Parse a 'provider:model_name' spec into (provider, model_name).

    If no colon, returns (None, spec) meaning 'use current provider'.
    Only the first colon separates, so Ollama tags survive.

    >>> parse_model_spec("anthropic:claude-sonnet-4-20250514")
    ('anthropic', 'claude-sonnet-4-20250514')
    >>> parse_model_spec("gemini-2.0-flash")
    (None, 'gemini-2.0-flash')
    >>> parse_model_spec("ollama:llama3.1:8b")
    ('ollama', 'llama3.1:8b')
    """
    if ":" in spec:
        provider, model = spec.split(":", 1)
        if provider.strip() in {p.value for p in LLMProvider}:
            return provider.strip(), model.strip()
    return None, spec.strip()


def get_analyst_model_spec(identity: AnalystIdentity | str) -> str | None:
    """Primary route for an analyst, or None to use the default provider."""
    overrides = getattr(settings, "analyst_models", {}) or {}
    return overrides.get(AnalystIdentity(identity).value)


def get_analyst_secondary_spec(identity: AnalystIdentity | str) -> str | None:
    """Secondary route for an analyst, or None if the chain goes straight to the fallback."""
    overrides = getattr(settings, "analyst_secondary_models", {}) or {}
    return overrides.get(AnalystIdentity(identity).value)


def create_from_spec(spec: str | None, create_model_fn: Callable[..., Any]) -> tuple[Any, str]:
    """Create a model callable for ``spec``; returns (model, 'provider:model' label)."""
    if spec is None:
        provider = settings.resolve_provider()
        model_name = settings.get_model_for(provider)
    else:
        provider_str, model_name = parse_model_spec(spec)
        provider = LLMProvider(provider_str) if provider_str else settings.resolve_provider()
    model = create_model_fn(provider, model_name=model_name)
    return model, f"{provider.value}:{model_name}"


def build_analyst_models(
    identities: tuple[AnalystIdentity, ...],
    create_model_fn: Callable[..., Any],
) -> dict[AnalystIdentity, dict[str, tuple[Any, str] | None]]:
    """Create primary and secondary models for each analyst.

    Returns {identity: {"primary": (model, label) | None, "secondary": ...}}.
    A model that cannot be created is logged and left as None, so that
    analyst degrades to the next tier instead of failing the whole panel.
    Analysts with the same spec share one model instance.
    """
    spec_to_model: dict[str, tuple[Any, str]] = {}
    routes: dict[AnalystIdentity, dict[str, tuple[Any, str] | None]] = {}

    for identity in identities:
        routes[identity] = {}
        for tier, spec in (
            ("primary", get_analyst_model_spec(identity)),
            ("secondary", get_analyst_secondary_spec(identity)),
        ):
            if tier == "secondary" and spec is None:
                routes[identity][tier] = None
                continue
            key = spec or "<default>"
            if key in spec_to_model:
                routes[identity][tier] = spec_to_model[key]
                continue
            try:
                created = create_from_spec(spec, create_model_fn)
                spec_to_model[key] = created
                routes[identity][tier] = created
                logger.info(f"{tier.capitalize()} model for {identity.value}: {created[1]}")
            except Exception as e:
                logger.warning(
                    f"Failed to create {tier} model for {identity.value} ({spec or 'default'}): {e}. "
                    f"Falling back to the next tier."
                )
                routes[identity][tier] = None

    return routes
