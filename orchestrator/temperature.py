"""
Per-analyst temperature routing.

    Analyst      Temperature  Reasoning
    ───────────  ───────────  ──────────────────────────────────────
    balanced     0.5          Weighs both sides, stays close to consensus
    growth       0.8          Explores upside scenarios more freely
    macro_risk   0.4          Conservative, anchored on downside cases

Usage:
    model = with_temperature(model, get_analyst_temperature("growth"))

The with_temperature() wrapper calls model(prompt, temperature=X). Whether
the model takes the kwarg is decided once, from its signature, when it is
wrapped; a model without it (e.g., a mock in tests) is called as
model(prompt). Errors raised inside a call propagate and are never retried.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any

from agents.base import AnalystIdentity
from config.settings import settings

logger = logging.getLogger(__name__)

# Users can override via settings.analyst_temperatures (config/settings.py).
_DEFAULT_ANALYST_TEMPERATURES: dict[str, float] = {
    AnalystIdentity.BALANCED.value: 0.5,
    AnalystIdentity.GROWTH.value: 0.8,
    AnalystIdentity.MACRO_RISK.value: 0.4,
}


def get_analyst_temperature(identity: AnalystIdentity | str) -> float:
    """
    Temperature for one analyst.

    Checks user overrides in settings.analyst_temperatures first,
    then the built-in defaults, then the global settings.temperature.
    """
    key = AnalystIdentity(identity).value
    user_overrides = getattr(settings, "analyst_temperatures", {}) or {}
    if key in user_overrides:
        return user_overrides[key]
    return _DEFAULT_ANALYST_TEMPERATURES.get(key, settings.temperature)


def accepts_temperature(model: Any) -> bool:
    """True if ``model`` takes a ``temperature`` keyword (explicitly or via **kwargs)."""
    try:
        params = inspect.signature(model).parameters.values()
    except (TypeError, ValueError):
        # No introspectable signature; call it with the prompt alone
        return False
    return any(
        p.kind == inspect.Parameter.VAR_KEYWORD
        or (p.name == "temperature" and p.kind != inspect.Parameter.POSITIONAL_ONLY)
        for p in params
    )


def with_temperature(model: Any, temperature: float) -> Callable[[str], str]:
    """
    Wrap a model callable to use a specific temperature.

    Args:
        model: The LLM callable (str) -> str
        temperature: Temperature to use for this call

    Returns:
        Wrapped callable with the same (str) -> str interface.
    """
    if accepts_temperature(model):
        def wrapped(prompt: str) -> str:
            return model(prompt, temperature=temperature)
    else:
        logger.debug(f"{getattr(model, '__name__', model)!r} takes no temperature; calling it without one")

        def wrapped(prompt: str) -> str:
            return model(prompt)

    wrapped._original_model = model
    wrapped._temperature = temperature

    return wrapped
