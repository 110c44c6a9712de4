"""
AdapterRegistry — one ResilientAdapter per analyst identity.

    build_registry()            LLM primary/secondary per settings, rule-based fallback
    build_fallback_registry()   rule-based only (offline, tests, demos)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Callable, Optional

from agents.balanced_analyst import BalancedAnalystAdapter
from agents.base import ANALYST_ORDER, AnalystIdentity
from agents.fallback import RuleBasedFallbackAdapter
from agents.growth_analyst import GrowthAnalystAdapter
from agents.llm_analyst import LLMAnalystAdapter
from agents.macro_risk_analyst import MacroRiskAnalystAdapter
from agents.resilient import ResilientAdapter
from config.settings import settings
from orchestrator.model_routing import build_analyst_models
from orchestrator.temperature import get_analyst_temperature, with_temperature

logger = logging.getLogger(__name__)

LLM_ADAPTERS: dict[AnalystIdentity, type[LLMAnalystAdapter]] = {
    AnalystIdentity.BALANCED: BalancedAnalystAdapter,
    AnalystIdentity.GROWTH: GrowthAnalystAdapter,
    AnalystIdentity.MACRO_RISK: MacroRiskAnalystAdapter,
}


class AdapterRegistry:
    """Lookup from analyst identity to its resilient adapter chain."""

    def __init__(self, adapters: Mapping[AnalystIdentity, ResilientAdapter]):
        for identity, adapter in adapters.items():
            if adapter.identity != AnalystIdentity(identity):
                raise ValueError(f"adapter for {adapter.identity.value} registered under {identity}")
        self._adapters = {AnalystIdentity(k): v for k, v in adapters.items()}

    def get(self, identity: AnalystIdentity | str) -> ResilientAdapter:
        identity = AnalystIdentity(identity)
        try:
            return self._adapters[identity]
        except KeyError:
            raise KeyError(f"no adapter registered for analyst {identity.value}") from None

    def identities(self) -> list[AnalystIdentity]:
        return list(self._adapters)

    def __contains__(self, identity: object) -> bool:
        return identity in self._adapters


def build_fallback_registry(
    identities: Iterable[AnalystIdentity] = ANALYST_ORDER,
    seed_salt: str = "",
    timeout_seconds: Optional[float] = None,
) -> AdapterRegistry:
    """Registry whose analysts never call a model."""
    timeout = timeout_seconds or settings.analyst_timeout_seconds
    return AdapterRegistry({
        identity: ResilientAdapter(
            identity,
            fallback=RuleBasedFallbackAdapter(identity, seed_salt=seed_salt),
            timeout_seconds=timeout,
        )
        for identity in (AnalystIdentity(i) for i in identities)
    })


def _llm_adapter(identity: AnalystIdentity, route: tuple[Any, str] | None) -> Optional[LLMAnalystAdapter]:
    if route is None:
        return None
    model, label = route
    model = with_temperature(model, get_analyst_temperature(identity))
    return LLM_ADAPTERS[identity](model=model, model_label=label)


def build_registry(
    create_model_fn: Optional[Callable[..., Any]] = None,
    identities: Iterable[AnalystIdentity] = ANALYST_ORDER,
    timeout_seconds: Optional[float] = None,
) -> AdapterRegistry:
    """
    Registry backed by the configured LLM routes.

    Any analyst whose models cannot be created still gets the rule-based
    fallback, so a missing API key degrades output rather than failing.
    """
    if create_model_fn is None:
        from app_lib.model_factory import create_model
        create_model_fn = create_model

    identities = tuple(AnalystIdentity(i) for i in identities)
    timeout = timeout_seconds or settings.analyst_timeout_seconds
    routes = build_analyst_models(identities, create_model_fn)

    adapters: dict[AnalystIdentity, ResilientAdapter] = {}
    for identity in identities:
        primary = _llm_adapter(identity, routes[identity]["primary"])
        secondary = _llm_adapter(identity, routes[identity]["secondary"])
        if primary is None and secondary is None:
            logger.warning(f"No model available for {identity.value}; rule-based fallback only")
        adapters[identity] = ResilientAdapter(
            identity,
            fallback=RuleBasedFallbackAdapter(identity),
            primary=primary,
            secondary=secondary,
            timeout_seconds=timeout,
        )
    return AdapterRegistry(adapters)
