"""
Growth Strategist — addressable market and momentum view.
"""

from __future__ import annotations

from typing import Callable

from agents.base import AgentContext, AnalystIdentity
from agents.llm_analyst import LLMAnalystAdapter


class GrowthAnalystAdapter(LLMAnalystAdapter):
    """Aggressive analyst: revenue trajectory x target P/S, 12-24 month horizon."""

    def __init__(self, model: Callable[[str], str], model_label: str = ""):
        super().__init__(AnalystIdentity.GROWTH, model=model, model_label=model_label)

    def persona_guidance(self, context: AgentContext) -> str:
        guidance = """METHOD:
- Size the addressable market and the company's realistic share of it.
- Derive the target from forward revenue and a growth-adjusted P/S multiple.
- Name the launches, contracts or market openings that unlock the upside.
- Horizon is 12-24 months; growth stories need time."""
        if context.is_final_round:
            guidance += "\n- Final round: state whether the debate changed your conviction and why."
        return guidance
