"""
Balanced Analyst — fundamental valuation view.

Anchors on earnings, margins and multiples; acts as the numbers check
on the growth strategist's enthusiasm.
"""

from __future__ import annotations

from typing import Callable

from agents.base import AgentContext, AnalystIdentity
from agents.llm_analyst import LLMAnalystAdapter


class BalancedAnalystAdapter(LLMAnalystAdapter):
    """Fundamentals-first analyst: target = expected EPS x fair multiple, with a safety margin."""

    def __init__(self, model: Callable[[str], str], model_label: str = ""):
        super().__init__(AnalystIdentity.BALANCED, model=model, model_label=model_label)

    def persona_guidance(self, context: AgentContext) -> str:
        guidance = """METHOD:
- Derive the target from expected EPS and a fair P/E versus sector peers.
- Apply a ~10% safety margin for uncertainty.
- Tie the target date to the next two or three earnings releases."""
        if context.round_number > 1:
            guidance += """
- If another analyst's target is far from yours, test it against the numbers
  before moving yours."""
        return guidance
