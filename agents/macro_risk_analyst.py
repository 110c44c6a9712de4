"""
Macro & Risk Lead — top-down macro context and downside discipline.

Speaks last in every round, so it sees both other analysts' statements
for the round and is asked to weigh them.
"""

from __future__ import annotations

from typing import Callable

from agents.base import AgentContext, AnalystIdentity
from agents.llm_analyst import LLMAnalystAdapter


class MacroRiskAnalystAdapter(LLMAnalystAdapter):
    """Risk-focused analyst: intrinsic value less a macro/risk discount."""

    def __init__(self, model: Callable[[str], str], model_label: str = ""):
        super().__init__(AnalystIdentity.MACRO_RISK, model=model, model_label=model_label)

    def persona_guidance(self, context: AgentContext) -> str:
        same_round = [s for s in context.prior_statements if s.round_number == context.round_number]
        guidance = """METHOD:
- Start from intrinsic value, then discount for rates, FX, credit and geopolitics.
- The target must survive a plausible bad scenario, not just the base case.
- Anchor the target date on scheduled macro events (central bank meetings, elections)."""
        if same_round:
            guidance += """
- The other analysts have already spoken this round. Summarize where they
  agree, where they diverge, and which side the macro backdrop favours."""
        return guidance
