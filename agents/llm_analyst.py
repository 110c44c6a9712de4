"""
LLM-backed analyst adapter.

Each identity subclass contributes its persona guidance; this base class
owns the shared prompt skeleton (instrument, prior discussion, own prior
target, response schema) and turns the model's reply into a RawOutput.

The model is any ``callable(str) -> str``. Swapping providers never
touches this module.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from pydantic import ValidationError

from agents.base import (
    ANALYST_PROFILES,
    AgentAdapter,
    AgentContext,
    AgentFailure,
    AnalystIdentity,
    RawOutput,
    extract_json,
)

logger = logging.getLogger(__name__)

_RESPONSE_SCHEMA = """Respond ONLY with a JSON object matching this schema:
{
  "content": "your analysis, 2-4 sentences, in your own voice",
  "score": 1-5 integer (5 = most constructive),
  "targetPrice": number in the instrument's quote currency,
  "targetDate": "month and year the target should be reached, e.g. June 2027",
  "priceRationale": "how you derived the target",
  "risks": ["risk 1", "risk 2"],
  "sources": ["reference 1", "reference 2"]
}"""


def _format_price(value: float) -> str:
    return f"{value:,.2f}".rstrip("0").rstrip(".")


class LLMAnalystAdapter(AgentAdapter):
    """Shared prompt construction and response parsing for model-backed analysts."""

    name = "llm"

    def __init__(self, identity: AnalystIdentity, model: Callable[[str], str], model_label: str = ""):
        super().__init__(identity)
        self.model = model
        self.model_label = model_label

    # -- prompt -------------------------------------------------------------

    def persona_guidance(self, context: AgentContext) -> str:
        """Identity-specific instructions. Subclasses override."""
        return ""

    def build_prompt(self, context: AgentContext) -> str:
        profile = self.profile
        as_of = context.as_of

        header = (
            f"You are the {profile.display_name} ({profile.title}) on a three-analyst debate panel.\n"
            f"Focus areas: {', '.join(profile.focus)}.\n"
            f"Today is {as_of.isoformat()}. Your target date must be at least "
            f"{profile.min_horizon_months} months in the future.\n"
        )

        instrument = (
            f"\nINSTRUMENT: {context.instrument_name} ({context.instrument_symbol})\n"
            f"Sector: {context.sector or 'Unclassified'}\n"
            f"Reference price: {_format_price(context.reference_price)}\n"
            f"Round: {context.round_number}/{context.max_rounds}\n"
        )

        if context.own_prior_target:
            own = context.own_prior_target
            anchor = (
                f"\nYOUR PREVIOUS TARGET: {_format_price(own.price)} by {own.date_label}.\n"
                "Adjust it in light of the discussion rather than starting over; "
                "explain any revision.\n"
            )
        else:
            anchor = "\nThis is your first target for this instrument.\n"

        discussion = ""
        if context.prior_statements:
            lines = []
            for s in context.prior_statements:
                name = ANALYST_PROFILES[s.analyst].display_name
                target = ""
                if s.target_price is not None:
                    target = f" (target {_format_price(s.target_price)}"
                    target += f", {s.target_date})" if s.target_date else ")"
                lines.append(f"[Round {s.round_number}] {name}{target}: {s.text}")
            discussion = (
                "\nPRIOR DISCUSSION (respond to specific points where you disagree):\n"
                + "\n".join(lines)
                + "\n"
            )

        guidance = self.persona_guidance(context)
        guidance_section = f"\n{guidance.strip()}\n" if guidance else ""

        rules = (
            "\nRULES:\n"
            "1. Never give a direct buy/sell instruction.\n"
            "2. Always name concrete risks.\n"
            "3. Cite the kind of data your view rests on.\n"
        )

        return header + instrument + anchor + discussion + guidance_section + rules + "\n" + _RESPONSE_SCHEMA

    # -- call ---------------------------------------------------------------

    def parse_response(self, response: Any) -> RawOutput:
        text = response if isinstance(response, str) else str(response)
        payload = extract_json(text)
        if payload is None:
            raise AgentFailure(self.identity, "model response contained no JSON object")
        try:
            return RawOutput.model_validate(payload)
        except ValidationError as e:
            raise AgentFailure(self.identity, f"malformed statement: {e.error_count()} field error(s)") from e

    def generate(self, context: AgentContext) -> RawOutput:
        prompt = self.build_prompt(context)
        logger.debug(f"[{self.identity.value}] prompting {self.model_label or 'model'} for round {context.round_number}")
        response = self.model(prompt)
        return self.parse_response(response)
