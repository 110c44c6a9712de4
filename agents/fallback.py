"""
Rule-based fallback adapter.

Used when an analyst's model call fails or times out. Needs no external
call and is deterministic for a given (symbol, round, identity, as_of):
the random stream is seeded from those values, so a retried round
produces the same substitute statement.

Targets follow the identity's bias range in round one and drift at most
±3% from the analyst's own previous target afterwards.
"""

from __future__ import annotations

import logging
import random

from agents.base import (
    ANALYST_PROFILES,
    AgentAdapter,
    AgentContext,
    AnalystIdentity,
    RawOutput,
)
from agents.target_dates import add_months, month_label

logger = logging.getLogger(__name__)


RISK_TEMPLATES: dict[AnalystIdentity, list[list[str]]] = {
    AnalystIdentity.BALANCED: [
        ["Valuation stretch versus sector P/E", "Downside if earnings growth slows"],
        ["Intensifying competition within the industry", "Input cost and FX volatility"],
        ["Global demand slowdown", "Uncertain order visibility"],
    ],
    AnalystIdentity.GROWTH: [
        ["Failure to keep pace with technology shifts", "Delayed monetisation of new businesses"],
        ["Fast-following competitors", "Regulatory changes in new markets"],
        ["Missed market expectations", "Uncertain return on AI investment"],
    ],
    AnalystIdentity.MACRO_RISK: [
        ["Higher-for-longer rates compress valuations", "Demand shock in a recession", "Escalating geopolitical risk"],
        ["FX volatility", "Supply-chain reshoring costs", "Inflation re-acceleration"],
        ["Policy uncertainty around elections and regulation", "Tightening liquidity", "Credit stress"],
    ],
}

SOURCE_TEMPLATES: dict[AnalystIdentity, list[list[str]]] = {
    AnalystIdentity.BALANCED: [
        ["Quarterly results and IR materials", "Financial statement analysis"],
        ["Sector valuation comparison", "DCF model"],
        ["Peer profitability benchmarks", "Cash-flow analysis"],
    ],
    AnalystIdentity.GROWTH: [
        ["Technology trend reports", "Industry outlook estimates"],
        ["Market share analysis", "Growth-adjusted valuation"],
        ["Patent filing trends", "Venture funding flows"],
    ],
    AnalystIdentity.MACRO_RISK: [
        ["Central bank meeting minutes", "Global rate outlook"],
        ["FX analysis", "Macro indicator dashboard"],
        ["Risk scenario analysis", "Historical analogue comparison"],
    ],
}

PRICE_RATIONALES: dict[AnalystIdentity, list[str]] = {
    AnalystIdentity.BALANCED: [
        "Reflects earnings recovery and a normalising multiple. The numbers do not lie.",
        "Fair value from fundamentals, derived from data rather than sentiment.",
        "Sector-average P/E applied to expected EPS growth.",
    ],
    AnalystIdentity.GROWTH: [
        "Prices in the full growth runway. Conservative readers will be surprised.",
        "Aggressive target reflecting new business optionality and a larger addressable market.",
        "Includes an innovation premium the market has not yet paid for.",
    ],
    AnalystIdentity.MACRO_RISK: [
        "Conservative target that reflects macro risk. Survive first.",
        "Safety margin applied for a wider volatility regime.",
        "Realistic target grounded in how past cycles played out.",
    ],
}

_OPENINGS: dict[AnalystIdentity, str] = {
    AnalystIdentity.BALANCED: (
        "Looking at {name} on fundamentals, earnings quality and balance sheet support a measured view. "
        "My target is {target} by {date}."
    ),
    AnalystIdentity.GROWTH: (
        "{name} has a growth runway the market is underpricing. "
        "I am setting an aggressive target of {target} by {date}."
    ),
    AnalystIdentity.MACRO_RISK: (
        "Before anything else on {name}: rates, currency and geopolitics still set the ceiling. "
        "My target is a cautious {target} by {date}."
    ),
}

_FOLLOW_UPS: dict[AnalystIdentity, str] = {
    AnalystIdentity.BALANCED: "Having heard the panel, I stay with the numbers: {target} by {date}.",
    AnalystIdentity.GROWTH: "Nothing said so far changes the growth story. Target {target} by {date}.",
    AnalystIdentity.MACRO_RISK: "Weighing both views against the macro backdrop, I hold at {target} by {date}.",
}

_CLOSINGS: dict[AnalystIdentity, str] = {
    AnalystIdentity.BALANCED: "Final view on {name}: {target} by {date}. This is analysis, not hope.",
    AnalystIdentity.GROWTH: "Final call on {name}: {target} by {date}. Conviction, not recklessness.",
    AnalystIdentity.MACRO_RISK: "Final word on {name}: {target} by {date}, the most conservative number on the panel.",
}


class RuleBasedFallbackAdapter(AgentAdapter):
    """Deterministic, offline substitute for a failed analyst call."""

    name = "fallback"

    def __init__(self, identity: AnalystIdentity, seed_salt: str = ""):
        super().__init__(identity)
        self.seed_salt = seed_salt

    def _rng(self, context: AgentContext) -> random.Random:
        seed = (
            f"{context.instrument_symbol}-{context.round_number}-{self.identity.value}-"
            f"{context.as_of.isoformat()}-{self.seed_salt}"
        )
        return random.Random(seed)

    def _score(self, rng: random.Random) -> int:
        raw = 3.5 + rng.random() * 1.5 + self.profile.score_bias
        return int(min(5.0, max(1.0, raw)) + 0.5)

    def _target_price(self, context: AgentContext, rng: random.Random) -> float:
        own = context.own_prior_target
        if own and context.round_number > 1:
            adjustment = (rng.random() - 0.5) * 0.06
            return round(own.price * (1 + adjustment), 2)
        low, high = self.profile.bias_range
        return round(context.reference_price * (1 + rng.uniform(low, high)), 2)

    def _reaction(self, context: AgentContext) -> str:
        others = [s for s in context.prior_statements if s.analyst != self.identity and s.target_price]
        if not others:
            return ""
        latest = others[-1]
        name = ANALYST_PROFILES[latest.analyst].display_name
        own_view = context.own_prior_target.price if context.own_prior_target else context.reference_price
        if latest.target_price > own_view:
            return f"The {name}'s {latest.target_price:,.0f} looks optimistic to me. "
        return f"The {name}'s {latest.target_price:,.0f} is more cautious than I would be. "

    def generate(self, context: AgentContext) -> RawOutput:
        rng = self._rng(context)
        identity = self.identity

        price = self._target_price(context, rng)
        low, high = self.profile.fallback_horizon_months
        target_day = add_months(context.as_of, rng.randint(low, high))

        if context.round_number == 1:
            template = _OPENINGS[identity]
        elif context.is_final_round:
            template = _CLOSINGS[identity]
        else:
            template = _FOLLOW_UPS[identity]

        text = template.format(
            name=context.instrument_name,
            target=f"{price:,.0f}",
            date=month_label(target_day),
        )
        if context.round_number > 1:
            text = self._reaction(context) + text

        risks = rng.choice(RISK_TEMPLATES[identity])
        sources = rng.choice(SOURCE_TEMPLATES[identity])
        rationale = rng.choice(PRICE_RATIONALES[identity])
        score = self._score(rng)

        logger.debug(f"[{identity.value}] fallback statement for round {context.round_number}: target {price}")

        return RawOutput(
            text=text,
            score=score,
            target_price=price,
            target_date=target_day.isoformat(),
            rationale=rationale,
            risks=list(risks),
            sources=list(sources),
        )
