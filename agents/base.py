"""
Base adapter protocol for the analyst debate.

Every analyst identity is backed by an AgentAdapter:

    generate(context) -> RawOutput   (raises on failure)

The adapter only has to produce the *raw* structured statement. Bounds,
horizons and defaults are enforced afterwards by the ValidationEngine,
so adapters stay thin: build a prompt, call a model, parse JSON.

Identity profiles hold the numeric bias of each persona. They are shared
by validation (synthetic prices, caps, horizons) and by the rule-based
fallback adapter.
"""

from __future__ import annotations

import json
import logging
import math
import re
from abc import ABC, abstractmethod
from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class AnalystIdentity(str, Enum):
    BALANCED = "balanced"
    GROWTH = "growth"
    MACRO_RISK = "macro_risk"


class RiskBias(str, Enum):
    CONSERVATIVE = "conservative"
    AGGRESSIVE = "aggressive"
    RISK_FOCUSED = "risk_focused"


# Fixed speaking order within every round.
ANALYST_ORDER: tuple[AnalystIdentity, ...] = (
    AnalystIdentity.BALANCED,
    AnalystIdentity.GROWTH,
    AnalystIdentity.MACRO_RISK,
)


class AgentFailure(Exception):
    """An adapter could not produce a usable statement (timeout, bad output, upstream error)."""

    def __init__(self, identity: AnalystIdentity | None, message: str):
        self.identity = identity
        prefix = f"[{identity.value}] " if identity else ""
        super().__init__(f"{prefix}{message}")


# ---------------------------------------------------------------------------
# Identity profiles
# ---------------------------------------------------------------------------

class AnalystProfile(BaseModel):
    """Immutable bias profile for one analyst identity."""

    model_config = ConfigDict(frozen=True)

    identity: AnalystIdentity
    display_name: str
    title: str
    risk_bias: RiskBias
    focus: tuple[str, ...] = ()
    bias_range: tuple[float, float] = Field(description="Synthetic upside range, e.g. (0.10, 0.20)")
    ceiling_ratio: float = Field(description="Prices above reference * ceiling_ratio are capped")
    cap_multiplier: float = Field(description="Cap target as a multiple of the reference price")
    min_horizon_months: int
    fallback_horizon_months: tuple[int, int]
    score_bias: float = 0.0


ANALYST_PROFILES: dict[AnalystIdentity, AnalystProfile] = {
    AnalystIdentity.BALANCED: AnalystProfile(
        identity=AnalystIdentity.BALANCED,
        display_name="Balanced Analyst",
        title="Fundamental valuation analyst",
        risk_bias=RiskBias.CONSERVATIVE,
        focus=("earnings quality", "balance sheet strength", "industry structure", "valuation"),
        bias_range=(0.10, 0.20),
        ceiling_ratio=3.0,
        cap_multiplier=1.20,
        min_horizon_months=6,
        fallback_horizon_months=(6, 9),
    ),
    AnalystIdentity.GROWTH: AnalystProfile(
        identity=AnalystIdentity.GROWTH,
        display_name="Growth Strategist",
        title="Innovation and growth strategist",
        risk_bias=RiskBias.AGGRESSIVE,
        focus=("new business lines", "technology adoption", "addressable market", "global competitiveness"),
        bias_range=(0.25, 0.45),
        ceiling_ratio=5.0,
        cap_multiplier=2.00,
        min_horizon_months=12,
        fallback_horizon_months=(12, 18),
        score_bias=0.5,
    ),
    AnalystIdentity.MACRO_RISK: AnalystProfile(
        identity=AnalystIdentity.MACRO_RISK,
        display_name="Macro & Risk Lead",
        title="Macro environment and risk officer",
        risk_bias=RiskBias.RISK_FOCUSED,
        focus=("macro cycle", "rates and FX", "geopolitical risk", "downside scenarios"),
        bias_range=(0.05, 0.15),
        ceiling_ratio=3.0,
        cap_multiplier=1.15,
        min_horizon_months=6,
        fallback_horizon_months=(6, 12),
        score_bias=-0.5,
    ),
}


def get_profile(identity: AnalystIdentity | str) -> AnalystProfile:
    return ANALYST_PROFILES[AnalystIdentity(identity)]


# ---------------------------------------------------------------------------
# Context passed to adapters
# ---------------------------------------------------------------------------

class StatementSummary(BaseModel):
    """Compact view of an earlier statement, as shown to the other analysts."""

    analyst: AnalystIdentity
    round_number: int
    text: str
    target_price: Optional[float] = None
    target_date: Optional[str] = None


class TargetSummary(BaseModel):
    price: float
    date_label: str
    rationale: str = ""


class AgentContext(BaseModel):
    """Everything an analyst needs to speak in one round."""

    instrument_symbol: str
    instrument_name: str
    sector: Optional[str] = None
    reference_price: float = Field(gt=0)
    round_number: int = Field(ge=1)
    max_rounds: int = Field(ge=1)
    prior_statements: list[StatementSummary] = Field(default_factory=list)
    own_prior_target: Optional[TargetSummary] = None
    as_of: date = Field(default_factory=date.today)

    @property
    def is_final_round(self) -> bool:
        return self.round_number >= self.max_rounds


# ---------------------------------------------------------------------------
# Raw adapter output
# ---------------------------------------------------------------------------

_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")


def _coerce_number(value: Any) -> float | None:
    """Best-effort numeric coercion: 85000, "85,000", "$1,234.5", "85000원"."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _NUMBER_PATTERN.search(str(value).replace(",", ""))
        if not match:
            return None
        number = float(match.group(0))
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _coerce_string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(v) for v in value if v is not None]
    else:
        items = [str(value)]
    return [item.strip() for item in items if item.strip()]


class RawOutput(BaseModel):
    """
    Unvalidated structured statement as returned by an adapter.

    Accepts both snake_case and the camelCase keys models tend to emit
    (targetPrice, targetDate, priceRationale, content).
    """

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(validation_alias=AliasChoices("text", "content", "analysis"))
    score: Optional[float] = None
    target_price: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("target_price", "targetPrice"),
    )
    target_date: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("target_date", "targetDate"),
    )
    rationale: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("rationale", "priceRationale", "price_rationale"),
    )
    risks: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)

    @field_validator("text", mode="before")
    @classmethod
    def _text_not_blank(cls, v: Any) -> str:
        text = "" if v is None else str(v).strip()
        if not text:
            raise ValueError("statement text is empty")
        return text

    @field_validator("score", "target_price", mode="before")
    @classmethod
    def _numeric(cls, v: Any) -> float | None:
        return _coerce_number(v)

    @field_validator("target_date", "rationale", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> str | None:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator("risks", "sources", mode="before")
    @classmethod
    def _string_list(cls, v: Any) -> list[str]:
        return _coerce_string_list(v)


# ---------------------------------------------------------------------------
# JSON extraction
# ---------------------------------------------------------------------------

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def extract_json(text: str) -> dict[str, Any] | None:
    """
    Pull the first JSON object out of a model response.

    Handles ```json fenced blocks and prose before/after the object.
    Returns None when nothing parseable is found.
    """
    if not text:
        return None

    candidates = [m.group(1) for m in _FENCE_PATTERN.finditer(text)]
    candidates.append(text)

    for candidate in candidates:
        start = candidate.find("{")
        end = candidate.rfind("}")
        if start == -1 or end <= start:
            continue
        body = candidate[start:end + 1]
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            # trailing commas are the most common model slip
            try:
                parsed = json.loads(_TRAILING_COMMA.sub(r"\1", body))
            except json.JSONDecodeError:
                continue
        if isinstance(parsed, dict):
            return parsed
    return None


# ---------------------------------------------------------------------------
# Adapter ABC
# ---------------------------------------------------------------------------

class AgentAdapter(ABC):
    """
    Capability interface for one analyst identity.

    Implementations may block on an external call; callers are expected
    to bound them with a timeout (see agents.resilient).
    """

    name: str = "adapter"

    def __init__(self, identity: AnalystIdentity):
        self.identity = AnalystIdentity(identity)
        self.profile = get_profile(self.identity)

    @abstractmethod
    def generate(self, context: AgentContext) -> RawOutput:
        """Produce a raw statement for this round, or raise."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(identity={self.identity.value!r})"
