"""
Immutable records produced by a debate.

Statement and Target are frozen once built: history is append-only, and
a newer Target supersedes an older one in the ledger without editing it.
ConsensusResult and RoundScore are derived on demand and never stored by
the core.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from agents.base import AnalystIdentity, StatementSummary, TargetSummary
from agents.resilient import AdapterSource
from config.settings import ConsensusWeighting


class SessionStatus(str, Enum):
    CREATED = "created"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class Target(BaseModel):
    """A validated (price, date) forecast."""

    model_config = ConfigDict(frozen=True)

    price: float = Field(gt=0)
    target_date: date
    date_label: str
    rationale: str = ""
    confidence: int = Field(ge=1, le=5, description="Score of the statement that set this target")

    def summary(self) -> TargetSummary:
        return TargetSummary(price=self.price, date_label=self.date_label, rationale=self.rationale)


class Statement(BaseModel):
    """One analyst's validated output for one round."""

    model_config = ConfigDict(frozen=True)

    analyst: AnalystIdentity
    round_number: int = Field(ge=1)
    text: str
    score: int = Field(ge=1, le=5)
    risks: tuple[str, ...] = ()
    sources: tuple[str, ...] = ()
    target: Optional[Target] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: AdapterSource = AdapterSource.PRIMARY
    repairs: tuple[str, ...] = ()

    def summary(self) -> StatementSummary:
        return StatementSummary(
            analyst=self.analyst,
            round_number=self.round_number,
            text=self.text,
            target_price=self.target.price if self.target else None,
            target_date=self.target.date_label if self.target else None,
        )


class ConsensusContribution(BaseModel):
    model_config = ConfigDict(frozen=True)

    analyst: AnalystIdentity
    price: float
    date_label: str
    confidence: int
    weight: float


class ConsensusResult(BaseModel):
    """Aggregate forecast derived from the ledger."""

    model_config = ConfigDict(frozen=True)

    consensus_price: float
    weighting: ConsensusWeighting
    low_price: float
    high_price: float
    low_analyst: AnalystIdentity
    high_analyst: AnalystIdentity
    dispersion_pct: float = Field(ge=0)
    agreement_level: str
    target_year: int
    target_month: int = Field(ge=1, le=12)
    target_label: str
    rationale: str
    contributions: tuple[ConsensusContribution, ...]
    analyst_count: int

    @property
    def weights(self) -> dict[AnalystIdentity, float]:
        return {c.analyst: c.weight for c in self.contributions}


class RoundScore(BaseModel):
    """Score-level agreement for a single round."""

    model_config = ConfigDict(frozen=True)

    round_number: int
    average_score: float
    min_score: int
    has_consensus: bool
