"""
ConsensusEngine — reduces the ledger to a single forecast.

    price       mean of the latest targets (equal), or score-weighted mean (confidence)
    range       lowest / highest contributing target, ties go to the earlier analyst
    dispersion  (high - low) / price * 100
    date        year and month averaged independently, half-up
    agreement   unanimous < 10% dispersion, majority < 20%, otherwise divided

Derivation reads the ledger and nothing else, so calling it twice without
an intervening round returns equal results.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from agents.base import get_profile
from agents.target_dates import label_for
from config.settings import ConsensusWeighting
from orchestrator.errors import ConsensusNotReady
from orchestrator.session_store import DebateSession
from orchestrator.state import ConsensusContribution, ConsensusResult, RoundScore, Statement
from orchestrator.validation import round_half_up

logger = logging.getLogger(__name__)

UNANIMOUS_BELOW_PCT = 10.0
MAJORITY_BELOW_PCT = 20.0
CONSENSUS_MIN_SCORE = 4


def agreement_level(dispersion_pct: float) -> str:
    if dispersion_pct < UNANIMOUS_BELOW_PCT:
        return "unanimous"
    if dispersion_pct < MAJORITY_BELOW_PCT:
        return "majority"
    return "divided"


class ConsensusEngine:
    """Stateless; one instance can serve every session."""

    def __init__(self, weighting: ConsensusWeighting | str = ConsensusWeighting.EQUAL):
        self.weighting = ConsensusWeighting(weighting)

    def derive(self, session: DebateSession) -> ConsensusResult:
        """
        Raises:
            ConsensusNotReady: some analyst has no target yet.
        """
        missing = session.ledger.missing(session.analysts)
        if missing:
            raise ConsensusNotReady(session.session_id, [a.value for a in missing])

        entries = [(a, session.ledger.get(a)) for a in session.analysts]
        prices = np.array([t.price for _, t in entries], dtype=float)
        confidences = np.array([t.confidence for _, t in entries], dtype=float)

        if self.weighting == ConsensusWeighting.CONFIDENCE:
            weights = confidences / confidences.sum()
        else:
            weights = np.full(len(entries), 1.0 / len(entries))
        price = float(np.dot(weights, prices))

        # argmin/argmax return the first occurrence
        low_idx = int(np.argmin(prices))
        high_idx = int(np.argmax(prices))
        low_analyst, low_target = entries[low_idx]
        high_analyst, high_target = entries[high_idx]
        dispersion = float((prices[high_idx] - prices[low_idx]) / price * 100)

        year = round_half_up(float(np.mean([t.target_date.year for _, t in entries])))
        month = min(12, max(1, round_half_up(float(np.mean([t.target_date.month for _, t in entries])))))
        level = agreement_level(dispersion)

        method = "confidence-weighted average" if self.weighting == ConsensusWeighting.CONFIDENCE else "average"
        rationale = (
            f"Consensus {price:,.2f} is the {method} of {len(entries)} analyst targets. "
            f"{get_profile(high_analyst).display_name} set the high at {high_target.price:,.2f}, "
            f"{get_profile(low_analyst).display_name} the low at {low_target.price:,.2f}; "
            f"dispersion {dispersion:.1f}% ({level})."
        )

        result = ConsensusResult(
            consensus_price=price,
            weighting=self.weighting,
            low_price=low_target.price,
            high_price=high_target.price,
            low_analyst=low_analyst,
            high_analyst=high_analyst,
            dispersion_pct=dispersion,
            agreement_level=level,
            target_year=year,
            target_month=month,
            target_label=label_for(year, month),
            rationale=rationale,
            contributions=tuple(
                ConsensusContribution(
                    analyst=a,
                    price=t.price,
                    date_label=t.date_label,
                    confidence=t.confidence,
                    weight=float(w),
                )
                for (a, t), w in zip(entries, weights)
            ),
            analyst_count=len(entries),
        )
        logger.debug(f"Session {session.session_id}: consensus {price:,.2f}, dispersion {dispersion:.1f}%")
        return result


def summarize_round(statements: Sequence[Statement]) -> RoundScore:
    """Average and minimum score of one round; consensus when every score is at least 4."""
    if not statements:
        raise ValueError("cannot summarize an empty round")
    rounds = {s.round_number for s in statements}
    if len(rounds) != 1:
        raise ValueError(f"statements span several rounds: {sorted(rounds)}")

    scores = np.array([s.score for s in statements], dtype=float)
    min_score = int(scores.min())
    return RoundScore(
        round_number=rounds.pop(),
        average_score=round(float(scores.mean()), 1),
        min_score=min_score,
        has_consensus=min_score >= CONSENSUS_MIN_SCORE,
    )
