"""Tests for orchestrator.consensus — ledger reduction and round score summaries."""

from __future__ import annotations

from datetime import date

import pytest

from agents.base import AnalystIdentity
from config.settings import ConsensusWeighting
from orchestrator.consensus import ConsensusEngine, agreement_level, summarize_round
from orchestrator.errors import ConsensusNotReady, ProtocolMisuse
from orchestrator.session_store import SessionStore
from orchestrator.state import Statement, Target

BALANCED = AnalystIdentity.BALANCED
GROWTH = AnalystIdentity.GROWTH
MACRO = AnalystIdentity.MACRO_RISK


def target(price: float, when: date = date(2027, 6, 15), confidence: int = 3) -> Target:
    return Target(
        price=price,
        target_date=when,
        date_label=f"{when:%B %Y}",
        confidence=confidence,
    )


@pytest.fixture
def session():
    return SessionStore().create_or_get("s1", "005930", "Samsung Electronics", 70000)


def fill(session, balanced: Target, growth: Target, macro: Target):
    session.ledger.record(BALANCED, balanced)
    session.ledger.record(GROWTH, growth)
    session.ledger.record(MACRO, macro)
    return session


class TestDerive:
    def test_equal_weight_average_and_dispersion(self, session):
        fill(session, target(90000), target(100000), target(80000))
        result = ConsensusEngine().derive(session)
        assert result.consensus_price == pytest.approx(90000)
        assert result.low_price == 80000
        assert result.high_price == 100000
        assert result.low_analyst == MACRO
        assert result.high_analyst == GROWTH
        assert result.dispersion_pct == pytest.approx(22.222, abs=0.01)
        assert result.agreement_level == "divided"

    def test_rationale_names_bounds(self, session):
        fill(session, target(90000), target(100000), target(80000))
        rationale = ConsensusEngine().derive(session).rationale
        assert "Growth Strategist set the high at 100,000.00" in rationale
        assert "Macro & Risk Lead the low at 80,000.00" in rationale
        assert "22.2%" in rationale

    def test_equal_prices_zero_dispersion(self, session):
        fill(session, target(85000), target(85000), target(85000))
        result = ConsensusEngine().derive(session)
        assert result.dispersion_pct == 0
        assert result.agreement_level == "unanimous"
        assert result.low_analyst == BALANCED
        assert result.high_analyst == BALANCED

    def test_confidence_weighting(self, session):
        fill(
            session,
            target(80000, confidence=1),
            target(100000, confidence=3),
            target(90000, confidence=1),
        )
        result = ConsensusEngine(ConsensusWeighting.CONFIDENCE).derive(session)
        # (80000 + 300000 + 90000) / 5
        assert result.consensus_price == pytest.approx(94000)
        assert result.weights[GROWTH] == pytest.approx(0.6)
        assert "confidence-weighted" in result.rationale

    def test_weighting_from_string(self):
        assert ConsensusEngine("confidence").weighting == ConsensusWeighting.CONFIDENCE

    def test_date_averaged_half_up(self, session):
        fill(
            session,
            target(80000, date(2026, 12, 15)),
            target(90000, date(2027, 6, 15)),
            target(85000, date(2027, 3, 15)),
        )
        result = ConsensusEngine().derive(session)
        # year mean 2026.67 -> 2027, month mean 7.0 -> 7
        assert (result.target_year, result.target_month) == (2027, 7)
        assert result.target_label == "July 2027"

    def test_majority_band(self, session):
        fill(session, target(90000), target(100000), target(88000))
        assert ConsensusEngine().derive(session).agreement_level == "majority"

    def test_incomplete_ledger(self, session):
        session.ledger.record(BALANCED, target(90000))
        with pytest.raises(ConsensusNotReady) as exc:
            ConsensusEngine().derive(session)
        assert exc.value.missing == ["growth", "macro_risk"]
        assert "round incomplete" in str(exc.value)
        assert isinstance(exc.value, ProtocolMisuse)

    def test_pure(self, session):
        fill(session, target(90000), target(100000), target(80000))
        engine = ConsensusEngine()
        assert engine.derive(session) == engine.derive(session)

    def test_contributions_in_analyst_order(self, session):
        fill(session, target(90000), target(100000), target(80000))
        contributions = ConsensusEngine().derive(session).contributions
        assert [c.analyst for c in contributions] == [BALANCED, GROWTH, MACRO]
        assert sum(c.weight for c in contributions) == pytest.approx(1.0)


class TestAgreementLevel:
    @pytest.mark.parametrize("pct,level", [(0, "unanimous"), (9.99, "unanimous"), (10, "majority"),
                                           (19.9, "majority"), (20, "divided")])
    def test_bands(self, pct, level):
        assert agreement_level(pct) == level


class TestSummarizeRound:
    def statements(self, *scores, round_number=1):
        return [
            Statement(analyst=a, round_number=round_number, text="x", score=s)
            for a, s in zip((BALANCED, GROWTH, MACRO), scores)
        ]

    def test_consensus_when_all_at_least_four(self):
        score = summarize_round(self.statements(4, 5, 4))
        assert score.average_score == pytest.approx(4.3)
        assert score.min_score == 4
        assert score.has_consensus

    def test_no_consensus_below_four(self):
        score = summarize_round(self.statements(5, 5, 3, round_number=2))
        assert score.round_number == 2
        assert not score.has_consensus

    def test_empty_round(self):
        with pytest.raises(ValueError):
            summarize_round([])

    def test_mixed_rounds(self):
        mixed = self.statements(4, 4, 4) + self.statements(3, round_number=2)
        with pytest.raises(ValueError):
            summarize_round(mixed)
