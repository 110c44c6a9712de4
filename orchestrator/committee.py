"""
Debate Committee.

Caller-facing facade over the debate core:

    create_or_get_session ─► run_round (× max_rounds) ─► get_consensus

Wires a SessionStore, an AdapterRegistry, a ValidationEngine and a
ConsensusEngine together from settings. Each piece can be injected
instead, which is how tests and offline demos run without a model.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from agents.base import AnalystIdentity
from config.settings import settings
from orchestrator.consensus import ConsensusEngine, summarize_round
from orchestrator.registry import AdapterRegistry, build_registry
from orchestrator.rounds import RoundOrchestrator
from orchestrator.session_store import DebateSession, SessionStore
from orchestrator.state import ConsensusResult, RoundScore, Statement, Target
from orchestrator.validation import ValidationEngine

logger = logging.getLogger(__name__)


class DebateCommittee:
    """
    Runs multi-round analyst debates, one session per id.

    Usage:
        committee = DebateCommittee()
        committee.create_or_get_session("s1", "005930", "Samsung Electronics", 70000)
        for n in range(1, committee.max_rounds + 1):
            committee.run_round("s1", n)
        result = committee.get_consensus("s1")
    """

    def __init__(
        self,
        registry: Optional[AdapterRegistry] = None,
        store: Optional[SessionStore] = None,
        validator: Optional[ValidationEngine] = None,
        consensus: Optional[ConsensusEngine] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ):
        self.store = store if store is not None else SessionStore(max_rounds=settings.max_rounds)
        self.registry = registry if registry is not None else build_registry(identities=self.store.analysts)
        self.validator = validator if validator is not None else ValidationEngine(seed=settings.validation_seed)
        self.consensus = consensus if consensus is not None else ConsensusEngine(settings.consensus_weighting)
        self.rounds = RoundOrchestrator(self.store, self.registry, self.validator, on_status=on_status)

        missing = [a.value for a in self.store.analysts if a not in self.registry]
        if missing:
            raise ValueError(f"No adapter registered for analysts: {', '.join(missing)}")

    @property
    def max_rounds(self) -> int:
        return self.store.max_rounds

    def create_or_get_session(
        self,
        session_id: str,
        instrument_symbol: str,
        instrument_name: str,
        reference_price: float,
        sector: Optional[str] = None,
    ) -> DebateSession:
        return self.store.create_or_get(session_id, instrument_symbol, instrument_name, reference_price, sector)

    def get_session(self, session_id: str) -> DebateSession:
        return self.store.get(session_id)

    def run_round(self, session_id: str, round_number: int) -> list[Statement]:
        return self.rounds.run_round(session_id, round_number)

    def get_history(self, session_id: str) -> list[Statement]:
        session = self.store.get(session_id)
        with session.lock:
            return list(session.history)

    def get_targets(self, session_id: str) -> dict[AnalystIdentity, Target]:
        session = self.store.get(session_id)
        with session.lock:
            return session.ledger.snapshot()

    def get_consensus(self, session_id: str) -> ConsensusResult:
        """
        Raises:
            SessionNotFound: unknown id.
            ConsensusNotReady: not every analyst has a target yet.
        """
        session = self.store.get(session_id)
        with session.lock:
            return self.consensus.derive(session)

    def get_round_score(self, session_id: str, round_number: int) -> RoundScore:
        session = self.store.get(session_id)
        with session.lock:
            statements = session.round_statements(round_number)
        if not statements:
            raise ValueError(f"Session {session_id}: round {round_number} has not been produced")
        return summarize_round(statements)

    def evict(self, session_id: str) -> bool:
        return self.store.evict(session_id)

    def evict_idle(self, max_idle_seconds: Optional[float] = None) -> list[str]:
        ttl = settings.session_idle_ttl_seconds if max_idle_seconds is None else max_idle_seconds
        return self.store.evict_idle(ttl)
