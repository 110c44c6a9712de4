"""
RoundOrchestrator — executes one debate round for one session.

Per round, for each analyst in fixed order:

    build context ─► resilient adapter ─► validate ─► Statement ─► ledger

Analysts run strictly in sequence, so a later analyst sees the statements
earlier analysts made in the same round. Statements are committed to the
session only once the whole round has been produced.

The session lock is held for the whole round; a concurrent or retried
call for the same round waits and then receives the stored statements
without another model call.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from datetime import date
from typing import Optional

from agents.base import AgentContext, AnalystIdentity
from agents.resilient import AdapterSource
from orchestrator.errors import RoundOutOfOrder
from orchestrator.registry import AdapterRegistry
from orchestrator.session_store import DebateSession, SessionStore
from orchestrator.state import Statement
from orchestrator.validation import ValidationEngine

logger = logging.getLogger(__name__)


class RoundOrchestrator:
    """Runs rounds against sessions held in a SessionStore."""

    def __init__(
        self,
        store: SessionStore,
        registry: AdapterRegistry,
        validator: Optional[ValidationEngine] = None,
        on_status: Callable[[str], None] | None = None,
    ):
        self.store = store
        self.registry = registry
        self.validator = validator if validator is not None else ValidationEngine()
        self.on_status = on_status

    def _status(self, msg: str) -> None:
        logger.info(msg)
        if self.on_status:
            self.on_status(msg)

    def build_context(
        self,
        session: DebateSession,
        analyst: AnalystIdentity,
        round_number: int,
        today: date,
        pending: Sequence[Statement] = (),
    ) -> AgentContext:
        """Context for one analyst: instrument, all prior statements (this round's included), own prior target."""
        own = session.ledger.get(analyst)
        return AgentContext(
            instrument_symbol=session.instrument_symbol,
            instrument_name=session.instrument_name,
            sector=session.sector,
            reference_price=session.reference_price,
            round_number=round_number,
            max_rounds=session.max_rounds,
            prior_statements=[s.summary() for s in [*session.history, *pending]],
            own_prior_target=own.summary() if own else None,
            as_of=today,
        )

    def _run_analyst(
        self,
        session: DebateSession,
        analyst: AnalystIdentity,
        round_number: int,
        today: date,
        pending: Sequence[Statement],
    ) -> Statement:
        context = self.build_context(session, analyst, round_number, today, pending)
        result = self.registry.get(analyst).generate(context)
        corrected = self.validator.validate(
            result.output, analyst, session.reference_price, today=today, rng=session.rng
        )

        return Statement(
            analyst=analyst,
            round_number=round_number,
            text=corrected.text,
            score=corrected.score,
            risks=corrected.risks,
            sources=corrected.sources,
            target=corrected.target,
            source=result.source,
            repairs=corrected.repairs,
        )

    def run_round(self, session_id: str, round_number: int) -> list[Statement]:
        """
        Produce (or return the already-produced) statements for ``round_number``.

        Raises:
            SessionNotFound: unknown id.
            RoundOutOfOrder: the number is neither a produced round nor the next one.
        """
        session = self.store.get(session_id)

        with session.lock:
            session.touch()

            if 1 <= round_number <= session.current_round:
                logger.info(f"Session {session_id}: round {round_number} already produced, returning stored statements")
                return session.round_statements(round_number)

            if session.is_complete and round_number > session.current_round:
                logger.info(
                    f"Session {session_id}: debate complete after {session.current_round} rounds, "
                    f"returning final round for request {round_number}"
                )
                return session.round_statements(session.current_round)

            expected = session.current_round + 1
            if round_number != expected:
                raise RoundOutOfOrder(session_id, round_number, expected)

            self._status(
                f"Round {round_number}/{session.max_rounds} for {session.instrument_symbol}: "
                f"{len(session.analysts)} analysts speaking..."
            )
            t0 = time.time()
            today = self.validator.clock()
            if session.rng is None:
                session.rng = self.validator.session_rng(session.session_id)
            produced: list[Statement] = []

            for analyst in session.analysts:
                statement = self._run_analyst(session, analyst, round_number, today, produced)
                produced.append(statement)

                target = statement.target
                line = f"  {analyst.value}: score {statement.score}/5"
                if target:
                    line += f" | target {target.price:,.2f} by {target.date_label}"
                if statement.source != AdapterSource.PRIMARY:
                    line += f" | via {statement.source.value}"
                self._status(line)

            for statement in produced:
                session.history.append(statement)
                if statement.target is not None:
                    session.ledger.record(statement.analyst, statement.target)
            session.current_round = round_number
            session.touch()

            done = ", debate complete" if session.is_complete else ""
            self._status(f"Round {round_number} complete in {time.time() - t0:.1f}s{done}")
            return produced
