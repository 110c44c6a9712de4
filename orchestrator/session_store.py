"""
In-memory session store for running debates.

One DebateSession per session id. Each session carries its own lock;
the round orchestrator holds it for the whole round so two concurrent
``run_round`` calls for the same id cannot both generate. Different
sessions share nothing mutable and run independently; each one also
carries its own random source for validation repairs.

There is no expiry timer. Sessions leave the store through ``evict()``
or an explicit ``evict_idle()`` sweep driven by the host application.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from agents.base import ANALYST_ORDER, AnalystIdentity
from orchestrator.errors import ReferencePriceLocked, SessionNotFound
from orchestrator.ledger import TargetLedger
from orchestrator.state import SessionStatus, Statement

logger = logging.getLogger(__name__)


@dataclass
class DebateSession:
    """Mutable state of one debate, owned exclusively by its session id."""

    session_id: str
    instrument_symbol: str
    instrument_name: str
    reference_price: float
    max_rounds: int
    sector: Optional[str] = None
    analysts: tuple[AnalystIdentity, ...] = ANALYST_ORDER
    history: list[Statement] = field(default_factory=list)
    ledger: TargetLedger = field(default_factory=TargetLedger)
    current_round: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_activity: float = field(default_factory=time.monotonic)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)
    rng: Optional[random.Random] = field(default=None, repr=False, compare=False)

    @property
    def status(self) -> SessionStatus:
        if self.current_round == 0:
            return SessionStatus.CREATED
        if self.current_round >= self.max_rounds:
            return SessionStatus.COMPLETE
        return SessionStatus.IN_PROGRESS

    @property
    def is_complete(self) -> bool:
        return self.status == SessionStatus.COMPLETE

    def touch(self) -> None:
        self.last_activity = time.monotonic()

    def set_reference_price(self, price: float) -> None:
        if price <= 0:
            raise ValueError(f"reference price must be positive, got {price}")
        with self.lock:
            if self.current_round > 0:
                raise ReferencePriceLocked(self.session_id)
            self.reference_price = price

    def round_statements(self, round_number: int) -> list[Statement]:
        return [s for s in self.history if s.round_number == round_number]

    def to_dict(self) -> dict:
        """Serialize for API consumption."""
        return {
            "session_id": self.session_id,
            "instrument_symbol": self.instrument_symbol,
            "instrument_name": self.instrument_name,
            "sector": self.sector,
            "reference_price": self.reference_price,
            "status": self.status.value,
            "current_round": self.current_round,
            "max_rounds": self.max_rounds,
            "analysts": [a.value for a in self.analysts],
            "created_at": self.created_at.isoformat(),
        }


class SessionStore:
    """Registry of live sessions keyed by id."""

    def __init__(self, max_rounds: int = 4, analysts: tuple[AnalystIdentity, ...] = ANALYST_ORDER):
        if max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")
        self.max_rounds = max_rounds
        self.analysts = tuple(AnalystIdentity(a) for a in analysts)
        self._sessions: dict[str, DebateSession] = {}
        self._lock = threading.Lock()

    def create_or_get(
        self,
        session_id: str,
        instrument_symbol: str,
        instrument_name: str,
        reference_price: float,
        sector: Optional[str] = None,
    ) -> DebateSession:
        """
        Return the session for ``session_id``, creating it on first use.

        For a session that has not run a round yet, a new reference price
        replaces the old one. Once rounds have run the price is fixed; a
        different value is ignored with a warning.
        """
        if not session_id:
            raise ValueError("session_id is required")
        if reference_price <= 0:
            raise ValueError(f"reference price must be positive, got {reference_price}")

        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = DebateSession(
                    session_id=session_id,
                    instrument_symbol=instrument_symbol,
                    instrument_name=instrument_name,
                    reference_price=reference_price,
                    max_rounds=self.max_rounds,
                    sector=sector,
                    analysts=self.analysts,
                    ledger=TargetLedger(self.analysts),
                )
                self._sessions[session_id] = session
                logger.info(
                    f"Created debate session {session_id} for {instrument_symbol} "
                    f"@ {reference_price:,.2f} ({self.max_rounds} rounds)"
                )
                return session

        with session.lock:
            if session.reference_price != reference_price:
                if session.current_round == 0:
                    session.set_reference_price(reference_price)
                    logger.info(f"Session {session_id}: reference price updated to {reference_price:,.2f}")
                else:
                    logger.warning(
                        f"Session {session_id}: ignoring reference price {reference_price:,.2f}, "
                        f"debate already running at {session.reference_price:,.2f}"
                    )
            session.touch()
        return session

    def get(self, session_id: str) -> DebateSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def evict(self, session_id: str) -> bool:
        """Remove a session. Returns False if it was not present."""
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.info(f"Evicted debate session {session_id}")
        return removed is not None

    def evict_idle(self, max_idle_seconds: float, now: Optional[float] = None) -> list[str]:
        """Evict sessions idle for longer than ``max_idle_seconds``. Returns evicted ids."""
        now = time.monotonic() if now is None else now
        with self._lock:
            stale = [
                sid for sid, s in self._sessions.items()
                if now - s.last_activity > max_idle_seconds
            ]
            for sid in stale:
                del self._sessions[sid]
        if stale:
            logger.info(f"Evicted {len(stale)} idle debate session(s)")
        return stale

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def session_ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions
