"""
Error taxonomy for the debate core.

AgentFailure (agents.base) never leaves the round: the resilient adapter
absorbs it. Everything here is surfaced to the caller and is fatal to
that call only, never to the session.
"""

from __future__ import annotations


class DebateError(Exception):
    """Base class for caller-facing debate errors."""


class SessionNotFound(DebateError, KeyError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Unknown debate session: {session_id}")

    def __str__(self) -> str:
        return self.args[0]


class ProtocolMisuse(DebateError):
    """A call arrived in a state that does not permit it."""


class RoundOutOfOrder(ProtocolMisuse):
    def __init__(self, session_id: str, requested: int, expected: int):
        self.session_id = session_id
        self.requested = requested
        self.expected = expected
        super().__init__(
            f"Session {session_id}: round {requested} requested, next round is {expected}"
        )


class ConsensusNotReady(ProtocolMisuse):
    """Round incomplete: the ledger lacks a target for at least one analyst."""

    def __init__(self, session_id: str, missing: list[str]):
        self.session_id = session_id
        self.missing = missing
        super().__init__(
            f"Session {session_id}: round incomplete, no target yet for {', '.join(missing)}"
        )


class ReferencePriceLocked(ProtocolMisuse):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id}: reference price cannot change after round 1 has run")
