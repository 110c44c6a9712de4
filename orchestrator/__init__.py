from orchestrator.committee import DebateCommittee
from orchestrator.consensus import ConsensusEngine, summarize_round
from orchestrator.errors import (
    ConsensusNotReady,
    DebateError,
    ProtocolMisuse,
    ReferencePriceLocked,
    RoundOutOfOrder,
    SessionNotFound,
)
from orchestrator.ledger import TargetLedger
from orchestrator.registry import AdapterRegistry, build_fallback_registry, build_registry
from orchestrator.rounds import RoundOrchestrator
from orchestrator.session_store import DebateSession, SessionStore
from orchestrator.state import ConsensusResult, RoundScore, SessionStatus, Statement, Target
from orchestrator.validation import CorrectedOutput, ValidationEngine

__all__ = [
    "DebateCommittee",
    "ConsensusEngine",
    "summarize_round",
    "DebateError",
    "SessionNotFound",
    "ProtocolMisuse",
    "RoundOutOfOrder",
    "ConsensusNotReady",
    "ReferencePriceLocked",
    "TargetLedger",
    "AdapterRegistry",
    "build_registry",
    "build_fallback_registry",
    "RoundOrchestrator",
    "DebateSession",
    "SessionStore",
    "ConsensusResult",
    "RoundScore",
    "SessionStatus",
    "Statement",
    "Target",
    "CorrectedOutput",
    "ValidationEngine",
]
