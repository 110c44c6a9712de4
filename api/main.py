"""
FastAPI application for the Analyst Debate Committee.

Endpoints:
    GET    /health                          — Health check with session stats
    POST   /sessions                        — Create or re-open a debate session
    POST   /sessions/{id}/rounds/{n}        — Run (or replay) round n
    GET    /sessions/{id}/history           — All statements so far
    GET    /sessions/{id}/consensus         — Consensus from the latest targets
    DELETE /sessions/{id}                   — Evict a session

Usage:
    uvicorn api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from api.models import (
    ConsensusResponse,
    HealthResponse,
    HistoryResponse,
    RoundResponse,
    SessionRequest,
    SessionResponse,
)
from config.settings import settings
from orchestrator.committee import DebateCommittee
from orchestrator.consensus import summarize_round
from orchestrator.errors import ProtocolMisuse, SessionNotFound

logging.basicConfig(level=getattr(logging, settings.log_level))
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="Analyst Debate Committee API",
    description="Multi-round analyst debates over an instrument, reduced to a consensus price target.",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_committee: DebateCommittee | None = None


def get_committee() -> DebateCommittee:
    """Process-wide committee, built from settings on first use."""
    global _committee
    if _committee is None:
        _committee = DebateCommittee()
    return _committee


def _not_found(e: SessionNotFound) -> HTTPException:
    return HTTPException(404, str(e))


@app.get("/health", response_model=HealthResponse)
def health(committee: DebateCommittee = Depends(get_committee)):
    """Health check with session stats."""
    return HealthResponse(
        status="ok",
        version=VERSION,
        active_sessions=len(committee.store),
        max_rounds=committee.max_rounds,
    )


@app.post("/sessions", response_model=SessionResponse)
def create_session(req: SessionRequest, committee: DebateCommittee = Depends(get_committee)):
    """Create a session, or return the existing one with the same id."""
    try:
        session = committee.create_or_get_session(
            req.session_id.strip(),
            req.instrument_symbol.strip(),
            req.instrument_name.strip(),
            req.reference_price,
            sector=req.sector,
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
    return SessionResponse(**session.to_dict())


@app.post("/sessions/{session_id}/rounds/{round_number}", response_model=RoundResponse)
def run_round(session_id: str, round_number: int, committee: DebateCommittee = Depends(get_committee)):
    """
    Run round ``round_number``. Already-produced rounds are returned as stored;
    skipping ahead is rejected with 409.
    """
    try:
        statements = committee.run_round(session_id, round_number)
        session = committee.get_session(session_id)
    except SessionNotFound as e:
        raise _not_found(e)
    except ProtocolMisuse as e:
        raise HTTPException(409, str(e))

    return RoundResponse(
        session_id=session_id,
        round_number=statements[0].round_number,
        statements=statements,
        round_score=summarize_round(statements),
        is_complete=session.is_complete,
    )


@app.get("/sessions/{session_id}/history", response_model=HistoryResponse)
def get_history(session_id: str, committee: DebateCommittee = Depends(get_committee)):
    try:
        statements = committee.get_history(session_id)
        session = committee.get_session(session_id)
    except SessionNotFound as e:
        raise _not_found(e)
    return HistoryResponse(session_id=session_id, current_round=session.current_round, statements=statements)


@app.get("/sessions/{session_id}/consensus", response_model=ConsensusResponse)
def get_consensus(session_id: str, committee: DebateCommittee = Depends(get_committee)):
    try:
        result = committee.get_consensus(session_id)
    except SessionNotFound as e:
        raise _not_found(e)
    except ProtocolMisuse as e:
        raise HTTPException(409, str(e))
    return ConsensusResponse(session_id=session_id, consensus=result)


@app.delete("/sessions/{session_id}")
def evict_session(session_id: str, committee: DebateCommittee = Depends(get_committee)):
    if not committee.evict(session_id):
        raise HTTPException(404, f"Unknown debate session: {session_id}")
    return {"evicted": session_id}
