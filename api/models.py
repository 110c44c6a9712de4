"""
API request/response models for the FastAPI endpoint.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from orchestrator.state import ConsensusResult, RoundScore, Statement


class SessionRequest(BaseModel):
    """Request body for creating (or re-opening) a debate session."""

    session_id: str = Field(..., min_length=1, description="Caller-chosen session id")
    instrument_symbol: str = Field(..., min_length=1, description="Ticker or exchange code (e.g. 005930, NVDA)")
    instrument_name: str = Field(..., min_length=1, description="Display name of the instrument")
    reference_price: float = Field(..., gt=0, description="Current price; anchors every validation rule")
    sector: Optional[str] = Field(default=None, description="Optional sector hint for the analysts")


class SessionResponse(BaseModel):
    session_id: str
    instrument_symbol: str
    instrument_name: str
    sector: Optional[str] = None
    reference_price: float
    status: str
    current_round: int
    max_rounds: int
    analysts: list[str] = Field(default_factory=list)
    created_at: str


class RoundResponse(BaseModel):
    """Statements of one round plus its score summary."""

    session_id: str
    round_number: int
    statements: list[Statement]
    round_score: RoundScore
    is_complete: bool


class HistoryResponse(BaseModel):
    session_id: str
    current_round: int
    statements: list[Statement]


class ConsensusResponse(BaseModel):
    session_id: str
    consensus: ConsensusResult


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = ""
    active_sessions: int = 0
    max_rounds: int = 0
