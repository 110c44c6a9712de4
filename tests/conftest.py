"""Shared fixtures: fixed clock, contexts and scripted model callables."""

from __future__ import annotations

import json
from datetime import date

import pytest

from agents.base import AgentContext, AgentFailure, AgentAdapter, AnalystIdentity, RawOutput

TODAY = date(2026, 1, 15)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def make_context():
    def _make(**overrides) -> AgentContext:
        fields = {
            "instrument_symbol": "005930",
            "instrument_name": "Samsung Electronics",
            "sector": "Semiconductors",
            "reference_price": 70000.0,
            "round_number": 1,
            "max_rounds": 4,
            "as_of": TODAY,
        }
        fields.update(overrides)
        return AgentContext(**fields)

    return _make


def model_reply(**fields) -> str:
    """A well-formed model response wrapped in prose and a code fence."""
    payload = {
        "content": "Memory pricing is turning and margins should follow.",
        "score": 4,
        "targetPrice": 84000,
        "targetDate": "December 2026",
        "priceRationale": "12x forward earnings",
        "risks": ["inventory build", "FX"],
        "sources": ["Q3 earnings call"],
    }
    payload.update(fields)
    return f"Here is my view.\n```json\n{json.dumps(payload)}\n```\n"


class ScriptedAdapter(AgentAdapter):
    """Returns queued RawOutputs (or raises queued exceptions); records contexts it saw."""

    name = "scripted"

    def __init__(self, identity: AnalystIdentity, outputs=None, error: Exception | None = None):
        super().__init__(identity)
        self.outputs = list(outputs or [])
        self.error = error
        self.contexts: list[AgentContext] = []

    def generate(self, context: AgentContext) -> RawOutput:
        self.contexts.append(context)
        if self.error is not None:
            raise self.error
        if self.outputs:
            return self.outputs.pop(0)
        return RawOutput(
            text=f"{self.identity.value} round {context.round_number}",
            score=4,
            target_price=context.reference_price * 1.1,
            target_date="December 2027",
        )


@pytest.fixture
def scripted_adapter():
    return ScriptedAdapter


@pytest.fixture
def failing_adapter():
    def _make(identity: AnalystIdentity, message: str = "upstream 503"):
        return ScriptedAdapter(identity, error=AgentFailure(identity, message))

    return _make
