from agents.balanced_analyst import BalancedAnalystAdapter
from agents.base import (
    ANALYST_ORDER,
    ANALYST_PROFILES,
    AgentAdapter,
    AgentContext,
    AgentFailure,
    AnalystIdentity,
    AnalystProfile,
    RawOutput,
    StatementSummary,
    TargetSummary,
    get_profile,
)
from agents.fallback import RuleBasedFallbackAdapter
from agents.growth_analyst import GrowthAnalystAdapter
from agents.llm_analyst import LLMAnalystAdapter
from agents.macro_risk_analyst import MacroRiskAnalystAdapter
from agents.resilient import AdapterResult, AdapterSource, AdapterTimeout, ResilientAdapter

__all__ = [
    "ANALYST_ORDER",
    "ANALYST_PROFILES",
    "AgentAdapter",
    "AgentContext",
    "AgentFailure",
    "AnalystIdentity",
    "AnalystProfile",
    "RawOutput",
    "StatementSummary",
    "TargetSummary",
    "get_profile",
    "LLMAnalystAdapter",
    "BalancedAnalystAdapter",
    "GrowthAnalystAdapter",
    "MacroRiskAnalystAdapter",
    "RuleBasedFallbackAdapter",
    "ResilientAdapter",
    "AdapterResult",
    "AdapterSource",
    "AdapterTimeout",
]
