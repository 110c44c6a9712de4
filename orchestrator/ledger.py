"""
TargetLedger — latest validated Target per analyst for one session.

Written by the round orchestrator after each statement, read by the next
context build (own prior target) and by the consensus engine.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from agents.base import ANALYST_ORDER, AnalystIdentity
from orchestrator.state import Target

logger = logging.getLogger(__name__)


class TargetLedger:
    """At most one entry per analyst; a newer target replaces the older one."""

    def __init__(self, order: Iterable[AnalystIdentity] = ANALYST_ORDER):
        self._order = tuple(AnalystIdentity(a) for a in order)
        self._targets: dict[AnalystIdentity, Target] = {}

    def record(self, analyst: AnalystIdentity, target: Target) -> Target | None:
        """Store ``target`` as the analyst's latest; return the superseded one, if any."""
        analyst = AnalystIdentity(analyst)
        previous = self._targets.get(analyst)
        self._targets[analyst] = target
        if previous is not None and previous.price != target.price:
            logger.debug(f"[{analyst.value}] target revised {previous.price:,.2f} -> {target.price:,.2f}")
        return previous

    def get(self, analyst: AnalystIdentity) -> Target | None:
        return self._targets.get(AnalystIdentity(analyst))

    def missing(self, analysts: Iterable[AnalystIdentity] | None = None) -> list[AnalystIdentity]:
        wanted = self._order if analysts is None else tuple(analysts)
        return [a for a in wanted if a not in self._targets]

    def is_complete(self, analysts: Iterable[AnalystIdentity] | None = None) -> bool:
        return not self.missing(analysts)

    def items(self) -> list[tuple[AnalystIdentity, Target]]:
        """Entries in configured analyst order."""
        return [(a, self._targets[a]) for a in self._order if a in self._targets]

    def snapshot(self) -> dict[AnalystIdentity, Target]:
        return dict(self.items())

    def __len__(self) -> int:
        return len(self._targets)

    def __contains__(self, analyst: object) -> bool:
        return analyst in self._targets

    def __iter__(self) -> Iterator[AnalystIdentity]:
        return iter(a for a, _ in self.items())
