"""
Primary-then-fallback combinator.

Wraps any AgentAdapter so that a single analyst can never stall or abort
a round:

    primary model  ──fail/timeout──►  secondary model  ──fail/timeout──►  rule-based fallback

Primary and secondary calls run on the adapter's own worker pool,
bounded by ``timeout_seconds``. On timeout the call is abandoned rather
than joined, so a hung upstream call cannot block the round. The pool
has ``max_workers`` threads; once they are all held by hung calls, new
calls wait in the queue, time out and are cancelled before they start.
The fallback runs inline; it makes no external call.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, TypeVar

from agents.base import AgentAdapter, AgentContext, AgentFailure, AnalystIdentity, RawOutput

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AdapterSource(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    FALLBACK = "fallback"


class AdapterTimeout(AgentFailure):
    """Raised when an adapter call exceeds its time budget."""


@dataclass
class AdapterResult:
    """Raw output plus which tier produced it."""

    output: RawOutput
    source: AdapterSource
    failures: list[str] = field(default_factory=list)

    @property
    def used_fallback(self) -> bool:
        return self.source == AdapterSource.FALLBACK


def call_with_timeout(
    fn: Callable[[AgentContext], T],
    context: AgentContext,
    timeout_seconds: float,
    identity: AnalystIdentity | None = None,
    executor: Optional[concurrent.futures.Executor] = None,
) -> T:
    """
    Run ``fn(context)`` on a worker thread; raise AdapterTimeout past the budget.

    Without ``executor`` a one-off single-thread pool is used and shut
    down without waiting.
    """
    pool = executor if executor is not None else concurrent.futures.ThreadPoolExecutor(
        max_workers=1, thread_name_prefix="analyst-call"
    )
    future = pool.submit(fn, context)
    try:
        return future.result(timeout=timeout_seconds)
    except concurrent.futures.TimeoutError:
        future.cancel()
        raise AdapterTimeout(identity, f"call timed out after {timeout_seconds:g}s") from None
    finally:
        if executor is None:
            pool.shutdown(wait=False, cancel_futures=True)


class ResilientAdapter:
    """
    Uniform failure policy for one analyst identity.

    ``primary`` may be None (no model configured); the chain then starts
    at the secondary, or goes straight to the fallback.
    """

    def __init__(
        self,
        identity: AnalystIdentity,
        fallback: AgentAdapter,
        primary: Optional[AgentAdapter] = None,
        secondary: Optional[AgentAdapter] = None,
        timeout_seconds: float = 60.0,
        max_workers: int = 2,
    ):
        self.identity = AnalystIdentity(identity)
        for adapter in (primary, secondary, fallback):
            if adapter is not None and adapter.identity != self.identity:
                raise ValueError(
                    f"{adapter!r} does not belong to analyst {self.identity.value}"
                )
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.primary = primary
        self.secondary = secondary
        self.fallback = fallback
        self.timeout_seconds = timeout_seconds
        self.max_workers = max_workers
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=f"analyst-{self.identity.value}"
        )
        self._busy = 0
        self._busy_lock = threading.Lock()

    @property
    def busy_workers(self) -> int:
        """Pool threads currently inside a model call, abandoned calls included."""
        with self._busy_lock:
            return self._busy

    def _tracked(self, fn: Callable[[AgentContext], T]) -> Callable[[AgentContext], T]:
        def run(context: AgentContext) -> T:
            with self._busy_lock:
                self._busy += 1
            try:
                return fn(context)
            finally:
                with self._busy_lock:
                    self._busy -= 1

        return run

    def _call(self, adapter: AgentAdapter, context: AgentContext) -> RawOutput:
        try:
            return call_with_timeout(
                self._tracked(adapter.generate),
                context,
                self.timeout_seconds,
                self.identity,
                executor=self._executor,
            )
        except AdapterTimeout:
            logger.warning(
                f"[{self.identity.value}] call abandoned; {self.busy_workers}/{self.max_workers} workers busy"
            )
            raise

    def generate(self, context: AgentContext) -> AdapterResult:
        failures: list[str] = []

        for source, adapter in ((AdapterSource.PRIMARY, self.primary), (AdapterSource.SECONDARY, self.secondary)):
            if adapter is None:
                continue
            try:
                output = self._call(adapter, context)
                if not isinstance(output, RawOutput):
                    raise AgentFailure(self.identity, f"adapter returned {type(output).__name__}, not RawOutput")
                return AdapterResult(output=output, source=source, failures=failures)
            except Exception as e:
                logger.warning(
                    f"[{self.identity.value}] {source.value} adapter failed in round "
                    f"{context.round_number}: {e}"
                )
                failures.append(f"{source.value}: {e}")

        if failures:
            logger.info(f"[{self.identity.value}] using rule-based fallback for round {context.round_number}")
        output = self.fallback.generate(context)
        return AdapterResult(output=output, source=AdapterSource.FALLBACK, failures=failures)
