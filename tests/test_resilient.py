"""Tests for agents.resilient — primary → secondary → fallback chain with timeouts."""

from __future__ import annotations

import threading
import time

import pytest

from agents.base import AnalystIdentity, RawOutput
from agents.fallback import RuleBasedFallbackAdapter
from agents.resilient import AdapterSource, AdapterTimeout, ResilientAdapter, call_with_timeout
from conftest import ScriptedAdapter

GROWTH = AnalystIdentity.GROWTH


class SlowAdapter(ScriptedAdapter):
    def __init__(self, identity, delay: float):
        super().__init__(identity)
        self.delay = delay
        self.release = threading.Event()

    def generate(self, context):
        self.release.wait(self.delay)
        return super().generate(context)


class TestCallWithTimeout:
    def test_returns_result(self, make_context):
        assert call_with_timeout(lambda ctx: ctx.round_number, make_context(), 1.0) == 1

    def test_raises_on_timeout_without_waiting_for_worker(self, make_context):
        slow = SlowAdapter(GROWTH, delay=5.0)
        t0 = time.monotonic()
        with pytest.raises(AdapterTimeout, match="timed out"):
            call_with_timeout(slow.generate, make_context(), 0.05, GROWTH)
        assert time.monotonic() - t0 < 2.0
        slow.release.set()

    def test_propagates_adapter_errors(self, make_context):
        def boom(ctx):
            raise RuntimeError("bad gateway")

        with pytest.raises(RuntimeError, match="bad gateway"):
            call_with_timeout(boom, make_context(), 1.0)


class TestResilientAdapter:
    def test_primary_success(self, make_context):
        adapter = ResilientAdapter(
            GROWTH,
            fallback=RuleBasedFallbackAdapter(GROWTH),
            primary=ScriptedAdapter(GROWTH),
        )
        result = adapter.generate(make_context())
        assert result.source == AdapterSource.PRIMARY
        assert result.failures == []
        assert not result.used_fallback

    def test_secondary_after_primary_failure(self, make_context, failing_adapter):
        adapter = ResilientAdapter(
            GROWTH,
            fallback=RuleBasedFallbackAdapter(GROWTH),
            primary=failing_adapter(GROWTH),
            secondary=ScriptedAdapter(GROWTH),
        )
        result = adapter.generate(make_context())
        assert result.source == AdapterSource.SECONDARY
        assert len(result.failures) == 1
        assert result.failures[0].startswith("primary:")

    def test_fallback_after_all_models_fail(self, make_context, failing_adapter):
        adapter = ResilientAdapter(
            GROWTH,
            fallback=RuleBasedFallbackAdapter(GROWTH),
            primary=failing_adapter(GROWTH),
            secondary=failing_adapter(GROWTH, "quota exceeded"),
        )
        result = adapter.generate(make_context())
        assert result.used_fallback
        assert len(result.failures) == 2
        assert isinstance(result.output, RawOutput)

    def test_timeout_goes_to_fallback(self, make_context):
        slow = SlowAdapter(GROWTH, delay=5.0)
        adapter = ResilientAdapter(
            GROWTH,
            fallback=RuleBasedFallbackAdapter(GROWTH),
            primary=slow,
            timeout_seconds=0.05,
        )
        result = adapter.generate(make_context())
        slow.release.set()
        assert result.used_fallback
        assert "timed out" in result.failures[0]

    def test_fallback_only(self, make_context):
        adapter = ResilientAdapter(GROWTH, fallback=RuleBasedFallbackAdapter(GROWTH))
        result = adapter.generate(make_context())
        assert result.used_fallback
        assert result.failures == []

    def test_non_raw_output_treated_as_failure(self, make_context):
        class WrongType(ScriptedAdapter):
            def generate(self, context):
                return {"text": "dict, not RawOutput"}

        adapter = ResilientAdapter(GROWTH, fallback=RuleBasedFallbackAdapter(GROWTH), primary=WrongType(GROWTH))
        assert adapter.generate(make_context()).used_fallback

    def test_rejects_adapter_of_other_identity(self):
        with pytest.raises(ValueError, match="does not belong"):
            ResilientAdapter(
                GROWTH,
                fallback=RuleBasedFallbackAdapter(GROWTH),
                primary=ScriptedAdapter(AnalystIdentity.BALANCED),
            )

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValueError):
            ResilientAdapter(GROWTH, fallback=RuleBasedFallbackAdapter(GROWTH), timeout_seconds=0)

    def test_rejects_non_positive_worker_count(self):
        with pytest.raises(ValueError, match="max_workers"):
            ResilientAdapter(GROWTH, fallback=RuleBasedFallbackAdapter(GROWTH), max_workers=0)


class HangingAdapter(ScriptedAdapter):
    """Blocks until released; counts how many calls actually started."""

    def __init__(self, identity):
        super().__init__(identity)
        self.release = threading.Event()
        self.started = 0

    def generate(self, context):
        self.started += 1
        self.release.wait(10.0)
        return super().generate(context)


class TestWorkerPool:
    def test_hung_provider_holds_at_most_max_workers_threads(self, make_context):
        hanging = HangingAdapter(GROWTH)
        adapter = ResilientAdapter(
            GROWTH,
            fallback=RuleBasedFallbackAdapter(GROWTH),
            primary=hanging,
            timeout_seconds=0.05,
            max_workers=1,
        )
        try:
            results = [adapter.generate(make_context(round_number=n)) for n in range(1, 5)]
            assert all(r.used_fallback for r in results)
            assert hanging.started <= 1
            assert adapter.busy_workers <= 1
        finally:
            hanging.release.set()

    def test_busy_workers_drop_after_release(self, make_context):
        hanging = HangingAdapter(GROWTH)
        adapter = ResilientAdapter(
            GROWTH,
            fallback=RuleBasedFallbackAdapter(GROWTH),
            primary=hanging,
            timeout_seconds=0.05,
        )
        adapter.generate(make_context())
        hanging.release.set()
        deadline = time.monotonic() + 2.0
        while adapter.busy_workers and time.monotonic() < deadline:
            time.sleep(0.01)
        assert adapter.busy_workers == 0

    def test_call_with_timeout_reuses_given_executor(self, make_context):
        import concurrent.futures

        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            assert call_with_timeout(lambda ctx: ctx.round_number, make_context(round_number=2), 1.0, executor=pool) == 2
            assert call_with_timeout(lambda ctx: ctx.round_number, make_context(round_number=3), 1.0, executor=pool) == 3
