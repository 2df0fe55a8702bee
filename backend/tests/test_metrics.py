"""Tests for metrics helpers."""
from __future__ import annotations

from typing import Any, Dict

from app.observability import metrics
from app.observability import tracing


class _DummyTrace:
    def __init__(self, metadata: Dict[str, Any]):
        self.metadata = metadata
        self.ended = False

    def end(self) -> None:
        self.ended = True


class _DummyClient:
    def __init__(self):
        self.traces: list[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        trace = _DummyTrace(metadata or {})
        self.traces.append(trace)
        return trace


def test_log_metric_closes_trace(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)

    metrics.log_metric("quests.refresh.updated", 42, metadata={"trigger": "manual"})

    assert dummy_client.traces, "Metric call should record a trace"
    assert dummy_client.traces[0].metadata["value"] == 42
    assert dummy_client.traces[0].metadata["trigger"] == "manual"
    assert dummy_client.traces[0].ended is True


def test_timed_emits_latency_even_on_failure(monkeypatch) -> None:
    recorded = []
    monkeypatch.setattr(metrics, "log_metric", lambda name, value, metadata=None: recorded.append((name, value, metadata)))

    with metrics.timed("habit.toggle", metadata={"habit_id": "h-1"}):
        pass
    try:
        with metrics.timed("ai.chat"):
            raise RuntimeError("gateway down")
    except RuntimeError:
        pass

    assert [name for name, _, _ in recorded] == ["habit.toggle.latency_ms", "ai.chat.latency_ms"]
    assert recorded[0][1] >= 0
    assert recorded[0][2] == {"habit_id": "h-1"}
