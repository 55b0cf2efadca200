"""Tests for metrics and tracing helpers."""
from __future__ import annotations

from typing import Any, Dict

import pytest

from soonish.core.context import conversation_id_ctx_var, request_id_ctx_var
from soonish.observability import metrics
from soonish.observability import tracing


class _DummyTrace:
    def __init__(self, name: str, metadata: Dict[str, Any]):
        self.name = name
        self.metadata = metadata
        self.ended = False
        self.error_info = None

    def update(self, error_info=None, **kwargs) -> None:
        self.error_info = error_info

    def end(self) -> None:
        self.ended = True


class _DummyClient:
    def __init__(self):
        self.traces: list[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        trace = _DummyTrace(name, metadata or {})
        self.traces.append(trace)
        return trace


def test_log_metric_closes_trace(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)

    metrics.log_metric("plan.create.success", 1, metadata={"time_type": "period"})

    assert dummy_client.traces, "Metric call should record a trace"
    assert dummy_client.traces[0].name == "metric:plan.create.success"
    assert dummy_client.traces[0].metadata["value"] == 1
    assert dummy_client.traces[0].metadata["time_type"] == "period"
    assert dummy_client.traces[0].ended is True


def test_trace_attaches_request_and_conversation_ids(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)
    request_token = request_id_ctx_var.set("req-1")
    conversation_token = conversation_id_ctx_var.set("conv-1")

    try:
        with tracing.trace("chat.turn", metadata={"text_length": 5}):
            pass
    finally:
        request_id_ctx_var.reset(request_token)
        conversation_id_ctx_var.reset(conversation_token)

    metadata = dummy_client.traces[0].metadata
    assert metadata == {"text_length": 5, "request_id": "req-1", "conversation_id": "conv-1"}


def test_trace_records_errors_and_reraises(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)

    with pytest.raises(ValueError):
        with tracing.trace("plan.create"):
            raise ValueError("bad preset")

    assert dummy_client.traces[0].error_info == {"message": "bad preset"}
    assert dummy_client.traces[0].ended is True


def test_trace_is_a_no_op_without_a_client(monkeypatch) -> None:
    monkeypatch.setattr(tracing, "get_opik_client", lambda: None)

    with tracing.trace("plan.board") as opik_trace:
        assert opik_trace is None
