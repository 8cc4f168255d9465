"""Tests for the bounded retry around ledger reads."""

import pytest
from supplychain.ledger import retry
from supplychain.ledger.retry import with_retries
from supplychain.shipment.errors import Conflict, GatewayTimeout, GatewayUnavailable


class FlakyCall:
    def __init__(self, *failures, result="ok"):
        self.failures = list(failures)
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.result


class RecordingLogger:
    def __init__(self):
        self.events = []

    def warning(self, event, **kw):
        self.events.append((event, kw))


@pytest.fixture()
def retry_log(monkeypatch):
    log = RecordingLogger()
    monkeypatch.setattr(retry, "logger", log)
    return log


def test_transient_failures_are_retried(retry_log):
    call = FlakyCall(GatewayTimeout("slow"), GatewayUnavailable("down"))
    assert with_retries(call, 2, "read_shipment", shipment_id="SHIP-1") == "ok"
    assert call.calls == 3
    assert [kw["attempt"] for _, kw in retry_log.events] == [1, 2]
    assert retry_log.events[0][1]["error"] == "GatewayTimeout"
    assert retry_log.events[0][1]["shipment_id"] == "SHIP-1"


def test_last_failure_is_reraised_when_retries_run_out(retry_log):
    call = FlakyCall(GatewayUnavailable("a"), GatewayUnavailable("b"), GatewayUnavailable("c"))
    with pytest.raises(GatewayUnavailable) as exc:
        with_retries(call, 1, "read_shipment")
    assert exc.value.message == "b"
    assert call.calls == 2


def test_non_retryable_errors_pass_straight_through(retry_log):
    call = FlakyCall(Conflict("lost the race"))
    with pytest.raises(Conflict):
        with_retries(call, 5, "read_shipment")
    assert call.calls == 1
    assert retry_log.events == []


def test_zero_retries_means_one_attempt(retry_log):
    call = FlakyCall(GatewayTimeout("slow"))
    with pytest.raises(GatewayTimeout):
        with_retries(call, 0, "history")
    assert call.calls == 1
