"""Tests for bt.sql.dispatcher.QueryDispatcher."""

from __future__ import annotations

import asyncio
import threading

import pytest

from bt.http import TransportError
from bt.sql.dispatcher import DispatcherBusyError, QueryDispatcher
from bt.sql.response import SqlResponse

RESULT_TIMEOUT = 5.0


async def answer(query: str) -> SqlResponse:
    return SqlResponse.model_validate({"data": [{"q": query}]})


async def fail_transport(query: str) -> SqlResponse:
    raise TransportError("request failed (500): boom")


async def fail_unexpectedly(query: str) -> SqlResponse:
    raise ValueError("bad payload")


async def hang(query: str) -> SqlResponse:
    await asyncio.Event().wait()
    raise AssertionError("unreachable")


@pytest.fixture
def make_dispatcher():
    dispatchers: list[QueryDispatcher] = []

    def factory(execute) -> QueryDispatcher:
        dispatcher = QueryDispatcher(execute)
        dispatchers.append(dispatcher)
        return dispatcher

    yield factory
    for dispatcher in dispatchers:
        dispatcher.close()


class TestDispatchOutcomes:
    """Outcomes are delivered as plain data."""

    def test_success(self, make_dispatcher) -> None:
        dispatcher = make_dispatcher(answer)
        result = dispatcher.execute("select 1")
        assert result.ok
        assert result.query == "select 1"
        assert result.response is not None
        assert result.response.rows == [{"q": "select 1"}]
        assert result.error is None
        assert result.elapsed >= 0

    def test_transport_error_becomes_message(self, make_dispatcher) -> None:
        dispatcher = make_dispatcher(fail_transport)
        result = dispatcher.execute("select 1")
        assert not result.ok
        assert result.error == "request failed (500): boom"
        assert not result.cancelled

    def test_unexpected_error_is_captured(self, make_dispatcher) -> None:
        dispatcher = make_dispatcher(fail_unexpectedly)
        result = dispatcher.execute("select 1")
        assert result.error == "ValueError: bad payload"

    def test_queries_run_one_after_another(self, make_dispatcher) -> None:
        dispatcher = make_dispatcher(answer)
        first = dispatcher.execute("a")
        second = dispatcher.execute("b")
        assert first.response.rows == [{"q": "a"}]
        assert second.response.rows == [{"q": "b"}]


class TestNonBlockingApi:
    """submit / poll / wait / busy."""

    def test_poll_without_submission(self, make_dispatcher) -> None:
        dispatcher = make_dispatcher(answer)
        assert dispatcher.poll() is None
        assert not dispatcher.busy

    def test_poll_while_running_then_collect(self, make_dispatcher) -> None:
        release = threading.Event()

        async def gated(query: str) -> SqlResponse:
            while not release.is_set():
                await asyncio.sleep(0.005)
            return await answer(query)

        dispatcher = make_dispatcher(gated)
        dispatcher.submit("q")
        assert dispatcher.busy
        assert dispatcher.poll() is None
        assert dispatcher.wait(0.05) is None

        release.set()
        result = dispatcher.wait(RESULT_TIMEOUT)
        assert result is not None and result.ok
        assert not dispatcher.busy

    def test_second_submission_is_rejected(self, make_dispatcher) -> None:
        dispatcher = make_dispatcher(hang)
        dispatcher.submit("first")
        with pytest.raises(DispatcherBusyError):
            dispatcher.submit("second")


class TestCancellation:
    """cancel() delivers a cancelled outcome."""

    def test_cancel_running_query(self, make_dispatcher) -> None:
        dispatcher = make_dispatcher(hang)
        dispatcher.submit("slow")
        dispatcher.cancel()
        result = dispatcher.wait(RESULT_TIMEOUT)
        assert result is not None
        assert result.cancelled
        assert result.query == "slow"
        assert result.response is None and result.error is None
        assert not dispatcher.busy

    def test_cancel_when_idle_is_noop(self, make_dispatcher) -> None:
        dispatcher = make_dispatcher(answer)
        dispatcher.cancel()
        assert dispatcher.execute("q").ok

    def test_accepts_queries_after_cancel(self, make_dispatcher) -> None:
        calls: list[str] = []

        async def first_hangs(query: str) -> SqlResponse:
            calls.append(query)
            if len(calls) == 1:
                await asyncio.Event().wait()
            return await answer(query)

        dispatcher = make_dispatcher(first_hangs)
        dispatcher.submit("a")
        dispatcher.cancel()
        assert dispatcher.wait(RESULT_TIMEOUT).cancelled
        assert dispatcher.execute("b").ok


class TestClose:
    def test_submit_after_close_raises(self) -> None:
        dispatcher = QueryDispatcher(answer)
        dispatcher.close()
        with pytest.raises(RuntimeError):
            dispatcher.submit("q")

    def test_close_cancels_pending_query(self) -> None:
        with QueryDispatcher(hang) as dispatcher:
            dispatcher.submit("q")
        assert dispatcher.wait(RESULT_TIMEOUT).cancelled

    def test_close_is_idempotent(self) -> None:
        dispatcher = QueryDispatcher(answer)
        dispatcher.close()
        dispatcher.close()
