"""Query dispatcher: runs one query at a time on a background event loop.

The interactive shell is a synchronous polling loop. Queries are async HTTP
calls. The dispatcher owns a worker thread running its own asyncio loop; the
shell submits a query, keeps polling for input, and picks the outcome up from
a queue once the call resolves. Outcomes are plain data: failures never
escape as exceptions.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import queue
import threading
import time
from dataclasses import dataclass
from functools import partial
from typing import Awaitable, Callable

from bt.http import TransportError
from bt.sql.response import SqlResponse

logger = logging.getLogger(__name__)

QueryFn = Callable[[str], Awaitable[SqlResponse]]


class DispatcherBusyError(RuntimeError):
    """A query was submitted while another one is outstanding."""


@dataclass
class DispatchResult:
    query: str
    response: SqlResponse | None = None
    error: str | None = None
    cancelled: bool = False
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.response is not None


class QueryDispatcher:
    """Execute queries on a worker loop, at most one outstanding at a time.

    Example::

        with QueryDispatcher(partial(execute_query, client)) as dispatcher:
            dispatcher.submit("select 1")
            while (result := dispatcher.poll()) is None:
                ...  # keep the UI alive
    """

    def __init__(self, execute: QueryFn) -> None:
        self._execute = execute
        self._outcomes: queue.Queue[DispatchResult] = queue.Queue()
        self._pending: concurrent.futures.Future[SqlResponse] | None = None
        self._closed = False

        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, name="bt-query-dispatcher", daemon=True
        )
        self._thread.start()

    def __enter__(self) -> QueryDispatcher:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- worker -------------------------------------------------------------

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    async def _run(self, query: str) -> SqlResponse:
        return await self._execute(query)

    def _on_done(
        self,
        query: str,
        started: float,
        future: concurrent.futures.Future[SqlResponse],
    ) -> None:
        # Runs on whichever thread resolved or cancelled the future.
        result = DispatchResult(query=query, elapsed=time.monotonic() - started)
        if future.cancelled():
            result.cancelled = True
        else:
            error = future.exception()
            if error is None:
                result.response = future.result()
            elif isinstance(error, TransportError):
                result.error = str(error)
            else:
                logger.error("Query failed unexpectedly", exc_info=error)
                result.error = f"{type(error).__name__}: {error}"
        self._outcomes.put(result)

    # -- public API ---------------------------------------------------------

    @property
    def busy(self) -> bool:
        """True from :meth:`submit` until its result has been collected."""
        return self._pending is not None

    def submit(self, query: str) -> None:
        """Start running *query* in the background."""
        if self._closed:
            raise RuntimeError("dispatcher is closed")
        if self._pending is not None:
            raise DispatcherBusyError("a query is already running")
        logger.debug("dispatching query: %s", query)
        future = asyncio.run_coroutine_threadsafe(self._run(query), self._loop)
        self._pending = future
        future.add_done_callback(partial(self._on_done, query, time.monotonic()))

    def poll(self) -> DispatchResult | None:
        """Return the outcome of the outstanding query if it has resolved."""
        return self.wait(0)

    def wait(self, timeout: float | None = None) -> DispatchResult | None:
        """Block up to *timeout* seconds (forever if ``None``) for the outcome."""
        if self._pending is None:
            return None
        try:
            if timeout == 0:
                result = self._outcomes.get_nowait()
            else:
                result = self._outcomes.get(timeout=timeout)
        except queue.Empty:
            return None
        self._pending = None
        return result

    def execute(self, query: str) -> DispatchResult:
        """Run *query* and block until it resolves."""
        self.submit(query)
        result = self.wait()
        assert result is not None
        return result

    def cancel(self) -> None:
        """Cancel the outstanding query; a cancelled result will be delivered."""
        if self._pending is not None:
            self._pending.cancel()

    def close(self) -> None:
        """Cancel any outstanding query and stop the worker thread."""
        if self._closed:
            return
        self._closed = True
        self.cancel()
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)
        if not self._thread.is_alive():
            self._loop.close()
