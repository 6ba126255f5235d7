"""bt sql: run BTQL queries one-shot or in an interactive terminal."""

from bt.sql.dispatcher import DispatcherBusyError, DispatchResult, QueryDispatcher
from bt.sql.query import execute_query
from bt.sql.response import FreshnessState, RealtimeState, SqlResponse
from bt.sql.shell import SessionState, SqlShell, run_interactive
from bt.sql.table import NO_ROWS, format_response, render_table

__all__ = [
    # Response model
    "SqlResponse",
    "FreshnessState",
    "RealtimeState",
    # Rendering
    "NO_ROWS",
    "render_table",
    "format_response",
    # Dispatch
    "execute_query",
    "QueryDispatcher",
    "DispatchResult",
    "DispatcherBusyError",
    # Interactive shell
    "SessionState",
    "SqlShell",
    "run_interactive",
]
