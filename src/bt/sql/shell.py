"""Interactive SQL shell: the event loop behind ``bt sql`` without a query.

The shell polls the terminal for input with a timeout, feeds complete key
sequences to the line editor, hands submitted queries to the
:class:`~bt.sql.dispatcher.QueryDispatcher`, and redraws the screen. While a
query runs the loop keeps polling, so the status spinner animates and the
query can be cancelled.

Screen layout, top to bottom: a bordered results pane, a three-row bordered
input box, and a one-row status line.
"""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass
from typing import Callable, Literal

from bt.sql.dispatcher import DispatchResult, QueryDispatcher
from bt.sql.table import format_response
from bt.tui.keys import is_printable_input, parse_key
from bt.tui.line_editor import LineEditor
from bt.tui.spinner import FRAMES, SPINNER_INTERVAL
from bt.tui.stdin_buffer import StdinBuffer
from bt.tui.terminal import ProcessTerminal, Terminal
from bt.tui.utils import display_width, pad_to_width, truncate_to_width, wrap_text

logger = logging.getLogger(__name__)

ShellMode = Literal["idle", "running", "terminating"]

IDLE_STATUS = "Enter SQL and press Enter. Esc or Ctrl+D to exit."
RUNNING_STATUS = "Running query..."
RUNNING_HINT = "Esc to cancel, input paused"

POLL_INTERVAL = 0.2

INPUT_BOX_HEIGHT = 3
STATUS_HEIGHT = 1
MIN_RESULTS_HEIGHT = 3

_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_CLEAR_SCREEN = "\x1b[2J"
_MOVE_TO_FMT = "\x1b[{};{}H"

_EDITOR_ACTIONS: dict[str, Callable[[LineEditor], None]] = {
    "backspace": LineEditor.backspace,
    "delete": LineEditor.delete,
    "left": LineEditor.move_left,
    "right": LineEditor.move_right,
    "home": LineEditor.move_home,
    "ctrl+a": LineEditor.move_home,
    "end": LineEditor.move_end,
    "ctrl+e": LineEditor.move_end,
    "up": LineEditor.history_prev,
    "down": LineEditor.history_next,
}


@dataclass
class SessionState:
    output: str = ""
    status: str = IDLE_STATUS
    scroll: int = 0
    mode: ShellMode = "idle"


# ---------------------------------------------------------------------------
# Screen: box drawing and differential output
# ---------------------------------------------------------------------------


def box_top(title: str, width: int) -> str:
    inner = max(width - 2, 0)
    title = truncate_to_width(title, inner)
    return "┌" + title + "─" * (inner - display_width(title)) + "┐"


def box_bottom(width: int) -> str:
    return "└" + "─" * max(width - 2, 0) + "┘"


def box_line(content: str, width: int) -> str:
    inner = max(width - 2, 0)
    return "│" + pad_to_width(truncate_to_width(content, inner), inner) + "│"


class Screen:
    """Writes frames to the terminal, re-emitting only rows that changed."""

    def __init__(self, terminal: Terminal) -> None:
        self.terminal = terminal
        self._previous_lines: list[str] = []
        self._previous_cursor: tuple[int, int] | None = None
        self._full_redraw = True

    def invalidate(self) -> None:
        """Force the next render to repaint every row."""
        self._full_redraw = True

    def render(self, lines: list[str], cursor: tuple[int, int] | None) -> None:
        """Write *lines*, then park the cursor at *cursor* or leave it hidden."""
        out: list[str] = []
        if self._full_redraw:
            out.append(_CLEAR_SCREEN)
            self._previous_lines = []
            self._full_redraw = False

        for row, line in enumerate(lines):
            if row < len(self._previous_lines) and self._previous_lines[row] == line:
                continue
            out.append(_MOVE_TO_FMT.format(row + 1, 1))
            out.append(line)

        if not out and cursor == self._previous_cursor:
            return

        self._previous_lines = list(lines)
        self._previous_cursor = cursor
        if cursor is not None:
            out.append(_MOVE_TO_FMT.format(cursor[0] + 1, cursor[1] + 1))
            out.append(_SHOW_CURSOR)
        self.terminal.write(_HIDE_CURSOR + "".join(out))


# ---------------------------------------------------------------------------
# SqlShell
# ---------------------------------------------------------------------------


class SqlShell:
    """Event loop of the interactive query terminal."""

    def __init__(
        self,
        terminal: Terminal,
        dispatcher: QueryDispatcher,
        *,
        json_output: bool = False,
        poll_interval: float = POLL_INTERVAL,
    ) -> None:
        self.terminal = terminal
        self.dispatcher = dispatcher
        self.json_output = json_output
        self.poll_interval = poll_interval

        self.editor = LineEditor()
        self.state = SessionState()

        self._screen = Screen(terminal)
        self._spinner_frame = 0

        self._input = StdinBuffer()
        self._input.on_data(self.handle_input)
        self._input.on_paste(self.handle_paste)

    # -- loop ---------------------------------------------------------------

    def run(self) -> None:
        """Run until an exit key is pressed."""
        logger.debug("interactive shell started")
        self._screen.invalidate()
        while self.state.mode != "terminating":
            self.draw()
            self.step()
        logger.debug("interactive shell finished")

    def step(self) -> None:
        """Wait for input (bounded by a timeout) and process what happened."""
        if self._input.pending:
            timeout = self._input.timeout
        elif self.state.mode == "running":
            timeout = SPINNER_INTERVAL
        else:
            timeout = self.poll_interval

        data = self.terminal.read(timeout)

        if self.terminal.consume_resize():
            self._screen.invalidate()

        if data:
            self._input.process(data)
        elif self._input.pending:
            # Nothing followed within the timeout: a lone ESC is the Escape key
            for sequence in self._input.flush():
                self.handle_input(sequence)

        if self.state.mode == "running":
            result = self.dispatcher.poll()
            if result is not None:
                self.apply_result(result)
            else:
                self._spinner_frame = (self._spinner_frame + 1) % len(FRAMES)

    # -- input --------------------------------------------------------------

    def handle_input(self, data: str) -> None:
        """Route one complete key sequence according to the current mode."""
        if self.state.mode == "terminating":
            return

        key = parse_key(data)
        if self.state.mode == "running":
            self._handle_running_key(key)
            return

        if key in ("escape", "ctrl+d"):
            self.state.mode = "terminating"
        elif key == "ctrl+c":
            self.editor.clear()
            self.state.status = "Cleared input"
        elif key == "ctrl+l":
            self.state.output = ""
            self.state.scroll = 0
        elif key == "enter":
            self.submit()
        elif key == "pageUp":
            self.scroll(-self._results_inner_height())
        elif key == "pageDown":
            self.scroll(self._results_inner_height())
        elif key in _EDITOR_ACTIONS:
            _EDITOR_ACTIONS[key](self.editor)
        elif is_printable_input(data):
            self.editor.insert(data)

    def handle_paste(self, text: str) -> None:
        if self.state.mode == "idle":
            self.editor.insert_text(text)

    def _handle_running_key(self, key: str | None) -> None:
        if key in ("escape", "ctrl+c"):
            self.dispatcher.cancel()
            self.state.status = "Cancelling..."
        elif key == "ctrl+d":
            self.dispatcher.cancel()
            self.state.mode = "terminating"

    # -- queries ------------------------------------------------------------

    def submit(self) -> None:
        query = self.editor.buffer.strip()
        if not query:
            return
        self.state.mode = "running"
        self.state.status = RUNNING_STATUS
        self._spinner_frame = 0
        self.dispatcher.submit(query)

    def apply_result(self, result: DispatchResult) -> None:
        """Show a finished query's outcome and return to idle."""
        if self.state.mode == "running":
            self.state.mode = "idle"

        if result.cancelled:
            self.state.status = "Query cancelled"
            return

        if result.response is not None:
            self.state.output = format_response(result.response, self.json_output)
            self.state.status = "OK"
        else:
            self.state.output = f"Error: {result.error}"
            self.state.status = "Error"
        logger.debug("query finished in %.3fs (%s)", result.elapsed, self.state.status)

        self.state.scroll = 0
        self.editor.push_history(result.query)
        self.editor.clear()

    # -- layout -------------------------------------------------------------

    def _results_height(self) -> int:
        return max(self.terminal.rows - INPUT_BOX_HEIGHT - STATUS_HEIGHT, MIN_RESULTS_HEIGHT)

    def _results_inner_height(self) -> int:
        return self._results_height() - 2

    def scroll(self, delta: int) -> None:
        lines = wrap_text(self.state.output, self.terminal.columns - 2)
        max_scroll = max(len(lines) - self._results_inner_height(), 0)
        self.state.scroll = min(max(self.state.scroll + delta, 0), max_scroll)

    def render_lines(self) -> tuple[list[str], tuple[int, int] | None]:
        """Build the full frame and the (row, col) cursor position.

        The cursor is ``None`` when the terminal is too short to show the
        input row.
        """
        width = self.terminal.columns
        results_height = self._results_height()
        inner_height = results_height - 2

        output_lines = wrap_text(self.state.output, width - 2)
        visible = output_lines[self.state.scroll : self.state.scroll + inner_height]
        visible += [""] * (inner_height - len(visible))

        lines = [box_top("Results", width)]
        lines.extend(box_line(line, width) for line in visible)
        lines.append(box_bottom(width))

        input_text, cursor_col = self.editor.visible_window(width - 2)
        input_row = len(lines) + 1
        lines.append(box_top("SQL", width))
        lines.append(box_line(input_text, width))
        lines.append(box_bottom(width))

        status = self.state.status
        if self.state.mode == "running":
            if status == RUNNING_STATUS:
                status = f"{status} ({RUNNING_HINT})"
            status = f"{FRAMES[self._spinner_frame]} {status}"
        lines.append(pad_to_width(truncate_to_width(status, width), width))

        rows = self.terminal.rows
        cursor = (input_row, 1 + cursor_col) if input_row < rows else None
        return lines[:rows], cursor

    def draw(self) -> None:
        lines, cursor = self.render_lines()
        self._screen.render(lines, cursor)


@contextlib.contextmanager
def console_logging_suspended():
    """Detach root handlers that write to a console stream for the block.

    Log files (``BT_LOG_FILE``) keep receiving records. A
    :class:`logging.NullHandler` stands in so the last-resort stderr handler
    stays quiet too.
    """
    root = logging.getLogger()
    console = [
        h for h in root.handlers
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
    ]
    placeholder = logging.NullHandler()
    for handler in console:
        root.removeHandler(handler)
    root.addHandler(placeholder)
    try:
        yield
    finally:
        root.removeHandler(placeholder)
        for handler in console:
            root.addHandler(handler)


def run_interactive(dispatcher: QueryDispatcher, *, json_output: bool = False) -> None:
    """Take over the terminal and run the shell until the user exits.

    The terminal is restored when the shell returns or raises. Console log
    output is held back meanwhile so it cannot land on the drawn screen.
    """
    with console_logging_suspended(), ProcessTerminal() as terminal:
        SqlShell(terminal, dispatcher, json_output=json_output).run()
