"""Terminal abstraction for raw-mode, alternate-screen interaction.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal`` backed by
the process's stdin/stdout. ``ProcessTerminal`` is a context manager: entering
it switches the terminal to raw mode and the alternate screen, leaving it puts
everything back, on every exit path.
"""

from __future__ import annotations

import codecs
import logging
import os
import select
import signal
import sys
import termios
import tty
from typing import Protocol, TextIO

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_ALT_SCREEN_ENABLE = "\x1b[?1049h"
_ALT_SCREEN_DISABLE = "\x1b[?1049l"

_BRACKETED_PASTE_ENABLE = "\x1b[?2004h"
_BRACKETED_PASTE_DISABLE = "\x1b[?2004l"

_SHOW_CURSOR = "\x1b[?25h"
_CLEAR_SCREEN = "\x1b[2J\x1b[H"


class TerminalError(RuntimeError):
    """The terminal could not be acquired for exclusive raw-mode use."""


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface the interactive shell needs from a terminal."""

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def read(self, timeout: float) -> str: ...

    def consume_resize(self) -> bool: ...

    def write(self, data: str) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal backed by the process's stdin and stdout.

    Use it as a context manager; the terminal is only in raw mode and on the
    alternate screen between ``__enter__`` and ``__exit__``::

        with ProcessTerminal() as terminal:
            run(terminal)
    """

    def __init__(
        self,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._original_termios: list | None = None
        self._alt_screen: bool = False
        self._prev_sigwinch_handler: signal.Handlers | None = None
        self._resized: bool = False
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._write_log_path: str = os.environ.get("BT_TUI_WRITE_LOG", "")

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(self._stdout.fileno()).columns
        except (ValueError, OSError):
            return 80

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(self._stdout.fileno()).lines
        except (ValueError, OSError):
            return 24

    # -- scoped acquisition -------------------------------------------------

    def __enter__(self) -> ProcessTerminal:
        try:
            self.start()
        except (OSError, termios.error, ValueError) as e:
            try:
                self.stop()
            except (OSError, termios.error, ValueError):
                logger.exception("failed to restore terminal after acquisition error")
            raise TerminalError(f"failed to acquire terminal: {e}") from e
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def start(self) -> None:
        """Enter raw mode and the alternate screen, and watch for resizes."""
        fd = self._stdin.fileno()
        self._original_termios = termios.tcgetattr(fd)
        tty.setraw(fd)

        self._raw_write(_ALT_SCREEN_ENABLE + _BRACKETED_PASTE_ENABLE + _CLEAR_SCREEN)
        self._alt_screen = True

        self._prev_sigwinch_handler = signal.getsignal(signal.SIGWINCH)
        signal.signal(signal.SIGWINCH, self._on_sigwinch)
        logger.debug("terminal acquired (%dx%d)", self.columns, self.rows)

    def stop(self) -> None:
        """Restore everything ``start`` changed; each step runs regardless."""
        try:
            if self._alt_screen:
                self._alt_screen = False
                self._raw_write(_BRACKETED_PASTE_DISABLE + _SHOW_CURSOR + _ALT_SCREEN_DISABLE)
        finally:
            try:
                if self._prev_sigwinch_handler is not None:
                    signal.signal(signal.SIGWINCH, self._prev_sigwinch_handler)
                    self._prev_sigwinch_handler = None
            finally:
                if self._original_termios is not None:
                    attrs = self._original_termios
                    self._original_termios = None
                    termios.tcsetattr(self._stdin.fileno(), termios.TCSADRAIN, attrs)
                    logger.debug("terminal restored")

    # -- input --------------------------------------------------------------

    def read(self, timeout: float) -> str:
        """Wait up to *timeout* seconds for input and return what arrived.

        Returns an empty string on timeout or when interrupted by a signal.
        Multi-byte characters split across reads are reassembled.
        """
        fd = self._stdin.fileno()
        try:
            ready, _, _ = select.select([fd], [], [], timeout)
        except InterruptedError:
            return ""
        if not ready:
            return ""
        try:
            raw = os.read(fd, 4096)
        except InterruptedError:
            return ""
        return self._decoder.decode(raw)

    def consume_resize(self) -> bool:
        """Return whether the terminal was resized since the last call."""
        resized, self._resized = self._resized, False
        return resized

    # -- output -------------------------------------------------------------

    def write(self, data: str) -> None:
        """Write data to stdout and optionally to the write log."""
        self._raw_write(data)

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a") as f:
                    f.write(data)
            except OSError:
                logger.debug("cannot append to %s", self._write_log_path)

    # -- private ------------------------------------------------------------

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        self._resized = True

    def _raw_write(self, data: str) -> None:
        self._stdout.write(data)
        self._stdout.flush()


def is_interactive(stdin: TextIO | None = None, stdout: TextIO | None = None) -> bool:
    """Whether both stdin and stdout are attached to a terminal."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    try:
        return stdin.isatty() and stdout.isatty()
    except ValueError:
        return False
