"""Spinner shown on stderr while a slow operation runs."""

from __future__ import annotations

import asyncio
import sys
from typing import Awaitable, TextIO, TypeVar

T = TypeVar("T")

FRAMES = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]

#: Operations finishing faster than this never show a spinner.
SPINNER_DELAY = 0.3
SPINNER_INTERVAL = 0.08

_CYAN = "\x1b[36m"
_RESET = "\x1b[0m"
_CLEAR_LINE = "\r\x1b[2K"


class Spinner:
    """Braille spinner with a message, drawn in place on one line."""

    def __init__(self, message: str, stream: TextIO | None = None) -> None:
        self.message = message
        self._stream = stream or sys.stderr
        self._current_frame = 0
        self._visible = False

    @property
    def frame(self) -> str:
        return FRAMES[self._current_frame]

    def tick(self) -> None:
        """Draw the current frame and advance to the next one."""
        self._stream.write(f"{_CLEAR_LINE}{_CYAN}{self.frame}{_RESET} {self.message}")
        self._stream.flush()
        self._visible = True
        self._current_frame = (self._current_frame + 1) % len(FRAMES)

    def clear(self) -> None:
        if self._visible:
            self._stream.write(_CLEAR_LINE)
            self._stream.flush()
            self._visible = False


def _stream_is_terminal(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except ValueError:
        return False


async def with_spinner(
    message: str,
    awaitable: Awaitable[T],
    stream: TextIO | None = None,
) -> T:
    """Await *awaitable*, showing a spinner if it takes longer than a moment.

    Nothing is drawn when *stream* (stderr by default) is not a terminal.
    """
    stream = stream or sys.stderr
    task = asyncio.ensure_future(awaitable)
    if not _stream_is_terminal(stream):
        return await task

    done, _ = await asyncio.wait({task}, timeout=SPINNER_DELAY)
    if done:
        return task.result()

    spinner = Spinner(message, stream)
    try:
        while not task.done():
            spinner.tick()
            await asyncio.wait({task}, timeout=SPINNER_INTERVAL)
    finally:
        spinner.clear()
        if not task.done():
            task.cancel()
    return task.result()
