"""StdinBuffer splits raw terminal input into complete key sequences.

Reads from a raw-mode terminal can end in the middle of an escape sequence
(``ESC`` arrives, ``[A`` follows a moment later). The buffer holds such
partial sequences until they complete, or until the caller decides that no
more input is coming and calls :meth:`StdinBuffer.flush`, which is how a lone
Escape key press is told apart from the start of an arrow key.
"""

from __future__ import annotations

from typing import Callable, Literal

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

SequenceStatus = Literal["complete", "incomplete", "not-escape"]


def sequence_status(data: str) -> SequenceStatus:
    """Check whether *data* is a complete escape sequence or needs more data."""
    if not data.startswith(ESC):
        return "not-escape"

    if len(data) == 1:
        return "incomplete"

    introducer = data[1]

    # CSI: ESC [ <params> <final byte 0x40-0x7E>
    if introducer == "[":
        if len(data) < 3:
            return "incomplete"
        return "complete" if 0x40 <= ord(data[-1]) <= 0x7E else "incomplete"

    # OSC: ESC ] ... (BEL | ESC \)
    if introducer == "]":
        if data.endswith("\x07") or data.endswith(f"{ESC}\\"):
            return "complete"
        return "incomplete"

    # SS3: ESC O <char>
    if introducer == "O":
        return "complete" if len(data) >= 3 else "incomplete"

    # Meta key: ESC followed by a single character
    return "complete"


def extract_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete sequences and an incomplete remainder."""
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        if buffer[pos] != ESC:
            sequences.append(buffer[pos])
            pos += 1
            continue

        end = pos + 1
        while True:
            status = sequence_status(buffer[pos:end])
            if status != "incomplete":
                sequences.append(buffer[pos:end])
                pos = end
                break
            if end >= len(buffer):
                return sequences, buffer[pos:]
            end += 1

    return sequences, ""


class StdinBuffer:
    """Buffers terminal input and emits complete sequences and pastes."""

    def __init__(self, *, timeout: float = 0.01) -> None:
        self.timeout = timeout
        self._buffer: str = ""
        self._paste_mode: bool = False
        self._paste_buffer: str = ""

        self._on_data: Callable[[str], None] | None = None
        self._on_paste: Callable[[str], None] | None = None

    def on_data(self, callback: Callable[[str], None]) -> None:
        """Set callback for complete sequences."""
        self._on_data = callback

    def on_paste(self, callback: Callable[[str], None]) -> None:
        """Set callback for bracketed paste content."""
        self._on_paste = callback

    @property
    def pending(self) -> bool:
        """Whether a partial sequence is waiting for more input."""
        return bool(self._buffer)

    def _emit_data(self, data: str) -> None:
        if self._on_data:
            self._on_data(data)

    def _emit_paste(self, data: str) -> None:
        if self._on_paste:
            self._on_paste(data)

    def process(self, data: str) -> None:
        """Feed decoded input into the buffer."""
        self._buffer += data

        if not self._paste_mode:
            start = self._buffer.find(BRACKETED_PASTE_START)
            if start == -1:
                sequences, self._buffer = extract_sequences(self._buffer)
                for sequence in sequences:
                    self._emit_data(sequence)
                return

            sequences, _ = extract_sequences(self._buffer[:start])
            for sequence in sequences:
                self._emit_data(sequence)
            self._buffer = self._buffer[start + len(BRACKETED_PASTE_START) :]
            self._paste_mode = True

        self._paste_buffer += self._buffer
        self._buffer = ""

        end = self._paste_buffer.find(BRACKETED_PASTE_END)
        if end == -1:
            return

        pasted = self._paste_buffer[:end]
        remaining = self._paste_buffer[end + len(BRACKETED_PASTE_END) :]
        self._paste_mode = False
        self._paste_buffer = ""
        self._emit_paste(pasted)

        if remaining:
            self.process(remaining)

    def flush(self) -> list[str]:
        """Give up waiting and return the pending partial input as-is."""
        if not self._buffer:
            return []
        sequences = [self._buffer]
        self._buffer = ""
        return sequences

    def clear(self) -> None:
        self._buffer = ""
        self._paste_mode = False
        self._paste_buffer = ""
