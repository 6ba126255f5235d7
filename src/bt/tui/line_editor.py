"""Single-line editor with a byte-accurate cursor and in-memory history.

The buffer is kept as UTF-8 bytes and the cursor is a byte offset into it.
Every mutation leaves the cursor on a character boundary; boundaries are found
by scanning for UTF-8 continuation bytes, never by assuming a fixed width.
"""

from __future__ import annotations

import grapheme

from bt.tui.utils import grapheme_width


class EditorInvariantError(AssertionError):
    """The cursor was asked to sit inside a multi-byte character."""


def _is_continuation(byte: int) -> bool:
    return byte & 0xC0 == 0x80


def is_char_boundary(data: bytes, index: int) -> bool:
    """Whether *index* falls between two UTF-8 characters of *data*."""
    if index == 0 or index == len(data):
        return True
    if index < 0 or index > len(data):
        return False
    return not _is_continuation(data[index])


def prev_char_boundary(data: bytes, index: int) -> int:
    """Offset of the character that ends at *index*."""
    if index <= 0:
        return 0
    index -= 1
    while index > 0 and _is_continuation(data[index]):
        index -= 1
    return index


def next_char_boundary(data: bytes, index: int) -> int:
    """Offset just past the character that starts at *index*."""
    if index >= len(data):
        return len(data)
    index += 1
    while index < len(data) and _is_continuation(data[index]):
        index += 1
    return index


def _is_insertable(ch: str) -> bool:
    cp = ord(ch)
    return not (cp < 32 or cp == 0x7F or 0x80 <= cp <= 0x9F)


class LineEditor:
    """Editable command line with history browsing."""

    def __init__(self) -> None:
        self._data: bytes = b""
        self._cursor: int = 0
        self.history: list[str] = []
        self.history_index: int | None = None

    # -- state --------------------------------------------------------------

    @property
    def buffer(self) -> str:
        return self._data.decode("utf-8")

    @property
    def cursor(self) -> int:
        """Byte offset of the cursor in the UTF-8 encoded buffer."""
        return self._cursor

    @property
    def browsing(self) -> bool:
        return self.history_index is not None

    def set_buffer(self, text: str) -> None:
        """Replace the buffer and move the cursor to its end."""
        self._data = text.encode("utf-8")
        self._cursor = len(self._data)

    def _set_cursor(self, index: int) -> None:
        if not is_char_boundary(self._data, index):
            raise EditorInvariantError(
                f"cursor {index} is not on a character boundary of {self._data!r}"
            )
        self._cursor = index

    # -- editing ------------------------------------------------------------

    def insert(self, char: str) -> None:
        """Insert *char* at the cursor; control characters are ignored."""
        text = "".join(ch for ch in char if _is_insertable(ch))
        if not text:
            return
        encoded = text.encode("utf-8")
        self._data = self._data[: self._cursor] + encoded + self._data[self._cursor :]
        self._set_cursor(self._cursor + len(encoded))
        self.history_index = None

    def insert_text(self, text: str) -> None:
        """Insert pasted text as a unit, dropping line breaks."""
        self.insert(text.replace("\r\n", "").replace("\r", "").replace("\n", ""))

    def backspace(self) -> None:
        if self._cursor == 0:
            return
        start = prev_char_boundary(self._data, self._cursor)
        self._data = self._data[:start] + self._data[self._cursor :]
        self._set_cursor(start)
        self.history_index = None

    def delete(self) -> None:
        if self._cursor >= len(self._data):
            return
        end = next_char_boundary(self._data, self._cursor)
        self._data = self._data[: self._cursor] + self._data[end:]
        self.history_index = None

    def clear(self) -> None:
        self._data = b""
        self._cursor = 0
        self.history_index = None

    # -- movement -----------------------------------------------------------

    def move_left(self) -> None:
        if self._cursor > 0:
            self._set_cursor(prev_char_boundary(self._data, self._cursor))

    def move_right(self) -> None:
        if self._cursor < len(self._data):
            self._set_cursor(next_char_boundary(self._data, self._cursor))

    def move_home(self) -> None:
        self._cursor = 0

    def move_end(self) -> None:
        self._cursor = len(self._data)

    # -- history ------------------------------------------------------------

    def push_history(self, query: str) -> None:
        """Record trimmed *query* unless it is blank or repeats the last entry."""
        query = query.strip()
        if query and (not self.history or self.history[-1] != query):
            self.history.append(query)
        self.history_index = None

    def history_prev(self) -> None:
        if not self.history:
            return
        if self.history_index is None:
            index = len(self.history) - 1
        else:
            index = max(self.history_index - 1, 0)
        self.history_index = index
        self.set_buffer(self.history[index])

    def history_next(self) -> None:
        """Move one entry newer; stepping past the newest clears the line."""
        if self.history_index is None:
            return
        index = self.history_index + 1
        if index >= len(self.history):
            self.clear()
            return
        self.history_index = index
        self.set_buffer(self.history[index])

    # -- viewport -----------------------------------------------------------

    def visible_window(self, width: int) -> tuple[str, int]:
        """Slice of the buffer to show in *width* columns, and the cursor column.

        The window is right-anchored on the cursor once the text before it no
        longer fits, keeping one column free for the cursor cell. Slices are
        taken on grapheme cluster boundaries, so wide glyphs and emoji
        sequences are never split, and the cursor column is the display width
        of the visible text before the cursor.
        """
        if width <= 0:
            return "", 0

        before = list(grapheme.graphemes(self._data[: self._cursor].decode("utf-8")))
        after = list(grapheme.graphemes(self._data[self._cursor :].decode("utf-8")))

        start = len(before)
        used = 0
        while start > 0:
            w = grapheme_width(before[start - 1])
            if used + w > width - 1:
                break
            used += w
            start -= 1

        end = 0
        total = used
        while end < len(after):
            w = grapheme_width(after[end])
            if total + w > width:
                break
            total += w
            end += 1

        return "".join(before[start:]) + "".join(after[:end]), used
