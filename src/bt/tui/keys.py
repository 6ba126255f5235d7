"""Keyboard input decoding for legacy (xterm/VT100) terminal sequences.

``parse_key`` turns one complete input sequence, as produced by
:class:`bt.tui.stdin_buffer.StdinBuffer`, into a key identifier such as
``"enter"``, ``"ctrl+c"``, ``"up"`` or ``"alt+x"``. Printable characters map
to themselves.
"""

from __future__ import annotations

KeyId = str


class Key:
    """Named key constants and modifier combinators."""

    escape = "escape"
    enter = "enter"
    tab = "tab"
    space = "space"
    backspace = "backspace"
    delete = "delete"
    insert = "insert"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"

    @staticmethod
    def ctrl(key: str) -> str:
        return f"ctrl+{key}"

    @staticmethod
    def shift(key: str) -> str:
        return f"shift+{key}"

    @staticmethod
    def alt(key: str) -> str:
        return f"alt+{key}"


# Legacy escape sequences -> key names
LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[4~": "end",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1b[7~": "home",
    "\x1b[8~": "end",
}

# xterm modifier parameter (1 + bitmask) -> prefix, e.g. ESC[1;5D is ctrl+left
_MODIFIER_PREFIXES: dict[str, str] = {
    "2": "shift+",
    "3": "alt+",
    "4": "shift+alt+",
    "5": "ctrl+",
    "6": "ctrl+shift+",
    "7": "ctrl+alt+",
    "8": "ctrl+shift+alt+",
}

_MODIFIED_FINALS: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
}

_MODIFIED_TILDE: dict[str, str] = {
    "3": "delete",
    "5": "pageUp",
    "6": "pageDown",
}


def _parse_modified(data: str) -> str | None:
    """Decode ``ESC[1;<mod><final>`` and ``ESC[<n>;<mod>~`` sequences."""
    if not data.startswith("\x1b[") or ";" not in data:
        return None
    body, final = data[2:-1], data[-1]
    params = body.split(";")
    if len(params) != 2:
        return None
    prefix = _MODIFIER_PREFIXES.get(params[1])
    if prefix is None:
        return None
    if final == "~":
        name = _MODIFIED_TILDE.get(params[0])
    elif params[0] == "1":
        name = _MODIFIED_FINALS.get(final)
    else:
        name = None
    return prefix + name if name else None


def parse_key(data: str) -> KeyId | None:
    """Parse raw terminal input and return the key identifier, or ``None``."""
    if not data:
        return None

    if data in LEGACY_KEY_SEQUENCES:
        return LEGACY_KEY_SEQUENCES[data]

    modified = _parse_modified(data)
    if modified is not None:
        return modified

    # --- Simple single-byte keys ---
    if data == "\x1b":
        return "escape"
    if data == "\r" or data == "\n":
        return "enter"
    if data == "\t":
        return "tab"
    if data == "\x7f" or data == "\x08":
        return "backspace"
    if data == "\x00":
        return "ctrl+space"

    # --- Ctrl + letter (0x01 - 0x1a) ---
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return "ctrl+" + chr(ord(data) + ord("a") - 1)

    # --- Alt + key (ESC prefix) ---
    if len(data) == 2 and data[0] == "\x1b":
        ch = data[1]
        if ch == "\r" or ch == "\n":
            return "alt+enter"
        if ch == "\x7f" or ch == "\x08":
            return "alt+backspace"
        if 1 <= ord(ch) <= 26:
            return "ctrl+alt+" + chr(ord(ch) + ord("a") - 1)
        if ch.isprintable():
            return "alt+" + ch.lower()

    # --- Plain printable character ---
    if len(data) == 1 and data.isprintable():
        return data

    return None


def is_printable_input(data: str) -> bool:
    """Whether *data* is plain text to insert rather than a key sequence."""
    if not data:
        return False
    return not any(
        ord(ch) < 32 or ord(ch) == 0x7F or 0x80 <= ord(ch) <= 0x9F for ch in data
    )
