"""bt.tui: terminal primitives for the interactive query shell."""

from bt.tui.keys import Key, KeyId, is_printable_input, parse_key
from bt.tui.line_editor import EditorInvariantError, LineEditor
from bt.tui.spinner import Spinner, with_spinner
from bt.tui.stdin_buffer import StdinBuffer
from bt.tui.terminal import ProcessTerminal, Terminal, TerminalError, is_interactive
from bt.tui.utils import display_width, pad_to_width, truncate_to_width, wrap_text

__all__ = [
    # Keys
    "Key",
    "KeyId",
    "is_printable_input",
    "parse_key",
    # Line editor
    "EditorInvariantError",
    "LineEditor",
    # Spinner
    "Spinner",
    "with_spinner",
    # Input buffering
    "StdinBuffer",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    "TerminalError",
    "is_interactive",
    # Utilities
    "display_width",
    "pad_to_width",
    "truncate_to_width",
    "wrap_text",
]
