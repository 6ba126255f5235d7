"""Terminal text utilities: display width measurement, truncation, wrapping.

Widths are measured per grapheme cluster with :mod:`wcwidth`, so wide
(east-asian) glyphs and emoji occupy two columns and combining marks none.
"""

from __future__ import annotations

import unicodedata

import grapheme
import wcwidth as _wcwidth

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Grapheme width
# ---------------------------------------------------------------------------


def grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster.

    Rules:
    1. Control characters -> 0
    2. Emoji sequences (VS16, ZWJ, skin tones, regional indicators) -> 2
    3. Otherwise wcwidth of the first codepoint, clamped at 0.
    """
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        if cp in (0xFE0F, 0x200D):  # VS16, ZWJ
            return 2
        if 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first = g[0]
    if ord(first) >= 0x1F000:
        return 2

    cat = unicodedata.category(first)
    if cat.startswith("M") or cat == "Cf":
        return 0

    return max(_wcwidth.wcwidth(first), 0)


# ---------------------------------------------------------------------------
# display_width
# ---------------------------------------------------------------------------


def display_width(text: str) -> int:
    """Number of terminal columns *text* occupies.

    Not the byte length and not the character count: ``"é"`` is one column,
    ``"世"`` is two.
    """
    if not text:
        return 0

    if text.isascii() and text.isprintable():
        return len(text)

    cached = _width_cache.get(text)
    if cached is not None:
        return cached

    total = 0
    for g in grapheme.graphemes(text):
        total += grapheme_width(g)

    return _cache_width(text, total)


def pad_to_width(text: str, width: int) -> str:
    """Right-pad *text* with ASCII spaces up to *width* display columns."""
    current = display_width(text)
    if current >= width:
        return text
    return text + " " * (width - current)


# ---------------------------------------------------------------------------
# truncate_to_width
# ---------------------------------------------------------------------------


def truncate_to_width(text: str, max_width: int, ellipsis: str = "") -> str:
    """Cut *text* so that it fits within *max_width* columns.

    The cut happens at grapheme boundaries. When *ellipsis* is given and the
    text had to be cut, it is appended and counts towards the width.
    """
    if max_width <= 0:
        return ""

    if display_width(text) <= max_width:
        return text

    target = max_width - display_width(ellipsis)
    if target <= 0:
        return _take_columns(ellipsis, max_width)

    return _take_columns(text, target) + ellipsis


def _take_columns(text: str, max_cols: int) -> str:
    """Return the longest grapheme prefix of *text* within *max_cols*."""
    result: list[str] = []
    cols = 0
    for g in grapheme.graphemes(text):
        w = grapheme_width(g)
        if cols + w > max_cols:
            break
        result.append(g)
        cols += w
    return "".join(result)


# ---------------------------------------------------------------------------
# wrap_text
# ---------------------------------------------------------------------------


def wrap_text(text: str, width: int) -> list[str]:
    """Hard-wrap *text* into lines of at most *width* columns.

    Existing newlines are kept, tabs become four spaces, and other control
    characters are dropped. Long lines are broken at grapheme boundaries,
    never inside a wide glyph.
    """
    if width <= 0:
        return []

    lines: list[str] = []
    for raw_line in text.replace("\r\n", "\n").split("\n"):
        line = _sanitize(raw_line)
        if not line:
            lines.append("")
            continue

        current: list[str] = []
        cols = 0
        for g in grapheme.graphemes(line):
            w = grapheme_width(g)
            if cols + w > width and current:
                lines.append("".join(current))
                current = []
                cols = 0
            current.append(g)
            cols += w
        lines.append("".join(current))

    return lines


def _sanitize(line: str) -> str:
    line = line.replace("\t", "    ")
    if line.isprintable():
        return line
    return "".join(ch for ch in line if ch.isprintable() or ord(ch) > 0x9F)
