"""ANSI-aware text measurement and clipping.

Keeps pane cells aligned when styled text and wide characters are present.
"""

from __future__ import annotations

import re
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
TAB_STOP = 8


def char_display_width(ch: str, col: int) -> int:
    """Return terminal column width for one character at visual column ``col``.

    Tabs expand to the next 8-column stop, combining marks consume no columns,
    and East Asian wide/fullwidth characters consume two.
    """
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def display_width(text: str) -> int:
    """Return visible column count of ``text`` ignoring ANSI sequences."""
    col = 0
    for ch in ANSI_ESCAPE_RE.sub("", text):
        col += char_display_width(ch, col)
    return col


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes so commit text cannot move the cursor."""
    if _CONTROL_RE.search(source) is None:
        return source
    out: list[str] = []
    for ch in source:
        code = ord(ch)
        if ch == "\t":
            out.append(ch)
            continue
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Trim a styled line to at most ``max_cols`` display columns.

    ANSI escape sequences are preserved verbatim and do not count toward width.
    Tabs are expanded into spaces so clipping aligns with rendered terminal cells.
    """
    if max_cols <= 0 or not text:
        return ""

    out: list[str] = []
    col = 0
    i = 0
    n = len(text)
    while i < n and col < max_cols:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        ch = text[i]
        w = char_display_width(ch, col)
        if col + w > max_cols:
            break
        out.append(" " * w if ch == "\t" else ch)
        col += w
        i += 1

    return "".join(out)


def pad_ansi_line(text: str, width: int) -> str:
    """Clip ``text`` to ``width`` columns and right-pad it with spaces."""
    clipped = clip_ansi_line(text, width)
    return clipped + " " * max(0, width - display_width(clipped))


def wrap_plain_text(text: str, width: int) -> list[str]:
    """Hard-wrap unstyled text to ``width`` columns, keeping blank lines."""
    if width <= 0:
        return []
    rows: list[str] = []
    for raw_line in text.split("\n"):
        if not raw_line:
            rows.append("")
            continue
        current: list[str] = []
        col = 0
        for ch in raw_line:
            w = char_display_width(ch, col)
            if col + w > width and current:
                rows.append("".join(current))
                current = []
                col = 0
                w = char_display_width(ch, col)
            current.append(" " * w if ch == "\t" else ch)
            col += w
        rows.append("".join(current))
    return rows
