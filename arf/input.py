"""Low-level terminal input decoding.

Reads raw bytes from stdin and translates them into normalized key tokens.
Handles ESC-sequence timing for arrow and paging keys.
"""

from __future__ import annotations

import os
import select

ESC_SEQUENCE_TIMEOUT_MS = 25
UNKNOWN_KEY = "UNKNOWN"
_PENDING_BYTES: list[bytes] = []

_CSI_FINAL_KEYS = {
    b"A": "UP",
    b"B": "DOWN",
    b"C": "RIGHT",
    b"D": "LEFT",
    b"H": "HOME",
    b"F": "END",
}
_CSI_TILDE_KEYS = {
    "5": "PAGE_UP",
    "6": "PAGE_DOWN",
}


def _read_ready_byte(fd: int, timeout_ms: int) -> bytes | None:
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        return None
    return ch


def _read_utf8_tail(fd: int, lead: bytes) -> bytes:
    """Read continuation bytes for a multi-byte UTF-8 lead byte."""
    first = lead[0]
    if first >= 0xF0:
        needed = 3
    elif first >= 0xE0:
        needed = 2
    elif first >= 0xC0:
        needed = 1
    else:
        return lead
    data = lead
    for _ in range(needed):
        nxt = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if nxt is None:
            break
        data += nxt
    return data


def _read_csi(fd: int) -> str:
    """Decode the remainder of an ``ESC [`` sequence."""
    params: list[bytes] = []
    while True:
        part = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if part is None:
            return UNKNOWN_KEY
        if part in _CSI_FINAL_KEYS and not params:
            return _CSI_FINAL_KEYS[part]
        if part == b"~":
            return _CSI_TILDE_KEYS.get(b"".join(params).decode("ascii", errors="replace"), UNKNOWN_KEY)
        if 0x40 <= part[0] <= 0x7E:
            # Any other final byte (modified arrows, mouse reports, ...).
            return UNKNOWN_KEY
        params.append(part)
        if len(params) > 16:
            return UNKNOWN_KEY


def read_key(fd: int, timeout_ms: int | None = None) -> str:
    """Block for one key and return its token.

    Returns ``""`` when ``timeout_ms`` elapses or stdin reaches EOF, and
    ``UNKNOWN_KEY`` for escape sequences that have no binding.
    """
    if _PENDING_BYTES:
        ch = _PENDING_BYTES.pop(0)
    else:
        if timeout_ms is not None:
            ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
            if not ready:
                return ""

        ch = os.read(fd, 1)
        if not ch:
            return ""

    if ch == b"\t":
        return "TAB"
    if ch == b"\r":
        return "ENTER_CR"
    if ch == b"\n":
        return "ENTER_LF"
    if ch == b"\x03":
        return "CTRL_C"

    if ch != b"\x1b":
        return _read_utf8_tail(fd, ch).decode("utf-8", errors="replace")

    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return "ESC"
    if seq == b"[":
        return _read_csi(fd)
    if seq == b"O":
        # SS3 arrows sent by terminals in application-cursor mode.
        final = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if final is None:
            return UNKNOWN_KEY
        return _CSI_FINAL_KEYS.get(final, UNKNOWN_KEY)
    _PENDING_BYTES.append(seq)
    return "ESC"
