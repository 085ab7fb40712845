"""Low-level terminal input decoding.

Reads raw bytes from stdin and translates them into key tokens as written in
key binding configs: printable characters as themselves, named keys in
lowercase (``up``, ``enter``, ``esc``), and control chords as ``ctrl-x``.
"""

from __future__ import annotations

import os
import select

ESC_SEQUENCE_TIMEOUT_MS = 25
_PENDING_BYTES: list[bytes] = []

_SINGLE_BYTE_KEYS = {
    b"\t": "tab",
    b"\r": "enter",
    b"\n": "enter",
    b"\x08": "backspace",
    b"\x7f": "backspace",
    b" ": "space",
}

_CSI_FINAL_KEYS = {
    b"A": "up",
    b"B": "down",
    b"C": "right",
    b"D": "left",
    b"H": "home",
    b"F": "end",
    b"Z": "back-tab",
}

_CSI_TILDE_KEYS = {
    b"2": "insert",
    b"3": "delete",
    b"5": "page-up",
    b"6": "page-down",
}


def _read_ready_byte(fd: int, timeout_ms: int) -> bytes | None:
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        return None
    return ch


def _read_utf8_tail(fd: int, lead: bytes) -> str:
    first = lead[0]
    if first >= 0xF0:
        extra = 3
    elif first >= 0xE0:
        extra = 2
    elif first >= 0xC0:
        extra = 1
    else:
        extra = 0
    data = lead
    for _ in range(extra):
        part = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if part is None:
            break
        data += part
    return data.decode("utf-8", errors="replace")


def _decode_escape(fd: int) -> str:
    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return "esc"
    if seq not in {b"[", b"O"}:
        _PENDING_BYTES.append(seq)
        return "esc"
    code = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if code is None:
        return "esc"
    if code in _CSI_FINAL_KEYS:
        return _CSI_FINAL_KEYS[code]
    if code in _CSI_TILDE_KEYS:
        tail = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if tail == b"~":
            return _CSI_TILDE_KEYS[code]
    return "esc"


def read_key(fd: int, timeout_ms: int | None = None) -> str | None:
    """Return the next key token, ``""`` on timeout, or ``None`` at EOF."""
    if _PENDING_BYTES:
        ch = _PENDING_BYTES.pop(0)
    else:
        if timeout_ms is not None:
            ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
            if not ready:
                return ""
        ch = os.read(fd, 1)
        if not ch:
            return None

    if ch in _SINGLE_BYTE_KEYS:
        return _SINGLE_BYTE_KEYS[ch]
    if ch == b"\x1b":
        return _decode_escape(fd)
    code = ch[0]
    if code == 0:
        return "ctrl-space"
    if code < 0x20:
        return f"ctrl-{chr(code + 0x60)}"
    if code >= 0x80:
        return _read_utf8_tail(fd, ch)
    return ch.decode("ascii")


__all__ = ["ESC_SEQUENCE_TIMEOUT_MS", "read_key"]
