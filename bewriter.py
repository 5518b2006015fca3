"""
bewriter.py — Append-only big-endian byte writer.

All integers are serialised most-significant byte first, independent of
the host byte order.  The writer knows nothing about the disk format.
"""

from __future__ import annotations

import struct


class BigEndianWriter:
    """Sequential writer over a growable bytearray."""

    def __init__(self):
        self._buf = bytearray()
        self._closed = False

    def _append(self, data: bytes | bytearray):
        if self._closed:
            raise ValueError("writer already finalised")
        self._buf += data

    # ── primitives ─────────────────────────────────────────────────

    def write_ascii(self, text: str, length: int):
        """Write *text* as exactly *length* ASCII bytes.

        Shorter text is right-padded with spaces, longer text is truncated.
        No terminating NUL is written.
        """
        padded = text.ljust(length)[:length]
        self._append(padded.encode("ascii", errors="replace"))

    def write_int16(self, value: int):
        self._append(struct.pack(">H", value & 0xFFFF))

    def write_int32(self, value: int):
        # Negative values go out as their two's-complement bit pattern
        self._append(struct.pack(">I", value & 0xFFFFFFFF))

    def write_bytes(self, raw: bytes | bytearray):
        self._append(raw)

    def write_zeros(self, count: int):
        self._append(bytes(count))

    # ── state ──────────────────────────────────────────────────────

    @property
    def position(self) -> int:
        """Number of bytes written so far."""
        return len(self._buf)

    def to_bytes(self) -> bytes:
        """Return the finished buffer.  The writer cannot be reused."""
        self._closed = True
        return bytes(self._buf)
