"""
bootblock.py — Amiga-style boot-block checksum.

The boot block is 1024 bytes (256 big-endian longwords).  Bytes 4-7 hold
the checksum:

    1. treat the checksum longword as zero
    2. sum all 256 longwords as unsigned 32-bit, adding 1 back in
       whenever an addition wraps (end-around carry)
    3. store the one's complement of the sum at bytes 4-7

A correctly checksummed block therefore carry-sums to 0xFFFFFFFF.
"""

from __future__ import annotations

import struct

from adferrors import InvalidFormat

BOOTBLOCK_SIZE = 0x400
CHECKSUM_OFFSET = 4
_MASK32 = 0xFFFFFFFF
_WORDS = struct.Struct(f">{BOOTBLOCK_SIZE // 4}I")


def _require_size(block: bytes | bytearray):
    if len(block) != BOOTBLOCK_SIZE:
        raise InvalidFormat(
            f"boot block must be {BOOTBLOCK_SIZE} bytes, got {len(block)}")


def _carry_sum(block: bytes | bytearray) -> int:
    """Unsigned 32-bit sum of all longwords with end-around carry."""
    total = 0
    for word in _WORDS.unpack(block):
        prev = total
        total = (total + word) & _MASK32
        if total < prev:
            total = (total + 1) & _MASK32
    return total


def compute_checksum(block: bytes | bytearray) -> int:
    """Checksum of *block* as if bytes 4-7 were zero.  *block* is untouched."""
    _require_size(block)
    work = bytearray(block)
    struct.pack_into(">I", work, CHECKSUM_OFFSET, 0)
    return ~_carry_sum(work) & _MASK32


def insert_checksum(block: bytearray) -> int:
    """Zero, compute and store the checksum in place.  Returns the value."""
    _require_size(block)
    struct.pack_into(">I", block, CHECKSUM_OFFSET, 0)
    checksum = ~_carry_sum(block) & _MASK32
    struct.pack_into(">I", block, CHECKSUM_OFFSET, checksum)
    return checksum


def read_checksum(block: bytes | bytearray) -> int:
    _require_size(block)
    return struct.unpack_from(">I", block, CHECKSUM_OFFSET)[0]


def verify_checksum(block: bytes | bytearray) -> bool:
    """True if the stored checksum matches the block contents."""
    _require_size(block)
    return _carry_sum(block) == _MASK32


def checksum_block(data: bytes | bytearray) -> bytes:
    """Return a checksummed copy of *data*, leaving the caller's bytes alone."""
    block = bytearray(data)
    insert_checksum(block)
    return bytes(block)
