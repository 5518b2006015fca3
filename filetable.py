"""
filetable.py — Human-readable file table and image inspection.

render_file_table() (defined in adfbuild.py, re-exported here) turns a
DiskLayout into the tab-separated report that is written next to every
image:

    FileID  Disk Offset  PackedSize  FileSize
    dsk#    00000001     00000001    00000001
    INTR    00000420     00000000    00001F40
    Free    00002360     00000000    000D9CA0

read_file_table() and check_image() go the other way and decode the
table out of an existing image; render_entries() prints what they find
in the same format.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from adferrors import InvalidFormat
from adfbuild import (
    ADF_SIZE, DISK_NUMBER_TAG, FREE_TAG, PACKED_SIZE, REPORT_HEADER,
    TABLE_ENTRY_SIZE, TABLE_OFFSET, TAG_SIZE, format_row,
    render_file_table,  # re-exported
)
from bootblock import BOOTBLOCK_SIZE, read_checksum, verify_checksum


@dataclass
class TableEntry:
    """One decoded 16-byte file-table entry."""
    tag: str
    offset: int
    packed_size: int
    file_size: int

    @property
    def end(self) -> int:
        return self.offset + self.file_size


def render_entries(entries: list[TableEntry]) -> str:
    """Report for a table decoded from an image (see read_file_table)."""
    lines = ["\t".join(REPORT_HEADER)]
    for e in entries:
        lines.append(format_row(e.tag, e.offset, e.packed_size, e.file_size))
    if entries:
        items = entries[1:]
        free_start = items[-1].end if items else TABLE_OFFSET + TABLE_ENTRY_SIZE
        lines.append(format_row(FREE_TAG, free_start, PACKED_SIZE,
                                ADF_SIZE - free_start))
    return "\n".join(lines) + "\n"


# ── Decoding ───────────────────────────────────────────────────────────

def _read_entry(image: bytes, offset: int) -> TableEntry:
    raw = image[offset : offset + TABLE_ENTRY_SIZE]
    tag = raw[:TAG_SIZE].decode("ascii", errors="replace")
    off, packed, size = struct.unpack_from(">III", raw, TAG_SIZE)
    return TableEntry(tag, off, packed, size)


def read_file_table(image: bytes | bytearray) -> list[TableEntry]:
    """Decode the file table of an assembled image.

    The first entry is always the disk number.  The table ends where the
    data region begins, i.e. at the smallest item offset seen, or at an
    all-zero tag when the disk holds no items.
    """
    if len(image) != ADF_SIZE:
        raise InvalidFormat(
            f"image must be {ADF_SIZE} bytes, got {len(image)}")
    first = _read_entry(image, TABLE_OFFSET)
    if first.tag != DISK_NUMBER_TAG:
        raise InvalidFormat(f"no {DISK_NUMBER_TAG!r} entry at 0x{TABLE_OFFSET:X}")

    entries = [first]
    table_end = ADF_SIZE
    pos = TABLE_OFFSET + TABLE_ENTRY_SIZE
    while pos + TABLE_ENTRY_SIZE <= table_end:
        if image[pos : pos + TAG_SIZE] == b"\x00" * TAG_SIZE:
            break
        e = _read_entry(image, pos)
        entries.append(e)
        if e.offset < table_end:
            table_end = e.offset
        pos += TABLE_ENTRY_SIZE
    return entries


def check_image(image: bytes | bytearray) -> list[str]:
    """Return a list of consistency problems.  Empty means the image is OK."""
    errors: list[str] = []
    if len(image) != ADF_SIZE:
        return [f"image is {len(image)} bytes, expected {ADF_SIZE}"]

    boot = bytes(image[:BOOTBLOCK_SIZE])
    if any(boot) and not verify_checksum(boot):
        stored = read_checksum(boot)
        errors.append(f"boot block checksum mismatch (stored=0x{stored:08X})")

    try:
        entries = read_file_table(image)
    except InvalidFormat as e:
        errors.append(str(e))
        return errors

    dsk = entries[0]
    if not (dsk.offset == dsk.packed_size == dsk.file_size):
        errors.append(
            f"{DISK_NUMBER_TAG} fields disagree: 0x{dsk.offset:08X} "
            f"0x{dsk.packed_size:08X} 0x{dsk.file_size:08X}")

    items = entries[1:]
    expected = TABLE_OFFSET + len(entries) * TABLE_ENTRY_SIZE
    for i, e in enumerate(items):
        if e.packed_size != PACKED_SIZE:
            errors.append(f"entry {i} {e.tag!r} has packed size "
                          f"0x{e.packed_size:08X}")
        if e.offset < expected:
            errors.append(f"entry {i} {e.tag!r} overlaps previous data "
                          f"(offset 0x{e.offset:08X}, expected 0x{expected:08X})")
        elif e.offset > expected:
            errors.append(f"entry {i} {e.tag!r} leaves a gap "
                          f"(offset 0x{e.offset:08X}, expected 0x{expected:08X})")
        if e.end > ADF_SIZE:
            errors.append(f"entry {i} {e.tag!r} runs past end of disk "
                          f"(ends at 0x{e.end:08X})")
        expected = e.end
    return errors
