"""
adfbuild.py — ADF disk image assembler.

Lays out a boot block, a file table and the payload files of a manifest
into one fixed-size image.

Disk layout (0xdc000 = 901120 bytes):
    0x000-0x3FF    Boot block (checksummed), or zeros if none supplied
    0x400          File table, 16 bytes per entry
                     entry 0:   "dsk#"  disk#   disk#   disk#
                     entry 1+:  fileid  offset  0       size
    data_offset    Item data, concatenated in manifest order
    ...            Zero padding up to 0xdc000

File-table entry (16 bytes, big-endian):
    +0   tag[4]          ASCII, space padded
    +4   offset[4]       absolute offset from start of disk
    +8   packed_size[4]  always 0 (no compression)
    +12  file_size[4]

The assembler never touches the filesystem and never prints; see
manifest.py for loading and adfutil.py for the command line.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from adferrors import CapacityExceeded, InvalidFormat
from bewriter import BigEndianWriter
from bootblock import BOOTBLOCK_SIZE, checksum_block

# ── Constants ──────────────────────────────────────────────────────────

ADF_SIZE = 0xdc000                  # 80 tracks * 2 sides * 11 sectors * 512
TABLE_OFFSET = BOOTBLOCK_SIZE
TABLE_ENTRY_SIZE = 16
TAG_SIZE = 4
DISK_NUMBER_TAG = "dsk#"
PACKED_SIZE = 0


# ── Data classes ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class DiskItem:
    """One payload file, already loaded."""
    file_id: str
    data: bytes
    file_name: str = ""

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class DiskManifest:
    """Everything needed for one build.  *boot_block* is None for no boot code."""
    disk_number: int = 1
    boot_block: bytes | None = None
    items: tuple[DiskItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PlacedItem:
    """Where one item lands on the disk."""
    index: int
    file_id: str
    size: int
    disk_location: int              # relative to start of data region
    disk_offset: int                # absolute


@dataclass(frozen=True)
class DiskLayout:
    disk_number: int
    table_size: int
    data_offset: int
    placed: tuple[PlacedItem, ...]

    @property
    def data_end(self) -> int:
        """Absolute offset just past the last item."""
        if not self.placed:
            return self.data_offset
        last = self.placed[-1]
        return last.disk_offset + last.size

    @property
    def free_start(self) -> int:
        return self.data_end

    @property
    def free_size(self) -> int:
        """Unused bytes; negative when the content does not fit."""
        return ADF_SIZE - self.data_end


@dataclass(frozen=True)
class BuildResult:
    image: bytes
    report: str
    free_bytes: int
    layout: DiskLayout


# ── Layout ─────────────────────────────────────────────────────────────

def table_size_for(item_count: int) -> int:
    """File table size in bytes; the first entry is the disk number."""
    return (item_count + 1) * TABLE_ENTRY_SIZE


def tag_bytes(file_id: str) -> bytes:
    """The 4-byte tag *file_id* becomes in the file table."""
    return file_id.ljust(TAG_SIZE)[:TAG_SIZE].encode("ascii", errors="replace")


def compute_layout(manifest: DiskManifest) -> DiskLayout:
    """Assign every item its place in the data region, in manifest order."""
    table_size = table_size_for(len(manifest.items))
    data_offset = TABLE_OFFSET + table_size
    placed = []
    location = 0
    for i, item in enumerate(manifest.items):
        placed.append(PlacedItem(
            index=i,
            file_id=tag_bytes(item.file_id).decode("ascii"),
            size=item.size,
            disk_location=location,
            disk_offset=data_offset + location,
        ))
        location += item.size
    return DiskLayout(manifest.disk_number, table_size, data_offset,
                      tuple(placed))


# ── Report ─────────────────────────────────────────────────────────────

REPORT_HEADER = ("FileID", "Disk Offset", "PackedSize", "FileSize")
FREE_TAG = "Free"


def format_row(tag: str, offset: int, packed: int, size: int) -> str:
    """One tab-separated report row, numbers as 8-digit uppercase hex."""
    return "\t".join((tag, f"{offset & 0xFFFFFFFF:08X}",
                      f"{packed & 0xFFFFFFFF:08X}", f"{size & 0xFFFFFFFF:08X}"))


def render_file_table(layout: DiskLayout) -> str:
    """Text version of the file table, plus a trailing Free row."""
    lines = ["\t".join(REPORT_HEADER)]
    n = layout.disk_number
    lines.append(format_row(DISK_NUMBER_TAG, n, n, n))
    for p in layout.placed:
        lines.append(format_row(p.file_id, p.disk_offset, PACKED_SIZE, p.size))
    lines.append(format_row(FREE_TAG, layout.free_start, PACKED_SIZE,
                            layout.free_size))
    return "\n".join(lines) + "\n"


# ── Image assembly ─────────────────────────────────────────────────────

def _write_boot_region(writer: BigEndianWriter, boot_block: bytes | None):
    if boot_block is None:
        writer.write_zeros(BOOTBLOCK_SIZE)
        return
    if len(boot_block) != BOOTBLOCK_SIZE:
        raise InvalidFormat(
            f"bootblock incorrect size: expected {BOOTBLOCK_SIZE} bytes, "
            f"got {len(boot_block)}")
    writer.write_bytes(checksum_block(boot_block))


def _write_table_entry(writer: BigEndianWriter, tag: str, offset: int,
                       packed_size: int, file_size: int):
    writer.write_ascii(tag, TAG_SIZE)
    writer.write_int32(offset)
    writer.write_int32(packed_size)
    writer.write_int32(file_size)


def _write_file_table(writer: BigEndianWriter, layout: DiskLayout):
    n = layout.disk_number
    _write_table_entry(writer, DISK_NUMBER_TAG, n, n, n)
    for p in layout.placed:
        _write_table_entry(writer, p.file_id, p.disk_offset,
                           PACKED_SIZE, p.size)


def assemble(manifest: DiskManifest) -> BuildResult:
    """Build the complete disk image for *manifest*.

    Raises InvalidFormat for a boot block of the wrong size and
    CapacityExceeded when the content does not fit in ADF_SIZE bytes.
    """
    layout = compute_layout(manifest)
    writer = BigEndianWriter()

    _write_boot_region(writer, manifest.boot_block)
    _write_file_table(writer, layout)
    for item in manifest.items:
        writer.write_bytes(item.data)

    space_needed = ADF_SIZE - writer.position
    if space_needed < 0:
        raise CapacityExceeded(-space_needed)
    writer.write_zeros(space_needed)

    image = writer.to_bytes()
    return BuildResult(image, render_file_table(layout), space_needed, layout)


def build_image(disk_number: int = 1, boot_block: bytes | None = None,
                items=()) -> BuildResult:
    """Convenience wrapper: assemble from ``(file_id, data)`` pairs."""
    disk_items = tuple(it if isinstance(it, DiskItem) else DiskItem(*it)
                       for it in items)
    return assemble(DiskManifest(disk_number, boot_block, disk_items))
