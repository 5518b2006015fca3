"""
manifest.py — Load a disk.json manifest and the files it names.

Manifest format (keys are matched case-insensitively):

    {
      "DiskNumber": 1,
      "BootBlock": {"FileName": "boot.bin"},
      "DiskItems": [
        {"FileName": "intro.bin", "FileID": "INTR", "Cacheable": true},
        {"FileName": "music.mod", "FileID": "MUSC"}
      ]
    }

All paths are relative to the manifest folder.  Everything is read up
front so the assembler only ever sees bytes.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from adfbuild import DiskItem, DiskManifest
from adferrors import InvalidFormat, SourceUnavailable
from bootblock import BOOTBLOCK_SIZE

DEFAULT_CONFIG = "disk.json"
DEFAULT_DISK_NUMBER = 1


@dataclass
class ItemSpec:
    file_name: str
    file_id: str
    cacheable: bool = False


@dataclass
class ManifestSpec:
    """Parsed manifest before any file has been read."""
    disk_number: int = DEFAULT_DISK_NUMBER
    boot_file: str | None = None
    items: list[ItemSpec] = field(default_factory=list)


# ── Parsing ────────────────────────────────────────────────────────────

def _lower_keys(obj: dict, where: str) -> dict:
    if not isinstance(obj, dict):
        raise InvalidFormat(f"{where} must be an object")
    return {str(k).lower(): v for k, v in obj.items()}


def _require_str(obj: dict, key: str, where: str) -> str:
    value = obj.get(key.lower())
    if not isinstance(value, str) or not value:
        raise InvalidFormat(f"{where}: {key} must be a non-empty string")
    return value


def parse_manifest(document: dict) -> ManifestSpec:
    """Validate a decoded JSON manifest."""
    doc = _lower_keys(document, "manifest")

    disk_number = doc.get("disknumber", DEFAULT_DISK_NUMBER)
    # bool is an int subclass; reject it explicitly
    if not isinstance(disk_number, int) or isinstance(disk_number, bool):
        raise InvalidFormat(f"DiskNumber must be an integer, got {disk_number!r}")
    if not -0x80000000 <= disk_number <= 0xFFFFFFFF:
        raise InvalidFormat(f"DiskNumber {disk_number} does not fit in 32 bits")

    boot_file = None
    boot = doc.get("bootblock")
    if boot is not None:
        boot = _lower_keys(boot, "BootBlock")
        name = boot.get("filename")
        if name is not None and not isinstance(name, str):
            raise InvalidFormat("BootBlock: FileName must be a string")
        boot_file = name or None

    raw_items = doc.get("diskitems", [])
    if raw_items is None:
        raw_items = []
    if not isinstance(raw_items, list):
        raise InvalidFormat("DiskItems must be a list")

    items = []
    for i, raw in enumerate(raw_items):
        where = f"DiskItems[{i}]"
        entry = _lower_keys(raw, where)
        cacheable = entry.get("cacheable", False)
        if not isinstance(cacheable, bool):
            raise InvalidFormat(f"{where}: Cacheable must be true or false")
        items.append(ItemSpec(
            file_name=_require_str(entry, "FileName", where),
            file_id=_require_str(entry, "FileID", where),
            cacheable=cacheable,
        ))
    return ManifestSpec(disk_number, boot_file, items)


def read_manifest(path: str | Path) -> ManifestSpec:
    """Read and parse a manifest file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise SourceUnavailable(path, e.strerror or str(e)) from e
    except UnicodeDecodeError as e:
        raise InvalidFormat(f"{path.name}: not valid UTF-8 ({e})") from e
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidFormat(f"{path.name}: invalid JSON ({e})") from e
    return parse_manifest(document)


# ── Loading ────────────────────────────────────────────────────────────

def normalize_folder(path: str) -> str:
    """Accept Windows-style separators in folder paths."""
    return path.replace("\\", os.sep)


def _read_source(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise SourceUnavailable(path, e.strerror or str(e)) from e


def load_boot_block(path: str | Path) -> bytes:
    data = _read_source(Path(path))
    if len(data) != BOOTBLOCK_SIZE:
        raise InvalidFormat(
            f"bootblock incorrect size: {Path(path).name} is {len(data)} "
            f"bytes, expected {BOOTBLOCK_SIZE}")
    return data


def load_manifest(folder: str | Path, config: str = DEFAULT_CONFIG,
                  bootblock: str | Path | None = None,
                  require_bootblock: bool = False) -> DiskManifest:
    """Parse *config* inside *folder* and read every file it references.

    *bootblock* overrides the manifest's BootBlock entry.  With
    *require_bootblock* the build is rejected when neither supplies one.
    """
    folder = Path(folder)
    spec = read_manifest(folder / config)

    # An empty override counts as no boot block
    boot_file = (bootblock if bootblock is not None else spec.boot_file) or None
    if boot_file is None and require_bootblock:
        raise InvalidFormat("a boot block is required but none was configured")
    boot_data = load_boot_block(folder / boot_file) if boot_file else None

    items = tuple(
        DiskItem(it.file_id, _read_source(folder / it.file_name), it.file_name)
        for it in spec.items
    )
    return DiskManifest(spec.disk_number, boot_data, items)
