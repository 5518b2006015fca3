#!/usr/bin/env python3
"""
adfutil.py — Command-line front end for the ADF disk builder.

Usage:
    python adfutil.py create [-o disk.adf] [--path DIR] [--config disk.json]
                             [--bootblock FILE] [--require-bootblock]
    python adfutil.py ls IMAGE
    python adfutil.py check IMAGE

`create` writes <path>/<out>.adf and the human-readable file table
<path>/<out>.adf.filetable.txt next to it.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from adfbuild import assemble
from adferrors import DiskError, SourceUnavailable
from filetable import check_image, read_file_table, render_entries
from manifest import DEFAULT_CONFIG, load_manifest, normalize_folder

DEFAULT_OUT = "disk.adf"
ADF_EXT = ".adf"
FILETABLE_SUFFIX = ".filetable.txt"


def output_name(name: str | None) -> str:
    """Apply the default name and make sure it ends in .adf."""
    if not name:
        name = DEFAULT_OUT
    if not name.lower().endswith(ADF_EXT):
        name += ADF_EXT
    return name


def cmd_create(args) -> int:
    folder = Path(normalize_folder(args.path) if args.path else os.getcwd())
    out_name = output_name(args.out)
    config = args.config or DEFAULT_CONFIG

    manifest = load_manifest(folder, config, bootblock=args.bootblock,
                             require_bootblock=args.require_bootblock)
    result = assemble(manifest)

    disk_path = folder / out_name
    table_path = folder / (out_name + FILETABLE_SUFFIX)
    try:
        disk_path.write_bytes(result.image)
        table_path.write_text(result.report)
    except OSError as e:
        # Image and file table are written together or not at all
        if disk_path.is_file():
            disk_path.unlink()
        raise DiskError(f"cannot write {e.filename or disk_path}: "
                        f"{e.strerror or e}") from e

    print(f"FYI: you have {result.free_bytes} bytes remaining on this disk")
    print(f"ADF Disk Image: {disk_path.resolve()}")
    print(f"ADF File Table: {table_path.resolve()}")
    return 0


def _read_image(path: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise SourceUnavailable(path, e.strerror or str(e)) from e


def cmd_ls(args) -> int:
    entries = read_file_table(_read_image(args.image))
    sys.stdout.write(render_entries(entries))
    return 0


def cmd_check(args) -> int:
    errors = check_image(_read_image(args.image))
    if errors:
        for err in errors:
            print(f"  ERROR: {err}")
        print(f"{len(errors)} error(s) found")
        return 1
    print("All checks OK")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="adfutil",
        description="Disk Compiler - build Amiga .ADF disk images "
                    "from a disk.json manifest",
    )
    sub = parser.add_subparsers(dest="cmd")

    # create — build an image from a manifest folder
    p_create = sub.add_parser("create", help="Create a new .ADF disk image")
    p_create.add_argument("-o", "--out", default=None,
                          help=f"Output <filename>.adf (default: {DEFAULT_OUT})")
    p_create.add_argument("--path", default=None,
                          help="Folder containing disk.json and the disk files "
                               "(default: current directory)")
    p_create.add_argument("--config", default=None,
                          help=f"Manifest file inside --path "
                               f"(default: {DEFAULT_CONFIG})")
    p_create.add_argument("--bootblock", default=None, metavar="FILE",
                          help="Boot block file, overrides the manifest "
                               "(relative to --path)")
    p_create.add_argument("--require-bootblock", action="store_true",
                          help="Fail if no boot block is configured")
    p_create.set_defaults(func=cmd_create)

    # ls — print the file table of an image
    p_ls = sub.add_parser("ls", help="Show the file table of an image")
    p_ls.add_argument("image", help="Disk image path")
    p_ls.set_defaults(func=cmd_ls)

    # check — verify checksum and table consistency
    p_chk = sub.add_parser("check", help="Verify boot checksum and file table")
    p_chk.add_argument("image", help="Disk image path")
    p_chk.set_defaults(func=cmd_check)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd is None:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except DiskError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
