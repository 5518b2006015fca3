"""
adferrors.py — Exceptions raised while building or inspecting ADF images.

Every failure aborts the current build; there is no partial output.
"""

from __future__ import annotations


class DiskError(Exception):
    """Base for all disk-builder failures."""
    pass


class InvalidFormat(DiskError):
    """Boot block, manifest or image does not have the expected shape."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class CapacityExceeded(DiskError):
    def __init__(self, over_by: int):
        self.over_by = over_by
        super().__init__(f"disk is {over_by} bytes over budget!")


class SourceUnavailable(DiskError):
    """A file referenced by the manifest could not be read."""

    def __init__(self, path, reason: str = ""):
        self.path = str(path)
        self.reason = reason
        msg = f"cannot read {self.path!r}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
