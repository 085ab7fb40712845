"""Domain datatypes for filesystem-backed directory nodes."""

from __future__ import annotations

import stat
from dataclasses import dataclass
from pathlib import Path

KIND_FILE = "file"
KIND_DIRECTORY = "directory"
KIND_SYMLINK = "symlink"
KIND_BROKEN_SYMLINK = "broken_symlink"
KIND_OTHER = "other"

NODE_KINDS: tuple[str, ...] = (
    KIND_FILE,
    KIND_DIRECTORY,
    KIND_SYMLINK,
    KIND_BROKEN_SYMLINK,
    KIND_OTHER,
)

_SIZE_UNITS: tuple[str, ...] = ("B", "K", "M", "G", "T", "P")


def kind_from_mode(mode: int) -> str:
    """Map an ``st_mode`` value to a non-symlink node kind."""
    if stat.S_ISDIR(mode):
        return KIND_DIRECTORY
    if stat.S_ISREG(mode):
        return KIND_FILE
    return KIND_OTHER


def human_size(size: int) -> str:
    """Format byte count compactly, e.g. ``512B`` or ``1.5K``."""
    value = float(max(0, size))
    for unit in _SIZE_UNITS:
        if value < 1024 or unit == _SIZE_UNITS[-1]:
            if unit == "B":
                return f"{int(value)}B"
            return f"{value:.1f}{unit}"
        value /= 1024
    return f"{int(size)}B"


@dataclass(frozen=True)
class Permissions:
    """Unix permission bits split into named flags."""

    user_read: bool = False
    user_write: bool = False
    user_execute: bool = False
    group_read: bool = False
    group_write: bool = False
    group_execute: bool = False
    other_read: bool = False
    other_write: bool = False
    other_execute: bool = False
    setuid: bool = False
    setgid: bool = False
    sticky: bool = False

    @classmethod
    def from_mode(cls, mode: int) -> Permissions:
        return cls(
            user_read=bool(mode & stat.S_IRUSR),
            user_write=bool(mode & stat.S_IWUSR),
            user_execute=bool(mode & stat.S_IXUSR),
            group_read=bool(mode & stat.S_IRGRP),
            group_write=bool(mode & stat.S_IWGRP),
            group_execute=bool(mode & stat.S_IXGRP),
            other_read=bool(mode & stat.S_IROTH),
            other_write=bool(mode & stat.S_IWOTH),
            other_execute=bool(mode & stat.S_IXOTH),
            setuid=bool(mode & stat.S_ISUID),
            setgid=bool(mode & stat.S_ISGID),
            sticky=bool(mode & stat.S_ISVTX),
        )

    def to_octal(self) -> int:
        bits = (
            (self.setuid, stat.S_ISUID),
            (self.setgid, stat.S_ISGID),
            (self.sticky, stat.S_ISVTX),
            (self.user_read, stat.S_IRUSR),
            (self.user_write, stat.S_IWUSR),
            (self.user_execute, stat.S_IXUSR),
            (self.group_read, stat.S_IRGRP),
            (self.group_write, stat.S_IWGRP),
            (self.group_execute, stat.S_IXGRP),
            (self.other_read, stat.S_IROTH),
            (self.other_write, stat.S_IWOTH),
            (self.other_execute, stat.S_IXOTH),
        )
        return sum(flag for enabled, flag in bits if enabled)

    def to_dict(self) -> dict[str, bool]:
        return {
            "user_read": self.user_read,
            "user_write": self.user_write,
            "user_execute": self.user_execute,
            "group_read": self.group_read,
            "group_write": self.group_write,
            "group_execute": self.group_execute,
            "other_read": self.other_read,
            "other_write": self.other_write,
            "other_execute": self.other_execute,
            "setuid": self.setuid,
            "setgid": self.setgid,
            "sticky": self.sticky,
        }


@dataclass(frozen=True)
class Node:
    """One directory entry observed during a single directory read.

    ``kind`` describes the entry itself. For symlinks, ``target_kind`` and
    ``symlink_target`` describe what the link points to; broken links have
    ``kind == "broken_symlink"`` and no ``target_kind``.
    """

    absolute_path: Path
    relative_path: str
    kind: str
    size: int = 0
    mtime_ns: int | None = None
    permissions: Permissions = Permissions()
    symlink_target: Path | None = None
    target_kind: str | None = None
    canonical_path: Path | None = None
    mime_essence: str = ""

    @property
    def parent(self) -> Path:
        return self.absolute_path.parent

    @property
    def extension(self) -> str:
        name = self.relative_path
        if name.startswith(".") and name.count(".") == 1:
            return ""
        _, dot, ext = name.rpartition(".")
        return ext if dot else ""

    @property
    def is_symlink(self) -> bool:
        return self.kind in {KIND_SYMLINK, KIND_BROKEN_SYMLINK}

    @property
    def is_broken(self) -> bool:
        return self.kind == KIND_BROKEN_SYMLINK

    @property
    def is_dir(self) -> bool:
        """Return whether the entry (or its symlink target) is a directory."""
        return self.kind == KIND_DIRECTORY or self.target_kind == KIND_DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.kind == KIND_FILE or self.target_kind == KIND_FILE

    @property
    def is_hidden(self) -> bool:
        return self.relative_path.startswith(".")

    @property
    def is_readonly(self) -> bool:
        return not self.permissions.user_write

    @property
    def human_size(self) -> str:
        return human_size(self.size)

    def to_dict(self, *, is_selected: bool = False) -> dict[str, object]:
        """Serialize to a field-named record for the scripting boundary."""
        return {
            "absolute_path": str(self.absolute_path),
            "relative_path": self.relative_path,
            "parent": str(self.parent),
            "kind": self.kind,
            "extension": self.extension,
            "is_dir": self.is_dir,
            "is_file": self.is_file,
            "is_symlink": self.is_symlink,
            "is_broken": self.is_broken,
            "is_readonly": self.is_readonly,
            "is_selected": is_selected,
            "size": self.size,
            "human_size": self.human_size,
            "mtime_ns": self.mtime_ns,
            "permissions": self.permissions.to_dict(),
            "symlink_target": str(self.symlink_target) if self.symlink_target is not None else None,
            "target_kind": self.target_kind,
            "canonical_path": str(self.canonical_path) if self.canonical_path is not None else None,
            "mime_essence": self.mime_essence,
        }


__all__ = [
    "KIND_FILE",
    "KIND_DIRECTORY",
    "KIND_SYMLINK",
    "KIND_BROKEN_SYMLINK",
    "KIND_OTHER",
    "NODE_KINDS",
    "Node",
    "Permissions",
    "human_size",
    "kind_from_mode",
]
