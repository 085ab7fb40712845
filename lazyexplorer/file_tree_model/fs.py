"""Filesystem scanning that turns one directory's entries into ``Node`` records."""

from __future__ import annotations

import mimetypes
import os
import stat
from pathlib import Path

from ..errors import FS_NOT_A_DIRECTORY, ExplorerFsError
from .types import KIND_BROKEN_SYMLINK, KIND_DIRECTORY, KIND_SYMLINK, Node, Permissions, kind_from_mode


def absolute_path(path: Path | str, base: Path | None = None) -> Path:
    """Return a lexically normalized absolute path without touching the filesystem."""
    raw = os.fspath(path)
    if base is not None and not os.path.isabs(raw):
        raw = os.path.join(os.fspath(base), raw)
    return Path(os.path.abspath(raw))


def _mime_essence(name: str, kind: str) -> str:
    if kind == KIND_DIRECTORY:
        return "inode/directory"
    guessed, _encoding = mimetypes.guess_type(name, strict=False)
    return guessed or ""


def read_node(path: Path) -> Node | None:
    """Build one ``Node`` from ``path`` or ``None`` when it vanished mid-scan."""
    try:
        link_stat = os.lstat(path)
    except FileNotFoundError:
        return None

    name = path.name
    symlink_target: Path | None = None
    target_kind: str | None = None
    info = link_stat
    if stat.S_ISLNK(link_stat.st_mode):
        try:
            symlink_target = Path(os.readlink(path))
        except OSError:
            symlink_target = None
        try:
            info = os.stat(path)
        except OSError:
            kind = KIND_BROKEN_SYMLINK
        else:
            kind = KIND_SYMLINK
            target_kind = kind_from_mode(info.st_mode)
    else:
        kind = kind_from_mode(link_stat.st_mode)

    canonical: Path | None
    if kind == KIND_BROKEN_SYMLINK:
        canonical = None
    elif kind == KIND_SYMLINK:
        try:
            canonical = Path(os.path.realpath(path))
        except OSError:
            canonical = None
    else:
        canonical = path

    return Node(
        absolute_path=path,
        relative_path=name,
        kind=kind,
        size=int(info.st_size),
        mtime_ns=int(info.st_mtime_ns),
        permissions=Permissions.from_mode(info.st_mode),
        symlink_target=symlink_target,
        target_kind=target_kind,
        canonical_path=canonical,
        mime_essence=_mime_essence(name, target_kind or kind),
    )


def list_directory_nodes(directory: Path | str) -> list[Node]:
    """Read ``directory`` and return one ``Node`` per entry, in scan order.

    Raises ``ExplorerFsError`` when the directory cannot be listed. Broken
    symlinks are reported with their own kind instead of failing the scan.
    """
    resolved_directory = absolute_path(directory)
    try:
        with os.scandir(resolved_directory) as entries:
            names = [entry.name for entry in entries]
    except OSError as exc:
        raise ExplorerFsError.from_os_error(resolved_directory, exc) from exc

    nodes: list[Node] = []
    for name in names:
        try:
            node = read_node(resolved_directory / name)
        except OSError as exc:
            raise ExplorerFsError.from_os_error(resolved_directory / name, exc) from exc
        if node is not None:
            nodes.append(node)
    return nodes


def ensure_directory(path: Path) -> Path:
    """Return normalized ``path`` or raise when it is not a readable directory."""
    target = absolute_path(path)
    try:
        info = os.stat(target)
    except OSError as exc:
        raise ExplorerFsError.from_os_error(target, exc) from exc
    if not stat.S_ISDIR(info.st_mode):
        raise ExplorerFsError(FS_NOT_A_DIRECTORY, target)
    return target


__all__ = [
    "absolute_path",
    "ensure_directory",
    "list_directory_nodes",
    "read_node",
]
