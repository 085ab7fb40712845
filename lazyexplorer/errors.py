"""Exception hierarchy shared by the explorer, dispatcher, and config layers."""

from __future__ import annotations

import errno
from pathlib import Path

FS_NOT_FOUND = "not_found"
FS_PERMISSION_DENIED = "permission_denied"
FS_NOT_A_DIRECTORY = "not_a_directory"
FS_IO = "io"


class LazyExplorerError(Exception):
    """Base class for recoverable lazyexplorer failures."""


class ExplorerFsError(LazyExplorerError):
    """Filesystem failure while reading a directory."""

    def __init__(self, kind: str, path: Path, detail: str = "") -> None:
        self.kind = kind
        self.path = path
        self.detail = detail
        message = f"{kind.replace('_', ' ')}: {path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)

    @classmethod
    def from_os_error(cls, path: Path, exc: OSError) -> ExplorerFsError:
        """Classify ``exc`` into one of the filesystem error kinds."""
        if isinstance(exc, FileNotFoundError):
            kind = FS_NOT_FOUND
        elif isinstance(exc, PermissionError):
            kind = FS_PERMISSION_DENIED
        elif isinstance(exc, NotADirectoryError) or exc.errno == errno.ENOTDIR:
            kind = FS_NOT_A_DIRECTORY
        else:
            kind = FS_IO
        return cls(kind, path, exc.strerror or "")


class DispatchError(LazyExplorerError):
    """An action could not be applied to application state."""


class ControlMessageError(LazyExplorerError):
    """A control message could not be decoded into an action."""

    def __init__(self, message: str, entry: object = None) -> None:
        self.entry = entry
        super().__init__(message)


class ConfigError(LazyExplorerError):
    """Invalid mode, keybinding, or explorer configuration."""


__all__ = [
    "FS_NOT_FOUND",
    "FS_PERMISSION_DENIED",
    "FS_NOT_A_DIRECTORY",
    "FS_IO",
    "LazyExplorerError",
    "ExplorerFsError",
    "DispatchError",
    "ControlMessageError",
    "ConfigError",
]
