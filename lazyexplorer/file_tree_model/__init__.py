"""Filesystem node records and the directory lister that produces them."""

from .fs import absolute_path, ensure_directory, list_directory_nodes, read_node
from .types import (
    KIND_BROKEN_SYMLINK,
    KIND_DIRECTORY,
    KIND_FILE,
    KIND_OTHER,
    KIND_SYMLINK,
    NODE_KINDS,
    Node,
    Permissions,
    human_size,
)

__all__ = [
    "KIND_BROKEN_SYMLINK",
    "KIND_DIRECTORY",
    "KIND_FILE",
    "KIND_OTHER",
    "KIND_SYMLINK",
    "NODE_KINDS",
    "Node",
    "Permissions",
    "absolute_path",
    "ensure_directory",
    "human_size",
    "list_directory_nodes",
    "read_node",
]
