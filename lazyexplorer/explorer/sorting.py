"""Composite, deterministic sort keys for directory listings."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence

from ..errors import ConfigError
from ..file_tree_model import Node
from .config import NodeSorter

_DIGITS_RE = re.compile(r"(\d+)")

SortKey = Callable[[Node], object]


def natural_key(text: str) -> tuple[tuple[int, int, str], ...]:
    """Split ``text`` so numeric runs compare by value: ``file2 < file10``.

    Numeric chunks sort before text chunks at the same position. The raw
    chunk is kept as a final element so ``01`` and ``1`` still order
    deterministically.
    """
    parts: list[tuple[int, int, str]] = []
    for chunk in _DIGITS_RE.split(text):
        if not chunk:
            continue
        # isdigit() also accepts superscripts such as "²", which int() rejects.
        if _DIGITS_RE.fullmatch(chunk):
            parts.append((0, int(chunk), chunk))
        else:
            parts.append((1, 0, chunk))
    return tuple(parts)


def _optional(value: int | None) -> tuple[bool, int]:
    return (value is None, value or 0)


SORTER_KEYS: dict[str, SortKey] = {
    "ByRelativePath": lambda node: natural_key(node.relative_path),
    "ByIRelativePath": lambda node: natural_key(node.relative_path.lower()),
    "ByExtension": lambda node: natural_key(node.extension.lower()),
    "ByIsDir": lambda node: node.is_dir,
    "ByIsFile": lambda node: node.is_file,
    "ByIsSymlink": lambda node: node.is_symlink,
    "ByIsBroken": lambda node: node.is_broken,
    "ByIsReadonly": lambda node: node.is_readonly,
    "BySize": lambda node: node.size,
    "ByLastModified": lambda node: _optional(node.mtime_ns),
    "ByMimeEssence": lambda node: node.mime_essence,
    "ByCanonicalAbsolutePath": lambda node: natural_key(str(node.canonical_path or node.absolute_path)),
}


def tie_break_key(node: Node) -> str:
    """Case-sensitive absolute path; unique within one listing."""
    return str(node.absolute_path)


def validate_sorter(sorter: NodeSorter) -> None:
    if sorter.sorter not in SORTER_KEYS:
        raise ConfigError(f"unknown node sorter: {sorter.sorter}")


def sort_nodes(nodes: Sequence[Node], sorters: Sequence[NodeSorter]) -> list[Node]:
    """Return nodes ordered by ``sorters`` (most significant first).

    Runs stable sorts from the least significant key upward, starting with
    the path tie-break, so equal primary keys never leave order ambiguous.
    """
    for sorter in sorters:
        validate_sorter(sorter)
    ordered = sorted(nodes, key=tie_break_key)
    for sorter in reversed(sorters):
        ordered.sort(key=SORTER_KEYS[sorter.sorter], reverse=sorter.reverse)
    return ordered


__all__ = [
    "SORTER_KEYS",
    "natural_key",
    "sort_nodes",
    "tie_break_key",
    "validate_sorter",
]
