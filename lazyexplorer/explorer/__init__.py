"""Explorer engine: turns raw directory nodes into an ordered listing.

Filters run first, then the sort keys, then the optional directory-first
partition. Every step is pure so identical inputs yield identical order.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from ..file_tree_model import Node, absolute_path, list_directory_nodes
from .config import DEFAULT_SORTERS, ExplorerConfig, NodeFilter, NodeSorter
from .filtering import FILTER_PREDICATES, filter_nodes, validate_filter
from .sorting import SORTER_KEYS, natural_key, sort_nodes, validate_sorter


@dataclass(frozen=True)
class Listing:
    """Ordered nodes for one directory plus the config that produced them."""

    directory: Path
    nodes: tuple[Node, ...]
    config: ExplorerConfig

    def __len__(self) -> int:
        return len(self.nodes)

    def paths(self) -> tuple[Path, ...]:
        return tuple(node.absolute_path for node in self.nodes)

    def index_of(self, path: Path) -> int | None:
        for idx, node in enumerate(self.nodes):
            if node.absolute_path == path:
                return idx
        return None

    def to_dicts(self, selected: Iterable[Path] = ()) -> list[dict[str, object]]:
        selected_set = set(selected)
        return [node.to_dict(is_selected=node.absolute_path in selected_set) for node in self.nodes]


def parse_explorer_config(data: Mapping[str, object] | None) -> ExplorerConfig:
    """``ExplorerConfig.from_dict`` that also rejects unknown sorters and filters."""
    config = ExplorerConfig.from_dict(data)
    for sorter in config.sorters:
        validate_sorter(sorter)
    for node_filter in config.filters:
        validate_filter(node_filter)
    return config


def apply_explorer_config(nodes: Iterable[Node], config: ExplorerConfig) -> tuple[Node, ...]:
    """Filter, sort, and group ``nodes`` according to ``config``."""
    kept = filter_nodes(nodes, config.filters, config.show_hidden)
    ordered = sort_nodes(kept, config.sorters)
    if not config.group_directories_first:
        return tuple(ordered)
    directories = [node for node in ordered if node.is_dir]
    others = [node for node in ordered if not node.is_dir]
    return tuple(directories + others)


def explore(
    path: Path | str,
    config: ExplorerConfig | None = None,
    lister: Callable[[Path], list[Node]] = list_directory_nodes,
) -> Listing:
    """Read ``path`` and return its listing; raises ``ExplorerFsError``."""
    directory = absolute_path(path)
    effective = config if config is not None else ExplorerConfig()
    nodes = lister(directory)
    return Listing(directory=directory, nodes=apply_explorer_config(nodes, effective), config=effective)


__all__ = [
    "DEFAULT_SORTERS",
    "FILTER_PREDICATES",
    "SORTER_KEYS",
    "ExplorerConfig",
    "Listing",
    "NodeFilter",
    "NodeSorter",
    "apply_explorer_config",
    "explore",
    "filter_nodes",
    "natural_key",
    "parse_explorer_config",
    "sort_nodes",
    "validate_filter",
    "validate_sorter",
]
