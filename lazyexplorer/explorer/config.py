"""Explorer configuration records: sorters, filters, grouping, hidden flag."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace

from ..errors import ConfigError


@dataclass(frozen=True)
class NodeSorter:
    """One sort key applied to a listing; ``reverse`` flips only this key."""

    sorter: str
    reverse: bool = False

    def to_dict(self) -> dict[str, object]:
        return {"sorter": self.sorter, "reverse": self.reverse}


@dataclass(frozen=True)
class NodeFilter:
    """Predicate name plus its string argument."""

    filter: str
    input: str = ""

    def to_dict(self) -> dict[str, object]:
        return {"filter": self.filter, "input": self.input}


DEFAULT_SORTERS: tuple[NodeSorter, ...] = (NodeSorter("ByIRelativePath"),)


@dataclass(frozen=True)
class ExplorerConfig:
    """Immutable policy describing how raw nodes become a listing."""

    sorters: tuple[NodeSorter, ...] = DEFAULT_SORTERS
    filters: tuple[NodeFilter, ...] = ()
    group_directories_first: bool = True
    show_hidden: bool = False

    def with_filter_added(self, node_filter: NodeFilter) -> ExplorerConfig:
        if node_filter in self.filters:
            return self
        return replace(self, filters=(*self.filters, node_filter))

    def with_filter_removed(self, node_filter: NodeFilter) -> ExplorerConfig:
        return replace(self, filters=tuple(item for item in self.filters if item != node_filter))

    def with_sorter_added(self, sorter: NodeSorter) -> ExplorerConfig:
        """Append ``sorter``, replacing any existing sorter with the same key."""
        kept = tuple(item for item in self.sorters if item.sorter != sorter.sorter)
        return replace(self, sorters=(*kept, sorter))

    def with_sorter_removed(self, sorter_name: str) -> ExplorerConfig:
        return replace(self, sorters=tuple(item for item in self.sorters if item.sorter != sorter_name))

    def with_sorters_reversed(self) -> ExplorerConfig:
        return replace(
            self,
            sorters=tuple(NodeSorter(item.sorter, not item.reverse) for item in self.sorters),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "sorters": [sorter.to_dict() for sorter in self.sorters],
            "filters": [node_filter.to_dict() for node_filter in self.filters],
            "group_directories_first": self.group_directories_first,
            "show_hidden": self.show_hidden,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object] | None) -> ExplorerConfig:
        """Build config from a field-named mapping, validating shapes."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError(f"explorer config must be a mapping, got {type(data).__name__}")

        sorters = DEFAULT_SORTERS
        if "sorters" in data:
            raw_sorters = data["sorters"]
            if not isinstance(raw_sorters, list):
                raise ConfigError("explorer config 'sorters' must be a list")
            sorters = tuple(_parse_sorter(item) for item in raw_sorters)

        filters: tuple[NodeFilter, ...] = ()
        if "filters" in data:
            raw_filters = data["filters"]
            if not isinstance(raw_filters, list):
                raise ConfigError("explorer config 'filters' must be a list")
            filters = tuple(_parse_filter(item) for item in raw_filters)

        group = data.get("group_directories_first", True)
        show_hidden = data.get("show_hidden", False)
        if not isinstance(group, bool) or not isinstance(show_hidden, bool):
            raise ConfigError("explorer config flags must be booleans")
        return cls(
            sorters=sorters,
            filters=filters,
            group_directories_first=group,
            show_hidden=show_hidden,
        )


def _parse_sorter(item: object) -> NodeSorter:
    if isinstance(item, str):
        return NodeSorter(item)
    if isinstance(item, Mapping) and isinstance(item.get("sorter"), str):
        return NodeSorter(str(item["sorter"]), bool(item.get("reverse", False)))
    raise ConfigError(f"invalid node sorter: {item!r}")


def _parse_filter(item: object) -> NodeFilter:
    if isinstance(item, Mapping) and isinstance(item.get("filter"), str):
        return NodeFilter(str(item["filter"]), str(item.get("input", "")))
    raise ConfigError(f"invalid node filter: {item!r}")


__all__ = [
    "DEFAULT_SORTERS",
    "ExplorerConfig",
    "NodeFilter",
    "NodeSorter",
]
