"""Node filter predicates applied before sorting."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from functools import lru_cache

from ..errors import ConfigError
from ..file_tree_model import Node
from .config import NodeFilter

Predicate = Callable[[str, str], bool]


@lru_cache(maxsize=128)
def _compiled(pattern: str, ignore_case: bool) -> re.Pattern[str]:
    flags = re.IGNORECASE if ignore_case else 0
    return re.compile(pattern, flags)


def _matches_regex(ignore_case: bool) -> Predicate:
    def predicate(name: str, pattern: str) -> bool:
        return _compiled(pattern, ignore_case).search(name) is not None

    return predicate


_BASE_PREDICATES: dict[str, Predicate] = {
    "Is": lambda name, value: name == value,
    "DoesStartWith": lambda name, value: name.startswith(value),
    "DoesContain": lambda name, value: value in name,
    "DoesEndWith": lambda name, value: name.endswith(value),
}


def _build_path_predicates() -> dict[str, Callable[[Node, str], bool]]:
    out: dict[str, Callable[[Node, str], bool]] = {}

    def make(base: Predicate, negate: bool, ignore_case: bool) -> Callable[[Node, str], bool]:
        def check(node: Node, value: str) -> bool:
            name = node.relative_path
            if ignore_case:
                name = name.lower()
                value = value.lower()
            return base(name, value) != negate

        return check

    for suffix, base in _BASE_PREDICATES.items():
        negated_suffix = suffix.replace("Does", "DoesNot") if suffix.startswith("Does") else "IsNot"
        out[f"RelativePath{suffix}"] = make(base, False, False)
        out[f"RelativePath{negated_suffix}"] = make(base, True, False)
        out[f"IRelativePath{suffix}"] = make(base, False, True)
        out[f"IRelativePath{negated_suffix}"] = make(base, True, True)

    for ignore_case, prefix in ((False, "RelativePath"), (True, "IRelativePath")):
        regex = _matches_regex(ignore_case)
        out[f"{prefix}DoesMatchRegex"] = lambda node, value, regex=regex: regex(node.relative_path, value)
        out[f"{prefix}DoesNotMatchRegex"] = lambda node, value, regex=regex: not regex(node.relative_path, value)
    return out


FILTER_PREDICATES: dict[str, Callable[[Node, str], bool]] = {
    **_build_path_predicates(),
    "IsDir": lambda node, _value: node.is_dir,
    "IsFile": lambda node, _value: node.is_file,
    "IsSymlink": lambda node, _value: node.is_symlink,
    "IsNotSymlink": lambda node, _value: not node.is_symlink,
}


def validate_filter(node_filter: NodeFilter) -> None:
    """Raise ``ConfigError`` for unknown filters or invalid regex inputs."""
    if node_filter.filter not in FILTER_PREDICATES:
        raise ConfigError(f"unknown node filter: {node_filter.filter}")
    if node_filter.filter.endswith("MatchRegex"):
        try:
            _compiled(node_filter.input, node_filter.filter.startswith("I"))
        except re.error as exc:
            raise ConfigError(f"invalid regex {node_filter.input!r}: {exc}") from exc


def filter_nodes(nodes: Iterable[Node], filters: Iterable[NodeFilter], show_hidden: bool) -> list[Node]:
    """Keep nodes accepted by every filter; hidden nodes drop unless shown."""
    active = tuple(filters)
    for node_filter in active:
        validate_filter(node_filter)
    kept: list[Node] = []
    for node in nodes:
        if not show_hidden and node.is_hidden:
            continue
        if all(FILTER_PREDICATES[item.filter](node, item.input) for item in active):
            kept.append(node)
    return kept


__all__ = [
    "FILTER_PREDICATES",
    "filter_nodes",
    "validate_filter",
]
