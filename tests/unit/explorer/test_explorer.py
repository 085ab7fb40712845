"""Tests for explorer ordering, filtering, and grouping policy."""

from __future__ import annotations

import random
import tempfile
import unittest
from pathlib import Path

from lazyexplorer.errors import ConfigError, ExplorerFsError
from lazyexplorer.explorer import (
    ExplorerConfig,
    NodeFilter,
    NodeSorter,
    apply_explorer_config,
    explore,
    natural_key,
    parse_explorer_config,
)
from lazyexplorer.file_tree_model import KIND_DIRECTORY, KIND_FILE, KIND_SYMLINK, Node

ROOT = Path("/listing")


def _node(name: str, kind: str = KIND_FILE, size: int = 0, mtime_ns: int = 0) -> Node:
    return Node(absolute_path=ROOT / name, relative_path=name, kind=kind, size=size, mtime_ns=mtime_ns)


def _names(nodes: tuple[Node, ...]) -> list[str]:
    return [node.relative_path for node in nodes]


class NaturalOrderTests(unittest.TestCase):
    def test_numeric_runs_compare_by_value(self) -> None:
        names = ["file10", "file2", "file1", "file20"]
        self.assertEqual(sorted(names, key=natural_key), ["file1", "file2", "file10", "file20"])

    def test_default_listing_uses_case_insensitive_natural_names(self) -> None:
        nodes = [_node("b10.txt"), _node("B2.txt"), _node("a.txt")]
        self.assertEqual(_names(apply_explorer_config(nodes, ExplorerConfig())), ["a.txt", "B2.txt", "b10.txt"])

    def test_equal_primary_keys_break_ties_by_case_sensitive_path(self) -> None:
        nodes = [_node("readme"), _node("README"), _node("ReadMe")]
        ordered = apply_explorer_config(nodes, ExplorerConfig())
        self.assertEqual(_names(ordered), ["README", "ReadMe", "readme"])

    def test_non_decimal_digit_characters_sort_as_text(self) -> None:
        self.assertEqual(natural_key("①"), ((1, 0, "①"),))
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            for name in ("plain", "file2", "file1²", "³"):
                (root / name).write_text(name, encoding="utf-8")
            listing = explore(root)
        self.assertEqual(_names(listing.nodes), ["file1²", "file2", "plain", "³"])


class DeterminismTests(unittest.TestCase):
    def test_repeated_runs_yield_identical_order_for_any_input_order(self) -> None:
        nodes = [
            _node("src", KIND_DIRECTORY),
            _node("docs", KIND_DIRECTORY),
            _node("a1.py", size=10),
            _node("a10.py", size=10),
            _node("a2.py", size=10),
            _node("Z.md", size=3),
            _node("z.md", size=3),
        ]
        config = ExplorerConfig(sorters=(NodeSorter("BySize"), NodeSorter("ByIRelativePath")))
        expected = apply_explorer_config(nodes, config)
        rng = random.Random(7)
        for _ in range(20):
            shuffled = list(nodes)
            rng.shuffle(shuffled)
            self.assertEqual(apply_explorer_config(shuffled, config), expected)

    def test_explore_twice_on_disk_is_identical(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            for name in ("x3", "x20", "X1", "y"):
                (root / name).write_text(name, encoding="utf-8")
            (root / "dir").mkdir()
            first = explore(root)
            second = explore(root)
            self.assertEqual(first.paths(), second.paths())
            self.assertEqual(_names(first.nodes), ["dir", "X1", "x3", "x20", "y"])


class SortPolicyTests(unittest.TestCase):
    def test_directories_grouped_first_with_independent_sort(self) -> None:
        nodes = [_node("b.txt"), _node("z", KIND_DIRECTORY), _node("a.txt"), _node("c", KIND_DIRECTORY)]
        self.assertEqual(_names(apply_explorer_config(nodes, ExplorerConfig())), ["c", "z", "a.txt", "b.txt"])

    def test_grouping_can_be_disabled(self) -> None:
        nodes = [_node("b.txt"), _node("z", KIND_DIRECTORY), _node("a.txt")]
        config = ExplorerConfig(group_directories_first=False)
        self.assertEqual(_names(apply_explorer_config(nodes, config)), ["a.txt", "b.txt", "z"])

    def test_reversed_sorter_only_flips_its_own_key(self) -> None:
        nodes = [_node("small", size=1), _node("big", size=9), _node("big2", size=9)]
        config = ExplorerConfig(sorters=(NodeSorter("BySize", reverse=True), NodeSorter("ByIRelativePath")))
        self.assertEqual(_names(apply_explorer_config(nodes, config)), ["big", "big2", "small"])

    def test_sort_by_last_modified(self) -> None:
        nodes = [_node("new", mtime_ns=30), _node("old", mtime_ns=10), _node("mid", mtime_ns=20)]
        config = ExplorerConfig(sorters=(NodeSorter("ByLastModified"),))
        self.assertEqual(_names(apply_explorer_config(nodes, config)), ["old", "mid", "new"])

    def test_unknown_sorter_is_rejected(self) -> None:
        with self.assertRaises(ConfigError):
            apply_explorer_config([_node("a")], ExplorerConfig(sorters=(NodeSorter("ByColour"),)))

    def test_with_sorter_added_replaces_same_key(self) -> None:
        config = ExplorerConfig().with_sorter_added(NodeSorter("BySize")).with_sorter_added(NodeSorter("ByIRelativePath", True))
        self.assertEqual(config.sorters, (NodeSorter("BySize"), NodeSorter("ByIRelativePath", True)))
        self.assertEqual(config.with_sorters_reversed().sorters[0], NodeSorter("BySize", True))


class FilterPolicyTests(unittest.TestCase):
    def test_hidden_entries_dropped_unless_shown(self) -> None:
        nodes = [_node(".env"), _node("app.py")]
        self.assertEqual(_names(apply_explorer_config(nodes, ExplorerConfig())), ["app.py"])
        self.assertEqual(_names(apply_explorer_config(nodes, ExplorerConfig(show_hidden=True))), [".env", "app.py"])

    def test_filters_exclude_nodes_from_listing(self) -> None:
        nodes = [_node("README.md"), _node("main.py"), _node("test_main.py"), _node("lib", KIND_DIRECTORY)]
        contains = ExplorerConfig(filters=(NodeFilter("IRelativePathDoesContain", "readme"),))
        self.assertEqual(_names(apply_explorer_config(nodes, contains)), ["README.md"])

        not_python = ExplorerConfig(filters=(NodeFilter("RelativePathDoesNotEndWith", ".py"),))
        self.assertEqual(_names(apply_explorer_config(nodes, not_python)), ["lib", "README.md"])

        combined = ExplorerConfig(
            filters=(NodeFilter("IsFile"), NodeFilter("RelativePathDoesMatchRegex", r"^test_.*\.py$")),
        )
        self.assertEqual(_names(apply_explorer_config(nodes, combined)), ["test_main.py"])

    def test_symlink_kind_filters(self) -> None:
        link = Node(
            absolute_path=ROOT / "link",
            relative_path="link",
            kind=KIND_SYMLINK,
            target_kind=KIND_FILE,
        )
        nodes = [link, _node("plain")]
        only_links = ExplorerConfig(filters=(NodeFilter("IsSymlink"),))
        no_links = ExplorerConfig(filters=(NodeFilter("IsNotSymlink"),))
        self.assertEqual(_names(apply_explorer_config(nodes, only_links)), ["link"])
        self.assertEqual(_names(apply_explorer_config(nodes, no_links)), ["plain"])

    def test_invalid_regex_and_unknown_filter_raise_config_error(self) -> None:
        with self.assertRaises(ConfigError):
            apply_explorer_config([_node("a")], ExplorerConfig(filters=(NodeFilter("RelativePathDoesMatchRegex", "("),)))
        with self.assertRaises(ConfigError):
            apply_explorer_config([_node("a")], ExplorerConfig(filters=(NodeFilter("NameLooksNice"),)))


class ExplorerConfigRecordTests(unittest.TestCase):
    def test_from_dict_parses_field_named_records(self) -> None:
        config = ExplorerConfig.from_dict(
            {
                "sorters": ["BySize", {"sorter": "ByIRelativePath", "reverse": True}],
                "filters": [{"filter": "IsDir"}],
                "group_directories_first": False,
                "show_hidden": True,
            }
        )
        self.assertEqual(config.sorters, (NodeSorter("BySize"), NodeSorter("ByIRelativePath", True)))
        self.assertEqual(config.filters, (NodeFilter("IsDir", ""),))
        self.assertFalse(config.group_directories_first)
        self.assertTrue(config.show_hidden)
        self.assertEqual(ExplorerConfig.from_dict(config.to_dict()), config)

    def test_from_dict_rejects_bad_shapes(self) -> None:
        with self.assertRaises(ConfigError):
            ExplorerConfig.from_dict({"sorters": "BySize"})
        with self.assertRaises(ConfigError):
            ExplorerConfig.from_dict({"filters": ["IsDir"]})
        with self.assertRaises(ConfigError):
            ExplorerConfig.from_dict({"show_hidden": "yes"})

    def test_parse_rejects_unknown_names_that_from_dict_accepts(self) -> None:
        raw = {"sorters": ["ByColour"]}
        self.assertEqual(ExplorerConfig.from_dict(raw).sorters, (NodeSorter("ByColour"),))
        with self.assertRaises(ConfigError):
            parse_explorer_config(raw)
        with self.assertRaises(ConfigError):
            parse_explorer_config({"filters": [{"filter": "NameLooksNice"}]})
        self.assertEqual(parse_explorer_config(None), ExplorerConfig())

    def test_explore_missing_directory_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ExplorerFsError):
                explore(Path(tmp) / "gone")


if __name__ == "__main__":
    unittest.main()
