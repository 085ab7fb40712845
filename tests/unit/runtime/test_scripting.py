"""Tests for the scripting bridge, script helpers, and init-script loading."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from lazyexplorer.errors import ConfigError
from lazyexplorer.explorer import ExplorerConfig, NodeSorter
from lazyexplorer.runtime.actions import ChangeDirectory, FocusNext, LogInfo
from lazyexplorer.runtime.scripting import (
    HOOK_FOCUS_CHANGE,
    ScriptBridge,
    ScriptError,
    ScriptUtil,
    load_init_script,
)


class ScriptUtilTests(unittest.TestCase):
    def test_path_helpers(self) -> None:
        self.assertEqual(ScriptUtil.dirname("/srv/data/file.txt"), "/srv/data")
        self.assertIsNone(ScriptUtil.dirname("/"))
        self.assertEqual(ScriptUtil.dirname("notes.txt"), "")
        self.assertEqual(ScriptUtil.dirname(".env"), "")
        self.assertEqual(ScriptUtil.dirname("./notes.txt"), ".")
        self.assertEqual(ScriptUtil.dirname("docs/notes.txt"), "docs")
        self.assertEqual(ScriptUtil.basename("/srv/data/file.txt"), "file.txt")
        self.assertIsNone(ScriptUtil.basename("/"))
        self.assertEqual(ScriptUtil.absolute("/srv/./data/../logs"), "/srv/logs")

    def test_explore_lists_directory_as_plain_data(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "b.txt").write_text("b", encoding="utf-8")
            (root / "a.txt").write_text("a", encoding="utf-8")
            (root / ".hidden").write_text("h", encoding="utf-8")

            names = [entry["relative_path"] for entry in ScriptUtil.explore(tmp)]
            self.assertEqual(names, ["a.txt", "b.txt"])

            shown = ScriptUtil.explore(tmp, {"show_hidden": True})
            self.assertEqual(len(shown), 3)

    def test_explore_failure_is_script_error(self) -> None:
        with self.assertRaises(ScriptError):
            ScriptUtil.explore("/definitely/not/here")
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaisesRegex(ScriptError, "unknown node sorter"):
                ScriptUtil.explore(tmp, {"sorters": ["ByColour"]})

    def test_shell_execute_and_quote(self) -> None:
        output = ScriptUtil.shell_execute("sh", ["-c", "printf %s " + ScriptUtil.shell_quote("it's here")])
        self.assertEqual(output["stdout"], "it's here")
        self.assertEqual(output["returncode"], 0)
        self.assertIsNone(output["error_kind"])


class ScriptBridgeTests(unittest.TestCase):
    def test_call_function_decodes_returned_actions(self) -> None:
        bridge = ScriptBridge()
        bridge.register_function("go", lambda app: [{"ChangeDirectory": app["pwd"]}, "FocusNext"])
        self.assertTrue(bridge.has_function("go"))
        self.assertEqual(bridge.call_function("go", {"pwd": "/tmp"}), [ChangeDirectory("/tmp"), FocusNext()])

    def test_call_function_errors(self) -> None:
        bridge = ScriptBridge()

        def raises(_app: object) -> None:
            raise KeyError("pwd")

        bridge.register_function("raises", raises)
        bridge.register_function("junk", lambda _app: ["Teleport"])
        with self.assertRaisesRegex(ScriptError, "no scripted function"):
            bridge.call_function("missing", {})
        with self.assertRaisesRegex(ScriptError, "KeyError"):
            bridge.call_function("raises", {})
        with self.assertRaisesRegex(ScriptError, "invalid actions"):
            bridge.call_function("junk", {})

    def test_none_return_means_no_actions(self) -> None:
        bridge = ScriptBridge()
        bridge.register_function("quiet", lambda _app: None)
        self.assertEqual(bridge.call_function("quiet", {}), [])

    def test_notify_collects_actions_and_failures(self) -> None:
        bridge = ScriptBridge()

        def broken(_app: object) -> None:
            raise RuntimeError("hook exploded")

        bridge.register_hook(HOOK_FOCUS_CHANGE, lambda _app: [{"LogInfo": "first"}])
        bridge.register_hook(HOOK_FOCUS_CHANGE, broken)
        bridge.register_hook(HOOK_FOCUS_CHANGE, lambda _app: [{"LogInfo": "third"}])

        actions, failures = bridge.notify(HOOK_FOCUS_CHANGE, {})
        self.assertEqual(actions, [LogInfo("first"), LogInfo("third")])
        self.assertEqual(len(failures), 1)
        self.assertIn("hook exploded", failures[0])

    def test_unknown_hook_event_is_rejected(self) -> None:
        with self.assertRaises(ConfigError):
            ScriptBridge().register_hook("on_lunch", lambda _app: None)

    def test_explorer_config_provider(self) -> None:
        bridge = ScriptBridge()
        self.assertIsNone(bridge.explorer_config({}))

        bridge.set_explorer_config_provider(lambda _app: {"sorters": ["BySize"]})
        self.assertEqual(bridge.explorer_config({}), ExplorerConfig(sorters=(NodeSorter("BySize"),)))

        bridge.set_explorer_config_provider(lambda _app: {"sorters": "BySize"})
        with self.assertRaises(ScriptError):
            bridge.explorer_config({})

        bridge.set_explorer_config_provider(lambda _app: {"filters": [{"filter": "NameLooksNice"}]})
        with self.assertRaisesRegex(ScriptError, "unknown node filter"):
            bridge.explorer_config({})


class InitScriptTests(unittest.TestCase):
    def test_init_script_registers_hooks_and_functions(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            script = Path(tmp) / "init.py"
            script.write_text(
                "@lazyexplorer.hook('on_focus_change')\n"
                "def announce(app):\n"
                "    return [{'LogInfo': 'focus'}]\n"
                "\n"
                "@lazyexplorer.function()\n"
                "def parent(app):\n"
                "    return [{'ChangeDirectory': lazyexplorer.util.dirname(app['pwd'])}]\n",
                encoding="utf-8",
            )
            bridge = ScriptBridge()
            load_init_script(script, bridge)

        self.assertTrue(bridge.has_hooks(HOOK_FOCUS_CHANGE))
        self.assertEqual(bridge.function_names(), ("parent",))
        self.assertEqual(bridge.call_function("parent", {"pwd": "/srv/data"}), [ChangeDirectory("/srv")])

    def test_failing_init_script_is_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            script = Path(tmp) / "init.py"
            script.write_text("raise SystemError('broken init')\n", encoding="utf-8")
            with self.assertRaisesRegex(ConfigError, "broken init"):
                load_init_script(script, ScriptBridge())

    def test_missing_init_script_is_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ConfigError):
                load_init_script(Path(tmp) / "absent.py", ScriptBridge())


if __name__ == "__main__":
    unittest.main()
