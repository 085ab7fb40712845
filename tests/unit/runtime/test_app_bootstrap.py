"""Tests for session composition from config, init script, and start path."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazyexplorer.errors import ConfigError
from lazyexplorer.runtime.actions import BashExec
from lazyexplorer.runtime.app import apply_on_load, build_session, initial_location
from lazyexplorer.runtime.control_pipe import ControlPipe
from lazyexplorer.runtime.loop import ActionsEvent, EventQueue
from lazyexplorer.runtime.modes import ROOT_MODE
from lazyexplorer.runtime.state import LOG_ERROR, LOG_INFO


class SessionTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        base = Path(self._tmp.name)
        self.root = base / "tree"
        self.root.mkdir()
        (self.root / "docs").mkdir()
        (self.root / "notes.txt").write_text("notes", encoding="utf-8")
        (self.root / ".env").write_text("SECRET=1", encoding="utf-8")
        self.config_dir = base / "config"
        self.config_dir.mkdir()
        self.config_path = self.config_dir / "config.yaml"
        patcher = mock.patch("lazyexplorer.runtime.config.CONFIG_PATH", self.config_path)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def names(self, session) -> list[str]:
        return [node.relative_path for node in session.state.nodes]


class InitialLocationTests(SessionTestCase):
    def test_directory_and_file_targets(self) -> None:
        self.assertEqual(initial_location(self.root), (self.root, None))
        self.assertEqual(initial_location(self.root / "notes.txt"), (self.root, self.root / "notes.txt"))


class BuildSessionTests(SessionTestCase):
    def test_defaults_without_user_config(self) -> None:
        session = build_session(self.root)
        self.assertEqual(session.state.pwd, self.root)
        self.assertEqual(session.state.mode, ROOT_MODE)
        self.assertEqual(self.names(session), ["docs", "notes.txt"])
        self.assertFalse(session.dispatcher.settings.read_only)

    def test_file_target_focuses_file(self) -> None:
        session = build_session(self.root / "notes.txt")
        self.assertEqual(session.state.focused_path(), self.root / "notes.txt")

    def test_user_config_is_merged(self) -> None:
        self.config_path.write_text(
            "general:\n"
            "  show_hidden: true\n"
            "  read_only: true\n"
            "  initial_mode: action\n",
            encoding="utf-8",
        )
        session = build_session(self.root)
        self.assertIn(".env", self.names(session))
        self.assertTrue(session.dispatcher.settings.read_only)
        self.assertEqual(session.state.mode_stack.names(), ("action",))

    def test_cli_read_only_overrides_config(self) -> None:
        self.config_path.write_text("general:\n  read_only: true\n", encoding="utf-8")
        session = build_session(self.root, read_only=False)
        self.assertFalse(session.dispatcher.settings.read_only)

    def test_unknown_initial_mode_falls_back_to_root(self) -> None:
        self.config_path.write_text("general:\n  initial_mode: nowhere\n", encoding="utf-8")
        with self.assertLogs("lazyexplorer.runtime.app", level="WARNING"):
            session = build_session(self.root)
        self.assertEqual(session.state.mode, ROOT_MODE)

    def test_explicit_config_path_wins(self) -> None:
        other = self.config_dir / "other.yaml"
        other.write_text("general:\n  show_hidden: true\n", encoding="utf-8")
        session = build_session(self.root, config_path=other)
        self.assertIn(".env", self.names(session))

    def test_missing_start_directory_is_logged_not_raised(self) -> None:
        session = build_session(self.root / "gone" / "deeper")
        self.assertTrue(any("ChangeDirectory failed" in entry.message for entry in session.state.logs))

    def test_invalid_mode_table_raises_config_error(self) -> None:
        self.config_path.write_text(
            "modes:\n  custom:\n    broken:\n      key_bindings:\n        on_key:\n          x:\n            messages: [Teleport]\n",
            encoding="utf-8",
        )
        with self.assertRaises(ConfigError):
            build_session(self.root)


class InitScriptTests(SessionTestCase):
    def test_default_init_script_is_loaded(self) -> None:
        (self.config_dir / "init.py").write_text(
            "@lazyexplorer.hook('on_directory_change')\n"
            "def announce(app):\n"
            "    return [{'LogInfo': 'entered ' + lazyexplorer.util.basename(app['pwd'])}]\n",
            encoding="utf-8",
        )
        session = build_session(self.root)
        self.assertTrue(session.scripting.has_hooks("on_directory_change"))

        apply_on_load(session, ["- FocusFirst\n- Enter\n"])
        self.assertEqual(session.state.pwd, self.root / "docs")
        self.assertIn("entered docs", [entry.message for entry in session.state.logs if entry.level == LOG_INFO])

    def test_missing_explicit_init_script_is_an_error(self) -> None:
        with self.assertRaises(ConfigError):
            build_session(self.root, init_script=self.config_dir / "absent.py")


class OnLoadTests(SessionTestCase):
    def test_documents_apply_in_order_and_report_rejections(self) -> None:
        session = build_session(self.root)
        apply_on_load(session, ["- SelectPath: notes.txt\n- Teleport\n", "[PrintSelectionAndQuit]", "[ClearSelection]"])

        self.assertTrue(session.state.terminated)
        self.assertEqual(session.state.exit_output, str(self.root / "notes.txt"))
        self.assertEqual(len([entry for entry in session.state.logs if entry.level == LOG_ERROR]), 1)


class ControlPipeIntegrationTests(SessionTestCase):
    def test_spawned_command_can_write_control_messages(self) -> None:
        self.config_path.write_text("general:\n  shell: sh\n", encoding="utf-8")
        events = EventQueue()
        with ControlPipe(events) as pipe:
            session = build_session(self.root, environment=pipe.environment(), events=events)
            session.dispatcher.dispatch([BashExec('printf "%s" "- FocusLast" > "$LAZYEXPLORER_PIPE_MSG_IN"')])
            event = events.get(timeout=5)

        self.assertIsInstance(event, ActionsEvent)
        session.dispatcher.handle_control(event.actions, event.errors)
        self.assertEqual(session.state.focused_path(), self.root / "notes.txt")


if __name__ == "__main__":
    unittest.main()
