from __future__ import annotations

import tempfile
import threading
import unittest
from pathlib import Path

from lazyexplorer.explorer import ExplorerConfig
from lazyexplorer.runtime.actions import BashExecAsync, FocusNext, Quit
from lazyexplorer.runtime.dispatcher import Dispatcher, DispatcherSettings
from lazyexplorer.runtime.loop import (
    ActionsEvent,
    EventQueue,
    KeyEvent,
    StopEvent,
    run_main_loop,
    start_key_reader,
)
from lazyexplorer.runtime.modes import ModeStack, build_mode_table
from lazyexplorer.runtime.state import AppState
from lazyexplorer.runtime.tasks import TaskRunner


def _make_dispatcher(root: Path, events: EventQueue) -> Dispatcher:
    config = ExplorerConfig()
    state = AppState(pwd=root, explorer_config=config, default_explorer_config=config, mode_stack=ModeStack())
    modes = build_mode_table(
        {
            "default": {
                "key_bindings": {
                    "on_key": {
                        "j": {"messages": ["FocusNext"]},
                        "q": {"messages": ["PrintFocusPathAndQuit"]},
                    }
                }
            }
        }
    )
    dispatcher = Dispatcher(
        state,
        modes,
        TaskRunner(post_result=events.post_task_result),
        settings=DispatcherSettings(shell="sh"),
    )
    dispatcher.start(root)
    return dispatcher


class EventQueueTests(unittest.TestCase):
    def test_events_keep_arrival_order(self) -> None:
        events = EventQueue()
        events.put_key("j")
        events.put_actions([FocusNext()], source="pipe")
        events.put(StopEvent())

        self.assertEqual(
            events.drain(),
            [KeyEvent("j"), ActionsEvent((FocusNext(),), (), "pipe"), StopEvent()],
        )
        self.assertIsNone(events.get(timeout=0.01))


class KeyReaderTests(unittest.TestCase):
    def test_reader_skips_timeouts_and_stops_at_eof(self) -> None:
        keys = iter(["j", "", "k", None])
        events = EventQueue()
        worker = start_key_reader(lambda: next(keys), events)
        worker.join(timeout=2)

        self.assertEqual(events.drain(), [KeyEvent("j"), KeyEvent("k"), StopEvent()])

    def test_reader_os_error_stops_input(self) -> None:
        def failing() -> str | None:
            raise OSError("tty gone")

        events = EventQueue()
        start_key_reader(failing, events).join(timeout=2)
        self.assertEqual(events.drain(), [StopEvent()])


class MainLoopTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        for name in ("a", "b", "c"):
            (self.root / name).write_text(name, encoding="utf-8")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_keys_dispatch_until_quit(self) -> None:
        events = EventQueue()
        dispatcher = _make_dispatcher(self.root, events)
        renders: list[int] = []
        for key in ("j", "j", "q", "j"):
            events.put_key(key)

        state = run_main_loop(dispatcher, events, lambda state: renders.append(state.focus_index))

        self.assertTrue(state.terminated)
        self.assertEqual(state.exit_output, str(self.root / "c"))
        self.assertEqual(renders, [0, 1, 2])

    def test_stop_event_ends_loop_without_termination(self) -> None:
        events = EventQueue()
        dispatcher = _make_dispatcher(self.root, events)
        events.put_actions([FocusNext()])
        events.put(StopEvent())

        state = run_main_loop(dispatcher, events, lambda _state: None)
        self.assertFalse(state.terminated)
        self.assertEqual(state.focus_index, 1)

    def test_background_result_arrives_as_event(self) -> None:
        events = EventQueue()
        dispatcher = _make_dispatcher(self.root, events)
        finished = threading.Event()

        def render(state: AppState) -> None:
            if state.last_task_result is not None:
                finished.set()
                events.put_actions([Quit()])

        events.put_actions([BashExecAsync("printf ready")])
        state = run_main_loop(dispatcher, events, render, quit_grace_seconds=1.0, idle_timeout=0.05)
        self.assertTrue(finished.is_set())
        self.assertEqual(state.last_task_result.stdout, "ready")


if __name__ == "__main__":
    unittest.main()
