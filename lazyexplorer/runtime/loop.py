"""Single-threaded event loop feeding keys and task results to the dispatcher.

Key readers, control channels, and background tasks all post into one
``EventQueue``; the loop takes events in arrival order and fully
dispatches each before taking the next, so rendering never observes a
half-applied batch.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from queue import Empty, Queue

from .actions import Action, TaskCompleted
from .dispatcher import Dispatcher
from .state import AppState
from .tasks import TaskResult

logger = logging.getLogger(__name__)

DEFAULT_QUIT_GRACE_SECONDS = 2.0


@dataclass(frozen=True)
class KeyEvent:
    key: str


@dataclass(frozen=True)
class ActionsEvent:
    """A decoded batch from a control message or a finished task."""

    actions: tuple[Action, ...]
    errors: tuple[Exception, ...] = ()
    source: str = "control"


@dataclass(frozen=True)
class StopEvent:
    """Input source closed; the loop should wind down."""


Event = KeyEvent | ActionsEvent | StopEvent


class EventQueue:
    """Thread-safe FIFO shared by every event producer."""

    def __init__(self) -> None:
        self._queue: Queue[Event] = Queue()

    def put(self, event: Event) -> None:
        self._queue.put(event)

    def put_key(self, key: str) -> None:
        self.put(KeyEvent(key))

    def put_actions(
        self,
        actions: Sequence[Action],
        errors: Sequence[Exception] = (),
        source: str = "control",
    ) -> None:
        self.put(ActionsEvent(tuple(actions), tuple(errors), source))

    def post_task_result(self, result: TaskResult) -> None:
        """Callback for ``TaskRunner``: wrap a result as a synthetic action."""
        self.put_actions([TaskCompleted(task_id=result.task_id, result=result)], source="task")

    def get(self, timeout: float | None = None) -> Event | None:
        try:
            return self._queue.get(timeout=timeout)
        except Empty:
            return None

    def drain(self) -> list[Event]:
        out: list[Event] = []
        while True:
            try:
                out.append(self._queue.get_nowait())
            except Empty:
                break
        return out


def start_key_reader(read_key: Callable[[], str | None], events: EventQueue) -> threading.Thread:
    """Pump ``read_key`` results into ``events`` on a daemon thread.

    ``read_key`` returning ``None`` means the input source closed.
    """

    def pump() -> None:
        while True:
            try:
                key = read_key()
            except OSError as exc:
                logger.warning("key reader stopped: %s", exc)
                key = None
            if key is None:
                events.put(StopEvent())
                return
            if key:
                events.put_key(key)

    worker = threading.Thread(target=pump, name="lazyexplorer-key-reader", daemon=True)
    worker.start()
    return worker


def process_event(dispatcher: Dispatcher, event: Event) -> None:
    if isinstance(event, KeyEvent):
        dispatcher.handle_key(event.key)
    elif isinstance(event, ActionsEvent):
        dispatcher.handle_control(event.actions, event.errors)


def run_main_loop(
    dispatcher: Dispatcher,
    events: EventQueue,
    render: Callable[[AppState], None],
    *,
    quit_grace_seconds: float = DEFAULT_QUIT_GRACE_SECONDS,
    idle_timeout: float | None = None,
) -> AppState:
    """Run until a quit action or a ``StopEvent``; return the final state.

    After termination, outstanding background tasks get ``quit_grace_seconds``
    to finish; their results are not applied.
    """
    state = dispatcher.state
    render(state)
    state.dirty = False
    while not state.terminated:
        event = events.get(timeout=idle_timeout)
        if event is None:
            continue
        if isinstance(event, StopEvent):
            logger.info("input closed; stopping main loop")
            break
        process_event(dispatcher, event)
        if state.dirty and not state.terminated:
            render(state)
            state.dirty = False

    dispatcher.task_runner.shutdown(quit_grace_seconds)
    return state


__all__ = [
    "DEFAULT_QUIT_GRACE_SECONDS",
    "ActionsEvent",
    "Event",
    "EventQueue",
    "KeyEvent",
    "StopEvent",
    "process_event",
    "run_main_loop",
    "start_key_reader",
]
