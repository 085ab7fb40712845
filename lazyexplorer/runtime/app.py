"""Runtime composition layer for lazyexplorer.

Builds the session (mode table, state, task runner, dispatcher) from the
merged config, then runs the main loop inside the terminal's raw mode.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path

from ..explorer import ExplorerConfig
from ..file_tree_model import Node, absolute_path, list_directory_nodes
from ..render import render_screen
from .config import GeneralSettings, default_init_script_path, load_config, mode_table_from_config, resolve_config
from .control import decode_messages
from .control_pipe import ControlPipe
from .dispatcher import Dispatcher, DispatcherSettings
from .loop import EventQueue, run_main_loop, start_key_reader
from .modes import ROOT_MODE, ModeStack, ModeTable
from .navigation import VisitHistory
from .scripting import ScriptBridge, load_init_script
from .state import AppState
from .tasks import TaskRunner
from .terminal import ExplorerTerminal

logger = logging.getLogger(__name__)


@dataclass
class ExplorerSession:
    """Everything one explorer run owns."""

    state: AppState
    dispatcher: Dispatcher
    events: EventQueue
    task_runner: TaskRunner
    modes: ModeTable
    settings: GeneralSettings
    scripting: ScriptBridge
    environment: dict[str, str] = field(default_factory=dict)


def initial_location(path: Path) -> tuple[Path, Path | None]:
    """Return ``(directory, focus)`` for a start path; files focus in their parent."""
    target = absolute_path(os.path.expanduser(str(path)))
    if target.is_dir():
        return target, None
    return target.parent, target


def build_session(
    path: Path,
    *,
    config_path: Path | None = None,
    init_script: Path | None = None,
    read_only: bool | None = None,
    environment: dict[str, str] | None = None,
    events: EventQueue | None = None,
    lister: Callable[[Path], list[Node]] = list_directory_nodes,
) -> ExplorerSession:
    """Compose a session and load the initial listing.

    Raises ``ConfigError`` when the merged config or the init script is
    unusable; filesystem problems with ``path`` are surfaced as log entries.
    """
    config = resolve_config(load_config(config_path))
    settings = GeneralSettings.from_config(config)
    modes = mode_table_from_config(config)

    scripting = ScriptBridge()
    script_path = init_script if init_script is not None else default_init_script_path()
    if init_script is not None or script_path.exists():
        logger.info("loading init script %s", script_path)
        load_init_script(script_path, scripting)

    root_mode = settings.initial_mode if settings.initial_mode in modes else ROOT_MODE
    if root_mode != settings.initial_mode:
        logger.warning("unknown initial mode %r; using %r", settings.initial_mode, root_mode)

    explorer_config: ExplorerConfig = settings.explorer
    directory, focus = initial_location(path)
    state = AppState(
        pwd=directory,
        explorer_config=explorer_config,
        default_explorer_config=explorer_config,
        mode_stack=ModeStack(root_mode),
        history=VisitHistory(settings.history_limit),
    )
    events = events if events is not None else EventQueue()
    task_runner = TaskRunner(post_result=events.post_task_result)
    extra_env = dict(environment or {})
    dispatcher = Dispatcher(
        state,
        modes,
        task_runner,
        scripting=scripting,
        settings=DispatcherSettings(
            read_only=settings.read_only if read_only is None else read_only,
            notify_unbound_keys=settings.notify_unbound_keys,
            shell=settings.shell,
            environment=extra_env,
        ),
        lister=lister,
    )
    dispatcher.start(directory, focus)
    return ExplorerSession(
        state=state,
        dispatcher=dispatcher,
        events=events,
        task_runner=task_runner,
        modes=modes,
        settings=settings,
        scripting=scripting,
        environment=extra_env,
    )


def apply_on_load(session: ExplorerSession, documents: Sequence[str]) -> None:
    """Dispatch ``--on-load`` control documents in order."""
    for text in documents:
        actions, errors = decode_messages(text)
        session.dispatcher.handle_control(actions, errors)
        if session.state.terminated:
            return


def run_explorer(
    path: Path,
    *,
    config_path: Path | None = None,
    init_script: Path | None = None,
    read_only: bool | None = None,
    on_load: Sequence[str] = (),
) -> AppState:
    """Run the interactive explorer on the controlling terminal."""
    if not os.isatty(sys.stdin.fileno()):
        raise SystemExit("lazyexplorer needs an interactive terminal on stdin")

    events = EventQueue()
    with ControlPipe(events) as pipe:
        session = build_session(
            path,
            config_path=config_path,
            init_script=init_script,
            read_only=read_only,
            environment=pipe.environment(),
            events=events,
        )
        apply_on_load(session, on_load)
        if session.state.terminated:
            return session.state

        with ExplorerTerminal(sys.stdin.fileno(), sys.stdout.fileno()) as terminal:
            start_key_reader(terminal.key_reader(), events)
            return run_main_loop(
                session.dispatcher,
                events,
                partial(render_screen, modes=session.modes),
                quit_grace_seconds=session.settings.quit_grace_seconds,
            )


__all__ = [
    "ExplorerSession",
    "apply_on_load",
    "build_session",
    "initial_location",
    "run_explorer",
]
