"""Message dispatcher: executes action batches against ``AppState``.

Actions in a batch run strictly in order. The first failing action aborts
the rest of its batch; earlier mutations stay applied and the failure is
logged to state. Hooks and finished tasks may produce follow-up batches,
which run after the current batch, each with its own abort scope.
"""

from __future__ import annotations

import logging
import os
from collections import deque
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path

from ..errors import DispatchError, LazyExplorerError
from ..explorer import ExplorerConfig, Listing, NodeFilter, NodeSorter, explore, validate_filter, validate_sorter
from ..file_tree_model import Node, absolute_path, list_directory_nodes
from ..input.resolver import CANCELLED, PENDING, RESOLVED, UNBOUND, KeyResolver
from . import actions as a
from .modes import ModeTable
from .scripting import (
    HOOK_DIRECTORY_CHANGE,
    HOOK_FOCUS_CHANGE,
    HOOK_MODE_SWITCH,
    HOOK_SELECTION_CHANGE,
    ScriptBridge,
)
from .state import LOG_ERROR, LOG_INFO, LOG_SUCCESS, LOG_WARNING, AppState, PendingTask, state_snapshot
from .tasks import TaskRequest, TaskRunner, command_environment

logger = logging.getLogger(__name__)

MAX_FOLLOWUP_BATCHES = 64


@dataclass(frozen=True)
class DispatcherSettings:
    """Policy switches for the dispatcher."""

    read_only: bool = False
    notify_unbound_keys: bool = True
    shell: str = "bash"
    environment: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class _Observation:
    pwd: Path
    focus: Path | None
    selection: tuple[Path, ...]
    modes: tuple[str, ...]


class Dispatcher:
    """Single owner and mutator of application state."""

    def __init__(
        self,
        state: AppState,
        modes: ModeTable,
        task_runner: TaskRunner,
        *,
        scripting: ScriptBridge | None = None,
        settings: DispatcherSettings | None = None,
        lister: Callable[[Path], list[Node]] = list_directory_nodes,
    ) -> None:
        self.state = state
        self.modes = modes
        self.resolver = KeyResolver(modes)
        self.task_runner = task_runner
        self.scripting = scripting
        self.settings = settings if settings is not None else DispatcherSettings()
        self._lister = lister
        self._followups: deque[tuple[a.Action, ...]] = deque()
        self._handlers: dict[type[a.Action], Callable[..., None]] = {
            a.FocusNext: lambda _action: self._move_focus(1),
            a.FocusPrevious: lambda _action: self._move_focus(-1),
            a.FocusFirst: lambda _action: self._set_focus_index(0),
            a.FocusLast: lambda _action: self._set_focus_index(len(self.state.nodes) - 1),
            a.FocusByIndex: lambda action: self._set_focus_index(action.index),
            a.FocusByFileName: self._focus_by_file_name,
            a.FocusPath: lambda action: self._focus_path(self._resolve(action.path)),
            a.ChangeDirectory: lambda action: self._change_directory(self._resolve(action.path)),
            a.Enter: self._enter,
            a.Back: self._back,
            a.LastVisitedPath: self._last_visited_path,
            a.NextVisitedPath: self._next_visited_path,
            a.FollowSymlink: self._follow_symlink,
            a.ToggleSelection: self._toggle_selection,
            a.ToggleSelectionByPath: lambda action: self._toggle_path(self._resolve(action.path)),
            a.Select: lambda _action: self._select(self._focused_paths()),
            a.SelectPath: lambda action: self._select([self._resolve(action.path)]),
            a.SelectAll: lambda _action: self._select(self.state.listing.paths() if self.state.listing else ()),
            a.UnSelect: lambda _action: self._unselect(self._focused_paths()),
            a.UnSelectPath: lambda action: self._unselect([self._resolve(action.path)]),
            a.UnSelectAll: lambda _action: self._unselect(self.state.listing.paths() if self.state.listing else ()),
            a.ClearSelection: lambda _action: self.state.selection.clear(),
            a.SwitchMode: self._switch_mode,
            a.PushMode: self._push_mode,
            a.PopMode: self._pop_mode,
            a.SetInputBuffer: lambda action: self._set_input_buffer(action.value),
            a.BufferInput: lambda action: self._set_input_buffer(self.state.input_buffer + action.value),
            a.BufferInputFromKey: lambda _action: None,
            a.RemoveInputBufferLastCharacter: lambda _action: self._set_input_buffer(self.state.input_buffer[:-1]),
            a.ResetInputBuffer: lambda _action: self._set_input_buffer(""),
            a.AddNodeFilter: lambda action: self._add_filter(NodeFilter(action.filter, action.input)),
            a.RemoveNodeFilter: lambda action: self._update_explorer_config(
                self.state.explorer_config.with_filter_removed(NodeFilter(action.filter, action.input))
            ),
            a.ToggleNodeFilter: self._toggle_filter,
            a.AddNodeFilterFromInput: lambda action: self._add_filter(NodeFilter(action.filter, self.state.input_buffer)),
            a.ClearNodeFilters: lambda _action: self._update_explorer_config(replace(self.state.explorer_config, filters=())),
            a.ResetNodeFilters: lambda _action: self._update_explorer_config(
                replace(self.state.explorer_config, filters=self.state.default_explorer_config.filters)
            ),
            a.AddNodeSorter: self._add_sorter,
            a.RemoveNodeSorter: lambda action: self._update_explorer_config(
                self.state.explorer_config.with_sorter_removed(action.sorter)
            ),
            a.ReverseNodeSorters: lambda _action: self._update_explorer_config(
                self.state.explorer_config.with_sorters_reversed()
            ),
            a.ClearNodeSorters: lambda _action: self._update_explorer_config(replace(self.state.explorer_config, sorters=())),
            a.ResetNodeSorters: lambda _action: self._update_explorer_config(
                replace(self.state.explorer_config, sorters=self.state.default_explorer_config.sorters)
            ),
            a.ToggleHidden: lambda _action: self._update_explorer_config(
                replace(self.state.explorer_config, show_hidden=not self.state.explorer_config.show_hidden)
            ),
            a.ExplorePwd: lambda _action: self.refresh(),
            a.Refresh: lambda _action: self.refresh(),
            a.Call: lambda action: self._start_command(action.program, action.args, background=False),
            a.CallAsync: lambda action: self._start_command(action.program, action.args, background=True),
            a.BashExec: lambda action: self._start_command(self.settings.shell, ("-c", action.script), background=False),
            a.BashExecAsync: lambda action: self._start_command(self.settings.shell, ("-c", action.script), background=True),
            a.CallHook: lambda action: self._start_hook(action.name, background=False),
            a.CallHookAsync: lambda action: self._start_hook(action.name, background=True),
            a.CancelPending: self._cancel_pending,
            a.TaskCompleted: self._task_completed,
            a.LogInfo: lambda action: self.state.add_log(LOG_INFO, action.message),
            a.LogSuccess: lambda action: self.state.add_log(LOG_SUCCESS, action.message),
            a.LogWarning: lambda action: self.state.add_log(LOG_WARNING, action.message),
            a.LogError: lambda action: self.state.add_log(LOG_ERROR, action.message),
            a.Quit: lambda _action: self._quit(None),
            a.PrintPwdAndQuit: lambda _action: self._quit(str(self.state.pwd)),
            a.PrintFocusPathAndQuit: lambda _action: self._quit(self._focus_output()),
            a.PrintSelectionAndQuit: lambda _action: self._quit(self._selection_output()),
            a.PrintResultAndQuit: lambda _action: self._quit(self._selection_output() or self._focus_output()),
            a.Terminate: lambda _action: self._quit(None, exit_code=1),
        }
        missing = sorted(name for name, cls in a.ACTION_TYPES.items() if cls not in self._handlers)
        if missing:
            raise RuntimeError(f"dispatcher has no handler for: {', '.join(missing)}")

    # Entry points.

    def set_modes(self, modes: ModeTable) -> None:
        """Swap the mode table; an in-flight key sequence keeps the old one."""
        self.modes = modes
        self.resolver.set_modes(modes)

    def handle_key(self, key: str) -> None:
        """Resolve ``key`` in the current mode and dispatch the result."""
        next_key: str | None = key
        while next_key is not None and not self.state.terminated:
            resolution = self.resolver.feed(self.state.mode, next_key)
            next_key = resolution.refeed
            keys = " ".join(resolution.keys)
            if resolution.status == RESOLVED:
                self.dispatch(resolution.actions)
            elif resolution.status == UNBOUND:
                logger.debug("unbound key sequence %r in mode %s", keys, self.state.mode)
                if self.settings.notify_unbound_keys:
                    self.state.add_log(LOG_WARNING, f"unbound key: {keys}")
            elif resolution.status in {PENDING, CANCELLED}:
                self.state.dirty = True

    def handle_control(self, actions: Sequence[a.Action], errors: Iterable[Exception] = ()) -> None:
        """Dispatch a decoded control batch, reporting rejected entries first."""
        for error in errors:
            logger.warning("rejected control message: %s", error)
            self.state.add_log(LOG_ERROR, f"rejected control message: {error}")
        if actions:
            self.dispatch(actions)

    def dispatch(self, batch: Sequence[a.Action]) -> bool:
        """Run ``batch`` and any follow-ups; return whether ``batch`` completed."""
        completed = self._run_batch(tuple(batch))
        remaining = MAX_FOLLOWUP_BATCHES
        while self._followups and not self.state.terminated:
            if remaining <= 0:
                dropped = len(self._followups)
                self._followups.clear()
                self.state.add_log(LOG_ERROR, f"dropped {dropped} follow-up batch(es): hook chain too deep")
                break
            remaining -= 1
            self._run_batch(self._followups.popleft())
        return completed

    def start(self, directory: Path, focus: Path | None = None) -> None:
        """Load the initial listing; failures are surfaced, not raised."""
        batch: list[a.Action] = [a.ChangeDirectory(str(directory))]
        if focus is not None:
            batch.append(a.FocusPath(str(focus)))
        self.dispatch(batch)

    # Batch execution.

    def _observe(self) -> _Observation:
        return _Observation(
            pwd=self.state.pwd,
            focus=self.state.focused_path(),
            selection=self.state.selected_paths(),
            modes=self.state.mode_stack.names(),
        )

    def _run_batch(self, batch: tuple[a.Action, ...]) -> bool:
        before = self._observe()
        completed = True
        for action in batch:
            if self.state.terminated:
                break
            try:
                self._apply(action)
            except (LazyExplorerError, OSError) as exc:
                self._fail(action, str(exc))
                completed = False
                break
            except Exception as exc:
                logger.exception("unexpected failure in %s", action.tag)
                self._fail(action, f"internal error: {type(exc).__name__}: {exc}")
                completed = False
                break
        self.state.dirty = True
        if not self.state.terminated:
            self._notify_hooks(before)
        return completed

    def _apply(self, action: a.Action) -> None:
        logger.debug("dispatching %s", action)
        self._handlers[type(action)](action)

    def _fail(self, action: a.Action, message: str) -> None:
        logger.warning("%s failed: %s", action.tag, message)
        self.state.add_log(LOG_ERROR, f"{action.tag} failed: {message}")

    def _notify_hooks(self, before: _Observation) -> None:
        if self.scripting is None:
            return
        after = self._observe()
        events: list[str] = []
        if after.pwd != before.pwd:
            events.append(HOOK_DIRECTORY_CHANGE)
        if after.focus != before.focus:
            events.append(HOOK_FOCUS_CHANGE)
        if after.selection != before.selection:
            events.append(HOOK_SELECTION_CHANGE)
        if after.modes != before.modes:
            events.append(HOOK_MODE_SWITCH)
        for event in events:
            if not self.scripting.has_hooks(event):
                continue
            produced, failures = self.scripting.notify(event, state_snapshot(self.state))
            for failure in failures:
                self.state.add_log(LOG_ERROR, failure)
            if produced:
                self._followups.append(tuple(produced))

    # Directory and listing.

    def _resolve(self, raw: str) -> Path:
        return absolute_path(os.path.expanduser(raw), base=self.state.pwd)

    def _effective_explorer_config(self) -> ExplorerConfig:
        if self.scripting is not None:
            scripted = self.scripting.explorer_config(state_snapshot(self.state))
            if scripted is not None:
                return scripted
        return self.state.explorer_config

    def _explore(self, directory: Path) -> Listing:
        return explore(directory, self._effective_explorer_config(), lister=self._lister)

    def _change_directory(self, target: Path, record_history: bool = True) -> None:
        listing = self._explore(target)
        state = self.state
        if record_history and target != state.pwd:
            state.history.record(state.pwd)
        state.pwd = target
        state.listing = listing
        remembered = state.focus_by_directory.get(target)
        index = listing.index_of(remembered) if remembered is not None else None
        self._set_focus_index(index or 0)

    def refresh(self) -> None:
        """Re-read the current directory, keeping focus and pruning selection."""
        state = self.state
        previous_focus = state.focused_path()
        previous_index = state.focus_index
        listing = self._explore(state.pwd)
        state.listing = listing
        index = listing.index_of(previous_focus) if previous_focus is not None else None
        self._set_focus_index(previous_index if index is None else index)
        self._prune_selection()

    def _prune_selection(self) -> None:
        for path in list(self.state.selection):
            if not path.exists() and not path.is_symlink():
                del self.state.selection[path]

    def _enter(self, _action: a.Action) -> None:
        node = self.state.focused_node
        if node is None:
            return
        if not node.is_dir:
            raise DispatchError(f"not a directory: {node.absolute_path}")
        self._change_directory(node.absolute_path)

    def _back(self, _action: a.Action) -> None:
        previous = self.state.pwd
        parent = previous.parent
        if parent == previous:
            return
        self._change_directory(parent)
        self._focus_if_listed(previous)

    def _last_visited_path(self, _action: a.Action) -> None:
        current = self.state.pwd
        target = self.state.history.go_back(current)
        if target is None:
            return
        try:
            self._change_directory(target, record_history=False)
        except LazyExplorerError:
            self.state.history.undo_back(target, current)
            raise

    def _next_visited_path(self, _action: a.Action) -> None:
        current = self.state.pwd
        target = self.state.history.go_forward(current)
        if target is None:
            return
        try:
            self._change_directory(target, record_history=False)
        except LazyExplorerError:
            self.state.history.undo_forward(target, current)
            raise

    def _follow_symlink(self, _action: a.Action) -> None:
        node = self.state.focused_node
        if node is None:
            return
        if not node.is_symlink or node.symlink_target is None:
            raise DispatchError(f"not a symlink: {node.absolute_path}")
        if node.is_broken:
            raise DispatchError(f"broken symlink: {node.absolute_path} -> {node.symlink_target}")
        self._focus_path(absolute_path(node.symlink_target, base=node.parent))

    # Focus.

    def _set_focus_index(self, index: int) -> None:
        state = self.state
        nodes = state.nodes
        state.focus_index = max(0, min(index, len(nodes) - 1)) if nodes else 0
        focused = state.focused_path()
        if focused is not None:
            state.focus_by_directory[state.pwd] = focused

    def _move_focus(self, delta: int) -> None:
        self._set_focus_index(self.state.focus_index + delta)

    def _focus_if_listed(self, path: Path) -> bool:
        listing = self.state.listing
        index = listing.index_of(path) if listing is not None else None
        if index is None:
            return False
        self._set_focus_index(index)
        return True

    def _focus_by_file_name(self, action: a.FocusByFileName) -> None:
        for index, node in enumerate(self.state.nodes):
            if node.relative_path == action.name:
                self._set_focus_index(index)
                return
        raise DispatchError(f"no entry named {action.name!r} in {self.state.pwd}")

    def _focus_path(self, target: Path) -> None:
        parent = target.parent
        if parent == target:
            self._change_directory(target)
            return
        if parent != self.state.pwd:
            self._change_directory(parent)
        if not self._focus_if_listed(target):
            raise DispatchError(f"not in listing: {target}")

    # Selection.

    def _focused_paths(self) -> list[Path]:
        focused = self.state.focused_path()
        return [focused] if focused is not None else []

    def _select(self, paths: Iterable[Path]) -> None:
        for path in paths:
            self.state.selection[path] = None

    def _unselect(self, paths: Iterable[Path]) -> None:
        for path in paths:
            self.state.selection.pop(path, None)

    def _toggle_path(self, path: Path) -> None:
        if path in self.state.selection:
            del self.state.selection[path]
        else:
            self.state.selection[path] = None

    def _toggle_selection(self, _action: a.Action) -> None:
        for path in self._focused_paths():
            self._toggle_path(path)

    # Modes and input.

    def _require_mode(self, name: str) -> None:
        if name not in self.modes:
            raise DispatchError(f"unknown mode: {name}")

    def _switch_mode(self, action: a.SwitchMode) -> None:
        self._require_mode(action.mode)
        self.state.mode_stack.switch(action.mode)

    def _push_mode(self, action: a.PushMode) -> None:
        self._require_mode(action.mode)
        self.state.mode_stack.push(action.mode)

    def _pop_mode(self, _action: a.Action) -> None:
        stack = self.state.mode_stack
        if not stack.pop():
            logger.debug("pop at root mode %s ignored", stack.current)
            return
        for task in self.state.pending_tasks.values():
            if task.background and task.mode_depth > stack.depth:
                task.discard = True

    def _set_input_buffer(self, value: str) -> None:
        self.state.input_buffer = value

    # Explorer config.

    def _update_explorer_config(self, config: ExplorerConfig) -> None:
        self.state.explorer_config = config
        self.refresh()

    def _add_filter(self, node_filter: NodeFilter) -> None:
        validate_filter(node_filter)
        self._update_explorer_config(self.state.explorer_config.with_filter_added(node_filter))

    def _toggle_filter(self, action: a.ToggleNodeFilter) -> None:
        node_filter = NodeFilter(action.filter, action.input)
        if node_filter in self.state.explorer_config.filters:
            self._update_explorer_config(self.state.explorer_config.with_filter_removed(node_filter))
        else:
            self._add_filter(node_filter)

    def _add_sorter(self, action: a.AddNodeSorter) -> None:
        sorter = NodeSorter(action.sorter, action.reverse)
        validate_sorter(sorter)
        self._update_explorer_config(self.state.explorer_config.with_sorter_added(sorter))

    # Tasks.

    def _command_env(self) -> dict[str, str]:
        state = self.state
        focused = state.focused_path()
        return command_environment(
            {
                **self.settings.environment,
                "LAZYEXPLORER_PWD": str(state.pwd),
                "LAZYEXPLORER_FOCUS_PATH": str(focused) if focused is not None else "",
                "LAZYEXPLORER_SELECTION": "\n".join(str(path) for path in state.selected_paths()),
                "LAZYEXPLORER_INPUT_BUFFER": state.input_buffer,
                "LAZYEXPLORER_MODE": state.mode,
            }
        )

    def _run_task(self, request: TaskRequest, background: bool) -> None:
        self.state.pending_tasks[request.task_id] = PendingTask(
            task_id=request.task_id,
            description=request.description,
            background=background,
            mode_depth=self.state.mode_stack.depth,
        )
        if background:
            self.task_runner.submit_background(request)
            return
        result = self.task_runner.run_foreground(request)
        self._apply(a.TaskCompleted(task_id=request.task_id, result=result))

    def _start_command(self, program: str, args: Sequence[str], *, background: bool) -> None:
        if self.settings.read_only:
            raise DispatchError(f"read-only mode: refusing to run {program}")
        self._run_task(
            TaskRequest(
                task_id=self.task_runner.next_task_id(),
                description=" ".join([program, *args]),
                program=program,
                args=tuple(args),
                cwd=self.state.pwd,
                env=self._command_env(),
            ),
            background,
        )

    def _start_hook(self, name: str, *, background: bool) -> None:
        bridge = self.scripting
        if bridge is None or not bridge.has_function(name):
            raise DispatchError(f"no scripted function named {name!r}")
        snapshot = state_snapshot(self.state)
        self._run_task(
            TaskRequest(
                task_id=self.task_runner.next_task_id(),
                description=f"hook {name}",
                callback=lambda: bridge.call_function(name, snapshot),
            ),
            background,
        )

    def _cancel_pending(self, _action: a.Action) -> None:
        cancelled = 0
        for task in self.state.pending_tasks.values():
            if task.background and not task.discard:
                task.discard = True
                cancelled += 1
        if cancelled:
            self.state.add_log(LOG_INFO, f"cancelled {cancelled} pending task(s)")

    def _task_completed(self, action: a.TaskCompleted) -> None:
        pending = self.state.pending_tasks.pop(action.task_id, None)
        if pending is None:
            logger.debug("ignoring result for unknown task %d", action.task_id)
            return
        if pending.discard:
            logger.info("discarding result of cancelled task %d (%s)", pending.task_id, pending.description)
            return
        result = action.result
        self.state.last_task_result = result
        if not result.ok:
            detail = result.stderr.strip().splitlines()[-1] if result.stderr.strip() else ""
            message = result.error_message if not detail else f"{result.error_message}: {detail}"
            self.state.add_log(LOG_ERROR, message)
            return
        if isinstance(result.value, list) and result.value:
            self._followups.append(tuple(result.value))

    # Termination.

    def _focus_output(self) -> str:
        focused = self.state.focused_path()
        return str(focused) if focused is not None else ""

    def _selection_output(self) -> str:
        return "\n".join(str(path) for path in self.state.selected_paths())

    def _quit(self, output: str | None, exit_code: int = 0) -> None:
        self.state.terminated = True
        self.state.exit_code = exit_code
        self.state.exit_output = output


__all__ = [
    "MAX_FOLLOWUP_BATCHES",
    "Dispatcher",
    "DispatcherSettings",
]
