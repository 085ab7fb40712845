"""Application state aggregate owned by the dispatcher."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path

from ..explorer import ExplorerConfig, Listing
from ..file_tree_model import Node
from .modes import ModeStack
from .navigation import VisitHistory
from .tasks import TaskResult

LOG_INFO = "info"
LOG_SUCCESS = "success"
LOG_WARNING = "warning"
LOG_ERROR = "error"

DEFAULT_LOG_LIMIT = 200


@dataclass(frozen=True)
class LogEntry:
    level: str
    message: str
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, object]:
        return {"level": self.level, "message": self.message, "created_at": self.created_at}


@dataclass
class PendingTask:
    """Dispatcher-side bookkeeping for one in-flight task."""

    task_id: int
    description: str
    background: bool
    mode_depth: int
    discard: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "task_id": self.task_id,
            "description": self.description,
            "background": self.background,
            "discard": self.discard,
        }


@dataclass
class AppState:
    pwd: Path
    explorer_config: ExplorerConfig
    default_explorer_config: ExplorerConfig
    mode_stack: ModeStack
    listing: Listing | None = None
    focus_index: int = 0
    focus_by_directory: dict[Path, Path] = field(default_factory=dict)
    selection: dict[Path, None] = field(default_factory=dict)
    input_buffer: str = ""
    history: VisitHistory = field(default_factory=VisitHistory)
    logs: deque[LogEntry] = field(default_factory=lambda: deque(maxlen=DEFAULT_LOG_LIMIT))
    pending_tasks: dict[int, PendingTask] = field(default_factory=dict)
    last_task_result: TaskResult | None = None
    terminated: bool = False
    exit_code: int = 0
    exit_output: str | None = None
    dirty: bool = True

    @property
    def mode(self) -> str:
        return self.mode_stack.current

    @property
    def nodes(self) -> tuple[Node, ...]:
        return self.listing.nodes if self.listing is not None else ()

    @property
    def focused_node(self) -> Node | None:
        nodes = self.nodes
        if not nodes:
            return None
        return nodes[max(0, min(self.focus_index, len(nodes) - 1))]

    def focused_path(self) -> Path | None:
        node = self.focused_node
        return node.absolute_path if node is not None else None

    def is_selected(self, path: Path) -> bool:
        return path in self.selection

    def selected_paths(self) -> tuple[Path, ...]:
        """Selected paths in the order they were selected."""
        return tuple(self.selection)

    def add_log(self, level: str, message: str) -> LogEntry:
        entry = LogEntry(level=level, message=message)
        self.logs.append(entry)
        self.dirty = True
        return entry

    def has_outstanding_tasks(self) -> bool:
        return any(not task.discard for task in self.pending_tasks.values())


def state_snapshot(state: AppState) -> dict[str, object]:
    """Field-named, plain-data copy of ``state`` for hooks and renderers."""
    focused = state.focused_node
    return {
        "pwd": str(state.pwd),
        "mode": state.mode,
        "mode_stack": list(state.mode_stack.names()),
        "focused_node": focused.to_dict(is_selected=state.is_selected(focused.absolute_path)) if focused else None,
        "focus_index": state.focus_index,
        "directory_listing": state.listing.to_dicts(state.selection) if state.listing is not None else [],
        "selection": [str(path) for path in state.selected_paths()],
        "input_buffer": state.input_buffer,
        "explorer_config": state.explorer_config.to_dict(),
        "logs": [entry.to_dict() for entry in state.logs],
        "pending_tasks": [task.to_dict() for task in state.pending_tasks.values()],
        "last_task_result": state.last_task_result.to_dict() if state.last_task_result is not None else None,
    }


__all__ = [
    "DEFAULT_LOG_LIMIT",
    "LOG_ERROR",
    "LOG_INFO",
    "LOG_SUCCESS",
    "LOG_WARNING",
    "AppState",
    "LogEntry",
    "PendingTask",
    "state_snapshot",
]
