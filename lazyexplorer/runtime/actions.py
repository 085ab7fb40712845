"""Closed set of action descriptions executed by the dispatcher.

Actions are frozen dataclasses holding plain data only. The tag used in
config files and control messages is the class name. ``ACTION_TYPES`` is
the authoritative registry; the dispatcher refuses to start unless it has
a handler for every entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .tasks import TaskResult


@dataclass(frozen=True)
class Action:
    """Base class for every dispatchable action."""

    @property
    def tag(self) -> str:
        return type(self).__name__


# Focus and navigation.


@dataclass(frozen=True)
class FocusNext(Action):
    pass


@dataclass(frozen=True)
class FocusPrevious(Action):
    pass


@dataclass(frozen=True)
class FocusFirst(Action):
    pass


@dataclass(frozen=True)
class FocusLast(Action):
    pass


@dataclass(frozen=True)
class FocusByIndex(Action):
    index: int


@dataclass(frozen=True)
class FocusByFileName(Action):
    name: str


@dataclass(frozen=True)
class FocusPath(Action):
    path: str


@dataclass(frozen=True)
class ChangeDirectory(Action):
    path: str


@dataclass(frozen=True)
class Enter(Action):
    pass


@dataclass(frozen=True)
class Back(Action):
    pass


@dataclass(frozen=True)
class LastVisitedPath(Action):
    pass


@dataclass(frozen=True)
class NextVisitedPath(Action):
    pass


@dataclass(frozen=True)
class FollowSymlink(Action):
    pass


# Selection.


@dataclass(frozen=True)
class ToggleSelection(Action):
    pass


@dataclass(frozen=True)
class ToggleSelectionByPath(Action):
    path: str


@dataclass(frozen=True)
class Select(Action):
    pass


@dataclass(frozen=True)
class SelectPath(Action):
    path: str


@dataclass(frozen=True)
class SelectAll(Action):
    pass


@dataclass(frozen=True)
class UnSelect(Action):
    pass


@dataclass(frozen=True)
class UnSelectPath(Action):
    path: str


@dataclass(frozen=True)
class UnSelectAll(Action):
    pass


@dataclass(frozen=True)
class ClearSelection(Action):
    pass


# Modes.


@dataclass(frozen=True)
class SwitchMode(Action):
    mode: str


@dataclass(frozen=True)
class PushMode(Action):
    mode: str


@dataclass(frozen=True)
class PopMode(Action):
    pass


# Input buffer.


@dataclass(frozen=True)
class SetInputBuffer(Action):
    value: str


@dataclass(frozen=True)
class BufferInput(Action):
    value: str


@dataclass(frozen=True)
class BufferInputFromKey(Action):
    """Placeholder the resolver replaces with ``BufferInput(<pressed key>)``."""


@dataclass(frozen=True)
class RemoveInputBufferLastCharacter(Action):
    pass


@dataclass(frozen=True)
class ResetInputBuffer(Action):
    pass


# Explorer policy and refresh.


@dataclass(frozen=True)
class AddNodeFilter(Action):
    filter: str
    input: str = ""


@dataclass(frozen=True)
class RemoveNodeFilter(Action):
    filter: str
    input: str = ""


@dataclass(frozen=True)
class ToggleNodeFilter(Action):
    filter: str
    input: str = ""


@dataclass(frozen=True)
class AddNodeFilterFromInput(Action):
    """Add ``filter`` using the current input buffer as its argument."""

    filter: str


@dataclass(frozen=True)
class ClearNodeFilters(Action):
    pass


@dataclass(frozen=True)
class ResetNodeFilters(Action):
    pass


@dataclass(frozen=True)
class AddNodeSorter(Action):
    sorter: str
    reverse: bool = False


@dataclass(frozen=True)
class RemoveNodeSorter(Action):
    sorter: str


@dataclass(frozen=True)
class ReverseNodeSorters(Action):
    pass


@dataclass(frozen=True)
class ClearNodeSorters(Action):
    pass


@dataclass(frozen=True)
class ResetNodeSorters(Action):
    pass


@dataclass(frozen=True)
class ToggleHidden(Action):
    pass


@dataclass(frozen=True)
class ExplorePwd(Action):
    pass


@dataclass(frozen=True)
class Refresh(Action):
    pass


# External tasks.


@dataclass(frozen=True)
class Call(Action):
    """Run ``program`` in the foreground and wait for its captured output."""

    program: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class CallAsync(Action):
    """Run ``program`` in the background; its result arrives later."""

    program: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class BashExec(Action):
    script: str


@dataclass(frozen=True)
class BashExecAsync(Action):
    script: str


@dataclass(frozen=True)
class CallHook(Action):
    """Invoke a named scripted function in the foreground."""

    name: str


@dataclass(frozen=True)
class CallHookAsync(Action):
    name: str


@dataclass(frozen=True)
class CancelPending(Action):
    """Mark every outstanding background task result as discardable."""


@dataclass(frozen=True)
class TaskCompleted(Action):
    """Synthetic action carrying a finished task's captured result."""

    task_id: int
    result: TaskResult


# Diagnostics.


@dataclass(frozen=True)
class LogInfo(Action):
    message: str


@dataclass(frozen=True)
class LogSuccess(Action):
    message: str


@dataclass(frozen=True)
class LogWarning(Action):
    message: str


@dataclass(frozen=True)
class LogError(Action):
    message: str


# Termination.


@dataclass(frozen=True)
class Quit(Action):
    pass


@dataclass(frozen=True)
class PrintPwdAndQuit(Action):
    pass


@dataclass(frozen=True)
class PrintFocusPathAndQuit(Action):
    pass


@dataclass(frozen=True)
class PrintSelectionAndQuit(Action):
    pass


@dataclass(frozen=True)
class PrintResultAndQuit(Action):
    """Quit printing the selection, or the focused path when nothing is selected."""


@dataclass(frozen=True)
class Terminate(Action):
    """Quit immediately with a non-zero exit status and no output."""


ACTION_TYPES: dict[str, type[Action]] = {
    cls.__name__: cls
    for cls in (
        FocusNext,
        FocusPrevious,
        FocusFirst,
        FocusLast,
        FocusByIndex,
        FocusByFileName,
        FocusPath,
        ChangeDirectory,
        Enter,
        Back,
        LastVisitedPath,
        NextVisitedPath,
        FollowSymlink,
        ToggleSelection,
        ToggleSelectionByPath,
        Select,
        SelectPath,
        SelectAll,
        UnSelect,
        UnSelectPath,
        UnSelectAll,
        ClearSelection,
        SwitchMode,
        PushMode,
        PopMode,
        SetInputBuffer,
        BufferInput,
        BufferInputFromKey,
        RemoveInputBufferLastCharacter,
        ResetInputBuffer,
        AddNodeFilter,
        RemoveNodeFilter,
        ToggleNodeFilter,
        AddNodeFilterFromInput,
        ClearNodeFilters,
        ResetNodeFilters,
        AddNodeSorter,
        RemoveNodeSorter,
        ReverseNodeSorters,
        ClearNodeSorters,
        ResetNodeSorters,
        ToggleHidden,
        ExplorePwd,
        Refresh,
        Call,
        CallAsync,
        BashExec,
        BashExecAsync,
        CallHook,
        CallHookAsync,
        CancelPending,
        TaskCompleted,
        LogInfo,
        LogSuccess,
        LogWarning,
        LogError,
        Quit,
        PrintPwdAndQuit,
        PrintFocusPathAndQuit,
        PrintSelectionAndQuit,
        PrintResultAndQuit,
        Terminate,
    )
}

# Produced internally only; control messages may not carry these.
INTERNAL_ACTION_TYPES: frozenset[type[Action]] = frozenset({TaskCompleted})
