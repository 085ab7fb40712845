"""External command and scripted-callback execution.

Foreground tasks run on the caller's thread. Background tasks run on a
daemon thread each and post their ``TaskResult`` through ``post_result``;
the runner keeps no application state beyond the thread handles it needs
for the shutdown grace period.

There is no timeout: a hung foreground command blocks the
input loop until it exits. Use the async variants for long-running work.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

ERROR_SPAWN_FAILED = "spawn_failed"
ERROR_NONZERO_EXIT = "nonzero_exit"
ERROR_SIGNALED = "signaled"
ERROR_CALLBACK_FAILED = "callback_failed"


def shell_quote(value: str) -> str:
    """Single-quote ``value`` so a POSIX shell reads it back verbatim."""
    return "'" + value.replace("'", "'\"'\"'") + "'"


@dataclass(frozen=True)
class TaskResult:
    """Captured outcome of one external command or callback."""

    task_id: int
    description: str
    stdout: str = ""
    stderr: str = ""
    returncode: int | None = None
    signal: int | None = None
    error_kind: str | None = None
    error_message: str = ""
    value: object = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    def to_dict(self) -> dict[str, object]:
        return {
            "task_id": self.task_id,
            "description": self.description,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "returncode": self.returncode,
            "signal": self.signal,
            "error_kind": self.error_kind,
            "error_message": self.error_message,
        }


@dataclass(frozen=True)
class CommandOutput:
    stdout: str
    stderr: str
    returncode: int | None
    signal: int | None
    error_kind: str | None
    error_message: str = ""


def run_command(
    program: str,
    args: Sequence[str] = (),
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> CommandOutput:
    """Run ``program`` with ``args`` and capture both output streams.

    Never raises for process failures: spawn errors, non-zero exits, and
    signal termination are reported through ``error_kind``.
    """
    try:
        completed = subprocess.run(
            [program, *args],
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            check=False,
        )
    except OSError as exc:
        return CommandOutput(
            stdout="",
            stderr="",
            returncode=None,
            signal=None,
            error_kind=ERROR_SPAWN_FAILED,
            error_message=f"failed to spawn {program}: {exc.strerror or exc}",
        )

    stdout = completed.stdout.decode("utf-8", errors="replace")
    stderr = completed.stderr.decode("utf-8", errors="replace")
    code = completed.returncode
    if code < 0:
        signum = -code
        try:
            signame = signal.Signals(signum).name
        except ValueError:
            signame = str(signum)
        return CommandOutput(stdout, stderr, None, signum, ERROR_SIGNALED, f"{program} killed by {signame}")
    if code != 0:
        return CommandOutput(stdout, stderr, code, None, ERROR_NONZERO_EXIT, f"{program} exited with status {code}")
    return CommandOutput(stdout, stderr, code, None, None)


@dataclass(frozen=True)
class TaskRequest:
    """One unit of work for the runner: a command or a callback."""

    task_id: int
    description: str
    program: str | None = None
    args: tuple[str, ...] = ()
    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    callback: Callable[[], object] | None = field(default=None, compare=False)


def execute(request: TaskRequest) -> TaskResult:
    """Run ``request`` to completion on the current thread."""
    if request.callback is not None:
        try:
            value = request.callback()
        except Exception as exc:
            logger.exception("task %d (%s) raised", request.task_id, request.description)
            return TaskResult(
                task_id=request.task_id,
                description=request.description,
                error_kind=ERROR_CALLBACK_FAILED,
                error_message=f"{request.description} failed: {exc}",
            )
        return TaskResult(task_id=request.task_id, description=request.description, returncode=0, value=value)

    if request.program is None:
        raise ValueError("task request needs a program or a callback")
    output = run_command(request.program, request.args, cwd=request.cwd, env=request.env)
    return TaskResult(
        task_id=request.task_id,
        description=request.description,
        stdout=output.stdout,
        stderr=output.stderr,
        returncode=output.returncode,
        signal=output.signal,
        error_kind=output.error_kind,
        error_message=output.error_message,
    )


class TaskRunner:
    """Run task requests in the foreground or on background threads."""

    def __init__(self, post_result: Callable[[TaskResult], None]) -> None:
        self._post_result = post_result
        self._lock = threading.Lock()
        self._next_task_id = 1
        self._threads: dict[int, threading.Thread] = {}

    def next_task_id(self) -> int:
        with self._lock:
            task_id = self._next_task_id
            self._next_task_id += 1
            return task_id

    def run_foreground(self, request: TaskRequest) -> TaskResult:
        logger.debug("running task %d in foreground: %s", request.task_id, request.description)
        return execute(request)

    def _worker(self, request: TaskRequest) -> None:
        try:
            result = execute(request)
        finally:
            with self._lock:
                self._threads.pop(request.task_id, None)
        self._post_result(result)

    def submit_background(self, request: TaskRequest) -> int:
        """Start ``request`` on a daemon thread and return its task id."""
        logger.debug("submitting task %d to background: %s", request.task_id, request.description)
        worker = threading.Thread(
            target=self._worker,
            args=(request,),
            name=f"lazyexplorer-task-{request.task_id}",
            daemon=True,
        )
        with self._lock:
            self._threads[request.task_id] = worker
        worker.start()
        return request.task_id

    def running_task_ids(self) -> tuple[int, ...]:
        with self._lock:
            return tuple(self._threads)

    def shutdown(self, grace_seconds: float) -> tuple[int, ...]:
        """Wait up to ``grace_seconds`` for background tasks; return stragglers."""
        deadline = time.monotonic() + max(0.0, grace_seconds)
        with self._lock:
            threads = list(self._threads.values())
        for worker in threads:
            worker.join(max(0.0, deadline - time.monotonic()))
        stragglers = self.running_task_ids()
        if stragglers:
            logger.warning("abandoning %d background task(s) after grace period", len(stragglers))
        return stragglers


def command_environment(extra: Mapping[str, str]) -> dict[str, str]:
    env = dict(os.environ)
    env.update(extra)
    return env


__all__ = [
    "ERROR_CALLBACK_FAILED",
    "ERROR_NONZERO_EXIT",
    "ERROR_SIGNALED",
    "ERROR_SPAWN_FAILED",
    "CommandOutput",
    "TaskRequest",
    "TaskResult",
    "TaskRunner",
    "command_environment",
    "execute",
    "run_command",
    "shell_quote",
]
