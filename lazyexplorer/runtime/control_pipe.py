"""Named-pipe control channel.

Spawned commands find the pipe through ``LAZYEXPLORER_PIPE_MSG_IN`` and
write control-message documents to it. Each writer session (open, write,
close) is decoded as one batch and posted to the event queue.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
import threading
from pathlib import Path

from .control import decode_messages
from .loop import EventQueue

logger = logging.getLogger(__name__)

MSG_IN_FILENAME = "msg_in"
PIPE_ENV_VAR = "LAZYEXPLORER_PIPE_MSG_IN"


class ControlPipe:
    """Own one FIFO and the daemon thread that reads it."""

    def __init__(self, events: EventQueue, directory: Path | None = None) -> None:
        self._events = events
        self._owns_directory = directory is None
        self.directory = Path(tempfile.mkdtemp(prefix="lazyexplorer-")) if directory is None else directory
        self.path = self.directory / MSG_IN_FILENAME
        self._closed = threading.Event()
        self._thread: threading.Thread | None = None

    def environment(self) -> dict[str, str]:
        return {PIPE_ENV_VAR: str(self.path)}

    def start(self) -> None:
        os.mkfifo(self.path, 0o600)
        self._thread = threading.Thread(target=self._pump, name="lazyexplorer-control-pipe", daemon=True)
        self._thread.start()

    def _pump(self) -> None:
        while not self._closed.is_set():
            try:
                with open(self.path, encoding="utf-8", errors="replace") as handle:
                    text = handle.read()
            except OSError as exc:
                if not self._closed.is_set():
                    logger.warning("control pipe %s stopped: %s", self.path, exc)
                return
            if self._closed.is_set():
                return
            if not text.strip():
                continue
            actions, errors = decode_messages(text)
            logger.debug("control pipe batch: %d action(s), %d rejected", len(actions), len(errors))
            self._events.put_actions(actions, errors, source="pipe")

    def close(self) -> None:
        """Stop the reader and remove the FIFO."""
        self._closed.set()
        try:
            # Wakes a reader blocked in open(); fails harmlessly when none is.
            fd = os.open(self.path, os.O_WRONLY | os.O_NONBLOCK)
        except OSError:
            pass
        else:
            os.close(fd)
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        with contextlib.suppress(FileNotFoundError):
            self.path.unlink()
        if self._owns_directory:
            with contextlib.suppress(OSError):
                self.directory.rmdir()

    def __enter__(self) -> ControlPipe:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["MSG_IN_FILENAME", "PIPE_ENV_VAR", "ControlPipe"]
