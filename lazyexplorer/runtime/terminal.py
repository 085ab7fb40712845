"""Controlling-terminal ownership for one explorer run.

``ExplorerTerminal`` is entered around the main loop. While inside, the input
fd is in raw mode and frames draw on the alternate screen. Leaving restores
the saved tty attributes and the main screen, whether the loop returned or a
render or dispatch error is propagating.
"""

from __future__ import annotations

import logging
import os
import termios
import tty
from collections.abc import Callable
from functools import partial

from ..input import read_key

logger = logging.getLogger(__name__)

# Alternate screen on, cursor hidden, cleared.
ENTER_SCREEN = b"\x1b[?1049h\x1b[?25l\x1b[H\x1b[2J"
# Cursor shown, main screen back.
LEAVE_SCREEN = b"\x1b[?25h\x1b[?1049l"


class ExplorerTerminal:
    """Raw-mode alternate screen on ``input_fd``/``output_fd``."""

    def __init__(self, input_fd: int, output_fd: int) -> None:
        self.input_fd = input_fd
        self.output_fd = output_fd
        self._saved_attrs: list | None = None

    @property
    def active(self) -> bool:
        return self._saved_attrs is not None

    def key_reader(self) -> Callable[[], str | None]:
        """Blocking key reader bound to the fd this terminal put in raw mode."""
        return partial(read_key, self.input_fd)

    def __enter__(self) -> ExplorerTerminal:
        self._saved_attrs = termios.tcgetattr(self.input_fd)
        tty.setraw(self.input_fd, termios.TCSAFLUSH)
        os.write(self.output_fd, ENTER_SCREEN)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc is not None:
            logger.debug("leaving terminal after %s", exc_type.__name__)
        self.restore()

    def restore(self) -> None:
        """Give the terminal back to the shell; a no-op once already restored."""
        if self._saved_attrs is None:
            return
        saved, self._saved_attrs = self._saved_attrs, None
        try:
            os.write(self.output_fd, LEAVE_SCREEN)
        finally:
            # Typed-ahead input stays queued for the shell.
            termios.tcsetattr(self.input_fd, termios.TCSADRAIN, saved)


__all__ = ["ENTER_SCREEN", "LEAVE_SCREEN", "ExplorerTerminal"]
