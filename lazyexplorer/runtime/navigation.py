"""Visited-directory history with back/forward stacks."""

from __future__ import annotations

from pathlib import Path

MAX_VISIT_HISTORY = 256


class VisitHistory:
    """Bounded back/forward stacks for directory changes.

    Adjacent duplicate paths are suppressed to avoid no-op navigation steps.
    """

    def __init__(self, max_entries: int = MAX_VISIT_HISTORY) -> None:
        """Create a visit history with bounded stack size."""
        self.max_entries = max(1, max_entries)
        self.back: list[Path] = []
        self.forward: list[Path] = []

    def _append_unique(self, stack: list[Path], path: Path) -> None:
        """Append a path unless it duplicates the stack tail."""
        if stack and stack[-1] == path:
            return
        stack.append(path)
        overflow = len(stack) - self.max_entries
        if overflow > 0:
            del stack[:overflow]

    def record(self, origin: Path) -> None:
        """Push the directory being left onto back stack and clear forward history."""
        self._append_unique(self.back, origin)
        self.forward.clear()

    def go_back(self, current: Path) -> Path | None:
        """Pop next back target and push current path onto forward stack."""
        while self.back and self.back[-1] == current:
            self.back.pop()
        if not self.back:
            return None
        target = self.back.pop()
        self._append_unique(self.forward, current)
        return target

    def go_forward(self, current: Path) -> Path | None:
        """Pop next forward target and push current path onto back stack."""
        while self.forward and self.forward[-1] == current:
            self.forward.pop()
        if not self.forward:
            return None
        target = self.forward.pop()
        self._append_unique(self.back, current)
        return target

    def undo_back(self, target: Path, current: Path) -> None:
        """Revert a ``go_back`` whose target could not be entered."""
        if self.forward and self.forward[-1] == current:
            self.forward.pop()
        self.back.append(target)

    def undo_forward(self, target: Path, current: Path) -> None:
        """Revert a ``go_forward`` whose target could not be entered."""
        if self.back and self.back[-1] == current:
            self.back.pop()
        self.forward.append(target)
