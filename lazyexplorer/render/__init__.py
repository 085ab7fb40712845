"""Screen composition for the explorer view.

Builds the full frame as plain ANSI lines from ``AppState`` and the mode
table; ``render_screen`` writes a frame to stdout. Nothing here mutates
state.
"""

from __future__ import annotations

import os
import re
import shutil
import sys
from collections.abc import Mapping

from ..runtime.modes import Mode
from ..runtime.state import LOG_ERROR, LOG_SUCCESS, LOG_WARNING, AppState

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")

_LOG_COLORS = {
    LOG_SUCCESS: "\033[32m",
    LOG_WARNING: "\033[33m",
    LOG_ERROR: "\033[31m",
}
_KIND_COLORS = {
    "directory": "\033[1;34m",
    "symlink": "\033[36m",
    "broken_symlink": "\033[31m",
}
HELP_PANEL_WIDTH = 34
LOG_PANEL_ROWS = 4


def clip_line(text: str, width: int) -> str:
    """Clip ``text`` to ``width`` visible columns, keeping escape sequences."""
    if width <= 0:
        return ""
    out: list[str] = []
    visible = 0
    idx = 0
    while idx < len(text) and visible < width:
        match = ANSI_ESCAPE_RE.match(text, idx)
        if match is not None:
            out.append(match.group(0))
            idx = match.end()
            continue
        out.append(text[idx])
        visible += 1
        idx += 1
    if "\033" in text:
        out.append("\033[0m")
    return "".join(out)


def visible_width(text: str) -> int:
    return len(ANSI_ESCAPE_RE.sub("", text))


def _pad(text: str, width: int) -> str:
    clipped = clip_line(text, width)
    return clipped + " " * max(0, width - visible_width(clipped))


def listing_window(total: int, focus: int, rows: int) -> range:
    """Return the slice of listing rows to show so the focused row is visible."""
    if rows <= 0 or total <= 0:
        return range(0)
    start = max(0, min(focus - rows // 2, total - rows))
    return range(start, min(total, start + rows))


def build_listing_lines(state: AppState, width: int, rows: int) -> list[str]:
    nodes = state.nodes
    if not nodes:
        return [_pad("\033[2m(empty)\033[0m", width)] + [" " * width] * max(0, rows - 1)
    out: list[str] = []
    for index in listing_window(len(nodes), state.focus_index, rows):
        node = nodes[index]
        focused = index == state.focus_index
        marker = "▸" if focused else " "
        check = "+" if state.is_selected(node.absolute_path) else " "
        name = node.relative_path + ("/" if node.is_dir else "")
        if node.is_symlink and node.symlink_target is not None:
            name += f" -> {node.symlink_target}"
        size = "" if node.is_dir else node.human_size
        color = _KIND_COLORS.get(node.kind, "")
        if focused:
            color = "\033[7m" + color
        body_width = max(1, width - 4 - len(size) - 1)
        body = clip_line(name, body_width)
        line = f"{marker}{check} {color}{body}\033[0m" + " " * max(1, body_width - len(body) + 1) + size
        out.append(_pad(line, width))
    while len(out) < rows:
        out.append(" " * width)
    return out


def build_help_lines(mode: Mode | None, rows: int) -> list[str]:
    if mode is None:
        return []
    lines = [f"\033[1;38;5;81m{mode.name.upper()}\033[0m"]
    for keys, help_text in mode.help_lines():
        lines.append(f"\033[38;5;229m{keys}\033[0m {help_text}")
    return lines[:rows]


def build_log_lines(state: AppState, width: int, rows: int) -> list[str]:
    entries = list(state.logs)[-rows:] if rows > 0 else []
    out = [_pad(f"{_LOG_COLORS.get(entry.level, '')}[{entry.level}]\033[0m {entry.message}", width) for entry in entries]
    while len(out) < rows:
        out.insert(0, " " * width)
    return out


def build_status_line(state: AppState, width: int) -> str:
    left = f" {' > '.join(state.mode_stack.names())}"
    if state.input_buffer:
        left += f" │ {state.input_buffer}"
    right_parts = [f"{state.focus_index + 1 if state.nodes else 0}/{len(state.nodes)}"]
    if state.selection:
        right_parts.append(f"sel {len(state.selection)}")
    running = sum(1 for task in state.pending_tasks.values() if not task.discard)
    if running:
        right_parts.append(f"tasks {running}")
    right = " │ ".join(right_parts) + " "
    gap = max(1, width - visible_width(left) - visible_width(right))
    return "\033[7m" + clip_line(left + " " * gap + right, width) + "\033[0m"


def build_screen_lines(state: AppState, modes: Mapping[str, Mode], width: int, height: int) -> list[str]:
    """Compose a full frame of exactly ``height`` lines."""
    width = max(10, width)
    height = max(4, height)
    header = _pad(f"\033[1m{state.pwd}\033[0m", width)
    log_rows = min(LOG_PANEL_ROWS, max(0, height - 4))
    body_rows = max(1, height - 2 - log_rows)

    help_width = HELP_PANEL_WIDTH if width >= HELP_PANEL_WIDTH * 2 else 0
    list_width = width - help_width - (1 if help_width else 0)
    listing = build_listing_lines(state, list_width, body_rows)
    help_lines = build_help_lines(modes.get(state.mode), body_rows) if help_width else []

    out = [header]
    for row in range(body_rows):
        line = listing[row]
        if help_width:
            side = help_lines[row] if row < len(help_lines) else ""
            line += "│" + _pad(side, help_width)
        out.append(line)
    out.extend(build_log_lines(state, width, log_rows))
    out.append(build_status_line(state, width))
    return out[:height]


def render_screen(state: AppState, modes: Mapping[str, Mode]) -> None:
    """Draw one frame to stdout."""
    term = shutil.get_terminal_size((80, 24))
    lines = build_screen_lines(state, modes, term.columns, term.lines)
    out = ["\033[H\033[J"]
    for row, line in enumerate(lines):
        out.append(f"\033[{row + 1};1H")
        out.append(line)
    os.write(sys.stdout.fileno(), "".join(out).encode("utf-8", errors="replace"))


__all__ = [
    "ANSI_ESCAPE_RE",
    "build_help_lines",
    "build_listing_lines",
    "build_log_lines",
    "build_screen_lines",
    "build_status_line",
    "clip_line",
    "listing_window",
    "render_screen",
    "visible_width",
]
