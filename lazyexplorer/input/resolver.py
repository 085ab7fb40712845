"""Mode-aware key resolution with multi-key sequence buffering.

The resolver owns only the partial key buffer. It reads the mode table as
an immutable snapshot taken at the first key of a sequence, so a table
swapped in mid-sequence applies from the next top-level key onward.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..runtime.actions import Action, BufferInput, BufferInputFromKey
from .key_registry import KeySequence

if TYPE_CHECKING:
    from ..runtime.modes import Mode

RESOLVED = "resolved"
PENDING = "pending"
UNBOUND = "unbound"
CANCELLED = "cancelled"

CANCEL_KEY = "esc"

_NAMED_CHARACTERS: dict[str, str] = {
    "space": " ",
    "tab": "\t",
}


@dataclass(frozen=True)
class Resolution:
    """Outcome of feeding one key: an action list, a wait, or a miss."""

    status: str
    keys: KeySequence
    actions: tuple[Action, ...] = ()
    refeed: str | None = None


def key_character(key: str) -> str | None:
    """Return the text a key token inserts, or ``None`` for non-text keys."""
    if key in _NAMED_CHARACTERS:
        return _NAMED_CHARACTERS[key]
    if len(key) == 1 and key.isprintable():
        return key
    return None


def _materialize(messages: tuple[Action, ...], key: str) -> tuple[Action, ...]:
    out: list[Action] = []
    for message in messages:
        if isinstance(message, BufferInputFromKey):
            text = key_character(key)
            if text is not None:
                out.append(BufferInput(text))
            continue
        out.append(message)
    return tuple(out)


class KeyResolver:
    """Resolve keys against the active mode's bindings."""

    def __init__(self, modes: Mapping[str, Mode], cancel_key: str = CANCEL_KEY) -> None:
        self._modes = modes
        self._cancel_key = cancel_key
        self._pending: KeySequence = ()
        self._snapshot: Mode | None = None

    @property
    def pending(self) -> KeySequence:
        return self._pending

    def set_modes(self, modes: Mapping[str, Mode]) -> None:
        """Install a new mode table for the next top-level key."""
        self._modes = modes

    def cancel(self) -> Resolution | None:
        """Drop any buffered partial sequence."""
        if not self._pending:
            return None
        keys = self._pending
        self._reset()
        return Resolution(CANCELLED, keys)

    def _reset(self) -> None:
        self._pending = ()
        self._snapshot = None

    def feed(self, mode_name: str, key: str) -> Resolution:
        """Feed one key and return its resolution.

        When a buffered prefix is itself bound and the next key cannot extend
        it, the prefix fires and the new key comes back as ``refeed``. The
        caller dispatches the fired actions first, then feeds ``refeed`` in
        whatever mode is current by then.
        """
        if not self._pending:
            self._snapshot = self._modes.get(mode_name)
        mode = self._snapshot
        keys = (*self._pending, key)
        if mode is None:
            self._reset()
            return Resolution(UNBOUND, keys)

        registry = mode.registry
        if registry.is_strict_prefix(keys):
            self._pending = keys
            return Resolution(PENDING, keys)

        binding = registry.lookup(keys)
        if binding is not None:
            self._reset()
            return Resolution(RESOLVED, keys, _materialize(binding.messages, key))

        if self._pending:
            prefix = self._pending
            self._reset()
            if key == self._cancel_key:
                return Resolution(CANCELLED, keys)
            exact = registry.lookup(prefix)
            if exact is None:
                return Resolution(UNBOUND, keys)
            return Resolution(RESOLVED, prefix, _materialize(exact.messages, prefix[-1]), refeed=key)

        self._reset()
        if mode.default is not None:
            return Resolution(RESOLVED, keys, _materialize(mode.default.messages, key))
        return Resolution(UNBOUND, keys)


__all__ = [
    "CANCELLED",
    "CANCEL_KEY",
    "PENDING",
    "RESOLVED",
    "UNBOUND",
    "KeyResolver",
    "Resolution",
    "key_character",
]
