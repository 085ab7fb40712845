"""Prefix-aware key-sequence registry primitives."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ..runtime.actions import Action

KeySequence = tuple[str, ...]


def parse_key_sequence(text: str) -> KeySequence:
    """Split ``"g g"`` style notation into key tokens."""
    return tuple(token for token in text.split() if token)


def format_key_sequence(keys: KeySequence) -> str:
    return " ".join(keys)


@dataclass(frozen=True)
class KeyBinding:
    """Mapping from one key sequence to an ordered action list."""

    keys: KeySequence
    messages: tuple[Action, ...]
    help: str = ""


class KeySequenceRegistry:
    """Immutable lookup table of key sequences with prefix queries.

    Normalization is applied to every token on registration and lookup, so
    callers can fold case or alias key names in one place.
    """

    def __init__(
        self,
        bindings: Iterable[KeyBinding] = (),
        normalize: Callable[[str], str] | None = None,
    ) -> None:
        self._normalize = normalize if normalize is not None else self._identity
        self._bindings: dict[KeySequence, KeyBinding] = {}
        self._prefixes: set[KeySequence] = set()
        for binding in bindings:
            self._register(binding)

    @staticmethod
    def _identity(key: str) -> str:
        """Return key unchanged for exact-match dispatch registries."""
        return key

    def _normalized(self, keys: KeySequence) -> KeySequence:
        return tuple(self._normalize(key) for key in keys)

    def _register(self, binding: KeyBinding) -> None:
        """Register one binding, overwriting an existing one for the same sequence."""
        keys = self._normalized(binding.keys)
        if not keys:
            return
        self._bindings[keys] = binding
        for idx in range(1, len(keys)):
            self._prefixes.add(keys[:idx])

    def lookup(self, keys: KeySequence) -> KeyBinding | None:
        """Return the binding bound to exactly ``keys``."""
        return self._bindings.get(self._normalized(keys))

    def is_strict_prefix(self, keys: KeySequence) -> bool:
        """Return whether some longer bound sequence starts with ``keys``."""
        return self._normalized(keys) in self._prefixes

    def bindings(self) -> tuple[KeyBinding, ...]:
        return tuple(self._bindings.values())

    def __len__(self) -> int:
        return len(self._bindings)


__all__ = [
    "KeyBinding",
    "KeySequence",
    "KeySequenceRegistry",
    "format_key_sequence",
    "parse_key_sequence",
]
