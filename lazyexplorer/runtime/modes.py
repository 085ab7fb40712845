"""Mode definitions, the immutable mode table, and the mode stack."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from ..errors import ConfigError, ControlMessageError
from ..input.key_registry import KeyBinding, KeySequenceRegistry, format_key_sequence, parse_key_sequence
from .actions import Action
from .control import decode_action

ROOT_MODE = "default"


@dataclass(frozen=True)
class Mode:
    """Named input context with its own key-binding table."""

    name: str
    help: str = ""
    registry: KeySequenceRegistry = field(default_factory=KeySequenceRegistry, compare=False)
    default: KeyBinding | None = None

    def help_lines(self) -> list[tuple[str, str]]:
        """Return ``(keys, help)`` rows for bindings that document themselves."""
        rows = [
            (format_key_sequence(binding.keys), binding.help)
            for binding in self.registry.bindings()
            if binding.help
        ]
        if self.default is not None and self.default.help:
            rows.append(("[default]", self.default.help))
        return rows


ModeTable = Mapping[str, Mode]


class ModeStack:
    """Stack of mode names; the root entry can be replaced but never popped."""

    def __init__(self, root: str = ROOT_MODE) -> None:
        self._names: list[str] = [root]

    @property
    def current(self) -> str:
        return self._names[-1]

    @property
    def depth(self) -> int:
        return len(self._names)

    def names(self) -> tuple[str, ...]:
        return tuple(self._names)

    def push(self, name: str) -> None:
        self._names.append(name)

    def pop(self) -> bool:
        """Pop the top mode; returns ``False`` (and does nothing) at the root."""
        if len(self._names) <= 1:
            return False
        self._names.pop()
        return True

    def switch(self, name: str) -> None:
        """Replace the top mode in place."""
        self._names[-1] = name


def _decode_messages(mode_name: str, keys: str, raw_messages: object) -> tuple[Action, ...]:
    if raw_messages is None:
        return ()
    if not isinstance(raw_messages, list):
        raise ConfigError(f"mode {mode_name!r} key {keys!r}: messages must be a list")
    out: list[Action] = []
    for entry in raw_messages:
        try:
            out.append(decode_action(entry))
        except ControlMessageError as exc:
            raise ConfigError(f"mode {mode_name!r} key {keys!r}: {exc}") from exc
    return tuple(out)


def _parse_binding(mode_name: str, keys: str, raw: object) -> KeyBinding:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"mode {mode_name!r} key {keys!r}: binding must be a mapping")
    help_text = raw.get("help") or ""
    return KeyBinding(
        keys=parse_key_sequence(keys),
        messages=_decode_messages(mode_name, keys, raw.get("messages")),
        help=str(help_text),
    )


def build_mode(name: str, raw: Mapping[str, object]) -> Mode:
    """Build one ``Mode`` from its config mapping."""
    key_bindings = raw.get("key_bindings") or {}
    if not isinstance(key_bindings, Mapping):
        raise ConfigError(f"mode {name!r}: key_bindings must be a mapping")
    on_key = key_bindings.get("on_key") or {}
    if not isinstance(on_key, Mapping):
        raise ConfigError(f"mode {name!r}: on_key must be a mapping")

    bindings = [_parse_binding(name, str(keys), value) for keys, value in on_key.items()]
    default_raw = key_bindings.get("default")
    default = _parse_binding(name, "[default]", default_raw) if default_raw is not None else None
    if default is not None:
        default = KeyBinding(keys=(), messages=default.messages, help=default.help)
    return Mode(
        name=name,
        help=str(raw.get("help") or ""),
        registry=KeySequenceRegistry(bindings),
        default=default,
    )


def build_mode_table(raw_modes: Mapping[str, object]) -> ModeTable:
    """Build the read-only name -> ``Mode`` lookup from config data."""
    table: dict[str, Mode] = {}
    for name, raw in raw_modes.items():
        if not isinstance(raw, Mapping):
            raise ConfigError(f"mode {name!r} must be a mapping")
        table[str(name)] = build_mode(str(name), raw)
    if ROOT_MODE not in table:
        raise ConfigError(f"mode table must define the {ROOT_MODE!r} mode")
    return MappingProxyType(table)


__all__ = [
    "ROOT_MODE",
    "Mode",
    "ModeStack",
    "ModeTable",
    "build_mode",
    "build_mode_table",
]
