"""Control-message codec: YAML/JSON text to action lists and back.

A document is either one action entry or a list of them. An entry is a bare
tag string (``FocusNext``) or a one-key mapping whose value carries the
action's data (``{ChangeDirectory: /tmp}``, ``{AddNodeSorter: {sorter:
BySize, reverse: true}}``). Bad entries are rejected one at a time.
"""

from __future__ import annotations

import dataclasses
import typing
from collections.abc import Mapping
from functools import lru_cache

import yaml

from ..errors import ControlMessageError
from .actions import ACTION_TYPES, INTERNAL_ACTION_TYPES, Action


@lru_cache(maxsize=None)
def _field_hints(cls: type[Action]) -> tuple[tuple[dataclasses.Field, object], ...]:
    hints = typing.get_type_hints(cls)
    return tuple((item, hints[item.name]) for item in dataclasses.fields(cls))


def _has_default(item: dataclasses.Field) -> bool:
    return item.default is not dataclasses.MISSING or item.default_factory is not dataclasses.MISSING


def _coerce(tag: str, name: str, value: object, hint: object) -> object:
    if hint is bool:
        if isinstance(value, bool):
            return value
    elif hint is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif hint is str:
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
            return str(value)
    elif typing.get_origin(hint) is tuple:
        if isinstance(value, (list, tuple)):
            return tuple(str(item) for item in value)
    raise ControlMessageError(f"{tag}: field {name!r} has invalid value {value!r}")


def decode_action(entry: object) -> Action:
    """Decode one control entry into an ``Action`` or raise ``ControlMessageError``."""
    if isinstance(entry, str):
        tag, payload = entry.strip(), None
    elif isinstance(entry, Mapping) and len(entry) == 1:
        ((tag, payload),) = entry.items()
        if not isinstance(tag, str):
            raise ControlMessageError(f"action tag must be a string, got {tag!r}", entry)
    else:
        raise ControlMessageError(f"malformed action entry: {entry!r}", entry)

    cls = ACTION_TYPES.get(tag)
    if cls is None or cls in INTERNAL_ACTION_TYPES:
        raise ControlMessageError(f"unknown action: {tag}", entry)

    fields = _field_hints(cls)
    if not fields:
        if payload is not None:
            raise ControlMessageError(f"{tag} takes no arguments", entry)
        return cls()

    if isinstance(payload, Mapping):
        kwargs = dict(payload)
    elif len(fields) == 1 or sum(1 for item, _ in fields if not _has_default(item)) == 1:
        kwargs = {fields[0][0].name: payload}
    else:
        raise ControlMessageError(f"{tag} expects a mapping of arguments", entry)

    known = {item.name for item, _ in fields}
    unknown = set(kwargs) - known
    if unknown:
        raise ControlMessageError(f"{tag}: unknown field(s) {', '.join(sorted(map(str, unknown)))}", entry)

    values: dict[str, object] = {}
    for item, hint in fields:
        if item.name not in kwargs or kwargs[item.name] is None:
            if _has_default(item):
                continue
            raise ControlMessageError(f"{tag}: missing field {item.name!r}", entry)
        try:
            values[item.name] = _coerce(tag, item.name, kwargs[item.name], hint)
        except ControlMessageError as exc:
            raise ControlMessageError(str(exc), entry) from None
    return cls(**values)


def decode_entries(entries: object) -> tuple[list[Action], list[ControlMessageError]]:
    """Decode an already-parsed document, collecting per-entry errors."""
    if entries is None:
        return [], []
    if not isinstance(entries, list):
        entries = [entries]
    actions: list[Action] = []
    errors: list[ControlMessageError] = []
    for entry in entries:
        try:
            actions.append(decode_action(entry))
        except ControlMessageError as exc:
            errors.append(exc)
    return actions, errors


def decode_messages(text: str) -> tuple[list[Action], list[ControlMessageError]]:
    """Parse YAML/JSON ``text`` and decode every action entry in it."""
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        return [], [ControlMessageError(f"malformed control message: {exc}", text)]
    return decode_entries(document)


def encode_action(action: Action) -> object:
    """Inverse of ``decode_action`` for serializable actions."""
    fields = dataclasses.fields(action)
    if not fields:
        return action.tag
    values = {item.name: getattr(action, item.name) for item in fields}
    values = {key: list(value) if isinstance(value, tuple) else value for key, value in values.items()}
    if len(fields) == 1:
        return {action.tag: values[fields[0].name]}
    return {action.tag: values}


def encode_messages(actions: list[Action]) -> str:
    return yaml.safe_dump([encode_action(action) for action in actions], sort_keys=False)


__all__ = [
    "decode_action",
    "decode_entries",
    "decode_messages",
    "encode_action",
    "encode_messages",
]
