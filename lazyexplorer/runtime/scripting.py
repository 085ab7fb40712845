"""Scripting boundary: user-registered Python callables and the util API.

Scripts never see core objects. Hooks and functions receive a plain
state snapshot and return action descriptions (decoded with the control
codec), an explorer config mapping, or ``None``.
"""

from __future__ import annotations

import logging
import runpy
from collections.abc import Callable, Mapping
from pathlib import Path

from ..errors import ConfigError, ExplorerFsError, LazyExplorerError
from ..explorer import ExplorerConfig, explore, parse_explorer_config
from ..file_tree_model import absolute_path
from .actions import Action
from .control import decode_entries
from .tasks import run_command, shell_quote

logger = logging.getLogger(__name__)

HOOK_DIRECTORY_CHANGE = "on_directory_change"
HOOK_SELECTION_CHANGE = "on_selection_change"
HOOK_FOCUS_CHANGE = "on_focus_change"
HOOK_MODE_SWITCH = "on_mode_switch"

HOOK_EVENTS: tuple[str, ...] = (
    HOOK_DIRECTORY_CHANGE,
    HOOK_SELECTION_CHANGE,
    HOOK_FOCUS_CHANGE,
    HOOK_MODE_SWITCH,
)

Snapshot = Mapping[str, object]
ScriptCallable = Callable[[Snapshot], object]


class ScriptError(LazyExplorerError):
    """A scripted callable raised or returned something unusable."""


class ScriptUtil:
    """Filesystem and process helpers exposed to scripts."""

    @staticmethod
    def dirname(path: str) -> str | None:
        """Parent of ``path``; ``""`` for a bare relative name, ``None`` for a root."""
        parent = Path(path).parent
        if not path or parent == Path(path):
            return None
        if parent == Path(".") and not path.startswith("./"):
            return ""
        return str(parent)

    @staticmethod
    def basename(path: str) -> str | None:
        return Path(path).name or None

    @staticmethod
    def absolute(path: str) -> str:
        """Lexical absolute form; does not check that the path exists."""
        return str(absolute_path(path))

    @staticmethod
    def explore(path: str, config: Mapping[str, object] | None = None) -> list[dict[str, object]]:
        try:
            listing = explore(path, parse_explorer_config(config))
        except (ExplorerFsError, ConfigError) as exc:
            raise ScriptError(str(exc)) from exc
        return listing.to_dicts()

    @staticmethod
    def shell_execute(program: str, args: list[str] | None = None) -> dict[str, object]:
        output = run_command(program, tuple(args or ()))
        return {
            "stdout": output.stdout,
            "stderr": output.stderr,
            "returncode": output.returncode,
            "signal": output.signal,
            "error_kind": output.error_kind,
        }

    @staticmethod
    def shell_quote(value: str) -> str:
        return shell_quote(value)


class ScriptBridge:
    """Registry of scripted callables consulted by the dispatcher."""

    def __init__(self) -> None:
        self._hooks: dict[str, list[ScriptCallable]] = {event: [] for event in HOOK_EVENTS}
        self._functions: dict[str, ScriptCallable] = {}
        self._explorer_config_provider: ScriptCallable | None = None

    def register_hook(self, event: str, func: ScriptCallable) -> None:
        if event not in self._hooks:
            raise ConfigError(f"unknown hook event: {event}")
        self._hooks[event].append(func)

    def register_function(self, name: str, func: ScriptCallable) -> None:
        self._functions[name] = func

    def set_explorer_config_provider(self, func: ScriptCallable | None) -> None:
        self._explorer_config_provider = func

    def has_function(self, name: str) -> bool:
        return name in self._functions

    def has_hooks(self, event: str) -> bool:
        return bool(self._hooks.get(event))

    def function_names(self) -> tuple[str, ...]:
        return tuple(sorted(self._functions))

    def call_function(self, name: str, snapshot: Snapshot) -> list[Action]:
        """Invoke function ``name`` and decode its returned actions.

        Raises ``ScriptError`` when the function is missing, raises, or
        returns nothing decodable.
        """
        func = self._functions.get(name)
        if func is None:
            raise ScriptError(f"no scripted function named {name!r}")
        try:
            returned = func(snapshot)
        except Exception as exc:
            raise ScriptError(f"{name} raised {type(exc).__name__}: {exc}") from exc
        return self.decode_returned(name, returned)

    def decode_returned(self, name: str, returned: object) -> list[Action]:
        actions, errors = decode_entries(returned)
        for error in errors:
            logger.warning("%s returned an invalid action: %s", name, error)
        if errors and not actions:
            raise ScriptError(f"{name} returned invalid actions: {errors[0]}")
        return actions

    def notify(self, event: str, snapshot: Snapshot) -> tuple[list[Action], list[str]]:
        """Run every hook for ``event``; collect actions and error messages."""
        actions: list[Action] = []
        failures: list[str] = []
        for func in self._hooks.get(event, ()):
            label = f"{event} hook {getattr(func, '__name__', repr(func))}"
            try:
                returned = func(snapshot)
            except Exception as exc:
                logger.exception("%s raised", label)
                failures.append(f"{label} raised {type(exc).__name__}: {exc}")
                continue
            decoded, errors = decode_entries(returned)
            actions.extend(decoded)
            failures.extend(f"{label}: {error}" for error in errors)
        return actions, failures

    def explorer_config(self, snapshot: Snapshot) -> ExplorerConfig | None:
        """Return a scripted explorer config override, or ``None``."""
        if self._explorer_config_provider is None:
            return None
        try:
            returned = self._explorer_config_provider(snapshot)
        except Exception as exc:
            raise ScriptError(f"explorer config provider raised {type(exc).__name__}: {exc}") from exc
        if returned is None:
            return None
        if isinstance(returned, ExplorerConfig):
            return returned
        try:
            return parse_explorer_config(returned)
        except ConfigError as exc:
            raise ScriptError(f"explorer config provider returned invalid config: {exc}") from exc


class ScriptApi:
    """Object handed to init scripts as the ``lazyexplorer`` global.

    Example init script::

        @lazyexplorer.hook("on_directory_change")
        def announce(app):
            return [{"LogInfo": "now in " + app["pwd"]}]

        @lazyexplorer.function("count")
        def count(app):
            return [{"LogInfo": str(len(app["directory_listing"]))}]
    """

    def __init__(self, bridge: ScriptBridge) -> None:
        self._bridge = bridge
        self.util = ScriptUtil()

    def hook(self, event: str) -> Callable[[ScriptCallable], ScriptCallable]:
        def decorator(func: ScriptCallable) -> ScriptCallable:
            self._bridge.register_hook(event, func)
            return func

        return decorator

    def function(self, name: str | None = None) -> Callable[[ScriptCallable], ScriptCallable]:
        def decorator(func: ScriptCallable) -> ScriptCallable:
            self._bridge.register_function(name or func.__name__, func)
            return func

        return decorator

    def explorer_config(self, func: ScriptCallable) -> ScriptCallable:
        self._bridge.set_explorer_config_provider(func)
        return func


def load_init_script(path: Path, bridge: ScriptBridge) -> None:
    """Execute ``path`` with a ``lazyexplorer`` global bound to ``bridge``."""
    try:
        runpy.run_path(str(path), init_globals={"lazyexplorer": ScriptApi(bridge)}, run_name="lazyexplorer_init")
    except OSError as exc:
        raise ConfigError(f"cannot read init script {path}: {exc}") from exc
    except Exception as exc:
        raise ConfigError(f"init script {path} failed: {type(exc).__name__}: {exc}") from exc


__all__ = [
    "HOOK_DIRECTORY_CHANGE",
    "HOOK_EVENTS",
    "HOOK_FOCUS_CHANGE",
    "HOOK_MODE_SWITCH",
    "HOOK_SELECTION_CHANGE",
    "ScriptApi",
    "ScriptBridge",
    "ScriptError",
    "ScriptUtil",
    "load_init_script",
]
