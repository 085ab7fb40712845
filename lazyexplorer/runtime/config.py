"""YAML config loading and resolution.

The user's file is deep-merged over the built-in defaults. Loading never
raises: a missing file means defaults, and an unreadable or malformed one
means defaults plus a logged warning.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import yaml
from platformdirs import user_config_dir

from ..errors import ConfigError
from ..explorer import ExplorerConfig, parse_explorer_config
from .default_config import DEFAULT_CONFIG_YAML
from .modes import ROOT_MODE, ModeTable, build_mode_table

logger = logging.getLogger(__name__)

APP_NAME = "lazyexplorer"
CONFIG_FILENAME = "config.yaml"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
INIT_SCRIPT_FILENAME = "init.py"


def default_config() -> dict[str, object]:
    """Return a fresh copy of the built-in config."""
    return yaml.safe_load(DEFAULT_CONFIG_YAML)


def load_config(path: Path | None = None) -> dict[str, object]:
    """Load the user's YAML config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level mapping.
    """
    config_path = path if path is not None else CONFIG_PATH
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        logger.warning("cannot read config %s: %s", config_path, exc)
        return {}
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        logger.warning("ignoring malformed config %s: %s", config_path, exc)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring config %s: top level is not a mapping", config_path)
        return {}
    return data


def merge_config(base: Mapping[str, object], override: Mapping[str, object]) -> dict[str, object]:
    """Deep-merge ``override`` into ``base``; a ``None`` value deletes the key."""
    merged: dict[str, object] = dict(base)
    for key, value in override.items():
        if value is None:
            merged.pop(key, None)
            continue
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config(current, value)
        else:
            merged[key] = value
    return merged


def resolve_config(user_config: Mapping[str, object] | None = None) -> dict[str, object]:
    return merge_config(default_config(), user_config or {})


def _as_bool(general: Mapping[str, object], key: str, default: bool) -> bool:
    value = general.get(key, default)
    if isinstance(value, bool):
        return value
    logger.warning("config general.%s must be a boolean; using %s", key, default)
    return default


def _as_number(general: Mapping[str, object], key: str, default: float, minimum: float) -> float:
    value = general.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < minimum:
        logger.warning("config general.%s must be a number >= %s; using %s", key, minimum, default)
        return default
    return float(value)


@dataclass(frozen=True)
class GeneralSettings:
    """Validated ``general`` section."""

    show_hidden: bool = False
    read_only: bool = False
    initial_mode: str = ROOT_MODE
    notify_unbound_keys: bool = True
    history_limit: int = 200
    quit_grace_seconds: float = 2.0
    shell: str = "bash"
    explorer: ExplorerConfig = ExplorerConfig()

    @classmethod
    def from_config(cls, config: Mapping[str, object]) -> GeneralSettings:
        general = config.get("general") or {}
        if not isinstance(general, Mapping):
            raise ConfigError("config 'general' must be a mapping")
        show_hidden = _as_bool(general, "show_hidden", False)
        explorer = parse_explorer_config(general.get("explorer") or {})
        if show_hidden and not explorer.show_hidden:
            explorer = ExplorerConfig(
                sorters=explorer.sorters,
                filters=explorer.filters,
                group_directories_first=explorer.group_directories_first,
                show_hidden=True,
            )
        initial_mode = general.get("initial_mode", ROOT_MODE)
        shell = general.get("shell", "bash")
        return cls(
            show_hidden=show_hidden,
            read_only=_as_bool(general, "read_only", False),
            initial_mode=initial_mode if isinstance(initial_mode, str) and initial_mode else ROOT_MODE,
            notify_unbound_keys=_as_bool(general, "notify_unbound_keys", True),
            history_limit=int(_as_number(general, "history_limit", 200, 1)),
            quit_grace_seconds=_as_number(general, "quit_grace_seconds", 2.0, 0),
            shell=shell if isinstance(shell, str) and shell else "bash",
            explorer=explorer,
        )


def mode_table_from_config(config: Mapping[str, object]) -> ModeTable:
    """Build the mode table from ``modes.builtin`` overlaid with ``modes.custom``."""
    modes = config.get("modes") or {}
    if not isinstance(modes, Mapping):
        raise ConfigError("config 'modes' must be a mapping")
    builtin = modes.get("builtin") or {}
    custom = modes.get("custom") or {}
    if not isinstance(builtin, Mapping) or not isinstance(custom, Mapping):
        raise ConfigError("config 'modes.builtin' and 'modes.custom' must be mappings")
    return build_mode_table(merge_config(builtin, custom))


def default_init_script_path() -> Path:
    return CONFIG_PATH.parent / INIT_SCRIPT_FILENAME


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "GeneralSettings",
    "default_config",
    "default_init_script_path",
    "load_config",
    "merge_config",
    "mode_table_from_config",
    "resolve_config",
]
