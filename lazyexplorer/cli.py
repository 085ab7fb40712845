"""Command-line front door for lazyexplorer.

Parses CLI options, resolves the start path and config locations, then
dispatches into the interactive explorer runtime. The final selection,
focus, or directory (depending on the quit action) is printed after the
terminal is restored.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

import yaml

from .errors import ConfigError
from .logs import configure_logging
from .runtime import run_explorer
from .runtime.config import load_config, resolve_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazyexplorer",
        description="Keyboard-driven terminal file explorer with configurable modes.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Directory to open, or a file to focus. Defaults to cwd.")
    parser.add_argument("--config", type=Path, default=None, help="Config file (YAML). Defaults to the user config dir.")
    parser.add_argument("--init", type=Path, default=None, help="Python init script registering hooks and functions.")
    parser.add_argument("--log-file", type=Path, default=None, help="Write diagnostic logs to this file.")
    parser.add_argument("--log-level", default="INFO", help="Diagnostic log level (default: INFO).")
    parser.add_argument("--read-only", action="store_true", default=None, help="Refuse actions that run commands.")
    parser.add_argument(
        "--on-load",
        action="append",
        default=[],
        metavar="MESSAGES",
        help="Control messages (YAML/JSON) dispatched after the first listing. Repeatable.",
    )
    parser.add_argument("--print-config", action="store_true", help="Print the effective config as YAML and exit.")
    return parser


def main(argv: Sequence[str] | None = None, default_path: Path | None = None) -> int:
    """Parse CLI arguments and run the explorer; return the exit code.

    ``default_path`` is primarily for tests; when omitted the current working
    directory is used.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.log_file, args.log_level)

    if args.print_config:
        sys.stdout.write(yaml.safe_dump(resolve_config(load_config(args.config)), sort_keys=False))
        return 0

    if default_path is None:
        default_path = Path.cwd()
    path = Path(args.path).expanduser() if args.path else default_path
    if not path.exists() and not path.is_symlink():
        raise SystemExit(f"Path not found: {path}")

    try:
        state = run_explorer(
            path,
            config_path=args.config,
            init_script=args.init,
            read_only=args.read_only,
            on_load=args.on_load,
        )
    except ConfigError as exc:
        raise SystemExit(f"lazyexplorer: {exc}") from exc

    if state.exit_output:
        sys.stdout.write(state.exit_output + "\n")
        sys.stdout.flush()
    return state.exit_code


if __name__ == "__main__":
    sys.exit(main())
