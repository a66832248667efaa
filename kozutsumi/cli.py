"""Command-line front door for kozutsumi.

Parses CLI options, loads the parcel config, and dispatches to open, choose,
list, or completions. Fatal problems surface as ``SystemExit`` messages.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from . import __version__
from .chooser import CHOOSER_NAMES, FinderFailed, FzfChooser, Selected
from .chooser.fzf import DEFAULT_FINDER
from .completions import SHELLS, generate
from .config import default_config_path, load_parcels
from .errors import ChooserError, KozutsumiError, LaunchError
from .launcher import BatchReport, Launcher
from .render import (
    COLOR_MODES,
    DEFAULT_STYLE,
    colorize,
    format_entries,
    format_json,
    format_names,
    format_store,
    should_color,
)
from .store import ParcelStore

logger = logging.getLogger(__name__)

PROG = "kozutsumi"
ALLOW_SHELL_ENV_VAR = "KOZUTSUMI_ALLOW_SHELL"
PARCEL_COMMANDS = ("open", "list")
NO_PARCELS_MESSAGE = "No parcels available. Please add parcels to the configuration file."
NO_SELECTION_MESSAGE = "No parcel selected."


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Open groups of applications, files, folders, and URLs.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Override the default config path.",
    )
    parser.add_argument(
        "--allow-shell",
        action="store_true",
        help=f"Treat `sh:` entries as shell commands (runs arbitrary code; also ${ALLOW_SHELL_ENV_VAR}=1).",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity.")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    open_cmd = sub.add_parser("open", help="Opens a parcel by name")
    open_cmd.add_argument("name", help="Parcel name.")

    choose_cmd = sub.add_parser("choose", help="Opens a parcel by choosing from a list")
    choose_cmd.add_argument(
        "--chooser",
        choices=CHOOSER_NAMES,
        default=CHOOSER_NAMES[0],
        help="Interactive chooser to use.",
    )
    choose_cmd.add_argument("--multi", action="store_true", help="Allow multiple selections.")
    choose_cmd.add_argument("--finder", default=DEFAULT_FINDER, help="Finder executable (default: fzf).")

    list_cmd = sub.add_parser("list", help="Lists all available parcels")
    list_cmd.add_argument("name", nargs="?", default=None, help="Name of the parcel to list items for.")
    list_cmd.add_argument("--json", action="store_true", help="Output in JSON format, useful for scripting.")
    list_cmd.add_argument("--names", action="store_true", help="Print parcel names only, one per line.")
    list_cmd.add_argument("--color", choices=COLOR_MODES, default="auto", help="Colorize output.")
    list_cmd.add_argument("--style", default=DEFAULT_STYLE, help="Pygments style name for colored output.")

    completions_cmd = sub.add_parser("completions", help="Generate shell completions")
    completions_cmd.add_argument("shell", choices=SHELLS, help="The shell to generate the completions for.")
    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", stream=sys.stderr)


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes", "on"}


def load_store(config_path: Path, allow_shell: bool = False) -> ParcelStore:
    return ParcelStore.from_mapping(load_parcels(config_path), allow_shell=allow_shell)


def open_parcel(store: ParcelStore, name: str, launcher: Launcher | None = None) -> BatchReport:
    """Open every entry of parcel ``name`` in order.

    Individual failures are logged and skipped. Only a parcel where every
    entry failed raises ``LaunchError``.
    """
    entries = store.lookup(name)
    if not entries:
        print(f"Parcel `{name}` has no entries.", file=sys.stderr)
        return BatchReport()

    report = (launcher or Launcher()).open_entries(entries)
    if report.all_failed:
        raise LaunchError(f"Could not open any entry of parcel `{name}`.")
    if report.failures:
        logger.warning(
            "opened %d of %d entries of parcel `%s`",
            report.attempted - len(report.failures),
            report.attempted,
            name,
        )
    return report


def choose_parcels(
    store: ParcelStore,
    chooser: FzfChooser,
    multi: bool = False,
    launcher: Launcher | None = None,
) -> list[str]:
    """Run the chooser and open whatever it selected; returns opened names.

    Every selected parcel is attempted; parcels that are missing or failed
    entirely are reported together afterwards.
    """
    names = store.names()
    if not names:
        print(NO_PARCELS_MESSAGE, file=sys.stderr)
        return []

    outcome = chooser.choose(names, multi=multi)
    if isinstance(outcome, FinderFailed):
        raise ChooserError(outcome.diagnostic, outcome.returncode)
    if not isinstance(outcome, Selected):
        print(NO_SELECTION_MESSAGE, file=sys.stderr)
        return []

    launcher = launcher or Launcher()
    failed: list[str] = []
    for name in outcome.names:
        try:
            open_parcel(store, name, launcher)
        except KozutsumiError as exc:
            logger.error("%s", exc)
            failed.append(name)
    if failed:
        raise LaunchError(f"Could not open parcel(s): {', '.join(failed)}.")
    return list(outcome.names)


def list_parcels(
    store: ParcelStore,
    name: str | None = None,
    as_json: bool = False,
    names_only: bool = False,
    color: str = "auto",
    style: str = DEFAULT_STYLE,
    stream: TextIO | None = None,
) -> None:
    out = stream if stream is not None else sys.stdout
    if names_only:
        out.write(format_names(store))
        return

    if as_json:
        text = format_json(store, name)
    elif name is not None:
        text = format_entries(store.lookup(name))
    else:
        text = format_store(store)

    if should_color(color, out):
        text = colorize(text, as_json=as_json, style=style)
    out.write(text)


def run(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    if args.command == "completions":
        sys.stdout.write(generate(args.shell, parser, PROG, PARCEL_COMMANDS))
        return

    allow_shell = args.allow_shell or _env_flag(ALLOW_SHELL_ENV_VAR)
    config_path = args.config if args.config is not None else default_config_path()
    store = load_store(config_path, allow_shell=allow_shell)

    if args.command == "open":
        open_parcel(store, args.name)
    elif args.command == "choose":
        chooser = FzfChooser(config_path, allow_shell=allow_shell, finder=args.finder)
        choose_parcels(store, chooser, multi=args.multi)
    elif args.command == "list":
        list_parcels(
            store,
            name=args.name,
            as_json=args.json,
            names_only=args.names,
            color=args.color,
            style=args.style,
        )
    else:
        parser.error(f"unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Parse CLI arguments and run the selected command.

    Any ``KozutsumiError`` becomes ``SystemExit`` with its message, which
    prints to stderr and exits with status 1.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    try:
        run(args, parser)
    except KozutsumiError as exc:
        raise SystemExit(str(exc)) from None


if __name__ == "__main__":
    main()
