"""Command-line front door for arf.

Parses subcommands, configures logging, and maps ``ArfError`` failures to a
nonzero exit before any terminal UI is drawn.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from . import config
from .commands import (
    cmd_diff,
    cmd_graph,
    cmd_init,
    cmd_log,
    cmd_record,
    cmd_spec_list,
    cmd_spec_show,
    cmd_sync,
)
from .errors import ArfError
from .git import GitBackend
from .records import RecordStore
from .runtime import run_browser
from .ui_theme import available_theme_names, resolve_theme

LOG_FILE_ENV_VAR = "ARF_LOG_FILE"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def configure_logging(log_file: str | None, verbose: bool) -> None:
    """Attach a file handler when a log file is requested.

    The browser owns the terminal, so nothing is logged to stderr.
    """
    root = logging.getLogger("arf")
    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    target = log_file if log_file is not None else os.environ.get(LOG_FILE_ENV_VAR, "").strip()
    if not target:
        root.addHandler(logging.NullHandler())
        return
    path = config.DEFAULT_LOG_PATH if target == "-" else Path(target).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arf",
        description="Agent Reasoning Format - track AI reasoning alongside git",
    )
    parser.add_argument(
        "--log-file",
        nargs="?",
        const="-",
        default=None,
        help="Write logs to PATH (default location when PATH is omitted).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details.")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("init", help="Initialize ARF tracking (creates orphan branch)")

    spec = sub.add_parser("spec", help="Manage specs (task definitions)")
    spec_sub = spec.add_subparsers(dest="spec_command", required=True)
    spec_sub.add_parser("list", help="List all specs")
    spec_show = spec_sub.add_parser("show", help="Show a specific spec")
    spec_show.add_argument("name", help="Spec name (without .arf extension)")

    record = sub.add_parser("record", help="Record a reasoning entry")
    record.add_argument("--what", required=True, help="What action is being taken")
    record.add_argument("--why", required=True, help="Why this approach")
    record.add_argument("--how", default=None, help="How it will be implemented")
    record.add_argument("-b", "--backup", default=None, help="Backup/rollback plan")
    record.add_argument("-c", "--commit", default=None, help="Link to specific commit (defaults to HEAD)")

    log = sub.add_parser("log", help="Show reasoning records")
    log.add_argument("-c", "--commit", default=None, help="Show records for specific commit")
    log.add_argument("-l", "--limit", type=_positive_int, default=10, help="Limit number of records")

    sync = sub.add_parser("sync", help="Sync ARF branch with remote")
    sync.add_argument("--push", action="store_true", help="Push local records to remote")
    sync.add_argument("--pull", action="store_true", help="Pull remote records")

    graph = sub.add_parser("graph", help="Show git commits with ARF reasoning")
    graph.add_argument("-l", "--limit", type=_positive_int, default=10, help="Number of commits to show")

    diff = sub.add_parser("diff", help="Show diff with ARF reasoning context")
    diff.add_argument("-c", "--commit", default=None, help="Commit to diff (defaults to HEAD)")
    diff.add_argument("--full", action="store_true", help="Show full diff instead of stat summary")

    browse = sub.add_parser("browse", help="Interactive TUI browser")
    _add_browse_arguments(browse)
    return parser


def _add_browse_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-l", "--limit", type=_positive_int, default=None, help="Number of commits to load.")
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}).",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable color output.")


def _browse(args: argparse.Namespace, git: GitBackend, store: RecordStore) -> None:
    limit = getattr(args, "limit", None) or config.load_history_limit()
    theme_name = getattr(args, "theme", None) or config.load_theme_name()
    no_color = bool(getattr(args, "no_color", False)) or bool(os.environ.get("NO_COLOR"))
    run_browser(git, store, resolve_theme(theme_name, no_color=no_color), limit)


def dispatch(args: argparse.Namespace, repo_dir: Path) -> None:
    git = GitBackend(repo_dir)
    store = RecordStore.for_repo(repo_dir)
    out = sys.stdout
    command = args.command

    if command is None or command == "browse":
        _browse(args, git, store)
    elif command == "init":
        cmd_init(git, repo_dir, out)
    elif command == "spec":
        if args.spec_command == "list":
            cmd_spec_list(store, out)
        else:
            cmd_spec_show(store, out, args.name)
    elif command == "record":
        cmd_record(
            git,
            store,
            out,
            what=args.what,
            why=args.why,
            how=args.how,
            backup=args.backup,
            commit=args.commit,
            agent=config.load_agent_name(),
        )
    elif command == "log":
        cmd_log(store, out, commit=args.commit, limit=args.limit)
    elif command == "sync":
        cmd_sync(git, store, out, push=args.push, pull=args.pull)
    elif command == "graph":
        cmd_graph(git, store, out, limit=args.limit)
    elif command == "diff":
        cmd_diff(git, store, out, commit=args.commit, full=args.full)
    else:
        raise ArfError(f"unknown command: {command}")


def main(argv: list[str] | None = None, repo_dir: Path | None = None) -> None:
    """Parse CLI arguments and run one arf command.

    ``repo_dir`` is primarily for tests; when omitted the current working
    directory is used. Any ``ArfError`` becomes ``SystemExit`` with status 1.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.log_file, args.verbose)
    try:
        dispatch(args, repo_dir if repo_dir is not None else Path.cwd())
    except ArfError as exc:
        logger.error("%s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
