#!/usr/bin/env python3

import argparse
import sys

from typing import Optional

from .cli import (
    cmd_diff,
    cmd_doctor,
    cmd_list,
    cmd_log,
    cmd_repos,
    cmd_show,
    cmd_snapshot,
)
from .utils.debug import debug_log


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser.

    Returns:
        Configured argument parser
    """
    from . import __version__

    parser = argparse.ArgumentParser(
        prog="gait-dashboard",
        description="Inspect a Git repository the way the gait dashboard sees it",
        epilog="Every command prints JSON on stdout.",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--repo",
        "-C",
        default=None,
        help="Repository working tree (defaults to the current directory)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    snapshot = sub.add_parser("snapshot", help="All dashboard data in one document")
    snapshot.add_argument("--limit", type=int, default=None)

    log = sub.add_parser("log", help="One page of commit history")
    log.add_argument("--limit", type=int, default=0)
    log.add_argument("--offset", type=int, default=0)
    log.add_argument("--branch", default="")
    log.add_argument("--all", dest="all_refs", action="store_true")

    show = sub.add_parser("show", help="A commit with its file changes")
    show.add_argument("hash")

    diff = sub.add_parser("diff", help="Line-level diff of one file")
    diff.add_argument("revision", help="Commit, or 'uncommitted' for the working tree")
    diff.add_argument("path")

    for category in ("branches", "tags", "remotes", "stashes", "status"):
        sub.add_parser(category, help=f"List {category}")

    repos = sub.add_parser("repos", help="Configured repositories")
    repos.add_argument("--discover", metavar="ROOT", default=None)

    sub.add_parser("doctor", help="Check git, repository and config")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    debug_log(f"Command: {args.command}", args.repo or "")

    if args.command == "snapshot":
        code = cmd_snapshot(args.repo, args.limit)
    elif args.command == "log":
        code = cmd_log(args.repo, args.limit, args.offset, args.branch, args.all_refs)
    elif args.command == "show":
        code = cmd_show(args.repo, args.hash)
    elif args.command == "diff":
        code = cmd_diff(args.repo, args.revision, args.path)
    elif args.command == "repos":
        code = cmd_repos(args.discover)
    elif args.command == "doctor":
        code = cmd_doctor(args.repo)
    else:
        code = cmd_list(args.repo, args.command)

    sys.exit(code)


if __name__ == "__main__":
    main()
