#!/usr/bin/env python3
"""
Git History Navigator: page through the commit graph of a repository.
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

from .index import make_index
from .models import HistoryFilter, parse_since
from .source import CommitSource, GitError
from .view import DEFAULT_WINDOW_SIZE, HistoryView

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class NavigatorConfig:
    """Settings for one browsing session, collected from the command line."""

    path: str
    history_filter: HistoryFilter
    global_search: bool = False
    window_size: int = DEFAULT_WINDOW_SIZE
    plain: bool = False
    log_file: Optional[str] = None
    debug: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "NavigatorConfig":
        return cls(
            path=args.path,
            history_filter=HistoryFilter(
                branch_pattern=args.branch or "",
                author=args.author or "",
                since=parse_since(args.since),
            ),
            global_search=args.global_search,
            window_size=args.window_size,
            plain=args.plain,
            log_file=args.log_file,
            debug=args.debug,
        )


def setup_logging(log_file: Optional[str], debug: bool = False) -> None:
    """Log to `log_file` when given; the terminal belongs to the UI."""
    if not log_file:
        logging.getLogger().addHandler(logging.NullHandler())
        return
    logging.basicConfig(
        filename=log_file,
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
    )


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitlognav",
        description=__doc__,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("path", nargs="?", default=os.getcwd(), help="Directory inside the repository")
    parser.add_argument("--all", action="store_true", help="Show all branches (always on; kept for compatibility)")
    parser.add_argument("--branch", default="", help="Branch pattern filter (e.g. feature/*)")
    parser.add_argument("--author", default="", help="Author filter")
    parser.add_argument("--since", default="", help="Period filter (e.g. 1.week, 2.days)")
    parser.add_argument(
        "--global",
        dest="global_search",
        action="store_true",
        help="Index merge/conflict commits across the whole history\n(default: only the loaded page)",
    )
    parser.add_argument(
        "--window-size",
        type=_positive_int,
        default=DEFAULT_WINDOW_SIZE,
        help=f"Visible rows (default: {DEFAULT_WINDOW_SIZE})",
    )
    parser.add_argument("--plain", action="store_true", help="Plain terminal output instead of the full-screen UI")
    parser.add_argument("--log-file", default=None, help="Write a debug log to this file")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    return parser


def build_view(config: NavigatorConfig) -> HistoryView:
    source = CommitSource.open(config.path)
    index = make_index(source, config.global_search)
    return HistoryView(source, index, window_size=config.window_size, history_filter=config.history_filter)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point: parse CLI args, load the first page and run a front end."""
    args = build_parser().parse_args(argv)
    config = NavigatorConfig.from_args(args)
    setup_logging(config.log_file, config.debug)
    logger.info(f"starting in {config.path} (global={config.global_search}, filter={config.history_filter.describe()})")

    try:
        view = build_view(config)
        view.load()
    except GitError as e:
        logger.error(f"history load failed: {e}")
        print(f"gitlognav: history load failed: {e}", file=sys.stderr)
        return 1

    try:
        if config.plain:
            from .terminal import run_plain

            run_plain(view)
        else:
            from .app import HistoryNavigator

            HistoryNavigator(view).run()
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
