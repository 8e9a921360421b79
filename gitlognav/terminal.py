"""
Plain terminal front end: ANSI output through rich, keys from a raw tty.
"""
from __future__ import annotations

import contextlib
import logging
import os
import sys
from typing import Iterator, Optional, TextIO

from rich.console import Console

from . import render
from .keys import Action, Dispatcher, KeyReader
from .models import CommitRow, HistoryFilter, parse_since
from .source import GitError
from .view import HistoryView

logger = logging.getLogger(__name__)

FALLBACK_SIZE = (80, 24)


def terminal_size(fd: Optional[int] = None) -> tuple[int, int]:
    """(columns, rows) of the terminal, or 80x24 when it cannot be queried."""
    if fd is None:
        try:
            fd = sys.stdout.fileno()
        except (AttributeError, OSError, ValueError):
            return FALLBACK_SIZE
    try:
        size = os.get_terminal_size(fd)
    except OSError as e:
        logger.debug(f"terminal_size: falling back to {FALLBACK_SIZE}: {e}")
        return FALLBACK_SIZE
    return size.columns, size.lines


@contextlib.contextmanager
def cbreak(stream: TextIO) -> Iterator[None]:
    """Put `stream` into cbreak mode for the duration of the block."""
    old_settings = None
    try:
        import termios
        import tty

        fd = stream.fileno()
        old_settings = termios.tcgetattr(fd)
    except (ImportError, AttributeError, OSError, ValueError) as e:
        # not a tty (pipe, tests); read it as is
        logger.debug(f"cbreak: leaving stream unchanged: {e}")
    if old_settings is None:
        yield
        return
    try:
        tty.setcbreak(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)


class PlainSession:
    """Draw-read-dispatch loop for terminals without a full-screen UI."""

    def __init__(self, view: HistoryView, stdin: TextIO, console: Optional[Console] = None) -> None:
        self.view = view
        self.stdin = stdin
        self.reader = KeyReader(stdin)
        self.dispatcher = Dispatcher(view)
        self.console = console or Console(highlight=False)

    def draw(self) -> None:
        view = self.view
        self.console.clear()
        self.console.print(render.header_text(view))
        self.console.print(render.range_text(view))
        self.console.print("?: help  q: quit", style="dim")
        self.console.print()
        self.console.print(render.body_text(view), no_wrap=True, overflow="ellipsis")
        self.console.print()
        self.console.print(render.position_text(view))

    def wait_key(self) -> None:
        self.console.print("\nPress any key to continue...", style="dim")
        self.reader.read_key()

    def prompt(self, label: str, current: str) -> str:
        self.console.print(f"{label} [{current}]: ", end="")
        line = self.stdin.readline()
        if not line:
            raise EOFError
        value = line.strip()
        return value if value else current

    def show_details(self) -> None:
        row = self.view.current_row()
        if not isinstance(row, CommitRow) or not row.hash:
            return
        commit = row.hash
        try:
            details = self.view.source.commit_details(commit)
        except GitError as e:
            self.view.message = f"details failed: {e}"
            return
        self.console.clear()
        self.console.print(f"commit {commit}", style="bold")
        self.console.print(details, markup=False)
        self.wait_key()

    def show_branches(self) -> None:
        try:
            branches = self.view.source.branches(all_refs=True)
        except GitError as e:
            self.view.message = f"branch list failed: {e}"
            return
        self.console.clear()
        for name in branches:
            style = "blue" if name == self.view.current_branch else None
            self.console.print(("→ " if style else "  ") + name, style=style, markup=False)
        self.wait_key()

    def edit_filter(self) -> None:
        current = self.view.filter
        self.console.clear()
        self.console.print("=== Git History filter ===  (empty keeps the value, '-' clears it)")
        with cbreak_off(self.stdin):
            pattern = self.prompt("branch pattern", current.branch_pattern)
            author = self.prompt("author", current.author)
            since = self.prompt("since (e.g. 1.week)", render.format_since_value(current))
        new_filter = HistoryFilter(
            branch_pattern="" if pattern == "-" else pattern,
            author="" if author == "-" else author,
            since=None if since == "-" else parse_since(since),
        )
        if new_filter != current:
            self.view.set_filter(new_filter)

    def show_help(self) -> None:
        self.console.clear()
        self.console.print(render.help_text(), markup=False)
        self.wait_key()

    def run(self) -> None:
        with cbreak(self.stdin):
            while True:
                self.draw()
                try:
                    key = self.reader.read_key()
                except EOFError:
                    return
                action = self.dispatcher.dispatch(key)
                try:
                    if action is Action.QUIT:
                        return
                    if action is Action.SHOW_DETAILS:
                        self.show_details()
                    elif action is Action.BRANCH_LIST:
                        self.show_branches()
                    elif action is Action.EDIT_FILTER:
                        self.edit_filter()
                    elif action is Action.HELP:
                        self.show_help()
                except EOFError:
                    return


@contextlib.contextmanager
def cbreak_off(stream: TextIO) -> Iterator[None]:
    """Temporarily restore line-buffered input inside a `cbreak` block."""
    settings = None
    try:
        import termios

        fd = stream.fileno()
        settings = termios.tcgetattr(fd)
    except (ImportError, AttributeError, OSError, ValueError) as e:
        logger.debug(f"cbreak_off: leaving stream unchanged: {e}")
    if settings is None:
        yield
        return
    cooked = list(settings)
    cooked[3] |= termios.ICANON | termios.ECHO
    termios.tcsetattr(fd, termios.TCSADRAIN, cooked)
    try:
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, settings)


def run_plain(view: HistoryView, stdin: Optional[TextIO] = None) -> None:
    columns, _ = terminal_size()
    console = Console(width=columns, highlight=False)
    PlainSession(view, stdin or sys.stdin, console).run()
