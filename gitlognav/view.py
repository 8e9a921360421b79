"""
Scrolling window and cursor over the commit history.

The loaded page always starts at commit `window_start` and holds up to
twice `window_size` commits (plus their graph-only rows). The first
`window_size` rows form the viewport; the rest is lookahead. `cursor`
indexes the loaded rows.
"""
from __future__ import annotations

import logging
from typing import Optional

from .graph import parse_lines
from .index import CommitIndex, IndexKind
from .models import CommitRow, HistoryFilter, Row
from .source import CommitSource, GitError

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 30


class HistoryView:
    """Viewport state machine: window position, cursor and loaded rows."""

    def __init__(
        self,
        source: CommitSource,
        index: CommitIndex,
        window_size: int = DEFAULT_WINDOW_SIZE,
        history_filter: Optional[HistoryFilter] = None,
    ) -> None:
        if window_size < 1:
            raise ValueError("window_size must be positive")
        self.source = source
        self.index = index
        self.window_size = window_size
        self.filter = history_filter or HistoryFilter()
        self.rows: list[Row] = []
        self.cursor = 0
        self.window_start = 0
        self.total_commits: Optional[int] = None
        self.current_branch = ""
        # last inline error or notice for the renderer
        self.message = ""
        self.loaded = False

    @property
    def page_size(self) -> int:
        return self.window_size * 2

    @property
    def global_search(self) -> bool:
        return self.index.is_global

    # loading

    def _fetch(self, start: int) -> list[Row]:
        """Build a complete page at `start` without touching current state."""
        if self.total_commits is None:
            self.total_commits = self.source.count(self.filter)
        rows = parse_lines(self.source.load_page(start, self.page_size, self.filter))
        self.index.refresh(rows)
        self.index.annotate(rows)
        return rows

    def _swap(self, start: int, rows: list[Row]) -> None:
        self.window_start = start
        self.rows = rows
        self.loaded = True
        self.message = ""

    def load(self) -> None:
        """First load of a session. Raises GitError: with no page there is nothing to show."""
        self.total_commits = None
        rows = self._fetch(0)
        self._swap(0, rows)
        self.cursor = 0
        self.refresh_branch()

    def _reload(self, start: int) -> bool:
        try:
            rows = self._fetch(start)
        except GitError as e:
            if not self.loaded:
                raise
            logger.debug(f"HistoryView._reload: keeping previous page: {e}")
            self.message = f"load failed: {e}"
            return False
        self._swap(start, rows)
        return True

    def reset(self) -> bool:
        """Full reload from the newest commit, recounting the history."""
        previous_total = self.total_commits
        self.total_commits = None
        if not self._reload(0):
            self.total_commits = previous_total
            return False
        self.cursor = 0
        self.refresh_branch()
        return True

    def refresh_branch(self) -> None:
        try:
            self.current_branch = self.source.current_branch()
        except GitError as e:
            logger.debug(f"HistoryView.refresh_branch: {e}")
            self.current_branch = ""

    def last_window_start(self) -> int:
        return max(0, (self.total_commits or 0) - self.window_size)

    def clamp_start(self, start: int) -> int:
        return min(max(start, 0), self.last_window_start())

    def move_window(self, new_start: int) -> bool:
        """Move the window; reloads only when the clamped start changes."""
        new_start = self.clamp_start(new_start)
        if new_start == self.window_start:
            return False
        return self._reload(new_start)

    # row helpers

    def current_row(self) -> Optional[Row]:
        if 0 <= self.cursor < len(self.rows):
            return self.rows[self.cursor]
        return None

    def commits_before(self, row_index: int) -> int:
        return sum(1 for row in self.rows[:row_index] if isinstance(row, CommitRow))

    def _row_of_commit(self, ordinal: int) -> Optional[int]:
        seen = 0
        for i, row in enumerate(self.rows):
            if isinstance(row, CommitRow):
                if seen == ordinal:
                    return i
                seen += 1
        return None

    def _find_hash(self, commit: str) -> Optional[int]:
        for i, row in enumerate(self.rows):
            if isinstance(row, CommitRow) and row.hash == commit:
                return i
        return None

    def _last_commit_row(self) -> int:
        for i in range(len(self.rows) - 1, -1, -1):
            if isinstance(self.rows[i], CommitRow):
                return i
        return max(0, len(self.rows) - 1)

    def _clamp_cursor(self, cursor: int) -> int:
        return min(max(cursor, 0), max(0, len(self.rows) - 1))

    def _scroll_to(self, target: int, new_start: int) -> bool:
        """Move the window to `new_start` and keep the cursor on old row `target`."""
        row = self.rows[target]
        commit = row.hash if isinstance(row, CommitRow) else None
        anchor = self._row_of_commit(new_start - self.window_start)
        if not self.move_window(new_start):
            return False
        located = self._find_hash(commit) if commit else None
        if located is None:
            located = target - (anchor or 0)
        self.cursor = self._clamp_cursor(located)
        return True

    def visible_range(self) -> tuple[int, int]:
        """Slice of `rows` shown on screen; follows the cursor into the lookahead."""
        start = 0
        if self.cursor >= self.window_size:
            start = self.cursor - self.window_size + 1
        return start, min(len(self.rows), start + self.window_size)

    # cursor movement

    def cursor_up(self) -> None:
        if not self.rows:
            return
        if self.cursor > 0:
            self.cursor -= 1
            return
        if self.window_start > 0 and self.move_window(self.window_start - 1):
            self.cursor = 0

    def cursor_down(self) -> None:
        if not self.rows or self.cursor >= len(self.rows) - 1:
            return
        target = self.cursor + 1
        if target >= self.window_size:
            top = target - self.window_size + 1
            shift = self.commits_before(top)
            if shift and self._scroll_to(target, self.window_start + shift):
                return
        self.cursor = target

    def jump_window_top(self) -> None:
        self.cursor = 0

    def jump_window_bottom(self) -> None:
        self.cursor = self._clamp_cursor(min(self.window_size, len(self.rows)) - 1)

    def jump_first(self) -> None:
        """Newest commit of the whole history."""
        if self._reload(0):
            self.cursor = 0

    def jump_last(self) -> None:
        """Oldest commit of the whole history."""
        if self._reload(self.last_window_start()):
            self.cursor = self._last_commit_row()

    # search

    def search(self, kind: IndexKind, forward: bool = True) -> bool:
        """Move to the next/previous loaded commit in the merge or conflict set."""
        if forward:
            candidates = range(self.cursor + 1, len(self.rows))
        else:
            candidates = range(self.cursor - 1, -1, -1)
        for i in candidates:
            row = self.rows[i]
            if isinstance(row, CommitRow) and self.index.contains(kind, row.hash):
                break
        else:
            self.message = f"no {'next' if forward else 'previous'} {kind.value} commit in loaded page"
            return False

        # rows before the cursor are always inside the window
        if self.global_search and i >= self.window_size:
            new_start = self.clamp_start(self.window_start + self.commits_before(i) - self.window_size // 2)
            if self._scroll_to(i, new_start):
                return True
        self.cursor = i
        return True

    # session actions

    def switch_branch(self, step: int) -> bool:
        """Check out the previous (-1) or next (+1) local branch and reload.

        This mutates the working tree.
        """
        try:
            branches = self.source.branches()
            current = self.source.current_branch()
        except GitError as e:
            self.message = f"branch lookup failed: {e}"
            return False
        if current not in branches:
            self.message = f"current branch {current!r} is not a local branch"
            return False
        position = branches.index(current) + step
        if not 0 <= position < len(branches):
            return False
        target = branches[position]
        try:
            self.source.checkout(target)
        except GitError as e:
            self.message = f"checkout {current} -> {target} failed: {e}"
            return False
        self.index.invalidate()
        self.current_branch = target
        if self.reset():
            self.message = f"switched branch: {current} -> {target}"
        return True

    def set_filter(self, history_filter: HistoryFilter) -> bool:
        previous = self.filter
        self.filter = history_filter
        if not self.reset():
            self.filter = previous
            return False
        return True
