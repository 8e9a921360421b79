"""
Keystroke decoding and dispatch.

`KeyReader` turns a character stream into logical keys (``"j"``, ``"up"``,
``"enter"`` ...). `Dispatcher` maps keys to actions, applies navigation to a
`HistoryView` and hands session-level actions back to the renderer.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, TextIO

from .index import IndexKind
from .view import HistoryView

logger = logging.getLogger(__name__)

ESC = "\x1b"

ARROWS = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
}


class KeyReader:
    """Read one logical keystroke at a time from a text stream.

    The stream should be in cbreak/raw mode when it is a terminal.
    """

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream

    def _read1(self) -> str:
        try:
            ch = self.stream.read(1)
        except (OSError, ValueError) as e:
            logger.debug(f"KeyReader: read failed: {e}")
            raise EOFError from e
        if not ch:
            raise EOFError
        return ch

    def read_key(self) -> Optional[str]:
        """Return the next key, or None when an escape sequence fails to decode.

        Raises EOFError when the input is exhausted or unreadable.
        """
        ch = self._read1()
        if ch == ESC:
            sequence = self._read1() + self._read1()
            if sequence[0] == "[" and sequence[1] in ARROWS:
                return ARROWS[sequence[1]]
            logger.debug(f"KeyReader: undecoded escape sequence {sequence!r}")
            return None
        if ch in ("\r", "\n"):
            return "enter"
        return ch


class Action(Enum):
    NONE = "none"
    CURSOR_UP = "cursor-up"
    CURSOR_DOWN = "cursor-down"
    WINDOW_TOP = "window-top"
    WINDOW_BOTTOM = "window-bottom"
    HISTORY_TOP = "history-top"
    HISTORY_BOTTOM = "history-bottom"
    CHECKOUT_PREV_BRANCH = "checkout-prev-branch"
    CHECKOUT_NEXT_BRANCH = "checkout-next-branch"
    NEXT_MERGE = "next-merge"
    PREV_MERGE = "prev-merge"
    NEXT_CONFLICT = "next-conflict"
    PREV_CONFLICT = "prev-conflict"
    SHOW_DETAILS = "show-details"
    BRANCH_LIST = "branch-list"
    EDIT_FILTER = "edit-filter"
    HELP = "help"
    QUIT = "quit"


# actions that change the repository, not just the view
SIDE_EFFECT_ACTIONS = frozenset({Action.CHECKOUT_PREV_BRANCH, Action.CHECKOUT_NEXT_BRANCH})

# actions the renderer has to carry out (popups, quitting)
SESSION_ACTIONS = frozenset(
    {Action.SHOW_DETAILS, Action.BRANCH_LIST, Action.EDIT_FILTER, Action.HELP, Action.QUIT}
)

KEYMAP = {
    "k": Action.CURSOR_UP,
    "up": Action.CURSOR_UP,
    "j": Action.CURSOR_DOWN,
    "down": Action.CURSOR_DOWN,
    "h": Action.CHECKOUT_PREV_BRANCH,
    "left": Action.CHECKOUT_PREV_BRANCH,
    "l": Action.CHECKOUT_NEXT_BRANCH,
    "right": Action.CHECKOUT_NEXT_BRANCH,
    "m": Action.NEXT_MERGE,
    "M": Action.PREV_MERGE,
    "c": Action.NEXT_CONFLICT,
    "C": Action.PREV_CONFLICT,
    "enter": Action.SHOW_DETAILS,
    "b": Action.BRANCH_LIST,
    "f": Action.EDIT_FILTER,
    "?": Action.HELP,
    "q": Action.QUIT,
}

KEY_HELP = [
    ("↑/k  ↓/j", "move up / down"),
    ("←/h  →/l", "check out previous / next branch"),
    ("g  G", "top / bottom of the window"),
    ("gg  GG", "newest / oldest commit of the history"),
    ("m  M", "next / previous merge commit"),
    ("c  C", "next / previous conflict resolution"),
    ("Enter", "commit details"),
    ("b", "branch list"),
    ("f", "filter"),
    ("?", "help"),
    ("q", "quit"),
]


class Dispatcher:
    """Turn keys into actions; remembers the previous key for `gg`/`GG`.

    Chords have no timeout: `g` followed by `g` is `gg` however long the
    pause between them. A third `g` is another `gg`.
    """

    def __init__(self, view: HistoryView) -> None:
        self.view = view
        self.last_key: Optional[str] = None

    def action_for(self, key: Optional[str]) -> Action:
        """Resolve `key` to an action, updating the chord memory."""
        if key is None:
            return Action.NONE
        if key in ("g", "G"):
            chord = self.last_key == key
            self.last_key = key
            if key == "g":
                return Action.HISTORY_TOP if chord else Action.WINDOW_TOP
            return Action.HISTORY_BOTTOM if chord else Action.WINDOW_BOTTOM
        self.last_key = None
        return KEYMAP.get(key, Action.NONE)

    def apply(self, action: Action) -> None:
        view = self.view
        if action is Action.CURSOR_UP:
            view.cursor_up()
        elif action is Action.CURSOR_DOWN:
            view.cursor_down()
        elif action is Action.WINDOW_TOP:
            view.jump_window_top()
        elif action is Action.WINDOW_BOTTOM:
            view.jump_window_bottom()
        elif action is Action.HISTORY_TOP:
            view.jump_first()
        elif action is Action.HISTORY_BOTTOM:
            view.jump_last()
        elif action is Action.NEXT_MERGE:
            view.search(IndexKind.MERGE, forward=True)
        elif action is Action.PREV_MERGE:
            view.search(IndexKind.MERGE, forward=False)
        elif action is Action.NEXT_CONFLICT:
            view.search(IndexKind.CONFLICT, forward=True)
        elif action is Action.PREV_CONFLICT:
            view.search(IndexKind.CONFLICT, forward=False)
        elif action is Action.CHECKOUT_PREV_BRANCH:
            view.switch_branch(-1)
        elif action is Action.CHECKOUT_NEXT_BRANCH:
            view.switch_branch(+1)

    def dispatch(self, key: Optional[str]) -> Action:
        """Handle one key. Session actions are returned unapplied."""
        action = self.action_for(key)
        logger.debug(f"Dispatcher.dispatch: key={key!r} action={action.value}")
        if action not in SESSION_ACTIONS:
            self.apply(action)
        return action
