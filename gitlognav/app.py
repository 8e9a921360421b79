"""
Full-screen Textual front end for the history navigator.
"""
from __future__ import annotations

import logging
import re
import traceback
from typing import Optional

from rich.align import Align
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.containers import Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Input, Label, ListItem, ListView, Static

from . import render
from .keys import Action, Dispatcher
from .models import CommitRow, HistoryFilter, parse_since
from .source import GitError
from .view import HistoryView

logger = logging.getLogger(__name__)

PASSTHROUGH_KEYS = ("up", "down", "left", "right", "enter")


def key_name(event: events.Key) -> Optional[str]:
    """Map a Textual key event onto the names the dispatcher understands."""
    if event.key in PASSTHROUGH_KEYS:
        return event.key
    ch = event.character
    if ch and len(ch) == 1 and ch.isprintable():
        return ch
    return None


class MessageModal(ModalScreen):
    """Simple modal that shows a message and closes on any key."""

    def __init__(self, message: str, title: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.message = message
        self.title_text = title

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="message-body"):
            if self.title_text:
                yield Label(Text(self.title_text, style="bold"))
            yield Static(Text(self.message))
        yield Label(Text("Press any key to return", style="dim"))

    def on_key(self, event: events.Key) -> None:
        event.stop()
        if event.key in ("up", "down", "pageup", "pagedown"):
            try:
                body = self.query_one("#message-body", VerticalScroll)
                if event.key == "up":
                    body.scroll_up()
                elif event.key == "down":
                    body.scroll_down()
                elif event.key == "pageup":
                    body.scroll_page_up()
                else:
                    body.scroll_page_down()
            except Exception as e:
                logger.debug(f"MessageModal.on_key: scrolling: exception: {e}")
                logger.debug(traceback.format_exc())
            return
        self.app.pop_screen()


class DetailsScreen(ModalScreen):
    """Commit details; j/k step through the history underneath."""

    def __init__(self, view: HistoryView, **kwargs) -> None:
        super().__init__(**kwargs)
        self.view = view

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="details-body"):
            yield Static(id="details")
        yield Label(Text("j/k: next/previous commit   q/Enter: back", style="bold"))

    def on_mount(self) -> None:
        self.show_current()

    def show_current(self) -> None:
        row = self.view.current_row()
        details = self.query_one("#details", Static)
        if not isinstance(row, CommitRow) or not row.hash:
            details.update(Text("Graph line, no commit selected."))
            return
        try:
            body = self.view.source.commit_details(row.hash)
        except GitError as e:
            details.update(Text(f"Cannot show {row.hash}: {e}", style="red"))
            return
        text = Text(f"commit {row.hash}\n", style="bold")
        if row.is_head:
            text.append(f"HEAD -> {self.view.current_branch}\n", style="green")
        if row.branches:
            text.append(f"branches: {', '.join(row.branches)}\n", style="blue")
        if row.tags:
            text.append(f"tags: {', '.join(row.tags)}\n", style="yellow")
        text.append("\n")
        text.append(body)
        details.update(text)
        try:
            self.query_one("#details-body", VerticalScroll).scroll_home(animate=False)
        except Exception as e:
            logger.debug(f"DetailsScreen.show_current: scroll_home: exception: {e}")

    def on_key(self, event: events.Key) -> None:
        event.stop()
        key = key_name(event)
        if key == "j":
            self.view.cursor_down()
            self.show_current()
        elif key == "k":
            self.view.cursor_up()
            self.show_current()
        elif key in ("q", "enter"):
            self.dismiss(None)
        elif event.key in ("up", "down", "pageup", "pagedown"):
            body = self.query_one("#details-body", VerticalScroll)
            {
                "up": body.scroll_up,
                "down": body.scroll_down,
                "pageup": body.scroll_page_up,
                "pagedown": body.scroll_page_down,
            }[event.key]()


class FilterScreen(ModalScreen):
    """Edit branch pattern, author and period; Enter applies, Escape cancels."""

    def __init__(self, current: HistoryFilter, **kwargs) -> None:
        super().__init__(**kwargs)
        self.current = current

    def compose(self) -> ComposeResult:
        with Vertical(id="filter-form"):
            yield Label(Text("=== Git History filter ===", style="bold"))
            yield Label("Branch pattern (e.g. feature/*)")
            yield Input(value=self.current.branch_pattern, id="filter-branch")
            yield Label("Author")
            yield Input(value=self.current.author, id="filter-author")
            yield Label("Since (e.g. 1.week, 2.days, 3.hours)")
            yield Input(value=render.format_since_value(self.current), id="filter-since")
            yield Label(Text("Enter: apply   Ctrl+R: reset filter   Escape: cancel", style="dim"))

    def collect(self) -> HistoryFilter:
        return HistoryFilter(
            branch_pattern=self.query_one("#filter-branch", Input).value.strip(),
            author=self.query_one("#filter-author", Input).value.strip(),
            since=parse_since(self.query_one("#filter-since", Input).value),
        )

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.dismiss(self.collect())

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            event.stop()
            self.dismiss(None)
        elif event.key == "ctrl+r":
            event.stop()
            self.dismiss(HistoryFilter())


HELP_TEXT = """
Git History Navigator (gitlognav)
=================================

Overview
--------
Pages through the commit graph of the repository `30` rows at a time,
loading more history from git as the cursor moves.

Keys
----
- `k` / up arrow: move up; scrolls back when leaving the window
- `j` / down arrow: move down; scrolls forward when leaving the window
- `g` / `G`: first / last row of the window
- `gg` / `GG`: newest / oldest commit of the whole history
- `h` / left arrow, `l` / right arrow: *check out* the previous / next local branch
  - this changes your working tree
- `m` / `M`: next / previous merge commit
- `c` / `C`: next / previous conflict-resolution commit
  - with `--global` the search knows the whole history and scrolls to the match
- Enter: commit details (`j`/`k` step through commits)
- `b`: all branches
- `f`: edit the author / period / branch filter
- `q`: quit

Press any key to return.
"""


class HelpList(ListView):
    """Help contents: titles, headings and bullets from `HELP_TEXT`."""

    def on_mount(self) -> None:
        lines = HELP_TEXT.strip("\n").split("\n")
        bullets = ["◉", "○", "♦"]
        for i, line in enumerate(lines):
            following = lines[i + 1] if i + 1 < len(lines) else ""
            if line.startswith(("==", "--")):
                continue
            if following.startswith("=="):
                lbl = Label(Align(Text(line.strip(), style="bold"), align="center"))
                lbl.styles.width = "100%"
                self.append(ListItem(lbl))
                continue
            if following.startswith("--"):
                self.append(ListItem(Label(Text(line.strip(), style="bold underline"))))
                continue
            stripped = line.lstrip()
            if stripped.startswith("- "):
                depth = (len(line) - len(stripped)) // 2
                line = "  " * depth + bullets[depth % len(bullets)] + " " + stripped[2:]
            self.append(ListItem(Label(_inline_styles(line))))

    def on_key(self, event: events.Key) -> None:
        if event.key in ("up", "down", "pageup", "pagedown"):
            return
        event.stop()
        self.app.pop_screen()


def _inline_styles(line: str) -> Text:
    """`fixed` and *bold* spans."""
    text = Text()
    for part in re.split(r"(`[^`]*`|\*[^*]*\*)", line):
        if part.startswith("`") and part.endswith("`") and len(part) > 1:
            text.append(part[1:-1], style="white on bright_blue")
        elif part.startswith("*") and part.endswith("*") and len(part) > 1:
            text.append(part[1:-1], style="bold")
        else:
            text.append(part)
    return text


class HelpScreen(ModalScreen):
    def compose(self) -> ComposeResult:
        yield HelpList(id="help")

    def on_mount(self) -> None:
        self.query_one("#help", HelpList).focus()


class HistoryNavigator(App):
    """Main Textual application: header, graph rows and a status footer.

    Keys go through the `Dispatcher`; session actions open modal screens.
    All git work happens synchronously inside the key handler.
    """

    TITLE = "Git History Navigator"
    CSS = """
App {
    overflow: hidden;
    scrollbar-size: 0 0;
}
#header {
    height: 1;
    padding: 0 1;
}
#range {
    height: 1;
    padding: 0 1;
}
#graph {
    border: solid white;
    height: 1fr;
    padding: 0 1;
}
#footer {
    height: 1;
    padding: 0 1;
}
#hints {
    height: 1;
    padding: 0 1;
}
MessageModal, DetailsScreen, FilterScreen, HelpScreen {
    align: center middle;
}
#message-body, #details-body, #filter-form, #help {
    border: heavy #555555;
    width: 90%;
    height: 80%;
}
"""

    def __init__(self, view: HistoryView, **kwargs) -> None:
        super().__init__(**kwargs)
        self.view = view
        self.dispatcher = Dispatcher(view)

    def compose(self) -> ComposeResult:
        with Vertical(id="root"):
            yield Label(id="header")
            yield Label(id="range")
            yield Static(id="graph")
            yield Label(id="footer")
            yield Label(Text("q(uit)  ?(help)  ↑ ↓ j k  g G  m M c C  ← → h l  b  f  Enter", style="bold"), id="hints")

    def on_mount(self) -> None:
        self.refresh_view()

    def refresh_view(self) -> None:
        """Redraw every part that depends on the view state."""
        try:
            self.query_one("#header", Label).update(render.header_text(self.view))
            self.query_one("#range", Label).update(render.range_text(self.view))
            self.query_one("#graph", Static).update(render.body_text(self.view))
            self.query_one("#footer", Label).update(render.position_text(self.view))
        except Exception as e:
            logger.debug(f"HistoryNavigator.refresh_view: exception: {e}")
            logger.debug(traceback.format_exc())

    def show_branch_list(self) -> None:
        try:
            branches = self.view.source.branches(all_refs=True)
        except GitError as e:
            self.view.message = f"branch list failed: {e}"
            return
        lines = [("→ " if name == self.view.current_branch else "  ") + name for name in branches]
        self.push_screen(MessageModal("\n".join(lines), title="=== Branches ==="))

    def apply_filter(self, new_filter: Optional[HistoryFilter]) -> None:
        if new_filter is not None and new_filter != self.view.filter:
            self.view.set_filter(new_filter)
        self.refresh_view()

    def on_key(self, event: events.Key) -> None:
        # modal screens handle their own keys
        if len(self.screen_stack) > 1:
            return
        key = key_name(event)
        logger.debug(f"HistoryNavigator.on_key: key={event.key} mapped={key}")
        if key is None:
            return
        event.stop()
        action = self.dispatcher.dispatch(key)
        if action is Action.QUIT:
            self.exit()
            return
        if action is Action.SHOW_DETAILS:
            self.push_screen(DetailsScreen(self.view), lambda _: self.refresh_view())
        elif action is Action.BRANCH_LIST:
            self.show_branch_list()
        elif action is Action.EDIT_FILTER:
            self.push_screen(FilterScreen(self.view.filter), self.apply_filter)
        elif action is Action.HELP:
            self.push_screen(HelpScreen())
        self.refresh_view()
