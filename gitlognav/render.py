"""
Rich text for rows, header and footer, shared by both front ends.
"""
from __future__ import annotations

from rich.text import Text

from .keys import KEY_HELP
from .models import CommitRow, GraphOnlyRow, HistoryFilter, Row, format_since
from .view import HistoryView

GRAPH_STYLES = {
    "*": "yellow",
    "|": "blue",
    "/": "blue",
    "\\": "blue",
}


def graph_text(graph: str) -> Text:
    text = Text()
    for ch in graph:
        text.append(ch, style=GRAPH_STYLES.get(ch))
    return text


def refs_text(row: CommitRow) -> Text:
    text = Text()
    if not (row.branches or row.tags or row.is_head):
        return text
    parts: list[Text] = []
    branches = list(row.branches)
    if row.is_head:
        head = Text("HEAD", style="green")
        if branches:
            head.append(" -> ", style="green")
            head.append(branches.pop(0), style="blue")
        parts.append(head)
    for branch in branches:
        parts.append(Text(branch, style="blue"))
    for tag in row.tags:
        parts.append(Text(f"tag: {tag}", style="yellow"))
    text.append(" (")
    text.append(Text(", ").join(parts))
    text.append(")")
    return text


def row_text(row: Row, selected: bool = False) -> Text:
    """One line in `git log --graph` shape, with a cursor marker."""
    text = Text("→" if selected else " ", style="cyan")
    text.append(graph_text(row.graph))
    if isinstance(row, GraphOnlyRow):
        return text
    text.append(" ")
    text.append(row.hash, style="bold" if selected else None)
    text.append(" -")
    text.append(refs_text(row))
    text.append(" ")
    text.append(row.message)
    if row.is_merge:
        text.append(" [merge]", style="magenta")
    if row.is_conflict_resolved:
        text.append(" [resolved]", style="red")
    if row.date is not None:
        text.append(f" ({row.date.isoformat()})", style="dim")
    if row.committer:
        text.append(f" <{row.committer}>", style="cyan")
    if selected:
        text.stylize("reverse", 1)
    return text


def header_text(view: HistoryView) -> Text:
    text = Text("=== Git History (")
    text.append(view.current_branch or "?", style="blue")
    text.append(") ===")
    if view.global_search:
        text.append("  [global search]", style="magenta")
    if not view.filter.is_empty():
        text.append(f"  filter: {view.filter.describe()}", style="dim")
    return text


def range_text(view: HistoryView) -> Text:
    first = view.window_start + 1
    total = view.total_commits or 0
    last = min(view.window_start + view.window_size, total)
    return Text(f"commits {first}-{last} / {total}")


def position_text(view: HistoryView) -> Text:
    text = Text(f"({view.cursor + 1}/{len(view.rows)})")
    if view.message:
        text.append("  ")
        text.append(view.message, style="bold red")
    return text


def body_text(view: HistoryView) -> Text:
    start, end = view.visible_range()
    lines = [row_text(view.rows[i], i == view.cursor) for i in range(start, end)]
    if not lines:
        return Text("No commits.")
    return Text("\n").join(lines)


def help_text() -> str:
    width = max(len(keys) for keys, _ in KEY_HELP)
    return "\n".join(f"{keys.ljust(width)}  {desc}" for keys, desc in KEY_HELP)


def format_since_value(history_filter: HistoryFilter) -> str:
    if history_filter.since is None:
        return ""
    return format_since(history_filter.since)
