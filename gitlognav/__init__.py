"""Terminal browser for a git commit graph."""

from .graph import parse_line, parse_lines
from .index import GlobalCommitIndex, IndexKind, WindowedCommitIndex
from .keys import Action, Dispatcher, KeyReader
from .models import CommitRow, GraphOnlyRow, HistoryFilter
from .source import CommitSource, GitError
from .view import HistoryView

__version__ = "0.1.0"

__all__ = [
    "Action",
    "CommitRow",
    "CommitSource",
    "Dispatcher",
    "GitError",
    "GlobalCommitIndex",
    "GraphOnlyRow",
    "HistoryFilter",
    "HistoryView",
    "IndexKind",
    "KeyReader",
    "WindowedCommitIndex",
    "parse_line",
    "parse_lines",
]
