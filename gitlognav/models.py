"""
Row and filter types shared by the loader, the parser and the viewport.
"""
from __future__ import annotations

import datetime
import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class GraphOnlyRow:
    """A rendered line that is pure branch-graph scaffolding."""

    graph: str = ""


@dataclass
class CommitRow:
    """One commit of the rendered graph.

    Only `is_merge` and `is_conflict_resolved` change after creation; the
    commit index fills them in once the page has been parsed.
    """

    hash: str
    message: str = ""
    committer: str = ""
    date: Optional[datetime.datetime] = None
    branches: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    is_head: bool = False
    is_merge: bool = False
    is_conflict_resolved: bool = False
    graph: str = ""


Row = Union[GraphOnlyRow, CommitRow]


# "1.week", "2.days", "3.hours"
_SINCE_UNITS = {
    "week": datetime.timedelta(weeks=1),
    "weeks": datetime.timedelta(weeks=1),
    "day": datetime.timedelta(days=1),
    "days": datetime.timedelta(days=1),
    "hour": datetime.timedelta(hours=1),
    "hours": datetime.timedelta(hours=1),
}


def parse_since(text: Optional[str]) -> Optional[datetime.timedelta]:
    """Parse a `N.unit` period such as ``1.week`` into a timedelta.

    Anything that does not look like ``<int>.<unit>`` with a known unit
    yields None, i.e. no date constraint.
    """
    if not text:
        return None
    m = re.fullmatch(r"\s*(\d+)\.([a-z]+)\s*", text)
    if not m:
        logger.debug(f"parse_since: ignoring malformed period {text!r}")
        return None
    unit = _SINCE_UNITS.get(m.group(2))
    if unit is None:
        logger.debug(f"parse_since: unknown unit in {text!r}")
        return None
    return unit * int(m.group(1))


def format_since(since: datetime.timedelta) -> str:
    """Render a timedelta back into the `N.unit` form used by the filter editor."""
    seconds = int(since.total_seconds())
    for name, span in (("weeks", 604800), ("days", 86400), ("hours", 3600)):
        if seconds and seconds % span == 0:
            count = seconds // span
            return f"{count}.{name[:-1] if count == 1 else name}"
    return f"{seconds} seconds"


@dataclass(frozen=True)
class HistoryFilter:
    """Constraints applied to the history queries.

    A browsing session keeps one filter; editing it replaces the whole
    object and forces a reload from the newest commit.
    """

    branch_pattern: str = ""
    author: str = ""
    since: Optional[datetime.timedelta] = None

    def git_args(self) -> list[str]:
        args = []
        if self.author:
            args.append(f"--author={self.author}")
        if self.since:
            args.append(f"--since={int(self.since.total_seconds())} seconds ago")
        return args

    def is_empty(self) -> bool:
        return not (self.branch_pattern or self.author or self.since)

    def describe(self) -> str:
        parts = []
        if self.branch_pattern:
            parts.append(f"branch={self.branch_pattern}")
        if self.author:
            parts.append(f"author={self.author}")
        if self.since:
            parts.append(f"since={format_since(self.since)}")
        return " ".join(parts) if parts else "none"
