"""
Merge and conflict-resolution membership for loaded commits.

Two strategies share one interface:

* `WindowedCommitIndex` asks git about every commit of the loaded page,
  one `rev-list --parents` and one `show -s` per commit, on every reload.
* `GlobalCommitIndex` issues one `log --merges` and one `log --grep` query
  for the whole history and keeps the result for the session.

Short hashes from the graph output match the full hashes the global
queries return by prefix.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Sequence

from .models import CommitRow, Row
from .source import CONFLICT_KEYWORDS, CommitSource

logger = logging.getLogger(__name__)


class IndexKind(Enum):
    MERGE = "merge"
    CONFLICT = "conflict"


def _contains(hashes: set[str], prefixes: dict[int, set[str]], commit: str) -> bool:
    if not commit:
        return False
    if commit in hashes:
        return True
    size = len(commit)
    if size not in prefixes:
        prefixes[size] = {h[:size] for h in hashes}
    return commit in prefixes[size]


class CommitIndex:
    """Base class holding the two hash sets."""

    is_global = False

    def __init__(self, source: CommitSource) -> None:
        self.source = source
        self.merges: set[str] = set()
        self.conflicts: set[str] = set()
        self._merge_prefixes: dict[int, set[str]] = {}
        self._conflict_prefixes: dict[int, set[str]] = {}

    def _replace(self, merges: set[str], conflicts: set[str]) -> None:
        self.merges = merges
        self.conflicts = conflicts
        self._merge_prefixes = {}
        self._conflict_prefixes = {}

    def refresh(self, rows: Sequence[Row]) -> None:
        """Bring the sets up to date for a newly loaded page."""
        raise NotImplementedError

    def invalidate(self) -> None:
        """Forget cached results; the next refresh queries again."""

    def is_merge(self, commit: str) -> bool:
        return _contains(self.merges, self._merge_prefixes, commit)

    def is_conflict(self, commit: str) -> bool:
        return _contains(self.conflicts, self._conflict_prefixes, commit)

    def contains(self, kind: IndexKind, commit: str) -> bool:
        if kind is IndexKind.MERGE:
            return self.is_merge(commit)
        return self.is_conflict(commit)

    def annotate(self, rows: Iterable[Row]) -> None:
        """Back-fill the merge/conflict flags on commit rows."""
        for row in rows:
            if isinstance(row, CommitRow):
                row.is_merge = self.is_merge(row.hash)
                row.is_conflict_resolved = self.is_conflict(row.hash)


def is_conflict_message(body: str) -> bool:
    body = body.lower()
    return any(word in body for word in CONFLICT_KEYWORDS)


class WindowedCommitIndex(CommitIndex):
    """Per-page index; cost grows with the page, not with the history."""

    def refresh(self, rows: Sequence[Row]) -> None:
        merges: set[str] = set()
        conflicts: set[str] = set()
        for row in rows:
            if not isinstance(row, CommitRow) or not row.hash:
                continue
            # commit itself plus two or more parents
            if len(self.source.parents(row.hash)) > 2:
                merges.add(row.hash)
            if is_conflict_message(self.source.message_body(row.hash)):
                conflicts.add(row.hash)
        logger.debug(f"WindowedCommitIndex.refresh: {len(merges)} merges, {len(conflicts)} conflicts in page")
        self._replace(merges, conflicts)


class GlobalCommitIndex(CommitIndex):
    """Whole-history index built once and reused across reloads."""

    is_global = True

    def __init__(self, source: CommitSource) -> None:
        super().__init__(source)
        self.built = False

    def refresh(self, rows: Sequence[Row]) -> None:
        if self.built:
            return
        merges = self.source.merge_hashes()
        conflicts = self.source.conflict_hashes()
        logger.info(f"GlobalCommitIndex: {len(merges)} merges, {len(conflicts)} conflict resolutions")
        self._replace(merges, conflicts)
        self.built = True

    def invalidate(self) -> None:
        self.built = False


def make_index(source: CommitSource, global_search: bool) -> CommitIndex:
    if global_search:
        return GlobalCommitIndex(source)
    return WindowedCommitIndex(source)
