"""
Commit source: every history query the navigator issues against `git`.

All queries run synchronously with the repository work tree as their
working directory. A failing query raises `GitError`; nothing is retried.
"""
from __future__ import annotations

import logging
import os
import subprocess
from typing import Optional, Sequence

import pygit2

from .models import HistoryFilter

logger = logging.getLogger(__name__)

LOG_FORMAT = "%h -%d %s (%aI) <%cn>"
CONFLICT_KEYWORDS = ("conflict", "resolve", "fix")

DETAILS_FORMAT = (
    "%B%n%nAuthor:    %an <%ae>%nAuthored:  %ai%n%nCommitter: %cn <%ce>%nCommitted: %ci"
)


class GitError(Exception):
    """A git query failed or produced output that could not be used."""

    def __init__(self, message: str, args: Sequence[str] = (), stderr: str = "") -> None:
        super().__init__(message)
        self.git_args = list(args)
        self.stderr = stderr

    def __str__(self) -> str:
        text = super().__str__()
        if self.stderr:
            return f"{text}: {self.stderr.strip()}"
        return text


def discover_repository(path: str) -> str:
    """Return the work tree root of the repository containing `path`."""
    path = os.path.abspath(path)
    try:
        gitdir = pygit2.discover_repository(path)
    except (pygit2.GitError, OSError) as e:
        raise GitError(f"cannot inspect {path}: {e}") from e
    if not gitdir:
        raise GitError(f"not a git repository: {path}")
    repo = pygit2.Repository(gitdir)
    if not repo.workdir:
        raise GitError(f"bare repositories have no work tree: {gitdir}")
    return os.path.abspath(repo.workdir)


def run_git(args: Sequence[str], cwd: str) -> str:
    """Run ``git <args>`` in `cwd` and return its stdout."""
    cmd = ["git", *args]
    logger.debug(f"run_git: {' '.join(cmd)} (cwd={cwd})")
    try:
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        raise GitError(f"cannot run git: {e}", args) from e
    if proc.returncode != 0:
        logger.debug(f"run_git: exit {proc.returncode}: {proc.stderr.strip()}")
        raise GitError(f"git {args[0]} failed with exit code {proc.returncode}", args, proc.stderr)
    return proc.stdout


class CommitSource:
    """Paginated history queries plus the branch and index lookups."""

    def __init__(self, repo_root: str) -> None:
        self.repo_root = repo_root

    @classmethod
    def open(cls, path: str) -> "CommitSource":
        return cls(discover_repository(path))

    def _git(self, *args: str) -> str:
        return run_git(args, self.repo_root)

    def _lines(self, *args: str) -> list[str]:
        return [line.strip() for line in self._git(*args).splitlines() if line.strip()]

    # history pages

    def load_page(self, skip: int, page_size: int, history_filter: Optional[HistoryFilter] = None) -> list[str]:
        """Raw `log --graph` lines for up to `page_size` commits after `skip`."""
        history_filter = history_filter or HistoryFilter()
        scope = f"--branches={history_filter.branch_pattern}" if history_filter.branch_pattern else "--all"
        args = [
            "log",
            "--graph",
            scope,
            f"--skip={skip}",
            f"--max-count={page_size}",
            f"--pretty=format:{LOG_FORMAT}",
        ]
        args.extend(history_filter.git_args())
        return self._git(*args).splitlines()

    def count(self, history_filter: Optional[HistoryFilter] = None) -> int:
        """Number of commits reachable under the filter."""
        history_filter = history_filter or HistoryFilter()
        scope = f"--branches={history_filter.branch_pattern}" if history_filter.branch_pattern else "HEAD"
        args = ["rev-list", "--count", scope, *history_filter.git_args()]
        out = self._git(*args).strip()
        try:
            return int(out)
        except ValueError as e:
            raise GitError(f"unexpected commit count {out!r}", args) from e

    # per-commit lookups used by the windowed index

    def parents(self, commit: str) -> list[str]:
        """The commit hash followed by its parents' hashes."""
        return self._git("rev-list", "--parents", "-n", "1", commit).split()

    def message_body(self, commit: str) -> str:
        return self._git("show", "-s", "--format=%B", commit)

    # whole-history lookups used by the global index

    def merge_hashes(self) -> set[str]:
        return set(self._lines("log", "--merges", "--format=%H"))

    def conflict_hashes(self) -> set[str]:
        greps = [f"--grep={word}" for word in CONFLICT_KEYWORDS]
        return set(self._lines("log", *greps, "-i", "--format=%H"))

    # branches

    def branches(self, all_refs: bool = False) -> list[str]:
        """Branch names in `git branch` order, without the current-branch marker."""
        args = ["branch", "--all"] if all_refs else ["branch"]
        names = []
        for line in self._lines(*args):
            if line.startswith("* "):
                line = line[2:]
            names.append(line.strip())
        return names

    def current_branch(self) -> str:
        return self._git("rev-parse", "--abbrev-ref", "HEAD").strip()

    def checkout(self, branch: str) -> str:
        """Check out `branch`. This changes the working tree."""
        logger.info(f"checkout: switching to {branch}")
        return self._git("checkout", branch)

    # details screen

    def commit_details(self, commit: str) -> str:
        header = self._git("show", "-s", f"--format={DETAILS_FORMAT}", commit)
        stat = self._git("show", "--stat", "--format=", commit)
        patch = self._git("show", "--color=never", "--format=", commit)
        return f"{header.rstrip()}\n\nChanged files:\n{stat.strip()}\n\nChanges:\n{patch.rstrip()}\n"
