"""Shared fixtures: an in-memory stand-in for the git commit source."""

import pytest

from gitlognav.index import GlobalCommitIndex, WindowedCommitIndex
from gitlognav.models import HistoryFilter
from gitlognav.source import GitError
from gitlognav.view import HistoryView


class FakeCommit:
    def __init__(self, short, message, parents=1, body=None, refs="", committer="Jane"):
        self.short = short
        self.full = short + "f" * (40 - len(short))
        self.message = message
        self.parents = parents
        self.body = body if body is not None else message
        self.refs = refs
        self.committer = committer


class FakeSource:
    """Answers the CommitSource queries from a list of commits, newest first."""

    def __init__(self, commits, branches=("main",), current="main", graph_rows=False):
        self.commits = list(commits)
        self.branch_names = list(branches)
        self.current = current
        self.graph_rows = graph_rows
        self.page_calls = []
        self.count_calls = 0
        self.checkouts = []
        self.parent_queries = 0
        self.fail_pages = False

    def _line(self, commit, day):
        refs = f" ({commit.refs})" if commit.refs else ""
        graph = "*   " if commit.parents > 1 else "* "
        return f"{graph}{commit.short} -{refs} {commit.message} (2024-01-{day:02d}T12:00:00Z) <{commit.committer}>"

    def load_page(self, skip, page_size, history_filter=None):
        self.page_calls.append((skip, page_size, history_filter))
        if self.fail_pages:
            raise GitError("git log failed with exit code 128", ["log"])
        lines = []
        for offset, commit in enumerate(self.commits[skip:skip + page_size]):
            lines.append(self._line(commit, 28 - ((skip + offset) % 28)))
            if self.graph_rows and commit.parents > 1:
                lines.append("|\\  ")
                lines.append("| * ")
        return lines

    def count(self, history_filter=None):
        self.count_calls += 1
        return len(self.commits)

    def _by_hash(self, commit):
        for c in self.commits:
            if c.short == commit or c.full == commit:
                return c
        raise GitError(f"unknown revision {commit}", ["rev-list"])

    def parents(self, commit):
        self.parent_queries += 1
        c = self._by_hash(commit)
        return [c.full] + [f"p{i}" for i in range(c.parents)]

    def message_body(self, commit):
        return self._by_hash(commit).body + "\n"

    def merge_hashes(self):
        return {c.full for c in self.commits if c.parents > 1}

    def conflict_hashes(self):
        words = ("conflict", "resolve", "fix")
        return {c.full for c in self.commits if any(w in c.body.lower() for w in words)}

    def branches(self, all_refs=False):
        names = list(self.branch_names)
        if all_refs:
            names.append("remotes/origin/main")
        return names

    def current_branch(self):
        return self.current

    def checkout(self, branch):
        if branch not in self.branch_names:
            raise GitError(f"pathspec '{branch}' did not match", ["checkout", branch])
        self.checkouts.append(branch)
        self.current = branch
        return ""

    def commit_details(self, commit):
        c = self._by_hash(commit)
        return f"{c.body}\n\nAuthor:    {c.committer}\n"


def make_commits(count, merge_at=(), bodies=None):
    """Commits c01..cNN, newest first; positions in `merge_at` are 0-based."""
    bodies = bodies or {}
    commits = []
    for i in range(count):
        short = f"c{i + 1:02d}ab"
        commits.append(
            FakeCommit(
                short,
                f"commit number {i + 1}",
                parents=2 if i in merge_at else 1,
                body=bodies.get(i),
            )
        )
    return commits


@pytest.fixture
def make_view():
    def _make(commits, window_size=3, global_search=False, **source_kwargs):
        source = FakeSource(commits, **source_kwargs)
        index = GlobalCommitIndex(source) if global_search else WindowedCommitIndex(source)
        view = HistoryView(source, index, window_size=window_size, history_filter=HistoryFilter())
        view.load()
        return view

    return _make
