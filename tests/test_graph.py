"""Tests for parsing `git log --graph` lines."""

import datetime

import pytest

from gitlognav.graph import normalize_graph, parse_date, parse_line, parse_lines, split_graph_prefix
from gitlognav.models import CommitRow, GraphOnlyRow


class TestParseLine:
    """Field extraction from one graph line."""

    def test_well_formed_head_line(self):
        """HEAD ref, branch, message, committer and date all come out."""
        row = parse_line("* -  (HEAD -> main) initial commit (2024-01-04T12:00:00Z) <Jane>")
        assert isinstance(row, CommitRow)
        assert row.is_head
        assert row.branches == ["main"]
        assert row.message == "initial commit"
        assert row.committer == "Jane"
        assert row.date == datetime.datetime(2024, 1, 4, 12, 0, tzinfo=datetime.timezone.utc)
        assert row.hash == ""

    def test_typical_line(self):
        row = parse_line("* 1a2b3c4 - (HEAD -> main, origin/main, tag: v1.0) Add parser (2024-02-01T08:30:00+01:00) <Ann Lee>")
        assert row.hash == "1a2b3c4"
        assert row.is_head
        assert row.branches == ["main", "origin/main"]
        assert row.tags == ["v1.0"]
        assert row.message == "Add parser"
        assert row.committer == "Ann Lee"
        assert row.date.utcoffset() == datetime.timedelta(hours=1)
        assert row.graph == "*"

    def test_no_refs(self):
        row = parse_line("* 1a2b3c4 - Fix typo (2024-02-01T08:30:00Z) <Ann>")
        assert row.branches == []
        assert row.tags == []
        assert not row.is_head
        assert row.message == "Fix typo"

    def test_detached_head(self):
        row = parse_line("* 1a2b3c4 - (HEAD, feature) Work (2024-02-01T08:30:00Z) <Ann>")
        assert row.is_head
        assert row.branches == ["feature"]

    def test_missing_committer_and_date(self):
        """Absent trailing fields leave defaults and keep the message."""
        row = parse_line("* 1a2b3c4 - just a message")
        assert row.hash == "1a2b3c4"
        assert row.message == "just a message"
        assert row.committer == ""
        assert row.date is None

    def test_bad_date_is_not_an_error(self):
        row = parse_line("* 1a2b3c4 - Msg (yesterday) <Ann>")
        assert row.date is None
        assert row.committer == "Ann"
        assert row.message == "Msg"

    def test_parentheses_in_message_use_last_pair_for_date(self):
        row = parse_line("* 1a2b3c4 - Bump (deps) again (2024-02-01T08:30:00Z) <Ann>")
        assert row.message == "Bump (deps) again"
        assert row.date is not None

    def test_message_with_dash_delimiter(self):
        """Only the first " -" separates the hash."""
        row = parse_line("* 1a2b3c4 - Revert - partial (2024-02-01T08:30:00Z) <Ann>")
        assert row.hash == "1a2b3c4"
        assert row.message == "Revert - partial"

    def test_second_lane_commit(self):
        row = parse_line("| * 9f8e7d6 - Side work (2024-02-01T08:30:00Z) <Bo>")
        assert row.hash == "9f8e7d6"
        assert row.graph == "| *"

    def test_merge_commit_graph_prefix(self):
        row = parse_line("*   9f8e7d6 - Merge branch 'x' (2024-02-01T08:30:00Z) <Bo>")
        assert row.hash == "9f8e7d6"
        assert row.graph == "*"

    @pytest.mark.parametrize("line", ["|\\  ", "| |", "|/", "| * ", "*", "|\\ \\"])
    def test_graph_only_lines(self, line):
        row = parse_line(line)
        assert isinstance(row, GraphOnlyRow)
        assert not hasattr(row, "hash") or row.hash == ""

    def test_parse_lines_skips_blank_lines(self):
        rows = parse_lines(["* a1 - one (2024-01-01T00:00:00Z) <A>", "", "   ", "|\\", "* b2 - two"])
        assert [type(r) for r in rows] == [CommitRow, GraphOnlyRow, CommitRow]


class TestSplitGraphPrefix:
    def test_prefix_keeps_separating_space_in_remainder(self):
        assert split_graph_prefix("* abc - x") == ("* ", " abc - x")

    def test_line_without_graph(self):
        assert split_graph_prefix("abc - x") == ("", "abc - x")

    def test_pure_graph_line(self):
        assert split_graph_prefix("| |") == ("| |", "")


class TestNormalizeGraph:
    """Ligature table, applied in order."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("|\\ ", "|\\"),
            ("|/ ", "|/"),
            ("/\\ ", "/\\"),
            ("/| ", "/|"),
            ("| | ", "||"),
            ("\\/|", "\\|"),
            ("|/\\", "|/"),
            ("* ", "*"),
            ("*   ", "*"),
        ],
    )
    def test_ligatures(self, raw, expected):
        assert normalize_graph(raw) == expected

    def test_order_matters(self):
        """The `\\| ` rule fires before `|\\| ` gets its chance."""
        assert normalize_graph("|\\| ") == "|\\|"

    def test_trailing_spaces_trimmed_last(self):
        assert normalize_graph("| *   ") == "| *"


class TestParseDate:
    def test_zulu(self):
        assert parse_date("2024-01-04T12:00:00Z").tzinfo is not None

    @pytest.mark.parametrize("value", [None, "", "not a date", "2024-13-40T00:00:00Z"])
    def test_invalid(self, value):
        assert parse_date(value) is None
