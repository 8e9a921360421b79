"""Tests for argument handling and the entry point."""

import datetime
import logging
from unittest import mock

import pytest

from gitlognav import cli
from gitlognav.models import HistoryFilter
from gitlognav.source import GitError
from gitlognav.view import DEFAULT_WINDOW_SIZE


class TestArguments:
    def test_defaults(self):
        config = cli.NavigatorConfig.from_args(cli.build_parser().parse_args(["/repo"]))
        assert config.path == "/repo"
        assert config.history_filter == HistoryFilter()
        assert not config.global_search
        assert config.window_size == DEFAULT_WINDOW_SIZE
        assert not config.plain

    def test_filters_and_flags(self):
        args = cli.build_parser().parse_args(
            ["--branch", "feature/*", "--author", "jane", "--since", "2.days", "--global", "--window-size", "10", "--plain"]
        )
        config = cli.NavigatorConfig.from_args(args)
        assert config.history_filter == HistoryFilter("feature/*", "jane", datetime.timedelta(days=2))
        assert config.global_search
        assert config.window_size == 10
        assert config.plain

    def test_bad_window_size(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["--window-size", "0"])


class TestMain:
    def test_first_load_failure_exits_1(self, capsys):
        with mock.patch.object(cli.CommitSource, "open", side_effect=GitError("not a git repository: /x")):
            assert cli.main(["/x"]) == 1
        assert "not a git repository" in capsys.readouterr().err

    def test_plain_front_end(self):
        view = mock.MagicMock()
        with mock.patch.object(cli, "build_view", return_value=view), mock.patch(
            "gitlognav.terminal.run_plain"
        ) as run_plain:
            assert cli.main(["--plain", "/repo"]) == 0
        view.load.assert_called_once_with()
        run_plain.assert_called_once_with(view)

    def test_interrupt(self):
        view = mock.MagicMock()
        with mock.patch.object(cli, "build_view", return_value=view), mock.patch(
            "gitlognav.terminal.run_plain", side_effect=KeyboardInterrupt
        ):
            assert cli.main(["--plain", "/repo"]) == 130


def test_setup_logging_to_file(tmp_path):
    root = logging.getLogger()
    handlers = list(root.handlers)
    try:
        root.handlers = []
        log_file = tmp_path / "nav.log"
        cli.setup_logging(str(log_file), debug=True)
        logging.getLogger("gitlognav.test").debug("hello")
        for handler in root.handlers:
            handler.flush()
        assert "gitlognav.test - DEBUG - hello" in log_file.read_text()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = handlers
