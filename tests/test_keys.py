"""Tests for key decoding and dispatch."""

import io
from unittest.mock import MagicMock

import pytest

from gitlognav.index import IndexKind
from gitlognav.keys import (
    KEYMAP,
    SESSION_ACTIONS,
    SIDE_EFFECT_ACTIONS,
    Action,
    Dispatcher,
    KeyReader,
)
from gitlognav.view import HistoryView


class TestKeyReader:
    def read_all(self, text):
        reader = KeyReader(io.StringIO(text))
        keys = []
        while True:
            try:
                keys.append(reader.read_key())
            except EOFError:
                return keys

    def test_plain_keys(self):
        assert self.read_all("jkq") == ["j", "k", "q"]

    def test_arrow_sequences(self):
        assert self.read_all("\x1b[A\x1b[B\x1b[C\x1b[D") == ["up", "down", "right", "left"]

    def test_undecoded_escape_sequence(self):
        assert self.read_all("\x1b[Zj") == [None, "j"]

    def test_enter(self):
        assert self.read_all("\r\n") == ["enter", "enter"]

    def test_truncated_escape_is_end_of_input(self):
        assert self.read_all("j\x1b[") == ["j"]

    def test_closed_stream(self):
        stream = io.StringIO("j")
        stream.close()
        with pytest.raises(EOFError):
            KeyReader(stream).read_key()


@pytest.fixture
def view():
    return MagicMock(spec=HistoryView)


class TestChords:
    def actions(self, dispatcher, keys):
        return [dispatcher.action_for(key) for key in keys]

    def test_single_g_and_G(self, view):
        d = Dispatcher(view)
        assert self.actions(d, ["g"]) == [Action.WINDOW_TOP]
        d = Dispatcher(view)
        assert self.actions(d, ["G"]) == [Action.WINDOW_BOTTOM]

    def test_gg_and_GG(self, view):
        d = Dispatcher(view)
        assert self.actions(d, ["g", "g"]) == [Action.WINDOW_TOP, Action.HISTORY_TOP]
        assert self.actions(d, ["G", "G"]) == [Action.WINDOW_BOTTOM, Action.HISTORY_BOTTOM]

    def test_third_g_repeats_the_chord(self, view):
        d = Dispatcher(view)
        assert self.actions(d, ["g", "g", "g"]) == [Action.WINDOW_TOP, Action.HISTORY_TOP, Action.HISTORY_TOP]

    def test_other_key_breaks_the_chord(self, view):
        d = Dispatcher(view)
        assert self.actions(d, ["g", "j", "g"]) == [Action.WINDOW_TOP, Action.CURSOR_DOWN, Action.WINDOW_TOP]

    def test_mixed_g_and_G_do_not_chord(self, view):
        d = Dispatcher(view)
        assert self.actions(d, ["g", "G"]) == [Action.WINDOW_TOP, Action.WINDOW_BOTTOM]

    def test_undecoded_key_keeps_the_chord(self, view):
        d = Dispatcher(view)
        assert self.actions(d, ["g", None, "g"]) == [Action.WINDOW_TOP, Action.NONE, Action.HISTORY_TOP]

    def test_unknown_key(self, view):
        assert Dispatcher(view).action_for("z") is Action.NONE


class TestDispatch:
    @pytest.mark.parametrize(
        "key, method, args",
        [
            ("k", "cursor_up", ()),
            ("up", "cursor_up", ()),
            ("j", "cursor_down", ()),
            ("down", "cursor_down", ()),
            ("g", "jump_window_top", ()),
            ("G", "jump_window_bottom", ()),
            ("h", "switch_branch", (-1,)),
            ("right", "switch_branch", (1,)),
        ],
    )
    def test_navigation_keys(self, view, key, method, args):
        Dispatcher(view).dispatch(key)
        getattr(view, method).assert_called_once_with(*args)

    @pytest.mark.parametrize(
        "key, kind, forward",
        [
            ("m", IndexKind.MERGE, True),
            ("M", IndexKind.MERGE, False),
            ("c", IndexKind.CONFLICT, True),
            ("C", IndexKind.CONFLICT, False),
        ],
    )
    def test_search_keys(self, view, key, kind, forward):
        Dispatcher(view).dispatch(key)
        view.search.assert_called_once_with(kind, forward=forward)

    def test_gg_jumps_to_history_top(self, view):
        d = Dispatcher(view)
        d.dispatch("g")
        d.dispatch("g")
        view.jump_window_top.assert_called_once_with()
        view.jump_first.assert_called_once_with()

    @pytest.mark.parametrize("key", ["enter", "b", "f", "?", "q"])
    def test_session_actions_are_returned_unapplied(self, view, key):
        action = Dispatcher(view).dispatch(key)
        assert action in SESSION_ACTIONS
        assert view.method_calls == []

    def test_only_branch_switching_has_side_effects(self):
        assert SIDE_EFFECT_ACTIONS == {Action.CHECKOUT_PREV_BRANCH, Action.CHECKOUT_NEXT_BRANCH}
        assert {KEYMAP[k] for k in ("h", "l", "left", "right")} == SIDE_EFFECT_ACTIONS
