# tests/test_refs.py
"""
Tests for ^name reference expansion.
"""

from butane.options import Options, RefDef
from butane.refs import replace_refs


def _opts(**refs):
    return Options(refs=refs)


class TestReplaceRefs:

    def test_simple(self):
        options = _opts(chat=RefDef("next", 0))
        assert replace_refs("^chat.foo === ^chat.bar", options) == "next.foo === next.bar"

    def test_depth_appends_parent_calls(self):
        options = _opts(chat=RefDef("next", 2))
        assert replace_refs("^chat.foo", options) == "next.parent().parent().foo"

    def test_explicit_snapshot(self):
        options = _opts(chat=RefDef("next", 1))
        assert replace_refs("^chat(prev).foo", options) == "prev.parent().foo"
        assert replace_refs("^chat(next).foo", options) == "next.parent().foo"

    def test_wildcard_name(self):
        options = _opts(**{"$game": RefDef("prev", 2)})
        assert (replace_refs("^$game['settings/started']", options)
                == "prev.parent().parent()['settings/started']")

    def test_whole_name_only(self):
        options = _opts(chat=RefDef("next", 0), chatroom=RefDef("prev", 1))
        assert replace_refs("^chatroom.a || ^chat.b", options) == "prev.parent().a || next.b"

    def test_unknown_ref_left_in_place(self):
        assert replace_refs("^other.foo", _opts(chat=RefDef("next", 0))) == "^other.foo"

    def test_text_without_refs_unchanged(self):
        assert replace_refs("next.foo", _opts(chat=RefDef("next", 0))) == "next.foo"
