# tests/test_transforms.py
"""
Tests for the snapshot passes: value coercion, child syntax, renaming.
"""

import pytest

from butane.config import CompilerConfig
from butane.transforms import coerce_val, replace_child_syntax, replace_firebase_identifiers


class TestCoerceVal:

    @pytest.mark.parametrize("src,expected", [
        ("foobar", "foobar"),
        ("root", "root.val()"),
        ("next.foo", "next.foo.val()"),
        ('next.foo["bar"]', "next.foo['bar'].val()"),
        ("next.foo === next.bar", "next.foo.val() === next.bar.val()"),
        ("next.hasChild()", "next.hasChild()"),
        ("next.val()", "next.val()"),
        ("next.val().length", "next.val().length"),
        ("auth.uid === 'x'", "auth.uid === 'x'"),
    ])
    def test_coerce(self, src, expected):
        assert coerce_val(src) == expected

    def test_index_expressions_coerced(self):
        assert coerce_val("prev.names[next]") == "prev.names[next.val()].val()"

    def test_call_arguments_coerced(self):
        assert (coerce_val("root.users.hasChild(root.chats[chat])")
                == "root.users.hasChild(root.chats[chat].val())")

    def test_function_style_call(self):
        assert coerce_val("isString(next)") == "isString(next.val())"

    def test_custom_snapshots(self):
        config = CompilerConfig(snapshot_identifiers={"cur": "newData"})
        assert coerce_val("cur.a === next.a", config) == "cur.a.val() === next.a"


class TestReplaceChildSyntax:

    @pytest.mark.parametrize("src,expected", [
        ("next.foo().bar()", "next.foo().bar()"),
        ("next.foo().bar", "next.foo().child('bar')"),
        ("next.foo", "next.child('foo')"),
        ("next['a/b']", "next.child('a/b')"),
        (
            "root.chats[$chat].users.hasChild(auth.uid)",
            "root.child('chats').child($chat).child('users').hasChild(auth.uid)",
        ),
        ("auth.token.email", "auth.token.email"),
        ("next.val().length", "next.val().length"),
        ("next.a.val() === prev.b.getPriority()",
         "next.child('a').val() === prev.child('b').getPriority()"),
    ])
    def test_desugar(self, src, expected):
        assert replace_child_syntax(src) == expected

    def test_after_coercion(self):
        src = coerce_val("root.users[user].chats.hasChild(root.chats[chat])")
        assert (replace_child_syntax(src)
                == "root.child('users').child(user).child('chats')"
                   ".hasChild(root.child('chats').child(chat).val())")

    def test_index_inside_ignored_root(self):
        assert replace_child_syntax("auth.ids[next.id]") == "auth.ids[next.child('id')]"

    def test_string_method_after_val(self):
        assert (replace_child_syntax("next.name.val().beginsWith('a')")
                == "next.child('name').val().beginsWith('a')")


class TestReplaceFirebaseIdentifiers:

    def test_rename(self):
        assert (replace_firebase_identifiers("next.val() === prev.val() && root.exists()")
                == "newData.val() === data.val() && root.exists()")

    def test_property_names_untouched(self):
        assert (replace_firebase_identifiers("root.child('next').next")
                == "root.child('next').next")

    def test_in_arguments(self):
        assert (replace_firebase_identifiers("root.child(next.val())")
                == "root.child(newData.val())")


class TestPassLogging:

    def test_rewrites_logged_at_debug(self, debug_logs):
        coerce_val("next.foo")
        messages = [r.getMessage() for r in debug_logs.records if r.name == "butane.transforms"]
        assert "ValueCoercer: next.foo -> next.foo.val()" in messages

    def test_unchanged_tree_not_logged(self, debug_logs):
        replace_firebase_identifiers("auth.uid")
        assert not [r for r in debug_logs.records if r.name == "butane.transforms"]
