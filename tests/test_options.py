# tests/test_options.py
"""
Tests for scoped .functions / .refs resolution.
"""

import pytest

from butane.errors import DeclarationError, MalformedFunctionDeclarationError
from butane.options import (
    FunctionDef,
    Options,
    RefDef,
    coerce_options,
    expand_functions,
    expand_ref,
    get_options,
    parse_function_header,
)


class TestFunctionHeaders:

    def test_with_arguments(self):
        assert parse_function_header("isAuthed(a, b)") == ("isAuthed", ("a", "b"))

    def test_without_arguments(self):
        assert parse_function_header("isActive()") == ("isActive", ())

    @pytest.mark.parametrize("header", [
        "isAuthed",
        "isAuthed(1)",
        "a.b(c)",
        "f(a, a)",
        "f(a.b)",
        "f(",
    ])
    def test_malformed(self, header):
        with pytest.raises(MalformedFunctionDeclarationError) as exc_info:
            parse_function_header(header)
        assert exc_info.value.declaration == header
        assert header in exc_info.value.message

    def test_expand_functions(self):
        functions = expand_functions({
            "isAuthed(a,b)": "auth !== null",
            "isActive()": "next.active === true",
        })
        assert functions["isAuthed"] == FunctionDef("isAuthed", ("a", "b"), "auth !== null")
        assert functions["isActive"].args == ()
        assert functions["isAuthed"].declaration == "isAuthed(a,b)"

    def test_duplicate_name_warns_with_both_declarations(self, caplog):
        functions = expand_functions({"f()": "true", "f(x)": "x"})
        assert functions["f"].args == ("x",)
        assert any("f() and f(x)" in r.getMessage() for r in caplog.records)

    def test_scalar_body(self):
        functions = expand_functions({"always()": True})
        assert functions["always"].body == "true"

    def test_functions_must_be_mapping(self):
        with pytest.raises(DeclarationError):
            expand_functions(["isAuthed()"])


class TestRefs:

    def test_string_ref(self):
        assert expand_ref("chat", "next") == RefDef("next", 0)

    def test_structured_ref(self):
        assert expand_ref("chat", {"value": "prev", "depth": 2}) == RefDef("prev", 2)

    def test_invalid_ref(self):
        with pytest.raises(DeclarationError):
            expand_ref("chat", 42)

    def test_inherited_deepens(self):
        assert RefDef("next", 0).inherited() == RefDef("next", 1)


class TestGetOptions:

    def test_empty(self):
        options = get_options({})
        assert options.functions == {}
        assert options.refs == {}
        assert options.parent == {}

    def test_strips_declaration_keys(self):
        rules = {
            ".functions": {"f()": "true"},
            ".refs": {"r": "next"},
            ".parent": "ignored",
            ".read": "f()",
        }
        get_options(rules)
        assert list(rules) == [".read"]

    def test_local_declarations(self):
        rules = {".functions": {"f(x)": "x === 1"}, ".refs": {"r": "next"}}
        options = get_options(rules)
        assert options.functions["f"].args == ("x",)
        assert options.refs["r"] == RefDef("next", 0)
        assert options.parent is rules

    def test_inherits_and_deepens_refs(self):
        parent = get_options({".refs": {"r": "next"}, "child": {}})
        options = get_options({}, parent)
        assert options.refs["r"] == RefDef("next", 1)

    def test_raw_mapping_string_refs_start_at_depth_zero(self):
        seed = {".refs": {"s": "next", "d": {"value": "prev", "depth": 1}}}
        options = get_options({}, seed)
        assert options.refs["s"] == RefDef("next", 0)
        assert options.refs["d"] == RefDef("prev", 2)

    def test_local_function_overrides_inherited(self):
        parent = get_options({".functions": {"f()": "a"}, "child": {}})
        options = get_options({".functions": {"f()": "b"}}, parent)
        assert options.functions["f"].body == "b"

    def test_wildcard_injects_prev_ref(self):
        top = {"chats": {"$chat": {".read": "true"}}}
        top_options = get_options(top)
        chats_options = get_options(top["chats"], top_options)
        chat_options = get_options(top["chats"]["$chat"], chats_options)
        assert chat_options.refs["$chat"] == RefDef("prev", 0)

    def test_wildcard_ref_deepens_below(self):
        tree = {"$chat": {"messages": {}}}
        chat = get_options(tree["$chat"], get_options(tree))
        messages = get_options(tree["$chat"]["messages"], chat)
        assert messages.refs["$chat"] == RefDef("prev", 1)

    def test_explicit_ref_beats_wildcard(self):
        tree = {"$chat": {".refs": {"$chat": "next"}}}
        options = get_options(tree["$chat"], get_options(tree))
        assert options.refs["$chat"] == RefDef("next", 0)

    def test_parent_keys_snapshot_before_strip(self):
        rules = {".refs": {}, "$a": {}}
        options = get_options(rules)
        assert options.parent_keys == (".refs", "$a")


class TestCoerceOptions:

    def test_none(self):
        assert coerce_options(None) == Options()

    def test_mapping(self):
        options = coerce_options({".refs": {"chat": {"value": "next", "depth": 0}}})
        assert options.refs["chat"] == RefDef("next", 0)

    def test_rejects_other_types(self):
        with pytest.raises(TypeError):
            coerce_options(42)
