from __future__ import annotations

import pytest

from fastdb import document
from fastdb.document import Array, Boolean, Null, Number, Object, String


@pytest.mark.parametrize(
    ("text", "expected"),
    (
        pytest.param('"hi"', String("hi"), id="string"),
        pytest.param("  \t\r\n42", Number(42.0), id="leading_whitespace"),
        pytest.param("-3.5", Number(-3.5), id="negative_float"),
        pytest.param("true", Boolean(True), id="true"),
        pytest.param("false", Boolean(False), id="false"),
        pytest.param("null", Null(), id="null"),
        pytest.param("", Null(), id="empty"),
        pytest.param("+1", Null(), id="leading_plus"),
        pytest.param("tru", Null(), id="truncated_literal"),
        pytest.param("-", Null(), id="bare_minus"),
        pytest.param("1.2.3", Null(), id="two_dots"),
    ),
)
def test_parse_scalars(text, expected):
    assert document.parse(text) == expected


def test_parse_nested_structure():
    value = document.parse('{ "a" : [1, "two", {"b": null}], "c": {"d": true} }')
    assert value == Object(
        {
            "a": Array([Number(1.0), String("two"), Object({"b": Null()})]),
            "c": Object({"d": Boolean(True)}),
        }
    )


def test_parse_duplicate_keys_last_wins():
    assert document.parse('{"k":"first","k":"second"}') == Object({"k": String("second")})


def test_parse_string_escapes():
    value = document.parse(r'"q\" b\\ s\/ \b\f\n\r\t"')
    assert value == String('q" b\\ s/ \b\f\n\r\t')


def test_parse_unknown_escape_copied_literally():
    # No unicode escape decoding: the backslash is dropped, the rest kept as text.
    assert document.parse('"' + "\\" + 'u0041x"') == String("u0041x")
    assert document.parse(r'"\q"') == String("q")


@pytest.mark.parametrize(
    ("text", "expected"),
    (
        pytest.param('{"a":1,"b"', Object({"a": Number(1.0)}), id="missing_colon"),
        pytest.param('{"a":1 "b":2}', Object({"a": Number(1.0)}), id="missing_comma"),
        pytest.param('{"a":"x",}', Object({"a": String("x")}), id="trailing_comma"),
        pytest.param("{", Object(), id="unterminated_object"),
        pytest.param("[1,2", Array([Number(1.0), Number(2.0)]), id="unterminated_array"),
        pytest.param("[1 2]", Array([Number(1.0)]), id="array_missing_comma"),
        pytest.param('"abc', String("abc"), id="unterminated_string"),
    ),
)
def test_parse_malformed_degrades(text, expected):
    assert document.parse(text) == expected


def test_parse_deep_nesting_does_not_raise():
    assert document.parse("[" * 100_000) == Null()


@pytest.mark.parametrize(
    ("value", "expected"),
    (
        pytest.param(String('a"b\\c\n'), '"a\\"b\\\\c\\n"', id="string_escapes"),
        pytest.param(String("é\x01"), '"é\x01"', id="passthrough"),
        pytest.param(Number(30.0), "30", id="integral_number"),
        pytest.param(Number(2.5), "2.5", id="fractional_number"),
        pytest.param(Number(1e-7), "0.0000001", id="small_number"),
        pytest.param(Number(-0.000123), "-0.000123", id="small_negative_number"),
        pytest.param(Number(1e20), "100000000000000000000", id="large_number"),
        pytest.param(Number(1.5e16), "15000000000000000", id="large_integral_number"),
        pytest.param(Number(123456789012345678901.0), "123456789012345680000", id="beyond_double_precision"),
        pytest.param(Number(0.1), "0.1", id="shortest_fraction"),
        pytest.param(Number(float("inf")), "null", id="infinite_number"),
        pytest.param(Boolean(False), "false", id="boolean"),
        pytest.param(Null(), "null", id="null"),
        pytest.param(Array([Number(1.0), Null()]), "[1,null]", id="array"),
        pytest.param(Object({"a": Object({"b": String("c")})}), '{"a":{"b":"c"}}', id="object"),
    ),
)
def test_stringify(value, expected):
    assert document.stringify(value) == expected


def test_stringify_then_parse_preserves_tree():
    tree = Object({"user": Object({"name": String("Ann"), "tags": Array([String("x"), Boolean(True)])})})
    assert document.parse(document.stringify(tree)) == tree


@pytest.mark.parametrize(
    "number",
    (
        pytest.param(1e-7, id="small"),
        pytest.param(1e20, id="large"),
        pytest.param(123456789012345678901.0, id="beyond_double_precision"),
        pytest.param(-2.5e-12, id="small_negative"),
        pytest.param(0.1, id="fraction"),
    ),
)
def test_number_leaves_read_back_with_their_siblings(number):
    tree = Object({"a": Object({"n": Number(number), "x": String("1")}), "b": String("2")})
    text = document.stringify(tree)
    assert "e" not in text
    assert document.parse(text) == tree
    assert document.stringify(document.parse(text)) == text


def test_from_python_and_to_python():
    native = {"a": [1, "b", None, True], "c": {"d": 2.5}}
    value = document.from_python(native)
    assert isinstance(value, Object)
    assert value.members["a"] == Array([Number(1.0), String("b"), Null(), Boolean(True)])
    assert value.to_python() == {"a": [1.0, "b", None, True], "c": {"d": 2.5}}


def test_from_python_rejects_unknown_types():
    with pytest.raises(TypeError):
        document.from_python(object())
