import pytest

from zeki.jsonvalue import JsonParseError, parse, serialize


def test_parse_literals():
    assert parse("null") is None
    assert parse("true") is True
    assert parse("false") is False


def test_parse_integer_and_float():
    assert parse("42") == 42
    assert isinstance(parse("42"), int)
    assert parse("-3.5") == -3.5


def test_parse_nested_structure():
    text = '{"a": [1, 2, {"b": null}], "c": "x"}'
    assert parse(text) == {"a": [1, 2, {"b": None}], "c": "x"}


def test_parse_whitespace_everywhere():
    text = ' \n\t[ 1 ,\r\n 2 ] '
    assert parse(text) == [1, 2]


def test_parse_empty_containers():
    assert parse("[]") == []
    assert parse("{ }") == {}


def test_parse_escapes():
    assert parse(r'"a\nb\t\"q\"\\\/"') == 'a\nb\t"q"\\/'


def test_parse_unicode_escape():
    assert parse(r'"\u00e9\u4e2d"') == "\u00e9\u4e2d"


def test_parse_unknown_escape_keeps_character():
    assert parse(r'"\q"') == "q"


def test_trailing_text_is_ignored():
    assert parse("true garbage") is True
    assert parse("[1] x") == [1]


def test_duplicate_keys_keep_position_take_last_value():
    result = parse('{"k": 1, "j": 2, "k": 3}')
    assert list(result) == ["k", "j"]
    assert result["k"] == 3


def test_incomplete_exponent_uses_leading_part():
    assert parse("1e") == 1
    assert parse("[7e]") == [7]


def test_parse_bytes():
    assert parse(b'{"k": "v"}') == {"k": "v"}


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "[1,",
        "[1 2]",
        '{"a" 1}',
        "{1: 2}",
        '"unterminated',
        "nul",
        "[tru]",
        '"\\u12"',
        '{"a":}',
        "[,]",
    ],
)
def test_malformed_input_raises(text):
    with pytest.raises(JsonParseError):
        parse(text)


def test_parse_error_is_value_error_with_position():
    with pytest.raises(ValueError) as info:
        parse("[1 2]")
    assert info.value.position > 0


def test_serialize_literals():
    assert serialize(None) == "null"
    assert serialize(True) == "true"
    assert serialize(False) == "false"


def test_serialize_whole_float_without_fraction():
    assert serialize(3.0) == "3"


def test_serialize_compact_object():
    assert serialize({"a": [1, 2], "b": "x"}) == '{"a":[1,2],"b":"x"}'


def test_serialize_escapes():
    assert serialize('"\\\n\t\b\f\r') == '"\\"\\\\\\n\\t\\b\\f\\r"'


def test_serialize_control_characters_round_trip():
    text = serialize("\x01\x1f")
    assert "\\u" in text
    assert "\x01" not in text
    assert parse(text) == "\x01\x1f"


def test_serialize_non_ascii_written_raw():
    text = serialize("é")
    assert "é" in text
    assert parse(text) == "é"


@pytest.mark.parametrize(
    "value",
    [
        0.1,
        -2.5e-7,
        1e20,
        123456789,
        -17,
        "plain",
        [],
        {},
        [None, True, False, 1.25, "s"],
        {"outer": {"inner": [1, [2, [3]]]}, "t": "a\"b"},
    ],
)
def test_round_trip(value):
    assert parse(serialize(value)) == value


def test_tuple_serializes_as_array():
    assert parse(serialize((1, "a", None))) == [1, "a", None]


def test_serialize_rejects_non_string_keys():
    with pytest.raises(TypeError):
        serialize({1: 2})


def test_serialize_rejects_unknown_types():
    with pytest.raises(TypeError):
        serialize(object())


def test_serialize_is_stable_after_reparse():
    text = '{"z":[1,2.5,"x"],"a":{"b":null}}'
    once = serialize(parse(text))
    assert serialize(parse(once)) == once
    assert once == text