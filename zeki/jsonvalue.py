"""A small JSON reader and writer working on plain Python values.

Parsed documents become ``None``, ``bool``, ``int``, ``float``, ``str``,
``list`` and ``dict``. The reader is lenient in the same places throughout:
text after the first complete value is ignored, unknown escapes stand for the
escaped character, and duplicate object keys keep their first position and
take the last value.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence

__all__ = ["JsonParseError", "parse", "serialize"]

_WHITESPACE = " \t\n\v\f\r"
_DIGITS = "0123456789"
_HEX_PREFIX = re.compile(r"[0-9a-fA-F]*")

_SIMPLE_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_ESCAPE_TABLE = {code: f"\\u{code:04x}" for code in range(0x20)}
_ESCAPE_TABLE.update(
    {
        ord('"'): '\\"',
        ord("\\"): "\\\\",
        ord("\b"): "\\b",
        ord("\f"): "\\f",
        ord("\n"): "\\n",
        ord("\r"): "\\r",
        ord("\t"): "\\t",
    }
)

_LITERALS = (("true", True), ("false", False), ("null", None))


class JsonParseError(ValueError):
    """Raised when text does not start with a well-formed JSON value."""

    def __init__(self, message, position):
        super().__init__(f"{message} at position {position}")
        self.position = position


class _Parser:
    def __init__(self, text):
        self.text = text
        self.pos = 0

    def _peek(self):
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _fail(self, message):
        raise JsonParseError(message, self.pos)

    def skip_ws(self):
        while self.pos < len(self.text) and self.text[self.pos] in _WHITESPACE:
            self.pos += 1

    def value(self):
        self.skip_ws()
        c = self._peek()
        if not c:
            self._fail("unexpected end of input")
        if c == '"':
            return self.string()
        if c == "{":
            return self.object()
        if c == "[":
            return self.array()
        if c == "-" or c in _DIGITS:
            return self.number()
        for word, result in _LITERALS:
            if self.text.startswith(word, self.pos):
                self.pos += len(word)
                return result
        self._fail(f"unexpected character {c!r}")

    def string(self):
        if self._peek() != '"':
            self._fail("expected a string")
        self.pos += 1
        text = self.text
        chars = []
        while self.pos < len(text):
            c = text[self.pos]
            if c == '"':
                self.pos += 1
                return "".join(chars)
            if c == "\\":
                self.pos += 1
                if self.pos >= len(text):
                    self._fail("unterminated escape")
                esc = text[self.pos]
                if esc == "u":
                    if self.pos + 4 >= len(text):
                        self._fail("truncated unicode escape")
                    digits = _HEX_PREFIX.match(text, self.pos + 1, self.pos + 5).group()
                    chars.append(chr(int(digits, 16) if digits else 0))
                    self.pos += 4
                else:
                    chars.append(_SIMPLE_ESCAPES.get(esc, esc))
            else:
                chars.append(c)
            self.pos += 1
        self._fail("unterminated string")

    def number(self):
        text = self.text
        start = self.pos
        if self._peek() == "-":
            self.pos += 1
        self._digits()
        if self._peek() == ".":
            self.pos += 1
            self._digits()
        exp_start = self.pos
        if self._peek() in ("e", "E") and self._peek():
            self.pos += 1
            if self._peek() in ("+", "-") and self._peek():
                self.pos += 1
            self._digits()
        return _to_number(text[start:exp_start], text[exp_start:self.pos])

    def _digits(self):
        while self.pos < len(self.text) and self.text[self.pos] in _DIGITS:
            self.pos += 1

    def array(self):
        self.pos += 1
        items = []
        self.skip_ws()
        if self._peek() == "]":
            self.pos += 1
            return items
        while True:
            items.append(self.value())
            self.skip_ws()
            c = self._peek()
            if c == "]":
                self.pos += 1
                return items
            if c != ",":
                self._fail("expected ',' or ']'")
            self.pos += 1

    def object(self):
        self.pos += 1
        members = {}
        self.skip_ws()
        if self._peek() == "}":
            self.pos += 1
            return members
        while True:
            self.skip_ws()
            key = self.string()
            self.skip_ws()
            if self._peek() != ":":
                self._fail("expected ':'")
            self.pos += 1
            members[key] = self.value()
            self.skip_ws()
            c = self._peek()
            if c == "}":
                self.pos += 1
                return members
            if c != ",":
                self._fail("expected ',' or '}'")
            self.pos += 1


def _to_number(mantissa, exponent):
    """Convert a scanned number, keeping the longest valid leading part."""
    if not any(ch in _DIGITS for ch in mantissa):
        return 0.0
    has_exponent = any(ch in _DIGITS for ch in exponent)
    if "." not in mantissa and not has_exponent:
        return int(mantissa)
    return float(mantissa + (exponent if has_exponent else ""))


def parse(text):
    """Parse the first JSON value in ``text``; anything after it is ignored."""
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("utf-8")
    if not isinstance(text, str):
        raise TypeError("parse expects str or bytes")
    return _Parser(text).value()


def _number(value):
    if isinstance(value, int):
        return str(value)
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return "%.17g" % value


def _write(value, parts):
    if value is None:
        parts.append("null")
    elif isinstance(value, bool):
        parts.append("true" if value else "false")
    elif isinstance(value, (int, float)):
        parts.append(_number(value))
    elif isinstance(value, str):
        parts.append('"' + value.translate(_ESCAPE_TABLE) + '"')
    elif isinstance(value, Mapping):
        parts.append("{")
        for index, (key, item) in enumerate(value.items()):
            if not isinstance(key, str):
                raise TypeError(f"object keys must be strings, not {type(key).__name__}")
            if index:
                parts.append(",")
            parts.append('"' + key.translate(_ESCAPE_TABLE) + '":')
            _write(item, parts)
        parts.append("}")
    elif isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        parts.append("[")
        for index, item in enumerate(value):
            if index:
                parts.append(",")
            _write(item, parts)
        parts.append("]")
    else:
        raise TypeError(f"cannot serialize {type(value).__name__}")


def serialize(value):
    """Return compact JSON text for ``value``.

    Whole floats below 1e15 in magnitude are written without a fraction;
    other floats use 17 significant digits.
    """
    parts = []
    _write(value, parts)
    return "".join(parts)