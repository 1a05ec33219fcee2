from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

logger = logging.getLogger(__name__)

_WHITESPACE = frozenset(" \t\r\n")
_DIGITS = frozenset("0123456789")

_UNESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


class DocumentValue:
    """
    A node in the JSON-subset document tree.

    Objects and arrays own their children outright; nodes are never shared
    between two parents.
    """

    def to_python(self) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class String(DocumentValue):
    text: str

    def to_python(self) -> str:
        return self.text


@dataclass(frozen=True)
class Number(DocumentValue):
    value: float

    def to_python(self) -> float:
        return self.value


@dataclass(frozen=True)
class Boolean(DocumentValue):
    value: bool

    def to_python(self) -> bool:
        return self.value


@dataclass(frozen=True)
class Null(DocumentValue):
    def to_python(self) -> None:
        return None


@dataclass
class Object(DocumentValue):
    members: dict[str, DocumentValue] = field(default_factory=dict)

    def to_python(self) -> dict[str, Any]:
        return {k: v.to_python() for k, v in self.members.items()}


@dataclass
class Array(DocumentValue):
    items: list[DocumentValue] = field(default_factory=list)

    def to_python(self) -> list[Any]:
        return [v.to_python() for v in self.items]


def format_number(value: float) -> str:
    """
    Positional decimal text for a number, never an exponent.

    Integral values drop the fractional part. Other values keep the shortest
    digits that read back to the same float.

    Non-finite values have no JSON spelling and render as ``null``.
    """
    if not math.isfinite(value):
        return "null"
    if float(value).is_integer() and abs(value) < 1e16:
        return str(int(value))
    return format(Decimal(repr(float(value))), "f")


def from_python(obj: Any) -> DocumentValue:
    if isinstance(obj, DocumentValue):
        return obj
    if obj is None:
        return Null()
    if isinstance(obj, bool):
        return Boolean(obj)
    if isinstance(obj, (int, float)):
        return Number(float(obj))
    if isinstance(obj, str):
        return String(obj)
    if isinstance(obj, Mapping):
        return Object({str(k): from_python(v) for k, v in obj.items()})
    if isinstance(obj, (list, tuple)):
        return Array([from_python(v) for v in obj])
    raise TypeError(f"Object of type {type(obj).__name__} cannot be stored in a document")


class _Parser:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def _at_end(self) -> bool:
        return self.pos >= len(self.text)

    def _peek(self) -> str:
        return self.text[self.pos]

    def skip_whitespace(self) -> None:
        while not self._at_end() and self._peek() in _WHITESPACE:
            self.pos += 1

    def value(self) -> DocumentValue:
        self.skip_whitespace()
        if self._at_end():
            return Null()

        c = self._peek()
        if c == "{":
            return self.object()
        if c == "[":
            return self.array()
        if c == '"':
            return String(self.string())
        if self.text.startswith("true", self.pos):
            self.pos += 4
            return Boolean(True)
        if self.text.startswith("false", self.pos):
            self.pos += 5
            return Boolean(False)
        if self.text.startswith("null", self.pos):
            self.pos += 4
            return Null()
        if c == "-" or c in _DIGITS:
            return self.number()
        return Null()

    def object(self) -> Object:
        obj = Object()
        self.pos += 1  # '{'

        self.skip_whitespace()
        if not self._at_end() and self._peek() == "}":
            self.pos += 1
            return obj

        while not self._at_end():
            self.skip_whitespace()
            if self._at_end() or self._peek() != '"':
                break
            key = self.string()
            self.skip_whitespace()
            if self._at_end() or self._peek() != ":":
                break
            self.pos += 1
            obj.members[key] = self.value()

            self.skip_whitespace()
            if self._at_end():
                break
            c = self._peek()
            if c == "}":
                self.pos += 1
                break
            if c != ",":
                break
            self.pos += 1
        return obj

    def array(self) -> Array:
        arr = Array()
        self.pos += 1  # '['

        self.skip_whitespace()
        if not self._at_end() and self._peek() == "]":
            self.pos += 1
            return arr

        while not self._at_end():
            arr.items.append(self.value())

            self.skip_whitespace()
            if self._at_end():
                break
            c = self._peek()
            if c == "]":
                self.pos += 1
                break
            if c != ",":
                break
            self.pos += 1
        return arr

    def string(self) -> str:
        self.pos += 1  # opening quote
        out: list[str] = []
        text = self.text
        while self.pos < len(text) and text[self.pos] != '"':
            c = text[self.pos]
            if c == "\\" and self.pos + 1 < len(text):
                self.pos += 1
                escaped = text[self.pos]
                out.append(_UNESCAPES.get(escaped, escaped))
            else:
                out.append(c)
            self.pos += 1
        if self.pos < len(text):
            self.pos += 1  # closing quote
        return "".join(out)

    def number(self) -> DocumentValue:
        start = self.pos
        if self._peek() == "-":
            self.pos += 1
        while not self._at_end() and (self._peek() in _DIGITS or self._peek() == "."):
            self.pos += 1
        try:
            return Number(float(self.text[start : self.pos]))
        except ValueError:
            # "-" on its own, "1.2.3" and the like.
            return Null()


def parse(text: str) -> DocumentValue:
    """
    Parse JSON-subset text into a document tree.

    Never raises: malformed input yields Null or a truncated object/array
    holding whatever parsed cleanly before the fault.
    """
    try:
        return _Parser(text).value()
    except RecursionError:
        logger.warning("PARSE: document nested too deeply, treating as null")
        return Null()


def _escape(text: str) -> str:
    return "".join(_ESCAPES.get(c, c) for c in text)


def stringify(value: DocumentValue) -> str:
    if isinstance(value, String):
        return f'"{_escape(value.text)}"'
    if isinstance(value, Number):
        return format_number(value.value)
    if isinstance(value, Boolean):
        return "true" if value.value else "false"
    if isinstance(value, Object):
        body = ",".join(f'"{_escape(k)}":{stringify(v)}' for k, v in value.members.items())
        return "{" + body + "}"
    if isinstance(value, Array):
        return "[" + ",".join(stringify(v) for v in value.items) + "]"
    return "null"
