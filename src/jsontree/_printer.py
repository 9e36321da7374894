"""Indented rendering of a value tree, written straight to a text stream."""

import sys
from typing import IO

from ._config import DEFAULT_MAX_DEPTH
from ._encoder import escape_string
from ._encoder import format_number
from ._errors import ErrorKind
from ._errors import JSONEncodeError
from ._value import JsonArray
from ._value import JsonBoolean
from ._value import JsonNull
from ._value import JsonNumber
from ._value import JsonObject
from ._value import JsonString
from ._value import JsonValue


def _check_level(level: int, max_depth: int) -> None:
    if level + 1 > max_depth:
        raise JSONEncodeError(
            f"Maximum nesting depth of {max_depth} exceeded", ErrorKind.DEPTH
        )


def _print_value(
    value: JsonValue, fp: IO[str], indent: int, level: int, max_depth: int
) -> None:
    if isinstance(value, JsonNull):
        fp.write("null")
    elif isinstance(value, JsonBoolean):
        fp.write("true" if value.get() else "false")
    elif isinstance(value, JsonNumber):
        fp.write(format_number(value.get()))
    elif isinstance(value, JsonString):
        fp.write(escape_string(value.get()).decode("utf-8"))
    elif isinstance(value, JsonArray):
        _check_level(level, max_depth)
        if not len(value):
            fp.write("[]")
            return
        inner = " " * (indent * (level + 1))
        fp.write("[\n")
        for index, item in enumerate(value):
            if index:
                fp.write(",\n")
            fp.write(inner)
            _print_value(item, fp, indent, level + 1, max_depth)
        fp.write("\n" + " " * (indent * level) + "]")
    elif isinstance(value, JsonObject):
        _check_level(level, max_depth)
        if not len(value):
            fp.write("{}")
            return
        inner = " " * (indent * (level + 1))
        fp.write("{\n")
        for index, (key, item) in enumerate(value):
            if index:
                fp.write(",\n")
            fp.write(inner)
            fp.write(escape_string(key).decode("utf-8"))
            fp.write(": ")
            _print_value(item, fp, indent, level + 1, max_depth)
        fp.write("\n" + " " * (indent * level) + "}")
    else:
        msg = f"Object of type {type(value).__name__} is not a JsonValue"
        raise TypeError(msg)


def print_value(
    value: JsonValue,
    fp: IO[str] | None = None,
    *,
    indent: int = 2,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> None:
    """
    Writes an indented rendering of ``value`` to ``fp`` (default stdout).

    Nothing is buffered; output goes to the stream as the tree is walked, so
    a tree nested deeper than ``max_depth`` raises JSONEncodeError after
    part of it has been written.
    """
    if not isinstance(indent, int) or indent < 0:
        raise ValueError("indent must be a non-negative integer")
    if not isinstance(max_depth, int) or max_depth < 1:
        raise ValueError("max_depth must be a positive integer")
    if fp is None:
        fp = sys.stdout
    if not hasattr(fp, "write"):
        raise TypeError("fp must have a write() method")
    _print_value(value, fp, indent, 0, max_depth)


def println(value: JsonValue, fp: IO[str] | None = None) -> None:
    """print_value() followed by a newline."""
    if fp is None:
        fp = sys.stdout
    print_value(value, fp)
    fp.write("\n")


__all__ = ["print_value", "println"]
