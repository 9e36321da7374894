"""
Serializes a JsonValue tree to compact JSON text.

The whole document is written into a single growable byte buffer obtained
from the configured allocator. String bytes are validated as UTF-8 on the way
out; anything malformed is replaced so the result is always valid text.
"""

import math
import re

from ._config import EncodeConfig
from ._container import Container
from ._errors import AllocationError
from ._errors import ErrorKind
from ._errors import JSONEncodeError
from ._profile import ProfileContext
from ._value import JsonArray
from ._value import JsonBoolean
from ._value import JsonNull
from ._value import JsonNumber
from ._value import JsonObject
from ._value import JsonString
from ._value import JsonValue

# Printable ASCII except '"', '/' and '\', plus DEL
_SAFE_RUN = re.compile(rb'[\x20\x21\x23-\x2e\x30-\x5b\x5d-\x7f]+')

_ESCAPES = {
    0x22: b'\\"',
    0x5C: b"\\\\",
    0x2F: b"\\/",
    0x08: b"\\b",
    0x0C: b"\\f",
    0x0A: b"\\n",
    0x0D: b"\\r",
    0x09: b"\\t",
}

_REPLACEMENT = b"\\ufffd"


def _is_continuation(byte: int) -> bool:
    return byte & 0xC0 == 0x80


def utf8_sequence_length(data: bytes, pos: int) -> int:
    """
    Length of the well-formed UTF-8 sequence starting at ``pos``, or 0.

    Follows the well-formed byte sequence table: overlong forms, surrogate
    code points and values above U+10FFFF are rejected.
    """
    lead = data[pos]
    if 0xC2 <= lead <= 0xDF:
        size, low, high = 2, 0x80, 0xBF
    elif lead == 0xE0:
        size, low, high = 3, 0xA0, 0xBF
    elif 0xE1 <= lead <= 0xEC or 0xEE <= lead <= 0xEF:
        size, low, high = 3, 0x80, 0xBF
    elif lead == 0xED:
        size, low, high = 3, 0x80, 0x9F
    elif lead == 0xF0:
        size, low, high = 4, 0x90, 0xBF
    elif 0xF1 <= lead <= 0xF3:
        size, low, high = 4, 0x80, 0xBF
    elif lead == 0xF4:
        size, low, high = 4, 0x80, 0x8F
    else:
        return 0

    if pos + size > len(data):
        return 0
    if not low <= data[pos + 1] <= high:
        return 0
    for offset in range(2, size):
        if not _is_continuation(data[pos + offset]):
            return 0
    return size


def escape_string(data: bytes) -> bytes:
    """Renders ``data`` as a quoted JSON string literal."""
    out = bytearray(b'"')
    pos = 0
    length = len(data)

    while pos < length:
        run = _SAFE_RUN.match(data, pos)
        if run is not None:
            out += data[pos : run.end()]
            pos = run.end()
            continue

        byte = data[pos]
        escape = _ESCAPES.get(byte)
        if escape is not None:
            out += escape
            pos += 1
        elif byte < 0x20:
            out += b"\\u%04x" % byte
            pos += 1
        else:
            size = utf8_sequence_length(data, pos)
            if size:
                out += data[pos : pos + size]
                pos += size
            else:
                out += _REPLACEMENT
                pos += 1

    out += b'"'
    return bytes(out)


def format_number(number: float) -> str:
    """
    Formats a double so that parsing the text yields the same double.

    Uses the shortest round-tripping representation; integral values drop
    the trailing ``.0``.
    """
    if math.isnan(number) or math.isinf(number):
        msg = "Out of range float values are not JSON compliant"
        raise ValueError(msg)
    text = repr(number)
    if text.endswith(".0"):
        text = text[:-2]
    return text


class JsonEncoder:
    """
    Recursive serializer writing into one output buffer.

    Depth of recursion matches the depth of the tree and is bounded by the
    configured maximum.
    """

    def __init__(self, config: EncodeConfig) -> None:
        self.config = config
        self.out = Container(
            config.resolved_allocator(), config.policy, raw=True
        )

    def encode(self, value: JsonValue) -> str:
        """Encodes ``value``; the output buffer is released either way."""
        try:
            self._encode_value(value, 0)
            return self.out.tobytes().decode("utf-8")
        except AllocationError as e:
            raise JSONEncodeError(
                "Memory allocation failed", ErrorKind.MEMORY
            ) from e
        finally:
            self.out.release()

    def _encode_value(self, value: JsonValue, depth: int) -> None:
        if isinstance(value, JsonNull):
            self.out.extend(b"null")
        elif isinstance(value, JsonBoolean):
            self.out.extend(b"true" if value.get() else b"false")
        elif isinstance(value, JsonNumber):
            self.out.extend(format_number(value.get()).encode("ascii"))
        elif isinstance(value, JsonString):
            with ProfileContext("encode_string", len(value)):
                self.out.extend(escape_string(value.get()))
        elif isinstance(value, JsonArray):
            self._encode_array(value, depth + 1)
        elif isinstance(value, JsonObject):
            self._encode_object(value, depth + 1)
        else:
            msg = f"Object of type {type(value).__name__} is not a JsonValue"
            raise TypeError(msg)

    def _check_depth(self, depth: int) -> None:
        if depth > self.config.max_depth:
            raise JSONEncodeError(
                f"Maximum nesting depth of {self.config.max_depth} exceeded",
                ErrorKind.DEPTH,
            )

    def _encode_array(self, array: JsonArray, depth: int) -> None:
        self._check_depth(depth)
        self.out.append(0x5B)
        for index, item in enumerate(array):
            if index:
                self.out.append(0x2C)
            self._encode_value(item, depth)
        self.out.append(0x5D)

    def _encode_object(self, obj: JsonObject, depth: int) -> None:
        self._check_depth(depth)
        self.out.append(0x7B)
        for index, (key, item) in enumerate(obj):
            if index:
                self.out.append(0x2C)
            self.out.extend(escape_string(key))
            self.out.append(0x3A)
            self._encode_value(item, depth)
        self.out.append(0x7D)


def encode(value: JsonValue, config: EncodeConfig | None = None) -> str:
    """
    Serializes a value tree to compact JSON text.

    Raises JSONEncodeError when the output buffer cannot grow or the tree is
    nested deeper than allowed, and ValueError for NaN or infinite numbers.
    """
    if not isinstance(value, JsonValue):
        msg = f"Object of type {type(value).__name__} is not a JsonValue"
        raise TypeError(msg)
    if config is None:
        config = EncodeConfig()
    with ProfileContext("encode"):
        return JsonEncoder(config).encode(value)


__all__ = [
    "JsonEncoder",
    "encode",
    "escape_string",
    "format_number",
    "utf8_sequence_length",
]
