"""
Recursive descent decoder turning JSON text into a JsonValue tree.

The parser walks a UTF-8 byte buffer with an explicit cursor bounded by the
buffer length. Each parse routine either returns a fully built value or frees
whatever it allocated and raises, so a failed decode never leaks a partial
tree.
"""

import math
import re

from ._config import DecodeConfig
from ._container import Container
from ._errors import AllocationError
from ._errors import ErrorKind
from ._errors import JSONDecodeError
from ._errors import Position
from ._profile import ProfileContext
from ._utf8_mapper import UTF8PositionMapper
from ._value import JsonArray
from ._value import JsonBoolean
from ._value import JsonNull
from ._value import JsonNumber
from ._value import JsonObject
from ._value import JsonString
from ._value import JsonValue

_WHITESPACE = re.compile(rb"[ \t\n\r]*")
_DIGITS = re.compile(rb"[0-9]*")
# Bytes copied verbatim: anything but the quote, backslash and C0 controls
_STRING_RUN = re.compile(rb'[^"\\\x00-\x1f]+')
_HEX4 = re.compile(rb"[0-9A-Fa-f]{4}")
_HEX_PREFIX = re.compile(rb"[0-9A-Fa-f]*")

_UTF8_BOM = b"\xef\xbb\xbf"

_QUOTE = 0x22
_BACKSLASH = 0x5C
_COMMA = 0x2C
_COLON = 0x3A
_MINUS = 0x2D
_PLUS = 0x2B
_DOT = 0x2E
_ZERO = 0x30
_ONE = 0x31
_NINE = 0x39
_OPEN_BRACKET = 0x5B
_CLOSE_BRACKET = 0x5D
_OPEN_BRACE = 0x7B
_CLOSE_BRACE = 0x7D
_LOWER_E = 0x65
_UPPER_E = 0x45
_LOWER_U = 0x75

_SIMPLE_ESCAPES = {
    ord('"'): ord('"'),
    ord("\\"): ord("\\"),
    ord("/"): ord("/"),
    ord("b"): ord("\b"),
    ord("f"): ord("\f"),
    ord("n"): ord("\n"),
    ord("r"): ord("\r"),
    ord("t"): ord("\t"),
}

_HIGH_SURROGATES = range(0xD800, 0xDC00)
_LOW_SURROGATES = range(0xDC00, 0xE000)


def encode_utf8(code_point: int) -> bytes:
    """Encodes a Unicode scalar value as 1-4 UTF-8 bytes."""
    if code_point < 0x80:
        return bytes((code_point,))
    if code_point < 0x800:
        return bytes((0xC0 | (code_point >> 6), 0x80 | (code_point & 0x3F)))
    if code_point < 0x10000:
        return bytes(
            (
                0xE0 | (code_point >> 12),
                0x80 | ((code_point >> 6) & 0x3F),
                0x80 | (code_point & 0x3F),
            )
        )
    return bytes(
        (
            0xF0 | (code_point >> 18),
            0x80 | ((code_point >> 12) & 0x3F),
            0x80 | ((code_point >> 6) & 0x3F),
            0x80 | (code_point & 0x3F),
        )
    )


def _is_digit(byte: int) -> bool:
    return _ZERO <= byte <= _NINE


class JsonParser:
    """
    Recursive descent parser over a finite byte buffer.

    ``pos`` never passes ``length``; no terminating sentinel is assumed.
    Values are created through the allocator and growth policies of the
    given DecodeConfig.
    """

    def __init__(
        self,
        data: bytes,
        config: DecodeConfig,
        doc: str | bytes | None = None,
    ) -> None:
        self.data = data
        self.length = len(data)
        self.pos: Position = 0
        self.depth = 0
        self.config = config
        self.doc = doc if doc is not None else data
        self.allocator = config.resolved_allocator()
        self._mapper: UTF8PositionMapper | None = None

    def error(
        self,
        msg: str,
        pos: Position | None = None,
        kind: ErrorKind | None = None,
    ) -> JSONDecodeError:
        """
        Builds a decode error at ``pos`` (default: the cursor).

        Without an explicit kind, running off the end of the input is EOF and
        anything else is SYNTAX.
        """
        if pos is None:
            pos = self.pos
        if kind is None:
            kind = ErrorKind.EOF if pos >= self.length else ErrorKind.SYNTAX
        if isinstance(self.doc, str):
            if self._mapper is None:
                self._mapper = UTF8PositionMapper(self.doc)
            pos = self._mapper.byte_to_char(pos)
        return JSONDecodeError(msg, self.doc, pos, kind)

    def skip_whitespace(self) -> None:
        """Skips whitespace characters according to JSON spec."""
        match = _WHITESPACE.match(self.data, self.pos)
        if match is not None:
            self.pos = match.end()

    def _peek_is(self, byte: int) -> bool:
        return self.pos < self.length and self.data[self.pos] == byte

    def parse_document(self) -> JsonValue:
        """Parses exactly one value surrounded by optional whitespace."""
        if self.data.startswith(_UTF8_BOM):
            raise self.error(
                "JSON input should not contain BOM (Byte Order Mark)",
                0,
                ErrorKind.SYNTAX,
            )

        self.skip_whitespace()
        value = self.parse_value()

        self.skip_whitespace()
        if self.pos < self.length:
            value.free()
            raise self.error("Extra data", kind=ErrorKind.SYNTAX)
        return value

    def parse_value(self) -> JsonValue:
        """Parses any JSON value based on the byte under the cursor."""
        if self.pos >= self.length:
            raise self.error("Expecting value")

        data = self.data
        byte = data[self.pos]

        if byte == _QUOTE:
            return JsonString._from_buffer(self.parse_string())
        elif byte == _OPEN_BRACKET:
            return self.parse_array()
        elif byte == _OPEN_BRACE:
            return self.parse_object()
        elif byte == _MINUS or _is_digit(byte):
            return self.parse_number()
        elif data.startswith(b"true", self.pos):
            self.pos += 4
            return JsonBoolean(True)
        elif data.startswith(b"false", self.pos):
            self.pos += 5
            return JsonBoolean(False)
        elif data.startswith(b"null", self.pos):
            self.pos += 4
            return JsonNull()

        raise self.error("Expecting value")

    def parse_string(self) -> Container:
        """
        Decodes the string starting at the cursor into a raw buffer.

        The caller owns the returned buffer.
        """
        with ProfileContext("parse_string"):
            data = self.data
            start = self.pos
            pos = start + 1
            buffer = Container(
                self.allocator, self.config.string_policy, raw=True
            )

            try:
                while True:
                    run = _STRING_RUN.match(data, pos)
                    if run is not None:
                        buffer.extend(data[pos : run.end()])
                        pos = run.end()

                    if pos >= self.length:
                        raise self.error(
                            "Unterminated string starting at",
                            start,
                            ErrorKind.EOF,
                        )

                    byte = data[pos]
                    if byte == _QUOTE:
                        self.pos = pos + 1
                        return buffer
                    elif byte == _BACKSLASH:
                        pos = self._parse_escape(buffer, pos, start)
                    else:
                        raise self.error(
                            "Invalid control character at",
                            pos,
                            ErrorKind.SYNTAX,
                        )
            except Exception:
                buffer.release()
                raise

    def _parse_escape(self, buffer: Container, pos: Position, start: Position) -> Position:
        """Decodes the escape at ``pos`` into ``buffer``; returns the next position."""
        data = self.data
        if pos + 1 >= self.length:
            raise self.error("Unterminated string starting at", start, ErrorKind.EOF)

        code = data[pos + 1]
        simple = _SIMPLE_ESCAPES.get(code)
        if simple is not None:
            buffer.append(simple)
            return pos + 2
        if code != _LOWER_U:
            raise self.error(
                f"Invalid \\escape: {chr(code)!r}", pos, ErrorKind.SYNTAX
            )

        code_point = self._read_hex4(pos, start)
        escape_start = pos
        pos += 6

        if code_point in _HIGH_SURROGATES:
            if not data.startswith(b"\\u", pos):
                if pos >= self.length or data[pos:] == b"\\":
                    raise self.error(
                        "Unterminated string starting at", start, ErrorKind.EOF
                    )
                raise self.error(
                    "Unpaired high surrogate", escape_start, ErrorKind.SYNTAX
                )
            low = self._read_hex4(pos, start)
            if low not in _LOW_SURROGATES:
                raise self.error(
                    "Invalid low surrogate", pos, ErrorKind.SYNTAX
                )
            code_point = 0x10000 + ((code_point - 0xD800) << 10) + (low - 0xDC00)
            pos += 6
        elif code_point in _LOW_SURROGATES:
            raise self.error(
                "Unpaired low surrogate", escape_start, ErrorKind.SYNTAX
            )

        buffer.extend(encode_utf8(code_point))
        return pos

    def _read_hex4(self, pos: Position, start: Position) -> int:
        """Reads the four hex digits of the \\u escape whose backslash is at ``pos``."""
        digits_at = pos + 2
        match = _HEX4.match(self.data, digits_at)
        if match is not None:
            return int(match.group(), 16)

        tail = self.data[digits_at : digits_at + 4]
        if len(tail) < 4 and _HEX_PREFIX.fullmatch(tail):
            raise self.error("Unterminated string starting at", start, ErrorKind.EOF)
        raise self.error("Invalid \\uXXXX escape", pos, ErrorKind.SYNTAX)

    def _skip_digits(self) -> None:
        match = _DIGITS.match(self.data, self.pos)
        if match is not None:
            self.pos = match.end()

    def _scan_integer_part(self, start: Position) -> None:
        """Scans the integer part of a JSON number."""
        if self._peek_is(_ZERO):
            self.pos += 1
            if self.pos < self.length and _is_digit(self.data[self.pos]):
                raise self.error(
                    "Leading zeros not allowed", start, ErrorKind.INVALID_NUMBER
                )
        elif self.pos < self.length and _ONE <= self.data[self.pos] <= _NINE:
            self._skip_digits()
        else:
            raise self.error("Invalid number", start, ErrorKind.INVALID_NUMBER)

    def _scan_decimal_part(self, start: Position) -> None:
        """Scans the decimal part of a JSON number if present."""
        if self._peek_is(_DOT):
            self.pos += 1
            if not (self.pos < self.length and _is_digit(self.data[self.pos])):
                raise self.error(
                    "Invalid decimal number", start, ErrorKind.INVALID_NUMBER
                )
            self._skip_digits()

    def _scan_exponent_part(self, start: Position) -> None:
        """Scans the exponent part of a JSON number if present."""
        if self._peek_is(_LOWER_E) or self._peek_is(_UPPER_E):
            self.pos += 1
            if self._peek_is(_PLUS) or self._peek_is(_MINUS):
                self.pos += 1
            if not (self.pos < self.length and _is_digit(self.data[self.pos])):
                raise self.error(
                    "Invalid exponent", start, ErrorKind.INVALID_NUMBER
                )
            self._skip_digits()

    def parse_number(self) -> JsonNumber:
        """Scans a strict JSON number and converts it to a double."""
        with ProfileContext("parse_number"):
            start = self.pos

            if self._peek_is(_MINUS):
                self.pos += 1

            self._scan_integer_part(start)
            self._scan_decimal_part(start)
            self._scan_exponent_part(start)

            token = self.data[start : self.pos]
            try:
                number = float(token)
            except ValueError as e:
                raise self.error(
                    "Invalid number", start, ErrorKind.INVALID_NUMBER
                ) from e
            if not math.isfinite(number):
                raise self.error(
                    "Number out of range", start, ErrorKind.INVALID_NUMBER
                )

            return JsonNumber(number)

    def _enter_container(self) -> None:
        if self.depth >= self.config.max_depth:
            raise self.error(
                f"Maximum nesting depth of {self.config.max_depth} exceeded",
                kind=ErrorKind.DEPTH,
            )
        self.depth += 1

    def parse_array(self) -> JsonArray:
        """Parses a JSON array; a comma must separate every two elements."""
        with ProfileContext("parse_array"):
            self._enter_container()
            array = JsonArray(allocator=self.allocator, policy=self.config.policy)
            try:
                self.pos += 1
                self.skip_whitespace()
                if self._peek_is(_CLOSE_BRACKET):
                    self.pos += 1
                    return array

                while True:
                    self.skip_whitespace()
                    item = self.parse_value()
                    try:
                        array._push_owned(item)
                    except AllocationError:
                        item.free()
                        raise

                    self.skip_whitespace()
                    if self._peek_is(_CLOSE_BRACKET):
                        self.pos += 1
                        return array
                    elif self._peek_is(_COMMA):
                        comma_pos = self.pos
                        self.pos += 1
                        self.skip_whitespace()
                        if self._peek_is(_CLOSE_BRACKET):
                            raise self.error(
                                "Illegal trailing comma before end of array",
                                comma_pos,
                                ErrorKind.SYNTAX,
                            )
                    else:
                        raise self.error("Expecting ',' delimiter")
            except Exception:
                array.free()
                raise
            finally:
                self.depth -= 1

    def parse_object(self) -> JsonObject:
        """Parses a JSON object; later duplicates of a key replace earlier ones."""
        with ProfileContext("parse_object"):
            self._enter_container()
            obj = JsonObject(allocator=self.allocator, policy=self.config.policy)
            try:
                self.pos += 1
                self.skip_whitespace()
                if self._peek_is(_CLOSE_BRACE):
                    self.pos += 1
                    return obj

                while True:
                    self.skip_whitespace()
                    if not self._peek_is(_QUOTE):
                        raise self.error(
                            "Expecting property name enclosed in double quotes"
                        )
                    key_buffer = self.parse_string()
                    key = key_buffer.tobytes()
                    key_buffer.release()

                    self.skip_whitespace()
                    if not self._peek_is(_COLON):
                        raise self.error("Expecting ':' delimiter")
                    self.pos += 1
                    self.skip_whitespace()

                    value = self.parse_value()
                    try:
                        obj._set_owned(key, value, obj._find(key))
                    except AllocationError:
                        value.free()
                        raise

                    self.skip_whitespace()
                    if self._peek_is(_CLOSE_BRACE):
                        self.pos += 1
                        return obj
                    elif self._peek_is(_COMMA):
                        comma_pos = self.pos
                        self.pos += 1
                        self.skip_whitespace()
                        if self._peek_is(_CLOSE_BRACE):
                            raise self.error(
                                "Illegal trailing comma before end of object",
                                comma_pos,
                                ErrorKind.SYNTAX,
                            )
                    else:
                        raise self.error("Expecting ',' delimiter")
            except Exception:
                obj.free()
                raise
            finally:
                self.depth -= 1


def _as_document(data: object) -> tuple[bytes, str | bytes]:
    if isinstance(data, str):
        return data.encode("utf-8", errors="surrogatepass"), data
    if isinstance(data, bytes | bytearray | memoryview):
        raw = bytes(data)
        return raw, raw
    raise TypeError(
        "the JSON object must be str, bytes or bytearray, "
        f"not {type(data).__name__}"
    )


def decode(
    data: str | bytes | bytearray | memoryview,
    config: DecodeConfig | None = None,
) -> JsonValue:
    """
    Decodes one JSON document into a freshly allocated value tree.

    Decoding is all-or-nothing: on failure every partially built value is
    freed, the error is handed to the configured error sink and then raised
    as JSONDecodeError.
    """
    if config is None:
        config = DecodeConfig()
    raw, doc = _as_document(data)
    parser = JsonParser(raw, config, doc)

    with ProfileContext("decode", len(raw)):
        try:
            return parser.parse_document()
        except AllocationError as e:
            error = parser.error("Memory allocation failed", kind=ErrorKind.MEMORY)
            config.report(error)
            raise error from e
        except JSONDecodeError as e:
            config.report(e)
            raise


__all__ = ["JsonParser", "decode", "encode_utf8"]
