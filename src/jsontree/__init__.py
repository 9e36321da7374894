"""
jsontree: an in-memory JSON value model with a decoder, encoder and printer.

Documents are decoded into trees of JsonValue nodes whose buffers come from a
pluggable allocator. Trees can be inspected and mutated in place, then
serialized back to compact text or printed with indentation. The
``loads``/``dumps`` pair bridges to native Python objects.
"""

from typing import IO
from typing import Any

from ._allocator import AccountingAllocator
from ._allocator import Allocator
from ._allocator import SystemAllocator
from ._allocator import default_allocator
from ._config import DEFAULT_MAX_DEPTH
from ._config import DecodeConfig
from ._config import EncodeConfig
from ._container import Container
from ._container import Cursor
from ._container import GrowthPolicy
from ._decoder import JsonParser
from ._decoder import decode
from ._encoder import JsonEncoder
from ._encoder import encode
from ._errors import AllocationError
from ._errors import ErrorKind
from ._errors import JSONDecodeError
from ._errors import JSONEncodeError
from ._native import from_python
from ._printer import print_value
from ._printer import println
from ._profile import HotPathStats
from ._profile import clear_hot_path_stats
from ._profile import get_hot_path_stats
from ._value import JsonArray
from ._value import JsonBoolean
from ._value import JsonNull
from ._value import JsonNumber
from ._value import JsonObject
from ._value import JsonString
from ._value import JsonValue
from ._value import NativeJson
from ._value import ValueKind
from ._value import is_array
from ._value import is_boolean
from ._value import is_null
from ._value import is_number
from ._value import is_object
from ._value import is_string

__version__ = "0.1.0"


def loads(s: str | bytes | bytearray, **kwargs: Any) -> NativeJson:
    """
    Parses a JSON document into native Python objects.

    Keyword arguments configure the decoder (see DecodeConfig). Numbers come
    back as float. The intermediate value tree is freed before returning.
    """
    config = DecodeConfig(**kwargs)
    tree = decode(s, config)
    try:
        return tree.to_python()
    finally:
        tree.free()


def dumps(obj: Any, **kwargs: Any) -> str:
    """
    Serializes a native Python object to compact JSON text.

    Keyword arguments configure the encoder (see EncodeConfig).
    """
    config = EncodeConfig(**kwargs)
    tree = from_python(obj, allocator=config.allocator)
    try:
        return encode(tree, config)
    finally:
        tree.free()


def load(fp: IO[str], **kwargs: Any) -> NativeJson:
    """Parses the JSON document read from a file-like object."""
    if not hasattr(fp, "read"):
        raise TypeError("fp must have a read() method")

    return loads(fp.read(), **kwargs)


def dump(obj: Any, fp: IO[str], **kwargs: Any) -> None:
    """Serializes ``obj`` and writes the text to a file-like object."""
    if not hasattr(fp, "write"):
        raise TypeError("fp must have a write() method")

    fp.write(dumps(obj, **kwargs))


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "AccountingAllocator",
    "AllocationError",
    "Allocator",
    "Container",
    "Cursor",
    "DecodeConfig",
    "EncodeConfig",
    "ErrorKind",
    "GrowthPolicy",
    "HotPathStats",
    "JSONDecodeError",
    "JSONEncodeError",
    "JsonArray",
    "JsonBoolean",
    "JsonEncoder",
    "JsonNull",
    "JsonNumber",
    "JsonObject",
    "JsonParser",
    "JsonString",
    "JsonValue",
    "NativeJson",
    "SystemAllocator",
    "ValueKind",
    "clear_hot_path_stats",
    "decode",
    "default_allocator",
    "dump",
    "dumps",
    "encode",
    "from_python",
    "get_hot_path_stats",
    "is_array",
    "is_boolean",
    "is_null",
    "is_number",
    "is_object",
    "is_string",
    "load",
    "loads",
    "print_value",
    "println",
]
