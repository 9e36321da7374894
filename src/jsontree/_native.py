"""Conversion from native Python objects to value trees."""

from typing import Any

from ._allocator import Allocator
from ._value import JsonArray
from ._value import JsonBoolean
from ._value import JsonNull
from ._value import JsonNumber
from ._value import JsonObject
from ._value import JsonString
from ._value import JsonValue


def _build_array(
    items: list[Any] | tuple[Any, ...], allocator: Allocator | None
) -> JsonArray:
    array = JsonArray(allocator=allocator)
    try:
        for item in items:
            child = from_python(item, allocator=allocator)
            try:
                array.push(child)
            except Exception:
                child.free()
                raise
    except Exception:
        array.free()
        raise
    return array


def _build_object(
    mapping: dict[Any, Any], allocator: Allocator | None
) -> JsonObject:
    obj = JsonObject(allocator=allocator)
    try:
        for key, item in mapping.items():
            if not isinstance(key, str):
                msg = f"keys must be str, not {type(key).__name__}"
                raise TypeError(msg)
            child = from_python(item, allocator=allocator)
            try:
                obj.set(key, child)
            except Exception:
                child.free()
                raise
    except Exception:
        obj.free()
        raise
    return obj


def from_python(obj: Any, *, allocator: Allocator | None = None) -> JsonValue:
    """
    Builds a value tree mirroring a native Python object.

    Accepts None, bool, int, float, str, bytes, dict with str keys, list and
    tuple. Anything built before a failure is freed again.
    """
    if obj is None:
        return JsonNull()
    if isinstance(obj, bool):
        return JsonBoolean(obj)
    if isinstance(obj, int | float):
        return JsonNumber(obj)
    if isinstance(obj, str | bytes | bytearray):
        return JsonString(obj, allocator=allocator)
    if isinstance(obj, list | tuple):
        return _build_array(obj, allocator)
    if isinstance(obj, dict):
        return _build_object(obj, allocator)
    msg = f"Object of type {type(obj).__name__} is not JSON serializable"
    raise TypeError(msg)


__all__ = ["from_python"]
