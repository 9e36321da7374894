"""
Tagged JSON value model and the ordered object store.

A JSON document is a tree of JsonValue instances. Each of the six concrete
classes carries only its own payload, so there is no way to read a number out
of a string. Containers exclusively own their children: a value can sit in at
most one container, and freeing a container frees everything below it.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import Any
from typing import ClassVar
from typing import Self
from typing import TypeAlias

from ._allocator import Allocator
from ._config import STRING_POLICY
from ._container import DEFAULT_POLICY
from ._container import Container
from ._container import Cursor
from ._container import GrowthPolicy

# Native Python rendering of a JSON tree - recursive definition
NativeJson = (
    str | float | bool | None | dict[str, "NativeJson"] | list["NativeJson"]
)

Key: TypeAlias = str | bytes | bytearray


class ValueKind(Enum):
    """The six JSON value variants."""

    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def _to_bytes(data: str | bytes | bytearray | memoryview) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, bytes | bytearray | memoryview):
        return bytes(data)
    raise TypeError(
        f"expected str or bytes-like object, not {type(data).__name__}"
    )


class JsonValue:
    """
    Base class of every node in a JSON tree.

    Not instantiated directly; use one of the six concrete variants.
    """

    __slots__ = ("_freed", "_owned")

    kind: ClassVar[ValueKind]

    def __init__(self) -> None:
        self._owned = False
        self._freed = False

    @property
    def owned(self) -> bool:
        """True while the value sits inside an array or object."""
        return self._owned

    @property
    def freed(self) -> bool:
        return self._freed

    def _check_live(self) -> None:
        if self._freed:
            raise ValueError(f"{self.kind.value} value has been freed")

    def _release_payload(self) -> list[JsonValue]:
        """Releases own buffers and hands back the children to free next."""
        return []

    def _release(self) -> None:
        stack: list[JsonValue] = [self]
        while stack:
            value = stack.pop()
            value._owned = False
            value._freed = True
            stack.extend(value._release_payload())

    def free(self) -> None:
        """
        Deep-frees this value and everything it owns.

        Values held by a container are freed through the container (remove,
        set, clear) and cannot be freed directly.
        """
        if self._freed:
            raise ValueError(f"{self.kind.value} value has already been freed")
        if self._owned:
            raise ValueError(
                "cannot free a value owned by a container; remove it instead"
            )
        self._release()

    def copy(self, allocator: Allocator | None = None) -> JsonValue:
        """Deep copy sharing no storage with this value."""
        raise NotImplementedError

    def to_python(self) -> NativeJson:
        raise NotImplementedError

    __hash__ = None  # type: ignore[assignment]


class JsonNull(JsonValue):
    __slots__ = ()

    kind = ValueKind.NULL

    def copy(self, allocator: Allocator | None = None) -> JsonNull:
        self._check_live()
        return JsonNull()

    def to_python(self) -> None:
        self._check_live()
        return None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JsonValue):
            return NotImplemented
        return isinstance(other, JsonNull)

    def __repr__(self) -> str:
        return "JsonNull()"


class JsonBoolean(JsonValue):
    __slots__ = ("_value",)

    kind = ValueKind.BOOLEAN

    def __init__(self, value: bool = False) -> None:
        super().__init__()
        self._value = bool(value)

    def get(self) -> bool:
        self._check_live()
        return self._value

    def set(self, value: bool) -> None:
        self._check_live()
        self._value = bool(value)

    def copy(self, allocator: Allocator | None = None) -> JsonBoolean:
        self._check_live()
        return JsonBoolean(self._value)

    def to_python(self) -> bool:
        return self.get()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JsonValue):
            return NotImplemented
        return isinstance(other, JsonBoolean) and other._value == self._value

    def __repr__(self) -> str:
        return f"JsonBoolean({self._value!r})"


class JsonNumber(JsonValue):
    __slots__ = ("_value",)

    kind = ValueKind.NUMBER

    def __init__(self, value: float = 0.0) -> None:
        super().__init__()
        self._value = _as_double(value)

    def get(self) -> float:
        self._check_live()
        return self._value

    def set(self, value: float) -> None:
        self._check_live()
        self._value = _as_double(value)

    def copy(self, allocator: Allocator | None = None) -> JsonNumber:
        self._check_live()
        return JsonNumber(self._value)

    def to_python(self) -> float:
        return self.get()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JsonValue):
            return NotImplemented
        return isinstance(other, JsonNumber) and other._value == self._value

    def __repr__(self) -> str:
        return f"JsonNumber({self._value!r})"


def _as_double(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise TypeError(f"number must be int or float, not {type(value).__name__}")
    try:
        return float(value)
    except OverflowError as e:
        raise ValueError("integer is too large for a double") from e


class JsonString(JsonValue):
    """
    Owned byte string.

    The buffer length is authoritative; embedded NUL bytes are kept. Text
    given as ``str`` is stored UTF-8 encoded.
    """

    __slots__ = ("_buffer",)

    kind = ValueKind.STRING

    def __init__(
        self,
        value: str | bytes | bytearray | memoryview = b"",
        *,
        allocator: Allocator | None = None,
        policy: GrowthPolicy = STRING_POLICY,
    ) -> None:
        super().__init__()
        data = _to_bytes(value)
        self._buffer = Container(allocator, policy, raw=True)
        self._buffer.extend(data)

    @classmethod
    def _from_buffer(cls, buffer: Container) -> JsonString:
        """Adopts a filled raw container without copying it."""
        string = cls.__new__(cls)
        JsonValue.__init__(string)
        string._buffer = buffer
        return string

    @property
    def length(self) -> int:
        return self._buffer.length

    @property
    def capacity(self) -> int:
        return self._buffer.capacity

    def get(self) -> bytes:
        self._check_live()
        return self._buffer.tobytes()

    @property
    def text(self) -> str:
        """Contents decoded as UTF-8, invalid bytes replaced."""
        return self.get().decode("utf-8", errors="replace")

    def set(self, value: str | bytes | bytearray | memoryview) -> None:
        """Replaces the contents, reusing the buffer when it is large enough."""
        self._check_live()
        data = _to_bytes(value)
        # grow first so a refused allocation leaves the old contents intact
        self._buffer.reserve(len(data))
        self._buffer.clear()
        self._buffer.extend(data)

    def _release_payload(self) -> list[JsonValue]:
        self._buffer.release()
        return []

    def copy(self, allocator: Allocator | None = None) -> JsonString:
        self._check_live()
        return JsonString(
            self.get(),
            allocator=allocator if allocator is not None else self._buffer.allocator,
            policy=self._buffer.policy,
        )

    def to_python(self) -> str:
        return self.text

    def __len__(self) -> int:
        return self._buffer.length

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JsonValue):
            return NotImplemented
        return isinstance(other, JsonString) and other.get() == self.get()

    def __repr__(self) -> str:
        if self._freed:
            return "JsonString(<freed>)"
        return f"JsonString({self.get()!r})"


class _ContainerValue(JsonValue):
    """
    Shared ownership bookkeeping and deep operations for arrays and objects.

    Deep operations walk the tree with an explicit stack, so nesting depth is
    bounded by memory rather than the recursion limit.
    """

    __slots__ = ()

    def _store(self) -> Container:
        raise NotImplementedError

    def _pairs(self) -> Iterator[tuple[Any, JsonValue]]:
        """Yields (slot, child): the index in arrays, the byte key in objects."""
        raise NotImplementedError

    def _attach(self, slot: Any, value: JsonValue) -> None:
        """Appends an already validated value under ``slot``."""
        raise NotImplementedError

    def _native_shell(self) -> Any:
        raise NotImplementedError

    def _native_slot(self, slot: Any) -> Any:
        return slot

    def _matched_children(
        self, other: _ContainerValue
    ) -> list[tuple[JsonValue, JsonValue]] | None:
        """Pairs children with their counterparts in ``other``, None on mismatch."""
        raise NotImplementedError

    def _children(self) -> Iterator[JsonValue]:
        return (child for _, child in self._pairs())

    def _contains(self, target: JsonValue) -> bool:
        stack: list[JsonValue] = [self]
        while stack:
            value = stack.pop()
            if value is target:
                return True
            if isinstance(value, _ContainerValue):
                stack.extend(value._children())
        return False

    def _adopt(self, value: JsonValue) -> None:
        """Validates that ``value`` may become a child of this container."""
        self._check_live()
        if not isinstance(value, JsonValue):
            raise TypeError(f"expected a JsonValue, not {type(value).__name__}")
        if value._freed:
            raise ValueError("cannot add a freed value")
        if value._owned:
            raise ValueError("value is already owned by a container")
        # an unowned container is a root and cannot sit below ``value``
        if value is self or (
            self._owned
            and isinstance(value, _ContainerValue)
            and value._contains(self)
        ):
            raise ValueError("adding this value would create a cycle")

    def _empty_like(self, allocator: Allocator) -> Self:
        return type(self)(allocator=allocator, policy=self._store().policy)

    def copy(self, allocator: Allocator | None = None) -> Self:
        self._check_live()
        target = allocator if allocator is not None else self._store().allocator
        root = self._empty_like(target)
        stack: list[tuple[_ContainerValue, _ContainerValue]] = [(self, root)]
        try:
            while stack:
                source, duplicate = stack.pop()
                for slot, child in source._pairs():
                    item: JsonValue
                    if isinstance(child, _ContainerValue):
                        # attached before it is filled so the root owns it
                        shell = child._empty_like(target)
                        stack.append((child, shell))
                        item = shell
                    else:
                        item = child.copy(target)
                    try:
                        duplicate._attach(slot, item)
                    except Exception:
                        item._release()
                        raise
        except Exception:
            root._release()
            raise
        return root

    def to_python(self) -> Any:
        self._check_live()
        root = self._native_shell()
        stack: list[tuple[_ContainerValue, Any]] = [(self, root)]
        while stack:
            source, target = stack.pop()
            for slot, child in source._pairs():
                if isinstance(child, _ContainerValue):
                    native = child._native_shell()
                    stack.append((child, native))
                else:
                    native = child.to_python()
                target[source._native_slot(slot)] = native
        return root

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JsonValue):
            return NotImplemented
        stack: list[tuple[JsonValue, JsonValue]] = [(self, other)]
        while stack:
            left, right = stack.pop()
            if not isinstance(left, _ContainerValue):
                if left != right:
                    return False
                continue
            if (
                not isinstance(right, _ContainerValue)
                or right._store().length != left._store().length
            ):
                return False
            pairs = left._matched_children(right)
            if pairs is None:
                return False
            stack.extend(pairs)
        return True


class JsonArray(_ContainerValue):
    """Ordered sequence of owned values."""

    __slots__ = ("_items",)

    kind = ValueKind.ARRAY

    def __init__(
        self,
        *,
        allocator: Allocator | None = None,
        policy: GrowthPolicy = DEFAULT_POLICY,
    ) -> None:
        super().__init__()
        self._items = Container(allocator, policy)

    @property
    def length(self) -> int:
        return self._items.length

    @property
    def capacity(self) -> int:
        return self._items.capacity

    @property
    def reallocations(self) -> int:
        return self._items.reallocations

    def _store(self) -> Container:
        return self._items

    def _pairs(self) -> Iterator[tuple[int, JsonValue]]:
        return enumerate(self._items)

    def _attach(self, slot: Any, value: JsonValue) -> None:
        self._push_owned(value)

    def _native_shell(self) -> list[NativeJson]:
        return [None] * self._items.length

    def _matched_children(
        self, other: _ContainerValue
    ) -> list[tuple[JsonValue, JsonValue]] | None:
        if not isinstance(other, JsonArray):
            return None
        return list(zip(self._items, other._items, strict=True))

    def get(self, index: int) -> JsonValue | None:
        """Returns the value at ``index`` or None when out of range."""
        self._check_live()
        if not 0 <= index < self._items.length:
            return None
        return self._items[index]

    def push(self, value: JsonValue) -> None:
        """Appends ``value``; the array takes ownership."""
        self._adopt(value)
        self._push_owned(value)

    def _push_owned(self, value: JsonValue) -> None:
        self._items.append(value)
        value._owned = True

    def set(self, index: int, value: JsonValue) -> None:
        """
        Stores ``value`` at ``index``.

        Replacing frees the previous value; ``index == length`` appends.
        """
        self._check_live()
        length = self._items.length
        if not 0 <= index <= length:
            raise IndexError("array index out of range")
        if index == length:
            self.push(value)
            return

        old = self._items[index]
        if old is value:
            return
        self._adopt(value)
        self._items[index] = value
        value._owned = True
        old._release()

    def remove(self, index: int) -> None:
        """Frees the value at ``index`` and closes the gap, keeping order."""
        self._check_live()
        if not 0 <= index < self._items.length:
            raise IndexError("array index out of range")
        old = self._items.remove_at(index)
        old._release()

    def clear(self) -> None:
        """Frees every element; capacity is kept."""
        self._check_live()
        children = list(self._items)
        self._items.clear()
        for child in children:
            child._release()

    def iterate(self, cursor: Cursor) -> JsonValue | None:
        """Returns the value under ``cursor`` and advances it, or None at the end."""
        self._check_live()
        if cursor.index >= self._items.length:
            return None
        value = self._items[cursor.index]
        cursor.index += 1
        return value

    def __iter__(self) -> Iterator[JsonValue]:
        cursor = Cursor()
        while (value := self.iterate(cursor)) is not None:
            yield value

    def __len__(self) -> int:
        return self._items.length

    def _release_payload(self) -> list[JsonValue]:
        children = list(self._items)
        self._items.release()
        return children

    def __repr__(self) -> str:
        return f"JsonArray(length={self._items.length})"


class JsonObject(_ContainerValue):
    """
    Insertion-ordered mapping from byte-string keys to owned values.

    Lookups are linear scans. Documents are expected to be config-sized, so
    a hash index would cost more than it saves. Removal closes the gap, so
    iteration always follows insertion order.
    """

    __slots__ = ("_entries",)

    kind = ValueKind.OBJECT

    def __init__(
        self,
        *,
        allocator: Allocator | None = None,
        policy: GrowthPolicy = DEFAULT_POLICY,
    ) -> None:
        super().__init__()
        self._entries = Container(allocator, policy)

    @property
    def count(self) -> int:
        return self._entries.length

    @property
    def capacity(self) -> int:
        return self._entries.capacity

    @property
    def reallocations(self) -> int:
        return self._entries.reallocations

    def _store(self) -> Container:
        return self._entries

    def _pairs(self) -> Iterator[tuple[bytes, JsonValue]]:
        return iter(self._entries)

    def _attach(self, slot: Any, value: JsonValue) -> None:
        self._set_owned(slot, value, -1)

    def _native_shell(self) -> dict[str, NativeJson]:
        return {}

    def _native_slot(self, slot: Any) -> str:
        return slot.decode("utf-8", errors="replace")

    def _matched_children(
        self, other: _ContainerValue
    ) -> list[tuple[JsonValue, JsonValue]] | None:
        if not isinstance(other, JsonObject):
            return None
        pairs = []
        for key, value in self._entries:
            index = other._find(key)
            if index < 0:
                return None
            pairs.append((value, other._entries[index][1]))
        return pairs

    def _find(self, key: bytes) -> int:
        for index, (entry_key, _) in enumerate(self._entries):
            if entry_key == key:
                return index
        return -1

    def get(self, key: Key) -> JsonValue | None:
        self._check_live()
        index = self._find(_to_bytes(key))
        if index < 0:
            return None
        return self._entries[index][1]

    def has(self, key: Key) -> bool:
        self._check_live()
        return self._find(_to_bytes(key)) >= 0

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str | bytes | bytearray):
            return False
        return self.has(key)

    def set(self, key: Key, value: JsonValue) -> None:
        """
        Binds ``key`` to ``value``; the object takes ownership of ``value``.

        An existing binding is replaced and its old value freed. If growing
        the entry list fails, the object is unchanged and ``value`` still
        belongs to the caller.
        """
        self._check_live()
        key_bytes = _to_bytes(key)
        index = self._find(key_bytes)
        if index >= 0 and self._entries[index][1] is value:
            return
        self._adopt(value)
        self._set_owned(key_bytes, value, index)

    def _set_owned(self, key: bytes, value: JsonValue, index: int) -> None:
        if index >= 0:
            old = self._entries[index][1]
            self._entries[index] = (self._entries[index][0], value)
            value._owned = True
            old._release()
            return
        self._entries.append((key, value))
        value._owned = True

    def remove(self, key: Key) -> bool:
        """Frees the value bound to ``key``; returns False if there was none."""
        self._check_live()
        index = self._find(_to_bytes(key))
        if index < 0:
            return False
        _, old = self._entries.remove_at(index)
        old._release()
        return True

    def clear(self) -> None:
        """Frees every entry; capacity is kept."""
        self._check_live()
        children = [value for _, value in self._entries]
        self._entries.clear()
        for child in children:
            child._release()

    def iterate(self, cursor: Cursor) -> tuple[bytes, JsonValue] | None:
        """Returns the entry under ``cursor`` and advances it, or None at the end."""
        self._check_live()
        if cursor.index >= self._entries.length:
            return None
        entry = self._entries[cursor.index]
        cursor.index += 1
        return entry

    def __iter__(self) -> Iterator[tuple[bytes, JsonValue]]:
        cursor = Cursor()
        while (entry := self.iterate(cursor)) is not None:
            yield entry

    def keys(self) -> list[bytes]:
        self._check_live()
        return [key for key, _ in self._entries]

    def __len__(self) -> int:
        return self._entries.length

    def _release_payload(self) -> list[JsonValue]:
        children = [value for _, value in self._entries]
        self._entries.release()
        return children

    def __repr__(self) -> str:
        return f"JsonObject(count={self._entries.length})"


def is_null(value: JsonValue | None) -> bool:
    return isinstance(value, JsonNull)


def is_boolean(value: JsonValue | None) -> bool:
    return isinstance(value, JsonBoolean)


def is_number(value: JsonValue | None) -> bool:
    return isinstance(value, JsonNumber)


def is_string(value: JsonValue | None) -> bool:
    return isinstance(value, JsonString)


def is_array(value: JsonValue | None) -> bool:
    return isinstance(value, JsonArray)


def is_object(value: JsonValue | None) -> bool:
    return isinstance(value, JsonObject)


__all__ = [
    "JsonArray",
    "JsonBoolean",
    "JsonNull",
    "JsonNumber",
    "JsonObject",
    "JsonString",
    "JsonValue",
    "NativeJson",
    "ValueKind",
    "is_array",
    "is_boolean",
    "is_null",
    "is_number",
    "is_object",
    "is_string",
]
