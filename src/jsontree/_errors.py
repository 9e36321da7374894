"""
Error channel shared by the allocator, decoder and encoder.

Every failure carries an ErrorKind from a closed set so hosts can branch on
the category without parsing messages.
"""

from collections.abc import Callable
from enum import Enum
from typing import TypeAlias

Position: TypeAlias = int


class ErrorKind(Enum):
    """Closed set of failure categories."""

    SYNTAX = "syntax"
    INVALID_NUMBER = "invalid_number"
    EOF = "eof"
    MEMORY = "memory"
    DEPTH = "depth"


class AllocationError(MemoryError):
    """Raised by an allocator that cannot satisfy a request."""

    def __init__(self, size: int, msg: str = "Memory allocation failed") -> None:
        self.size = size
        super().__init__(f"{msg} ({size} slots)")


class JSONDecodeError(ValueError):
    """
    Handles JSON parsing failures with precise position and context information.

    Error state containing position, line/column numbers, the failure kind and
    the document, to help users identify and fix malformed input. For text
    documents ``pos`` is a character offset; for bytes documents it is a byte
    offset.
    """

    def __init__(
        self,
        msg: str,
        doc: str | bytes = "",
        pos: Position = 0,
        kind: ErrorKind = ErrorKind.SYNTAX,
    ) -> None:
        if not isinstance(msg, str):
            raise TypeError("msg must be a string")
        if not isinstance(pos, int) or pos < 0:
            raise ValueError("pos must be a non-negative integer")
        if not isinstance(kind, ErrorKind):
            raise TypeError("kind must be an ErrorKind")

        self.msg = msg
        self.doc = doc
        self.pos = pos
        self.kind = kind

        newline: str | bytes = b"\n" if isinstance(doc, bytes) else "\n"
        self.lineno = doc.count(newline, 0, pos) + 1 if doc else 1  # type: ignore[arg-type]
        self.colno = pos - doc.rfind(newline, 0, pos) if doc else pos + 1  # type: ignore[arg-type]

        super().__init__(f"{msg} at line {self.lineno}, column {self.colno}")

    def __reduce__(self) -> tuple[type, tuple[str, str | bytes, int, ErrorKind]]:
        return self.__class__, (self.msg, self.doc, self.pos, self.kind)


class JSONEncodeError(ValueError):
    """Raised when a value tree cannot be serialized."""

    def __init__(self, msg: str, kind: ErrorKind = ErrorKind.MEMORY) -> None:
        self.msg = msg
        self.kind = kind
        super().__init__(f"{msg} ({kind.value})")


# Error sink: receives every decode failure before it is raised
ErrorHandler = Callable[[JSONDecodeError], None] | None
