"""Maps decoder byte offsets back to character offsets for error reports."""

from __future__ import annotations

from bisect import bisect_right
from typing import Final

_ASCII_LIMIT: Final = 0x7F


def _utf8_width(char: str) -> int:
    code_point = ord(char)
    if code_point < 0x80:
        return 1
    if code_point < 0x800:
        return 2
    if code_point < 0x10000:
        return 3
    return 4


class UTF8PositionMapper:
    """Efficient UTF-8 position mapping with checkpoint system.

    Instead of building a full position map for the entire document,
    this mapper records checkpoints at regular character intervals and
    walks forward from the nearest one. Only built when an error needs
    reporting, so the happy path never pays for it.
    """

    def __init__(self, text: str, checkpoint_interval: int = 256) -> None:
        """Initialize position mapper with checkpoint system.

        Args:
            text: The document as given by the caller
            checkpoint_interval: Characters between checkpoints
        """
        if checkpoint_interval < 1:
            raise ValueError("checkpoint_interval must be positive")
        self.text: Final = text
        self.checkpoint_interval: Final = checkpoint_interval
        self._byte_marks: list[int] = []
        self._char_marks: list[int] = []
        self._is_ascii_only = True

        self._build_checkpoints()

    def _build_checkpoints(self) -> None:
        """Build checkpoint mapping at regular character intervals."""
        byte_pos = 0
        for char_pos, char in enumerate(self.text):
            if char_pos % self.checkpoint_interval == 0:
                self._byte_marks.append(byte_pos)
                self._char_marks.append(char_pos)
            if ord(char) > _ASCII_LIMIT:
                self._is_ascii_only = False
            byte_pos += _utf8_width(char)

        self._byte_marks.append(byte_pos)
        self._char_marks.append(len(self.text))

    def byte_to_char(self, byte_pos: int) -> int:
        """Convert byte position to character position.

        A byte offset that falls inside a multi-byte sequence maps to the
        character that sequence encodes.

        Args:
            byte_pos: Byte position in the UTF-8 encoding of the text

        Returns:
            Character position in the original text
        """
        if self._is_ascii_only:
            return min(byte_pos, len(self.text))

        slot = bisect_right(self._byte_marks, byte_pos) - 1
        if slot < 0:
            return 0
        current_byte = self._byte_marks[slot]
        current_char = self._char_marks[slot]

        while current_char < len(self.text):
            width = _utf8_width(self.text[current_char])
            if current_byte + width > byte_pos:
                break
            current_byte += width
            current_char += 1

        return current_char

    def char_to_byte(self, char_pos: int) -> int:
        """Convert character position to byte position.

        Args:
            char_pos: Character position in the original text

        Returns:
            Byte position in the UTF-8 encoding of the text
        """
        if self._is_ascii_only:
            return char_pos

        slot = bisect_right(self._char_marks, char_pos) - 1
        if slot < 0:
            return 0
        byte_pos = self._byte_marks[slot]
        for index in range(self._char_marks[slot], min(char_pos, len(self.text))):
            byte_pos += _utf8_width(self.text[index])
        return byte_pos
