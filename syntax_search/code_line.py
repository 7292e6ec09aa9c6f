"""Line model for indentation-driven syntax search.

Every physical line of a document becomes one :class:`CodeLine`.  Lines are
created once when the document is ingested and shared by every block that
covers them; the only state that changes afterwards is the visibility flag,
which the search clears once a line has been folded into known-good
structure.
"""

from __future__ import annotations

from typing import List, TextIO


class CodeLine:
    """One physical line of source text."""

    __slots__ = ("_number", "_text", "_indent", "_is_empty", "is_visible")

    def __init__(self, number: int, text: str) -> None:
        if number < 1:
            raise ValueError("line numbers start at 1")
        self._number = number
        self._text = text
        stripped = text.rstrip("\r\n")
        content = stripped.lstrip()
        self._is_empty = not content
        self._indent = 0 if self._is_empty else len(stripped) - len(content)
        self.is_visible = True

    # ------------------------------------------------------------------
    # Read-only attributes
    # ------------------------------------------------------------------
    @property
    def number(self) -> int:
        return self._number

    @property
    def text(self) -> str:
        """Original text including the line terminator, if any."""

        return self._text

    @property
    def indent(self) -> int:
        return self._indent

    @property
    def is_empty(self) -> bool:
        return self._is_empty

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------
    @property
    def is_hidden(self) -> bool:
        return not self.is_visible

    def mark_invisible(self) -> None:
        self.is_visible = False

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        flag = "" if self.is_visible else " hidden"
        return f"<CodeLine {self._number} indent={self._indent}{flag} {self._text.rstrip()!r}>"


def from_source(source: str | TextIO) -> List[CodeLine]:
    """Split *source* into numbered :class:`CodeLine` objects.

    *source* may be a string or any object exposing ``read()``.  Line
    terminators are preserved on every line but the last, and a trailing
    newline does not produce an extra empty line.
    """

    text = source if isinstance(source, str) else source.read()
    chunks = text.split("\n")
    lines: List[CodeLine] = []
    for index, chunk in enumerate(chunks):
        last = index == len(chunks) - 1
        if last and not chunk:
            break
        lines.append(CodeLine(index + 1, chunk if last else chunk + "\n"))
    return lines


__all__ = ["CodeLine", "from_source"]
