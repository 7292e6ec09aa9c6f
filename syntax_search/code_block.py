"""Contiguous runs of lines that are checked as a unit."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence

from .code_line import CodeLine

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .oracle import Oracle

logger = logging.getLogger(__name__)


class Validity(Enum):
    UNKNOWN = "unknown"
    VALID = "valid"
    INVALID = "invalid"


@total_ordering
@dataclass(frozen=True, slots=True)
class PriorityKey:
    """Frontier ordering: deepest indent first, then earliest start line."""

    indent: int
    start: int

    def _rank(self) -> tuple[int, int]:
        return (-self.indent, self.start)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, PriorityKey):
            return NotImplemented
        return self._rank() < other._rank()

    def __str__(self) -> str:
        return f"indent={self.indent} start={self.start}"


class CodeBlock:
    """A non-empty, contiguous run of :class:`CodeLine` objects.

    The block borrows its lines; hiding the block hides the shared lines for
    every other block that covers them.  Indentation and validity are computed
    lazily and cached until :meth:`invalidate` is called.
    """

    __slots__ = ("_lines", "_indent", "validity")

    def __init__(
        self, lines: Iterable[CodeLine], *, validity: Validity = Validity.UNKNOWN
    ) -> None:
        self._lines: List[CodeLine] = list(lines)
        if not self._lines:
            raise ValueError("a block needs at least one line")
        for previous, current in zip(self._lines, self._lines[1:]):
            if current.number != previous.number + 1:
                raise ValueError(
                    f"block lines must be contiguous, got {previous.number} then {current.number}"
                )
        self._indent: Optional[int] = None
        self.validity = validity

    @property
    def lines(self) -> Sequence[CodeLine]:
        return self._lines

    @property
    def starts_at(self) -> int:
        return self._lines[0].number

    @property
    def ends_at(self) -> int:
        return self._lines[-1].number

    @property
    def indent(self) -> int:
        if self._indent is None:
            indents = [line.indent for line in self.visible_lines]
            self._indent = min(indents) if indents else 0
        return self._indent

    @property
    def order_key(self) -> PriorityKey:
        return PriorityKey(self.indent, self.starts_at)

    @property
    def visible_lines(self) -> List[CodeLine]:
        return [line for line in self._lines if line.is_visible and not line.is_empty]

    @property
    def text(self) -> str:
        """Text the oracle sees: visible, non-empty lines only."""

        return "".join(line.text for line in self.visible_lines)

    def is_valid(self, oracle: "Oracle") -> bool:
        if self.validity is Validity.UNKNOWN:
            if not self.visible_lines:
                self.validity = Validity.VALID
            else:
                valid = oracle.is_valid(self.text)
                self.validity = Validity.VALID if valid else Validity.INVALID
                logger.debug("Block %s checked: %s", self, self.validity.value)
        return self.validity is Validity.VALID

    def invalidate(self) -> None:
        """Forget cached indentation and validity."""

        self._indent = None
        self.validity = Validity.UNKNOWN

    def mark_invisible(self) -> None:
        for line in self._lines:
            line.mark_invisible()

    @property
    def is_hidden(self) -> bool:
        return all(line.is_hidden for line in self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __str__(self) -> str:
        if self.starts_at == self.ends_at:
            return f"line {self.starts_at}"
        return f"lines {self.starts_at}-{self.ends_at}"

    def __repr__(self) -> str:
        return f"<CodeBlock {self.starts_at}..{self.ends_at} {self.validity.value}>"

    @property
    def source(self) -> str:
        """Full text of every line in the block, hidden ones included."""

        return "".join(line.text for line in self._lines)


__all__ = ["CodeBlock", "PriorityKey", "Validity"]
