"""Line-numbered rendering of captured context."""

from __future__ import annotations

from typing import Collection, Iterable, List, Optional, Sequence, Tuple, Union

from rich.text import Text

from .code_block import CodeBlock
from .code_line import CodeLine

MARKER = "❯ "
HIGHLIGHT_STYLE = "bold red"

LineLike = Union[CodeLine, Tuple[int, str]]


def _normalise(lines: Iterable[LineLike]) -> List[Tuple[int, str]]:
    pairs: List[Tuple[int, str]] = []
    for line in lines:
        if isinstance(line, CodeLine):
            pairs.append((line.number, line.text))
        else:
            number, text = line
            pairs.append((number, text))
    return pairs


def _rows(
    lines: Iterable[LineLike], highlight: Collection[int], elide_gaps: bool
) -> List[Tuple[str, bool]]:
    pairs = _normalise(lines)
    if not pairs:
        return []
    width = len(str(max(number for number, _ in pairs)))
    rows: List[Tuple[str, bool]] = []
    previous: Optional[int] = None
    for number, text in pairs:
        if elide_gaps and previous is not None and number > previous + 1:
            rows.append((" " * len(MARKER) + "...".rjust(width), False))
        marked = number in highlight
        prefix = MARKER if marked else " " * len(MARKER)
        body = text.rstrip("\r\n")
        rows.append((f"{prefix}{str(number).rjust(width)}  {body}", marked))
        previous = number
    return rows


def render_lines(
    lines: Iterable[LineLike],
    *,
    highlight: Collection[int] = (),
    elide_gaps: bool = False,
) -> str:
    """Render *lines* with a right-aligned number gutter.

    Lines whose number is in *highlight* get a ``❯`` marker.  With
    *elide_gaps* an ellipsis row is inserted between non-adjacent numbers.
    """

    rows = _rows(lines, highlight, elide_gaps)
    return "".join(row + "\n" for row, _ in rows)


def render_rich(
    lines: Iterable[LineLike],
    *,
    highlight: Collection[int] = (),
    elide_gaps: bool = False,
) -> Text:
    """Same layout as :func:`render_lines`, as a styled ``rich`` ``Text``."""

    output = Text()
    for row, marked in _rows(lines, highlight, elide_gaps):
        output.append(row, style=HIGHLIGHT_STYLE if marked else None)
        output.append("\n")
    return output


def highlight_numbers(blocks: Iterable[CodeBlock]) -> Sequence[int]:
    numbers: List[int] = []
    for block in blocks:
        numbers.extend(line.number for line in block.lines)
    return sorted(set(numbers))


__all__ = ["MARKER", "highlight_numbers", "render_lines", "render_rich"]
