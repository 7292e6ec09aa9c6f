"""Integration entry points for host tooling.

Instead of hooking into a runtime's error reporting, callers hand over the
failing source and get back an annotation string to show next to their own
error message::

    from syntax_search import annotate

    note = annotate(path.read_text(), filename=str(path))
    if note:
        print(note, file=sys.stderr)

:func:`annotate_error` covers the common case where only the runtime's
message is available: the filename is recovered from the message and the
annotation is prepended to it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, TextIO, Tuple, Union

from rich.text import Text

from .code_line import CodeLine, from_source
from .context import CaptureCodeContext
from .display import highlight_numbers, render_lines, render_rich
from .oracle import DelimiterOracle, Oracle
from .search import CodeSearch

logger = logging.getLogger(__name__)

DEFAULT_HEADLINE = "Syntax error detected"


@dataclass(frozen=True)
class Report:
    """Everything needed to print one located syntax error."""

    headline: str
    lines: Tuple[CodeLine, ...]
    highlight: Tuple[int, ...]
    filename: Optional[str] = None

    def _preamble(self) -> str:
        rows = [self.headline, ""]
        if self.filename:
            rows.append(f"file: {self.filename}")
        rows.extend(["simplified:", ""])
        return "\n".join(rows) + "\n"

    def render(self) -> str:
        return self._preamble() + render_lines(self.lines, highlight=self.highlight, elide_gaps=True)

    def render_rich(self) -> Text:
        output = Text(self._preamble())
        output.append(render_rich(self.lines, highlight=self.highlight, elide_gaps=True))
        return output


def _headline(lines: Sequence[CodeLine], checker: Oracle) -> str:
    if not isinstance(checker, DelimiterOracle):
        return DEFAULT_HEADLINE
    reasons = checker.explain("".join(line.text for line in lines))
    return "\n".join(reasons) if reasons else DEFAULT_HEADLINE


def build_report(
    source: Union[str, TextIO],
    *,
    oracle: Optional[Oracle] = None,
    language: str = "ruby",
    filename: Optional[str] = None,
    context: bool = True,
) -> Optional[Report]:
    """Search *source* and return a :class:`Report`, or ``None`` when valid.

    Without an explicit *oracle* the delimiter checker for *language* is used.
    """

    lines = from_source(source)
    checker = oracle if oracle is not None else DelimiterOracle.for_language(language)
    result = CodeSearch(lines, checker).call()
    if not result.found:
        return None

    if context:
        shown: List[CodeLine] = CaptureCodeContext(
            result.invalid_blocks, result.lines, result.tree, oracle=checker
        ).call()
    else:
        numbers = highlight_numbers(result.invalid_blocks)
        shown = [lines[number - 1] for number in numbers if not lines[number - 1].is_empty]

    return Report(
        headline=_headline(lines, checker),
        lines=tuple(shown),
        highlight=tuple(highlight_numbers(result.invalid_blocks)),
        filename=filename,
    )


def annotate(
    source: Union[str, TextIO],
    *,
    oracle: Optional[Oracle] = None,
    language: str = "ruby",
    filename: Optional[str] = None,
    context: bool = True,
) -> str:
    """Return a printable annotation for *source*, or ``""`` if it is valid."""

    report = build_report(
        source, oracle=oracle, language=language, filename=filename, context=context
    )
    return "" if report is None else report.render()


def pathname_from_message(message: str) -> Optional[Path]:
    """Recover an existing file path from a ``path:line: ...`` error message.

    Paths may themselves contain colons, so every prefix that is followed by a
    line number is tried in turn.
    """

    if message.startswith(("(eval)", "-")):
        return None

    parts = message.split(":")
    for count in range(1, len(parts)):
        if not parts[count].strip().isdigit():
            continue
        candidate = Path(":".join(parts[:count]))
        if candidate.exists():
            return candidate

    logger.warning("Could not find filename from %r", message)
    return None


def annotate_error(message: str, *, language: str = "ruby") -> str:
    """Prepend an annotation for the file named in *message*, if any."""

    path = pathname_from_message(message)
    if path is None:
        return message
    note = annotate(path.read_text(encoding="utf-8"), language=language, filename=str(path))
    if not note:
        return message
    hint = f"Run `$ syntax-search {path}` for more options\n\n"
    return note + "\n" + hint + message


__all__ = [
    "DEFAULT_HEADLINE",
    "Report",
    "annotate",
    "annotate_error",
    "build_report",
    "pathname_from_message",
]
