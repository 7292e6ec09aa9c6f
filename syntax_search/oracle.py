"""Validity oracles consulted by the search.

The search only ever asks one question: *is this span of text well formed?*
Anything exposing ``is_valid(text) -> bool`` qualifies, and plain callables
are wrapped by :class:`PredicateOracle`.  Failures of the underlying checker
are logged and re-raised as :class:`OracleUnavailable`; the search never
retries them.

:class:`DelimiterOracle` is the checker shipped with the package.  It scans
for opener/closer pairs (keywords such as ``def``/``end`` and the usual
brackets) while skipping comments and string literals, which is exactly the
structure the indentation search is designed to localise.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Protocol, Tuple, runtime_checkable

logger = logging.getLogger(__name__)


class OracleUnavailable(RuntimeError):
    """Raised when the validity check itself cannot be performed."""


@runtime_checkable
class Oracle(Protocol):
    def is_valid(self, text: str) -> bool:  # pragma: no cover - protocol
        ...


class PredicateOracle:
    """Adapt a ``Callable[[str], bool]`` to the :class:`Oracle` protocol."""

    def __init__(self, check: Callable[[str], bool], name: str | None = None) -> None:
        self._check = check
        self.name = name or getattr(check, "__name__", type(check).__name__)

    def is_valid(self, text: str) -> bool:
        try:
            return bool(self._check(text))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Oracle '%s' raised while checking %d chars", self.name, len(text))
            raise OracleUnavailable(f"Oracle '{self.name}' failed with error: {exc}") from exc


def as_oracle(candidate: object) -> Oracle:
    """Return *candidate* as an oracle, wrapping bare callables."""

    if isinstance(candidate, Oracle):
        return candidate
    if callable(candidate):
        return PredicateOracle(candidate)  # type: ignore[arg-type]
    raise TypeError(f"expected an oracle or callable, got {type(candidate).__name__}")


class CallCounter:
    """Count oracle invocations and normalise unexpected failures.

    Verdicts are remembered per text, so asking about the same span twice
    costs one call.  ``calls`` counts real invocations only.
    """

    def __init__(self, oracle: Oracle) -> None:
        self._oracle = oracle
        self._verdicts: Dict[str, bool] = {}
        self.calls = 0

    def is_valid(self, text: str) -> bool:
        verdict = self._verdicts.get(text)
        if verdict is not None:
            return verdict
        self.calls += 1
        try:
            verdict = bool(self._oracle.is_valid(text))
        except OracleUnavailable:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Oracle %r failed on call %d", self._oracle, self.calls)
            raise OracleUnavailable(f"Oracle failed with error: {exc}") from exc
        self._verdicts[text] = verdict
        return verdict


# ----------------------------------------------------------------------
# Delimiter scanning
# ----------------------------------------------------------------------
_WORD = re.compile(r"[^\W\d]\w*[?!]?")
_NUMBER = re.compile(r"\d[\w.]*")
_WHITESPACE = " \t\r\f\v"


@dataclass(frozen=True)
class DelimiterLanguage:
    """Lexical description of a block-structured language."""

    name: str
    line_comment: Optional[str] = None
    block_comment: Optional[Tuple[str, str]] = None
    quotes: str = "\"'"
    brackets: Tuple[Tuple[str, str], ...] = (("(", ")"), ("[", "]"), ("{", "}"))
    openers: frozenset[str] = frozenset()
    # Only open a block at the start of a statement; elsewhere they are modifiers.
    conditional_openers: frozenset[str] = frozenset()
    # Loops whose optional ``do`` must not open a second block.
    loop_openers: frozenset[str] = frozenset()
    keyword_closer: Optional[str] = None
    # Words after which a new statement (and so a conditional opener) may follow.
    continuations: frozenset[str] = frozenset()


RUBY = DelimiterLanguage(
    name="ruby",
    line_comment="#",
    quotes="\"'`",
    openers=frozenset({"def", "class", "module", "begin", "case", "do"}),
    conditional_openers=frozenset({"if", "unless", "while", "until", "for"}),
    loop_openers=frozenset({"while", "until", "for"}),
    keyword_closer="end",
    continuations=frozenset(
        {"then", "else", "elsif", "and", "or", "not", "when", "in", "rescue", "ensure"}
    ),
)

BRACES = DelimiterLanguage(
    name="braces",
    line_comment="//",
    block_comment=("/*", "*/"),
    quotes="\"'`",
)

LANGUAGES: Mapping[str, DelimiterLanguage] = {
    RUBY.name: RUBY,
    BRACES.name: BRACES,
}


@dataclass(frozen=True)
class Delimiter:
    token: str
    line: int


@dataclass(frozen=True)
class DelimiterReport:
    """Outcome of scanning one span of text."""

    unmatched_openers: Tuple[Delimiter, ...] = ()
    unmatched_closers: Tuple[Delimiter, ...] = ()
    unterminated: bool = False

    @property
    def is_balanced(self) -> bool:
        return not (self.unmatched_openers or self.unmatched_closers or self.unterminated)


@dataclass
class _ScanState:
    stack: List[Tuple[bool, Delimiter]] = field(default_factory=list)
    unmatched_closers: List[Delimiter] = field(default_factory=list)
    statement_start: bool = True
    loop_pending: bool = False
    line: int = 1


class DelimiterOracle:
    """Oracle that accepts text whose openers and closers pair up."""

    def __init__(self, language: DelimiterLanguage = RUBY) -> None:
        self.language = language
        self._closing_for = dict(language.brackets)
        self._opening_for = {close: open_ for open_, close in language.brackets}

    @classmethod
    def for_language(cls, name: str) -> "DelimiterOracle":
        try:
            return cls(LANGUAGES[name])
        except KeyError:
            choices = ", ".join(sorted(LANGUAGES))
            raise ValueError(f"Unknown language {name!r}; expected one of: {choices}") from None

    def __repr__(self) -> str:
        return f"DelimiterOracle({self.language.name!r})"

    def is_valid(self, text: str) -> bool:
        return self.diagnose(text).is_balanced

    def diagnose(self, text: str) -> DelimiterReport:
        lang = self.language
        state = _ScanState()
        unterminated = False
        index = 0
        length = len(text)

        while index < length:
            char = text[index]
            if char == "\n":
                state.line += 1
                state.statement_start = True
                state.loop_pending = False
                index += 1
            elif char in _WHITESPACE:
                index += 1
            elif lang.line_comment and text.startswith(lang.line_comment, index):
                newline = text.find("\n", index)
                index = length if newline == -1 else newline
            elif lang.block_comment and text.startswith(lang.block_comment[0], index):
                start, stop = lang.block_comment
                close = text.find(stop, index + len(start))
                if close == -1:
                    unterminated = True
                    break
                state.line += text.count("\n", index, close)
                index = close + len(stop)
            elif char in lang.quotes:
                index, closed = self._skip_string(text, index, state)
                if not closed:
                    unterminated = True
                    break
                state.statement_start = False
            elif char in self._closing_for:
                state.stack.append((False, Delimiter(char, state.line)))
                state.statement_start = True
                index += 1
            elif char in self._opening_for:
                if state.stack and not state.stack[-1][0] and state.stack[-1][1].token == self._opening_for[char]:
                    state.stack.pop()
                else:
                    state.unmatched_closers.append(Delimiter(char, state.line))
                state.statement_start = False
                index += 1
            else:
                word = _WORD.match(text, index)
                if word is not None:
                    self._handle_word(text, word, state)
                    index = word.end()
                    continue
                number = _NUMBER.match(text, index)
                if number is not None:
                    state.statement_start = False
                    index = number.end()
                    continue
                state.statement_start = True
                index += 1

        return DelimiterReport(
            unmatched_openers=tuple(delimiter for _, delimiter in state.stack),
            unmatched_closers=tuple(state.unmatched_closers),
            unterminated=unterminated,
        )

    def _handle_word(self, text: str, match: "re.Match[str]", state: _ScanState) -> None:
        lang = self.language
        word = match.group()
        before = text[match.start() - 1] if match.start() > 0 else ""
        after = text[match.end():match.end() + 2]
        is_label = after[:1] == ":" and after[1:2] != ":"
        is_keyword = not (before and before in ".:@$") and not is_label

        if not is_keyword:
            state.statement_start = False
        elif word == lang.keyword_closer:
            if state.stack and state.stack[-1][0]:
                state.stack.pop()
            else:
                state.unmatched_closers.append(Delimiter(word, state.line))
            state.statement_start = False
        elif word == "do" and state.loop_pending:
            state.loop_pending = False
            state.statement_start = True
        elif word in lang.openers:
            state.stack.append((True, Delimiter(word, state.line)))
            state.statement_start = True
        elif word in lang.conditional_openers:
            if state.statement_start:
                state.stack.append((True, Delimiter(word, state.line)))
                state.loop_pending = word in lang.loop_openers
            state.statement_start = True
        else:
            state.statement_start = word in lang.continuations

    @staticmethod
    def _skip_string(text: str, index: int, state: _ScanState) -> Tuple[int, bool]:
        quote = text[index]
        cursor = index + 1
        while cursor < len(text):
            char = text[cursor]
            if char == "\\":
                if text[cursor + 1:cursor + 2] == "\n":
                    state.line += 1
                cursor += 2
                continue
            if char == "\n":
                state.line += 1
            elif char == quote:
                return cursor + 1, True
            cursor += 1
        return len(text), False

    def explain(self, text: str) -> List[str]:
        """Human readable reasons why *text* is not balanced."""

        report = self.diagnose(text)
        messages: List[str] = []

        def add(message: str) -> None:
            if message not in messages:
                messages.append(message)

        for delimiter in report.unmatched_closers:
            add(f"Unmatched `{delimiter.token}` detected")
        for delimiter in report.unmatched_openers:
            if delimiter.token in self._closing_for:
                add(f"Unmatched `{delimiter.token}`, missing `{self._closing_for[delimiter.token]}`")
            else:
                add(f"Unmatched keyword, missing `{self.language.keyword_closer}`")
        if report.unterminated:
            add("Unterminated string or comment")
        return messages


__all__ = [
    "BRACES",
    "CallCounter",
    "Delimiter",
    "DelimiterLanguage",
    "DelimiterOracle",
    "DelimiterReport",
    "LANGUAGES",
    "Oracle",
    "OracleUnavailable",
    "PredicateOracle",
    "RUBY",
    "as_oracle",
]
