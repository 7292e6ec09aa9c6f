from __future__ import annotations

import pytest

from snippets import (
    AMBIGUOUS_END,
    BRACES_MISSING_CLOSE,
    CLASS_DOG,
    DESCRIBE_MISSING_DO,
    EXTRA_END,
    FALLING_INDENT,
    FLAT_SIBLINGS,
    MISSING_DO,
    NESTED_MISSING_END,
    RAGGED_CLOSER,
    SAME_INDENT,
    SAME_INDENT_OPENERS,
    TWO_ERRORS,
)
from syntax_search.code_block import CodeBlock
from syntax_search.code_line import from_source
from syntax_search.context import CaptureCodeContext, capture_context
from syntax_search.display import render_lines
from syntax_search.oracle import BRACES, DelimiterOracle
from syntax_search.search import CodeSearch


def _context(source: str, checker: DelimiterOracle | None = None) -> CaptureCodeContext:
    checker = checker or DelimiterOracle()
    result = CodeSearch(source, checker).call()
    return CaptureCodeContext(result.invalid_blocks, result.lines, result.tree, oracle=checker)


def _numbers(source: str) -> list[int]:
    return [line.number for line in _context(source).call()]


@pytest.mark.parametrize(
    "source, expected",
    [
        (CLASS_DOG, [1, 2, 4]),
        (AMBIGUOUS_END, [1, 3, 4]),
        (FALLING_INDENT, [4, 6, 7, 8, 9]),
        (MISSING_DO, [1, 2, 22, 23]),
        (TWO_ERRORS, [1, 2, 4, 6, 7, 9]),
        (RAGGED_CLOSER, [1, 6]),
        (SAME_INDENT_OPENERS, [1, 2, 3, 5]),
        (NESTED_MISSING_END, [1, 2, 3, 4, 5, 6, 7]),
    ],
)
def test_enclosing_lines(source: str, expected: list[int]) -> None:
    assert _numbers(source) == expected


def test_extra_closer_shows_both_candidate_pairs() -> None:
    lines = _context(EXTRA_END).call()

    assert [line.number for line in lines] == [1, 2, 4, 5, 6, 8, 9]
    assert "".join(line.text for line in lines) == (
        "def render\n"
        "  if header?\n"
        "  end\n"
        "  end\n"
        "  if footer?\n"
        "  end\n"
        "end\n"
    )


def test_falling_indent_text() -> None:
    text = "".join(line.text for line in _context(FALLING_INDENT).call())
    assert text == 'class OH\n  def hello\n    it "foo" do\n  end\nend\n'


def test_same_indent_rendering() -> None:
    context = _context(SAME_INDENT)

    out = render_lines(context.call(), highlight=[12])

    assert out == (
        "   3  class OH\n"
        "   8    def lol\n"
        "   9    end\n"
        "❯ 12    end # here\n"
        "  19  end\n"
    )


def test_flat_siblings_around_an_unclosed_opener() -> None:
    lines = from_source(FLAT_SIBLINGS)

    captured = capture_context([CodeBlock(lines[0:1])], lines)

    assert [line.number for line in captured] == [1, 2, 4, 6, 7]


def test_flat_sibling_extra_end_shows_neighbouring_pairs() -> None:
    lines = from_source(DESCRIBE_MISSING_DO)

    captured = capture_context([CodeBlock(lines[5:6])], lines)

    assert [line.number for line in captured] == [1, 5, 6, 8, 9, 10]
    assert "".join(line.text for line in captured) == (
        'describe "things" do\n'
        '  it "flerg"\n'
        "  end\n"
        '  it "zlerg" do\n'
        "  end\n"
        "end\n"
    )


def test_describe_block_search_and_context_agree() -> None:
    context = _context(DESCRIBE_MISSING_DO)

    assert [block.starts_at for block in context.blocks] == [6]
    assert [line.number for line in context.call()] == [1, 5, 6, 8, 9, 10]


def test_context_uses_the_given_oracle() -> None:
    numbers = [line.number for line in _context(BRACES_MISSING_CLOSE, DelimiterOracle(BRACES)).call()]

    assert numbers == [1, 2, 3, 4, 5, 6]


def test_as_pairs() -> None:
    assert _context(CLASS_DOG).as_pairs() == [
        (1, "class Dog\n"),
        (2, "  def bark\n"),
        (4, "end\n"),
    ]


def test_builds_its_own_tree_and_dedupes() -> None:
    lines = from_source(CLASS_DOG)
    block = CodeBlock(lines[1:2])

    captured = capture_context([block, block], lines)

    assert [line.number for line in captured] == [1, 2, 3, 4]


def test_includes_hidden_lines() -> None:
    lines = from_source(CLASS_DOG)
    for line in lines:
        line.mark_invisible()

    captured = CaptureCodeContext([CodeBlock(lines[1:2])], lines).call()

    assert [line.number for line in captured] == [1, 2, 3, 4]


def test_no_blocks_no_context() -> None:
    lines = from_source(CLASS_DOG)
    assert CaptureCodeContext([], lines).call() == []
