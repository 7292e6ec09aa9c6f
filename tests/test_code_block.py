from __future__ import annotations

import pytest

from syntax_search.code_block import CodeBlock, PriorityKey, Validity
from syntax_search.code_line import from_source


class RecordingOracle:
    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.seen: list[str] = []

    def is_valid(self, text: str) -> bool:
        self.seen.append(text)
        return self.answer


def test_block_requires_lines() -> None:
    with pytest.raises(ValueError):
        CodeBlock([])


def test_block_requires_contiguous_lines() -> None:
    lines = from_source("a\nb\nc\n")
    with pytest.raises(ValueError, match="contiguous"):
        CodeBlock([lines[0], lines[2]])


def test_indent_is_minimum_of_visible_lines_and_cached() -> None:
    lines = from_source("def a\n  b\nend\n")
    block = CodeBlock(lines)
    assert block.indent == 0

    lines[0].mark_invisible()
    lines[2].mark_invisible()
    assert block.indent == 0

    block.invalidate()
    assert block.indent == 2


def test_blank_block_is_valid_without_oracle() -> None:
    oracle = RecordingOracle(answer=False)
    block = CodeBlock(from_source("\n   \n"))

    assert block.indent == 0
    assert block.is_valid(oracle)
    assert oracle.seen == []


def test_validity_is_memoised_until_invalidated() -> None:
    oracle = RecordingOracle()
    block = CodeBlock(from_source("x\n"))

    assert block.is_valid(oracle)
    assert block.is_valid(oracle)
    assert len(oracle.seen) == 1
    assert block.validity is Validity.VALID

    block.invalidate()
    assert block.validity is Validity.UNKNOWN
    block.is_valid(oracle)
    assert len(oracle.seen) == 2


def test_known_validity_skips_oracle() -> None:
    oracle = RecordingOracle()
    block = CodeBlock(from_source("end\n"), validity=Validity.INVALID)

    assert not block.is_valid(oracle)
    assert oracle.seen == []


def test_oracle_only_sees_visible_lines() -> None:
    lines = from_source("def a\n  b\n\nend\n")
    lines[1].mark_invisible()
    oracle = RecordingOracle()

    CodeBlock(lines).is_valid(oracle)

    assert oracle.seen == ["def a\nend\n"]


def test_mark_invisible_hides_shared_lines() -> None:
    lines = from_source("a\nb\nc\n")
    inner = CodeBlock(lines[1:2])
    outer = CodeBlock(lines)

    inner.mark_invisible()

    assert inner.is_hidden
    assert not outer.is_hidden
    assert outer.text == "a\nc\n"
    assert outer.source == "a\nb\nc\n"


def test_priority_key_orders_deepest_then_earliest() -> None:
    keys = [PriorityKey(0, 1), PriorityKey(2, 5), PriorityKey(2, 3), PriorityKey(4, 9)]
    assert sorted(keys) == [
        PriorityKey(4, 9),
        PriorityKey(2, 3),
        PriorityKey(2, 5),
        PriorityKey(0, 1),
    ]


def test_order_key_and_labels() -> None:
    lines = from_source("a\n  b\n  c\n")
    block = CodeBlock(lines[1:])

    assert block.order_key == PriorityKey(2, 2)
    assert (block.starts_at, block.ends_at, len(block)) == (2, 3, 2)
    assert str(block) == "lines 2-3"
    assert str(CodeBlock(lines[:1])) == "line 1"
