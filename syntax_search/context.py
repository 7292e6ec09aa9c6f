"""Expand invalid blocks into a readable excerpt.

An invalid line on its own rarely tells the reader where they are.  For each
block the capture adds:

* the opener and closer of every enclosing grouping (the nearest shallower
  line above and below it), up to the top level;
* when the block opens a body, the first line of that body and the line that
  brings the indentation back to the block's level;
* the nearest balanced run of sibling lines before the block and the nearest
  one after it.  Siblings are the lines sitting directly in the block's own
  grouping, so a flat ``def``/``end`` next to the block counts as well.  A
  run grows one sibling at a time until the oracle accepts it; a run that
  never balances is shown whole.  A block that closes a deeper body only
  looks backwards, since that body is where it belongs.

Lines are looked up in the full document, hidden or not, deduplicated and
returned in line order.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Set, Tuple

from .code_block import CodeBlock
from .code_line import CodeLine
from .indent_tree import IndentTree, TreeNode, build_indent_tree
from .oracle import DelimiterOracle, Oracle, as_oracle


class CaptureCodeContext:
    def __init__(
        self,
        blocks: Iterable[CodeBlock],
        lines: Sequence[CodeLine],
        tree: Optional[IndentTree] = None,
        oracle: Oracle | object | None = None,
    ) -> None:
        self.blocks = list(blocks)
        self.lines = list(lines)
        self.tree = tree if tree is not None else build_indent_tree(self.lines)
        self.oracle = DelimiterOracle() if oracle is None else as_oracle(oracle)
        self._numbers: Set[int] = set()
        self._result: Optional[List[CodeLine]] = None

    def call(self) -> List[CodeLine]:
        if self._result is None:
            for block in self.blocks:
                self._capture(block)
            self._result = [self.lines[number - 1] for number in sorted(self._numbers)]
        return self._result

    def as_pairs(self) -> List[Tuple[int, str]]:
        """``(line_number, text)`` pairs for a renderer."""

        return [(line.number, line.text) for line in self.call()]

    # ------------------------------------------------------------------
    def _add(self, number: Optional[int]) -> None:
        if number is not None and not self.lines[number - 1].is_empty:
            self._numbers.add(number)

    def _capture(self, block: CodeBlock) -> None:
        for line in block.lines:
            self._add(line.number)

        leaf = self.tree.leaf_for(block.starts_at)
        home = None if leaf is None else self.tree.parent(leaf)
        if home is None:
            return

        self._capture_enclosing(home)
        self._capture_body(block)

        siblings = self._siblings(home)
        before = [number for number in reversed(siblings) if number < block.starts_at]
        self._capture_run(before)
        if not self._closes_body(block):
            self._capture_run([number for number in siblings if number > block.ends_at])

    def _capture_enclosing(self, node: TreeNode) -> None:
        for current in [node, *self.tree.ancestors(node)]:
            if current.is_root:
                break
            self._add(self._nearest(range(current.start - 1, 0, -1), current.indent))
            self._add(self._nearest(range(current.end + 1, len(self.lines) + 1), current.indent))

    def _capture_body(self, block: CodeBlock) -> None:
        last = self._last_content(block)
        if last is None:
            return
        following = range(block.ends_at + 1, len(self.lines) + 1)
        first = self._next_content(following)
        if first is None or self.lines[first - 1].indent <= last.indent:
            return
        self._add(first)
        self._add(self._nearest(range(first + 1, len(self.lines) + 1), last.indent + 1))

    def _capture_run(self, numbers: Sequence[int]) -> None:
        # ``numbers`` walks away from the block; the oracle sees them in source order.
        run: List[int] = []
        for number in numbers:
            run.append(number)
            text = "".join(self.lines[n - 1].text for n in sorted(run))
            if self.oracle.is_valid(text):
                break
        for number in run:
            self._add(number)

    def _closes_body(self, block: CodeBlock) -> bool:
        first = self.lines[block.starts_at - 1]
        previous = self._next_content(range(block.starts_at - 1, 0, -1))
        return previous is not None and self.lines[previous - 1].indent > first.indent

    def _siblings(self, node: TreeNode) -> List[int]:
        return [
            child.start
            for child in self.tree.children(node)
            if child.is_leaf and not self.lines[child.start - 1].is_empty
        ]

    def _last_content(self, block: CodeBlock) -> Optional[CodeLine]:
        for line in reversed(block.lines):
            if not line.is_empty:
                return line
        return None

    def _next_content(self, numbers: range) -> Optional[int]:
        for number in numbers:
            if not self.lines[number - 1].is_empty:
                return number
        return None

    def _nearest(self, numbers: range, indent: int) -> Optional[int]:
        for number in numbers:
            line = self.lines[number - 1]
            if not line.is_empty and line.indent < indent:
                return number
        return None


def capture_context(
    blocks: Iterable[CodeBlock],
    lines: Sequence[CodeLine],
    tree: Optional[IndentTree] = None,
    oracle: Oracle | object | None = None,
) -> List[CodeLine]:
    return CaptureCodeContext(blocks, lines, tree, oracle).call()


__all__ = ["CaptureCodeContext", "capture_context"]
