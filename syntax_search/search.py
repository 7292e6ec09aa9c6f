"""Frontier driven search for the smallest invalid blocks.

Every indentation grouping of the document is pushed onto a frontier ordered
deepest first, then earliest.  Popping a grouping asks the oracle about its
visible lines:

* valid groupings are folded away (their lines become invisible, so every
  enclosing check only sees what is still unexplained);
* an invalid grouping first tries to absorb its opener and closer from the
  enclosing grouping, which repairs bodies that are only invalid out of
  context.  A body that never returns to its own level takes the nearest
  closer below it, the way a parser pairs them;
* a grouping that stays invalid is refined into segments of its own lines in
  one left to right pass.  A line that is valid on its own is a segment, a
  line that closes the most recent unmatched line forms a segment with it,
  and whatever is left unmatched becomes a single-line segment.  Segments go
  back on the frontier and the single-line invalid ones are the answer.

Each line costs at most two oracle calls during refinement and each grouping
a constant number more, so the number of calls grows linearly with the
document.  Each grouping is refined at most once and segments are never
refined, so the loop terminates.  Ties are broken by the frontier key, so
identical input always yields identical output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, TextIO, Tuple, Union

from .code_block import CodeBlock, PriorityKey
from .code_line import CodeLine, from_source
from .indent_tree import IndentTree, Leaning, TreeNode, build_indent_tree
from .interval_tree import BalancedSearchTree
from .oracle import CallCounter, Oracle, as_oracle

logger = logging.getLogger(__name__)

Source = Union[str, TextIO, Sequence[CodeLine]]


@dataclass(frozen=True, slots=True)
class FrontierEntry:
    """A candidate block; ``node`` is ``None`` for terminal segments."""

    block: CodeBlock
    node: Optional[TreeNode] = None

    @property
    def is_segment(self) -> bool:
        return self.node is None


def build_frontier(tree: IndentTree) -> BalancedSearchTree[PriorityKey, FrontierEntry]:
    """Seed a frontier with every non-empty grouping of *tree*."""

    frontier: BalancedSearchTree[PriorityKey, FrontierEntry] = BalancedSearchTree()
    for node in tree.groupings():
        if node.start > node.end:
            continue
        block = CodeBlock(tree.lines_of(node))
        frontier.insert(block.order_key, FrontierEntry(block, node))
    return frontier


@dataclass(frozen=True)
class SearchResult:
    lines: Sequence[CodeLine]
    tree: Optional[IndentTree]
    invalid_blocks: Tuple[CodeBlock, ...]
    oracle_calls: int
    document_valid: bool

    @property
    def found(self) -> bool:
        return bool(self.invalid_blocks)

    def summary(self) -> str:
        if not self.lines:
            return "Empty document"
        if not self.found:
            return f"No invalid block found ({self.oracle_calls} oracle calls)"
        where = ", ".join(str(block) for block in self.invalid_blocks)
        return f"Invalid {where} ({self.oracle_calls} oracle calls)"


def _as_lines(source: Source) -> List[CodeLine]:
    if isinstance(source, str) or hasattr(source, "read"):
        return from_source(source)  # type: ignore[arg-type]
    return list(source)  # type: ignore[arg-type]


class CodeSearch:
    """Locate minimal invalid blocks in *source* using *oracle*."""

    def __init__(self, source: Source, oracle: Oracle | object) -> None:
        self.lines = _as_lines(source)
        self.oracle = CallCounter(as_oracle(oracle))
        self.tree: Optional[IndentTree] = None
        self._invalid: List[CodeBlock] = []

    def call(self) -> SearchResult:
        if not self.lines:
            logger.debug("Empty document, nothing to search")
            return self._result(document_valid=True)

        if CodeBlock(self.lines).is_valid(self.oracle):
            logger.debug("Document is valid as a whole")
            return self._result(document_valid=True)

        self.tree = build_indent_tree(self.lines)
        frontier = build_frontier(self.tree)
        while True:
            popped = frontier.pop_min()
            if popped is None:
                break
            key, entry = popped
            logger.debug("Frontier pop %s (%s)", key, entry.block)
            self._step(entry, frontier)

        result = self._result(document_valid=False)
        logger.info("Search finished: %s", result.summary())
        return result

    def _result(self, *, document_valid: bool) -> SearchResult:
        blocks = tuple(sorted(self._invalid, key=lambda block: block.starts_at))
        return SearchResult(
            lines=self.lines,
            tree=self.tree,
            invalid_blocks=blocks,
            oracle_calls=self.oracle.calls,
            document_valid=document_valid,
        )

    # ------------------------------------------------------------------
    # Frontier steps
    # ------------------------------------------------------------------
    def _step(
        self, entry: FrontierEntry, frontier: BalancedSearchTree[PriorityKey, FrontierEntry]
    ) -> None:
        block = entry.block
        if block.is_valid(self.oracle):
            block.mark_invisible()
            return

        if entry.node is None:
            self._record(block)
            return

        absorbed = self._absorb(entry.node)
        if absorbed is not None:
            logger.debug("Absorbed neighbours into %s", absorbed)
            absorbed.mark_invisible()
            return

        for segment in self._segment(entry.node):
            frontier.insert(segment.order_key, FrontierEntry(segment))

    def _record(self, block: CodeBlock) -> None:
        logger.info("Invalid %s: %s", block, block.source.strip())
        self._invalid.append(block)
        block.mark_invisible()

    def _block(self, start: int, end: int) -> CodeBlock:
        return CodeBlock(self.lines[start - 1:end])

    def _neighbour(self, numbers: range, indent: int) -> Optional[CodeLine]:
        for number in numbers:
            line = self.lines[number - 1]
            if line.is_visible and not line.is_empty and line.indent < indent:
                return line
        return None

    def _absorb(self, node: TreeNode) -> Optional[CodeBlock]:
        """Grow *node* by its opener and/or closer inside the parent grouping."""

        assert self.tree is not None
        parent = self.tree.parent(node)
        if parent is None:
            return None

        before = self._neighbour(range(node.start - 1, parent.start - 1, -1), node.indent)
        after = self._neighbour(range(node.end + 1, parent.end + 1), node.indent)

        spans: List[Tuple[int, int]] = []
        if node.leaning is Leaning.LEFT and after is not None:
            spans.append((node.start, after.number))
        if node.leaning is Leaning.RIGHT and before is not None and before.indent > parent.indent:
            spans.append((before.number, node.end))
        if before is not None or after is not None:
            both = (
                node.start if before is None else before.number,
                node.end if after is None else after.number,
            )
            if both not in spans:
                spans.append(both)

        for start, end in spans:
            block = self._block(start, end)
            if block.is_valid(self.oracle):
                return block
        return None

    def _segment(self, node: TreeNode) -> List[CodeBlock]:
        """Split the visible own lines of *node* into terminal segments."""

        assert self.tree is not None
        units = [
            child
            for child in self.tree.children(node)
            if child.is_leaf
            and self.lines[child.start - 1].is_visible
            and not self.lines[child.start - 1].is_empty
        ]
        segments: List[CodeBlock] = []
        unmatched: List[CodeBlock] = []
        for unit in units:
            alone = self._block(unit.start, unit.end)
            if alone.is_valid(self.oracle):
                segments.append(alone)
                continue
            if unmatched:
                pair = self._block(unmatched[-1].starts_at, unit.end)
                if pair.is_valid(self.oracle):
                    unmatched.pop()
                    segments.append(pair)
                    continue
            unmatched.append(alone)
        segments.extend(unmatched)
        logger.debug("Refined %d..%d into %d segments", node.start, node.end, len(segments))
        return segments


def search(source: Source, oracle: Oracle | object) -> SearchResult:
    """Convenience wrapper around :class:`CodeSearch`."""

    return CodeSearch(source, oracle).call()


__all__ = ["CodeSearch", "FrontierEntry", "SearchResult", "build_frontier", "search"]
