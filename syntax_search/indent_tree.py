"""Indentation tree built from a flat list of lines.

The builder walks the document once with a stack of open groupings.  A line
at the indentation of the innermost open grouping continues it, a deeper line
opens a child grouping and a shallower line closes groupings until one at (or
above) its level is on top of the stack.  A line that dedents only part of
the way, landing between two open levels, is a ragged closer: it stays a
line of the shallower grouping instead of opening a new one.  Every line
also becomes a leaf of the grouping it lands in, so the children of a
grouping exactly partition its line range.

Nodes live in a flat arena and refer to each other by index; the parent link
is an integer rather than an object reference.

Each grouping is classified when it closes:

* ``LEFT``: its last non-empty child is a deeper grouping, so the body never
  comes back to the grouping's own level; a closer is missing.
* ``RIGHT``: a line at the grouping's own level follows a ragged closer,
  either its own or the one ending the child grouping before it.  The ragged
  line already closed that body, so the later one is a surplus closer.
* ``EQUAL``: anything else.

The builder never raises; odd indentation just produces leaning groupings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterator, List, Optional, Sequence

from .code_line import CodeLine
from .interval_tree import BalancedSearchTree, IntervalKey

if TYPE_CHECKING:  # pragma: no cover - import is for type checking only
    import networkx as nx  # type: ignore[import-not-found,import-untyped]

    NxDiGraph = nx.DiGraph
else:  # pragma: no cover - alias keeps runtime dependency optional
    NxDiGraph = Any

logger = logging.getLogger(__name__)


class Leaning(Enum):
    EQUAL = "equal"
    LEFT = "left"
    RIGHT = "right"


@dataclass(slots=True)
class TreeNode:
    """Arena entry for one leaf line or one indentation grouping."""

    index: int
    start: int
    end: int
    indent: int
    parent: Optional[int] = None
    inner: List[int] = field(default_factory=list)
    grouping: bool = False
    leaning: Leaning = Leaning.EQUAL

    @property
    def is_leaf(self) -> bool:
        return not self.grouping

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def interval(self) -> IntervalKey:
        return IntervalKey(self.start, self.end)

    def __len__(self) -> int:
        return self.end - self.start + 1


class IndentTree:
    """Read-only view over the arena produced by :func:`build_indent_tree`."""

    def __init__(self, lines: Sequence[CodeLine], nodes: List[TreeNode]) -> None:
        self._lines = list(lines)
        self._nodes = nodes
        self._index: BalancedSearchTree[IntervalKey, int] = BalancedSearchTree()
        # Leaves go in last so a single-line grouping resolves to its leaf.
        for node in nodes:
            if node.grouping and node.start <= node.end:
                self._index.insert(node.interval, node.index)
        for node in nodes:
            if node.is_leaf:
                self._index.insert(node.interval, node.index)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    @property
    def lines(self) -> Sequence[CodeLine]:
        return self._lines

    @property
    def nodes(self) -> Sequence[TreeNode]:
        return self._nodes

    @property
    def root(self) -> TreeNode:
        return self._nodes[0]

    def node(self, index: int) -> TreeNode:
        return self._nodes[index]

    def parent(self, node: TreeNode) -> Optional[TreeNode]:
        return None if node.parent is None else self._nodes[node.parent]

    def children(self, node: TreeNode) -> List[TreeNode]:
        return [self._nodes[index] for index in node.inner]

    def ancestors(self, node: TreeNode) -> Iterator[TreeNode]:
        """Yield the parent of *node*, then its parent, up to the root."""

        current = self.parent(node)
        while current is not None:
            yield current
            current = self.parent(current)

    def groupings(self) -> List[TreeNode]:
        return [node for node in self._nodes if node.grouping]

    def lines_of(self, node: TreeNode) -> List[CodeLine]:
        return self._lines[node.start - 1:node.end]

    def leaf_for(self, number: int) -> Optional[TreeNode]:
        index = self._index.search(IntervalKey(number, number))
        return None if index is None else self._nodes[index]

    def node_for_range(self, start: int, end: int) -> Optional[TreeNode]:
        index = self._index.search(IntervalKey(start, end))
        return None if index is None else self._nodes[index]

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------
    def verify(self) -> None:
        """Raise ``AssertionError`` when children do not partition a grouping."""

        root = self.root
        if (root.start, root.end) != (1, len(self._lines)):
            raise AssertionError(
                f"root covers {root.start}..{root.end} but document has {len(self._lines)} lines"
            )
        for node in self._nodes:
            if not node.inner:
                continue
            expected = node.start
            for child in self.children(node):
                if child.parent != node.index:
                    raise AssertionError(f"node {child.index} has wrong parent")
                if child.start != expected:
                    raise AssertionError(
                        f"gap or overlap at line {expected} in {node.start}..{node.end}"
                    )
                expected = child.end + 1
            if expected != node.end + 1:
                raise AssertionError(f"children of {node.start}..{node.end} stop at {expected - 1}")

    def render(self) -> str:
        """Debug dump of the tree, one node per row."""

        rows: List[str] = []

        def visit(node: TreeNode, depth: int) -> None:
            pad = "  " * depth
            if node.is_leaf:
                text = self._lines[node.start - 1].text.rstrip("\r\n")
                rows.append(f"{pad}{node.start}: {text.strip()}")
                return
            rows.append(
                f"{pad}[{node.start}..{node.end}] indent={node.indent} {node.leaning.value}"
            )
            for child in self.children(node):
                visit(child, depth + 1)

        visit(self.root, 0)
        return "\n".join(rows)

    def to_networkx(self) -> NxDiGraph:
        """Return the tree as a NetworkX ``DiGraph`` keyed by node index."""

        try:
            import networkx as nx  # type: ignore[import-not-found]
        except ImportError as exc:  # pragma: no cover - exercised when missing
            raise ModuleNotFoundError(
                "NetworkX is required for graph export. Install it via 'pip install networkx'."
            ) from exc

        graph = nx.DiGraph()
        for node in self._nodes:
            graph.add_node(
                node.index,
                start=node.start,
                end=node.end,
                indent=node.indent,
                kind="grouping" if node.grouping else "leaf",
                leaning=node.leaning.value,
            )
            if node.parent is not None:
                graph.add_edge(node.parent, node.index)
        return graph


class _Builder:
    def __init__(self, lines: Sequence[CodeLine]) -> None:
        self.lines = lines
        self.nodes: List[TreeNode] = []

    def _new(self, **kwargs: Any) -> TreeNode:
        node = TreeNode(index=len(self.nodes), **kwargs)
        self.nodes.append(node)
        return node

    def _open(self, indent: int, start: int, parent: Optional[TreeNode]) -> TreeNode:
        node = self._new(
            start=start,
            end=start - 1,
            indent=indent,
            parent=None if parent is None else parent.index,
            grouping=True,
        )
        if parent is not None:
            parent.inner.append(node.index)
        return node

    def _content(self, node: TreeNode) -> List[TreeNode]:
        """Children of *node* without blank leaves."""

        children = (self.nodes[index] for index in node.inner)
        return [
            child
            for child in children
            if child.grouping or not self.lines[child.start - 1].is_empty
        ]

    def _ends_ragged(self, node: TreeNode) -> bool:
        content = self._content(node)
        return bool(content) and content[-1].is_leaf and content[-1].indent > node.indent

    def _close(self, node: TreeNode) -> None:
        if node.inner:
            node.start = self.nodes[node.inner[0]].start
            node.end = self.nodes[node.inner[-1]].end

        content = self._content(node)
        if content and content[-1].grouping:
            node.leaning = Leaning.LEFT
            return

        node.leaning = Leaning.EQUAL
        for previous, child in zip(content, content[1:]):
            if child.grouping or child.indent != node.indent:
                continue
            if previous.grouping:
                ragged = self._ends_ragged(previous)
            else:
                ragged = previous.indent > node.indent
            if ragged:
                node.leaning = Leaning.RIGHT
                return

    def build(self) -> IndentTree:
        indents = [line.indent for line in self.lines if not line.is_empty]
        root = self._open(min(indents) if indents else 0, 1, None)
        stack = [root]
        previous_indent: Optional[int] = None

        for line in self.lines:
            if not line.is_empty:
                while line.indent < stack[-1].indent:
                    self._close(stack.pop())
                deeper = previous_indent is None or line.indent > previous_indent
                # A partial dedent is a ragged closer and stays on the enclosing level.
                if line.indent > stack[-1].indent and deeper:
                    stack.append(self._open(line.indent, line.number, stack[-1]))
                previous_indent = line.indent
            top = stack[-1]
            leaf = self._new(
                start=line.number, end=line.number, indent=line.indent, parent=top.index
            )
            top.inner.append(leaf.index)

        while stack:
            self._close(stack.pop())

        tree = IndentTree(self.lines, self.nodes)
        logger.debug("Built indent tree with %d nodes over %d lines", len(self.nodes), len(self.lines))
        return tree


def build_indent_tree(lines: Sequence[CodeLine]) -> IndentTree:
    """Group *lines* by indentation into an :class:`IndentTree`."""

    return _Builder(lines).build()


__all__ = ["IndentTree", "Leaning", "TreeNode", "build_indent_tree"]
