"""Self-balancing search tree with lazy deletion.

The tree follows the AVL discipline: after every insertion the path back to
the root is rebalanced with single or double rotations so that, at every
node, the heights of the two subtrees differ by at most one.  Removal never
restructures the tree.  The node is tombstoned instead and an insert with an
equal key later revives the same slot.

Two key types are used by the search:

* :class:`IntervalKey` orders line ranges by ``(start, end)`` and backs the
  interval index of the indent tree.
* ``PriorityKey`` (see :mod:`syntax_search.code_block`) orders candidate
  blocks deepest first and backs the search frontier.

Any totally ordered key works.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterator, List, Optional, Tuple, TypeVar

K = TypeVar("K")
V = TypeVar("V")


@dataclass(frozen=True, order=True, slots=True)
class IntervalKey:
    """Closed line range ordered by ``(start, end)``."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.end < self.start - 1:
            raise ValueError(f"invalid interval {self.start}..{self.end}")

    def contains(self, number: int) -> bool:
        return self.start <= number <= self.end

    def __str__(self) -> str:
        return f"{self.start}..{self.end}"


@dataclass(slots=True)
class SearchNode(Generic[K, V]):
    """Tree node carrying a key, a payload and a tombstone flag.

    ``live`` counts the untombstoned nodes of the subtree rooted here, so
    lookups for the smallest live key can skip dead subtrees.
    """

    key: K
    payload: V
    height: int = 1
    live: int = 1
    left: Optional["SearchNode[K, V]"] = None
    right: Optional["SearchNode[K, V]"] = None
    deleted: bool = False


def _height(node: Optional[SearchNode]) -> int:
    return 0 if node is None else node.height


def _live_count(node: Optional[SearchNode]) -> int:
    return 0 if node is None else node.live


def _update(node: SearchNode) -> None:
    node.height = max(_height(node.left), _height(node.right)) + 1
    node.live = _live_count(node.left) + _live_count(node.right) + (0 if node.deleted else 1)


class BalancedSearchTree(Generic[K, V]):
    """Ordered map with AVL rebalancing and tombstone removal."""

    __slots__ = ("_root",)

    def __init__(self) -> None:
        self._root: Optional[SearchNode[K, V]] = None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def insert(self, key: K, payload: V) -> None:
        """Insert *payload* under *key*, reviving a tombstoned slot if any."""

        self._root = self._insert(self._root, key, payload)

    def _insert(
        self, node: Optional[SearchNode[K, V]], key: K, payload: V
    ) -> SearchNode[K, V]:
        if node is None:
            return SearchNode(key, payload)

        if key < node.key:
            node.left = self._insert(node.left, key, payload)
        elif node.key < key:
            node.right = self._insert(node.right, key, payload)
        else:
            node.deleted = False
            node.payload = payload
            _update(node)
            return node

        return self._balance(node)

    def remove(self, key: K) -> bool:
        """Tombstone the node for *key*; return ``False`` when nothing was live."""

        path = self._path(key)
        if not path or path[-1].deleted:
            return False
        self._tombstone(path)
        return True

    def pop_min(self) -> Optional[Tuple[K, V]]:
        """Tombstone and return the smallest live ``(key, payload)`` pair."""

        path = self._min_path()
        if not path:
            return None
        node = path[-1]
        self._tombstone(path)
        return node.key, node.payload

    @staticmethod
    def _tombstone(path: List[SearchNode[K, V]]) -> None:
        path[-1].deleted = True
        for node in path:
            node.live -= 1

    # ------------------------------------------------------------------
    # Rotations
    # ------------------------------------------------------------------
    def _balance(self, node: SearchNode[K, V]) -> SearchNode[K, V]:
        _update(node)
        left_height = _height(node.left)
        right_height = _height(node.right)

        if left_height - right_height == 2:
            assert node.left is not None
            if _height(node.left.right) > _height(node.left.left):
                node.left = self._rotate_left(node.left)
            return self._rotate_right(node)

        if right_height - left_height == 2:
            assert node.right is not None
            if _height(node.right.left) > _height(node.right.right):
                node.right = self._rotate_right(node.right)
            return self._rotate_left(node)

        return node

    @staticmethod
    def _rotate_left(node: SearchNode[K, V]) -> SearchNode[K, V]:
        pivot = node.right
        assert pivot is not None
        node.right = pivot.left
        pivot.left = node
        _update(node)
        _update(pivot)
        return pivot

    @staticmethod
    def _rotate_right(node: SearchNode[K, V]) -> SearchNode[K, V]:
        pivot = node.left
        assert pivot is not None
        node.left = pivot.right
        pivot.right = node
        _update(node)
        _update(pivot)
        return pivot

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def _path(self, key: K) -> List[SearchNode[K, V]]:
        """Nodes from the root down to the node for *key*; empty when absent."""

        path: List[SearchNode[K, V]] = []
        node = self._root
        while node is not None:
            path.append(node)
            if key < node.key:
                node = node.left
            elif node.key < key:
                node = node.right
            else:
                return path
        return []

    def _find(self, key: K) -> Optional[SearchNode[K, V]]:
        path = self._path(key)
        return path[-1] if path else None

    def search(self, key: K) -> Optional[V]:
        """Return the payload stored under *key*, or ``None``."""

        node = self._find(key)
        if node is None or node.deleted:
            return None
        return node.payload

    def __contains__(self, key: object) -> bool:
        node = self._find(key)  # type: ignore[arg-type]
        return node is not None and not node.deleted

    def __len__(self) -> int:
        return _live_count(self._root)

    def __bool__(self) -> bool:
        return _live_count(self._root) > 0

    def _min_path(self) -> List[SearchNode[K, V]]:
        # Tombstones can sit anywhere, so descend by live counts, not leftmost.
        path: List[SearchNode[K, V]] = []
        node = self._root
        while node is not None and node.live:
            path.append(node)
            if _live_count(node.left):
                node = node.left
            elif not node.deleted:
                return path
            else:
                node = node.right
        return []

    def min_item(self) -> Optional[Tuple[K, V]]:
        path = self._min_path()
        return (path[-1].key, path[-1].payload) if path else None

    def _in_order(self, node: Optional[SearchNode[K, V]]) -> Iterator[SearchNode[K, V]]:
        stack: List[SearchNode[K, V]] = []
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node
            node = node.right

    def items(self) -> Iterator[Tuple[K, V]]:
        """Yield live ``(key, payload)`` pairs in key order."""

        for node in self._in_order(self._root):
            if not node.deleted:
                yield node.key, node.payload

    def keys(self) -> Iterator[K]:
        for key, _ in self.items():
            yield key

    def walk(self) -> Iterator[SearchNode[K, V]]:
        """Pre-order traversal (node, left, right) including tombstones."""

        stack: List[SearchNode[K, V]] = [] if self._root is None else [self._root]
        while stack:
            node = stack.pop()
            yield node
            if node.right is not None:
                stack.append(node.right)
            if node.left is not None:
                stack.append(node.left)

    @property
    def height(self) -> int:
        return _height(self._root)

    def is_balanced(self) -> bool:
        """Recompute heights and live counts and check the AVL invariant."""

        def check(node: Optional[SearchNode[K, V]]) -> tuple[bool, int, int]:
            if node is None:
                return True, 0, 0
            left_ok, left_height, left_live = check(node.left)
            right_ok, right_height, right_live = check(node.right)
            height = max(left_height, right_height) + 1
            live = left_live + right_live + (0 if node.deleted else 1)
            ok = (
                left_ok
                and right_ok
                and abs(left_height - right_height) <= 1
                and height == node.height
                and live == node.live
            )
            return ok, height, live

        balanced, _, _ = check(self._root)
        return balanced

    def render(self) -> str:
        """Pre-order dump, one node per line, indented by depth.

        Tombstoned nodes carry a ``(D)`` suffix.  When a node has exactly one
        child the missing side is shown as ``·`` so left and right stay
        distinguishable.
        """

        if self._root is None:
            return "<empty>"

        rows: List[str] = []

        def visit(node: Optional[SearchNode[K, V]], depth: int) -> None:
            pad = "  " * depth
            if node is None:
                rows.append(f"{pad}·")
                return
            suffix = " (D)" if node.deleted else ""
            rows.append(f"{pad}{node.key}{suffix}")
            if node.left is None and node.right is None:
                return
            visit(node.left, depth + 1)
            visit(node.right, depth + 1)

        visit(self._root, 0)
        return "\n".join(rows)


__all__ = ["BalancedSearchTree", "IntervalKey", "SearchNode"]
