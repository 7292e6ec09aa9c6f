"""Locate the lines responsible for unbalanced blocks in source code."""

from .annotate import Report, annotate, annotate_error, build_report, pathname_from_message
from .code_block import CodeBlock, PriorityKey, Validity
from .code_line import CodeLine, from_source
from .context import CaptureCodeContext, capture_context
from .indent_tree import IndentTree, Leaning, TreeNode, build_indent_tree
from .interval_tree import BalancedSearchTree, IntervalKey
from .oracle import (
    CallCounter,
    DelimiterLanguage,
    DelimiterOracle,
    Oracle,
    OracleUnavailable,
    PredicateOracle,
)
from .search import CodeSearch, SearchResult, build_frontier, search

__version__ = "0.1.0"

__all__ = [
    "BalancedSearchTree",
    "CallCounter",
    "CaptureCodeContext",
    "CodeBlock",
    "CodeLine",
    "CodeSearch",
    "DelimiterLanguage",
    "DelimiterOracle",
    "IndentTree",
    "IntervalKey",
    "Leaning",
    "Oracle",
    "OracleUnavailable",
    "PredicateOracle",
    "PriorityKey",
    "Report",
    "SearchResult",
    "TreeNode",
    "Validity",
    "annotate",
    "annotate_error",
    "build_frontier",
    "build_indent_tree",
    "build_report",
    "capture_context",
    "from_source",
    "pathname_from_message",
    "search",
]
