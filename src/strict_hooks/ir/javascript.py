"""tree-sitter frontend for JavaScript / JSX source units.

Wraps a parsed tree with the handful of queries the analyzers need:
literal node text, 1-based line numbers, comments indexed by line and the
statement that encloses a node.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterator

import tree_sitter_javascript as tsjavascript
from tree_sitter import Language, Node, Parser, Tree

log = logging.getLogger(__name__)

# Statements a trailing suppression comment can attach to
STATEMENT_TYPES = frozenset({
    "expression_statement",
    "lexical_declaration",
    "variable_declaration",
    "return_statement",
})

# Function-like nodes. "function" is the pre-0.21 grammar name of function_expression.
FUNCTION_TYPES = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "arrow_function",
    "method_definition",
})

CALLBACK_TYPES = frozenset({"arrow_function", "function_expression", "function"})


@lru_cache(maxsize=1)
def _parser() -> Parser:
    return Parser(Language(tsjavascript.language()))


def node_key(node: Node) -> tuple[int, int, str]:
    """Stable identity for a node within one tree."""
    return (node.start_byte, node.end_byte, node.type)


def line_of(node: Node) -> int:
    return node.start_point[0] + 1


def end_line_of(node: Node) -> int:
    return node.end_point[0] + 1


def same_node(a: Node | None, b: Node | None) -> bool:
    if a is None or b is None:
        return False
    return node_key(a) == node_key(b)


def named_children(node: Node) -> list[Node]:
    """Named children without interleaved comment nodes."""
    return [c for c in node.named_children if c.type != "comment"]


def walk(root: Node) -> Iterator[Node]:
    """Pre-order traversal, iterative so deep trees don't hit the recursion limit."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


@dataclass
class SourceUnit:
    """One parsed source file."""
    filename: str
    source: str
    data: bytes
    tree: Tree
    source_type: str = "module"      # "module" | "script"
    _comments: list[Node] | None = field(default=None, repr=False)

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def has_errors(self) -> bool:
        return self.root.has_error

    def text(self, node: Node) -> str:
        return self.data[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def comments(self) -> list[Node]:
        if self._comments is None:
            self._comments = [n for n in walk(self.root) if n.type == "comment"]
        return self._comments

    def line_comments_on(self, line: int) -> list[Node]:
        """`//` comments starting on the given 1-based line."""
        return [
            c for c in self.comments()
            if line_of(c) == line and self.text(c).startswith("//")
        ]

    def comment_value(self, comment: Node) -> str:
        """Comment text without its delimiters."""
        text = self.text(comment)
        if text.startswith("//"):
            return text[2:]
        if text.startswith("/*") and text.endswith("*/"):
            return text[2:-2]
        return text


def parse_source(source: str, filename: str = "<input>", source_type: str = "module") -> SourceUnit:
    """Parse JavaScript/JSX text. tree-sitter never raises on bad input; check `has_errors`."""
    data = source.encode("utf-8")
    tree = _parser().parse(data)
    unit = SourceUnit(filename=filename, source=source, data=data, tree=tree, source_type=source_type)
    if unit.has_errors:
        log.debug("Parse errors in %s; continuing with partial tree", filename)
    return unit


def enclosing_statement(node: Node) -> Node | None:
    """Closest ancestor (or self) whose type is in STATEMENT_TYPES."""
    current: Node | None = node
    while current is not None and current.type not in STATEMENT_TYPES:
        current = current.parent
    return current
