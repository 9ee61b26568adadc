"""Locate hook calls and the suppression comment trailing each one."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from tree_sitter import Node

from strict_hooks.analyzer.annotations import Directive, parse_directive
from strict_hooks.config import LintConfig
from strict_hooks.ir.javascript import (
    CALLBACK_TYPES,
    SourceUnit,
    end_line_of,
    enclosing_statement,
    line_of,
    named_children,
    walk,
)


@dataclass(frozen=True)
class CallSite:
    node: Node                  # call_expression
    hook: str                   # "useEffect", also for `React.useEffect`
    callback: Node | None       # arrow/function expression passed first
    deps: Node | None           # second argument, any shape
    binding: str | None         # `const handleClick = useCallback(...)`
    statement: Node | None      # enclosing expression statement / declaration

    @property
    def line(self) -> int:
        return line_of(self.node)


@dataclass(frozen=True)
class SuppressionComment:
    node: Node
    value: str                  # text after `//`
    directive: Directive

    @property
    def line(self) -> int:
        return line_of(self.node)


def hook_name(call: Node, unit: SourceUnit) -> str | None:
    """Name of the called hook for `useX(...)` and `Namespace.useX(...)`."""
    callee = call.child_by_field_name("function")
    if callee is None:
        return None
    if callee.type == "identifier":
        return unit.text(callee)
    if callee.type == "member_expression":
        obj = callee.child_by_field_name("object")
        prop = callee.child_by_field_name("property")
        if obj is not None and obj.type == "identifier" \
                and prop is not None and prop.type == "property_identifier":
            return unit.text(prop)
    return None


def _binding_name(call: Node, unit: SourceUnit) -> str | None:
    parent = call.parent
    if parent is None or parent.type != "variable_declarator":
        return None
    name = parent.child_by_field_name("name")
    if name is not None and name.type == "identifier":
        return unit.text(name)
    return None


def make_call_site(call: Node, hook: str, unit: SourceUnit) -> CallSite:
    args_node = call.child_by_field_name("arguments")
    args = named_children(args_node) if args_node is not None else []
    callback = args[0] if args and args[0].type in CALLBACK_TYPES else None
    deps = args[1] if len(args) > 1 else None
    return CallSite(
        node=call,
        hook=hook,
        callback=callback,
        deps=deps,
        binding=_binding_name(call, unit),
        statement=enclosing_statement(call),
    )


def iter_call_sites(unit: SourceUnit, config: LintConfig) -> Iterator[CallSite]:
    """Every enabled hook call in source order."""
    for node in walk(unit.root):
        if node.type != "call_expression":
            continue
        name = hook_name(node, unit)
        if name is None or not config.is_hook_enabled(name):
            continue
        yield make_call_site(node, name, unit)


def find_suppression_comment(
    site: CallSite,
    unit: SourceUnit,
    rule: str,
    directives: dict[int, Directive] | None = None,
) -> SuppressionComment | None:
    """`// eslint-disable-line <rule>` on the last line of the call's statement."""
    if site.statement is None:
        return None
    line = end_line_of(site.statement)
    for comment in unit.line_comments_on(line):
        if comment.start_byte < site.node.end_byte:
            continue
        if directives is not None and comment.start_byte in directives:
            directive = directives[comment.start_byte]
        else:
            directive = parse_directive(unit.comment_value(comment), line_of(comment))
        if directive is not None and directive.kind == "eslint-disable-line" \
                and directive.names(rule):
            return SuppressionComment(
                node=comment, value=unit.comment_value(comment), directive=directive,
            )
    return None


def collect_directives(unit: SourceUnit) -> dict[int, Directive]:
    """All directive comments of the unit keyed by comment start byte."""
    found: dict[int, Directive] = {}
    for comment in unit.comments():
        directive = parse_directive(unit.comment_value(comment), line_of(comment))
        if directive is not None:
            found[comment.start_byte] = directive
    return found
