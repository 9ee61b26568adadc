"""What a hook callback reads vs. what its dependency array declares.

Used identifiers come from the callback scope's through-references:
reads that resolve to a declaration outside the callback. Declared
dependencies are read textually from the array literal.

Dependency tokens are plain names (``count``) or two-segment paths
(``config.url``). Whether a property read ``obj.prop`` is tracked at the
object or the property level depends on how ``obj`` was initialized:

    array literal                  -> ``obj``        (methods act on the container)
    object literal with key prop   -> ``obj.prop``
    object literal without it      -> ``obj``
    anything else                  -> ``obj.prop``   (method on a helper object)

Only the first definition of ``obj`` is inspected; reassignments are not
followed.
"""

from __future__ import annotations

import logging

from tree_sitter import Node

from strict_hooks.analyzer.call_sites import CallSite
from strict_hooks.ir.javascript import SourceUnit, line_of, end_line_of, named_children, same_node
from strict_hooks.ir.scope import Reference, ScopeManager, Variable
from strict_hooks.ir.static_values import is_static_primitive

log = logging.getLogger(__name__)

# Calls that build a fresh array: new Array(n), Array(n), Array.from(x), Array.of(...)
_ARRAY_FACTORIES = frozenset({"Array", "Array.from", "Array.of"})


# ── Declared dependencies ─────────────────────────────────────────────────


def _is_two_segment_member(node: Node) -> bool:
    obj = node.child_by_field_name("object")
    prop = node.child_by_field_name("property")
    return (
        obj is not None and obj.type == "identifier"
        and prop is not None and prop.type == "property_identifier"
    )


def declared_dependencies(site: CallSite, unit: SourceUnit) -> set[str]:
    """Tokens written in the dependency array, verbatim."""
    deps = site.deps
    if deps is None or deps.type != "array":
        return set()
    declared: set[str] = set()
    for element in named_children(deps):
        if element.type == "identifier":
            declared.add(unit.text(element))
        elif element.type == "member_expression" and _is_two_segment_member(element):
            declared.add(unit.text(element))
    return declared


# ── Member access classification ──────────────────────────────────────────


def _member_property(ident: Node, unit: SourceUnit) -> str | None:
    """``prop`` when ``ident`` is the object of a non-computed read ``ident.prop``."""
    parent = ident.parent
    if parent is None or parent.type != "member_expression":
        return None
    if not same_node(parent.child_by_field_name("object"), ident):
        return None
    prop = parent.child_by_field_name("property")
    if prop is None or prop.type != "property_identifier":
        return None
    return unit.text(prop)


def _first_initializer(var: Variable) -> Node | None:
    if not var.defs:
        return None
    return var.defs[0].init


def _unwrap(node: Node) -> Node:
    while node.type == "parenthesized_expression":
        inner = named_children(node)
        if len(inner) != 1:
            break
        node = inner[0]
    return node


def initializer_shape(init: Node | None, unit: SourceUnit) -> str:
    """"array", "object" or "other"."""
    if init is None:
        return "other"
    init = _unwrap(init)
    if init.type == "array":
        return "array"
    if init.type == "object":
        return "object"
    if init.type in ("new_expression", "call_expression"):
        field = "constructor" if init.type == "new_expression" else "function"
        callee = init.child_by_field_name(field)
        if callee is not None and unit.text(callee) in _ARRAY_FACTORIES:
            return "array"
    return "other"


def object_literal_keys(obj: Node, unit: SourceUnit) -> set[str]:
    """Own identifier keys of an object literal: `{a: 1, b, c() {}}` -> {a, b, c}."""
    keys: set[str] = set()
    for child in named_children(obj):
        if child.type == "pair":
            key = child.child_by_field_name("key")
            if key is not None and key.type == "property_identifier":
                keys.add(unit.text(key))
        elif child.type == "shorthand_property_identifier":
            keys.add(unit.text(child))
        elif child.type == "method_definition":
            name = child.child_by_field_name("name")
            if name is not None and name.type == "property_identifier":
                keys.add(unit.text(name))
    return keys


def classify_member_access(ref: Reference, prop: str, unit: SourceUnit) -> str:
    """Dependency token for a resolved ``obj.prop`` read."""
    obj = ref.name
    init = _first_initializer(ref.resolved) if ref.resolved is not None else None
    shape = initializer_shape(init, unit)
    if shape == "array":
        return obj
    if shape == "object":
        return f"{obj}.{prop}" if prop in object_literal_keys(_unwrap(init), unit) else obj
    return f"{obj}.{prop}"


# ── Used identifiers ──────────────────────────────────────────────────────


def used_identifiers(site: CallSite, unit: SourceUnit, manager: ScopeManager) -> set[str]:
    """Dependency tokens the callback closes over.

    Excludes globals, unresolved names, names that fold to a string /
    number / boolean, the hook itself and the variable the call is
    assigned to. Expression-bodied callbacks are not analyzed.
    """
    callback = site.callback
    if callback is None:
        return set()
    body = callback.child_by_field_name("body")
    if body is None or body.type != "statement_block":
        return set()
    scope = manager.acquire(callback)
    if scope is None:
        return set()

    start, end = line_of(body), end_line_of(body)
    deps: set[str] = set()

    for ref in scope.through:
        name = ref.name
        if ref.line < start or ref.line > end:
            continue
        if name == site.hook or name == site.binding:
            continue
        if ref.is_global:
            continue
        if is_static_primitive(ref.identifier, ref.scope, manager):
            continue
        if ref.resolved is None:
            continue

        prop = _member_property(ref.identifier, unit)
        if prop is not None:
            deps.add(classify_member_access(ref, prop, unit))
        else:
            deps.add(name)

    log.debug("%s at line %d uses %s", site.hook, site.line, sorted(deps))
    return deps
