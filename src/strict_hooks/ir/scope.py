"""Lexical scope model for a parsed JavaScript unit.

An eslint-scope style binder over the tree-sitter tree. One walk collects
scopes, definitions and references; a second pass resolves every reference
against the scope chain and fills each scope's ``through`` list with the
references that escape it (its own and those of nested scopes).

Scope kinds: global, module, function, block, for, catch, class.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from tree_sitter import Node

from strict_hooks.ir.javascript import (
    FUNCTION_TYPES,
    SourceUnit,
    line_of,
    named_children,
    node_key,
    same_node,
)

log = logging.getLogger(__name__)

# Names resolved in the global scope without a declaration (es2021 + browser + node envs)
BUILTIN_GLOBALS: frozenset[str] = frozenset({
    # language
    "undefined", "NaN", "Infinity", "globalThis", "Object", "Function", "Array",
    "String", "Number", "Boolean", "Symbol", "BigInt", "Math", "JSON", "Date",
    "RegExp", "Error", "TypeError", "RangeError", "SyntaxError", "ReferenceError",
    "EvalError", "URIError", "AggregateError", "Promise", "Proxy", "Reflect",
    "Map", "Set", "WeakMap", "WeakSet", "WeakRef", "FinalizationRegistry",
    "ArrayBuffer", "SharedArrayBuffer", "DataView", "Atomics", "Int8Array",
    "Uint8Array", "Uint8ClampedArray", "Int16Array", "Uint16Array", "Int32Array",
    "Uint32Array", "Float32Array", "Float64Array", "BigInt64Array",
    "BigUint64Array", "Intl", "parseInt", "parseFloat", "isNaN", "isFinite",
    "encodeURI", "encodeURIComponent", "decodeURI", "decodeURIComponent", "eval",
    # browser
    "window", "self", "document", "navigator", "location", "history", "screen",
    "console", "alert", "confirm", "prompt", "fetch", "localStorage",
    "sessionStorage", "setTimeout", "clearTimeout", "setInterval", "clearInterval",
    "requestAnimationFrame", "cancelAnimationFrame", "requestIdleCallback",
    "cancelIdleCallback", "queueMicrotask", "structuredClone", "performance",
    "crypto", "atob", "btoa", "URL", "URLSearchParams", "AbortController",
    "AbortSignal", "Headers", "Request", "Response", "FormData", "Blob", "File",
    "FileReader", "Image", "Event", "CustomEvent", "EventTarget", "HTMLElement",
    "Element", "Node", "WebSocket", "XMLHttpRequest", "IntersectionObserver",
    "ResizeObserver", "MutationObserver", "getComputedStyle", "matchMedia",
    "scrollTo", "innerWidth", "innerHeight", "addEventListener",
    "removeEventListener", "dispatchEvent",
    # node
    "process", "require", "module", "exports", "global", "Buffer", "__dirname",
    "__filename", "setImmediate", "clearImmediate",
})

_DECLARATION_FUNCTIONS = frozenset({"function_declaration", "generator_function_declaration"})
_EXPRESSION_FUNCTIONS = frozenset({"function_expression", "function", "generator_function"})
_CLASS_TYPES = frozenset({"class_declaration", "class"})
_JSX_TAGS = frozenset({"jsx_opening_element", "jsx_closing_element", "jsx_self_closing_element"})
_VARIABLE_SCOPE_KINDS = frozenset({"function", "module", "global"})


@dataclass(frozen=True)
class Definition:
    """Where a variable is declared.

    ``node`` is the declarator for Variable defs, the function for
    Parameter/FunctionName defs, the class for ClassName, the catch clause
    for CatchClause and the specifier for ImportBinding.
    """
    type: str           # "Variable"|"Parameter"|"FunctionName"|"ClassName"|
                        # "CatchClause"|"ImportBinding"
    name: Node
    node: Node
    kind: str | None = None   # "const"|"let"|"var" for Variable defs

    @property
    def init(self) -> Node | None:
        if self.type == "Variable" and self.node.type == "variable_declarator":
            return self.node.child_by_field_name("value")
        return None


@dataclass(eq=False)
class Variable:
    name: str
    scope: Scope
    defs: list[Definition] = field(default_factory=list)
    references: list[Reference] = field(default_factory=list)


@dataclass(eq=False)
class Reference:
    identifier: Node
    name: str
    scope: Scope        # scope the reference occurs in
    is_read: bool = True
    is_write: bool = False
    init: bool = False  # write performed by a declarator initializer
    resolved: Variable | None = None

    @property
    def line(self) -> int:
        return line_of(self.identifier)

    @property
    def is_global(self) -> bool:
        return self.resolved is not None and self.resolved.scope.kind == "global"


@dataclass(eq=False)
class Scope:
    kind: str
    node: Node
    parent: Scope | None = None
    variables: dict[str, Variable] = field(default_factory=dict)
    references: list[Reference] = field(default_factory=list)
    through: list[Reference] = field(default_factory=list)
    children: list[Scope] = field(default_factory=list)

    def declare(self, name: str, definition: Definition | None = None) -> Variable:
        var = self.variables.get(name)
        if var is None:
            var = Variable(name=name, scope=self)
            self.variables[name] = var
        if definition is not None:
            var.defs.append(definition)
        return var

    def variable_scope(self) -> Scope:
        """Nearest scope that owns `var` declarations."""
        scope = self
        while scope.kind not in _VARIABLE_SCOPE_KINDS and scope.parent is not None:
            scope = scope.parent
        return scope

    def lookup(self, name: str) -> Variable | None:
        scope: Scope | None = self
        while scope is not None:
            var = scope.variables.get(name)
            if var is not None:
                return var
            scope = scope.parent
        return None


class ScopeManager:
    """Scopes of one source unit, addressable by the node that opened them."""

    def __init__(self, unit: SourceUnit, globals: Iterable[str] = ()) -> None:
        self.unit = unit
        self.scopes: list[Scope] = []
        self._by_node: dict[tuple[int, int, str], Scope] = {}

        self.global_scope = self._open("global", unit.root, None)
        for name in sorted(BUILTIN_GLOBALS | set(globals)):
            self.global_scope.declare(name)

        if unit.source_type == "module":
            top = Scope(kind="module", node=unit.root, parent=self.global_scope)
            self.global_scope.children.append(top)
            self.scopes.append(top)
            # Program node maps to the innermost top-level scope
            self._by_node[node_key(unit.root)] = top
        else:
            top = self.global_scope

        builder = _ScopeBuilder(self)
        for child in named_children(unit.root):
            builder.visit(child, top)
        builder.resolve()
        log.debug(
            "%s: %d scopes, %d references",
            unit.filename, len(self.scopes), len(builder.references),
        )

    def _open(self, kind: str, node: Node, parent: Scope | None) -> Scope:
        scope = Scope(kind=kind, node=node, parent=parent)
        if parent is not None:
            parent.children.append(scope)
        self.scopes.append(scope)
        self._by_node[node_key(node)] = scope
        return scope

    def acquire(self, node: Node) -> Scope | None:
        """The scope opened by ``node`` itself, if any."""
        return self._by_node.get(node_key(node))

    def scope_for(self, node: Node) -> Scope:
        """Innermost scope containing ``node``."""
        current: Node | None = node
        while current is not None:
            scope = self._by_node.get(node_key(current))
            if scope is not None:
                return scope
            current = current.parent
        return self.global_scope

    def find_variable(self, scope: Scope, name: str) -> Variable | None:
        return scope.lookup(name)


class _ScopeBuilder:
    def __init__(self, manager: ScopeManager) -> None:
        self.manager = manager
        self.unit = manager.unit
        self.references: list[Reference] = []

    # ── references ──────────────────────────────────────────────────────

    def _reference(self, ident: Node, scope: Scope, *, read: bool = True,
                   write: bool = False, init: bool = False) -> None:
        ref = Reference(
            identifier=ident,
            name=self.unit.text(ident),
            scope=scope,
            is_read=read,
            is_write=write,
            init=init,
        )
        scope.references.append(ref)
        self.references.append(ref)

    def resolve(self) -> None:
        for ref in self.references:
            scope: Scope | None = ref.scope
            while scope is not None:
                var = scope.variables.get(ref.name)
                if var is not None:
                    ref.resolved = var
                    var.references.append(ref)
                    break
                scope.through.append(ref)
                scope = scope.parent

    # ── traversal ───────────────────────────────────────────────────────

    def visit(self, node: Node, scope: Scope) -> None:
        t = node.type
        if t == "comment":
            return
        if t in ("identifier", "shorthand_property_identifier"):
            self._reference(node, scope)
        elif t in FUNCTION_TYPES:
            self._function(node, scope)
        elif t in _CLASS_TYPES:
            self._class(node, scope)
        elif t in ("lexical_declaration", "variable_declaration"):
            self._declaration(node, scope)
        elif t == "statement_block" or t == "switch_body":
            self._children(node, self.manager._open("block", node, scope))
        elif t == "for_statement":
            self._children(node, self.manager._open("for", node, scope))
        elif t == "for_in_statement":
            self._for_in(node, scope)
        elif t == "catch_clause":
            self._catch(node, scope)
        elif t == "import_statement":
            self._import(node, scope)
        elif t == "export_statement":
            self._export(node, scope)
        elif t == "assignment_expression":
            self._assignment_target(node.child_by_field_name("left"), scope)
            self._visit_opt(node.child_by_field_name("right"), scope)
        elif t == "augmented_assignment_expression":
            left = node.child_by_field_name("left")
            if left is not None and left.type == "identifier":
                self._reference(left, scope, read=True, write=True)
            else:
                self._visit_opt(left, scope)
            self._visit_opt(node.child_by_field_name("right"), scope)
        elif t == "update_expression":
            arg = node.child_by_field_name("argument")
            if arg is not None and arg.type == "identifier":
                self._reference(arg, scope, read=True, write=True)
            else:
                self._visit_opt(arg, scope)
        elif t in _JSX_TAGS:
            tag = node.child_by_field_name("name")
            for child in named_children(node):
                if not same_node(child, tag):
                    self.visit(child, scope)
        else:
            self._children(node, scope)

    def _visit_opt(self, node: Node | None, scope: Scope) -> None:
        if node is not None:
            self.visit(node, scope)

    def _children(self, node: Node, scope: Scope) -> None:
        for child in named_children(node):
            self.visit(child, scope)

    # ── declarations ────────────────────────────────────────────────────

    def _bind_pattern(self, pattern: Node, scope: Scope,
                      on_name: Callable[[Node], None]) -> None:
        """Walk a binding/assignment pattern; ``on_name`` gets each bound identifier.

        Default values and computed keys are visited as ordinary expressions.
        """
        t = pattern.type
        if t in ("identifier", "shorthand_property_identifier_pattern"):
            on_name(pattern)
        elif t == "object_pattern":
            for child in named_children(pattern):
                if child.type == "pair_pattern":
                    key = child.child_by_field_name("key")
                    if key is not None and key.type == "computed_property_name":
                        self.visit(key, scope)
                    value = child.child_by_field_name("value")
                    if value is not None:
                        self._bind_pattern(value, scope, on_name)
                else:
                    self._bind_pattern(child, scope, on_name)
        elif t == "array_pattern":
            for child in named_children(pattern):
                self._bind_pattern(child, scope, on_name)
        elif t in ("assignment_pattern", "object_assignment_pattern"):
            left = pattern.child_by_field_name("left")
            if left is not None:
                self._bind_pattern(left, scope, on_name)
            self._visit_opt(pattern.child_by_field_name("right"), scope)
        elif t == "rest_pattern":
            for child in named_children(pattern):
                self._bind_pattern(child, scope, on_name)
        else:
            # member targets such as `obj.x = 1` inside an assignment pattern
            self.visit(pattern, scope)

    def _declaration(self, node: Node, scope: Scope) -> None:
        kind = node.children[0].type if node.children else "var"
        target = scope.variable_scope() if kind == "var" else scope
        for decl in named_children(node):
            if decl.type != "variable_declarator":
                continue
            name = decl.child_by_field_name("name")
            value = decl.child_by_field_name("value")
            if name is not None:
                def bind(ident: Node, decl: Node = decl) -> None:
                    target.declare(self.unit.text(ident), Definition("Variable", ident, decl, kind))
                    if value is not None:
                        self._reference(ident, scope, read=False, write=True, init=True)
                self._bind_pattern(name, scope, bind)
            self._visit_opt(value, scope)

    def _assignment_target(self, left: Node | None, scope: Scope) -> None:
        if left is None:
            return
        if left.type in ("identifier", "object_pattern", "array_pattern"):
            self._bind_pattern(
                left, scope,
                lambda ident: self._reference(ident, scope, read=False, write=True),
            )
        else:
            self.visit(left, scope)

    def _function(self, node: Node, scope: Scope) -> None:
        name = node.child_by_field_name("name")
        if node.type in _DECLARATION_FUNCTIONS and name is not None:
            scope.declare(self.unit.text(name), Definition("FunctionName", name, node))
        elif node.type == "method_definition" and name is not None \
                and name.type == "computed_property_name":
            self.visit(name, scope)

        fscope = self.manager._open("function", node, scope)
        if node.type in _EXPRESSION_FUNCTIONS and name is not None:
            fscope.declare(self.unit.text(name), Definition("FunctionName", name, node))
        if node.type != "arrow_function":
            fscope.declare("arguments")

        def bind_param(ident: Node) -> None:
            fscope.declare(self.unit.text(ident), Definition("Parameter", ident, node))

        single = node.child_by_field_name("parameter")
        if single is not None:
            self._bind_pattern(single, fscope, bind_param)
        params = node.child_by_field_name("parameters")
        if params is not None:
            for param in named_children(params):
                self._bind_pattern(param, fscope, bind_param)

        body = node.child_by_field_name("body")
        if body is None:
            return
        if body.type == "statement_block":
            # function body shares the function scope
            self._children(body, fscope)
        else:
            self.visit(body, fscope)

    def _class(self, node: Node, scope: Scope) -> None:
        name = node.child_by_field_name("name")
        if node.type == "class_declaration" and name is not None:
            scope.declare(self.unit.text(name), Definition("ClassName", name, node))
        cscope = self.manager._open("class", node, scope)
        if node.type == "class" and name is not None:
            cscope.declare(self.unit.text(name), Definition("ClassName", name, node))
        for child in named_children(node):
            if not same_node(child, name):
                self.visit(child, cscope)

    def _for_in(self, node: Node, scope: Scope) -> None:
        kind_node = node.child_by_field_name("kind")
        kind = kind_node.type if kind_node is not None else None
        left = node.child_by_field_name("left")
        self._visit_opt(node.child_by_field_name("right"), scope)

        loop = self.manager._open("for", node, scope)
        if left is not None and kind is not None:
            target = loop.variable_scope() if kind == "var" else loop

            def bind(ident: Node) -> None:
                target.declare(self.unit.text(ident), Definition("Variable", ident, node, kind))
                self._reference(ident, loop, read=False, write=True)

            self._bind_pattern(left, loop, bind)
        else:
            self._assignment_target(left, loop)
        self._visit_opt(node.child_by_field_name("body"), loop)

    def _catch(self, node: Node, scope: Scope) -> None:
        cscope = self.manager._open("catch", node, scope)
        param = node.child_by_field_name("parameter")
        if param is not None:
            self._bind_pattern(
                param, cscope,
                lambda ident: cscope.declare(
                    self.unit.text(ident), Definition("CatchClause", ident, node)
                ),
            )
        self._visit_opt(node.child_by_field_name("body"), cscope)

    def _import(self, node: Node, scope: Scope) -> None:
        for clause in named_children(node):
            if clause.type != "import_clause":
                continue
            for item in named_children(clause):
                if item.type == "identifier":
                    scope.declare(self.unit.text(item), Definition("ImportBinding", item, item))
                elif item.type == "namespace_import":
                    for ident in named_children(item):
                        if ident.type == "identifier":
                            scope.declare(self.unit.text(ident), Definition("ImportBinding", ident, item))
                elif item.type == "named_imports":
                    for specifier in named_children(item):
                        if specifier.type != "import_specifier":
                            continue
                        local = specifier.child_by_field_name("alias") or specifier.child_by_field_name("name")
                        if local is not None and local.type == "identifier":
                            scope.declare(self.unit.text(local), Definition("ImportBinding", local, specifier))

    def _export(self, node: Node, scope: Scope) -> None:
        reexport = node.child_by_field_name("source") is not None
        for child in named_children(node):
            if child.type == "export_clause":
                if reexport:
                    continue
                for specifier in named_children(child):
                    local = specifier.child_by_field_name("name")
                    if local is not None and local.type == "identifier":
                        self._reference(local, scope)
            elif child.type == "string" and reexport:
                continue
            else:
                self.visit(child, scope)
