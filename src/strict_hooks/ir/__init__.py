"""JavaScript IR for strict-hooks.

Provides:
    parse_source(source, filename, source_type) -> SourceUnit
    ScopeManager(unit, globals)                 -> lexical scopes + references
    is_static_primitive(node, scope, manager)   -> constant folding check
"""

from __future__ import annotations

from strict_hooks.ir.javascript import SourceUnit, parse_source
from strict_hooks.ir.scope import Reference, Scope, ScopeManager, Variable
from strict_hooks.ir.static_values import StaticValue, get_static_value, is_static_primitive

__all__ = [
    "Reference",
    "Scope",
    "ScopeManager",
    "SourceUnit",
    "StaticValue",
    "Variable",
    "get_static_value",
    "is_static_primitive",
    "parse_source",
]
