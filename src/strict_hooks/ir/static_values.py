"""Bounded constant folding for JavaScript expressions.

Evaluates an expression to a concrete value when that is possible without
running anything: literals, operators over folded operands, and ``const``
(or never-reassigned) bindings whose initializer folds. Anything else is
"not static" and yields ``None``.

JS values map onto Python as: string -> str, number -> float, boolean ->
bool, null -> None, undefined -> UNDEFINED, array -> list, object -> dict.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from tree_sitter import Node

from strict_hooks.ir.javascript import named_children
from strict_hooks.ir.scope import Scope, ScopeManager, Variable


class _Undefined:
    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"


UNDEFINED = _Undefined()


@dataclass(frozen=True)
class StaticValue:
    """A successfully folded value."""
    value: object


_BUILTIN_CONSTANTS: dict[str, object] = {
    "undefined": UNDEFINED,
    "NaN": math.nan,
    "Infinity": math.inf,
}

_ESCAPE_RE = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|0(?![0-9])|\r\n|[\s\S])"
)
_SIMPLE_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0",
    "\n": "", "\r\n": "", "\u2028": "", "\u2029": "",
}


class _NotStatic(Exception):
    pass


# ── JS coercions (primitives only) ────────────────────────────────────────


def _is_primitive(v: object) -> bool:
    return v is None or v is UNDEFINED or isinstance(v, (str, bool, int, float))


def _to_number(v: object) -> float:
    if isinstance(v, bool):
        return 1.0 if v else 0.0
    if isinstance(v, (int, float)):
        return float(v)
    if v is None:
        return 0.0
    if v is UNDEFINED:
        return math.nan
    if isinstance(v, str):
        text = v.strip()
        if not text:
            return 0.0
        try:
            if text[:2].lower() in ("0x", "0o", "0b"):
                return float(int(text, 0))
            if text in ("Infinity", "+Infinity"):
                return math.inf
            if text == "-Infinity":
                return -math.inf
            if text.lower() in ("inf", "+inf", "-inf", "nan", "infinity", "-infinity"):
                return math.nan
            return float(text)
        except ValueError:
            return math.nan
    raise _NotStatic


def _number_to_string(n: float) -> str:
    if math.isnan(n):
        return "NaN"
    if math.isinf(n):
        return "Infinity" if n > 0 else "-Infinity"
    if n == int(n) and abs(n) < 1e21:
        return str(int(n))
    return repr(n)


def _to_string(v: object) -> str:
    if isinstance(v, str):
        return v
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, (int, float)):
        return _number_to_string(float(v))
    if v is None:
        return "null"
    if v is UNDEFINED:
        return "undefined"
    if isinstance(v, list):
        return ",".join("" if e is None or e is UNDEFINED else _to_string(e) for e in v)
    raise _NotStatic


def _to_boolean(v: object) -> bool:
    if isinstance(v, bool):
        return v
    if v is None or v is UNDEFINED:
        return False
    if isinstance(v, (int, float)):
        return not (v == 0 or math.isnan(v))
    if isinstance(v, str):
        return v != ""
    return True


def _typeof(v: object) -> str:
    if isinstance(v, bool):
        return "boolean"
    if isinstance(v, (int, float)):
        return "number"
    if isinstance(v, str):
        return "string"
    if v is UNDEFINED:
        return "undefined"
    return "object"


def _to_int32(n: float) -> int:
    if math.isnan(n) or math.isinf(n):
        return 0
    i = int(n) & 0xFFFFFFFF
    return i - 0x100000000 if i >= 0x80000000 else i


def _strict_equals(a: object, b: object) -> bool:
    if _typeof(a) != _typeof(b):
        return False
    if isinstance(a, (list, dict)):
        return a is b
    return a == b


def _loose_equals(a: object, b: object) -> bool:
    if _typeof(a) == _typeof(b) and not (a is None) ^ (b is None):
        return _strict_equals(a, b)
    nullish = (None, UNDEFINED)
    if a in nullish or b in nullish:
        return a in nullish and b in nullish
    if isinstance(a, (list, dict)) or isinstance(b, (list, dict)):
        raise _NotStatic
    return _to_number(a) == _to_number(b)


def _number_literal(text: str) -> float:
    text = text.replace("_", "")
    if text.endswith("n"):
        # BigInt: typeof "bigint", never a folded primitive here
        raise _NotStatic
    lower = text.lower()
    if lower.startswith(("0x", "0o", "0b")):
        return float(int(text, 0))
    if len(text) > 1 and text[0] == "0" and text.isdigit():
        # legacy octal unless a digit rules it out
        return float(int(text, 8)) if all(c in "01234567" for c in text) else float(text)
    return float(text)


def _decode_escapes(raw: str) -> str:
    def repl(m: re.Match) -> str:
        esc = m.group(1)
        if esc in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[esc]
        if esc.startswith("u{"):
            return chr(int(esc[2:-1], 16))
        if esc[0] in "ux" and len(esc) > 1:
            return chr(int(esc[1:], 16))
        return esc
    return _ESCAPE_RE.sub(repl, raw)


# ── Evaluator ─────────────────────────────────────────────────────────────


class _Evaluator:
    def __init__(self, manager: ScopeManager) -> None:
        self.manager = manager
        self.unit = manager.unit
        self._active: set[int] = set()

    def eval(self, node: Node | None, scope: Scope) -> object:
        if node is None:
            raise _NotStatic
        handler = getattr(self, "_eval_" + node.type, None)
        if handler is None:
            raise _NotStatic
        return handler(node, scope)

    # literals

    def _eval_number(self, node: Node, scope: Scope) -> object:
        return _number_literal(self.unit.text(node))

    def _eval_string(self, node: Node, scope: Scope) -> object:
        return _decode_escapes(self.unit.text(node)[1:-1])

    def _eval_template_string(self, node: Node, scope: Scope) -> object:
        data = self.unit.data
        parts: list[str] = []
        pos = node.start_byte + 1
        for child in named_children(node):
            if child.type != "template_substitution":
                continue
            parts.append(_decode_escapes(data[pos:child.start_byte].decode("utf-8")))
            inner = named_children(child)
            if len(inner) != 1:
                raise _NotStatic
            value = self.eval(inner[0], scope)
            if not _is_primitive(value):
                raise _NotStatic
            parts.append(_to_string(value))
            pos = child.end_byte
        parts.append(_decode_escapes(data[pos:node.end_byte - 1].decode("utf-8")))
        return "".join(parts)

    def _eval_true(self, node: Node, scope: Scope) -> object:
        return True

    def _eval_false(self, node: Node, scope: Scope) -> object:
        return False

    def _eval_null(self, node: Node, scope: Scope) -> object:
        return None

    def _eval_undefined(self, node: Node, scope: Scope) -> object:
        return UNDEFINED

    def _eval_parenthesized_expression(self, node: Node, scope: Scope) -> object:
        inner = named_children(node)
        if len(inner) != 1:
            raise _NotStatic
        return self.eval(inner[0], scope)

    def _eval_sequence_expression(self, node: Node, scope: Scope) -> object:
        value: object = UNDEFINED
        for child in named_children(node):
            value = self.eval(child, scope)
        return value

    # containers

    def _eval_array(self, node: Node, scope: Scope) -> object:
        items: list[object] = []
        for child in named_children(node):
            if child.type == "spread_element":
                spread = self.eval(named_children(child)[0], scope)
                if isinstance(spread, list):
                    items.extend(spread)
                elif isinstance(spread, str):
                    items.extend(spread)
                else:
                    raise _NotStatic
            else:
                items.append(self.eval(child, scope))
        return items

    def _eval_object(self, node: Node, scope: Scope) -> object:
        obj: dict[str, object] = {}
        for child in named_children(node):
            if child.type == "pair":
                key = self._property_key(child.child_by_field_name("key"), scope)
                obj[key] = self.eval(child.child_by_field_name("value"), scope)
            elif child.type == "shorthand_property_identifier":
                obj[self.unit.text(child)] = self._eval_identifier(child, scope)
            elif child.type == "spread_element":
                spread = self.eval(named_children(child)[0], scope)
                if isinstance(spread, dict):
                    obj.update(spread)
                elif spread is not None and spread is not UNDEFINED:
                    raise _NotStatic
            else:
                raise _NotStatic
        return obj

    def _property_key(self, key: Node | None, scope: Scope) -> str:
        if key is None:
            raise _NotStatic
        if key.type in ("property_identifier", "identifier"):
            return self.unit.text(key)
        if key.type == "computed_property_name":
            inner = named_children(key)
            value = self.eval(inner[0] if inner else None, scope)
            if not _is_primitive(value):
                raise _NotStatic
            return _to_string(value)
        value = self.eval(key, scope)
        return _to_string(value)

    # operators

    def _operator(self, node: Node) -> str:
        op = node.child_by_field_name("operator")
        if op is None:
            raise _NotStatic
        return self.unit.text(op)

    def _eval_unary_expression(self, node: Node, scope: Scope) -> object:
        op = self._operator(node)
        value = self.eval(node.child_by_field_name("argument"), scope)
        if op == "typeof":
            return _typeof(value)
        if op == "void":
            return UNDEFINED
        if op == "!":
            return not _to_boolean(value)
        if not _is_primitive(value):
            raise _NotStatic
        if op == "-":
            return -_to_number(value)
        if op == "+":
            return _to_number(value)
        if op == "~":
            return float(~_to_int32(_to_number(value)))
        raise _NotStatic

    def _eval_binary_expression(self, node: Node, scope: Scope) -> object:
        op = self._operator(node)
        left = self.eval(node.child_by_field_name("left"), scope)

        if op in ("&&", "||", "??"):
            if op == "&&" and not _to_boolean(left):
                return left
            if op == "||" and _to_boolean(left):
                return left
            if op == "??" and left is not None and left is not UNDEFINED:
                return left
            return self.eval(node.child_by_field_name("right"), scope)

        right = self.eval(node.child_by_field_name("right"), scope)
        if op == "===":
            return _strict_equals(left, right)
        if op == "!==":
            return not _strict_equals(left, right)
        if op == "==":
            return _loose_equals(left, right)
        if op == "!=":
            return not _loose_equals(left, right)

        if not (_is_primitive(left) and _is_primitive(right)):
            raise _NotStatic

        if op == "+":
            if isinstance(left, str) or isinstance(right, str):
                return _to_string(left) + _to_string(right)
            return _to_number(left) + _to_number(right)
        if op in ("<", "<=", ">", ">="):
            if isinstance(left, str) and isinstance(right, str):
                a, b = left, right
            else:
                a, b = _to_number(left), _to_number(right)
                if math.isnan(a) or math.isnan(b):
                    return False
            return {"<": a < b, "<=": a <= b, ">": a > b, ">=": a >= b}[op]

        a, b = _to_number(left), _to_number(right)
        if op == "-":
            return a - b
        if op == "*":
            return a * b
        if op == "/":
            if b == 0:
                if a == 0 or math.isnan(a):
                    return math.nan
                return math.copysign(math.inf, a) * math.copysign(1.0, b)
            return a / b
        if op == "%":
            if b == 0 or math.isinf(a) or math.isnan(a) or math.isnan(b):
                return math.nan
            return math.fmod(a, b)
        if op == "**":
            try:
                return math.pow(a, b)
            except (OverflowError, ValueError):
                return math.nan if math.isnan(a) or a < 0 else math.inf
        if op in ("&", "|", "^", "<<", ">>", ">>>"):
            x, y = _to_int32(a), _to_int32(b) & 0x1F
            if op == "&":
                return float(x & _to_int32(b))
            if op == "|":
                return float(x | _to_int32(b))
            if op == "^":
                return float(x ^ _to_int32(b))
            if op == "<<":
                return float(_to_int32(x << y))
            if op == ">>":
                return float(x >> y)
            return float((x & 0xFFFFFFFF) >> y)
        raise _NotStatic

    def _eval_ternary_expression(self, node: Node, scope: Scope) -> object:
        test = self.eval(node.child_by_field_name("condition"), scope)
        branch = "consequence" if _to_boolean(test) else "alternative"
        return self.eval(node.child_by_field_name(branch), scope)

    # member access

    def _read_property(self, obj: object, key: object) -> object:
        if isinstance(obj, dict):
            name = _to_string(key)
            if name in obj:
                return obj[name]
            raise _NotStatic
        if isinstance(obj, (list, str)):
            if key == "length":
                return float(len(obj))
            if isinstance(key, (int, float)) and not isinstance(key, bool) \
                    and float(key).is_integer() and 0 <= key < len(obj):
                return obj[int(key)]
            if isinstance(key, str) and key.isdigit() and int(key) < len(obj):
                return obj[int(key)]
        raise _NotStatic

    def _eval_member_expression(self, node: Node, scope: Scope) -> object:
        obj = self.eval(node.child_by_field_name("object"), scope)
        if node.child_by_field_name("optional_chain") is not None and obj in (None, UNDEFINED):
            return UNDEFINED
        prop = node.child_by_field_name("property")
        if prop is None or prop.type != "property_identifier":
            raise _NotStatic
        return self._read_property(obj, self.unit.text(prop))

    def _eval_subscript_expression(self, node: Node, scope: Scope) -> object:
        obj = self.eval(node.child_by_field_name("object"), scope)
        if node.child_by_field_name("optional_chain") is not None and obj in (None, UNDEFINED):
            return UNDEFINED
        key = self.eval(node.child_by_field_name("index"), scope)
        return self._read_property(obj, key)

    def _eval_call_expression(self, node: Node, scope: Scope) -> object:
        callee = node.child_by_field_name("function")
        if callee is None or callee.type != "identifier":
            raise _NotStatic
        name = self.unit.text(callee)
        if name not in ("String", "Number", "Boolean") or not self._is_builtin(scope, name):
            raise _NotStatic
        args_node = node.child_by_field_name("arguments")
        args = named_children(args_node) if args_node is not None else []
        if any(a.type == "spread_element" for a in args):
            raise _NotStatic
        value = self.eval(args[0], scope) if args else UNDEFINED
        if not args:
            return {"String": "", "Number": 0.0, "Boolean": False}[name]
        if name == "Boolean":
            return _to_boolean(value)
        if not _is_primitive(value):
            raise _NotStatic
        return _to_string(value) if name == "String" else _to_number(value)

    # bindings

    def _is_builtin(self, scope: Scope, name: str) -> bool:
        var = self.manager.find_variable(scope, name)
        return var is None or (var.scope.kind == "global" and not var.defs)

    def _eval_identifier(self, node: Node, scope: Scope) -> object:
        name = self.unit.text(node)
        var = self.manager.find_variable(scope, name)
        if name in _BUILTIN_CONSTANTS and self._is_builtin(scope, name):
            return _BUILTIN_CONSTANTS[name]
        if var is None or len(var.defs) != 1:
            raise _NotStatic
        definition = var.defs[0]
        init = definition.init
        if (
            definition.type != "Variable"
            or definition.name.type != "identifier"
            or init is None
            or not (definition.kind == "const" or _effectively_const(var))
        ):
            raise _NotStatic
        if id(var) in self._active:
            raise _NotStatic
        self._active.add(id(var))
        try:
            return self.eval(init, self.manager.scope_for(init))
        finally:
            self._active.discard(id(var))

    # `{ foo }` reads `foo`
    _eval_shorthand_property_identifier = _eval_identifier


def _effectively_const(var: Variable) -> bool:
    return all(not ref.is_write or ref.init for ref in var.references)


def get_static_value(node: Node, scope: Scope, manager: ScopeManager) -> StaticValue | None:
    """Fold ``node`` within ``scope``; None when it is not statically known."""
    try:
        return StaticValue(_Evaluator(manager).eval(node, scope))
    except (_NotStatic, ValueError, OverflowError, RecursionError, UnicodeDecodeError):
        return None


def is_static_primitive(node: Node, scope: Scope, manager: ScopeManager) -> bool:
    """True when ``node`` folds to a string, number or boolean."""
    folded = get_static_value(node, scope, manager)
    return folded is not None and isinstance(folded.value, (str, bool, int, float))
