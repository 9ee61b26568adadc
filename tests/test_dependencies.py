"""Tests for used / declared dependency extraction."""

from __future__ import annotations

from strict_hooks.analyzer.call_sites import iter_call_sites
from strict_hooks.analyzer.dependencies import (
    declared_dependencies,
    initializer_shape,
    object_literal_keys,
    used_identifiers,
)
from strict_hooks.config import LintConfig
from strict_hooks.ir.javascript import parse_source, walk
from strict_hooks.ir.scope import ScopeManager


def _site(code: str, config: LintConfig | None = None):
    unit = parse_source(code)
    sites = list(iter_call_sites(unit, config or LintConfig()))
    assert sites, "no hook call in code"
    return unit, sites[0]


def _used(code: str) -> set[str]:
    unit, site = _site(code)
    return used_identifiers(site, unit, ScopeManager(unit))


def _declared(code: str) -> set[str]:
    unit, site = _site(code)
    return declared_dependencies(site, unit)


# ── Member access granularity ────────────────────────────────────────────


class TestMemberAccess:
    def test_array_literal_is_object_level(self):
        code = """
const arr = [1, 2, 3];
useEffect(() => {
  arr.forEach(n => console.log(n));
}, []);
"""
        assert _used(code) == {"arr"}

    def test_array_factories_are_object_level(self):
        code = """
const grid = new Array(3);
const ids = Array.from(source);
useEffect(() => {
  grid.fill(0);
  ids.map(String);
}, []);
"""
        assert _used(code) == {"grid", "ids"}

    def test_object_literal_known_key_is_property_level(self):
        code = """
const config = { url: "/api" };
useEffect(() => {
  fetch(config.url);
}, []);
"""
        assert _used(code) == {"config.url"}

    def test_object_literal_unknown_key_is_object_level(self):
        code = """
const config = { url: "/api" };
useEffect(() => {
  fetch(config.timeout);
}, []);
"""
        assert _used(code) == {"config"}

    def test_other_initializer_is_property_level(self):
        code = """
const api = createClient();
useEffect(() => {
  api.fetch().then(res => api.store(res));
}, []);
"""
        assert _used(code) == {"api.fetch", "api.store"}

    def test_parameter_is_property_level(self):
        code = """
function Profile(props) {
  useEffect(() => {
    load(props.userId);
  }, []);
}
"""
        assert _used(code) == {"props.userId"}

    def test_computed_access_is_object_level(self):
        code = """
const table = load();
const key = pick();
useEffect(() => {
  console.log(table[key]);
}, []);
"""
        assert _used(code) == {"table", "key"}

    def test_deep_path_keeps_first_segment(self):
        code = """
const store = makeStore();
useEffect(() => {
  store.user.name;
}, []);
"""
        assert _used(code) == {"store.user"}

    def test_only_first_initializer_is_inspected(self):
        code = """
let state = [];
state = load();
useEffect(() => {
  state.refresh();
}, []);
"""
        assert _used(code) == {"state"}


# ── Exclusions ───────────────────────────────────────────────────────────


class TestExclusions:
    def test_static_constants_are_excluded(self):
        code = """
const foo = 42;
const label = "page " + foo;
const enabled = true;
function fetchData() {}
useEffect(() => {
  if (enabled) fetchData(label, foo);
}, []);
"""
        assert _used(code) == {"fetchData"}

    def test_globals_and_unresolved_are_excluded(self):
        code = """
useEffect(() => {
  window.scrollTo(0, 0);
  undeclaredHelper();
}, []);
"""
        assert _used(code) == set()

    def test_hook_and_binding_names_are_excluded(self):
        code = """
import { useCallback } from "react";
const handler = useCallback(() => {
  useCallback;
  handler();
}, []);
"""
        assert _used(code) == set()

    def test_callback_locals_are_excluded(self):
        code = """
const items = load();
useEffect(() => {
  const local = items.length;
  let total = 0;
  total += local;
}, []);
"""
        assert _used(code) == {"items.length"}

    def test_expression_body_is_not_analyzed(self):
        code = """
const items = load();
useMemo(() => items.length, []);
"""
        assert _used(code) == set()

    def test_function_expression_callback(self):
        code = """
let count = read();
useEffect(function () {
  tick(count);
}, []);
"""
        assert _used(code) == {"count"}

    def test_non_function_callback(self):
        assert _used("function run() {}\nuseEffect(run, []);") == set()


class TestUsedIdentifiersStability:
    CODE = """
const api = createClient();
const list = [1, 2];
function Panel({ id }) {
  const [state, setState] = useState(null);
  useEffect(() => {
    api.load(id).then(setState);
    list.forEach(x => x);
    state;
  }, []);
}
"""

    def test_idempotent(self):
        unit, site = _site(self.CODE)
        manager = ScopeManager(unit)
        first = used_identifiers(site, unit, manager)
        assert used_identifiers(site, unit, manager) == first
        assert first == {"api.load", "id", "list", "setState", "state"}

    def test_fresh_scope_model_gives_same_set(self):
        unit, site = _site(self.CODE)
        again_unit, again_site = _site(self.CODE)
        assert used_identifiers(site, unit, ScopeManager(unit)) == \
            used_identifiers(again_site, again_unit, ScopeManager(again_unit))


# ── Declared dependencies ────────────────────────────────────────────────


class TestDeclaredDependencies:
    def test_identifiers_and_two_segment_paths(self):
        code = 'useEffect(() => {}, [a, b.c, d.e.f, "str", ...rest, call()]);'
        assert _declared(code) == {"a", "b.c"}

    def test_textual_not_semantic(self):
        code = "const user = load();\nuseEffect(() => {}, [user.id, user]);"
        assert _declared(code) == {"user.id", "user"}

    def test_non_array_argument(self):
        assert _declared("useEffect(() => {}, deps);") == set()

    def test_missing_argument(self):
        assert _declared("useEffect(() => {});") == set()


# ── Initializer helpers ──────────────────────────────────────────────────


def _first(code: str, node_type: str):
    unit = parse_source(code)
    for node in walk(unit.root):
        if node.type == node_type:
            return unit, node
    raise AssertionError(f"no {node_type} node")


def test_object_literal_keys():
    unit, obj = _first('x = { a: 1, b, c() {}, [d]: 2, "e": 3 };', "object")
    assert object_literal_keys(obj, unit) == {"a", "b", "c"}


def test_initializer_shapes():
    unit, node = _first("x = ([1]);", "parenthesized_expression")
    assert initializer_shape(node, unit) == "array"
    unit, node = _first("x = Array.of(1, 2);", "call_expression")
    assert initializer_shape(node, unit) == "array"
    unit, node = _first("x = { a: 1 };", "object")
    assert initializer_shape(node, unit) == "object"
    unit, node = _first("x = make();", "call_expression")
    assert initializer_shape(node, unit) == "other"
    assert initializer_shape(None, unit) == "other"
