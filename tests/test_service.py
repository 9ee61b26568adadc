"""End-to-end tests for lint_source / lint_file."""

from __future__ import annotations

from pathlib import Path

from strict_hooks.analyzer.call_sites import iter_call_sites
from strict_hooks.analyzer.service import VisitedCallSites, lint_file, lint_source, lint_unit
from strict_hooks.config import LintConfig
from strict_hooks.ir.javascript import parse_source

DISABLE = "// eslint-disable-line react-hooks/exhaustive-deps"
AGGREGATE = LintConfig(require_comment_per_dependency=False)
BOTH = (LintConfig(), AGGREGATE)


def _kinds(code: str, config: LintConfig | None = None) -> list[str]:
    return [d.kind for d in lint_source(code, "App.jsx", config).diagnostics]


def _write(tmpdir: Path, name: str, content: str) -> Path:
    p = tmpdir / name
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content)
    return p


# ── Reconciliation outcomes ──────────────────────────────────────────────


class TestOutcomes:
    CONSTANT_ONLY = """
const LIMIT = 10;
useEffect(() => {
  console.log(LIMIT);
}, []); {comment}
"""

    def test_no_comment_is_inert(self):
        code = "const api = make();\nuseEffect(() => { api.load(); }, []);"
        for config in BOTH:
            assert _kinds(code, config) == []

    def test_constant_only_without_marker(self):
        code = self.CONSTANT_ONLY.replace("{comment}", DISABLE)
        for config in BOTH:
            assert _kinds(code, config) == ["missing-comment"]

    def test_constant_only_with_empty_payload(self):
        for suffix in (" --", " --   "):
            code = self.CONSTANT_ONLY.replace("{comment}", DISABLE + suffix)
            for config in BOTH:
                assert _kinds(code, config) == ["unnecessary-disable"]

    def test_declared_equals_used(self):
        code = f"""
const api = make();
let page = read();
useEffect(() => {{
  api.load(page);
}}, [api.load, page]); {DISABLE} --
"""
        for config in BOTH:
            kinds = _kinds(code, config)
            assert "missing-deps" not in kinds
            assert "stale-dep" not in kinds

    def test_array_is_cited_at_object_level(self):
        code = f"""
const arr = [1, 2, 3];
useEffect(() => {{
  arr.forEach(n => console.log(n));
}}, []); {DISABLE} --
"""
        for config in BOTH:
            (d,) = lint_source(code, "App.jsx", config).diagnostics
            assert d.kind == "missing-deps"
            assert d.data["deps"] == "arr"

    def test_property_level_declared_dependency(self):
        code = f"""
const obj = {{ url: "/api" }};
useEffect(() => {{
  console.log(obj.url);
}}, [obj.url]); {DISABLE} --
"""
        for config in BOTH:
            assert "missing-deps" not in _kinds(code, config)

    def test_documented_name_is_accepted(self):
        code = f"""
function fetchData() {{}}
function fetchData1() {{}}
useEffect(() => {{
  fetchData();
  fetchData1();
}}, []); {DISABLE} -- fetchData: memoized
"""
        for config in BOTH:
            (d,) = lint_source(code, "App.jsx", config).diagnostics
            assert d.kind == "missing-deps"
            assert d.data["deps"] == "fetchData1"

    def test_stale_documentation(self):
        code = f"useEffect(() => {{ console.log('hi'); }}, []); {DISABLE} -- foo: old"
        for config in BOTH:
            (d,) = lint_source(code, "App.jsx", config).diagnostics
            assert d.kind == "stale-dep"
            assert d.data["dep"] == "foo"

    def test_aggregate_lists_every_missing_name(self):
        code = f"""
function Component(props) {{
  const handleClick = useCallback(() => {{}}, []);
  useEffect(() => {{
    props.userId;
    handleClick();
  }}, []); {DISABLE} --
}}
"""
        (d,) = lint_source(code, "App.jsx", AGGREGATE).diagnostics
        assert "'handleClick, props.userId' are safe to omit" in d.message

    def test_per_dependency_suggests_comment_edits(self):
        code = f"""
function Component(props) {{
  useEffect(() => {{
    props.load(props.userId);
  }}, []); {DISABLE} -- props.load
}}
"""
        (d,) = lint_source(code, "App.jsx").diagnostics
        assert d.kind == "missing-deps"
        assert d.suggestions[0].new_text.endswith("-- props.load, props.userId: [reason]")

    def test_namespaced_hook(self):
        code = f"const v = read();\nReact.useEffect(() => {{ v.go(); }}, []); {DISABLE} --"
        (d,) = lint_source(code, "App.jsx").diagnostics
        assert d.hook == "useEffect"
        assert d.data["deps"] == "v.go"

    def test_returned_hook_is_checked(self):
        code = f"""
function useThing() {{
  const a = mk();
  return useMemo(() => {{
    return a.b;
  }}, []); {DISABLE} --
}}
"""
        for config in BOTH:
            (d,) = lint_source(code, "App.jsx", config).diagnostics
            assert d.kind == "missing-deps"
            assert d.data["deps"] == "a.b"

    def test_disabled_hook_is_skipped(self):
        code = f"const v = read();\nuseEffect(() => {{ v.go(); }}, []); {DISABLE}"
        assert _kinds(code, LintConfig(disabled_hooks={"useEffect"})) == []


class TestSourceType:
    CODE = f"const api = make();\nuseEffect(() => {{ api.load(); }}, []); {DISABLE} --"

    def test_module_top_level_is_a_dependency(self):
        assert _kinds(self.CODE) == ["missing-deps"]

    def test_script_top_level_is_global(self):
        assert _kinds(self.CODE, LintConfig(source_type="script")) == ["unnecessary-disable"]


class TestRespectUpstreamDisable:
    NEXT_LINE = f"""// eslint-disable-next-line no-console
useEffect(() => {{ console.log(x); }}, []); {DISABLE}"""
    SHARED = "useEffect(() => {}, []); // eslint-disable-line no-console, react-hooks/exhaustive-deps"
    BLOCK = f"""/* eslint-disable */
useEffect(() => {{}}, []); {DISABLE}"""

    def test_off_by_default(self):
        for code in (self.NEXT_LINE, self.SHARED, self.BLOCK):
            assert _kinds(code) == ["missing-comment"]

    def test_skips_call_sites_silenced_elsewhere(self):
        config = LintConfig(respect_upstream_disable=True)
        for code in (self.NEXT_LINE, self.SHARED, self.BLOCK):
            assert _kinds(code, config) == []

    def test_own_comment_alone_is_not_upstream(self):
        config = LintConfig(respect_upstream_disable=True)
        assert _kinds(f"useEffect(() => {{}}, []); {DISABLE}", config) == ["missing-comment"]


# ── Per-unit bookkeeping ─────────────────────────────────────────────────


class TestVisitedCallSites:
    def test_first_visit(self):
        unit = parse_source("useEffect(() => {}, []);")
        (site,) = iter_call_sites(unit, LintConfig())
        visited = VisitedCallSites("App.jsx")
        assert visited.first_visit(site)
        assert not visited.first_visit(site)
        assert len(visited) == 1
        visited.clear()
        assert len(visited) == 0

    def test_shared_memo_skips_revisits(self):
        unit = parse_source(f"useEffect(() => {{}}, []); {DISABLE}")
        visited = VisitedCallSites(unit.filename)
        diagnostics, inspected = lint_unit(unit, LintConfig(), visited)
        assert (len(diagnostics), inspected) == (1, 1)
        assert lint_unit(unit, LintConfig(), visited) == ([], 0)

    def test_lint_source_starts_fresh_each_time(self):
        code = f"useEffect(() => {{}}, []); {DISABLE}"
        assert _kinds(code) == _kinds(code) == ["missing-comment"]


class TestReport:
    def test_counts_and_order(self):
        code = f"""
useEffect(() => {{}}, []); {DISABLE}
useMemo(() => 1, []);
useCallback(() => {{}}, []); {DISABLE} --
"""
        report = lint_source(code, "App.jsx")
        assert report.call_sites == 3
        assert [(d.line, d.kind) for d in report.diagnostics] == [
            (2, "missing-comment"),
            (4, "unnecessary-disable"),
        ]
        assert report.parse_errors is False

    def test_syntax_errors_are_tolerated(self):
        code = f"const x = ;\nuseEffect(() => {{}}, []); {DISABLE}"
        report = lint_source(code, "Broken.jsx")
        assert report.parse_errors is True
        assert report.error is None


class TestLintFile:
    def test_relative_path(self, tmp_path):
        f = _write(tmp_path, "src/App.jsx", f"useEffect(() => {{}}, []); {DISABLE}\n")
        report = lint_file(f, tmp_path)
        assert report.file == str(Path("src") / "App.jsx")
        assert [d.file for d in report.diagnostics] == [report.file]

    def test_outside_workspace_keeps_full_path(self, tmp_path):
        f = _write(tmp_path, "a/App.jsx", "")
        report = lint_file(f, tmp_path / "b")
        assert report.file == str(f)

    def test_unreadable_file(self, tmp_path):
        report = lint_file(tmp_path / "missing.js", tmp_path)
        assert report.error is not None
        assert report.diagnostics == []
