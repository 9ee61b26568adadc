"""Tests for file discovery and the multi-file scan."""

from __future__ import annotations

import tempfile
from pathlib import Path

from strict_hooks import scanner
from strict_hooks.config import LintConfig
from strict_hooks.scanner import collect_targets, scan
from strict_hooks.utils import discover_files, snippet

DISABLE = "// eslint-disable-line react-hooks/exhaustive-deps"


def _write(tmpdir: Path, name: str, content: str = "") -> Path:
    p = tmpdir / name
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content)
    return p


def test_discovery_skips_vendored_and_minified():
    with tempfile.TemporaryDirectory() as d:
        ws = Path(d)
        _write(ws, "src/App.jsx")
        _write(ws, "src/util.mjs")
        _write(ws, "src/styles.css")
        _write(ws, "node_modules/react/index.js")
        _write(ws, "dist/bundle.js")
        _write(ws, "public/vendor.min.js")
        found = [p.relative_to(ws).as_posix() for p in discover_files(ws, LintConfig().extensions)]
        assert found == ["src/App.jsx", "src/util.mjs"]


def test_explicit_files_and_duplicates():
    with tempfile.TemporaryDirectory() as d:
        ws = Path(d).resolve()
        app = _write(ws, "App.jsx")
        odd = _write(ws, "component.tsx.txt")
        targets = collect_targets([ws, app, odd], LintConfig())
        assert targets == [(app, ws), (odd, ws)]


def test_scan_survives_internal_errors(monkeypatch):
    with tempfile.TemporaryDirectory() as d:
        ws = Path(d)
        _write(ws, "a.js", f"useEffect(() => {{}}, []); {DISABLE}\n")
        _write(ws, "b.js", "")
        real_lint_file = scanner.lint_file

        def flaky(path, workspace, config):
            if path.name == "b.js":
                raise RuntimeError("boom")
            return real_lint_file(path, workspace, config)

        monkeypatch.setattr(scanner, "lint_file", flaky)
        report = scan([ws])
        assert [f.file for f in report.files] == ["a.js", str(ws.resolve() / "b.js")]
        assert report.warning_count == 1
        assert report.failed_files == 1
        assert report.files[1].error == "internal error: boom"


def test_snippet():
    src = "line one\n    line two   \n"
    assert snippet(src, 2) == "line two"
    assert snippet(src, 9) == ""
    assert snippet("x" * 300, 1, max_len=10) == "x" * 10
