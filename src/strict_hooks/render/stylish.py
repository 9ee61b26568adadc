"""Render a LintReport in eslint's "stylish" layout."""

from __future__ import annotations

from strict_hooks.analyzer.models import LintReport


def render_stylish(report: LintReport) -> str:
    """Warnings grouped by file, aligned columns, and a one-line total."""
    out: list[str] = []
    for f in report.files:
        if not f.diagnostics and f.error is None:
            continue
        out.append(f.file)
        if f.error is not None:
            out.append(f"  error  {f.error}")
        rows = [
            (f"{d.line}:{d.column}", d.severity, d.message, d.kind)
            for d in f.diagnostics
        ]
        if rows:
            w_loc = max(len(r[0]) for r in rows)
            w_sev = max(len(r[1]) for r in rows)
            w_msg = max(len(r[2]) for r in rows)
            for loc, sev, msg, kind in rows:
                out.append(f"  {loc:<{w_loc}}  {sev:<{w_sev}}  {msg:<{w_msg}}  {kind}")
        out.append("")

    total = report.warning_count
    if total or report.failed_files:
        noun = "problem" if total == 1 else "problems"
        summary = f"✖ {total} {noun} (0 errors, {total} warnings)"
        if report.failed_files:
            summary += f", {report.failed_files} files could not be linted"
        out.append(summary)
    return "\n".join(out)
